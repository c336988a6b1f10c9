"""Security utilities: JWT decoding and the caller identity passed to services."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from volunteer_hub.config import settings
from volunteer_hub.utils.constants import Role


@dataclass(frozen=True)
class Caller:
    """Authenticated actor. Every service operation receives one."""

    user_id: UUID
    role: str

    @property
    def is_moderator(self) -> bool:
        return self.role == Role.MODERATOR.value

    @property
    def is_charity(self) -> bool:
        return self.role == Role.CHARITY.value

    @property
    def is_volunteer(self) -> bool:
        return self.role == Role.VOLUNTEER.value


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token.

    Tokens are normally issued by the auth service; this is used by scripts and tests.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token. Returns None when invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
