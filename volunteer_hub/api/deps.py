"""
API Dependencies
Common dependencies for API endpoints (authentication, authorization, collaborators)
"""

from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.cache import CacheManager, get_cache_manager
from volunteer_hub.core.exceptions import ForbiddenError
from volunteer_hub.core.security import Caller, decode_token
from volunteer_hub.db.session import AsyncSessionLocal, get_db
from volunteer_hub.models.user import User
from volunteer_hub.services.email_service import EmailService
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.slack_notifier import slack_notifier

# HTTPBearer so the access token can be pasted straight into Swagger
security = HTTPBearer()

__all__ = ["get_db", "get_current_caller", "require_role", "get_notifier", "get_cache"]


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """
    Resolve the caller from the bearer token.

    The token subject is the user id; the role always comes from the users
    table so a stale token cannot carry an old role.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return Caller(user_id=user.id, role=user.role)


def require_role(*roles: str) -> Callable:
    """Dependency factory restricting an endpoint to the given roles."""

    async def checker(caller: Caller = Depends(get_current_caller)) -> Caller:
        if caller.role not in roles:
            raise ForbiddenError(f"Access denied. Requires role: {', '.join(roles)}")
        return caller

    return checker


def get_notifier() -> NotificationDispatcher:
    """Notification dispatcher writing through its own sessions."""
    return NotificationDispatcher(
        session_factory=AsyncSessionLocal,
        email_service=EmailService(),
        slack_notifier=slack_notifier,
    )


def get_cache() -> Optional[CacheManager]:
    return get_cache_manager()
