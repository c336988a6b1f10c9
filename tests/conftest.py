"""Shared fixtures: a throwaway SQLite database per test plus row factories."""

import os

os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("SLACK_ALERTS_ENABLED", "false")
os.environ.setdefault("SENTRY_DSN", "")
os.environ.setdefault("LOG_FORMAT", "console")

from datetime import date, datetime
from itertools import count

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from volunteer_hub.core.security import Caller
from volunteer_hub.db.base import Base
from volunteer_hub.models import Application, Charity, Notification, Opportunity, User, Volunteer
from volunteer_hub.services.notification_service import NotificationDispatcher


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier(session_factory):
    return NotificationDispatcher(session_factory=session_factory)


class FakeCache:
    """In-memory stand-in for CacheManager's debounce API."""

    def __init__(self):
        self.keys = set()

    def key(self, *parts):
        return ":".join(["test", *(str(p) for p in parts)])

    def set_if_absent(self, key, ttl, value=1):
        if key in self.keys:
            return False
        self.keys.add(key)
        return True


@pytest.fixture
def fake_cache():
    return FakeCache()


def caller_for(user) -> Caller:
    return Caller(user_id=user.id, role=user.role)


class Factory:
    """Creates rows through their own short-lived sessions."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._seq = count(1)

    async def _save(self, *objects):
        async with self.session_factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects[0]

    async def user(self, role="volunteer", **kwargs):
        n = next(self._seq)
        kwargs.setdefault("email", f"{role}{n}@example.org")
        kwargs.setdefault("first_name", f"{role.title()}{n}")
        kwargs.setdefault("last_name", "Tester")
        return await self._save(User(role=role, **kwargs))

    async def volunteer(self, user=None, **kwargs):
        user = user or await self.user("volunteer")
        kwargs.setdefault("approval_status", "approved")
        kwargs.setdefault("skills", ["Teaching"])
        kwargs.setdefault("interests", ["Education"])
        kwargs.setdefault("experience", [])
        kwargs.setdefault("availability", {})
        kwargs.setdefault("date_of_birth", None)
        kwargs.setdefault("city", "Leeds")
        kwargs.setdefault("country", "UK")
        return await self._save(Volunteer(user_id=user.id, **kwargs))

    async def charity(self, user=None, **kwargs):
        user = user or await self.user("charity")
        kwargs.setdefault("organization_name", f"Charity {next(self._seq)}")
        return await self._save(Charity(user_id=user.id, **kwargs))

    async def opportunity(self, charity, **kwargs):
        kwargs.setdefault("title", f"Opportunity {next(self._seq)}")
        kwargs.setdefault("status", "published")
        kwargs.setdefault("category", "Education")
        kwargs.setdefault("required_skills", ["Teaching", "Cooking"])
        kwargs.setdefault("location_type", "virtual")
        kwargs.setdefault("number_of_volunteers", 5)
        return await self._save(Opportunity(charity_id=charity.id, **kwargs))

    async def application(self, opportunity, volunteer, **kwargs):
        kwargs.setdefault("status", "pending")
        return await self._save(
            Application(opportunity_id=opportunity.id, volunteer_id=volunteer.id, **kwargs)
        )


@pytest.fixture
def make(session_factory):
    return Factory(session_factory)


async def fetch(session_factory, model, id_):
    """Fresh read of one row, bypassing any caller's identity map."""
    async with session_factory() as session:
        result = await session.execute(select(model).where(model.id == id_))
        return result.scalar_one_or_none()


async def notifications_for(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(select(Notification).where(Notification.user_id == user_id))
        return list(result.scalars().all())


def on_day(year, month, day) -> datetime:
    return datetime.combine(date(year, month, day), datetime.min.time())
