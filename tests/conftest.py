"""
Pytest configuration and shared fixtures.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from access_keys.domain.access_key import AccessKey
from access_keys.domain.config import AccessKeyConfig
from access_keys.infrastructure.models import AccessKey as AccessKeyModel
from access_keys.infrastructure.repositories.django_access_key_repository import (
    DjangoAccessKeyRepository,
)
from access_keys.infrastructure.repositories.in_memory_access_key_repository import (
    InMemoryAccessKeyRepository,
)
from core.domain.value_objects import AccessKeyStatus, AdmissionMode
from notifications.ports.notifier import Notifier

FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock for domain services."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InterleavingAccessKeyRepository(InMemoryAccessKeyRepository):
    """
    In-memory repository whose reads suspend once before returning.

    Gathered coroutines therefore all read before any of them writes,
    which is the interleaving concurrent requests see in production.
    """

    def __init__(self):
        super().__init__()
        self.calls = []

    async def _yield(self, name, record):
        self.calls.append(name)
        await asyncio.sleep(0)
        return record

    async def get_by_access_key(self, access_key):
        return await self._yield("get", await super().get_by_access_key(access_key))

    async def get_by_customer_ref(self, customer_ref):
        return await self._yield("get", await super().get_by_customer_ref(customer_ref))

    async def get_by_email(self, email):
        return await self._yield("get", await super().get_by_email(email))

    async def atomic_update(self, access_key, mutation):
        self.calls.append("update")
        return await super().atomic_update(access_key, mutation)


class RecordingNotifier(Notifier):
    """Notifier that keeps every notification it is given."""

    def __init__(self):
        self.sent = []

    async def notify(self, notification):
        self.sent.append(notification)


class FailingNotifier(Notifier):
    """Notifier whose delivery always fails."""

    def __init__(self):
        self.attempts = 0

    async def notify(self, notification):
        self.attempts += 1
        raise ConnectionError("mail server unreachable")


@pytest.fixture
def clock():
    """Fixture for a clock frozen at FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def repository():
    """Fixture for an empty in-memory AccessKeyRepository with interleaving reads."""
    return InterleavingAccessKeyRepository()


@pytest.fixture
def config():
    """Fixture for the default (session-binding) config."""
    return AccessKeyConfig()


@pytest.fixture
def login_config():
    """Fixture for a login-count config."""
    return AccessKeyConfig(admission_mode=AdmissionMode.LOGIN_COUNT)


@pytest.fixture
def notifier():
    """Fixture for a recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    """Fixture for a notifier that always fails."""
    return FailingNotifier()


def build_access_key(
    now: datetime = FIXED_NOW,
    email: str = "buyer@example.com",
    days_left: int = 30,
    status: AccessKeyStatus = AccessKeyStatus.ACTIVE,
    login_count: int = 0,
    session_ids=(),
    customer_ref=None,
) -> AccessKey:
    """Build an AccessKey whose window ends days_left days after now."""
    sub_to = now + timedelta(days=days_left)
    record = AccessKey.create(
        email=email,
        sub_from=min(now, sub_to) - timedelta(days=30),
        sub_to=sub_to,
        external_customer_ref=customer_ref,
    )
    return replace(
        record,
        status=status,
        login_count=login_count,
        session_ids=tuple(session_ids),
    )


@pytest.fixture
def make_access_key(repository, clock):
    """Fixture that stores AccessKeys in the in-memory repository."""

    def _make(**kwargs) -> AccessKey:
        record = build_access_key(now=clock.now, **kwargs)
        repository.records[record.access_key] = record
        return record

    return _make


@pytest.fixture
def django_repository():
    """Fixture for the Django AccessKeyRepository."""
    return DjangoAccessKeyRepository()


@pytest.fixture
def db_access_key(db):
    """Fixture that stores AccessKeys in the database, relative to the real clock."""

    def _make(**kwargs) -> AccessKeyModel:
        record = build_access_key(now=datetime.now(timezone.utc), **kwargs)
        # pylint: disable=no-member
        return AccessKeyModel.objects.create(
            id=record.id,
            access_key=record.access_key,
            email=record.email,
            external_customer_ref=record.external_customer_ref,
            status=record.status.value,
            sub_from=record.sub_from,
            sub_to=record.sub_to,
            login_count=record.login_count,
            session_ids=list(record.session_ids),
        )

    return _make


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()
