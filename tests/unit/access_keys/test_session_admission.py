"""
Unit tests for SessionAdmission.
"""

import asyncio

import pytest

from access_keys.domain.services import SessionAdmission
from core.domain.exceptions import (
    AccessKeyNotFoundError,
    KeyInvalidError,
    SessionIdRequiredError,
    SessionQuotaExceededError,
    SubscriptionExpiredError,
)
from core.domain.value_objects import AccessKeyStatus


@pytest.fixture
def admission(repository, config, clock):
    """Fixture for SessionAdmission with the default quota of 3 sessions."""
    return SessionAdmission(repository, config, clock)


@pytest.mark.asyncio
class TestBindAndUnbind:
    """Tests for bind and unbind."""

    async def test_quota_cycle(self, admission, make_access_key):
        """Three binds fill the quota; unbinding one frees a slot."""
        key = make_access_key().access_key

        session_ids = []
        for _ in range(3):
            _, session_id = await admission.bind(key)
            session_ids.append(session_id)
        assert len(set(session_ids)) == 3

        with pytest.raises(SessionQuotaExceededError):
            await admission.bind(key)

        after_unbind = await admission.unbind(key, session_ids[1])
        assert session_ids[1] not in after_unbind.session_ids

        record, new_id = await admission.bind(key)
        assert len(record.session_ids) == 3
        assert new_id not in session_ids

    async def test_concurrent_binds_never_exceed_quota(self, admission, make_access_key, repository):
        key = make_access_key().access_key

        results = await asyncio.gather(
            *(admission.bind(key) for _ in range(10)), return_exceptions=True
        )

        admitted = [r for r in results if not isinstance(r, Exception)]
        assert len(admitted) == 3
        rejected = [r for r in results if isinstance(r, SessionQuotaExceededError)]
        assert len(admitted) + len(rejected) == 10
        # Every bind read the key before the first write
        assert repository.calls[:10] == ["get"] * 10
        assert len(repository.records[key].session_ids) == 3

    async def test_bind_expired_key(self, admission, make_access_key, repository):
        key = make_access_key(days_left=-1).access_key

        with pytest.raises(KeyInvalidError):
            await admission.bind(key)

        assert repository.records[key].status == AccessKeyStatus.EXPIRED
        assert repository.records[key].session_ids == ()

    @pytest.mark.parametrize("status", [AccessKeyStatus.CANCELLED, AccessKeyStatus.INACTIVE])
    async def test_bind_inactive_key(self, admission, make_access_key, repository, status):
        key = make_access_key(status=status).access_key

        with pytest.raises(KeyInvalidError):
            await admission.bind(key)

        assert repository.writes == 0

    async def test_bind_unknown_key(self, admission):
        with pytest.raises(AccessKeyNotFoundError):
            await admission.bind("no-such-key")

    async def test_unbind_without_session_id_is_read(self, admission, make_access_key, repository):
        record = make_access_key(session_ids=["s1"])

        result = await admission.unbind(record.access_key)

        assert result.session_ids == ("s1",)
        assert repository.writes == 0

    async def test_unbind_unknown_session_is_noop(self, admission, make_access_key, repository):
        record = make_access_key(session_ids=["s1"])

        result = await admission.unbind(record.access_key, "other")

        assert result.session_ids == ("s1",)
        assert repository.writes == 0

    async def test_unbind_on_cancelled_key(self, admission, make_access_key):
        record = make_access_key(status=AccessKeyStatus.CANCELLED, session_ids=["s1"])
        with pytest.raises(KeyInvalidError):
            await admission.unbind(record.access_key, "s1")


@pytest.mark.asyncio
class TestValidateSession:
    """Tests for validate_session."""

    async def test_missing_session_id(self, admission, make_access_key):
        key = make_access_key().access_key
        for session_id in (None, ""):
            with pytest.raises(SessionIdRequiredError):
                await admission.validate_session(key, session_id)

    async def test_validate_is_idempotent(self, admission, make_access_key, repository):
        record = make_access_key(session_ids=["s1"])

        first = await admission.validate_session(record.access_key, "s1")
        second = await admission.validate_session(record.access_key, "s1")

        assert first == second == record
        assert repository.writes == 0

    async def test_validate_unbound_session_on_active_key(self, admission, make_access_key):
        record = make_access_key(session_ids=["s1"])
        result = await admission.validate_session(record.access_key, "s2")
        assert result.has_session("s2") is False

    async def test_expired_key_drops_bound_session(self, admission, make_access_key, repository):
        """An expired key is marked EXPIRED and loses the validated session."""
        record = make_access_key(days_left=-1, session_ids=["s1", "s2"])

        with pytest.raises(SubscriptionExpiredError):
            await admission.validate_session(record.access_key, "s1")

        stored = repository.records[record.access_key]
        assert stored.status == AccessKeyStatus.EXPIRED
        assert stored.session_ids == ("s2",)
        assert repository.writes == 1

    async def test_expired_key_unbound_session(self, admission, make_access_key, repository):
        record = make_access_key(days_left=-1, session_ids=["s1"])

        with pytest.raises(SubscriptionExpiredError):
            await admission.validate_session(record.access_key, "unknown")

        stored = repository.records[record.access_key]
        assert stored.status == AccessKeyStatus.EXPIRED
        assert stored.session_ids == ("s1",)

    async def test_cancelled_key_drops_bound_session(self, admission, make_access_key, repository):
        record = make_access_key(status=AccessKeyStatus.CANCELLED, session_ids=["s1"])

        with pytest.raises(KeyInvalidError):
            await admission.validate_session(record.access_key, "s1")

        stored = repository.records[record.access_key]
        assert stored.status == AccessKeyStatus.CANCELLED
        assert stored.session_ids == ()

    async def test_cancelled_key_unbound_session_no_write(self, admission, make_access_key, repository):
        record = make_access_key(status=AccessKeyStatus.CANCELLED)

        with pytest.raises(KeyInvalidError):
            await admission.validate_session(record.access_key, "s1")

        assert repository.writes == 0

    async def test_fetch_expired_marks_expired(self, admission, make_access_key, repository):
        key = make_access_key(days_left=-1).access_key

        with pytest.raises(SubscriptionExpiredError):
            await admission.fetch(key)

        assert repository.records[key].status == AccessKeyStatus.EXPIRED
