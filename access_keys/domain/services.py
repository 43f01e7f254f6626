"""
Access key domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity: the two admission policies.

Every operation re-reads the record, evaluates expiry before touching
counters, and performs its mutation through the repository's atomic
update so that quota checks and writes cannot interleave with another
request for the same key.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from access_keys.domain.access_key import AccessKey, generate_session_id, utcnow
from access_keys.domain.config import AccessKeyConfig
from access_keys.domain.expiry import ExpiryEvaluator
from access_keys.ports.access_key_repository import AccessKeyRepository
from core.domain.exceptions import (
    AccessKeyNotFoundError,
    KeyInvalidError,
    LoginLimitReachedError,
    SessionIdRequiredError,
    SessionQuotaExceededError,
    StoreUnavailableError,
    SubscriptionExpiredError,
)
from core.domain.value_objects import AccessKeyStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class _AdmissionBase:
    """Shared loading and lazy-expiry writeback."""

    # Status persisted when a request finds the window elapsed.
    expired_status = AccessKeyStatus.EXPIRED

    def __init__(
        self,
        repository: AccessKeyRepository,
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        self.repository = repository
        self.config = config
        self.clock = clock

    async def _load(self, access_key: str) -> AccessKey:
        record = await self.repository.get_by_access_key(access_key)
        if record is None:
            raise AccessKeyNotFoundError()
        return record

    async def _update(self, access_key: str, mutation) -> AccessKey:
        updated = await self.repository.atomic_update(access_key, mutation)
        if updated is None:
            raise AccessKeyNotFoundError()
        return updated

    async def _write_back(
        self,
        access_key: str,
        now: datetime,
        status: Optional[AccessKeyStatus] = None,
        drop_session: Optional[str] = None,
    ) -> None:
        """
        Persist a lazy-expiry downgrade and/or a stale session removal.

        Best effort: a store failure here is logged and swallowed so the
        caller can still report the original admission failure.
        """

        def mutation(current: AccessKey) -> AccessKey:
            updated = current
            # A concurrent renewal may have landed since the first read.
            if status is not None and ExpiryEvaluator.evaluate(current, now).is_expired:
                updated = updated.with_status(status)
            if drop_session is not None:
                updated = updated.unbind_session(drop_session)
            return updated

        try:
            await self.repository.atomic_update(access_key, mutation)
        except StoreUnavailableError as e:
            logger.warning(
                "Lazy expiry writeback failed for %s...: %s", access_key[:8], e.message
            )

    async def fetch(self, access_key: str) -> AccessKey:
        """
        Read a key without touching its counters.

        Raises:
            AccessKeyNotFoundError: If no record matches
            SubscriptionExpiredError: If the window has elapsed
        """
        now = self.clock()
        record = await self._load(access_key)
        if ExpiryEvaluator.evaluate(record, now).is_expired:
            await self._write_back(access_key, now, status=self.expired_status)
            raise SubscriptionExpiredError()
        return record


class LoginAdmission(_AdmissionBase):
    """
    Login-count admission policy.

    A key admits at most max_logins login calls; logout gives one back.
    """

    expired_status = AccessKeyStatus.INACTIVE

    async def login(self, access_key: str) -> AccessKey:
        """
        Count a login against the key.

        Args:
            access_key: Access key string

        Returns:
            Updated AccessKey entity

        Raises:
            AccessKeyNotFoundError: If no record matches
            SubscriptionExpiredError: If the window has elapsed
            KeyInvalidError: If the key is cancelled or otherwise inactive
            LoginLimitReachedError: If all logins are in use
        """
        now = self.clock()
        record = await self._load(access_key)
        if ExpiryEvaluator.evaluate(record, now).is_expired:
            await self._write_back(access_key, now, status=self.expired_status)
            raise SubscriptionExpiredError()
        self._check(record, now)

        def mutation(current: AccessKey) -> AccessKey:
            self._check(current, now)
            return current.increment_logins()

        return await self._update(access_key, mutation)

    async def logout(self, access_key: str) -> AccessKey:
        """
        Give a login back. Never drives the counter below zero.

        Args:
            access_key: Access key string

        Returns:
            Updated AccessKey entity
        """
        return await self._update(access_key, lambda current: current.decrement_logins())

    def _check(self, record: AccessKey, now: datetime) -> None:
        decision = ExpiryEvaluator.evaluate(record, now)
        if decision.is_expired:
            raise SubscriptionExpiredError()
        if not decision.is_admissible:
            raise KeyInvalidError()
        if record.login_count >= self.config.max_logins:
            raise LoginLimitReachedError()


class SessionAdmission(_AdmissionBase):
    """
    Session-binding admission policy.

    A key holds at most max_sessions bound session ids at once.
    """

    async def bind(self, access_key: str) -> Tuple[AccessKey, str]:
        """
        Bind a new session to the key.

        Args:
            access_key: Access key string

        Returns:
            Tuple of (updated AccessKey, new session id)

        Raises:
            AccessKeyNotFoundError: If no record matches
            KeyInvalidError: If the key is not ACTIVE, including expiry
            SessionQuotaExceededError: If all session slots are taken
        """
        now = self.clock()
        record = await self._load(access_key)
        await self._require_active(record, now)
        if len(record.session_ids) >= self.config.max_sessions:
            raise SessionQuotaExceededError()

        session_id = generate_session_id()

        def mutation(current: AccessKey) -> AccessKey:
            if not ExpiryEvaluator.evaluate(current, now).is_admissible:
                raise KeyInvalidError()
            if len(current.session_ids) >= self.config.max_sessions:
                raise SessionQuotaExceededError()
            return current.bind_session(session_id)

        updated = await self._update(access_key, mutation)
        return updated, session_id

    async def unbind(self, access_key: str, session_id: Optional[str] = None) -> AccessKey:
        """
        Release a session slot.

        Without a session id this is a plain read. Unknown session ids
        are ignored.

        Raises:
            AccessKeyNotFoundError: If no record matches
            KeyInvalidError: If the key is not ACTIVE, including expiry
        """
        now = self.clock()
        record = await self._load(access_key)
        await self._require_active(record, now)
        if not session_id:
            return record
        if not record.has_session(session_id):
            return record
        return await self._update(access_key, lambda current: current.unbind_session(session_id))

    async def validate_session(self, access_key: str, session_id: Optional[str]) -> AccessKey:
        """
        Check that a key is live for a session, without renewing anything.

        When the key has gone bad, the session is released if (and only
        if) it was actually bound.

        Raises:
            SessionIdRequiredError: If session_id is missing
            AccessKeyNotFoundError: If no record matches
            SubscriptionExpiredError: If the window has elapsed
            KeyInvalidError: If the key is cancelled or otherwise inactive
        """
        if not session_id:
            raise SessionIdRequiredError()

        now = self.clock()
        record = await self._load(access_key)
        decision = ExpiryEvaluator.evaluate(record, now)
        bound = session_id if record.has_session(session_id) else None

        if decision.is_expired:
            await self._write_back(
                access_key, now, status=self.expired_status, drop_session=bound
            )
            raise SubscriptionExpiredError()
        if not decision.is_admissible:
            if bound:
                await self._write_back(access_key, now, drop_session=bound)
            raise KeyInvalidError()
        return record

    async def _require_active(self, record: AccessKey, now: datetime) -> None:
        decision = ExpiryEvaluator.evaluate(record, now)
        if decision.is_admissible:
            return
        if decision.is_expired:
            if decision.needs_writeback:
                await self._write_back(record.access_key, now, status=self.expired_status)
            raise KeyInvalidError("Access key has expired")
        raise KeyInvalidError()
