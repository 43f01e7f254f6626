"""
AccessKey domain entity.

This is the core domain entity representing an issued access key.
It contains business logic and is independent of infrastructure.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from core.domain.value_objects import AccessKeyStatus


def generate_access_key() -> str:
    """
    Generate a new access key.

    Returns:
        Random 128-bit token rendered as a UUID string
    """
    return str(uuid.uuid4())


def generate_session_id() -> str:
    """Generate an identifier for a newly bound session."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessKey:
    """
    AccessKey domain entity.

    One record per issued key. Counters are only meaningful in the
    admission mode that uses them: login_count for login-count mode,
    session_ids for session-binding mode.
    """

    id: uuid.UUID
    access_key: str
    email: str
    external_customer_ref: Optional[str]
    status: AccessKeyStatus
    sub_from: datetime
    sub_to: datetime
    login_count: int = 0
    session_ids: Tuple[str, ...] = ()
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        """Validate access key entity."""
        if not self.access_key or len(self.access_key.strip()) == 0:
            raise ValueError("Access key cannot be empty")
        if self.login_count < 0:
            raise ValueError("Login count cannot be negative")
        if len(set(self.session_ids)) != len(self.session_ids):
            raise ValueError("Session ids must be unique")
        if self.sub_to < self.sub_from:
            raise ValueError("Subscription window ends before it starts")

    @classmethod
    def create(
        cls,
        email: str,
        sub_from: datetime,
        sub_to: datetime,
        external_customer_ref: Optional[str] = None,
        access_key: Optional[str] = None,
    ) -> "AccessKey":
        """
        Create a new, active AccessKey entity.

        Args:
            email: Purchaser email
            sub_from: Start of the subscription window
            sub_to: Exclusive end of the subscription window
            external_customer_ref: Billing provider customer id
            access_key: Optional key (generated if not provided)

        Returns:
            AccessKey entity instance with zeroed counters
        """
        now = utcnow()
        return cls(
            id=uuid.uuid4(),
            access_key=access_key or generate_access_key(),
            email=email,
            external_customer_ref=external_customer_ref,
            status=AccessKeyStatus.ACTIVE,
            sub_from=sub_from,
            sub_to=sub_to,
            login_count=0,
            session_ids=(),
            version=0,
            created_at=now,
            updated_at=now,
        )

    def has_session(self, session_id: Optional[str]) -> bool:
        """Whether the session id is currently bound to this key."""
        return session_id is not None and session_id in self.session_ids

    def renew(
        self,
        sub_from: datetime,
        sub_to: datetime,
        external_customer_ref: Optional[str] = None,
    ) -> "AccessKey":
        """
        Reactivate the key for a new subscription window.

        Args:
            sub_from: Start of the new window
            sub_to: Exclusive end of the new window
            external_customer_ref: Customer id to attach (kept if None)

        Returns:
            New AccessKey instance with ACTIVE status
        """
        return replace(
            self,
            status=AccessKeyStatus.ACTIVE,
            sub_from=sub_from,
            sub_to=sub_to,
            external_customer_ref=external_customer_ref or self.external_customer_ref,
            updated_at=utcnow(),
        )

    def with_status(self, status: AccessKeyStatus) -> "AccessKey":
        """Return a copy carrying the given status."""
        if status == self.status:
            return self
        return replace(self, status=status, updated_at=utcnow())

    def cancel(self) -> "AccessKey":
        """Return a cancelled copy of this key."""
        return self.with_status(AccessKeyStatus.CANCELLED)

    def increment_logins(self) -> "AccessKey":
        return replace(self, login_count=self.login_count + 1, updated_at=utcnow())

    def decrement_logins(self) -> "AccessKey":
        """Decrement the login counter, floored at zero."""
        if self.login_count == 0:
            return self
        return replace(self, login_count=self.login_count - 1, updated_at=utcnow())

    def bind_session(self, session_id: str) -> "AccessKey":
        if session_id in self.session_ids:
            raise ValueError(f"Session {session_id} already bound")
        return replace(
            self,
            session_ids=self.session_ids + (session_id,),
            updated_at=utcnow(),
        )

    def unbind_session(self, session_id: str) -> "AccessKey":
        """Remove a session id; unknown ids leave the key unchanged."""
        if session_id not in self.session_ids:
            return self
        return replace(
            self,
            session_ids=tuple(s for s in self.session_ids if s != session_id),
            updated_at=utcnow(),
        )
