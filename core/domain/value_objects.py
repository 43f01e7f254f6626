"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


class AccessKeyStatus(Enum):
    """Access key status value object."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class AdmissionMode(Enum):
    """Which admission policy governs a deployment."""

    LOGIN_COUNT = "login_count"
    SESSION_BINDING = "session_binding"

    def __str__(self) -> str:
        return self.value


class RenewalIdentityKey(Enum):
    """Record field used to recognise a returning customer."""

    CUSTOMER_REF = "customer_ref"
    EMAIL = "email"

    def __str__(self) -> str:
        return self.value
