"""
Admission and activation policy options.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from core.domain.value_objects import AdmissionMode, RenewalIdentityKey

DEFAULT_MAX_LOGINS = 20
DEFAULT_MAX_SESSIONS = 3
DEFAULT_SUBSCRIPTION_PERIOD_MONTHS = 1


@dataclass(frozen=True)
class AccessKeyConfig:
    """Runtime options for admission and activation."""

    max_logins: int = DEFAULT_MAX_LOGINS
    max_sessions: int = DEFAULT_MAX_SESSIONS
    subscription_period_months: int = DEFAULT_SUBSCRIPTION_PERIOD_MONTHS
    target_product_ids: FrozenSet[str] = field(default_factory=frozenset)
    renewal_identity_key: RenewalIdentityKey = RenewalIdentityKey.EMAIL
    admission_mode: AdmissionMode = AdmissionMode.SESSION_BINDING
    store_timeout_seconds: float = 5.0
    store_cas_retries: int = 5

    def __post_init__(self):
        """Validate configuration values."""
        if self.max_logins < 1:
            raise ValueError("MAX_LOGINS must be at least 1")
        if self.max_sessions < 1:
            raise ValueError("MAX_SESSIONS must be at least 1")
        if self.subscription_period_months < 1:
            raise ValueError("SUBSCRIPTION_PERIOD_MONTHS must be at least 1")
        if self.store_timeout_seconds <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be positive")
        if self.store_cas_retries < 1:
            raise ValueError("STORE_CAS_RETRIES must be at least 1")

    def product_matches(self, product_ids: Iterable[str]) -> bool:
        """
        Check a billing event's products against the allow-list.

        An empty allow-list accepts every product.
        """
        if not self.target_product_ids:
            return True
        return any(product_id in self.target_product_ids for product_id in product_ids)
