"""
Access key configuration.

Reads the ACCESS_KEYS settings dictionary into the validated, immutable
AccessKeyConfig that is passed into domain services and handlers.
"""
from typing import FrozenSet

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from access_keys.domain.config import (
    DEFAULT_MAX_LOGINS,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_SUBSCRIPTION_PERIOD_MONTHS,
    AccessKeyConfig,
)
from core.domain.value_objects import AdmissionMode, RenewalIdentityKey


def _parse_product_ids(value) -> FrozenSet[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(item.strip() for item in value if item and item.strip())


def get_access_key_config() -> AccessKeyConfig:
    """
    Build the config from settings.ACCESS_KEYS.

    Returns:
        AccessKeyConfig instance

    Raises:
        ImproperlyConfigured: If a value has the wrong type or range
    """
    options = getattr(settings, "ACCESS_KEYS", {})
    try:
        return AccessKeyConfig(
            max_logins=int(options.get("MAX_LOGINS", DEFAULT_MAX_LOGINS)),
            max_sessions=int(options.get("MAX_SESSIONS", DEFAULT_MAX_SESSIONS)),
            subscription_period_months=int(
                options.get("SUBSCRIPTION_PERIOD_MONTHS", DEFAULT_SUBSCRIPTION_PERIOD_MONTHS)
            ),
            target_product_ids=_parse_product_ids(options.get("TARGET_PRODUCT_IDS")),
            renewal_identity_key=RenewalIdentityKey(
                options.get("RENEWAL_IDENTITY_KEY", RenewalIdentityKey.EMAIL.value)
            ),
            admission_mode=AdmissionMode(
                options.get("ADMISSION_MODE", AdmissionMode.SESSION_BINDING.value)
            ),
            store_timeout_seconds=float(options.get("STORE_TIMEOUT_SECONDS", 5.0)),
            store_cas_retries=int(options.get("STORE_CAS_RETRIES", 5)),
        )
    except ValueError as e:
        raise ImproperlyConfigured(f"Invalid ACCESS_KEYS setting: {e}") from e
