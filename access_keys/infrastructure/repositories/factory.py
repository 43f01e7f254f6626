"""
Repository construction from configuration.
"""
from access_keys.domain.config import AccessKeyConfig
from access_keys.infrastructure.repositories.django_access_key_repository import (
    DjangoAccessKeyRepository,
)


def build_access_key_repository(config: AccessKeyConfig) -> DjangoAccessKeyRepository:
    """Create the Django-backed repository with the configured store limits."""
    return DjangoAccessKeyRepository(
        timeout_seconds=config.store_timeout_seconds,
        cas_retries=config.store_cas_retries,
    )
