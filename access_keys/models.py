"""Expose the ORM model so Django registers it for the access_keys app."""
from access_keys.infrastructure.models import AccessKey  # noqa: F401

__all__ = ["AccessKey"]
