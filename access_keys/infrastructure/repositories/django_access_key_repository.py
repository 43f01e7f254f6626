"""
Django implementation of AccessKeyRepository port.

This adapter converts between domain entities and Django ORM models.
Atomic updates use optimistic concurrency on the version column:
the UPDATE only matches the row if nobody else wrote it since it was read.

The store timeout is enforced by the database (statement_timeout, see
settings), so a timed-out statement is rolled back and safe to retry.
The asyncio timeout in _run is a looser backstop for a hung connection.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import DatabaseError, connection, transaction
from django.utils import timezone

from access_keys.domain.access_key import AccessKey
from access_keys.infrastructure.models import AccessKey as AccessKeyModel
from access_keys.ports.access_key_repository import AccessKeyRepository, Mutation
from core.domain.exceptions import StoreUnavailableError
from core.domain.value_objects import AccessKeyStatus, RenewalIdentityKey

logger = logging.getLogger(__name__)

# Backstop timeout as a multiple of the database statement timeout
BACKSTOP_FACTOR = 2


class DjangoAccessKeyRepository(AccessKeyRepository):
    """
    Django ORM implementation of AccessKeyRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Bounds every store call by a timeout and maps database
       failures to StoreUnavailableError
    """

    def __init__(self, timeout_seconds: float = 5.0, cas_retries: int = 5):
        """
        Initialize repository.

        Args:
            timeout_seconds: Database statement timeout; the asyncio backstop
                waits BACKSTOP_FACTOR times as long
            cas_retries: Attempts before a contended update gives up
        """
        self.timeout_seconds = timeout_seconds
        self.cas_retries = cas_retries

    def _to_domain(self, model: AccessKeyModel) -> AccessKey:
        """
        Convert Django model to domain entity.

        Args:
            model: Django AccessKey model

        Returns:
            AccessKey domain entity
        """
        return AccessKey(
            id=model.id,
            access_key=model.access_key,
            email=model.email,
            external_customer_ref=model.external_customer_ref,
            status=AccessKeyStatus(model.status),
            sub_from=model.sub_from,
            sub_to=model.sub_to,
            login_count=model.login_count,
            session_ids=tuple(model.session_ids or ()),
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _fields(record: AccessKey) -> dict:
        """Mutable columns of a record."""
        return {
            "email": record.email,
            "external_customer_ref": record.external_customer_ref,
            "status": record.status.value,
            "sub_from": record.sub_from,
            "sub_to": record.sub_to,
            "login_count": record.login_count,
            "session_ids": list(record.session_ids),
        }

    async def _run(self, func: Callable, *args):
        """Run a blocking ORM call with a timeout, translating store failures."""
        try:
            return await asyncio.wait_for(
                sync_to_async(func)(*args), timeout=self.timeout_seconds * BACKSTOP_FACTOR
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Key store call %s exceeded the backstop timeout; outcome unknown", func.__name__
            )
            raise StoreUnavailableError("Key store timed out") from e
        except DatabaseError as e:
            logger.error("Key store call %s failed: %s", func.__name__, e, exc_info=True)
            raise StoreUnavailableError() from e

    def _first(self, **filters) -> Optional[AccessKey]:
        # pylint: disable=no-member
        model = AccessKeyModel.objects.filter(**filters).order_by("-updated_at").first()
        return self._to_domain(model) if model else None

    def _get_by_access_key(self, access_key: str) -> Optional[AccessKey]:
        return self._first(access_key=access_key)

    def _get_by_customer_ref(self, customer_ref: str) -> Optional[AccessKey]:
        return self._first(external_customer_ref=customer_ref)

    def _get_by_email(self, email: str) -> Optional[AccessKey]:
        return self._first(email__iexact=email)

    def _upsert(self, record: AccessKey) -> AccessKey:
        with transaction.atomic():
            # pylint: disable=no-member
            model = (
                AccessKeyModel.objects.select_for_update()
                .filter(access_key=record.access_key)
                .first()
            )
            if model is None:
                model = AccessKeyModel(
                    id=record.id,
                    access_key=record.access_key,
                    version=record.version,
                    **self._fields(record),
                )
            else:
                for name, value in self._fields(record).items():
                    setattr(model, name, value)
                model.version += 1
            model.save()
        return self._to_domain(model)

    @staticmethod
    def _identity_filter(record: AccessKey, identity_key: RenewalIdentityKey) -> Optional[dict]:
        if identity_key == RenewalIdentityKey.CUSTOMER_REF:
            if not record.external_customer_ref:
                return None
            return {"external_customer_ref": record.external_customer_ref}
        return {"email__iexact": record.email}

    @staticmethod
    def _lock_identity(lookup: dict) -> None:
        """
        Serialize inserts for one identity until the transaction ends.

        Row locks cannot cover a row that does not exist yet, so PostgreSQL
        takes a transaction-scoped advisory lock on the identity value.
        SQLite already serializes write transactions.
        """
        if connection.vendor != "postgresql":
            return
        name, value = next(iter(lookup.items()))
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s))",
                [f"access_keys:{name}:{value.lower()}"],
            )

    def _create_if_absent(
        self, record: AccessKey, identity_key: RenewalIdentityKey
    ) -> Tuple[AccessKey, bool]:
        lookup = self._identity_filter(record, identity_key)
        with transaction.atomic():
            if lookup is not None:
                self._lock_identity(lookup)
                # pylint: disable=no-member
                existing = (
                    AccessKeyModel.objects.select_for_update()
                    .filter(**lookup)
                    .order_by("-updated_at")
                    .first()
                )
                if existing is not None:
                    return self._to_domain(existing), False
            model = AccessKeyModel(
                id=record.id,
                access_key=record.access_key,
                version=record.version,
                **self._fields(record),
            )
            model.save()
        return self._to_domain(model), True

    def _atomic_update(self, access_key: str, mutation: Mutation) -> Optional[AccessKey]:
        for attempt in range(1, self.cas_retries + 1):
            current = self._get_by_access_key(access_key)
            if current is None:
                return None

            updated = mutation(current)
            if updated is current:
                return current

            now = timezone.now()
            # pylint: disable=no-member
            rows = AccessKeyModel.objects.filter(
                access_key=access_key, version=current.version
            ).update(version=current.version + 1, updated_at=now, **self._fields(updated))
            if rows == 1:
                return replace(updated, version=current.version + 1, updated_at=now)

            logger.debug(
                "Concurrent write on %s..., retrying (attempt %s/%s)",
                access_key[:8],
                attempt,
                self.cas_retries,
            )

        logger.warning("Gave up updating %s... after %s attempts", access_key[:8], self.cas_retries)
        raise StoreUnavailableError("Access key is being updated concurrently, retry later")

    async def get_by_access_key(self, access_key: str) -> Optional[AccessKey]:
        """
        Find a record by its access key.

        Args:
            access_key: Access key string

        Returns:
            AccessKey entity or None if not found
        """
        return await self._run(self._get_by_access_key, access_key)

    async def get_by_customer_ref(self, customer_ref: str) -> Optional[AccessKey]:
        """
        Find a record by billing customer id.

        Args:
            customer_ref: Billing provider customer id

        Returns:
            AccessKey entity or None if not found
        """
        return await self._run(self._get_by_customer_ref, customer_ref)

    async def get_by_email(self, email: str) -> Optional[AccessKey]:
        """
        Find the most recently updated record for an email (case-insensitive).

        Args:
            email: Purchaser email

        Returns:
            AccessKey entity or None if not found
        """
        return await self._run(self._get_by_email, email)

    async def upsert(self, record: AccessKey) -> AccessKey:
        """
        Insert or overwrite a record keyed by access key.

        Args:
            record: AccessKey entity to save

        Returns:
            Saved AccessKey entity
        """
        return await self._run(self._upsert, record)

    async def atomic_update(
        self, access_key: str, mutation: Mutation
    ) -> Optional[AccessKey]:
        """
        Compare-and-set update of one record.

        Args:
            access_key: Access key of the record to update
            mutation: Function producing the new record

        Returns:
            Updated AccessKey entity or None if no record matches
        """
        return await self._run(self._atomic_update, access_key, mutation)

    async def create_if_absent(
        self, record: AccessKey, identity_key: RenewalIdentityKey
    ) -> Tuple[AccessKey, bool]:
        """
        Insert a record unless its identity already has one.

        Args:
            record: New AccessKey entity
            identity_key: Field that identifies a returning customer

        Returns:
            Tuple of (stored record, True if it was inserted)
        """
        return await self._run(self._create_if_absent, record, identity_key)
