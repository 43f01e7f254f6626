"""
AccessKey repository port (interface).

This defines the contract for access key persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

from access_keys.domain.access_key import AccessKey
from core.domain.value_objects import RenewalIdentityKey

# Receives the freshly read record and returns the record to persist.
# Returning the same object means "no change"; raising a DomainException
# aborts the update without writing.
Mutation = Callable[[AccessKey], AccessKey]


class AccessKeyRepository(ABC):
    """
    Abstract repository for AccessKey entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.

    Implementations raise StoreUnavailableError for infrastructure
    failures and timeouts; a missing row is reported as None.
    """

    @abstractmethod
    async def get_by_access_key(self, access_key: str) -> Optional[AccessKey]:
        """
        Find a record by its access key.

        Args:
            access_key: Access key string

        Returns:
            AccessKey entity or None if not found
        """
        pass

    @abstractmethod
    async def get_by_customer_ref(self, customer_ref: str) -> Optional[AccessKey]:
        """
        Find a record by billing customer id.

        Args:
            customer_ref: Billing provider customer id

        Returns:
            AccessKey entity or None if not found
        """
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[AccessKey]:
        """
        Find the most recently updated record for an email.

        Args:
            email: Purchaser email

        Returns:
            AccessKey entity or None if not found
        """
        pass

    @abstractmethod
    async def upsert(self, record: AccessKey) -> AccessKey:
        """
        Insert a record, or overwrite the one with the same access key.

        Args:
            record: AccessKey entity to save

        Returns:
            Saved AccessKey entity
        """
        pass

    @abstractmethod
    async def atomic_update(
        self, access_key: str, mutation: Mutation
    ) -> Optional[AccessKey]:
        """
        Apply a read-modify-write to one record as a single atomic step.

        The mutation may run more than once if a concurrent writer wins;
        it must be a pure function of the record it receives.

        Args:
            access_key: Access key of the record to update
            mutation: Function producing the new record

        Returns:
            Updated AccessKey entity or None if no record matches
        """
        pass

    @abstractmethod
    async def create_if_absent(
        self, record: AccessKey, identity_key: RenewalIdentityKey
    ) -> Tuple[AccessKey, bool]:
        """
        Insert a record unless one already exists for its identity.

        The identity is the record's email (case-insensitive) or its
        external customer ref, as selected by identity_key. The check and
        the insert are one atomic step, so concurrent callers with the same
        identity end up sharing a single record. A record without a
        customer ref is always inserted under CUSTOMER_REF identity.

        Args:
            record: New AccessKey entity
            identity_key: Field that identifies a returning customer

        Returns:
            Tuple of (stored record, True if it was inserted)
        """
        pass
