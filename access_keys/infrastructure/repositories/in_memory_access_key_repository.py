"""
In-memory implementation of AccessKeyRepository port.

Used by unit tests and local tooling. All access goes through one
asyncio lock, so atomic_update is linearizable within a single event loop.
"""

import asyncio
from dataclasses import replace
from typing import Dict, Optional, Tuple

from access_keys.domain.access_key import AccessKey, utcnow
from access_keys.ports.access_key_repository import AccessKeyRepository, Mutation
from core.domain.value_objects import RenewalIdentityKey


class InMemoryAccessKeyRepository(AccessKeyRepository):
    """Dictionary-backed AccessKeyRepository."""

    def __init__(self):
        self.records: Dict[str, AccessKey] = {}
        self.writes = 0
        self._lock = asyncio.Lock()

    async def get_by_access_key(self, access_key: str) -> Optional[AccessKey]:
        async with self._lock:
            return self.records.get(access_key)

    async def get_by_customer_ref(self, customer_ref: str) -> Optional[AccessKey]:
        async with self._lock:
            return self._latest(
                rec for rec in self.records.values() if rec.external_customer_ref == customer_ref
            )

    async def get_by_email(self, email: str) -> Optional[AccessKey]:
        async with self._lock:
            return self._latest(
                rec for rec in self.records.values() if rec.email.lower() == email.lower()
            )

    async def upsert(self, record: AccessKey) -> AccessKey:
        async with self._lock:
            existing = self.records.get(record.access_key)
            if existing is not None:
                record = replace(record, version=existing.version + 1)
            self.records[record.access_key] = record
            self.writes += 1
            return record

    async def create_if_absent(
        self, record: AccessKey, identity_key: RenewalIdentityKey
    ) -> Tuple[AccessKey, bool]:
        async with self._lock:
            existing = self._latest(
                rec for rec in self.records.values() if self._same_identity(rec, record, identity_key)
            )
            if existing is not None:
                return existing, False
            self.records[record.access_key] = record
            self.writes += 1
            return record, True

    async def atomic_update(
        self, access_key: str, mutation: Mutation
    ) -> Optional[AccessKey]:
        async with self._lock:
            current = self.records.get(access_key)
            if current is None:
                return None
            updated = mutation(current)
            if updated is current:
                return current
            updated = replace(updated, version=current.version + 1, updated_at=utcnow())
            self.records[access_key] = updated
            self.writes += 1
            return updated

    @staticmethod
    def _latest(records) -> Optional[AccessKey]:
        return max(records, key=lambda rec: rec.updated_at, default=None)

    @staticmethod
    def _same_identity(
        candidate: AccessKey, record: AccessKey, identity_key: RenewalIdentityKey
    ) -> bool:
        if identity_key == RenewalIdentityKey.CUSTOMER_REF:
            return (
                record.external_customer_ref is not None
                and candidate.external_customer_ref == record.external_customer_ref
            )
        return candidate.email.lower() == record.email.lower()
