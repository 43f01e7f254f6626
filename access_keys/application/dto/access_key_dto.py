"""
Access key DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from access_keys.domain.access_key import AccessKey


@dataclass
class AccessKeyDTO:
    """DTO for an access key record."""

    access_key: str
    email: str
    status: str
    sub_from: datetime
    sub_to: datetime
    login_count: int
    session_ids: List[str]

    @classmethod
    def from_entity(cls, record: AccessKey) -> "AccessKeyDTO":
        return cls(
            access_key=record.access_key,
            email=record.email,
            status=record.status.value,
            sub_from=record.sub_from,
            sub_to=record.sub_to,
            login_count=record.login_count,
            session_ids=list(record.session_ids),
        )


@dataclass
class BindSessionResponseDTO:
    """DTO for bind session response."""

    session_id: str
    sessions_remaining: int
    user: AccessKeyDTO


@dataclass
class ValidateSessionResponseDTO:
    """DTO for validate session response."""

    valid: bool
    is_bound: bool
    session_id: Optional[str]
    user: AccessKeyDTO
