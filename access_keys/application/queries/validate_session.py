"""
ValidateSessionQuery.

Query to check that an access key is still live for a bound session.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateSessionQuery:
    """Query to validate a session against its access key."""

    access_key: str
    session_id: Optional[str]
