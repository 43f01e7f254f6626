"""
FetchUserQuery.

Query to read an access key record without touching its counters.
"""
from dataclasses import dataclass


@dataclass
class FetchUserQuery:
    """Query to fetch the record behind an access key."""

    access_key: str
