"""
Session-binding commands.

Commands to bind a new session to an access key and to release one.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class BindSessionCommand:
    """Command to bind a new session to an access key."""

    access_key: str


@dataclass
class UnbindSessionCommand:
    """Command to release a bound session. Without session_id it is a read."""

    access_key: str
    session_id: Optional[str] = None
