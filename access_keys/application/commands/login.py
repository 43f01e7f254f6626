"""
Login-count commands.

Commands to count a login against an access key and to give one back.
"""
from dataclasses import dataclass


@dataclass
class LoginCommand:
    """Command to log in with an access key."""

    access_key: str


@dataclass
class LogoutCommand:
    """Command to log out, releasing one login."""

    access_key: str
