"""
Authorization capabilities for privileged operations.

Privileged services take an Authorizer argument instead of
consulting global state, so every caller decides explicitly
who is allowed to run them.
"""

import hmac
from typing import Protocol

from cash_ledger.exceptions import NotAuthorized


class Authorizer(Protocol):
    def check(self, action: str) -> None:
        """Return if the action is allowed, raise NotAuthorized otherwise."""
        ...


class TokenAuthorizer:
    """
    Allows an action when the presented token matches the expected one.

    An empty expected token disables privileged operations entirely.
    """

    def __init__(self, expected: str, presented: str | None):
        self.expected = expected or ""
        self.presented = presented or ""

    def check(self, action: str) -> None:
        if not self.expected:
            raise NotAuthorized(action)
        if not hmac.compare_digest(
            self.expected.encode(), self.presented.encode()
        ):
            raise NotAuthorized(action)


class AllowAll:
    """Grants everything. For scripts and maintenance shells."""

    def check(self, action: str) -> None:
        return None


class DenyAll:

    def check(self, action: str) -> None:
        raise NotAuthorized(action)
