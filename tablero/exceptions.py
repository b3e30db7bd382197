"""
exceptions.py
-------------

Domain exceptions.  Store failures are raised by the store client and
swallowed at the branch query boundary; they only surface to callers as
failure causes in a degraded report status.  Pass errors are turned into
a ``500`` JSON body by the pass route.
"""

from __future__ import annotations

from typing import Optional


class TableroError(Exception):
    """Base class for errors raised by this service."""


class StoreError(TableroError):
    """The hosted store rejected a request or could not be reached."""

    def __init__(self, message: str, *, table: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.table = table
        self.status_code = status_code


class ConfigUnavailable(TableroError):
    """The date window record is missing or malformed."""


class QueryFailed(TableroError):
    """A branch query failed; carries the branch for degraded reporting."""

    def __init__(self, branch: str, cause: Exception) -> None:
        super().__init__(f"{branch}: {cause}")
        self.branch = branch
        self.cause = cause


class PassError(TableroError):
    """A Wallet pass could not be assembled or signed."""
