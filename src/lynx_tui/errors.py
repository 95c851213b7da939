from __future__ import annotations

from typing import Optional


class LynxError(Exception):
    """Base class for errors raised while talking to the Lynx backend."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class QueryError(LynxError):
    """The feed query failed in transport or was rejected by the backend."""


class NotFoundError(LynxError):
    """The requested record does not exist (or is not visible to the user)."""


class AuthError(LynxError):
    """No authenticated session is available."""
