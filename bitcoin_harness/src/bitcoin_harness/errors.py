"""
Exceptions raised by the harness.

Every failure reaching a caller is a HarnessError subclass, so fixtures can
catch one type while tests assert on the precise kind.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness errors."""


class TransportError(HarnessError):
    """The node could not be reached or answered with a non-RPC HTTP failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RpcError(HarnessError):
    """The node rejected the request with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, method: str | None = None):
        self.code = code
        self.message = message
        self.method = method
        prefix = f"{method}: " if method else ""
        super().__init__(f"{prefix}RPC error {code}: {message}")


class DecodeError(HarnessError):
    """The response did not have the shape expected for the operation."""


class ConfigError(HarnessError):
    """Invalid argument or call order, detected before any network call."""
