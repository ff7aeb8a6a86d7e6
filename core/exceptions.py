# PATH: core/exceptions.py
"""
Typed exceptions for the chain access layer.

Infra errors (transport, JSON-RPC error objects) are raised by single-endpoint
calls and absorbed by the failover loop. Validation errors are raised by the
registry's input checks and reported to callers as a boolean failure.
"""

from typing import Any, Optional

from core.constants import ErrorCode


class ChainError(Exception):
    """Base exception for the chain access layer."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class InfraError(ChainError):
    """Infrastructure-related errors (unreachable endpoint, timeout, bad body)."""
    pass


class RPCError(InfraError):
    """Endpoint answered with a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        rpc_code: Optional[int] = None,
        data: Any = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, ErrorCode.INFRA_RPC_ERROR, details)
        self.rpc_code = rpc_code
        self.data = data

    def to_dict(self) -> dict:
        out = {"code": self.rpc_code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class ValidationError(ChainError):
    """Rejected registry input (bad chain id, conflicts, missing URLs)."""
    pass


class StoreError(ChainError):
    """Persisted chain store could not be read or written."""
    pass
