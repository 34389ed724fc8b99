"""
Error taxonomy for Augury.

Decode errors are raised synchronously and never retried: they mean the
schema and the bytes disagree. Transport errors are surfaced as-is for the
caller's own retry policy.
"""

from __future__ import annotations

from typing import Any, Optional


class AuguryError(Exception):
    exit_code: int = 1


# ============ Decoding ============


class DecodeError(AuguryError, ValueError):
    exit_code = 3


class BufferUnderrun(DecodeError):
    def __init__(self, offset: int, needed: int, available: int) -> None:
        super().__init__(
            f"Read of {needed} bytes at offset {offset} exceeds buffer "
            f"({available} bytes remaining)."
        )
        self.offset = offset
        self.needed = needed
        self.available = available


class TrailingBytes(DecodeError):
    def __init__(self, consumed: int, total: int) -> None:
        super().__init__(f"Decoded {consumed} of {total} bytes; {total - consumed} left over.")
        self.consumed = consumed
        self.total = total


class TypeMismatch(DecodeError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected a {expected} value, got {actual}.")
        self.expected = expected
        self.actual = actual


class DuplicateKey(DecodeError):
    pass


class TypeSpecError(AuguryError, ValueError):
    exit_code = 3


# ============ Lookups ============


class UnknownType(AuguryError, LookupError):
    exit_code = 3

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown named type: {name}")
        self.name = name


class FieldNotFound(AuguryError, KeyError):
    exit_code = 4

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Field not found: {self.name}"


class TreeNotFound(AuguryError, LookupError):
    exit_code = 4

    def __init__(self, address: str, tree_id: int) -> None:
        super().__init__(f"Contract {address} has no AVL tree {tree_id}")
        self.address = address
        self.tree_id = tree_id


class UnknownChain(AuguryError, LookupError):
    exit_code = 2

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown chain: {identifier}")
        self.identifier = identifier


# ============ Remote calls ============


class BatchClosed(AuguryError, RuntimeError):
    pass


class UnsupportedOperation(AuguryError, RuntimeError):
    pass


class CallFailed(AuguryError):
    """A single call failed inside an otherwise delivered response."""

    exit_code = 5

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        request_id: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
        self.request_id = request_id

    @classmethod
    def from_rpc_error(cls, error: Any, request_id: Optional[int] = None) -> "CallFailed":
        if isinstance(error, dict):
            return cls(
                str(error.get("message", "RPC error")),
                code=error.get("code"),
                data=error.get("data"),
                request_id=request_id,
            )
        return cls(f"RPC error: {error}", request_id=request_id)


class NetworkFailure(AuguryError, ConnectionError):
    exit_code = 6


class Timeout(NetworkFailure, TimeoutError):
    exit_code = 7
