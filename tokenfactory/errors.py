"""Error codes and result values returned by registry operations.

Business-rule failures are returned, not raised: every mutating operation
hands back a :class:`Result` carrying either its success value or one of the
stable :class:`RegistryError` codes. Exceptions are reserved for a broken
environment (missing state directory, bad config file).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional


class RegistryError(IntEnum):
    """Stable numeric error codes exposed to callers."""

    UNAUTHORIZED = 1
    INVALID_PARAMS = 2
    TOKEN_EXISTS = 3

    @property
    def label(self) -> str:
        return {
            RegistryError.UNAUTHORIZED: "Unauthorized",
            RegistryError.INVALID_PARAMS: "InvalidParams",
            RegistryError.TOKEN_EXISTS: "TokenExists",
        }[self]


@dataclass(frozen=True)
class Result:
    """Outcome of a mutating operation: a value or an error code, never both."""

    value: Any = None
    error: Optional[RegistryError] = None

    @classmethod
    def ok(cls, value: Any = True) -> "Result":
        return cls(value=value)

    @classmethod
    def err(cls, error: RegistryError) -> "Result":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_err(self) -> bool:
        return self.error is not None

    @property
    def code(self) -> Optional[int]:
        """Numeric error code, or ``None`` on success."""
        return int(self.error) if self.error is not None else None

    def __str__(self) -> str:
        if self.error is None:
            return f"(ok {str(self.value).lower()})"
        return f"(err u{int(self.error)})"


class TokenFactoryError(Exception):
    """Base class for environment errors (not business-rule failures)."""


class NotInitializedError(TokenFactoryError):
    """Raised when state is opened before ``init`` recorded an owner."""

    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"No token factory state at '{location}'; run 'tokenfactory init' first")


class AlreadyInitializedError(TokenFactoryError):
    """Raised when ``init`` runs against state that already has an owner."""

    def __init__(self, location: str, owner: str) -> None:
        self.location = location
        self.owner = owner
        super().__init__(f"State at '{location}' is already initialized (owner: {owner})")


class ConfigError(TokenFactoryError):
    """Raised for an unreadable or malformed configuration file."""


class CorruptStateError(TokenFactoryError):
    """Raised when a state file exists but cannot be read or parsed.

    Corrupt state is never treated as absent, so it cannot be re-initialized
    over.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt state file '{path}': {reason}")
