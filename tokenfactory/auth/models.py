"""Auth domain models for principals and administrator flags."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Principal:
    """An opaque authenticated identity.

    Only equality is meaningful; the address is never parsed.
    """

    address: str

    def __str__(self) -> str:
        return self.address


@dataclass
class AdminFlag:
    """Whether a principal currently holds administrator privilege."""

    principal: Principal
    status: bool = False
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = datetime.now(timezone.utc).isoformat()
        if isinstance(self.principal, str):
            self.principal = Principal(self.principal)
