"""Pydantic models for API request/response serialization.

These models mirror the tokenfactory dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Token models
# ---------------------------------------------------------------------------


class TokenCreateRequest(BaseModel):
    """Body of ``POST /api/tokens``.

    ``max_supply`` is range-checked by the service, not here, so a zero
    supply surfaces as the registry's own ``InvalidParams`` code.
    """

    symbol: str
    name: str
    max_supply: int
    decimals: int = Field(ge=0)


class TokenResponse(BaseModel):
    """Mirrors tokenfactory.registry.models.TokenRecord."""

    symbol: str
    name: str
    max_supply: int
    decimals: int


class OperationResponse(BaseModel):
    """Successful mutating call."""

    ok: bool = True


class ErrorDetail(BaseModel):
    """``code`` is the stable registry error code."""

    code: int
    error: str


class ErrorResponse(BaseModel):
    """Body of a rejected mutating call, as raised via ``HTTPException``."""

    detail: ErrorDetail


# ---------------------------------------------------------------------------
# Admin models
# ---------------------------------------------------------------------------


class AdminStatusRequest(BaseModel):
    status: bool


class AdminStatusResponse(BaseModel):
    principal: str
    is_admin: bool


class OwnerResponse(BaseModel):
    owner: str


# ---------------------------------------------------------------------------
# Audit models
# ---------------------------------------------------------------------------


class AuditEntryResponse(BaseModel):
    """Mirrors tokenfactory.security.audit_log.AuditEntry."""

    id: str
    timestamp: str
    actor: str
    event: str
    symbol: str
    payload: dict[str, Any] = Field(default_factory=dict)
