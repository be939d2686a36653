"""Events router -- read access to the token-created audit trail."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tokenfactory.registry.service import RegistryService
from web.backend.app.middleware.auth import get_service
from web.backend.app.models.api import AuditEntryResponse

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=list[AuditEntryResponse], summary="Query audit events")
async def list_events(
    symbol: Optional[str] = Query(None),
    actor: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=10000),
    service: RegistryService = Depends(get_service),
):
    """Return audit events, newest first."""
    entries = service.events.get_events(symbol=symbol, actor=actor, limit=limit)
    return [AuditEntryResponse(**asdict(e)) for e in entries]
