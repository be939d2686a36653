"""Admins router -- owner lookup and administrator grants."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from tokenfactory.auth.models import Principal
from tokenfactory.registry.service import RegistryService
from web.backend.app.middleware.auth import get_caller, get_service
from web.backend.app.middleware.errors import raise_for_result
from web.backend.app.models.api import (
    AdminStatusRequest,
    AdminStatusResponse,
    ErrorResponse,
    OperationResponse,
    OwnerResponse,
)

router = APIRouter(prefix="/api", tags=["admins"])


@router.get("/owner", response_model=OwnerResponse, summary="Get the registry owner")
async def get_owner(service: RegistryService = Depends(get_service)):
    return OwnerResponse(owner=str(service.get_owner()))


@router.get("/admins", response_model=list[str], summary="List administrators")
async def list_admins(service: RegistryService = Depends(get_service)):
    return [str(p) for p in service.administrators()]


@router.get("/admins/{principal}", response_model=AdminStatusResponse)
async def get_admin_status(principal: str, service: RegistryService = Depends(get_service)):
    return AdminStatusResponse(principal=principal, is_admin=service.is_admin(Principal(principal)))


@router.put(
    "/admins/{principal}",
    response_model=OperationResponse,
    responses={403: {"model": ErrorResponse}},
    summary="Grant or revoke administrator privilege",
)
async def set_admin_status(
    principal: str,
    req: AdminStatusRequest,
    caller: Principal = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Only the owner may change administrator flags."""
    result = service.set_administrator(caller, Principal(principal), req.status)
    raise_for_result(result)
    return OperationResponse(ok=result.value)
