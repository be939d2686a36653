"""Tokens router -- registration and lookup of token symbols."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from tokenfactory.auth.models import Principal
from tokenfactory.registry.models import TokenRecord
from tokenfactory.registry.service import RegistryService
from web.backend.app.middleware.auth import get_caller, get_service
from web.backend.app.middleware.errors import raise_for_result
from web.backend.app.models.api import (
    ErrorResponse,
    OperationResponse,
    TokenCreateRequest,
    TokenResponse,
)

router = APIRouter(prefix="/api/tokens", tags=["tokens"])


def _token_response(record: TokenRecord) -> TokenResponse:
    return TokenResponse(
        symbol=record.symbol,
        name=record.name,
        max_supply=record.max_supply,
        decimals=record.decimals,
    )


@router.post(
    "",
    response_model=OperationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Register a token symbol",
)
async def create_token(
    req: TokenCreateRequest,
    caller: Principal = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Register a symbol. Requires the caller to be an administrator."""
    result = service.create_token(caller, req.symbol, req.name, req.max_supply, req.decimals)
    raise_for_result(result)
    return OperationResponse(ok=result.value)


@router.get("", response_model=list[TokenResponse], summary="List all tokens")
async def list_tokens(service: RegistryService = Depends(get_service)):
    """List every registered token, sorted by symbol."""
    return [_token_response(r) for r in service.list_tokens()]


@router.get("/{symbol}", response_model=TokenResponse, summary="Get token details")
async def get_token(symbol: str, service: RegistryService = Depends(get_service)):
    """Return the record registered under *symbol*."""
    record = service.get_token_details(symbol)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Token '{symbol}' not found")
    return _token_response(record)
