"""Auth middleware -- FastAPI dependencies for the caller and the service.

Identity is supplied by an upstream gateway in the ``X-Principal`` header and
is trusted as-is; this layer does not verify signatures.
"""

from __future__ import annotations

import os
import threading
from typing import Optional

from fastapi import Header, HTTPException, status

from tokenfactory.auth.models import Principal
from tokenfactory.config import load_settings
from tokenfactory.errors import TokenFactoryError
from tokenfactory.registry.service import RegistryService, build_service

# Shared service instance
_service: Optional[RegistryService] = None
_service_lock = threading.Lock()


def get_service() -> RegistryService:
    """Return the singleton RegistryService for the configured data directory.

    With ``TOKENFACTORY_BACKEND=memory`` the owner comes from
    ``TOKENFACTORY_OWNER``.
    """
    global _service
    if _service is not None:
        return _service
    with _service_lock:
        if _service is None:
            owner = os.environ.get("TOKENFACTORY_OWNER")
            try:
                _service = build_service(load_settings(), Principal(owner) if owner else None)
            except (TokenFactoryError, ValueError) as e:
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=str(e),
                ) from e
    return _service


async def get_caller(x_principal: Optional[str] = Header(None, alias="X-Principal")) -> Principal:
    """FastAPI dependency that extracts the calling principal.

    Raises ``401 Unauthorized`` if the header is missing or blank.
    """
    if not x_principal or not x_principal.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Principal header",
        )
    return Principal(x_principal.strip())
