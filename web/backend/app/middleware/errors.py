"""Translate registry result values into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException

from tokenfactory.errors import RegistryError, Result

_STATUS_FOR_ERROR = {
    RegistryError.UNAUTHORIZED: 403,
    RegistryError.INVALID_PARAMS: 422,
    RegistryError.TOKEN_EXISTS: 409,
}


def raise_for_result(result: Result) -> None:
    """Raise ``HTTPException`` for a failed result; do nothing on success.

    The detail carries the numeric registry code so clients can branch on it.
    """
    if result.is_ok:
        return
    raise HTTPException(
        status_code=_STATUS_FOR_ERROR[result.error],
        detail={"code": result.code, "error": result.error.label},
    )
