"""Registry service — the public operation set.

Every mutating call runs authorization, then validation, then the atomic
insert, then event emission, all under one service lock. A call that fails
an earlier step never reaches the store or the audit log.
"""

from __future__ import annotations

import logging
import threading

from tokenfactory.auth.models import Principal
from tokenfactory.auth.permissions import check_admin
from tokenfactory.auth.store import Authority, FileAuthority
from tokenfactory.config import Settings
from tokenfactory.errors import RegistryError, Result
from tokenfactory.registry.models import TokenCreated, TokenRecord
from tokenfactory.registry.store import JsonTokenStore, TokenStore
from tokenfactory.security.audit_log import AuditLogger, MemoryAuditLog

logger = logging.getLogger(__name__)


class RegistryService:
    """Administrator-gated registration of token symbols."""

    def __init__(self, authority: Authority, store: TokenStore, events: AuditLogger) -> None:
        self._authority = authority
        self._store = store
        self._events = events
        self._lock = threading.RLock()

    @property
    def events(self) -> AuditLogger:
        return self._events

    # ── Administration ───────────────────────────────────────────────

    def set_administrator(self, caller: Principal, target: Principal, status: bool) -> Result:
        with self._lock:
            return self._authority.set_administrator(caller, target, status)

    def is_admin(self, principal: Principal) -> bool:
        return self._authority.is_admin(principal)

    def administrators(self) -> list[Principal]:
        return self._authority.administrators()

    def get_owner(self) -> Principal:
        return self._authority.owner()

    # ── Tokens ───────────────────────────────────────────────────────

    def create_token(
        self,
        caller: Principal,
        symbol: str,
        name: str,
        max_supply: int,
        decimals: int,
    ) -> Result:
        """Register *symbol* with immutable metadata.

        Fails with ``UNAUTHORIZED`` unless *caller* is an administrator,
        ``INVALID_PARAMS`` unless ``max_supply > 0`` and ``TOKEN_EXISTS`` if
        the symbol is already taken. On success a ``token-created`` event is
        recorded and the result carries ``True``.
        """
        with self._lock:
            denied = check_admin(self._authority, caller)
            if denied is not None:
                return self._reject("create_token", caller, symbol, denied)

            if max_supply <= 0:
                return self._reject("create_token", caller, symbol, RegistryError.INVALID_PARAMS)

            record = TokenRecord(symbol=symbol, name=name, max_supply=max_supply, decimals=decimals)
            if not self._store.insert_if_absent(symbol, record):
                return self._reject("create_token", caller, symbol, RegistryError.TOKEN_EXISTS)

            # Registration and its event land together or not at all.
            try:
                self._events.record(caller, TokenCreated.from_record(record))
            except Exception:
                logger.exception("Audit write for %s failed; reverting registration", symbol)
                self._store.revert_insert(symbol, record)
                raise

        logger.info("Token %s registered by %s", symbol, caller)
        return Result.ok(True)

    def get_token_details(self, symbol: str) -> TokenRecord | None:
        return self._store.get(symbol)

    def list_tokens(self) -> list[TokenRecord]:
        return self._store.list_all()

    @staticmethod
    def _reject(op: str, caller: Principal, symbol: str, error: RegistryError) -> Result:
        logger.warning("%s %s by %s rejected: %s", op, symbol, caller, error.label)
        return Result.err(error)


def build_service(settings: Settings, owner: Principal | None = None) -> RegistryService:
    """Wire a :class:`RegistryService` for the configured backend.

    The file backend requires an initialized data directory. The memory
    backend starts empty and needs *owner* to stand in for initialization.
    """
    if settings.backend == "memory":
        if owner is None:
            raise ValueError("memory backend needs an owner")
        return RegistryService(Authority(owner), TokenStore(), MemoryAuditLog())

    return RegistryService(
        FileAuthority(settings.data_dir),
        JsonTokenStore(settings.data_dir),
        AuditLogger(settings.audit_dir),
    )


def initialize(settings: Settings, owner: Principal) -> RegistryService:
    """Record *owner* as the root of a fresh registry."""
    if settings.backend == "memory":
        return build_service(settings, owner)
    FileAuthority.initialize(settings.data_dir, owner)
    return build_service(settings)
