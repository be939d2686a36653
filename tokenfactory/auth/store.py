"""Owner and administrator storage.

:class:`Authority` keeps state in memory; :class:`FileAuthority` persists the
same state as JSON under ``~/.tokenfactory/`` (``authority.json``).
"""

from __future__ import annotations

import json
import logging
import os
import threading
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Optional

from tokenfactory.auth.models import AdminFlag, Principal
from tokenfactory.auth.permissions import check_owner
from tokenfactory.errors import (
    AlreadyInitializedError,
    CorruptStateError,
    NotInitializedError,
    Result,
)
from tokenfactory.locking import exclusive_lock, lock_path_for

logger = logging.getLogger(__name__)


class Authority:
    """The root owner plus the table of delegated administrator flags.

    The owner is fixed at construction. Flag writes and reads share one lock
    so a grant or revoke is never observed half-applied.
    """

    def __init__(self, owner: Principal) -> None:
        if owner is None:
            raise ValueError("owner must be set")
        self._owner = owner
        self._flags: dict[Principal, AdminFlag] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def owner(self) -> Principal:
        return self._owner

    def is_admin(self, principal: Principal) -> bool:
        with self._lock:
            self._refresh()
            flag = self._flags.get(principal)
            return flag is not None and flag.status

    def administrators(self) -> list[Principal]:
        """Principals whose flag is currently ``True``, sorted by address."""
        with self._lock:
            self._refresh()
            admins = [f.principal for f in self._flags.values() if f.status]
        return sorted(admins, key=lambda p: p.address)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_administrator(self, caller: Principal, target: Principal, status: bool) -> Result:
        """Upsert the admin flag for *target*. Only the owner may do this."""
        with self._lock, self._exclusive():
            denied = check_owner(self, caller)
            if denied is not None:
                logger.warning("set_administrator by %s rejected: %s", caller, denied.label)
                return Result.err(denied)
            self._refresh()
            previous = self._flags.get(target)
            self._flags[target] = AdminFlag(principal=target, status=bool(status))
            try:
                self._persist()
            except OSError:
                if previous is None:
                    del self._flags[target]
                else:
                    self._flags[target] = previous
                raise
        logger.info("Administrator flag for %s set to %s", target, bool(status))
        return Result.ok(True)

    # ------------------------------------------------------------------
    # Hooks for durable subclasses; in-memory state needs none of them
    # ------------------------------------------------------------------

    def _exclusive(self) -> ContextManager:
        return nullcontext()

    def _refresh(self) -> None:
        pass

    def _persist(self) -> None:
        pass


class FileAuthority(Authority):
    """JSON-file backed :class:`Authority`.

    Storage path: ``<base_dir>/authority.json`` with:
    - ``owner`` -- the owner address, written once by :meth:`initialize`
    - ``admins`` -- list of admin flag dicts

    Flags are re-read from disk on every query and under a file lock on every
    write, so other processes sharing the directory are observed.
    """

    FILE_NAME = "authority.json"

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".tokenfactory"
        else:
            self._base = Path(base_dir)
        self._path = self._base / self.FILE_NAME

        data = self._read_json(self._path)
        if data is None:
            raise NotInitializedError(str(self._base))
        super().__init__(Principal(self._owner_of(self._path, data)))
        self._flags = self._flags_of(data)

    @classmethod
    def initialize(cls, base_dir: str | Path, owner: Principal) -> "FileAuthority":
        """Record *owner* for a fresh state directory and open it.

        The owner is written exactly once; a second call raises
        :class:`AlreadyInitializedError` and leaves the stored owner alone.
        An unreadable ``authority.json`` raises :class:`CorruptStateError`.
        """
        base = Path(base_dir)
        base.mkdir(parents=True, exist_ok=True)
        path = base / cls.FILE_NAME
        with exclusive_lock(lock_path_for(path)):
            existing = cls._read_json(path)
            if existing is not None:
                raise AlreadyInitializedError(str(base), cls._owner_of(path, existing))
            cls._write_json(path, {"owner": owner.address, "admins": []})
        logger.info("Initialized authority at %s with owner %s", base, owner)
        return cls(base)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_json(path: Path) -> Optional[dict]:
        """Parsed contents, or ``None`` only when the file does not exist."""
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise CorruptStateError(str(path), str(e)) from e
        if not isinstance(data, dict):
            raise CorruptStateError(str(path), f"expected an object, got {type(data).__name__}")
        return data

    @staticmethod
    def _write_json(path: Path, data: dict) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str))
        os.replace(tmp, path)

    @staticmethod
    def _owner_of(path: Path, data: dict) -> str:
        owner = data.get("owner")
        if not owner or not isinstance(owner, str):
            raise CorruptStateError(str(path), "missing owner")
        return owner

    def _flags_of(self, data: dict) -> dict[Principal, AdminFlag]:
        try:
            flags = [self._flag_from_dict(d) for d in data.get("admins", [])]
        except (KeyError, TypeError) as e:
            raise CorruptStateError(str(self._path), f"bad admin entry: {e}") from e
        return {f.principal: f for f in flags}

    @staticmethod
    def _flag_from_dict(d: dict) -> AdminFlag:
        return AdminFlag(
            principal=Principal(d["principal"]),
            status=bool(d.get("status", False)),
            updated_at=d.get("updated_at", ""),
        )

    @staticmethod
    def _flag_to_dict(f: AdminFlag) -> dict:
        return {
            "principal": f.principal.address,
            "status": f.status,
            "updated_at": f.updated_at,
        }

    def _exclusive(self) -> ContextManager:
        return exclusive_lock(lock_path_for(self._path))

    def _refresh(self) -> None:
        data = self._read_json(self._path)
        if data is None:
            raise CorruptStateError(str(self._path), "file disappeared")
        if Principal(self._owner_of(self._path, data)) != self._owner:
            raise CorruptStateError(str(self._path), "owner changed on disk")
        self._flags = self._flags_of(data)

    def _persist(self) -> None:
        self._write_json(
            self._path,
            {
                "owner": self._owner.address,
                "admins": [self._flag_to_dict(f) for f in self._flags.values()],
            },
        )
