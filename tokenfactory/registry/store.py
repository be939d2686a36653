"""Token record storage.

:class:`TokenStore` is the in-memory implementation; :class:`JsonTokenStore`
persists the same index as JSON in a local directory. Both serialize
check-then-insert behind one store-wide lock, so concurrent registrations of
a symbol produce exactly one winner. The JSON store also takes a file lock
and re-reads the index before deciding, so processes sharing a directory
cannot both win.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager

from tokenfactory.errors import CorruptStateError
from tokenfactory.locking import exclusive_lock, lock_path_for
from tokenfactory.registry.models import TokenRecord

logger = logging.getLogger(__name__)


class TokenStore:
    """In-memory symbol -> :class:`TokenRecord` mapping."""

    def __init__(self) -> None:
        self._index: dict[str, TokenRecord] = {}
        self._lock = threading.Lock()

    def get(self, symbol: str) -> TokenRecord | None:
        with self._lock:
            self._refresh()
            return self._index.get(symbol)

    def insert_if_absent(self, symbol: str, record: TokenRecord) -> bool:
        """Store *record* under *symbol* unless the symbol is taken.

        Returns ``True`` if inserted, ``False`` if a record already existed;
        the existing record is never touched.
        """
        with self._lock, self._exclusive():
            self._refresh()
            if symbol in self._index:
                return False
            self._index[symbol] = record
            try:
                self._save_index()
            except OSError:
                del self._index[symbol]
                raise
        logger.debug("Stored token record %s", symbol)
        return True

    def revert_insert(self, symbol: str, record: TokenRecord) -> bool:
        """Undo an :meth:`insert_if_absent` whose follow-up work failed.

        Only removes the entry if it is still exactly *record*. Not a
        deletion path for registered tokens.
        """
        with self._lock, self._exclusive():
            self._refresh()
            if self._index.get(symbol) != record:
                return False
            del self._index[symbol]
            try:
                self._save_index()
            except OSError:
                self._index[symbol] = record
                raise
        logger.warning("Reverted token record %s", symbol)
        return True

    def list_all(self) -> list[TokenRecord]:
        """List all records sorted by symbol."""
        with self._lock:
            self._refresh()
            return [self._index[s] for s in sorted(self._index)]

    def __len__(self) -> int:
        return len(self.list_all())

    # Hooks for durable subclasses.

    def _exclusive(self) -> ContextManager:
        return nullcontext()

    def _refresh(self) -> None:
        pass

    def _save_index(self) -> None:
        pass


class JsonTokenStore(TokenStore):
    """File-based token store; safe to share between processes."""

    INDEX_FILE = "tokens.json"

    def __init__(self, store_dir: str | Path):
        super().__init__()
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.store_dir / self.INDEX_FILE
        self._index = self._load_index()

    def _exclusive(self) -> ContextManager:
        return exclusive_lock(lock_path_for(self.index_path))

    def _refresh(self) -> None:
        self._index = self._load_index()

    def _load_index(self) -> dict[str, TokenRecord]:
        if not self.index_path.exists():
            return {}
        try:
            with open(self.index_path) as f:
                raw = json.load(f)
            return {symbol: _dict_to_record(symbol, data) for symbol, data in raw.items()}
        except (json.JSONDecodeError, OSError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise CorruptStateError(str(self.index_path), str(e)) from e

    def _save_index(self) -> None:
        tmp = self.index_path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(
                {symbol: _record_to_dict(r) for symbol, r in self._index.items()},
                f,
                indent=2,
            )
        os.replace(tmp, self.index_path)


def _record_to_dict(record: TokenRecord) -> dict:
    return {
        "name": record.name,
        "max_supply": record.max_supply,
        "decimals": record.decimals,
    }


def _dict_to_record(symbol: str, data: dict) -> TokenRecord:
    return TokenRecord(
        symbol=symbol,
        name=data["name"],
        max_supply=int(data["max_supply"]),
        decimals=int(data["decimals"]),
    )
