"""Audit log for registry events.

Successful registrations are appended as newline-delimited JSON in daily log
files under ``~/.tokenfactory/audit_logs/``. Entries are never rewritten.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from tokenfactory.auth.models import Principal
from tokenfactory.registry.models import TokenCreated

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single audit log entry wrapping an emitted event."""

    id: str
    timestamp: str
    actor: str
    event: str
    symbol: str
    payload: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """File-based JSON audit logger.

    Events are persisted as newline-delimited JSON in daily log files stored
    under *base_dir*.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".tokenfactory" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        """Return the log file path for a given date."""
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _current_log_file(self) -> Path:
        return self._log_file_for_date(datetime.now(timezone.utc))

    def _append(self, entry: AuditEntry) -> None:
        with self._lock, self._current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")

    def _read_all_entries(self) -> list[AuditEntry]:
        """Read every entry from all log files."""
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            text = path.read_text(encoding="utf-8")
            for lineno, line in enumerate(text.splitlines(), start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, actor: Principal, event: TokenCreated) -> AuditEntry:
        """Append *event* to the log and return the created entry."""
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=datetime.now(timezone.utc).isoformat(),
            actor=str(actor),
            event=event.EVENT,
            symbol=event.symbol,
            payload=event.as_dict(),
        )
        self._append(entry)
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        event: Optional[str] = None,
        symbol: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if event:
            entries = [e for e in entries if e.event == event]
        if symbol:
            entries = [e for e in entries if e.symbol == symbol]
        if start_date:
            entries = [e for e in entries if e.timestamp >= start_date]
        if end_date:
            entries = [e for e in entries if e.timestamp <= end_date]

        # Newest first
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(
        self,
        fmt: str = "json",
        *,
        actor: Optional[str] = None,
        symbol: Optional[str] = None,
        limit: int = 10000,
    ) -> str:
        """Export audit events in the specified format (``json`` or ``csv``)."""
        entries = self.get_events(actor=actor, symbol=symbol, limit=limit)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(["id", "timestamp", "actor", "event", "symbol", "name", "max_supply"])
            for e in entries:
                writer.writerow([
                    e.id, e.timestamp, e.actor, e.event, e.symbol,
                    e.payload.get("name", ""), e.payload.get("max_supply", ""),
                ])
            return buf.getvalue().rstrip("\n")

        return json.dumps([asdict(e) for e in entries], indent=2)


class MemoryAuditLog(AuditLogger):
    """Audit log kept in process memory, for tests and ephemeral services."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def _append(self, entry: AuditEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def _read_all_entries(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._entries)
