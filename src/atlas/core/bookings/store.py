from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from atlas.core.storage.jsonl import read_models, replace_models
from atlas.core.workflow.errors import PersistenceError

from .schemas import BookingRecord

logger = logging.getLogger("atlas.bookings")


class BookingStatusStore(Protocol):
    async def update_status(self, booking_id: str, status: str) -> None: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BookingStore:
    """Local booking records kept in ``bookings.jsonl`` under the state dir."""

    def __init__(self, state_dir: Path) -> None:
        self.file_path = state_dir / "bookings.jsonl"
        self._lock = threading.Lock()
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _load_all(self) -> list[BookingRecord]:
        return read_models(self.file_path, BookingRecord)

    def _write_all(self, records: list[BookingRecord]) -> None:
        replace_models(self.file_path, records)

    def upsert(self, record: BookingRecord) -> BookingRecord:
        records = [existing for existing in self._load_all() if existing.id != record.id]
        records.append(record)
        self._write_all(records)
        return record

    def get(self, booking_id: str) -> BookingRecord | None:
        for record in reversed(self._load_all()):
            if record.id == booking_id:
                return record
        return None

    def list_recent(self, limit: int = 50) -> list[BookingRecord]:
        if limit <= 0:
            return []
        return self._load_all()[::-1][:limit]

    def set_status(self, booking_id: str, status: str) -> BookingRecord:
        with self._lock:
            now = _now_iso()
            existing = self.get(booking_id)
            if existing is None:
                logger.info("booking_record_created", extra={"extra_fields": {"booking_id": booking_id}})
                record = BookingRecord(id=booking_id, status=status, created_at=now, updated_at=now)
            else:
                record = existing.model_copy(update={"status": status, "updated_at": now})
            return self.upsert(record)

    async def update_status(self, booking_id: str, status: str) -> None:
        try:
            await asyncio.to_thread(self.set_status, booking_id, status)
        except OSError as exc:
            raise PersistenceError(f"failed to write booking {booking_id}: {exc}") from exc
