from __future__ import annotations

from pathlib import Path

from atlas.core.storage.jsonl import append_model, read_models, replace_models

from .schemas import PhaseRunRecord


class PhaseRunStore:
    """Bounded JSONL history of finished planning and execution runs."""

    def __init__(self, state_dir: Path, max_records: int = 500) -> None:
        self.file_path = state_dir / "phase_runs.jsonl"
        self.max_records = max(1, max_records)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: PhaseRunRecord) -> PhaseRunRecord:
        append_model(self.file_path, record)
        self.trim(self.max_records)
        return record

    def list_recent(self, limit: int = 50, booking_id: str | None = None) -> list[PhaseRunRecord]:
        if limit <= 0:
            return []
        records = read_models(self.file_path, PhaseRunRecord)
        if booking_id is not None:
            records = [record for record in records if record.booking_id == booking_id]
        return records[::-1][:limit]

    def get(self, run_id: str) -> PhaseRunRecord | None:
        return next(
            (record for record in reversed(read_models(self.file_path, PhaseRunRecord)) if record.run_id == run_id),
            None,
        )

    def trim(self, max_records: int) -> None:
        records = read_models(self.file_path, PhaseRunRecord)
        keep = max(1, max_records)
        if len(records) > keep:
            replace_models(self.file_path, records[-keep:])
