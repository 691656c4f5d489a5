from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger("atlas.storage")


def read_models(path: Path, model: type[ModelT]) -> list[ModelT]:
    """Load every valid line of a JSONL file; unparsable lines are skipped."""
    if not path.exists():
        return []
    records: list[ModelT] = []
    skipped = 0
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            try:
                records.append(model.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError):
                skipped += 1
    if skipped:
        logger.warning("jsonl_lines_skipped", extra={"extra_fields": {"path": str(path), "count": skipped}})
    return records


def _line(record: BaseModel) -> str:
    return json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n"


def append_model(path: Path, record: BaseModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(_line(record))


def replace_models(path: Path, records: Iterable[BaseModel]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        handle.writelines(_line(record) for record in records)
    tmp_path.replace(path)
