from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from atlas.core.workflow.schemas import COMPLETED, Step


@dataclass
class StepTrace:
    """Progress sink that records every step change as a trace event."""

    run_id: str | None = None
    booking_id: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)

    def emit(self, name: str, payload: dict[str, Any]) -> None:
        enriched_payload = dict(payload)
        if self.run_id:
            enriched_payload.setdefault("run_id", self.run_id)
        if self.booking_id:
            enriched_payload.setdefault("booking_id", self.booking_id)
        self.events.append({"event": name, "payload": enriched_payload})

    def on_step_change(self, step: Step, all_steps: Sequence[Step]) -> None:
        completed = sum(1 for item in all_steps if item.status == COMPLETED)
        progress = round(completed * 100 / len(all_steps)) if all_steps else 0
        self.emit(
            "StepChanged",
            {
                "step_id": step.id,
                "status": step.status,
                "position": step.position,
                "progress": progress,
                "primary": step.details.primary if step.details else None,
            },
        )
