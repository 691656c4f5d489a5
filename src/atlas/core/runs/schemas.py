from __future__ import annotations

from pydantic import BaseModel, Field


class PhaseRunRecord(BaseModel):
    run_id: str
    ts_iso: str
    phase: str
    booking_id: str | None = None
    booking_type: str | None = None
    agent_run_id: str | None = None
    success: bool
    error: str | None = None
    steps: list[dict] = Field(default_factory=list)
    trace_events: list[dict] = Field(default_factory=list)
