from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class BookingRecord(BaseModel):
    id: str
    booking_type: str = "flight"
    status: str = "proposed"
    created_at: str
    updated_at: str
    payload: dict[str, Any] = Field(default_factory=dict)
