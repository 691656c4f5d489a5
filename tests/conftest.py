from __future__ import annotations

import copy
import json
from typing import Any, Callable

import httpx
import pytest

from atlas.core.auth.session import Session, StaticSessionProvider
from atlas.core.bookings.store import BookingStore
from atlas.core.intent.client import IntentResolutionClient
from atlas.core.settings import WorkflowSettings
from atlas.core.workflow.orchestrator import PhaseOrchestrator

INTENT_URL = "https://intent.test/functions/v1/atlas-chat"

FLIGHT_RESPONSE: dict[str, Any] = {
    "success": True,
    "bookingType": "flight",
    "bookingId": "3f2a9c1e-7b4d-4e2a-9a51-0c6a1d2b8e77",
    "intent": {
        "destination": "Tokyo",
        "origin": "SFO",
        "departDate": "2025-03-15",
        "returnDate": "2025-03-22",
        "budget": 1800,
        "cabinClass": "Economy",
        "travelers": 2,
    },
    "flights": [
        {"id": "off_1", "airline": "ANA", "flightNumber": "NH7", "total_amount": 1320, "stops": 0},
        {"id": "off_2", "carrier": "United", "flightNumber": "UA837", "price": 1105.5, "stops": 1},
    ],
    "proposal": {"title": "Trip to Tokyo", "details": {"nights": 7}},
}

RIDE_RESPONSE: dict[str, Any] = {
    "success": True,
    "bookingType": "ride",
    "intent": {
        "destination": "Airport",
        "pickupLocation": {"address": "500 Market St"},
        "scheduledTime": "now",
    },
    "rides": [
        {"id": "uber_x", "provider": "Uber", "vehicleType": "UberX", "price": 42, "eta": 4},
        {"id": "lyft_std", "provider": "Lyft", "vehicleType": "Standard", "price": 39.5, "eta": 6},
    ],
}


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ATLAS_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("ATLAS_LOG_TO_FILE", "off")
    monkeypatch.setenv("ATLAS_STEP_DELAY_S", "0")
    monkeypatch.setenv("ATLAS_PAYMENT_SETTLE_S", "0")
    monkeypatch.setenv("ATLAS_INTENT_URL", INTENT_URL)
    monkeypatch.setenv("ATLAS_STORE_MODE", "jsonl")
    monkeypatch.delenv("ATLAS_ACCESS_TOKEN", raising=False)
    return tmp_path


@pytest.fixture
def flight_response() -> dict[str, Any]:
    return copy.deepcopy(FLIGHT_RESPONSE)


@pytest.fixture
def ride_response() -> dict[str, Any]:
    return copy.deepcopy(RIDE_RESPONSE)


@pytest.fixture
def intent_url() -> str:
    return INTENT_URL


@pytest.fixture
def fast_settings() -> WorkflowSettings:
    return WorkflowSettings(step_delay_s=0.0, payment_settle_s=0.0, intent_url=INTENT_URL)


@pytest.fixture
def session() -> Session:
    return Session(access_token="test-access-token", user_email="traveler@example.com")


def json_transport(payload: Any, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))

    return httpx.MockTransport(handler)


@pytest.fixture
def make_orchestrator(
    tmp_path, fast_settings: WorkflowSettings, session: Session
) -> Callable[..., PhaseOrchestrator]:
    def factory(
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        response: Any = None,
        status_code: int = 200,
        session_value: Session | None | str = "default",
        booking_store: Any = None,
        run_store: Any = None,
    ) -> PhaseOrchestrator:
        if transport is None:
            transport = json_transport(FLIGHT_RESPONSE if response is None else response, status_code)
        resolved_session = session if session_value == "default" else session_value
        return PhaseOrchestrator(
            intent_client=IntentResolutionClient(INTENT_URL, transport=transport),
            booking_store=booking_store or BookingStore(state_dir=tmp_path),
            session_provider=StaticSessionProvider(resolved_session),
            settings=fast_settings,
            run_store=run_store,
        )

    return factory


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, int]] = []
        self.snapshots: list[tuple] = []

    def on_step_change(self, step, all_steps) -> None:
        self.events.append((step.id, step.status, step.position))
        self.snapshots.append(tuple(all_steps))


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()
