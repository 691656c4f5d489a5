from __future__ import annotations

import asyncio
import json

import httpx

from atlas.core.bookings.store import BookingStore
from atlas.core.intent.client import IntentResolutionClient
from atlas.core.runs.store import PhaseRunStore
from atlas.core.workflow.orchestrator import PhaseOrchestrator
from atlas.core.workflow.schemas import FlightOption, Location, PlanningRequest, RideOption


def _statuses(result) -> dict[str, str]:
    return {step.id: step.status for step in result.steps}


def test_planning_success_returns_intent_options_and_proposal(make_orchestrator, recording_sink) -> None:
    orchestrator = make_orchestrator()

    result = asyncio.run(
        orchestrator.run_planning_phase(
            PlanningRequest(
                user_message="Fly me to Tokyo in March",
                current_location=Location(latitude=37.77, longitude=-122.42, city="San Francisco", nearest_airport="SFO"),
            ),
            recording_sink,
        )
    )

    assert result.success is True
    assert result.error is None
    assert result.phase == "planning"
    assert result.booking_type == "flight"
    assert result.booking_id == "3f2a9c1e-7b4d-4e2a-9a51-0c6a1d2b8e77"
    assert result.intent.destination == "Tokyo"
    assert all(status == "completed" for status in _statuses(result).values())
    assert [type(option) for option in result.options] == [FlightOption, FlightOption]
    assert result.options[0].carrier == "ANA"
    assert result.options[0].price == 1320
    assert result.proposal.title == "Trip to Tokyo"

    steps = {step.id: step for step in result.steps}
    assert steps["location"].details.primary == "San Francisco"
    assert steps["dates"].details.items[0].value == "Mar 15, 2025"
    assert steps["proposal"].details.items[0].value == "2 flights"
    assert steps["authenticate"].details.items[0].value == "traveler@example.com"


def test_planning_sends_bearer_token_and_location(make_orchestrator, flight_response) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=flight_response)

    orchestrator = make_orchestrator(transport=httpx.MockTransport(handler))
    asyncio.run(
        orchestrator.run_planning_phase(
            PlanningRequest(
                user_message="Tokyo next month",
                current_location=Location(latitude=1.0, longitude=2.0, nearest_airport="SFO"),
            )
        )
    )

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert seen[0].headers["Authorization"] == "Bearer test-access-token"
    body = json.loads(seen[0].content)
    assert body["userMessage"] == "Tokyo next month"
    assert body["currentLocation"] == {"latitude": 1.0, "longitude": 2.0, "nearestAirport": "SFO"}
    assert body["bookingType"] == "flight"


def test_planning_without_session_fails_at_authenticate(make_orchestrator, recording_sink) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200, json={})

    orchestrator = make_orchestrator(transport=httpx.MockTransport(handler), session_value=None)

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Paris"), recording_sink))

    statuses = _statuses(result)
    assert result.success is False
    assert result.error == "no active session"
    assert statuses["connect"] == "completed"
    assert statuses["authenticate"] == "error"
    assert all(statuses[step_id] == "pending" for step_id in list(statuses)[2:])
    assert calls["count"] == 0
    assert recording_sink.events[-1] == ("authenticate", "error", 1)


def test_planning_server_error_fails_understand(make_orchestrator, recording_sink) -> None:
    orchestrator = make_orchestrator(response="upstream exploded", status_code=500)

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo"), recording_sink))

    statuses = _statuses(result)
    assert result.success is False
    assert result.error.startswith("Server error")
    assert "upstream exploded" in result.error
    assert statuses["location"] == "completed"
    assert statuses["understand"] == "error"
    for step_id in ("dates", "preferences", "create_trip", "proposal"):
        assert statuses[step_id] == "pending"
    assert all(status != "active" for status in statuses.values())


def test_planning_unsuccessful_payload_reports_error_text(make_orchestrator) -> None:
    orchestrator = make_orchestrator(response={"success": False, "error": "could not parse destination"})

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="???")))

    assert result.success is False
    assert result.error == "could not parse destination"
    assert _statuses(result)["understand"] == "error"


def test_planning_timeout_becomes_network_failure(make_orchestrator) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    orchestrator = make_orchestrator(transport=httpx.MockTransport(handler))

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    assert result.success is False
    assert "timed out" in result.error
    assert _statuses(result)["understand"] == "error"


def test_ride_request_resolves_to_ride_options(make_orchestrator, ride_response) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ride_response)

    orchestrator = make_orchestrator(transport=httpx.MockTransport(handler))

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Get me an uber to the airport")))

    assert result.success is True
    assert result.booking_type == "ride"
    assert result.intent.destination == "Airport"
    assert all(isinstance(option, RideOption) for option in result.options)
    assert json.loads(seen[0].content)["bookingType"] == "ride"
    assert result.booking_id.startswith("temp-")

    steps = {step.id: step for step in result.steps}
    assert steps["dates"].details.primary == "Pickup time confirmed"
    assert steps["preferences"].details.items[0].value == "500 Market St"
    assert steps["proposal"].details.items[0].value == "2 rides"


def test_planning_honours_explicit_booking_type(make_orchestrator) -> None:
    doctor_response = {
        "success": True,
        "bookingType": "doctor",
        "bookingId": "doc-1",
        "intent": {"specialty": "Dermatology", "preferredDate": "2025-04-02"},
        "doctors": [{"id": "d1", "name": "Dr. Rivera", "rating": 4.8}],
    }
    orchestrator = make_orchestrator(response=doctor_response)

    result = asyncio.run(
        orchestrator.run_planning_phase(PlanningRequest(user_message="Skin rash check", booking_type="doctor"))
    )

    assert result.success is True
    assert result.booking_type == "doctor"
    assert result.options[0].name == "Dr. Rivera"
    steps = {step.id: step for step in result.steps}
    assert steps["dates"].details.items[0].value == "Apr 2, 2025"
    assert steps["create_trip"].label == "Creating Booking"


def test_planning_cancel_before_start_fails_first_step(make_orchestrator, recording_sink) -> None:
    orchestrator = make_orchestrator()

    async def run():
        cancel_event = asyncio.Event()
        cancel_event.set()
        return await orchestrator.run_planning_phase(
            PlanningRequest(user_message="Tokyo"), recording_sink, cancel_event=cancel_event
        )

    result = asyncio.run(run())

    assert result.success is False
    assert result.error == "cancelled"
    assert _statuses(result)["connect"] == "error"
    assert recording_sink.events == [("connect", "error", 0)]


def test_planning_records_phase_run(make_orchestrator, tmp_path) -> None:
    run_store = PhaseRunStore(state_dir=tmp_path)
    orchestrator = make_orchestrator(run_store=run_store)

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    records = run_store.list_recent()
    assert len(records) == 1
    assert records[0].phase == "planning"
    assert records[0].booking_id == result.booking_id
    assert records[0].success is True
    assert len(records[0].steps) == 8
    assert records[0].trace_events[-1]["payload"]["step_id"] == "proposal"


def test_step_delay_is_awaited_between_steps(make_orchestrator, monkeypatch) -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("atlas.core.workflow.orchestrator.asyncio.sleep", fake_sleep)
    orchestrator = make_orchestrator()

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    assert result.success is True
    assert len(delays) == 7


def test_ride_service_fare_ranges_reach_the_proposal(make_orchestrator) -> None:
    ride_service_response = {
        "success": True,
        "type": "ride",
        "bookingId": "ride-55",
        "intent": {"pickupAddress": "500 Market St", "dropoffAddress": "SFO Terminal 2"},
        "rideOptions": [
            {"id": "uber-x", "name": "UberX", "price": {"min": 18, "max": 22}, "eta": 4},
            {"id": "uber-comfort", "name": "Uber Comfort", "price": {"min": 24, "max": 28}, "eta": 5},
        ],
        "proposal": {"title": "Ride Options"},
    }
    orchestrator = make_orchestrator(response=ride_service_response)

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="I need a ride to the airport")))

    assert result.success is True
    assert len(result.options) == 2
    assert result.options[1].vehicle_type == "Uber Comfort"
    steps = {step.id: step for step in result.steps}
    assert steps["proposal"].details.items[0].value == "2 rides"
    assert [item.value for item in steps["preferences"].details.items] == ["500 Market St", "SFO Terminal 2"]


def test_unreadable_ride_options_fail_understand(make_orchestrator) -> None:
    orchestrator = make_orchestrator(
        response={"success": True, "type": "ride", "rideOptions": [{"name": "UberX", "price": {"min": 18}}]}
    )

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Get me a cab")))

    assert result.success is False
    assert "rideOptions" in result.error
    assert _statuses(result)["understand"] == "error"


def test_session_defaults_to_access_token_from_environment(tmp_path, fast_settings, flight_response, intent_url, monkeypatch) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=flight_response)

    monkeypatch.setenv("ATLAS_ACCESS_TOKEN", "env-token")
    monkeypatch.setenv("ATLAS_USER_EMAIL", "worker@example.com")
    orchestrator = PhaseOrchestrator(
        IntentResolutionClient(intent_url, transport=httpx.MockTransport(handler)),
        BookingStore(state_dir=tmp_path),
        settings=fast_settings,
    )

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    assert result.success is True
    assert seen[0].headers["Authorization"] == "Bearer env-token"
    assert result.steps[1].details.items[0].value == "worker@example.com"


def test_missing_environment_token_fails_authenticate(tmp_path, fast_settings, intent_url, monkeypatch) -> None:
    monkeypatch.delenv("ATLAS_ACCESS_TOKEN", raising=False)
    orchestrator = PhaseOrchestrator(
        IntentResolutionClient(intent_url, transport=httpx.MockTransport(lambda request: httpx.Response(500))),
        BookingStore(state_dir=tmp_path),
        settings=fast_settings,
    )

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    assert result.error == "no active session"
    assert _statuses(result)["authenticate"] == "error"


def test_agent_run_id_is_returned_and_recorded(make_orchestrator, flight_response, tmp_path) -> None:
    flight_response["agentRunId"] = "agent-run-7"
    run_store = PhaseRunStore(state_dir=tmp_path)
    orchestrator = make_orchestrator(response=flight_response, run_store=run_store)

    result = asyncio.run(orchestrator.run_planning_phase(PlanningRequest(user_message="Tokyo")))

    assert result.agent_run_id == "agent-run-7"
    assert run_store.list_recent()[0].agent_run_id == "agent-run-7"
