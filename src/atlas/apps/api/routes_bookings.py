from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from atlas.core.auth.session import StaticSessionProvider
from atlas.core.bookings.store import BookingStatusStore
from atlas.core.intent.client import IntentResolutionClient
from atlas.core.observability.trace import StepTrace
from atlas.core.runs.store import PhaseRunStore
from atlas.core.settings import WorkflowSettings
from atlas.core.workflow.orchestrator import PhaseOrchestrator
from atlas.core.workflow.schemas import BookingType, Location, PhaseResult, PlanningRequest

from .auth import session_from_request
from .deps import get_intent_client, get_request_booking_store, get_run_store, get_settings

router = APIRouter()


class PlanRequest(BaseModel):
    user_message: str
    current_location: Location | None = None
    booking_type: BookingType | None = None


class ExecuteRequest(BaseModel):
    selected_option: dict[str, Any] = Field(default_factory=dict)
    booking_type: BookingType = "flight"


def _orchestrator(
    request: Request,
    intent_client: IntentResolutionClient,
    booking_store: BookingStatusStore,
    run_store: PhaseRunStore,
    settings: WorkflowSettings,
) -> PhaseOrchestrator:
    return PhaseOrchestrator(
        intent_client=intent_client,
        booking_store=booking_store,
        session_provider=StaticSessionProvider(session_from_request(request)),
        settings=settings,
        run_store=run_store,
    )


def _payload(result: PhaseResult, trace: StepTrace) -> dict[str, Any]:
    payload = result.model_dump(mode="json")
    payload["events"] = trace.events
    return payload


@router.post("/plan")
async def plan_booking(
    body: PlanRequest,
    request: Request,
    intent_client: IntentResolutionClient = Depends(get_intent_client),
    booking_store: BookingStatusStore = Depends(get_request_booking_store),
    run_store: PhaseRunStore = Depends(get_run_store),
    settings: WorkflowSettings = Depends(get_settings),
) -> dict[str, Any]:
    orchestrator = _orchestrator(request, intent_client, booking_store, run_store, settings)
    trace = StepTrace()
    result = await orchestrator.run_planning_phase(
        PlanningRequest(
            user_message=body.user_message,
            current_location=body.current_location,
            booking_type=body.booking_type,
        ),
        trace,
    )
    return _payload(result, trace)


@router.post("/{booking_id}/execute")
async def execute_booking(
    booking_id: str,
    body: ExecuteRequest,
    request: Request,
    intent_client: IntentResolutionClient = Depends(get_intent_client),
    booking_store: BookingStatusStore = Depends(get_request_booking_store),
    run_store: PhaseRunStore = Depends(get_run_store),
    settings: WorkflowSettings = Depends(get_settings),
) -> dict[str, Any]:
    orchestrator = _orchestrator(request, intent_client, booking_store, run_store, settings)
    trace = StepTrace(booking_id=booking_id)
    result = await orchestrator.run_execution_phase(
        booking_id,
        body.selected_option,
        trace,
        booking_type=body.booking_type,
    )
    return _payload(result, trace)


@router.get("/runs")
def list_runs(
    limit: int = Query(default=50),
    booking_id: str | None = Query(default=None),
    run_store: PhaseRunStore = Depends(get_run_store),
) -> list[dict[str, Any]]:
    return [record.model_dump() for record in run_store.list_recent(limit=limit, booking_id=booking_id)]
