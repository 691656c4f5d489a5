from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from atlas.core.auth.session import EnvSessionProvider, Session, SessionProvider
from atlas.core.bookings.store import BookingStatusStore
from atlas.core.intent.client import IntentResolution, IntentResolutionClient
from atlas.core.intent.inference import infer_booking_type
from atlas.core.logging.context import bind_booking_id, booking_id_var, log_context
from atlas.core.observability.trace import StepTrace
from atlas.core.runs.schemas import PhaseRunRecord
from atlas.core.runs.store import PhaseRunStore
from atlas.core.settings import WorkflowSettings

from .catalog import BOOKING_TYPES, get_catalog
from .details import (
    BOOKING_ROLES,
    booking_active_details,
    booking_completed_details,
    planning_active_details,
    planning_completed_details,
)
from .errors import ConfigurationError, NoActiveSession, PhaseCancelled
from .schemas import PhaseName, PhaseResult, PlanningRequest, Step, StepDetails
from .sequencer import StepSequencer
from .sink import ProgressSink, SinkLike, as_sink

logger = logging.getLogger("atlas.workflow")


class _PhaseRun:
    """Drives one sequencer on behalf of a single phase invocation."""

    def __init__(
        self,
        sequencer: StepSequencer,
        sink: ProgressSink,
        trace: StepTrace,
        cancel_event: asyncio.Event | None,
    ) -> None:
        self.sequencer = sequencer
        self.sink = sink
        self.trace = trace
        self.cancel_event = cancel_event

    def _emit(self, step: Step) -> None:
        all_steps = self.sequencer.snapshot()
        self.trace.on_step_change(step, all_steps)
        self.sink.on_step_change(step, all_steps)

    def start(self, step_id: str, details: StepDetails | None = None) -> Step:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PhaseCancelled()
        step = self.sequencer.activate(step_id, details)
        self._emit(step)
        return step

    def finish(self, step_id: str, details: StepDetails | None = None) -> Step:
        step = self.sequencer.complete(step_id, details)
        self._emit(step)
        return step

    def fail_current(self) -> None:
        if self.sequencer.is_terminal:
            return
        target = self.sequencer.current() or self.sequencer.next_pending()
        if target is None:
            return
        step = self.sequencer.fail(target.id, StepDetails(primary="Error occurred"))
        try:
            self._emit(step)
        except Exception:
            logger.exception("progress_sink_failed", extra={"extra_fields": {"step_id": step.id}})


class PhaseOrchestrator:
    """Runs the planning and execution phases of a booking as ordered steps.

    Each call builds its own sequencer, so independent runs can execute
    concurrently as separate tasks. Failures of any kind are returned as a
    ``PhaseResult`` with ``success=False``; nothing is raised to the caller.

    Without an explicit session provider the caller's session is read from
    ``ATLAS_ACCESS_TOKEN``, which suits scripts and workers outside the API.
    """

    def __init__(
        self,
        intent_client: IntentResolutionClient,
        booking_store: BookingStatusStore,
        session_provider: SessionProvider | None = None,
        *,
        settings: WorkflowSettings | None = None,
        run_store: PhaseRunStore | None = None,
    ) -> None:
        self.intent_client = intent_client
        self.booking_store = booking_store
        self.session_provider = session_provider or EnvSessionProvider()
        self.settings = settings or WorkflowSettings()
        self.run_store = run_store

    async def run_planning_phase(
        self,
        request: PlanningRequest,
        sink: SinkLike = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> PhaseResult:
        booking_type = request.booking_type or infer_booking_type(request.user_message)
        run_id = str(uuid4())
        trace = StepTrace(run_id=run_id)
        run: _PhaseRun | None = None
        booking_id: str | None = None
        booking_token = None

        with log_context(run_id=run_id, phase="planning"):
            logger.info("planning_phase_started", extra={"extra_fields": {"booking_type": booking_type}})
            try:
                run = _PhaseRun(
                    StepSequencer(get_catalog("planning", booking_type)),
                    as_sink(sink),
                    trace,
                    cancel_event,
                )
                session: Session | None = None
                resolution: IntentResolution | None = None

                for template in get_catalog("planning", booking_type):
                    step_id = template.id
                    run.start(step_id, planning_active_details(step_id, user_message=request.user_message))

                    if step_id == "understand":
                        if session is None:
                            raise NoActiveSession()
                        resolution = await self.intent_client.resolve(
                            request.user_message,
                            access_token=session.access_token,
                            current_location=request.current_location,
                            booking_type=booking_type,
                        )
                        booking_id = resolution.booking_id or f"temp-{int(time.time() * 1000)}"
                        booking_token = bind_booking_id(booking_id)
                        trace.booking_id = booking_id
                    else:
                        await asyncio.sleep(self.settings.step_delay_s)
                        if step_id == "authenticate":
                            session = await self.session_provider.get_session()
                            if session is None:
                                raise NoActiveSession()

                    run.finish(
                        step_id,
                        planning_completed_details(
                            step_id,
                            booking_type=resolution.booking_type if resolution else booking_type,
                            session=session,
                            location=request.current_location,
                            intent=resolution.intent if resolution else None,
                            option_count=len(resolution.options) if resolution else 0,
                            booking_id=booking_id,
                        ),
                    )

                if resolution is None:
                    raise ConfigurationError(f"planning catalog for {booking_type} has no understand step")

                result = PhaseResult(
                    success=True,
                    phase="planning",
                    steps=run.sequencer.snapshot(),
                    booking_id=booking_id,
                    booking_type=resolution.booking_type,
                    intent=resolution.intent,
                    options=resolution.options,
                    proposal=resolution.proposal,
                    agent_run_id=resolution.agent_run_id,
                )
            except Exception as exc:
                result = self._failure("planning", run, exc, booking_id=booking_id, booking_type=booking_type)

            logger.info(
                "planning_phase_completed",
                extra={"extra_fields": {"success": result.success, "error": result.error}},
            )
            if booking_token is not None:
                booking_id_var.reset(booking_token)
            self._record_run(run_id, result, trace)
            return result

    async def run_execution_phase(
        self,
        booking_id: str,
        selected_option: Any,
        sink: SinkLike = None,
        *,
        booking_type: str = "flight",
        cancel_event: asyncio.Event | None = None,
    ) -> PhaseResult:
        run_id = str(uuid4())
        trace = StepTrace(run_id=run_id, booking_id=booking_id)
        run: _PhaseRun | None = None

        with log_context(run_id=run_id, booking_id=booking_id, phase="booking"):
            logger.info("execution_phase_started", extra={"extra_fields": {"booking_type": booking_type}})
            try:
                templates = get_catalog("booking", booking_type)
                if len(templates) != len(BOOKING_ROLES):
                    raise ConfigurationError(f"booking catalog for {booking_type} must have {len(BOOKING_ROLES)} steps")
                run = _PhaseRun(StepSequencer(templates), as_sink(sink), trace, cancel_event)

                for template, role in zip(templates, BOOKING_ROLES):
                    run.start(template.id, booking_active_details(role, selected_option))
                    await asyncio.sleep(self.settings.step_delay_s)
                    if role == "payment":
                        await asyncio.sleep(self.settings.payment_settle_s)
                    elif role == "confirm":
                        await self.booking_store.update_status(booking_id, "booked")
                    run.finish(template.id, booking_completed_details(role, selected_option, booking_id=booking_id))

                result = PhaseResult(
                    success=True,
                    phase="booking",
                    steps=run.sequencer.snapshot(),
                    booking_id=booking_id,
                    booking_type=booking_type,
                )
            except Exception as exc:
                result = self._failure("booking", run, exc, booking_id=booking_id, booking_type=booking_type)

            logger.info(
                "execution_phase_completed",
                extra={"extra_fields": {"success": result.success, "error": result.error}},
            )
            self._record_run(run_id, result, trace)
            return result

    def _failure(
        self,
        phase: PhaseName,
        run: _PhaseRun | None,
        exc: Exception,
        *,
        booking_id: str | None,
        booking_type: str,
    ) -> PhaseResult:
        logger.warning(
            f"{phase}_phase_failed",
            extra={"extra_fields": {"exc_type": exc.__class__.__name__, "error": str(exc)}},
        )
        steps: tuple[Step, ...] = ()
        if run is not None:
            run.fail_current()
            steps = run.sequencer.snapshot()
        return PhaseResult(
            success=False,
            phase=phase,
            steps=steps,
            booking_id=booking_id,
            booking_type=booking_type if booking_type in BOOKING_TYPES else None,
            error=str(exc) or exc.__class__.__name__,
        )

    def _record_run(self, run_id: str, result: PhaseResult, trace: StepTrace) -> None:
        if self.run_store is None:
            return
        record = PhaseRunRecord(
            run_id=run_id,
            ts_iso=datetime.now(timezone.utc).isoformat(),
            phase=result.phase,
            booking_id=result.booking_id,
            booking_type=result.booking_type,
            agent_run_id=result.agent_run_id,
            success=result.success,
            error=result.error,
            steps=[step.model_dump() for step in result.steps],
            trace_events=trace.events,
        )
        try:
            self.run_store.append(record)
        except OSError:
            logger.exception("phase_run_record_failed")
