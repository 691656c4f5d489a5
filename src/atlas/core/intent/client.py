from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from atlas.core.http.client import new_async_client, send_request
from atlas.core.http.errors import AtlasHTTPNetworkError, AtlasHTTPStatusError
from atlas.core.logging.redact import redact_headers
from atlas.core.workflow.catalog import BOOKING_TYPES
from atlas.core.workflow.errors import NetworkError
from atlas.core.workflow.schemas import (
    BookingIntent,
    BookingOption,
    DoctorOption,
    FlightOption,
    Location,
    Proposal,
    RideOption,
)

logger = logging.getLogger("atlas.intent")

_OPTION_MODELS: tuple[tuple[str, type[FlightOption] | type[RideOption] | type[DoctorOption]], ...] = (
    ("flights", FlightOption),
    ("rides", RideOption),
    ("rideOptions", RideOption),
    ("doctors", DoctorOption),
)


@dataclass(frozen=True)
class IntentResolution:
    booking_type: str
    intent: BookingIntent
    options: tuple[BookingOption, ...] = ()
    proposal: Proposal = field(default_factory=Proposal)
    booking_id: str | None = None
    agent_run_id: str | None = None


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _parse_options(data: dict[str, Any]) -> tuple[BookingOption, ...]:
    for key, model in _OPTION_MODELS:
        raw_items = data.get(key)
        if not raw_items:
            continue
        options: list[BookingOption] = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            try:
                options.append(model.model_validate(_drop_none(raw)))
            except ValidationError as exc:
                logger.warning(
                    "intent_option_skipped",
                    extra={"extra_fields": {"option_kind": key, "option_id": raw.get("id"), "errors": exc.error_count()}},
                )
        if not options:
            raise NetworkError(f"Invalid {key} payload: none of {len(raw_items)} option(s) could be read")
        return tuple(options)
    return ()


def parse_resolution(data: dict[str, Any], fallback_booking_type: str = "flight") -> IntentResolution:
    booking_type = data.get("bookingType") or data.get("type")
    if booking_type not in BOOKING_TYPES:
        booking_type = fallback_booking_type

    raw_intent = data.get("intent")
    intent_payload = _drop_none(raw_intent) if isinstance(raw_intent, dict) else {}
    intent_payload["bookingType"] = booking_type
    try:
        intent = BookingIntent.model_validate(intent_payload)
    except ValidationError as exc:
        raise NetworkError(f"Invalid intent payload: {exc.error_count()} error(s)") from exc

    raw_proposal = data.get("proposal")
    proposal = Proposal()
    if isinstance(raw_proposal, dict):
        details = raw_proposal.get("details")
        if not isinstance(details, dict):
            details = {key: value for key, value in raw_proposal.items() if key != "title"}
        proposal = Proposal(title=str(raw_proposal.get("title") or ""), details=details)

    booking_id = data.get("bookingId") or data.get("tripId")
    return IntentResolution(
        booking_type=booking_type,
        intent=intent,
        options=_parse_options(data),
        proposal=proposal,
        booking_id=str(booking_id) if booking_id else None,
        agent_run_id=str(data["agentRunId"]) if data.get("agentRunId") else None,
    )


class IntentResolutionClient:
    """Client for the remote service that turns a free-form request into a booking intent."""

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._transport = transport

    async def resolve(
        self,
        user_message: str,
        *,
        access_token: str,
        current_location: Location | None = None,
        booking_type: str | None = None,
    ) -> IntentResolution:
        body: dict[str, Any] = {"userMessage": user_message}
        if current_location is not None:
            body["currentLocation"] = current_location.to_wire()
        if booking_type:
            body["bookingType"] = booking_type
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        logger.debug(
            "intent_request_started",
            extra={"extra_fields": {"url": self.url, "headers": redact_headers(headers)}},
        )

        async with new_async_client(self.timeout_s, transport=self._transport) as client:
            try:
                response = await send_request(client, "POST", self.url, headers=headers, json=body)
            except AtlasHTTPStatusError as exc:
                raise NetworkError(f"Server error: {exc.body}", status_code=exc.status_code) from exc
            except AtlasHTTPNetworkError as exc:
                raise NetworkError(str(exc)) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError("Server error: response was not valid JSON") from exc
        if not isinstance(data, dict):
            raise NetworkError("Server error: unexpected response shape")
        if data.get("success") is False:
            raise NetworkError(str(data.get("error") or "Intent resolution failed"))

        return parse_resolution(data, fallback_booking_type=booking_type or "flight")
