from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request

from atlas.core.bookings.rest_store import RestBookingStore
from atlas.core.bookings.store import BookingStatusStore, BookingStore
from atlas.core.intent.client import IntentResolutionClient
from atlas.core.runs.store import PhaseRunStore
from atlas.core.settings import WorkflowSettings, state_dir
from atlas.core.workflow.errors import ConfigurationError

from .auth import session_from_request


@lru_cache(maxsize=1)
def get_settings() -> WorkflowSettings:
    return WorkflowSettings.from_env()


@lru_cache(maxsize=1)
def get_booking_store() -> BookingStatusStore:
    settings = get_settings()
    if settings.store_mode == "rest":
        if not settings.store_url or not settings.store_key:
            raise ConfigurationError("ATLAS_STORE_URL and ATLAS_STORE_KEY must be set when ATLAS_STORE_MODE=rest")
        return RestBookingStore(settings.store_url, settings.store_key)
    return BookingStore(state_dir=state_dir())


@lru_cache(maxsize=1)
def get_run_store() -> PhaseRunStore:
    return PhaseRunStore(state_dir=state_dir(), max_records=get_settings().runs_max)


@lru_cache(maxsize=1)
def get_intent_client() -> IntentResolutionClient:
    settings = get_settings()
    return IntentResolutionClient(settings.intent_url, timeout_s=settings.intent_timeout_s)


def get_request_booking_store(
    request: Request,
    store: BookingStatusStore = Depends(get_booking_store),
) -> BookingStatusStore:
    """Booking store for one request; the REST store writes with the caller's token."""
    if isinstance(store, RestBookingStore):
        session = session_from_request(request)
        return store.with_access_token(session.access_token if session else None)
    return store
