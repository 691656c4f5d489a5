from __future__ import annotations

from .errors import ConfigurationError
from .schemas import StepTemplate

BOOKING_TYPES: tuple[str, ...] = ("flight", "ride", "doctor")
PHASES: tuple[str, ...] = ("planning", "booking")

# (id, phase, label, description, icon, color, accent_color)
_Row = tuple[str, str, str, str, str, str, str]

_PLANNING_ROWS: tuple[_Row, ...] = (
    ("connect", "planning", "Connecting", "Establishing secure connection to Atlas AI...", "radio-outline", "#6366F1", "#818CF8"),
    ("authenticate", "planning", "Authenticating", "Verifying your identity...", "shield-checkmark-outline", "#8B5CF6", "#A78BFA"),
    ("location", "planning", "Locating", "Detecting your current location...", "location-outline", "#EC4899", "#F472B6"),
    ("understand", "planning", "Understanding", "Analyzing your {noun} request with AI...", "bulb-outline", "#F59E0B", "#FBBF24"),
    ("dates", "planning", "Processing Dates", "Calculating optimal {noun} dates...", "calendar-outline", "#10B981", "#34D399"),
    ("preferences", "planning", "Preferences", "Applying your {noun} preferences...", "options-outline", "#06B6D4", "#22D3EE"),
    ("create_trip", "planning", "Creating {record}", "Saving {record_lower} to your account...", "create-outline", "#6366F1", "#818CF8"),
    ("proposal", "planning", "Proposal Ready", "Your {record_lower} proposal is ready for review!", "document-text-outline", "#10B981", "#34D399"),
)

_PLANNING_WORDING: dict[str, dict[str, str]] = {
    "flight": {"noun": "travel", "record": "Trip", "record_lower": "trip"},
    "ride": {"noun": "ride", "record": "Booking", "record_lower": "ride"},
    "doctor": {"noun": "appointment", "record": "Booking", "record_lower": "appointment"},
}

_BOOKING_ROWS: dict[str, tuple[_Row, ...]] = {
    "flight": (
        ("search_flights", "searching", "Searching Flights", "Querying 500+ airlines worldwide...", "airplane-outline", "#3B82F6", "#60A5FA"),
        ("compare_prices", "searching", "Comparing Prices", "Analyzing fare classes and prices...", "stats-chart-outline", "#8B5CF6", "#A78BFA"),
        ("rank_options", "searching", "Ranking Options", "Finding the best value flights...", "trophy-outline", "#F59E0B", "#FBBF24"),
        ("select_flight", "booking", "Selecting Flight", "Reserving your preferred option...", "checkmark-circle-outline", "#10B981", "#34D399"),
        ("seat_selection", "booking", "Seat Selection", "Assigning your preferred seats...", "grid-outline", "#EC4899", "#F472B6"),
        ("passenger_info", "booking", "Passenger Details", "Verifying traveler information...", "person-outline", "#6366F1", "#818CF8"),
        ("payment", "booking", "Processing Payment", "Securing your booking...", "card-outline", "#059669", "#10B981"),
        ("confirmation", "confirmation", "Booking Confirmed", "Your trip is booked!", "checkmark-done-outline", "#10B981", "#34D399"),
        ("calendar_sync", "confirmation", "Calendar Sync", "Adding events to your calendar...", "calendar-number-outline", "#3B82F6", "#60A5FA"),
        ("itinerary", "confirmation", "Itinerary Ready", "Your complete itinerary is ready!", "document-attach-outline", "#8B5CF6", "#A78BFA"),
    ),
    "ride": (
        ("search_drivers", "searching", "Searching Drivers", "Finding available drivers nearby...", "search-outline", "#8B5CF6", "#A78BFA"),
        ("compare_prices", "searching", "Comparing Prices", "Comparing Uber and Lyft estimates...", "stats-chart-outline", "#3B82F6", "#60A5FA"),
        ("rank_options", "searching", "Ranking Options", "Finding the fastest, best value ride...", "trophy-outline", "#F59E0B", "#FBBF24"),
        ("select_ride", "booking", "Selecting Ride", "Reserving your preferred ride...", "car-outline", "#10B981", "#34D399"),
        ("vehicle_selection", "booking", "Vehicle Selection", "Confirming vehicle type and capacity...", "car-sport-outline", "#EC4899", "#F472B6"),
        ("rider_info", "booking", "Rider Details", "Verifying pickup and rider information...", "person-outline", "#6366F1", "#818CF8"),
        ("payment", "booking", "Processing Payment", "Authorizing your fare...", "card-outline", "#059669", "#10B981"),
        ("confirmation", "confirmation", "Ride Confirmed", "Your driver is on the way!", "checkmark-done-outline", "#10B981", "#34D399"),
        ("calendar_sync", "confirmation", "Calendar Sync", "Adding the pickup to your calendar...", "calendar-number-outline", "#3B82F6", "#60A5FA"),
        ("itinerary", "confirmation", "Trip Details Ready", "Your ride details are ready!", "document-attach-outline", "#8B5CF6", "#A78BFA"),
    ),
    "doctor": (
        ("find_specialists", "searching", "Finding Specialists", "Searching for doctors near you...", "medkit-outline", "#8B5CF6", "#A78BFA"),
        ("compare_options", "searching", "Comparing Options", "Comparing ratings, distance and coverage...", "stats-chart-outline", "#3B82F6", "#60A5FA"),
        ("rank_options", "searching", "Ranking Options", "Finding the best fit for you...", "trophy-outline", "#F59E0B", "#FBBF24"),
        ("select_doctor", "booking", "Selecting Doctor", "Reserving your preferred doctor...", "person-add-outline", "#10B981", "#34D399"),
        ("slot_selection", "booking", "Time Slot", "Holding your appointment slot...", "time-outline", "#EC4899", "#F472B6"),
        ("patient_info", "booking", "Patient Details", "Verifying patient and insurance details...", "person-outline", "#6366F1", "#818CF8"),
        ("payment", "booking", "Processing Copay", "Securing your appointment...", "card-outline", "#059669", "#10B981"),
        ("confirmation", "confirmation", "Appointment Confirmed", "Your appointment is booked!", "checkmark-done-outline", "#10B981", "#34D399"),
        ("calendar_sync", "confirmation", "Calendar Sync", "Adding the appointment to your calendar...", "calendar-number-outline", "#3B82F6", "#60A5FA"),
        ("itinerary", "confirmation", "Visit Details Ready", "Your visit details are ready!", "document-attach-outline", "#8B5CF6", "#A78BFA"),
    ),
}


def _template(row: _Row, wording: dict[str, str] | None = None) -> StepTemplate:
    step_id, phase, label, description, icon, color, accent_color = row
    if wording:
        label = label.format(**wording)
        description = description.format(**wording)
    return StepTemplate(
        id=step_id,
        phase=phase,
        label=label,
        description=description,
        icon=icon,
        color=color,
        accent_color=accent_color,
    )


def get_catalog(phase: str, booking_type: str) -> tuple[StepTemplate, ...]:
    """Return the ordered step templates for a phase and booking type.

    Templates are built fresh on every call so no run can observe another
    run's data.
    """
    if booking_type not in BOOKING_TYPES:
        raise ConfigurationError(f"unsupported booking type: {booking_type!r}")
    if phase == "planning":
        wording = _PLANNING_WORDING[booking_type]
        return tuple(_template(row, wording) for row in _PLANNING_ROWS)
    if phase == "booking":
        return tuple(_template(row) for row in _BOOKING_ROWS[booking_type])
    raise ConfigurationError(f"unsupported phase: {phase!r}")


def step_ids(phase: str, booking_type: str) -> list[str]:
    return [template.id for template in get_catalog(phase, booking_type)]
