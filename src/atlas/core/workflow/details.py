from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from atlas.core.auth.session import Session

from .schemas import BookingIntent, Location, StepDetailItem, StepDetails

BOOKING_ROLES: tuple[str, ...] = (
    "search",
    "compare",
    "rank",
    "select",
    "seats",
    "passengers",
    "payment",
    "confirm",
    "calendar_sync",
    "itinerary",
)

_OPTION_NOUNS = {"flight": "flights", "ride": "rides", "doctor": "appointments"}


def _item(label: str, value: Any, icon: str | None = None) -> StepDetailItem:
    return StepDetailItem(label=label, value=str(value), icon=icon)


def make_details(primary: str, *items: StepDetailItem, **extra: Any) -> StepDetails:
    return StepDetails(primary=primary, items=tuple(items), extra=extra)


def format_date(value: str | None) -> str:
    if not value:
        return "TBD"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "TBD"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_budget(budget: float | None, default: str = "$2,000") -> str:
    if budget is None:
        return default
    return f"${budget:,.0f}"


def option_field(option: Any, *names: str) -> Any:
    """Read the first present field of an option given as a model or a plain mapping."""
    if option is None:
        return None
    for name in names:
        if isinstance(option, Mapping):
            value = option.get(name)
        else:
            value = getattr(option, name, None)
        if value not in (None, ""):
            return value
    return None


def _price(option: Any) -> str:
    price = option_field(option, "price")
    high = option_field(option, "price_max", "priceMax")
    if isinstance(price, Mapping):
        price, high = price.get("min"), price.get("max")
    low = f"${price if price is not None else 0}"
    if high is not None and high != price:
        return f"{low}-${high}"
    return low


def _truncate(text: str, limit: int = 50) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def planning_active_details(step_id: str, *, user_message: str) -> StepDetails | None:
    if step_id == "location":
        return make_details("Scanning GPS...")
    if step_id == "understand":
        return make_details(
            "Processing natural language...",
            _item("Input", _truncate(user_message), "chatbubble"),
        )
    return None


def planning_completed_details(
    step_id: str,
    *,
    booking_type: str,
    session: Session | None = None,
    location: Location | None = None,
    intent: BookingIntent | None = None,
    option_count: int = 0,
    booking_id: str | None = None,
) -> StepDetails | None:
    if step_id == "connect":
        return make_details("Atlas AI Connected", _item("Status", "Secure connection established", "checkmark-circle"))
    if step_id == "authenticate":
        user = session.user_email if session and session.user_email else "Authenticated"
        return make_details("Identity Verified", _item("User", user, "person"))
    if step_id == "location":
        if location is None:
            return make_details("Using default location")
        return make_details(
            location.city or "Location detected",
            _item("City", location.city or "Unknown", "location"),
            _item("Airport", location.nearest_airport or "Detecting...", "airplane"),
        )
    if intent is None:
        return None
    if step_id == "understand":
        return make_details(
            f"Booking: {intent.destination or booking_type}",
            _item("Type", booking_type, "bookmark"),
            _item("Destination", intent.destination or "TBD", "flag"),
        )
    if step_id == "dates":
        return _dates_details(booking_type, intent)
    if step_id == "preferences":
        return _preferences_details(booking_type, intent)
    if step_id == "create_trip":
        return make_details(
            "Booking saved successfully",
            _item("Booking ID", booking_id[:8] if booking_id else "Created", "bookmark"),
        )
    if step_id == "proposal":
        noun = _OPTION_NOUNS.get(booking_type, "options")
        return make_details("Ready for your review!", _item("Options Found", f"{option_count} {noun}", "list"))
    return None


def _dates_details(booking_type: str, intent: BookingIntent) -> StepDetails:
    if booking_type == "ride":
        return make_details(
            "Pickup time confirmed",
            _item("Pickup", intent.scheduled_time or "Now", "time"),
        )
    if booking_type == "doctor":
        return make_details(
            "Appointment date calculated",
            _item("Preferred", format_date(intent.preferred_date), "calendar"),
        )
    return make_details(
        "Travel dates calculated",
        _item("Depart", format_date(intent.depart_date), "calendar"),
        _item("Return", format_date(intent.return_date), "calendar-outline"),
    )


def _preferences_details(booking_type: str, intent: BookingIntent) -> StepDetails:
    if booking_type == "ride":
        pickup = (intent.pickup_location or {}).get("address") or intent.pickup_address or "Current location"
        dropoff = (intent.dropoff_location or {}).get("address") or intent.dropoff_address or intent.destination or "TBD"
        return make_details(
            "Preferences applied",
            _item("Pickup", pickup, "navigate"),
            _item("Dropoff", dropoff, "flag"),
        )
    if booking_type == "doctor":
        return make_details(
            "Preferences applied",
            _item("Specialty", intent.specialty or "General Practice", "medkit"),
            _item("Visit", intent.appointment_type or "in-person", "person"),
        )
    return make_details(
        "Preferences applied",
        _item("Class", intent.cabin_class or "Economy", "ribbon"),
        _item("Budget", format_budget(intent.budget), "wallet"),
        _item("Travelers", f"{intent.travelers or 1} adult(s)", "people"),
    )


def booking_active_details(role: str, option: Any) -> StepDetails | None:
    name = option_field(option, "carrier", "provider", "name") or "option"
    if role == "search":
        return make_details("Contacting providers...")
    if role == "compare":
        return make_details("Analyzing prices...")
    if role == "select":
        return make_details(
            f"Reserving {name}...",
            _item("Option", option_field(option, "flight_number", "flightNumber", "vehicle_type", "vehicleType", "name") or "N/A", "bookmark"),
            _item("Price", _price(option), "card"),
        )
    if role == "payment":
        return make_details(
            "Processing payment...",
            _item("Amount", _price(option), "card"),
            _item("Method", "Secure payment", "shield-checkmark"),
        )
    if role == "confirm":
        return make_details("Generating confirmation...")
    if role == "calendar_sync":
        return make_details("Syncing calendar...")
    if role == "itinerary":
        return make_details("Preparing details...")
    return None


def booking_completed_details(role: str, option: Any, *, booking_id: str) -> StepDetails | None:
    if role == "search":
        return make_details("Options retrieved", _item("Options", "Multiple providers found", "checkmark"))
    if role == "compare":
        return make_details("Best prices found", _item("Savings", "Up to 30% off retail", "trending-down"))
    if role == "rank":
        best = option_field(option, "carrier", "provider", "name") or "Selected"
        return make_details("Top options selected", _item("Best Value", best, "trophy"))
    if role == "select":
        return make_details("Option reserved", _item("Status", "Hold confirmed", "lock-closed"))
    if role == "seats":
        return make_details("Preferences assigned", _item("Status", "Confirmed", "checkmark-circle"))
    if role == "passengers":
        return make_details("Details verified", _item("Status", "All details confirmed", "person-circle"))
    if role == "payment":
        return make_details("Payment successful!", _item("Transaction", "Confirmed", "checkmark-done"))
    if role == "confirm":
        return make_details(
            "Booking confirmed!",
            _item("Confirmation", f"#{booking_id[:8].upper()}", "receipt"),
            _item("Details", "Sent to email", "mail"),
        )
    if role == "calendar_sync":
        return make_details(
            "Calendar updated",
            _item("Events", "2 events added", "calendar-number"),
            _item("Reminders", "Set for 24h before", "notifications"),
        )
    if role == "itinerary":
        return make_details(
            "Booking ready!",
            _item("Details", "Available to view", "document"),
            _item("App", "View in Bookings tab", "calendar"),
        )
    return None
