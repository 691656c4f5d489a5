from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

BookingType = Literal["flight", "ride", "doctor"]
PhaseName = Literal["planning", "booking"]
StepPhase = Literal["planning", "searching", "booking", "confirmation"]
StepStatus = Literal["pending", "active", "completed", "error"]

PENDING: StepStatus = "pending"
ACTIVE: StepStatus = "active"
COMPLETED: StepStatus = "completed"
ERROR: StepStatus = "error"


class StepDetailItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str
    icon: str | None = None


class StepDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: str | None = None
    secondary: str | None = None
    items: tuple[StepDetailItem, ...] = ()
    extra: dict[str, Any] = Field(default_factory=dict)


class StepTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    phase: StepPhase
    label: str
    description: str
    icon: str | None = None
    color: str | None = None
    accent_color: str | None = None


class Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    position: int
    phase: StepPhase
    label: str
    description: str
    status: StepStatus = PENDING
    details: StepDetails | None = None
    icon: str | None = None
    color: str | None = None
    accent_color: str | None = None

    @classmethod
    def from_template(cls, template: StepTemplate, position: int) -> "Step":
        return cls(position=position, **template.model_dump())


class Location(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    latitude: float
    longitude: float
    city: str | None = None
    nearest_airport: str | None = Field(default=None, alias="nearestAirport")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PlanningRequest(BaseModel):
    user_message: str
    current_location: Location | None = None
    booking_type: BookingType | None = None


class BookingIntent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    booking_type: BookingType = Field(default="flight", alias="bookingType")
    destination: str | None = None
    origin: str | None = None
    depart_date: str | None = Field(default=None, alias="departDate")
    return_date: str | None = Field(default=None, alias="returnDate")
    budget: float | None = None
    cabin_class: str | None = Field(default=None, alias="cabinClass")
    nonstop_only: bool | None = Field(default=None, alias="nonstopOnly")
    travelers: int | None = None
    pickup_location: dict[str, Any] | None = Field(default=None, alias="pickupLocation")
    dropoff_location: dict[str, Any] | None = Field(default=None, alias="dropoffLocation")
    pickup_address: str | None = Field(default=None, alias="pickupAddress")
    dropoff_address: str | None = Field(default=None, alias="dropoffAddress")
    ride_type: str | None = Field(default=None, alias="rideType")
    scheduled_time: str | None = Field(default=None, alias="scheduledTime")
    specialty: str | None = None
    appointment_type: str | None = Field(default=None, alias="appointmentType")
    preferred_date: str | None = Field(default=None, alias="preferredDate")
    symptoms: tuple[str, ...] = ()


class FlightOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    id: str
    carrier: str = "Unknown Airline"
    flight_number: str | None = Field(default=None, alias="flightNumber")
    price: float = 0.0
    currency: str = "USD"
    duration: float | str | None = None
    stops: int = 0
    departure_time: str | None = Field(default=None, alias="departureTime")
    arrival_time: str | None = Field(default=None, alias="arrivalTime")
    cabin_class: str | None = Field(default=None, alias="cabinClass")

    @model_validator(mode="before")
    @classmethod
    def _fill_carrier_and_price(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if not payload.get("carrier") and payload.get("airline"):
            payload["carrier"] = payload["airline"]
        if payload.get("price") is None and payload.get("total_amount") is not None:
            payload["price"] = payload["total_amount"]
        return payload


class RideOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    id: str
    provider: str = "Unknown"
    vehicle_type: str = Field(default="Standard", alias="vehicleType")
    price: float = 0.0
    price_max: float | None = Field(default=None, alias="priceMax")
    currency: str = "USD"
    eta: float | None = None
    duration: float | None = None
    distance: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _unpack_name_and_fare_range(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if not payload.get("vehicleType") and not payload.get("vehicle_type") and payload.get("name"):
            payload["vehicleType"] = payload["name"]
        price = payload.get("price")
        if isinstance(price, dict):
            low, high = price.get("min"), price.get("max")
            payload["price"] = low if low is not None else (high if high is not None else 0.0)
            payload.setdefault("priceMax", high)
        return payload


class DoctorOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    id: str
    name: str
    specialty: str | None = None
    rating: float | None = None
    available_times: list[str] = Field(default_factory=list, alias="availableTimes")
    location: str | None = None
    telehealth: bool = False


BookingOption = Union[FlightOption, RideOption, DoctorOption]


class Proposal(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class PhaseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    phase: PhaseName
    steps: tuple[Step, ...] = ()
    booking_id: str | None = None
    booking_type: BookingType | None = None
    intent: BookingIntent | None = None
    options: tuple[BookingOption, ...] = ()
    proposal: Proposal | None = None
    agent_run_id: str | None = None
    error: str | None = None
