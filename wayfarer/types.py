import re
from enum import Enum
from typing import Optional, List
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransportKind(str, Enum):
    FLIGHT = "flight"
    TRAIN = "train"
    BUS = "bus"
    DRIVING = "driving"
    TRANSIT = "transit"
    TAXI = "taxi"
    RICKSHAW = "rickshaw"
    WALK = "walk"

    @property
    def is_local_transfer(self) -> bool:
        return self in (TransportKind.TAXI, TransportKind.RICKSHAW, TransportKind.WALK, TransportKind.TRANSIT)


class Availability(str, Enum):
    AVAILABLE = "Available"
    WAITLISTED = "Waitlist"
    SOLD_OUT = "Sold Out"
    UNKNOWN = "Unknown"
    NOT_APPLICABLE = "N/A"

    @property
    def is_viable(self) -> bool:
        return self is not Availability.SOLD_OUT


# Rail, bus and walking are eco-friendly; everything motorised and private is not.
# City transit counts only when it runs on rail (metro, suburban trains).
_ECO_KINDS = {TransportKind.TRAIN, TransportKind.BUS, TransportKind.WALK}

# Characters left untouched when escaping a booking URL; '%' survives only as a %XX escape
_URL_SAFE = ":/?#[]@!$&'()*+,;=~-._"
_PERCENT_ESCAPE = re.compile(r"(%[0-9A-Fa-f]{2})")


_AVAILABILITY_ALIASES = {
    "available": Availability.AVAILABLE,
    "waitlist": Availability.WAITLISTED,
    "waitlisted": Availability.WAITLISTED,
    "sold out": Availability.SOLD_OUT,
    "sold-out": Availability.SOLD_OUT,
    "unknown": Availability.UNKNOWN,
    "n/a": Availability.NOT_APPLICABLE,
    "not-applicable": Availability.NOT_APPLICABLE,
}


def is_eco_friendly(kind: TransportKind, via_rail: bool = False) -> bool:
    if kind is TransportKind.TRANSIT:
        return via_rail
    return kind in _ECO_KINDS


class _Wire(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(populate_by_name=True)


class TransportOption(_Wire):
    kind: TransportKind = Field(alias="type")
    provider: str
    descriptor: str = Field(alias="details")
    duration: str = ""                  # opaque, e.g. '2h 5m' or '45-60 min'
    duration_minutes: Optional[int] = Field(None, alias="durationMinutes")
    price: str                          # currency-tagged, e.g. 'INR 1200'
    booking_link: str = Field(alias="bookingLink")
    eco_friendly: bool = Field(False, alias="ecoFriendly")
    availability: Availability = Availability.UNKNOWN
    availability_detail: Optional[str] = Field(None, alias="availabilityDetail")

    @field_validator("availability", mode="before")
    @classmethod
    def coerce_availability(cls, v):
        if isinstance(v, Availability) or v is None:
            return v or Availability.UNKNOWN
        return _AVAILABILITY_ALIASES.get(str(v).strip().lower(), Availability.UNKNOWN)

    @field_validator("booking_link")
    @classmethod
    def escape_booking_link(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("booking link must be an absolute http(s) URL")
        return "".join(
            part if _PERCENT_ESCAPE.fullmatch(part) else quote(part, safe=_URL_SAFE)
            for part in _PERCENT_ESCAPE.split(v)
        )


class Highlights(_Wire):
    best: Optional[TransportOption] = None
    cheapest: Optional[TransportOption] = None
    eco: Optional[TransportOption] = None
    other: List[TransportOption] = Field(default_factory=list)


class JourneyLeg(_Wire):
    sequence: int = Field(alias="leg", ge=1)
    description: str
    options: List[TransportOption] = Field(default_factory=list)
    highlights: Highlights = Field(default_factory=Highlights)


class Journey(_Wire):
    legs: List[JourneyLeg] = Field(default_factory=list, alias="journey")

    def is_empty(self) -> bool:
        return not any(leg.options for leg in self.legs)


class TravelPreferences(_Wire):
    plane_class: Optional[str] = Field(None, alias="planeClass", description="economy, business, first")
    train_class: Optional[str] = Field(None, alias="trainClass", description="ac-3-tier, sleeper, or a raw code like 3A")
    max_train_hours: Optional[float] = Field(None, alias="maxTrainHours")


class JourneyRequest(_Wire):
    origin: str = Field(..., description="Free-text place, e.g. 'Vapi, India'")
    destination: str
    date: str = Field(..., description="YYYY-MM-DD")
    currency: Optional[str] = None
    preferences: TravelPreferences = Field(default_factory=TravelPreferences)


class DayPlan(_Wire):
    day: int
    title: str
    summary: str = ""


class Itinerary(_Wire):
    title: str
    destination: str
    days: List[DayPlan] = Field(default_factory=list)
    journey: Journey = Field(default_factory=Journey)
