"""Raw response shapes for each upstream provider.

Each upstream speaks its own dialect; these models pin down exactly which
fields we read so the mapping in ``transform`` never does ad hoc dict access.
Unknown fields are ignored. A payload that fails validation is a
``MalformedPayload`` at the adapter boundary.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- booking-com15: searchDestination / searchFlights ---

class AirportCandidate(_Payload):
    id: str = ""                       # e.g. 'BOM.AIRPORT' or 'BOM.CITY'
    code: Optional[str] = None
    name: str = ""
    city_name: Optional[str] = Field(None, alias="cityName")

    @property
    def iata(self) -> str:
        if self.code:
            return self.code.upper()
        return self.id.split(".", 1)[0].upper()


class AirportLookupPayload(_Payload):
    data: List[AirportCandidate] = Field(default_factory=list)


class Carrier(_Payload):
    name: str


class Carriers(_Payload):
    marketing: List[Carrier] = Field(min_length=1)


class FlightSegment(_Payload):
    flight_number: str = Field(alias="flightNumber")
    duration: int                      # minutes
    departure_time: Optional[str] = Field(None, alias="departureTime")
    arrival_time: Optional[str] = Field(None, alias="arrivalTime")
    carriers: Carriers

    @field_validator("flight_number", mode="before")
    @classmethod
    def coerce_number(cls, v):
        return str(v)


class FlightPrice(_Payload):
    formatted: str


class FlightItinerary(_Payload):
    legs: List[FlightSegment] = Field(min_length=1)
    price: FlightPrice
    deep_link: Optional[str] = Field(None, alias="deepLink")


class FlightData(_Payload):
    flights: List[FlightItinerary] = Field(default_factory=list)


class FlightSearchPayload(_Payload):
    data: Optional[FlightData] = None


# --- indian-railway-api: station lookup ---

class StationCandidate(_Payload):
    name: str = ""
    code: str


class StationLookupPayload(_Payload):
    data: List[StationCandidate] = Field(default_factory=list)


# --- irctc1: trainBetweenStations / checkSeatAvailability / checkPrice ---

class TrainRow(_Payload):
    train_number: str
    train_name: str = ""
    from_std: Optional[str] = None     # scheduled departure, 'HH:MM'
    to_sta: Optional[str] = None       # scheduled arrival, 'HH:MM'
    duration: Optional[str] = None     # 'HH:MM'
    class_type: List[str] = Field(default_factory=list)

    @field_validator("train_number", mode="before")
    @classmethod
    def coerce_number(cls, v):
        return str(v)


class TrainSearchPayload(_Payload):
    data: List[TrainRow] = Field(default_factory=list)


class SeatRow(_Payload):
    date: Optional[str] = None
    current_status: Optional[str] = None
    total_fare: Optional[float] = None


def _as_rows(v):
    # irctc1 returns either a list of rows or a single bare row
    if v is None:
        return []
    if isinstance(v, dict):
        return [v]
    return v


class SeatAvailabilityPayload(_Payload):
    data: List[SeatRow] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def coerce_rows(cls, v):
        return _as_rows(v)


class FarePayload(_Payload):
    data: List[SeatRow] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def coerce_rows(cls, v):
        return _as_rows(v)

    @property
    def total_fare(self) -> Optional[float]:
        for row in self.data:
            if row.total_fare is not None:
                return row.total_fare
        return None
