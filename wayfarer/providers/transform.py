from typing import List, NamedTuple, Optional

from wayfarer.providers.links import travel_search_url
from wayfarer.providers.payloads import FlightItinerary, FlightSearchPayload, TrainRow
from wayfarer.types import Availability, TransportKind, TransportOption, is_eco_friendly
from wayfarer.utils.dates import elapsed_minutes, format_duration_minutes, parse_duration_minutes


class SeatStatus(NamedTuple):
    availability: Availability
    detail: Optional[str]
    fare: Optional[float] = None


# Defaults when the dependent seat lookup gives nothing usable
NO_ROWS = SeatStatus(Availability.UNKNOWN, "Not Available")
LOOKUP_FAILED = SeatStatus(Availability.UNKNOWN, "Error")


def format_price(currency: str, amount) -> str:
    if amount is None:
        return f"{currency} N/A"
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return f"{currency} {amount}"


def classify_seat_status(status: Optional[str]) -> Availability:
    """Map an IRCTC status string ('AVAILABLE-0045', 'GNWL23/WL10', 'REGRET') to Availability.

    Order matters: 'NOT AVAILABLE' contains 'AVAILABLE'.
    """
    if not status:
        return Availability.UNKNOWN
    s = status.upper().replace("_", " ")
    if any(t in s for t in ("REGRET", "NOT AVAILABLE", "CANCEL", "DEPARTED", "CHART PREPARED")):
        return Availability.SOLD_OUT
    if "WL" in s or "RAC" in s or "WAIT" in s:
        return Availability.WAITLISTED
    if "AVAILABLE" in s or s.startswith("AVL") or "CURR AVBL" in s:
        return Availability.AVAILABLE
    return Availability.UNKNOWN


def _flight_option(itin: FlightItinerary, origin_code: str, destination_code: str, date: str) -> TransportOption:
    first, last = itin.legs[0], itin.legs[-1]
    carrier = first.carriers.marketing[0].name
    airborne = sum(seg.duration for seg in itin.legs)
    # Layovers count; a clock span below the airborne total means mismatched time zones
    elapsed = elapsed_minutes(first.departure_time, last.arrival_time)
    minutes = elapsed if elapsed is not None and elapsed >= airborne else airborne
    stops = len(itin.legs) - 1

    details = f"Flight {carrier} {first.flight_number}"
    if first.departure_time and last.arrival_time:
        details += f", Dep: {first.departure_time}, Arr: {last.arrival_time}"
    if stops:
        details += f" ({stops} stop{'s' if stops != 1 else ''})"

    link = itin.deep_link
    if not link or not link.startswith(("http://", "https://")):
        link = travel_search_url("flights", origin_code, destination_code, date)
    return TransportOption(
        kind=TransportKind.FLIGHT,
        provider=carrier,
        descriptor=details,
        duration=format_duration_minutes(minutes),
        duration_minutes=minutes,
        price=itin.price.formatted,
        booking_link=link,
        eco_friendly=is_eco_friendly(TransportKind.FLIGHT),
        availability=Availability.AVAILABLE,
    )


def from_flight_payload(payload: FlightSearchPayload, origin_code: str, destination_code: str,
                        date: str, limit: int = 4) -> List[TransportOption]:
    if payload.data is None:
        return []
    return [
        _flight_option(itin, origin_code, destination_code, date)
        for itin in payload.data.flights[:limit]
    ]


def from_train_row(row: TrainRow, origin_code: str, destination_code: str, date: str,
                   currency: str, seat: SeatStatus) -> TransportOption:
    details = f"Train {row.train_number} - {row.train_name}".rstrip(" -")
    if row.from_std and row.to_sta:
        details += f", Dep: {row.from_std}, Arr: {row.to_sta}"
    minutes = parse_duration_minutes(row.duration)
    return TransportOption(
        kind=TransportKind.TRAIN,
        provider="Indian Railways",
        descriptor=details,
        duration=format_duration_minutes(minutes) if minutes is not None else (row.duration or ""),
        duration_minutes=minutes,
        price=format_price(currency, seat.fare),
        booking_link=travel_search_url("trains", origin_code, destination_code, date),
        eco_friendly=is_eco_friendly(TransportKind.TRAIN),
        availability=seat.availability,
        availability_detail=seat.detail,
    )
