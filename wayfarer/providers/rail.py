import asyncio
from typing import Any, List, Optional

from pydantic import ValidationError

from wayfarer.config import settings
from wayfarer.infrastructure.deadline import remaining_budget
from wayfarer.locations.resolver import LocationCodeResolver
from wayfarer.obs.logger import log_event, log_provider_failure
from wayfarer.providers.base import TransportAdapter
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.errors import MalformedPayload, ProviderError
from wayfarer.providers.payloads import FarePayload, SeatAvailabilityPayload, TrainRow, TrainSearchPayload
from wayfarer.providers.transform import LOOKUP_FAILED, NO_ROWS, SeatStatus, classify_seat_status, from_train_row
from wayfarer.types import TransportOption
from wayfarer.utils.dates import parse_duration_minutes

# UI class names -> IRCTC class codes
CLASS_CODES = {
    "ac-first-class": "1A",
    "ac-2-tier": "2A",
    "ac-3-tier": "3A",
    "sleeper": "SL",
    "chair-car": "CC",
}
RAW_CLASS_CODES = {"1A", "2A", "3A", "3E", "SL", "CC", "EC", "2S", "FC"}
DEFAULT_CLASS = "SL"
QUOTA = "GN"


def train_class_code(preference: Optional[str]) -> str:
    if not preference:
        return DEFAULT_CLASS
    p = preference.strip()
    if p.upper() in RAW_CLASS_CODES:
        return p.upper()
    return CLASS_CODES.get(p.lower(), DEFAULT_CLASS)


class RailAdapter(TransportAdapter):
    """Indian Railways search via irctc1 (RapidAPI).

    One search call, then per train a seat-availability and a fare call. A
    failed per-train call degrades that train's availability or fare; the
    train itself is still returned.
    """

    provider = "rail"
    availability_provider = "rail_availability"
    fare_provider = "rail_fare"

    def __init__(self, client: RapidApiClient, resolver: LocationCodeResolver, max_results: int = None):
        self.client = client
        self.resolver = resolver
        self.max_results = max_results or settings.PROVIDER_MAX_RESULTS

    async def _search(self, origin: str, destination: str, date: str, currency: str,
                      class_preference: Optional[str] = None, **filters: Any) -> List[TransportOption]:
        origin_code, destination_code = await asyncio.gather(
            self.resolver.resolve(origin), self.resolver.resolve(destination)
        )
        if not origin_code or not destination_code:
            log_event("rail_station_unresolved", level="WARNING", origin=origin, destination=destination,
                      origin_code=origin_code, destination_code=destination_code)
            return []

        raw = await self.client.get_json(
            self.provider,
            settings.RAIL_API_HOST,
            "/api/v3/trainBetweenStations",
            {"fromStationCode": origin_code, "toStationCode": destination_code, "dateOfJourney": date},
        )
        try:
            payload = TrainSearchPayload.model_validate(raw)
        except ValidationError as e:
            raise MalformedPayload(self.provider, str(e)) from e

        trains = payload.data
        max_hours = filters.get("max_hours")
        if max_hours:
            trains = [t for t in trains if _faster_than(t, max_hours)]
        trains = trains[:self.max_results]
        if not trains:
            return []

        class_code = train_class_code(class_preference)
        seats = await self._seat_statuses(trains, origin_code, destination_code, date, class_code)
        return [
            from_train_row(t, origin_code, destination_code, date, currency, seat)
            for t, seat in zip(trains, seats)
        ]

    async def _seat_statuses(self, trains: List[TrainRow], origin_code: str, destination_code: str,
                             date: str, class_code: str) -> List[SeatStatus]:
        """Seat and fare per train, bounded by the adapter deadline.

        Lookups still running when the deadline passes are cancelled and
        their trains read as LOOKUP_FAILED, so the search itself survives.
        """
        tasks = [
            asyncio.ensure_future(self._seat_status(t, origin_code, destination_code, date, class_code))
            for t in trains
        ]
        try:
            done, pending = await asyncio.wait(tasks, timeout=remaining_budget())
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            log_provider_failure(self.availability_provider, "timeout", trains=len(pending),
                                 error="seat lookups cut off by the search deadline")
        return [task.result() if task in done else LOOKUP_FAILED for task in tasks]

    async def _seat_status(self, train: TrainRow, origin_code: str, destination_code: str,
                           date: str, class_code: str) -> SeatStatus:
        seat, fare = await asyncio.gather(
            self._availability(train, origin_code, destination_code, date, class_code),
            self._fare(train, origin_code, destination_code, date, class_code),
        )
        if seat.fare is None and fare is not None:
            seat = seat._replace(fare=fare)
        return seat

    async def _availability(self, train: TrainRow, origin_code: str, destination_code: str,
                            date: str, class_code: str) -> SeatStatus:
        try:
            raw = await self.client.get_json(
                self.availability_provider,
                settings.RAIL_API_HOST,
                "/api/v1/checkSeatAvailability",
                {
                    "trainNo": train.train_number,
                    "classType": class_code,
                    "date": date,
                    "fromStationCode": origin_code,
                    "toStationCode": destination_code,
                    "quota": QUOTA,
                },
            )
            payload = SeatAvailabilityPayload.model_validate(raw)
        except Exception as e:
            reason = _failure_reason(e)
            log_provider_failure(self.availability_provider, reason, train=train.train_number, error=str(e))
            return LOOKUP_FAILED

        if not payload.data:
            return NO_ROWS
        row = payload.data[0]
        return SeatStatus(classify_seat_status(row.current_status), row.current_status, row.total_fare)

    async def _fare(self, train: TrainRow, origin_code: str, destination_code: str,
                    date: str, class_code: str) -> Optional[float]:
        try:
            raw = await self.client.get_json(
                self.fare_provider,
                settings.RAIL_API_HOST,
                "/api/v1/checkPrice",
                {
                    "trainNo": train.train_number,
                    "fromStationCode": origin_code,
                    "toStationCode": destination_code,
                    "date": date,
                    "classType": class_code,
                },
            )
            return FarePayload.model_validate(raw).total_fare
        except Exception as e:
            reason = _failure_reason(e)
            log_provider_failure(self.fare_provider, reason, train=train.train_number, error=str(e))
            return None


def _faster_than(train: TrainRow, max_hours: float) -> bool:
    minutes = parse_duration_minutes(train.duration)
    return minutes is not None and minutes < max_hours * 60


def _failure_reason(e: Exception) -> str:
    if isinstance(e, ProviderError):
        return e.reason
    if isinstance(e, ValidationError):
        return "malformed_payload"
    return "unexpected"
