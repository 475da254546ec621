"""Last line of defence before a journey leaves the engine.

``normalize`` accepts whatever the pipeline produced (a Journey, None, an
exception, a half-parsed dict from a model) and always returns a structurally
valid Journey. Callers never need a try/except around journey resolution.
"""

from typing import Any, List, Optional

from pydantic import ValidationError

from wayfarer.journey.assembler import assemble
from wayfarer.journey.direct import place_label
from wayfarer.journey.selector import select_highlights
from wayfarer.obs.logger import log_event
from wayfarer.types import DayPlan, Itinerary, Journey, JourneyLeg, TransportOption


def failure_journey(origin: Optional[str] = None, destination: Optional[str] = None) -> Journey:
    if origin and destination:
        description = f"No transport options found from {place_label(origin)} to {place_label(destination)}"
    else:
        description = "No transport options found"
    return Journey(legs=[JourneyLeg(sequence=1, description=description, options=[])])


def _raw_legs(result: Any) -> List[Any]:
    if result is None or isinstance(result, BaseException):
        return []
    if isinstance(result, Journey):
        return list(result.legs)
    if isinstance(result, JourneyLeg):
        return [result]
    if isinstance(result, dict):
        legs = result.get("journey", result.get("legs"))
    elif isinstance(result, (list, tuple)):
        legs = result
    else:
        legs = getattr(result, "legs", None)
    return list(legs) if isinstance(legs, (list, tuple)) else []


def _coerce_option(raw: Any) -> Optional[TransportOption]:
    if isinstance(raw, TransportOption):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        return TransportOption.model_validate(raw)
    except ValidationError:
        return None


def _coerce_leg(raw: Any) -> Optional[JourneyLeg]:
    if isinstance(raw, JourneyLeg):
        description, options = raw.description, raw.options
    elif isinstance(raw, dict):
        description, options = raw.get("description"), raw.get("options")
    else:
        return None

    if not isinstance(description, str) or not description.strip():
        description = "Transport options"
    if not isinstance(options, (list, tuple)):
        options = []

    kept = []
    for o in options:
        opt = _coerce_option(o)
        if opt is not None and opt.availability.is_viable:
            kept.append(opt)
    return JourneyLeg(sequence=1, description=description, options=kept, highlights=select_highlights(kept))


def normalize(result: Any, origin: Optional[str] = None, destination: Optional[str] = None) -> Journey:
    legs = [leg for leg in (_coerce_leg(r) for r in _raw_legs(result)) if leg is not None]
    if not legs:
        if isinstance(result, BaseException):
            log_event("journey_normalized_from_error", level="WARNING", error=f"{type(result).__name__}: {result}")
        return failure_journey(origin, destination)
    return assemble(legs)


def minimal_itinerary(destination: str, journey: Any = None) -> Itinerary:
    """Deterministic stand-in when the narrative collaborator returns nothing usable."""
    name = place_label(destination) or "your destination"
    return Itinerary(
        title=f"Trip to {name}",
        destination=destination or name,
        days=[DayPlan(day=1, title=f"Arrive in {name}",
                      summary=f"Travel to {name}, check in and explore the neighbourhood.")],
        journey=normalize(journey, destination=destination),
    )


def normalize_itinerary(raw: Any, destination: str, journey: Any = None) -> Itinerary:
    """Validate narrative output, substituting ``minimal_itinerary`` when it is unusable."""
    if isinstance(raw, Itinerary):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, dict):
        log_event("itinerary_fallback", level="WARNING", reason="not_an_object", destination=destination)
        return minimal_itinerary(destination, journey)

    title = raw.get("title") or raw.get("tripTitle")
    days: List[DayPlan] = []
    raw_days = raw.get("days") or raw.get("itinerary")
    for i, d in enumerate(raw_days if isinstance(raw_days, list) else [], start=1):
        if not isinstance(d, dict):
            continue
        try:
            days.append(DayPlan.model_validate({**d, "day": d.get("day") if isinstance(d.get("day"), int) else i}))
        except ValidationError:
            continue

    if not isinstance(title, str) or not title.strip() or not days:
        log_event("itinerary_fallback", level="WARNING", reason="incomplete", destination=destination)
        return minimal_itinerary(destination, journey if journey is not None else raw.get("journey"))

    dest = raw.get("destination")
    if not isinstance(dest, str) or not dest.strip():
        dest = destination
    return Itinerary(
        title=title,
        destination=dest,
        days=days,
        journey=normalize(journey if journey is not None else raw.get("journey"), destination=destination),
    )
