import re
from typing import List, Optional, Sequence

from wayfarer.journey.direct import rank_options
from wayfarer.types import Highlights, TransportKind, TransportOption

_AMOUNT = re.compile(r"\d[\d,]*(?:\.\d+)?")

# Greenest first; flights never qualify
_ECO_ORDER = {
    TransportKind.TRAIN: 0,
    TransportKind.TRANSIT: 1,
    TransportKind.BUS: 2,
    TransportKind.WALK: 3,
}


def price_amount(price: str) -> Optional[float]:
    """'INR 3,120' -> 3120.0; None when the price carries no number ('INR N/A')."""
    m = _AMOUNT.search(price or "")
    if not m:
        return None
    return float(m.group(0).replace(",", ""))


def _pick(candidates: Sequence[TransportOption], taken: List[TransportOption]) -> Optional[TransportOption]:
    # A provider already featured only repeats when nobody else qualifies
    fresh = [o for o in candidates if all(o is not t for t in taken)]
    used = {t.provider for t in taken}
    for op in fresh:
        if op.provider not in used:
            return op
    return fresh[0] if fresh else None


def select_highlights(options: List[TransportOption]) -> Highlights:
    """Pick best, cheapest and eco options for one leg; the rest go to ``other``.

    best is the top of ``rank_options`` (seat certainty, then speed). No
    option fills two categories.
    """
    ranked = rank_options(options)
    if not ranked:
        return Highlights()
    best = ranked[0]
    taken = [best]

    priced = [o for o in ranked if price_amount(o.price) is not None]
    sorted_by_price = sorted(priced, key=lambda o: price_amount(o.price))
    cheapest = _pick(sorted_by_price, taken)
    if cheapest is not None:
        taken.append(cheapest)

    green = [o for o in ranked if o.eco_friendly]
    sorted_by_eco = sorted(green, key=lambda o: _ECO_ORDER.get(o.kind, len(_ECO_ORDER)))
    eco = _pick(sorted_by_eco, taken)
    if eco is not None:
        taken.append(eco)

    other = [o for o in ranked if all(o is not t for t in taken)]
    return Highlights(best=best, cheapest=cheapest, eco=eco, other=other)
