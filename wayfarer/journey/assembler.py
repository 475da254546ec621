from typing import Iterable

from wayfarer.types import Journey, JourneyLeg


def assemble(legs: Iterable[JourneyLeg]) -> Journey:
    """Order legs into a Journey, numbering them 1..N in travel order."""
    return Journey(legs=[
        leg.model_copy(update={"sequence": i})
        for i, leg in enumerate(legs, start=1)
    ])
