from enum import Enum

from wayfarer.journey.hubs import HUBS, MINOR_TO_HUB


class RouteBias(str, Enum):
    RAIL = "rail"
    FLIGHT = "flight"


DOMESTIC_RAIL_COUNTRIES = {"india", "bharat"}

DOMESTIC_RAIL_CITIES = {
    "mumbai", "bombay", "delhi", "new delhi", "bengaluru", "bangalore", "chennai", "kolkata",
    "hyderabad", "ahmedabad", "pune", "surat", "jaipur", "lucknow", "kanpur", "nagpur",
    "indore", "bhopal", "patna", "vadodara", "varanasi", "amritsar", "jodhpur", "udaipur",
    "goa", "madgaon", "kochi", "ernakulam", "thiruvananthapuram", "coimbatore", "madurai",
    "visakhapatnam", "bhubaneswar", "guwahati", "chandigarh", "dehradun", "kalka", "jammu",
}
# Every Indian hub and every minor place that feeds one
DOMESTIC_RAIL_CITIES |= {k for k, h in HUBS.items() if h.city.endswith("India")}
DOMESTIC_RAIL_CITIES |= {k for k, h in MINOR_TO_HUB.items() if HUBS[h].city.endswith("India")}


def is_domestic_rail(place: str) -> bool:
    parts = [p.strip().lower() for p in (place or "").split(",") if p.strip()]
    if not parts:
        return False
    if parts[-1] in DOMESTIC_RAIL_COUNTRIES:
        return True
    return parts[0] in DOMESTIC_RAIL_CITIES


def classify_route(origin: str, destination: str) -> RouteBias:
    """Rail-biased when either end is on the domestic rail network, else flight-biased."""
    if is_domestic_rail(origin) or is_domestic_rail(destination):
        return RouteBias.RAIL
    return RouteBias.FLIGHT
