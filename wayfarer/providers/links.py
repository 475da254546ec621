"""Pass-through booking URLs.

Every link is built with percent-encoding so it is valid as-is; nothing here
is a transaction, it only lands the traveler on a third-party search page.
"""

from urllib.parse import quote, urlencode

GOOGLE_TRAVEL = "https://www.google.com/travel/flights"
GOOGLE_MAPS_DIR = "https://www.google.com/maps/dir/"


def travel_search_url(mode: str, origin: str, destination: str, date: str) -> str:
    """Google travel search, e.g. ``?q=trains%20from%20VAPI%20to%20PUNE%20on%202025-12-20``."""
    query = f"{mode} from {origin} to {destination} on {date}"
    return f"{GOOGLE_TRAVEL}?q={quote(query, safe='')}"


def directions_url(origin: str, destination: str, travelmode: str = "driving") -> str:
    params = {"api": "1", "origin": origin, "destination": destination, "travelmode": travelmode}
    return f"{GOOGLE_MAPS_DIR}?{urlencode(params, quote_via=quote)}"
