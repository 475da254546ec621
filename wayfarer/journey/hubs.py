"""Hub selection for routes with no direct service.

Which big city a small town feeds into is domain knowledge, not something
derivable from the place name, so it lives in an explicit table behind the
``HubStrategy`` protocol. A geographic strategy can replace the table without
touching the resolver.
"""

from typing import Dict, NamedTuple, Optional, Protocol


class Hub(NamedTuple):
    city: str           # display name, e.g. 'Mumbai, India'
    station: str        # main long-distance railway terminus
    airport: str        # main airport


class HubStrategy(Protocol):
    def hub_for(self, place: str) -> Optional[Hub]:
        ...


HUBS: Dict[str, Hub] = {
    "mumbai": Hub("Mumbai, India", "Mumbai Central (BCT)", "Chhatrapati Shivaji Maharaj International Airport (BOM)"),
    "delhi": Hub("Delhi, India", "New Delhi (NDLS)", "Indira Gandhi International Airport (DEL)"),
    "bengaluru": Hub("Bengaluru, India", "KSR Bengaluru (SBC)", "Kempegowda International Airport (BLR)"),
    "chennai": Hub("Chennai, India", "Chennai Central (MAS)", "Chennai International Airport (MAA)"),
    "kolkata": Hub("Kolkata, India", "Howrah Junction (HWH)", "Netaji Subhas Chandra Bose International Airport (CCU)"),
    "hyderabad": Hub("Hyderabad, India", "Secunderabad Junction (SC)", "Rajiv Gandhi International Airport (HYD)"),
    "ahmedabad": Hub("Ahmedabad, India", "Ahmedabad Junction (ADI)", "Sardar Vallabhbhai Patel International Airport (AMD)"),
    "pune": Hub("Pune, India", "Pune Junction (PUNE)", "Pune Airport (PNQ)"),
    "chandigarh": Hub("Chandigarh, India", "Chandigarh (CDG)", "Chandigarh International Airport (IXC)"),
    "kochi": Hub("Kochi, India", "Ernakulam Junction (ERS)", "Cochin International Airport (COK)"),
    "london": Hub("London, United Kingdom", "London St Pancras", "Heathrow Airport (LHR)"),
    "paris": Hub("Paris, France", "Paris Gare de Lyon", "Charles de Gaulle Airport (CDG)"),
}

MINOR_TO_HUB: Dict[str, str] = {
    # Western India
    "vapi": "mumbai",
    "valsad": "mumbai",
    "daman": "mumbai",
    "silvassa": "mumbai",
    "nashik": "mumbai",
    "alibaug": "mumbai",
    "lonavala": "pune",
    "mahabaleshwar": "pune",
    "satara": "pune",
    "anand": "ahmedabad",
    "gandhinagar": "ahmedabad",
    # North
    "shimla": "chandigarh",
    "manali": "chandigarh",
    "kasauli": "chandigarh",
    "dharamshala": "chandigarh",
    "rishikesh": "delhi",
    "haridwar": "delhi",
    "mussoorie": "delhi",
    "agra": "delhi",
    # South and east
    "ooty": "bengaluru",
    "coorg": "bengaluru",
    "mysuru": "bengaluru",
    "mysore": "bengaluru",
    "pondicherry": "chennai",
    "puducherry": "chennai",
    "munnar": "kochi",
    "alleppey": "kochi",
    "darjeeling": "kolkata",
    # Abroad
    "oxford": "london",
    "cambridge": "london",
    "bath": "london",
    "versailles": "paris",
}


def _key(place: str) -> str:
    return place.split(",", 1)[0].strip().lower() if place else ""


class TableHubStrategy:
    def __init__(self, hubs: Dict[str, Hub] = None, minor_to_hub: Dict[str, str] = None):
        self.hubs = hubs if hubs is not None else HUBS
        self.minor_to_hub = minor_to_hub if minor_to_hub is not None else MINOR_TO_HUB

    def hub_for(self, place: str) -> Optional[Hub]:
        """Nearest major hub for a minor location; None for unknown places and hubs themselves."""
        hub_key = self.minor_to_hub.get(_key(place))
        if hub_key is None:
            return None
        return self.hubs.get(hub_key)
