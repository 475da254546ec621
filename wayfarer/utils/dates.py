import dateparser
from datetime import date, datetime, timedelta
from typing import Optional
import pytz
import re

def get_current_datetime(tz: str = "UTC") -> datetime:
    """Get current datetime with timezone"""
    return datetime.now(pytz.timezone(tz))

def _parse_next_weekday(text: str, base_date: datetime) -> Optional[datetime]:
    """Parse 'next Monday', 'this Friday', 'Friday' relative to base_date"""
    weekdays = {
        'monday': 0, 'tuesday': 1, 'wednesday': 2, 'thursday': 3,
        'friday': 4, 'saturday': 5, 'sunday': 6
    }

    text_lower = text.lower().strip()
    for day_name, day_num in weekdays.items():
        if day_name in text_lower:
            days_until = (day_num - base_date.weekday()) % 7
            # "this Friday" on a Friday is today; otherwise the next occurrence
            if days_until == 0 and 'this' not in text_lower:
                days_until = 7
            return base_date + timedelta(days=days_until)
    return None

def to_iso_date(text: str, tz: str = "UTC") -> str:
    """Convert a travel date expression to YYYY-MM-DD, or '' if unparseable."""
    if not text:
        return ""
    text_lower = text.lower().strip()

    # Already ISO, the common case from the UI
    try:
        return date.fromisoformat(text_lower).isoformat()
    except ValueError:
        pass

    base_date = get_current_datetime(tz)
    if re.search(r'\b(next|this)?\s*(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b', text_lower):
        dt = _parse_next_weekday(text_lower, base_date)
        if dt:
            return dt.date().isoformat()

    if text_lower == 'today':
        return base_date.date().isoformat()
    elif text_lower == 'tomorrow':
        return (base_date + timedelta(days=1)).date().isoformat()

    # Fall back to dateparser, preferring future dates for travel
    dt = dateparser.parse(
        text,
        settings={"RELATIVE_BASE": base_date.replace(tzinfo=None), "PREFER_DATES_FROM": "future"},
    )
    if dt:
        return dt.date().isoformat()

    return ""


def elapsed_minutes(start: Optional[str], end: Optional[str]) -> Optional[int]:
    """Minutes between two ISO datetimes ('2025-12-20T06:10:00'), or None when either is unusable."""
    if not start or not end:
        return None
    try:
        begin, finish = datetime.fromisoformat(start), datetime.fromisoformat(end)
        delta = finish - begin
    except (TypeError, ValueError):
        # Bare clock times, or one aware and one naive timestamp
        return None
    minutes = int(delta.total_seconds() // 60)
    return minutes if minutes >= 0 else None


def format_duration_minutes(total_minutes: Optional[int]) -> str:
    """
    Convert duration in minutes to the display form used on options, e.g. 125 -> "2h 5m".
    """
    if total_minutes is None or total_minutes < 0:
        return ""
    return f"{total_minutes // 60}h {total_minutes % 60}m"


_HHMM = re.compile(r"^\s*(\d{1,3}):(\d{2})\s*$")
_ISO = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?$", re.IGNORECASE)
_HOURS = re.compile(r"(\d+(?:\.\d+)?)\s*h", re.IGNORECASE)
_MINUTES = re.compile(r"(\d+)\s*m(?:in)?", re.IGNORECASE)
_RANGE = re.compile(r"^\s*(\d+)\s*-\s*\d+\s*min", re.IGNORECASE)


def parse_duration_minutes(text: Optional[str]) -> Optional[int]:
    """Best-effort parse of provider duration strings.

    Handles '02:52' (rail), 'PT2H5M' (ISO), '2h 5m' / '1h 25min' and ranges
    like '45-60 min' (lower bound). Returns None when nothing matches.
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return int(text)
    t = str(text).strip()
    if not t:
        return None

    m = _HHMM.match(t)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _ISO.match(t)
    if m and (m.group(1) or m.group(2)):
        return int(m.group(1) or 0) * 60 + int(m.group(2) or 0)

    m = _RANGE.match(t)
    if m:
        return int(m.group(1))

    hours = _HOURS.search(t)
    minutes = _MINUTES.search(t)
    if not hours and not minutes:
        return None
    total = 0.0
    if hours:
        total += float(hours.group(1)) * 60
    if minutes:
        total += int(minutes.group(1))
    return int(total)
