"""Business hours strings of the form "HH:MM-HH:MM"."""

import re
from datetime import datetime, time
from typing import Optional, Tuple, Union

_HOURS_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")


def _to_minutes(hours: str, minutes: str) -> Optional[int]:
    h, m = int(hours), int(minutes)
    if h > 24 or m > 59 or (h == 24 and m != 0):
        return None
    return h * 60 + m


def parse_business_hours(text: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse "HH:MM-HH:MM" into (start, end) minutes since midnight, or None."""
    if not text:
        return None
    match = _HOURS_PATTERN.match(text)
    if not match:
        return None
    start = _to_minutes(match.group(1), match.group(2))
    end = _to_minutes(match.group(3), match.group(4))
    if start is None or end is None:
        return None
    return start, end


def is_open_at(business_hours: Optional[str], at: Union[datetime, time]) -> bool:
    """True if `at` falls inside the range, both ends inclusive.

    Ranges crossing midnight (start >= end) are never open.
    """
    parsed = parse_business_hours(business_hours)
    if parsed is None:
        return False
    start, end = parsed
    if start >= end:
        return False
    current = at.hour * 60 + at.minute
    return start <= current <= end
