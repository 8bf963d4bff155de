# agenda/core.py

import re
import unicodedata
from datetime import datetime, time

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: touching ends do not overlap
    return start_a < end_b and start_b < end_a


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def day_of_week(day) -> int:
    """Day index with 0 = Sunday, as stored on availability rules."""
    return (day.weekday() + 1) % 7


def to_naive(value: datetime) -> datetime:
    """Times are local wall-clock values; an offset, if sent, is dropped."""
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return value.strip("-")
