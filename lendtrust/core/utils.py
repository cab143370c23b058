# lendtrust/core/utils.py
import math
import time
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

DAY_MS = 24 * 60 * 60 * 1000


def sanitize_input(value: Any) -> str:
    """Strips angle brackets and surrounding whitespace. Non-strings become ''."""
    if not isinstance(value, str):
        return ""
    return value.replace("<", "").replace(">", "").strip()


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def to_millis(value: Any) -> Optional[int]:
    """
    Parses an epoch-millisecond number, a datetime/date, or an ISO-8601 string
    ('2025-03-01' or '2025-03-01T10:00:00Z') into epoch milliseconds.
    Returns None when the value cannot be interpreted as a point in time.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, datetime):
        if value.tzinfo is None: value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return to_millis(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").isdecimal():
            return int(text)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_millis(parsed)
    return None


def parse_float(value: Any, default: float = 0.0) -> float:
    """Lenient float parsing; anything unparseable becomes `default`."""
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def days_until(timestamp: int, now: int) -> int:
    return math.ceil((timestamp - now) / DAY_MS)


def today_ms(now: Optional[int] = None) -> int:
    """Midnight UTC of the day containing `now`."""
    now = now_ms() if now is None else now
    return now - (now % DAY_MS)
