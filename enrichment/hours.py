"""
Opening hours: translate Google Places periods into a per-day schedule, validate
it, answer "open at this moment?" and render it for display.

Schedule shape:
    {"monday": [{"open": "09:00", "close": "17:00"}],
     "friday": [{"open": "23:00", "close": "02:00", "closes_next_day": True}],
     "sunday": "closed"}
or {"always_open": True}.
"""
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Google numbers days from Sunday = 0.
DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _google_time(value: Any) -> str:
    """'2330' -> '23:30'; anything malformed becomes '00:00'."""
    text = str(value or "")
    if not re.fullmatch(r"\d{4}", text) or int(text[:2]) > 23 or int(text[2:]) > 59:
        logger.warning("Invalid Google time %r", value)
        return "00:00"
    return f"{text[:2]}:{text[2:]}"


def _is_24_hours(period: Dict[str, Any]) -> bool:
    opens = period.get("open") or {}
    closes = period.get("close")
    if opens.get("time") != "0000":
        return False
    if not closes:
        return True
    return closes.get("time") == "0000" and closes.get("day") != opens.get("day")


def _to_range(period: Dict[str, Any]) -> Dict[str, Any]:
    opens = period["open"]
    closes = period.get("close")
    entry: Dict[str, Any] = {
        "open": _google_time(opens.get("time")),
        "close": _google_time(closes.get("time")) if closes else "23:59",
    }
    if closes and closes.get("day") != opens.get("day"):
        entry["closes_next_day"] = True
    return entry


def transform_places_hours(google_hours: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Per-day schedule from a Places `opening_hours` object; None when there is none."""
    if not google_hours:
        return None
    periods = google_hours.get("periods") or []
    if not periods:
        return {"always_open": True}
    if len(periods) == 1 and _is_24_hours(periods[0]):
        return {"always_open": True}

    by_day: Dict[int, List[Dict[str, Any]]] = {}
    for period in periods:
        day = (period.get("open") or {}).get("day")
        if not isinstance(day, int) or not 0 <= day <= 6:
            logger.warning("Skipping period with invalid day: %r", period)
            continue
        by_day.setdefault(day, []).append(period)

    schedule: Dict[str, Any] = {}
    for day, name in enumerate(DAY_NAMES):
        day_periods = sorted(by_day.get(day, []), key=lambda p: str(p["open"].get("time", "")))
        schedule[name] = [_to_range(p) for p in day_periods] if day_periods else "closed"
    return schedule


def _minutes(value: str) -> Optional[int]:
    m = HHMM.match(value or "")
    if not m:
        return None
    return int(m.group(1)) * 60 + int(m.group(2))


def validate_opening_hours(hours: Dict[str, Any]) -> bool:
    """Well-formed HH:MM ranges, close after open unless overnight, no overlaps."""
    if hours.get("always_open"):
        return True
    for name in DAY_NAMES:
        ranges = hours.get(name)
        if not ranges or ranges == "closed":
            continue
        if not isinstance(ranges, list):
            return False
        for i, entry in enumerate(ranges):
            start, end = _minutes(entry.get("open")), _minutes(entry.get("close"))
            if start is None or end is None:
                return False
            overnight = entry.get("closes_next_day", False)
            if not overnight and end <= start:
                return False
            for other in ranges[i + 1:]:
                if overnight or other.get("closes_next_day"):
                    continue
                other_start, other_end = _minutes(other.get("open")), _minutes(other.get("close"))
                if other_start is None or other_end is None:
                    return False
                if start < other_end and other_start < end:
                    return False
    return True


def _ranges(hours: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    ranges = hours.get(name)
    return ranges if isinstance(ranges, list) else []


def is_open_now(hours: Optional[Dict[str, Any]], at: datetime) -> bool:
    """Whether the schedule is open at the given local time."""
    if not hours:
        return False
    if hours.get("always_open"):
        return True
    index = (at.weekday() + 1) % 7
    now = at.hour * 60 + at.minute

    for entry in _ranges(hours, DAY_NAMES[index]):
        start, end = _minutes(entry.get("open")), _minutes(entry.get("close"))
        if start is None or end is None:
            continue
        if entry.get("closes_next_day"):
            if now >= start:
                return True
        elif start <= now < end:
            return True

    for entry in _ranges(hours, DAY_NAMES[(index + 6) % 7]):
        if not entry.get("closes_next_day"):
            continue
        end = _minutes(entry.get("close"))
        if end is not None and now < end:
            return True
    return False


def _twelve_hour(value: str) -> str:
    hours, minutes = (int(x) for x in value.split(":"))
    suffix = "PM" if hours >= 12 else "AM"
    display = 12 if hours == 0 else hours - 12 if hours > 12 else hours
    return f"{display}:{minutes:02d} {suffix}"


def format_opening_hours(hours: Optional[Dict[str, Any]]) -> List[str]:
    """Lines like 'Friday: 11:00 PM – 2:00 AM (next day)'."""
    if not hours:
        return ["Hours not available"]
    if hours.get("always_open"):
        return ["Open 24/7"]
    lines = []
    for name in DAY_NAMES:
        ranges = _ranges(hours, name)
        if not ranges:
            lines.append(f"{name.capitalize()}: Closed")
            continue
        parts = [
            f"{_twelve_hour(r['open'])} – {_twelve_hour(r['close'])}"
            + (" (next day)" if r.get("closes_next_day") else "")
            for r in ranges
        ]
        lines.append(f"{name.capitalize()}: {', '.join(parts)}")
    return lines
