"""
Date parsing for scraped text: ISO 8601, RFC 822 feed dates, numeric d-m-y,
and Dutch/English month names with optional weekday, year and time.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

AMSTERDAM = ZoneInfo("Europe/Amsterdam")
YEARS_BACK = 1
YEARS_AHEAD = 5

MONTHS = {
    "jan": 1, "januari": 1, "january": 1,
    "feb": 2, "februari": 2, "february": 2,
    "mrt": 3, "maa": 3, "maart": 3, "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "mei": 5, "may": 5,
    "jun": 6, "juni": 6, "june": 6,
    "jul": 7, "juli": 7, "july": 7,
    "aug": 8, "augustus": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "okt": 10, "oktober": 10, "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}
RELATIVE_DAYS = {"vandaag": 0, "today": 0, "morgen": 1, "tomorrow": 1, "overmorgen": 2}

ISO = re.compile(
    r"^\s*(\d{4})-(\d{2})-(\d{2})"
    r"(?:[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*(Z|[+-]\d{2}:?\d{2})?)?"
)
RFC822 = re.compile(r"^\s*[A-Za-z]{3},\s+\d{1,2}\s+[A-Za-z]{3}\s+\d{4}")
NUMERIC_DMY = re.compile(r"\b(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})\b")
DAY_MONTH = re.compile(r"\b(\d{1,2})(?:e|ste|de|st|nd|rd|th)?\s+([a-z]{3,9})\.?(?:\s+(\d{4}))?\b", re.I)
MONTH_DAY = re.compile(r"\b([a-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?(?:\s+(\d{4}))?\b", re.I)
TIME = re.compile(r"\b([01]?\d|2[0-3])[:.hu]([0-5]\d)\b")


@dataclass
class ParsedDate:
    day: date
    time: Optional[str]  # HH:MM, site-local
    starts_at: datetime  # UTC

    @property
    def event_date(self) -> str:
        return self.day.isoformat()

    @property
    def event_time(self) -> str:
        return self.time or "TBD"


def _today(today: Optional[date]) -> date:
    return today or datetime.now(AMSTERDAM).date()


def _year_ok(year: int, today: date) -> bool:
    return today.year - YEARS_BACK <= year <= today.year + YEARS_AHEAD


def _build(day: date, hhmm: Optional[str], tz=AMSTERDAM) -> ParsedDate:
    if hhmm:
        h, m = (int(x) for x in hhmm.split(":"))
        local = datetime.combine(day, time(h, m), tzinfo=tz)
    else:
        local = datetime.combine(day, time(0, 0), tzinfo=tz)
    return ParsedDate(day=day, time=hhmm, starts_at=local.astimezone(timezone.utc))


def _offset(value: str) -> timezone:
    if value == "Z":
        return timezone.utc
    sign = 1 if value[0] == "+" else -1
    digits = value[1:].replace(":", "")
    return timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))


def _find_time(text: str, skip: Tuple[int, int]) -> Optional[str]:
    blanked = text[: skip[0]] + " " * (skip[1] - skip[0]) + text[skip[1]:]
    m = TIME.search(blanked)
    if not m:
        return None
    return f"{int(m.group(1)):02d}:{m.group(2)}"


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _roll_year(month: int, day: int, today: date) -> int:
    """Year-less dates that already passed this year refer to next year."""
    if (month, day) < (today.month, today.day):
        return today.year + 1
    return today.year


def parse_event_date(text: str, today: Optional[date] = None) -> Optional[ParsedDate]:
    """Parse scraped date text; None when no plausible date is found."""
    if not text or not text.strip():
        return None
    text = text.strip()
    ref = _today(today)

    m = ISO.match(text)
    if m:
        day = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if day is None or not _year_ok(day.year, ref):
            return None
        hhmm = f"{m.group(4)}:{m.group(5)}" if m.group(4) else None
        tz = _offset(m.group(7)) if m.group(7) else AMSTERDAM
        return _build(day, hhmm, tz)

    if RFC822.match(text):
        try:
            dt = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            dt = None
        if dt is not None:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            local = dt.astimezone(AMSTERDAM)
            if not _year_ok(local.year, ref):
                return None
            has_time = (local.hour, local.minute) != (0, 0)
            return _build(local.date(), local.strftime("%H:%M") if has_time else None)

    lowered = text.lower()
    for word, offset in RELATIVE_DAYS.items():
        m = re.search(rf"\b{word}\b", lowered)
        if m:
            return _build(ref + timedelta(days=offset), _find_time(lowered, m.span()))

    m = NUMERIC_DMY.search(text)
    if m:
        year = int(m.group(3))
        if year < 100:
            year += 2000
        day = _safe_date(year, int(m.group(2)), int(m.group(1)))
        if day is not None and _year_ok(day.year, ref):
            return _build(day, _find_time(text, m.span()))

    for pattern, day_group, month_group in ((DAY_MONTH, 1, 2), (MONTH_DAY, 2, 1)):
        for m in pattern.finditer(lowered):
            month = MONTHS.get(m.group(month_group).rstrip("."))
            if month is None:
                continue
            day_num = int(m.group(day_group))
            year = int(m.group(3)) if m.group(3) else _roll_year(month, day_num, ref)
            day = _safe_date(year, month, day_num)
            if day is None or not _year_ok(day.year, ref):
                continue
            return _build(day, _find_time(lowered, m.span()))
    return None
