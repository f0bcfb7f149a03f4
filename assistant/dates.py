"""assistant/dates.py

Relative date parsing for deadline updates ("demain", "next week",
"dans 3 semaines", "2025-06-01").
"""

from __future__ import annotations

# Standard Library
import calendar
import datetime
import re
from typing import Final

_ISO_DATE: Final[re.Pattern[str]] = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_IN_N_UNITS: Final[re.Pattern[str]] = re.compile(
    r"\b(?:dans|in)\s+(\d+)\s*(jours?|days?|semaines?|weeks?|mois|months?)\b"
)
_DAY_AFTER_TOMORROW: Final[re.Pattern[str]] = re.compile(
    r"apr[èe]s[-\s]demain|day\s+after\s+tomorrow"
)
_TOMORROW: Final[re.Pattern[str]] = re.compile(r"\bdemain\b|\btomorrow\b")
_TODAY: Final[re.Pattern[str]] = re.compile(r"aujourd['’]\s*hui|\btoday\b")
_NEXT_WEEK: Final[re.Pattern[str]] = re.compile(
    r"semaine\s+pro(?:chaine)?\b|next\s+week"
)
_NEXT_MONTH: Final[re.Pattern[str]] = re.compile(r"mois\s+prochain|next\s+month")


def add_months(day: datetime.date, months: int) -> datetime.date:
    """Shift ``day`` by whole months, clamping to the last day of the month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(day.day, last_day))


def parse_relative_date(text: str, today: datetime.date | None = None) -> str | None:
    """Resolve a date expression found in ``text``.

    Args:
        text: Free text, any casing.
        today: Reference date; defaults to the current local date.

    Returns:
        The resolved date as ``YYYY-MM-DD``, or ``None`` when ``text`` holds
        no recognised date expression.
    """
    lower = text.lower()
    today = today or datetime.date.today()

    iso = _ISO_DATE.search(lower)
    if iso:
        try:
            return datetime.date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3))).isoformat()
        except ValueError:
            return None

    relative = _IN_N_UNITS.search(lower)
    if relative:
        amount = int(relative.group(1))
        unit = relative.group(2)
        if unit.startswith(("jour", "day")):
            return (today + datetime.timedelta(days=amount)).isoformat()
        if unit.startswith(("semaine", "week")):
            return (today + datetime.timedelta(weeks=amount)).isoformat()
        return add_months(today, amount).isoformat()

    if _DAY_AFTER_TOMORROW.search(lower):
        return (today + datetime.timedelta(days=2)).isoformat()
    if _TOMORROW.search(lower):
        return (today + datetime.timedelta(days=1)).isoformat()
    if _TODAY.search(lower):
        return today.isoformat()
    if _NEXT_WEEK.search(lower):
        return (today + datetime.timedelta(weeks=1)).isoformat()
    if _NEXT_MONTH.search(lower):
        return add_months(today, 1).isoformat()
    return None
