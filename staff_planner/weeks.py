from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import List, Optional, Tuple

from dateutil import parser as dateparser
from dateutil.relativedelta import MO, relativedelta

WEEK_FMT = "%Y-%m-%d"
PLANNING_WEEKS = 52
MAX_WEEKS_PER_YEAR = 53


def first_monday(year: int) -> date:
    monday = date(year, 1, 1) + relativedelta(weekday=MO(-1))
    if monday.year < year:
        monday += relativedelta(weeks=1)
    return monday


@lru_cache(maxsize=32)
def _week_starts(year: int) -> Tuple[date, ...]:
    start = first_monday(year)
    weeks: List[date] = []
    for offset in range(MAX_WEEKS_PER_YEAR):
        current = start + relativedelta(weeks=offset)
        if current.year > year:
            break
        weeks.append(current)
    return tuple(weeks)


def week_starts(year: int) -> List[date]:
    """Every Monday that falls inside ``year``, in order."""
    return list(_week_starts(year))


def week_headers(year: int) -> List[str]:
    return [week.strftime(WEEK_FMT) for week in _week_starts(year)]


def weeks_in_year(year: int) -> int:
    return len(_week_starts(year))


def normalize_week_key(value: str) -> Optional[str]:
    """Reduce a date or timestamp key to the ``YYYY-MM-DD`` header form.

    Returns ``None`` for keys that do not parse as dates.
    """
    try:
        return dateparser.isoparse(str(value)).date().strftime(WEEK_FMT)
    except (ValueError, TypeError, OverflowError):
        return None
