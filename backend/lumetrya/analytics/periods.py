"""Period parsing and report filtering.

Creation dates come from several producers: `YYYY-MM-DD` strings from the
datastore, timestamped strings, ISO strings from the browser, or already-parsed
`date` objects. Everything here is timezone-naive: a datastore date of
2024-03-01 must stay March 1st whatever the host offset is.
"""

from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Iterable, List, Optional, Tuple

from dateutil.parser import parse as dateutil_parse

from lumetrya.schemas.metrics import ALL, FilterCriteria, Report

EPOCH_SENTINEL = dt.date(1970, 1, 1)

_YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_PARSE_DEFAULT = dt.datetime(1970, 1, 1)


def parse_period_date(value: Any) -> dt.date:
    """Normalize a creation date to a calendar date; never raises.

    Unparsable input (including None) degrades to `EPOCH_SENTINEL`, which
    sorts before every real report.
    """
    if isinstance(value, dt.date):
        return value
    if value is None:
        return EPOCH_SENTINEL

    s = str(value).strip()
    if not s:
        return EPOCH_SENTINEL

    m = _YMD.match(s)
    if m:
        try:
            return dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return EPOCH_SENTINEL

    try:
        # Missing parts come from a fixed default, never from the clock
        return dateutil_parse(s, default=_PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return EPOCH_SENTINEL


def _sort_key(d: dt.date) -> Tuple[int, float]:
    # datetime and date do not compare with each other; order by day, then time of day
    if isinstance(d, dt.datetime):
        return d.toordinal(), d.hour * 3600 + d.minute * 60 + d.second + d.microsecond / 1e6
    return d.toordinal(), 0.0


def period_parts(d: dt.date) -> Tuple[int, int, int]:
    """(year, month, quarter) of a parsed date."""
    return d.year, d.month, math.ceil(d.month / 3)


def coerce_filter_value(value: Any) -> Optional[int]:
    """Coerce a month/quarter/year criterion.

    Returns None for the "all" sentinel (or blank), an int for numeric input,
    and raises ValueError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid filter value: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"invalid filter value: {value!r}")
    s = str(value).strip()
    if not s or s.lower() == ALL:
        return None
    return int(s)


def _matches(criterion: Any, actual: int) -> bool:
    try:
        wanted = coerce_filter_value(criterion)
    except ValueError:
        return False
    return wanted is None or wanted == actual


def filter_reports(reports: Iterable[Report], criteria: FilterCriteria) -> List[Report]:
    """Reports matching the month/quarter/year criteria, oldest first.

    The direction criterion is not a period filter; the aggregator applies it
    through its projection. The input is not modified.
    """
    selected = []
    for report in reports:
        parsed = parse_period_date(report.creationDate)
        year, month, quarter = period_parts(parsed)
        if (_matches(criteria.month, month)
                and _matches(criteria.quarter, quarter)
                and _matches(criteria.year, year)):
            selected.append((parsed, report))
    # sorted() is stable: equal dates keep their input order
    selected = sorted(selected, key=lambda pair: _sort_key(pair[0]))
    return [report for _, report in selected]


def sort_reports(reports: Iterable[Report]) -> List[Report]:
    """All reports, oldest first."""
    return filter_reports(reports, FilterCriteria())


def available_years(reports: Iterable[Report]) -> List[int]:
    """Distinct report years, newest first (for filter controls)."""
    years = {parse_period_date(r.creationDate).year for r in reports}
    return sorted(years, reverse=True)


def short_label(name: str) -> str:
    """Chart label: first three characters of the second-to-last word of a report name.

    "Report March 2024" -> "Mar"; a single-word name labels itself.
    """
    parts = (name or "").split(" ")
    return parts[-2:][0][:3]
