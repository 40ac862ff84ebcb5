# backend/lumetrya/api/dashboard.py
from fastapi import APIRouter, HTTPException, Query
from typing import List
import logging
import sqlite3

from lumetrya.analytics import aggregate, available_years, filter_reports
from lumetrya.analytics.periods import coerce_filter_value
from lumetrya.config import get_settings
from lumetrya.db.repository import load_reports
from lumetrya.db.session import get_sqlite_conn
from lumetrya.schemas.metrics import ALL, DashboardResponse, FilterCriteria, Report

router = APIRouter(prefix="/api", tags=["dashboard"])
log = logging.getLogger(__name__)

# Valid range per criterion; anything outside can never match a real date
_BOUNDS = {"month": (1, 12), "quarter": (1, 4), "year": (1, 9999)}


def stored_reports() -> List[Report]:
    try:
        with get_sqlite_conn() as conn:
            return load_reports(conn, get_settings().user_id)
    except sqlite3.Error as e:
        log.exception("Loading reports failed")
        raise HTTPException(status_code=500, detail=f"Failed to load reports: {e}") from e


def checked_filter(name: str, value: str) -> str:
    try:
        n = coerce_filter_value(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"invalid {name}: {value!r}")
    lo, hi = _BOUNDS[name]
    if n is not None and not lo <= n <= hi:
        raise HTTPException(status_code=400, detail=f"{name} must be between {lo} and {hi}")
    return value


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    direction: str = Query(ALL),
    month: str = Query(ALL),
    quarter: str = Query(ALL),
    year: str = Query(ALL),
):
    """
    Dashboard aggregate over the stored reports.

    month/quarter/year accept "all" or a number ("3", "03"); direction is
    "all" or a direction key such as "РТИ".
    """
    criteria = FilterCriteria(
        direction=direction.strip() or ALL,
        month=checked_filter("month", month),
        quarter=checked_filter("quarter", quarter),
        year=checked_filter("year", year),
    )
    reports = stored_reports()
    filtered = filter_reports(reports, criteria)
    return DashboardResponse(
        filters=criteria,
        availableYears=available_years(reports),
        data=aggregate(filtered, criteria.direction),
    )
