# backend/lumetrya/api/analytics.py
from fastapi import APIRouter, HTTPException, Query
from typing import List

from lumetrya.analytics import compare_periods, control_chart, conversion_analysis, filter_reports, unit_economics
from lumetrya.analytics.control_chart import METRICS
from lumetrya.analytics.unit_economics import DEFAULT_MARGIN_PERCENT
from lumetrya.api.dashboard import checked_filter, stored_reports
from lumetrya.schemas.analytics import ComparisonResult, ControlChart, ConversionAnalysis, UnitEconomicsResponse
from lumetrya.schemas.metrics import ALL, FilterCriteria, Report

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _filtered(month: str, quarter: str, year: str) -> List[Report]:
    criteria = FilterCriteria(
        month=checked_filter("month", month),
        quarter=checked_filter("quarter", quarter),
        year=checked_filter("year", year),
    )
    return filter_reports(stored_reports(), criteria)


@router.get("/compare", response_model=ComparisonResult)
def compare(
    first: str = Query(..., description="id of the report under review"),
    second: str = Query(..., description="id of the baseline report"),
    direction: str = Query(ALL),
):
    by_id = {r.id: r for r in stored_reports()}
    missing = [rid for rid in (first, second) if rid not in by_id]
    if missing:
        raise HTTPException(status_code=404, detail=f"Report not found: {', '.join(missing)}")
    return compare_periods(by_id[first], by_id[second], direction.strip() or ALL)


@router.get("/conversions", response_model=ConversionAnalysis)
def conversions(
    direction: str = Query(ALL),
    month: str = Query(ALL),
    quarter: str = Query(ALL),
    year: str = Query(ALL),
):
    return conversion_analysis(_filtered(month, quarter, year), direction.strip() or ALL)


@router.get("/unit-economics", response_model=UnitEconomicsResponse)
def get_unit_economics(
    direction: str = Query(ALL),
    month: str = Query(ALL),
    quarter: str = Query(ALL),
    year: str = Query(ALL),
    margin_percent: float = Query(DEFAULT_MARGIN_PERCENT, ge=0, le=100),
    fixed_costs: float = Query(0.0, ge=0),
):
    """`data` is null when the selection has no clicks, budget or sales."""
    reports = _filtered(month, quarter, year)
    return UnitEconomicsResponse(
        data=unit_economics(reports, direction.strip() or ALL, margin_percent, fixed_costs)
    )


@router.get("/control-chart", response_model=ControlChart)
def get_control_chart(
    metric: str = Query("budget"),
    direction: str = Query(ALL),
    month: str = Query(ALL),
    quarter: str = Query(ALL),
    year: str = Query(ALL),
):
    if metric not in METRICS:
        raise HTTPException(status_code=400, detail=f"metric must be one of: {', '.join(METRICS)}")
    return control_chart(_filtered(month, quarter, year), metric, direction.strip() or ALL)
