"""Shewhart control chart over per-report metrics.

Limits are mean ± 3σ (population σ); the lower limit is clamped at 0 since
none of the tracked metrics can go negative.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Sequence

from lumetrya.analytics.aggregator import pct, project, safe_div
from lumetrya.analytics.periods import parse_period_date, sort_reports
from lumetrya.schemas.analytics import ControlChart, ControlPoint
from lumetrya.schemas.metrics import ALL, Metrics, Report

MIN_POINTS = 3

METRICS: Dict[str, Callable[[Metrics], float]] = {
    "budget": lambda m: m.budget,
    "clicks": lambda m: m.clicks,
    "cpl": lambda m: safe_div(m.budget, m.leads),
    "cpc": lambda m: safe_div(m.budget, m.clicks),
    "revenue": lambda m: m.sales,
    "deals": lambda m: m.deals,
    "avgCheck": lambda m: safe_div(m.sales, m.deals),
    "cr": lambda m: pct(m.deals, m.leads),
}


def control_chart(reports: Sequence[Report], metric: str = "budget", direction: str = ALL) -> ControlChart:
    if metric not in METRICS:
        raise ValueError(f"unknown metric {metric!r}; expected one of {sorted(METRICS)}")
    calc = METRICS[metric]

    ordered = sort_reports(reports)
    values = [calc(project(r, direction)) for r in ordered]

    if values:
        mean = sum(values) / len(values)
        std_dev = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
    else:
        mean = std_dev = 0.0
    ucl = mean + 3 * std_dev
    lcl = max(0.0, mean - 3 * std_dev)

    points = [
        ControlPoint(
            label=r.name.replace("Report ", ""),
            date=parse_period_date(r.creationDate).isoformat(),
            value=v,
            outOfControl=bool(values) and (v > ucl or v < lcl),
        )
        for r, v in zip(ordered, values)
    ]

    return ControlChart(
        metric=metric,
        direction=direction,
        mean=mean,
        stdDev=std_dev,
        ucl=ucl,
        lcl=lcl,
        points=points,
        outOfControl=[p for p in points if p.outOfControl],
        sufficient=len(points) >= MIN_POINTS,
    )
