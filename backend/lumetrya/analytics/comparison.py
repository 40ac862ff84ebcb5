"""Side-by-side comparison of two report periods."""

from __future__ import annotations

from typing import Optional

from lumetrya.analytics.aggregator import pct, project, safe_div
from lumetrya.schemas.analytics import ComparisonResult, ComparisonRow
from lumetrya.schemas.metrics import ALL, ZERO_METRICS, Metrics, Report

METRIC_ROWS = (
    ("budget", "Ad budget", "currency"),
    ("clicks", "Clicks", "number"),
    ("leads", "Leads", "number"),
    ("proposals", "Proposals", "number"),
    ("invoices", "Invoices", "number"),
    ("deals", "Deals", "number"),
    ("sales", "Sales", "currency"),
)

CONVERSION_ROWS = (
    ("clicks", "leads", "Clicks → Leads"),
    ("leads", "proposals", "Leads → Proposals"),
    ("proposals", "invoices", "Proposals → Invoices"),
    ("invoices", "deals", "Invoices → Deals"),
    ("leads", "deals", "Leads → Deals"),
)


def change_percent(p1: float, p2: float) -> float:
    """Relative change of p1 against p2; 100 when p2 is 0 and p1 grew."""
    if p2 != 0:
        return (p1 - p2) / p2 * 100.0
    return 100.0 if p1 > 0 else 0.0


def _row(key: str, label: str, p1: float, p2: float, unit: str) -> ComparisonRow:
    return ComparisonRow(key=key, label=label, p1=p1, p2=p2, changePercent=change_percent(p1, p2), unit=unit)


def _metrics(report: Optional[Report], direction: str) -> Metrics:
    return project(report, direction) if report is not None else ZERO_METRICS


def compare_periods(first: Optional[Report], second: Optional[Report], direction: str = ALL) -> ComparisonResult:
    m1 = _metrics(first, direction)
    m2 = _metrics(second, direction)

    metrics = [_row(key, label, getattr(m1, key), getattr(m2, key), unit) for key, label, unit in METRIC_ROWS]
    metrics.append(_row("averageCheck", "Average check",
                        safe_div(m1.sales, m1.deals), safe_div(m2.sales, m2.deals), "currency"))

    conversions = [
        _row(f"{src}_to_{dst}", label, pct(getattr(m1, dst), getattr(m1, src)),
             pct(getattr(m2, dst), getattr(m2, src)), "%")
        for src, dst, label in CONVERSION_ROWS
    ]

    identical = (
        first is not None and second is not None
        and first.id != second.id
        and m1 == m2
    )

    return ComparisonResult(
        direction=direction,
        firstId=first.id if first else None,
        secondId=second.id if second else None,
        metrics=metrics,
        conversions=conversions,
        identical=identical,
    )
