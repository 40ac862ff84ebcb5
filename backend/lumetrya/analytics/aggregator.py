"""Dashboard aggregation over filtered reports.

`aggregate` is a pure function of (reports, direction): it folds the reports
into totals, cost/conversion ratios, the sales funnel, chart series and the
budget split per direction. Nothing is cached and the input is never touched.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from lumetrya.analytics.periods import short_label
from lumetrya.schemas.metrics import (
    ALL,
    METRIC_FIELDS,
    ZERO_METRICS,
    AggregateResult,
    BudgetShare,
    FunnelStage,
    LeadDynamicsPoint,
    Metrics,
    Ratios,
    Report,
    RevenueBudgetPoint,
    StageConversion,
)

SERIES_WINDOW = 12

FUNNEL_STAGES = ("Leads", "Proposals", "Invoices", "Deals")
# Adjacent pairs in canonical order, clicks included
STAGE_PAIRS = (
    ("Clicks", "Leads"),
    ("Leads", "Proposals"),
    ("Proposals", "Invoices"),
    ("Invoices", "Deals"),
)


def safe_div(num: float, den: float) -> float:
    return num / den if den else 0.0


def pct(num: float, den: float) -> float:
    return num / den * 100.0 if den > 0 else 0.0


def project(report: Report, direction: str) -> Metrics:
    """Effective metrics of a report for a direction ("all" keeps the report totals)."""
    if direction == ALL:
        return report.metrics
    return report.directions.get(direction, ZERO_METRICS)


def sum_metrics(items: Iterable[Metrics]) -> Metrics:
    sums = {f: 0.0 for f in METRIC_FIELDS}
    for m in items:
        for f in METRIC_FIELDS:
            sums[f] += getattr(m, f)
    return Metrics(**sums)


def observed_directions(reports: Iterable[Report]) -> List[str]:
    """Direction keys in first-seen order."""
    seen: Dict[str, None] = {}
    for r in reports:
        for key in r.directions:
            seen.setdefault(key, None)
    return list(seen)


def compute_ratios(t: Metrics) -> Ratios:
    return Ratios(
        costPerLead=safe_div(t.budget, t.leads),
        costPerClick=safe_div(t.budget, t.clicks),
        costPerProposal=safe_div(t.budget, t.proposals),
        costPerInvoice=safe_div(t.budget, t.invoices),
        costPerDeal=safe_div(t.budget, t.deals),
        averageCheck=safe_div(t.sales, t.deals),
        roiPercent=(t.sales - t.budget) / t.budget * 100.0 if t.budget > 0 else 0.0,
        leadToDealConversionPercent=pct(t.deals, t.leads),
    )


def _stage_values(projected: Metrics, unprojected: Metrics) -> Dict[str, float]:
    # Proposals/invoices are not broken down per direction: take them from the unprojected reports
    return {
        "Clicks": projected.clicks,
        "Leads": projected.leads,
        "Proposals": unprojected.proposals,
        "Invoices": unprojected.invoices,
        "Deals": projected.deals,
    }


def aggregate(filtered_reports: Sequence[Report], direction: str = ALL) -> AggregateResult:
    direction = (direction or ALL).strip() or ALL
    reports = list(filtered_reports)
    projected = [project(r, direction) for r in reports]

    totals = sum_metrics(projected)
    unprojected = sum_metrics(r.metrics for r in reports)
    stages = _stage_values(totals, unprojected)

    funnel = [FunnelStage(name=name, value=stages[name]) for name in FUNNEL_STAGES if stages[name] > 0]

    conversions = [
        StageConversion(
            label=f"{src} → {dst}",
            fromStage=src,
            toStage=dst,
            value=pct(stages[dst], stages[src]),
        )
        for src, dst in STAGE_PAIRS
    ]

    keys = observed_directions(reports)
    window = list(zip(reports, projected))[-SERIES_WINDOW:]

    revenue_budget = [
        RevenueBudgetPoint(label=short_label(r.name), budget=m.budget, sales=m.sales)
        for r, m in window
    ]
    lead_dynamics = [
        LeadDynamicsPoint(
            label=short_label(r.name),
            leads={k: r.directions[k].leads if k in r.directions else 0.0 for k in keys},
        )
        for r, _ in window
    ]

    distribution = []
    for k in keys:
        value = sum(r.directions[k].budget for r in reports if k in r.directions)
        if value > 0:
            distribution.append(BudgetShare(name=k, value=value))

    return AggregateResult(
        direction=direction,
        reportCount=len(reports),
        totals=totals,
        ratios=compute_ratios(totals),
        funnel=funnel,
        stageConversions=conversions,
        revenueBudgetSeries=revenue_budget,
        leadDynamics=lead_dynamics,
        budgetDistribution=distribution,
        directions=keys,
    )
