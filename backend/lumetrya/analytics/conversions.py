from __future__ import annotations

from typing import Sequence

from lumetrya.analytics.aggregator import STAGE_PAIRS, pct, project, sum_metrics
from lumetrya.analytics.periods import short_label
from lumetrya.schemas.analytics import ConversionAnalysis, ConversionPoint, ConversionStage
from lumetrya.schemas.metrics import ALL, Report

_STAGE_FIELD = {
    "Clicks": "clicks",
    "Leads": "leads",
    "Proposals": "proposals",
    "Invoices": "invoices",
    "Deals": "deals",
}


def conversion_analysis(reports: Sequence[Report], direction: str = ALL) -> ConversionAnalysis:
    """Stage-by-stage conversion over projected totals plus a per-report trend.

    Unlike the dashboard funnel, every stage here follows the direction projection.
    """
    projected = [project(r, direction) for r in reports]
    totals = sum_metrics(projected)

    stages = []
    for src, dst in STAGE_PAIRS:
        from_value = getattr(totals, _STAGE_FIELD[src])
        to_value = getattr(totals, _STAGE_FIELD[dst])
        stages.append(ConversionStage(
            fromStage=src, toStage=dst,
            fromValue=from_value, toValue=to_value,
            conversion=pct(to_value, from_value),
        ))

    series = [
        ConversionPoint(
            label=short_label(r.name),
            clicksToLeads=pct(m.leads, m.clicks),
            leadsToProposals=pct(m.proposals, m.leads),
            proposalsToDeals=pct(m.deals, m.proposals),
        )
        for r, m in zip(reports, projected)
    ]

    return ConversionAnalysis(direction=direction, stages=stages, series=series)
