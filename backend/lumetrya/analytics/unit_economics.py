from __future__ import annotations

from typing import Optional, Sequence

from lumetrya.analytics.aggregator import pct, project, safe_div, sum_metrics
from lumetrya.schemas.analytics import UnitEconomics
from lumetrya.schemas.metrics import ALL, Report

DEFAULT_MARGIN_PERCENT = 30.0


def unit_economics(
    reports: Sequence[Report],
    direction: str = ALL,
    margin_percent: float = DEFAULT_MARGIN_PERCENT,
    fixed_costs: float = 0.0,
) -> Optional[UnitEconomics]:
    """Marketing unit economics for the given reports.

    Returns None when there is nothing to compute on (no clicks, budget or sales).
    """
    t = sum_metrics(project(r, direction) for r in reports)
    if t.clicks == 0 and t.budget == 0 and t.sales == 0:
        return None

    gross_profit = t.sales * (margin_percent / 100.0)
    contribution_margin = gross_profit - t.budget
    net_profit = contribution_margin - fixed_costs

    return UnitEconomics(
        direction=direction,
        marginPercent=margin_percent,
        fixedCosts=fixed_costs,
        totals=t,
        cpc=safe_div(t.budget, t.clicks),
        cpl=safe_div(t.budget, t.leads),
        cac=safe_div(t.budget, t.deals),
        averageCheck=safe_div(t.sales, t.deals),
        cr1=pct(t.leads, t.clicks),
        cr2=pct(t.proposals, t.leads),
        cr3=pct(t.deals, t.proposals),
        grossProfit=gross_profit,
        contributionMargin=contribution_margin,
        netProfit=net_profit,
        roiPercent=pct(gross_profit - t.budget, t.budget),
        profitabilityPercent=pct(net_profit, t.sales),
    )
