# backend/tests/test_aggregator.py
import math
import pytest

from conftest import make_report, metrics
from lumetrya.analytics import aggregate, filter_reports
from lumetrya.schemas.metrics import FilterCriteria


def _zero(model) -> bool:
    return all(v == 0 for v in model.model_dump().values())

def test_empty_input_is_a_zero_result():
    res = aggregate([], "all")
    assert res.reportCount == 0
    assert _zero(res.totals) and _zero(res.ratios)
    assert res.funnel == [] and res.budgetDistribution == []
    assert res.revenueBudgetSeries == [] and res.leadDynamics == []
    assert all(c.value == 0 for c in res.stageConversions)

def test_zero_denominator_ratios_are_zero():
    res = aggregate([make_report("r", "2024-01-01", budget=100, leads=0)])
    assert res.ratios.costPerLead == 0
    assert res.ratios.costPerClick == 0
    assert all(math.isfinite(v) for v in res.ratios.model_dump().values())

def test_roi_and_average_check():
    res = aggregate([make_report("r", "2024-01-01", budget=200, sales=300, deals=2)])
    assert res.ratios.roiPercent == pytest.approx(50)
    assert res.ratios.averageCheck == pytest.approx(150)
    assert res.ratios.costPerDeal == pytest.approx(100)

def test_totals_and_ratios():
    rs = [
        make_report("a", "2024-01-31", budget=1000, clicks=500, leads=50, proposals=20, invoices=10, deals=5, sales=5000),
        make_report("b", "2024-02-29", budget=1000, clicks=500, leads=50, proposals=20, invoices=10, deals=5, sales=3000),
    ]
    res = aggregate(rs)
    assert res.totals.budget == 2000 and res.totals.sales == 8000
    assert res.ratios.costPerLead == pytest.approx(20)
    assert res.ratios.costPerClick == pytest.approx(2)
    assert res.ratios.costPerProposal == pytest.approx(50)
    assert res.ratios.costPerInvoice == pytest.approx(100)
    assert res.ratios.leadToDealConversionPercent == pytest.approx(10)
    assert res.ratios.roiPercent == pytest.approx(300)

def test_zero_funnel_stage_is_dropped_keeping_order():
    res = aggregate([make_report("r", "2024-01-01", leads=10, proposals=0, invoices=5, deals=2)])
    assert [(s.name, s.value) for s in res.funnel] == [("Leads", 10), ("Invoices", 5), ("Deals", 2)]

def test_stage_conversions():
    res = aggregate([make_report("r", "2024-01-01", clicks=200, leads=20, proposals=10, invoices=0, deals=2)])
    conv = {c.label: c.value for c in res.stageConversions}
    assert list(conv) == ["Clicks → Leads", "Leads → Proposals", "Proposals → Invoices", "Invoices → Deals"]
    assert conv["Clicks → Leads"] == pytest.approx(10)
    assert conv["Leads → Proposals"] == pytest.approx(50)
    assert conv["Proposals → Invoices"] == 0
    assert conv["Invoices → Deals"] == 0  # from-stage is 0

def test_direction_projection():
    r = make_report(
        "r", "2024-01-01", leads=8, budget=100, proposals=4,
        directions={"A": metrics(leads=5, budget=60), "B": metrics(leads=3, budget=40)},
    )
    res = aggregate([r], "A")
    assert res.totals.leads == 5
    assert res.totals.budget == 60
    # Proposals are not split per direction; the funnel takes them from the report totals
    assert [(s.name, s.value) for s in res.funnel] == [("Leads", 5), ("Proposals", 4)]

def test_unknown_direction_projects_to_zero():
    r = make_report("r", "2024-01-01", leads=8, budget=100, directions={"A": metrics(leads=5)})
    res = aggregate([r], "missing")
    assert _zero(res.totals)
    assert _zero(res.ratios)

def test_series_keep_last_twelve_in_filtered_order():
    rs = [make_report(f"r{i:02d}", f"2023-{(i % 12) + 1:02d}-01" if i < 12 else f"2024-{i - 11:02d}-01",
                      name=f"Report M{i:02d} 2024", budget=i, sales=i * 10)
          for i in range(20)]
    filtered = filter_reports(rs, FilterCriteria())
    res = aggregate(filtered)
    assert len(res.revenueBudgetSeries) == 12
    assert [p.budget for p in res.revenueBudgetSeries] == [r.metrics.budget for r in filtered[-12:]]
    assert [p.label for p in res.revenueBudgetSeries] == [r.name.split(" ")[-2][:3] for r in filtered[-12:]]
    assert len(res.leadDynamics) == 12

def test_lead_dynamics_cover_every_observed_direction():
    rs = [
        make_report("a", "2024-01-31", name="Report January 2024", directions={"РТИ": metrics(leads=4)}),
        make_report("b", "2024-02-29", name="Report February 2024", directions={"3D": metrics(leads=2)}),
    ]
    res = aggregate(rs)
    assert res.directions == ["РТИ", "3D"]
    assert [p.leads for p in res.leadDynamics] == [{"РТИ": 4, "3D": 0}, {"РТИ": 0, "3D": 2}]
    assert [p.label for p in res.leadDynamics] == ["Jan", "Feb"]

def test_budget_distribution_ignores_projection_and_omits_zero():
    rs = [
        make_report("a", "2024-01-31", directions={"A": metrics(budget=100), "B": metrics(budget=0)}),
        make_report("b", "2024-02-29", directions={"A": metrics(budget=50), "C": metrics(budget=25)}),
    ]
    res = aggregate(rs, "A")
    assert [(s.name, s.value) for s in res.budgetDistribution] == [("A", 150), ("C", 25)]

def test_filter_is_idempotent():
    rs = [make_report(str(m), f"2024-{m:02d}-15") for m in range(1, 13)]
    criteria = FilterCriteria(quarter="2", year="2024")
    once = filter_reports(rs, criteria)
    assert filter_reports(once, criteria) == once

def test_aggregate_does_not_mutate_reports():
    r = make_report("r", "2024-01-01", budget=10, directions={"A": metrics(budget=5)})
    before = r.model_dump()
    aggregate([r], "A")
    assert r.model_dump() == before
