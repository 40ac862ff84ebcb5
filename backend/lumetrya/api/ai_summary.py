# backend/lumetrya/api/ai_summary.py
from __future__ import annotations
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional, Literal, Dict, Any
import json, time, logging, sqlite3

import openai

from lumetrya.analytics import aggregate, compare_periods, control_chart, filter_reports
from lumetrya.api.dashboard import checked_filter, stored_reports
from lumetrya.config import get_settings
from lumetrya.db.repository import AI_KEY_CONFIG, get_config
from lumetrya.db.session import get_sqlite_conn
from lumetrya.schemas.metrics import ALL, AggregateResult, FilterCriteria, Report

router = APIRouter(prefix="/api/ai", tags=["ai"])
log = logging.getLogger(__name__)

# -------------------- Schemas --------------------

class AnalysisRequest(BaseModel):
    direction: str = ALL
    month: str = ALL
    quarter: str = ALL
    year: str = ALL
    question: Optional[str] = None
    provider: Optional[Literal["openai", "auto", "none"]] = "auto"
    model: Optional[str] = None
    max_tokens: Optional[int] = 500
    temperature: Optional[float] = 0.2

class AnalysisResponse(BaseModel):
    source: Literal["openai", "heuristic"]
    summary: str
    highlights: List[str] = Field(default_factory=list)
    cautions: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)

# -------------------- Helpers --------------------

def _fmt_money(x: float) -> str:
    return f"{x:,.0f}"

def _growth(cur: float, prev: float) -> Optional[float]:
    return (cur - prev) / prev * 100.0 if prev > 0 else None

def _consistency_issues(reports: List[Report]) -> List[str]:
    """Data-entry slips visible without any model."""
    issues = []
    for r in reports:
        m = r.metrics
        if m.leads > m.clicks > 0:
            issues.append(f"{r.name}: more leads ({m.leads:.0f}) than clicks ({m.clicks:.0f})")
        if m.deals > m.leads > 0:
            issues.append(f"{r.name}: more deals ({m.deals:.0f}) than leads ({m.leads:.0f})")
        if r.directions:
            split = sum(d.budget for d in r.directions.values())
            if split > m.budget > 0:
                issues.append(f"{r.name}: direction budgets ({_fmt_money(split)}) exceed the total ({_fmt_money(m.budget)})")
    for prev, cur in zip(reports, reports[1:]):
        if compare_periods(cur, prev).identical:
            issues.append(f"{cur.name} repeats the numbers of {prev.name}")
    return issues

def _heuristic_analysis(reports: List[Report], direction: str, question: Optional[str]) -> AnalysisResponse:
    agg = aggregate(reports, direction)
    t, ratios = agg.totals, agg.ratios

    if not reports:
        return AnalysisResponse(
            source="heuristic",
            summary="No reports match the selected period.",
            actions=["Add a monthly report or widen the period filter"],
            meta={"provider": "none", "heuristic": True, "reports": 0},
        )

    summary = (
        f"{len(reports)} report(s), direction {direction}: budget {_fmt_money(t.budget)}, "
        f"sales {_fmt_money(t.sales)}, ROI {ratios.roiPercent:.1f}%"
    )
    if question:
        summary += f" | Question: {question}"

    highlights, cautions, actions = [], [], []

    series = agg.revenueBudgetSeries
    if len(series) >= 2:
        g = _growth(series[-1].sales, series[-2].sales)
        if g is not None and g > 0:
            highlights.append(f"📈 Sales up {g:.1f}% in {series[-1].label} vs {series[-2].label}")
        elif g is not None and g < 0:
            cautions.append(f"📉 Sales down {abs(g):.1f}% in {series[-1].label} vs {series[-2].label}")

    if ratios.roiPercent >= 100:
        highlights.append(f"💰 ROI at {ratios.roiPercent:.0f}%: every unit of budget returns {t.sales / t.budget:.1f}x in sales")
    elif t.budget > 0 and ratios.roiPercent < 0:
        cautions.append(f"🔴 Negative ROI ({ratios.roiPercent:.0f}%): spend exceeds sales")

    if ratios.leadToDealConversionPercent > 0:
        highlights.append(f"🎯 Lead → deal conversion {ratios.leadToDealConversionPercent:.1f}%, CPL {_fmt_money(ratios.costPerLead)}")

    for metric in ("budget", "cpl", "revenue"):
        chart = control_chart(reports, metric, direction)
        if chart.sufficient and chart.outOfControl:
            labels = ", ".join(p.label for p in chart.outOfControl)
            cautions.append(f"⚠️ {metric} outside control limits in: {labels}")
            actions.append(f"📋 Check what changed in {labels} ({metric})")

    issues = _consistency_issues(reports)
    cautions.extend(f"⚠️ {i}" for i in issues)
    if issues:
        actions.append("📋 Re-check the flagged reports against the source data")

    if agg.budgetDistribution:
        top = max(agg.budgetDistribution, key=lambda s: s.value)
        share = top.value / sum(s.value for s in agg.budgetDistribution) * 100
        if share > 70:
            actions.append(f"📋 {top.name} takes {share:.0f}% of the budget; review the split across directions")

    if not actions:
        actions.append("✅ No anomalies found; keep the current budget plan")

    return AnalysisResponse(
        source="heuristic",
        summary=summary[:400],
        highlights=highlights[:4],
        cautions=cautions[:6],
        actions=actions[:4],
        meta={"provider": "none", "heuristic": True, "reports": len(reports), "issues": len(issues)},
    )

def _build_prompt(reports: List[Report], agg: AggregateResult, question: Optional[str]) -> str:
    lines = []
    lines.append("You are a senior marketing analyst. Review these monthly marketing reports for")
    lines.append("anomalies, trends and inconsistencies and give a short expert verdict.")
    lines.append("")
    lines.append("=== TOTALS ===")
    lines.append(json.dumps(agg.totals.model_dump(), ensure_ascii=False))
    lines.append(json.dumps(agg.ratios.model_dump(), ensure_ascii=False))
    lines.append("")
    lines.append("=== REPORTS ===")
    lines.append(json.dumps([r.model_dump(mode="json") for r in reports], ensure_ascii=False))
    lines.append("")
    if question:
        lines.append("=== USER QUESTION ===")
        lines.append(question)
        lines.append("")
    lines.append("=== OUTPUT FORMAT ===")
    lines.append("SUMMARY: [1-2 sentence verdict]")
    lines.append("HIGHLIGHTS: [key positive points, one per line]")
    lines.append("CAUTIONS: [anomalies or inconsistencies, one per line]")
    lines.append("ACTIONS: [specific next steps, one per line]")
    return "\n".join(lines)

def _resolve_api_key() -> Optional[str]:
    key = get_settings().openai_api_key
    if key:
        return key
    try:
        with get_sqlite_conn() as conn:
            return get_config(conn, AI_KEY_CONFIG)
    except sqlite3.Error as e:
        log.warning("Reading stored AI key failed: %s", e)
        return None

def _call_openai(prompt: str, model: Optional[str], max_tokens: int, temperature: float) -> Optional[str]:
    api_key = _resolve_api_key()
    if not api_key:
        return None
    try:
        client = openai.OpenAI(api_key=api_key)
        resp = client.chat.completions.create(
            model=model or get_settings().openai_model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": "Be precise, return concise bullets."},
                {"role": "user", "content": prompt},
            ],
        )
        return resp.choices[0].message.content.strip() if resp and resp.choices else None
    except openai.OpenAIError as e:
        log.warning("OpenAI call failed: %s", e)
        return None

_SECTIONS = ("summary", "highlights", "cautions", "actions")

def _parse_sections(text: str) -> Dict[str, Any]:
    sections: Dict[str, Any] = {"summary": "", "highlights": [], "cautions": [], "actions": []}
    current = None
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        head, _, rest = line.partition(":")
        if head.lower() in _SECTIONS:
            current = head.lower()
            line = rest.strip()
            if not line:
                continue
        cleaned = line.strip("•-* ").strip()
        if current is None or current == "summary":
            sections["summary"] = f"{sections['summary']} {cleaned}".strip()
        else:
            sections[current].append(cleaned)
    return sections

_LAST_CALL_TS = 0.0
_MIN_INTERVAL_SEC = 2.0  # naive rate limit

@router.post("/report-analysis", response_model=AnalysisResponse)
def report_analysis(req: AnalysisRequest):
    global _LAST_CALL_TS
    now = time.time()
    if now - _LAST_CALL_TS < _MIN_INTERVAL_SEC:
        raise HTTPException(status_code=429, detail="Too many requests")
    _LAST_CALL_TS = now

    direction = req.direction.strip() or ALL
    criteria = FilterCriteria(
        direction=direction,
        month=checked_filter("month", req.month),
        quarter=checked_filter("quarter", req.quarter),
        year=checked_filter("year", req.year),
    )
    reports = filter_reports(stored_reports(), criteria)

    # Prefer OpenAI when a key is configured
    if reports and (req.provider or "auto") in ("auto", "openai"):
        prompt = _build_prompt(reports, aggregate(reports, direction), req.question)
        text = _call_openai(
            prompt=prompt,
            model=req.model,
            max_tokens=min(max(req.max_tokens or 500, 200), 1000),
            temperature=req.temperature or 0.2,
        )
        if text:
            parsed = _parse_sections(text)
            return AnalysisResponse(
                source="openai",
                summary=(parsed["summary"] or text)[:400],
                highlights=parsed["highlights"][:4],
                cautions=parsed["cautions"][:6],
                actions=parsed["actions"][:4],
                meta={"provider": "openai", "reports": len(reports)},
            )

    # Fallback: heuristic analysis
    return _heuristic_analysis(reports, direction, req.question)
