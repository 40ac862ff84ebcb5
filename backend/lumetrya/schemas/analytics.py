from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from lumetrya.schemas.metrics import Metrics

Unit = Literal["currency", "number", "%"]

# ---------- period comparison ----------
class ComparisonRow(BaseModel):
    key: str
    label: str
    p1: float
    p2: float
    changePercent: float
    unit: Optional[Unit] = None

class ComparisonResult(BaseModel):
    direction: str
    firstId: Optional[str] = None
    secondId: Optional[str] = None
    metrics: List[ComparisonRow]
    conversions: List[ComparisonRow]
    # Two different reports carrying the same numbers (usually a copy/paste slip)
    identical: bool = False

# ---------- conversions ----------
class ConversionStage(BaseModel):
    fromStage: str
    toStage: str
    fromValue: float
    toValue: float
    conversion: float

class ConversionPoint(BaseModel):
    label: str
    clicksToLeads: float
    leadsToProposals: float
    proposalsToDeals: float

class ConversionAnalysis(BaseModel):
    direction: str
    stages: List[ConversionStage]
    series: List[ConversionPoint]

# ---------- unit economics ----------
class UnitEconomics(BaseModel):
    direction: str
    marginPercent: float
    fixedCosts: float
    totals: Metrics
    cpc: float
    cpl: float
    cac: float
    averageCheck: float
    cr1: float  # clicks → leads
    cr2: float  # leads → proposals
    cr3: float  # proposals → deals
    grossProfit: float
    contributionMargin: float
    netProfit: float
    roiPercent: float
    profitabilityPercent: float

class UnitEconomicsResponse(BaseModel):
    data: Optional[UnitEconomics] = None

# ---------- control chart ----------
class ControlPoint(BaseModel):
    label: str
    date: str
    value: float
    outOfControl: bool = False

class ControlChart(BaseModel):
    metric: str
    direction: str
    mean: float
    stdDev: float
    ucl: float
    lcl: float
    points: List[ControlPoint] = Field(default_factory=list)
    outOfControl: List[ControlPoint] = Field(default_factory=list)
    sufficient: bool = False
