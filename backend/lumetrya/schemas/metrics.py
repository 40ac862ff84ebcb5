from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator

METRIC_FIELDS = ("budget", "clicks", "leads", "proposals", "invoices", "deals", "sales")

ALL = "all"

class Metrics(BaseModel):
    budget: float = Field(0, ge=0)
    clicks: float = Field(0, ge=0)
    leads: float = Field(0, ge=0)
    proposals: float = Field(0, ge=0)
    invoices: float = Field(0, ge=0)
    deals: float = Field(0, ge=0)
    sales: float = Field(0, ge=0)

    class Config:
        frozen = True

    @field_validator(*METRIC_FIELDS, mode="before")
    @classmethod
    def _none_is_zero(cls, v):
        return 0 if v is None or v == "" else v

ZERO_METRICS = Metrics()

class NetMetrics(BaseModel):
    qualifiedLeads: float = 0

class Report(BaseModel):
    id: str
    name: str = ""
    # str / date / datetime; see analytics.periods.parse_period_date
    creationDate: Any = None
    metrics: Metrics = Field(default_factory=Metrics)
    directions: Dict[str, Metrics] = Field(default_factory=dict)
    previousMetrics: Optional[Metrics] = None
    netMetrics: Optional[NetMetrics] = None

    class Config:
        frozen = True

    @field_validator("metrics", mode="before")
    @classmethod
    def _metrics_default(cls, v):
        return {} if v is None else v

    @field_validator("directions", mode="before")
    @classmethod
    def _directions_default(cls, v):
        return {} if v is None else v

# Query values arrive as strings from UI controls
FilterValue = Union[Literal["all"], int, str]

class FilterCriteria(BaseModel):
    direction: str = ALL
    month: FilterValue = ALL
    quarter: FilterValue = ALL
    year: FilterValue = ALL

# ---------- aggregate result ----------
class Ratios(BaseModel):
    costPerLead: float = 0
    costPerClick: float = 0
    costPerProposal: float = 0
    costPerInvoice: float = 0
    costPerDeal: float = 0
    averageCheck: float = 0
    roiPercent: float = 0
    leadToDealConversionPercent: float = 0

class FunnelStage(BaseModel):
    name: str
    value: float

class StageConversion(BaseModel):
    label: str
    fromStage: str
    toStage: str
    value: float

class RevenueBudgetPoint(BaseModel):
    label: str
    budget: float
    sales: float

class LeadDynamicsPoint(BaseModel):
    label: str
    leads: Dict[str, float]

class BudgetShare(BaseModel):
    name: str
    value: float

class AggregateResult(BaseModel):
    direction: str = ALL
    reportCount: int = 0
    totals: Metrics = Field(default_factory=Metrics)
    ratios: Ratios = Field(default_factory=Ratios)
    funnel: List[FunnelStage] = Field(default_factory=list)
    stageConversions: List[StageConversion] = Field(default_factory=list)
    revenueBudgetSeries: List[RevenueBudgetPoint] = Field(default_factory=list)
    leadDynamics: List[LeadDynamicsPoint] = Field(default_factory=list)
    budgetDistribution: List[BudgetShare] = Field(default_factory=list)
    # Direction keys observed in the filtered reports, first-seen order
    directions: List[str] = Field(default_factory=list)

class DashboardResponse(BaseModel):
    filters: FilterCriteria
    availableYears: List[int]
    data: AggregateResult
