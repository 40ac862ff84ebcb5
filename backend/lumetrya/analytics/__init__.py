from .periods import parse_period_date, filter_reports, sort_reports, available_years, EPOCH_SENTINEL
from .aggregator import aggregate
from .comparison import compare_periods
from .conversions import conversion_analysis
from .unit_economics import unit_economics
from .control_chart import control_chart

__all__ = [
    "parse_period_date", "filter_reports", "sort_reports", "available_years", "EPOCH_SENTINEL",
    "aggregate", "compare_periods", "conversion_analysis", "unit_economics", "control_chart",
]
