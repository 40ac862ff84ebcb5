# backend/tests/test_periods.py
import datetime as dt
import pytest

from conftest import make_report
from lumetrya.analytics.periods import (
    EPOCH_SENTINEL,
    available_years,
    coerce_filter_value,
    filter_reports,
    parse_period_date,
    short_label,
    sort_reports,
)
from lumetrya.schemas.metrics import FilterCriteria


def test_plain_date_string_is_taken_literally():
    assert parse_period_date("2024-03-01") == dt.date(2024, 3, 1)

def test_time_component_never_shifts_the_day():
    # Late-evening UTC timestamp must stay on the same calendar day
    assert parse_period_date("2024-03-31T23:30:00Z") == dt.date(2024, 3, 31)
    assert parse_period_date("2024-01-01 00:15:00+05:00") == dt.date(2024, 1, 1)

@pytest.mark.parametrize("value", [None, "", "   ", "not a date", "2024-13-45", "2023-02-30"])
def test_unparsable_values_fall_back_to_sentinel(value):
    assert parse_period_date(value) == EPOCH_SENTINEL

def test_date_objects_pass_through():
    d = dt.date(2023, 7, 9)
    assert parse_period_date(d) is d
    stamp = dt.datetime(2023, 7, 9, 12, 0)
    assert parse_period_date(stamp) is stamp

def test_generic_formats_are_parsed():
    parsed = parse_period_date("March 5, 2024")
    assert (parsed.year, parsed.month, parsed.day) == (2024, 3, 5)

@pytest.mark.parametrize("value,expected", [
    ("2024", (2024, 1, 1)),
    ("February 2024", (2024, 2, 1)),
    ("March 2023", (2023, 3, 1)),
])
def test_partial_dates_do_not_depend_on_today(value, expected):
    parsed = parse_period_date(value)
    assert (parsed.year, parsed.month, parsed.day) == expected

def test_month_year_report_matches_its_month():
    reports = [make_report("feb", "February 2024"), make_report("jan", "2024-01-31")]
    out = filter_reports(reports, FilterCriteria(month="2", year="2024"))
    assert [r.id for r in out] == ["feb"]

@pytest.mark.parametrize("value,expected", [
    ("all", None), ("ALL", None), (None, None), ("", None),
    (3, 3), ("3", 3), (" 03 ", 3), ("2024", 2024),
    (2024.0, 2024), (3.0, 3),
])
def test_coerce_filter_value(value, expected):
    assert coerce_filter_value(value) == expected

@pytest.mark.parametrize("value", ["March", "3.5", 3.5, True])
def test_coerce_filter_value_rejects_garbage(value):
    with pytest.raises(ValueError):
        coerce_filter_value(value)


@pytest.fixture()
def reports():
    return [
        make_report("apr", "2024-04-30"),
        make_report("jan", "2024-01-31"),
        make_report("mar", "2024-03-01"),
        make_report("dec", "2023-12-31"),
        make_report("bad", "garbage"),
    ]

@pytest.mark.parametrize("month", ["3", 3, " 03 "])
def test_month_filter_coerces_equivalent_values(reports, month):
    out = filter_reports(reports, FilterCriteria(month=month))
    assert [r.id for r in out] == ["mar"]

def test_quarter_and_year_filters(reports):
    q1 = filter_reports(reports, FilterCriteria(quarter="1", year="2024"))
    assert [r.id for r in q1] == ["jan", "mar"]
    y2023 = filter_reports(reports, FilterCriteria(year=2023))
    assert [r.id for r in y2023] == ["dec"]

def test_uncoercible_filter_matches_nothing(reports):
    assert filter_reports(reports, FilterCriteria(month="March")) == []

def test_all_criteria_keep_everything_sorted_ascending(reports):
    out = filter_reports(reports, FilterCriteria())
    # Sentinel-dated report sorts first
    assert [r.id for r in out] == ["bad", "dec", "jan", "mar", "apr"]

def test_filter_does_not_mutate_input(reports):
    before = [r.id for r in reports]
    filter_reports(reports, FilterCriteria(year="2024"))
    assert [r.id for r in reports] == before

def test_sort_is_stable_for_equal_dates():
    same_day = [make_report(str(i), "2024-05-01") for i in range(5)]
    assert [r.id for r in sort_reports(same_day)] == ["0", "1", "2", "3", "4"]

def test_mixed_date_and_datetime_values_sort():
    rs = [
        make_report("b", dt.datetime(2024, 2, 1, 10, 0)),
        make_report("a", dt.date(2024, 2, 1)),
        make_report("c", "2024-01-15"),
    ]
    assert [r.id for r in sort_reports(rs)] == ["c", "a", "b"]

def test_available_years_newest_first(reports):
    assert available_years(reports) == [2024, 2023, 1970]

@pytest.mark.parametrize("name,label", [
    ("Report March 2024", "Mar"),
    ("Отчет Январь 2024", "Янв"),
    ("Single", "Sin"),
    ("", ""),
])
def test_short_label(name, label):
    assert short_label(name) == label
