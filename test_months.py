# =============================================================================
# test_months.py - Month arithmetic and labels
# =============================================================================
# No database needed. Every helper takes an optional `today` so the tests
# don't depend on the real date.
#
# Run: python test_months.py   (or: pytest)
# =============================================================================

import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from utils.months import (
    to_arabic_numerals,
    format_month,
    current_month,
    working_month,
    add_months,
    project_advance_months,
    paid_until,
    month_options,
    last_n_months,
)


def test_format_month():
    assert format_month("2026-03") == "مارس 2026"
    assert format_month("2026-12") == "ديسمبر 2026"
    assert format_month("all") == "كل الوقت"
    # Unknown month number is shown as it is
    assert format_month("2026-13") == "13 2026"


def test_format_month_arabic_digits():
    assert to_arabic_numerals("2026") == "٢٠٢٦"
    assert format_month("2026-03", arabic_digits=True) == "مارس ٢٠٢٦"


def test_current_month():
    assert current_month(date(2026, 3, 15)) == "2026-03"
    assert current_month(date(2027, 11, 1)) == "2027-11"


def test_working_month_switches_in_last_week():
    # March has 31 days: from the 25th on, the team works on April
    assert working_month(date(2026, 3, 24)) == "2026-03"
    assert working_month(date(2026, 3, 25)) == "2026-04"
    # February 2026 has 28 days
    assert working_month(date(2026, 2, 21)) == "2026-02"
    assert working_month(date(2026, 2, 22)) == "2026-03"
    # Year wraparound
    assert working_month(date(2026, 12, 31)) == "2027-01"


def test_add_months_wraps_years():
    assert add_months("2026-11", 3) == "2027-02"
    assert add_months("2026-01", -1) == "2025-12"
    assert add_months("2026-06", 0) == "2026-06"
    assert add_months("2026-12", 12) == "2027-12"


def test_project_advance_months():
    assert project_advance_months("2026-11", 3) == ["2026-12", "2027-01"]
    assert project_advance_months("2026-03", 1) == []
    assert project_advance_months("2026-03", 0) == []
    assert len(project_advance_months("2026-01", 12)) == 11


def test_paid_until():
    assert paid_until("2026-11", 3) == "2027-01-31"
    assert paid_until("2026-03", 1) == "2026-03-31"
    # Leap year
    assert paid_until("2028-02", 1) == "2028-02-29"
    assert paid_until("2027-09", 6) == "2028-02-29"


def test_month_options():
    today = date(2026, 3, 10)
    options = month_options(count=3, today=today)
    assert [value for value, _ in options] == ["2026-03", "2026-02", "2026-01"]
    assert options[0][1] == "مارس 2026"

    options = month_options(count=2, include_all=True, ahead=1, today=today)
    assert [value for value, _ in options] == ["all", "2026-04", "2026-03", "2026-02"]


def test_last_n_months():
    assert last_n_months(3, today=date(2026, 1, 5)) == ["2025-11", "2025-12", "2026-01"]
    assert last_n_months(1, today=date(2026, 1, 5)) == ["2026-01"]


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} month tests passed")
