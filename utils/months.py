# =============================================================================
# utils/months.py
# =============================================================================
# PURPOSE:
#   Month arithmetic and month labels.
#
#   Every month in the system is a "YYYY-MM" string. These helpers:
#   - Turn "2026-03" into "مارس 2026"
#   - Roll months forward/backward across year boundaries
#   - Build the month pickers used on every page
#
# WHY STRINGS AND NOT DATES?
#   "YYYY-MM" strings sort correctly as text, compare with < and >, and
#   are exactly what is stored in the month_year columns.
# =============================================================================

import calendar
from datetime import date

from config import (
    MONTHS_AR,
    ALL_MONTHS,
    ALL_MONTHS_LABEL,
    WORKING_MONTH_LEAD_DAYS,
)

ARABIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def to_arabic_numerals(text):
    """Replace Western digits with Arabic-Indic digits: "2026" → "٢٠٢٦"."""
    return str(text).translate(ARABIC_DIGITS)


def _split(month_year):
    year, month = str(month_year).split("-")
    return int(year), int(month)


def _join(year, month):
    return f"{year:04d}-{month:02d}"


def format_month(month_year, arabic_digits=False):
    """
    Human label for a month.

    EXAMPLES:
        format_month("2026-03")                      → "مارس 2026"
        format_month("2026-03", arabic_digits=True)  → "مارس ٢٠٢٦"
        format_month("all")                          → "كل الوقت"
        format_month("2026-13")                      → "13 2026"
    """
    if month_year == ALL_MONTHS:
        return ALL_MONTHS_LABEL

    parts = str(month_year).split("-")
    if len(parts) != 2:
        return str(month_year)

    year, month = parts
    label = f"{MONTHS_AR.get(month, month)} {year}"
    return to_arabic_numerals(label) if arabic_digits else label


def current_month(today=None):
    """The calendar month of `today` as "YYYY-MM"."""
    today = today or date.today()
    return _join(today.year, today.month)


def working_month(today=None):
    """
    The month the team is working on.

    In the last days of a month (the final WORKING_MONTH_LEAD_DAYS days,
    i.e. day >= last_day - 6) the team already prepares next month, so
    that month is returned instead of the current one.

    EXAMPLE:
        working_month(date(2026, 3, 24))  → "2026-03"
        working_month(date(2026, 3, 25))  → "2026-04"
        working_month(date(2026, 12, 31)) → "2027-01"
    """
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]

    if today.day >= last_day - (WORKING_MONTH_LEAD_DAYS - 1):
        return add_months(current_month(today), 1)
    return current_month(today)


def add_months(month_year, n):
    """
    Roll a month forward by n months (backward when n is negative).

    EXAMPLE:
        add_months("2026-11", 3)  → "2027-02"
        add_months("2026-01", -1) → "2025-12"
    """
    year, month = _split(month_year)
    index = year * 12 + (month - 1) + n
    return _join(index // 12, index % 12 + 1)


def project_advance_months(start_month, months):
    """
    The future months covered by an advance payment, after the start month.

    A payment for 3 months starting "2026-11" is recorded in 2026-11 and
    covers the two months after it.

    RETURNS:
        list: ["2026-12", "2027-01"] for ("2026-11", 3); [] when months <= 1
    """
    return [add_months(start_month, i) for i in range(1, max(int(months or 0), 1))]


def paid_until(start_month, months):
    """
    ISO date of the last day of the final month covered.

    EXAMPLE:
        paid_until("2026-11", 3) → "2027-01-31"
        paid_until("2028-02", 1) → "2028-02-29"
    """
    last_month = add_months(start_month, max(int(months or 0), 1) - 1)
    year, month = _split(last_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, last_day).isoformat()


def month_options(count=24, include_all=False, ahead=0, today=None):
    """
    Options for a month selectbox, newest first.

    PARAMETERS:
        count (int): How many months to list, counting back from this month
        include_all (bool): Put ("all", "كل الوقت") at the top
        ahead (int): Also list this many future months before the current one
        today (date): Reference day (defaults to today)

    RETURNS:
        list: [(value, label), ...]

    EXAMPLE (today in March 2026, ahead=1):
        [("2026-04", "أبريل 2026"), ("2026-03", "مارس 2026"), ...]
    """
    this_month = current_month(today)
    options = []

    if include_all:
        options.append((ALL_MONTHS, ALL_MONTHS_LABEL))

    for offset in range(ahead, -count, -1):
        value = add_months(this_month, offset)
        options.append((value, format_month(value)))

    return options


def last_n_months(n=3, today=None):
    """
    The last n months ending with the current one, oldest first.
    The settle page shows these as buttons with the current month last.
    """
    this_month = current_month(today)
    return [add_months(this_month, -i) for i in range(n - 1, -1, -1)]
