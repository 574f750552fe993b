# =============================================================================
# utils/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the utils folder a Python package and provides easy imports.
#
# WHAT ARE UTILS?
#   "Utils" is short for "utilities" - helper functions that are used
#   across the application. They don't belong to any specific feature
#   but are useful everywhere.
#
# EXAMPLES:
#   - Calculation functions (obligations, payment splits, sadaqat totals)
#   - Month helpers (labels, working month, advance months)
#   - Name matching (sponsor lookup from free text)
#
# The Streamlit-only helpers (auth, sidebar_nav, styling) are imported from
# their modules directly by the pages.
# =============================================================================

from .calculations import (
    split_payment,
    split_cash_collection,
    calculate_sponsor_obligations,
    build_settlement_rows,
    build_area_report,
    sadaqat_summary,
    sponsor_balances,
)

from .months import (
    format_month,
    current_month,
    working_month,
    month_options,
)

from .matching import best_match, match_sender_name
