# =============================================================================
# database/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the database folder a Python package and provides easy imports.
#
# USAGE:
#   Instead of writing:
#       from database.connection import get_db_connection
#       from database.schema import init_db
#       from database.queries import load_sponsors
#
#   You can write:
#       from database import get_db_connection, init_db, load_sponsors
#
# HOW IT WORKS:
#   We import functions from submodules and "re-export" them here.
#   This is a common Python pattern for cleaner imports.
# =============================================================================

# Import from connection module
from .connection import get_db_connection

# Import from schema module
from .schema import init_db, get_table_info

# Import from queries module - all the data loading/saving functions
from .queries import (
    # Areas & operators
    load_areas,
    create_area,
    load_operators,
    create_operator,

    # Sponsors
    load_sponsors,
    load_sponsor_by_id,
    find_sponsor_by_name,
    next_legacy_id,
    create_sponsor,
    update_sponsor,

    # Cases
    load_cases,
    create_case,
    update_case,

    # Sponsorships (sponsor ↔ case links)
    load_sponsorships,
    create_sponsorship,
    update_sponsorship,

    # Collections
    load_collections,
    create_collection,
    delete_sponsor_collections,

    # Monthly adjustments
    load_adjustments,
    create_adjustment,
    update_adjustment,
    delete_adjustment,

    # Sadaqat pool
    load_sadaqat_entries,
    create_sadaqat_entry,
    delete_sadaqat_entry,

    # Advance payments
    load_advance_payments,
    create_advance_payment,

    # Monthly disbursements per area
    load_disbursements,
    save_disbursement,
)

# Import from workflows module - multi-step writes used by the pages
from .workflows import (
    save_collection,
    record_cash_collections,
    save_settlement_rows,
    register_sponsor,
    register_case,
    create_case_with_sponsorship,
    add_sadaqat_outflow,
)
