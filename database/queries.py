# =============================================================================
# database/queries.py
# =============================================================================
# PURPOSE:
#   Contains all database queries - loading and saving data.
#   This is the "data access layer" - the only code that talks to the database.
#
# WHY SEPARATE QUERIES?
#   1. Keeps SQL in one place (easy to find and modify)
#   2. Pages and calculations never see SQL
#   3. Makes testing easier (tests run these against a temp database)
#
# ORGANIZATION:
#   Functions are grouped by table:
#   - Areas / Operators (lookups)
#   - Sponsors (load_sponsors, find_sponsor_by_name, create_sponsor, ...)
#   - Cases, Sponsorships
#   - Collections, Monthly Adjustments
#   - Sadaqat Pool, Advance Payments, Disbursements
#
# NAMING CONVENTION:
#   - load_X() → Read data (SELECT), returns a DataFrame
#   - create_X() → Insert new data (INSERT), returns the new id or None
#   - update_X() → Modify existing data (UPDATE), returns bool
#   - delete_X() → Remove data (DELETE), returns bool
#
# ERRORS:
#   Every function catches its own exceptions, prints an [ERROR] line and
#   returns an "empty" value (empty DataFrame / None / False). Callers check
#   the return value instead of wrapping calls in try/except.
# =============================================================================

import pandas as pd
from datetime import datetime

import config
from .connection import get_db_connection


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _safe_float(value, default=0.0):
    """
    Safely convert a value to float.
    Returns default if conversion fails.

    WHY NEEDED?
        Amounts come from CSV files and form inputs:
        - Empty cells → None or ""
        - Text like "N/A" instead of numbers
        - Commas in numbers: "1,000"
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        if pd.isna(value):
            return default
        return float(value)
    try:
        cleaned = str(value).replace(",", "").strip()
        if cleaned == "" or cleaned.lower() in ("nan", "none", "n/a", "-"):
            return default
        return float(cleaned)
    except (ValueError, TypeError):
        return default


def _safe_int(value, default=None):
    """
    Safely convert a value to integer.
    Handles numpy types from pandas DataFrames.
    """
    if value is None:
        return default
    # Handle numpy types (from pandas)
    if hasattr(value, 'item'):
        value = value.item()
    try:
        if pd.isna(value):
            return default
        return int(value)
    except (ValueError, TypeError):
        return default


def _insert_row(table, data):
    """
    INSERT one row built from a dict and return the new row id.
    Column names always come from our own code, never from user input.
    """
    conn = get_db_connection()
    cursor = conn.cursor()

    columns = ", ".join(data.keys())
    placeholders = ", ".join(["?"] * len(data))
    values = list(data.values())

    cursor.execute(f"""
        INSERT INTO {table} ({columns})
        VALUES ({placeholders})
    """, values)

    row_id = cursor.lastrowid
    conn.commit()
    conn.close()
    return row_id


def _update_row(table, id_column, row_id, updates):
    """UPDATE one row by primary key. Returns the number of rows changed."""
    conn = get_db_connection()
    cursor = conn.cursor()

    set_clause = ", ".join([f"{k} = ?" for k in updates.keys()])
    values = list(updates.values()) + [row_id]

    cursor.execute(f"""
        UPDATE {table} SET {set_clause}
        WHERE {id_column} = ?
    """, values)

    changed = cursor.rowcount
    conn.commit()
    conn.close()
    return changed


def _load_one(query, params):
    """Run a query and return the first row as a dict (or None)."""
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(query, params)
    row = cursor.fetchone()

    result = None
    if row:
        columns = [desc[0] for desc in cursor.description]
        result = dict(zip(columns, row))

    conn.close()
    return result


# =============================================================================
# AREAS QUERIES
# =============================================================================

def load_areas(active_only=True):
    """
    Load geographic areas.

    RETURNS:
        pd.DataFrame: area_id, name, is_active (ordered by name)
    """
    try:
        conn = get_db_connection()
        query = "SELECT * FROM areas"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name"
        df = pd.read_sql_query(query, conn)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading areas: {e}")
        return pd.DataFrame()


def create_area(name):
    """
    Create a new area.

    RETURNS:
        int: The new area_id, or None if failed (e.g. duplicate name)
    """
    try:
        area_id = _insert_row("areas", {
            "name": name.strip(),
            "is_active": 1,
            "created_at": datetime.now().isoformat(),
        })
        print(f"[OK] Created area #{area_id}: {name}")
        return area_id

    except Exception as e:
        print(f"[ERROR] Error creating area: {e}")
        return None


# =============================================================================
# OPERATORS QUERIES
# =============================================================================

def load_operators(include_hidden=False):
    """
    Load team operators.

    PARAMETERS:
        include_hidden (bool): If False (default), the operator named
            config.HIDDEN_OPERATOR_NAME is left out of the result. Every
            picker in the app uses the default.

    RETURNS:
        pd.DataFrame: operator_id, name, role
    """
    try:
        conn = get_db_connection()
        query = "SELECT * FROM operators"
        params = []
        if not include_hidden:
            query += " WHERE name != ?"
            params.append(config.HIDDEN_OPERATOR_NAME)
        query += " ORDER BY name"
        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading operators: {e}")
        return pd.DataFrame()


def create_operator(name, role=None):
    """
    Create a new operator.

    RETURNS:
        int: The new operator_id, or None if failed
    """
    try:
        operator_id = _insert_row("operators", {
            "name": name.strip(),
            "role": role,
            "created_at": datetime.now().isoformat(),
        })
        print(f"[OK] Created operator #{operator_id}: {name}")
        return operator_id

    except Exception as e:
        print(f"[ERROR] Error creating operator: {e}")
        return None


# =============================================================================
# SPONSORS QUERIES
# =============================================================================

def load_sponsors(search=None, active_only=True, exclude_sadaqat=False):
    """
    Load sponsors with the names of their responsible operator and of the
    sponsor they pay through.

    PARAMETERS:
        search (str): Filter by name or phone
        active_only (bool): Only sponsors with is_active = 1
        exclude_sadaqat (bool): Leave out the virtual sadaqat account
            (legacy_id = config.SADAQAT_SPONSOR_LEGACY_ID)

    RETURNS:
        pd.DataFrame: All sponsor columns plus operator_name and
                      paid_through_name
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT s.*,
                   o.name AS operator_name,
                   p.name AS paid_through_name
            FROM sponsors s
            LEFT JOIN operators o ON s.responsible_operator_id = o.operator_id
            LEFT JOIN sponsors p ON s.paid_through_sponsor_id = p.sponsor_id
            WHERE 1=1
        """
        params = []

        if active_only:
            query += " AND s.is_active = 1"

        if exclude_sadaqat:
            query += " AND (s.legacy_id IS NULL OR s.legacy_id != ?)"
            params.append(config.SADAQAT_SPONSOR_LEGACY_ID)

        if search:
            query += " AND (s.name LIKE ? OR s.phone LIKE ?)"
            params.extend([f"%{search}%", f"%{search}%"])

        query += " ORDER BY s.name"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading sponsors: {e}")
        return pd.DataFrame()


def load_sponsor_by_id(sponsor_id):
    """
    Load a single sponsor by its ID.

    RETURNS:
        dict: Sponsor data, or None if not found
    """
    try:
        return _load_one("SELECT * FROM sponsors WHERE sponsor_id = ?", (sponsor_id,))

    except Exception as e:
        print(f"[ERROR] Error loading sponsor {sponsor_id}: {e}")
        return None


def find_sponsor_by_name(name):
    """
    Find a sponsor by exact name, ignoring case and surrounding spaces.

    RETURNS:
        dict: The first matching sponsor, or None
    """
    if not name or not str(name).strip():
        return None
    try:
        return _load_one(
            "SELECT * FROM sponsors WHERE LOWER(TRIM(name)) = LOWER(?) ORDER BY sponsor_id LIMIT 1",
            (str(name).strip(),)
        )

    except Exception as e:
        print(f"[ERROR] Error finding sponsor '{name}': {e}")
        return None


def next_legacy_id():
    """
    Next free legacy number (highest existing legacy_id + 1).
    Starts at 1 on an empty table.
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT MAX(legacy_id) FROM sponsors")
        current = cursor.fetchone()[0]
        conn.close()
        return (current or 0) + 1

    except Exception as e:
        print(f"[ERROR] Error reading legacy ids: {e}")
        return None


def create_sponsor(sponsor_data):
    """
    Create a new sponsor.

    PARAMETERS:
        sponsor_data (dict): Column values. At least "name".

    RETURNS:
        int: The new sponsor_id, or None if failed

    EXAMPLE:
        sponsor_id = create_sponsor({"name": "أحمد علي", "phone": "0100..."})
    """
    try:
        now = datetime.now().isoformat()
        sponsor_data['created_at'] = now
        sponsor_data['updated_at'] = now

        sponsor_id = _insert_row("sponsors", sponsor_data)
        print(f"[OK] Created sponsor #{sponsor_id}: {sponsor_data.get('name', 'Unknown')}")
        return sponsor_id

    except Exception as e:
        print(f"[ERROR] Error creating sponsor: {e}")
        return None


def update_sponsor(sponsor_id, updates):
    """
    Update an existing sponsor.

    RETURNS:
        bool: True if successful
    """
    try:
        updates['updated_at'] = datetime.now().isoformat()
        _update_row("sponsors", "sponsor_id", sponsor_id, updates)
        return True

    except Exception as e:
        print(f"[ERROR] Error updating sponsor {sponsor_id}: {e}")
        return False


# =============================================================================
# CASES QUERIES
# =============================================================================

def load_cases(area_id=None, active_only=True, search=None):
    """
    Load cases with their area name.

    PARAMETERS:
        area_id (int): Only cases in this area
        active_only (bool): Only cases with status 'active'
        search (str): Filter by child, guardian or area name

    RETURNS:
        pd.DataFrame: All case columns plus area_name
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT c.*, a.name AS area_name
            FROM cases c
            LEFT JOIN areas a ON c.area_id = a.area_id
            WHERE 1=1
        """
        params = []

        if area_id is not None:
            query += " AND c.area_id = ?"
            params.append(area_id)

        if active_only:
            query += " AND c.status = 'active'"

        if search:
            query += " AND (c.child_name LIKE ? OR c.guardian_name LIKE ? OR a.name LIKE ?)"
            params.extend([f"%{search}%"] * 3)

        query += " ORDER BY c.child_name"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading cases: {e}")
        return pd.DataFrame()


def create_case(case_data):
    """
    Create a new case.

    PARAMETERS:
        case_data (dict): Column values. At least "child_name".

    RETURNS:
        int: The new case_id, or None if failed
    """
    try:
        now = datetime.now().isoformat()
        case_data['created_at'] = now
        case_data['updated_at'] = now
        case_data.setdefault('status', 'active')

        case_id = _insert_row("cases", case_data)
        print(f"[OK] Created case #{case_id}: {case_data.get('child_name', 'Unknown')}")
        return case_id

    except Exception as e:
        print(f"[ERROR] Error creating case: {e}")
        return None


def update_case(case_id, updates):
    """
    Update an existing case.

    RETURNS:
        bool: True if successful
    """
    try:
        updates['updated_at'] = datetime.now().isoformat()
        _update_row("cases", "case_id", case_id, updates)
        return True

    except Exception as e:
        print(f"[ERROR] Error updating case {case_id}: {e}")
        return False


# =============================================================================
# SPONSORSHIPS QUERIES
# =============================================================================

def load_sponsorships(area_id=None, sponsor_id=None, active_only=True, active_cases_only=False):
    """
    Load sponsorships joined with sponsor and case details.

    PARAMETERS:
        area_id (int): Only sponsorships of cases in this area
        sponsor_id (int): Only this sponsor's sponsorships
        active_only (bool): Only sponsorships with status 'active'
        active_cases_only (bool): Also require the case to be active

    RETURNS:
        pd.DataFrame: sponsorship columns plus
            sponsor_name, sponsor_phone, legacy_id,
            responsible_operator_id, paid_through_sponsor_id,
            child_name, guardian_name, area_id, area_name, case_type
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT sp.sponsorship_id, sp.sponsor_id, sp.case_id,
                   sp.fixed_amount, sp.status,
                   s.name AS sponsor_name,
                   s.phone AS sponsor_phone,
                   s.legacy_id,
                   s.responsible_operator_id,
                   s.paid_through_sponsor_id,
                   c.child_name, c.guardian_name, c.area_id, c.case_type,
                   a.name AS area_name
            FROM sponsorships sp
            LEFT JOIN sponsors s ON sp.sponsor_id = s.sponsor_id
            LEFT JOIN cases c ON sp.case_id = c.case_id
            LEFT JOIN areas a ON c.area_id = a.area_id
            WHERE 1=1
        """
        params = []

        if active_only:
            query += " AND sp.status = 'active'"

        if active_cases_only:
            query += " AND c.status = 'active'"

        if area_id is not None:
            query += " AND c.area_id = ?"
            params.append(area_id)

        if sponsor_id is not None:
            query += " AND sp.sponsor_id = ?"
            params.append(sponsor_id)

        query += " ORDER BY sp.sponsorship_id"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading sponsorships: {e}")
        return pd.DataFrame()


def create_sponsorship(sponsor_id, case_id, fixed_amount, status="active"):
    """
    Link a sponsor to a case with a fixed monthly amount.

    RETURNS:
        int: The new sponsorship_id, or None if failed
    """
    try:
        now = datetime.now().isoformat()
        sponsorship_id = _insert_row("sponsorships", {
            "sponsor_id": sponsor_id,
            "case_id": case_id,
            "fixed_amount": float(fixed_amount),
            "status": status,
            "created_at": now,
            "updated_at": now,
        })
        print(f"[OK] Created sponsorship #{sponsorship_id}: sponsor {sponsor_id} → case {case_id} ({fixed_amount})")
        return sponsorship_id

    except Exception as e:
        print(f"[ERROR] Error creating sponsorship: {e}")
        return None


def update_sponsorship(sponsorship_id, updates):
    """
    Update a sponsorship (usually fixed_amount or status).

    RETURNS:
        bool: True if a row was updated
    """
    try:
        updates['updated_at'] = datetime.now().isoformat()
        changed = _update_row("sponsorships", "sponsorship_id", sponsorship_id, updates)
        if not changed:
            print(f"[WARN] Sponsorship {sponsorship_id} not found")
            return False
        return True

    except Exception as e:
        print(f"[ERROR] Error updating sponsorship {sponsorship_id}: {e}")
        return False


# =============================================================================
# COLLECTIONS QUERIES
# =============================================================================

def load_collections(month=None, sponsor_id=None, status=None):
    """
    Load collections (money received from sponsors).

    PARAMETERS:
        month (str): "YYYY-MM", or None / "all" for every month
        sponsor_id (int): Only this sponsor
        status (str): Only this status (e.g. 'confirmed')

    RETURNS:
        pd.DataFrame: Collection rows plus sponsor_name
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT col.*, s.name AS sponsor_name
            FROM collections col
            LEFT JOIN sponsors s ON col.sponsor_id = s.sponsor_id
            WHERE 1=1
        """
        params = []

        if month and month != config.ALL_MONTHS:
            query += " AND col.month_year = ?"
            params.append(month)

        if sponsor_id is not None:
            query += " AND col.sponsor_id = ?"
            params.append(sponsor_id)

        if status:
            query += " AND col.status = ?"
            params.append(status)

        query += " ORDER BY col.month_year DESC, col.collection_id"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading collections: {e}")
        return pd.DataFrame()


def create_collection(collection_data):
    """
    Record money received from a sponsor.

    PARAMETERS:
        collection_data (dict): sponsor_id, amount, month_year and the
            optional portion / operator / method / status columns

    RETURNS:
        int: The new collection_id, or None if failed
    """
    try:
        collection_data['created_at'] = datetime.now().isoformat()
        collection_id = _insert_row("collections", collection_data)
        print(f"[OK] Created collection #{collection_id}: "
              f"sponsor {collection_data.get('sponsor_id')} {collection_data.get('amount')} "
              f"({collection_data.get('month_year')})")
        return collection_id

    except Exception as e:
        print(f"[ERROR] Error creating collection: {e}")
        return None


def delete_sponsor_collections(sponsor_id, month):
    """
    Delete every collection of one sponsor for one month.
    Used by the tahseel round, which replaces what was recorded before.

    RETURNS:
        bool: True if successful (also when nothing was there to delete)
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(
            "DELETE FROM collections WHERE sponsor_id = ? AND month_year = ?",
            (sponsor_id, month)
        )
        deleted = cursor.rowcount
        conn.commit()
        conn.close()

        if deleted:
            print(f"[INFO] Removed {deleted} collection(s) for sponsor {sponsor_id} in {month}")
        return True

    except Exception as e:
        print(f"[ERROR] Error deleting collections for sponsor {sponsor_id}: {e}")
        return False


# =============================================================================
# MONTHLY ADJUSTMENTS QUERIES
# =============================================================================

def load_adjustments(month=None, adjustment_type=None, case_ids=None):
    """
    Load monthly adjustments.

    PARAMETERS:
        month (str): "YYYY-MM"
        adjustment_type (str): 'one_time_extra' or 'permanent_increase'
        case_ids (list): Only adjustments for these cases

    RETURNS:
        pd.DataFrame: Adjustment rows
    """
    try:
        conn = get_db_connection()

        query = "SELECT * FROM monthly_adjustments WHERE 1=1"
        params = []

        if month and month != config.ALL_MONTHS:
            query += " AND month_year = ?"
            params.append(month)

        if adjustment_type:
            query += " AND adjustment_type = ?"
            params.append(adjustment_type)

        if case_ids is not None:
            case_ids = list(case_ids)
            if not case_ids:
                conn.close()
                return pd.DataFrame()
            query += f" AND case_id IN ({', '.join(['?'] * len(case_ids))})"
            params.extend(case_ids)

        query += " ORDER BY adjustment_id"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading adjustments: {e}")
        return pd.DataFrame()


def create_adjustment(adjustment_data):
    """
    Record a monthly adjustment (one-time extra or permanent increase).

    RETURNS:
        int: The new adjustment_id, or None if failed
    """
    try:
        adjustment_data['created_at'] = datetime.now().isoformat()
        adjustment_id = _insert_row("monthly_adjustments", adjustment_data)
        print(f"[OK] Created adjustment #{adjustment_id}: "
              f"{adjustment_data.get('adjustment_type')} {adjustment_data.get('amount')}")
        return adjustment_id

    except Exception as e:
        print(f"[ERROR] Error creating adjustment: {e}")
        return None


def update_adjustment(adjustment_id, updates):
    """
    Update an adjustment (usually its amount).

    RETURNS:
        bool: True if successful
    """
    try:
        _update_row("monthly_adjustments", "adjustment_id", adjustment_id, updates)
        return True

    except Exception as e:
        print(f"[ERROR] Error updating adjustment {adjustment_id}: {e}")
        return False


def delete_adjustment(adjustment_id):
    """
    Delete an adjustment.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM monthly_adjustments WHERE adjustment_id = ?", (adjustment_id,))
        conn.commit()
        conn.close()

        print(f"[OK] Deleted adjustment #{adjustment_id}")
        return True

    except Exception as e:
        print(f"[ERROR] Error deleting adjustment {adjustment_id}: {e}")
        return False


# =============================================================================
# SADAQAT POOL QUERIES
# =============================================================================

def load_sadaqat_entries(month=None, transaction_type=None):
    """
    Load sadaqat pool entries.

    PARAMETERS:
        month (str): "YYYY-MM", or None / "all" for every month
        transaction_type (str): 'inflow' or 'outflow'

    RETURNS:
        pd.DataFrame: Entries plus the linked case's child_name
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT sp.*, c.child_name AS case_child_name
            FROM sadaqat_pool sp
            LEFT JOIN cases c ON sp.destination_case_id = c.case_id
            WHERE 1=1
        """
        params = []

        if month and month != config.ALL_MONTHS:
            query += " AND sp.month_year = ?"
            params.append(month)

        if transaction_type:
            query += " AND sp.transaction_type = ?"
            params.append(transaction_type)

        query += " ORDER BY sp.month_year DESC, sp.entry_id DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading sadaqat entries: {e}")
        return pd.DataFrame()


def create_sadaqat_entry(entry_data):
    """
    Record an inflow or outflow in the sadaqat pool.

    RETURNS:
        int: The new entry_id, or None if failed
    """
    try:
        entry_data['created_at'] = datetime.now().isoformat()
        entry_id = _insert_row("sadaqat_pool", entry_data)
        print(f"[OK] Created sadaqat {entry_data.get('transaction_type')} #{entry_id}: {entry_data.get('amount')}")
        return entry_id

    except Exception as e:
        print(f"[ERROR] Error creating sadaqat entry: {e}")
        return None


def delete_sadaqat_entry(entry_id):
    """
    Delete a sadaqat entry.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM sadaqat_pool WHERE entry_id = ?", (entry_id,))
        conn.commit()
        conn.close()

        print(f"[OK] Deleted sadaqat entry #{entry_id}")
        return True

    except Exception as e:
        print(f"[ERROR] Error deleting sadaqat entry {entry_id}: {e}")
        return False


# =============================================================================
# ADVANCE PAYMENTS QUERIES
# =============================================================================

def load_advance_payments(sponsor_id=None):
    """
    Load advance payments, newest first.

    RETURNS:
        pd.DataFrame: Advance payment rows plus sponsor_name and child_name
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT ap.*, s.name AS sponsor_name, c.child_name
            FROM advance_payments ap
            LEFT JOIN sponsors s ON ap.sponsor_id = s.sponsor_id
            LEFT JOIN cases c ON ap.case_id = c.case_id
        """
        params = []

        if sponsor_id is not None:
            query += " WHERE ap.sponsor_id = ?"
            params.append(sponsor_id)

        query += " ORDER BY ap.advance_id DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading advance payments: {e}")
        return pd.DataFrame()


def create_advance_payment(advance_data):
    """
    Record a sponsor prepaying several months.

    RETURNS:
        int: The new advance_id, or None if failed
    """
    try:
        advance_data['created_at'] = datetime.now().isoformat()
        advance_id = _insert_row("advance_payments", advance_data)
        print(f"[OK] Created advance payment #{advance_id}: "
              f"{advance_data.get('months_covered')} months until {advance_data.get('paid_until')}")
        return advance_id

    except Exception as e:
        print(f"[ERROR] Error creating advance payment: {e}")
        return None


# =============================================================================
# DISBURSEMENTS QUERIES
# =============================================================================

def load_disbursements(month=None):
    """
    Load per-area disbursement totals.

    RETURNS:
        pd.DataFrame: area_id, area_name, month_year, fixed_total, extras_total
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT d.*, a.name AS area_name
            FROM disbursements d
            LEFT JOIN areas a ON d.area_id = a.area_id
        """
        params = []

        if month and month != config.ALL_MONTHS:
            query += " WHERE d.month_year = ?"
            params.append(month)

        query += " ORDER BY d.month_year DESC, a.name"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading disbursements: {e}")
        return pd.DataFrame()


def save_disbursement(area_id, month, fixed_total, extras_total):
    """
    Store the totals of one area's settlement for a month.
    Saving the same area and month again overwrites the earlier totals.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO disbursements (area_id, month_year, fixed_total, extras_total, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(area_id, month_year) DO UPDATE SET
                fixed_total = excluded.fixed_total,
                extras_total = excluded.extras_total,
                created_at = excluded.created_at
        """, (area_id, month, float(fixed_total), float(extras_total), datetime.now().isoformat()))
        conn.commit()
        conn.close()

        print(f"[OK] Saved disbursement for area {area_id} in {month}: {fixed_total} + {extras_total}")
        return True

    except Exception as e:
        print(f"[ERROR] Error saving disbursement: {e}")
        return False
