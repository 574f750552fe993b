# =============================================================================
# database/schema.py
# =============================================================================
# PURPOSE:
#   Defines the DATABASE SCHEMA - the structure of all tables.
#
# KHIDMA DATA MODEL:
#   The central concept is a SPONSORSHIP: one sponsor pledging a fixed
#   monthly amount to one case.
#
#   [AREAS] ←── [CASES] ←── [SPONSORSHIPS] ──→ [SPONSORS] ──→ [OPERATORS]
#                  ↑              ↑                 ↑
#                  │              ├── [MONTHLY_ADJUSTMENTS] (extras / raises)
#                  │              │
#                  │              └── [COLLECTIONS] (what each sponsor paid)
#                  │                        ↑
#                  ├── [SADAQAT_POOL] ──────┘ (overflow donations, payouts)
#                  └── [ADVANCE_PAYMENTS] (sponsors prepaying months)
#
#   [DISBURSEMENTS] keeps the per-area totals of each saved monthly
#   settlement so the dashboard can show history after amounts change.
#
# MONTHS:
#   Every month is stored as TEXT "YYYY-MM" (e.g. "2026-03").
# =============================================================================

from .connection import get_db_connection


def init_db():
    """
    Initialize the database by creating all tables.

    SAFE TO CALL MULTIPLE TIMES:
        "CREATE TABLE IF NOT EXISTS" means existing tables and data are
        left untouched. Every page calls this on load.

    RETURNS:
        bool: True if successful, False if error
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        # =====================================================================
        # TABLE 1: AREAS (lookup)
        # =====================================================================
        # Geographic areas. Monthly settlement reports are printed per area.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS areas (
                area_id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                is_active INTEGER DEFAULT 1,
                created_at TEXT
            )
        """)

        # =====================================================================
        # TABLE 2: OPERATORS (lookup)
        # =====================================================================
        # Team members who receive money and follow up with sponsors.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS operators (
                operator_id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                role TEXT,
                created_at TEXT
            )
        """)

        # =====================================================================
        # TABLE 3: SPONSORS (كفلاء)
        # =====================================================================
        # legacy_id is the row number from the original spreadsheet.
        # paid_through_sponsor_id: some sponsors hand their money to another
        # sponsor who pays on their behalf.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sponsors (
                sponsor_id INTEGER PRIMARY KEY AUTOINCREMENT,
                legacy_id INTEGER,
                name TEXT NOT NULL,
                phone TEXT,
                ipn_address TEXT,

                -- Who on the team follows up with this sponsor
                responsible_operator_id INTEGER,

                -- Pays through another sponsor
                paid_through_sponsor_id INTEGER,

                payment_frequency TEXT DEFAULT 'monthly',
                is_active INTEGER DEFAULT 1,
                notes TEXT,

                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(responsible_operator_id) REFERENCES operators(operator_id),
                FOREIGN KEY(paid_through_sponsor_id) REFERENCES sponsors(sponsor_id)
            )
        """)

        # =====================================================================
        # TABLE 4: CASES (حالات)
        # =====================================================================
        # A beneficiary: usually a child with a guardian, in one area.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cases (
                case_id INTEGER PRIMARY KEY AUTOINCREMENT,
                child_name TEXT NOT NULL,
                guardian_name TEXT,
                area_id INTEGER,

                -- orphan / student / medical / special / vulnerable
                case_type TEXT DEFAULT 'orphan',
                needs_level TEXT DEFAULT 'MEDIUM',
                is_medical_case INTEGER DEFAULT 0,
                has_students INTEGER DEFAULT 0,
                school_year TEXT,
                additional_info TEXT,

                status TEXT DEFAULT 'active',

                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(area_id) REFERENCES areas(area_id)
            )
        """)

        # =====================================================================
        # TABLE 5: SPONSORSHIPS (كفالات)
        # =====================================================================
        # Sponsor × case with the fixed monthly pledge.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sponsorships (
                sponsorship_id INTEGER PRIMARY KEY AUTOINCREMENT,
                sponsor_id INTEGER NOT NULL,
                case_id INTEGER NOT NULL,
                fixed_amount REAL NOT NULL DEFAULT 0,
                status TEXT DEFAULT 'active',
                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(sponsor_id) REFERENCES sponsors(sponsor_id),
                FOREIGN KEY(case_id) REFERENCES cases(case_id)
            )
        """)

        # =====================================================================
        # TABLE 6: COLLECTIONS (تحصيل)
        # =====================================================================
        # Money received from a sponsor for a month. The amount is split into
        # fixed (pledge), extra (this month's one-time extras) and sadaqat
        # (overflow donated to the general pool).
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS collections (
                collection_id INTEGER PRIMARY KEY AUTOINCREMENT,
                sponsor_id INTEGER NOT NULL,

                amount REAL NOT NULL,
                fixed_portion REAL DEFAULT 0,
                extra_portion REAL DEFAULT 0,
                sadaqat_portion REAL DEFAULT 0,

                month_year TEXT NOT NULL,
                received_by_operator_id INTEGER,
                payment_method TEXT,

                -- Raw OCR output when entered from a screenshot (JSON text)
                ocr_raw TEXT,

                status TEXT DEFAULT 'confirmed',
                notes TEXT,

                -- monthly / semi_annual / annual / months_in_advance
                advance_type TEXT DEFAULT 'monthly',
                advance_months INTEGER DEFAULT 1,

                created_at TEXT,

                FOREIGN KEY(sponsor_id) REFERENCES sponsors(sponsor_id),
                FOREIGN KEY(received_by_operator_id) REFERENCES operators(operator_id)
            )
        """)

        # =====================================================================
        # TABLE 7: MONTHLY_ADJUSTMENTS (تعديلات شهرية)
        # =====================================================================
        # one_time_extra:     extra money for this month only
        # permanent_increase: log of a change to sponsorships.fixed_amount
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS monthly_adjustments (
                adjustment_id INTEGER PRIMARY KEY AUTOINCREMENT,
                sponsorship_id INTEGER,
                case_id INTEGER,
                sponsor_id INTEGER,
                month_year TEXT NOT NULL,
                adjustment_type TEXT NOT NULL,
                amount REAL NOT NULL,
                old_fixed_amount REAL,
                applied INTEGER DEFAULT 0,
                created_at TEXT,

                FOREIGN KEY(sponsorship_id) REFERENCES sponsorships(sponsorship_id),
                FOREIGN KEY(case_id) REFERENCES cases(case_id),
                FOREIGN KEY(sponsor_id) REFERENCES sponsors(sponsor_id)
            )
        """)

        # =====================================================================
        # TABLE 8: SADAQAT_POOL (صندوق الصدقات)
        # =====================================================================
        # inflow:  donations (direct, or overflow from a collection)
        # outflow: payouts to a case or an external recipient
        # destination_type holds the cause the entry is tagged with.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sadaqat_pool (
                entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
                transaction_type TEXT NOT NULL,
                amount REAL NOT NULL,

                destination_type TEXT,
                donor_name TEXT,
                destination_description TEXT,
                destination_case_id INTEGER,

                source_type TEXT,
                source_collection_id INTEGER,

                month_year TEXT NOT NULL,
                reason TEXT,
                approved_by INTEGER,

                created_at TEXT,

                FOREIGN KEY(destination_case_id) REFERENCES cases(case_id),
                FOREIGN KEY(source_collection_id) REFERENCES collections(collection_id) ON DELETE SET NULL,
                FOREIGN KEY(approved_by) REFERENCES operators(operator_id)
            )
        """)

        # =====================================================================
        # TABLE 9: ADVANCE_PAYMENTS (دفعات مقدمة)
        # =====================================================================
        # A sponsor paying several months at once.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS advance_payments (
                advance_id INTEGER PRIMARY KEY AUTOINCREMENT,
                sponsor_id INTEGER NOT NULL,
                case_id INTEGER,
                payment_type TEXT,
                amount REAL,
                months_covered INTEGER,
                start_month TEXT,
                paid_until TEXT,
                collection_id INTEGER,
                status TEXT DEFAULT 'active',
                created_at TEXT,

                FOREIGN KEY(sponsor_id) REFERENCES sponsors(sponsor_id),
                FOREIGN KEY(case_id) REFERENCES cases(case_id),
                FOREIGN KEY(collection_id) REFERENCES collections(collection_id) ON DELETE SET NULL
            )
        """)

        # =====================================================================
        # TABLE 10: DISBURSEMENTS (per-area monthly totals)
        # =====================================================================
        # Written when a monthly settlement is saved for an area.
        # One row per area per month (re-saving overwrites it).
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS disbursements (
                disbursement_id INTEGER PRIMARY KEY AUTOINCREMENT,
                area_id INTEGER NOT NULL,
                month_year TEXT NOT NULL,
                fixed_total REAL DEFAULT 0,
                extras_total REAL DEFAULT 0,
                created_at TEXT,

                UNIQUE(area_id, month_year),
                FOREIGN KEY(area_id) REFERENCES areas(area_id)
            )
        """)

        # =====================================================================
        # CREATE INDEXES
        # =====================================================================
        # Indexes on the columns the pages filter by.
        # =====================================================================
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sponsors_name ON sponsors(name)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_cases_area ON cases(area_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sponsorships_sponsor ON sponsorships(sponsor_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sponsorships_case ON sponsorships(case_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_collections_month ON collections(month_year)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_collections_sponsor ON collections(sponsor_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_adjustments_month ON monthly_adjustments(month_year, adjustment_type)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sadaqat_month ON sadaqat_pool(month_year)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_advances_sponsor ON advance_payments(sponsor_id)")

        conn.commit()
        conn.close()

        print("[OK] Database initialized successfully!")
        return True

    except Exception as e:
        print(f"[ERROR] Database initialization error: {e}")
        return False


def get_table_info():
    """
    Get information about all tables in the database.
    Useful for debugging and checking the schema.

    RETURNS:
        dict: Table names mapped to their PRAGMA table_info rows
              (cid, name, type, notnull, default_value, pk)
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        cursor.execute("""
            SELECT name FROM sqlite_master
            WHERE type='table' AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """)
        tables = [row[0] for row in cursor.fetchall()]

        table_info = {}
        for table in tables:
            cursor.execute(f"PRAGMA table_info({table})")
            table_info[table] = cursor.fetchall()

        conn.close()
        return table_info

    except Exception as e:
        print(f"[ERROR] Error getting table info: {e}")
        return {}
