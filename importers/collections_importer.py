# =============================================================================
# importers/collections_importer.py
# =============================================================================
# PURPOSE:
#   Imports historical collection records exported from the old Google
#   Sheets tracker (one row = one payment).
#
# EXPECTED CSV:
#   Column names vary between sheets, so the user maps them on the Import
#   page. Only three columns matter:
#       sponsor name, amount, month ("YYYY-MM")
#
#   الكفيل,المبلغ,الشهر
#   محمد أحمد,1500,2026-01
#
# WHAT THIS IMPORTER DOES:
#   1. Reads the CSV file (headers are exposed for the column mapping)
#   2. build_preview(): takes the first rows, reads name / amount / month
#      and fuzzy-matches the name to an active sponsor
#   3. import_collections(): inserts the rows that are ready (matched
#      sponsor, amount and month) as confirmed instapay collections
#   4. Everything else is counted as skipped with a reason
#
# NO DUPLICATE DETECTION:
#   Importing the same file twice inserts the rows twice. The sheets are
#   migrated once, by hand, so this is left to the operator.
# =============================================================================

import pandas as pd

import config
from database import create_collection
from utils.matching import best_match


class CollectionsImporter:
    """
    Imports collection rows from a Google Sheets CSV export.

    USAGE:
        importer = CollectionsImporter(uploaded_file)
        importer.headers                    → ["الكفيل", "المبلغ", "الشهر"]
        preview = importer.build_preview(
            {"name": "الكفيل", "amount": "المبلغ", "month": "الشهر"},
            sponsors_df,
        )
        success, message, count = importer.import_collections(preview)

    ATTRIBUTES:
        source: The file path or file object to import
        df: The CSV rows (fully empty rows dropped)
        errors: Serious problems (couldn't read the file, insert failed)
        skipped: Rows not imported, with the reason
    """

    def __init__(self, source):
        """
        Read the CSV right away so the page can show the headers.

        PARAMETERS:
            source: Either a file path (string) or a file-like object
                   (e.g., Streamlit's UploadedFile)
        """
        self.source = source
        self.errors = []
        self.skipped = []

        try:
            # dtype=str keeps "2026-01" and "0100..." phone-like values as typed
            df = pd.read_csv(source, dtype=str, skipinitialspace=True)
            df.columns = [str(c).strip().strip('"') for c in df.columns]
            self.df = df.dropna(how='all').reset_index(drop=True)
            print(f"[INFO] Read CSV with {len(self.df)} rows")
            print(f"   Columns found: {list(self.df.columns)}")
        except Exception as e:
            self.errors.append(f"Could not read CSV: {e}")
            self.df = pd.DataFrame()
            print(f"[ERROR] Could not read CSV: {e}")

    @property
    def headers(self):
        """Column names of the CSV, in file order."""
        return list(self.df.columns)

    @property
    def row_count(self):
        return len(self.df)

    def build_preview(self, column_map, sponsors, limit=20):
        """
        Read the mapped columns of the first rows and match each name.

        PARAMETERS:
            column_map (dict): {"name": <csv column>, "amount": <csv column>,
                               "month": <csv column>}
            sponsors: Active sponsors (DataFrame or list of dicts with
                      'sponsor_id' and 'name')
            limit (int): How many rows to preview

        RETURNS:
            list: dicts with
                row    - row number in the file (header = row 1)
                name   - sponsor name as written in the CSV
                amount - float (0 when empty / unreadable)
                month  - "YYYY-MM" text as written
                match  - matched sponsor dict (with 'score') or None
                ready  - True when match, amount and month are all present
        """
        preview = []

        for idx, row in self.df.head(limit).iterrows():
            name = self._get_cell_value(row, column_map.get('name')) or ""
            amount = self._parse_amount(row, column_map.get('amount'))
            month = self._get_cell_value(row, column_map.get('month')) or ""
            match = best_match(name, sponsors) if name else None

            preview.append({
                'row': idx + 2,
                'name': name,
                'amount': amount,
                'month': month,
                'match': match,
                'ready': bool(match and amount and month),
            })

        return preview

    def import_collections(self, preview):
        """
        Insert the ready preview rows.

        RETURNS:
            tuple: (success: bool, message: str, count: int)
            - success: True if at least one row was imported
            - message: Human-readable result message
            - count: Number of rows inserted
        """
        inserted = 0

        for item in preview:
            if not item.get('ready'):
                self.skipped.append(f"Row {item.get('row')}: {self._skip_reason(item)}")
                continue

            collection_id = create_collection({
                "sponsor_id": int(item['match']['sponsor_id']),
                "amount": item['amount'],
                "fixed_portion": item['amount'],
                "extra_portion": 0,
                "sadaqat_portion": 0,
                "month_year": item['month'],
                "payment_method": "instapay",
                "status": "confirmed",
                "notes": config.IMPORT_NOTE,
                "advance_type": "monthly",
                "advance_months": 1,
            })

            if collection_id is None:
                self.errors.append(f"Row {item.get('row')}: insert failed")
                self.skipped.append(f"Row {item.get('row')}: insert failed")
            else:
                inserted += 1

        print(f"\n[INFO] Import Summary:")
        print(f"   Inserted: {inserted}")
        print(f"   Skipped: {len(self.skipped)}")

        message = f"Imported {inserted} collections"
        if self.skipped:
            message += f" ({len(self.skipped)} skipped)"

        if inserted == 0:
            return False, message, 0
        return True, message, inserted

    def _skip_reason(self, item):
        if not item.get('match'):
            return "sponsor not found"
        if not item.get('amount'):
            return "no amount"
        return "no month"

    def _get_cell_value(self, row, col_name):
        """
        Safely get a cell value from a row.

        RETURNS:
            str or None: The cell value as a string, or None if empty
        """
        if not col_name or col_name not in row:
            return None

        value = row[col_name]
        if pd.isna(value):
            return None

        str_value = str(value).strip()
        if not str_value or str_value.lower() == 'nan':
            return None

        return str_value

    def _parse_amount(self, row, col_name):
        """
        Parse an amount cell: "1,500" → 1500.0, empty / text → 0.0
        """
        value = self._get_cell_value(row, col_name)
        if not value:
            return 0.0

        try:
            return float(value.replace(',', '').strip())
        except (ValueError, TypeError):
            return 0.0

    def get_import_summary(self):
        """
        RETURNS:
            dict: Summary with errors and skipped lists
        """
        return {
            'errors': self.errors,
            'skipped': self.skipped,
            'error_count': len(self.errors),
            'skipped_count': len(self.skipped),
        }
