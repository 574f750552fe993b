# =============================================================================
# importers/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the importers folder a Python package and provides easy imports.
#
# WHAT ARE IMPORTERS?
#   Importers are classes that:
#   1. Read data from external files (CSV)
#   2. Parse and validate the data
#   3. Transform it to match our database schema
#   4. Save it to the database
#   5. Report skipped rows and errors
#
# AVAILABLE IMPORTERS:
#   - CollectionsImporter: Imports payment history from Google Sheets CSVs
# =============================================================================

from .collections_importer import CollectionsImporter
