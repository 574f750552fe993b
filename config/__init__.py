# =============================================================================
# config/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the 'config' folder a Python package and re-exports the settings,
#   so other files can do:
#       from config import DB_PATH, MONTHS_AR
#   Instead of:
#       from config.settings import DB_PATH, MONTHS_AR
#
# NOTE:
#   Code that must see a value changed at runtime (tests pointing DB_PATH at
#   a temporary file) should read it as `config.DB_PATH`, not import the name.
# =============================================================================

from .settings import *
