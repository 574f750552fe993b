# =============================================================================
# config/settings.py
# =============================================================================
# PURPOSE:
#   Central configuration file for the entire application.
#   All "magic numbers", constants, and lookup lists live here.
#   This makes it easy to change things without hunting through code.
#
# WHY CENTRALIZE SETTINGS?
#   1. Single source of truth - change once, affects everywhere
#   2. Easy to find what can be configured
#   3. Makes testing easier (tests swap DB_PATH for a temp file)
# =============================================================================

import os

# -----------------------------------------------------------------------------
# DATABASE CONFIGURATION
# -----------------------------------------------------------------------------
# SQLite database file path (relative to where you run the app).
# Can be overridden with the KHIDMA_DB_PATH environment variable.
DB_PATH = os.environ.get("KHIDMA_DB_PATH", "khidma.db")

# -----------------------------------------------------------------------------
# ACCESS GATE
# -----------------------------------------------------------------------------
# One shared password for the whole team. The browser keeps it in a cookie
# for 30 days so operators don't have to log in on every visit.
APP_PASSWORD = os.environ.get("KHIDMA_PASSWORD", "123987")
AUTH_COOKIE = "khidma_auth"
AUTH_COOKIE_DAYS = 30

# -----------------------------------------------------------------------------
# AMOUNTS
# -----------------------------------------------------------------------------
# Currency label shown next to amounts (Egyptian pound)
CURRENCY_LABEL = "ج"

# Tolerance for comparing amounts (handles floating point rounding)
AMOUNT_TOLERANCE = 0.01

# -----------------------------------------------------------------------------
# SPECIAL RECORDS
# -----------------------------------------------------------------------------
# legacy_id 126 is the virtual "صدقات" account carried over from the old
# spreadsheet. It is not a real sponsor and never counts toward obligations.
SADAQAT_SPONSOR_LEGACY_ID = 126

# This operator exists in the table but is hidden from every picker
HIDDEN_OPERATOR_NAME = "شريف"

# Collection tracking started in March 2026. Earlier months are treated as
# fully collected on the dashboard.
COLLECTION_START_MONTH = "2026-03"

# In the last N days of a month the dashboard already works on next month
WORKING_MONTH_LEAD_DAYS = 7

# -----------------------------------------------------------------------------
# FUZZY NAME MATCHING
# -----------------------------------------------------------------------------
# Maximum Levenshtein distance for a free-text name to count as a sponsor
FUZZY_MATCH_THRESHOLD = 5

# -----------------------------------------------------------------------------
# MONTHS
# -----------------------------------------------------------------------------
MONTHS_AR = {
    "01": "يناير",
    "02": "فبراير",
    "03": "مارس",
    "04": "أبريل",
    "05": "مايو",
    "06": "يونيو",
    "07": "يوليو",
    "08": "أغسطس",
    "09": "سبتمبر",
    "10": "أكتوبر",
    "11": "نوفمبر",
    "12": "ديسمبر",
}

ALL_MONTHS = "all"
ALL_MONTHS_LABEL = "كل الوقت"

# -----------------------------------------------------------------------------
# CASES
# -----------------------------------------------------------------------------
# Stored value → label shown in the UI
CASE_TYPES = {
    "orphan": "كفالة يتيم",
    "student": "طالب علم",
    "medical": "حالات مرضية",
    "special": "حالات خاصة",
    "vulnerable": "أسرة محتاجة",
}

# Labels printed on the area disbursement report. Older rows stored the
# Arabic label directly, so those map to themselves.
REPORT_CASE_TYPE_LABELS = {
    "orphan": "كفالة يتيم",
    "student": "طالب علم",
    "medical": "حالات مرضية",
    "special": "حالات خاصة",
    "vulnerable": "كفالة يتيم",
    "كفالة يتيم": "كفالة يتيم",
    "طالب علم": "طالب علم",
    "حالات مرضية": "حالات مرضية",
    "حالات خاصة": "حالات خاصة",
}
DEFAULT_REPORT_CASE_TYPE = "كفالة يتيم"

NEEDS_LEVELS = ["LOW", "MEDIUM", "HIGH", "CRITICAL"]

CASE_STATUSES = ["active", "inactive"]
SPONSORSHIP_STATUSES = ["active", "paused", "ended"]

# -----------------------------------------------------------------------------
# SPONSORS
# -----------------------------------------------------------------------------
PAYMENT_FREQUENCIES = {
    "monthly": "شهري",
    "quarterly": "ربع سنوي",
    "semi_annual": "نصف سنوي",
    "annual": "سنوي",
}

# -----------------------------------------------------------------------------
# COLLECTIONS
# -----------------------------------------------------------------------------
PAYMENT_METHODS = {
    "instapay": "إنستاباي",
    "cash": "نقدي",
    "bank_transfer": "تحويل بنكي",
    "wallet": "محفظة إلكترونية",
}

COLLECTION_STATUSES = ["confirmed", "paid", "pending"]

# Statuses that count as money actually received on the dashboard.
# Screen entries are saved 'confirmed', the tahseel round saves 'paid'.
COUNTED_COLLECTION_STATUSES = ["confirmed", "paid"]

# Sponsor payment status for a month (dashboard badge)
PAYMENT_STATUS_LABELS = {
    "paid": "مدفوع ✓",
    "partial": "جزئي",
    "unpaid": "لم يدفع",
}

# Advance type → default number of months covered
ADVANCE_TYPES = {
    "monthly": 1,
    "semi_annual": 6,
    "annual": 12,
    "months_in_advance": 2,
}

ADVANCE_TYPE_LABELS = {
    "monthly": "شهري (عادي)",
    "semi_annual": "نصف سنوي (6 شهور)",
    "annual": "سنوي (12 شهر)",
    "months_in_advance": "عدد شهور مقدماً",
}

ADVANCE_PAYMENT_TYPE_LABELS = {
    "annual": "سنوي",
    "semi_annual": "نصف سنوي",
    "advance": "مقدم",
}

# Note written on the placeholder rows created for prepaid months
ADVANCE_NOTE_TEMPLATE = "دفعة مقدمة من شهر {month}"

IMPORT_NOTE = "مستورد من Google Sheets"

# -----------------------------------------------------------------------------
# MONTHLY ADJUSTMENTS
# -----------------------------------------------------------------------------
ADJUSTMENT_ONE_TIME_EXTRA = "one_time_extra"
ADJUSTMENT_PERMANENT_INCREASE = "permanent_increase"
ADJUSTMENT_TYPES = [ADJUSTMENT_ONE_TIME_EXTRA, ADJUSTMENT_PERMANENT_INCREASE]

# -----------------------------------------------------------------------------
# SADAQAT POOL
# -----------------------------------------------------------------------------
SADAQAT_INFLOW = "inflow"
SADAQAT_OUTFLOW = "outflow"

# Destinations / causes an entry can be tagged with
SADAQAT_CAUSES = [
    "حالات كفالة",
    "حالات طبية",
    "مساعدة زواج",
    "سداد ديون",
    "إفطار رمضان",
    "كسوة عيد",
    "بطاطين شتاء",
    "طلاب الأزهر",
    "كراتين رمضان",
    "توصيل مياه",
    "بناء مسجد",
    "سداد ديون المنطقة",
    "توزيع وجبات",
]

# Settle-page allocations are stored with these technical destination types
DESTINATION_KAFALA_CASE = "kafala_case"
DESTINATION_ONE_TIME_CASE = "one_time_case"
LEGACY_CAUSE_LABEL = "حالات كفالة"
UNKNOWN_CAUSE_LABEL = "غير محدد"

SOURCE_COLLECTION_EXTRA = "collection_extra"

# -----------------------------------------------------------------------------
# OCR (payment screenshot extraction)
# -----------------------------------------------------------------------------
OCR_API_URL = os.environ.get("KHIDMA_OCR_API_URL", "https://api.anthropic.com/v1/messages")
OCR_API_KEY_ENV = "ANTHROPIC_API_KEY"
OCR_API_VERSION = "2023-06-01"
OCR_MODEL = os.environ.get("KHIDMA_OCR_MODEL", "claude-sonnet-4-20250514")
OCR_MAX_TOKENS = 1000
OCR_TIMEOUT_SECONDS = 60

OCR_PROMPT = (
    "This is an Egyptian Instapay payment screenshot. Extract these fields as JSON only "
    "(no markdown, no backticks): "
    '{"sender_name":"","amount":0,"bank":"","recipient":"","reference":"","date":""}. '
    "If not visible use empty string or 0."
)

OCR_CONFIDENCE_MATCHED = 0.9
OCR_CONFIDENCE_UNMATCHED = 0.5

# -----------------------------------------------------------------------------
# UI CONFIGURATION
# -----------------------------------------------------------------------------
APP_TITLE = "خدمة"
APP_SUBTITLE = "منظومة إدارة الكفالات"
PAGE_ICON = "🤲"
LAYOUT = "wide"

# How many rows a search dropdown shows
SEARCH_RESULT_LIMIT = 25
