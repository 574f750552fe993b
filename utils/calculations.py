# =============================================================================
# utils/calculations.py
# =============================================================================
# PURPOSE:
#   Contains calculation and business logic functions.
#   These answer questions like:
#   - How much does each sponsor owe this month, and how much is left?
#   - How is a payment split between the pledge and the sadaqat pool?
#   - What goes on an area's monthly disbursement report?
#   - What is the sadaqat balance, per month and per cause?
#
# WHY SEPARATE FROM DATABASE QUERIES?
#   - Queries are about GETTING data
#   - Calculations are about PROCESSING data
#   - Every function here takes DataFrames / plain values and returns new
#     ones, so they can be tested without a database
#
# BUSINESS RULES:
#   These functions encode the rules of the organization.
#   For example: "a payment above the obligation goes to sadaqat"
#   If the rules change, you only need to update these functions.
# =============================================================================

import pandas as pd

from config import (
    AMOUNT_TOLERANCE,
    ADJUSTMENT_ONE_TIME_EXTRA,
    ALL_MONTHS,
    COLLECTION_START_MONTH,
    COUNTED_COLLECTION_STATUSES,
    DEFAULT_REPORT_CASE_TYPE,
    DESTINATION_KAFALA_CASE,
    DESTINATION_ONE_TIME_CASE,
    HIDDEN_OPERATOR_NAME,
    LEGACY_CAUSE_LABEL,
    REPORT_CASE_TYPE_LABELS,
    SADAQAT_INFLOW,
    SADAQAT_OUTFLOW,
    UNKNOWN_CAUSE_LABEL,
)


def _amount(value):
    """Number from a DataFrame cell or form value (None / NaN / "" → 0)."""
    if value is None:
        return 0.0
    try:
        if pd.isna(value):
            return 0.0
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _text(value):
    """String from a DataFrame cell (None / NaN → "")."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def _id(value):
    """Row id as a plain int (sqlite3 cannot bind numpy integers)."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def _is_empty(df):
    return df is None or len(df) == 0


def _only_one_time_extras(adjustments_df):
    if _is_empty(adjustments_df):
        return pd.DataFrame()
    if 'adjustment_type' in adjustments_df.columns:
        return adjustments_df[adjustments_df['adjustment_type'] == ADJUSTMENT_ONE_TIME_EXTRA]
    return adjustments_df


# =============================================================================
# PAYMENT SPLITS
# =============================================================================

def split_payment(amount, obligation):
    """
    Split a received payment into its portions.

    PARAMETERS:
        amount (float): What the sponsor paid
        obligation (float): What the sponsor owes (sum of fixed pledges)

    RETURNS:
        dict: {"fixed", "extra", "sadaqat"}

    BUSINESS RULES:
        - Up to the obligation, money counts toward the pledge (fixed)
        - Anything above the obligation goes to the sadaqat pool
        - extra is never filled automatically (the operator types it in)
        - fixed never exceeds the obligation, and the portions add up to
          the amount

    EXAMPLE:
        split_payment(800, 1000)  → {"fixed": 800, "extra": 0, "sadaqat": 0}
        split_payment(1500, 1000) → {"fixed": 1000, "extra": 0, "sadaqat": 500}
    """
    amount = _amount(amount)
    obligation = max(_amount(obligation), 0.0)

    if amount <= obligation:
        return {"fixed": amount, "extra": 0.0, "sadaqat": 0.0}

    return {"fixed": obligation, "extra": 0.0, "sadaqat": amount - obligation}


def split_cash_collection(amount, fixed):
    """
    Split a tahseel (cash round) payment: fixed pledge first, then extras.

    EXAMPLE:
        split_cash_collection(1200, 1000) → {"fixed": 1000, "extra": 200, "sadaqat": 0}
        split_cash_collection(600, 1000)  → {"fixed": 600, "extra": 0, "sadaqat": 0}
    """
    amount = _amount(amount)
    fixed = _amount(fixed)
    return {
        "fixed": min(amount, fixed),
        "extra": max(0.0, amount - fixed),
        "sadaqat": 0.0,
    }


def portions_mismatch(amount, fixed, extra, sadaqat):
    """True when a positive amount differs from the sum of its portions."""
    amount = _amount(amount)
    if amount <= 0:
        return False
    total = _amount(fixed) + _amount(extra) + _amount(sadaqat)
    return abs(amount - total) > AMOUNT_TOLERANCE


# =============================================================================
# OBLIGATIONS (TAHSEEL ROUND)
# =============================================================================

OBLIGATION_COLUMNS = [
    'sponsor_id', 'sponsor_name', 'phone', 'fixed', 'extras',
    'obligation', 'collected', 'outstanding', 'cases',
]


def calculate_sponsor_obligations(sponsorships_df, adjustments_df, collections_df):
    """
    Calculate what each sponsor owes for a month.

    PARAMETERS:
        sponsorships_df (pd.DataFrame): Active sponsorships (load_sponsorships)
        adjustments_df (pd.DataFrame): The month's adjustments; only
            one_time_extra rows are counted
        collections_df (pd.DataFrame): The month's collections

    RETURNS:
        pd.DataFrame: One row per sponsor with columns
            sponsor_id, sponsor_name, phone,
            fixed       - sum of active fixed pledges
            extras      - sum of this month's one-time extras
            obligation  - fixed + extras
            collected   - already recorded this month
            outstanding - max(0, obligation - collected)
            cases       - list of {"child_name", "guardian_name"}

    HOW IT WORKS:
        1. Group sponsorships by sponsor (fixed + case list)
        2. Add the one-time extras recorded against the sponsor
        3. Net off what has already been collected
    """
    if _is_empty(sponsorships_df):
        return pd.DataFrame(columns=OBLIGATION_COLUMNS)

    sponsors = {}

    for _, sp in sponsorships_df.iterrows():
        sponsor_id = _id(sp['sponsor_id'])
        if sponsor_id not in sponsors:
            sponsors[sponsor_id] = {
                'sponsor_id': sponsor_id,
                'sponsor_name': _text(sp.get('sponsor_name')) or "—",
                'phone': _text(sp.get('sponsor_phone')) or None,
                'fixed': 0.0,
                'extras': 0.0,
                'collected': 0.0,
                'cases': [],
            }
        sponsors[sponsor_id]['fixed'] += _amount(sp.get('fixed_amount'))
        if _text(sp.get('child_name')):
            sponsors[sponsor_id]['cases'].append({
                'child_name': _text(sp.get('child_name')),
                'guardian_name': _text(sp.get('guardian_name')) or None,
            })

    for _, adj in _only_one_time_extras(adjustments_df).iterrows():
        sponsor_id = _id(adj['sponsor_id'])
        if sponsor_id in sponsors:
            sponsors[sponsor_id]['extras'] += _amount(adj['amount'])

    if not _is_empty(collections_df):
        for _, col in collections_df.iterrows():
            sponsor_id = _id(col['sponsor_id'])
            if sponsor_id in sponsors:
                sponsors[sponsor_id]['collected'] += _amount(col['amount'])

    rows = []
    for data in sponsors.values():
        obligation = data['fixed'] + data['extras']
        data['obligation'] = obligation
        data['outstanding'] = max(0.0, obligation - data['collected'])
        rows.append(data)

    return pd.DataFrame(rows, columns=OBLIGATION_COLUMNS)


def pending_sponsors(obligations_df):
    """Sponsors that still owe something this month, sorted by name."""
    if _is_empty(obligations_df):
        return pd.DataFrame(columns=OBLIGATION_COLUMNS)

    pending = obligations_df[obligations_df['outstanding'] > 0]
    return pending.sort_values('sponsor_name').reset_index(drop=True)


def group_by_operator(rows, operator_names):
    """
    Build the tahseel confirmation summary.

    PARAMETERS:
        rows (list): dicts with sponsor_name, amount, received_by (operator
            id or None) and optionally checked
        operator_names (dict): operator_id → name

    RETURNS:
        dict:
            operators  - list of {"operator_id", "name", "total", "sponsors"}
                         where sponsors is a list of (sponsor_name, amount)
            unassigned - list of (sponsor_name, amount)
            grand_total
    """
    by_operator = {}
    unassigned = []
    grand_total = 0.0

    for row in rows:
        if not row.get('checked', True):
            continue

        amount = _amount(row.get('amount'))
        grand_total += amount
        operator_id = row.get('received_by')

        if operator_id:
            if operator_id not in by_operator:
                by_operator[operator_id] = {
                    'operator_id': operator_id,
                    'name': operator_names.get(operator_id, str(operator_id)),
                    'total': 0.0,
                    'sponsors': [],
                }
            by_operator[operator_id]['total'] += amount
            by_operator[operator_id]['sponsors'].append((row.get('sponsor_name'), amount))
        else:
            unassigned.append((row.get('sponsor_name'), amount))

    return {
        'operators': list(by_operator.values()),
        'unassigned': unassigned,
        'grand_total': grand_total,
    }


def replaced_collections(rows):
    """
    Checked tahseel rows whose sponsor already has money recorded for the
    month. Saving the round deletes those records and keeps only the new
    amount, so the month total becomes that amount.

    RETURNS:
        list: (sponsor_name, already collected, new month total)

    EXAMPLE:
        replaced_collections([{"sponsor_name": "Omar", "collected": 300, "amount": 700}])
        → [("Omar", 300.0, 700.0)]
    """
    replaced = []
    for row in rows:
        if not row.get('checked', True):
            continue
        collected = _amount(row.get('collected'))
        if collected > AMOUNT_TOLERANCE:
            replaced.append((row.get('sponsor_name'), collected, _amount(row.get('amount'))))
    return replaced


# =============================================================================
# MONTHLY SETTLEMENT (TASWIYA)
# =============================================================================

def settlement_row(sponsorship, extras=0.0, adjustment_id=None):
    """
    One editable settlement row for a sponsorship.

    PARAMETERS:
        sponsorship (dict / pd.Series): a row of load_sponsorships()
        extras (float): this month's one-time extra already recorded
        adjustment_id (int): id of that extra's adjustment row, if any
    """
    fixed = _amount(sponsorship.get('fixed_amount'))
    extras = _amount(extras)
    return {
        'sponsorship_id': _id(sponsorship.get('sponsorship_id')),
        'sponsor_id': _id(sponsorship.get('sponsor_id')),
        'case_id': _id(sponsorship.get('case_id')),
        'area_id': _id(sponsorship.get('area_id')),
        'child_name': _text(sponsorship.get('child_name')) or "—",
        'guardian_name': _text(sponsorship.get('guardian_name')) or None,
        'sponsor_name': _text(sponsorship.get('sponsor_name')) or "—",
        'fixed': fixed,
        'new_fixed': fixed,
        'extras': extras,
        'new_extras': extras,
        'extra_adjustment_id': _id(adjustment_id),
        'included': True,
        'collected': False,
        'received_by': None,
    }


def build_settlement_rows(sponsorships_df, adjustments_df):
    """
    Build the settlement table for an area and month.

    PARAMETERS:
        sponsorships_df (pd.DataFrame): Active sponsorships of the area's
            active cases
        adjustments_df (pd.DataFrame): The month's adjustments for those
            cases (only one_time_extra rows are used)

    RETURNS:
        list: One row dict per sponsorship (see settlement_row), sorted by
              child name. new_fixed / new_extras start equal to the stored
              values and are what the user edits.
    """
    if _is_empty(sponsorships_df):
        return []

    extras_by_sponsorship = {}
    for _, adj in _only_one_time_extras(adjustments_df).iterrows():
        # First adjustment wins if there are several for the same sponsorship
        extras_by_sponsorship.setdefault(_id(adj['sponsorship_id']), adj)

    rows = []
    for _, sp in sponsorships_df.iterrows():
        adj = extras_by_sponsorship.get(_id(sp['sponsorship_id']))
        if adj is not None:
            rows.append(settlement_row(sp, adj['amount'], adj['adjustment_id']))
        else:
            rows.append(settlement_row(sp))

    return sorted(rows, key=lambda r: r['child_name'])


def settlement_totals(rows):
    """
    Grand totals of the included settlement rows (edited values).

    RETURNS:
        dict: {"fixed", "extras", "total", "count"}
    """
    included = [r for r in rows if r.get('included')]
    fixed = sum(_amount(r.get('new_fixed')) for r in included)
    extras = sum(_amount(r.get('new_extras')) for r in included)
    return {
        'fixed': fixed,
        'extras': extras,
        'total': fixed + extras,
        'count': len(included),
    }


def plan_settlement_changes(row):
    """
    Decide what saving a settlement row has to write.

    RETURNS:
        dict:
            extra_action - "update" / "delete" / "insert" / None
            fixed_changed - True when the pledge changed permanently

    RULES:
        Extras changed and an adjustment exists:
            new value > 0 → update it, otherwise delete it
        Extras changed and no adjustment exists:
            new value > 0 → insert one, otherwise nothing
        Fixed changed (and the new value is positive):
            update the sponsorship and log a permanent_increase
    """
    extras = _amount(row.get('extras'))
    new_extras = _amount(row.get('new_extras'))
    fixed = _amount(row.get('fixed'))
    new_fixed = _amount(row.get('new_fixed'))

    extra_action = None
    if abs(new_extras - extras) > AMOUNT_TOLERANCE:
        if row.get('extra_adjustment_id'):
            extra_action = "update" if new_extras > 0 else "delete"
        elif new_extras > 0:
            extra_action = "insert"

    fixed_changed = abs(new_fixed - fixed) > AMOUNT_TOLERANCE and new_fixed > 0

    return {'extra_action': extra_action, 'fixed_changed': fixed_changed}


def area_settlement_totals(rows):
    """
    Included settlement totals per area: {area_id: {"fixed", "extras"}}.
    Rows without an area (manual entries) are left out.
    """
    totals = {}
    for row in rows:
        area_id = _id(row.get('area_id'))
        if not row.get('included') or area_id is None:
            continue
        area = totals.setdefault(area_id, {'fixed': 0.0, 'extras': 0.0})
        area['fixed'] += _amount(row.get('new_fixed'))
        area['extras'] += _amount(row.get('new_extras'))
    return totals


# =============================================================================
# AREA DISBURSEMENT REPORT
# =============================================================================

def report_case_type(case_type):
    """Label printed on the report for a stored case type."""
    case_type = _text(case_type)
    return REPORT_CASE_TYPE_LABELS.get(case_type) or case_type or DEFAULT_REPORT_CASE_TYPE


def build_area_report(cases_df, sponsorships_df, adjustments_df):
    """
    Build the printable ledger of an area for a month.

    PARAMETERS:
        cases_df (pd.DataFrame): The area's active cases
        sponsorships_df (pd.DataFrame): Sponsorships of those cases
            (inactive ones are ignored)
        adjustments_df (pd.DataFrame): The month's adjustments for those
            cases (only one_time_extra rows are used)

    RETURNS:
        list: dicts {"name", "case_type", "fixed", "extras", "total"}
              - name is the guardian's name, or the child's when missing
              - rows with a zero total are dropped
              - sorted by name
    """
    if _is_empty(cases_df):
        return []

    fixed_by_case = {}
    if not _is_empty(sponsorships_df):
        active = sponsorships_df
        if 'status' in active.columns:
            active = active[active['status'] == 'active']
        for _, sp in active.iterrows():
            case_id = _id(sp['case_id'])
            fixed_by_case[case_id] = fixed_by_case.get(case_id, 0.0) + _amount(sp['fixed_amount'])

    extras_by_case = {}
    for _, adj in _only_one_time_extras(adjustments_df).iterrows():
        case_id = _id(adj['case_id'])
        extras_by_case[case_id] = extras_by_case.get(case_id, 0.0) + _amount(adj['amount'])

    rows = []
    for _, case in cases_df.iterrows():
        fixed = fixed_by_case.get(_id(case['case_id']), 0.0)
        extras = extras_by_case.get(_id(case['case_id']), 0.0)
        total = fixed + extras
        if total <= 0:
            continue
        rows.append({
            'name': _text(case.get('guardian_name')) or _text(case.get('child_name')) or "—",
            'case_type': report_case_type(case.get('case_type')),
            'fixed': fixed,
            'extras': extras,
            'total': total,
        })

    return sorted(rows, key=lambda r: r['name'])


def report_totals(rows):
    """Grand totals of a report: {"fixed", "extras", "total"}."""
    return {
        'fixed': sum(r['fixed'] for r in rows),
        'extras': sum(r['extras'] for r in rows),
        'total': sum(r['total'] for r in rows),
    }


# =============================================================================
# SADAQAT LEDGER
# =============================================================================

def _sum_type(entries_df, transaction_type):
    if _is_empty(entries_df):
        return 0.0
    subset = entries_df[entries_df['transaction_type'] == transaction_type]
    return float(sum(_amount(v) for v in subset['amount']))


def _filter_month(entries_df, month):
    if _is_empty(entries_df) or not month or month == ALL_MONTHS:
        return entries_df
    return entries_df[entries_df['month_year'] == month]


def sadaqat_summary(entries_df, month=ALL_MONTHS):
    """
    Sadaqat totals.

    PARAMETERS:
        entries_df (pd.DataFrame): ALL sadaqat entries (not month-filtered)
        month (str): "YYYY-MM" or "all"

    RETURNS:
        dict:
            inflow / outflow - totals for the selected month (or all time)
            net              - inflow - outflow for the selection
            balance          - cumulative all-time balance, whatever the
                               month filter is
    """
    selected = _filter_month(entries_df, month)
    inflow = _sum_type(selected, SADAQAT_INFLOW)
    outflow = _sum_type(selected, SADAQAT_OUTFLOW)

    return {
        'inflow': inflow,
        'outflow': outflow,
        'net': inflow - outflow,
        'balance': _sum_type(entries_df, SADAQAT_INFLOW) - _sum_type(entries_df, SADAQAT_OUTFLOW),
    }


def cause_label(destination_type):
    """
    Display label for the cause an entry is tagged with.
    Settle-page payouts stored the technical types kafala_case /
    one_time_case; both show as "حالات كفالة".
    """
    cause = _text(destination_type)
    if cause in (DESTINATION_KAFALA_CASE, DESTINATION_ONE_TIME_CASE):
        return LEGACY_CAUSE_LABEL
    return cause or UNKNOWN_CAUSE_LABEL


def sadaqat_by_cause(entries_df):
    """
    Inflow / outflow per cause, biggest first.

    RETURNS:
        list: dicts {"cause", "inflow", "outflow", "total"}
    """
    if _is_empty(entries_df):
        return []

    causes = {}
    for _, entry in entries_df.iterrows():
        cause = cause_label(entry.get('destination_type'))
        bucket = causes.setdefault(cause, {'cause': cause, 'inflow': 0.0, 'outflow': 0.0})
        if entry['transaction_type'] in (SADAQAT_INFLOW, SADAQAT_OUTFLOW):
            bucket[entry['transaction_type']] += _amount(entry['amount'])

    rows = []
    for bucket in causes.values():
        bucket['total'] = bucket['inflow'] + bucket['outflow']
        rows.append(bucket)

    return sorted(rows, key=lambda r: r['total'], reverse=True)


def sadaqat_by_month(entries_df):
    """
    Entries grouped by month, newest month first.

    RETURNS:
        list: dicts {"month", "entries" (pd.DataFrame), "total"}
    """
    if _is_empty(entries_df):
        return []

    months = entries_df['month_year'].fillna("—")
    groups = []
    for month in sorted(months.unique(), reverse=True):
        subset = entries_df[months == month]
        groups.append({
            'month': month,
            'entries': subset,
            'total': float(sum(_amount(v) for v in subset['amount'])),
        })
    return groups


def sadaqat_allocation(inflow, allocated, new_amount=0):
    """
    How much of a month's sadaqat inflow is still free to hand out.

    RETURNS:
        dict:
            remaining        - inflow - allocated, floored at 0 for display
            fully_allocated  - inflow > 0 and everything is handed out
            over_allocated   - new_amount is more than what remains
    """
    inflow = _amount(inflow)
    allocated = _amount(allocated)
    new_amount = _amount(new_amount)
    remaining = inflow - allocated

    return {
        'remaining': max(0.0, remaining),
        'fully_allocated': inflow > 0 and allocated >= inflow,
        'over_allocated': new_amount > 0 and remaining >= 0 and new_amount > remaining + AMOUNT_TOLERANCE,
    }


# =============================================================================
# DASHBOARD
# =============================================================================

def payment_status(paid, obligation):
    """
    Payment status of a sponsor for a month.

    RETURNS:
        str: 'paid' (paid the full obligation), 'partial' (paid something)
             or 'unpaid'

    WHY TOLERANCE?
        Floating point math can be imprecise: 100.00 might be stored as
        99.99999999. We use AMOUNT_TOLERANCE (0.01) to handle this.
    """
    paid = _amount(paid)
    obligation = _amount(obligation)

    if obligation > 0 and paid + AMOUNT_TOLERANCE >= obligation:
        return "paid"
    if paid > AMOUNT_TOLERANCE:
        return "partial"
    return "unpaid"


def effective_collected(month, total_obligation, total_collected):
    """
    Collected total shown on the dashboard.
    Tracking started in COLLECTION_START_MONTH; earlier months count as
    fully collected.
    """
    if month and month != ALL_MONTHS and month < COLLECTION_START_MONTH:
        return _amount(total_obligation)
    return _amount(total_collected)


def counted_collections(collections_df):
    """Only collections whose status means the money was received."""
    if _is_empty(collections_df):
        return pd.DataFrame()
    if 'status' not in collections_df.columns:
        return collections_df
    return collections_df[collections_df['status'].isin(COUNTED_COLLECTION_STATUSES)]


BALANCE_COLUMNS = [
    'sponsor_id', 'legacy_id', 'name', 'phone', 'obligation', 'paid',
    'case_count', 'by_area', 'responsible', 'paid_through', 'status',
]


def sponsor_balances(sponsors_df, sponsorships_df, collections_df=None):
    """
    Build the dashboard's sponsor balance table.

    PARAMETERS:
        sponsors_df (pd.DataFrame): Active real sponsors (load_sponsors with
            exclude_sadaqat=True), including operator_name and
            paid_through_name
        sponsorships_df (pd.DataFrame): Active sponsorships
        collections_df (pd.DataFrame): The month's collections (None / empty
            for the "all" view)

    RETURNS:
        pd.DataFrame: One row per sponsor with an obligation, columns
            obligation  - sum of fixed pledges
            paid        - collections with a counted status
            case_count
            by_area     - {area_name: amount}
            responsible / paid_through - names, "—" when missing
            status      - paid / partial / unpaid
    """
    if _is_empty(sponsors_df):
        return pd.DataFrame(columns=BALANCE_COLUMNS)

    paid_by_sponsor = {}
    for _, col in counted_collections(collections_df).iterrows():
        sponsor_id = _id(col['sponsor_id'])
        paid_by_sponsor[sponsor_id] = paid_by_sponsor.get(sponsor_id, 0.0) + _amount(col['amount'])

    rows = []
    for _, sponsor in sponsors_df.iterrows():
        if _is_empty(sponsorships_df):
            sships = pd.DataFrame()
        else:
            sships = sponsorships_df[sponsorships_df['sponsor_id'] == sponsor['sponsor_id']]

        obligation = float(sum(_amount(v) for v in sships['fixed_amount'])) if len(sships) else 0.0
        if obligation <= 0:
            continue

        by_area = {}
        for _, sh in sships.iterrows():
            area = _text(sh.get('area_name')) or "—"
            by_area[area] = by_area.get(area, 0.0) + _amount(sh['fixed_amount'])

        responsible = _text(sponsor.get('operator_name'))
        if responsible == HIDDEN_OPERATOR_NAME:
            responsible = ""

        paid = paid_by_sponsor.get(_id(sponsor['sponsor_id']), 0.0)
        rows.append({
            'sponsor_id': _id(sponsor['sponsor_id']),
            'legacy_id': sponsor.get('legacy_id'),
            'name': _text(sponsor.get('name')),
            'phone': _text(sponsor.get('phone')) or None,
            'obligation': obligation,
            'paid': paid,
            'case_count': len(sships),
            'by_area': by_area,
            'responsible': responsible or "—",
            'paid_through': _text(sponsor.get('paid_through_name')) or "—",
            'status': payment_status(paid, obligation),
        })

    return pd.DataFrame(rows, columns=BALANCE_COLUMNS)


AREA_COLUMNS = ['area_id', 'area_name', 'cases', 'fixed', 'extras', 'total']


def area_breakdown(sponsorships_df, disbursements_df=None):
    """
    Monthly distribution per area.

    PARAMETERS:
        sponsorships_df (pd.DataFrame): Active sponsorships (with area_id,
            area_name)
        disbursements_df (pd.DataFrame): Saved settlement totals for the
            selected month; when present they replace the current pledges

    RETURNS:
        pd.DataFrame: area_id, area_name, cases, fixed, extras, total

    WHY TWO SOURCES?
        Current sponsorships always give a baseline. Once a month has been
        settled, its disbursements record what was actually paid out, which
        stays correct after pledges change later.
    """
    baseline = {}
    if not _is_empty(sponsorships_df):
        for _, sh in sponsorships_df.iterrows():
            area_id = _id(sh.get('area_id'))
            if area_id is None:
                continue
            area = baseline.setdefault(area_id, {
                'area_id': area_id,
                'area_name': _text(sh.get('area_name')) or "—",
                'cases': 0,
                'total': 0.0,
            })
            area['cases'] += 1
            area['total'] += _amount(sh['fixed_amount'])

    rows = []
    if not _is_empty(disbursements_df):
        for _, d in disbursements_df.iterrows():
            area_id = _id(d['area_id'])
            fixed = _amount(d['fixed_total'])
            extras = _amount(d['extras_total'])
            rows.append({
                'area_id': area_id,
                'area_name': _text(d.get('area_name')) or baseline.get(area_id, {}).get('area_name', "—"),
                'cases': baseline.get(area_id, {}).get('cases', 0),
                'fixed': fixed,
                'extras': extras,
                'total': fixed + extras,
            })
    else:
        for area in baseline.values():
            rows.append({
                'area_id': area['area_id'],
                'area_name': area['area_name'],
                'cases': area['cases'],
                'fixed': area['total'],
                'extras': 0.0,
                'total': area['total'],
            })

    df = pd.DataFrame(rows, columns=AREA_COLUMNS)
    if len(df) > 0:
        df = df.sort_values('area_name').reset_index(drop=True)
    return df


# =============================================================================
# LEARNING NOTES: BUSINESS LOGIC
# =============================================================================
#
# WHAT IS BUSINESS LOGIC?
#   The code that implements the rules of the organization. It's not about
#   how data is stored or displayed, it's about what the data MEANS.
#
# EXAMPLES FROM THIS FILE:
#   - "Money above the obligation goes to the sadaqat pool"
#   - "Outstanding = obligation - collected, never below zero"
#   - "A report row is named after the guardian, not the child"
#
# WHY KEEP IT SEPARATE?
#   1. Easy to change: rules change more often than screens
#   2. Easy to test: test_calculations.py runs without a database
#   3. Reusable: the dashboard and the report pages share these
#
# TIPS:
#   - Handle None / NaN cells (pandas gives NaN for NULL columns)
#   - Compare amounts with AMOUNT_TOLERANCE, not ==
#
# =============================================================================
