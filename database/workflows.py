# =============================================================================
# database/workflows.py
# =============================================================================
# PURPOSE:
#   Multi-step writes. Each workflow here calls several query functions in
#   a row (insert a collection, then its sadaqat inflow, then the advance
#   rows...).
#
# NO TRANSACTIONS:
#   Every query function opens and closes its own connection, so a workflow
#   is a sequence of independent writes. If step 3 fails, steps 1 and 2
#   stay written. Workflows report what failed instead of rolling back:
#   - save_collection() returns the collection id, or None if the first
#     insert failed
#   - the batch workflows return a list of error strings (empty = all good)
# =============================================================================

import json

import config
from utils.calculations import (
    plan_settlement_changes,
    split_cash_collection,
    area_settlement_totals,
)
from utils.months import project_advance_months, paid_until
from .queries import (
    _safe_float,
    _safe_int,
    create_advance_payment,
    create_adjustment,
    create_case,
    create_collection,
    create_sadaqat_entry,
    create_sponsor,
    create_sponsorship,
    delete_adjustment,
    delete_sponsor_collections,
    find_sponsor_by_name,
    load_adjustments,
    load_sponsorships,
    next_legacy_id,
    save_disbursement,
    update_adjustment,
    update_sponsorship,
)


# =============================================================================
# COLLECTIONS
# =============================================================================

def _advance_payment_type(advance_type):
    if advance_type in ("annual", "semi_annual"):
        return advance_type
    return "advance"


def save_collection(sponsor_id, amount, fixed, extra, sadaqat, month,
                    operator_id=None, method="instapay", notes=None, ocr_raw=None,
                    sponsor_name="", advance_type="monthly", advance_months=1):
    """
    Record a payment from the Collect page.

    STEPS:
        1. Insert the collection (status 'confirmed')
        2. If part of it is sadaqat, add a sadaqat inflow linked to it
           (donor = the sponsor's name)
        3. If it covers several months (advance_months > 1):
           - insert an advance_payments row (paid until the last day of the
             final month, linked to the sponsor's first active case)
           - insert one placeholder collection per future month, each
             worth fixed / advance_months

    RETURNS:
        int: The collection_id, or None if the collection itself failed
    """
    advance_type = advance_type or "monthly"
    advance_months = _safe_int(advance_months, 1) or 1
    amount = _safe_float(amount)
    fixed = _safe_float(fixed)
    extra = _safe_float(extra)
    sadaqat = _safe_float(sadaqat)

    collection_id = create_collection({
        "sponsor_id": sponsor_id,
        "amount": amount,
        "fixed_portion": fixed,
        "extra_portion": extra,
        "sadaqat_portion": sadaqat,
        "month_year": month,
        "received_by_operator_id": operator_id or None,
        "payment_method": method,
        "ocr_raw": json.dumps(ocr_raw, ensure_ascii=False, default=str) if ocr_raw else None,
        "status": "confirmed",
        "notes": notes or None,
        "advance_type": advance_type,
        "advance_months": advance_months,
    })

    if collection_id is None:
        return None

    # -------------------------------------------------------------------------
    # Overflow → sadaqat pool
    # -------------------------------------------------------------------------
    if sadaqat > 0:
        create_sadaqat_entry({
            "transaction_type": config.SADAQAT_INFLOW,
            "amount": sadaqat,
            "source_type": config.SOURCE_COLLECTION_EXTRA,
            "source_collection_id": collection_id,
            "donor_name": sponsor_name or None,
            "month_year": month,
        })

    # -------------------------------------------------------------------------
    # Advance payment → mark the coming months as paid
    # -------------------------------------------------------------------------
    if advance_months > 1:
        sponsorships = load_sponsorships(sponsor_id=sponsor_id)
        first_case = _safe_int(sponsorships.iloc[0]['case_id']) if len(sponsorships) > 0 else None

        create_advance_payment({
            "sponsor_id": sponsor_id,
            "case_id": first_case,
            "payment_type": _advance_payment_type(advance_type),
            "amount": amount,
            "months_covered": advance_months,
            "start_month": month,
            "paid_until": paid_until(month, advance_months),
            "collection_id": collection_id,
            "status": "active",
        })

        per_month = fixed / advance_months
        for future_month in project_advance_months(month, advance_months):
            create_collection({
                "sponsor_id": sponsor_id,
                "amount": per_month,
                "fixed_portion": per_month,
                "extra_portion": 0,
                "sadaqat_portion": 0,
                "month_year": future_month,
                "received_by_operator_id": operator_id or None,
                "payment_method": method,
                "status": "confirmed",
                "notes": config.ADVANCE_NOTE_TEMPLATE.format(month=month),
                "advance_type": advance_type,
                "advance_months": 0,
            })

        print(f"[INFO] Advance payment for sponsor {sponsor_id}: {advance_months} months from {month}")

    return collection_id


def record_cash_collections(rows, month):
    """
    Save the tahseel round.

    PARAMETERS:
        rows (list): checked sponsors, dicts with sponsor_id, sponsor_name,
            fixed, amount and received_by (operator id or None)
        month (str): "YYYY-MM"

    STEPS (per sponsor):
        1. Delete whatever was recorded for the sponsor this month
        2. Insert one cash collection (status 'paid'), fixed first, the
           rest as extra

    REPLACES, DOES NOT ADD:
        A sponsor who paid 300 earlier and 700 now must be saved with
        amount 1000. The page lists such sponsors before saving
        (replaced_collections). Sadaqat and advance rows that pointed at a
        deleted collection keep their data with the link cleared.

    RETURNS:
        list: "<sponsor name>: <problem>" strings, empty if all went well
    """
    errors = []

    for row in rows:
        sponsor_id = _safe_int(row.get('sponsor_id'))
        name = row.get('sponsor_name') or str(sponsor_id)
        amount = _safe_float(row.get('amount'))
        portions = split_cash_collection(amount, row.get('fixed'))

        if not delete_sponsor_collections(sponsor_id, month):
            errors.append(f"{name}: تعذر حذف التحصيل السابق")
            continue

        collection_id = create_collection({
            "sponsor_id": sponsor_id,
            "amount": amount,
            "fixed_portion": portions["fixed"],
            "extra_portion": portions["extra"],
            "sadaqat_portion": portions["sadaqat"],
            "month_year": month,
            "received_by_operator_id": _safe_int(row.get('received_by')),
            "payment_method": "cash",
            "status": "paid",
        })
        if collection_id is None:
            errors.append(f"{name}: تعذر حفظ التحصيل")

    return errors


# =============================================================================
# MONTHLY SETTLEMENT
# =============================================================================

def _with_stored_values(rows, month):
    """
    Copy the rows with fixed, extras and extra_adjustment_id taken from the
    database, so a row planned against an older read (a table kept in the
    session after an earlier save) is compared with what is stored now.
    """
    case_ids = [c for c in (_safe_int(r.get('case_id')) for r in rows) if c is not None]
    extras = load_adjustments(month, config.ADJUSTMENT_ONE_TIME_EXTRA, case_ids)

    stored_extras = {}
    for _, adj in extras.iterrows():
        stored_extras.setdefault(_safe_int(adj['sponsorship_id']), adj)

    stored_fixed = {}
    sponsorships = load_sponsorships(active_only=False)
    for _, sp in sponsorships.iterrows():
        stored_fixed[_safe_int(sp['sponsorship_id'])] = _safe_float(sp['fixed_amount'])

    synced = []
    for row in rows:
        row = dict(row)
        sponsorship_id = _safe_int(row.get('sponsorship_id'))
        adj = stored_extras.get(sponsorship_id)
        row['extras'] = _safe_float(adj['amount']) if adj is not None else 0.0
        row['extra_adjustment_id'] = _safe_int(adj['adjustment_id']) if adj is not None else None
        if sponsorship_id in stored_fixed:
            row['fixed'] = stored_fixed[sponsorship_id]
        synced.append(row)
    return synced


def save_settlement_rows(rows, month):
    """
    Save the edited settlement table.

    Each row is first compared with the stored sponsorship and extra, so
    saving the same table twice writes nothing the second time.

    FOR EACH ROW (see plan_settlement_changes):
        - one-time extra changed → update / delete / insert its adjustment
        - fixed amount changed   → update the sponsorship, then log a
          permanent_increase adjustment (only if the update worked)

    THEN:
        Store the per-area totals of the included rows for the month
        (disbursements table).

    RETURNS:
        list: error strings, empty if everything was saved
    """
    errors = []

    for row in _with_stored_values(rows, month):
        plan = plan_settlement_changes(row)
        label = row.get('child_name') or row.get('sponsorship_id')
        new_extras = _safe_float(row.get('new_extras'))
        new_fixed = _safe_float(row.get('new_fixed'))

        base = {
            "sponsorship_id": _safe_int(row.get('sponsorship_id')),
            "case_id": _safe_int(row.get('case_id')),
            "sponsor_id": _safe_int(row.get('sponsor_id')),
            "month_year": month,
            "old_fixed_amount": _safe_float(row.get('fixed')),
            "applied": 1 if row.get('collected') else 0,
        }

        # ---------------------------------------------------------------------
        # One-time extras
        # ---------------------------------------------------------------------
        if plan['extra_action'] == "update":
            if not update_adjustment(row['extra_adjustment_id'], {"amount": new_extras}):
                errors.append(f"{label}: تعذر تعديل الزيادة")
        elif plan['extra_action'] == "delete":
            if not delete_adjustment(row['extra_adjustment_id']):
                errors.append(f"{label}: تعذر حذف الزيادة")
        elif plan['extra_action'] == "insert":
            adjustment = dict(base, adjustment_type=config.ADJUSTMENT_ONE_TIME_EXTRA, amount=new_extras)
            if create_adjustment(adjustment) is None:
                errors.append(f"{label}: تعذر تسجيل الزيادة")

        # ---------------------------------------------------------------------
        # Permanent change of the fixed amount
        # ---------------------------------------------------------------------
        if plan['fixed_changed']:
            if not update_sponsorship(base["sponsorship_id"], {"fixed_amount": new_fixed}):
                errors.append(f"{label}: تعذر تعديل مبلغ الكفالة")
            else:
                adjustment = dict(base, adjustment_type=config.ADJUSTMENT_PERMANENT_INCREASE, amount=new_fixed)
                if create_adjustment(adjustment) is None:
                    errors.append(f"{label}: تعذر تسجيل تعديل الكفالة")

    for area_id, totals in area_settlement_totals(rows).items():
        if not save_disbursement(area_id, month, totals['fixed'], totals['extras']):
            errors.append(f"تعذر حفظ إجمالي المنطقة {area_id}")

    return errors


# =============================================================================
# REGISTRATION
# =============================================================================

def register_sponsor(name, phone=None, ipn_address=None, responsible_operator_id=None,
                     paid_through_sponsor_id=None, payment_frequency="monthly", notes=None):
    """
    Register a new sponsor with the next legacy number.

    RETURNS:
        int: The new sponsor_id, or None if failed
    """
    return create_sponsor({
        "legacy_id": next_legacy_id(),
        "name": name.strip(),
        "phone": (phone or "").strip() or None,
        "ipn_address": (ipn_address or "").strip() or None,
        "responsible_operator_id": responsible_operator_id,
        "paid_through_sponsor_id": paid_through_sponsor_id,
        "payment_frequency": payment_frequency,
        "is_active": 1,
        "notes": notes or None,
    })


def register_case(case_data, sponsor_id=None, fixed_amount=0):
    """
    Register a new case, optionally linking a sponsor right away.

    RETURNS:
        tuple: (case_id, errors)
            case_id - the new case, or None if it could not be created
            errors  - list of error strings. A failed sponsorship leaves
                      the case saved and reports the problem here.
    """
    case_id = create_case(dict(case_data))
    if case_id is None:
        return None, ["تعذر إنشاء الحالة"]

    errors = []
    if sponsor_id and _safe_float(fixed_amount) > 0:
        if create_sponsorship(sponsor_id, case_id, _safe_float(fixed_amount)) is None:
            errors.append("تم حفظ الحالة لكن تعذر ربط الكفيل")

    return case_id, errors


def create_case_with_sponsorship(child_name, sponsor_name, fixed_amount,
                                 guardian_name=None, area_id=None, case_type="orphan"):
    """
    Add a brand-new case from the settle page.

    STEPS:
        1. Find the sponsor by name (case-insensitive), or create one
        2. Create the case in the area
        3. Create the sponsorship
    Each step stops the workflow when it fails; earlier steps stay saved.

    RETURNS:
        tuple: (result, error)
            result - dict with sponsorship_id, sponsor_id, case_id (None on error)
            error  - error string, or None
    """
    child_name = (child_name or "").strip()
    sponsor_name = (sponsor_name or "").strip()
    fixed_amount = _safe_float(fixed_amount)

    if not child_name or not sponsor_name or fixed_amount <= 0:
        return None, "اسم الحالة واسم الكفيل والمبلغ مطلوبة"

    sponsor = find_sponsor_by_name(sponsor_name)
    if sponsor:
        sponsor_id = sponsor['sponsor_id']
    else:
        sponsor_id = create_sponsor({"name": sponsor_name})
        if sponsor_id is None:
            return None, "خطأ في إنشاء الكفيل"

    case_id = create_case({
        "child_name": child_name,
        "guardian_name": (guardian_name or "").strip() or None,
        "area_id": area_id,
        "case_type": case_type,
        "status": "active",
    })
    if case_id is None:
        return None, "خطأ في إنشاء الحالة"

    sponsorship_id = create_sponsorship(sponsor_id, case_id, fixed_amount)
    if sponsorship_id is None:
        return None, "خطأ في إنشاء الكفالة"

    return {
        "sponsorship_id": sponsorship_id,
        "sponsor_id": sponsor_id,
        "case_id": case_id,
    }, None


# =============================================================================
# SADAQAT
# =============================================================================

def add_sadaqat_outflow(month, amount, case=None, recipient_name=None,
                        recipient_detail=None, reason=None, approved_by=None):
    """
    Hand out sadaqat money from the settle page.

    PARAMETERS:
        case (dict): an existing case (case_id, child_name, guardian_name,
            area_name) → stored as 'kafala_case'
        recipient_name / recipient_detail: an external one-time recipient
            → stored as 'one_time_case'

    DESCRIPTION FORMAT:
        case:      "child (guardian) — area"
        external:  "recipient — detail"

    RETURNS:
        int: The new entry_id, or None if invalid / failed
    """
    amount = _safe_float(amount)
    if amount <= 0:
        return None

    if case is not None:
        description = case.get('child_name') or ""
        if case.get('guardian_name'):
            description += f" ({case['guardian_name']})"
        if case.get('area_name'):
            description += f" — {case['area_name']}"
        destination_type = config.DESTINATION_KAFALA_CASE
        case_id = _safe_int(case.get('case_id'))
    else:
        if not (recipient_name or "").strip():
            return None
        description = recipient_name.strip()
        if (recipient_detail or "").strip():
            description += f" — {recipient_detail.strip()}"
        destination_type = config.DESTINATION_ONE_TIME_CASE
        case_id = None

    return create_sadaqat_entry({
        "transaction_type": config.SADAQAT_OUTFLOW,
        "amount": amount,
        "destination_type": destination_type,
        "destination_case_id": case_id,
        "destination_description": description or reason or None,
        "month_year": month,
        "reason": reason or None,
        "approved_by": approved_by or None,
    })
