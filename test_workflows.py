# =============================================================================
# test_workflows.py - Multi-step database writes
# =============================================================================
# Every test runs against its own temporary database file.
#
# Run: python test_workflows.py   (or: pytest)
# =============================================================================

import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
from database import (
    init_db,
    create_area,
    create_operator,
    create_sponsor,
    create_case,
    create_sponsorship,
    load_sponsors,
    load_operators,
    find_sponsor_by_name,
    next_legacy_id,
    load_sponsorships,
    load_collections,
    load_adjustments,
    load_sadaqat_entries,
    load_advance_payments,
    load_disbursements,
    save_collection,
    record_cash_collections,
    save_settlement_rows,
    register_sponsor,
    register_case,
    create_case_with_sponsorship,
    add_sadaqat_outflow,
)
from utils.calculations import build_settlement_rows, calculate_sponsor_obligations

MONTH = "2026-03"


def fresh_db():
    """Point the app at a new temporary database file."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    config.DB_PATH = path
    ok = init_db()
    if not ok:
        os.remove(path)
    assert ok, "init_db failed"
    return path


def seed_sponsorship(fixed=500):
    """One area, one sponsor, one case linked with a fixed pledge."""
    area_id = create_area("الشمال")
    sponsor_id = create_sponsor({"name": "Omar", "legacy_id": 1})
    case_id = create_case({"child_name": "Yusuf", "guardian_name": "Amina", "area_id": area_id})
    sponsorship_id = create_sponsorship(sponsor_id, case_id, fixed)
    return area_id, sponsor_id, case_id, sponsorship_id


def settlement_rows(area_id, month=MONTH):
    sponsorships = load_sponsorships(area_id=area_id, active_cases_only=True)
    adjustments = load_adjustments(
        month, config.ADJUSTMENT_ONE_TIME_EXTRA, sponsorships['case_id'].tolist()
    )
    return build_settlement_rows(sponsorships, adjustments)


# =============================================================================
# LOOKUPS
# =============================================================================

def test_sponsor_lookups():
    path = fresh_db()
    try:
        assert next_legacy_id() == 1
        create_sponsor({"name": "Omar Farouk", "legacy_id": 7})
        create_sponsor({"name": "صندوق الصدقات", "legacy_id": config.SADAQAT_SPONSOR_LEGACY_ID})
        assert next_legacy_id() == config.SADAQAT_SPONSOR_LEGACY_ID + 1

        assert find_sponsor_by_name("  omar farouk ")["legacy_id"] == 7
        assert find_sponsor_by_name("Omar") is None
        assert find_sponsor_by_name("") is None

        assert len(load_sponsors()) == 2
        assert load_sponsors(exclude_sadaqat=True)["name"].tolist() == ["Omar Farouk"]
    finally:
        os.remove(path)


def test_hidden_operator_left_out_of_pickers():
    path = fresh_db()
    try:
        create_operator("Khaled")
        create_operator(config.HIDDEN_OPERATOR_NAME)
        assert load_operators()["name"].tolist() == ["Khaled"]
        assert len(load_operators(include_hidden=True)) == 2
    finally:
        os.remove(path)


# =============================================================================
# COLLECTIONS
# =============================================================================

def test_save_collection_with_sadaqat_overflow():
    path = fresh_db()
    try:
        _, sponsor_id, _, _ = seed_sponsorship()
        collection_id = save_collection(sponsor_id, 700, 500, 0, 200, MONTH, sponsor_name="Omar")
        assert collection_id is not None

        collections = load_collections(MONTH)
        assert len(collections) == 1
        assert collections.iloc[0]["sadaqat_portion"] == 200
        assert collections.iloc[0]["status"] == "confirmed"

        inflows = load_sadaqat_entries(MONTH, config.SADAQAT_INFLOW)
        assert len(inflows) == 1
        entry = inflows.iloc[0]
        assert entry["amount"] == 200
        assert entry["donor_name"] == "Omar"
        assert entry["source_type"] == config.SOURCE_COLLECTION_EXTRA
        assert int(entry["source_collection_id"]) == collection_id

        # No advance rows for a single month
        assert len(load_advance_payments(sponsor_id)) == 0
    finally:
        os.remove(path)


def test_save_collection_advance_months():
    path = fresh_db()
    try:
        _, sponsor_id, case_id, _ = seed_sponsorship()
        collection_id = save_collection(
            sponsor_id, 1500, 1500, 0, 0, "2026-11",
            advance_type="months_in_advance", advance_months=3,
        )
        assert collection_id is not None

        collections = load_collections(sponsor_id=sponsor_id)
        assert sorted(collections["month_year"]) == ["2026-11", "2026-12", "2027-01"]

        placeholders = collections[collections["month_year"] != "2026-11"]
        assert set(placeholders["amount"]) == {500}
        assert set(placeholders["notes"]) == {config.ADVANCE_NOTE_TEMPLATE.format(month="2026-11")}

        advances = load_advance_payments(sponsor_id)
        assert len(advances) == 1
        advance = advances.iloc[0]
        assert advance["paid_until"] == "2027-01-31"
        assert advance["months_covered"] == 3
        assert advance["payment_type"] == "advance"
        assert int(advance["case_id"]) == case_id
        assert int(advance["collection_id"]) == collection_id
    finally:
        os.remove(path)


def test_record_cash_collections_replaces_month():
    path = fresh_db()
    try:
        _, sponsor_id, _, _ = seed_sponsorship(fixed=1000)
        operator_id = create_operator("Khaled")

        # An earlier instapay payment with a sadaqat part
        save_collection(sponsor_id, 1100, 1000, 0, 100, MONTH, sponsor_name="Omar")

        errors = record_cash_collections([{
            "sponsor_id": sponsor_id,
            "sponsor_name": "Omar",
            "fixed": 1000,
            "amount": 1200,
            "received_by": operator_id,
        }], MONTH)
        assert errors == []

        collections = load_collections(MONTH)
        assert len(collections) == 1
        row = collections.iloc[0]
        assert row["status"] == "paid"
        assert row["payment_method"] == "cash"
        assert row["fixed_portion"] == 1000
        assert row["extra_portion"] == 200
        assert row["sadaqat_portion"] == 0
        assert int(row["received_by_operator_id"]) == operator_id

        # The inflow survives with its collection link cleared
        inflows = load_sadaqat_entries(MONTH, config.SADAQAT_INFLOW)
        assert len(inflows) == 1
        assert inflows["source_collection_id"].isna().all()
    finally:
        os.remove(path)


def test_record_cash_collections_short_payment():
    path = fresh_db()
    try:
        _, sponsor_id, _, _ = seed_sponsorship(fixed=1000)
        errors = record_cash_collections([{
            "sponsor_id": sponsor_id, "sponsor_name": "Omar", "fixed": 1000, "amount": 600,
        }], MONTH)
        assert errors == []

        row = load_collections(MONTH).iloc[0]
        assert row["fixed_portion"] == 600
        assert row["extra_portion"] == 0
    finally:
        os.remove(path)


# =============================================================================
# MONTHLY SETTLEMENT
# =============================================================================

def test_save_settlement_rows_extras_lifecycle():
    path = fresh_db()
    try:
        area_id, _, _, sponsorship_id = seed_sponsorship(fixed=500)

        # Round 1: add an extra and raise the pledge
        rows = settlement_rows(area_id)
        assert len(rows) == 1
        rows[0]["new_extras"] = 200
        rows[0]["new_fixed"] = 600
        assert save_settlement_rows(rows, MONTH) == []

        extras = load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA)
        assert len(extras) == 1 and extras.iloc[0]["amount"] == 200
        raises = load_adjustments(MONTH, config.ADJUSTMENT_PERMANENT_INCREASE)
        assert len(raises) == 1
        assert raises.iloc[0]["amount"] == 600
        assert raises.iloc[0]["old_fixed_amount"] == 500

        sponsorship = load_sponsorships(area_id=area_id).iloc[0]
        assert int(sponsorship["sponsorship_id"]) == sponsorship_id
        assert sponsorship["fixed_amount"] == 600

        disbursements = load_disbursements(MONTH)
        assert len(disbursements) == 1
        assert disbursements.iloc[0]["fixed_total"] == 600
        assert disbursements.iloc[0]["extras_total"] == 200

        # Round 2: change the extra, pledge untouched
        rows = settlement_rows(area_id)
        assert rows[0]["extras"] == 200 and rows[0]["extra_adjustment_id"] is not None
        rows[0]["new_extras"] = 300
        assert save_settlement_rows(rows, MONTH) == []
        extras = load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA)
        assert len(extras) == 1 and extras.iloc[0]["amount"] == 300
        assert len(load_adjustments(MONTH, config.ADJUSTMENT_PERMANENT_INCREASE)) == 1

        # Round 3: clear the extra
        rows = settlement_rows(area_id)
        rows[0]["new_extras"] = 0
        assert save_settlement_rows(rows, MONTH) == []
        assert len(load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA)) == 0

        # Re-saving overwrites the month's totals
        disbursements = load_disbursements(MONTH)
        assert len(disbursements) == 1
        assert disbursements.iloc[0]["extras_total"] == 0
    finally:
        os.remove(path)


def test_save_settlement_rows_skips_excluded_in_totals():
    path = fresh_db()
    try:
        area_id, _, _, _ = seed_sponsorship(fixed=500)
        rows = settlement_rows(area_id)
        rows[0]["included"] = False
        assert save_settlement_rows(rows, MONTH) == []
        assert len(load_disbursements(MONTH)) == 0
    finally:
        os.remove(path)


def test_save_settlement_rows_twice_writes_once():
    path = fresh_db()
    try:
        area_id, _, _, _ = seed_sponsorship(fixed=500)

        # The page keeps the edited table in the session; going back and
        # pressing save again sends the very same rows
        rows = settlement_rows(area_id)
        rows[0]["new_extras"] = 200
        rows[0]["new_fixed"] = 600
        assert save_settlement_rows(rows, MONTH) == []
        assert save_settlement_rows(rows, MONTH) == []

        extras = load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA)
        assert len(extras) == 1 and extras.iloc[0]["amount"] == 200
        raises = load_adjustments(MONTH, config.ADJUSTMENT_PERMANENT_INCREASE)
        assert len(raises) == 1 and raises.iloc[0]["amount"] == 600
        assert load_sponsorships(area_id=area_id).iloc[0]["fixed_amount"] == 600

        obligations = calculate_sponsor_obligations(
            load_sponsorships(active_only=True),
            load_adjustments(MONTH),
            load_collections(MONTH),
        )
        assert obligations.iloc[0]["extras"] == 200
        assert obligations.iloc[0]["obligation"] == 800

        # Rebuilt from the database after the save: nothing left to write
        rows = settlement_rows(area_id)
        assert save_settlement_rows(rows, MONTH) == []
        assert len(load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA)) == 1
        assert len(load_adjustments(MONTH, config.ADJUSTMENT_PERMANENT_INCREASE)) == 1
    finally:
        os.remove(path)


# =============================================================================
# REGISTRATION
# =============================================================================

def test_register_sponsor_assigns_next_legacy_id():
    path = fresh_db()
    try:
        create_sponsor({"name": "Old Sponsor", "legacy_id": 41})
        sponsor_id = register_sponsor("  New Sponsor ", phone=" 0100 ")
        assert sponsor_id is not None

        sponsors = load_sponsors()
        new = sponsors[sponsors["sponsor_id"] == sponsor_id].iloc[0]
        assert new["name"] == "New Sponsor"
        assert new["legacy_id"] == 42
        assert new["phone"] == "0100"
    finally:
        os.remove(path)


def test_register_case_links_sponsor():
    path = fresh_db()
    try:
        area_id = create_area("الجنوب")
        sponsor_id = register_sponsor("Huda")

        case_id, errors = register_case(
            {"child_name": "Maryam", "area_id": area_id}, sponsor_id, 750
        )
        assert case_id is not None
        assert errors == []
        sponsorships = load_sponsorships(sponsor_id=sponsor_id)
        assert len(sponsorships) == 1
        assert sponsorships.iloc[0]["fixed_amount"] == 750
        assert sponsorships.iloc[0]["area_name"] == "الجنوب"

        # Without an amount the case is saved alone
        case_id, errors = register_case({"child_name": "Salma"}, sponsor_id, 0)
        assert case_id is not None and errors == []
        assert len(load_sponsorships(sponsor_id=sponsor_id)) == 1
    finally:
        os.remove(path)


def test_create_case_with_sponsorship_reuses_sponsor():
    path = fresh_db()
    try:
        area_id, sponsor_id, _, _ = seed_sponsorship()

        result, error = create_case_with_sponsorship("Bilal", "  omar ", 300, area_id=area_id)
        assert error is None
        assert result["sponsor_id"] == sponsor_id
        assert len(load_sponsors()) == 1
        assert len(load_sponsorships(sponsor_id=sponsor_id)) == 2

        # Unknown name → a new sponsor is created
        result, error = create_case_with_sponsorship("Zaid", "Karim", 400, area_id=area_id)
        assert error is None
        assert result["sponsor_id"] != sponsor_id
        assert len(load_sponsors()) == 2
    finally:
        os.remove(path)


def test_create_case_with_sponsorship_validation():
    path = fresh_db()
    try:
        for args in (("", "Omar", 100), ("Bilal", "", 100), ("Bilal", "Omar", 0)):
            result, error = create_case_with_sponsorship(*args)
            assert result is None
            assert error
        assert len(load_sponsors()) == 0
    finally:
        os.remove(path)


# =============================================================================
# SADAQAT
# =============================================================================

def test_add_sadaqat_outflow_descriptions():
    path = fresh_db()
    try:
        _, _, case_id, _ = seed_sponsorship()
        operator_id = create_operator("Khaled")

        case = {"case_id": case_id, "child_name": "Yusuf", "guardian_name": "Amina", "area_name": "الشمال"}
        assert add_sadaqat_outflow(MONTH, 250, case=case, approved_by=operator_id) is not None
        assert add_sadaqat_outflow(MONTH, 100, recipient_name="Hospital", recipient_detail="surgery") is not None

        # Invalid: no amount, or no recipient at all
        assert add_sadaqat_outflow(MONTH, 0, case=case) is None
        assert add_sadaqat_outflow(MONTH, 50, recipient_name="  ") is None

        outflows = load_sadaqat_entries(MONTH, config.SADAQAT_OUTFLOW)
        assert len(outflows) == 2
        by_type = {row["destination_type"]: row for _, row in outflows.iterrows()}

        kafala = by_type[config.DESTINATION_KAFALA_CASE]
        assert kafala["destination_description"] == "Yusuf (Amina) — الشمال"
        assert int(kafala["destination_case_id"]) == case_id
        assert kafala["case_child_name"] == "Yusuf"
        assert int(kafala["approved_by"]) == operator_id

        external = by_type[config.DESTINATION_ONE_TIME_CASE]
        assert external["destination_description"] == "Hospital — surgery"
        assert external["amount"] == 100
    finally:
        os.remove(path)


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} workflow tests passed")
