# =============================================================================
# test_e2e_flow.py - End-to-end test: Register → Settle → Collect → Report
# =============================================================================
# Runs one month of the app flow using a temporary test database:
#   1. Register an area, an operator, sponsors and their cases
#   2. Settle: add a one-time extra for one case
#   3. Collect: an instapay payment with a sadaqat overflow
#   4. Tahseel: record the remaining sponsor in cash
#   5. Report: the printable area ledger
#   6. Sadaqat: hand out part of the overflow
#   7. Verify state at each step
#
# Run: python test_e2e_flow.py   (or: pytest)
# =============================================================================

import sys
import os

# Point to test DB before any database imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
import config
TEST_DB = os.path.join(os.path.dirname(os.path.abspath(__file__)), "khidma_e2e_test.db")

from database import (
    init_db,
    create_area,
    create_operator,
    load_cases,
    load_sponsorships,
    load_collections,
    load_adjustments,
    load_sadaqat_entries,
    load_disbursements,
    register_sponsor,
    register_case,
    save_collection,
    record_cash_collections,
    save_settlement_rows,
    add_sadaqat_outflow,
)
from utils.calculations import (
    build_settlement_rows,
    calculate_sponsor_obligations,
    pending_sponsors,
    split_payment,
    build_area_report,
    report_totals,
    sadaqat_summary,
)

MONTH = "2026-03"


def step(name):
    print(f"\n--- {name} ---")


def month_adjustments(case_ids):
    return load_adjustments(MONTH, config.ADJUSTMENT_ONE_TIME_EXTRA, case_ids)


def run_flow():
    config.DB_PATH = TEST_DB

    print("=" * 60)
    print("E2E TEST: Register -> Settle -> Collect -> Report")
    print("Using DB:", config.DB_PATH)
    print("=" * 60)

    # Remove test DB if it exists (clean start)
    if os.path.exists(config.DB_PATH):
        os.remove(config.DB_PATH)

    # -------------------------------------------------------------------------
    # 1. Init DB and register
    # -------------------------------------------------------------------------
    step("1. Init DB and register")
    assert init_db(), "init_db failed"

    area_id = create_area("الشمال")
    operator_id = create_operator("Khaled")
    omar = register_sponsor("Omar", phone="0100")
    huda = register_sponsor("Huda")
    assert None not in (area_id, operator_id, omar, huda)

    yusuf, errors = register_case({"child_name": "Yusuf", "guardian_name": "Amina", "area_id": area_id}, omar, 500)
    assert yusuf and not errors, errors
    bilal, errors = register_case({"child_name": "Bilal", "guardian_name": "Fatma", "area_id": area_id}, omar, 300)
    assert bilal and not errors, errors
    maryam, errors = register_case({"child_name": "Maryam", "area_id": area_id, "case_type": "student"}, huda, 1000)
    assert maryam and not errors, errors

    sponsorships = load_sponsorships(area_id=area_id, active_cases_only=True)
    print(f"Sponsorships in area: {len(sponsorships)}")
    assert len(sponsorships) == 3

    # -------------------------------------------------------------------------
    # 2. Settle: one-time extra for Yusuf
    # -------------------------------------------------------------------------
    step("2. Settle")
    case_ids = sponsorships['case_id'].tolist()
    rows = build_settlement_rows(sponsorships, month_adjustments(case_ids))
    assert [r['child_name'] for r in rows] == ["Bilal", "Maryam", "Yusuf"]
    rows[2]['new_extras'] = 200

    errors = save_settlement_rows(rows, MONTH)
    assert errors == [], errors
    disbursement = load_disbursements(MONTH).iloc[0]
    print(f"Disbursement: fixed {disbursement['fixed_total']} + extras {disbursement['extras_total']}")
    assert disbursement['fixed_total'] == 1800
    assert disbursement['extras_total'] == 200

    # -------------------------------------------------------------------------
    # 3. Collect: Omar pays 1100 by instapay
    # -------------------------------------------------------------------------
    step("3. Collect")
    obligations = calculate_sponsor_obligations(
        load_sponsorships(active_cases_only=True), month_adjustments(case_ids), load_collections(MONTH)
    )
    omar_row = obligations[obligations['sponsor_id'] == omar].iloc[0]
    assert omar_row['obligation'] == 1000
    assert len(omar_row['cases']) == 2

    portions = split_payment(1100, omar_row['obligation'])
    print(f"Split: {portions}")
    collection_id = save_collection(
        omar, 1100, portions['fixed'], portions['extra'], portions['sadaqat'], MONTH,
        operator_id=operator_id, sponsor_name="Omar",
    )
    assert collection_id is not None

    obligations = calculate_sponsor_obligations(
        load_sponsorships(active_cases_only=True), month_adjustments(case_ids), load_collections(MONTH)
    )
    pending = pending_sponsors(obligations)
    print(f"Pending sponsors: {pending['sponsor_name'].tolist()}")
    assert pending['sponsor_id'].tolist() == [huda]

    # -------------------------------------------------------------------------
    # 4. Tahseel: Huda pays in cash
    # -------------------------------------------------------------------------
    step("4. Tahseel")
    huda_row = pending.iloc[0]
    errors = record_cash_collections([{
        "sponsor_id": huda,
        "sponsor_name": huda_row['sponsor_name'],
        "fixed": huda_row['fixed'],
        "amount": huda_row['outstanding'],
        "received_by": operator_id,
    }], MONTH)
    assert errors == [], errors

    obligations = calculate_sponsor_obligations(
        load_sponsorships(active_cases_only=True), month_adjustments(case_ids), load_collections(MONTH)
    )
    assert len(pending_sponsors(obligations)) == 0
    print(f"Collections this month: {len(load_collections(MONTH))}")

    # -------------------------------------------------------------------------
    # 5. Area report
    # -------------------------------------------------------------------------
    step("5. Report")
    report = build_area_report(
        load_cases(area_id), load_sponsorships(area_id=area_id), month_adjustments(case_ids)
    )
    for r in report:
        print(f"   {r['name']}: {r['fixed']} + {r['extras']} = {r['total']}")
    assert [r['name'] for r in report] == sorted(["Amina", "Fatma", "Maryam"])
    totals = report_totals(report)
    assert totals == {'fixed': 1800, 'extras': 200, 'total': 2000}

    # -------------------------------------------------------------------------
    # 6. Sadaqat
    # -------------------------------------------------------------------------
    step("6. Sadaqat")
    case = load_cases(area_id).set_index('case_id').loc[bilal].to_dict()
    case['case_id'] = bilal
    entry_id = add_sadaqat_outflow(MONTH, 60, case=case, approved_by=operator_id)
    assert entry_id is not None

    summary = sadaqat_summary(load_sadaqat_entries(), MONTH)
    print(f"Sadaqat: {summary}")
    assert summary['inflow'] == 100
    assert summary['outflow'] == 60
    assert summary['balance'] == 40

    # -------------------------------------------------------------------------
    # 7. Final verification
    # -------------------------------------------------------------------------
    step("7. Final state")
    print(f"Cases: {len(load_cases())}")
    print(f"Collections: {len(load_collections())}")
    print(f"Adjustments: {len(load_adjustments())}")
    print(f"Sadaqat entries: {len(load_sadaqat_entries())}")

    print("\n" + "=" * 60)
    print("E2E PASSED: Register -> Settle -> Collect -> Report all OK")
    print("=" * 60)
    return 0


def main():
    """Run the flow and remove the test DB even when a step fails."""
    try:
        return run_flow()
    finally:
        if os.path.exists(TEST_DB):
            os.remove(TEST_DB)
            print(f"Removed test DB: {TEST_DB}")


def test_full_month_flow():
    assert main() == 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
    except Exception as e:
        import traceback
        traceback.print_exc()
        sys.exit(1)
