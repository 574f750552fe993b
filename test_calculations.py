# =============================================================================
# test_calculations.py - Business rules on plain DataFrames
# =============================================================================
# Covers the payment splits, the tahseel obligations, the settlement table,
# the area report and the sadaqat ledger. No database needed: the inputs
# are DataFrames shaped like the query results.
#
# Run: python test_calculations.py   (or: pytest)
# =============================================================================

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pandas as pd

from utils.calculations import (
    split_payment,
    split_cash_collection,
    portions_mismatch,
    calculate_sponsor_obligations,
    pending_sponsors,
    group_by_operator,
    replaced_collections,
    build_settlement_rows,
    settlement_totals,
    plan_settlement_changes,
    area_settlement_totals,
    build_area_report,
    report_totals,
    sadaqat_summary,
    sadaqat_by_cause,
    sadaqat_by_month,
    sadaqat_allocation,
    payment_status,
    effective_collected,
    sponsor_balances,
    area_breakdown,
)


# -----------------------------------------------------------------------------
# Sample data
# -----------------------------------------------------------------------------
def sample_sponsorships():
    return pd.DataFrame([
        {"sponsorship_id": 1, "sponsor_id": 10, "case_id": 100, "area_id": 1, "area_name": "North",
         "sponsor_name": "Omar", "sponsor_phone": "0100", "fixed_amount": 500.0,
         "child_name": "Yusuf", "guardian_name": "Amina", "case_type": "orphan", "status": "active"},
        {"sponsorship_id": 2, "sponsor_id": 10, "case_id": 101, "area_id": 2, "area_name": "South",
         "sponsor_name": "Omar", "sponsor_phone": "0100", "fixed_amount": 300.0,
         "child_name": "Bilal", "guardian_name": None, "case_type": "student", "status": "active"},
        {"sponsorship_id": 3, "sponsor_id": 20, "case_id": 102, "area_id": 1, "area_name": "North",
         "sponsor_name": "Huda", "sponsor_phone": None, "fixed_amount": 1000.0,
         "child_name": "Maryam", "guardian_name": "Khadija", "case_type": "medical", "status": "active"},
    ])


def sample_sadaqat():
    return pd.DataFrame([
        {"entry_id": 1, "transaction_type": "inflow", "amount": 500.0, "destination_type": "إفطار رمضان",
         "month_year": "2026-03"},
        {"entry_id": 2, "transaction_type": "inflow", "amount": 300.0, "destination_type": None,
         "month_year": "2026-04"},
        {"entry_id": 3, "transaction_type": "outflow", "amount": 200.0, "destination_type": "kafala_case",
         "month_year": "2026-03"},
        {"entry_id": 4, "transaction_type": "outflow", "amount": 100.0, "destination_type": "one_time_case",
         "month_year": "2026-04"},
    ])


# =============================================================================
# PAYMENT SPLITS
# =============================================================================
def test_split_payment_below_obligation_is_all_fixed():
    assert split_payment(800, 1000) == {"fixed": 800, "extra": 0, "sadaqat": 0}
    assert split_payment(1000, 1000) == {"fixed": 1000, "extra": 0, "sadaqat": 0}


def test_split_payment_overflow_goes_to_sadaqat():
    assert split_payment(1500, 1000) == {"fixed": 1000, "extra": 0, "sadaqat": 500}
    # No obligation at all: everything is sadaqat
    assert split_payment(300, 0) == {"fixed": 0, "extra": 0, "sadaqat": 300}


def test_split_payment_never_exceeds_obligation():
    for amount in (0, 250, 999.5, 1000, 1000.01, 4000):
        split = split_payment(amount, 1000)
        assert split["fixed"] <= 1000
        assert abs(split["fixed"] + split["extra"] + split["sadaqat"] - amount) < 0.001


def test_split_cash_collection():
    assert split_cash_collection(1200, 1000) == {"fixed": 1000, "extra": 200, "sadaqat": 0}
    assert split_cash_collection(600, 1000) == {"fixed": 600, "extra": 0, "sadaqat": 0}


def test_portions_mismatch():
    assert not portions_mismatch(1500, 1000, 0, 500)
    assert portions_mismatch(1500, 1000, 0, 400)
    # Nothing to compare yet
    assert not portions_mismatch(0, 100, 0, 0)


# =============================================================================
# OBLIGATIONS
# =============================================================================
def test_obligations_fixed_extras_and_outstanding():
    adjustments = pd.DataFrame([
        {"adjustment_id": 1, "sponsor_id": 10, "sponsorship_id": 1, "case_id": 100,
         "adjustment_type": "one_time_extra", "amount": 200.0},
        # Permanent increases are already in fixed_amount
        {"adjustment_id": 2, "sponsor_id": 20, "sponsorship_id": 3, "case_id": 102,
         "adjustment_type": "permanent_increase", "amount": 1000.0},
    ])
    collections = pd.DataFrame([
        {"sponsor_id": 10, "amount": 400.0},
        {"sponsor_id": 20, "amount": 1200.0},
    ])

    df = calculate_sponsor_obligations(sample_sponsorships(), adjustments, collections)
    omar = df[df["sponsor_id"] == 10].iloc[0]
    huda = df[df["sponsor_id"] == 20].iloc[0]

    assert omar["fixed"] == 800
    assert omar["extras"] == 200
    assert omar["obligation"] == 1000
    assert omar["collected"] == 400
    assert omar["outstanding"] == 600
    assert len(omar["cases"]) == 2

    # Paid more than owed: outstanding floors at 0
    assert huda["obligation"] == 1000
    assert huda["outstanding"] == 0

    pending = pending_sponsors(df)
    assert list(pending["sponsor_id"]) == [10]


def test_obligations_empty_input():
    df = calculate_sponsor_obligations(pd.DataFrame(), pd.DataFrame(), pd.DataFrame())
    assert len(df) == 0
    assert len(pending_sponsors(df)) == 0


def test_group_by_operator():
    rows = [
        {"sponsor_name": "A", "amount": 500, "received_by": 1},
        {"sponsor_name": "B", "amount": 300, "received_by": 1},
        {"sponsor_name": "C", "amount": 200, "received_by": None},
        {"sponsor_name": "D", "amount": 100, "received_by": 2, "checked": False},
    ]
    summary = group_by_operator(rows, {1: "Sherif", 2: "Mona"})

    assert summary["grand_total"] == 1000
    assert len(summary["operators"]) == 1
    assert summary["operators"][0]["name"] == "Sherif"
    assert summary["operators"][0]["total"] == 800
    assert summary["unassigned"] == [("C", 200)]


def test_replaced_collections_lists_earlier_payments():
    rows = [
        {"sponsor_name": "A", "amount": 700, "collected": 300},
        {"sponsor_name": "B", "amount": 500, "collected": 0},
        {"sponsor_name": "C", "amount": 200, "collected": None},
        {"sponsor_name": "D", "amount": 100, "collected": 400, "checked": False},
    ]
    assert replaced_collections(rows) == [("A", 300.0, 700.0)]
    assert replaced_collections([]) == []


# =============================================================================
# SETTLEMENT TABLE
# =============================================================================
def test_build_settlement_rows_uses_existing_extras():
    adjustments = pd.DataFrame([
        {"adjustment_id": 7, "sponsorship_id": 3, "case_id": 102, "sponsor_id": 20,
         "adjustment_type": "one_time_extra", "amount": 150.0},
    ])
    rows = build_settlement_rows(sample_sponsorships(), adjustments)

    assert [r["child_name"] for r in rows] == ["Bilal", "Maryam", "Yusuf"]
    maryam = rows[1]
    assert maryam["extras"] == 150 and maryam["new_extras"] == 150
    assert maryam["extra_adjustment_id"] == 7
    assert maryam["fixed"] == maryam["new_fixed"] == 1000
    assert all(r["included"] for r in rows)
    assert not any(r["collected"] for r in rows)
    assert isinstance(rows[0]["sponsorship_id"], int)


def test_settlement_totals_only_count_included_rows():
    rows = build_settlement_rows(sample_sponsorships(), pd.DataFrame())
    rows[0]["new_extras"] = 100
    rows[2]["included"] = False

    totals = settlement_totals(rows)
    # Bilal 300 + 100 extra, Maryam 1000; Yusuf excluded
    assert totals == {"fixed": 1300, "extras": 100, "total": 1400, "count": 2}


def test_plan_settlement_changes():
    insert = plan_settlement_changes({"extras": 0, "new_extras": 150, "extra_adjustment_id": None,
                                      "fixed": 500, "new_fixed": 500})
    assert insert == {"extra_action": "insert", "fixed_changed": False}

    update = plan_settlement_changes({"extras": 100, "new_extras": 150, "extra_adjustment_id": 5,
                                      "fixed": 500, "new_fixed": 500})
    assert update["extra_action"] == "update"

    delete = plan_settlement_changes({"extras": 100, "new_extras": 0, "extra_adjustment_id": 5,
                                      "fixed": 500, "new_fixed": 500})
    assert delete["extra_action"] == "delete"

    unchanged = plan_settlement_changes({"extras": 0, "new_extras": 0, "extra_adjustment_id": None,
                                         "fixed": 500, "new_fixed": 500})
    assert unchanged == {"extra_action": None, "fixed_changed": False}

    raised = plan_settlement_changes({"extras": 0, "new_extras": 0, "fixed": 500, "new_fixed": 600})
    assert raised["fixed_changed"]

    # Zero is not a valid new pledge
    zeroed = plan_settlement_changes({"extras": 0, "new_extras": 0, "fixed": 500, "new_fixed": 0})
    assert not zeroed["fixed_changed"]


def test_area_settlement_totals():
    rows = build_settlement_rows(sample_sponsorships(), pd.DataFrame())
    rows.append({"area_id": None, "included": True, "new_fixed": 999, "new_extras": 0})
    by_child = {r.get("child_name"): r for r in rows}
    by_child["Yusuf"]["new_extras"] = 50

    totals = area_settlement_totals(rows)
    assert totals == {
        1: {"fixed": 1500, "extras": 50},
        2: {"fixed": 300, "extras": 0},
    }


# =============================================================================
# AREA REPORT
# =============================================================================
def test_area_report_rows_and_grand_total():
    cases = pd.DataFrame([
        {"case_id": 100, "child_name": "Yusuf", "guardian_name": "Amina", "case_type": "orphan"},
        {"case_id": 102, "child_name": "Maryam", "guardian_name": None, "case_type": "vulnerable"},
        {"case_id": 103, "child_name": "Zaid", "guardian_name": None, "case_type": "student"},
        {"case_id": 104, "child_name": "Nour", "guardian_name": None, "case_type": "حالات خاصة"},
    ])
    sponsorships = pd.DataFrame([
        {"case_id": 100, "fixed_amount": 500.0, "status": "active"},
        {"case_id": 100, "fixed_amount": 200.0, "status": "active"},
        {"case_id": 102, "fixed_amount": 1000.0, "status": "active"},
        {"case_id": 103, "fixed_amount": 400.0, "status": "ended"},
    ])
    adjustments = pd.DataFrame([
        {"case_id": 102, "adjustment_type": "one_time_extra", "amount": 250.0},
        {"case_id": 104, "adjustment_type": "one_time_extra", "amount": 100.0},
    ])

    rows = build_area_report(cases, sponsorships, adjustments)

    # Zaid has only an ended sponsorship → total 0 → dropped
    assert [r["name"] for r in rows] == ["Amina", "Maryam", "Nour"]
    amina, maryam, nour = rows
    assert amina["fixed"] == 700 and amina["total"] == 700
    assert amina["case_type"] == "كفالة يتيم"
    assert maryam["case_type"] == "كفالة يتيم"
    assert maryam["extras"] == 250 and maryam["total"] == 1250
    assert nour["case_type"] == "حالات خاصة"
    assert nour["fixed"] == 0 and nour["total"] == 100

    totals = report_totals(rows)
    assert totals == {"fixed": 1700, "extras": 350, "total": 2050}
    assert totals["total"] == sum(r["total"] for r in rows)


def test_area_report_without_cases():
    assert build_area_report(pd.DataFrame(), pd.DataFrame(), pd.DataFrame()) == []
    assert report_totals([]) == {"fixed": 0, "extras": 0, "total": 0}


# =============================================================================
# SADAQAT LEDGER
# =============================================================================
def test_sadaqat_summary_balance_is_cumulative():
    entries = sample_sadaqat()

    overall = sadaqat_summary(entries)
    assert overall == {"inflow": 800, "outflow": 300, "net": 500, "balance": 500}

    march = sadaqat_summary(entries, "2026-03")
    assert march["inflow"] == 500
    assert march["outflow"] == 200
    assert march["net"] == 300
    # The balance ignores the month filter
    assert march["balance"] == 500


def test_sadaqat_by_cause_folds_settle_page_types():
    rows = sadaqat_by_cause(sample_sadaqat())
    by_cause = {r["cause"]: r for r in rows}

    assert by_cause["حالات كفالة"]["outflow"] == 300
    assert by_cause["إفطار رمضان"]["inflow"] == 500
    assert by_cause["غير محدد"]["inflow"] == 300
    # Biggest first
    assert rows[0]["cause"] == "إفطار رمضان"


def test_sadaqat_by_month_newest_first():
    groups = sadaqat_by_month(sample_sadaqat())
    assert [g["month"] for g in groups] == ["2026-04", "2026-03"]
    assert groups[0]["total"] == 400
    assert len(groups[1]["entries"]) == 2
    assert sadaqat_by_month(pd.DataFrame()) == []


def test_sadaqat_allocation():
    partly = sadaqat_allocation(1000, 400)
    assert partly["remaining"] == 600
    assert not partly["fully_allocated"]

    assert sadaqat_allocation(1000, 1000)["fully_allocated"]
    assert not sadaqat_allocation(0, 0)["fully_allocated"]

    assert sadaqat_allocation(1000, 400, 700)["over_allocated"]
    assert not sadaqat_allocation(1000, 400, 600)["over_allocated"]

    # Already over-allocated: remaining shows as 0
    assert sadaqat_allocation(500, 800)["remaining"] == 0


# =============================================================================
# DASHBOARD
# =============================================================================
def test_payment_status():
    assert payment_status(1000, 1000) == "paid"
    assert payment_status(999.995, 1000) == "paid"
    assert payment_status(200, 1000) == "partial"
    assert payment_status(0, 1000) == "unpaid"


def test_effective_collected_before_tracking_start():
    assert effective_collected("2026-02", 5000, 1200) == 5000
    assert effective_collected("2026-03", 5000, 1200) == 1200
    assert effective_collected("all", 5000, 1200) == 1200


def test_sponsor_balances():
    sponsors = pd.DataFrame([
        {"sponsor_id": 10, "legacy_id": 1, "name": "Omar", "phone": "0100",
         "operator_name": "شريف", "paid_through_name": None},
        {"sponsor_id": 20, "legacy_id": 2, "name": "Huda", "phone": None,
         "operator_name": "Mona", "paid_through_name": "Omar"},
        {"sponsor_id": 30, "legacy_id": 3, "name": "No pledges", "phone": None,
         "operator_name": None, "paid_through_name": None},
    ])
    collections = pd.DataFrame([
        {"sponsor_id": 10, "amount": 300.0, "status": "confirmed"},
        {"sponsor_id": 10, "amount": 200.0, "status": "paid"},
        {"sponsor_id": 20, "amount": 1000.0, "status": "pending"},
    ])

    df = sponsor_balances(sponsors, sample_sponsorships(), collections)
    assert list(df["sponsor_id"]) == [10, 20]

    omar = df.iloc[0]
    assert omar["obligation"] == 800
    assert omar["paid"] == 500
    assert omar["status"] == "partial"
    assert omar["case_count"] == 2
    assert omar["by_area"] == {"North": 500, "South": 300}
    assert omar["responsible"] == "—"

    huda = df.iloc[1]
    # Pending collections are not counted
    assert huda["paid"] == 0
    assert huda["status"] == "unpaid"
    assert huda["paid_through"] == "Omar"


def test_area_breakdown_prefers_recorded_disbursements():
    baseline = area_breakdown(sample_sponsorships())
    north = baseline[baseline["area_id"] == 1].iloc[0]
    assert north["cases"] == 2
    assert north["total"] == 1500

    disbursements = pd.DataFrame([
        {"area_id": 1, "area_name": "North", "fixed_total": 1400.0, "extras_total": 250.0},
    ])
    recorded = area_breakdown(sample_sponsorships(), disbursements)
    assert len(recorded) == 1
    assert recorded.iloc[0]["total"] == 1650
    assert recorded.iloc[0]["cases"] == 2


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} calculation tests passed")
