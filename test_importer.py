# =============================================================================
# test_importer.py - Google Sheets collections import
# =============================================================================
# Uses an in-memory CSV and a temporary database.
#
# Run: python test_importer.py   (or: pytest)
# =============================================================================

import sys
import os
import io
import tempfile

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
from database import init_db, create_sponsor, load_sponsors, load_collections
from importers import CollectionsImporter

CSV_TEXT = """الكفيل , المبلغ,الشهر,ملاحظة
محمد احمد,"1,500",2026-01,
سارة علي,800,2026-01,
Unknown Person,900,2026-01,
سارة علي,,2026-02,
محمد أحمد,1000,,
,,,
"""

COLUMN_MAP = {"name": "الكفيل", "amount": "المبلغ", "month": "الشهر"}


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


def seed_sponsors():
    create_sponsor({"name": "محمد أحمد", "legacy_id": 1})
    create_sponsor({"name": "سارة علي", "legacy_id": 2})
    return load_sponsors()


def test_reads_headers_and_drops_empty_rows():
    importer = CollectionsImporter(io.StringIO(CSV_TEXT))
    assert importer.errors == []
    assert importer.headers == ["الكفيل", "المبلغ", "الشهر", "ملاحظة"]
    assert importer.row_count == 5


def test_build_preview_matches_and_flags_rows():
    path = fresh_db()
    try:
        sponsors = seed_sponsors()
        importer = CollectionsImporter(io.StringIO(CSV_TEXT))
        preview = importer.build_preview(COLUMN_MAP, sponsors)

        assert len(preview) == 5
        first = preview[0]
        assert first["row"] == 2
        assert first["amount"] == 1500
        assert first["month"] == "2026-01"
        assert first["match"]["name"] == "محمد أحمد"
        assert first["ready"]

        assert preview[1]["ready"]
        assert preview[2]["match"] is None and not preview[2]["ready"]
        assert preview[3]["amount"] == 0 and not preview[3]["ready"]
        assert preview[4]["month"] == "" and not preview[4]["ready"]

        assert len(importer.build_preview(COLUMN_MAP, sponsors, limit=2)) == 2
    finally:
        os.remove(path)


def test_import_inserts_ready_rows_only():
    path = fresh_db()
    try:
        sponsors = seed_sponsors()
        importer = CollectionsImporter(io.StringIO(CSV_TEXT))
        preview = importer.build_preview(COLUMN_MAP, sponsors)

        success, message, count = importer.import_collections(preview)
        assert success, message
        assert count == 2
        assert "3 skipped" in message

        collections = load_collections()
        assert len(collections) == 2
        assert set(collections["payment_method"]) == {"instapay"}
        assert set(collections["status"]) == {"confirmed"}
        assert set(collections["notes"]) == {config.IMPORT_NOTE}
        big = collections[collections["amount"] == 1500].iloc[0]
        assert big["fixed_portion"] == 1500
        assert big["month_year"] == "2026-01"

        summary = importer.get_import_summary()
        assert summary["skipped_count"] == 3
        assert summary["error_count"] == 0
    finally:
        os.remove(path)


def test_preview_limit_decides_what_is_imported():
    path = fresh_db()
    try:
        sponsors = seed_sponsors()
        lines = ["الكفيل,المبلغ,الشهر"] + ["سارة علي,100,2026-01"] * 25
        importer = CollectionsImporter(io.StringIO("\n".join(lines) + "\n"))
        assert importer.row_count == 25

        # Default preview stops at 20 rows; the page reports the other 5
        assert len(importer.build_preview(COLUMN_MAP, sponsors)) == 20

        preview = importer.build_preview(COLUMN_MAP, sponsors, limit=importer.row_count)
        assert len(preview) == 25
        success, message, count = importer.import_collections(preview)
        assert success, message
        assert count == 25
        assert len(load_collections()) == 25
    finally:
        os.remove(path)


def test_import_with_nothing_ready_fails():
    path = fresh_db()
    try:
        importer = CollectionsImporter(io.StringIO(CSV_TEXT))
        # No sponsors in the database → nothing matches
        preview = importer.build_preview(COLUMN_MAP, load_sponsors())
        success, message, count = importer.import_collections(preview)
        assert not success
        assert count == 0
        assert len(load_collections()) == 0
    finally:
        os.remove(path)


def test_unreadable_file_reports_error():
    importer = CollectionsImporter(io.StringIO(""))
    assert importer.errors
    assert importer.row_count == 0
    assert importer.headers == []


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} importer tests passed")
