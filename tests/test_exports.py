import csv
from datetime import UTC, datetime
from pathlib import Path

from openpyxl import load_workbook

from followup.services import accounts, exports
from followup.services.worklist import WorklistFilter, build_worklist
from followup.store.sqlite import SqliteStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _store(tmp_path: Path) -> SqliteStore:
    db_path = tmp_path / "test.sqlite"
    store = SqliteStore(db_path)
    schema_path = (
        Path(__file__).resolve().parents[1] / "resources" / "schema" / "canonical.yaml"
    )
    store.apply_schema(schema_path)
    return store


def test_export_worklist_excel(tmp_path: Path) -> None:
    store = _store(tmp_path)
    acme = accounts.add_account(store, name="Acme", tier="A", value_usd=2500)
    accounts.add_contact(store, acme.id, name="Ana", area="R&D")
    snapshot = accounts.load_snapshot(store)
    worklist = build_worklist(snapshot.accounts, snapshot.contacts_by_account, WorklistFilter(), NOW)

    out_path = tmp_path / "out" / "today.xlsx"
    exports.export_worklist_excel(worklist, out_path)

    wb = load_workbook(out_path)
    assert wb.sheetnames == ["must_contact", "all"]
    rows = list(wb["must_contact"].iter_rows(values_only=True))
    assert rows[0] == tuple(exports.WORKLIST_HEADERS)
    row = dict(zip(rows[0], rows[1]))
    assert row["name"] == "Acme"
    assert row["score"] == 8
    assert row["label"] == "Risk"
    assert row["R&D"] == 1
    assert row["recommended_contact"] == "Ana"


def test_export_csv_tables(tmp_path: Path) -> None:
    store = _store(tmp_path)
    accounts.add_account(store, name="Acme", tier="B")

    exports.export_csv_tables(store, tmp_path / "snap")

    with (tmp_path / "snap" / "accounts.csv").open(encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [r["name"] for r in rows] == ["Acme"]
    assert (tmp_path / "snap" / "interactions.csv").read_text(encoding="utf-8").strip() == ""


def test_export_excel_tables(tmp_path: Path) -> None:
    store = _store(tmp_path)
    accounts.add_account(store, name="Acme", tier="B")
    out_path = tmp_path / "dump.xlsx"

    exports.export_excel(store, out_path)

    wb = load_workbook(out_path)
    assert wb.sheetnames == exports.TABLES
    assert wb["accounts"].max_row == 2
