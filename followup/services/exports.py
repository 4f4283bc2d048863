from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path

from openpyxl import Workbook

from followup.domain.stages import AREAS
from followup.services.worklist import EnrichedAccount, Worklist, area_short
from followup.store.sqlite import SqliteStore

TABLES = ["accounts", "contacts", "interactions"]

WORKLIST_HEADERS = [
    "account_id",
    "name",
    "tier",
    "country",
    "value",
    "last_touch",
    "due",
    "score",
    "label",
    "recency",
    "coverage",
    *[area_short(area) for area in AREAS],
    "missing_areas",
    "recommended_contact",
    "recommended_last_touch",
]


def export_excel(store: SqliteStore, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)

    for table in TABLES:
        rows = store.fetch_all(f"SELECT * FROM {table}")
        ws = wb.create_sheet(title=table)
        _write_rows(ws, rows)

    wb.save(out_path)


def export_worklist_excel(worklist: Worklist, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)
    for title, items in (("must_contact", worklist.must_contact), ("all", worklist.all)):
        ws = wb.create_sheet(title=title)
        ws.append(WORKLIST_HEADERS)
        for item in items:
            ws.append(worklist_row(item))
    wb.save(out_path)


def worklist_row(item: EnrichedAccount) -> list[object]:
    account = item.account
    recommended = item.recommended_contact
    return [
        account.id,
        account.name,
        account.tier.value,
        account.country,
        item.value_formatted,
        item.last_touch,
        item.is_due,
        item.score.total,
        item.score.label.value,
        item.score.recency,
        item.score.coverage,
        *[item.coverage_counts[area] for area in AREAS],
        ", ".join(area.value for area in item.missing_areas),
        recommended.name if recommended else None,
        item.recommended_last_touch if recommended else None,
    ]


def export_csv_tables(store: SqliteStore, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    for table in TABLES:
        rows = store.fetch_all(f"SELECT * FROM {table}")
        headers: list[str] = list(rows[0].keys()) if rows else []
        csv_path = out_dir / f"{table}.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for row in rows:
                writer.writerow([row[h] for h in headers])


def _write_rows(ws, rows: Iterable[Sequence]) -> None:
    rows = list(rows)
    if not rows:
        return
    headers = list(rows[0].keys())
    ws.append(headers)
    for row in rows:
        ws.append([row[h] for h in headers])
