from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from followup.domain.models import Account, Interaction
from followup.services import accounts, interactions
from followup.services.weekly import build_weekly_pack, weekly_pack_for_store
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


def _interaction(n: int, account_id: str, days_ago: int) -> Interaction:
    return Interaction(
        id=f"i-{n}",
        account_id=account_id,
        contact_id="c-1",
        channel="email",
        summary=f"Update {n}",
        next_step="Follow up",
        next_step_date=date(2026, 3, 10),
        created_at=NOW - timedelta(days=days_ago),
    )


def test_weekly_pack_layout() -> None:
    accounts = [
        Account(id="a", name="Acme", tier="A", value_usd=5000, last_interaction_at=NOW - timedelta(days=3),
                business_hook="New plant"),
        Account(id="b", name="Bolt", tier="C"),
        Account(id="c", name="Core", tier="B", value_usd=90000),
    ]
    interactions = [_interaction(1, "a", 2), _interaction(2, "gone", 1), _interaction(3, "a", 20)]

    lines = build_weekly_pack(accounts, interactions, NOW).splitlines()

    assert lines[:3] == ["WEEKLY PACK", "", "TOP 10 (by value)"]
    assert lines[3] == "- Core (B) | Value: $90,000 | Last touch: never | Hook: -"
    assert lines[4] == "- Acme (A) | Value: $5,000 | Last touch: 3d | Hook: New plant"
    assert lines[5] == "- Bolt (C) | Value: - | Last touch: never | Hook: -"
    assert lines[7] == "RECENT INTERACTIONS (last 14 days)"
    assert lines[8:] == [
        "- Unknown | 2026-02-28 | Update 2 | Next: Follow up (2026-03-10)",
        "- Acme | 2026-02-27 | Update 1 | Next: Follow up (2026-03-10)",
    ]


def test_weekly_pack_caps_sections() -> None:
    accounts = [Account(id=str(n), name=f"Account {n}", tier="C", value_usd=n) for n in range(15)]
    interactions = [_interaction(n, "0", 0) for n in range(40)]

    text = build_weekly_pack(accounts, interactions, NOW)

    assert text.count("| Value:") == 10
    assert "Account 14 (C)" in text
    assert "Account 4 (C)" not in text
    assert text.count("| Next:") == 25


def test_weekly_pack_accepts_naive_now() -> None:
    roster = [Account(id="a", name="Acme", tier="A", last_interaction_at=NOW - timedelta(days=3))]
    naive_now = datetime(2026, 3, 1, 12, 0)

    text = build_weekly_pack(roster, [_interaction(1, "a", 2)], naive_now)

    assert "- Acme (A) | Value: - | Last touch: 3d | Hook: -" in text
    assert "- Acme | 2026-02-27 | Update 1 | Next: Follow up (2026-03-10)" in text


def test_weekly_pack_for_store_hides_other_owners(tmp_path: Path) -> None:
    store = _store(tmp_path)
    mine = accounts.add_account(store, name="Mine", tier="A", owner="ana")
    theirs = accounts.add_account(store, name="Theirs", tier="B", owner="luis")
    my_contact = accounts.add_contact(store, mine.id, name="Ana Ruiz", area="R&D")
    their_contact = accounts.add_contact(store, theirs.id, name="Luis Gil", area="Commercial")
    for account, contact, summary in (
        (mine, my_contact, "Agreed pilot scope"),
        (theirs, their_contact, "Confidential pricing talk"),
    ):
        interactions.record_interaction(
            store, account.id, contact.id, "call", summary, "Send samples", date(2026, 3, 5),
            now=NOW - timedelta(days=1),
        )

    text = weekly_pack_for_store(store, NOW, owner="ana")

    assert "- Mine | 2026-02-28 | Agreed pilot scope" in text
    assert "Confidential pricing talk" not in text
    assert "Theirs" not in text
    assert "Unknown" not in text
