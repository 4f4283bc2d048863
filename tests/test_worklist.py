from datetime import UTC, datetime, timedelta

import pytest

from followup.domain.models import Account, Contact
from followup.domain.rules import ValidationError
from followup.domain.stages import Area
from followup.services.worklist import WorklistFilter, build_worklist, group_contacts

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
ALL_AREAS = ["Marketing", "R&D", "Procurement", "Commercial", "Directors"]


def _ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


def _contacts(account_id: str, areas: list[str], touched: list[int | None] | None = None) -> list[Contact]:
    touched = touched or [None] * len(areas)
    return [
        Contact(
            id=f"{account_id}-c{i}",
            account_id=account_id,
            name=f"{account_id} person {i}",
            area=area,
            last_touch_at=_ago(days) if days is not None else None,
        )
        for i, (area, days) in enumerate(zip(areas, touched))
    ]


def _fixture() -> tuple[list[Account], dict[str, list[Contact]]]:
    accounts = [
        Account(id="alpha", name="Alpha Foods", tier="A", country="Spain", value_usd=12500,
                last_interaction_at=_ago(10)),
        Account(id="beta", name="Beta Labs", tier="B", country="Mexico"),
        Account(id="gamma", name="Gamma Retail", tier="C", country="Spain", value_usd=800,
                last_interaction_at=_ago(3)),
        Account(id="delta", name="Delta Pharma", tier="A", country=None),
    ]
    contacts = [
        *_contacts("alpha", ["Marketing", "R&D", "Procurement"], [4, 12, None]),
        *_contacts("gamma", ALL_AREAS),
        *_contacts("delta", ["Directors"], [2]),
    ]
    return accounts, group_contacts(contacts)


def _ids(items) -> list[str]:
    return [item.account.id for item in items]


def test_worklist_orders_most_at_risk_first() -> None:
    accounts, contacts_by_account = _fixture()

    worklist = build_worklist(accounts, contacts_by_account, WorklistFilter(), NOW)

    # alpha 45+24, beta 0+0, gamma 60+40, delta 0+8
    assert _ids(worklist.must_contact) == ["beta", "delta", "alpha"]
    assert _ids(worklist.all) == ["beta", "delta", "alpha", "gamma"]
    assert [item.score.total for item in worklist.all] == [0, 8, 69, 100]


def test_must_contact_breaks_ties_by_coverage() -> None:
    accounts = [
        Account(id="wide", name="Wide", tier="A"),
        Account(id="narrow", name="Narrow", tier="A", last_interaction_at=_ago(11)),
    ]
    contacts_by_account = {"wide": _contacts("wide", ALL_AREAS)}

    worklist = build_worklist(accounts, contacts_by_account, None, NOW)

    assert [item.score.total for item in worklist.must_contact] == [40, 40]
    assert _ids(worklist.must_contact) == ["narrow", "wide"]


def test_filter_matches_name_or_country_case_insensitive() -> None:
    accounts, contacts_by_account = _fixture()

    spain = build_worklist(accounts, contacts_by_account, WorklistFilter(search_text="SPAIN"), NOW)
    assert _ids(spain.all) == ["alpha", "gamma"]
    assert _ids(spain.must_contact) == ["alpha"]

    by_name = build_worklist(accounts, contacts_by_account, WorklistFilter(search_text=" labs "), NOW)
    assert _ids(by_name.all) == ["beta"]


def test_filter_by_tier() -> None:
    accounts, contacts_by_account = _fixture()
    worklist = build_worklist(accounts, contacts_by_account, WorklistFilter(tier="A"), NOW)
    assert _ids(worklist.all) == ["delta", "alpha"]


def test_filter_rejects_unknown_tier() -> None:
    with pytest.raises(ValidationError):
        WorklistFilter(tier="Z")


def test_enriched_account_fields() -> None:
    accounts, contacts_by_account = _fixture()
    worklist = build_worklist(accounts, contacts_by_account, WorklistFilter(), NOW)
    by_id = {item.account.id: item for item in worklist.all}

    alpha = by_id["alpha"]
    assert alpha.is_due
    assert alpha.last_touch == "10d"
    assert alpha.value_formatted == "$12,500"
    assert alpha.recommended_contact.id == "alpha-c2"
    assert alpha.recommended_last_touch == "never"
    assert alpha.missing_areas == (Area.COMMERCIAL, Area.DIRECTORS)
    assert alpha.coverage_counts[Area.MARKETING] == 1

    beta = by_id["beta"]
    assert beta.contacts == []
    assert beta.recommended_contact is None
    assert beta.last_touch == "never"
    assert beta.value_formatted == "-"

    gamma = by_id["gamma"]
    assert not gamma.is_due
    assert gamma.score.coverage == 40

    assert by_id["delta"].recommended_last_touch == "2d"


def test_worklist_is_repeatable_and_leaves_inputs_alone() -> None:
    accounts, contacts_by_account = _fixture()
    accounts_before = list(accounts)
    contacts_before = {k: list(v) for k, v in contacts_by_account.items()}

    first = build_worklist(accounts, contacts_by_account, WorklistFilter(), NOW)
    second = build_worklist(accounts, contacts_by_account, WorklistFilter(), NOW)

    assert first == second
    assert accounts == accounts_before
    assert contacts_by_account == contacts_before


def test_group_contacts() -> None:
    grouped = group_contacts(_contacts("a", ["R&D", "Marketing"]) + _contacts("b", ["Directors"]))
    assert sorted(grouped) == ["a", "b"]
    assert len(grouped["a"]) == 2
