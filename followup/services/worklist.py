from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from followup.domain import intimacy, rules
from followup.domain.intimacy import IntimacyScore
from followup.domain.models import Account, Contact
from followup.domain.stages import Area, Tier
from followup.services.utils import fmt_last_touch, fmt_money

ALL_TIERS = "all"

AREA_SHORT = {
    Area.MARKETING: "Mkt",
    Area.RND: "R&D",
    Area.PROCUREMENT: "Proc",
    Area.COMMERCIAL: "Comm",
    Area.DIRECTORS: "Dir",
}


@dataclass(frozen=True)
class WorklistFilter:
    search_text: str = ""
    tier: str = ALL_TIERS

    def __post_init__(self) -> None:
        if self.tier != ALL_TIERS:
            object.__setattr__(self, "tier", rules.validate_enum(self.tier, Tier, "tier"))

    def matches(self, account: Account) -> bool:
        if self.tier != ALL_TIERS and account.tier != self.tier:
            return False
        query = self.search_text.strip().lower()
        if not query:
            return True
        return query in account.name.lower() or query in (account.country or "").lower()


@dataclass(frozen=True)
class EnrichedAccount:
    account: Account
    score: IntimacyScore
    coverage_counts: dict[Area, int]
    missing_areas: tuple[Area, ...]
    contacts: list[Contact]
    recommended_contact: Contact | None
    is_due: bool
    last_touch: str
    value_formatted: str
    recommended_last_touch: str


@dataclass(frozen=True)
class Worklist:
    must_contact: list[EnrichedAccount] = field(default_factory=list)
    all: list[EnrichedAccount] = field(default_factory=list)


def area_short(area: Area) -> str:
    return AREA_SHORT[area]


def group_contacts(contacts: Iterable[Contact]) -> dict[str, list[Contact]]:
    grouped: dict[str, list[Contact]] = {}
    for contact in contacts:
        grouped.setdefault(contact.account_id, []).append(contact)
    return grouped


def enrich_account(account: Account, contacts: Sequence[Contact], now: datetime) -> EnrichedAccount:
    score = intimacy.compute_intimacy_score(account, contacts, now)
    recommended = intimacy.pick_recommended_contact(contacts, now)
    recommended_days = (
        intimacy.days_since(recommended.last_touch_at, now) if recommended else None
    )
    return EnrichedAccount(
        account=account,
        score=score,
        coverage_counts=dict(score.counts),
        missing_areas=score.missing_areas,
        contacts=list(contacts),
        recommended_contact=recommended,
        is_due=intimacy.is_due(account, now),
        last_touch=fmt_last_touch(score.days),
        value_formatted=fmt_money(account.value_usd),
        recommended_last_touch=fmt_last_touch(recommended_days),
    )


def build_worklist(
    accounts: Sequence[Account],
    contacts_by_account: Mapping[str, Sequence[Contact]],
    worklist_filter: WorklistFilter | None,
    now: datetime,
) -> Worklist:
    """Rank accounts for today's outreach, most at-risk first.

    Filtering happens before scoring. ``must_contact`` holds the due accounts
    ordered by total then coverage; ``all`` holds every match ordered by total.
    Both sorts are stable so equal scores keep input order.
    """
    worklist_filter = worklist_filter or WorklistFilter()
    enriched = [
        enrich_account(account, contacts_by_account.get(account.id, []), now)
        for account in accounts
        if worklist_filter.matches(account)
    ]
    must_contact = sorted(
        (item for item in enriched if item.is_due),
        key=lambda item: (item.score.total, item.score.coverage),
    )
    ranked = sorted(enriched, key=lambda item: item.score.total)
    return Worklist(must_contact=must_contact, all=ranked)
