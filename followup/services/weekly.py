from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from followup.domain import rules
from followup.domain.intimacy import days_since
from followup.domain.models import Account, Interaction
from followup.services.accounts import list_accounts
from followup.services.interactions import recent_interactions
from followup.services.utils import fmt_money
from followup.store.sqlite import SqliteStore

TOP_ACCOUNTS = 10
RECENT_DAYS = 14
RECENT_LIMIT = 25


def build_weekly_pack(
    accounts: Sequence[Account], interactions: Sequence[Interaction], now: datetime
) -> str:
    """Plain-text summary meant to be pasted into a weekly update."""
    now = rules.parse_datetime(now, "now")
    top_by_value = sorted(accounts, key=lambda a: a.value_usd or 0, reverse=True)[:TOP_ACCOUNTS]
    names = {account.id: account.name for account in accounts}
    since = now - timedelta(days=RECENT_DAYS)
    recent = sorted(
        (i for i in interactions if i.created_at >= since),
        key=lambda i: i.created_at,
        reverse=True,
    )[:RECENT_LIMIT]

    lines = ["WEEKLY PACK", "", f"TOP {TOP_ACCOUNTS} (by value)"]
    for account in top_by_value:
        days = days_since(account.last_interaction_at, now)
        last_touch = "never" if days is None else f"{days}d"
        lines.append(
            f"- {account.name} ({account.tier.value}) | Value: {fmt_money(account.value_usd)} | "
            f"Last touch: {last_touch} | Hook: {account.business_hook or '-'}"
        )

    lines.append("")
    lines.append(f"RECENT INTERACTIONS (last {RECENT_DAYS} days)")
    for interaction in recent:
        lines.append(
            f"- {names.get(interaction.account_id, 'Unknown')} | "
            f"{interaction.created_at.date().isoformat()} | {interaction.summary} | "
            f"Next: {interaction.next_step} ({interaction.next_step_date.isoformat()})"
        )
    return "\n".join(lines)


def weekly_pack_for_store(store: SqliteStore, now: datetime, owner: str | None = None) -> str:
    accounts = list_accounts(store, owner=owner)
    now = rules.parse_datetime(now, "now")
    interactions = recent_interactions(
        store, since=now - timedelta(days=RECENT_DAYS), owner=owner
    )
    return build_weekly_pack(accounts, interactions, now)
