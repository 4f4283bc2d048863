from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from uuid import uuid4

from followup.domain import rules
from followup.domain.models import Account, Contact, Interaction
from followup.services.events import EventLogger
from followup.services.utils import to_iso, utc_now
from followup.store.sqlite import SqliteStore

INTERACTION_COLUMNS = (
    "interaction_id, account_id, contact_id, channel, summary, next_step, next_step_date, "
    "objection_tag, target_price, risk_technical, risk_regulatory, risk_commercial, created_at"
)


class InteractionError(RuntimeError):
    pass


def build_interaction(
    account_id: str,
    contact_id: str | None,
    channel: str,
    summary: str | None,
    next_step: str | None,
    next_step_date: str | date | None,
    created_at: datetime,
    *,
    objection_tag: str | None = None,
    target_price: float | None = None,
    risk_technical: bool = False,
    risk_regulatory: bool = False,
    risk_commercial: bool = False,
) -> Interaction:
    """Validate a new interaction at the point of creation.

    Every interaction is linked to a contact, so ``contact_id`` is required.
    """
    rules.require(account_id, "account_id")
    rules.require(contact_id, "contact_id")
    summary = rules.require(summary, "summary")
    next_step = rules.require(next_step, "next_step")
    if next_step_date is None or next_step_date == "":
        raise rules.ValidationError("next_step_date", "next_step_date is required.")
    rules.non_negative(target_price, "target_price")
    return Interaction(
        id=str(uuid4()),
        account_id=account_id,
        contact_id=contact_id,
        channel=channel,
        summary=summary,
        next_step=next_step,
        next_step_date=next_step_date,
        created_at=created_at,
        objection_tag=rules.clean(objection_tag),
        target_price=target_price,
        risk_technical=risk_technical,
        risk_regulatory=risk_regulatory,
        risk_commercial=risk_commercial,
    )


def apply_touch(account: Account, contact: Contact | None, at: datetime) -> tuple[Account, Contact | None]:
    """Post-condition of logging an interaction, applied to in-memory records."""
    if contact is not None and contact.account_id != account.id:
        raise rules.ValidationError(
            "contact_id", f"Contact {contact.id} does not belong to account {account.id}."
        )
    touched_account = replace(account, last_interaction_at=at)
    touched_contact = replace(contact, last_touch_at=at) if contact is not None else None
    return touched_account, touched_contact


def record_interaction(
    store: SqliteStore,
    account_id: str,
    contact_id: str | None,
    channel: str,
    summary: str | None,
    next_step: str | None,
    next_step_date: str | date | None,
    *,
    objection_tag: str | None = None,
    target_price: float | None = None,
    risk_technical: bool = False,
    risk_regulatory: bool = False,
    risk_commercial: bool = False,
    now: datetime | None = None,
    logger: EventLogger | None = None,
) -> Interaction:
    """Insert the interaction and stamp the account and contact in one transaction."""
    now = now or utc_now()
    interaction = build_interaction(
        account_id,
        contact_id,
        channel,
        summary,
        next_step,
        next_step_date,
        now,
        objection_tag=objection_tag,
        target_price=target_price,
        risk_technical=risk_technical,
        risk_regulatory=risk_regulatory,
        risk_commercial=risk_commercial,
    )
    rules.validate_identifier(account_id, "account_id")
    rules.validate_identifier(contact_id, "contact_id")

    stamp = to_iso(now)
    with store.session() as session:
        account = session.fetch_one(
            "SELECT account_id FROM accounts WHERE account_id = ?", (account_id,)
        )
        if account is None:
            raise InteractionError(f"Account not found: {account_id}")
        contact = session.fetch_one(
            "SELECT contact_id, account_id FROM contacts WHERE contact_id = ?", (contact_id,)
        )
        if contact is None:
            raise InteractionError(f"Contact not found: {contact_id}")
        if contact["account_id"] != account_id:
            raise InteractionError(
                f"Contact {contact_id} does not belong to account {account_id}."
            )

        session.insert(
            "interactions",
            {
                "interaction_id": interaction.id,
                "account_id": interaction.account_id,
                "contact_id": interaction.contact_id,
                "channel": interaction.channel.value,
                "summary": interaction.summary,
                "next_step": interaction.next_step,
                "next_step_date": interaction.next_step_date.isoformat(),
                "objection_tag": interaction.objection_tag,
                "target_price": interaction.target_price,
                "risk_technical": int(interaction.risk_technical),
                "risk_regulatory": int(interaction.risk_regulatory),
                "risk_commercial": int(interaction.risk_commercial),
                "created_at": stamp,
            },
        )
        session.update(
            "accounts",
            "account_id",
            account_id,
            {"last_interaction_at": stamp, "updated_at": stamp},
        )
        session.update(
            "contacts",
            "contact_id",
            contact_id,
            {"last_touch_at": stamp, "updated_at": stamp},
        )

    if logger:
        logger.log(
            event_type="interaction.recorded",
            entity_type="interaction",
            entity_id=interaction.id,
            changed_fields=["accounts.last_interaction_at", "contacts.last_touch_at"],
        )
    return interaction


def list_interactions(store: SqliteStore, account_id: str, limit: int = 30) -> list[Interaction]:
    rules.validate_identifier(account_id, "account_id")
    rows = store.fetch_all(
        f"SELECT {INTERACTION_COLUMNS} FROM interactions WHERE account_id = ? "
        "ORDER BY created_at DESC LIMIT ?",
        (account_id, limit),
    )
    return [Interaction.from_row(row) for row in rows]


def recent_interactions(
    store: SqliteStore, since: datetime, limit: int = 200, owner: str | None = None
) -> list[Interaction]:
    params: list[object] = [to_iso(rules.parse_datetime(since, "since"))]
    owner_clause = ""
    if owner:
        owner_clause = "AND account_id IN (SELECT account_id FROM accounts WHERE owner = ?) "
        params.append(owner)
    params.append(limit)
    rows = store.fetch_all(
        f"SELECT {INTERACTION_COLUMNS} FROM interactions WHERE created_at >= ? "
        f"{owner_clause}ORDER BY created_at DESC LIMIT ?",
        params,
    )
    return [Interaction.from_row(row) for row in rows]
