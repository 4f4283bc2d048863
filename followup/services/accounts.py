from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

from followup.domain import rules
from followup.domain.models import Account, Contact
from followup.domain.stages import Area, Channel, Tier
from followup.services.events import EventLogger
from followup.services.utils import to_iso, utc_now
from followup.store.sqlite import SqliteStore

ACCOUNT_COLUMNS = (
    "account_id, name, tier, country, value_usd, last_interaction_at, business_hook, owner, created_at"
)
CONTACT_COLUMNS = (
    "contact_id, account_id, name, email, area, preferred_channel, personal_hook, last_touch_at, created_at"
)


class AccountError(RuntimeError):
    pass


@dataclass(frozen=True)
class Snapshot:
    accounts: list[Account]
    contacts_by_account: dict[str, list[Contact]]


def add_account(
    store: SqliteStore,
    name: str,
    tier: str,
    country: str | None = None,
    value_usd: float | None = None,
    business_hook: str | None = None,
    owner: str | None = None,
    logger: EventLogger | None = None,
) -> Account:
    now = utc_now()
    account = Account(
        id=str(uuid4()),
        name=name,
        tier=tier,
        country=rules.clean(country),
        value_usd=value_usd,
        business_hook=rules.clean(business_hook),
        owner=owner,
        created_at=now,
    )
    with store.session() as session:
        session.insert(
            "accounts",
            {
                "account_id": account.id,
                "name": account.name,
                "tier": account.tier.value,
                "country": account.country,
                "value_usd": account.value_usd,
                "last_interaction_at": None,
                "business_hook": account.business_hook,
                "owner": account.owner,
                "created_at": to_iso(now),
                "updated_at": to_iso(now),
            },
        )
    if logger:
        logger.log(
            event_type="account.created",
            entity_type="account",
            entity_id=account.id,
            changed_fields=["name", "tier", "country", "value_usd", "business_hook"],
        )
    return account


def list_accounts(store: SqliteStore, owner: str | None = None) -> list[Account]:
    params: list[str] = []
    where = ""
    if owner:
        where = "WHERE owner = ?"
        params.append(owner)
    rows = store.fetch_all(
        f"SELECT {ACCOUNT_COLUMNS} FROM accounts {where} "
        "ORDER BY value_usd IS NULL, value_usd DESC, name ASC",
        params,
    )
    return [Account.from_row(row) for row in rows]


def get_account(store: SqliteStore, account_id: str) -> Account:
    rules.validate_identifier(account_id, "account_id")
    row = store.fetch_one(
        f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE account_id = ?", (account_id,)
    )
    if row is None:
        raise AccountError(f"Account not found: {account_id}")
    return Account.from_row(row)


def delete_account(
    store: SqliteStore, account_id: str, logger: EventLogger | None = None
) -> None:
    rules.validate_identifier(account_id, "account_id")
    deleted = store.execute("DELETE FROM accounts WHERE account_id = ?", (account_id,))
    if not deleted:
        raise AccountError(f"Account not found: {account_id}")
    if logger:
        logger.log(event_type="account.deleted", entity_type="account", entity_id=account_id)


def add_contact(
    store: SqliteStore,
    account_id: str,
    name: str,
    area: str,
    email: str | None = None,
    preferred_channel: str | None = None,
    personal_hook: str | None = None,
    logger: EventLogger | None = None,
) -> Contact:
    get_account(store, account_id)
    now = utc_now()
    contact = Contact(
        id=str(uuid4()),
        account_id=account_id,
        name=name,
        area=area,
        email=rules.clean(email),
        preferred_channel=preferred_channel,
        personal_hook=rules.clean(personal_hook),
        created_at=now,
    )
    with store.session() as session:
        session.insert(
            "contacts",
            {
                "contact_id": contact.id,
                "account_id": contact.account_id,
                "name": contact.name,
                "email": contact.email,
                "area": contact.area.value,
                "preferred_channel": _enum_value(contact.preferred_channel),
                "personal_hook": contact.personal_hook,
                "last_touch_at": None,
                "created_at": to_iso(now),
                "updated_at": to_iso(now),
            },
        )
    if logger:
        logger.log(
            event_type="contact.created",
            entity_type="contact",
            entity_id=contact.id,
            changed_fields=["name", "area", "email", "preferred_channel", "personal_hook"],
        )
    return contact


def get_contact(store: SqliteStore, contact_id: str) -> Contact:
    rules.validate_identifier(contact_id, "contact_id")
    row = store.fetch_one(
        f"SELECT {CONTACT_COLUMNS} FROM contacts WHERE contact_id = ?", (contact_id,)
    )
    if row is None:
        raise AccountError(f"Contact not found: {contact_id}")
    return Contact.from_row(row)


def update_contact(
    store: SqliteStore,
    contact_id: str,
    *,
    name: str | None = None,
    area: str | None = None,
    email: str | None = None,
    preferred_channel: str | None = None,
    personal_hook: str | None = None,
    logger: EventLogger | None = None,
) -> Contact:
    """Update the given fields only; ``None`` leaves a field as it is."""
    updates: dict[str, object] = {}
    if name is not None:
        updates["name"] = rules.require(name, "name")
    if area is not None:
        updates["area"] = rules.validate_enum(area, Area, "area").value
    if email is not None:
        updates["email"] = rules.clean(email)
    if preferred_channel is not None:
        updates["preferred_channel"] = rules.validate_enum(
            preferred_channel, Channel, "preferred_channel"
        ).value
    if personal_hook is not None:
        updates["personal_hook"] = rules.clean(personal_hook)

    current = get_contact(store, contact_id)
    if not updates:
        return current
    with store.session() as session:
        session.update(
            "contacts",
            "contact_id",
            contact_id,
            {**updates, "updated_at": to_iso(utc_now())},
        )
    if logger:
        logger.log(
            event_type="contact.updated",
            entity_type="contact",
            entity_id=contact_id,
            changed_fields=updates.keys(),
        )
    return get_contact(store, contact_id)


def delete_contact(
    store: SqliteStore, contact_id: str, logger: EventLogger | None = None
) -> None:
    rules.validate_identifier(contact_id, "contact_id")
    deleted = store.execute("DELETE FROM contacts WHERE contact_id = ?", (contact_id,))
    if not deleted:
        raise AccountError(f"Contact not found: {contact_id}")
    if logger:
        logger.log(event_type="contact.deleted", entity_type="contact", entity_id=contact_id)


def list_contacts(store: SqliteStore, account_ids: Sequence[str]) -> list[Contact]:
    rows = store.fetch_in(
        f"SELECT {CONTACT_COLUMNS} FROM contacts",
        "account_id",
        list(account_ids),
        "ORDER BY created_at DESC",
    )
    return [Contact.from_row(row) for row in rows]


def load_snapshot(store: SqliteStore, owner: str | None = None) -> Snapshot:
    """Read accounts and their contacts in one consistent pass."""
    with store.session() as session:
        params: list[str] = []
        where = ""
        if owner:
            where = "WHERE owner = ?"
            params.append(owner)
        account_rows = session.fetch_all(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts {where} "
            "ORDER BY value_usd IS NULL, value_usd DESC, name ASC",
            params,
        )
        contact_rows = session.fetch_all(
            f"SELECT {CONTACT_COLUMNS} FROM contacts WHERE account_id IN "
            f"(SELECT account_id FROM accounts {where}) ORDER BY created_at DESC",
            params,
        )
    accounts = [Account.from_row(row) for row in account_rows]
    contacts_by_account: dict[str, list[Contact]] = {a.id: [] for a in accounts}
    for row in contact_rows:
        contact = Contact.from_row(row)
        contacts_by_account[contact.account_id].append(contact)
    return Snapshot(accounts=accounts, contacts_by_account=contacts_by_account)


def _enum_value(value: Tier | Area | Channel | None) -> str | None:
    return value.value if value is not None else None
