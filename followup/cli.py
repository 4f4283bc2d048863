from __future__ import annotations

import shutil
from pathlib import Path

import typer

from followup import __version__
from followup.config import (
    WorkspaceConfig,
    WorkspaceError,
    ensure_workspaces_dir,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from followup.domain import rules
from followup.domain.intimacy import account_badge, compute_intimacy_score, days_since
from followup.domain.rules import ValidationError
from followup.services import accounts, exports, interactions, weekly
from followup.services.accounts import AccountError
from followup.services.events import EventLogger
from followup.services.interactions import InteractionError
from followup.services.utils import fmt_last_touch, fmt_money, today_iso, utc_now
from followup.services.worklist import (
    ALL_TIERS,
    EnrichedAccount,
    WorklistFilter,
    area_short,
    build_worklist,
)
from followup.store.sqlite import SqliteStore

app = typer.Typer(help="Account follow-up tracker")
workspace_app = typer.Typer(help="Workspace management")
schema_app = typer.Typer(help="Schema operations")
account_app = typer.Typer(help="Accounts")
contact_app = typer.Typer(help="Contacts")
export_app = typer.Typer(help="Exports")

app.add_typer(workspace_app, name="workspace")
app.add_typer(schema_app, name="schema")
app.add_typer(account_app, name="account")
app.add_typer(contact_app, name="contact")
app.add_typer(export_app, name="export")

SCHEMA_PATH = Path("resources/schema/canonical.yaml")


@app.callback()
def version_callback(version: bool = typer.Option(False, "--version", help="Show version and exit.")):
    if version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command("init")
def init() -> None:
    """Initialize directories for workspaces and outputs."""
    ensure_workspaces_dir()
    Path("data").mkdir(exist_ok=True)
    Path("exports").mkdir(exist_ok=True)
    typer.echo("Initialized followup directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(...),
    owner: str | None = typer.Option(None, "--owner", help="Only show accounts owned by this user."),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing workspace config if it exists."
    ),
) -> None:
    config_path = workspace_config_path(name)
    if config_path.exists() and not force:
        raise typer.BadParameter(
            f"Workspace already exists: {config_path}. Use --force to overwrite."
        )
    config_path = write_workspace_config(name, owner)
    if use:
        set_current_workspace(name)
    typer.echo(f"Workspace created: {config_path}")


@workspace_app.command("use")
def workspace_use(name: str = typer.Argument(...)) -> None:
    if not workspace_config_path(name).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(name)}")
    set_current_workspace(name)
    typer.echo(f"Active workspace: {name}")


@schema_app.command("apply")
def schema_apply() -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    store.apply_schema(SCHEMA_PATH)
    typer.echo("Applied schema to local SQLite.")


@account_app.command("add")
def account_add(
    name: str = typer.Argument(...),
    tier: str = typer.Option(..., "--tier", help="A, B or C"),
    country: str | None = typer.Option(None, "--country"),
    value: str | None = typer.Option(None, "--value", help="Account value in USD."),
    hook: str | None = typer.Option(None, "--hook", help="Business hook for the weekly pack."),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        account = accounts.add_account(
            store,
            name=name,
            tier=tier,
            country=country,
            value_usd=rules.parse_number(value, "value"),
            business_hook=hook,
            owner=ws.owner,
            logger=_event_logger(ws, enabled=events),
        )
    except ValidationError as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Created account: {account.id}")


@account_app.command("list")
def account_list() -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    now = utc_now()
    rows = accounts.list_accounts(store, owner=ws.owner)
    if not rows:
        typer.echo("No accounts.")
        return
    for account in rows:
        last_touch = fmt_last_touch(days_since(account.last_interaction_at, now))
        typer.echo(
            f"{account.id} | {account.name} | {account.tier.value} | {account.country or '-'} | "
            f"{fmt_money(account.value_usd)} | {last_touch} | {account_badge(account, now).value}"
        )


@account_app.command("show")
def account_show(account_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    now = utc_now()
    try:
        account = accounts.get_account(store, account_id)
        contacts = accounts.list_contacts(store, [account.id])
        history = interactions.list_interactions(store, account.id)
    except (AccountError, ValidationError) as exc:
        _exit_with_error(str(exc))
    score = compute_intimacy_score(account, contacts, now)
    typer.echo(
        f"{account.name} ({account.tier.value}) | score {score.total} {score.label.value} | "
        f"recency {score.recency}/60 | coverage {score.covered_area_count}/5"
    )
    if score.missing_areas:
        typer.echo("Missing: " + ", ".join(area.value for area in score.missing_areas))
    for contact in contacts:
        last_touch = fmt_last_touch(days_since(contact.last_touch_at, now))
        typer.echo(
            f"  {contact.id} | {contact.name} | {area_short(contact.area)} | "
            f"{contact.preferred_channel.value if contact.preferred_channel else '-'} | {last_touch}"
        )
    for item in history:
        typer.echo(
            f"  {item.created_at.date().isoformat()} | {item.channel.value} | {item.summary} | "
            f"Next: {item.next_step} ({item.next_step_date.isoformat()})"
        )


@account_app.command("delete")
def account_delete(
    account_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        accounts.delete_account(store, account_id, logger=_event_logger(ws, enabled=events))
    except (AccountError, ValidationError) as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Deleted account: {account_id}")


@contact_app.command("add")
def contact_add(
    account_id: str = typer.Argument(...),
    name: str = typer.Option(..., "--name"),
    area: str = typer.Option(..., "--area", help="Marketing, R&D, Procurement, Commercial or Directors"),
    email: str | None = typer.Option(None, "--email"),
    channel: str | None = typer.Option(None, "--channel", help="call, whatsapp or email"),
    hook: str | None = typer.Option(None, "--hook", help="Personal hook to reference in outreach."),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        contact = accounts.add_contact(
            store,
            account_id=account_id,
            name=name,
            area=area,
            email=email,
            preferred_channel=channel,
            personal_hook=hook,
            logger=_event_logger(ws, enabled=events),
        )
    except (AccountError, ValidationError) as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Created contact: {contact.id}")


@contact_app.command("edit")
def contact_edit(
    contact_id: str = typer.Argument(...),
    name: str | None = typer.Option(None, "--name"),
    area: str | None = typer.Option(None, "--area"),
    email: str | None = typer.Option(None, "--email"),
    channel: str | None = typer.Option(None, "--channel"),
    hook: str | None = typer.Option(None, "--hook"),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        contact = accounts.update_contact(
            store,
            contact_id,
            name=name,
            area=area,
            email=email,
            preferred_channel=channel,
            personal_hook=hook,
            logger=_event_logger(ws, enabled=events),
        )
    except (AccountError, ValidationError) as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Updated contact: {contact.id}")


@contact_app.command("delete")
def contact_delete(
    contact_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        accounts.delete_contact(store, contact_id, logger=_event_logger(ws, enabled=events))
    except (AccountError, ValidationError) as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Deleted contact: {contact_id}")


@app.command("log")
def log_interaction(
    account_id: str = typer.Argument(...),
    contact_id: str = typer.Option(..., "--contact"),
    channel: str = typer.Option(..., "--channel", help="call, whatsapp or email"),
    summary: str = typer.Option(..., "--summary"),
    next_step: str = typer.Option(..., "--next"),
    due: str = typer.Option(..., "--due", help="Next step date, YYYY-MM-DD."),
    objection: str | None = typer.Option(None, "--objection"),
    target_price: str | None = typer.Option(None, "--target-price"),
    risk_technical: bool = typer.Option(False, "--risk-technical"),
    risk_regulatory: bool = typer.Option(False, "--risk-regulatory"),
    risk_commercial: bool = typer.Option(False, "--risk-commercial"),
    events: bool = typer.Option(True, "--events/--no-events", help="Write events to the workspace log."),
) -> None:
    """Record an interaction and stamp the account and contact."""
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        interaction = interactions.record_interaction(
            store,
            account_id=account_id,
            contact_id=contact_id,
            channel=channel,
            summary=summary,
            next_step=next_step,
            next_step_date=rules.parse_date(due, "next_step_date"),
            objection_tag=objection,
            target_price=rules.parse_number(target_price, "target_price"),
            risk_technical=risk_technical,
            risk_regulatory=risk_regulatory,
            risk_commercial=risk_commercial,
            logger=_event_logger(ws, enabled=events),
        )
    except (InteractionError, ValidationError) as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Logged interaction: {interaction.id}")


@app.command("today")
def today(
    search: str = typer.Option("", "--search", help="Match account name or country."),
    tier: str = typer.Option(ALL_TIERS, "--tier", help="all, A, B or C"),
    show_all: bool = typer.Option(False, "--all", help="Also list every matching account."),
    out: str | None = typer.Option(None, "--out", help="Write the worklist to an Excel file."),
) -> None:
    """Who to contact today, most at-risk first."""
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    try:
        worklist_filter = WorklistFilter(search_text=search, tier=tier)
    except ValidationError as exc:
        _exit_with_error(str(exc))
    snapshot = accounts.load_snapshot(store, owner=ws.owner)
    worklist = build_worklist(
        snapshot.accounts, snapshot.contacts_by_account, worklist_filter, utc_now()
    )

    typer.echo(f"MUST CONTACT ({len(worklist.must_contact)})")
    for item in worklist.must_contact:
        typer.echo(_worklist_line(item))
    if show_all:
        typer.echo("")
        typer.echo(f"ALL ({len(worklist.all)})")
        for item in worklist.all:
            typer.echo(_worklist_line(item))
    if out:
        exports.export_worklist_excel(worklist, Path(out))
        typer.echo(f"Exported worklist to {out}")


@app.command("weekly")
def weekly_pack() -> None:
    """Print the weekly pack text."""
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    typer.echo(weekly.weekly_pack_for_store(store, utc_now(), owner=ws.owner))


@export_app.command("excel")
def export_excel(out: str = typer.Option(..., "--out")) -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    exports.export_excel(store, Path(out))
    typer.echo(f"Exported Excel to {out}")


@app.command("snapshot")
def snapshot() -> None:
    ws = _load_workspace()
    store = SqliteStore(ws.store.sqlite_path)
    snapshot_dir = Path("data") / "snapshots" / today_iso()
    snapshot_dir.mkdir(parents=True, exist_ok=True)
    if ws.store.sqlite_path.exists():
        shutil.copy2(ws.store.sqlite_path, snapshot_dir / "local.sqlite")
    exports.export_csv_tables(store, snapshot_dir)
    typer.echo(f"Snapshot created at {snapshot_dir}")


def _worklist_line(item: EnrichedAccount) -> str:
    account = item.account
    recommended = item.recommended_contact
    target = (
        f"{recommended.name} ({area_short(recommended.area)}, {item.recommended_last_touch})"
        if recommended
        else "no contacts"
    )
    missing = ",".join(area_short(area) for area in item.missing_areas) or "-"
    return (
        f"{item.score.total:>3} {item.score.label.value:<6} | {account.name} ({account.tier.value}) | "
        f"last {item.last_touch} | {item.value_formatted} | missing {missing} | next: {target}"
    )


def _load_workspace() -> WorkspaceConfig:
    try:
        return load_workspace()
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _exit_with_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _event_logger(ws: WorkspaceConfig, enabled: bool) -> EventLogger:
    return EventLogger(path=ws.events_path, workspace=ws.name, enabled=enabled)


if __name__ == "__main__":
    app()
