from pathlib import Path

import pytest

from followup.config import (
    WORKSPACES_DIR,
    WorkspaceError,
    _resolve_sqlite_path,
    load_workspace,
    set_current_workspace,
    write_workspace_config,
)


def test_resolve_sqlite_path_relative(tmp_path: Path) -> None:
    ws_dir = tmp_path / WORKSPACES_DIR / "demo"
    ws_dir.mkdir(parents=True)
    config_path = ws_dir / "workspace.yaml"
    config_path.write_text("workspace: demo\nstore:\n  sqlite_path: ./local.sqlite\n")

    resolved = _resolve_sqlite_path("./local.sqlite", config_path)
    assert resolved == (ws_dir / "local.sqlite").resolve()


def test_resolve_sqlite_path_repo_relative(tmp_path: Path) -> None:
    ws_dir = tmp_path / WORKSPACES_DIR / "demo"
    ws_dir.mkdir(parents=True)
    config_path = ws_dir / "workspace.yaml"
    config_path.write_text("workspace: demo\nstore:\n  sqlite_path: workspaces/demo/local.sqlite\n")

    resolved = _resolve_sqlite_path("workspaces/demo/local.sqlite", config_path)
    assert resolved == (tmp_path / "workspaces" / "demo" / "local.sqlite").resolve()


def test_load_current_workspace_with_owner(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    write_workspace_config("sales", owner="ana")
    set_current_workspace("sales")

    ws = load_workspace()

    assert ws.name == "sales"
    assert ws.owner == "ana"
    assert ws.store.sqlite_path == (tmp_path / "workspaces" / "sales" / "local.sqlite").resolve()
    assert ws.events_path == Path("workspaces") / "sales" / "events.ndjson"


def test_load_workspace_errors(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    with pytest.raises(WorkspaceError):
        load_workspace()

    ws_dir = tmp_path / "workspaces" / "broken"
    ws_dir.mkdir(parents=True)
    (ws_dir / "workspace.yaml").write_text("workspace: broken\nstore: {}\n")
    with pytest.raises(WorkspaceError, match="sqlite_path"):
        load_workspace("broken")
