"""CLI integration tests."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from click.testing import CliRunner

from hoist.cli import cli


def _env(tmp_path: Path) -> dict[str, str | None]:
    return {"HOME": str(tmp_path / "home"), "HOIST_CONFIG": None}


def _make_tree(root: Path) -> Path:
    (root / "a" / "b" / "c").mkdir(parents=True)
    (root / "a" / "b" / "c" / "file.txt").write_text("payload", encoding="utf-8")
    (root / "x" / "b").mkdir(parents=True)
    (root / "x" / "b" / "note.txt").write_text("n", encoding="utf-8")
    return root


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Hoist lifts deeply nested folders" in result.output
    for command in ("scan", "plan", "run", "backup", "undo", "report", "config"):
        assert command in result.output


def test_scan_json_reports_depth_counts(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(root), "--json"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["depths"] == {"1": 2, "2": 2, "3": 1}
    assert payload["total"] == 5


def test_scan_missing_root_json_error(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["scan", str(tmp_path / "missing"), "--json"], env=_env(tmp_path)
    )

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "not_found"


def test_plan_json_does_not_touch_tree(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(cli, ["plan", str(root), "-d", "2", "--json"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [move["final_name"] for move in payload["moves"]] == ["a_b", "x_b"]
    assert payload["mode"] == "move_and_delete_all"
    assert (root / "a" / "b").is_dir()


def test_plan_requires_depth(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(cli, ["plan", str(root)], env=_env(tmp_path))

    assert result.exit_code != 0
    assert "--depth" in result.output


def test_plan_rejects_json_with_quiet(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(
        cli, ["plan", str(root), "-d", "2", "--json", "--quiet"], env=_env(tmp_path)
    )

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"


def test_run_dry_run_leaves_tree(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(cli, ["run", str(root), "-d", "2", "--dry-run"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output
    assert (root / "a" / "b" / "c" / "file.txt").exists()
    assert not (root / "a_b").exists()


def test_run_then_undo(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()
    env = _env(tmp_path)

    result = runner.invoke(cli, ["run", str(root), "-d", "2", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"] == {"moved": 2, "move_failed": 0, "deleted": 2}
    assert payload["backup"] is not None
    assert Path(payload["backup"]).is_dir()
    assert (root / "a_b" / "c" / "file.txt").exists()
    assert not (root / "a").exists()
    log_file = tmp_path / "home" / ".hoist" / "hoist.log"
    assert "[INFO] Moved" in log_file.read_text(encoding="utf-8")

    undo = runner.invoke(cli, ["undo", str(root), "--json"], env=env)

    assert undo.exit_code == 0, undo.output
    assert json.loads(undo.output)["restored"] is True
    assert (root / "a" / "b" / "c" / "file.txt").exists()
    assert not (root / "a_b").exists()


def test_run_without_backup_then_undo_fails(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()
    env = _env(tmp_path)

    result = runner.invoke(
        cli, ["run", str(root), "-d", "3", "--mode", "move_only", "--no-backup"], env=env
    )

    assert result.exit_code == 0, result.output
    assert "Run summary" in result.output
    assert (root / "a_b_c").is_dir()
    assert (root / "a" / "b").is_dir()

    undo = runner.invoke(cli, ["undo", str(root)], env=env)

    assert undo.exit_code == 1
    assert "No backups found" in undo.output


def test_backup_command_creates_sibling(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", str(root)], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    backups = [path for path in tmp_path.iterdir() if path.name.startswith("tree_backup_")]
    assert len(backups) == 1
    assert (backups[0] / "a" / "b" / "c" / "file.txt").exists()


def test_report_tree_and_csv(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    runner = CliRunner()
    env = _env(tmp_path)

    tree = runner.invoke(cli, ["report", str(root)], env=env)

    assert tree.exit_code == 0, tree.output
    assert tree.output.splitlines()[0] == "tree/"
    assert "      c/ (1 files)" in tree.output.splitlines()

    destination = tmp_path / "folders.csv"
    exported = runner.invoke(cli, ["report", str(root), "--csv", str(destination)], env=env)

    assert exported.exit_code == 0, exported.output
    with destination.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0][:3] == ["depth", "name", "fullPath"]
    assert len(rows) == 6


def test_config_set_and_view(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "planning.destination", "--value", "parent_up"], env=env
    )

    assert result.exit_code == 0, result.output
    assert "Updated planning.destination" in result.output
    config_text = (tmp_path / "home" / ".hoist" / "config.yaml").read_text(encoding="utf-8")
    assert "destination: parent_up" in config_text

    repeat = runner.invoke(
        cli, ["config", "set", "planning.destination", "--value", "parent_up"], env=env
    )
    assert "No changes applied" in repeat.output

    view = runner.invoke(cli, ["config", "view", "--no-env"], env=env)
    assert view.exit_code == 0
    assert "parent_up" in view.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "planning.operation_mode", "--value", "explode"], env=_env(tmp_path)
    )

    assert result.exit_code == 1
    assert "Invalid configuration values" in result.output


def test_config_view_env_keys(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    env["HOIST__PLANNING__DELETE_RANGE"] = "selected_only"

    result = runner.invoke(cli, ["config", "view", "--env-keys"], env=env)

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert "HOIST__PLANNING__DELETE_RANGE=selected_only" in lines
    assert "HOIST__BACKUP__ENABLED=true" in lines

    ignored = runner.invoke(cli, ["config", "view", "--env-keys", "--no-env"], env=env)
    assert "HOIST__PLANNING__DELETE_RANGE=all_empty" in ignored.output.splitlines()
