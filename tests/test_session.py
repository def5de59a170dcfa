"""Session and module-level API tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from hoist import session as api
from hoist.config import HoistConfig
from hoist.errors import BackupError, BackupNotFoundError, PlanError
from hoist.organization import DestinationMode, OperationMode
from hoist.session import HoistSession


def _make_tree(root: Path) -> Path:
    (root / "a" / "b" / "c").mkdir(parents=True)
    (root / "a" / "b" / "c" / "file.txt").write_text("payload", encoding="utf-8")
    return root


def test_run_with_backup_then_undo(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    session = HoistSession(root)

    session.build_plan([2])
    report = session.run()

    assert report.counts() == {"moved": 1, "move_failed": 0, "deleted": 1}
    assert session.last_backup is not None
    assert (session.last_backup / "a" / "b" / "c" / "file.txt").exists()
    assert (root / "a_b" / "c" / "file.txt").exists()
    assert session.plan is None
    assert session.index is None

    restored_from = session.undo()

    assert restored_from == session.last_backup
    assert (root / "a" / "b" / "c" / "file.txt").read_text(encoding="utf-8") == "payload"
    assert not (root / "a_b").exists()


def test_run_without_backup(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    session = HoistSession(root)
    session.build_plan([2])

    session.run(backup=False)

    assert session.last_backup is None
    assert session.latest_backup() is None


def test_backup_failure_leaves_tree_untouched(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = _make_tree(tmp_path / "tree")
    session = HoistSession(root)
    preview = session.build_plan([2])

    def _fail_backup(source: Path) -> Path:
        raise BackupError("disk full", reason="disk full")

    monkeypatch.setattr(session.backups, "backup", _fail_backup)

    with pytest.raises(BackupError):
        session.run(preview)

    assert (root / "a" / "b" / "c" / "file.txt").exists()
    assert not (root / "a_b").exists()


def test_run_requires_plan(tmp_path: Path) -> None:
    session = HoistSession(_make_tree(tmp_path / "tree"))

    with pytest.raises(PlanError):
        session.run()


def test_run_rejects_plan_for_other_root(tmp_path: Path) -> None:
    other = HoistSession(_make_tree(tmp_path / "other"))
    foreign = other.build_plan([2])
    session = HoistSession(_make_tree(tmp_path / "tree"))

    with pytest.raises(PlanError):
        session.run(foreign)
    assert not any(path.name.startswith("tree_backup_") for path in tmp_path.iterdir())


def test_undo_without_backups_raises(tmp_path: Path) -> None:
    session = HoistSession(_make_tree(tmp_path / "tree"))

    with pytest.raises(BackupNotFoundError):
        session.undo()


def test_planning_defaults_come_from_config(tmp_path: Path) -> None:
    root = tmp_path / "tree"
    (root / "p" / "q" / "leaf").mkdir(parents=True)
    config = HoistConfig.model_validate(
        {"planning": {"destination": "parent_up", "operation_mode": "move_only"}}
    )
    session = HoistSession(root, config=config)

    preview = session.build_plan([3])

    assert preview.destination is DestinationMode.PARENT_UP
    assert preview.mode is OperationMode.MOVE_ONLY
    assert preview.moves[0].destination == session.root / "p" / "leaf"


def test_explicit_options_override_config(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")
    config = HoistConfig.model_validate({"planning": {"destination": "parent_up"}})
    session = HoistSession(root, config=config)

    preview = session.build_plan([2], destination="root", mode="delete_only")

    assert preview.destination is DestinationMode.ROOT
    assert preview.moves == ()
    assert preview.delete_targets == (session.root / "a" / "b",)


def test_build_plan_scans_once_when_needed(tmp_path: Path) -> None:
    session = HoistSession(_make_tree(tmp_path / "tree"))

    first = session.build_plan([2])
    index = session.index
    second = session.build_plan([2])

    assert index is not None
    assert session.index is index
    assert first == second


def test_rescan_discards_plan(tmp_path: Path) -> None:
    session = HoistSession(_make_tree(tmp_path / "tree"))
    session.build_plan([2])

    session.scan()

    assert session.plan is None


def test_module_level_functions(tmp_path: Path) -> None:
    root = _make_tree(tmp_path / "tree")

    index = api.scan(root)
    preview = api.plan(index, [3], OperationMode.MOVE_ONLY)
    snapshot = api.backup(root)
    report = api.execute(preview, root)

    assert report.moved == 1
    assert (root / "a_b_c").is_dir()
    assert (root / "a" / "b").is_dir()
    assert api.latest_backup(root) == snapshot

    assert api.restore(snapshot, root) is True
    assert (root / "a" / "b" / "c" / "file.txt").exists()
    assert not (root / "a_b_c").exists()
