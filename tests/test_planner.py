"""Plan builder tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from hoist.errors import PlanError
from hoist.indexing import scan
from hoist.organization import (
    DestinationMode,
    OperationMode,
    PlanBuilder,
    build_plan,
)
from hoist.organization.planner import resolve_name


def _touch(path: Path, text: str = "data") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_root_destination_prefixes_parent_path(tmp_path: Path) -> None:
    """A depth-2 folder lands at the root named after its parent path."""
    _touch(tmp_path / "a" / "b" / "c" / "file.txt")
    index = scan(tmp_path)
    root = index.root

    plan = build_plan(index, {2})

    assert len(plan.moves) == 1
    move = plan.moves[0]
    assert move.source == root / "a" / "b"
    assert move.destination == root / "a_b"
    assert move.final_name == "a_b"
    assert move.original_name == "b"
    assert move.renamed is True
    assert move.target_parent is None
    assert plan.delete_targets == (root / "a",)
    assert [warning.code for warning in plan.warnings] == ["renamed"]


def test_prefix_disambiguates_same_named_folders(tmp_path: Path) -> None:
    (tmp_path / "x" / "target").mkdir(parents=True)
    (tmp_path / "y" / "target").mkdir(parents=True)

    plan = build_plan(scan(tmp_path), {2})

    assert [move.final_name for move in plan.moves] == ["x_target", "y_target"]


def test_existing_root_entry_forces_numeric_suffix(tmp_path: Path) -> None:
    (tmp_path / "x" / "target").mkdir(parents=True)
    (tmp_path / "y" / "target").mkdir(parents=True)
    _touch(tmp_path / "x_target")

    plan = build_plan(scan(tmp_path), {2})

    assert [move.final_name for move in plan.moves] == ["x_target_1", "y_target"]


def test_colliding_prefixed_names_in_one_batch(tmp_path: Path) -> None:
    """The later of two candidates with the same prefixed name receives `_1`."""
    (tmp_path / "a" / "b_c").mkdir(parents=True)
    (tmp_path / "a_b" / "c").mkdir(parents=True)

    plan = build_plan(scan(tmp_path), {2})

    assert [move.final_name for move in plan.moves] == ["a_b_c", "a_b_c_1"]
    assert plan.moves[0].source.name == "b_c"


def test_collisions_are_case_insensitive(tmp_path: Path) -> None:
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "A_B").mkdir()

    plan = build_plan(scan(tmp_path), {2})

    assert [move.final_name for move in plan.moves] == ["a_b_1"]


def test_resolve_name_increments_until_free() -> None:
    assert resolve_name("docs", set()) == "docs"
    assert resolve_name("docs", {"docs"}) == "docs_1"
    assert resolve_name("Docs", {"docs", "docs_1"}) == "Docs_2"


def test_final_names_unique_per_destination(tmp_path: Path) -> None:
    for parent in ("p", "q", "r"):
        for child in ("same", "Same_1", "other"):
            (tmp_path / parent / child).mkdir(parents=True, exist_ok=True)
    (tmp_path / "p_same").mkdir()

    plan = build_plan(scan(tmp_path), {2})

    names = [move.final_name.casefold() for move in plan.moves]
    assert len(names) == len(set(names))
    existing = {"p", "q", "r", "p_same"}
    assert not existing & set(names)


def test_depth_one_is_already_at_top_level(tmp_path: Path) -> None:
    (tmp_path / "top").mkdir()

    plan = build_plan(scan(tmp_path), {1})

    assert plan.moves == ()
    assert [warning.code for warning in plan.warnings] == ["already_at_top_level"]


def test_delete_only_targets_selected_folders(tmp_path: Path) -> None:
    _touch(tmp_path / "a" / "b" / "keep.txt")
    (tmp_path / "c" / "d").mkdir(parents=True)
    index = scan(tmp_path)

    plan = build_plan(index, {2}, mode=OperationMode.DELETE_ONLY)

    assert plan.moves == ()
    assert plan.mode is OperationMode.DELETE_ONLY
    assert plan.delete_targets == (index.root / "a" / "b", index.root / "c" / "d")


def test_plan_is_deterministic(tmp_path: Path) -> None:
    for name in ("one", "two", "three"):
        _touch(tmp_path / name / "inner" / "deep" / f"{name}.txt")
    index = scan(tmp_path)

    first = build_plan(index, {2, 3}, mode="custom", delete_range="selected_only")
    second = build_plan(index, {3, 2}, mode="custom", delete_range="selected_only")

    assert first == second


def test_selected_descendants_move_before_ancestors(tmp_path: Path) -> None:
    (tmp_path / "a" / "b" / "c").mkdir(parents=True)
    index = scan(tmp_path)

    plan = build_plan(index, {2, 3})

    assert [move.source.relative_to(index.root).as_posix() for move in plan.moves] == [
        "a/b/c",
        "a/b",
    ]
    # a/b is itself moving, so only a is predicted empty.
    assert plan.delete_targets == (index.root / "a",)


def test_parent_up_moves_to_grandparent(tmp_path: Path) -> None:
    _touch(tmp_path / "p" / "q" / "leaf" / "file.txt")
    _touch(tmp_path / "p" / "keep.txt")
    index = scan(tmp_path)
    root = index.root

    plan = build_plan(index, {3}, destination=DestinationMode.PARENT_UP)

    move = plan.moves[0]
    assert move.destination == root / "p" / "leaf"
    assert move.target_parent == root / "p"
    assert move.renamed is False
    assert plan.warnings == ()
    assert plan.delete_targets == (root / "p" / "q",)


def test_parent_up_skips_when_grandparent_is_root(tmp_path: Path) -> None:
    (tmp_path / "p" / "q").mkdir(parents=True)

    plan = build_plan(scan(tmp_path), {1, 2}, destination="parent_up")

    assert plan.moves == ()
    assert [warning.code for warning in plan.warnings] == [
        "already_at_top_level",
        "already_at_top_level",
    ]


def test_parent_up_resolves_collision_against_snapshot(tmp_path: Path) -> None:
    (tmp_path / "p" / "q" / "leaf").mkdir(parents=True)
    (tmp_path / "p" / "leaf").mkdir()

    plan = build_plan(scan(tmp_path), {3}, destination="parent_up")

    assert [move.final_name for move in plan.moves] == ["leaf_1"]
    assert [warning.code for warning in plan.warnings] == ["renamed"]


def test_parent_up_snapshot_is_not_updated_within_batch(tmp_path: Path) -> None:
    (tmp_path / "p" / "q1" / "leaf").mkdir(parents=True)
    (tmp_path / "p" / "q2" / "leaf").mkdir(parents=True)

    plan = build_plan(scan(tmp_path), {3}, destination="parent_up")

    assert [move.final_name for move in plan.moves] == ["leaf", "leaf"]
    assert [warning.code for warning in plan.warnings] == ["batch_collision"]


def test_receiving_directory_is_not_predicted_empty(tmp_path: Path) -> None:
    (tmp_path / "p" / "q" / "leaf").mkdir(parents=True)
    index = scan(tmp_path)

    plan = build_plan(index, {3}, destination="parent_up")

    assert plan.delete_targets == (index.root / "p" / "q",)


def test_prediction_follows_empty_subdirectories(tmp_path: Path) -> None:
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "hollow" / "deeper").mkdir(parents=True)
    _touch(tmp_path / "kept" / "b" / "file.txt")
    _touch(tmp_path / "kept" / "hollow" / "note.txt")
    builder = PlanBuilder()

    assert builder.will_be_empty(tmp_path / "a", {tmp_path / "a" / "b"}) is True
    assert builder.will_be_empty(tmp_path / "kept", {tmp_path / "kept" / "b"}) is False


def test_symlink_counts_as_content(tmp_path: Path) -> None:
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "elsewhere").mkdir()
    (tmp_path / "a" / "link").symlink_to(tmp_path / "elsewhere", target_is_directory=True)

    plan = build_plan(scan(tmp_path), {2})

    assert plan.delete_targets == ()


def test_will_be_empty_respects_probe_depth(tmp_path: Path) -> None:
    (tmp_path / "a" / "b" / "c" / "d").mkdir(parents=True)
    builder = PlanBuilder(max_probe_depth=1)

    assert builder.will_be_empty(tmp_path / "a", set()) is False
    assert PlanBuilder().will_be_empty(tmp_path / "a", set()) is True


def test_plan_requires_a_depth(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    index = scan(tmp_path)

    with pytest.raises(PlanError):
        build_plan(index, set())
    with pytest.raises(PlanError):
        build_plan(index, {0})


def test_unknown_depth_plans_nothing(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()

    plan = build_plan(scan(tmp_path), {7})

    assert plan.moves == ()
    assert plan.delete_targets == ()


def test_plan_is_frozen(tmp_path: Path) -> None:
    (tmp_path / "a" / "b").mkdir(parents=True)
    plan = build_plan(scan(tmp_path), {2})

    with pytest.raises(Exception):
        plan.moves = ()  # type: ignore[misc]
