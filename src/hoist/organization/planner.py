"""Planner for folder-lifting operations."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from hoist.errors import PlanError
from hoist.indexing.models import FolderRecord, HierarchyIndex

from .models import (
    DeleteRange,
    DestinationMode,
    MoveOperation,
    OperationMode,
    PlanWarning,
    PreviewPlan,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_PROBE_DEPTH = 256


class PlanBuilder:
    """Derive preview plans from a hierarchy index and a depth selection.

    Building a plan never mutates the filesystem. It reads directory listings
    to detect name collisions and to predict which ancestors the moves will
    leave empty.
    """

    def __init__(self, *, max_probe_depth: int = DEFAULT_MAX_PROBE_DEPTH) -> None:
        self.max_probe_depth = max_probe_depth

    def build(
        self,
        index: HierarchyIndex,
        depths: Iterable[int],
        mode: OperationMode | str = OperationMode.MOVE_AND_DELETE_ALL,
        destination: DestinationMode | str = DestinationMode.ROOT,
        delete_range: DeleteRange | str = DeleteRange.ALL_EMPTY,
    ) -> PreviewPlan:
        """Produce a plan for the folders found at the selected depths.

        With the root destination, depth-1 folders already sit at the top and
        are skipped with an ``already_at_top_level`` warning. With the
        parent-up destination, folders whose grandparent is the root (depths 1
        and 2) are skipped with the same warning.

        Args:
            index: Hierarchy index from the most recent scan.
            depths: Depths whose folders should be lifted or deleted.
            mode: Operation mode the plan is built for.
            destination: Where lifted folders land.
            delete_range: Sweep scope recorded for custom-mode execution.

        Returns:
            PreviewPlan: Immutable plan of moves, delete targets, and warnings.

        Raises:
            PlanError: If the selection is empty or names a depth below 1.
        """

        selected = self._normalize_depths(depths)
        mode = OperationMode(mode)
        destination = DestinationMode(destination)
        delete_range = DeleteRange(delete_range)
        root = index.root

        # Deepest first, so a selected descendant leaves before its ancestor moves.
        candidates = [
            record for depth in sorted(selected, reverse=True) for record in index.folders_at(depth)
        ]

        if mode is OperationMode.DELETE_ONLY:
            plan = PreviewPlan(
                root=root,
                mode=mode,
                destination=destination,
                delete_range=delete_range,
                selected_depths=selected,
                delete_targets=tuple(record.path for record in candidates),
            )
            LOGGER.info(
                "Planned %d direct deletion(s) at depth(s) %s",
                len(plan.delete_targets),
                ", ".join(map(str, selected)),
            )
            return plan

        if destination is DestinationMode.PARENT_UP:
            moves, warnings = self._plan_parent_up(root, candidates)
        else:
            moves, warnings = self._plan_to_root(root, candidates)

        plan = PreviewPlan(
            root=root,
            mode=mode,
            destination=destination,
            delete_range=delete_range,
            selected_depths=selected,
            moves=tuple(moves),
            delete_targets=self._predict_empty(root, moves),
            warnings=tuple(warnings),
        )
        LOGGER.info(
            "Planned %d move(s) and %d predicted empty folder(s) at depth(s) %s",
            len(plan.moves),
            len(plan.delete_targets),
            ", ".join(map(str, selected)),
        )
        return plan

    # ------------------------------------------------------------------ #
    # Destinations                                                       #
    # ------------------------------------------------------------------ #

    def _plan_to_root(
        self,
        root: Path,
        candidates: list[FolderRecord],
    ) -> tuple[list[MoveOperation], list[PlanWarning]]:
        moves: list[MoveOperation] = []
        warnings: list[PlanWarning] = []
        taken = self._snapshot_names(root)

        for record in candidates:
            if record.relative_parent is None:
                warnings.append(self._top_level_warning(record))
                continue

            desired = "_".join((*record.relative_parent.parts, record.name))
            final_name = resolve_name(desired, taken)
            taken.add(final_name.casefold())

            moves.append(self._move(record, root, final_name))
            if final_name != record.name:
                warnings.append(self._rename_warning(record, final_name))

        return moves, warnings

    def _plan_parent_up(
        self,
        root: Path,
        candidates: list[FolderRecord],
    ) -> tuple[list[MoveOperation], list[PlanWarning]]:
        moves: list[MoveOperation] = []
        warnings: list[PlanWarning] = []
        snapshots: dict[Path, set[str]] = {}
        planned: dict[Path, set[str]] = {}

        for record in candidates:
            parent = record.path.parent
            if parent == root or parent.parent == root:
                warnings.append(self._top_level_warning(record))
                continue
            target_parent = parent.parent

            # One snapshot per target parent, not updated as the batch is planned.
            if target_parent not in snapshots:
                snapshots[target_parent] = self._snapshot_names(target_parent)
            final_name = resolve_name(record.name, snapshots[target_parent])

            batch_names = planned.setdefault(target_parent, set())
            if final_name.casefold() in batch_names:
                warnings.append(
                    PlanWarning(
                        code="batch_collision",
                        path=record.path,
                        message=(
                            f"'{record.relative_path.as_posix()}' resolves to '{final_name}' in "
                            f"{target_parent}, which another folder in this batch also uses."
                        ),
                    )
                )
            batch_names.add(final_name.casefold())

            moves.append(self._move(record, target_parent, final_name, explicit_parent=True))
            if final_name != record.name:
                warnings.append(self._rename_warning(record, final_name))

        return moves, warnings

    # ------------------------------------------------------------------ #
    # Empty-after-move prediction                                        #
    # ------------------------------------------------------------------ #

    def _predict_empty(self, root: Path, moves: list[MoveOperation]) -> tuple[Path, ...]:
        sources = {move.source for move in moves}
        receivers = {move.destination.parent for move in moves}

        ancestors: dict[Path, None] = {}
        for move in moves:
            current = move.source.parent
            while current != root and root in current.parents:
                if current not in sources:
                    ancestors[current] = None
                current = current.parent

        memo: dict[Path, bool] = {}
        predicted = [
            path
            for path in ancestors
            if self.will_be_empty(path, sources, receivers=receivers, memo=memo)
        ]
        predicted.sort(key=lambda path: (-len(path.parts), str(path)))
        return tuple(predicted)

    def will_be_empty(
        self,
        directory: Path,
        sources: set[Path],
        *,
        receivers: set[Path] | None = None,
        memo: dict[Path, bool] | None = None,
        _active: set[str] | None = None,
        _level: int = 0,
    ) -> bool:
        """Return whether ``directory`` holds nothing once ``sources`` have left.

        An entry keeps the directory non-empty unless it is a planned move
        source or a real subdirectory that is itself empty after the move.
        Symbolic links always count as content. Directories receiving a moved
        folder, unreadable directories, and directories deeper than
        ``max_probe_depth`` are reported as non-empty.

        Args:
            directory: Directory to evaluate.
            sources: Paths of folders planned to move away.
            receivers: Directories that moved folders will land in.
            memo: Shared cache of earlier answers.
        """

        if memo is None:
            memo = {}
        if directory in memo:
            return memo[directory]
        if receivers and directory in receivers:
            memo[directory] = False
            return False
        if _level > self.max_probe_depth:
            LOGGER.debug("Probe depth limit reached at %s; treating as non-empty", directory)
            return False

        active = _active if _active is not None else set()
        real = os.path.realpath(directory)
        if real in active:
            LOGGER.debug("Directory cycle detected at %s; treating as non-empty", directory)
            return False
        active.add(real)

        result = True
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    entry_path = Path(entry.path)
                    if entry_path in sources:
                        continue
                    if entry.is_dir(follow_symlinks=False) and self.will_be_empty(
                        entry_path,
                        sources,
                        receivers=receivers,
                        memo=memo,
                        _active=active,
                        _level=_level + 1,
                    ):
                        continue
                    result = False
                    break
        except OSError as exc:
            LOGGER.debug("Unable to list %s during prediction: %s", directory, exc)
            result = False
        finally:
            active.discard(real)

        memo[directory] = result
        return result

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _normalize_depths(self, depths: Iterable[int]) -> tuple[int, ...]:
        selected = tuple(sorted(set(depths)))
        if not selected:
            raise PlanError("Select at least one depth to plan.")
        if selected[0] < 1:
            raise PlanError(f"Depths start at 1; got {selected[0]}.")
        return selected

    def _snapshot_names(self, directory: Path) -> set[str]:
        try:
            return {name.casefold() for name in os.listdir(directory)}
        except OSError as exc:
            LOGGER.debug("Unable to list %s for collision checks: %s", directory, exc)
            return set()

    def _move(
        self,
        record: FolderRecord,
        parent: Path,
        final_name: str,
        *,
        explicit_parent: bool = False,
    ) -> MoveOperation:
        return MoveOperation(
            source=record.path,
            destination=parent / final_name,
            final_name=final_name,
            original_name=record.name,
            renamed=final_name != record.name,
            target_parent=parent if explicit_parent else None,
        )

    def _top_level_warning(self, record: FolderRecord) -> PlanWarning:
        return PlanWarning(
            code="already_at_top_level",
            path=record.path,
            message=f"'{record.relative_path.as_posix()}' is already at top level; skipped.",
        )

    def _rename_warning(self, record: FolderRecord, final_name: str) -> PlanWarning:
        return PlanWarning(
            code="renamed",
            path=record.path,
            message=f"'{record.relative_path.as_posix()}' will be renamed to '{final_name}'.",
        )


def resolve_name(desired: str, taken: set[str]) -> str:
    """Return ``desired`` or the first ``desired_N`` absent from ``taken``.

    ``taken`` holds casefolded names; the comparison is case-insensitive.
    """
    if desired.casefold() not in taken:
        return desired
    counter = 1
    while f"{desired}_{counter}".casefold() in taken:
        counter += 1
    return f"{desired}_{counter}"


def build_plan(
    index: HierarchyIndex,
    depths: Iterable[int],
    mode: OperationMode | str = OperationMode.MOVE_AND_DELETE_ALL,
    delete_range: DeleteRange | str = DeleteRange.ALL_EMPTY,
    destination: DestinationMode | str = DestinationMode.ROOT,
) -> PreviewPlan:
    """Build a plan with default planner settings."""
    return PlanBuilder().build(index, depths, mode, destination, delete_range)


__all__ = ["DEFAULT_MAX_PROBE_DEPTH", "PlanBuilder", "build_plan", "resolve_name"]
