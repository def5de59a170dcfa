"""Executor for preview plans."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Collection

from hoist.errors import PlanError

from .models import (
    DeleteRange,
    ExecutionReport,
    OperationEvent,
    OperationFailure,
    OperationMode,
    PreviewPlan,
)

LOGGER = logging.getLogger(__name__)


class PlanExecutor:
    """Apply preview plans, recording per-item failures instead of aborting."""

    def apply(
        self,
        plan: PreviewPlan,
        root: Path,
        mode: OperationMode | str | None = None,
    ) -> ExecutionReport:
        """Apply ``plan`` to the tree at ``root``.

        Moves run for every mode except delete-only. Delete-only removes the
        selected folders directly. Move-and-delete-all always sweeps every
        empty folder afterwards; custom sweeps according to the plan's delete
        range; move-only never sweeps.

        Args:
            plan: Plan computed by the planner.
            root: Root directory the plan was built for.
            mode: Operation mode; defaults to the mode the plan was built for.

        Returns:
            ExecutionReport: Counters, applied events, and per-item failures.

        Raises:
            PlanError: If ``root`` differs from the plan's root, or if exactly
                one of ``mode`` and the plan's mode is delete-only.
        """

        root = Path(root).expanduser().resolve()
        if root != plan.root:
            raise PlanError(f"Plan was built for {plan.root}, not {root}.")
        mode = OperationMode(mode) if mode is not None else plan.mode
        # Move plans carry predicted-empty ancestors as delete targets, not selections.
        if (mode is OperationMode.DELETE_ONLY) != (plan.mode is OperationMode.DELETE_ONLY):
            raise PlanError(
                f"Plan was built for {plan.mode.value} and cannot run as {mode.value}."
            )
        report = ExecutionReport()

        if mode is OperationMode.DELETE_ONLY:
            self.delete_targets(plan.delete_targets, report)
        else:
            self.apply_moves(plan, report)

        if mode is OperationMode.MOVE_AND_DELETE_ALL:
            self.sweep(root, DeleteRange.ALL_EMPTY, report=report)
        elif mode is OperationMode.CUSTOM:
            self.sweep(
                root,
                plan.delete_range,
                selected=plan.delete_targets,
                report=report,
            )

        LOGGER.info(
            "Executed %s plan on %s: moved=%d move_failed=%d deleted=%d delete_failed=%d",
            mode.value,
            root,
            report.moved,
            report.move_failed,
            report.deleted,
            report.delete_failed,
        )
        return report

    def apply_moves(self, plan: PreviewPlan, report: ExecutionReport) -> None:
        """Move every planned folder in plan order."""

        for move_op in plan.moves:
            try:
                if not move_op.source.is_dir():
                    raise FileNotFoundError(
                        errno.ENOENT, "Source folder is missing", str(move_op.source)
                    )
                if os.path.lexists(move_op.destination):
                    raise FileExistsError(
                        errno.EEXIST, "Destination already exists", str(move_op.destination)
                    )
                shutil.move(str(move_op.source), str(move_op.destination))
            except OSError as exc:
                report.move_failed += 1
                self._record_failure(report, "move", move_op.source, exc)
                continue

            report.moved += 1
            report.events.append(
                OperationEvent(
                    operation="move", source=move_op.source, destination=move_op.destination
                )
            )
            LOGGER.info("Moved %s -> %s", move_op.source, move_op.destination)

    def delete_targets(self, targets: Collection[Path], report: ExecutionReport) -> None:
        """Recursively remove each target, skipping those already gone."""

        for target in targets:
            if not os.path.lexists(target):
                report.skipped_missing += 1
                LOGGER.info("Skipped missing delete target %s", target)
                continue
            try:
                if target.is_symlink() or not target.is_dir():
                    target.unlink()
                else:
                    shutil.rmtree(target)
            except OSError as exc:
                report.delete_failed += 1
                self._record_failure(report, "delete", target, exc)
                continue

            report.deleted += 1
            report.events.append(OperationEvent(operation="delete", source=target))
            LOGGER.info("Deleted %s", target)

    def sweep(
        self,
        root: Path,
        delete_range: DeleteRange | str = DeleteRange.ALL_EMPTY,
        *,
        selected: Collection[Path] = (),
        report: ExecutionReport | None = None,
    ) -> ExecutionReport:
        """Remove empty folders under ``root``, deepest first, until none remain.

        Each pass lists the whole tree, collects folders with no entries, and
        removes them in order of decreasing depth. Passes repeat until one
        removes nothing, so parents emptied by a pass are caught by the next.
        The root itself is never removed.

        Args:
            root: Tree to sweep.
            delete_range: ``NO_DELETE`` removes nothing; ``SELECTED_ONLY``
                restricts removal to ``selected``; ``ALL_EMPTY`` considers
                every folder.
            selected: Folders eligible under ``SELECTED_ONLY``.
            report: Report to accumulate into; a new one is created if omitted.

        Returns:
            ExecutionReport: The report holding the sweep's counters.
        """

        report = report if report is not None else ExecutionReport()
        delete_range = DeleteRange(delete_range)
        if delete_range is DeleteRange.NO_DELETE:
            return report

        allowed: set[Path] | None = None
        if delete_range is DeleteRange.SELECTED_ONLY:
            allowed = {Path(path) for path in selected}
        failed: set[Path] = set()

        while True:
            report.sweep_passes += 1
            empty = [
                path
                for path in self._find_empty(root)
                if path not in failed and (allowed is None or path in allowed)
            ]
            empty.sort(key=lambda path: (-len(path.parts), str(path)))

            removed = 0
            for directory in empty:
                try:
                    directory.rmdir()
                except FileNotFoundError:
                    continue
                except OSError as exc:
                    failed.add(directory)
                    report.delete_failed += 1
                    self._record_failure(report, "sweep", directory, exc)
                    continue
                removed += 1
                report.deleted += 1
                report.events.append(OperationEvent(operation="sweep", source=directory))
                LOGGER.info("Removed empty folder %s", directory)

            if removed == 0:
                break

        return report

    def _find_empty(self, root: Path) -> list[Path]:
        empty: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
            current = Path(dirpath)
            if current != root and not dirnames and not filenames:
                empty.append(current)
        return empty

    def _on_walk_error(self, exc: OSError) -> None:
        LOGGER.debug("Sweep could not list %s: %s", exc.filename, exc)

    def _record_failure(
        self,
        report: ExecutionReport,
        operation: str,
        path: Path,
        exc: OSError,
    ) -> None:
        code = errno.errorcode.get(exc.errno, "io_error") if exc.errno else "io_error"
        if isinstance(exc, FileExistsError):
            code = "destination_exists"
        elif isinstance(exc, FileNotFoundError) and operation == "move":
            code = "source_missing"
        failure = OperationFailure(
            operation=operation,  # type: ignore[arg-type]
            path=path,
            code=code,
            message=str(exc),
        )
        report.failures.append(failure)
        LOGGER.warning("%s failed for %s: %s", operation.capitalize(), path, exc)


def execute(
    plan: PreviewPlan,
    root: Path,
    mode: OperationMode | str | None = None,
) -> ExecutionReport:
    """Apply ``plan`` with a default executor."""
    return PlanExecutor().apply(plan, root, mode)


__all__ = ["PlanExecutor", "execute"]
