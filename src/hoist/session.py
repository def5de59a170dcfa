"""Request/response API over an explicit session context.

Front ends hold a :class:`HoistSession` for the tree they are working on and
call its methods, or use the module-level functions when they manage the
index and plan themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from hoist.backup import BackupManager
from hoist.config import HoistConfig
from hoist.errors import BackupNotFoundError, PlanError, RestoreError
from hoist.indexing import HierarchyIndex, HierarchyIndexer
from hoist.organization import (
    DeleteRange,
    DestinationMode,
    ExecutionReport,
    OperationMode,
    PlanBuilder,
    PlanExecutor,
    PreviewPlan,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class HoistSession:
    """Current root, index, and plan for one reorganization.

    Attributes:
        root: Tree being reorganized.
        config: Settings supplying planner, indexer, and backup defaults.
        index: Index from the latest scan, cleared after a run.
        plan: Plan from the latest build, cleared after a run.
        last_backup: Backup taken by the latest guarded run.
    """

    root: Path
    config: HoistConfig = field(default_factory=HoistConfig)
    index: Optional[HierarchyIndex] = None
    plan: Optional[PreviewPlan] = None
    last_backup: Optional[Path] = None
    backups: BackupManager = field(default_factory=BackupManager)

    def __post_init__(self) -> None:
        self.root = Path(self.root).expanduser().resolve()

    def scan(self) -> HierarchyIndex:
        """Index the root and drop any plan built from an older index."""
        processing = self.config.processing
        indexer = HierarchyIndexer(
            follow_symlinks=processing.follow_symlinks,
            include_hidden=processing.include_hidden,
        )
        self.index = indexer.scan(self.root)
        self.plan = None
        return self.index

    def build_plan(
        self,
        depths: Iterable[int],
        *,
        mode: OperationMode | str | None = None,
        destination: DestinationMode | str | None = None,
        delete_range: DeleteRange | str | None = None,
    ) -> PreviewPlan:
        """Build a fresh plan; unspecified options come from the planning config."""
        index = self.index or self.scan()

        planning = self.config.planning
        builder = PlanBuilder(max_probe_depth=planning.max_probe_depth)
        self.plan = builder.build(
            index,
            depths,
            mode=mode or planning.operation_mode,
            destination=destination or planning.destination,
            delete_range=delete_range or planning.delete_range,
        )
        return self.plan

    def run(
        self,
        plan: PreviewPlan | None = None,
        *,
        backup: bool | None = None,
    ) -> ExecutionReport:
        """Apply a plan, snapshotting the root first when backups are enabled.

        Args:
            plan: Plan to apply; defaults to the session's current plan.
            backup: Overrides ``config.backup.enabled``.

        Returns:
            ExecutionReport: Outcome of the execution.

        Raises:
            PlanError: If no plan is available.
            BackupError: If the requested backup could not be created. The
                tree is left untouched in that case.
        """
        if plan is None:
            plan = self.plan
        if plan is None:
            raise PlanError("No plan to run; build one first.")
        if plan.root != self.root:
            raise PlanError(f"Plan was built for {plan.root}, not {self.root}.")

        take_backup = self.config.backup.enabled if backup is None else backup
        if take_backup:
            self.last_backup = self.backups.backup(self.root)

        report = PlanExecutor().apply(plan, self.root)
        self.index = None
        self.plan = None
        return report

    def latest_backup(self) -> Path | None:
        """Return the newest backup of the root, if any."""
        record = self.backups.latest_backup(self.root)
        return record.path if record else None

    def undo(self, backup: Path | None = None) -> Path:
        """Restore the root from ``backup`` or from its newest backup.

        Returns:
            Path: The backup that was restored.

        Raises:
            BackupNotFoundError: If no backup is available.
            RestoreError: If the restore fails part way.
        """
        source = backup or self.latest_backup()
        if source is None:
            raise BackupNotFoundError(f"No backups found for {self.root}.", reason="backup_missing")
        self.backups.restore(source, self.root)
        self.index = None
        self.plan = None
        return Path(source)


def scan(root: Path | str) -> HierarchyIndex:
    """Index ``root``; raises ``RootNotFoundError`` when it is absent."""
    return HierarchyIndexer().scan(root)


def plan(
    index: HierarchyIndex,
    depths: Iterable[int],
    mode: OperationMode | str = OperationMode.MOVE_AND_DELETE_ALL,
    delete_range: DeleteRange | str = DeleteRange.ALL_EMPTY,
    destination: DestinationMode | str = DestinationMode.ROOT,
) -> PreviewPlan:
    """Build a plan for ``depths`` of ``index``."""
    return PlanBuilder().build(index, depths, mode, destination, delete_range)


def execute(
    plan: PreviewPlan,
    root: Path | str,
    mode: OperationMode | str | None = None,
) -> ExecutionReport:
    """Apply ``plan`` to ``root``."""
    return PlanExecutor().apply(plan, Path(root), mode)


def backup(root: Path | str) -> Path:
    """Snapshot ``root``; raises ``BackupError`` on failure."""
    return BackupManager().backup(root)


def restore(backup_path: Path | str, root: Path | str) -> bool:
    """Restore ``root`` from ``backup_path``.

    Returns False, after logging the reason, when the restore fails part way.
    Raises ``BackupNotFoundError`` when the backup does not exist.
    """
    try:
        BackupManager().restore(backup_path, root)
    except RestoreError as exc:
        LOGGER.error("Restore failed (%s): %s", exc.reason, exc)
        return False
    return True


def latest_backup(root: Path | str) -> Path | None:
    """Return the newest backup beside ``root``, if any."""
    record = BackupManager().latest_backup(root)
    return record.path if record else None


__all__ = [
    "HoistSession",
    "backup",
    "execute",
    "latest_backup",
    "plan",
    "restore",
    "scan",
]
