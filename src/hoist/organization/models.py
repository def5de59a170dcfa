"""Plan and execution data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class OperationMode(str, Enum):
    """What the executor does with a plan."""

    MOVE_AND_DELETE_ALL = "move_and_delete_all"
    MOVE_ONLY = "move_only"
    DELETE_ONLY = "delete_only"
    CUSTOM = "custom"


class DeleteRange(str, Enum):
    """Scope of the empty-folder sweep."""

    ALL_EMPTY = "all_empty"
    SELECTED_ONLY = "selected_only"
    NO_DELETE = "no_delete"


class DestinationMode(str, Enum):
    """Where lifted folders land."""

    ROOT = "root"
    PARENT_UP = "parent_up"


class MoveOperation(BaseModel):
    """Represents lifting one folder to a new parent.

    Attributes:
        source: Folder path before the move.
        destination: Folder path after the move.
        final_name: Name the folder carries at its destination.
        original_name: Name the folder carried before the move.
        renamed: Whether ``final_name`` differs from ``original_name``.
        target_parent: Explicit parent used for one-level-up moves.
    """

    model_config = ConfigDict(frozen=True)

    source: Path
    destination: Path
    final_name: str
    original_name: str
    renamed: bool = False
    target_parent: Optional[Path] = None


class PlanWarning(BaseModel):
    """Informational note raised while planning.

    Attributes:
        code: Machine-readable category (`already_at_top_level`, `renamed`,
            or `batch_collision`).
        path: Folder the note is about.
        message: Human-readable description.
    """

    model_config = ConfigDict(frozen=True)

    code: Literal["already_at_top_level", "renamed", "batch_collision"]
    path: Path
    message: str

    def __str__(self) -> str:
        return self.message


class PreviewPlan(BaseModel):
    """Immutable description of intended moves and deletions.

    ``delete_targets`` holds predicted-empty ancestors for move-bearing
    modes, or the directly selected folders in delete-only mode.
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    mode: OperationMode
    destination: DestinationMode = DestinationMode.ROOT
    delete_range: DeleteRange = DeleteRange.ALL_EMPTY
    selected_depths: Tuple[int, ...] = ()
    moves: Tuple[MoveOperation, ...] = ()
    delete_targets: Tuple[Path, ...] = ()
    warnings: Tuple[PlanWarning, ...] = ()

    @property
    def renamed_count(self) -> int:
        return sum(1 for move in self.moves if move.renamed)

    def messages(self) -> list[str]:
        """Return warning texts in the order they were raised."""
        return [warning.message for warning in self.warnings]


class OperationFailure(BaseModel):
    """A per-item mutation that did not succeed.

    Attributes:
        operation: Phase that produced the failure.
        path: Item the failure concerns.
        code: Short machine-readable reason such as an errno name.
        message: Human-readable detail.
    """

    operation: Literal["move", "delete", "sweep"]
    path: Path
    code: str
    message: str


class OperationEvent(BaseModel):
    """A mutation that was applied to disk."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    operation: Literal["move", "delete", "sweep"]
    source: Path
    destination: Optional[Path] = None


class ExecutionReport(BaseModel):
    """Aggregate outcome of applying a plan.

    Attributes:
        moved: Moves that succeeded.
        move_failed: Moves that failed.
        deleted: Directories removed by the delete-only phase or the sweep.
        delete_failed: Removals that failed.
        skipped_missing: Delete-only targets already gone before removal.
        sweep_passes: Sweep iterations run until nothing more was removed.
        events: Applied mutations in order.
        failures: Per-item failures with their reasons.
    """

    moved: int = 0
    move_failed: int = 0
    deleted: int = 0
    delete_failed: int = 0
    skipped_missing: int = 0
    sweep_passes: int = 0
    events: List[OperationEvent] = Field(default_factory=list)
    failures: List[OperationFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def counts(self) -> dict[str, int]:
        """Return the summary counters consumed by front ends."""
        return {"moved": self.moved, "move_failed": self.move_failed, "deleted": self.deleted}


__all__ = [
    "DeleteRange",
    "DestinationMode",
    "ExecutionReport",
    "MoveOperation",
    "OperationEvent",
    "OperationFailure",
    "OperationMode",
    "PlanWarning",
    "PreviewPlan",
]
