"""Configuration models describing Hoist settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HoistBaseModel(BaseModel):
    """Shared configuration for Hoist Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class PlanningOptions(HoistBaseModel):
    """Defaults applied when building a preview plan.

    Attributes:
        operation_mode: What the executor does with the plan.
        destination: Where lifted folders land.
        delete_range: Sweep scope consulted in custom mode.
        max_probe_depth: Recursion bound for the empty-after-move prediction.
    """

    operation_mode: Literal["move_and_delete_all", "move_only", "delete_only", "custom"] = (
        "move_and_delete_all"
    )
    destination: Literal["root", "parent_up"] = "root"
    delete_range: Literal["all_empty", "selected_only", "no_delete"] = "all_empty"
    max_probe_depth: int = Field(default=256, ge=1)


class ProcessingOptions(HoistBaseModel):
    """Options governing how the tree is indexed.

    Attributes:
        follow_symlinks: Whether to index and descend symbolic links to directories.
        include_hidden: Whether dot-folders are eligible for selection.
    """

    follow_symlinks: bool = False
    include_hidden: bool = True


class BackupOptions(HoistBaseModel):
    """Snapshot behavior around destructive runs.

    Attributes:
        enabled: Whether `hoist run` snapshots the root before mutating it.
    """

    enabled: bool = True


class LoggingSettings(HoistBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Log file location; defaults to `~/.hoist/hoist.log`.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(HoistBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class HoistConfig(HoistBaseModel):
    """Top-level configuration struct for Hoist.

    Attributes:
        planning: Plan-building defaults.
        processing: Indexing settings.
        backup: Backup settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    planning: PlanningOptions = Field(default_factory=PlanningOptions)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    backup: BackupOptions = Field(default_factory=BackupOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "HoistBaseModel",
    "PlanningOptions",
    "ProcessingOptions",
    "BackupOptions",
    "LoggingSettings",
    "CLIOptions",
    "HoistConfig",
]
