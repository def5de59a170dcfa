"""Backup snapshot data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BackupRecord(BaseModel):
    """A sibling snapshot of a reorganized folder.

    Attributes:
        path: Backup directory.
        created_at: Local time encoded in the directory name.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    created_at: datetime


__all__ = ["BackupRecord"]
