"""Folder index data models."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FolderRecord(BaseModel):
    """A directory discovered beneath the scan root.

    Attributes:
        path: Absolute path of the folder.
        relative_path: Path relative to the scan root.
        name: Final path segment.
        depth: Number of segments below the root; immediate children are 1.
        relative_parent: Parent path relative to the root, or None at depth 1.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    relative_path: Path
    name: str
    depth: int
    relative_parent: Optional[Path] = None

    @classmethod
    def from_relative(cls, root: Path, relative: Path) -> "FolderRecord":
        """Build a record whose depth is derived from ``relative`` alone."""
        parent = relative.parent
        return cls(
            path=root / relative,
            relative_path=relative,
            name=relative.name,
            depth=len(relative.parts),
            relative_parent=None if parent == Path(".") else parent,
        )


class HierarchyIndex(BaseModel):
    """Folders under a root bucketed by depth."""

    model_config = ConfigDict(frozen=True)

    root: Path
    levels: Dict[int, Tuple[FolderRecord, ...]] = Field(default_factory=dict)

    def depths(self) -> list[int]:
        """Return populated depths in ascending order."""
        return sorted(depth for depth, records in self.levels.items() if records)

    def folders_at(self, depth: int) -> Tuple[FolderRecord, ...]:
        """Return folders at ``depth`` in traversal order."""
        return self.levels.get(depth, ())

    def count(self, depth: int) -> int:
        """Return how many folders sit at ``depth``."""
        return len(self.folders_at(depth))

    @property
    def total(self) -> int:
        return sum(len(records) for records in self.levels.values())

    @property
    def max_depth(self) -> int:
        depths = self.depths()
        return depths[-1] if depths else 0

    def iter_folders(self) -> Iterator[FolderRecord]:
        """Yield every folder, shallowest depth first."""
        for depth in self.depths():
            yield from self.levels[depth]


__all__ = ["FolderRecord", "HierarchyIndex"]
