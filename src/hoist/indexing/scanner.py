"""Depth-bucketed directory discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from hoist.errors import RootNotFoundError

from .models import FolderRecord, HierarchyIndex

LOGGER = logging.getLogger(__name__)


class HierarchyIndexer:
    """Walk a tree once and bucket every descendant folder by depth."""

    def __init__(self, *, follow_symlinks: bool = False, include_hidden: bool = True) -> None:
        self.follow_symlinks = follow_symlinks
        self.include_hidden = include_hidden

    def scan(self, root: Path | str) -> HierarchyIndex:
        """Index every reachable folder under ``root``.

        Subdirectories are visited in sorted name order, so an unchanged tree
        always yields the same index. Unreadable subtrees are skipped.

        Args:
            root: Directory to index.

        Returns:
            HierarchyIndex: Folders grouped by depth.

        Raises:
            RootNotFoundError: If ``root`` is missing or not a directory.
        """
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            raise RootNotFoundError(f"Root directory not found: {root_path}")
        root_path = root_path.resolve()

        levels: dict[int, list[FolderRecord]] = {}
        seen_real: set[str] = {os.path.realpath(root_path)}

        for dirpath, dirnames, _ in os.walk(
            root_path, onerror=self._on_error, followlinks=self.follow_symlinks
        ):
            current = Path(dirpath)
            kept: list[str] = []
            for name in sorted(dirnames):
                child = current / name
                if not self._admit(child, seen_real):
                    continue
                kept.append(name)
                record = FolderRecord.from_relative(root_path, child.relative_to(root_path))
                levels.setdefault(record.depth, []).append(record)
            dirnames[:] = kept

        index = HierarchyIndex(
            root=root_path,
            levels={depth: tuple(records) for depth, records in sorted(levels.items())},
        )
        LOGGER.info(
            "Indexed %d folder(s) across %d level(s) under %s",
            index.total,
            len(index.levels),
            root_path,
        )
        return index

    def _admit(self, child: Path, seen_real: set[str]) -> bool:
        if not self.include_hidden and child.name.startswith("."):
            return False
        if child.is_symlink() and not self.follow_symlinks:
            return False
        if self.follow_symlinks:
            real = os.path.realpath(child)
            if real in seen_real:
                LOGGER.debug("Skipping already visited directory %s -> %s", child, real)
                return False
            seen_real.add(real)
        return True

    def _on_error(self, exc: OSError) -> None:
        LOGGER.debug("Skipping unreadable directory %s: %s", exc.filename, exc)


def scan(root: Path | str) -> HierarchyIndex:
    """Index ``root`` with default indexer settings."""
    return HierarchyIndexer().scan(root)


__all__ = ["HierarchyIndexer", "scan"]
