"""Tree-text and tabular reports derived from a hierarchy index."""

from __future__ import annotations

import csv
import logging
import os
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List

from pydantic import BaseModel, Field

from hoist.indexing import HierarchyIndex

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "depth",
    "name",
    "fullPath",
    "fileCount",
    "subfolderCount",
    "sizeMB",
    "lastModified",
    "isEmpty",
    "extensionHistogram",
]


class FolderStats(BaseModel):
    """One row of the tabular folder export."""

    depth: int
    name: str
    full_path: Path
    file_count: int = 0
    subfolder_count: int = 0
    size_mb: float = 0.0
    last_modified: datetime | None = None
    is_empty: bool = True
    extension_histogram: Dict[str, int] = Field(default_factory=dict)

    def as_row(self) -> list[str]:
        histogram = "; ".join(
            f"{extension}:{count}" for extension, count in sorted(self.extension_histogram.items())
        )
        modified = self.last_modified.isoformat() if self.last_modified else ""
        return [
            str(self.depth),
            self.name,
            str(self.full_path),
            str(self.file_count),
            str(self.subfolder_count),
            f"{self.size_mb:.2f}",
            modified,
            "true" if self.is_empty else "false",
            histogram,
        ]


def render_tree(root: Path, *, include_files: bool = False) -> str:
    """Return an indented text tree of ``root``.

    Folders end with a slash and show their direct file count. Unreadable
    folders are marked instead of descended.
    """
    root = Path(root).expanduser().resolve()
    lines = [f"{root.name}/"]

    def _walk(directory: Path, level: int) -> None:
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name.lower())
        except OSError:
            lines.append(f"{'  ' * level}[unreadable]")
            return
        folders = [entry for entry in entries if entry.is_dir(follow_symlinks=False)]
        files = [entry for entry in entries if not entry.is_dir(follow_symlinks=False)]
        for entry in folders:
            file_count = _count_files(Path(entry.path))
            lines.append(f"{'  ' * level}{entry.name}/ ({file_count} files)")
            _walk(Path(entry.path), level + 1)
        if include_files:
            lines.extend(f"{'  ' * level}{entry.name}" for entry in files)

    _walk(root, 1)
    return "\n".join(lines) + "\n"


def collect_folder_stats(index: HierarchyIndex) -> List[FolderStats]:
    """Compute one stats row per indexed folder, shallowest first."""
    rows: list[FolderStats] = []
    for record in index.iter_folders():
        stats = FolderStats(depth=record.depth, name=record.name, full_path=record.path)
        extensions: Counter[str] = Counter()
        total_bytes = 0
        try:
            with os.scandir(record.path) as entries:
                for entry in entries:
                    stats.is_empty = False
                    if entry.is_dir(follow_symlinks=False):
                        stats.subfolder_count += 1
                        continue
                    stats.file_count += 1
                    extensions[os.path.splitext(entry.name)[1].lower() or "(none)"] += 1
            for dirpath, _, filenames in os.walk(record.path):
                for filename in filenames:
                    try:
                        total_bytes += os.lstat(os.path.join(dirpath, filename)).st_size
                    except OSError:
                        continue
            stats.last_modified = datetime.fromtimestamp(
                record.path.stat().st_mtime, tz=timezone.utc
            )
        except OSError as exc:
            LOGGER.debug("Unable to collect stats for %s: %s", record.path, exc)
        stats.size_mb = round(total_bytes / (1024 * 1024), 2)
        stats.extension_histogram = dict(extensions)
        rows.append(stats)
    return rows


def write_csv(rows: Iterable[FolderStats], destination: Path) -> Path:
    """Write ``rows`` as CSV with the standard column headers."""
    destination = Path(destination).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_COLUMNS)
        for row in rows:
            writer.writerow(row.as_row())
    return destination


def _count_files(directory: Path) -> int:
    try:
        with os.scandir(directory) as entries:
            return sum(1 for entry in entries if not entry.is_dir(follow_symlinks=False))
    except OSError:
        return 0


__all__ = ["CSV_COLUMNS", "FolderStats", "collect_folder_stats", "render_tree", "write_csv"]
