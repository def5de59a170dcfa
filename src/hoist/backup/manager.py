"""Sibling-directory backups taken before a tree is reorganized."""

from __future__ import annotations

import logging
import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable

from hoist.errors import BackupError, BackupNotFoundError, RestoreError

from .models import BackupRecord

LOGGER = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def backup_name(original_name: str, moment: datetime) -> str:
    """Return ``<name>_backup_<YYYYMMDD_HHMMSS>`` for ``moment``."""
    return f"{original_name}_backup_{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}"


def _backup_pattern(original_name: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(original_name)}_backup_(\d{{8}}_\d{{6}})(?:_\d+)?$")


class BackupManager:
    """Create, locate, and restore full-tree snapshots.

    Backups are plain recursive copies stored beside the original folder, so
    reorganizing or deleting the original never touches them.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or datetime.now

    def backup(self, source: Path | str) -> Path:
        """Copy ``source`` to a new timestamped sibling directory.

        Args:
            source: Folder to snapshot.

        Returns:
            Path: The new backup directory.

        Raises:
            BackupError: If the source is not a directory or the copy fails.
                A partially written copy is removed before raising.
        """

        source_path = Path(source).expanduser().resolve()
        if not source_path.is_dir():
            raise BackupError(
                f"Cannot back up {source_path}: not a directory.", reason="source_missing"
            )

        base = source_path.parent / backup_name(source_path.name, self._clock())
        target = base
        counter = 1
        while os.path.lexists(target):
            target = base.with_name(f"{base.name}_{counter}")
            counter += 1

        try:
            shutil.copytree(source_path, target, symlinks=True)
            # copytree copies the source's mtime; backups are ranked by creation.
            os.utime(target)
        except OSError as exc:
            shutil.rmtree(target, ignore_errors=True)
            LOGGER.error("Backup of %s failed: %s", source_path, exc)
            raise BackupError(
                f"Backup of {source_path} to {target} failed: {exc}", reason=str(exc)
            ) from exc

        LOGGER.info("Backed up %s to %s", source_path, target)
        return target

    def list_backups(self, original: Path | str) -> list[BackupRecord]:
        """Return backups of ``original``, most recently modified first."""

        original_path = Path(original).expanduser().resolve()
        pattern = _backup_pattern(original_path.name)
        found: list[tuple[float, BackupRecord]] = []
        try:
            siblings = list(original_path.parent.iterdir())
        except OSError as exc:
            LOGGER.debug("Unable to list backups beside %s: %s", original_path, exc)
            return []

        for candidate in siblings:
            match = pattern.match(candidate.name)
            if match is None or not candidate.is_dir():
                continue
            try:
                modified = candidate.stat().st_mtime
            except OSError:
                continue
            created = datetime.strptime(match.group(1), BACKUP_TIMESTAMP_FORMAT)
            found.append((modified, BackupRecord(path=candidate, created_at=created)))

        found.sort(key=lambda item: (item[0], item[1].path.name), reverse=True)
        return [record for _, record in found]

    def latest_backup(self, original: Path | str) -> BackupRecord | None:
        """Return the most recently modified backup of ``original``, if any."""
        backups = self.list_backups(original)
        return backups[0] if backups else None

    def restore(self, backup: Path | str, destination: Path | str) -> None:
        """Replace ``destination`` with a copy of ``backup``.

        The destination is removed first and then recreated from the backup.
        This is not atomic: a failure part way through can leave the
        destination missing or partially populated.

        Raises:
            BackupNotFoundError: If ``backup`` is not an existing directory.
            RestoreError: If removal or copying fails, or the backup lives
                inside the destination.
        """

        backup_path = Path(backup).expanduser().resolve()
        if not backup_path.is_dir():
            raise BackupNotFoundError(
                f"Backup directory not found: {backup_path}", reason="backup_missing"
            )
        destination_path = Path(destination).expanduser().resolve()
        if destination_path == backup_path or destination_path in backup_path.parents:
            raise RestoreError(
                f"Backup {backup_path} lies inside {destination_path}; refusing to restore.",
                reason="backup_inside_destination",
            )

        try:
            if destination_path.is_dir() and not destination_path.is_symlink():
                shutil.rmtree(destination_path)
            elif os.path.lexists(destination_path):
                destination_path.unlink()
            shutil.copytree(backup_path, destination_path, symlinks=True)
        except OSError as exc:
            LOGGER.error("Restore of %s from %s failed: %s", destination_path, backup_path, exc)
            raise RestoreError(
                f"Restore of {destination_path} from {backup_path} failed: {exc}",
                reason=str(exc),
            ) from exc

        LOGGER.info("Restored %s from %s", destination_path, backup_path)


__all__ = ["BACKUP_TIMESTAMP_FORMAT", "BackupManager", "backup_name"]
