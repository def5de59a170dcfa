"""Snapshot and restore of reorganized trees."""

from .manager import BACKUP_TIMESTAMP_FORMAT, BackupManager, backup_name
from .models import BackupRecord

__all__ = ["BACKUP_TIMESTAMP_FORMAT", "BackupManager", "BackupRecord", "backup_name"]
