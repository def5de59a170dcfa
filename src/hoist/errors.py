"""Exception hierarchy shared by the Hoist engine."""

from __future__ import annotations


class HoistError(Exception):
    """Base exception for Hoist operations."""


class RootNotFoundError(HoistError, FileNotFoundError):
    """Raised when a scan root is missing or is not a directory."""


class PlanError(HoistError):
    """Raised when a plan request cannot be satisfied."""


class BackupError(HoistError):
    """Raised when a backup snapshot cannot be created.

    Attributes:
        reason: Short description of the underlying failure.
    """

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason or message


class BackupNotFoundError(BackupError, FileNotFoundError):
    """Raised when a backup directory to restore from is absent."""


class RestoreError(BackupError):
    """Raised when a restore fails after it started mutating the destination."""


__all__ = [
    "HoistError",
    "RootNotFoundError",
    "PlanError",
    "BackupError",
    "BackupNotFoundError",
    "RestoreError",
]
