"""Folder indexing for the Hoist engine."""

from .models import FolderRecord, HierarchyIndex
from .scanner import HierarchyIndexer, scan

__all__ = ["FolderRecord", "HierarchyIndex", "HierarchyIndexer", "scan"]
