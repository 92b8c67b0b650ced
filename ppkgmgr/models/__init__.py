"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures used throughout the application: configuration, manifests,
registry entries and run statistics.
"""

from .config import AppConfig
from .manifest import FileEntry, Manifest, Repository, SymlinkConfig
from .registry import RegistryEntry
from .stats import DownloadStats

__all__ = [
    "AppConfig",
    "DownloadStats",
    "FileEntry",
    "Manifest",
    "RegistryEntry",
    "Repository",
    "SymlinkConfig",
]
