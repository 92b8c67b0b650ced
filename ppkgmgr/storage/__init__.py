"""
Storage Layer.

This package handles all data persistence: the optional INI configuration,
the registry of tracked manifests, cached manifest copies and manifest loading.
"""

from .config_manager import ConfigManager, get_storage_dir
from .manifest_loader import is_remote_path, load_raw, parse_manifest
from .registry import RegistryStore

__all__ = [
    "ConfigManager",
    "RegistryStore",
    "get_storage_dir",
    "is_remote_path",
    "load_raw",
    "parse_manifest",
]
