"""
Registration of manifest sources in the local registry.
"""

import logging
import os
from typing import Optional

from ppkgmgr.core.digest import compute_digest
from ppkgmgr.exceptions import NotFoundError, RegistryError
from ppkgmgr.models.config import AppConfig
from ppkgmgr.models.registry import RegistryEntry
from ppkgmgr.storage.manifest_cache import generate_entry_id, manifest_cache_name, write_private
from ppkgmgr.storage.manifest_loader import FetchFunc, load_raw
from ppkgmgr.storage.registry import RegistryStore

log = logging.getLogger(__name__)


def add_manifest(
    source: str, config: AppConfig, fetch: Optional[FetchFunc] = None
) -> RegistryEntry:
    """
    Registers ``source`` and stores a private snapshot of it.

    Registering a source again refreshes its snapshot and digest but keeps its
    id. The entry is left as never refreshed so the next ``pkg up`` downloads
    its files.
    """
    raw = load_raw(source, fetch)

    try:
        config.manifests_dir.mkdir(parents=True, exist_ok=True)
        target = config.manifests_dir / manifest_cache_name(source)
        write_private(target, raw)
        digest = compute_digest(target)
    except OSError as e:
        raise RegistryError(f"failed to store manifest snapshot: {e}") from e

    store = RegistryStore.load(config.registry_path)
    entry_id = generate_entry_id(source)
    existing = store.get_by_source(source)
    if existing is not None and existing.id:
        entry_id = existing.id

    entry = RegistryEntry(
        id=entry_id, source=source, local_path=str(target), digest=digest, updated_at=None
    )
    store.upsert(entry)
    store.save(config.registry_path)
    log.info(f"Registered '{source}' as {entry_id}")
    return entry


def _sort_key(entry: RegistryEntry):
    # Newest first, never-refreshed entries last, ties broken by source.
    updated = entry.updated_at.timestamp() if entry.updated_at else 0.0
    return (entry.never_updated, -updated, entry.source)


def list_manifests(config: AppConfig) -> list[RegistryEntry]:
    """Returns the registered manifests, most recently refreshed first."""
    store = RegistryStore.load(config.registry_path)
    return sorted(store.entries, key=_sort_key)


def remove_manifest(selector: str, config: AppConfig) -> RegistryEntry:
    """
    Unregisters a manifest by id, or by source when no id matches.

    Only the registry entry and the cached copy of the manifest are removed;
    files it placed stay where they are.
    """
    store = RegistryStore.load(config.registry_path)
    selector = selector.strip()
    entry = None
    if selector:
        entry = store.remove_by_id(selector) or store.remove_by_source(selector)
    if entry is None:
        raise NotFoundError(f"no manifest found for {selector!r}")

    if entry.local_path:
        try:
            os.remove(entry.local_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise RegistryError(f"failed to remove manifest file: {e}") from e

    store.save(config.registry_path)
    return entry
