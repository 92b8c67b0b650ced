"""
Refreshes every registered manifest and re-materializes files that need it.
"""

import logging
import os
import sys
from typing import Optional, TextIO

from ppkgmgr.core.digest import compute_digest
from ppkgmgr.core.download_manager import download_files
from ppkgmgr.core.file_processor import DownloadFunc
from ppkgmgr.core.targets import Target, cleanup_old_targets, extract_targets, files_need_refresh
from ppkgmgr.exceptions import (
    ConfigurationError,
    DownloadFailedError,
    ManifestNotFoundError,
    PpkgError,
)
from ppkgmgr.models.config import AppConfig
from ppkgmgr.models.registry import RegistryEntry
from ppkgmgr.storage.config_manager import ConfigManager
from ppkgmgr.storage.manifest_cache import generate_entry_id, write_private
from ppkgmgr.storage.manifest_loader import FetchFunc, load_raw, parse_manifest
from ppkgmgr.storage.registry import RegistryStore

log = logging.getLogger(__name__)


def display_value(value: str) -> str:
    return value if value.strip() else "-"


class PkgUpdater:
    """
    Runs one refresh pass over the registry.

    Each entry is handled independently: its cached manifest is refreshed from
    the source, and files are downloaded again when the manifest changed, a
    redownload was requested or the files on disk drifted from it.
    """

    def __init__(
        self,
        downloader: Optional[DownloadFunc],
        config: AppConfig,
        force: bool = False,
        out: Optional[TextIO] = None,
        fetch: Optional[FetchFunc] = None,
    ):
        self.downloader = downloader
        self.config = config
        self.force = force
        self.out = out if out is not None else sys.stdout
        self.fetch = fetch
        self.failures: list[tuple[str, str]] = []

    def run(self) -> None:
        if self.downloader is None:
            raise ConfigurationError("pkg up requires a downloader")

        registry_path = self.config.registry_path
        store = RegistryStore.load(registry_path)
        if not store.entries:
            self.out.write("no manifests registered\n")
            return

        for entry in store.entries:
            self.update_entry(entry)

        store.save(registry_path)

        if self.failures:
            raise DownloadFailedError(self.failures)

    def _fail(self, entry: RegistryEntry, message: str) -> None:
        log.warning(f"warning: {message}")
        self.failures.append((display_value(entry.source), message))

    def _previous_targets(self, entry: RegistryEntry) -> list[Target]:
        try:
            return extract_targets(entry.local_path)
        except ManifestNotFoundError:
            return []
        except PpkgError as e:
            log.warning(
                f"warning: failed to parse stored manifest {display_value(entry.source)}: {e}"
            )
            return []

    def refresh_stored_manifest(self, entry: RegistryEntry) -> bool:
        """
        Re-reads the manifest source over the cached copy.

        Returns whether the manifest changed. The digest always advances;
        ``updated_at`` only moves when the bytes changed or the entry was never
        refreshed before.
        """
        raw = load_raw(entry.source, self.fetch)

        parent = os.path.dirname(entry.local_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        write_private(entry.local_path, raw)

        computed = compute_digest(entry.local_path)
        changed = entry.never_updated or entry.digest.lower() != computed.lower()
        entry.digest = computed
        if not entry.id:
            entry.id = generate_entry_id(entry.source)
        if changed:
            entry.touch()
        return changed

    def update_entry(self, entry: RegistryEntry) -> None:
        source = display_value(entry.source)
        if not entry.source or not entry.local_path:
            self._fail(entry, f"skipping manifest with incomplete metadata: {source}")
            return

        previous_targets = self._previous_targets(entry)

        try:
            changed = self.refresh_stored_manifest(entry)
        except (PpkgError, OSError) as e:
            self._fail(entry, f"failed to refresh {source}: {e}")
            return

        try:
            manifest = parse_manifest(entry.local_path)
        except PpkgError as e:
            self._fail(entry, f"failed to parse manifest {source}: {e}")
            return

        if changed:
            self.out.write(f"refreshed manifest: {source}\n")
            if previous_targets:
                cleanup_old_targets(previous_targets)
        elif self.force:
            self.out.write(f"redownload requested: {source}\n")
        else:
            try:
                needs_refresh = files_need_refresh(manifest)
            except (PpkgError, OSError) as e:
                self._fail(entry, f"failed to inspect files for {source}: {e}")
                return
            if not needs_refresh:
                self.out.write(f"manifest unchanged: {source}\n")
                return
            self.out.write(f"files drifted: {source}\n")

        try:
            download_files(
                manifest,
                self.downloader,
                force_overwrite=True,
                safeguard_forced=True,
                out=self.out,
            )
        except PpkgError as e:
            self.failures.append((source, str(e)))
            return

        self.out.write(f"updated files for: {source}\n")


def run_pkg_up(
    downloader: Optional[DownloadFunc],
    force: bool = False,
    config: Optional[AppConfig] = None,
    out: Optional[TextIO] = None,
    fetch: Optional[FetchFunc] = None,
) -> None:
    """
    Refreshes all registered manifests.

    Raises ``DownloadFailedError`` after the registry has been saved if any
    entry failed.
    """
    if config is None:
        config = ConfigManager().load_config()
    PkgUpdater(downloader, config, force=force, out=out, fetch=fetch).run()
