"""
Persistent registry of tracked manifest sources, stored as JSON.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ppkgmgr.exceptions import RegistryError
from ppkgmgr.models.registry import RegistryEntry

log = logging.getLogger(__name__)


class RegistryStore(BaseModel):
    """
    The set of registered manifests, unique on ``id``.

    Every change is a load-modify-save cycle; the file is rewritten whole.
    """

    entries: list[RegistryEntry] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RegistryStore":
        """Reads the registry at ``path``; a missing or empty file is an empty registry."""
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            return cls()
        except OSError as e:
            raise RegistryError(f"read registry: {e}") from e

        if not data.strip():
            return cls()
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise RegistryError(f"decode registry: {e}") from e

    def save(self, path: Union[str, Path]) -> None:
        """Writes the registry, entries sorted by source, replacing the file atomically."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RegistryError(f"create registry dir: {e}") from e

        ordered = sorted(self.entries, key=lambda entry: entry.source)
        payload = {"entries": [entry.model_dump(mode="json") for entry in ordered]}
        data = json.dumps(payload, indent=2, ensure_ascii=False)

        fd, temp_path = tempfile.mkstemp(prefix=".registry-", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.remove(temp_path)
            except OSError:
                pass
            raise RegistryError(f"write registry: {e}") from e
        log.debug(f"Saved {len(ordered)} registry entries to '{path}'")

    def get_by_source(self, source: str) -> Optional[RegistryEntry]:
        for entry in self.entries:
            if entry.source == source:
                return entry
        return None

    def get_by_id(self, entry_id: str) -> Optional[RegistryEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def upsert(self, entry: RegistryEntry) -> None:
        """
        Inserts or replaces an entry.

        An entry with a known id replaces that entry. Otherwise an entry with
        the same source is replaced, keeping its existing id if the new one has
        none. Anything else is appended.
        """
        if entry.id:
            for i, existing in enumerate(self.entries):
                if existing.id == entry.id:
                    self.entries[i] = entry
                    return
        for i, existing in enumerate(self.entries):
            if existing.source == entry.source:
                if not entry.id:
                    entry.id = existing.id
                self.entries[i] = entry
                return
        self.entries.append(entry)

    def remove_by_id(self, entry_id: str) -> Optional[RegistryEntry]:
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return self.entries.pop(i)
        return None

    def remove_by_source(self, source: str) -> Optional[RegistryEntry]:
        for i, entry in enumerate(self.entries):
            if entry.source == source:
                return self.entries.pop(i)
        return None
