"""
Loads manifest documents from local files or HTTP(S) URLs.
"""

import logging
from typing import Callable, Optional
from urllib.parse import urlparse

import yaml
from pydantic import ValidationError

from ppkgmgr.exceptions import ManifestError, ManifestNotFoundError
from ppkgmgr.models.manifest import Manifest

log = logging.getLogger(__name__)

FetchFunc = Callable[[str], bytes]


def is_remote_path(path: str) -> bool:
    """Reports whether ``path`` is an HTTP(S) URL."""
    try:
        scheme = urlparse(path).scheme
    except ValueError:
        return False
    return scheme.lower() in ("http", "https")


def load_raw(path: str, fetch: Optional[FetchFunc] = None) -> bytes:
    """
    Returns the raw bytes of the manifest at ``path``.

    Remote paths are fetched with ``fetch`` (the default HTTP transport when not
    given); anything else is read from disk.
    """
    if is_remote_path(path):
        if fetch is None:
            from ppkgmgr.transport.downloader import fetch_bytes as fetch
        log.debug(f"Fetching remote manifest '{path}'")
        try:
            return fetch(path)
        except Exception as e:
            raise ManifestError(f"fetch remote yaml: {e}") from e

    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError as e:
        raise ManifestNotFoundError(f"not found path: {path}") from e
    except OSError as e:
        raise ManifestError(f"read file: {e}") from e


def decode_manifest(raw: bytes) -> Manifest:
    """
    Decodes manifest YAML.

    Scalars are kept as strings so values such as ``mode: 0755`` keep their
    octal spelling instead of being read as integers.
    """
    try:
        document = yaml.load(raw, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise ManifestError(f"decode yaml: {e}") from e

    if document in (None, ""):
        document = {}
    if not isinstance(document, dict):
        raise ManifestError("decode yaml: manifest root must be a mapping")

    try:
        return Manifest.model_validate(document)
    except ValidationError as e:
        raise ManifestError(f"decode yaml: {e}") from e


def parse_manifest(path: str, fetch: Optional[FetchFunc] = None) -> Manifest:
    """Loads and decodes the manifest at ``path``."""
    return decode_manifest(load_raw(path, fetch))
