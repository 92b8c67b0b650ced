"""
Transport Layer.

HTTP access used to fetch artifacts and remote manifests.
"""

from .downloader import Downloader, download, fetch_bytes

__all__ = ["Downloader", "download", "fetch_bytes"]
