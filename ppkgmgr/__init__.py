"""
ppkgmgr: a manifest-driven downloader that fetches, verifies, extracts and
tracks files described in YAML manifests.
"""

__version__ = "0.1.0"
