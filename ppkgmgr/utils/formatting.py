"""
Helper functions for formatting data into human-readable strings.
"""

from datetime import datetime, timezone
from typing import Optional


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '1m 12s').
    """
    s = int(seconds)
    minutes, secs = divmod(s, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{seconds:.1f}s"


def format_updated_at(value: Optional[datetime]) -> str:
    """Renders a registry timestamp as RFC 3339 in UTC, or '-' when unset."""
    if value is None:
        return "-"
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
