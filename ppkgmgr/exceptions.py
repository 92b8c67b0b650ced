"""
Defines custom exceptions for the application to allow for more specific error handling.

Every exception carries an ``ErrorKind``. Only the CLI boundary translates a kind
into a process exit code (see ``exit_code_for``); internal layers never deal in
exit codes.
"""

from enum import Enum


class ErrorKind(Enum):
    """Broad categories of failure."""

    USAGE = "usage"
    NOT_FOUND = "not_found"
    STRUCTURAL = "structural"
    DOWNLOAD_FAILED = "download_failed"
    ENVIRONMENT = "environment"


_EXIT_CODES = {
    ErrorKind.USAGE: 1,
    ErrorKind.NOT_FOUND: 2,
    ErrorKind.STRUCTURAL: 3,
    ErrorKind.DOWNLOAD_FAILED: 4,
    ErrorKind.ENVIRONMENT: 5,
}


def exit_code_for(kind: ErrorKind) -> int:
    """Maps an error kind to the process exit code reported by the CLI."""
    return _EXIT_CODES.get(kind, 1)


class PpkgError(Exception):
    """Base exception for all application-specific errors."""

    kind = ErrorKind.ENVIRONMENT

    def __init__(self, message: str = "", kind: ErrorKind | None = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class UsageError(PpkgError):
    """Raised when a command is invoked with invalid arguments."""

    kind = ErrorKind.USAGE


class NotFoundError(PpkgError):
    """Raised when a referenced manifest, file or registry entry does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConfigurationError(PpkgError):
    """Raised for issues related to configuration loading or validation."""

    kind = ErrorKind.ENVIRONMENT


class ManifestError(PpkgError):
    """Raised when a manifest cannot be read or decoded."""

    kind = ErrorKind.STRUCTURAL


class ManifestNotFoundError(ManifestError):
    """Raised when a local manifest path does not exist."""

    kind = ErrorKind.NOT_FOUND


class PathResolutionError(PpkgError):
    """Raised when an output path cannot be determined for a manifest entry."""

    kind = ErrorKind.STRUCTURAL


class BackupError(PpkgError):
    """Raised when an existing output cannot be preserved before a write."""

    kind = ErrorKind.STRUCTURAL


class UnsafePathError(PpkgError):
    """Raised when an archive entry or extract path would escape its root."""

    kind = ErrorKind.STRUCTURAL


class DecodeError(PpkgError):
    """Raised when an artifact cannot be decoded or extracted."""

    kind = ErrorKind.DOWNLOAD_FAILED


class DigestMismatchError(PpkgError):
    """Raised when a file does not hash to its declared BLAKE3 digest."""

    kind = ErrorKind.DOWNLOAD_FAILED


class TransportError(PpkgError):
    """Raised when a remote resource cannot be fetched."""

    kind = ErrorKind.DOWNLOAD_FAILED


class RegistryError(PpkgError):
    """Raised when the manifest registry cannot be read or written."""

    kind = ErrorKind.ENVIRONMENT


class DownloadFailedError(PpkgError):
    """
    Raised after a run in which at least one file or registry entry failed.

    Every other file was still attempted; ``failures`` holds one
    ``(subject, reason)`` pair per failed item.
    """

    kind = ErrorKind.DOWNLOAD_FAILED

    def __init__(self, failures: list[tuple[str, str]]):
        self.failures = list(failures)
        details = "; ".join(f"{subject}: {reason}" for subject, reason in self.failures)
        super().__init__(f"{len(self.failures)} item(s) failed: {details}")
