"""
Pydantic models describing a decoded manifest.

Manifests are loaded with every scalar kept as a string, so the validators here
mostly normalise empty values and coerce the handful of non-string fields.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_MANIFEST_VERSION = 3

ARCHIVE_ENCODINGS = ("tar+gzip", "tar+xz")


def normalize_encoding(value: str) -> str:
    """Trims and lower-cases an encoding tag."""
    return (value or "").strip().lower()


def is_archive_encoding(encoding: str) -> bool:
    """Reports whether ``encoding`` names a supported archive format."""
    return normalize_encoding(encoding) in ARCHIVE_ENCODINGS


class SymlinkConfig(BaseModel):
    """A symbolic link to create once the file has been placed."""

    link: str = ""
    target: str = ""

    @field_validator("link", "target", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class FileEntry(BaseModel):
    """A single downloadable file and where to put it."""

    file_name: str
    digest: str = ""
    artifact_digest: str = ""
    encoding: str = ""
    extract: str = ""
    rename: str = ""
    mode: str = ""
    symlink: Optional[SymlinkConfig] = None
    out_dir: str = ""

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @field_validator(
        "digest",
        "artifact_digest",
        "encoding",
        "extract",
        "rename",
        "mode",
        "out_dir",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """YAML leaves empty keys as null or ''; both mean 'not set'."""
        return "" if v is None else v

    @field_validator("symlink", mode="before")
    @classmethod
    def empty_symlink(cls, v: Any) -> Any:
        if v == "" or v is None:
            return None
        return v

    @property
    def is_archive(self) -> bool:
        return is_archive_encoding(self.encoding)

    @property
    def extracts_whole_archive(self) -> bool:
        """True for archive entries that unpack the full tree (no single output)."""
        return self.is_archive and self.extract.strip() == ""


class Repository(BaseModel):
    """A base URL and the files fetched relative to it."""

    comment: str = Field("", alias="_comment")
    url: str = ""
    files: list[FileEntry] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        frozen = True

    @field_validator("comment", "url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("files", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v in (None, "") else v

    def file_url(self, entry: FileEntry) -> str:
        """
        Builds the download URL for an entry.

        The base URL and file name are joined verbatim, so a base URL that already
        ends in '/' yields a doubled slash. Existing manifests rely on servers
        tolerating that, so it is left alone.
        """
        return f"{self.url}/{entry.file_name}"


class Manifest(BaseModel):
    """The root manifest document."""

    version: int = DEFAULT_MANIFEST_VERSION
    repositories: list[Repository] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @field_validator("version", mode="before")
    @classmethod
    def default_version(cls, v: Any) -> Any:
        if v in (None, "", 0, "0"):
            return DEFAULT_MANIFEST_VERSION
        return v

    @field_validator("repositories", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v in (None, "") else v

    def entries(self):
        """Yields ``(repository, file_entry)`` pairs in manifest order."""
        for repository in self.repositories:
            for entry in repository.files:
                yield repository, entry
