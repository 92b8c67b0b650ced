"""
Pydantic model for application configuration.
Provides validation for storage and transport settings.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_VERSION = "0.0.0"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Storage
    storage_dir: Path

    # Transport
    max_attempts: int = 3
    base_delay: float = 1.5
    connect_timeout: float = 15.0
    read_timeout: float = 90.0

    # Output
    log_level: str = "WARNING"

    # Internal fields not loaded from INI file
    version: str = Field(DEFAULT_VERSION, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        """Ensures a reasonable number of download attempts."""
        if v < 1 or v > 10:
            raise ValueError("Max attempts must be between 1 and 10.")
        return v

    @field_validator("base_delay", "connect_timeout", "read_timeout")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays and timeouts cannot be negative.")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(LOG_LEVELS)}.")
        return level

    @property
    def registry_path(self) -> Path:
        """Location of the registry of tracked manifests."""
        return self.storage_dir / "registry.json"

    @property
    def manifests_dir(self) -> Path:
        """Directory holding the cached copy of each tracked manifest."""
        return self.storage_dir / "manifests"

    @property
    def config_file(self) -> Path:
        return self.storage_dir / "config.ini"

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"storage_dir", "version"}
        return {key for key in cls.model_fields if key not in internal_fields}
