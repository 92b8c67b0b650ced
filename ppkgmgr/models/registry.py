"""
Pydantic model for a tracked manifest in the local registry.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class RegistryEntry(BaseModel):
    """A manifest source and the metadata of its cached local copy."""

    id: str = ""
    source: str = ""
    local_path: str = ""
    digest: str = ""
    # Registries written by older releases call this field added_at.
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "added_at")
    )

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True

    @field_validator("id", "source", "local_path", "digest", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("updated_at")
    @classmethod
    def zero_time_is_unset(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Older registries encode 'never refreshed' as year 1."""
        if v is not None and v.year <= 1:
            return None
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def never_updated(self) -> bool:
        return self.updated_at is None

    def touch(self) -> None:
        """Marks the entry as refreshed now."""
        self.updated_at = datetime.now(timezone.utc)
