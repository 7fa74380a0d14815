from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Stream(BaseModel):
    """A named sub-channel of a project. Metadata only."""

    id: str = ""
    name: str = ""


class Project(BaseModel):
    """A namespace owning log records and stream definitions."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    storage_path: str = Field(default="Internal", alias="storagePath")
    streams: list[Stream] = Field(default_factory=list)
    source_config: dict[str, Any] = Field(
        default_factory=dict,
        alias="sourceConfig",
        description="Consumer-defined source settings, stored as-is",
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
