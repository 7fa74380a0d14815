from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogInput(BaseModel):
    """A log entry as submitted for ingestion (no project id yet)."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str | None = Field(default=None, description="Timestamp string, compared lexically")
    level: str | None = Field(default=None, description="Severity tag (e.g., ERROR, WARN, INFO)")
    component: str | None = Field(default=None, description="Origin tag of the entry")
    message: str | None = Field(default=None, description="Log message")
    raw: str | None = Field(default=None, description="Original unparsed line")
    stream_id: str | None = Field(
        default=None, alias="streamId", description="Stream within the project"
    )

    @field_validator("*", mode="before")
    @classmethod
    def _stringify_scalars(cls, value: Any) -> Any:
        # String columns accept numbers and booleans as their text form
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class LogRecord(BaseModel):
    """A stored log record, as returned by queries."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    project_id: str = Field(alias="projectId")
    timestamp: str | None = None
    level: str | None = None
    component: str | None = None
    message: str | None = None
    raw: str | None = None
    stream_id: str | None = Field(default=None, alias="streamId")
