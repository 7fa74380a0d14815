"""Request and response schemas for the FastAPI backend.

Field names travel as camelCase on the wire (``projectId``, ``hasMore``);
the Python side uses snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.log_record import LogRecord
from models.project import Stream


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Requests ──


class BulkIngestRequest(_CamelModel):
    project_id: str = Field(alias="projectId", min_length=1)
    # entries are checked one by one at write time; a bad one is skipped
    logs: list[dict[str, Any]] = Field(description="Entries to store; must not be empty")


class CreateProjectRequest(_CamelModel):
    name: str = Field(min_length=1)
    description: str = ""
    storage_path: str = Field(default="Internal", alias="storagePath")
    streams: list[Stream] = Field(default_factory=list)
    source_config: dict[str, Any] | None = Field(default=None, alias="sourceConfig")


class UpdateProjectRequest(_CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    storage_path: str | None = Field(default=None, alias="storagePath")
    streams: list[Stream] | None = None
    source_config: dict[str, Any] | None = Field(default=None, alias="sourceConfig")


class AiLogsRequest(BaseModel):
    logs: list[dict[str, Any]] = Field(description="Entries to analyse; only the first 150 are used")


# ── Responses ──


class BulkIngestResponse(BaseModel):
    count: int


class LogsPageResponse(_CamelModel):
    logs: list[LogRecord]
    total: int
    has_more: bool = Field(alias="hasMore")


class DeleteProjectResponse(_CamelModel):
    success: bool = True
    logs_deleted: int = Field(alias="logsDeleted")


class AiResultResponse(BaseModel):
    result: str


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
