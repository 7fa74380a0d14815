"""Project CRUD endpoints. Deleting a project also deletes its logs."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter

from api.errors import ProjectNotFound
from api.project_database import create_project, get_project, list_projects, update_project
from api.schemas import CreateProjectRequest, DeleteProjectResponse, UpdateProjectRequest
from api.services import delete_project_cascade
from models.project import Project

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=list[Project])
async def list_all_projects() -> list[Project]:
    """List projects, newest first."""
    projects = await asyncio.to_thread(list_projects)
    return [Project(**p) for p in projects]


@router.post("", response_model=Project, status_code=201)
async def create(body: CreateProjectRequest) -> Project:
    project_id = await asyncio.to_thread(
        create_project,
        name=body.name,
        description=body.description,
        storage_path=body.storage_path,
        streams=[s.model_dump() for s in body.streams],
        source_config=body.source_config,
    )
    project = await asyncio.to_thread(get_project, project_id)
    return Project(**project)


@router.get("/{project_id}", response_model=Project)
async def get(project_id: str) -> Project:
    project = await asyncio.to_thread(get_project, project_id)
    if not project:
        raise ProjectNotFound(f"Project {project_id} not found")
    return Project(**project)


@router.put("/{project_id}", response_model=Project)
async def update(project_id: str, body: UpdateProjectRequest) -> Project:
    if not await asyncio.to_thread(get_project, project_id):
        raise ProjectNotFound(f"Project {project_id} not found")
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    await asyncio.to_thread(update_project, project_id, **fields)
    project = await asyncio.to_thread(get_project, project_id)
    return Project(**project)


@router.delete("/{project_id}", response_model=DeleteProjectResponse)
async def delete(project_id: str) -> DeleteProjectResponse:
    """Delete the project's logs, then the project itself."""
    deleted = await delete_project_cascade(project_id)
    return DeleteProjectResponse(success=True, logs_deleted=deleted)
