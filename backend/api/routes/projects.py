"""Stored project endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from backend.models.requests import ProjectCreateRequest, ProjectUpdateRequest
from backend.models.responses import ProjectResponse
from backend.dependencies import get_project_manager
from backend.utils.project_manager import ProjectManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=List[ProjectResponse])
async def list_projects(project_manager: ProjectManager = Depends(get_project_manager)):
    """List stored projects."""
    return project_manager.list_projects()


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    request: ProjectCreateRequest,
    project_manager: ProjectManager = Depends(get_project_manager)
):
    """Store a project specification."""
    project = project_manager.create_project(
        request.name,
        request.schema_data,
        description=request.description,
    )
    logger.info(f"Created project {project['id']} ({project['name']})")
    return project


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, project_manager: ProjectManager = Depends(get_project_manager)):
    """Get a stored project."""
    project = project_manager.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    request: ProjectUpdateRequest,
    project_manager: ProjectManager = Depends(get_project_manager)
):
    """Update a stored project."""
    project = project_manager.update_project(
        project_id,
        name=request.name,
        description=request.description,
        schema_data=request.schema_data,
    )
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: int, project_manager: ProjectManager = Depends(get_project_manager)):
    """Delete a stored project."""
    if not project_manager.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
