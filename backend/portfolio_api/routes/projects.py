"""Projects API routes."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.config import settings
from portfolio_api.database import get_db
from portfolio_api.routes.requests import read_content_request
from portfolio_api.schemas.project import ProjectEnvelope, ProjectListEnvelope
from portfolio_api.services.auth import require_admin
from portfolio_api.services.content_kinds import PROJECT
from portfolio_api.services.content_service import ContentService
from portfolio_api.services.media_store import get_media_store
from portfolio_api.services.repository import SqlContentRepository

router = APIRouter(prefix="/api/projects", tags=["projects"])


def get_project_service(db: AsyncSession = Depends(get_db)) -> ContentService:
    return ContentService(
        PROJECT,
        SqlContentRepository(PROJECT, db),
        get_media_store(),
        media_timeout=settings.MEDIA_TIMEOUT_SECONDS,
    )


@router.get("", response_model=ProjectListEnvelope)
async def list_projects(service: ContentService = Depends(get_project_service)):
    """List all projects, newest first."""
    projects = await service.list()
    return {"success": True, "count": len(projects), "projects": projects}


@router.get("/{project_id}", response_model=ProjectEnvelope, response_model_exclude_none=True)
async def get_project(project_id: str, service: ContentService = Depends(get_project_service)):
    """Get a single project by ID."""
    return {"success": True, "project": await service.get(project_id)}


@router.post(
    "", response_model=ProjectEnvelope, status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_project(request: Request, service: ContentService = Depends(get_project_service)):
    """Create a project from JSON or multipart form data (optional video/thumbnail files)."""
    raw, files = await read_content_request(request)
    project = await service.create(raw, files)
    return {"success": True, "message": "Project added successfully", "project": project}


@router.put("/{project_id}", response_model=ProjectEnvelope, dependencies=[Depends(require_admin)])
async def update_project(
    project_id: str,
    request: Request,
    service: ContentService = Depends(get_project_service),
):
    """Update a project. Only provided fields change; media follows the request's intent."""
    raw, files = await read_content_request(request)
    project = await service.update(project_id, raw, files)
    return {"success": True, "message": "Project updated successfully", "project": project}


@router.delete("/{project_id}", response_model=ProjectEnvelope, dependencies=[Depends(require_admin)])
async def delete_project(project_id: str, service: ContentService = Depends(get_project_service)):
    """Delete a project and release its video and thumbnail."""
    project = await service.delete(project_id)
    return {"success": True, "message": "Project deleted successfully", "project": project}
