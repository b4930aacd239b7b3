"""Skills API routes."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.config import settings
from portfolio_api.database import get_db
from portfolio_api.routes.requests import read_content_request
from portfolio_api.schemas.skill import SkillEnvelope, SkillListEnvelope
from portfolio_api.services.auth import require_admin
from portfolio_api.services.content_kinds import SKILL
from portfolio_api.services.content_service import ContentService
from portfolio_api.services.media_store import get_media_store
from portfolio_api.services.repository import SqlContentRepository

router = APIRouter(prefix="/api/skills", tags=["skills"])


def get_skill_service(db: AsyncSession = Depends(get_db)) -> ContentService:
    return ContentService(
        SKILL,
        SqlContentRepository(SKILL, db),
        get_media_store(),
        media_timeout=settings.MEDIA_TIMEOUT_SECONDS,
    )


@router.get("", response_model=SkillListEnvelope)
async def list_skills(service: ContentService = Depends(get_skill_service)):
    """List all skills, newest first."""
    skills = await service.list()
    return {"success": True, "count": len(skills), "skills": skills}


@router.get("/{skill_id}", response_model=SkillEnvelope, response_model_exclude_none=True)
async def get_skill(skill_id: str, service: ContentService = Depends(get_skill_service)):
    """Get a single skill by ID."""
    return {"success": True, "skill": await service.get(skill_id)}


@router.post("", response_model=SkillEnvelope, status_code=201, dependencies=[Depends(require_admin)])
async def create_skill(request: Request, service: ContentService = Depends(get_skill_service)):
    """Create a skill. The icon image upload is required."""
    raw, files = await read_content_request(request)
    skill = await service.create(raw, files)
    return {"success": True, "message": "Skill added successfully", "skill": skill}


@router.put("/{skill_id}", response_model=SkillEnvelope, dependencies=[Depends(require_admin)])
async def update_skill(
    skill_id: str,
    request: Request,
    service: ContentService = Depends(get_skill_service),
):
    """Update a skill. Only provided fields change."""
    raw, files = await read_content_request(request)
    skill = await service.update(skill_id, raw, files)
    return {"success": True, "message": "Skill updated successfully", "skill": skill}


@router.delete("/{skill_id}", response_model=SkillEnvelope, dependencies=[Depends(require_admin)])
async def delete_skill(skill_id: str, service: ContentService = Depends(get_skill_service)):
    """Delete a skill and release its icon image."""
    skill = await service.delete(skill_id)
    return {"success": True, "message": "Skill deleted successfully", "skill": skill}
