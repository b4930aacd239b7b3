"""Project field rules and response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator
from portfolio_api.schemas.base import CamelModel, CamelORMModel, URL_PATTERN, strip_or_empty

TITLE_MAX_LENGTH = 200


class ProjectFields(CamelModel):
    """Full set of stored Project fields. Validating this is the write gate."""
    title: str = ""
    description: str = ""
    features: list[str] = []
    tools: list[str] = []
    github_link: str = ""
    deployed_url: str = ""
    cloudinary_link: str = ""
    duration: str = ""
    challenges: str = ""
    cloudinary_video_url: str = ""
    cloudinary_video_public_id: str = ""
    cloudinary_thumbnail_url: str = ""
    cloudinary_thumbnail_public_id: str = ""

    @field_validator(
        'title', 'description', 'github_link', 'deployed_url', 'cloudinary_link',
        'duration', 'challenges', 'cloudinary_video_url', 'cloudinary_video_public_id',
        'cloudinary_thumbnail_url', 'cloudinary_thumbnail_public_id',
        mode='before'
    )
    @classmethod
    def strip(cls, v):
        return strip_or_empty(v)

    @field_validator('title')
    @classmethod
    def check_title(cls, v: str) -> str:
        if not v:
            raise ValueError("Title is required")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
        return v

    @field_validator('description')
    @classmethod
    def check_description(cls, v: str) -> str:
        if not v:
            raise ValueError("Description is required")
        return v

    @field_validator('features', 'tools', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v if v is not None else []

    @field_validator('features')
    @classmethod
    def check_features(cls, v: list[str]) -> list[str]:
        return _non_empty_items(v, "feature")

    @field_validator('tools')
    @classmethod
    def check_tools(cls, v: list[str]) -> list[str]:
        return _non_empty_items(v, "tool")

    @field_validator('github_link')
    @classmethod
    def check_github_link(cls, v: str) -> str:
        if v and not URL_PATTERN.match(v):
            raise ValueError("GitHub link must be a valid URL")
        return v

    @field_validator('deployed_url')
    @classmethod
    def check_deployed_url(cls, v: str) -> str:
        if v and not URL_PATTERN.match(v):
            raise ValueError("Deployed URL must be a valid URL")
        return v


def _non_empty_items(items: list[str], noun: str) -> list[str]:
    items = [item.strip() for item in items]
    if not items:
        raise ValueError(f"At least one {noun} is required")
    if not all(items):
        raise ValueError(f"Each {noun} must be a non-empty string")
    return items


class ProjectResponse(CamelORMModel):
    id: uuid.UUID
    title: str
    description: str
    features: list[str] = []
    tools: list[str] = []
    github_link: str = ""
    deployed_url: str = ""
    cloudinary_link: str = ""
    duration: str = ""
    challenges: str = ""
    cloudinary_video_url: str = ""
    cloudinary_video_public_id: str = ""
    cloudinary_thumbnail_url: str = ""
    cloudinary_thumbnail_public_id: str = ""
    created_at: datetime
    updated_at: datetime

    @field_validator('features', 'tools', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v if v is not None else []

    @field_validator(
        'github_link', 'deployed_url', 'cloudinary_link', 'duration', 'challenges',
        'cloudinary_video_url', 'cloudinary_video_public_id',
        'cloudinary_thumbnail_url', 'cloudinary_thumbnail_public_id',
        mode='before'
    )
    @classmethod
    def none_to_empty(cls, v):
        return v if v is not None else ""


class ProjectEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    project: ProjectResponse


class ProjectListEnvelope(BaseModel):
    success: bool = True
    count: int
    projects: list[ProjectResponse]
