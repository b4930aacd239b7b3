"""Skill field rules and response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator
from portfolio_api.schemas.base import CamelModel, CamelORMModel, strip_or_empty

NAME_MAX_LENGTH = 100


class SkillFields(CamelModel):
    """Full set of stored Skill fields. Validating this is the write gate."""
    name: str = ""
    topics: list[str] = []
    image_url: str = ""
    cloudinary_image_public_id: str = ""

    @field_validator('name', 'image_url', 'cloudinary_image_public_id', mode='before')
    @classmethod
    def strip(cls, v):
        return strip_or_empty(v)

    @field_validator('name')
    @classmethod
    def check_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Name is required")
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
        return v

    @field_validator('image_url')
    @classmethod
    def check_image_url(cls, v: str) -> str:
        if not v:
            raise ValueError("Image URL is required")
        return v

    @field_validator('topics', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v if v is not None else []

    @field_validator('topics')
    @classmethod
    def check_topics(cls, v: list[str]) -> list[str]:
        v = [topic.strip() for topic in v]
        if not v:
            raise ValueError("At least one topic is required")
        if not all(v):
            raise ValueError("Each topic must be a non-empty string")
        return v


class SkillResponse(CamelORMModel):
    id: uuid.UUID
    name: str
    topics: list[str] = []
    image_url: str = ""
    cloudinary_image_public_id: str = ""
    created_at: datetime
    updated_at: datetime

    @field_validator('topics', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v if v is not None else []

    @field_validator('image_url', 'cloudinary_image_public_id', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v if v is not None else ""


class SkillEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    skill: SkillResponse


class SkillListEnvelope(BaseModel):
    success: bool = True
    count: int
    skills: list[SkillResponse]
