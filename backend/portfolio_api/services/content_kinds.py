"""Descriptors for the two content kinds (Project, Skill).

A ContentKind tells the normalizer which wire fields exist and which are
required, tells the coordinator which media slots to reconcile, and tells
the repository which ORM model and field schema to write through.
"""
from dataclasses import dataclass, field
from typing import Type

from pydantic.alias_generators import to_camel

from portfolio_api.models.base import Base
from portfolio_api.models.project import Project
from portfolio_api.models.skill import Skill
from portfolio_api.schemas.base import CamelModel
from portfolio_api.schemas.project import ProjectFields
from portfolio_api.schemas.skill import SkillFields

VIDEO = "video"
IMAGE = "image"


@dataclass(frozen=True)
class MediaSlot:
    """One independently reconciled media pair on a record."""
    name: str               # file field name on the wire, e.g. "video"
    kind: str               # VIDEO or IMAGE, as understood by the media store
    folder: str
    url_field: str
    remote_id_field: str
    remove_flag: str
    required_on_create: bool = False
    missing_message: str = ""

    @property
    def fields(self) -> tuple[str, str]:
        return (self.url_field, self.remote_id_field)


@dataclass(frozen=True)
class ContentKind:
    name: str
    plural: str
    model: Type[Base]
    fields_schema: Type[CamelModel]
    scalar_fields: tuple[str, ...]
    list_fields: tuple[str, ...]
    # field -> message used when the field is missing or blank
    required: dict[str, str] = field(default_factory=dict)
    slots: tuple[MediaSlot, ...] = ()

    @property
    def media_fields(self) -> tuple[str, ...]:
        return tuple(f for slot in self.slots for f in slot.fields)

    @property
    def stored_fields(self) -> tuple[str, ...]:
        return self.scalar_fields + self.list_fields + self.media_fields

    @property
    def flag_fields(self) -> tuple[str, ...]:
        return tuple(slot.remove_flag for slot in self.slots)

    def wire_name(self, name: str) -> str:
        return to_camel(name)

    def canonical_name(self, wire: str) -> str | None:
        """Map a camelCase or snake_case wire key to a recognised field name."""
        known = self.stored_fields + self.flag_fields
        if wire in known:
            return wire
        for name in known:
            if to_camel(name) == wire:
                return name
        return None


PROJECT = ContentKind(
    name="project",
    plural="projects",
    model=Project,
    fields_schema=ProjectFields,
    scalar_fields=(
        "title", "description", "github_link", "deployed_url",
        "cloudinary_link", "duration", "challenges",
    ),
    list_fields=("features", "tools"),
    required={
        "title": "Title is required",
        "description": "Description is required",
        "features": "At least one feature is required",
        "tools": "At least one tool is required",
    },
    slots=(
        MediaSlot(
            name="video",
            kind=VIDEO,
            folder="project-videos",
            url_field="cloudinary_video_url",
            remote_id_field="cloudinary_video_public_id",
            remove_flag="remove_video",
        ),
        MediaSlot(
            name="thumbnail",
            kind=IMAGE,
            folder="project-thumbnails",
            url_field="cloudinary_thumbnail_url",
            remote_id_field="cloudinary_thumbnail_public_id",
            remove_flag="remove_thumbnail",
        ),
    ),
)

SKILL = ContentKind(
    name="skill",
    plural="skills",
    model=Skill,
    fields_schema=SkillFields,
    scalar_fields=("name",),
    list_fields=("topics",),
    required={
        "name": "Skill name is required",
        "topics": "At least one topic is required",
    },
    slots=(
        MediaSlot(
            name="image",
            kind=IMAGE,
            folder="skill-icons",
            url_field="image_url",
            remote_id_field="cloudinary_image_public_id",
            remove_flag="remove_image",
            required_on_create=True,
            missing_message="Skill icon image is required",
        ),
    ),
)
