"""Skill model - skill card with a required icon image."""
import uuid
from sqlalchemy import String, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from portfolio_api.models.base import Base, TimestampMixin


class Skill(Base, TimestampMixin):
    __tablename__ = "skills"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    topics: Mapped[list] = mapped_column(JSON, default=list)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    cloudinary_image_public_id: Mapped[str] = mapped_column(String(500), default="")

    __table_args__ = (
        Index("idx_skills_created_at", "created_at", postgresql_using="btree"),
    )
