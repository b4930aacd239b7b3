"""Project model - portfolio project with optional video and thumbnail."""
import uuid
from sqlalchemy import String, Text, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from portfolio_api.models.base import Base, TimestampMixin


class Project(Base, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    features: Mapped[list] = mapped_column(JSON, default=list)
    tools: Mapped[list] = mapped_column(JSON, default=list)
    github_link: Mapped[str] = mapped_column(String(1000), default="")
    deployed_url: Mapped[str] = mapped_column(String(1000), default="")
    cloudinary_link: Mapped[str] = mapped_column(String(1000), default="")
    duration: Mapped[str] = mapped_column(String(200), default="")
    challenges: Mapped[str] = mapped_column(Text, default="")

    # Media pairs: url and public id are empty together
    cloudinary_video_url: Mapped[str] = mapped_column(String(1000), default="")
    cloudinary_video_public_id: Mapped[str] = mapped_column(String(500), default="")
    cloudinary_thumbnail_url: Mapped[str] = mapped_column(String(1000), default="")
    cloudinary_thumbnail_public_id: Mapped[str] = mapped_column(String(500), default="")

    __table_args__ = (
        Index("idx_projects_created_at", "created_at", postgresql_using="btree"),
    )
