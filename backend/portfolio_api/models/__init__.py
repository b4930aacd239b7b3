"""Import all models so SQLAlchemy metadata knows about them."""
from portfolio_api.models.base import Base
from portfolio_api.models.project import Project
from portfolio_api.models.skill import Skill

__all__ = ["Base", "Project", "Skill"]
