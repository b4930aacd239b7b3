"""Content repository: record persistence with field-level validation.

Records cross this boundary as plain dict snapshots keyed by snake_case
field name (plus ``id``, ``created_at``, ``updated_at``), never as live
ORM objects, so callers cannot patch a row behind the repository's back.

Writes validate the *full* next record against the kind's field schema
and then perform a single commit. There is no version column: two
concurrent updates to the same id race and the last commit wins.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.errors import NotFound, RecordValidationError
from portfolio_api.schemas.base import error_messages
from portfolio_api.services.content_kinds import ContentKind


def validate_fields(kind: ContentKind, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Run the kind's field rules over a complete record. Returns clean values."""
    try:
        validated = kind.fields_schema.model_validate(dict(fields))
    except ValidationError as e:
        raise RecordValidationError(error_messages(e))
    return validated.model_dump()


class ContentRepository(ABC):
    """Persistence contract the content service writes through."""

    def __init__(self, kind: ContentKind):
        self.kind = kind

    @abstractmethod
    async def create(self, fields: Mapping[str, Any]) -> dict:
        ...

    @abstractmethod
    async def find_by_id(self, record_id: uuid.UUID) -> Optional[dict]:
        ...

    @abstractmethod
    async def update_by_id(self, record_id: uuid.UUID, fields: Mapping[str, Any]) -> dict:
        """Merge ``fields`` over the stored record, validate, write once."""

    @abstractmethod
    async def delete_by_id(self, record_id: uuid.UUID) -> None:
        ...

    @abstractmethod
    async def list_all(self) -> list[dict]:
        """All records, newest first."""


class SqlContentRepository(ContentRepository):
    """ContentRepository over an async SQLAlchemy session."""

    def __init__(self, kind: ContentKind, db: AsyncSession):
        super().__init__(kind)
        self.db = db
        self.model = kind.model

    async def create(self, fields: Mapping[str, Any]) -> dict:
        row = self.model(**validate_fields(self.kind, fields))
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return self._to_record(row)

    async def find_by_id(self, record_id: uuid.UUID) -> Optional[dict]:
        row = await self.db.get(self.model, record_id)
        return self._to_record(row) if row else None

    async def update_by_id(self, record_id: uuid.UUID, fields: Mapping[str, Any]) -> dict:
        row = await self.db.get(self.model, record_id)
        if not row:
            raise NotFound(self.kind.name)

        current = {name: getattr(row, name) for name in self.kind.stored_fields}
        merged = validate_fields(self.kind, {**current, **fields})
        for key, value in merged.items():
            setattr(row, key, value)
        row.updated_at = func.now()

        await self.db.commit()
        await self.db.refresh(row)
        return self._to_record(row)

    async def delete_by_id(self, record_id: uuid.UUID) -> None:
        row = await self.db.get(self.model, record_id)
        if not row:
            raise NotFound(self.kind.name)
        await self.db.delete(row)
        await self.db.commit()

    async def list_all(self) -> list[dict]:
        result = await self.db.execute(
            select(self.model).order_by(desc(self.model.created_at))
        )
        return [self._to_record(row) for row in result.scalars().all()]

    def _to_record(self, row) -> dict:
        """Convert SQLAlchemy model to a record snapshot."""
        record = {"id": row.id}
        for name in self.kind.stored_fields:
            value = getattr(row, name)
            record[name] = list(value) if isinstance(value, list) else value
        record["created_at"] = row.created_at
        record["updated_at"] = row.updated_at
        return record
