"""Content service: create/read/update/delete for one content kind.

Each write runs normalizer -> media coordinator -> one repository write.
Nothing is written to the repository unless every media slot resolved,
and stale media is only released after the write has landed.
"""
import logging
import uuid
from typing import Any, Mapping, Optional

from portfolio_api.errors import MalformedId, NotFound
from portfolio_api.services.content_kinds import ContentKind
from portfolio_api.services.media_coordinator import MediaCoordinator
from portfolio_api.services.media_store import MediaStore
from portfolio_api.services.normalizer import FilePayload, NormalizedRequest, normalize
from portfolio_api.services.repository import ContentRepository

logger = logging.getLogger(__name__)


class ContentService:

    def __init__(
        self,
        kind: ContentKind,
        repository: ContentRepository,
        media_store: MediaStore,
        media_timeout: Optional[float] = None,
    ):
        self.kind = kind
        self.repository = repository
        self.coordinator = MediaCoordinator(media_store, timeout=media_timeout)

    async def list(self) -> list[dict]:
        return await self.repository.list_all()

    async def get(self, raw_id: str) -> dict:
        return await self._fetch(self._parse_id(raw_id))

    async def create(
        self, raw: Mapping[str, Any], files: Optional[Mapping[str, FilePayload]] = None,
    ) -> dict:
        request = normalize(self.kind, raw, files)
        resolution = await self.coordinator.reconcile(self.kind.slots, request)

        fields = {**self._plain_fields(request), **resolution.fields}
        try:
            record = await self.repository.create(fields)
        except Exception:
            await self.coordinator.discard(resolution)
            raise
        logger.info(f"Created {self.kind.name} {record['id']}")
        return record

    async def update(
        self, raw_id: str, raw: Mapping[str, Any],
        files: Optional[Mapping[str, FilePayload]] = None,
    ) -> dict:
        record_id = self._parse_id(raw_id)
        request = normalize(self.kind, raw, files, partial=True)
        existing = await self._fetch(record_id)
        resolution = await self.coordinator.reconcile(self.kind.slots, request, existing)

        # Last write wins per field; media pairs always come from the resolution
        changes = {**self._plain_fields(request), **resolution.fields}
        try:
            record = await self.repository.update_by_id(record_id, changes)
        except Exception:
            await self.coordinator.discard(resolution)
            raise
        await self.coordinator.commit(resolution)
        logger.info(f"Updated {self.kind.name} {record_id}")
        return record

    async def delete(self, raw_id: str) -> dict:
        """Delete a record and, best-effort, the media it owns.

        Returns the record as it was before deletion.
        """
        record_id = self._parse_id(raw_id)
        record = await self._fetch(record_id)
        await self.coordinator.release(self.kind.slots, record)
        await self.repository.delete_by_id(record_id)
        logger.info(f"Deleted {self.kind.name} {record_id}")
        return record

    async def _fetch(self, record_id: uuid.UUID) -> dict:
        record = await self.repository.find_by_id(record_id)
        if record is None:
            raise NotFound(self.kind.name)
        return record

    def _parse_id(self, raw_id: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(raw_id))
        except ValueError:
            raise MalformedId(self.kind.name)

    def _plain_fields(self, request: NormalizedRequest) -> dict[str, Any]:
        """Non-media stored fields present in the request."""
        plain = self.kind.scalar_fields + self.kind.list_fields
        return {k: v for k, v in request.fields.items() if k in plain}
