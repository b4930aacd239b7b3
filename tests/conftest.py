"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- media_store: Recording media store with injectable failures
- project_repo / skill_repo: In-memory repositories using the real field rules
- project_service / skill_service: Content services wired to the above
- image_file / video_file: Sample attachments
"""

import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

import pytest

from portfolio_api.errors import MediaStoreError, NotFound
from portfolio_api.services.content_kinds import PROJECT, SKILL, ContentKind
from portfolio_api.services.content_service import ContentService
from portfolio_api.services.media_store import MediaStore, StoredMedia
from portfolio_api.services.normalizer import FilePayload
from portfolio_api.services.repository import ContentRepository, validate_fields


class FakeMediaStore(MediaStore):
    """Records every call in order. Queue ids with ``next_ids``."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.next_ids: list[str] = []
        self.fail_upload_for: set[str] = set()   # folders whose uploads fail
        self.fail_delete = False
        self._counter = 0

    async def upload(self, data: bytes, kind: str, folder: str, filename: str = "") -> StoredMedia:
        self.calls.append(("upload", kind, folder))
        if folder in self.fail_upload_for:
            raise MediaStoreError(f"upload to {folder} rejected")
        if self.next_ids:
            remote_id = self.next_ids.pop(0)
        else:
            self._counter += 1
            remote_id = f"{folder}/m{self._counter}"
        return StoredMedia(url=f"https://x/{remote_id}", remote_id=remote_id)

    async def delete(self, remote_id: str, kind: str) -> None:
        self.calls.append(("delete", remote_id, kind))
        if self.fail_delete:
            raise MediaStoreError(f"delete of {remote_id} rejected")

    @property
    def deletes(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "delete"]

    @property
    def uploads(self) -> list[tuple]:
        return [call for call in self.calls if call[0] == "upload"]


class InMemoryRepository(ContentRepository):
    """ContentRepository over a dict, applying the same field rules as SQL."""

    def __init__(self, kind: ContentKind):
        super().__init__(kind)
        self.rows: dict[uuid.UUID, dict] = {}
        self.writes = 0
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def create(self, fields: Mapping[str, Any]) -> dict:
        clean = validate_fields(self.kind, fields)
        now = self._tick()
        record = {"id": uuid.uuid4(), **clean, "created_at": now, "updated_at": now}
        self.rows[record["id"]] = record
        self.writes += 1
        return copy.deepcopy(record)

    async def find_by_id(self, record_id: uuid.UUID) -> Optional[dict]:
        record = self.rows.get(record_id)
        return copy.deepcopy(record) if record else None

    async def update_by_id(self, record_id: uuid.UUID, fields: Mapping[str, Any]) -> dict:
        if record_id not in self.rows:
            raise NotFound(self.kind.name)
        current = self.rows[record_id]
        stored = {name: current[name] for name in self.kind.stored_fields}
        clean = validate_fields(self.kind, {**stored, **fields})
        self.rows[record_id] = {**current, **clean, "updated_at": self._tick()}
        self.writes += 1
        return copy.deepcopy(self.rows[record_id])

    async def delete_by_id(self, record_id: uuid.UUID) -> None:
        if record_id not in self.rows:
            raise NotFound(self.kind.name)
        del self.rows[record_id]

    async def list_all(self) -> list[dict]:
        records = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(records)


@pytest.fixture
def media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def project_repo() -> InMemoryRepository:
    return InMemoryRepository(PROJECT)


@pytest.fixture
def skill_repo() -> InMemoryRepository:
    return InMemoryRepository(SKILL)


@pytest.fixture
def project_service(project_repo, media_store) -> ContentService:
    return ContentService(PROJECT, project_repo, media_store, media_timeout=5)


@pytest.fixture
def skill_service(skill_repo, media_store) -> ContentService:
    return ContentService(SKILL, skill_repo, media_store, media_timeout=5)


@pytest.fixture
def video_file() -> FilePayload:
    return FilePayload("video", b"\x00\x00\x00\x18ftypmp42", "video/mp4", "demo.mp4")


@pytest.fixture
def thumbnail_file() -> FilePayload:
    return FilePayload("thumbnail", b"\x89PNG\r\n", "image/png", "thumb.png")


@pytest.fixture
def image_file() -> FilePayload:
    return FilePayload("image", b"\x89PNG\r\n", "image/png", "python.png")


@pytest.fixture
def project_fields() -> dict:
    return {
        "title": "Portfolio",
        "description": "My site",
        "features": ["a"],
        "tools": ["b"],
    }
