"""Media lifecycle coordinator.

Reconciles each media slot of a record across a create or update. Every
slot gets exactly one intent, picked by fixed precedence:

    new file attachment  >  direct (url, public id) reference  >  removal  >  keep

Resolution is two-phase. ``reconcile`` runs every upload first, in slot
order; if any upload fails, uploads already made by this call are
discarded and UploadFailed is raised before anything stale is touched.
The caller then writes the record once and either ``commit``s the
resolution (stale objects are deleted) or ``discard``s it (fresh uploads
are deleted). Delete failures are logged and never raised.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from pydantic.alias_generators import to_camel

from portfolio_api.errors import MediaStoreError, MissingRequiredField, UploadFailed
from portfolio_api.services.content_kinds import MediaSlot
from portfolio_api.services.media_store import MediaStore
from portfolio_api.services.normalizer import FilePayload, NormalizedRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaPair:
    url: str = ""
    remote_id: str = ""

    @property
    def empty(self) -> bool:
        return not self.remote_id

    @classmethod
    def from_record(cls, slot: MediaSlot, record: Optional[Mapping[str, Any]]) -> "MediaPair":
        if not record:
            return cls()
        return cls(record.get(slot.url_field) or "", record.get(slot.remote_id_field) or "")


EMPTY = MediaPair()


@dataclass(frozen=True)
class Keep:
    pass


@dataclass(frozen=True)
class ReplaceViaUpload:
    file: FilePayload


@dataclass(frozen=True)
class ReplaceViaDirectReference:
    pair: MediaPair


@dataclass(frozen=True)
class Remove:
    pass


Intent = Union[Keep, ReplaceViaUpload, ReplaceViaDirectReference, Remove]


def resolve_intent(slot: MediaSlot, request: NormalizedRequest) -> Intent:
    """Pick the single intent for ``slot`` from the normalized request."""
    upload = request.files.get(slot.name)
    if upload is not None:
        return ReplaceViaUpload(upload)

    url = request.fields.get(slot.url_field)
    if url is not None:
        url = url.strip()
    remote_id = (request.fields.get(slot.remote_id_field) or "").strip()
    if url:
        if not remote_id:
            raise MissingRequiredField(
                to_camel(slot.remote_id_field),
                f"A public id is required when setting {to_camel(slot.url_field)}",
            )
        return ReplaceViaDirectReference(MediaPair(url, remote_id))

    if request.fields.get(slot.remove_flag) or url == "":
        return Remove()
    return Keep()


@dataclass
class MediaResolution:
    """Resolved media fields plus the remote objects still to clean up."""
    # media-pair field values to persist, one pair per slot
    fields: dict[str, str] = field(default_factory=dict)
    # (slot, remote id) pairs
    uploaded: list[tuple[MediaSlot, str]] = field(default_factory=list)
    stale: list[tuple[MediaSlot, str]] = field(default_factory=list)


class MediaCoordinator:
    """Drives media store calls for record writes and deletes."""

    def __init__(self, store: MediaStore, timeout: Optional[float] = None):
        self.store = store
        self.timeout = timeout

    async def reconcile(
        self,
        slots: tuple[MediaSlot, ...],
        request: NormalizedRequest,
        previous: Optional[Mapping[str, Any]] = None,
    ) -> MediaResolution:
        """Resolve every slot against ``previous`` (None when creating).

        Raises MissingRequiredField before any remote call, and
        UploadFailed after cleaning up this call's own uploads.
        """
        creating = previous is None
        planned = []
        for slot in slots:
            intent = resolve_intent(slot, request)
            if creating and slot.required_on_create and isinstance(intent, (Keep, Remove)):
                raise MissingRequiredField(slot.name, slot.missing_message or f"{slot.name} is required")
            planned.append((slot, intent, MediaPair.from_record(slot, previous)))

        resolution = MediaResolution()
        for slot, intent, before in planned:
            if isinstance(intent, ReplaceViaUpload):
                after = await self._upload(slot, intent.file, resolution)
                if not before.empty:
                    resolution.stale.append((slot, before.remote_id))
            elif isinstance(intent, ReplaceViaDirectReference):
                after = intent.pair
                if not before.empty and before.remote_id != after.remote_id:
                    resolution.stale.append((slot, before.remote_id))
            elif isinstance(intent, Remove):
                after = EMPTY
                if not before.empty:
                    resolution.stale.append((slot, before.remote_id))
            else:
                after = before
            resolution.fields[slot.url_field] = after.url
            resolution.fields[slot.remote_id_field] = after.remote_id
        return resolution

    async def commit(self, resolution: MediaResolution) -> None:
        """Release media the written record no longer references."""
        for slot, remote_id in resolution.stale:
            await self._delete(slot, remote_id)

    async def discard(self, resolution: MediaResolution) -> None:
        """Release media uploaded for a write that did not happen."""
        if resolution.uploaded:
            logger.warning(
                "Discarding %d upload(s) after failed write: %s",
                len(resolution.uploaded), [rid for _, rid in resolution.uploaded],
            )
        for slot, remote_id in resolution.uploaded:
            await self._delete(slot, remote_id)

    async def release(self, slots: tuple[MediaSlot, ...], record: Mapping[str, Any]) -> None:
        """Release every media object ``record`` owns, before it is deleted."""
        for slot in slots:
            pair = MediaPair.from_record(slot, record)
            if not pair.empty:
                await self._delete(slot, pair.remote_id)

    async def _upload(self, slot: MediaSlot, file: FilePayload, resolution: MediaResolution) -> MediaPair:
        try:
            stored = await asyncio.wait_for(
                self.store.upload(file.data, slot.kind, slot.folder, filename=file.filename),
                timeout=self.timeout,
            )
        except (MediaStoreError, asyncio.TimeoutError):
            logger.exception(f"UploadFailed: {slot.name} upload to {slot.folder}")
            await self.discard(resolution)
            raise UploadFailed(slot.name)
        logger.info(f"Uploaded {slot.name} as {stored.remote_id}")
        resolution.uploaded.append((slot, stored.remote_id))
        return MediaPair(stored.url, stored.remote_id)

    async def _delete(self, slot: MediaSlot, remote_id: str) -> None:
        try:
            await asyncio.wait_for(self.store.delete(remote_id, slot.kind), timeout=self.timeout)
        except Exception as e:
            logger.warning(f"DeleteFailed: {slot.name} {remote_id} left in media store ({e!r})")
            return
        logger.info(f"Deleted {slot.name} {remote_id}")
