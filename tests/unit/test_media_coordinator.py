"""Unit tests for media intent resolution and reconciliation."""

import asyncio

import pytest

from portfolio_api.errors import MissingRequiredField, UploadFailed
from portfolio_api.services.content_kinds import PROJECT, SKILL
from portfolio_api.services.media_coordinator import (
    Keep,
    MediaCoordinator,
    MediaPair,
    Remove,
    ReplaceViaDirectReference,
    ReplaceViaUpload,
    resolve_intent,
)
from portfolio_api.services.normalizer import NormalizedRequest

VIDEO_SLOT, THUMBNAIL_SLOT = PROJECT.slots
IMAGE_SLOT = SKILL.slots[0]

WITH_VIDEO = {
    "cloudinary_video_url": "https://x/v1",
    "cloudinary_video_public_id": "v1",
    "cloudinary_thumbnail_url": "",
    "cloudinary_thumbnail_public_id": "",
}


class TestResolveIntent:
    """Precedence: file > direct reference > removal > keep."""

    def test_nothing_supplied_is_keep(self):
        assert resolve_intent(VIDEO_SLOT, NormalizedRequest()) == Keep()

    def test_file_wins_over_everything(self, video_file):
        request = NormalizedRequest(
            fields={
                "cloudinary_video_url": "https://x/other",
                "cloudinary_video_public_id": "other",
                "remove_video": True,
            },
            files={"video": video_file},
        )

        assert resolve_intent(VIDEO_SLOT, request) == ReplaceViaUpload(video_file)

    def test_direct_reference_wins_over_removal(self):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": "https://x/v9",
            "cloudinary_video_public_id": "v9",
            "remove_video": True,
        })

        assert resolve_intent(VIDEO_SLOT, request) == ReplaceViaDirectReference(MediaPair("https://x/v9", "v9"))

    def test_removal_flag(self):
        request = NormalizedRequest(fields={"remove_video": True})

        assert resolve_intent(VIDEO_SLOT, request) == Remove()

    def test_explicit_empty_url_is_removal(self):
        request = NormalizedRequest(fields={"cloudinary_video_url": ""})

        assert resolve_intent(VIDEO_SLOT, request) == Remove()

    def test_false_flag_is_keep(self):
        request = NormalizedRequest(fields={"remove_video": False})

        assert resolve_intent(VIDEO_SLOT, request) == Keep()

    def test_url_without_public_id_is_rejected(self):
        request = NormalizedRequest(fields={"cloudinary_video_url": "https://x/v9"})

        with pytest.raises(MissingRequiredField) as exc:
            resolve_intent(VIDEO_SLOT, request)

        assert exc.value.field == "cloudinaryVideoPublicId"

    def test_blank_url_is_removal(self):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": "   ",
            "cloudinary_video_public_id": "orphan",
        })

        assert resolve_intent(VIDEO_SLOT, request) == Remove()

    def test_url_with_blank_public_id_is_rejected(self):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": " https://x/v9 ",
            "cloudinary_video_public_id": "  ",
        })

        with pytest.raises(MissingRequiredField) as exc:
            resolve_intent(VIDEO_SLOT, request)

        assert exc.value.field == "cloudinaryVideoPublicId"

    def test_reference_values_are_trimmed(self):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": " https://x/v9 ",
            "cloudinary_video_public_id": " v9\t",
        })

        assert resolve_intent(VIDEO_SLOT, request) == ReplaceViaDirectReference(MediaPair("https://x/v9", "v9"))

    def test_slots_resolve_independently(self, video_file):
        request = NormalizedRequest(fields={"remove_thumbnail": True}, files={"video": video_file})

        assert isinstance(resolve_intent(VIDEO_SLOT, request), ReplaceViaUpload)
        assert resolve_intent(THUMBNAIL_SLOT, request) == Remove()


class TestReconcile:

    @pytest.fixture
    def coordinator(self, media_store):
        return MediaCoordinator(media_store, timeout=5)

    @pytest.mark.asyncio
    async def test_keep_carries_previous_pair(self, coordinator, media_store):
        resolution = await coordinator.reconcile(PROJECT.slots, NormalizedRequest(), WITH_VIDEO)

        assert resolution.fields == WITH_VIDEO
        assert resolution.stale == []
        assert media_store.calls == []

    @pytest.mark.asyncio
    async def test_upload_replaces_and_marks_previous_stale(self, coordinator, media_store, video_file):
        media_store.next_ids = ["v2"]
        request = NormalizedRequest(files={"video": video_file})

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)

        assert resolution.fields["cloudinary_video_url"] == "https://x/v2"
        assert resolution.fields["cloudinary_video_public_id"] == "v2"
        assert media_store.calls == [("upload", "video", "project-videos")]
        assert [rid for _, rid in resolution.stale] == ["v1"]

        await coordinator.commit(resolution)

        assert media_store.calls == [
            ("upload", "video", "project-videos"),
            ("delete", "v1", "video"),
        ]

    @pytest.mark.asyncio
    async def test_upload_failure_never_deletes_previous(self, coordinator, media_store, video_file):
        media_store.fail_upload_for = {"project-videos"}
        request = NormalizedRequest(fields={"remove_thumbnail": True}, files={"video": video_file})

        with pytest.raises(UploadFailed) as exc:
            await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)

        assert exc.value.slot == "video"
        assert media_store.deletes == []

    @pytest.mark.asyncio
    async def test_later_upload_failure_discards_earlier_uploads(
        self, coordinator, media_store, video_file, thumbnail_file,
    ):
        media_store.next_ids = ["v2"]
        media_store.fail_upload_for = {"project-thumbnails"}
        request = NormalizedRequest(files={"video": video_file, "thumbnail": thumbnail_file})

        with pytest.raises(UploadFailed) as exc:
            await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)

        assert exc.value.slot == "thumbnail"
        # only the fresh v2 is cleaned up; the live v1 is untouched
        assert media_store.deletes == ["v2"]

    @pytest.mark.asyncio
    async def test_upload_timeout_is_upload_failure(self, media_store, video_file):
        class SlowStore(type(media_store)):
            async def upload(self, *args, **kwargs):
                await asyncio.sleep(1)

        coordinator = MediaCoordinator(SlowStore(), timeout=0.01)
        request = NormalizedRequest(files={"video": video_file})

        with pytest.raises(UploadFailed):
            await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)

    @pytest.mark.asyncio
    async def test_direct_reference_with_new_id_marks_previous_stale(self, coordinator, media_store):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": "https://x/v3", "cloudinary_video_public_id": "v3",
        })

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)

        assert resolution.fields["cloudinary_video_public_id"] == "v3"
        assert [rid for _, rid in resolution.stale] == ["v1"]
        assert media_store.uploads == []

    @pytest.mark.asyncio
    async def test_direct_reference_with_same_id_deletes_nothing(self, coordinator, media_store):
        request = NormalizedRequest(fields={
            "cloudinary_video_url": "https://x/v1?w=400", "cloudinary_video_public_id": "v1",
        })

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)
        await coordinator.commit(resolution)

        assert resolution.fields["cloudinary_video_url"] == "https://x/v1?w=400"
        assert media_store.calls == []

    @pytest.mark.asyncio
    async def test_remove_empties_pair(self, coordinator, media_store):
        request = NormalizedRequest(fields={"remove_video": True})

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)
        await coordinator.commit(resolution)

        assert resolution.fields["cloudinary_video_url"] == ""
        assert resolution.fields["cloudinary_video_public_id"] == ""
        assert media_store.deletes == ["v1"]

    @pytest.mark.asyncio
    async def test_remove_on_empty_slot_makes_no_calls(self, coordinator, media_store):
        request = NormalizedRequest(fields={"remove_thumbnail": True})

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)
        await coordinator.commit(resolution)

        assert resolution.fields["cloudinary_thumbnail_public_id"] == ""
        assert media_store.calls == []

    @pytest.mark.asyncio
    async def test_delete_failure_is_swallowed(self, coordinator, media_store):
        media_store.fail_delete = True
        request = NormalizedRequest(fields={"remove_video": True})

        resolution = await coordinator.reconcile(PROJECT.slots, request, WITH_VIDEO)
        await coordinator.commit(resolution)

        assert media_store.deletes == ["v1"]
        assert resolution.fields["cloudinary_video_public_id"] == ""

    @pytest.mark.asyncio
    async def test_unexpected_delete_error_is_swallowed(self, media_store):
        class BrokenStore(type(media_store)):
            async def delete(self, remote_id, kind):
                await super().delete(remote_id, kind)
                raise RuntimeError("sdk blew up")

        store = BrokenStore()
        coordinator = MediaCoordinator(store, timeout=5)
        resolution = await coordinator.reconcile(
            PROJECT.slots, NormalizedRequest(fields={"remove_video": True}), WITH_VIDEO,
        )

        assert await coordinator.commit(resolution) is None
        assert store.deletes == ["v1"]

    @pytest.mark.asyncio
    async def test_required_slot_missing_on_create(self, coordinator, media_store):
        with pytest.raises(MissingRequiredField) as exc:
            await coordinator.reconcile(SKILL.slots, NormalizedRequest(fields={"name": "Go"}))

        assert exc.value.message == "Skill icon image is required"
        assert media_store.calls == []

    @pytest.mark.asyncio
    async def test_required_slot_not_enforced_on_update(self, coordinator, media_store):
        previous = {"image_url": "https://x/i1", "cloudinary_image_public_id": "i1"}

        resolution = await coordinator.reconcile(SKILL.slots, NormalizedRequest(), previous)

        assert resolution.fields == previous

    @pytest.mark.asyncio
    async def test_release_deletes_every_owned_object(self, coordinator, media_store):
        record = {**WITH_VIDEO, "cloudinary_thumbnail_url": "https://x/t1", "cloudinary_thumbnail_public_id": "t1"}

        await coordinator.release(PROJECT.slots, record)

        assert media_store.calls == [("delete", "v1", "video"), ("delete", "t1", "image")]
