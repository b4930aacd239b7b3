"""Field normalizer: wire input -> canonical record-shaped mapping.

Requests arrive either as JSON or as multipart form data. Form clients
encode list fields three different ways (a JSON array string, repeated
keys, or bracket-indexed keys like ``features[0]``), and send booleans
as strings. Everything downstream sees only the canonical shape built
here: snake_case field names, scalars as strings, list fields as
ordered string lists, removal flags as bools.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from portfolio_api.config import settings
from portfolio_api.errors import InvalidAttachment, MissingRequiredField
from portfolio_api.services.content_kinds import ContentKind, MediaSlot, VIDEO

logger = logging.getLogger(__name__)

INDEXED_KEY = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\[(?P<index>\d+)\]$")

VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".wmv", ".flv", ".webm", ".mkv"}
IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}


@dataclass(frozen=True)
class FilePayload:
    """An attached file, already read into memory."""
    field_name: str
    data: bytes
    content_type: str = "application/octet-stream"
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class NormalizedRequest:
    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, FilePayload] = field(default_factory=dict)


def normalize(
    kind: ContentKind,
    raw: Mapping[str, Any],
    files: Optional[Mapping[str, FilePayload]] = None,
    *,
    partial: bool = False,
) -> NormalizedRequest:
    """Normalize one request for ``kind``.

    With ``partial=False`` (create) every required field must be present
    and non-blank. With ``partial=True`` (update) absent fields are fine,
    but a required field that is present must not be blank.

    Raises MissingRequiredField or InvalidAttachment; never touches the
    database or the media store.
    """
    raw = dict(raw)
    indexed = _collect_indexed(raw)

    fields: dict[str, Any] = {}
    for key, value in raw.items():
        name = kind.canonical_name(key)
        if name is None:
            continue
        if name in kind.list_fields:
            fields[name] = _to_list(value)
        elif name in kind.flag_fields:
            fields[name] = _to_flag(value)
        else:
            fields[name] = _to_scalar(value)

    for key, items in indexed.items():
        name = kind.canonical_name(key)
        if name in kind.list_fields and items:
            fields[name] = items

    _check_required(kind, fields, partial)
    checked_files = _check_files(kind, files or {})
    return NormalizedRequest(fields=fields, files=checked_files)


def _collect_indexed(raw: dict[str, Any]) -> dict[str, list[str]]:
    """Pop ``name[i]`` keys out of ``raw`` and gather them by index order."""
    buckets: dict[str, dict[int, Any]] = {}
    for key in list(raw):
        match = INDEXED_KEY.match(key)
        if not match:
            continue
        value = raw.pop(key)
        buckets.setdefault(match.group("name"), {})[int(match.group("index"))] = value

    collected = {}
    for name, by_index in buckets.items():
        ordered = [_to_scalar(by_index[i]) for i in sorted(by_index)]
        collected[name] = [item for item in ordered if item]
    return collected


def _to_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_to_scalar(item) for item in value if item is not None]
    text = _to_scalar(value)
    if not text.strip():
        return []
    try:
        parsed = json.loads(text)
    except ValueError:
        return [text]
    if isinstance(parsed, list):
        return [_to_scalar(item) for item in parsed if item is not None]
    return [text]


def _to_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        # Repeated form key for a scalar field: last one wins
        return _to_scalar(value[-1]) if value else ""
    return str(value)


def _to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _to_scalar(value).strip().lower() == "true"


def _check_required(kind: ContentKind, fields: dict[str, Any], partial: bool) -> None:
    for name, message in kind.required.items():
        if name not in fields:
            if partial:
                continue
            raise MissingRequiredField(kind.wire_name(name), message)
        value = fields[name]
        blank = not value if name in kind.list_fields else not value.strip()
        if blank:
            raise MissingRequiredField(kind.wire_name(name), message)


def _check_files(kind: ContentKind, files: Mapping[str, FilePayload]) -> dict[str, FilePayload]:
    slots = {slot.name: slot for slot in kind.slots}
    checked = {}
    for field_name, payload in files.items():
        slot = slots.get(field_name)
        if slot is None:
            raise InvalidAttachment(field_name, f"Unexpected file field '{field_name}'")
        _check_file_type(slot, payload)
        checked[field_name] = payload
    return checked


def _check_file_type(slot: MediaSlot, payload: FilePayload) -> None:
    ext = Path(payload.filename).suffix.lower()
    mime = (payload.content_type or "").lower()
    if slot.kind == VIDEO:
        allowed, prefix, limit = VIDEO_EXTENSIONS, "video/", settings.MAX_VIDEO_BYTES
        label = "video"
    else:
        allowed, prefix, limit = IMAGE_EXTENSIONS, "image/", settings.MAX_IMAGE_BYTES
        label = "image"

    mime_ok = mime.startswith(prefix) or any(e.lstrip(".") in mime for e in allowed)
    if ext not in allowed or not mime_ok:
        logger.info(f"Rejected {slot.name} attachment {payload.filename!r} ({mime})")
        raise InvalidAttachment(slot.name, f"Only {label} files are allowed!")
    if payload.size > limit:
        raise InvalidAttachment(
            slot.name, f"File too large: {label} limit is {limit // (1024 * 1024)}MB"
        )
