"""Error taxonomy for content operations.

Every ContentError knows the HTTP status it maps to and the stable,
client-safe message that goes into the response envelope. Details from
third-party services never end up in ``message``.
"""
from typing import Optional


class ContentError(Exception):
    """Base for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None):
        self.message = message
        self.errors = errors or {}
        super().__init__(message)


class MissingRequiredField(ContentError):
    """A required field is absent or blank after normalization."""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        message = message or f"{field} is required"
        super().__init__(message, {field: message})


class InvalidAttachment(ContentError):
    """An attached file has the wrong type or size for its slot."""

    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__(reason, {field: reason})


class MalformedId(ContentError):
    status_code = 400

    def __init__(self, resource: str):
        super().__init__(f"Invalid {resource} ID format")


class MalformedBody(ContentError):
    status_code = 400

    def __init__(self):
        super().__init__("Malformed request body")


class NotFound(ContentError):
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource.capitalize()} not found")


class UploadFailed(ContentError):
    """Uploading a slot's new media failed; nothing was written."""

    status_code = 500

    def __init__(self, slot: str):
        self.slot = slot
        super().__init__(f"Error uploading {slot}")


class RecordValidationError(ContentError):
    """The record's field rules rejected a write."""

    status_code = 400

    def __init__(self, errors: dict[str, str]):
        super().__init__("Validation error", errors)


class MediaStoreError(Exception):
    """Raised by media store backends. Never shown to clients."""
    pass
