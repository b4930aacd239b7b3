"""Read a content write request off the wire.

POST/PUT bodies are either JSON or multipart form data. Both come out as
a raw field mapping plus named file payloads for the normalizer.
"""
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from portfolio_api.errors import MalformedBody
from portfolio_api.services.normalizer import FilePayload


async def read_content_request(request: Request) -> tuple[dict[str, Any], dict[str, FilePayload]]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise MalformedBody()
        if not isinstance(body, dict):
            raise MalformedBody()
        return body, {}

    raw: dict[str, Any] = {}
    files: dict[str, FilePayload] = {}
    form = await request.form()
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            # Browsers send an empty part when no file was picked
            if not value.filename:
                continue
            files[key] = FilePayload(
                field_name=key,
                data=await value.read(),
                content_type=value.content_type or "application/octet-stream",
                filename=value.filename,
            )
        elif key in raw:
            # Repeated keys (FormData.append) become a list
            previous = raw[key]
            raw[key] = previous + [value] if isinstance(previous, list) else [previous, value]
        else:
            raw[key] = value
    return raw, files
