"""Base schema classes with camelCase alias generation.

All API schemas inherit from these instead of BaseModel directly.
Backend Python code stays snake_case. API JSON output becomes camelCase.
"""
import re
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)


class CamelModel(BaseModel):
    """Base for record field schemas. Accepts and outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "protected_namespaces": (),
    }


class CamelORMModel(BaseModel):
    """Base for response schemas. Reads from SQLAlchemy, outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }


def strip_or_empty(v):
    """Trim strings; None becomes the empty string."""
    if v is None:
        return ""
    return v.strip() if isinstance(v, str) else v


def error_messages(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into {camelField: message}.

    Messages raised from our own validators are used verbatim, without
    pydantic's "Value error, " prefix.
    """
    messages: dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "record"
        if "_" in field:
            field = to_camel(field)
        ctx_error = (err.get("ctx") or {}).get("error")
        messages.setdefault(field, str(ctx_error) if ctx_error else err["msg"])
    return messages
