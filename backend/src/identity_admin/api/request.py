"""Request decoding helpers for API Gateway proxy events."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from identity_admin.exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


def _parse_body(event: Mapping[str, Any]) -> dict[str, Any]:
    """Parse the JSON request body; an absent body is an empty object."""
    raw = event.get("body") or ""
    if not raw:
        return {}
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        body = json.loads(raw)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _parse_path(path: str) -> Tuple[str, Optional[str]]:
    """Return (resource, resource_id) from the request path.

    An optional ``v{number}`` prefix is ignored.
    """
    parts = [segment for segment in path.split("/") if segment]
    if parts and _is_version_segment(parts[0]):
        parts = parts[1:]
    if not parts:
        return "", None
    resource = parts[0]
    resource_id = parts[1] if len(parts) > 1 else None
    return resource, resource_id


def _is_version_segment(segment: str) -> bool:
    return segment.startswith("v") and segment[1:].isdigit()


def _request_data(event: Mapping[str, Any]) -> dict[str, Any]:
    """Merge query string, path parameters and body, body taking priority."""
    data: dict[str, Any] = {}
    data.update(event.get("queryStringParameters") or {})
    data.update(event.get("pathParameters") or {})
    data.update(_parse_body(event))
    return data


def decode_request(model: type[M], data: Mapping[str, Any]) -> M:
    """Validate request data into *model*.

    Raises:
        ValidationError: Naming the first offending field.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors()
        field = ".".join(str(loc) for loc in errors[0]["loc"]) if errors else None
        raise ValidationError(f"Invalid value for {field}", field=field) from exc
