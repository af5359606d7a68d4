"""API Gateway response rendering for identity Lambdas."""

from __future__ import annotations

import json
import os
from typing import Any
from typing import Mapping
from typing import Optional

from identity_admin.api.schemas import Envelope
from identity_admin.envelope import encode_envelope
from identity_admin.exceptions import EncodingError
from identity_admin.exceptions import ValidationError


def validate_content_type(
    event: Mapping[str, Any],
    required_methods: tuple[str, ...] = ("POST", "PUT", "PATCH", "DELETE"),
) -> None:
    """Require ``Content-Type: application/json`` on requests with a body.

    Raises:
        ValidationError: If the header is missing or not JSON.
    """
    if event.get("httpMethod", "") not in required_methods:
        return
    if not event.get("body"):
        return

    headers = event.get("headers") or {}
    content_type = None
    for key, value in headers.items():
        if key.lower() == "content-type":
            content_type = str(value).lower().strip()
            break

    if not content_type:
        raise ValidationError(
            "Content-Type header is required for requests with a body",
            field="Content-Type",
        )
    # Allows parameters such as "application/json; charset=utf-8"
    if not content_type.startswith("application/json"):
        raise ValidationError(
            "Content-Type must be application/json",
            field="Content-Type",
        )


def get_security_headers() -> dict[str, str]:
    """Headers that keep credentials and tokens out of caches and frames."""
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Cache-Control": "no-store, no-cache, must-revalidate",
        "Pragma": "no-cache",
    }


def get_cors_headers(
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, str]:
    """CORS headers for the request origin.

    Allowed origins come from ``CORS_ALLOWED_ORIGINS`` (comma separated).
    Without it every origin is allowed.
    """
    allowed_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    request_origin = None
    if event:
        headers = event.get("headers") or {}
        request_origin = headers.get("origin") or headers.get("Origin")

    if not allowed_origins:
        allow_origin = "*"
    elif request_origin in allowed_origins:
        allow_origin = request_origin
    else:
        allow_origin = allowed_origins[0]

    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": (
            "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token"
        ),
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    }


def _response_headers(event: Optional[Mapping[str, Any]]) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    headers.update(get_security_headers())
    headers.update(get_cors_headers(event))
    return headers


def json_response(
    status_code: int,
    body: Any,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create an API Gateway response with a plain JSON body."""
    return {
        "statusCode": status_code,
        "headers": _response_headers(event),
        "body": json.dumps(body, default=str),
    }


def envelope_response(
    envelope: Envelope,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Render an envelope; the status code is its ``response_code``.

    An envelope that cannot be serialized is reported with the encoding
    failure status and the sentinel body.
    """
    try:
        status_code = envelope.response_code
        body = encode_envelope(envelope)
    except EncodingError as exc:
        status_code = exc.status_code
        body = exc.message
    return {
        "statusCode": status_code,
        "headers": _response_headers(event),
        "body": body,
    }
