"""Lambda entrypoint for identity administration APIs.

Collaborator clients are created once per container, at import time, and
shared read-only by every invocation.
"""

from __future__ import annotations

from typing import Any, Mapping

from identity_admin.api.router import route_request
from identity_admin.config import Settings
from identity_admin.services.aws_clients import build_runtime
from identity_admin.utils.logging import configure_logging

_SETTINGS = Settings.from_env()
configure_logging(_SETTINGS.log_level)
_RUNTIME = build_runtime(_SETTINGS)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    return route_request(event, context, _RUNTIME)
