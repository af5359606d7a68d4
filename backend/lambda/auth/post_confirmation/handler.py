"""Cognito Post Confirmation trigger.

Marks the confirmed user's email as verified. A failure is re-raised so
Cognito reports the confirmation as failed.
"""

from __future__ import annotations

from typing import Any
from typing import MutableMapping

from identity_admin.config import Settings
from identity_admin.services.aws_clients import build_runtime
from identity_admin.triggers import post_confirmation
from identity_admin.utils.logging import clear_request_context
from identity_admin.utils.logging import configure_logging
from identity_admin.utils.logging import set_request_context

_SETTINGS = Settings.from_env()
configure_logging(_SETTINGS.log_level)
_RUNTIME = build_runtime(_SETTINGS)


def lambda_handler(
    event: MutableMapping[str, Any],
    context: Any,
) -> MutableMapping[str, Any]:
    set_request_context(
        req_id=getattr(context, "aws_request_id", None),
        operation_name="post_confirmation",
    )
    try:
        return post_confirmation(_RUNTIME, event)
    finally:
        clear_request_context()
