"""Cognito lifecycle triggers.

Unlike the HTTP operations, a trigger never converts a failure into an
envelope: raising makes Cognito abort the sign-up or confirmation step.
"""

from __future__ import annotations

from typing import Any
from typing import MutableMapping

from identity_admin.exceptions import ValidationError
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.services.aws_clients import invoke
from identity_admin.utils.logging import get_logger
from identity_admin.utils.logging import mask_email
from identity_admin.utils.logging import mask_pii

logger = get_logger(__name__)


def pre_signup(event: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Auto-confirm every sign-up and mark its email verified."""
    response = event.get("response") or {}
    event["response"] = response
    response["autoConfirmUser"] = True
    response["autoVerifyEmail"] = True

    logger.info(f"Pre-signup for {_mask_user(event)}")
    return event


def post_confirmation(
    runtime: ServiceRuntime,
    event: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Set ``email_verified=true`` on the confirmed user.

    Raises:
        ValidationError: If the event does not identify the user.
        BackendError: If the attribute update fails.
    """
    user_pool_id = event.get("userPoolId")
    username = event.get("userName")
    if not user_pool_id or not username:
        raise ValidationError("Post-confirmation event missing user identifiers")

    masked_user = _mask_user(event)
    try:
        invoke(
            runtime.cognito,
            "admin_update_user_attributes",
            "Could not verify email: ",
            UserPoolId=user_pool_id,
            Username=username,
            UserAttributes=[{"Name": "email_verified", "Value": "true"}],
        )
    except Exception:
        logger.error(f"Failed to verify email for {masked_user}", exc_info=True)
        raise

    logger.info(f"Verified email for {masked_user}")
    return event


def _mask_user(event: MutableMapping[str, Any]) -> str:
    user_attrs = (event.get("request") or {}).get("userAttributes") or {}
    email = user_attrs.get("email") or ""
    if email:
        return mask_email(str(email))
    return mask_pii(str(event.get("userName") or ""))
