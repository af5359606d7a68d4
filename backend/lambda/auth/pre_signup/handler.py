"""Cognito Pre Sign-up trigger.

Every sign-up is auto-confirmed with its email marked verified.

SECURITY NOTES:
- Email addresses are masked in logs
- Never log passwords or sensitive user data
"""

from __future__ import annotations

from typing import Any
from typing import MutableMapping

from identity_admin.config import Settings
from identity_admin.triggers import pre_signup
from identity_admin.utils.logging import configure_logging

configure_logging(Settings.from_env().log_level)


def lambda_handler(
    event: MutableMapping[str, Any],
    _context: Any,
) -> MutableMapping[str, Any]:
    """Handle pre-signup trigger."""
    return pre_signup(event)
