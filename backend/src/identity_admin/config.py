"""Runtime settings read from the Lambda environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from typing import Optional

from identity_admin.exceptions import ConfigurationError
from identity_admin.exceptions import ErrorKind
from identity_admin.exceptions import STATUS_CODES

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once at startup."""

    region: Optional[str] = None
    log_level: str = "INFO"
    invalid_input_status_code: int = 500
    compensate_partial_failures: bool = False
    sms_role_path: str = "/service-role/"
    connect_timeout: int = 5
    read_timeout: int = 10
    max_attempts: int = 2

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a variable holds an unusable value.
        """
        env = os.environ if environ is None else environ

        status_code = _env_int(env, "INVALID_INPUT_STATUS_CODE", 500)
        if status_code not in (400, 500):
            raise ConfigurationError(
                "INVALID_INPUT_STATUS_CODE", "must be 400 or 500"
            )

        role_path = env.get("SMS_ROLE_PATH") or "/service-role/"
        if not (role_path.startswith("/") and role_path.endswith("/")):
            raise ConfigurationError(
                "SMS_ROLE_PATH", "must start and end with '/'"
            )

        return cls(
            region=env.get("AWS_REGION") or None,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            invalid_input_status_code=status_code,
            compensate_partial_failures=_env_bool(
                env, "COMPENSATE_PARTIAL_FAILURES"
            ),
            sms_role_path=role_path,
            connect_timeout=_env_int(env, "AWS_CONNECT_TIMEOUT", 5),
            read_timeout=_env_int(env, "AWS_READ_TIMEOUT", 10),
            max_attempts=_env_int(env, "AWS_MAX_ATTEMPTS", 2),
        )

    def status_codes(self) -> dict[ErrorKind, int]:
        """Return the error-kind to status-code table for this process."""
        codes = dict(STATUS_CODES)
        codes[ErrorKind.INVALID_INPUT] = self.invalid_input_status_code
        return codes


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, "must be an integer") from exc
    if value < 0:
        raise ConfigurationError(name, "must not be negative")
    return value


def _env_bool(env: Mapping[str, str], name: str) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(name, "must be a boolean")
