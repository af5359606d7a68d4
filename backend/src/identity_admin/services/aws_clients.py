"""Shared boto3 clients for the identity provider and access-policy APIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Optional

import boto3
import botocore.config
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from identity_admin.config import Settings
from identity_admin.exceptions import AppError
from identity_admin.exceptions import BackendError
from identity_admin.exceptions import CredentialsRejectedError
from identity_admin.exceptions import ErrorKind

# Keyed by (service, region, config); Config compares by identity.
_CLIENT_CACHE: dict[tuple[str, Optional[str], Any], Any] = {}


def get_client(
    service: str,
    region_name: Optional[str] = None,
    config: Optional[botocore.config.Config] = None,
) -> Any:
    """Return a cached boto3 client for the given service."""
    cache_key = (service, region_name, config)
    if cache_key in _CLIENT_CACHE:
        return _CLIENT_CACHE[cache_key]
    client = boto3.client(  # type: ignore[call-overload]
        service,
        region_name=region_name,
        config=config,
    )
    _CLIENT_CACHE[cache_key] = client
    return client


def clear_client_cache() -> None:
    """Clear cached boto3 clients (useful in tests)."""
    _CLIENT_CACHE.clear()


@dataclass(frozen=True)
class ServiceRuntime:
    """Collaborator clients and settings shared by every invocation.

    Built once when the Lambda container starts and never mutated, so
    concurrent invocations can share it.
    """

    cognito: Any
    iam: Any
    settings: Settings


def build_runtime(settings: Optional[Settings] = None) -> ServiceRuntime:
    """Create the process-wide runtime from *settings* (or the environment)."""
    settings = settings or Settings.from_env()
    client_config = botocore.config.Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"max_attempts": settings.max_attempts},
    )
    return ServiceRuntime(
        cognito=get_client("cognito-idp", settings.region, client_config),
        iam=get_client("iam", settings.region, client_config),
        settings=settings,
    )


def invoke(
    client: Any,
    action: str,
    failure_message: str = "",
    kind: ErrorKind = ErrorKind.BACKEND_FAILURE,
    **params: Any,
) -> dict[str, Any]:
    """Call *action* on a boto3 client, converting SDK errors to AppError.

    Args:
        client: boto3 client.
        action: Client method name, e.g. ``"admin_create_user"``.
        failure_message: Prefix for the error message on failure.
        kind: Error kind reported on failure.
        **params: Request parameters.

    Raises:
        BackendError: Or CredentialsRejectedError, depending on *kind*.
    """
    try:
        return getattr(client, action)(**params)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code")
        raise _provider_error(f"{failure_message}{exc}", kind, code) from exc
    except BotoCoreError as exc:
        raise _provider_error(f"{failure_message}{exc}", kind, None) from exc


def strip_metadata(response: dict[str, Any]) -> dict[str, Any]:
    """Drop the SDK's ``ResponseMetadata`` from a raw response."""
    return {k: v for k, v in response.items() if k != "ResponseMetadata"}


def _provider_error(
    message: str,
    kind: ErrorKind,
    code: Optional[str],
) -> AppError:
    if kind is ErrorKind.CREDENTIALS_REJECTED:
        return CredentialsRejectedError(message, error_code=code)
    return BackendError(message, error_code=code)
