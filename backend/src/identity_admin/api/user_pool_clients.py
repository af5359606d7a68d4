"""Application client management within a user pool."""

from __future__ import annotations

from typing import Any
from typing import Optional

from identity_admin.api.schemas import AnalyticsConfig
from identity_admin.api.schemas import ClientEnvelope
from identity_admin.api.schemas import ClientRecord
from identity_admin.api.schemas import ListUserPoolClientsRequest
from identity_admin.api.schemas import ResultEnvelope
from identity_admin.api.schemas import UserPoolClientRequest
from identity_admin.envelope import run_operation
from identity_admin.exceptions import ValidationError
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.services.aws_clients import invoke
from identity_admin.services.aws_clients import strip_metadata
from identity_admin.utils.logging import get_logger

logger = get_logger(__name__)

MAX_LIST_RESULTS = 60

# Request/record field -> provider parameter, for settings copied 1:1.
CLIENT_SETTINGS = {
    "client_name": "ClientName",
    "allowed_oauth_flows": "AllowedOAuthFlows",
    "allowed_oauth_flows_userpool_client": "AllowedOAuthFlowsUserPoolClient",
    "allowed_oauth_scopes": "AllowedOAuthScopes",
    "callback_url": "CallbackURLs",
    "default_redirect_uri": "DefaultRedirectURI",
    "explicit_auth_flows": "ExplicitAuthFlows",
    "logout_urls": "LogoutURLs",
    "read_attributes": "ReadAttributes",
    "refresh_token_validity": "RefreshTokenValidity",
    "supported_identity_providers": "SupportedIdentityProviders",
    "write_attributes": "WriteAttributes",
}

ANALYTICS_SETTINGS = {
    "application_id": "ApplicationId",
    "external_id": "ExternalId",
    "role_arn": "RoleArn",
    "user_data_shared": "UserDataShared",
}

ALL_SETTINGS = set(CLIENT_SETTINGS) | {"analytics_config"}

# Every setting UpdateUserPoolClient accepts. The provider resets any of
# them left out of an update call to its default.
UPDATABLE_KEYS = frozenset(CLIENT_SETTINGS.values()) | {
    "AccessTokenValidity",
    "AnalyticsConfiguration",
    "AuthSessionValidity",
    "EnablePropagateAdditionalUserContextData",
    "EnableTokenRevocation",
    "IdTokenValidity",
    "PreventUserExistenceErrors",
    "TokenValidityUnits",
}


def create_user_pool_client(
    runtime: ServiceRuntime,
    request: UserPoolClientRequest,
) -> ClientEnvelope:
    return run_operation(
        ClientEnvelope,
        "create_user_pool_client",
        lambda: _create_client(runtime, request),
        runtime.settings,
    )


def list_user_pool_clients(
    runtime: ServiceRuntime,
    request: ListUserPoolClientsRequest,
) -> ClientEnvelope:
    return run_operation(
        ClientEnvelope,
        "list_user_pool_clients",
        lambda: _list_clients(runtime, request),
        runtime.settings,
    )


def update_user_pool_client(
    runtime: ServiceRuntime,
    request: UserPoolClientRequest,
) -> ClientEnvelope:
    """Update a client and return its configuration after the update.

    Settings missing from the request keep their current values.
    """
    return run_operation(
        ClientEnvelope,
        "update_user_pool_client",
        lambda: _update_client(runtime, request),
        runtime.settings,
    )


def describe_user_pool_client(
    runtime: ServiceRuntime,
    request: ListUserPoolClientsRequest,
) -> ResultEnvelope:
    """Return the provider's description of a client unchanged."""
    return run_operation(
        ResultEnvelope,
        "describe_user_pool_client",
        lambda: _describe_client(runtime, request),
        runtime.settings,
    )


# ---------------------------------------------------------------------------
# Operation bodies
# ---------------------------------------------------------------------------


def _create_client(
    runtime: ServiceRuntime,
    request: UserPoolClientRequest,
) -> list[ClientRecord]:
    _require(request.user_pool_id, "user_pool_id")
    _require(request.client_name, "client_name")

    params = {"UserPoolId": request.user_pool_id}
    params.update(_client_settings(request, ALL_SETTINGS))
    params["GenerateSecret"] = request.generate_secret

    response = invoke(runtime.cognito, "create_user_pool_client", **params)
    record = client_record(response["UserPoolClient"])
    logger.info(f"Created client {record.client_id} in {request.user_pool_id}")
    return [record]


def _list_clients(
    runtime: ServiceRuntime,
    request: ListUserPoolClientsRequest,
) -> list[ClientRecord]:
    _require(request.pool_id, "pool_id")
    max_results = _max_results(request.max)

    response = invoke(
        runtime.cognito,
        "list_user_pool_clients",
        UserPoolId=request.pool_id,
        MaxResults=max_results,
    )
    clients = response.get("UserPoolClients", [])[:max_results]
    return [client_record(client) for client in clients]


def _update_client(
    runtime: ServiceRuntime,
    request: UserPoolClientRequest,
) -> list[ClientRecord]:
    _require(request.user_pool_id, "user_pool_id")
    _require(request.client_id, "client_id")

    described = invoke(
        runtime.cognito,
        "describe_user_pool_client",
        UserPoolId=request.user_pool_id,
        ClientId=request.client_id,
    )["UserPoolClient"]

    params = {
        "UserPoolId": request.user_pool_id,
        "ClientId": request.client_id,
    }
    params.update(_current_settings(described))
    params.update(_client_settings(request, request.model_fields_set))

    response = invoke(runtime.cognito, "update_user_pool_client", **params)
    record = client_record(response["UserPoolClient"])
    logger.info(f"Updated client {record.client_id} in {request.user_pool_id}")
    return [record]


def _describe_client(
    runtime: ServiceRuntime,
    request: ListUserPoolClientsRequest,
) -> list[dict[str, Any]]:
    _require(request.pool_id, "pool_id")
    _require(request.client_id, "client_id")

    response = invoke(
        runtime.cognito,
        "describe_user_pool_client",
        UserPoolId=request.pool_id,
        ClientId=request.client_id,
    )
    return [strip_metadata(response)["UserPoolClient"]]


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def _client_settings(
    request: UserPoolClientRequest,
    fields: set[str],
) -> dict[str, Any]:
    """Provider parameters for the settings named in *fields*.

    Unset values (None, empty string, zero validity) are left out so the
    provider keeps its defaults, or on update, the described values.
    """
    params: dict[str, Any] = {}
    for field, key in CLIENT_SETTINGS.items():
        if field not in fields:
            continue
        value = getattr(request, field)
        if value is None or value == "":
            continue
        if field == "refresh_token_validity" and value <= 0:
            continue
        params[key] = value

    if "analytics_config" in fields and request.analytics_config is not None:
        params["AnalyticsConfiguration"] = _analytics_params(
            request.analytics_config
        )
    return params


def _analytics_params(config: AnalyticsConfig) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for field, key in ANALYTICS_SETTINGS.items():
        value = getattr(config, field)
        if value is not None and value != "":
            params[key] = value
    return params


def _current_settings(described: dict[str, Any]) -> dict[str, Any]:
    """Updatable settings of a described client, in provider form."""
    return {
        key: value for key, value in described.items() if key in UPDATABLE_KEYS
    }


def client_record(client: dict[str, Any]) -> ClientRecord:
    """Map a provider client description or summary to a record."""
    values: dict[str, Any] = {
        field: client[key]
        for field, key in CLIENT_SETTINGS.items()
        if key in client
    }
    analytics = client.get("AnalyticsConfiguration")
    if analytics:
        values["analytics_config"] = AnalyticsConfig(
            **{
                field: analytics[key]
                for field, key in ANALYTICS_SETTINGS.items()
                if key in analytics
            }
        )
    return ClientRecord(
        client_id=client.get("ClientId", ""),
        user_pool_id=client.get("UserPoolId"),
        created_date=client.get("CreationDate"),
        last_modified_date=client.get("LastModifiedDate"),
        **values,
    )


def _require(value: Optional[str], field: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required", field=field)


def _max_results(value: Optional[int]) -> int:
    if value is None:
        return MAX_LIST_RESULTS
    if not 1 <= value <= MAX_LIST_RESULTS:
        raise ValidationError(
            f"max must be between 1 and {MAX_LIST_RESULTS}", field="max"
        )
    return value
