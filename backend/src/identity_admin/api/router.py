"""HTTP entrypoint for identity administration.

Routes handled (an optional ``/v{n}`` prefix is accepted):
    POST   /users                            - Add a user
    GET    /users                            - List users in a pool
    DELETE /users                            - Delete a user
    POST   /auth/login                       - Password sign in
    POST   /auth/forgot-password             - Send a reset code
    POST   /auth/confirm-forgot-password     - Reset the password
    POST   /user-pools                       - Create a pool and its SMS role
    GET    /user-pools[/{max}]               - List pools
    POST   /user-pool-clients                - Create a pool client
    GET    /user-pool-clients                - List pool clients
    GET    /user-pool-clients/{client_id}    - Describe a pool client
    PUT    /user-pool-clients/{client_id}    - Update a pool client

Every route answers with an envelope whose ``response_code`` is also the
HTTP status.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Mapping
from typing import Optional

from pydantic import BaseModel

from identity_admin.api import user_pool_clients
from identity_admin.api import user_pools
from identity_admin.api import users
from identity_admin.api.request import _parse_path
from identity_admin.api.request import _request_data
from identity_admin.api.request import decode_request
from identity_admin.api.schemas import ClientEnvelope
from identity_admin.api.schemas import CreatePoolRequest
from identity_admin.api.schemas import Envelope
from identity_admin.api.schemas import ForgotPasswordRequest
from identity_admin.api.schemas import ListPoolsRequest
from identity_admin.api.schemas import ListUserPoolClientsRequest
from identity_admin.api.schemas import LoginRequest
from identity_admin.api.schemas import PoolEnvelope
from identity_admin.api.schemas import ResultEnvelope
from identity_admin.api.schemas import UserEnvelope
from identity_admin.api.schemas import UserPoolClientRequest
from identity_admin.api.schemas import UserRequest
from identity_admin.envelope import make_envelope
from identity_admin.exceptions import ValidationError
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.utils.logging import clear_request_context
from identity_admin.utils.logging import get_logger
from identity_admin.utils.logging import log_response
from identity_admin.utils.logging import set_request_context
from identity_admin.utils.responses import envelope_response
from identity_admin.utils.responses import json_response
from identity_admin.utils.responses import validate_content_type

logger = get_logger(__name__)


@dataclass(frozen=True)
class Route:
    """One operation reachable over HTTP."""

    operation: str
    envelope_type: type[Envelope]
    request_model: type[BaseModel]
    handler: Callable[[ServiceRuntime, Any], Envelope]
    # Name under which the path's resource id is passed to the request.
    path_param: Optional[str] = None


def route_request(
    event: Mapping[str, Any],
    context: Any,
    runtime: ServiceRuntime,
) -> dict[str, Any]:
    """Decode an API Gateway event, run its operation, render the envelope."""
    started = time.perf_counter()
    request_id = (event.get("requestContext") or {}).get("requestId", "")
    method = event.get("httpMethod", "")
    path = event.get("path", "")
    resource, resource_id = _parse_path(path)

    route = _match_route(method, resource, resource_id)
    if route is None:
        set_request_context(req_id=request_id)
        logger.warning(f"No route for {method} {path}")
        clear_request_context()
        return json_response(404, {"error": "Not found"}, event=event)

    set_request_context(req_id=request_id, operation_name=route.operation)
    try:
        logger.info(f"Identity request: {method} {path}")
        envelope = _dispatch(route, event, resource_id, runtime)
        response = envelope_response(envelope, event=event)
        log_response(
            logger,
            response["statusCode"],
            (time.perf_counter() - started) * 1000,
        )
        return response
    finally:
        clear_request_context()


def _dispatch(
    route: Route,
    event: Mapping[str, Any],
    resource_id: Optional[str],
    runtime: ServiceRuntime,
) -> Envelope:
    try:
        validate_content_type(event)
        data = _request_data(event)
        if route.path_param and resource_id:
            data[route.path_param] = resource_id
        request = decode_request(route.request_model, data)
    except ValidationError as exc:
        return make_envelope(
            route.envelope_type,
            route.operation,
            error=exc,
            status_codes=runtime.settings.status_codes(),
        )
    return route.handler(runtime, request)


def _match_route(
    method: str,
    resource: str,
    resource_id: Optional[str],
) -> Optional[Route]:
    if resource == "users" and not resource_id:
        if method == "POST":
            return Route("add_user", UserEnvelope, UserRequest, users.add_user)
        if method == "GET":
            return Route("list_users", UserEnvelope, UserRequest, users.list_users)
        if method == "DELETE":
            return Route(
                "delete_user", ResultEnvelope, UserRequest, users.delete_user
            )

    if resource == "auth" and method == "POST":
        if resource_id == "login":
            return Route(
                "authenticate", ResultEnvelope, LoginRequest, users.authenticate
            )
        if resource_id == "forgot-password":
            return Route(
                "forgot_password",
                ResultEnvelope,
                ForgotPasswordRequest,
                users.forgot_password,
            )
        if resource_id == "confirm-forgot-password":
            return Route(
                "confirm_forgot_password",
                ResultEnvelope,
                ForgotPasswordRequest,
                users.confirm_forgot_password,
            )

    if resource == "user-pools":
        if method == "POST" and not resource_id:
            return Route(
                "create_user_pool",
                PoolEnvelope,
                CreatePoolRequest,
                user_pools.create_user_pool,
            )
        if method == "GET":
            return Route(
                "list_user_pools",
                PoolEnvelope,
                ListPoolsRequest,
                user_pools.list_user_pools,
                path_param="max",
            )

    if resource == "user-pool-clients":
        if method == "POST" and not resource_id:
            return Route(
                "create_user_pool_client",
                ClientEnvelope,
                UserPoolClientRequest,
                user_pool_clients.create_user_pool_client,
            )
        if method == "GET" and not resource_id:
            return Route(
                "list_user_pool_clients",
                ClientEnvelope,
                ListUserPoolClientsRequest,
                user_pool_clients.list_user_pool_clients,
            )
        if method == "GET" and resource_id:
            return Route(
                "describe_user_pool_client",
                ResultEnvelope,
                ListUserPoolClientsRequest,
                user_pool_clients.describe_user_pool_client,
                path_param="client_id",
            )
        if method == "PUT" and resource_id:
            return Route(
                "update_user_pool_client",
                ClientEnvelope,
                UserPoolClientRequest,
                user_pool_clients.update_user_pool_client,
                path_param="client_id",
            )

    return None
