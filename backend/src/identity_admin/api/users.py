"""User lifecycle and password operations against a Cognito user pool."""

from __future__ import annotations

from typing import Any
from typing import Optional

from identity_admin.api.schemas import ForgotPasswordRequest
from identity_admin.api.schemas import LoginRequest
from identity_admin.api.schemas import ResultEnvelope
from identity_admin.api.schemas import UserEnvelope
from identity_admin.api.schemas import UserRecord
from identity_admin.api.schemas import UserRequest
from identity_admin.envelope import run_operation
from identity_admin.exceptions import BackendError
from identity_admin.exceptions import ErrorKind
from identity_admin.exceptions import ValidationError
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.services.aws_clients import invoke
from identity_admin.services.aws_clients import strip_metadata
from identity_admin.services.provisioning import Saga
from identity_admin.utils.logging import get_logger
from identity_admin.utils.logging import mask_email

logger = get_logger(__name__)


def add_user(runtime: ServiceRuntime, request: UserRequest) -> UserEnvelope:
    """Create a user with a verified email and a permanent password."""
    return run_operation(
        UserEnvelope,
        "add_user",
        lambda: _add_user(runtime, request),
        runtime.settings,
    )


def list_users(runtime: ServiceRuntime, request: UserRequest) -> UserEnvelope:
    """List the first page of users in a pool."""
    return run_operation(
        UserEnvelope,
        "list_users",
        lambda: _list_users(runtime, request),
        runtime.settings,
    )


def delete_user(runtime: ServiceRuntime, request: UserRequest) -> ResultEnvelope:
    """Delete the user whose username is the given email address."""
    return run_operation(
        ResultEnvelope,
        "delete_user",
        lambda: _delete_user(runtime, request),
        runtime.settings,
    )


def authenticate(runtime: ServiceRuntime, request: LoginRequest) -> ResultEnvelope:
    """Sign in with USER_PASSWORD_AUTH and return the provider's result."""
    return run_operation(
        ResultEnvelope,
        "authenticate",
        lambda: _authenticate(runtime, request),
        runtime.settings,
    )


def forgot_password(
    runtime: ServiceRuntime,
    request: ForgotPasswordRequest,
) -> ResultEnvelope:
    """Send a password reset code to the user."""
    return run_operation(
        ResultEnvelope,
        "forgot_password",
        lambda: _forgot_password(runtime, request),
        runtime.settings,
    )


def confirm_forgot_password(
    runtime: ServiceRuntime,
    request: ForgotPasswordRequest,
) -> ResultEnvelope:
    """Set a new password using the reset code."""
    return run_operation(
        ResultEnvelope,
        "confirm_forgot_password",
        lambda: _confirm_forgot_password(runtime, request),
        runtime.settings,
    )


# ---------------------------------------------------------------------------
# Operation bodies
# ---------------------------------------------------------------------------


def _add_user(runtime: ServiceRuntime, request: UserRequest) -> list[UserRecord]:
    user = request.user
    if not all(
        _present(value)
        for value in (user.email_address, request.user_pool_id, user.name)
    ):
        raise ValidationError(
            "You must supply an email address, user pool ID, and user name"
        )

    client = runtime.cognito
    pool_id = request.user_pool_id
    email = user.email_address

    with Saga("add_user", runtime.settings.compensate_partial_failures) as saga:
        created = saga.run(
            "admin_create_user",
            lambda: invoke(
                client,
                "admin_create_user",
                "Got error creating user: ",
                UserPoolId=pool_id,
                Username=email,
                MessageAction="SUPPRESS",
                DesiredDeliveryMediums=["EMAIL"],
                UserAttributes=[
                    {"Name": "email", "Value": email},
                    {"Name": "name", "Value": user.name},
                    {"Name": "email_verified", "Value": "true"},
                ],
            ),
            undo=lambda _created: client.admin_delete_user(
                UserPoolId=pool_id, Username=email
            ),
            resource=mask_email(email),
        )
        saga.run(
            "admin_set_user_password",
            lambda: invoke(
                client,
                "admin_set_user_password",
                kind=ErrorKind.CREDENTIALS_REJECTED,
                UserPoolId=pool_id,
                Username=email,
                Password=user.password,
                Permanent=True,
            ),
        )

    attributes = _attributes(created.get("User", {}).get("Attributes", []))
    logger.info(f"Created user {mask_email(email)}")
    return [
        UserRecord(
            name=attributes.get("name", ""),
            email_address=attributes.get("email", ""),
        )
    ]


def _list_users(runtime: ServiceRuntime, request: UserRequest) -> list[UserRecord]:
    if not _present(request.user_pool_id):
        raise ValidationError("You must supply a user pool ID", field="user_pool_id")

    try:
        response = invoke(
            runtime.cognito, "list_users", UserPoolId=request.user_pool_id
        )
    except BackendError as exc:
        raise BackendError(
            "Got error listing users", error_code=exc.error_code
        ) from exc

    users = [_user_record(user) for user in response.get("Users", [])]
    logger.info(f"Listed {len(users)} users")
    return users


def _delete_user(runtime: ServiceRuntime, request: UserRequest) -> list[Any]:
    invoke(
        runtime.cognito,
        "admin_delete_user",
        UserPoolId=request.user_pool_id,
        Username=request.user.email_address,
    )
    logger.info(f"Deleted user {mask_email(request.user.email_address)}")
    return []


def _authenticate(
    runtime: ServiceRuntime,
    request: LoginRequest,
) -> list[dict[str, Any]]:
    _require_login_fields(request.email_address, request.client_id)
    response = invoke(
        runtime.cognito,
        "initiate_auth",
        kind=ErrorKind.CREDENTIALS_REJECTED,
        AuthFlow="USER_PASSWORD_AUTH",
        AuthParameters={
            "USERNAME": request.email_address,
            "PASSWORD": request.password,
        },
        ClientId=request.client_id,
    )
    logger.info(f"Authenticated {mask_email(request.email_address)}")
    return [strip_metadata(response)]


def _forgot_password(
    runtime: ServiceRuntime,
    request: ForgotPasswordRequest,
) -> list[dict[str, Any]]:
    _require_login_fields(request.email_address, request.client_id)
    response = invoke(
        runtime.cognito,
        "forgot_password",
        ClientId=request.client_id,
        Username=request.email_address,
    )
    return [strip_metadata(response)]


def _confirm_forgot_password(
    runtime: ServiceRuntime,
    request: ForgotPasswordRequest,
) -> list[dict[str, Any]]:
    _require_login_fields(request.email_address, request.client_id)
    response = invoke(
        runtime.cognito,
        "confirm_forgot_password",
        ClientId=request.client_id,
        ConfirmationCode=request.confirmation_code,
        Username=request.email_address,
        Password=request.password,
    )
    return [strip_metadata(response)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _require_login_fields(email: str, client_id: str) -> None:
    if not _present(email):
        raise ValidationError("email_address is required", field="email_address")
    if not _present(client_id):
        raise ValidationError("client_id is required", field="client_id")


def _attributes(raw: list[dict[str, str]]) -> dict[str, str]:
    return {attr["Name"]: attr.get("Value", "") for attr in raw}


def _flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.lower() == "true"


def _user_record(user: dict[str, Any]) -> UserRecord:
    """Map a provider user to a record; unknown attributes are ignored."""
    attributes = _attributes(user.get("Attributes", []))
    confirmed = _flag(attributes.get("is_confirmed"))
    if confirmed is None and user.get("UserStatus"):
        confirmed = user["UserStatus"] == "CONFIRMED"
    return UserRecord(
        name=attributes.get("name", ""),
        email_address=attributes.get("email", ""),
        email_verified=_flag(attributes.get("email_verified")),
        is_confirmed=confirmed,
    )
