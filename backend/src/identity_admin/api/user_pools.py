"""User pool provisioning and listing.

A pool is provisioned in two ordered steps: an IAM role that lets Cognito
publish SMS through SNS, then the pool itself wired to that role.
"""

from __future__ import annotations

import json
from typing import Any

from identity_admin.api.schemas import CreatePoolRequest
from identity_admin.api.schemas import ListPoolsRequest
from identity_admin.api.schemas import PoolEnvelope
from identity_admin.api.schemas import PoolRecord
from identity_admin.envelope import run_operation
from identity_admin.exceptions import ValidationError
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.services.aws_clients import invoke
from identity_admin.services.provisioning import Saga
from identity_admin.utils.logging import get_logger

logger = get_logger(__name__)

MIN_POOL_NAME_LENGTH = 2
MAX_LIST_RESULTS = 60

SMS_ROLE_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Sid": "",
            "Effect": "Allow",
            "Principal": {"Service": "cognito-idp.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}

PASSWORD_POLICY = {
    "MinimumLength": 6,
    "RequireLowercase": False,
    "RequireNumbers": False,
    "RequireSymbols": False,
    "RequireUppercase": False,
}

USER_NAME_SCHEMA = {
    "Name": "user_name",
    "AttributeDataType": "String",
    "DeveloperOnlyAttribute": False,
    "Mutable": False,
    "Required": False,
    "StringAttributeConstraints": {"MinLength": "3", "MaxLength": "64"},
}


def sms_role_name(pool_name: str) -> str:
    """Return the SMS role name for a pool: hyphens dropped, ``-SMS-Role`` added."""
    return pool_name.replace("-", "") + "-SMS-Role"


def create_user_pool(
    runtime: ServiceRuntime,
    request: CreatePoolRequest,
) -> PoolEnvelope:
    """Create the SMS role and then the user pool."""
    return run_operation(
        PoolEnvelope,
        "create_user_pool",
        lambda: _create_user_pool(runtime, request),
        runtime.settings,
    )


def list_user_pools(
    runtime: ServiceRuntime,
    request: ListPoolsRequest,
) -> PoolEnvelope:
    """List at most ``request.max`` pools."""
    return run_operation(
        PoolEnvelope,
        "list_user_pools",
        lambda: _list_user_pools(runtime, request),
        runtime.settings,
    )


def _create_user_pool(
    runtime: ServiceRuntime,
    request: CreatePoolRequest,
) -> list[PoolRecord]:
    if len(request.pool_name) < MIN_POOL_NAME_LENGTH:
        raise ValidationError("Pool name is required", field="pool_name")
    if request.wait_days < 0:
        raise ValidationError("wait_days must not be negative", field="wait_days")

    settings = runtime.settings
    role_name = sms_role_name(request.pool_name)

    with Saga("create_user_pool", settings.compensate_partial_failures) as saga:
        role_response = saga.run(
            "create_role",
            lambda: invoke(
                runtime.iam,
                "create_role",
                "Could not create role ",
                Path=settings.sms_role_path,
                RoleName=role_name,
                AssumeRolePolicyDocument=json.dumps(SMS_ROLE_TRUST_POLICY),
            ),
            undo=lambda _role: runtime.iam.delete_role(RoleName=role_name),
            resource=role_name,
        )
        role = role_response["Role"]
        pool_response = saga.run(
            "create_user_pool",
            lambda: invoke(
                runtime.cognito,
                "create_user_pool",
                "Could not create user pool ",
                **_pool_params(request, role["Arn"], role["RoleId"]),
            ),
        )

    pool = pool_response["UserPool"]
    logger.info(f"Created user pool {pool.get('Id')} with role {role_name}")
    return [_pool_record(pool)]


def _list_user_pools(
    runtime: ServiceRuntime,
    request: ListPoolsRequest,
) -> list[PoolRecord]:
    max_results = request.max
    if max_results is None or not 1 <= max_results <= MAX_LIST_RESULTS:
        raise ValidationError(
            f"max must be between 1 and {MAX_LIST_RESULTS}", field="max"
        )

    response = invoke(
        runtime.cognito,
        "list_user_pools",
        "Could not list user pools ",
        MaxResults=max_results,
    )
    pools = response.get("UserPools", [])[:max_results]
    logger.info(f"Listed {len(pools)} user pools")
    return [_pool_record(pool) for pool in pools]


def _pool_params(
    request: CreatePoolRequest,
    role_arn: str,
    role_id: str,
) -> dict[str, Any]:
    """Build create_user_pool parameters; empty templates are left out."""
    invite_template = _non_empty(
        EmailMessage=request.email_message,
        EmailSubject=request.email_subject,
        SMSMessage=request.sms_message,
    )
    admin_config: dict[str, Any] = {"AllowAdminCreateUserOnly": False}
    if invite_template:
        admin_config["InviteMessageTemplate"] = invite_template

    password_policy = dict(PASSWORD_POLICY)
    if request.wait_days > 0:
        password_policy["TemporaryPasswordValidityDays"] = request.wait_days

    params: dict[str, Any] = {
        "PoolName": request.pool_name,
        "AdminCreateUserConfig": admin_config,
        "AutoVerifiedAttributes": ["email", "phone_number"],
        "Policies": {"PasswordPolicy": password_policy},
        "Schema": [USER_NAME_SCHEMA],
        "SmsConfiguration": {"SnsCallerArn": role_arn, "ExternalId": role_id},
    }
    params.update(
        _non_empty(
            EmailVerificationMessage=request.email_verify_msg,
            EmailVerificationSubject=request.email_verify_sub,
            SmsAuthenticationMessage=request.sms_auth_msg,
            SmsVerificationMessage=request.sms_verify_msg,
        )
    )
    return params


def _non_empty(**values: str) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}


def _pool_record(pool: dict[str, Any]) -> PoolRecord:
    return PoolRecord(
        pool_id=pool.get("Id", ""),
        pool_name=pool.get("Name", ""),
        created_date=pool.get("CreationDate"),
    )
