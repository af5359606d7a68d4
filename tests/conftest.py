"""Pytest configuration and fixtures for identity service tests.

Collaborator clients are ``MagicMock`` stubs; failures are injected as
real ``botocore`` ``ClientError`` instances so error mapping is exercised
end to end.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from datetime import timezone
from pathlib import Path
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from botocore.exceptions import ClientError

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from identity_admin.config import Settings  # noqa: E402
from identity_admin.services.aws_clients import ServiceRuntime  # noqa: E402


def make_client_error(
    code: str = 'InternalErrorException',
    message: str = 'Something broke',
    operation: str = 'Operation',
) -> ClientError:
    """Build a ClientError as boto3 raises it."""
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


# --- Runtime Fixtures ---


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def cognito() -> MagicMock:
    """Cognito IDP stub that echoes created users and pools."""
    client = MagicMock(name='cognito-idp')

    def _create_user(**params):
        return {
            'User': {
                'Username': params['Username'],
                'Attributes': params['UserAttributes'],
                'UserStatus': 'FORCE_CHANGE_PASSWORD',
            }
        }

    def _create_pool(**params):
        return {
            'UserPool': {
                'Id': 'ap-southeast-1_pool1',
                'Name': params['PoolName'],
                'CreationDate': datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc),
            }
        }

    client.admin_create_user.side_effect = _create_user
    client.admin_set_user_password.return_value = {}
    client.create_user_pool.side_effect = _create_pool
    return client


@pytest.fixture
def iam() -> MagicMock:
    """IAM stub returning a created role."""
    client = MagicMock(name='iam')
    client.create_role.side_effect = lambda **params: {
        'Role': {
            'RoleName': params['RoleName'],
            'RoleId': 'AROAEXAMPLEID',
            'Arn': f"arn:aws:iam::123456789012:role{params['Path']}{params['RoleName']}",
        }
    }
    return client


@pytest.fixture
def runtime(cognito, iam, settings) -> ServiceRuntime:
    return ServiceRuntime(cognito=cognito, iam=iam, settings=settings)


@pytest.fixture
def compensating_runtime(cognito, iam) -> ServiceRuntime:
    return ServiceRuntime(
        cognito=cognito,
        iam=iam,
        settings=Settings(compensate_partial_failures=True),
    )


# --- API Event Fixtures ---


@pytest.fixture
def api_gateway_event():
    """Factory for API Gateway proxy events."""

    def _make(method: str, path: str, body=None, query=None, path_params=None):
        return {
            'httpMethod': method,
            'path': path,
            'queryStringParameters': query,
            'pathParameters': path_params,
            'headers': {'Content-Type': 'application/json'},
            'requestContext': {'requestId': str(uuid4())},
            'body': json.dumps(body) if body is not None else None,
            'isBase64Encoded': False,
        }

    return _make


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""
    return make_client_error
