"""Tests for boto3 client helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.config import Config
from botocore.exceptions import EndpointConnectionError

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from identity_admin.config import Settings
from identity_admin.exceptions import (
    BackendError,
    CredentialsRejectedError,
    ErrorKind,
)
from identity_admin.services import aws_clients
from identity_admin.services.aws_clients import (
    build_runtime,
    clear_client_cache,
    get_client,
    invoke,
    strip_metadata,
)


@pytest.fixture(autouse=True)
def _empty_cache():
    clear_client_cache()
    yield
    clear_client_cache()


class TestGetClient:
    """Tests for cached client construction."""

    def test_caches_per_service_and_region(self, mocker) -> None:
        boto_client = mocker.patch.object(aws_clients.boto3, 'client')
        boto_client.side_effect = lambda service, **_: MagicMock(name=service)

        first = get_client('iam', 'us-east-1')
        second = get_client('iam', 'us-east-1')
        other = get_client('iam', 'eu-west-1')

        assert first is second
        assert first is not other
        assert boto_client.call_count == 2

    def test_distinct_config_gets_its_own_client(self, mocker) -> None:
        boto_client = mocker.patch.object(aws_clients.boto3, 'client')
        boto_client.side_effect = lambda service, **_: MagicMock(name=service)
        fast = Config(read_timeout=1)
        slow = Config(read_timeout=30)

        first = get_client('iam', 'us-east-1', fast)
        again = get_client('iam', 'us-east-1', fast)
        other = get_client('iam', 'us-east-1', slow)

        assert first is again
        assert first is not other
        configs = [call.kwargs['config'] for call in boto_client.call_args_list]
        assert configs == [fast, slow]

    def test_build_runtime_uses_settings(self, mocker) -> None:
        boto_client = mocker.patch.object(aws_clients.boto3, 'client')
        settings = Settings(region='ap-southeast-1', read_timeout=3)

        runtime = build_runtime(settings)

        assert runtime.settings is settings
        services = [call.args[0] for call in boto_client.call_args_list]
        assert services == ['cognito-idp', 'iam']
        config = boto_client.call_args_list[0].kwargs['config']
        assert config.read_timeout == 3
        assert boto_client.call_args_list[0].kwargs['region_name'] == 'ap-southeast-1'


class TestInvoke:
    """Tests for SDK error conversion."""

    def test_returns_response(self) -> None:
        client = MagicMock()
        client.list_users.return_value = {'Users': []}
        assert invoke(client, 'list_users', UserPoolId='p1') == {'Users': []}
        client.list_users.assert_called_once_with(UserPoolId='p1')

    def test_client_error_becomes_backend_error(self, client_error) -> None:
        client = MagicMock()
        client.create_role.side_effect = client_error(
            'EntityAlreadyExists', 'Role exists', 'CreateRole'
        )
        with pytest.raises(BackendError) as exc_info:
            invoke(client, 'create_role', 'Could not create role ', RoleName='r')
        error = exc_info.value
        assert error.message.startswith('Could not create role ')
        assert 'Role exists' in error.message
        assert error.error_code == 'EntityAlreadyExists'

    def test_credentials_kind(self, client_error) -> None:
        client = MagicMock()
        client.initiate_auth.side_effect = client_error(
            'NotAuthorizedException', 'Incorrect username or password.', 'InitiateAuth'
        )
        with pytest.raises(CredentialsRejectedError) as exc_info:
            invoke(client, 'initiate_auth', kind=ErrorKind.CREDENTIALS_REJECTED)
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == 'NotAuthorizedException'

    def test_botocore_error_becomes_backend_error(self) -> None:
        client = MagicMock()
        client.list_user_pools.side_effect = EndpointConnectionError(
            endpoint_url='https://cognito-idp.example.com'
        )
        with pytest.raises(BackendError) as exc_info:
            invoke(client, 'list_user_pools', 'Could not list user pools ')
        assert exc_info.value.error_code is None


def test_strip_metadata() -> None:
    response = {'Session': 's', 'ResponseMetadata': {'HTTPStatusCode': 200}}
    assert strip_metadata(response) == {'Session': 's'}
