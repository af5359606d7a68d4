"""Tests for HTTP routing of identity operations."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone

import pytest

from identity_admin.api.request import _parse_path
from identity_admin.api.router import route_request
from identity_admin.config import Settings
from identity_admin.services.aws_clients import ServiceRuntime
from identity_admin.utils.logging import operation, request_id


def _body(response: dict) -> dict:
    return json.loads(response['body'])


class TestParsePath:
    """Tests for path parsing."""

    @pytest.mark.parametrize(
        ('path', 'expected'),
        [
            ('/users', ('users', None)),
            ('/v1/users', ('users', None)),
            ('/user-pools/10', ('user-pools', '10')),
            ('/v2/auth/login', ('auth', 'login')),
            ('/', ('', None)),
        ],
    )
    def test_parse_path(self, path, expected) -> None:
        assert _parse_path(path) == expected


class TestRouteRequest:
    """Tests for route_request."""

    def test_add_user(self, runtime, cognito, api_gateway_event) -> None:
        event = api_gateway_event(
            'POST',
            '/v1/users',
            body={
                'user_pool_id': 'p1',
                'user': {
                    'name': 'Ann',
                    'email_address': 'ann@x.com',
                    'password': 'secret1',
                },
            },
        )
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'] == 'application/json'
        assert response['headers']['Cache-Control'].startswith('no-store')
        assert _body(response) == {
            'response_code': 200,
            'message': 'Ok',
            'users': [{'name': 'Ann', 'email_address': 'ann@x.com'}],
        }
        cognito.admin_set_user_password.assert_called_once()

    def test_list_users_from_query(self, runtime, cognito, api_gateway_event) -> None:
        cognito.list_users.return_value = {'Users': []}
        event = api_gateway_event('GET', '/users', query={'user_pool_id': 'p1'})
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 200
        assert _body(response)['users'] == []
        cognito.list_users.assert_called_once_with(UserPoolId='p1')

    def test_create_pool_validation_failure(
        self, runtime, cognito, iam, api_gateway_event
    ) -> None:
        event = api_gateway_event('POST', '/user-pools', body={'pool_name': 'A'})
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 500
        assert _body(response) == {
            'response_code': 500,
            'message': 'Pool name is required',
            'pools': [],
        }
        assert iam.method_calls == []
        assert cognito.method_calls == []

    def test_list_pools_max_from_path(self, runtime, cognito, api_gateway_event) -> None:
        cognito.list_user_pools.return_value = {'UserPools': []}
        response = route_request(
            api_gateway_event('GET', '/user-pools/5'), None, runtime
        )
        assert response['statusCode'] == 200
        cognito.list_user_pools.assert_called_once_with(MaxResults=5)

    def test_update_client_takes_id_from_path(
        self, runtime, cognito, api_gateway_event
    ) -> None:
        client = {'ClientId': 'c1', 'UserPoolId': 'p1', 'ClientName': 'web'}
        cognito.describe_user_pool_client.return_value = {'UserPoolClient': client}
        cognito.update_user_pool_client.return_value = {'UserPoolClient': client}
        event = api_gateway_event(
            'PUT', '/user-pool-clients/c1', body={'user_pool_id': 'p1'}
        )
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 200
        assert _body(response)['clients'][0]['client_id'] == 'c1'
        cognito.update_user_pool_client.assert_called_once_with(
            UserPoolId='p1', ClientId='c1', ClientName='web'
        )

    def test_describe_client_returns_full_description(
        self, runtime, cognito, api_gateway_event
    ) -> None:
        cognito.describe_user_pool_client.return_value = {
            'UserPoolClient': {
                'UserPoolId': 'p1',
                'ClientId': 'c1',
                'ClientName': 'web',
                'ClientSecret': 'shh',
                'RefreshTokenValidity': 12,
                'TokenValidityUnits': {'RefreshToken': 'hours'},
                'CreationDate': datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc),
            },
            'ResponseMetadata': {'HTTPStatusCode': 200},
        }
        event = api_gateway_event(
            'GET', '/user-pool-clients/c1', query={'pool_id': 'p1'}
        )
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 200
        client = _body(response)['results'][0]
        assert client['ClientSecret'] == 'shh'
        assert client['TokenValidityUnits'] == {'RefreshToken': 'hours'}
        assert client['CreationDate'].startswith('2024-05-01T08:30:00')
        cognito.describe_user_pool_client.assert_called_once_with(
            UserPoolId='p1', ClientId='c1'
        )

    def test_login_rejected(self, runtime, cognito, client_error, api_gateway_event) -> None:
        cognito.initiate_auth.side_effect = client_error(
            'NotAuthorizedException', 'Incorrect username or password.', 'InitiateAuth'
        )
        event = api_gateway_event(
            'POST',
            '/auth/login',
            body={'email_address': 'ann@x.com', 'password': 'bad', 'client_id': 'c1'},
        )
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 400
        assert _body(response)['results'] == []

    def test_base64_body(self, runtime, cognito, api_gateway_event) -> None:
        cognito.forgot_password.return_value = {}
        event = api_gateway_event('POST', '/auth/forgot-password')
        event['body'] = base64.b64encode(
            json.dumps({'email_address': 'ann@x.com', 'client_id': 'c1'}).encode()
        ).decode()
        event['isBase64Encoded'] = True
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 200
        cognito.forgot_password.assert_called_once_with(
            ClientId='c1', Username='ann@x.com'
        )

    def test_unknown_route(self, runtime, api_gateway_event) -> None:
        response = route_request(api_gateway_event('GET', '/groups'), None, runtime)
        assert response['statusCode'] == 404
        assert _body(response) == {'error': 'Not found'}

    def test_invalid_json(self, runtime, cognito, api_gateway_event) -> None:
        event = api_gateway_event('POST', '/users')
        event['body'] = '{not json'
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 500
        assert _body(response)['message'] == 'Request body must be valid JSON'
        assert cognito.method_calls == []

    def test_non_object_body(self, runtime, api_gateway_event) -> None:
        event = api_gateway_event('POST', '/users', body=['p1'])
        response = route_request(event, None, runtime)
        assert _body(response)['message'] == 'Request body must be a JSON object'

    def test_wrong_content_type(self, runtime, api_gateway_event) -> None:
        event = api_gateway_event('POST', '/users', body={'user_pool_id': 'p1'})
        event['headers'] = {'Content-Type': 'text/plain'}
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 500
        assert _body(response)['message'] == 'Content-Type must be application/json'

    def test_type_mismatch_names_field(self, iam, cognito, api_gateway_event) -> None:
        runtime = ServiceRuntime(
            cognito=cognito,
            iam=iam,
            settings=Settings(invalid_input_status_code=400),
        )
        event = api_gateway_event(
            'POST', '/user-pools', body={'pool_name': 'Pool', 'wait_days': 'soon'}
        )
        response = route_request(event, None, runtime)

        assert response['statusCode'] == 400
        assert _body(response) == {
            'response_code': 400,
            'message': 'Invalid value for wait_days',
            'pools': [],
        }
        assert iam.method_calls == []

    def test_clears_request_context(self, runtime, api_gateway_event) -> None:
        route_request(api_gateway_event('GET', '/user-pools/5'), None, runtime)
        assert request_id.get() == ''
        assert operation.get() == ''
