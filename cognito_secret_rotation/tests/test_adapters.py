# -*- coding: utf-8 -*-
"""
Tests the AWS, token endpoint and configuration adapters of cognito_secret_rotation

"""
from __future__ import absolute_import

import logging
import os
import unittest
from unittest import mock

import boto3
import requests
from botocore.stub import Stubber

from cognito_secret_rotation import *
from cognito_secret_rotation import handler

SECRET_ARN = "arn:aws:secretsmanager:eu-west-1:123456789012:secret:S-abc123"
CURRENT_TOKEN = "11111111-1111-1111-1111-111111111111"
PENDING_TOKEN = "22222222-2222-2222-2222-222222222222"
USER_POOL_ID = "eu-west-1_pool"
# Cognito client secrets are at least 24 characters
OLD_CLIENT_SECRET = "0ldcl1entsecretabcdefghijklmnop"
NEW_CLIENT_SECRET = "n3wcl1entsecretabcdefghijklmnop"


def setup_module():
    logging.basicConfig(level=logging.DEBUG)


def make_client(service_name):
    return boto3.client(service_name,
                        region_name="eu-west-1",
                        aws_access_key_id="testing",
                        aws_secret_access_key="testing")


class TestSecretsManagerStore(unittest.TestCase):
    def setUp(self):
        self.client = make_client("secretsmanager")
        self.stubber = Stubber(self.client)
        self.stubber.activate()
        self.store = SecretsManagerStore(client=self.client)

    def tearDown(self):
        self.stubber.deactivate()

    def test_describe_secret(self):
        self.stubber.add_response(
            "describe_secret",
            {
                "ARN": SECRET_ARN,
                "Name": "S",
                "RotationEnabled": True,
                "VersionIdsToStages": {
                    CURRENT_TOKEN: ["AWSCURRENT"],
                    PENDING_TOKEN: ["AWSPENDING"],
                },
            },
            {"SecretId": SECRET_ARN},
        )
        metadata = self.store.describe_secret(SECRET_ARN)
        assert metadata.rotation_enabled is True
        assert metadata.version_for_stage(VersionStage.CURRENT) == CURRENT_TOKEN
        assert metadata.stages_for(PENDING_TOKEN) == frozenset(["AWSPENDING"])
        assert metadata.stages_for("unknown") == frozenset()
        self.stubber.assert_no_pending_responses()

    def test_describe_secret_rotation_not_configured(self):
        self.stubber.add_response("describe_secret", {"ARN": SECRET_ARN, "Name": "S"},
                                  {"SecretId": SECRET_ARN})
        metadata = self.store.describe_secret(SECRET_ARN)
        assert metadata.rotation_enabled is False
        assert metadata.versions == {}

    def test_describe_missing_secret(self):
        self.stubber.add_client_error("describe_secret",
                                      service_error_code="ResourceNotFoundException")
        with self.assertRaises(SecretNotFound):
            self.store.describe_secret(SECRET_ARN)

    def test_get_secret_value(self):
        self.stubber.add_response(
            "get_secret_value",
            {"ARN": SECRET_ARN, "Name": "S", "VersionId": PENDING_TOKEN,
             "SecretString": '{"clientId": "1", "clientSecret": "2", "scope": ""}'},
            {"SecretId": SECRET_ARN, "VersionId": PENDING_TOKEN, "VersionStage": "AWSPENDING"},
        )
        result = self.store.get_secret_value(SECRET_ARN, version_id=PENDING_TOKEN,
                                             version_stage=VersionStage.PENDING)
        assert isinstance(result, Found)
        assert Credentials.from_secret_string(result.value) == Credentials("1", "2", "")

    def test_get_secret_value_absent(self):
        self.stubber.add_client_error("get_secret_value",
                                      service_error_code="ResourceNotFoundException",
                                      expected_params={"SecretId": SECRET_ARN,
                                                       "VersionStage": "AWSPREVIOUS"})
        result = self.store.get_secret_value(SECRET_ARN, version_stage=VersionStage.PREVIOUS)
        assert result is ABSENT
        assert not result

    def test_get_secret_value_failure(self):
        self.stubber.add_client_error("get_secret_value",
                                      service_error_code="InternalServiceError",
                                      http_status_code=500)
        with self.assertRaises(TransientInfrastructureError) as context:
            self.store.get_secret_value(SECRET_ARN, version_stage=VersionStage.CURRENT)
        assert context.exception.operation == "GetSecretValue"

    def test_put_secret_value(self):
        self.stubber.add_response(
            "put_secret_value",
            {"ARN": SECRET_ARN, "Name": "S", "VersionId": PENDING_TOKEN,
             "VersionStages": ["AWSPENDING"]},
            {"SecretId": SECRET_ARN, "ClientRequestToken": PENDING_TOKEN,
             "SecretString": "payload", "VersionStages": ["AWSPENDING"]},
        )
        self.store.put_secret_value(SECRET_ARN, PENDING_TOKEN, "payload", (VersionStage.PENDING,))
        self.stubber.assert_no_pending_responses()

    def test_update_secret_version_stage(self):
        self.stubber.add_response(
            "update_secret_version_stage",
            {"ARN": SECRET_ARN, "Name": "S"},
            {"SecretId": SECRET_ARN, "VersionStage": "AWSCURRENT",
             "MoveToVersionId": PENDING_TOKEN, "RemoveFromVersionId": CURRENT_TOKEN},
        )
        self.stubber.add_response(
            "update_secret_version_stage",
            {"ARN": SECRET_ARN, "Name": "S"},
            {"SecretId": SECRET_ARN, "VersionStage": "AWSPENDING",
             "RemoveFromVersionId": PENDING_TOKEN},
        )
        self.store.update_secret_version_stage(SECRET_ARN, VersionStage.CURRENT,
                                               move_to_version_id=PENDING_TOKEN,
                                               remove_from_version_id=CURRENT_TOKEN)
        self.store.update_secret_version_stage(SECRET_ARN, VersionStage.PENDING,
                                               remove_from_version_id=PENDING_TOKEN)
        self.stubber.assert_no_pending_responses()

    def test_session_callback(self):
        session = mock.Mock()
        session.client.return_value = self.client
        store = SecretsManagerStore(region_name="eu-west-1", _session_callback=lambda: session)
        assert store._client is self.client
        assert store._client is self.client
        session.client.assert_called_once_with("secretsmanager", region_name="eu-west-1")


class TestCognitoIdentityProvider(unittest.TestCase):
    def setUp(self):
        self.client = make_client("cognito-idp")
        self.stubber = Stubber(self.client)
        self.stubber.activate()
        self.provider = CognitoIdentityProvider(client=self.client)

    def tearDown(self):
        self.stubber.deactivate()

    def test_describe_and_clone(self):
        self.stubber.add_response(
            "describe_user_pool_client",
            {"UserPoolClient": {
                "UserPoolId": USER_POOL_ID,
                "ClientName": "licensing-api",
                "ClientId": "old-client",
                "ClientSecret": OLD_CLIENT_SECRET,
                "RefreshTokenValidity": 30,
                "AccessTokenValidity": 5,
                "IdTokenValidity": 5,
                "TokenValidityUnits": {"AccessToken": "minutes"},
                "AllowedOAuthFlows": ["client_credentials"],
                "AllowedOAuthScopes": ["api/read", "api/write"],
                "AllowedOAuthFlowsUserPoolClient": True,
            }},
            {"UserPoolId": USER_POOL_ID, "ClientId": "old-client"},
        )
        expected_request = {
            "UserPoolId": USER_POOL_ID,
            "ClientName": "licensing-api",
            "AllowedOAuthFlows": ["client_credentials"],
            "AllowedOAuthScopes": ["api/read", "api/write"],
            "AllowedOAuthFlowsUserPoolClient": True,
            "GenerateSecret": True,
        }
        self.stubber.add_response(
            "create_user_pool_client",
            {"UserPoolClient": {
                "UserPoolId": USER_POOL_ID,
                "ClientName": "licensing-api",
                "ClientId": "new-client",
                "ClientSecret": NEW_CLIENT_SECRET,
                "AllowedOAuthScopes": ["api/read", "api/write"],
            }},
            expected_request,
        )

        config = self.provider.describe_client(USER_POOL_ID, "old-client")
        request = build_create_client_request(config)
        assert request == expected_request, "Token validity must not be copied"

        app_client = self.provider.create_client(request)
        assert app_client == AppClient("new-client", NEW_CLIENT_SECRET,
                                       ("api/read", "api/write"))
        self.stubber.assert_no_pending_responses()

    def test_describe_missing_client(self):
        self.stubber.add_client_error("describe_user_pool_client",
                                      service_error_code="ResourceNotFoundException")
        with self.assertRaises(ClientNotFound):
            self.provider.describe_client(USER_POOL_ID, "gone")

    def test_delete_client(self):
        self.stubber.add_response("delete_user_pool_client", {},
                                  {"UserPoolId": USER_POOL_ID, "ClientId": "old-client"})
        self.provider.delete_client(USER_POOL_ID, "old-client")
        self.stubber.assert_no_pending_responses()

    def test_delete_missing_client(self):
        self.stubber.add_client_error("delete_user_pool_client",
                                      service_error_code="ResourceNotFoundException")
        with self.assertRaises(ClientNotFound) as context:
            self.provider.delete_client(USER_POOL_ID, "gone")
        assert context.exception.client_id == "gone"

    def test_delete_client_failure(self):
        self.stubber.add_client_error("delete_user_pool_client",
                                      service_error_code="TooManyRequestsException",
                                      http_status_code=429)
        with self.assertRaises(TransientInfrastructureError):
            self.provider.delete_client(USER_POOL_ID, "old-client")

    def test_create_request_without_secret(self):
        request = build_create_client_request({"UserPoolId": USER_POOL_ID,
                                               "ClientName": "public",
                                               "ClientId": "c",
                                               "LogoutURLs": None})
        assert request == {"UserPoolId": USER_POOL_ID, "ClientName": "public",
                           "GenerateSecret": False}


class TestTokenEndpointValidator(unittest.TestCase):
    TOKEN_URL = "https://auth.example.com/oauth2/token"

    def setUp(self):
        self.session = mock.Mock()
        self.validator = TokenEndpointValidator(self.TOKEN_URL,
                                                session_factory=lambda: self.session)

    def test_retrieve_token(self):
        response = mock.Mock()
        response.json.return_value = {"access_token": "token", "token_type": "Bearer"}
        self.session.post.return_value = response

        token = self.validator.retrieve_token(Credentials("id", "secret", "api/read api/write"))

        assert token == "token"
        self.session.post.assert_called_once_with(
            self.TOKEN_URL,
            data={"grant_type": "client_credentials", "scope": "api/read api/write"},
            auth=("id", "secret"),
            timeout=None,
        )

    def test_blank_scope(self):
        response = mock.Mock()
        response.json.return_value = {"access_token": "token"}
        self.session.post.return_value = response

        assert self.validator.retrieve_token(Credentials("id", "secret", "")) == "token"
        assert self.session.post.call_args[1]["data"] == {"grant_type": "client_credentials"}, \
            "Empty scope should not be sent"

    def test_unauthorized(self):
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Client Error")
        self.session.post.return_value = response

        with self.assertRaises(AuthenticationError) as context:
            self.validator.retrieve_token(Credentials("id", "wrong", "api/read"))
        assert context.exception.client_id == "id"
        assert self.session.post.call_count == 1, "No retry expected"

    def test_transport_error(self):
        self.session.post.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(AuthenticationError):
            self.validator.retrieve_token(Credentials("id", "secret", "api/read"))

    def test_response_without_token(self):
        response = mock.Mock()
        response.json.return_value = {"error": "invalid_client"}
        self.session.post.return_value = response
        with self.assertRaises(AuthenticationError):
            self.validator.retrieve_token(Credentials("id", "secret", "api/read"))


class TestRotationConfig(unittest.TestCase):

    def test_from_environment(self):
        config = RotationConfig.from_environment(
            {"AUTHORIZATION_URL": "https://auth/oauth2/token", "USER_POOL_ID": USER_POOL_ID,
             "AWS_REGION": "eu-west-1"},
            _ssm_client_callback=mock.Mock(side_effect=AssertionError("ssm not expected")))
        assert config.user_pool_id == USER_POOL_ID
        assert config.authorization_url == "https://auth/oauth2/token"
        assert config.region_name == "eu-west-1"

    def test_legacy_authorization_url(self):
        config = RotationConfig.from_environment(
            {"AuthorizationUrl": "https://auth/oauth2/token", "USER_POOL_ID": USER_POOL_ID})
        assert config.authorization_url == "https://auth/oauth2/token"

    def test_user_pool_from_parameter_store(self):
        ssm = make_client("ssm")
        stubber = Stubber(ssm)
        stubber.add_response(
            "get_parameters_by_path",
            {"Parameters": [
                {"Name": "/licensing/userPoolId", "Type": "String", "Value": USER_POOL_ID},
                {"Name": "/licensing/other", "Type": "String", "Value": "x"},
            ]},
            {"Path": "/licensing", "Recursive": True, "WithDecryption": True},
        )
        with stubber:
            config = RotationConfig.from_environment(
                {"AUTHORIZATION_URL": "https://auth/oauth2/token"},
                _ssm_client_callback=lambda: ssm)
        assert config.user_pool_id == USER_POOL_ID
        assert config.parameter_path == "/licensing"

    def test_missing_user_pool(self):
        ssm = make_client("ssm")
        stubber = Stubber(ssm)
        stubber.add_response("get_parameters_by_path", {"Parameters": []},
                             {"Path": "/rotation", "Recursive": True, "WithDecryption": True})
        with stubber:
            with self.assertRaises(ConfigurationError):
                RotationConfig.from_environment(
                    {"AUTHORIZATION_URL": "https://auth/oauth2/token",
                     "CONFIG_PARAMETER_PATH": "/rotation"},
                    _ssm_client_callback=lambda: ssm)

    def test_missing_authorization_url(self):
        with self.assertRaises(ConfigurationError) as context:
            RotationConfig.from_environment({"USER_POOL_ID": USER_POOL_ID})
        assert context.exception.setting == "AUTHORIZATION_URL"


class TestLambdaHandler(unittest.TestCase):

    def tearDown(self):
        handler._rotator = None

    def test_build_rotator(self):
        rotator = handler.build_rotator(
            RotationConfig(user_pool_id=USER_POOL_ID, authorization_url="https://auth/token"))
        assert isinstance(rotator.store, SecretsManagerStore)
        assert isinstance(rotator.mechanic, CognitoAppClientRotator)
        assert rotator.mechanic.user_pool_id == USER_POOL_ID
        assert rotator.mechanic.validator.token_url == "https://auth/token"

    def test_rotator_built_once(self):
        handler._rotator = None
        with mock.patch.dict(os.environ, {"AUTHORIZATION_URL": "https://auth/token",
                                          "USER_POOL_ID": USER_POOL_ID}):
            assert handler.get_rotator() is handler.get_rotator()

    def test_lambda_handler_dispatches(self):
        event = {"SecretId": SECRET_ARN, "ClientRequestToken": PENDING_TOKEN,
                 "Step": "setSecret"}
        rotator = mock.Mock()
        with mock.patch.object(handler, "get_rotator", return_value=rotator):
            handler.lambda_handler(event, None)
        rotator.rotate_secret.assert_called_once_with(event)

    def test_lambda_handler_rejects_malformed_event(self):
        rotator = mock.Mock()
        with mock.patch.object(handler, "get_rotator", return_value=rotator):
            for event in [None, "createSecret", ["SecretId"]]:
                with self.assertRaises(ValidationError):
                    handler.lambda_handler(event, None)
        assert rotator.rotate_secret.call_count == 0, "Malformed events must not reach the rotator"
