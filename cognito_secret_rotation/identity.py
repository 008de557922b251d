# -*- coding: utf-8 -*-

import logging
import threading
from abc import ABC, abstractmethod

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cognito_secret_rotation.exceptions import ClientNotFound, TransientInfrastructureError
from cognito_secret_rotation.models import AppClient
from cognito_secret_rotation.stores import is_not_found

# Fields of a described user pool client carried over to its replacement.
# Token validity settings are left out so the new client gets pool defaults.
CREATE_CLIENT_FIELDS = (
    "UserPoolId",
    "ClientName",
    "ReadAttributes",
    "WriteAttributes",
    "ExplicitAuthFlows",
    "SupportedIdentityProviders",
    "CallbackURLs",
    "LogoutURLs",
    "DefaultRedirectURI",
    "AllowedOAuthFlows",
    "AllowedOAuthScopes",
    "AllowedOAuthFlowsUserPoolClient",
    "AnalyticsConfiguration",
    "PreventUserExistenceErrors",
    "EnableTokenRevocation",
    "EnablePropagateAdditionalUserContextData",
    "AuthSessionValidity",
)


def build_create_client_request(client_config):
    """Derives a `CreateUserPoolClient` request from an existing client description.

    Args:
        client_config (dict): The `UserPoolClient` part of a
            `DescribeUserPoolClient` response.

    Returns:
        dict: Request keyword arguments. Fields missing from the description
        are omitted, `GenerateSecret` follows whether the source has a secret.
    """
    request = {}
    for key in CREATE_CLIENT_FIELDS:
        if client_config.get(key) is not None:
            request[key] = client_config[key]
    request["GenerateSecret"] = bool(client_config.get("ClientSecret"))
    return request


class IdentityProvider(ABC):
    """Abstract app client management API of an identity provider."""

    @abstractmethod
    def describe_client(self, user_pool_id, client_id):
        """Returns the client configuration as a dict."""

    @abstractmethod
    def create_client(self, request):
        """Creates a client from a request built by `build_create_client_request`.

        Returns:
            AppClient: The new client including its generated secret.
        """

    @abstractmethod
    def delete_client(self, user_pool_id, client_id):
        """Deletes a client.

        Raises:
            ClientNotFound: If the client does not exist.
        """


class CognitoIdentityProvider(IdentityProvider):
    """`IdentityProvider` backed by Amazon Cognito user pools."""

    def __init__(self, client=None, region_name=None, _session_callback=None):
        self._shared_client = client
        self._region_name = region_name
        self._session_callback = _session_callback
        self.ns = threading.local()

    @property
    def _client(self):
        if self._shared_client is not None:
            return self._shared_client
        if not hasattr(self.ns, "client"):
            if self._session_callback is not None:
                session = self._session_callback()
            else:
                session = boto3.session.Session()
            self.ns.client = session.client("cognito-idp", region_name=self._region_name)
        return self.ns.client

    def describe_client(self, user_pool_id, client_id):
        try:
            response = self._client.describe_user_pool_client(
                UserPoolId=user_pool_id, ClientId=client_id
            )
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                raise ClientNotFound(user_pool_id, client_id) from e
            raise TransientInfrastructureError("DescribeUserPoolClient", e) from e
        return response["UserPoolClient"]

    def create_client(self, request):
        try:
            response = self._client.create_user_pool_client(**request)
        except (ClientError, BotoCoreError) as e:
            raise TransientInfrastructureError("CreateUserPoolClient", e) from e

        user_pool_client = response["UserPoolClient"]
        logging.getLogger(__name__).info(
            f"Created app client {user_pool_client['ClientId']} "
            f"in user pool {user_pool_client.get('UserPoolId')}"
        )
        return AppClient(
            client_id=user_pool_client["ClientId"],
            client_secret=user_pool_client.get("ClientSecret", ""),
            allowed_scopes=tuple(user_pool_client.get("AllowedOAuthScopes", [])),
        )

    def delete_client(self, user_pool_id, client_id):
        try:
            self._client.delete_user_pool_client(UserPoolId=user_pool_id, ClientId=client_id)
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                raise ClientNotFound(user_pool_id, client_id) from e
            raise TransientInfrastructureError("DeleteUserPoolClient", e) from e
