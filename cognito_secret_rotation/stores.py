# -*- coding: utf-8 -*-
"""Versioned secret store used by the rotator.

The rotator never holds secret state itself, every step re-reads versions and
stage labels from here.
"""

import logging
import threading
from abc import ABC, abstractmethod

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cognito_secret_rotation.exceptions import SecretNotFound, TransientInfrastructureError
from cognito_secret_rotation.models import ABSENT, Found, SecretMetadata

NOT_FOUND_ERROR_CODE = "ResourceNotFoundException"


def is_not_found(error):
    """True if a botocore error is the service saying a resource does not exist."""
    return (
        isinstance(error, ClientError)
        and error.response.get("Error", {}).get("Code") == NOT_FOUND_ERROR_CODE
    )


class SecretStore(ABC):
    """Abstract view of a secret store with versions and stage labels."""

    @abstractmethod
    def describe_secret(self, secret_id):
        """Returns a fresh `SecretMetadata` snapshot.

        Raises:
            SecretNotFound: If the secret does not exist.
        """

    @abstractmethod
    def get_secret_value(self, secret_id, version_id=None, version_stage=None):
        """Returns `Found(secret_string)` or `ABSENT` if the version/stage is unknown."""

    @abstractmethod
    def put_secret_value(self, secret_id, client_request_token, secret_string, version_stages):
        pass

    @abstractmethod
    def update_secret_version_stage(
        self,
        secret_id,
        version_stage,
        move_to_version_id=None,
        remove_from_version_id=None,
    ):
        pass


class SecretsManagerStore(SecretStore):
    """`SecretStore` backed by AWS Secrets Manager.

    Clients are created lazily per thread so one store can be shared by
    concurrent callers.
    """

    def __init__(self, client=None, region_name=None, _session_callback=None):
        """
        Args:
            client (optional): A ready made boto3 `secretsmanager` client. Used
                for every thread when given.
            region_name (str, optional): Region for clients built by the store.
            _session_callback (callable, optional): Returns a `boto3.session.Session`
                to build clients from. Defaults to a new default session.
        """
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
            self.ns.client = session.client("secretsmanager", region_name=self._region_name)
        return self.ns.client

    def describe_secret(self, secret_id):
        try:
            response = self._client.describe_secret(SecretId=secret_id)
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                raise SecretNotFound(secret_id) from e
            raise TransientInfrastructureError("DescribeSecret", e) from e

        versions = {
            version_id: frozenset(stages)
            for version_id, stages in response.get("VersionIdsToStages", {}).items()
        }
        return SecretMetadata(
            secret_id=response.get("ARN", secret_id),
            rotation_enabled=bool(response.get("RotationEnabled", False)),
            versions=versions,
        )

    def get_secret_value(self, secret_id, version_id=None, version_stage=None):
        request = {"SecretId": secret_id}
        if version_id is not None:
            request["VersionId"] = version_id
        if version_stage is not None:
            request["VersionStage"] = version_stage

        try:
            response = self._client.get_secret_value(**request)
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                logging.getLogger(__name__).debug(
                    f"No value for secret {secret_id} version {version_id} stage {version_stage}"
                )
                return ABSENT
            raise TransientInfrastructureError("GetSecretValue", e) from e

        return Found(response.get("SecretString"))

    def put_secret_value(self, secret_id, client_request_token, secret_string, version_stages):
        try:
            return self._client.put_secret_value(
                SecretId=secret_id,
                ClientRequestToken=client_request_token,
                SecretString=secret_string,
                VersionStages=list(version_stages),
            )
        except (ClientError, BotoCoreError) as e:
            raise TransientInfrastructureError("PutSecretValue", e) from e

    def update_secret_version_stage(
        self,
        secret_id,
        version_stage,
        move_to_version_id=None,
        remove_from_version_id=None,
    ):
        request = {"SecretId": secret_id, "VersionStage": version_stage}
        if move_to_version_id is not None:
            request["MoveToVersionId"] = move_to_version_id
        if remove_from_version_id is not None:
            request["RemoveFromVersionId"] = remove_from_version_id

        try:
            return self._client.update_secret_version_stage(**request)
        except (ClientError, BotoCoreError) as e:
            raise TransientInfrastructureError("UpdateSecretVersionStage", e) from e
