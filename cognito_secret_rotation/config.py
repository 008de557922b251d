# -*- coding: utf-8 -*-

import logging
import os
from dataclasses import dataclass

import boto3

from cognito_secret_rotation.exceptions import ConfigurationError

DEFAULT_PARAMETER_PATH = "/licensing"


def load_parameters(parameter_path, ssm_client):
    """Loads all SSM parameters below a path.

    Args:
        parameter_path (str): The hierarchy to read recursively.
        ssm_client: A boto3 `ssm` client.

    Returns:
        dict: Parameter values keyed by the last segment of their name.
    """
    parameters = {}
    paginator = ssm_client.get_paginator("get_parameters_by_path")
    for page in paginator.paginate(Path=parameter_path, Recursive=True, WithDecryption=True):
        for parameter in page.get("Parameters", []):
            parameters[parameter["Name"].rsplit("/", 1)[-1]] = parameter["Value"]
    return parameters


@dataclass
class RotationConfig:
    user_pool_id: str
    authorization_url: str
    parameter_path: str = DEFAULT_PARAMETER_PATH
    region_name: str = None

    @classmethod
    def from_environment(cls, environ=None, _ssm_client_callback=None):
        """Builds the configuration from environment variables.

        `AUTHORIZATION_URL` (or `AuthorizationUrl`) names the token endpoint.
        `USER_POOL_ID` names the user pool, if it is unset the `userPoolId`
        parameter below `CONFIG_PARAMETER_PATH` in SSM Parameter Store is used.

        Args:
            environ (dict, optional): Defaults to `os.environ`.
            _ssm_client_callback (callable, optional): Returns a boto3 `ssm`
                client. Defaults to one from a default session.

        Raises:
            ConfigurationError: If either setting cannot be found.
        """
        if environ is None:
            environ = os.environ

        region_name = environ.get("AWS_REGION")
        parameter_path = environ.get("CONFIG_PARAMETER_PATH", DEFAULT_PARAMETER_PATH)

        authorization_url = environ.get("AUTHORIZATION_URL") or environ.get("AuthorizationUrl")
        if not authorization_url:
            raise ConfigurationError("AUTHORIZATION_URL")

        user_pool_id = environ.get("USER_POOL_ID")
        if not user_pool_id:
            if _ssm_client_callback is not None:
                ssm_client = _ssm_client_callback()
            else:
                ssm_client = boto3.session.Session().client("ssm", region_name=region_name)
            logging.getLogger(__name__).info(
                f"Loading user pool id from parameter path {parameter_path}"
            )
            user_pool_id = load_parameters(parameter_path, ssm_client).get("userPoolId")

        if not user_pool_id:
            raise ConfigurationError(f"USER_POOL_ID or {parameter_path}/userPoolId")

        return cls(
            user_pool_id=user_pool_id,
            authorization_url=authorization_url,
            parameter_path=parameter_path,
            region_name=region_name,
        )
