# -*- coding: utf-8 -*-
"""AWS Lambda entry point for Secrets Manager rotation of Cognito app clients."""

import logging
import os
import threading

from cognito_secret_rotation.config import RotationConfig
from cognito_secret_rotation.identity import CognitoIdentityProvider
from cognito_secret_rotation.managers import CognitoAppClientRotator, SecretRotator
from cognito_secret_rotation.models import RotationRequest
from cognito_secret_rotation.stores import SecretsManagerStore
from cognito_secret_rotation.validators import TokenEndpointValidator

_lock = threading.Lock()
_rotator = None


def build_rotator(config):
    """Wires a `SecretRotator` for Cognito app clients from configuration."""
    store = SecretsManagerStore(region_name=config.region_name)
    identity_provider = CognitoIdentityProvider(region_name=config.region_name)
    validator = TokenEndpointValidator(config.authorization_url)
    mechanic = CognitoAppClientRotator(identity_provider, validator, config.user_pool_id)
    return SecretRotator(store, mechanic)


def get_rotator():
    # built once per Lambda container
    global _rotator
    with _lock:
        if _rotator is None:
            _rotator = build_rotator(RotationConfig.from_environment())
        return _rotator


def lambda_handler(event, context):
    logging.getLogger().setLevel(os.environ.get("LOG_LEVEL", "INFO"))
    request = RotationRequest.from_event(event)
    logging.getLogger(__name__).info(
        f"Received input SecretId:{request.secret_id} "
        f"ClientRequestToken:{request.client_request_token} Step:{request.step.value}"
    )
    get_rotator().rotate_secret(event)
