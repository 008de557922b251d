# -*- coding: utf-8 -*-
"""cognito_secret_rotation

Rotates Cognito user pool app client credentials held in AWS Secrets Manager using
the four step Secrets Manager rotation protocol. Each rotation creates a new app
client, proves it can obtain a token and retires the client of the previous version.

"""

from __future__ import absolute_import

from cognito_secret_rotation.exceptions import SecretRotatorError, \
    ValidationError, \
    PreconditionError, \
    NotFoundError, \
    SecretNotFound, \
    ClientNotFound, \
    AuthenticationError, \
    TransientInfrastructureError, \
    ConfigurationError
from cognito_secret_rotation.models import VersionStage, \
    RotationStep, \
    RotationRequest, \
    SecretMetadata, \
    Credentials, \
    AppClient, \
    Found, \
    Absent, \
    ABSENT
from cognito_secret_rotation.stores import SecretStore, SecretsManagerStore
from cognito_secret_rotation.identity import IdentityProvider, \
    CognitoIdentityProvider, \
    build_create_client_request
from cognito_secret_rotation.validators import CredentialValidator, TokenEndpointValidator
from cognito_secret_rotation.managers import SecretRotator, \
    SecretRotatorMechanic, \
    CognitoAppClientRotator
from cognito_secret_rotation.config import RotationConfig
from ._version import __version__

__all__ = ["__version__",
           "SecretRotatorError",
           "ValidationError",
           "PreconditionError",
           "NotFoundError",
           "SecretNotFound",
           "ClientNotFound",
           "AuthenticationError",
           "TransientInfrastructureError",
           "ConfigurationError",
           "VersionStage",
           "RotationStep",
           "RotationRequest",
           "SecretMetadata",
           "Credentials",
           "AppClient",
           "Found",
           "Absent",
           "ABSENT",
           "SecretStore",
           "SecretsManagerStore",
           "IdentityProvider",
           "CognitoIdentityProvider",
           "build_create_client_request",
           "CredentialValidator",
           "TokenEndpointValidator",
           "SecretRotator",
           "SecretRotatorMechanic",
           "CognitoAppClientRotator",
           "RotationConfig"]
