# -*- coding: utf-8 -*-

import logging
from abc import ABC, abstractmethod

from cognito_secret_rotation.exceptions import (
    ClientNotFound,
    PreconditionError,
    SecretNotFound,
    ValidationError,
)
from cognito_secret_rotation.identity import build_create_client_request
from cognito_secret_rotation.models import (
    Absent,
    Credentials,
    RotationRequest,
    RotationStep,
    VersionStage,
)

"""
Rotation of secrets held in AWS Secrets Manager.

Secrets Manager drives a rotation by invoking the rotation function four times
with the same client request token, once per step

createSecret  - Build new secret material and store it as a new version staged
                AWSPENDING under the token.
setSecret     - Push the pending secret to whatever consumes it.
testSecret    - Prove the pending secret works.
finishSecret  - Move AWSCURRENT onto the token version. Secrets Manager moves the
                AWSPREVIOUS label onto the version that was current.

Every step can be delivered more than once. No state is kept between calls, each
step works out from the version stages in the store whether it has already run.
see https://docs.aws.amazon.com/secretsmanager/latest/userguide/rotate-secrets_how.html

The generic protocol lives in SecretRotator. What the secret actually is and how
it is created, tested and retired is delegated to a SecretRotatorMechanic.
"""


class SecretRotatorMechanic(ABC):
    """Abstract Base Class for a secret rotation mechanic.

    The `SecretRotator` uses a concrete implementation of this class to do the
    secret specific work of a rotation, such as creating a new app client. This
    follows the strategy pattern where `SecretRotator` is the context.
    """

    @abstractmethod
    def create_new_secret(self, rotator, secret_id, current_secret):
        """Creates the new secret material.

        Args:
            rotator (SecretRotator): The rotator instance calling this method.
            secret_id (str): The secret being rotated.
            current_secret (str): The secret string staged AWSCURRENT.

        Returns:
            str: The secret string to store as the pending version.
        """
        return None

    def set_secret(self, rotator, secret_id, token):
        """Applies the pending secret to the service using it. Optional."""
        return None

    def validate_secret(self, rotator, secret_id, pending_secret):
        """Validates that the pending secret is functional.

        Should raise an exception if validation fails.
        """
        return None

    @abstractmethod
    def disable_old_secret_versions_material(self, rotator, secret_id, previous_secret):
        """Invalidates the material of the version about to lose AWSPREVIOUS.

        Args:
            rotator (SecretRotator): The rotator instance calling this method.
            secret_id (str): The secret being rotated.
            previous_secret (str): The secret string staged AWSPREVIOUS.
        """
        pass


class SecretRotator:
    """Orchestrates the four step Secrets Manager rotation protocol.

    Attributes:
        store (SecretStore): Where secret versions and stages live.
        mechanic (SecretRotatorMechanic): The strategy for the secret specific
            rotation logic.
    """

    def __init__(self, store, mechanic):
        self._store = store
        self._mechanic = mechanic

    @property
    def store(self):
        return self._store

    @property
    def mechanic(self):
        return self._mechanic

    def rotate_secret(self, event):
        """Handles a rotation event from Secrets Manager.

        Checks the secret is set up for rotation and the token is a pending
        version before running the requested step.

        Args:
            event (dict): `SecretId`, `ClientRequestToken` and `Step`.

        Raises:
            ValidationError: If the event or the secret's state does not allow
                the step to run.
        """
        logger = logging.getLogger(__name__)
        request = RotationRequest.from_event(event)
        arn = request.secret_id
        token = request.client_request_token
        logger.info(f"Received rotation request {request.step.value} for {arn} version {token}")

        metadata = self.store.describe_secret(arn)

        if not metadata.rotation_enabled:
            logger.error(f"Secret {arn} is not enabled for rotation")
            raise ValidationError(f"Secret {arn} is not enabled for rotation")

        if token not in metadata.versions:
            logger.error(f"Secret version {token} has no stage for rotation of secret {arn}")
            raise ValidationError(
                f"Secret version {token} has no stage for rotation of secret {arn}"
            )

        stages = metadata.stages_for(token)
        if VersionStage.CURRENT in stages:
            logger.info(
                f"Secret version {token} already set as {VersionStage.CURRENT} for secret {arn}"
            )
            return None

        if VersionStage.PENDING not in stages:
            logger.error(
                f"Secret version {token} not set as {VersionStage.PENDING} "
                f"for rotation of secret {arn}"
            )
            raise ValidationError(
                f"Secret version {token} not set as {VersionStage.PENDING} "
                f"for rotation of secret {arn}"
            )

        steps = {
            RotationStep.CREATE: self.create_secret,
            RotationStep.SET: self.set_secret,
            RotationStep.TEST: self.test_secret,
            RotationStep.FINISH: self.finish_secret,
        }
        logger.info(f"Performing step {request.step.value}")
        return steps[request.step](arn, token)

    def create_secret(self, arn, token):
        """Stores new secret material as the pending version for `token`.

        A no-op if a pending version for the token already exists.

        Raises:
            PreconditionError: If the secret has no current version.
        """
        current = self.store.get_secret_value(arn, version_stage=VersionStage.CURRENT)
        if isinstance(current, Absent):
            raise PreconditionError(arn, VersionStage.CURRENT)

        pending = self.store.get_secret_value(
            arn, version_id=token, version_stage=VersionStage.PENDING
        )
        if not isinstance(pending, Absent):
            logging.getLogger(__name__).info(
                f"createSecret: Successfully retrieved secret for {arn}"
            )
            return

        secret = self.mechanic.create_new_secret(self, arn, current.value)

        self.store.put_secret_value(arn, token, secret, [VersionStage.PENDING])
        logging.getLogger(__name__).info(
            f"createSecret: Successfully put secret for ARN {arn} and version {token}"
        )

    def set_secret(self, arn, token):
        self.mechanic.set_secret(self, arn, token)

    def test_secret(self, arn, token):
        """Validates the secret stored under `token`, whatever its stage."""
        pending = self.store.get_secret_value(arn, version_id=token)
        if isinstance(pending, Absent):
            raise SecretNotFound(arn, version_id=token)

        self.mechanic.validate_secret(self, arn, pending.value)
        logging.getLogger(__name__).info(
            f"testSecret: Successfully tested {VersionStage.PENDING} secret "
            f"for ARN {arn} and version {token}"
        )

    def finish_secret(self, arn, token):
        """Promotes `token` to the current version.

        The material of the previous version is retired first. Failing to
        retire it is logged and does not stop the promotion.

        Returns:
            bool: False if retiring the previous material failed, True otherwise.
        """
        logger = logging.getLogger(__name__)
        metadata = self.store.describe_secret(arn)
        current_version = metadata.version_for_stage(VersionStage.CURRENT)

        if current_version == token:
            logger.info(
                f"finishSecret: Version {current_version} already marked as "
                f"{VersionStage.CURRENT} for {arn}"
            )
            return True

        retired = self.disable_previous_version_material(arn)

        self.store.update_secret_version_stage(
            arn,
            VersionStage.CURRENT,
            move_to_version_id=token,
            remove_from_version_id=current_version,
        )
        logger.info(
            f"finishSecret: Successfully set {VersionStage.CURRENT} stage "
            f"to version {token} for secret {arn}"
        )

        self.store.update_secret_version_stage(
            arn, VersionStage.PENDING, remove_from_version_id=token
        )
        logger.info(
            f"finishSecret: Successfully removed {VersionStage.PENDING} stage "
            f"for version {token} for secret {arn}"
        )
        return retired

    def disable_previous_version_material(self, arn):
        logger = logging.getLogger(__name__)
        try:
            previous = self.store.get_secret_value(arn, version_stage=VersionStage.PREVIOUS)
            if isinstance(previous, Absent):
                logger.info(
                    f"finishSecret: There is no {VersionStage.PREVIOUS} stage of secret {arn}"
                )
                return True
            self.mechanic.disable_old_secret_versions_material(self, arn, previous.value)
        except Exception:
            # never blocks promotion, a stale app client may be left behind
            logger.exception(
                f"finishSecret: An error occurred retiring the {VersionStage.PREVIOUS} "
                f"secret material for {arn}"
            )
            return False
        return True


class CognitoAppClientRotator(SecretRotatorMechanic):
    """A `SecretRotatorMechanic` for rotating Cognito user pool app clients.

    Each rotation creates a new app client cloned from the current one, so the
    client secret is generated by Cognito. The app client of the previous
    version is deleted when the rotation finishes.

    **Secret Format:**
    ```json
    {
        "clientId": "the-app-client-id",
        "clientSecret": "the-app-client-secret",
        "scope": "resource/read resource/write"
    }
    ```
    """

    def __init__(self, identity_provider, validator, user_pool_id):
        """
        Args:
            identity_provider (IdentityProvider): Manages the app clients.
            validator (CredentialValidator): Checks new credentials authenticate.
            user_pool_id (str): The user pool the app clients belong to.
        """
        super(CognitoAppClientRotator, self).__init__()
        self._identity_provider = identity_provider
        self._validator = validator
        self._user_pool_id = user_pool_id

    @property
    def identity_provider(self):
        return self._identity_provider

    @property
    def validator(self):
        return self._validator

    @property
    def user_pool_id(self):
        return self._user_pool_id

    def create_new_secret(self, rotator, secret_id, current_secret):
        credentials = Credentials.from_secret_string(current_secret)

        current_client = self.identity_provider.describe_client(
            self.user_pool_id, credentials.client_id
        )
        request = build_create_client_request(current_client)
        request["UserPoolId"] = self.user_pool_id

        app_client = self.identity_provider.create_client(request)
        logging.getLogger(__name__).info(
            f"createSecret: Successfully created application client {app_client.client_id}"
        )
        return app_client.to_credentials().to_secret_string()

    def set_secret(self, rotator, secret_id, token):
        logging.getLogger(__name__).info(
            "setSecret: Secrets are generated when the app client is created "
            "in createSecret. No action needed."
        )

    def validate_secret(self, rotator, secret_id, pending_secret):
        credentials = Credentials.from_secret_string(pending_secret)
        self.validator.retrieve_token(credentials)

    def disable_old_secret_versions_material(self, rotator, secret_id, previous_secret):
        credentials = Credentials.from_secret_string(previous_secret)
        try:
            self.identity_provider.delete_client(self.user_pool_id, credentials.client_id)
        except ClientNotFound:
            logging.getLogger(__name__).info(
                f"finishSecret: Application client {credentials.client_id} already deleted"
            )
            return
        logging.getLogger(__name__).info(
            f"finishSecret: Successfully deleted application client {credentials.client_id}"
        )
