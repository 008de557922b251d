# -*- coding: utf-8 -*-
"""Value objects passed between the rotation handler and its collaborators.

Secret payloads are JSON objects with lowerCamelCase keys
{
    "clientId": "string",       # Cognito app client id
    "clientSecret": "string",   # Cognito app client secret
    "scope": "string"           # allowed OAuth scopes joined by a single space
}
"""

import json
from dataclasses import dataclass, field
from enum import Enum

from cognito_secret_rotation.exceptions import ValidationError


class VersionStage:
    """Stage labels Secrets Manager attaches to secret versions."""

    CURRENT = "AWSCURRENT"
    PENDING = "AWSPENDING"
    PREVIOUS = "AWSPREVIOUS"


class RotationStep(Enum):
    CREATE = "createSecret"
    SET = "setSecret"
    TEST = "testSecret"
    FINISH = "finishSecret"


@dataclass(frozen=True)
class RotationRequest:
    secret_id: str
    client_request_token: str
    step: RotationStep

    @classmethod
    def from_event(cls, event):
        """Builds a request from a Secrets Manager rotation event.

        Args:
            event (dict): The Lambda event with `SecretId`, `ClientRequestToken`
                and `Step` keys.

        Raises:
            ValidationError: If a key is missing or the step is not one of the
                four rotation steps.
        """
        try:
            secret_id = event["SecretId"]
            token = event["ClientRequestToken"]
            step_name = event["Step"]
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Rotation event is missing {e}") from None

        try:
            step = RotationStep(step_name)
        except ValueError:
            raise ValidationError(f"Invalid step parameter {step_name}") from None

        return cls(secret_id=secret_id, client_request_token=token, step=step)


@dataclass(frozen=True)
class SecretMetadata:
    secret_id: str
    rotation_enabled: bool
    versions: dict = field(default_factory=dict)

    def stages_for(self, version_id):
        return self.versions.get(version_id, frozenset())

    def version_for_stage(self, stage):
        for version_id, stages in self.versions.items():
            if stage in stages:
                return version_id
        return None


@dataclass(frozen=True)
class Credentials:
    client_id: str
    client_secret: str
    scope: str = ""

    def to_secret_string(self):
        return json.dumps(
            {
                "clientId": self.client_id,
                "clientSecret": self.client_secret,
                "scope": self.scope,
            },
            indent=2,
        )

    @classmethod
    def from_secret_string(cls, secret_string):
        try:
            secret = json.loads(secret_string)
        except (json.decoder.JSONDecodeError, TypeError):
            raise ValidationError("Secret is not valid JSON") from None

        if not isinstance(secret, dict):
            raise ValidationError("Secret is not a JSON object")

        for key in ["clientId", "clientSecret"]:
            if key not in secret:
                raise ValidationError(f"Secret does not contain key {key}")

        return cls(
            client_id=secret["clientId"],
            client_secret=secret["clientSecret"],
            scope=secret.get("scope") or "",
        )


@dataclass(frozen=True)
class AppClient:
    client_id: str
    client_secret: str
    allowed_scopes: tuple = ()

    def to_credentials(self):
        return Credentials(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.allowed_scopes),
        )


@dataclass(frozen=True)
class Found:
    value: object


class Absent:
    """Marks a read that found nothing where absence is a normal outcome."""

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = Absent()
