# -*- coding: utf-8 -*-

class SecretRotatorError(Exception):
    """Base Error class."""


class ValidationError(SecretRotatorError):
    """A rotation request or secret payload is not acceptable."""


class PreconditionError(ValidationError):
    CUSTOM_ERROR_MESSAGE = "Secret {} has no {} version to rotate from"

    def __init__(self, secret_id, stage):
        super(PreconditionError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(secret_id, stage))
        self._secret_id = secret_id

    @property
    def secret_id(self):
        return self._secret_id


class NotFoundError(SecretRotatorError):
    """Base class for an expected absence reported by the store or identity provider."""


class SecretNotFound(NotFoundError):
    CUSTOM_ERROR_MESSAGE = "Secret {} version {} stage {} not found"

    def __init__(self, secret_id, version_id=None, version_stage=None):
        super(SecretNotFound, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(secret_id,
                                                                              version_id,
                                                                              version_stage))
        self._secret_id = secret_id

    @property
    def secret_id(self):
        return self._secret_id


class ClientNotFound(NotFoundError):
    CUSTOM_ERROR_MESSAGE = "App client {} not found in user pool {}"

    def __init__(self, user_pool_id, client_id):
        super(ClientNotFound, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(client_id,
                                                                              user_pool_id))
        self._client_id = client_id

    @property
    def client_id(self):
        return self._client_id


class AuthenticationError(SecretRotatorError):
    CUSTOM_ERROR_MESSAGE = "Token request for client {} failed {}"

    def __init__(self, client_id, reason):
        super(AuthenticationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(client_id,
                                                                                   reason))
        self._client_id = client_id

    @property
    def client_id(self):
        return self._client_id


class TransientInfrastructureError(SecretRotatorError):
    CUSTOM_ERROR_MESSAGE = "Operation {} failed error {}"

    def __init__(self, operation, error):
        super(TransientInfrastructureError, self).__init__(
            self.CUSTOM_ERROR_MESSAGE.format(operation, str(error)))
        self._operation = operation
        self._error = error

    @property
    def operation(self):
        return self._operation

    @property
    def error(self):
        return self._error


class ConfigurationError(SecretRotatorError):
    CUSTOM_ERROR_MESSAGE = "Rotation configuration is missing {}"

    def __init__(self, setting):
        super(ConfigurationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(setting))
        self._setting = setting

    @property
    def setting(self):
        return self._setting
