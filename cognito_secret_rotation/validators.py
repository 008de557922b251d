# -*- coding: utf-8 -*-

import logging
import threading
from abc import ABC, abstractmethod

import requests

from cognito_secret_rotation.exceptions import AuthenticationError


class CredentialValidator(ABC):
    @abstractmethod
    def retrieve_token(self, credentials):
        """Exchanges credentials for an access token.

        Raises:
            AuthenticationError: If the credentials cannot authenticate.
        """


class TokenEndpointValidator(CredentialValidator):
    """Validates client credentials with an OAuth2 client credentials grant.

    A single attempt is made per call, there is no retry.
    """

    def __init__(self, token_url, session_factory=None, timeout=None):
        """
        Args:
            token_url (str): The token endpoint, e.g.
                `https://<domain>.auth.<region>.amazoncognito.com/oauth2/token`.
            session_factory (callable, optional): Returns a `requests.Session`.
                A session is created per thread.
            timeout (float, optional): Request timeout in seconds. None waits
                for as long as the caller's invocation allows.
        """
        self._token_url = token_url
        self._session_factory = session_factory or requests.Session
        self._timeout = timeout
        self.ns = threading.local()

    @property
    def token_url(self):
        return self._token_url

    @property
    def _session(self):
        if not hasattr(self.ns, "session"):
            self.ns.session = self._session_factory()
        return self.ns.session

    def retrieve_token(self, credentials):
        data = {"grant_type": "client_credentials"}
        # left out when empty so the endpoint grants every allowed scope
        if credentials.scope:
            data["scope"] = credentials.scope

        try:
            response = self._session.post(
                self._token_url,
                data=data,
                auth=(credentials.client_id, credentials.client_secret),
                timeout=self._timeout,
            )
            response.raise_for_status()
            token = response.json()["access_token"]
        except requests.RequestException as e:
            raise AuthenticationError(credentials.client_id, e) from e
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(
                credentials.client_id, f"unexpected token response {type(e).__name__}"
            ) from e

        logging.getLogger(__name__).info(
            f"Retrieved access token for client {credentials.client_id}"
        )
        return token
