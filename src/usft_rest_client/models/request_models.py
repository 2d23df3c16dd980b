# usft_rest_client/models/request_models.py
"""
Request-side primitives shared by the executor and the endpoint catalog.

These models carry no behavior beyond validation. The executor decides how to
turn them into an authenticated HTTP request; the endpoint catalog decides
which verb and path a logical operation maps to.
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, SecretStr, field_validator

__all__: list[str] = [
    'AuthenticationMode',
    'Credentials',
    'HTTPMethod',
]

logger: logging.Logger = logging.getLogger(__name__)


class HTTPMethod(str, Enum):
    """HTTP verbs used by the USFT API (create/read/update/delete)."""

    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'


class AuthenticationMode(str, Enum):
    """
    How outbound requests are authenticated.

    USFT signs every request with an HMAC of the path and Date header, keyed
    by the account API key. BASIC sends username:secret base64-encoded and
    must only be used over https.
    """

    USFT = 'usft'
    BASIC = 'basic'


class Credentials(BaseModel):
    """
    Identity, secret and authentication mode for one client.

    Immutable once built: a client never switches or mixes auth schemes
    between calls.

    Attributes:
        username: Account login name sent in the Authorization header.
        secret: API key (USFT mode) or password (BASIC mode).
        mode: Authentication scheme applied to every request.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    username: str
    secret: SecretStr
    mode: AuthenticationMode = AuthenticationMode.USFT

    @field_validator('username')
    @classmethod
    def validate_username(cls, username: str) -> str:
        """Trim the username and reject blank values."""
        username = username.strip()
        if not username:
            raise ValueError('Username required.')
        return username

    @field_validator('secret')
    @classmethod
    def validate_secret(cls, secret: SecretStr) -> SecretStr:
        """Trim the secret and reject blank values."""
        secret_value: str = secret.get_secret_value().strip()
        if not secret_value:
            raise ValueError('ApiKey required.')
        return SecretStr(secret_value)
