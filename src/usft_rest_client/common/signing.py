# usft_rest_client/common/signing.py
"""
Request signing for the USFT API.

USFT mode authenticates each request with an HMAC-SHA512 over a canonical
string built from a fixed prefix, the absolute request path (no query) and
the literal Date header value:

    USFTRESTv1 + /v1/Location + Tue, 20 Oct 2026 12:00:00 GMT

The server re-derives the hash from the Date header it actually receives, so
the string passed to `build_signing_string` must be byte-identical to the
transmitted header. Always produce both from a single `format_http_date` call.

BASIC mode bypasses the signer entirely.
"""

import base64
import hashlib
import hmac
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Final

from usft_rest_client.models.request_models import AuthenticationMode, Credentials

__all__: list[str] = [
    'SIGNATURE_PREFIX',
    'build_authorization',
    'build_signing_string',
    'compute_signature',
    'format_http_date',
]

SIGNATURE_PREFIX: Final[str] = 'USFTRESTv1'
USFT_SCHEME: Final[str] = 'USFT'
BASIC_SCHEME: Final[str] = 'Basic'


def compute_signature(secret: str, data: str) -> str:
    """
    Compute the lowercase hex HMAC-SHA512 of data keyed by secret.

    Both inputs are ASCII-encoded. Pure function: identical inputs always
    yield identical output.

    Raises:
        UnicodeEncodeError: If either input contains non-ASCII characters.
    """
    digest = hmac.new(
        secret.encode('ascii'),
        data.encode('ascii'),
        hashlib.sha512,
    )
    return digest.hexdigest()


def build_signing_string(
    path: str,
    date_header: str,
    prefix: str = SIGNATURE_PREFIX,
) -> str:
    """Concatenate prefix, absolute path (query stripped) and Date header."""
    absolute_path: str = path.split('?', 1)[0]
    return f'{prefix}{absolute_path}{date_header}'


def format_http_date(moment: datetime) -> str:
    """
    Render a datetime as an RFC 1123 HTTP date in GMT.

    Naive datetimes are interpreted as local time. Sub-second precision is
    dropped, matching what goes on the wire.

    Example:
        >>> format_http_date(datetime(2026, 10, 20, 12, 0, tzinfo=UTC))
        'Tue, 20 Oct 2026 12:00:00 GMT'
    """
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def build_authorization(
    credentials: Credentials,
    path: str,
    date_header: str,
    prefix: str = SIGNATURE_PREFIX,
) -> str:
    """
    Build the Authorization header value for one request.

    Args:
        credentials: Client credentials; their mode selects the scheme.
        path: Absolute request path as transmitted (query is ignored).
        date_header: Exact Date header value sent with the request.
        prefix: Signing prefix for USFT mode.

    Returns:
        'USFT <username>:<hexhash>' or 'Basic <base64(username:secret)>'.
    """
    secret: str = credentials.secret.get_secret_value()

    if credentials.mode is AuthenticationMode.BASIC:
        token: bytes = base64.b64encode(
            f'{credentials.username}:{secret}'.encode('ascii')
        )
        return f'{BASIC_SCHEME} {token.decode("ascii")}'

    signature: str = compute_signature(
        secret,
        build_signing_string(path, date_header, prefix),
    )
    return f'{USFT_SCHEME} {credentials.username}:{signature}'
