# usft_rest_client/client.py
"""
Authenticated HTTP execution for the USFT API.

The RequestExecutor issues exactly one HTTP call per invocation: it builds
the absolute URL, attaches the Date and Authorization headers, serializes an
optional JSON body, sends the request and normalizes the outcome. It knows
nothing about individual resources; the typed operation layer in
`usft_rest_client.api` composes it with the endpoint catalog.

Error Translation:
------------------
Every failure surfaces as a single exception type, RestError, tagged with an
ErrorKind so callers can branch without parsing message text:

- SERVER_MESSAGE: non-200 response with a ``{"Message": ...}`` body
  ("/v1/Device/5 returned 404: Not found")
- HTTP_STATUS: non-200 response without a parseable body
  ("/v1/Device/5 returned 500")
- TRANSPORT: no response at all (DNS, refused connection, timeout)
- UNEXPECTED: any other exception raised while sending
- DECODE: a 200 response whose body does not match the expected type

Authentication failures arrive as SERVER_MESSAGE or HTTP_STATUS with a 401 or
403 status; see RestError.is_authentication_failure.

No retries happen at this layer. A failed request raises immediately.

SSL/TLS Handling:
-----------------
- Standard verification (verify_ssl=True)
- Disabled verification (verify_ssl=False) for development
- Custom CA bundle (verify_ssl='/path/to/cert.pem')
- Truststore integration (use_truststore=True) for the Windows system CA store
"""

import functools
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from ssl import SSLContext
from types import TracebackType
from typing import Any, Final, Self

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from usft_rest_client.common.signing import build_authorization, format_http_date
from usft_rest_client.common.truststore_context import build_truststore_ssl_context
from usft_rest_client.models.request_models import (
    AuthenticationMode,
    Credentials,
    HTTPMethod,
)

__all__: list[str] = [
    'DEFAULT_BASE_URL',
    'ErrorKind',
    'RequestExecutor',
    'RestError',
]

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_BASE_URL: Final[str] = 'https://api.usft.com/v1'
DEFAULT_TIMEOUT: Final[tuple[int, int]] = (30, 120)

HTTP_STATUS_OK: Final[int] = 200
HTTP_STATUS_UNAUTHORIZED: Final[int] = 401
HTTP_STATUS_FORBIDDEN: Final[int] = 403

_BODY_ADAPTER: Final[TypeAdapter[Any]] = TypeAdapter(Any)

NO_RESPONSE_MESSAGE: Final[str] = 'No response generated'
UNEXPECTED_MESSAGE: Final[str] = (
    'Unexpected exception encountered while attempting to get response.'
)


# =============================================================================
# Exception Hierarchy
# =============================================================================


class ErrorKind(str, Enum):
    """Classification of a failed request."""

    SERVER_MESSAGE = 'server_message'
    HTTP_STATUS = 'http_status'
    TRANSPORT = 'transport'
    UNEXPECTED = 'unexpected'
    DECODE = 'decode'


class RestError(Exception):
    """
    Raised for every unsuccessful USFT API request.

    The underlying transport or decoding exception, when there is one, is
    chained as __cause__.

    Attributes:
        kind: What went wrong; see ErrorKind.
        path: Request path and query as transmitted, if a request was built.
        status_code: HTTP status when a response was received.
        server_message: Message parsed from the error body, if any.
        response: The raw httpx response, kept for inspection.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        path: str | None = None,
        status_code: int | None = None,
        server_message: str | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(message)
        self.kind: ErrorKind = kind
        self.path: str | None = path
        self.status_code: int | None = status_code
        self.server_message: str | None = server_message
        self.response: httpx.Response | None = response

    @property
    def is_authentication_failure(self) -> bool:
        """True when the server rejected the credentials (401 or 403)."""
        return self.status_code in (HTTP_STATUS_UNAUTHORIZED, HTTP_STATUS_FORBIDDEN)

    @property
    def response_body(self) -> str | None:
        """Raw response text, or None when no response was received."""
        return self.response.text if self.response is not None else None


class _ErrorEnvelope(BaseModel):
    """Error body returned by the API for rejected requests."""

    model_config = ConfigDict(extra='ignore')

    Message: str


@functools.cache
def _type_adapter(response_type: Any) -> TypeAdapter[Any]:
    """Build (once per type) the adapter used to decode responses."""
    return TypeAdapter(response_type)


def _utc_now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Request Executor
# =============================================================================


class RequestExecutor:
    """
    Builds, authenticates and sends single USFT API requests.

    The executor owns an httpx.Client for connection pooling. Credentials,
    base URL and authentication mode are fixed at construction.

    Thread Safety:
        The underlying httpx.Client is thread-safe, and the executor holds
        no per-request state, so one executor may be shared by threads.

    Example:
        >>> credentials = Credentials(username='fleet', secret='api-key')
        >>> with RequestExecutor(credentials) as executor:
        ...     locations = executor.retrieve('/Location', list[Location])
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout: tuple[int, int] = DEFAULT_TIMEOUT,
        verify_ssl: bool | str = True,
        use_truststore: bool = False,
        clock: Callable[[], datetime] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            credentials: Identity, secret and authentication mode.
            base_url: API root. Trailing slashes are stripped once here.
            timeout: (connect_timeout, read_timeout) in seconds.
            verify_ssl: True, False, or a path to a CA bundle.
            use_truststore: Build the SSL context from the OS trust store.
            clock: Source of the Date header time. Defaults to the current
                UTC time; inject a fixed clock for reproducible signatures.
            transport: Optional httpx transport (e.g. httpx.MockTransport).

        Raises:
            RuntimeError: If use_truststore=True and truststore is missing.
        """
        self._credentials: Credentials = credentials
        self._base_url: str = base_url.rstrip('/')
        self._clock: Callable[[], datetime] = clock or _utc_now

        if (
            credentials.mode is AuthenticationMode.BASIC
            and not self._base_url.startswith('https://')
        ):
            logger.warning(
                'Basic authentication sends the secret in the clear; '
                'use it only over https (base_url=%r)',
                self._base_url,
            )

        ssl_verify: SSLContext | bool | str = (
            build_truststore_ssl_context() if use_truststore else verify_ssl
        )
        connect_timeout, read_timeout = timeout

        self._http_client: httpx.Client = httpx.Client(
            timeout=httpx.Timeout(
                connect=connect_timeout,
                read=read_timeout,
                write=connect_timeout,
                pool=connect_timeout,
            ),
            verify=ssl_verify,
            transport=transport,
        )

        logger.debug(
            'Initialized RequestExecutor: base_url=%r, mode=%s',
            self._base_url,
            credentials.mode.value,
        )

    @property
    def base_url(self) -> str:
        """Normalized API root (no trailing slash)."""
        return self._base_url

    @property
    def credentials(self) -> Credentials:
        """Credentials every request is authenticated with."""
        return self._credentials

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP connection pool. Safe to call more than once."""
        self._http_client.close()
        logger.debug('RequestExecutor closed')

    def __enter__(self) -> Self:
        """Enter context manager, returning self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager, closing the HTTP client."""
        self.close()

    # -------------------------------------------------------------------------
    # Request Construction
    # -------------------------------------------------------------------------

    def build_request(
        self,
        path: str,
        method: HTTPMethod = HTTPMethod.GET,
        body: Any = None,
        authenticate: bool = True,
        date_override: datetime | None = None,
    ) -> httpx.Request:
        """
        Build one authenticated request without sending it.

        Args:
            path: Path (and query) relative to the base URL, e.g. '/Location'.
            method: HTTP verb.
            body: Object to send as JSON. pydantic models are serialized with
                their wire (PascalCase) aliases. None sends no body.
            authenticate: Attach Date and Authorization headers.
            date_override: Time to put in the Date header instead of the clock.

        Returns:
            The httpx.Request ready for sending.
        """
        headers: dict[str, str] = {'Accept': 'application/json'}
        content: bytes | None = None

        if body is not None:
            content = _BODY_ADAPTER.dump_json(body, by_alias=True)
            headers['Content-Type'] = 'application/json'

        # httpx never sends Expect: 100-continue, so the body goes out with
        # the headers in a single round trip.
        request: httpx.Request = self._http_client.build_request(
            method.value,
            f'{self._base_url}{path}',
            headers=headers,
            content=content,
        )

        if authenticate:
            moment: datetime = (
                date_override if date_override is not None else self._clock()
            )
            # The signed string and the transmitted header must be identical.
            date_header: str = format_http_date(moment)
            request.headers['Date'] = date_header
            request.headers['Authorization'] = build_authorization(
                self._credentials,
                self._transmitted_path(request),
                date_header,
            )

        return request

    @staticmethod
    def _transmitted_path(request: httpx.Request) -> str:
        """Percent-encoded path and query exactly as sent on the wire."""
        return request.url.raw_path.decode('ascii')

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def send(
        self,
        path: str,
        method: HTTPMethod = HTTPMethod.GET,
        body: Any = None,
        authenticate: bool = True,
        date_override: datetime | None = None,
    ) -> httpx.Response:
        """
        Send one request and return the response if its status is 200.

        Raises:
            RestError: For any non-200 status, transport failure or other
                exception while sending.
        """
        request: httpx.Request = self.build_request(
            path,
            method=method,
            body=body,
            authenticate=authenticate,
            date_override=date_override,
        )
        sent_path: str = self._transmitted_path(request)

        logger.debug('%s %s', method.value, sent_path)

        try:
            response: httpx.Response = self._http_client.send(request)
        except httpx.RequestError as error:
            logger.warning('No response from %s: %s', sent_path, error)
            raise RestError(
                NO_RESPONSE_MESSAGE,
                kind=ErrorKind.TRANSPORT,
                path=sent_path,
            ) from error
        except Exception as error:
            logger.exception('Unexpected failure sending %s', sent_path)
            raise RestError(
                UNEXPECTED_MESSAGE,
                kind=ErrorKind.UNEXPECTED,
                path=sent_path,
            ) from error

        if response.status_code != HTTP_STATUS_OK:
            raise self._translate_failure(sent_path, response)

        return response

    def retrieve[T](
        self,
        path: str,
        response_type: type[T] | Any,
        method: HTTPMethod = HTTPMethod.GET,
        body: Any = None,
        authenticate: bool = True,
        date_override: datetime | None = None,
    ) -> T:
        """
        Send one request and decode its JSON body.

        Args:
            path: Path (and query) relative to the base URL.
            response_type: Type to decode into, e.g. Location, list[Location],
                bool or datetime.
            method: HTTP verb.
            body: Optional object to send as JSON.
            authenticate: Attach Date and Authorization headers.
            date_override: Time to put in the Date header instead of the clock.

        Returns:
            The decoded payload.

        Raises:
            RestError: On any request failure, or kind=DECODE when the body
                does not match response_type.
        """
        response: httpx.Response = self.send(
            path,
            method=method,
            body=body,
            authenticate=authenticate,
            date_override=date_override,
        )

        try:
            decoded: T = _type_adapter(response_type).validate_json(response.content)
        except ValidationError as decode_error:
            logger.error(
                'Could not decode response from %s: %s',
                path,
                response.text[:200],
            )
            raise RestError(
                f'{path} returned a body that could not be decoded: {decode_error}',
                kind=ErrorKind.DECODE,
                path=path,
                status_code=response.status_code,
                response=response,
            ) from decode_error

        return decoded

    def _translate_failure(self, path: str, response: httpx.Response) -> RestError:
        """
        Convert a non-200 response into a RestError.

        Uses the server's ``{"Message": ...}`` envelope when the body parses,
        otherwise reports the bare status.
        """
        status_code: int = response.status_code

        try:
            envelope: _ErrorEnvelope = _ErrorEnvelope.model_validate_json(
                response.content
            )
        except ValidationError:
            logger.error('%s returned %d (no message body)', path, status_code)
            return RestError(
                f'{path} returned {status_code}',
                kind=ErrorKind.HTTP_STATUS,
                path=path,
                status_code=status_code,
                response=response,
            )

        logger.error('%s returned %d: %s', path, status_code, envelope.Message)
        return RestError(
            f'{path} returned {status_code}: {envelope.Message}',
            kind=ErrorKind.SERVER_MESSAGE,
            path=path,
            status_code=status_code,
            server_message=envelope.Message,
            response=response,
        )
