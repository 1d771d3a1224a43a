"""
Error types for the chat streaming pipeline.

Only transport-level failures ever reach the caller:
- Connection and DNS failures
- Timeouts
- Non-2xx HTTP statuses
- Streams that end before their ``done`` event

Decoding problems are recovered inside the decoder and never raised.
"""

from __future__ import annotations

import httpx

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500


class ShamelaStreamError(Exception):
    """Base error for the library."""


class StreamStateError(ShamelaStreamError):
    """An aggregator was fed an event after its terminal event."""


class TransportError(ShamelaStreamError):
    """Terminal transport failure with a debug code for support tickets."""

    debug_code: str = "E-UNK-001"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def debug_message(self) -> str:
        return f"[{self.debug_code}] {self}"


class NoConnectionError(TransportError):
    """No network route to the API host."""
    debug_code = "E-NET-001"
    is_retryable = True


class StreamTimeoutError(TransportError):
    """Connect or read timed out."""
    debug_code = "E-NET-002"
    is_retryable = True


class NetworkError(TransportError):
    """Any other I/O failure while talking to the API."""
    debug_code = "E-NET-003"
    is_retryable = True


class HttpStatusError(TransportError):
    """Non-2xx response."""

    def __init__(self, status_code: int, response_body: str | None = None):
        super().__init__(
            f"HTTP error {status_code}: {response_body or 'No details'}",
            status_code=status_code,
            response_body=response_body,
        )

    @property
    def debug_code(self) -> str:  # type: ignore[override]
        return f"E-HTTP-{self.status_code}"

    @property
    def is_retryable(self) -> bool:  # type: ignore[override]
        return (
            self.status_code is not None
            and (
                self.status_code >= HTTP_SERVER_ERROR
                or self.status_code == HTTP_TOO_MANY_REQUESTS
            )
        )


class UnauthorizedError(TransportError):
    """401 or 403 from the API."""
    debug_code = "E-AUTH-001"


class TooManyRequestsError(TransportError):
    """429 from the API."""
    debug_code = "E-RATE-001"
    is_retryable = True


class UnexpectedResponseError(TransportError):
    """The response is not an event stream."""
    debug_code = "E-DEC-001"


class IncompleteStreamError(TransportError):
    """The stream closed before any answer text or ``done`` event arrived."""
    debug_code = "E-STR-001"
    is_retryable = True


UNREACHABLE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "unable to resolve host",
    "no address associated",
    "network is unreachable",
    "temporary failure in name resolution",
)


def status_error(status_code: int, response_body: str | None = None) -> TransportError:
    """Build the transport error for a non-2xx status."""
    if status_code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
        return UnauthorizedError(
            "Authentication required",
            status_code=status_code,
            response_body=response_body,
        )
    if status_code == HTTP_TOO_MANY_REQUESTS:
        return TooManyRequestsError(
            "Rate limited - too many requests",
            status_code=status_code,
            response_body=response_body,
        )
    return HttpStatusError(status_code, response_body)


def from_httpx_error(error: httpx.HTTPError) -> TransportError:
    """Map an httpx failure onto the transport taxonomy."""
    if isinstance(error, httpx.TimeoutException):
        return StreamTimeoutError(f"Request timed out: {error!s}")
    if isinstance(error, httpx.HTTPStatusError):
        return status_error(error.response.status_code, error.response.text)
    if isinstance(error, httpx.ConnectError):
        message = str(error).lower()
        if any(marker in message for marker in UNREACHABLE_MARKERS):
            return NoConnectionError(f"No network connection: {error!s}")
    return NetworkError(f"Network exception: {error!s}")


def as_transport_error(error: BaseException) -> TransportError:
    """Wrap a failure raised while reading a stream."""
    if isinstance(error, TransportError):
        return error
    if isinstance(error, httpx.HTTPError):
        return from_httpx_error(error)
    if isinstance(error, TimeoutError):
        return StreamTimeoutError(f"Stream read timed out: {error!s}")
    return NetworkError(f"Stream read failed: {error!s}")
