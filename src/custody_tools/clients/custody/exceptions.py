"""Exception hierarchy for the custody API client.

Follow the same pattern as the other exchange clients: a base exception class
with a specialised API error that carries the HTTP status code. Every API
error also carries an ``ErrorKind`` so callers can tell a stale credential
from an unavailable server from rejected input without inspecting the class.
"""

from enum import Enum


class ErrorKind(Enum):
    """Coarse category of a failed API call."""

    NETWORK = "network"
    CLIENT = "client"
    SERVER = "server"
    PROTOCOL = "protocol"


class CustodyError(Exception):
    """Base exception for all custody client errors."""


class InvalidKeyMaterial(CustodyError):  # noqa: N818
    """Private key material could not be parsed or is unsuitable for signing."""


class ClockUnavailable(CustodyError):  # noqa: N818
    """The wall clock could not be read while minting a credential."""


class InvalidTokenError(CustodyError):
    """A signed token failed verification."""


class CustodyAPIError(CustodyError):
    """Error returned by, or while talking to, the custody API.

    Args:
        message: Human-readable description of the error.
        status_code: HTTP status code, if a response was received.
        raw_body: Raw response body text, if a response was received.

    """

    kind: ErrorKind = ErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        raw_body: str | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable description of the error.
            status_code: HTTP status code, if a response was received.
            raw_body: Raw response body text, if a response was received.

        """
        super().__init__(f"[{status_code}] {message}" if status_code is not None else message)
        self.message = message
        self.status_code = status_code
        self.raw_body = raw_body

    @property
    def retryable(self) -> bool:
        """Return whether a caller may retry the call with a fresh credential."""
        return self.kind in (ErrorKind.NETWORK, ErrorKind.SERVER)


class NetworkError(CustodyAPIError):
    """Transport failure: DNS, refused connection, or timeout."""

    kind = ErrorKind.NETWORK


class ClientError(CustodyAPIError):
    """Request rejected by the server (4xx)."""

    kind = ErrorKind.CLIENT


class ValidationError(ClientError):
    """Validation error (400, 422)."""


class AuthenticationError(ClientError):
    """Credential rejected, stale, or not authorized (401, 403)."""


class NotFoundError(ClientError):
    """Resource not found error (404)."""


class RateLimitError(ClientError):
    """Rate limit exceeded error (429)."""


class ServerError(CustodyAPIError):
    """Server-side failure (5xx)."""

    kind = ErrorKind.SERVER


class ProtocolError(CustodyAPIError):
    """Response violated the API contract, e.g. an undecodable success body."""

    kind = ErrorKind.PROTOCOL
