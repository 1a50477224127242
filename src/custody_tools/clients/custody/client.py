"""Authenticated HTTP client for the custody API.

This is the only component that performs network I/O for authenticated
calls. Every call mints a brand-new credential, so a caller that retries a
failed call automatically sends a fresh nonce and timestamp.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from custody_tools.clients.custody.auth.authenticator import (
    RequestAuthenticator,
    RequestDescriptor,
)
from custody_tools.clients.custody.auth.identity import SigningIdentity
from custody_tools.clients.custody.encoding import encode_body
from custody_tools.clients.custody.exceptions import (
    AuthenticationError,
    ClientError,
    NetworkError,
    NotFoundError,
    ProtocolError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from custody_tools.core.config import get_config

logger = logging.getLogger(__name__)

_HTTP_OK = 200
_HTTP_MULTIPLE_CHOICES = 300
_HTTP_BAD_REQUEST = 400
_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403
_HTTP_NOT_FOUND = 404
_HTTP_UNPROCESSABLE = 422
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_INTERNAL_SERVER_ERROR = 500
_HTTP_MAX_STATUS = 600

_CLIENT_ERRORS: dict[int, type[ClientError]] = {
    _HTTP_BAD_REQUEST: ValidationError,
    _HTTP_UNAUTHORIZED: AuthenticationError,
    _HTTP_FORBIDDEN: AuthenticationError,
    _HTTP_NOT_FOUND: NotFoundError,
    _HTTP_UNPROCESSABLE: ValidationError,
    _HTTP_TOO_MANY_REQUESTS: RateLimitError,
}

API_KEY_HEADER = "X-API-Key"


class AuthenticatedHttpClient:
    """Async HTTP client that signs every request it sends.

    Each request carries ``Authorization: Bearer <token>`` with a credential
    bound to that request's method, path, and body, plus the public API key
    in the ``X-API-Key`` header. The client never retries: retry policy is
    left to the caller, who knows whether an operation is idempotent.
    """

    DEFAULT_BASE_URL = "https://api.fireblocks.io"

    def __init__(
        self,
        identity: SigningIdentity,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the client.

        Args:
            identity: Signing identity for all requests.
            base_url: Base URL for the API.
            timeout: Transport timeout in seconds, independent of the
                credential's own validity window.
            transport: Optional httpx transport, e.g. a mock for tests.
            clock: Wall-clock source used when minting credentials.

        """
        self.identity = identity
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.authenticator = RequestAuthenticator(identity, clock=clock)
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls) -> "AuthenticatedHttpClient":
        """Create client from configuration.

        Raises:
            ValueError: If configuration is missing required values.
            ConfigError: If the settings cannot be loaded.
            InvalidKeyMaterial: If the configured key cannot be used.

        """
        config = get_config()
        custody = config.get_custody_config()
        api_key = custody.get("api_key")
        if not api_key:
            raise ValueError("custody.api_key not configured")

        identity = SigningIdentity.from_pem(api_key, config.get_private_key())
        return cls(
            identity=identity,
            base_url=custody.get("base_url") or cls.DEFAULT_BASE_URL,
            timeout=config.get_timeout(),
        )

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """Make an authenticated API request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            path: Request path relative to base_url, including any query string.
            body: JSON-compatible body, pre-encoded bytes, or ``None``.

        Returns:
            Parsed JSON response, or ``None`` for an empty success body.

        Raises:
            ClockUnavailable: If no credential could be minted.
            NetworkError: On transport failure, including timeouts.
            ClientError: For 4xx responses.
            ServerError: For 5xx responses.
            ProtocolError: For undecodable or unexpected responses.
            ValueError: If the path does not form a valid URL.

        """
        if not path.startswith("/"):
            path = f"/{path}"

        try:
            url = httpx.URL(f"{self.base_url}{path}")
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid request path {path!r}: {exc}") from exc

        # Encode once: the signed digest must cover the exact bytes sent, and
        # the signed uri is the percent-encoded path httpx puts on the wire.
        content = encode_body(body)
        descriptor = RequestDescriptor(
            method=method,
            path=url.raw_path.decode("ascii"),
            body=content,
        )
        credential = self.authenticator.sign(descriptor)

        headers = {
            "Authorization": f"Bearer {credential.token}",
            API_KEY_HEADER: self.identity.api_key,
        }
        if content is not None:
            headers["Content-Type"] = "application/json"

        try:
            response = await self._http_client.request(
                method=descriptor.method,
                url=url,
                headers=headers,
                content=content,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", descriptor.method, path, exc)
            raise NetworkError(f"HTTP request failed: {exc!r}") from exc

        logger.debug("%s %s -> %d", descriptor.method, path, response.status_code)
        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> Any:
        status = response.status_code
        if _HTTP_OK <= status < _HTTP_MULTIPLE_CHOICES:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise ProtocolError(
                    f"Undecodable response body: {exc}",
                    status_code=status,
                    raw_body=response.text,
                ) from exc
        self._handle_error(response)
        return None

    @staticmethod
    def _handle_error(response: httpx.Response) -> None:
        """Raise the typed error matching a non-2xx response.

        Raises:
            ClientError: For 4xx errors, or one of its subclasses.
            ServerError: For 5xx errors.
            ProtocolError: For any other status.

        """
        status = response.status_code
        raw_body = response.text
        message = f"HTTP {status}"
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            detail = data.get("message") or data.get("error")  # pyright: ignore[reportUnknownMemberType]
            if detail:
                message = str(detail)  # pyright: ignore[reportUnknownArgumentType]

        if _HTTP_BAD_REQUEST <= status < _HTTP_INTERNAL_SERVER_ERROR:
            error_cls = _CLIENT_ERRORS.get(status, ClientError)
            raise error_cls(message, status_code=status, raw_body=raw_body)
        if _HTTP_INTERNAL_SERVER_ERROR <= status < _HTTP_MAX_STATUS:
            raise ServerError(message, status_code=status, raw_body=raw_body)
        raise ProtocolError(f"Unexpected status: {message}", status_code=status, raw_body=raw_body)

    async def get(self, path: str) -> Any:
        """Make a GET request."""
        return await self.request("GET", path)

    async def post(self, path: str, body: Any = None) -> Any:
        """Make a POST request with a JSON body."""
        return await self.request("POST", path, body)

    async def put(self, path: str, body: Any = None) -> Any:
        """Make a PUT request with a JSON body."""
        return await self.request("PUT", path, body)

    async def delete(self, path: str) -> Any:
        """Make a DELETE request."""
        return await self.request("DELETE", path)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "AuthenticatedHttpClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
