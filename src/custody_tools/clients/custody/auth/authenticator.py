"""Per-request credential minting for the custody API.

Each outgoing request carries a compact JWS (``header.claims.signature``,
unpadded base64url segments) whose claims bind it to one request instance:

``uri``
    Request path including the query string.
``nonce``
    128 random bits, hex encoded.
``iat`` / ``exp``
    Wall-clock issue time in seconds and ``iat + TOKEN_TTL_SECONDS``.
``sub``
    Public API key.
``bodyHash``
    Hex SHA-256 of the exact body bytes sent. No body and an empty body
    both hash the empty byte string.

Header and claims use the canonical JSON encoding so a given claim set
always serializes to the same bytes.
"""

import hashlib
import math
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from custody_tools.clients.custody.auth.identity import SigningIdentity
from custody_tools.clients.custody.encoding import b64url_encode, canonical_json
from custody_tools.clients.custody.exceptions import ClockUnavailable

TOKEN_TTL_SECONDS = 30
NONCE_BYTES = 16

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

EMPTY_BODY_HASH = hashlib.sha256(b"").hexdigest()


def body_hash(body: bytes | None) -> str:
    """Return the hex SHA-256 digest of a request body.

    Args:
        body: Exact body bytes, or ``None`` for no body.

    Returns:
        64-character hex digest; ``EMPTY_BODY_HASH`` for ``None`` or ``b""``.

    """
    return hashlib.sha256(body or b"").hexdigest()


@dataclass(frozen=True)
class RequestDescriptor:
    """One outgoing request as seen by the authenticator.

    Attributes:
        method: HTTP method, one of GET, POST, PUT, DELETE.
        path: Request path including any query string.
        body: Exact body bytes to be transmitted, or ``None``.

    """

    method: str
    path: str
    body: bytes | None = None

    def __post_init__(self) -> None:
        """Validate the method and normalise the path."""
        method = self.method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method: {self.method!r}"
            raise ValueError(msg)
        object.__setattr__(self, "method", method)
        if not self.path.startswith("/"):
            object.__setattr__(self, "path", f"/{self.path}")


@dataclass(frozen=True)
class SignedCredential:
    """A signed token authorising exactly one request.

    Attributes:
        token: Compact JWS to send as a bearer credential.
        expires_at: Unix timestamp in seconds after which the token is invalid.

    """

    token: str
    expires_at: int

    def __repr__(self) -> str:
        """Hide the token itself."""
        return f"SignedCredential(expires_at={self.expires_at})"


class RequestAuthenticator:
    """Mint a fresh, short-lived credential for each request.

    The authenticator holds no mutable state; concurrent calls to ``sign``
    never share a nonce or timestamp.
    """

    def __init__(
        self,
        identity: SigningIdentity,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the authenticator.

        Args:
            identity: Signing identity used for every credential.
            clock: Zero-argument callable returning wall-clock Unix seconds.

        """
        self._identity = identity
        self._clock = clock

    @property
    def api_key(self) -> str:
        """Return the public API key credentials are issued for."""
        return self._identity.api_key

    def _now(self) -> int:
        """Read the wall clock, failing closed when it is unusable.

        Raises:
            ClockUnavailable: If the clock raises or returns a bogus value.

        """
        try:
            now = self._clock()
        except Exception as exc:
            raise ClockUnavailable(f"Wall clock unavailable: {exc}") from exc
        if not isinstance(now, (int, float)) or not math.isfinite(now) or now <= 0:
            raise ClockUnavailable(f"Wall clock returned an invalid time: {now!r}")
        return int(now)

    def build_claims(self, request: RequestDescriptor) -> dict[str, Any]:
        """Build the claim set for a request.

        Args:
            request: The request to authorise.

        Returns:
            Claim dictionary with a fresh nonce and issue time.

        Raises:
            ClockUnavailable: If the wall clock cannot be read.

        """
        issued_at = self._now()
        return {
            "uri": request.path,
            "method": request.method,
            "nonce": secrets.token_hex(NONCE_BYTES),
            "iat": issued_at,
            "exp": issued_at + TOKEN_TTL_SECONDS,
            "sub": self._identity.api_key,
            "bodyHash": body_hash(request.body),
        }

    def sign(self, request: RequestDescriptor) -> SignedCredential:
        """Produce a signed credential bound to one request.

        Args:
            request: The request to authorise.

        Returns:
            The signed credential.

        Raises:
            ClockUnavailable: If the wall clock cannot be read.

        """
        claims = self.build_claims(request)
        header = {"alg": self._identity.algorithm, "typ": "JWT"}
        signing_input = f"{b64url_encode(canonical_json(header))}.{b64url_encode(canonical_json(claims))}"
        signature = self._identity.sign(signing_input.encode("ascii"))
        return SignedCredential(
            token=f"{signing_input}.{b64url_encode(signature)}",
            expires_at=claims["exp"],
        )
