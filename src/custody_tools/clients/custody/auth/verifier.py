"""Verification of request tokens, as performed by the receiving server."""

import json
import time
from collections.abc import Callable
from typing import Any, cast

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from custody_tools.clients.custody.auth.authenticator import (
    TOKEN_TTL_SECONDS,
    RequestDescriptor,
    body_hash,
)
from custody_tools.clients.custody.auth.identity import VerifyingKey
from custody_tools.clients.custody.encoding import b64url_decode
from custody_tools.clients.custody.exceptions import InvalidTokenError

_REQUIRED_CLAIMS = ("uri", "method", "nonce", "iat", "exp", "sub", "bodyHash")
_TOKEN_SEGMENTS = 3


class TokenVerifier:
    """Check a token's signature, lifetime, and request binding.

    Args:
        public_key: Public key matching the caller's signing key.
        api_key: Expected subject of the token.
        clock: Zero-argument callable returning wall-clock Unix seconds.
        leeway: Seconds of clock skew tolerated on ``iat`` and ``exp``.

    """

    def __init__(
        self,
        public_key: VerifyingKey,
        api_key: str,
        clock: Callable[[], float] = time.time,
        leeway: int = 0,
    ) -> None:
        """Initialize the verifier."""
        if isinstance(public_key, rsa.RSAPublicKey):
            self._algorithm = "RS256"
        elif isinstance(public_key, Ed25519PublicKey):
            self._algorithm = "EdDSA"
        else:
            msg = f"Unsupported public key type: {type(public_key).__name__}"
            raise TypeError(msg)
        self._public_key = public_key
        self._api_key = api_key
        self._clock = clock
        self._leeway = leeway

    def _decode_segment(self, segment: str) -> dict[str, Any]:
        try:
            value = json.loads(b64url_decode(segment))
        except ValueError as exc:
            raise InvalidTokenError(f"Malformed token segment: {exc}") from exc
        if not isinstance(value, dict):
            raise InvalidTokenError("Token segment is not a JSON object")
        return cast("dict[str, Any]", value)

    def _check_signature(self, signing_input: bytes, signature: bytes) -> None:
        try:
            if isinstance(self._public_key, rsa.RSAPublicKey):
                self._public_key.verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())
            else:
                self._public_key.verify(signature, signing_input)
        except InvalidSignature as exc:
            raise InvalidTokenError("Token signature does not verify") from exc

    def verify(
        self,
        token: str,
        request: RequestDescriptor | None = None,
    ) -> dict[str, Any]:
        """Verify a token and return its claims.

        Args:
            token: Compact JWS produced by ``RequestAuthenticator``.
            request: When given, the token must be bound to this request's
                method, path and body.

        Returns:
            The verified claim set.

        Raises:
            InvalidTokenError: If any check fails.

        """
        segments = token.split(".")
        if len(segments) != _TOKEN_SEGMENTS:
            raise InvalidTokenError("Token must have three segments")
        header_b64, claims_b64, signature_b64 = segments

        header = self._decode_segment(header_b64)
        if header.get("alg") != self._algorithm:
            raise InvalidTokenError(f"Unexpected token algorithm: {header.get('alg')!r}")

        claims = self._decode_segment(claims_b64)
        try:
            signature = b64url_decode(signature_b64)
        except ValueError as exc:
            raise InvalidTokenError(str(exc)) from exc
        self._check_signature(f"{header_b64}.{claims_b64}".encode("ascii"), signature)

        missing = [name for name in _REQUIRED_CLAIMS if name not in claims]
        if missing:
            raise InvalidTokenError(f"Token is missing claims: {', '.join(missing)}")
        if claims["sub"] != self._api_key:
            raise InvalidTokenError("Token subject does not match the API key")

        self._check_lifetime(claims)

        if request is not None:
            if claims["method"] != request.method:
                raise InvalidTokenError("Token is bound to a different method")
            if claims["uri"] != request.path:
                raise InvalidTokenError("Token is bound to a different path")
            if claims["bodyHash"] != body_hash(request.body):
                raise InvalidTokenError("Token is bound to a different body")
        return claims

    def _check_lifetime(self, claims: dict[str, Any]) -> None:
        issued_at = claims["iat"]
        expires_at = claims["exp"]
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            raise InvalidTokenError("Token timestamps must be integers")
        if expires_at - issued_at > TOKEN_TTL_SECONDS:
            raise InvalidTokenError("Token lifetime exceeds the allowed window")

        now = self._clock()
        if issued_at > now + self._leeway:
            raise InvalidTokenError("Token was issued in the future")
        if now > expires_at + self._leeway:
            raise InvalidTokenError("Token has expired")
