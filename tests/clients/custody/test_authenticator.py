"""Tests for per-request credential minting."""

import hashlib
import json
import math
import time
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from custody_tools.clients.custody.auth.authenticator import (
    EMPTY_BODY_HASH,
    TOKEN_TTL_SECONDS,
    RequestAuthenticator,
    RequestDescriptor,
    body_hash,
)
from custody_tools.clients.custody.auth.identity import SigningIdentity
from custody_tools.clients.custody.encoding import b64url_decode
from custody_tools.clients.custody.exceptions import ClockUnavailable

_FIXED_NOW = 1_700_000_000
_CLOCK_TOLERANCE_SECONDS = 5
_NONCE_HEX_LENGTH = 32
_SIGN_ATTEMPTS = 50


def _claims(token: str) -> dict[str, Any]:
    return json.loads(b64url_decode(token.split(".")[1]))


def _header(token: str) -> dict[str, Any]:
    return json.loads(b64url_decode(token.split(".")[0]))


class TestRequestDescriptor:
    """Test suite for RequestDescriptor."""

    def test_method_is_uppercased(self) -> None:
        """Normalise the method to upper case."""
        assert RequestDescriptor("get", "/v1/x").method == "GET"

    def test_path_gets_leading_slash(self) -> None:
        """Prefix a missing leading slash."""
        assert RequestDescriptor("GET", "v1/x").path == "/v1/x"

    def test_unknown_method_rejected(self) -> None:
        """Reject methods outside GET, POST, PUT, DELETE."""
        with pytest.raises(ValueError, match="Unsupported HTTP method"):
            RequestDescriptor("PATCH", "/v1/x")


class TestBodyHash:
    """Test suite for body digests."""

    def test_absent_and_empty_body_share_digest(self) -> None:
        """No body and an empty body hash identically."""
        assert body_hash(None) == body_hash(b"") == EMPTY_BODY_HASH
        assert EMPTY_BODY_HASH == hashlib.sha256(b"").hexdigest()

    def test_non_empty_body_never_matches_empty_digest(self) -> None:
        """Any non-empty body differs from the empty digest."""
        for body in (b"{}", b" ", b"\x00", b"null"):
            assert body_hash(body) != EMPTY_BODY_HASH


class TestRequestAuthenticator:
    """Test suite for RequestAuthenticator."""

    @pytest.fixture
    def authenticator(self, identity: SigningIdentity) -> RequestAuthenticator:
        """Create an authenticator with the real wall clock."""
        return RequestAuthenticator(identity)

    def test_token_has_three_segments(self, authenticator: RequestAuthenticator) -> None:
        """Produce a compact JWS with header, claims, and signature."""
        credential = authenticator.sign(RequestDescriptor("GET", "/v1/vault/accounts"))
        assert credential.token.count(".") == 2
        assert _header(credential.token) == {"alg": "RS256", "typ": "JWT"}

    def test_claims_bind_request(
        self, authenticator: RequestAuthenticator, identity: SigningIdentity
    ) -> None:
        """Bind the token to subject, method, path, and body digest."""
        body = b'{"name":"Treasury"}'
        credential = authenticator.sign(RequestDescriptor("POST", "/v1/vault/accounts", body))
        claims = _claims(credential.token)
        assert claims["sub"] == identity.api_key
        assert claims["method"] == "POST"
        assert claims["uri"] == "/v1/vault/accounts"
        assert claims["bodyHash"] == hashlib.sha256(body).hexdigest()
        assert len(claims["nonce"]) == _NONCE_HEX_LENGTH

    def test_expiry_is_issued_at_plus_window(self, authenticator: RequestAuthenticator) -> None:
        """Set exp to iat plus the fixed window and iat close to now."""
        before = time.time()
        credential = authenticator.sign(RequestDescriptor("GET", "/v1/transactions"))
        claims = _claims(credential.token)
        assert claims["exp"] == claims["iat"] + TOKEN_TTL_SECONDS
        assert credential.expires_at == claims["exp"]
        assert abs(claims["iat"] - before) <= _CLOCK_TOLERANCE_SECONDS

    def test_same_request_never_yields_same_token(
        self, authenticator: RequestAuthenticator
    ) -> None:
        """Two signs of one descriptor differ thanks to the nonce."""
        request = RequestDescriptor("GET", "/v1/vault/accounts")
        tokens = {authenticator.sign(request).token for _ in range(_SIGN_ATTEMPTS)}
        assert len(tokens) == _SIGN_ATTEMPTS

    def test_same_request_differs_with_frozen_clock(self, identity: SigningIdentity) -> None:
        """Nonces alone keep tokens distinct when the timestamp is identical."""
        authenticator = RequestAuthenticator(identity, clock=lambda: _FIXED_NOW)
        request = RequestDescriptor("POST", "/v1/transactions", b"{}")
        first = authenticator.sign(request)
        second = authenticator.sign(request)
        assert first.token != second.token
        assert _claims(first.token)["iat"] == _claims(second.token)["iat"] == _FIXED_NOW

    def test_single_byte_change_changes_digest(self, identity: SigningIdentity) -> None:
        """Tampering with one body byte changes the signed digest."""
        authenticator = RequestAuthenticator(identity, clock=lambda: _FIXED_NOW)
        original = authenticator.sign(RequestDescriptor("POST", "/v1/tx", b'{"amount":"10"}'))
        tampered = authenticator.sign(RequestDescriptor("POST", "/v1/tx", b'{"amount":"19"}'))
        assert _claims(original.token)["bodyHash"] != _claims(tampered.token)["bodyHash"]
        assert original.token != tampered.token

    def test_get_without_body_uses_empty_digest(
        self, authenticator: RequestAuthenticator
    ) -> None:
        """A body-less request carries the empty-body digest, not a missing field."""
        credential = authenticator.sign(RequestDescriptor("GET", "/v1/supported_assets"))
        assert _claims(credential.token)["bodyHash"] == EMPTY_BODY_HASH

    def test_ed25519_identity_signs_eddsa(self, ed25519_private_key: Ed25519PrivateKey) -> None:
        """Use the identity's algorithm in the header."""
        authenticator = RequestAuthenticator(SigningIdentity("key", ed25519_private_key))
        credential = authenticator.sign(RequestDescriptor("DELETE", "/v1/internal_wallets/w1"))
        assert _header(credential.token)["alg"] == "EdDSA"

    def test_credential_repr_hides_token(self, authenticator: RequestAuthenticator) -> None:
        """The credential repr does not leak the token."""
        credential = authenticator.sign(RequestDescriptor("GET", "/v1/x"))
        assert credential.token not in repr(credential)


class TestClockFailures:
    """Signing fails closed when the clock is unusable."""

    def test_clock_raising_fails_closed(self, identity: SigningIdentity) -> None:
        """Raise ClockUnavailable when the clock raises."""

        def broken_clock() -> float:
            raise OSError("clock_gettime failed")

        authenticator = RequestAuthenticator(identity, clock=broken_clock)
        with pytest.raises(ClockUnavailable, match="clock_gettime failed"):
            authenticator.sign(RequestDescriptor("GET", "/v1/x"))

    @pytest.mark.parametrize("bogus", [0, -1.0, math.nan, math.inf])
    def test_bogus_clock_values_fail_closed(self, identity: SigningIdentity, bogus: float) -> None:
        """Never sign with a zero, negative, or non-finite timestamp."""
        authenticator = RequestAuthenticator(identity, clock=lambda: bogus)
        with pytest.raises(ClockUnavailable, match="invalid time"):
            authenticator.sign(RequestDescriptor("GET", "/v1/x"))
