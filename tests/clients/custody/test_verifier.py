"""Tests for token verification."""

import json

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from custody_tools.clients.custody.auth.authenticator import (
    TOKEN_TTL_SECONDS,
    RequestAuthenticator,
    RequestDescriptor,
)
from custody_tools.clients.custody.auth.identity import SigningIdentity
from custody_tools.clients.custody.auth.verifier import TokenVerifier
from custody_tools.clients.custody.encoding import b64url_encode, canonical_json
from custody_tools.clients.custody.exceptions import InvalidTokenError

_NOW = 1_700_000_000
_API_KEY = "verifier-key"


class TestTokenVerifier:
    """Test suite for TokenVerifier."""

    @pytest.fixture
    def signer(self, ed25519_private_key: Ed25519PrivateKey) -> SigningIdentity:
        """Create an Ed25519 identity."""
        return SigningIdentity(_API_KEY, ed25519_private_key)

    @pytest.fixture
    def authenticator(self, signer: SigningIdentity) -> RequestAuthenticator:
        """Create an authenticator frozen at ``_NOW``."""
        return RequestAuthenticator(signer, clock=lambda: _NOW)

    def _verifier(self, signer: SigningIdentity, now: float = _NOW) -> TokenVerifier:
        return TokenVerifier(signer.public_key(), _API_KEY, clock=lambda: now)

    def test_valid_token_verifies(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Accept a fresh token bound to the presented request."""
        request = RequestDescriptor("POST", "/v1/transactions", b'{"assetId":"BTC"}')
        token = authenticator.sign(request).token
        claims = self._verifier(signer).verify(token, request)
        assert claims["sub"] == _API_KEY

    def test_rsa_token_verifies(self, rsa_private_key: rsa.RSAPrivateKey) -> None:
        """Accept RS256 tokens from RSA identities."""
        signer = SigningIdentity(_API_KEY, rsa_private_key)
        token = RequestAuthenticator(signer, clock=lambda: _NOW).sign(
            RequestDescriptor("GET", "/v1/x")
        ).token
        assert self._verifier(signer).verify(token)["uri"] == "/v1/x"

    def test_token_accepted_until_expiry(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Accept a token at exactly its expiry second."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        self._verifier(signer, now=_NOW + TOKEN_TTL_SECONDS).verify(token)

    def test_expired_token_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject a token presented after its validity window."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        with pytest.raises(InvalidTokenError, match="expired"):
            self._verifier(signer, now=_NOW + TOKEN_TTL_SECONDS + 1).verify(token)

    def test_future_token_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject a token issued in the verifier's future."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        with pytest.raises(InvalidTokenError, match="future"):
            self._verifier(signer, now=_NOW - 10).verify(token)

    def test_leeway_tolerates_skew(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Accept small clock skew within the configured leeway."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        verifier = TokenVerifier(signer.public_key(), _API_KEY, clock=lambda: _NOW - 3, leeway=5)
        verifier.verify(token)

    def test_tampered_body_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject a token replayed with a different body."""
        token = authenticator.sign(RequestDescriptor("POST", "/v1/tx", b'{"amount":"1"}')).token
        with pytest.raises(InvalidTokenError, match="different body"):
            self._verifier(signer).verify(token, RequestDescriptor("POST", "/v1/tx", b'{"amount":"9"}'))

    def test_other_path_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject a token replayed against another path."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/a")).token
        with pytest.raises(InvalidTokenError, match="different path"):
            self._verifier(signer).verify(token, RequestDescriptor("GET", "/v1/b"))

    def test_other_method_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject a read token replayed as a delete of the same path."""
        path = "/v1/internal_wallets/w1"
        token = authenticator.sign(RequestDescriptor("GET", path)).token
        with pytest.raises(InvalidTokenError, match="different method"):
            self._verifier(signer).verify(token, RequestDescriptor("DELETE", path))

    def test_forged_claims_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject claims swapped in under an existing signature."""
        header, _, signature = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token.split(".")
        forged_claims = {
            "uri": "/v1/x",
            "nonce": "0" * 32,
            "iat": _NOW,
            "exp": _NOW + 3600,
            "sub": _API_KEY,
            "bodyHash": "",
        }
        forged = f"{header}.{b64url_encode(canonical_json(forged_claims))}.{signature}"
        with pytest.raises(InvalidTokenError, match="signature"):
            self._verifier(signer).verify(forged)

    def test_wrong_key_rejected(self, authenticator: RequestAuthenticator) -> None:
        """Reject tokens signed by a different key."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        stranger = SigningIdentity(_API_KEY, Ed25519PrivateKey.generate())
        with pytest.raises(InvalidTokenError, match="signature"):
            self._verifier(stranger).verify(token)

    def test_wrong_subject_rejected(
        self, signer: SigningIdentity, authenticator: RequestAuthenticator
    ) -> None:
        """Reject tokens issued for another API key."""
        token = authenticator.sign(RequestDescriptor("GET", "/v1/x")).token
        verifier = TokenVerifier(signer.public_key(), "someone-else", clock=lambda: _NOW)
        with pytest.raises(InvalidTokenError, match="subject"):
            verifier.verify(token)

    def test_malformed_token_rejected(self, signer: SigningIdentity) -> None:
        """Reject tokens without three segments."""
        with pytest.raises(InvalidTokenError, match="three segments"):
            self._verifier(signer).verify("not-a-token")

    def test_wrong_algorithm_rejected(self, signer: SigningIdentity) -> None:
        """Reject headers naming another algorithm."""
        header = b64url_encode(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        with pytest.raises(InvalidTokenError, match="algorithm"):
            self._verifier(signer).verify(f"{header}.e30.")
