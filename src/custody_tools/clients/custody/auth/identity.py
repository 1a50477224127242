"""Signing identity: the caller's private key and public API key."""

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from custody_tools.clients.custody.exceptions import InvalidKeyMaterial

_MIN_RSA_KEY_BITS = 2048

SigningKey = rsa.RSAPrivateKey | Ed25519PrivateKey
VerifyingKey = rsa.RSAPublicKey | Ed25519PublicKey


class SigningIdentity:
    """Hold a private signing key together with the public API key.

    The identity is read-only after construction and safe to share between
    concurrent requests. The raw key never leaves ``sign``.

    RSA keys sign with PKCS#1 v1.5 over SHA-256 (JWS ``RS256``). Ed25519 keys
    sign with pure Ed25519 (JWS ``EdDSA``).
    """

    def __init__(self, api_key: str, private_key: SigningKey) -> None:
        """Initialize the identity.

        Args:
            api_key: Public API key identifying the caller.
            private_key: RSA (2048 bits or more) or Ed25519 private key.

        Raises:
            InvalidKeyMaterial: If the api key is empty or the key is unusable.

        """
        if not api_key:
            raise InvalidKeyMaterial("API key must be a non-empty string")
        if isinstance(private_key, rsa.RSAPrivateKey):
            if private_key.key_size < _MIN_RSA_KEY_BITS:
                msg = f"RSA key must be at least {_MIN_RSA_KEY_BITS} bits, got {private_key.key_size}"
                raise InvalidKeyMaterial(msg)
            algorithm = "RS256"
        elif isinstance(private_key, Ed25519PrivateKey):
            algorithm = "EdDSA"
        else:
            msg = f"Unsupported private key type: {type(private_key).__name__}"
            raise InvalidKeyMaterial(msg)

        self._api_key = api_key
        self._private_key = private_key
        self._algorithm = algorithm

    @classmethod
    def from_pem(cls, api_key: str, pem: str | bytes) -> "SigningIdentity":
        """Build an identity from PEM-encoded private key material.

        Args:
            api_key: Public API key identifying the caller.
            pem: Unencrypted PEM private key, as text or bytes.

        Returns:
            The constructed identity.

        Raises:
            InvalidKeyMaterial: If the PEM cannot be parsed.

        """
        key_data = pem.encode("utf-8") if isinstance(pem, str) else pem
        try:
            private_key = serialization.load_pem_private_key(key_data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise InvalidKeyMaterial(f"Could not parse private key: {exc}") from exc

        if not isinstance(private_key, (rsa.RSAPrivateKey, Ed25519PrivateKey)):
            msg = f"Unsupported private key type: {type(private_key).__name__}"
            raise InvalidKeyMaterial(msg)
        return cls(api_key, private_key)

    @classmethod
    def from_file(cls, api_key: str, key_path: str | Path) -> "SigningIdentity":
        """Build an identity from a PEM private key file.

        Raises:
            FileNotFoundError: If the key file doesn't exist.
            InvalidKeyMaterial: If the file doesn't contain a usable key.

        """
        path = Path(key_path)
        if not path.exists():
            raise FileNotFoundError(f"Private key file not found: {key_path}")
        return cls.from_pem(api_key, path.read_bytes())

    @property
    def api_key(self) -> str:
        """Return the public API key."""
        return self._api_key

    @property
    def algorithm(self) -> str:
        """Return the JWS algorithm name for this key."""
        return self._algorithm

    def public_key(self) -> VerifyingKey:
        """Return the public half of the signing key."""
        return self._private_key.public_key()

    def sign(self, payload: bytes) -> bytes:
        """Sign a payload with the private key.

        Args:
            payload: Bytes to sign.

        Returns:
            Raw signature bytes.

        """
        if isinstance(self._private_key, rsa.RSAPrivateKey):
            return self._private_key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
        return self._private_key.sign(payload)

    def __repr__(self) -> str:
        """Show the public identifier only."""
        return f"SigningIdentity(api_key={self._api_key!r}, algorithm={self._algorithm!r})"
