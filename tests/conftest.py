"""Shared test configuration and fixtures."""

import os
from collections.abc import Iterator
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from custody_tools.clients.custody.auth.identity import SigningIdentity

_REQUIRED_ENV_VARS = {
    "CUSTODY_API_KEY": "test-api-key",
    "CUSTODY_PRIVATE_KEY_PATH": "/dev/null",
}

TEST_API_KEY = "3f1c2a9e-5b7d-4e8f-9a0b-1c2d3e4f5a6b"


@pytest.fixture(autouse=True)
def _set_required_env_vars() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Provide dummy values for env vars required by settings.yaml.

    The default configuration reads ``${CUSTODY_API_KEY}`` and
    ``${CUSTODY_PRIVATE_KEY_PATH}``, which default to empty strings; tests
    that load the real ``settings.yaml`` expect them to be populated.
    """
    missing = {k: v for k, v in _REQUIRED_ENV_VARS.items() if k not in os.environ}
    if not missing:
        yield
        return
    with patch.dict(os.environ, missing):
        yield


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Generate one RSA key per session; RSA generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def ed25519_private_key() -> Ed25519PrivateKey:
    """Generate a test Ed25519 private key."""
    return Ed25519PrivateKey.generate()


@pytest.fixture
def identity(rsa_private_key: rsa.RSAPrivateKey) -> SigningIdentity:
    """Create an RSA-backed signing identity."""
    return SigningIdentity(TEST_API_KEY, rsa_private_key)
