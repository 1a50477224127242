"""Authentication module for the custody API."""

from custody_tools.clients.custody.auth.authenticator import (
    EMPTY_BODY_HASH,
    TOKEN_TTL_SECONDS,
    RequestAuthenticator,
    RequestDescriptor,
    SignedCredential,
    body_hash,
)
from custody_tools.clients.custody.auth.identity import SigningIdentity
from custody_tools.clients.custody.auth.verifier import TokenVerifier

__all__ = [
    "EMPTY_BODY_HASH",
    "TOKEN_TTL_SECONDS",
    "RequestAuthenticator",
    "RequestDescriptor",
    "SignedCredential",
    "SigningIdentity",
    "TokenVerifier",
    "body_hash",
]
