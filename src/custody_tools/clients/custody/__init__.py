"""Custody platform API client."""

from custody_tools.clients.custody.auth import (
    RequestAuthenticator,
    RequestDescriptor,
    SignedCredential,
    SigningIdentity,
    TokenVerifier,
)
from custody_tools.clients.custody.client import AuthenticatedHttpClient
from custody_tools.clients.custody.exceptions import (
    AuthenticationError,
    ClientError,
    ClockUnavailable,
    CustodyAPIError,
    CustodyError,
    ErrorKind,
    InvalidKeyMaterial,
    InvalidTokenError,
    NetworkError,
    NotFoundError,
    ProtocolError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from custody_tools.clients.custody.sdk import CustodySDK

__all__ = [
    "AuthenticatedHttpClient",
    "AuthenticationError",
    "ClientError",
    "ClockUnavailable",
    "CustodyAPIError",
    "CustodyError",
    "CustodySDK",
    "ErrorKind",
    "InvalidKeyMaterial",
    "InvalidTokenError",
    "NetworkError",
    "NotFoundError",
    "ProtocolError",
    "RateLimitError",
    "RequestAuthenticator",
    "RequestDescriptor",
    "ServerError",
    "SignedCredential",
    "SigningIdentity",
    "TokenVerifier",
    "ValidationError",
]
