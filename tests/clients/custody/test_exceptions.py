"""Tests for the custody exception hierarchy."""

from custody_tools.clients.custody.exceptions import (
    AuthenticationError,
    ClientError,
    ClockUnavailable,
    CustodyAPIError,
    CustodyError,
    ErrorKind,
    InvalidKeyMaterial,
    NetworkError,
    ProtocolError,
    RateLimitError,
    ServerError,
)

_STATUS_UNAUTHORIZED = 401
_STATUS_SERVER_ERROR = 500


class TestCustodyError:
    """Test suite for the base exception."""

    def test_fatal_errors_share_base(self) -> None:
        """Key and clock failures are custody errors but not API errors."""
        for cls in (InvalidKeyMaterial, ClockUnavailable):
            assert issubclass(cls, CustodyError)
            assert not issubclass(cls, CustodyAPIError)


class TestCustodyAPIError:
    """Test suite for CustodyAPIError and its kinds."""

    def test_attributes(self) -> None:
        """Store message, status code, and raw body."""
        error = AuthenticationError("token expired", _STATUS_UNAUTHORIZED, raw_body="{}")
        assert error.message == "token expired"
        assert error.status_code == _STATUS_UNAUTHORIZED
        assert error.raw_body == "{}"
        assert str(error) == "[401] token expired"

    def test_string_without_status(self) -> None:
        """Format without a status prefix when no response was received."""
        assert str(NetworkError("connection refused")) == "connection refused"

    def test_kinds(self) -> None:
        """Each branch of the hierarchy carries its kind."""
        assert NetworkError("x").kind is ErrorKind.NETWORK
        assert RateLimitError("x", 429).kind is ErrorKind.CLIENT
        assert ServerError("x", _STATUS_SERVER_ERROR).kind is ErrorKind.SERVER
        assert ProtocolError("x").kind is ErrorKind.PROTOCOL

    def test_retryable(self) -> None:
        """Only network and server errors are retryable."""
        assert NetworkError("x").retryable
        assert ServerError("x", _STATUS_SERVER_ERROR).retryable
        assert not ClientError("x", 400).retryable
        assert not ProtocolError("x", 200).retryable

    def test_caught_as_base(self) -> None:
        """API errors can be caught as CustodyError."""
        assert isinstance(RateLimitError("x", 429), CustodyError)
