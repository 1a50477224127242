"""Canonical JSON encoding for signed request bodies and token segments.

The authenticator signs a digest of the exact bytes that go on the wire, so
the same logical value must always encode to the same bytes. Keys are sorted,
separators are compact, and dictionary entries whose value is ``None`` are
omitted rather than emitted as ``null``.
"""

import base64
import binascii
import json
from enum import Enum
from typing import Any, cast


def _strip_none(value: Any) -> Any:
    """Recursively drop ``None``-valued dictionary entries."""
    if isinstance(value, dict):
        return {
            k: _strip_none(v)
            for k, v in cast("dict[str, Any]", value).items()
            if v is not None
        }
    if isinstance(value, (list, tuple)):
        return [_strip_none(item) for item in cast("list[Any]", value)]
    return value


def _default(value: Any) -> Any:
    """Encode values the json module does not know about."""
    if isinstance(value, Enum):
        return value.value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _strip_none(to_dict())
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def canonical_json(value: Any) -> bytes:
    """Encode a value as canonical UTF-8 JSON bytes.

    Args:
        value: JSON-compatible value, model with ``to_dict()``, or ``Enum``.

    Returns:
        Deterministic JSON encoding of the value.

    """
    return json.dumps(
        _strip_none(value),
        default=_default,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def encode_body(body: Any) -> bytes | None:
    """Serialize a request body to the bytes that will be signed and sent.

    ``None`` means no body. Bytes are passed through untouched so callers can
    send pre-encoded payloads.
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    return canonical_json(body)


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Decode unpadded base64url text.

    Raises:
        ValueError: If the text is not valid base64url.

    """
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"Invalid base64url segment: {exc}") from exc
