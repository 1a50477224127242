"""Timestamp parsing for CLI date arguments.

The custody API filters transactions by creation time in epoch milliseconds.
"""

from datetime import UTC, datetime

_MS_PER_SECOND = 1000
_MIN_MS_TIMESTAMP = 10**12


def parse_timestamp_ms(value: str) -> int:
    """Parse a date string or raw integer into a Unix timestamp in milliseconds.

    Accept ISO 8601 date strings (``2024-01-01``, ``2024-01-01T12:00:00``,
    interpreted as UTC) or raw integers. Integers of 13 digits or more are
    taken as milliseconds, shorter ones as seconds.

    Args:
        value: Date string or integer timestamp.

    Returns:
        Unix timestamp in milliseconds.

    Raises:
        ValueError: If the value cannot be parsed.

    """
    try:
        raw = int(value)
    except ValueError:
        pass
    else:
        return raw if raw >= _MIN_MS_TIMESTAMP else raw * _MS_PER_SECOND

    for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"):
        try:
            dt = datetime.strptime(value, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
        return int(dt.timestamp()) * _MS_PER_SECOND

    msg = f"Cannot parse timestamp: {value!r}. Use ISO 8601 (YYYY-MM-DD) or a Unix timestamp."
    raise ValueError(msg)
