"""Clock helpers.

Artifact and baseline timestamps are integer epoch milliseconds.
"""

import pendulum


def now_ms() -> int:
    """Return the current UTC time in epoch milliseconds."""
    return int(pendulum.now("UTC").timestamp() * 1000)


def format_ms(timestamp: int) -> str:
    """Format epoch milliseconds as an ISO 8601 UTC string.

    Example:
        >>> format_ms(1705276800000)
        '2024-01-15T00:00:00.000Z'
    """
    seconds, millis = divmod(timestamp, 1000)
    moment = pendulum.from_timestamp(seconds, tz="UTC").add(microseconds=millis * 1000)
    return moment.format("YYYY-MM-DD[T]HH:mm:ss.SSS[Z]")
