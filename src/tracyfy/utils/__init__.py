"""Shared helpers: logging, file I/O, clock and author identity."""

from tracyfy.utils._author import AuthorInfo, get_author_info
from tracyfy.utils._io import atomic_write, read_json, read_text, write_json_atomic
from tracyfy.utils._logging import create_logger
from tracyfy.utils._time import format_ms, now_ms

__all__ = [
    "AuthorInfo",
    "atomic_write",
    "create_logger",
    "format_ms",
    "get_author_info",
    "now_ms",
    "read_json",
    "read_text",
    "write_json_atomic",
]
