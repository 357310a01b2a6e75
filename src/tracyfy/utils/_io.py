# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""File I/O helpers for artifact and baseline files.

All writes go through a temporary file in the target directory followed by a
rename, so readers never observe a partially written file.
"""

import tempfile
from pathlib import Path
from typing import Any

import orjson

from tracyfy.exceptions import ArtifactIOError


def atomic_write(path: Path, content: bytes | str) -> None:
    """Write content to a file atomically.

    Args:
        path: Destination file path. Parent directories are created.
        content: Bytes, or text encoded as UTF-8.

    Raises:
        ArtifactIOError: If the write fails.
    """
    _ = path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            _ = f.write(data)
            temp_path = Path(f.name)

        # Path.replace() is atomic on both POSIX and Windows
        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise ArtifactIOError(msg, path=path, cause=e) from e


def read_text(path: Path) -> str:
    """Read a UTF-8 text file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ArtifactIOError: If the file exists but cannot be read or decoded.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read file: {e}"
        raise ArtifactIOError(msg, path=path, cause=e) from e


def read_json(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a JSON object file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ArtifactIOError: If the file cannot be read, is not valid JSON, or
            does not contain an object.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise ArtifactIOError(msg, path=path, cause=e) from e

    try:
        data = orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise ArtifactIOError(msg, path=path, cause=e) from e

    if not isinstance(data, dict):
        msg = f"Expected JSON object, got {type(data).__name__}"
        raise ArtifactIOError(msg, path=path)

    return data


def write_json_atomic(
    path: Path,
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> None:
    """Write a dictionary as indented JSON with sorted keys, atomically.

    Raises:
        ArtifactIOError: If serialization or the write fails.
    """
    try:
        content = orjson.dumps(
            data,
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE,
        )
    except TypeError as e:
        msg = f"Failed to serialize JSON: {e}"
        raise ArtifactIOError(msg, path=path, cause=e) from e

    atomic_write(path, content)
