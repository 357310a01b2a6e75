# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

import os
import tomllib
from typing import TYPE_CHECKING, Any

import orjson

from tracyfy.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

ENV_PREFIX = "TRACYFY_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified.

    Merge rules:
        - Dictionaries are recursively merged
        - Arrays and scalars are replaced with the override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = {k: copy_value(v) for k, v in base.items()}  # pyright: ignore[reportExplicitAny]
    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = copy_value(override_val)
    return result


def copy_value(value: Any) -> Any:  # noqa: ANN401 # pyright: ignore[reportExplicitAny]
    """Recursively copy dicts and lists so the result shares no structure."""
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def set_nested_key(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    dotted_key: str,
    value: Any,  # noqa: ANN401 # pyright: ignore[reportExplicitAny]
) -> None:
    """Set ``value`` at a dotted path, creating intermediate tables."""
    parts = dotted_key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def parse_env_vars(prefix: str = ENV_PREFIX) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a nested config dictionary.

    Variables are named ``{prefix}{SECTION}__{KEY}``; double underscores
    separate nesting levels. ``TRACYFY_HISTORY__TIMEOUT_SECONDS=5`` becomes
    ``{"history": {"timeout_seconds": 5}}``. Variables without a double
    underscore (such as TRACYFY_DEBUG) are not configuration keys and are
    ignored.

    Args:
        prefix: Environment variable prefix.

    Returns:
        Dictionary of parsed values.
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        config_key = key[len(prefix) :]
        if "__" not in config_key:
            continue
        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, _parse_env_value(value))
    return result


def _parse_env_value(value: str) -> Any:  # noqa: ANN401 # pyright: ignore[reportExplicitAny]
    """Parse an environment variable value with type inference.

    Order of type inference:
        1. Boolean: true/false (case-insensitive)
        2. Integer
        3. Float (must contain a decimal point)
        4. JSON array or object
        5. String
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    try:
        return int(value)
    except ValueError:
        pass

    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            pass

    return value
