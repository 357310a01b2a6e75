"""Configuration loading for Tracyfy.

Configuration lives in ``.tracyfy/config.toml`` under the data root and can
be overridden with ``TRACYFY_SECTION__KEY`` environment variables.
"""

from tracyfy.config._loader import deep_merge, parse_env_vars, read_toml_file
from tracyfy.config._models import (
    HistoryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RepositoryConfig,
    TracyfyConfig,
    config_path,
    load_config,
)

__all__ = [
    "HistoryConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RepositoryConfig",
    "TracyfyConfig",
    "config_path",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
