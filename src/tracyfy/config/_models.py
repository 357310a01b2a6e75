# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

Each TOML table maps to one frozen Pydantic model; unknown keys are ignored so
configuration written by newer versions still loads.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError

from tracyfy.config._loader import deep_merge, parse_env_vars, read_toml_file
from tracyfy.exceptions import ConfigLoadError

CONFIG_DIR_NAME = ".tracyfy"
CONFIG_FILE_NAME = "config.toml"


class LogLevel(StrEnum):
    """Log level threshold values, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class HistoryConfig(BaseModel):
    """History query settings."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    timeout_seconds: PositiveFloat | None = Field(
        default=30.0,
        description="Seconds before a history query is abandoned; None waits forever.",
    )
    max_commits: int = Field(
        default=100,
        ge=1,
        description="Commits returned by a history query when no depth is given.",
    )


class RepositoryConfig(BaseModel):
    """Git identity and commit behavior."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    author_name: str = Field(default="", description="Commit author name.")
    author_email: str = Field(default="", description="Commit author email.")
    auto_commit: bool = Field(
        default=True,
        description="Commit every artifact save.",
    )


class TracyfyConfig(BaseModel):
    """Complete configuration.

    Attributes:
        logging: Logger settings.
        history: History query settings.
        repository: Git identity and commit behavior.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, path: Path | None = None) -> Self:
        """Build a configuration from a plain dictionary.

        Raises:
            ConfigLoadError: If a value has the wrong type or range.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigLoadError(msg, path=path) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load a configuration from one TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed or validated.
        """
        return cls.from_dict(read_toml_file(path), path=path)

    @classmethod
    def load(cls, root: Path, *, include_env: bool = True) -> Self:
        """Load configuration for a data root.

        Sources in increasing precedence: defaults, ``{root}/.tracyfy/config.toml``
        when it exists, and ``TRACYFY_SECTION__KEY`` environment variables.

        Args:
            root: Repository data root.
            include_env: Apply environment variable overrides.

        Raises:
            ConfigLoadError: If the file or an override is invalid.
        """
        path = config_path(root)
        data: dict[str, Any] = read_toml_file(path) if path.is_file() else {}
        if include_env:
            data = deep_merge(data, parse_env_vars())
        return cls.from_dict(data, path=path)

    def to_toml(self) -> str:
        """Serialize to TOML, omitting unset optional values."""
        return tomli_w.dumps(self.model_dump(mode="json", exclude_none=True))

    def save(self, root: Path) -> Path:
        """Write the configuration to ``{root}/.tracyfy/config.toml``."""
        path = config_path(root)
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(self.to_toml(), encoding="utf-8")
        return path


def config_path(root: Path) -> Path:
    """Return the configuration file location for a data root."""
    return root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def load_config(root: Path, *, include_env: bool = True) -> TracyfyConfig:
    """Load configuration for a data root. See TracyfyConfig.load."""
    return TracyfyConfig.load(root, include_env=include_env)
