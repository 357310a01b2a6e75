"""Author identity resolution for commits and tags."""

import os
import subprocess
from dataclasses import dataclass
from typing import Final

DEFAULT_AUTHOR_NAME: Final = "Tracyfy User"
DEFAULT_AUTHOR_EMAIL: Final = "user@tracyfy.local"


@dataclass(slots=True, frozen=True)
class AuthorInfo:
    """Resolved author information.

    Attributes:
        name: Author name.
        email: Author email.
    """

    name: str
    email: str

    @property
    def identity(self) -> str:
        """Identity in git's ``Name <email>`` form."""
        return f"{self.name} <{self.email}>"


def get_author_info(name: str = "", email: str = "") -> AuthorInfo:
    """Resolve the identity used for commits and tags.

    Resolution order, per field:
    1. Explicit arguments (usually from configuration)
    2. Environment variables (TRACYFY_AUTHOR_NAME, TRACYFY_AUTHOR_EMAIL)
    3. Git config (user.name, user.email)
    4. "Tracyfy User <user@tracyfy.local>"

    Args:
        name: Configured author name, empty to resolve.
        email: Configured author email, empty to resolve.

    Returns:
        AuthorInfo with both fields populated.
    """
    resolved_name = (
        name
        or os.environ.get("TRACYFY_AUTHOR_NAME")
        or _git_config("user.name")
        or DEFAULT_AUTHOR_NAME
    )
    resolved_email = (
        email
        or os.environ.get("TRACYFY_AUTHOR_EMAIL")
        or _git_config("user.email")
        or DEFAULT_AUTHOR_EMAIL
    )
    return AuthorInfo(name=resolved_name, email=resolved_email)


def _git_config(key: str) -> str | None:
    """Read a value from git config.

    Args:
        key: Git config key (e.g., "user.name").

    Returns:
        The config value, or None if not set or git is unavailable.
    """
    if not key.replace(".", "").replace("_", "").isalnum():
        return None

    try:
        result = subprocess.run(  # noqa: S603
            ["git", "config", "--get", key],  # noqa: S607
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return result.stdout.strip() or None
