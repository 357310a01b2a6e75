# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""Repository protocol for dependency injection.

Stores, the history service and the baseline manager depend on this protocol
rather than on a concrete git implementation, so tests can substitute
FakeRepository.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tracyfy.repository._models import (
        CommitInfo,
        CommitResult,
        RepositoryStatus,
        TagInfo,
    )


@runtime_checkable
class RepositoryProtocol(Protocol):
    """Version-control operations used by the artifact core.

    Paths passed to write operations are absolute; paths passed to and
    returned from history operations are repository-relative POSIX strings.
    """

    @property
    def root(self) -> Path:
        """Working tree root."""
        ...

    def close(self) -> None:
        """Release resources held by the repository."""
        ...

    def commit_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Stage the given files and commit them."""
        ...

    def remove_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Delete the given files from the working tree and commit the removal."""
        ...

    def get_status(self) -> RepositoryStatus:
        """Return the uncommitted changes in the working tree."""
        ...

    def get_log(
        self, *, max_entries: int = 100, path: str | None = None
    ) -> list[CommitInfo]:
        """Return commits newest first, optionally only those touching ``path``."""
        ...

    def create_tag(
        self, name: str, message: str, *, commit: str | None = None
    ) -> TagInfo:
        """Create an annotated tag on ``commit`` (HEAD when None)."""
        ...

    def is_valid_tag_name(self, name: str) -> bool:
        """Check that ``name`` can be used as a tag name."""
        ...

    def list_tags(self) -> list[TagInfo]:
        """Return all tags, newest first."""
        ...

    def read_file_at_commit(self, path: str, commit: str) -> bytes | None:
        """Return file content at a commit, or None if the file is absent."""
        ...

    def list_files_at_commit(self, commit: str) -> list[str]:
        """Return every file path in the commit's tree, sorted."""
        ...

    def get_commit_files(self, commit: str) -> list[str]:
        """Return the paths changed by a commit relative to its first parent."""
        ...
