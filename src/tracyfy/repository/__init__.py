"""Git repository access for artifact data.

This package provides the version-control backend used by the artifact
store, the history service and the baseline manager:

- ArtifactRepository: dulwich-backed repository at the data root
- RepositoryProtocol: the interface consumers depend on
- FakeRepository: in-memory implementation for tests

Example:
    >>> from pathlib import Path
    >>> from tracyfy.repository import ArtifactRepository
    >>> with ArtifactRepository(Path("data"), create=True) as repo:
    ...     commits = repo.get_log(max_entries=10)
"""

from tracyfy.repository._fake import FakeRepository
from tracyfy.repository._models import (
    CommitInfo,
    CommitResult,
    RepositoryStatus,
    TagInfo,
)
from tracyfy.repository._protocol import RepositoryProtocol
from tracyfy.repository._repository import ArtifactRepository

__all__ = [
    "ArtifactRepository",
    "CommitInfo",
    "CommitResult",
    "FakeRepository",
    "RepositoryProtocol",
    "RepositoryStatus",
    "TagInfo",
]
