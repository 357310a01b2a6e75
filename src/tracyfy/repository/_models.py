"""Data models for repository operations."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """A commit as reported by history queries.

    Attributes:
        hash: Full hexadecimal commit hash.
        message: Commit message without the trailing newline.
        author: Author name.
        timestamp: Author time in epoch milliseconds.
        author_email: Author email.
        parents: Parent commit hashes.
    """

    hash: str
    message: str
    author: str
    timestamp: int
    author_email: str = ""
    parents: tuple[str, ...] = ()

    @property
    def short_hash(self) -> str:
        """First seven characters of the hash."""
        return self.hash[:7]

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True, slots=True)
class TagInfo:
    """A tag and the commit it points to.

    Attributes:
        name: Tag name without ``refs/tags/``.
        message: Tag message, or the commit message for lightweight tags.
        timestamp: Tagger time (commit time for lightweight tags) in epoch
            milliseconds.
        commit: Hash of the tagged commit.
    """

    name: str
    message: str
    timestamp: int
    commit: str


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of a commit operation.

    Attributes:
        sha: Hash of the new commit, or None when nothing was committed.
        files: Repository-relative paths included in the commit.
        no_changes: True when there was nothing to commit.
    """

    sha: str | None
    files: frozenset[str]
    no_changes: bool


@dataclass(frozen=True, slots=True)
class RepositoryStatus:
    """Uncommitted changes in the working tree.

    Attributes:
        staged: Repository-relative paths staged for commit.
        modified: Tracked paths changed or deleted but not staged.
        untracked: Paths git does not track.
    """

    staged: frozenset[str] = frozenset()
    modified: frozenset[str] = frozenset()
    untracked: frozenset[str] = frozenset()

    @property
    def pending(self) -> list[str]:
        """Every path with uncommitted changes, sorted."""
        return sorted(self.staged | self.modified | self.untracked)

    @property
    def is_clean(self) -> bool:
        """True when nothing is waiting to be committed."""
        return not (self.staged or self.modified or self.untracked)
