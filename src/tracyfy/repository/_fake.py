# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake repository for testing.

This module provides a FakeRepository class that implements RepositoryProtocol
in memory, so stores and services can be tested without a git repository.
"""

import hashlib
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Final, Self

from tracyfy.exceptions import (
    RepositoryError,
    RepositoryPathViolationError,
    TagExistsError,
)
from tracyfy.repository._models import CommitInfo, CommitResult, RepositoryStatus, TagInfo

_BASE_TIMESTAMP: Final = 1_700_000_000_000

# Subset of git-check-ref-format rules.
_INVALID_TAG: Final = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]|\.\.|@\{|//|^/|/$|^\.|/\.|\.lock(?:/|$)|\.$")


@dataclass(slots=True)
class FakeRepository:
    """In-memory repository for testing.

    Every commit snapshots the full file set, so history, file-at-commit and
    tree listings behave like a real repository. Commits are kept newest
    first in ``commits``; timestamps advance one second per commit.

    Example:
        >>> repo = FakeRepository()
        >>> commit = repo.add_commit("Add REQ-001", {"requirements/REQ-001.md": "..."})
        >>> repo.get_log(path="requirements/REQ-001.md")[0] == commit
        True
    """

    root: Path = field(default_factory=lambda: Path("/fake/data"))
    author: str = "Test User"
    commits: list[CommitInfo] = field(default_factory=list)
    tags: dict[str, TagInfo] = field(default_factory=dict)
    _snapshots: dict[str, dict[str, bytes]] = field(default_factory=dict)
    _changed: dict[str, frozenset[str]] = field(default_factory=dict)
    _counter: int = 0

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the repository (no-op for fake)."""

    # =========================================================================
    # Test helpers
    # =========================================================================

    def add_commit(
        self,
        message: str,
        files: Mapping[str, bytes | str],
        *,
        removed: Iterable[str] = (),
        author: str | None = None,
        timestamp: int | None = None,
    ) -> CommitInfo:
        """Record a commit that writes ``files`` and deletes ``removed``.

        Args:
            message: Commit message.
            files: Repository-relative path to new content.
            removed: Repository-relative paths deleted by the commit.
            author: Author name; defaults to ``self.author``.
            timestamp: Epoch milliseconds; defaults to a steadily increasing
                fake clock.

        Returns:
            The new commit.
        """
        self._counter += 1
        parent = self.commits[0].hash if self.commits else None
        tree = dict(self._snapshots[parent]) if parent is not None else {}
        for path, content in files.items():
            tree[path] = content.encode("utf-8") if isinstance(content, str) else content
        removed_paths = frozenset(removed)
        for path in removed_paths:
            _ = tree.pop(path, None)

        digest = hashlib.sha1(f"{self._counter}:{message}".encode(), usedforsecurity=False)
        commit = CommitInfo(
            hash=digest.hexdigest(),
            message=message,
            author=author or self.author,
            timestamp=timestamp if timestamp is not None else _BASE_TIMESTAMP + self._counter * 1000,
            author_email="test@example.com",
            parents=(parent,) if parent is not None else (),
        )
        self.commits.insert(0, commit)
        self._snapshots[commit.hash] = tree
        self._changed[commit.hash] = frozenset(files) | removed_paths
        return commit

    def add_tag(
        self,
        name: str,
        commit: str,
        *,
        message: str = "",
        timestamp: int | None = None,
    ) -> TagInfo:
        """Attach a tag to an existing commit hash without validation."""
        tag = TagInfo(
            name=name,
            message=message,
            timestamp=timestamp if timestamp is not None else _BASE_TIMESTAMP + len(self.tags),
            commit=commit,
        )
        self.tags[name] = tag
        return tag

    def _relative(self, path: Path) -> str:
        absolute = path if path.is_absolute() else self.root / path
        if not absolute.is_relative_to(self.root):
            msg = f"Path is outside repository scope: {path}"
            raise RepositoryPathViolationError(msg, path=path)
        return absolute.relative_to(self.root).as_posix()

    def _resolve(self, commit: str) -> str:
        matches = [c.hash for c in self.commits if c.hash.startswith(commit)]
        if len(matches) != 1:
            msg = f"Commit not found: {commit}"
            raise KeyError(msg)
        return matches[0]

    # =========================================================================
    # RepositoryProtocol Methods
    # =========================================================================

    def commit_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Snapshot the current on-disk content of ``paths`` as a commit.

        Files whose content equals the previous snapshot are not changes.
        """
        head = self._snapshots[self.commits[0].hash] if self.commits else {}
        files: dict[str, bytes] = {}
        for path in paths:
            relative = self._relative(path)
            content = (self.root / relative).read_bytes()
            if head.get(relative) != content:
                files[relative] = content
        if not files:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)
        commit = self.add_commit(message, files)
        return CommitResult(sha=commit.hash, files=frozenset(files), no_changes=False)

    def remove_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Delete files from disk and record their removal."""
        head = self._snapshots[self.commits[0].hash] if self.commits else {}
        removed: set[str] = set()
        for path in paths:
            relative = self._relative(path)
            (self.root / relative).unlink(missing_ok=True)
            if relative in head:
                removed.add(relative)
        if not removed:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)
        commit = self.add_commit(message, {}, removed=removed)
        return CommitResult(sha=commit.hash, files=frozenset(removed), no_changes=False)

    def get_status(self) -> RepositoryStatus:
        """Compare files under ``root`` with the newest snapshot.

        The fake has no index, so changes are reported as modified or
        untracked, never staged. A root that does not exist is clean.
        """
        if not self.root.is_dir():
            return RepositoryStatus()
        head = self._snapshots[self.commits[0].hash] if self.commits else {}
        on_disk = {
            path.relative_to(self.root).as_posix(): path
            for path in self.root.rglob("*")
            if path.is_file() and ".git" not in path.relative_to(self.root).parts
        }
        modified = {p for p in head if p not in on_disk}
        modified.update(
            p for p, path in on_disk.items() if p in head and path.read_bytes() != head[p]
        )
        return RepositoryStatus(
            modified=frozenset(modified),
            untracked=frozenset(p for p in on_disk if p not in head),
        )

    def get_log(
        self, *, max_entries: int = 100, path: str | None = None
    ) -> list[CommitInfo]:
        """Return commits newest first, optionally only those touching ``path``."""
        commits = [
            c for c in self.commits if path is None or path in self._changed[c.hash]
        ]
        return commits[:max_entries]

    def is_valid_tag_name(self, name: str) -> bool:
        """Apply the common git ref-name rules to ``name``."""
        return bool(name) and _INVALID_TAG.search(name) is None

    def create_tag(
        self, name: str, message: str, *, commit: str | None = None
    ) -> TagInfo:
        """Tag ``commit`` (HEAD when None).

        Raises:
            TagExistsError: If the tag already exists.
            RepositoryError: If the name is invalid or there is nothing to tag.
            KeyError: If ``commit`` cannot be resolved.
        """
        if not self.is_valid_tag_name(name):
            msg = f"Invalid tag name: {name}"
            raise RepositoryError(msg, path=self.root)
        if name in self.tags:
            msg = f"Tag already exists: {name}"
            raise TagExistsError(msg, path=self.root, details=name)
        if commit is None:
            if not self.commits:
                msg = "Cannot tag a repository without commits"
                raise RepositoryError(msg, path=self.root)
            target = self.commits[0].hash
        else:
            target = self._resolve(commit)
        return self.add_tag(
            name,
            target,
            message=message,
            timestamp=_BASE_TIMESTAMP + (self._counter + len(self.tags)) * 1000,
        )

    def list_tags(self) -> list[TagInfo]:
        """Return all tags, newest first, ties broken by name."""
        return sorted(self.tags.values(), key=lambda tag: (-tag.timestamp, tag.name))

    def read_file_at_commit(self, path: str, commit: str) -> bytes | None:
        """Return file content at a commit, or None if absent."""
        return self._snapshots[self._resolve(commit)].get(path)

    def list_files_at_commit(self, commit: str) -> list[str]:
        """Return every file path in the commit's snapshot, sorted."""
        return sorted(self._snapshots[self._resolve(commit)])

    def get_commit_files(self, commit: str) -> list[str]:
        """Return the paths a commit wrote or removed, sorted."""
        return sorted(self._changed[self._resolve(commit)])
