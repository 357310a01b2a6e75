"""Git repository holding artifact files.

ArtifactRepository wraps a dulwich Repo rooted at the data directory. It
provides the narrow set of operations the artifact core needs: committing
saved files, walking history (optionally restricted to one path), creating
and listing annotated tags, and reading trees of past commits.
"""

import stat
from pathlib import Path
from typing import TYPE_CHECKING, Final, Self, cast

from dulwich import porcelain
from dulwich.diff_tree import tree_changes
from dulwich.errors import NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.objects import S_ISGITLINK, Blob, Commit, Tag
from dulwich.refs import check_ref_format
from dulwich.repo import Repo

from tracyfy.exceptions import (
    RepositoryConflictError,
    RepositoryError,
    RepositoryNotInitializedError,
    RepositoryPathViolationError,
    TagExistsError,
)
from tracyfy.repository._models import CommitInfo, CommitResult, RepositoryStatus, TagInfo
from tracyfy.utils._author import AuthorInfo, get_author_info

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

_GIT_DIR: Final = ".git"
_TAGS_REF_BASE: Final = b"refs/tags"
_TAG_REF_PREFIX: Final = _TAGS_REF_BASE + b"/"
_SHA_HEX_LENGTH: Final = 40
_MIN_SHA_ABBREV_LENGTH: Final = 4


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _decode_path(value: bytes | str) -> str:
    return value if isinstance(value, str) else _decode(value)


def _split_identity(identity: bytes) -> tuple[str, str]:
    """Split ``Name <email>`` into its parts."""
    text = _decode(identity)
    if "<" in text and text.endswith(">"):
        name, email = text.rsplit("<", 1)
        return name.strip(), email.rstrip(">")
    return text, ""


class ArtifactRepository:
    """Git repository for artifact data.

    The class implements the context manager protocol; the underlying dulwich
    Repo is closed when the context exits.

    Attributes:
        root: The resolved working tree root.

    Example:
        >>> with ArtifactRepository(Path("data"), create=True) as repo:
        ...     result = repo.commit_files([Path("data/requirements/REQ-001.md")], "Add")
        ...     for commit in repo.get_log(path="requirements/REQ-001.md"):
        ...         print(commit.short_hash, commit.summary)
    """

    __slots__: Final = ("_author", "_repo", "_root")
    _author: AuthorInfo
    _repo: Repo
    _root: Path

    def __init__(
        self,
        root: Path,
        *,
        create: bool = False,
        author_name: str = "",
        author_email: str = "",
    ) -> None:
        """Open the repository at ``root``.

        Args:
            root: Working tree root (the directory containing ``.git``).
            create: Initialize a new repository if none exists.
            author_name: Identity for commits and tags; resolved from the
                environment or git config when empty.
            author_email: Email for commits and tags, resolved likewise.

        Raises:
            RepositoryNotInitializedError: If no repository exists and
                ``create`` is False.
        """
        resolved = root.resolve()
        if (resolved / _GIT_DIR).exists():
            self._repo = Repo(str(resolved))
        elif create:
            resolved.mkdir(parents=True, exist_ok=True)
            self._repo = Repo.init(str(resolved))
        else:
            msg = f"No git repository found at {root}"
            raise RepositoryNotInitializedError(msg, path=resolved)
        self._root = resolved
        self._author = get_author_info(author_name, author_email)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

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
        """Release file handles held by the dulwich Repo."""
        self._repo.close()

    @property
    def root(self) -> Path:
        """Get the resolved working tree root."""
        return self._root

    # =========================================================================
    # Paths
    # =========================================================================

    def validate_path(self, path: Path) -> bool:
        """Check that a path lies in the working tree and outside ``.git``."""
        resolved = path.resolve()
        if not resolved.is_relative_to(self._root):
            return False
        return _GIT_DIR not in resolved.relative_to(self._root).parts

    def _to_relative_path(self, path: Path) -> str:
        """Convert a path to a repository-relative POSIX string.

        Raises:
            RepositoryPathViolationError: If the path is outside the working
                tree or inside ``.git``.
        """
        absolute = path if path.is_absolute() else self._root / path
        if not self.validate_path(absolute):
            msg = f"Path is outside repository scope: {path}"
            raise RepositoryPathViolationError(msg, path=path)
        return absolute.resolve().relative_to(self._root).as_posix()

    # =========================================================================
    # Commits
    # =========================================================================

    def commit_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Stage files and commit them.

        Args:
            paths: Files to include; absolute or relative to the root.
            message: Commit message.

        Returns:
            CommitResult; ``no_changes`` is True when the files already match
            HEAD.

        Raises:
            RepositoryPathViolationError: If a path is outside the working tree.
            RepositoryConflictError: If another commit landed concurrently.
        """
        relative = sorted({self._to_relative_path(p) for p in paths})
        if not relative:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)

        _ = porcelain.add(self._repo, paths=[str(self._root / p) for p in relative])
        return self._perform_commit(message, frozenset(relative))

    def remove_files(self, paths: Iterable[Path], message: str) -> CommitResult:
        """Delete files from the working tree and index, then commit.

        Files that are already gone from disk are only dropped from the index.
        """
        relative = sorted({self._to_relative_path(p) for p in paths})
        if not relative:
            return CommitResult(sha=None, files=frozenset(), no_changes=True)

        index = self._repo.open_index()
        for rel in relative:
            (self._root / rel).unlink(missing_ok=True)
            key = rel.encode("utf-8")
            if key in index:
                del index[key]
        index.write()
        return self._perform_commit(message, frozenset(relative))

    def get_status(self) -> RepositoryStatus:
        """Report staged, modified and untracked files.

        Example:
            >>> with ArtifactRepository(Path("data")) as repo:
            ...     for path in repo.get_status().pending:
            ...         print(path)
        """
        raw = porcelain.status(self._repo)
        staged_by_kind = cast("dict[str, list[bytes]]", raw.staged)
        staged = {
            _decode_path(path)
            for kind in ("add", "delete", "modify")
            for path in staged_by_kind.get(kind, [])
        }
        return RepositoryStatus(
            staged=frozenset(staged),
            modified=frozenset(_decode_path(p) for p in cast("list[bytes]", raw.unstaged)),
            untracked=frozenset(
                _decode_path(p) for p in cast("list[bytes | str]", raw.untracked)
            ),
        )

    def _has_staged_changes(self) -> bool:
        raw = porcelain.status(self._repo, untracked_files="no")
        staged = cast("dict[str, list[bytes]]", raw.staged)
        return any(staged.get(kind) for kind in ("add", "delete", "modify"))

    def _perform_commit(self, message: str, files: frozenset[str]) -> CommitResult:
        """Commit the index, detecting a concurrent commit.

        The parent of the new commit must be the HEAD observed before
        committing. Detection is post-facto: when it fails the commit already
        exists and RepositoryConflictError carries its hash in ``details``.
        """
        if not self._has_staged_changes():
            return CommitResult(sha=None, files=frozenset(), no_changes=True)

        head_before = self._head()
        identity = self._author.identity.encode("utf-8")
        commit_id = cast(
            "bytes",
            porcelain.commit(
                self._repo,
                message=message.encode("utf-8"),
                author=identity,
                committer=identity,
            ),
        )
        sha = commit_id.decode("ascii")

        parents = cast("Commit", self._repo[commit_id]).parents
        expected = [head_before] if head_before is not None else []
        if list(parents[:1]) != expected:
            actual = parents[0].decode("ascii") if parents else "none"
            msg = (
                "Concurrent modification detected: expected parent="
                f"{head_before.decode('ascii') if head_before else 'none'}, got parent={actual}"
            )
            raise RepositoryConflictError(msg, path=self._root, details=f"Commit SHA: {sha}")

        return CommitResult(sha=sha, files=files, no_changes=False)

    # =========================================================================
    # History
    # =========================================================================

    def _head(self) -> bytes | None:
        try:
            return self._repo.head()
        except KeyError:
            # No commits yet
            return None

    def _to_commit_info(self, commit: Commit) -> CommitInfo:
        name, email = _split_identity(commit.author)
        return CommitInfo(
            hash=commit.id.decode("ascii"),
            message=_decode(commit.message).rstrip("\n"),
            author=name,
            timestamp=commit.author_time * 1000,
            author_email=email,
            parents=tuple(p.decode("ascii") for p in commit.parents),
        )

    def get_log(
        self, *, max_entries: int = 100, path: str | None = None
    ) -> list[CommitInfo]:
        """Walk history from HEAD, newest first.

        Args:
            max_entries: Maximum number of commits returned.
            path: Repository-relative path; only commits that change it are
                returned.

        Returns:
            Commits newest first; empty when the repository has no commits.
        """
        head = self._head()
        if head is None:
            return []

        if path is not None:
            walker = self._repo.get_walker(
                include=[head],
                max_entries=max_entries,
                paths=[path.encode("utf-8")],
            )
        else:
            walker = self._repo.get_walker(include=[head], max_entries=max_entries)
        return [self._to_commit_info(entry.commit) for entry in walker]

    def _resolve_commit(self, commit: str) -> bytes:
        """Resolve a full or abbreviated hash to a commit id.

        Raises:
            KeyError: If the hash is too short, unknown or ambiguous.
        """
        if len(commit) < _MIN_SHA_ABBREV_LENGTH:
            msg = f"SHA too short (minimum {_MIN_SHA_ABBREV_LENGTH} characters): {commit}"
            raise KeyError(msg)

        candidate = commit.lower().encode("ascii", errors="replace")
        if len(commit) == _SHA_HEX_LENGTH:
            if candidate not in self._repo.object_store:
                msg = f"Commit not found: {commit}"
                raise KeyError(msg)
            return candidate

        matches = [
            sha
            for sha in self._repo.object_store
            if sha.startswith(candidate) and isinstance(self._repo[sha], Commit)
        ]
        if not matches:
            msg = f"Commit not found: {commit}"
            raise KeyError(msg)
        if len(matches) > 1:
            msg = f"Ambiguous SHA prefix: {commit} (matches {len(matches)} commits)"
            raise KeyError(msg)
        return matches[0]

    def _commit_tree(self, commit: str) -> bytes:
        obj = self._repo[self._resolve_commit(commit)]
        if not isinstance(obj, Commit):
            msg = f"Not a commit: {commit}"
            raise KeyError(msg)
        return obj.tree

    def read_file_at_commit(self, path: str, commit: str) -> bytes | None:
        """Get file contents at a commit.

        Args:
            path: Repository-relative path.
            commit: Full or abbreviated (minimum 4 characters) commit hash.

        Returns:
            File bytes, or None if the file does not exist at that commit.

        Raises:
            KeyError: If the commit cannot be resolved.
        """
        tree = self._commit_tree(commit)
        try:
            _, blob_sha = tree_lookup_path(
                self._repo.__getitem__, tree, path.encode("utf-8")
            )
        except (KeyError, NotTreeError):
            return None
        blob = self._repo[blob_sha]
        if not isinstance(blob, Blob):
            return None
        return blob.data

    def list_files_at_commit(self, commit: str) -> list[str]:
        """List every file in a commit's tree, sorted.

        Raises:
            KeyError: If the commit cannot be resolved.
        """
        files: list[str] = []
        stack: list[tuple[bytes, bytes]] = [(b"", self._commit_tree(commit))]
        while stack:
            prefix, tree_sha = stack.pop()
            for entry in self._repo[tree_sha].items():  # pyright: ignore[reportAttributeAccessIssue]
                entry_path = prefix + entry.path
                if stat.S_ISDIR(entry.mode):
                    stack.append((entry_path + b"/", entry.sha))
                elif not S_ISGITLINK(entry.mode):
                    files.append(_decode(entry_path))
        return sorted(files)

    def get_commit_files(self, commit: str) -> list[str]:
        """List paths changed by a commit relative to its first parent.

        Raises:
            KeyError: If the commit cannot be resolved.
        """
        commit_obj = cast("Commit", self._repo[self._resolve_commit(commit)])
        parent_tree: bytes | None = None
        if commit_obj.parents:
            parent_tree = cast("Commit", self._repo[commit_obj.parents[0]]).tree

        paths: set[str] = set()
        for change in tree_changes(self._repo.object_store, parent_tree, commit_obj.tree):
            for entry in (change.old, change.new):
                if entry is not None and entry.path is not None:
                    paths.add(_decode(entry.path))
        return sorted(paths)

    # =========================================================================
    # Tags
    # =========================================================================

    def _tag_info(self, name: str, sha: bytes) -> TagInfo:
        obj = self._repo[sha]
        if isinstance(obj, Tag):
            message = _decode(obj.message).rstrip("\n")
            timestamp = obj.tag_time * 1000
            while isinstance(obj, Tag):
                obj = self._repo[obj.object[1]]
            return TagInfo(
                name=name,
                message=message,
                timestamp=timestamp,
                commit=obj.id.decode("ascii"),
            )
        commit = cast("Commit", obj)
        return TagInfo(
            name=name,
            message=_decode(commit.message).rstrip("\n"),
            timestamp=commit.commit_time * 1000,
            commit=commit.id.decode("ascii"),
        )

    def is_valid_tag_name(self, name: str) -> bool:
        """Check that ``refs/tags/{name}`` is a well-formed git ref."""
        return check_ref_format(_TAG_REF_PREFIX + name.encode("utf-8"))

    def create_tag(
        self, name: str, message: str, *, commit: str | None = None
    ) -> TagInfo:
        """Create an annotated tag.

        Args:
            name: Tag name, for example ``baseline/PROJ-001/01``.
            message: Tag message.
            commit: Commit to tag; HEAD when None.

        Returns:
            The created tag.

        Raises:
            TagExistsError: If the tag already exists.
            RepositoryError: If the name is not a valid ref name or there is
                nothing to tag.
        """
        ref = _TAG_REF_PREFIX + name.encode("utf-8")
        if not self.is_valid_tag_name(name):
            msg = f"Invalid tag name: {name}"
            raise RepositoryError(msg, path=self._root)
        if ref in self._repo.refs:
            msg = f"Tag already exists: {name}"
            raise TagExistsError(msg, path=self._root, details=name)

        target = self._resolve_commit(commit) if commit is not None else self._head()
        if target is None:
            msg = "Cannot tag a repository without commits"
            raise RepositoryError(msg, path=self._root)

        porcelain.tag_create(
            self._repo,
            name.encode("utf-8"),
            author=self._author.identity.encode("utf-8"),
            message=message.encode("utf-8"),
            annotated=True,
            objectish=target,
        )
        return self._tag_info(name, self._repo.refs[ref])

    def list_tags(self) -> list[TagInfo]:
        """List all tags, newest first, ties broken by name."""
        tags = [
            self._tag_info(_decode(name), sha)
            for name, sha in self._repo.refs.as_dict(_TAGS_REF_BASE).items()
        ]
        tags.sort(key=lambda tag: (-tag.timestamp, tag.name))
        return tags
