"""Read-only queries over the git history of the artifact repository.

Every query runs the blocking repository call in a worker thread under a
timeout. Queries fail soft: backend errors and timeouts are logged and the
empty result is returned. Cancellation of the calling task is not an error and
propagates normally; the abandoned worker thread finishes in the background.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Final

import anyio
import anyio.to_thread

from tracyfy.artifacts import (
    diff_records,
    from_markdown,
    get_schema,
    iter_schemas,
    kind_for_id,
)
from tracyfy.history._snapshot import ProjectSnapshot
from tracyfy.history._timeline import TimelineEntry, build_timeline
from tracyfy.repository import RepositoryStatus
from tracyfy.utils._logging import create_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

    from tracyfy.artifacts import ArtifactKind, ArtifactRecord, FieldChange
    from tracyfy.repository import CommitInfo, RepositoryProtocol, TagInfo

DEFAULT_TIMEOUT: Final = 30.0
DEFAULT_MAX_COMMITS: Final = 100


def _artifact_path(artifact_id: str, kind: ArtifactKind | str | None) -> tuple[ArtifactKind, str]:
    resolved = kind_for_id(artifact_id) if kind is None else get_schema(kind).kind
    return resolved, get_schema(resolved).relative_path(artifact_id)


def _decode_record(
    content: bytes, kind: ArtifactKind, artifact_id: str
) -> ArtifactRecord:
    record = from_markdown(content.decode("utf-8", errors="replace"), kind)
    if not record.id:
        record = replace(record, id=artifact_id)
    return record


class HistoryService:
    """Answers history questions about artifacts.

    Attributes:
        repository: Repository the queries run against. Its root is the data
            root, so artifact paths are ``{folder}/{id}.md``.
        timeout: Default per-query timeout in seconds, None for no limit.
        max_commits: Default number of commits returned by log queries.
    """

    __slots__: Final = ("_logger", "_max_commits", "_repository", "_timeout")

    def __init__(
        self,
        repository: RepositoryProtocol,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        max_commits: int = DEFAULT_MAX_COMMITS,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._repository: RepositoryProtocol = repository
        self._timeout: float | None = timeout
        self._max_commits: int = max_commits
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_logger(component="history")
        )

    @property
    def repository(self) -> RepositoryProtocol:
        """Repository the queries run against."""
        return self._repository

    @property
    def timeout(self) -> float | None:
        """Default per-query timeout in seconds."""
        return self._timeout

    @property
    def max_commits(self) -> int:
        """Default log depth."""
        return self._max_commits

    async def _run[T](
        self,
        operation: str,
        func: Callable[[], T],
        default: T,
        *,
        timeout: float | None = None,
        **context: object,
    ) -> T:
        """Run a blocking query in a worker thread, returning ``default`` on failure.

        Args:
            operation: Query name for log entries.
            func: Blocking callable doing the repository work.
            default: Result used when the query fails or times out.
            timeout: Override of the service timeout for this call.
            **context: Extra fields for log entries.

        Returns:
            The query result or ``default``.
        """
        limit = self._timeout if timeout is None else timeout
        try:
            with anyio.fail_after(limit):
                return await anyio.to_thread.run_sync(func, abandon_on_cancel=True)
        except TimeoutError:
            self._logger.warning(
                "history_query_timed_out", operation=operation, timeout=limit, **context
            )
            return default
        except Exception as e:  # noqa: BLE001
            # structlog's dict_tracebacks processor adds the traceback.
            self._logger.exception(
                "history_query_failed", operation=operation, error=str(e), **context
            )
            return default

    # =========================================================================
    # Log and tags
    # =========================================================================

    async def get_history(
        self, *, depth: int | None = None, timeout: float | None = None
    ) -> list[CommitInfo]:
        """Return repository commits, newest first.

        Args:
            depth: Maximum number of commits; the service default when None.
            timeout: Per-call timeout override in seconds.
        """
        max_entries = self._max_commits if depth is None else depth
        return await self._run(
            "get_history",
            lambda: self._repository.get_log(max_entries=max_entries),
            [],
            timeout=timeout,
        )

    async def get_tags_with_details(self, *, timeout: float | None = None) -> list[TagInfo]:
        """Return every tag with its message, time and target commit, newest first."""
        return await self._run(
            "get_tags_with_details", self._repository.list_tags, [], timeout=timeout
        )

    async def get_status(self, *, timeout: float | None = None) -> RepositoryStatus:
        """Return the uncommitted changes in the data root.

        Writes made with auto-commit disabled show up here until they are
        committed. A failed query reports a clean tree.
        """
        return await self._run(
            "get_status", self._repository.get_status, RepositoryStatus(), timeout=timeout
        )

    async def get_timeline(
        self, *, depth: int | None = None, timeout: float | None = None
    ) -> list[TimelineEntry]:
        """Return recent commits paired with the tags that point at them.

        The log and the tag list are fetched concurrently; if the tag query
        fails the commits are returned untagged.
        """
        commits: list[CommitInfo] = []
        tags: list[TagInfo] = []

        async def load_commits() -> None:
            nonlocal commits
            commits = await self.get_history(depth=depth, timeout=timeout)

        async def load_tags() -> None:
            nonlocal tags
            tags = await self.get_tags_with_details(timeout=timeout)

        async with anyio.create_task_group() as tg:
            tg.start_soon(load_commits)
            tg.start_soon(load_tags)

        return build_timeline(commits, tags)

    # =========================================================================
    # Artifact history
    # =========================================================================

    async def get_artifact_history(
        self,
        artifact_id: str,
        kind: ArtifactKind | str | None = None,
        *,
        depth: int | None = None,
        timeout: float | None = None,
    ) -> list[CommitInfo]:
        """Return the commits that touched one artifact file, newest first.

        Args:
            artifact_id: Artifact ID such as ``REQ-001``.
            kind: Artifact kind; inferred from the ID prefix when None.
            depth: Maximum number of commits; the service default when None.
            timeout: Per-call timeout override in seconds.

        Returns:
            Matching commits; empty when the artifact has no history or the
            query failed.
        """
        max_entries = self._max_commits if depth is None else depth

        def query() -> list[CommitInfo]:
            _, path = _artifact_path(artifact_id, kind)
            return self._repository.get_log(max_entries=max_entries, path=path)

        return await self._run(
            "get_artifact_history", query, [], timeout=timeout, artifact_id=artifact_id
        )

    async def get_commit_files(
        self, commit: str, *, timeout: float | None = None
    ) -> list[str]:
        """Return the repository-relative paths changed by a commit."""
        return await self._run(
            "get_commit_files",
            lambda: self._repository.get_commit_files(commit),
            [],
            timeout=timeout,
            commit=commit,
        )

    async def read_artifact_at_commit(
        self,
        artifact_id: str,
        commit: str,
        kind: ArtifactKind | str | None = None,
        *,
        timeout: float | None = None,
    ) -> ArtifactRecord | None:
        """Parse an artifact as it was stored at a commit.

        Returns:
            The record, or None when the file did not exist at that commit or
            the query failed.
        """

        def query() -> ArtifactRecord | None:
            resolved, path = _artifact_path(artifact_id, kind)
            content = self._repository.read_file_at_commit(path, commit)
            if content is None:
                return None
            return _decode_record(content, resolved, artifact_id)

        return await self._run(
            "read_artifact_at_commit",
            query,
            None,
            timeout=timeout,
            artifact_id=artifact_id,
            commit=commit,
        )

    async def load_snapshot(
        self, commit: str, *, timeout: float | None = None
    ) -> ProjectSnapshot:
        """Load every artifact present at a commit.

        Files outside the kind folders, and files whose name is not
        ``{id}.md``, are skipped.
        """
        folders = {schema.folder: schema.kind for schema in iter_schemas()}

        def query() -> ProjectSnapshot:
            grouped: dict[ArtifactKind, list[ArtifactRecord]] = {}
            for path in self._repository.list_files_at_commit(commit):
                folder, _, name = path.partition("/")
                kind = folders.get(folder)
                if kind is None or "/" in name or not name.endswith(".md"):
                    continue
                content = self._repository.read_file_at_commit(path, commit)
                if content is None:
                    continue
                record = _decode_record(content, kind, name.removesuffix(".md"))
                grouped.setdefault(kind, []).append(record)
            return ProjectSnapshot(
                commit=commit,
                artifacts={
                    kind: tuple(sorted(records, key=lambda r: r.id))
                    for kind, records in grouped.items()
                },
            )

        return await self._run(
            "load_snapshot", query, ProjectSnapshot(), timeout=timeout, commit=commit
        )

    async def diff_artifact(
        self,
        artifact_id: str,
        old_commit: str,
        new_commit: str,
        kind: ArtifactKind | str | None = None,
        *,
        timeout: float | None = None,
    ) -> list[FieldChange]:
        """Compare an artifact between two commits.

        A side where the file does not exist is compared as a blank record of
        the kind, so a creation shows every populated field.

        Returns:
            Changed fields in record order; empty when nothing changed or the
            query failed.
        """

        def query() -> list[FieldChange]:
            resolved, path = _artifact_path(artifact_id, kind)
            blank = get_schema(resolved).record_type(id=artifact_id)
            states: list[ArtifactRecord] = []
            for commit in (old_commit, new_commit):
                content = self._repository.read_file_at_commit(path, commit)
                states.append(
                    blank if content is None else _decode_record(content, resolved, artifact_id)
                )
            return diff_records(states[0], states[1])

        return await self._run(
            "diff_artifact",
            query,
            [],
            timeout=timeout,
            artifact_id=artifact_id,
            old_commit=old_commit,
            new_commit=new_commit,
        )
