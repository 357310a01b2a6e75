"""Creation, listing and comparison of project baselines.

A baseline records, for every artifact a project lists, the newest commit
that touched the artifact's file. Successive baselines of a project also
record which artifacts joined or left the project since the previous one.
"""

from typing import TYPE_CHECKING, Final

import anyio
import anyio.to_thread

from tracyfy.artifacts import ArtifactKind, Project
from tracyfy.baselines._models import (
    ArtifactChange,
    ArtifactCommit,
    BaselineComparison,
    BaselineView,
    ProjectBaseline,
)
from tracyfy.exceptions import ProjectNotFoundError, RepositoryError, TagExistsError
from tracyfy.utils._logging import create_logger
from tracyfy.utils._time import now_ms

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

    from tracyfy.artifacts import ArtifactRecord, ArtifactStore
    from tracyfy.baselines._storage import BaselineStorage
    from tracyfy.history import HistoryService
    from tracyfy.repository import RepositoryProtocol

# Project membership lists and the kind of artifact each one holds.
PROJECT_MEMBERS: Final = (
    ("requirement_ids", ArtifactKind.REQUIREMENT),
    ("use_case_ids", ArtifactKind.USE_CASE),
    ("test_case_ids", ArtifactKind.TEST_CASE),
    ("information_ids", ArtifactKind.INFORMATION),
    ("risk_ids", ArtifactKind.RISK),
    ("document_ids", ArtifactKind.DOCUMENT),
)


def baseline_tag_name(project_id: str, version: str) -> str:
    """Name of the git tag marking a baseline.

    Example:
        >>> baseline_tag_name("PROJ-001", "02")
        'baseline/PROJ-001/02'
    """
    return f"baseline/{project_id}/{version}"


def next_baseline_version(existing: Sequence[ProjectBaseline]) -> str:
    """Return the next two-digit version after the highest numeric one.

    Example:
        >>> next_baseline_version([])
        '01'
    """
    numbers = [int(b.version) for b in existing if b.version.isdecimal()]
    return f"{max(numbers, default=0) + 1:02d}"


def compare_baselines(
    previous: ProjectBaseline, current: ProjectBaseline
) -> BaselineComparison:
    """Compare the artifacts captured by two baselines.

    Args:
        previous: The earlier baseline.
        current: The later baseline.

    Returns:
        Added and removed IDs in capture order, and the artifacts whose
        captured commit changed.
    """
    before = previous.artifact_commits
    after = current.artifact_commits
    modified: list[ArtifactChange] = []
    unchanged: list[str] = []
    for artifact_id, entry in after.items():
        old = before.get(artifact_id)
        if old is None:
            continue
        if old.commit_hash == entry.commit_hash:
            unchanged.append(artifact_id)
        else:
            modified.append(
                ArtifactChange(
                    artifact_id=artifact_id,
                    kind=entry.kind,
                    previous_commit=old.commit_hash,
                    current_commit=entry.commit_hash,
                )
            )
    return BaselineComparison(
        previous_id=previous.id,
        current_id=current.id,
        added=tuple(a for a in after if a not in before),
        removed=tuple(a for a in before if a not in after),
        modified=tuple(modified),
        unchanged=tuple(unchanged),
    )


def describe_baselines(baselines: Sequence[ProjectBaseline]) -> list[BaselineView]:
    """Flag the most recent baseline.

    Exactly one view is marked latest when the input is not empty: the one
    with the greatest timestamp, the first of them on ties. Input order is
    kept.
    """
    if not baselines:
        return []
    latest = max(range(len(baselines)), key=lambda i: (baselines[i].timestamp, -i))
    return [
        BaselineView(baseline=baseline, is_latest=index == latest)
        for index, baseline in enumerate(baselines)
    ]


class BaselineManager:
    """Creates and queries project baselines.

    Attributes:
        store: Store the project and its artifacts are read from.
        history: Service used to find each artifact's newest commit.
        storage: Persistence for baseline files.
        repository: Repository that receives baseline tags, or None.
    """

    __slots__: Final = ("_history", "_logger", "_repository", "_storage", "_store")

    def __init__(
        self,
        store: ArtifactStore,
        history: HistoryService,
        storage: BaselineStorage,
        *,
        repository: RepositoryProtocol | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._store: ArtifactStore = store
        self._history: HistoryService = history
        self._storage: BaselineStorage = storage
        self._repository: RepositoryProtocol | None = repository
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_logger(component="baselines")
        )

    def _project_members(self, project: Project) -> list[tuple[str, ArtifactKind]]:
        members: list[tuple[str, ArtifactKind]] = []
        seen: set[str] = set()
        for attr, kind in PROJECT_MEMBERS:
            for artifact_id in getattr(project, attr):
                if artifact_id in seen:
                    continue
                seen.add(artifact_id)
                record = self._store.get(kind, artifact_id)
                if record is None or getattr(record, "is_deleted", False):
                    continue
                members.append((artifact_id, kind))
        return members

    async def _capture_commits(
        self, members: Sequence[tuple[str, ArtifactKind]]
    ) -> dict[str, ArtifactCommit]:
        """Look up the newest commit of every member concurrently."""
        newest: list[str | None] = [None] * len(members)

        async def capture(index: int, artifact_id: str, kind: ArtifactKind) -> None:
            history = await self._history.get_artifact_history(artifact_id, kind, depth=1)
            if history:
                newest[index] = history[0].hash

        async with anyio.create_task_group() as tg:
            for index, (artifact_id, kind) in enumerate(members):
                tg.start_soon(capture, index, artifact_id, kind)

        return {
            artifact_id: ArtifactCommit(commit_hash=commit_hash, kind=kind.value)
            for (artifact_id, kind), commit_hash in zip(members, newest, strict=True)
            if commit_hash is not None
        }

    def _prepare(
        self, project_id: str, version: str | None
    ) -> tuple[list[tuple[str, ArtifactKind]], ProjectBaseline | None, str, str | None]:
        """Read the project and check the tag before anything is captured.

        Returns:
            Tuple of (members to capture, previous baseline, version, tag name).
        """
        project = self._store.get(ArtifactKind.PROJECT, project_id)
        if not isinstance(project, Project):
            msg = f"Project not found: {project_id}"
            raise ProjectNotFoundError(msg, project_id=project_id)

        existing = self._storage.list(project_id)
        previous = existing[0] if existing else None
        if version is None:
            version = next_baseline_version(existing)

        tag_name: str | None = None
        if self._repository is not None:
            tag_name = baseline_tag_name(project_id, version)
            if not self._repository.is_valid_tag_name(tag_name):
                msg = f"Invalid tag name: {tag_name}"
                raise RepositoryError(msg, path=self._repository.root, details=tag_name)
            if any(tag.name == tag_name for tag in self._repository.list_tags()):
                msg = f"Tag already exists: {tag_name}"
                raise TagExistsError(msg, path=self._repository.root, details=tag_name)

        return self._project_members(project), previous, version, tag_name

    def _persist(self, baseline: ProjectBaseline) -> ProjectBaseline:
        """Write the baseline under a free ID, then tag its commit."""
        timestamp = baseline.timestamp
        while self._storage.path_for(f"bl-{timestamp}").exists():
            timestamp += 1
        baseline = baseline.model_copy(update={"id": f"bl-{timestamp}", "timestamp": timestamp})

        result = self._storage.save(baseline)
        if self._repository is not None and baseline.tag_name is not None:
            target = result.sha if result is not None else None
            _ = self._repository.create_tag(
                baseline.tag_name,
                f"Baseline {baseline.name} ({baseline.version})",
                commit=target,
            )
        return baseline

    async def create_baseline(
        self,
        project_id: str,
        name: str,
        *,
        version: str | None = None,
        description: str = "",
    ) -> ProjectBaseline:
        """Capture the current state of a project.

        Deleted artifacts and artifacts without any commit are left out. File
        and git access runs in worker threads.

        Args:
            project_id: ID of the project to capture.
            name: Display name of the baseline.
            version: Version label; the next two-digit number when None.
            description: Free-text description.

        Returns:
            The stored baseline.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            TagExistsError: If the baseline tag is already taken.
            RepositoryError: If the version does not form a valid tag name.
            ArtifactIOError: If the baseline file cannot be written.
        """
        members, previous, version, tag_name = await anyio.to_thread.run_sync(
            self._prepare, project_id, version
        )

        artifact_commits = await self._capture_commits(members)
        if previous is None:
            added = tuple(artifact_commits)
            removed: tuple[str, ...] = ()
        else:
            added = tuple(a for a in artifact_commits if a not in previous.artifact_commits)
            removed = tuple(a for a in previous.artifact_commits if a not in artifact_commits)

        timestamp = now_ms()
        baseline = await anyio.to_thread.run_sync(
            self._persist,
            ProjectBaseline(
                id=f"bl-{timestamp}",
                project_id=project_id,
                name=name,
                version=version,
                description=description,
                timestamp=timestamp,
                artifact_commits=artifact_commits,
                added_artifacts=added,
                removed_artifacts=removed,
                tag_name=tag_name,
            ),
        )

        self._logger.info(
            "baseline_created",
            baseline_id=baseline.id,
            project_id=project_id,
            version=version,
            artifacts=len(artifact_commits),
            added=len(added),
            removed=len(removed),
        )
        return baseline

    # =========================================================================
    # Queries
    # =========================================================================

    def list_baselines(self, project_id: str | None = None) -> list[ProjectBaseline]:
        """Return stored baselines newest first, optionally for one project."""
        return self._storage.list(project_id)

    def get_baseline(self, baseline_id: str) -> ProjectBaseline:
        """Load a baseline.

        Raises:
            BaselineNotFoundError: If the baseline does not exist.
        """
        return self._storage.load(baseline_id)

    def latest_baseline(self, project_id: str) -> ProjectBaseline | None:
        """Return the newest baseline of a project, or None."""
        baselines = self._storage.list(project_id)
        return baselines[0] if baselines else None

    def describe_baselines(
        self, baselines: Sequence[ProjectBaseline] | None = None
    ) -> list[BaselineView]:
        """Pair baselines with their latest flag; all stored ones when None."""
        return describe_baselines(self._storage.list() if baselines is None else baselines)

    def compare_baselines(
        self, previous: ProjectBaseline | str, current: ProjectBaseline | str
    ) -> BaselineComparison:
        """Compare two baselines given as records or IDs.

        Raises:
            BaselineNotFoundError: If an ID does not resolve.
        """
        if isinstance(previous, str):
            previous = self.get_baseline(previous)
        if isinstance(current, str):
            current = self.get_baseline(current)
        return compare_baselines(previous, current)

    async def load_baseline_artifacts(
        self, baseline: ProjectBaseline
    ) -> dict[str, ArtifactRecord]:
        """Read every captured artifact as it was at its captured commit.

        Artifacts that can no longer be read are omitted.
        """
        loaded: dict[str, ArtifactRecord] = {}

        async def load(artifact_id: str, entry: ArtifactCommit) -> None:
            record = await self._history.read_artifact_at_commit(
                artifact_id, entry.commit_hash, entry.kind
            )
            if record is not None:
                loaded[artifact_id] = record

        async with anyio.create_task_group() as tg:
            for artifact_id, entry in baseline.artifact_commits.items():
                tg.start_soon(load, artifact_id, entry)

        return {a: loaded[a] for a in baseline.artifact_commits if a in loaded}

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete_baseline(self, baseline_id: str) -> None:
        """Delete a baseline file. Its tag, if any, is kept.

        Raises:
            BaselineNotFoundError: If the baseline does not exist.
        """
        _ = self._storage.delete(baseline_id)
        self._logger.info("baseline_deleted", baseline_id=baseline_id)
