r"""Artifact store backed by markdown files in a git working tree.

Each artifact lives at ``{root}/{folder}/{id}.md``. Writes are synchronous and
atomic; when a repository is attached every write is committed together with
any counter file it touched.

Example:
    >>> from pathlib import Path
    >>> from tracyfy.artifacts import ArtifactStore, Requirement
    >>> from tracyfy.repository import ArtifactRepository
    >>> repo = ArtifactRepository(Path("data"), create=True)
    >>> store = ArtifactStore(Path("data"), repository=repo)
    >>> created = store.create(Requirement(title="Login"))
    >>> created.id, created.revision
    ('REQ-001', '01')
"""

import builtins
from dataclasses import replace
from typing import TYPE_CHECKING, Final, cast

from tracyfy.artifacts._codec import from_markdown, to_markdown
from tracyfy.artifacts._ids import IdAllocator
from tracyfy.artifacts._schema import ArtifactSchema, get_schema, schema_for
from tracyfy.artifacts._types import ArtifactKind, User, Workflow, WorkflowStatus
from tracyfy.exceptions import (
    ArtifactError,
    ArtifactNotFoundError,
    DuplicateArtifactError,
    WorkflowStateError,
)
from tracyfy.utils._io import atomic_write, read_text
from tracyfy.utils._logging import create_logger
from tracyfy.utils._time import now_ms

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from tracyfy.artifacts._types import ArtifactRecord
    from tracyfy.repository import CommitResult, RepositoryProtocol

# Fields that do not count as an edit when comparing a save to the stored state.
_BOOKKEEPING_FIELDS: Final = ("revision", "date_created", "last_modified")


def next_revision(revision: str) -> str:
    """Return the revision following ``revision``.

    The zero padding is preserved; a revision that is not a number restarts
    the sequence.

    Example:
        >>> next_revision("01")
        '02'
        >>> next_revision("99")
        '100'
        >>> next_revision("draft")
        '01'
    """
    if not revision.isdecimal():
        return "01"
    return f"{int(revision) + 1:0{len(revision)}d}"


def _display_name(schema: ArtifactSchema, record: ArtifactRecord) -> str:
    if schema.title_attr is not None:
        name = str(getattr(record, schema.title_attr)).strip()
        if name:
            return " ".join(name.split())
    return schema.label


class ArtifactStore:
    """Create, read, update and soft-delete artifacts.

    Attributes:
        root: Data root holding the kind folders.
        repository: Repository that receives a commit per write, or None.
        ids: Allocator for new artifact IDs.
        auto_commit: Whether writes are committed when a repository is set.
    """

    __slots__: Final = ("_auto_commit", "_ids", "_logger", "_repository", "_root")

    def __init__(
        self,
        root: Path,
        *,
        repository: RepositoryProtocol | None = None,
        ids: IdAllocator | None = None,
        logger: FilteringBoundLogger | None = None,
        auto_commit: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            root: Data root. It may be the repository root or a directory
                inside it.
            repository: Repository to commit writes to.
            ids: ID allocator; one rooted at ``root`` is created when None.
            logger: Logger; a stderr logger is created when None.
            auto_commit: Commit each write when a repository is attached.
        """
        self._root: Path = root
        self._repository: RepositoryProtocol | None = repository
        self._ids: IdAllocator = ids if ids is not None else IdAllocator(root)
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_logger(component="store")
        )
        self._auto_commit: bool = auto_commit

    @property
    def root(self) -> Path:
        """Data root."""
        return self._root

    @property
    def repository(self) -> RepositoryProtocol | None:
        """Attached repository, if any."""
        return self._repository

    @property
    def ids(self) -> IdAllocator:
        """ID allocator."""
        return self._ids

    def path_for(self, kind: ArtifactKind | str, artifact_id: str) -> Path:
        """Absolute path of an artifact file."""
        return self._root / get_schema(kind).relative_path(artifact_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, kind: ArtifactKind | str, artifact_id: str) -> ArtifactRecord | None:
        """Load an artifact, or return None if its file does not exist.

        Raises:
            ArtifactIOError: If the file exists but cannot be read.
        """
        try:
            text = read_text(self.path_for(kind, artifact_id))
        except FileNotFoundError:
            return None
        return from_markdown(text, kind)

    def require(self, kind: ArtifactKind | str, artifact_id: str) -> ArtifactRecord:
        """Load an artifact.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
        """
        record = self.get(kind, artifact_id)
        if record is None:
            msg = f"Artifact not found: {artifact_id}"
            raise ArtifactNotFoundError(msg, artifact_id=artifact_id)
        return record

    def list(
        self, kind: ArtifactKind | str, *, include_deleted: bool = False
    ) -> builtins.list[ArtifactRecord]:
        """Load every artifact of a kind, sorted by ID.

        Args:
            kind: Artifact kind.
            include_deleted: Include soft-deleted artifacts.

        Returns:
            The records; empty when the kind folder does not exist.
        """
        schema = get_schema(kind)
        folder = self._root / schema.folder
        if not folder.is_dir():
            return []

        records: builtins.list[ArtifactRecord] = []
        for path in sorted(folder.glob("*.md")):
            record = from_markdown(read_text(path), schema.kind)
            if not record.id:
                self._logger.warning(
                    "artifact_id_missing", path=str(path), fallback=path.stem
                )
                record = replace(record, id=path.stem)
            if not include_deleted and getattr(record, "is_deleted", False):
                continue
            records.append(record)
        return sorted(records, key=lambda r: r.id)

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, record: ArtifactRecord) -> ArtifactRecord:
        """Store a new artifact.

        An empty ID is replaced by the next allocated one. The revision starts
        at ``01`` and both timestamps are set to now.

        Args:
            record: The artifact to store.

        Returns:
            The record as written.

        Raises:
            DuplicateArtifactError: If an artifact with the same ID exists.
            ArtifactEncodeError: If the record holds a value that cannot be written.
            ArtifactIOError: If the file cannot be written.
        """
        schema = schema_for(record)
        touched: builtins.list[Path] = []
        # Rejects unencodable values before an ID is allocated.
        _ = to_markdown(record)
        if not record.id:
            record = replace(record, id=self._ids.next_id(schema.kind))
            touched.append(self._ids.counter_path(schema.kind))

        path = self.path_for(schema.kind, record.id)
        if path.exists():
            msg = f"Artifact already exists: {record.id}"
            raise DuplicateArtifactError(msg, artifact_id=record.id)

        now = now_ms()
        record = replace(record, revision="01", date_created=now, last_modified=now)
        atomic_write(path, to_markdown(record))
        touched.insert(0, path)

        self._commit(touched, f"Create {record.id}: {_display_name(schema, record)}")
        self._logger.debug("artifact_created", artifact_id=record.id, kind=schema.kind)
        return record

    def update(self, record: ArtifactRecord) -> ArtifactRecord:
        """Save a changed artifact and bump its revision.

        The stored ``date_created`` is kept. Saving a record that differs from
        the stored one only in revision or timestamps writes nothing and
        returns the stored record.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
            ArtifactIOError: If the file cannot be written.
            ArtifactEncodeError: If the record holds a value that cannot be written.
        """
        schema = schema_for(record)
        stored = self.require(schema.kind, record.id)

        if _same_content(stored, record):
            self._logger.debug("artifact_unchanged", artifact_id=record.id)
            return stored

        updated = replace(
            record,
            revision=next_revision(stored.revision),
            date_created=stored.date_created,
            last_modified=now_ms(),
        )
        self._write(schema, updated, f"Update {updated.id}: {_display_name(schema, updated)}")
        self._logger.debug(
            "artifact_updated", artifact_id=updated.id, revision=updated.revision
        )
        return updated

    def soft_delete(self, kind: ArtifactKind | str, artifact_id: str) -> ArtifactRecord:
        """Mark an artifact deleted without removing its file.

        Deleting an already deleted artifact changes nothing.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
            ArtifactError: If the kind cannot be deleted.
        """
        schema = get_schema(kind)
        stored = self._require_deletable(schema, artifact_id)
        if stored.is_deleted:  # pyright: ignore[reportAttributeAccessIssue]
            return stored

        now = now_ms()
        deleted = replace(stored, is_deleted=True, deleted_at=now, last_modified=now)
        self._write(schema, deleted, f"Delete {artifact_id}: {_display_name(schema, deleted)}")
        self._logger.debug("artifact_deleted", artifact_id=artifact_id)
        return deleted

    def restore(self, kind: ArtifactKind | str, artifact_id: str) -> ArtifactRecord:
        """Clear the deleted mark of an artifact.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
            ArtifactError: If the kind cannot be deleted.
        """
        schema = get_schema(kind)
        stored = self._require_deletable(schema, artifact_id)
        if not stored.is_deleted:  # pyright: ignore[reportAttributeAccessIssue]
            return stored

        restored = replace(stored, is_deleted=False, deleted_at=None, last_modified=now_ms())
        self._write(schema, restored, f"Restore {artifact_id}: {_display_name(schema, restored)}")
        self._logger.debug("artifact_restored", artifact_id=artifact_id)
        return restored

    # =========================================================================
    # Workflows
    # =========================================================================

    def approve_workflow(
        self, workflow_id: str, approver: str, comment: str = ""
    ) -> Workflow:
        """Approve a pending workflow.

        Args:
            workflow_id: ID of the workflow, e.g. ``WF-001``.
            approver: Name recorded as the decider.
            comment: Optional approval comment.

        Returns:
            The approved workflow.

        Raises:
            ArtifactNotFoundError: If the workflow does not exist.
            WorkflowStateError: If the workflow is not pending.
        """
        return self._decide(workflow_id, WorkflowStatus.APPROVED, approver, comment)

    def reject_workflow(self, workflow_id: str, approver: str, reason: str = "") -> Workflow:
        """Reject a pending workflow; see approve_workflow."""
        return self._decide(workflow_id, WorkflowStatus.REJECTED, approver, reason)

    def _decide(
        self, workflow_id: str, status: WorkflowStatus, approver: str, comment: str
    ) -> Workflow:
        schema = get_schema(ArtifactKind.WORKFLOW)
        stored = cast("Workflow", self.require(schema.kind, workflow_id))
        if stored.status != WorkflowStatus.PENDING:
            msg = f"Workflow {workflow_id} is {stored.status}, not pending"
            raise WorkflowStateError(msg, artifact_id=workflow_id, status=stored.status)

        now = now_ms()
        decided = replace(
            stored,
            status=status,
            approved_by=approver,
            approval_date=now,
            approver_comment=comment,
            revision=next_revision(stored.revision),
            last_modified=now,
        )
        verb = "Approved" if status is WorkflowStatus.APPROVED else "Rejected"
        self._write(
            schema,
            decided,
            f"{verb} workflow {workflow_id}: {_display_name(schema, decided)} by {approver}",
        )
        self._logger.debug("workflow_decided", artifact_id=workflow_id, status=status)
        return decided

    def _require_deletable(self, schema: ArtifactSchema, artifact_id: str) -> ArtifactRecord:
        if schema.record_type is User:
            msg = f"{schema.label} artifacts cannot be deleted"
            raise ArtifactError(msg)
        return self.require(schema.kind, artifact_id)

    def _write(self, schema: ArtifactSchema, record: ArtifactRecord, message: str) -> None:
        path = self.path_for(schema.kind, record.id)
        atomic_write(path, to_markdown(record))
        self._commit([path], message)

    def _commit(self, paths: builtins.list[Path], message: str) -> CommitResult | None:
        if self._repository is None or not self._auto_commit:
            return None
        result = self._repository.commit_files(paths, message)
        self._logger.debug(
            "artifact_committed",
            message=message,
            sha=result.sha,
            no_changes=result.no_changes,
        )
        return result


def _same_content(stored: ArtifactRecord, candidate: ArtifactRecord) -> bool:
    neutral = dict.fromkeys(_BOOKKEEPING_FIELDS, None)
    return replace(stored, **neutral) == replace(candidate, **neutral)
