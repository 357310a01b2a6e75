"""Persistence of baselines as JSON files under ``baselines/``."""

import builtins
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from tracyfy.baselines._models import ProjectBaseline
from tracyfy.exceptions import ArtifactIOError, BaselineNotFoundError
from tracyfy.utils._io import read_json, write_json_atomic
from tracyfy.utils._logging import create_logger

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from tracyfy.repository import CommitResult, RepositoryProtocol

BASELINES_DIR: Final = "baselines"


class BaselineStorage:
    """Reads and writes ``baselines/baseline-{id}.json`` files.

    Writes are committed when a repository is attached. Files that cannot be
    parsed are skipped when listing.
    """

    __slots__: Final = ("_logger", "_repository", "_root")

    def __init__(
        self,
        root: Path,
        *,
        repository: RepositoryProtocol | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._root: Path = root
        self._repository: RepositoryProtocol | None = repository
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_logger(component="baselines")
        )

    @property
    def directory(self) -> Path:
        """Directory holding the baseline files."""
        return self._root / BASELINES_DIR

    def path_for(self, baseline_id: str) -> Path:
        """Location of a baseline file."""
        return self.directory / f"baseline-{baseline_id}.json"

    def save(self, baseline: ProjectBaseline) -> CommitResult | None:
        """Write a baseline and commit it.

        Returns:
            The commit result, or None when no repository is attached.

        Raises:
            ArtifactIOError: If the file cannot be written.
        """
        path = self.path_for(baseline.id)
        write_json_atomic(path, baseline.to_dict())
        if self._repository is None:
            return None
        return self._repository.commit_files(
            [path], f"Baseline created: {baseline.name} ({baseline.version})"
        )

    def load(self, baseline_id: str) -> ProjectBaseline:
        """Read a baseline.

        Raises:
            BaselineNotFoundError: If no file exists for the ID.
            ArtifactIOError: If the file is unreadable or malformed.
        """
        path = self.path_for(baseline_id)
        try:
            data = read_json(path)
        except FileNotFoundError as e:
            msg = f"Baseline not found: {baseline_id}"
            raise BaselineNotFoundError(msg, baseline_id=baseline_id) from e
        try:
            return ProjectBaseline.from_dict(data)
        except ValidationError as e:
            msg = f"Invalid baseline file: {e.error_count()} validation error(s)"
            raise ArtifactIOError(msg, path=path, cause=e) from e

    def list(self, project_id: str | None = None) -> builtins.list[ProjectBaseline]:
        """Read all baselines, newest first.

        Args:
            project_id: Only return baselines of this project.
        """
        if not self.directory.is_dir():
            return []

        baselines: builtins.list[ProjectBaseline] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                baseline = ProjectBaseline.from_dict(read_json(path))
            except (ArtifactIOError, ValidationError) as e:
                self._logger.warning("baseline_unreadable", path=str(path), error=str(e))
                continue
            if project_id is None or baseline.project_id == project_id:
                baselines.append(baseline)
        return sorted(baselines, key=lambda b: (-b.timestamp, b.id))

    def delete(self, baseline_id: str) -> CommitResult | None:
        """Remove a baseline file and commit the removal.

        Raises:
            BaselineNotFoundError: If no file exists for the ID.
        """
        path = self.path_for(baseline_id)
        if not path.exists():
            msg = f"Baseline not found: {baseline_id}"
            raise BaselineNotFoundError(msg, baseline_id=baseline_id)
        if self._repository is None:
            path.unlink()
            return None
        return self._repository.remove_files([path], f"Baseline deleted: {baseline_id}")
