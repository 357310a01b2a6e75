# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Wiring of the repository, store, history and baseline services for a data root.

Example:
    >>> from pathlib import Path
    >>> from tracyfy.workspace import open_workspace
    >>> with open_workspace(Path("data"), create=True) as workspace:
    ...     requirements = workspace.store.list("requirement")
"""

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Self

from tracyfy.artifacts import ArtifactStore
from tracyfy.baselines import BaselineManager, BaselineStorage
from tracyfy.config import TracyfyConfig, load_config
from tracyfy.history import HistoryService
from tracyfy.repository import ArtifactRepository
from tracyfy.utils._logging import create_logger


@dataclass(frozen=True, slots=True)
class Workspace:
    """Services sharing one data root and repository."""

    root: Path
    config: TracyfyConfig
    repository: ArtifactRepository
    store: ArtifactStore
    history: HistoryService
    baselines: BaselineManager

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
        """Release the repository."""
        self.repository.close()


def open_workspace(
    root: Path,
    *,
    create: bool = False,
    config: TracyfyConfig | None = None,
) -> Workspace:
    """Open the services for a data root.

    Args:
        root: Data root; also the git working tree.
        create: Initialize a git repository when none exists.
        config: Configuration; loaded from the root and environment when None.

    Returns:
        The connected services.

    Raises:
        RepositoryNotInitializedError: If no repository exists and ``create``
            is False.
        ConfigLoadError: If the configuration is invalid.
    """
    if config is None:
        config = load_config(root)

    repository = ArtifactRepository(
        root,
        create=create,
        author_name=config.repository.author_name,
        author_email=config.repository.author_email,
    )
    store = ArtifactStore(
        root,
        repository=repository,
        logger=create_logger(config.logging, component="store"),
        auto_commit=config.repository.auto_commit,
    )
    history = HistoryService(
        repository,
        timeout=config.history.timeout_seconds,
        max_commits=config.history.max_commits,
        logger=create_logger(config.logging, component="history"),
    )
    baseline_logger = create_logger(config.logging, component="baselines")
    baselines = BaselineManager(
        store,
        history,
        BaselineStorage(root, repository=repository, logger=baseline_logger),
        repository=repository,
        logger=baseline_logger,
    )
    return Workspace(
        root=root,
        config=config,
        repository=repository,
        store=store,
        history=history,
        baselines=baselines,
    )
