"""Shared test fixtures for Tracyfy tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tracyfy.artifacts import ArtifactStore
from tracyfy.repository import FakeRepository


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def mock_logger() -> MagicMock:
    """Stand-in for a structlog FilteringBoundLogger."""
    return MagicMock()


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Empty data root directory."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def fake_repo(data_root: Path) -> FakeRepository:
    """In-memory repository rooted at the data root."""
    return FakeRepository(root=data_root)


@pytest.fixture
def store(data_root: Path, fake_repo: FakeRepository, mock_logger: MagicMock) -> ArtifactStore:
    """Artifact store committing to the fake repository."""
    return ArtifactStore(data_root, repository=fake_repo, logger=mock_logger)
