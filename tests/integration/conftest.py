from collections.abc import Iterator
from pathlib import Path

import pytest

from tracyfy.repository import ArtifactRepository


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def git_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty directory for a real git repository, with a fixed author."""
    monkeypatch.setenv("TRACYFY_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("TRACYFY_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.delenv("TRACYFY_DEBUG", raising=False)
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def git_repo(git_root: Path) -> Iterator[ArtifactRepository]:
    """Freshly initialized dulwich repository."""
    repo = ArtifactRepository(git_root, create=True)
    yield repo
    repo.close()
