"""Unit tests for BaselineManager."""

import threading
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from tracyfy.artifacts import ArtifactStore, Project, Requirement, UseCase
from tracyfy.baselines import ArtifactCommit, BaselineManager, BaselineStorage
from tracyfy.exceptions import (
    BaselineNotFoundError,
    ProjectNotFoundError,
    RepositoryError,
    TagExistsError,
)
from tracyfy.history import HistoryService
from tracyfy.repository import FakeRepository

pytestmark = pytest.mark.anyio


@pytest.fixture
def manager(
    data_root: Path,
    store: ArtifactStore,
    fake_repo: FakeRepository,
    mock_logger: MagicMock,
) -> BaselineManager:
    return BaselineManager(
        store,
        HistoryService(fake_repo, logger=mock_logger),
        BaselineStorage(data_root, repository=fake_repo, logger=mock_logger),
        repository=fake_repo,
        logger=mock_logger,
    )


@pytest.fixture
def project(store: ArtifactStore) -> Project:
    """Project PROJ-001 listing REQ-001."""
    _ = store.create(Requirement(title="Login"))
    created = store.create(Project(name="Alpha"))
    assert isinstance(created, Project)
    updated = store.update(replace(created, requirement_ids=("REQ-001",)))
    assert isinstance(updated, Project)
    return updated


class TestCreateBaseline:
    async def test_first_baseline_lists_all_as_added(
        self, manager: BaselineManager, project: Project, fake_repo: FakeRepository
    ) -> None:
        baseline = await manager.create_baseline(project.id, "Initial")

        req_commit = fake_repo.get_log(path="requirements/REQ-001.md")[0].hash
        assert baseline.version == "01"
        assert baseline.id.startswith("bl-")
        assert baseline.artifact_commits == {
            "REQ-001": ArtifactCommit(commit_hash=req_commit, kind="requirement")
        }
        assert baseline.added_artifacts == ("REQ-001",)
        assert baseline.removed_artifacts == ()
        assert baseline.tag_name == "baseline/PROJ-001/01"

    async def test_second_baseline_reports_added_artifact(
        self, manager: BaselineManager, project: Project, store: ArtifactStore
    ) -> None:
        first = await manager.create_baseline(project.id, "Initial")
        _ = store.create(Requirement(title="Logout"))
        _ = store.update(replace(project, requirement_ids=("REQ-001", "REQ-002")))

        second = await manager.create_baseline(project.id, "Second")

        assert second.version == "02"
        assert second.added_artifacts == ("REQ-002",)
        assert second.removed_artifacts == ()
        assert second.timestamp > first.timestamp

    async def test_reports_removed_artifact(
        self, manager: BaselineManager, project: Project, store: ArtifactStore
    ) -> None:
        _ = await manager.create_baseline(project.id, "Initial")
        _ = store.soft_delete("requirement", "REQ-001")

        second = await manager.create_baseline(project.id, "After delete")

        assert second.artifact_commits == {}
        assert second.removed_artifacts == ("REQ-001",)

    async def test_tags_baseline_commit(
        self, manager: BaselineManager, project: Project, fake_repo: FakeRepository
    ) -> None:
        baseline = await manager.create_baseline(project.id, "Initial", description="First cut")

        tag = fake_repo.tags["baseline/PROJ-001/01"]
        assert tag.commit == fake_repo.commits[0].hash
        assert tag.message == "Baseline Initial (01)"
        assert fake_repo.commits[0].message == "Baseline created: Initial (01)"
        assert manager.get_baseline(baseline.id).description == "First cut"

    async def test_explicit_version(self, manager: BaselineManager, project: Project) -> None:
        baseline = await manager.create_baseline(project.id, "Release", version="2.0")
        assert baseline.version == "2.0"
        assert baseline.tag_name == "baseline/PROJ-001/2.0"

    async def test_existing_tag_raises_before_writing(
        self,
        manager: BaselineManager,
        project: Project,
        fake_repo: FakeRepository,
    ) -> None:
        _ = fake_repo.add_tag("baseline/PROJ-001/01", fake_repo.commits[0].hash)

        with pytest.raises(TagExistsError):
            _ = await manager.create_baseline(project.id, "Initial")
        assert manager.list_baselines() == []

    @pytest.mark.parametrize("version", ["1 beta", "v..2", "rc:1"])
    async def test_invalid_version_raises_before_writing(
        self,
        manager: BaselineManager,
        project: Project,
        fake_repo: FakeRepository,
        version: str,
    ) -> None:
        commits_before = len(fake_repo.commits)

        with pytest.raises(RepositoryError) as exc_info:
            _ = await manager.create_baseline(project.id, "Beta", version=version)

        assert exc_info.value.details == f"baseline/PROJ-001/{version}"
        assert manager.list_baselines() == []
        assert len(fake_repo.commits) == commits_before
        assert fake_repo.tags == {}

    async def test_file_and_git_access_leave_the_event_loop(
        self, manager: BaselineManager, project: Project, mocker: MockerFixture
    ) -> None:
        loop_thread = threading.get_ident()
        threads: dict[str, set[int]] = {"get": set(), "save": set(), "tag": set()}
        original_get = ArtifactStore.get
        original_save = BaselineStorage.save
        original_tag = FakeRepository.create_tag

        def get(self: ArtifactStore, kind: str, artifact_id: str) -> object:
            threads["get"].add(threading.get_ident())
            return original_get(self, kind, artifact_id)

        def save(self: BaselineStorage, baseline: object) -> object:
            threads["save"].add(threading.get_ident())
            return original_save(self, baseline)  # pyright: ignore[reportArgumentType]

        def create_tag(self: FakeRepository, *args: object, **kwargs: object) -> object:
            threads["tag"].add(threading.get_ident())
            return original_tag(self, *args, **kwargs)  # pyright: ignore[reportArgumentType]

        _ = mocker.patch.object(ArtifactStore, "get", autospec=True, side_effect=get)
        _ = mocker.patch.object(BaselineStorage, "save", autospec=True, side_effect=save)
        _ = mocker.patch.object(
            FakeRepository, "create_tag", autospec=True, side_effect=create_tag
        )

        _ = await manager.create_baseline(project.id, "Initial")

        assert all(used for used in threads.values())
        assert all(loop_thread not in used for used in threads.values())

    async def test_unknown_project_raises(self, manager: BaselineManager) -> None:
        with pytest.raises(ProjectNotFoundError) as exc_info:
            _ = await manager.create_baseline("PROJ-404", "Nope")
        assert exc_info.value.project_id == "PROJ-404"

    async def test_skips_missing_and_duplicate_members(
        self, manager: BaselineManager, project: Project, store: ArtifactStore
    ) -> None:
        _ = store.create(UseCase(title="Sign in"))
        _ = store.update(
            replace(project, requirement_ids=("REQ-001", "REQ-404", "REQ-001"), use_case_ids=("UC-001",))
        )

        baseline = await manager.create_baseline(project.id, "Initial")

        assert baseline.artifact_ids == ("REQ-001", "UC-001")
        assert baseline.artifact_commits["UC-001"].kind == "usecase"

    async def test_without_repository_has_no_tag(
        self,
        data_root: Path,
        store: ArtifactStore,
        fake_repo: FakeRepository,
        project: Project,
        mock_logger: MagicMock,
    ) -> None:
        manager = BaselineManager(
            store,
            HistoryService(fake_repo, logger=mock_logger),
            BaselineStorage(data_root, logger=mock_logger),
            logger=mock_logger,
        )
        baseline = await manager.create_baseline(project.id, "Local")
        assert baseline.tag_name is None
        assert fake_repo.tags == {}

    async def test_logs_creation(
        self, manager: BaselineManager, project: Project, mock_logger: MagicMock
    ) -> None:
        baseline = await manager.create_baseline(project.id, "Initial")
        mock_logger.info.assert_any_call(
            "baseline_created",
            baseline_id=baseline.id,
            project_id="PROJ-001",
            version="01",
            artifacts=1,
            added=1,
            removed=0,
        )


class TestQueries:
    async def test_latest_and_describe(self, manager: BaselineManager, project: Project) -> None:
        _ = await manager.create_baseline(project.id, "One")
        second = await manager.create_baseline(project.id, "Two")

        assert manager.latest_baseline(project.id) == second
        views = manager.describe_baselines()
        assert [v.is_latest for v in views] == [True, False]
        assert views[0].baseline == second

    async def test_latest_without_baselines(self, manager: BaselineManager) -> None:
        assert manager.latest_baseline("PROJ-001") is None

    async def test_compare_by_id(
        self, manager: BaselineManager, project: Project, store: ArtifactStore
    ) -> None:
        first = await manager.create_baseline(project.id, "One")
        requirement = store.require("requirement", "REQ-001")
        _ = store.update(replace(requirement, text="Changed"))
        second = await manager.create_baseline(project.id, "Two")

        comparison = manager.compare_baselines(first.id, second.id)

        assert [c.artifact_id for c in comparison.modified] == ["REQ-001"]
        assert comparison.has_changes

    async def test_compare_unknown_id_raises(self, manager: BaselineManager) -> None:
        with pytest.raises(BaselineNotFoundError):
            _ = manager.compare_baselines("bl-1", "bl-2")

    async def test_load_baseline_artifacts(
        self, manager: BaselineManager, project: Project, store: ArtifactStore
    ) -> None:
        baseline = await manager.create_baseline(project.id, "One")
        original = store.require("requirement", "REQ-001")
        _ = store.update(replace(original, title="Renamed"))

        loaded = await manager.load_baseline_artifacts(baseline)

        assert loaded == {"REQ-001": original}


class TestDeleteBaseline:
    async def test_deletes_file_and_keeps_tag(
        self,
        manager: BaselineManager,
        project: Project,
        fake_repo: FakeRepository,
        mock_logger: MagicMock,
    ) -> None:
        baseline = await manager.create_baseline(project.id, "One")

        manager.delete_baseline(baseline.id)

        assert manager.list_baselines() == []
        assert "baseline/PROJ-001/01" in fake_repo.tags
        mock_logger.info.assert_any_call("baseline_deleted", baseline_id=baseline.id)

    async def test_unknown_raises(self, manager: BaselineManager) -> None:
        with pytest.raises(BaselineNotFoundError):
            manager.delete_baseline("bl-404")
