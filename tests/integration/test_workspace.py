"""End-to-end tests of the store, history and baseline services on a real repository."""

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

import pytest

from tracyfy.artifacts import ArtifactKind, Project, Requirement, Risk
from tracyfy.config import HistoryConfig, LoggingConfig, TracyfyConfig
from tracyfy.exceptions import RepositoryNotInitializedError, TagExistsError
from tracyfy.workspace import Workspace, open_workspace

pytestmark = pytest.mark.anyio


@pytest.fixture
def workspace(git_root: Path) -> Iterator[Workspace]:
    config = TracyfyConfig(
        logging=LoggingConfig(file=str(git_root.parent / "tracyfy.log")),
        history=HistoryConfig(timeout_seconds=None),
    )
    with open_workspace(git_root, create=True, config=config) as ws:
        yield ws


def test_open_without_repository_raises(git_root: Path) -> None:
    with pytest.raises(RepositoryNotInitializedError):
        _ = open_workspace(git_root)


def test_open_loads_config_from_root(git_root: Path) -> None:
    TracyfyConfig(history=HistoryConfig(max_commits=7)).save(git_root)

    with open_workspace(git_root, create=True) as ws:
        assert ws.config.history.max_commits == 7
        assert ws.history.max_commits == 7


# =============================================================================
# Store and history
# =============================================================================


class TestArtifactLifecycle:
    async def test_create_commits_artifact_and_counter(self, workspace: Workspace) -> None:
        created = workspace.store.create(Requirement(title="Login"))

        [commit] = await workspace.history.get_history()
        files = await workspace.history.get_commit_files(commit.hash)

        assert created.id == "REQ-001"
        assert commit.message == "Create REQ-001: Login"
        assert files == ["counters/requirements.md", "requirements/REQ-001.md"]

    async def test_update_and_delete_are_tracked_per_artifact(
        self, workspace: Workspace
    ) -> None:
        store = workspace.store
        requirement = store.create(Requirement(title="Login"))
        _ = store.create(Risk(title="Outage"))
        updated = store.update(replace(requirement, title="Sign in"))
        _ = store.soft_delete(ArtifactKind.REQUIREMENT, requirement.id)

        history = await workspace.history.get_artifact_history(requirement.id)

        assert updated.revision == "02"
        assert [c.message for c in history] == [
            "Delete REQ-001: Sign in",
            "Update REQ-001: Sign in",
            "Create REQ-001: Login",
        ]
        assert store.list(ArtifactKind.REQUIREMENT) == []
        assert [r.id for r in store.list(ArtifactKind.REQUIREMENT, include_deleted=True)] == [
            "REQ-001"
        ]

    async def test_read_and_diff_past_states(self, workspace: Workspace) -> None:
        store = workspace.store
        requirement = store.create(Requirement(title="Login", text="Users log in."))
        _ = store.update(replace(requirement, title="Sign in"))
        newest, oldest = await workspace.history.get_artifact_history(requirement.id)

        past = await workspace.history.read_artifact_at_commit(requirement.id, oldest.hash)
        changes = await workspace.history.diff_artifact(
            requirement.id, oldest.hash, newest.hash
        )

        assert isinstance(past, Requirement)
        assert past.title == "Login"
        assert past.text == "Users log in."
        assert [(c.field, c.old, c.new) for c in changes if c.field == "title"] == [
            ("title", "Login", "Sign in")
        ]

    async def test_snapshot_holds_artifacts_present_at_commit(
        self, workspace: Workspace
    ) -> None:
        _ = workspace.store.create(Requirement(title="Login"))
        [first] = await workspace.history.get_history()
        _ = workspace.store.create(Risk(title="Outage"))

        snapshot = await workspace.history.load_snapshot(first.hash)

        assert [r.id for r in snapshot.of_kind(ArtifactKind.REQUIREMENT)] == ["REQ-001"]
        assert snapshot.of_kind(ArtifactKind.RISK) == ()


# =============================================================================
# Baselines
# =============================================================================


class TestBaselineWorkflow:
    async def test_baseline_tags_its_commit(self, workspace: Workspace) -> None:
        requirement = workspace.store.create(Requirement(title="Login"))
        project = workspace.store.create(
            Project(name="Alpha", requirement_ids=(requirement.id,))
        )

        baseline = await workspace.baselines.create_baseline(project.id, "Alpha")

        [tag] = await workspace.history.get_tags_with_details()
        head = (await workspace.history.get_history())[0]
        timeline = await workspace.history.get_timeline()
        assert baseline.version == "01"
        assert baseline.tag_name == f"baseline/{project.id}/01"
        assert list(baseline.artifact_commits) == [requirement.id]
        assert tag.name == baseline.tag_name
        assert tag.message == "Baseline Alpha (01)"
        assert tag.commit == head.hash
        assert head.message == "Baseline created: Alpha (01)"
        assert timeline[0].tag == baseline.tag_name
        assert all(entry.tag is None for entry in timeline[1:])

    async def test_second_baseline_reports_modified_artifact(
        self, workspace: Workspace
    ) -> None:
        store = workspace.store
        requirement = store.create(Requirement(title="Login"))
        project = store.create(Project(name="Alpha", requirement_ids=(requirement.id,)))
        first = await workspace.baselines.create_baseline(project.id, "Alpha")
        _ = store.update(replace(requirement, title="Sign in"))

        second = await workspace.baselines.create_baseline(project.id, "Beta")
        comparison = workspace.baselines.compare_baselines(first.id, second.id)
        captured = await workspace.baselines.load_baseline_artifacts(first)

        assert second.version == "02"
        assert second.added_artifacts == ()
        assert [c.artifact_id for c in comparison.modified] == [requirement.id]
        assert comparison.has_changes is True
        assert captured[requirement.id].title == "Login"
        assert workspace.baselines.latest_baseline(project.id) == second

    async def test_reused_version_is_rejected(self, workspace: Workspace) -> None:
        project = workspace.store.create(Project(name="Alpha"))
        _ = await workspace.baselines.create_baseline(project.id, "Alpha", version="1.0")

        with pytest.raises(TagExistsError):
            _ = await workspace.baselines.create_baseline(project.id, "Again", version="1.0")

        assert len(workspace.baselines.list_baselines(project.id)) == 1

    async def test_delete_keeps_tag(self, workspace: Workspace) -> None:
        project = workspace.store.create(Project(name="Alpha"))
        baseline = await workspace.baselines.create_baseline(project.id, "Alpha")

        workspace.baselines.delete_baseline(baseline.id)

        head = (await workspace.history.get_history())[0]
        tags = await workspace.history.get_tags_with_details()
        assert head.message == f"Baseline deleted: {baseline.id}"
        assert workspace.baselines.list_baselines() == []
        assert [t.name for t in tags] == [baseline.tag_name]
