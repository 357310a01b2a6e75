"""Baseline records and comparison results.

ProjectBaseline and ArtifactCommit are persisted as JSON with camelCase keys;
the remaining types are in-memory views.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ArtifactCommit(BaseModel):
    """Commit that held an artifact's state when a baseline was taken."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    commit_hash: str = Field(description="Newest commit touching the artifact file")
    kind: str = Field(alias="type", description="Artifact kind, e.g. 'requirement'")


class ProjectBaseline(BaseModel):
    """Named, versioned capture of a project's artifacts at their current commits.

    Baselines are written once and never modified.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str = Field(description="Baseline ID, 'bl-{timestamp_ms}'")
    project_id: str
    name: str
    version: str = Field(description="Two-digit sequence such as '01'")
    description: str = ""
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    artifact_commits: dict[str, ArtifactCommit] = Field(default_factory=dict)
    added_artifacts: tuple[str, ...] = ()
    removed_artifacts: tuple[str, ...] = ()
    tag_name: str | None = None

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Serialize to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:  # pyright: ignore[reportExplicitAny]
        """Build a baseline from its JSON form.

        Raises:
            pydantic.ValidationError: If required keys are missing or mistyped.
        """
        return cls.model_validate(data)

    @property
    def artifact_ids(self) -> tuple[str, ...]:
        """Captured artifact IDs in capture order."""
        return tuple(self.artifact_commits)


@dataclass(frozen=True, slots=True)
class BaselineView:
    """A baseline paired with whether it is the most recent one shown."""

    baseline: ProjectBaseline
    is_latest: bool = False


@dataclass(frozen=True, slots=True)
class ArtifactChange:
    """An artifact captured by two baselines at different commits."""

    artifact_id: str
    kind: str
    previous_commit: str
    current_commit: str


@dataclass(frozen=True, slots=True)
class BaselineComparison:
    """Differences between two baselines of a project.

    Attributes:
        previous_id: ID of the earlier baseline.
        current_id: ID of the later baseline.
        added: Artifacts only in the later baseline, in its capture order.
        removed: Artifacts only in the earlier baseline, in its capture order.
        modified: Artifacts in both whose captured commit differs.
        unchanged: Artifacts in both at the same commit.
    """

    previous_id: str
    current_id: str
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[ArtifactChange, ...] = ()
    unchanged: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        """Whether anything was added, removed or modified."""
        return bool(self.added or self.removed or self.modified)
