# ruff: noqa: TC001  # ArtifactRecord needed at runtime for dataclass fields
"""Artifacts as they were at a single commit."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tracyfy.artifacts import ArtifactKind, ArtifactRecord

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class ProjectSnapshot:
    """All artifacts readable at a commit, grouped by kind.

    Attributes:
        commit: Commit the snapshot was read from; empty when loading failed.
        artifacts: Records per kind, sorted by ID.
    """

    commit: str = ""
    artifacts: dict[ArtifactKind, tuple[ArtifactRecord, ...]] = field(default_factory=dict)

    def of_kind(self, kind: ArtifactKind | str) -> tuple[ArtifactRecord, ...]:
        """Records of one kind, empty when none were present."""
        return self.artifacts.get(ArtifactKind(kind), ())

    def get(self, artifact_id: str) -> ArtifactRecord | None:
        """Find a record by ID across all kinds."""
        for record in self:
            if record.id == artifact_id:
                return record
        return None

    def __iter__(self) -> Iterator[ArtifactRecord]:
        for records in self.artifacts.values():
            yield from records

    def __len__(self) -> int:
        return sum(len(records) for records in self.artifacts.values())
