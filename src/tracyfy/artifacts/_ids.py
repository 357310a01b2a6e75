"""Artifact ID formatting and allocation.

IDs have the form ``PREFIX-NNN`` (``REQ-001``). Allocation is backed by one
counter file per kind at ``counters/{folder}.md`` holding the last number
handed out. The counter never falls behind the highest ID already on disk, so
files added by hand or by a merge do not cause collisions.
"""

import re
from typing import TYPE_CHECKING, Final

from tracyfy.artifacts._schema import get_schema
from tracyfy.utils._io import atomic_write

if TYPE_CHECKING:
    from pathlib import Path

    from tracyfy.artifacts._types import ArtifactKind

COUNTERS_DIR: Final = "counters"
ID_DIGITS: Final = 3

_ID_PATTERN: Final = re.compile(r"([A-Z]+)-([0-9]+)")


def format_artifact_id(prefix: str, number: int) -> str:
    """Format prefix and number into an artifact ID.

    Example:
        >>> format_artifact_id("REQ", 7)
        'REQ-007'
    """
    if number < 1:
        msg = f"Invalid number: {number} (expected a positive integer)"
        raise ValueError(msg)
    return f"{prefix}-{number:0{ID_DIGITS}d}"


def parse_artifact_id(artifact_id: str) -> tuple[str, int]:
    """Split an artifact ID into prefix and number.

    Raises:
        ValueError: If the ID is not ``PREFIX-NNN``.

    Example:
        >>> parse_artifact_id("UC-012")
        ('UC', 12)
    """
    match = _ID_PATTERN.fullmatch(artifact_id)
    if not match:
        msg = f"Invalid artifact ID format: {artifact_id!r} (expected PREFIX-NNN)"
        raise ValueError(msg)
    return match.group(1), int(match.group(2))


class IdAllocator:
    """Hands out sequential IDs per artifact kind.

    Attributes:
        root: Data root containing the kind folders and ``counters/``.
    """

    __slots__: Final = ("_root",)

    def __init__(self, root: Path) -> None:
        self._root: Path = root

    @property
    def root(self) -> Path:
        """Data root."""
        return self._root

    def counter_path(self, kind: ArtifactKind | str) -> Path:
        """Location of the counter file for a kind."""
        return self._root / COUNTERS_DIR / f"{get_schema(kind).folder}.md"

    def _stored_counter(self, kind: ArtifactKind | str) -> int:
        path = self.counter_path(kind)
        try:
            text = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return 0
        return int(text) if text.isdecimal() else 0

    def _highest_existing(self, kind: ArtifactKind | str) -> int:
        schema = get_schema(kind)
        folder = self._root / schema.folder
        if not folder.is_dir():
            return 0
        highest = 0
        for path in folder.glob("*.md"):
            try:
                prefix, number = parse_artifact_id(path.stem)
            except ValueError:
                continue
            if prefix == schema.id_prefix:
                highest = max(highest, number)
        return highest

    def current(self, kind: ArtifactKind | str) -> int:
        """Return the last allocated number for a kind (0 if none)."""
        return max(self._stored_counter(kind), self._highest_existing(kind))

    def next_ids(self, kind: ArtifactKind | str, count: int) -> list[str]:
        """Allocate ``count`` consecutive IDs and persist the counter.

        Args:
            kind: Artifact kind.
            count: Number of IDs; zero or less allocates nothing.

        Returns:
            The allocated IDs in ascending order.

        Raises:
            ArtifactIOError: If the counter file cannot be written.
        """
        if count <= 0:
            return []
        prefix = get_schema(kind).id_prefix
        start = self.current(kind) + 1
        end = start + count - 1
        atomic_write(self.counter_path(kind), f"{end}\n")
        return [format_artifact_id(prefix, number) for number in range(start, end + 1)]

    def next_id(self, kind: ArtifactKind | str) -> str:
        """Allocate a single ID."""
        return self.next_ids(kind, 1)[0]
