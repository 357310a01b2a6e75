# ruff: noqa: TC001  # CommitInfo needed at runtime for dataclass fields
"""Correlation of commits with the tags that point at them."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tracyfy.repository import CommitInfo

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tracyfy.repository import TagInfo


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """A commit and the tag that labels it.

    Attributes:
        commit: The commit.
        tag: Name of the tag on this commit, or None when untagged.
    """

    commit: CommitInfo
    tag: str | None = None


def build_tag_map(tags: Iterable[TagInfo]) -> dict[str, str]:
    """Map commit hashes to tag names.

    When several tags point at the same commit the lexicographically first
    name is used, so the result does not depend on tag order.

    Example:
        >>> from tracyfy.repository import TagInfo
        >>> build_tag_map([
        ...     TagInfo(name="v1.1", message="", timestamp=2, commit="abc1234"),
        ...     TagInfo(name="v1.0", message="", timestamp=1, commit="abc1234"),
        ... ])
        {'abc1234': 'v1.0'}
    """
    tag_map: dict[str, str] = {}
    for tag in tags:
        current = tag_map.get(tag.commit)
        if current is None or tag.name < current:
            tag_map[tag.commit] = tag.name
    return tag_map


def build_timeline(
    commits: Sequence[CommitInfo], tags: Iterable[TagInfo]
) -> list[TimelineEntry]:
    """Pair each commit with its tag, keeping the commit order."""
    tag_map = build_tag_map(tags)
    return [TimelineEntry(commit=commit, tag=tag_map.get(commit.hash)) for commit in commits]
