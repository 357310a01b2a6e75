"""History queries, snapshots and tag timelines for artifacts.

Example:
    >>> import anyio
    >>> from tracyfy.history import HistoryService
    >>> from tracyfy.repository import FakeRepository
    >>> service = HistoryService(FakeRepository())
    >>> anyio.run(service.get_artifact_history, "REQ-001")
    []
"""

from tracyfy.history._service import DEFAULT_MAX_COMMITS, DEFAULT_TIMEOUT, HistoryService
from tracyfy.history._snapshot import ProjectSnapshot
from tracyfy.history._timeline import TimelineEntry, build_tag_map, build_timeline

__all__ = [
    "DEFAULT_MAX_COMMITS",
    "DEFAULT_TIMEOUT",
    "HistoryService",
    "ProjectSnapshot",
    "TimelineEntry",
    "build_tag_map",
    "build_timeline",
]
