"""Project baselines: versioned captures of artifact commits.

Example:
    >>> from tracyfy.baselines import BaselineManager, BaselineStorage
    >>> manager = BaselineManager(store, history, BaselineStorage(root))
    >>> baseline = await manager.create_baseline("PROJ-001", "Release 1")
    >>> baseline.version
    '01'
"""

from tracyfy.baselines._manager import (
    PROJECT_MEMBERS,
    BaselineManager,
    baseline_tag_name,
    compare_baselines,
    describe_baselines,
    next_baseline_version,
)
from tracyfy.baselines._models import (
    ArtifactChange,
    ArtifactCommit,
    BaselineComparison,
    BaselineView,
    ProjectBaseline,
)
from tracyfy.baselines._storage import BASELINES_DIR, BaselineStorage

__all__ = [
    "BASELINES_DIR",
    "PROJECT_MEMBERS",
    "ArtifactChange",
    "ArtifactCommit",
    "BaselineComparison",
    "BaselineManager",
    "BaselineStorage",
    "BaselineView",
    "ProjectBaseline",
    "baseline_tag_name",
    "compare_baselines",
    "describe_baselines",
    "next_baseline_version",
]
