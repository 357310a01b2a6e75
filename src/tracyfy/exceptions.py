"""Tracyfy exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class TracyfyError(Exception):
    """Base exception for Tracyfy errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(TracyfyError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


# =============================================================================
# Artifact Exceptions
# =============================================================================


class ArtifactError(TracyfyError):
    """Base exception for artifact operations."""


class ArtifactNotFoundError(ArtifactError, KeyError):
    """Raised when an artifact file does not exist.

    Attributes:
        artifact_id: The ID of the artifact that was not found.
    """

    def __init__(self, message: str, *, artifact_id: str | None = None) -> None:
        """Initialize with error message and artifact context.

        Args:
            message: Human-readable error message.
            artifact_id: The ID of the artifact that was not found.
        """
        super().__init__(message)
        self.artifact_id: str | None = artifact_id

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class DuplicateArtifactError(ArtifactError, ValueError):
    """Raised when creating an artifact whose ID is already stored.

    Attributes:
        artifact_id: The ID that already exists.
    """

    def __init__(self, message: str, *, artifact_id: str | None = None) -> None:
        """Initialize with error message and artifact context."""
        super().__init__(message)
        self.artifact_id: str | None = artifact_id


class ArtifactEncodeError(ArtifactError, ValueError):
    """Raised when a record holds a value that cannot be written to its file.

    Attributes:
        artifact_id: The ID of the record being serialized.
    """

    def __init__(self, message: str, *, artifact_id: str | None = None) -> None:
        """Initialize with error message and artifact context."""
        super().__init__(message)
        self.artifact_id: str | None = artifact_id


class UnknownArtifactKindError(ArtifactError, ValueError):
    """Raised when a kind name or ID prefix matches no artifact kind.

    Attributes:
        value: The kind name, folder or ID that could not be resolved.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        """Initialize with error message and the unresolved value."""
        super().__init__(message)
        self.value: str | None = value


class WorkflowStateError(ArtifactError, ValueError):
    """Raised when deciding a workflow that is no longer pending.

    Attributes:
        artifact_id: The workflow ID.
        status: The status the workflow already has.
    """

    def __init__(
        self, message: str, *, artifact_id: str | None = None, status: str | None = None
    ) -> None:
        """Initialize with error message and workflow context."""
        super().__init__(message)
        self.artifact_id: str | None = artifact_id
        self.status: str | None = status


class ArtifactIOError(ArtifactError):
    """Raised when an artifact or data file cannot be read or written.

    Attributes:
        path: The file involved in the failed operation.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and file context."""
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(TracyfyError):
    """Base exception for git repository errors.

    Attributes:
        path: The repository root or file involved.
        details: Additional context, such as a commit hash.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        details: str | None = None,
    ) -> None:
        """Initialize with error message and repository context."""
        super().__init__(message)
        self.path: Path | None = path
        self.details: str | None = details


class RepositoryNotInitializedError(RepositoryError):
    """Raised when no git repository exists at the data root."""


class RepositoryPathViolationError(RepositoryError):
    """Raised when a path lies outside the repository working tree."""


class RepositoryConflictError(RepositoryError):
    """Raised when HEAD moved between staging and committing."""


class TagExistsError(RepositoryError):
    """Raised when creating a tag whose name is already taken."""


# =============================================================================
# Baseline Exceptions
# =============================================================================


class BaselineError(TracyfyError):
    """Base exception for baseline operations."""


class BaselineNotFoundError(BaselineError, KeyError):
    """Raised when a baseline does not exist.

    Attributes:
        baseline_id: The ID of the missing baseline.
    """

    def __init__(self, message: str, *, baseline_id: str | None = None) -> None:
        """Initialize with error message and baseline context."""
        super().__init__(message)
        self.baseline_id: str | None = baseline_id

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ProjectNotFoundError(BaselineError, KeyError):
    """Raised when baselining a project that is not stored.

    Attributes:
        project_id: The ID of the missing project.
    """

    def __init__(self, message: str, *, project_id: str | None = None) -> None:
        """Initialize with error message and project context."""
        super().__init__(message)
        self.project_id: str | None = project_id

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
