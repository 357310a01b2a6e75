"""Data classes and enumerations for artifact records.

This module defines the plain record shapes that the markdown codec reads and
writes:
- ArtifactKind and the enums naming known status, priority and link values
- Value objects embedded in records (ArtifactLink, CustomAttributeValue,
  DocumentEntry)
- One frozen dataclass per artifact kind

Every record field has a default so that a partially populated file still
produces a record. Enum-valued fields are stored as plain strings; the enums
document the known values and supply defaults.
"""

from dataclasses import dataclass
from enum import StrEnum

type AttributeScalar = str | int | float | bool | None


class ArtifactKind(StrEnum):
    """Kinds of artifact stored in the repository."""

    REQUIREMENT = "requirement"
    USE_CASE = "usecase"
    TEST_CASE = "testcase"
    INFORMATION = "information"
    RISK = "risk"
    DOCUMENT = "document"
    LINK = "link"
    PROJECT = "project"
    USER = "user"
    CUSTOM_ATTRIBUTE = "custom-attribute"
    WORKFLOW = "workflow"


class ArtifactStatus(StrEnum):
    """Workflow status values shared by requirements, use cases and tests."""

    DRAFT = "draft"
    ACTIVE = "active"
    REVIEW = "review"
    APPROVED = "approved"
    DEPRECATED = "deprecated"
    IMPLEMENTED = "implemented"
    PASSED = "passed"
    FAILED = "failed"
    BLOCKED = "blocked"


class Priority(StrEnum):
    """Priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InformationType(StrEnum):
    """Categories of information notes."""

    NOTE = "note"
    MEETING = "meeting"
    DECISION = "decision"
    OTHER = "other"


class RiskCategory(StrEnum):
    """Risk categories."""

    TECHNICAL = "technical"
    SCHEDULE = "schedule"
    RESOURCE = "resource"
    EXTERNAL = "external"
    OTHER = "other"


class RiskLevel(StrEnum):
    """Probability and impact ratings for risks."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskStatus(StrEnum):
    """Risk lifecycle states."""

    IDENTIFIED = "identified"
    ANALYZING = "analyzing"
    MITIGATING = "mitigating"
    RESOLVED = "resolved"
    ACCEPTED = "accepted"


class WorkflowStatus(StrEnum):
    """Approval state of a workflow."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LinkType(StrEnum):
    """Relationship types between two artifacts."""

    PARENT = "parent"
    CHILD = "child"
    DERIVED_FROM = "derived_from"
    DEPENDS_ON = "depends_on"
    CONFLICTS_WITH = "conflicts_with"
    DUPLICATES = "duplicates"
    REFINES = "refines"
    SATISFIES = "satisfies"
    VERIFIES = "verifies"
    CONSTRAINS = "constrains"
    REQUIRES = "requires"
    RELATED_TO = "related_to"


class AttributeType(StrEnum):
    """Value types a custom attribute definition can declare."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"


# =============================================================================
# Embedded values
# =============================================================================


@dataclass(frozen=True, slots=True)
class ArtifactLink:
    """Typed reference from one artifact to another.

    Attributes:
        target_id: ID of the referenced artifact.
        link_type: Relationship type, usually a LinkType value.
    """

    target_id: str
    link_type: str = LinkType.RELATED_TO


@dataclass(frozen=True, slots=True)
class CustomAttributeValue:
    """Value of a user-defined attribute on an artifact.

    Attributes:
        attribute_id: ID of the CustomAttributeDefinition.
        value: String, number, boolean or None.
    """

    attribute_id: str
    value: AttributeScalar = None


@dataclass(frozen=True, slots=True)
class DocumentEntry:
    """One node in a document outline.

    Attributes:
        entry_type: "heading", "text" or "artifact".
        title: Heading text.
        content: Free text for text entries.
        artifact_id: Referenced artifact for artifact entries.
        level: Heading depth.
    """

    entry_type: str
    title: str = ""
    content: str = ""
    artifact_id: str = ""
    level: int = 1


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True, slots=True)
class Requirement:
    """A requirement statement with its rationale and traceability."""

    id: str = ""
    title: str = ""
    description: str = ""
    text: str = ""
    rationale: str = ""
    comments: str = ""
    status: str = ArtifactStatus.DRAFT
    priority: str = Priority.MEDIUM
    author: str = ""
    verification_method: str = ""
    approval_date: int | None = None
    use_case_ids: tuple[str, ...] = ()
    parent_ids: tuple[str, ...] = ()
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class UseCase:
    """An actor-driven scenario with main and alternative flows."""

    id: str = ""
    title: str = ""
    description: str = ""
    actor: str = ""
    preconditions: str = ""
    main_flow: str = ""
    alternative_flows: str = ""
    postconditions: str = ""
    status: str = ArtifactStatus.DRAFT
    priority: str = Priority.MEDIUM
    requirement_ids: tuple[str, ...] = ()
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class TestCase:
    """A verification procedure covering one or more requirements."""

    __test__ = False  # not a pytest test class

    id: str = ""
    title: str = ""
    description: str = ""
    requirement_ids: tuple[str, ...] = ()
    status: str = ArtifactStatus.DRAFT
    priority: str = Priority.MEDIUM
    author: str = ""
    last_run: int | None = None
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Information:
    """A free-form note such as meeting minutes or a decision record."""

    id: str = ""
    title: str = ""
    content: str = ""
    info_type: str = InformationType.NOTE
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Risk:
    """A project risk with its mitigation and contingency plans."""

    id: str = ""
    title: str = ""
    description: str = ""
    mitigation: str = ""
    contingency: str = ""
    category: str = RiskCategory.OTHER
    probability: str = RiskLevel.MEDIUM
    impact: str = RiskLevel.MEDIUM
    status: str = RiskStatus.IDENTIFIED
    owner: str = ""
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Document:
    """An ordered outline that assembles artifacts into a deliverable."""

    id: str = ""
    title: str = ""
    project_id: str = ""
    description: str = ""
    status: str = ArtifactStatus.DRAFT
    author: str = ""
    structure: tuple[DocumentEntry, ...] = ()
    linked_artifacts: tuple[ArtifactLink, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Link:
    """A standalone typed relationship between two artifacts."""

    id: str = ""
    source_id: str = ""
    target_id: str = ""
    link_type: str = LinkType.RELATED_TO
    project_ids: tuple[str, ...] = ()
    custom_attributes: tuple[CustomAttributeValue, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A named grouping of artifacts."""

    id: str = ""
    name: str = ""
    description: str = ""
    requirement_ids: tuple[str, ...] = ()
    use_case_ids: tuple[str, ...] = ()
    test_case_ids: tuple[str, ...] = ()
    information_ids: tuple[str, ...] = ()
    risk_ids: tuple[str, ...] = ()
    document_ids: tuple[str, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class User:
    """A person who authors artifacts."""

    id: str = ""
    name: str = ""
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0


@dataclass(frozen=True, slots=True)
class CustomAttributeDefinition:
    """Schema of a user-defined attribute that artifacts can carry."""

    id: str = ""
    name: str = ""
    attribute_type: str = AttributeType.TEXT
    description: str = ""
    required: bool = False
    default_value: AttributeScalar = None
    options: tuple[str, ...] = ()
    applies_to: tuple[str, ...] = ()
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


@dataclass(frozen=True, slots=True)
class Workflow:
    """A request for someone to approve or reject a set of artifacts.

    ``approved_by`` and ``approval_date`` record whoever decided, whether the
    decision was an approval or a rejection.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    created_by: str = ""
    assigned_to: str = ""
    status: str = WorkflowStatus.PENDING
    artifact_ids: tuple[str, ...] = ()
    approved_by: str = ""
    approval_date: int | None = None
    approver_comment: str = ""
    revision: str = "01"
    date_created: int = 0
    last_modified: int = 0
    is_deleted: bool = False
    deleted_at: int | None = None


type ArtifactRecord = (
    Requirement
    | UseCase
    | TestCase
    | Information
    | Risk
    | Document
    | Link
    | Project
    | User
    | CustomAttributeDefinition
    | Workflow
)
