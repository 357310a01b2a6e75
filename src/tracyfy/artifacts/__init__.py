"""Artifact records, their markdown format and file storage.

Records:
    Requirement, UseCase, TestCase, Information, Risk, Document, Link,
    Project, User, CustomAttributeDefinition, Workflow: one frozen dataclass
    per kind.
    ArtifactLink, CustomAttributeValue, DocumentEntry: embedded values.

Codec:
    to_markdown / from_markdown: deterministic serialization and lenient
    parsing of ``{folder}/{id}.md`` files.
    parse_frontmatter / dump_frontmatter: the frontmatter grammar.

Storage:
    ArtifactStore: create, update, soft-delete and list artifacts.
    IdAllocator: sequential ``PREFIX-NNN`` IDs per kind.

Example:
    >>> from tracyfy.artifacts import Requirement, from_markdown, to_markdown
    >>> record = Requirement(id="REQ-001", title="Login")
    >>> from_markdown(to_markdown(record), "requirement") == record
    True
"""

from tracyfy.artifacts._codec import from_markdown, render_body, to_markdown
from tracyfy.artifacts._diff import FieldChange, diff_records
from tracyfy.artifacts._frontmatter import (
    dump_frontmatter,
    escape_string,
    parse_frontmatter,
    unescape_string,
)
from tracyfy.artifacts._ids import (
    IdAllocator,
    format_artifact_id,
    parse_artifact_id,
)
from tracyfy.artifacts._schema import (
    ArtifactSchema,
    get_schema,
    iter_schemas,
    kind_for_id,
    schema_for,
)
from tracyfy.artifacts._store import ArtifactStore, next_revision
from tracyfy.artifacts._types import (
    ArtifactKind,
    ArtifactLink,
    ArtifactRecord,
    ArtifactStatus,
    AttributeType,
    CustomAttributeDefinition,
    CustomAttributeValue,
    Document,
    DocumentEntry,
    Information,
    InformationType,
    Link,
    LinkType,
    Priority,
    Project,
    Requirement,
    Risk,
    RiskCategory,
    RiskLevel,
    RiskStatus,
    TestCase,
    UseCase,
    User,
    Workflow,
    WorkflowStatus,
)

__all__ = [
    "ArtifactKind",
    "ArtifactLink",
    "ArtifactRecord",
    "ArtifactSchema",
    "ArtifactStatus",
    "ArtifactStore",
    "AttributeType",
    "CustomAttributeDefinition",
    "CustomAttributeValue",
    "Document",
    "DocumentEntry",
    "FieldChange",
    "IdAllocator",
    "Information",
    "InformationType",
    "Link",
    "LinkType",
    "Priority",
    "Project",
    "Requirement",
    "Risk",
    "RiskCategory",
    "RiskLevel",
    "RiskStatus",
    "TestCase",
    "UseCase",
    "User",
    "Workflow",
    "WorkflowStatus",
    "diff_records",
    "dump_frontmatter",
    "escape_string",
    "format_artifact_id",
    "from_markdown",
    "get_schema",
    "iter_schemas",
    "kind_for_id",
    "next_revision",
    "parse_artifact_id",
    "parse_frontmatter",
    "render_body",
    "schema_for",
    "to_markdown",
    "unescape_string",
]
