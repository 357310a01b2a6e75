"""Per-kind layout of artifact files.

Each artifact kind has an ArtifactSchema describing where its files live, the
ID prefix it allocates, which fields go to frontmatter (and under which key)
and which fields become ``## Heading`` sections in the body. The markdown
codec is driven entirely by these schemas.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, fields
from enum import StrEnum
from functools import cache
from typing import Any, Final

from tracyfy.artifacts._frontmatter import FrontmatterValue
from tracyfy.artifacts._types import (
    ArtifactKind,
    ArtifactLink,
    ArtifactRecord,
    CustomAttributeDefinition,
    CustomAttributeValue,
    Document,
    DocumentEntry,
    Information,
    Link,
    LinkType,
    Project,
    Requirement,
    Risk,
    TestCase,
    UseCase,
    User,
    Workflow,
    WorkflowStatus,
)
from tracyfy.exceptions import UnknownArtifactKindError
from tracyfy.utils._time import format_ms


class FieldCodec(StrEnum):
    """How a record attribute maps to a frontmatter value."""

    STRING = "string"
    INTEGER = "integer"
    OPTIONAL_INTEGER = "optional_integer"
    BOOLEAN = "boolean"
    STRINGS = "strings"
    LINKS = "links"
    ATTRIBUTES = "attributes"
    ENTRIES = "entries"
    SCALAR = "scalar"


@dataclass(frozen=True, slots=True)
class FrontmatterField:
    """A record attribute stored as a frontmatter key.

    Attributes:
        key: Key written to the file (camelCase).
        attr: Attribute name on the record dataclass.
        codec: Conversion between the two representations.
    """

    key: str
    attr: str
    codec: FieldCodec = FieldCodec.STRING


@dataclass(frozen=True, slots=True)
class Section:
    """A ``## Heading`` block in the markdown body.

    Attributes:
        heading: Heading text without the ``## `` marker.
        attr: Record attribute holding the section text, or None for sections
            generated from other fields and ignored when reading.
        optional: Omit the section when its value is empty.
        render: Produces the text of a generated section.
    """

    heading: str
    attr: str | None = None
    optional: bool = False
    render: Callable[[Any], str] | None = None  # pyright: ignore[reportExplicitAny]


@dataclass(frozen=True, slots=True)
class ArtifactSchema:
    """File layout of one artifact kind.

    Attributes:
        kind: The artifact kind.
        record_type: Dataclass holding records of this kind.
        folder: Directory under the data root containing ``{id}.md`` files.
        id_prefix: Prefix for generated IDs (``REQ`` gives ``REQ-001``).
        label: Human-readable kind name.
        title_attr: Attribute rendered as the H1 heading, or None to use the ID.
        fields: Frontmatter fields in output order.
        sections: Body sections in output order.
        body_attr: Attribute holding the body text between the H1 heading and
            the first section.
        render_body: Produces a display-only paragraph after the H1 heading.
    """

    kind: ArtifactKind
    record_type: type[ArtifactRecord]
    folder: str
    id_prefix: str
    label: str
    title_attr: str | None
    fields: tuple[FrontmatterField, ...]
    sections: tuple[Section, ...] = ()
    body_attr: str | None = None
    render_body: Callable[[Any], str] | None = None  # pyright: ignore[reportExplicitAny]

    def relative_path(self, artifact_id: str) -> str:
        """Repository-relative path of an artifact file, e.g. ``requirements/REQ-001.md``."""
        return f"{self.folder}/{artifact_id}.md"

    @property
    def defaults(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Default value of every record attribute."""
        return _record_defaults(self.record_type)


@cache
def _record_defaults(record_type: type[ArtifactRecord]) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    return {f.name: f.default for f in fields(record_type)}


# =============================================================================
# Value conversion
# =============================================================================


def _encode_links(links: tuple[ArtifactLink, ...]) -> FrontmatterValue:
    return [{"targetId": link.target_id, "type": link.link_type} for link in links]


def _encode_attributes(values: tuple[CustomAttributeValue, ...]) -> FrontmatterValue:
    return [{"attributeId": v.attribute_id, "value": v.value} for v in values]


def _encode_entries(entries: tuple[DocumentEntry, ...]) -> FrontmatterValue:
    return [
        {
            "type": entry.entry_type,
            "title": entry.title,
            "content": entry.content,
            "artifactId": entry.artifact_id,
            "level": entry.level,
        }
        for entry in entries
    ]


def encode_field(codec: FieldCodec, value: Any) -> FrontmatterValue:  # noqa: ANN401 # pyright: ignore[reportExplicitAny]
    """Convert a record attribute into a frontmatter value."""
    match codec:
        case FieldCodec.STRINGS:
            return list(value)
        case FieldCodec.LINKS:
            return _encode_links(value)
        case FieldCodec.ATTRIBUTES:
            return _encode_attributes(value)
        case FieldCodec.ENTRIES:
            return _encode_entries(value)
        case _:
            return value


def _decode_string(value: FrontmatterValue, default: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return default


def _decode_integer(value: FrontmatterValue, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _decode_boolean(value: FrontmatterValue, default: bool) -> bool:  # noqa: FBT001
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    if isinstance(value, int):
        return bool(value)
    return default


def _decode_strings(value: FrontmatterValue) -> tuple[str, ...]:
    if isinstance(value, str):
        # Legacy files store some ID lists as "A, B, C".
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if not isinstance(value, list):
        return ()
    return tuple(
        str(item)
        for item in value
        if item is not None and not isinstance(item, list | dict)
    )


def _decode_links(value: FrontmatterValue) -> tuple[ArtifactLink, ...]:
    if not isinstance(value, list):
        return ()
    links: list[ArtifactLink] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        target = item.get("targetId")
        if not isinstance(target, str) or not target:
            continue
        link_type = item.get("type")
        links.append(
            ArtifactLink(
                target_id=target,
                link_type=link_type if isinstance(link_type, str) else LinkType.RELATED_TO,
            )
        )
    return tuple(links)


def _decode_attributes(value: FrontmatterValue) -> tuple[CustomAttributeValue, ...]:
    if not isinstance(value, list):
        return ()
    result: list[CustomAttributeValue] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        attribute_id = item.get("attributeId")
        if not isinstance(attribute_id, str) or not attribute_id:
            continue
        raw = item.get("value")
        result.append(
            CustomAttributeValue(
                attribute_id=attribute_id,
                value=None if isinstance(raw, list | dict) else raw,
            )
        )
    return tuple(result)


def _decode_entries(value: FrontmatterValue) -> tuple[DocumentEntry, ...]:
    if not isinstance(value, list):
        return ()
    entries: list[DocumentEntry] = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            continue
        level = _decode_integer(item.get("level"), 1)
        entries.append(
            DocumentEntry(
                entry_type=str(item["type"]),
                title=_decode_string(item.get("title"), ""),
                content=_decode_string(item.get("content"), ""),
                artifact_id=_decode_string(item.get("artifactId"), ""),
                level=level if level is not None else 1,
            )
        )
    return tuple(entries)


def decode_field(codec: FieldCodec, value: FrontmatterValue, default: Any) -> Any:  # noqa: ANN401 # pyright: ignore[reportExplicitAny]
    """Convert a frontmatter value into a record attribute.

    Values of the wrong shape fall back to ``default``.
    """
    match codec:
        case FieldCodec.STRING:
            return _decode_string(value, default)
        case FieldCodec.INTEGER | FieldCodec.OPTIONAL_INTEGER:
            return _decode_integer(value, default)
        case FieldCodec.BOOLEAN:
            return _decode_boolean(value, default)
        case FieldCodec.STRINGS:
            return _decode_strings(value)
        case FieldCodec.LINKS:
            return _decode_links(value)
        case FieldCodec.ATTRIBUTES:
            return _decode_attributes(value)
        case FieldCodec.ENTRIES:
            return _decode_entries(value)
        case FieldCodec.SCALAR:
            if value is None or isinstance(value, str | bool | int | float):
                return value
            return default


# =============================================================================
# Schemas
# =============================================================================

_INT = FieldCodec.INTEGER
_OPT = FieldCodec.OPTIONAL_INTEGER
_BOOL = FieldCodec.BOOLEAN
_IDS = FieldCodec.STRINGS

_ID = FrontmatterField("id", "id")
_TITLE = FrontmatterField("title", "title")
_NAME = FrontmatterField("name", "name")
_STATUS = FrontmatterField("status", "status")
_PRIORITY = FrontmatterField("priority", "priority")
_REVISION = FrontmatterField("revision", "revision")
_TIMESTAMPS = (
    FrontmatterField("dateCreated", "date_created", _INT),
    FrontmatterField("lastModified", "last_modified", _INT),
)
_LINKED = FrontmatterField("linkedArtifacts", "linked_artifacts", FieldCodec.LINKS)
_DELETION = (
    FrontmatterField("isDeleted", "is_deleted", _BOOL),
    FrontmatterField("deletedAt", "deleted_at", _OPT),
)
_CUSTOM = FrontmatterField("customAttributes", "custom_attributes", FieldCodec.ATTRIBUTES)


def _render_covered_requirements(record: TestCase) -> str:
    return "\n".join(f"- {requirement_id}" for requirement_id in record.requirement_ids)


def _render_link_summary(record: Link) -> str:
    summary = f"Links **{record.source_id}** to **{record.target_id}** ({record.link_type})"
    if record.project_ids:
        summary += f"\n\n**Scope:** {', '.join(record.project_ids)}"
    return summary


def _render_attribute_summary(record: CustomAttributeDefinition) -> str:
    return record.description or "No description provided."


def _render_workflow_artifacts(record: Workflow) -> str:
    if not record.artifact_ids:
        return "_No artifacts linked_"
    return "\n".join(f"- {artifact_id}" for artifact_id in record.artifact_ids)


def _render_workflow_status(record: Workflow) -> str:
    match record.status:
        case WorkflowStatus.APPROVED:
            lines = [f"**Approved** by {record.approved_by}"]
            if record.approval_date is not None:
                lines[0] += f" on {format_ms(record.approval_date)}"
            label = "Comment"
        case WorkflowStatus.REJECTED:
            lines = [f"**Rejected** by {record.approved_by}"]
            label = "Reason"
        case _:
            return "_Pending approval_"
    if record.approver_comment:
        lines.extend(["", f"**{label}:**", record.approver_comment])
    return "\n".join(lines)


SCHEMAS: Final[tuple[ArtifactSchema, ...]] = (
    ArtifactSchema(
        kind=ArtifactKind.REQUIREMENT,
        record_type=Requirement,
        folder="requirements",
        id_prefix="REQ",
        label="Requirement",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            _STATUS,
            _PRIORITY,
            _REVISION,
            *_TIMESTAMPS,
            FrontmatterField("useCaseIds", "use_case_ids", _IDS),
            FrontmatterField("parentIds", "parent_ids", _IDS),
            _LINKED,
            FrontmatterField("author", "author"),
            FrontmatterField("verificationMethod", "verification_method"),
            FrontmatterField("approvalDate", "approval_date", _OPT),
            *_DELETION,
            _CUSTOM,
        ),
        sections=(
            Section("Description", "description"),
            Section("Requirement Text", "text"),
            Section("Rationale", "rationale"),
            Section("Comments", "comments", optional=True),
        ),
    ),
    ArtifactSchema(
        kind=ArtifactKind.USE_CASE,
        record_type=UseCase,
        folder="usecases",
        id_prefix="UC",
        label="Use Case",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            _STATUS,
            _PRIORITY,
            _REVISION,
            *_TIMESTAMPS,
            FrontmatterField("actor", "actor"),
            FrontmatterField("requirementIds", "requirement_ids", _IDS),
            _LINKED,
            *_DELETION,
            _CUSTOM,
        ),
        sections=(
            Section("Description", "description"),
            Section("Actor", "actor"),
            Section("Preconditions", "preconditions"),
            Section("Main Flow", "main_flow"),
            Section("Alternative Flows", "alternative_flows", optional=True),
            Section("Postconditions", "postconditions"),
        ),
    ),
    ArtifactSchema(
        kind=ArtifactKind.TEST_CASE,
        record_type=TestCase,
        folder="testcases",
        id_prefix="TC",
        label="Test Case",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            _STATUS,
            _PRIORITY,
            _REVISION,
            *_TIMESTAMPS,
            FrontmatterField("requirementIds", "requirement_ids", _IDS),
            FrontmatterField("author", "author"),
            FrontmatterField("lastRun", "last_run", _OPT),
            _LINKED,
            *_DELETION,
            _CUSTOM,
        ),
        sections=(
            Section("Description", "description"),
            Section("Requirements Covered", render=_render_covered_requirements),
        ),
    ),
    ArtifactSchema(
        kind=ArtifactKind.INFORMATION,
        record_type=Information,
        folder="information",
        id_prefix="INFO",
        label="Information",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            FrontmatterField("type", "info_type"),
            _REVISION,
            *_TIMESTAMPS,
            _LINKED,
            *_DELETION,
            _CUSTOM,
        ),
        body_attr="content",
    ),
    ArtifactSchema(
        kind=ArtifactKind.RISK,
        record_type=Risk,
        folder="risks",
        id_prefix="RISK",
        label="Risk",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            FrontmatterField("category", "category"),
            FrontmatterField("probability", "probability"),
            FrontmatterField("impact", "impact"),
            _STATUS,
            FrontmatterField("owner", "owner"),
            _REVISION,
            *_TIMESTAMPS,
            _LINKED,
            *_DELETION,
            _CUSTOM,
        ),
        sections=(
            Section("Description", "description"),
            Section("Mitigation Strategy", "mitigation"),
            Section("Contingency Plan", "contingency"),
        ),
    ),
    ArtifactSchema(
        kind=ArtifactKind.DOCUMENT,
        record_type=Document,
        folder="documents",
        id_prefix="DOC",
        label="Document",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            FrontmatterField("projectId", "project_id"),
            _STATUS,
            FrontmatterField("author", "author"),
            _REVISION,
            *_TIMESTAMPS,
            FrontmatterField("structure", "structure", FieldCodec.ENTRIES),
            _LINKED,
            *_DELETION,
            _CUSTOM,
        ),
        sections=(Section("Description", "description"),),
    ),
    ArtifactSchema(
        kind=ArtifactKind.LINK,
        record_type=Link,
        folder="links",
        id_prefix="LINK",
        label="Link",
        title_attr=None,
        fields=(
            _ID,
            FrontmatterField("sourceId", "source_id"),
            FrontmatterField("targetId", "target_id"),
            FrontmatterField("type", "link_type"),
            FrontmatterField("projectIds", "project_ids", _IDS),
            _REVISION,
            *_TIMESTAMPS,
            *_DELETION,
            _CUSTOM,
        ),
        render_body=_render_link_summary,
    ),
    ArtifactSchema(
        kind=ArtifactKind.PROJECT,
        record_type=Project,
        folder="projects",
        id_prefix="PROJ",
        label="Project",
        title_attr="name",
        fields=(
            _ID,
            _NAME,
            _REVISION,
            *_TIMESTAMPS,
            FrontmatterField("requirementIds", "requirement_ids", _IDS),
            FrontmatterField("useCaseIds", "use_case_ids", _IDS),
            FrontmatterField("testCaseIds", "test_case_ids", _IDS),
            FrontmatterField("informationIds", "information_ids", _IDS),
            FrontmatterField("riskIds", "risk_ids", _IDS),
            FrontmatterField("documentIds", "document_ids", _IDS),
            *_DELETION,
        ),
        body_attr="description",
    ),
    ArtifactSchema(
        kind=ArtifactKind.USER,
        record_type=User,
        folder="users",
        id_prefix="USER",
        label="User",
        title_attr="name",
        fields=(_ID, _NAME, _REVISION, *_TIMESTAMPS),
    ),
    ArtifactSchema(
        kind=ArtifactKind.CUSTOM_ATTRIBUTE,
        record_type=CustomAttributeDefinition,
        folder="custom-attributes",
        id_prefix="ATTR",
        label="Custom Attribute",
        title_attr="name",
        fields=(
            _ID,
            _NAME,
            FrontmatterField("type", "attribute_type"),
            FrontmatterField("description", "description"),
            FrontmatterField("required", "required", _BOOL),
            FrontmatterField("defaultValue", "default_value", FieldCodec.SCALAR),
            FrontmatterField("options", "options", _IDS),
            FrontmatterField("appliesTo", "applies_to", _IDS),
            _REVISION,
            *_TIMESTAMPS,
            *_DELETION,
        ),
        render_body=_render_attribute_summary,
    ),
    ArtifactSchema(
        kind=ArtifactKind.WORKFLOW,
        record_type=Workflow,
        folder="workflows",
        id_prefix="WF",
        label="Workflow",
        title_attr="title",
        fields=(
            _ID,
            _TITLE,
            FrontmatterField("createdBy", "created_by"),
            FrontmatterField("assignedTo", "assigned_to"),
            _STATUS,
            FrontmatterField("artifactIds", "artifact_ids", _IDS),
            FrontmatterField("approvedBy", "approved_by"),
            FrontmatterField("approvalDate", "approval_date", _OPT),
            FrontmatterField("approverComment", "approver_comment"),
            _REVISION,
            *_TIMESTAMPS,
            *_DELETION,
        ),
        sections=(
            Section("Artifacts for Approval", render=_render_workflow_artifacts),
            Section("Status", render=_render_workflow_status),
        ),
        body_attr="description",
    ),
)

_BY_KIND: Final = {schema.kind: schema for schema in SCHEMAS}
_BY_TYPE: Final = {schema.record_type: schema for schema in SCHEMAS}
_BY_PREFIX: Final = {schema.id_prefix: schema for schema in SCHEMAS}


def get_schema(kind: ArtifactKind | str) -> ArtifactSchema:
    """Look up the schema for a kind.

    Args:
        kind: An ArtifactKind or its string value.

    Raises:
        UnknownArtifactKindError: If the kind is not known.
    """
    try:
        return _BY_KIND[ArtifactKind(kind)]
    except ValueError as e:
        msg = f"Unknown artifact kind: {kind}"
        raise UnknownArtifactKindError(msg, value=str(kind)) from e


def schema_for(record: ArtifactRecord) -> ArtifactSchema:
    """Return the schema matching a record's type."""
    try:
        return _BY_TYPE[type(record)]
    except KeyError as e:
        msg = f"Not an artifact record: {type(record).__name__}"
        raise UnknownArtifactKindError(msg, value=type(record).__name__) from e


def kind_for_id(artifact_id: str) -> ArtifactKind:
    """Infer the artifact kind from an ID prefix such as ``REQ-001``.

    Raises:
        UnknownArtifactKindError: If the prefix is not registered.
    """
    prefix = artifact_id.split("-", 1)[0]
    schema = _BY_PREFIX.get(prefix.upper())
    if schema is None:
        msg = f"Cannot infer artifact kind from ID: {artifact_id}"
        raise UnknownArtifactKindError(msg, value=artifact_id)
    return schema.kind


def iter_schemas() -> tuple[ArtifactSchema, ...]:
    """Return every registered schema in a stable order."""
    return SCHEMAS
