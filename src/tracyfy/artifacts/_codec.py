"""Conversion between artifact records and markdown files.

A file is a frontmatter block followed by a markdown body::

    ---
    id: "REQ-001"
    title: "Example"
    ...
    ---

    # Example

    ## Description
    ...

Serialization is deterministic: the same record always yields the same text.
Parsing never raises; missing or malformed values fall back to the record
defaults so a damaged file loads as a mostly blank artifact.
"""

from typing import TYPE_CHECKING, Any

import orjson

from tracyfy.artifacts._frontmatter import dump_frontmatter, parse_frontmatter
from tracyfy.artifacts._schema import (
    ArtifactSchema,
    decode_field,
    encode_field,
    get_schema,
    schema_for,
)
from tracyfy.exceptions import ArtifactEncodeError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracyfy.artifacts._types import ArtifactKind, ArtifactRecord


def _single_line(value: str) -> str:
    return value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def _drop_final_newline(text: str) -> str:
    return text.removesuffix("\n")


def _heading_text(schema: ArtifactSchema, record: ArtifactRecord) -> str:
    attr = schema.title_attr or "id"
    return _single_line(str(getattr(record, attr)))


def render_body(record: ArtifactRecord) -> str:
    """Render the markdown body of a record without frontmatter."""
    schema = schema_for(record)
    parts = [f"# {_heading_text(schema, record)}\n"]

    if schema.body_attr is not None:
        parts.append(f"\n{getattr(record, schema.body_attr)}\n")
    elif schema.render_body is not None:
        parts.append(f"\n{schema.render_body(record)}\n")

    for section in schema.sections:
        if section.render is not None:
            value = section.render(record)
        elif section.attr is not None:
            value = str(getattr(record, section.attr))
        else:
            continue
        if section.optional and not value:
            continue
        parts.append(f"\n## {section.heading}\n{value}\n")

    return "".join(parts)


def to_markdown(record: ArtifactRecord) -> str:
    """Serialize a record to markdown with frontmatter.

    Args:
        record: Any artifact record.

    Returns:
        The complete file content.

    Raises:
        UnknownArtifactKindError: If ``record`` is not an artifact record type.
        ArtifactEncodeError: If a structured value cannot be encoded, such as
            an integer outside the 64-bit range inside a custom attribute.

    Example:
        >>> from tracyfy.artifacts import Requirement
        >>> text = to_markdown(Requirement(id="REQ-001", title="Login"))
        >>> text.splitlines()[1]
        'id: "REQ-001"'
    """
    schema = schema_for(record)
    try:
        frontmatter = dump_frontmatter(
            {
                field.key: encode_field(field.codec, getattr(record, field.attr))
                for field in schema.fields
            }
        )
    except orjson.JSONEncodeError as e:
        msg = f"Cannot serialize {record.id}: {e}"
        raise ArtifactEncodeError(msg, artifact_id=record.id) from e
    return f"{frontmatter}\n{render_body(record)}"


# =============================================================================
# Parsing
# =============================================================================


def _find_title(lines: Sequence[str]) -> tuple[int, str] | None:
    for index, line in enumerate(lines):
        stripped = line.rstrip()
        if stripped == "#" or stripped.startswith("# "):
            return index, stripped[1:].strip()
    return None


def _extract_sections(lines: Sequence[str], headings: Sequence[str]) -> dict[str, str]:
    """Slice the body into the known sections.

    Only the kind's own headings start a section, so other ``##`` lines stay
    part of the surrounding section text. Each heading is recognized once.
    """
    known = {f"## {heading}": heading for heading in headings}
    collected: dict[str, list[str]] = {}
    current: str | None = None
    for line in lines:
        heading = known.get(line.rstrip())
        if heading is not None and heading not in collected:
            current = heading
            collected[current] = []
            continue
        if current is not None:
            collected[current].append(line)
    return {
        heading: _drop_final_newline("\n".join(section_lines))
        for heading, section_lines in collected.items()
    }


def _until_heading(lines: Sequence[str], headings: Sequence[str]) -> Sequence[str]:
    known = {f"## {heading}" for heading in headings}
    for index, line in enumerate(lines):
        if line.rstrip() in known:
            return lines[:index]
    return lines


def _free_body(lines: Sequence[str]) -> str:
    remaining = list(lines)
    if remaining and not remaining[0].strip():
        remaining = remaining[1:]
    return _drop_final_newline("\n".join(remaining))


def from_markdown(text: str, kind: ArtifactKind | str) -> ArtifactRecord:
    """Parse markdown with frontmatter into a record of the given kind.

    Frontmatter keys that are absent or hold a value of the wrong shape take
    the record default. Body sections are located by their ``## Heading``;
    missing sections take the default too. Content without frontmatter parses
    to a record with an empty ID.

    Args:
        text: File content.
        kind: Artifact kind to parse as.

    Returns:
        The parsed record.

    Raises:
        UnknownArtifactKindError: If ``kind`` is not a known artifact kind.
    """
    schema = get_schema(kind)
    data, body = parse_frontmatter(text)
    values: dict[str, Any] = dict(schema.defaults)  # pyright: ignore[reportExplicitAny]

    for field in schema.fields:
        values[field.attr] = decode_field(field.codec, data.get(field.key), values[field.attr])

    lines = body.split("\n")
    title = _find_title(lines)
    after_title = lines[title[0] + 1 :] if title is not None else lines

    if title is not None and schema.title_attr is not None and schema.title_attr not in data:
        values[schema.title_attr] = title[1]

    if schema.body_attr is not None:
        headings = [s.heading for s in schema.sections]
        content = _free_body(_until_heading(after_title, headings))
        fallback = data.get(schema.body_attr)
        if not content and isinstance(fallback, str):
            content = fallback
        values[schema.body_attr] = content

    if schema.sections:
        # Generated sections still bound the ones before them.
        sections = _extract_sections(after_title, [s.heading for s in schema.sections])
        for section in schema.sections:
            if section.attr is not None and section.heading in sections:
                values[section.attr] = sections[section.heading]

    return schema.record_type(**values)
