"""Unit tests for artifact schemas and kind lookup."""

import pytest

from tracyfy.artifacts import (
    ArtifactKind,
    Requirement,
    User,
    get_schema,
    iter_schemas,
    kind_for_id,
    schema_for,
)
from tracyfy.exceptions import UnknownArtifactKindError


class TestSchemaRegistry:
    def test_every_kind_has_a_schema(self) -> None:
        assert {schema.kind for schema in iter_schemas()} == set(ArtifactKind)

    @pytest.mark.parametrize(
        ("kind", "folder", "prefix"),
        [
            (ArtifactKind.REQUIREMENT, "requirements", "REQ"),
            (ArtifactKind.USE_CASE, "usecases", "UC"),
            (ArtifactKind.TEST_CASE, "testcases", "TC"),
            (ArtifactKind.INFORMATION, "information", "INFO"),
            (ArtifactKind.RISK, "risks", "RISK"),
            (ArtifactKind.DOCUMENT, "documents", "DOC"),
            (ArtifactKind.LINK, "links", "LINK"),
            (ArtifactKind.PROJECT, "projects", "PROJ"),
            (ArtifactKind.USER, "users", "USER"),
            (ArtifactKind.CUSTOM_ATTRIBUTE, "custom-attributes", "ATTR"),
            (ArtifactKind.WORKFLOW, "workflows", "WF"),
        ],
    )
    def test_folder_and_prefix(self, kind: ArtifactKind, folder: str, prefix: str) -> None:
        schema = get_schema(kind)
        assert schema.folder == folder
        assert schema.id_prefix == prefix

    def test_relative_path(self) -> None:
        assert get_schema("requirement").relative_path("REQ-001") == "requirements/REQ-001.md"

    def test_get_schema_unknown_kind(self) -> None:
        with pytest.raises(UnknownArtifactKindError) as exc_info:
            _ = get_schema("widget")
        assert exc_info.value.value == "widget"

    def test_schema_for_record(self) -> None:
        assert schema_for(Requirement()).kind is ArtifactKind.REQUIREMENT
        assert schema_for(User()).kind is ArtifactKind.USER

    def test_defaults_match_record_defaults(self) -> None:
        defaults = get_schema("requirement").defaults
        assert defaults["status"] == "draft"
        assert defaults["revision"] == "01"
        assert defaults["use_case_ids"] == ()


class TestKindForId:
    @pytest.mark.parametrize(
        ("artifact_id", "kind"),
        [
            ("REQ-001", ArtifactKind.REQUIREMENT),
            ("UC-010", ArtifactKind.USE_CASE),
            ("TC-3", ArtifactKind.TEST_CASE),
            ("INFO-001", ArtifactKind.INFORMATION),
            ("RISK-001", ArtifactKind.RISK),
            ("PROJ-001", ArtifactKind.PROJECT),
            ("ATTR-001", ArtifactKind.CUSTOM_ATTRIBUTE),
            ("WF-002", ArtifactKind.WORKFLOW),
        ],
    )
    def test_infers_kind(self, artifact_id: str, kind: ArtifactKind) -> None:
        assert kind_for_id(artifact_id) is kind

    def test_unknown_prefix_raises(self) -> None:
        with pytest.raises(UnknownArtifactKindError):
            _ = kind_for_id("XYZ-001")
