"""Unit tests for record diffing."""

import pytest

from tracyfy.artifacts import (
    ArtifactLink,
    FieldChange,
    Requirement,
    Risk,
    diff_records,
)


def test_identical_records_have_no_changes() -> None:
    record = Requirement(id="REQ-001", title="Login")
    assert diff_records(record, record) == []


def test_reports_changes_in_field_order() -> None:
    old = Requirement(id="REQ-001", title="Login", status="draft", revision="01")
    new = Requirement(id="REQ-001", title="Sign in", status="approved", revision="02")

    assert diff_records(old, new) == [
        FieldChange(field="title", old="Login", new="Sign in"),
        FieldChange(field="status", old="draft", new="approved"),
        FieldChange(field="revision", old="01", new="02"),
    ]


def test_skips_last_modified_by_default() -> None:
    old = Requirement(id="REQ-001", last_modified=1)
    new = Requirement(id="REQ-001", last_modified=2)

    assert diff_records(old, new) == []
    assert diff_records(old, new, include_volatile=True) == [
        FieldChange(field="last_modified", old=1, new=2)
    ]


def test_compares_nested_values() -> None:
    old = Requirement(id="REQ-001")
    new = Requirement(
        id="REQ-001",
        linked_artifacts=(ArtifactLink(target_id="TC-001", link_type="verifies"),),
    )
    changes = diff_records(old, new)
    assert [c.field for c in changes] == ["linked_artifacts"]
    assert changes[0].old == ()


def test_rejects_different_kinds() -> None:
    with pytest.raises(TypeError, match="Cannot compare Requirement with Risk"):
        _ = diff_records(Requirement(), Risk())
