"""Unit tests for the frontmatter grammar."""

import pytest
import yaml

from tracyfy.artifacts import (
    dump_frontmatter,
    escape_string,
    parse_frontmatter,
    unescape_string,
)
from tracyfy.artifacts._frontmatter import parse_scalar, split_frontmatter

# =============================================================================
# Escaping
# =============================================================================


class TestEscapeString:
    def test_escapes_backslash_before_quote(self) -> None:
        assert escape_string('a\\"b') == 'a\\\\\\"b'

    def test_escapes_newline_carriage_return_and_tab(self) -> None:
        assert escape_string("a\nb\rc\td") == "a\\nb\\rc\\td"

    def test_escapes_other_control_characters_as_unicode(self) -> None:
        assert escape_string("bell\x07") == "bell\\u0007"

    def test_leaves_yaml_special_characters_alone(self) -> None:
        assert escape_string("key: value # comment") == "key: value # comment"


class TestUnescapeString:
    @pytest.mark.parametrize(
        "value",
        [
            'Test with "quotes" and: colons',
            "back\\slash",
            "multi\nline\r\nwith\ttabs",
            "ends with backslash\\",
            "emoji 🎉 and ünïcödé",
            "\x00\x1f\x7f",
        ],
    )
    def test_reverses_escape_string(self, value: str) -> None:
        assert unescape_string(escape_string(value)) == value

    def test_keeps_unknown_escape_verbatim(self) -> None:
        assert unescape_string("C:\\path\\x") == "C:\\path\\x"

    def test_incomplete_unicode_escape_is_kept(self) -> None:
        assert unescape_string("\\u12") == "\\u12"


# =============================================================================
# Scalars
# =============================================================================


class TestParseScalar:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("False", False),
            ("null", None),
            ("~", None),
            ("42", 42),
            ("-7", -7),
            ("3.5", 3.5),
            ("1e3", 1000.0),
            ("plain text", "plain text"),
            ("  padded  ", "padded"),
            ('"quoted: value"', "quoted: value"),
            ("'it''s'", "it's"),
            ('"42"', "42"),
        ],
    )
    def test_decodes_value(self, raw: str, expected: object) -> None:
        assert parse_scalar(raw) == expected

    def test_parses_json_flow_list(self) -> None:
        assert parse_scalar('["UC-001", "UC-002"]') == ["UC-001", "UC-002"]

    def test_parses_yaml_flow_list(self) -> None:
        assert parse_scalar("[UC-001, UC-002]") == ["UC-001", "UC-002"]

    def test_parses_json_object(self) -> None:
        assert parse_scalar('{"targetId": "REQ-002", "type": "parent"}') == {
            "targetId": "REQ-002",
            "type": "parent",
        }

    def test_unparseable_flow_stays_string(self) -> None:
        assert parse_scalar("[unclosed, {") == "[unclosed, {"

    def test_integer_past_digit_limit_stays_string(self) -> None:
        digits = "1" * 5000
        assert parse_scalar(digits) == digits

    def test_deep_nesting_stays_string(self) -> None:
        nested = "[" * 3000 + "]" * 3000
        assert parse_scalar(nested) == nested


# =============================================================================
# Splitting
# =============================================================================


class TestSplitFrontmatter:
    def test_returns_none_without_opening_delimiter(self) -> None:
        assert split_frontmatter("# Just a body\n") == (None, "# Just a body\n")

    def test_missing_closing_delimiter_scans_to_end(self) -> None:
        lines, body = split_frontmatter('---\nid: "REQ-001"\ntitle: "T"')
        assert lines == ['id: "REQ-001"', 'title: "T"']
        assert body == ""

    def test_body_follows_closing_delimiter(self) -> None:
        lines, body = split_frontmatter("---\na: 1\n---\n\n# T\n")
        assert lines == ["a: 1"]
        assert body == "\n# T\n"

    def test_leading_byte_order_mark_is_skipped(self) -> None:
        lines, body = split_frontmatter("\ufeff---\na: 1\n---\nbody")
        assert lines == ["a: 1"]
        assert body == "body"


# =============================================================================
# Parsing
# =============================================================================


class TestParseFrontmatter:
    def test_no_frontmatter_returns_empty_mapping_and_text(self) -> None:
        assert parse_frontmatter("hello") == ({}, "hello")

    def test_empty_text(self) -> None:
        assert parse_frontmatter("") == ({}, "")

    def test_parses_inline_values(self) -> None:
        text = '---\nid: "REQ-001"\nrevision: "01"\ndateCreated: 1700000000000\nisDeleted: false\n---\n'
        data, _ = parse_frontmatter(text)
        assert data == {
            "id": "REQ-001",
            "revision": "01",
            "dateCreated": 1700000000000,
            "isDeleted": False,
        }

    def test_parses_block_list(self) -> None:
        text = '---\nuseCaseIds:\n  - "UC-001"\n  - UC-002\nstatus: "draft"\n---\n'
        data, _ = parse_frontmatter(text)
        assert data["useCaseIds"] == ["UC-001", "UC-002"]
        assert data["status"] == "draft"

    def test_key_without_value_or_items_is_none(self) -> None:
        data, _ = parse_frontmatter("---\nauthor:\nstatus: draft\n---\n")
        assert data["author"] is None
        assert data["status"] == "draft"

    def test_parses_block_list_of_objects(self) -> None:
        text = '---\nlinkedArtifacts:\n  - {"targetId":"REQ-002","type":"parent"}\n---\n'
        data, _ = parse_frontmatter(text)
        assert data["linkedArtifacts"] == [{"targetId": "REQ-002", "type": "parent"}]

    def test_parses_literal_block_scalar(self) -> None:
        text = "---\nnotes: |\n  first\n    indented\n  last\nnext: 1\n---\n"
        data, _ = parse_frontmatter(text)
        assert data["notes"] == "first\n  indented\nlast\n"
        assert data["next"] == 1

    def test_strip_chomping_block_scalar(self) -> None:
        data, _ = parse_frontmatter("---\nnotes: |-\n  only\n---\n")
        assert data["notes"] == "only"

    def test_skips_comments_and_unrecognized_lines(self) -> None:
        data, _ = parse_frontmatter("---\n# comment\n!!garbage\nid: X\n---\n")
        assert data == {"id": "X"}

    def test_handles_crlf_line_endings(self) -> None:
        data, body = parse_frontmatter('---\r\nid: "REQ-001"\r\n---\r\n# T\r\n')
        assert data == {"id": "REQ-001"}
        assert body == "# T\r\n"

    def test_quoted_value_with_colons_and_quotes(self) -> None:
        data, _ = parse_frontmatter('---\ntitle: "Test with \\"quotes\\" and: colons"\n---\n')
        assert data["title"] == 'Test with "quotes" and: colons'


# =============================================================================
# Emitting
# =============================================================================


class TestDumpFrontmatter:
    def test_writes_delimited_block(self) -> None:
        assert dump_frontmatter({"id": "REQ-001"}) == '---\nid: "REQ-001"\n---\n'

    def test_writes_numbers_and_booleans_bare(self) -> None:
        text = dump_frontmatter({"dateCreated": 5, "isDeleted": True})
        assert "dateCreated: 5\n" in text
        assert "isDeleted: true\n" in text

    def test_skips_none_values(self) -> None:
        assert "deletedAt" not in dump_frontmatter({"deletedAt": None})

    def test_writes_empty_list_inline(self) -> None:
        assert "useCaseIds: []\n" in dump_frontmatter({"useCaseIds": []})

    def test_writes_block_list_with_quoted_items(self) -> None:
        text = dump_frontmatter({"useCaseIds": ["UC-001", "UC-002"]})
        assert 'useCaseIds:\n  - "UC-001"\n  - "UC-002"\n' in text

    def test_writes_mapping_items_as_json(self) -> None:
        text = dump_frontmatter({"linkedArtifacts": [{"targetId": "REQ-002", "type": "parent"}]})
        assert '  - {"targetId":"REQ-002","type":"parent"}\n' in text

    def test_keeps_key_order(self) -> None:
        text = dump_frontmatter({"b": 1, "a": 2})
        assert text.index("b:") < text.index("a:")

    def test_output_is_valid_yaml(self) -> None:
        data = {
            "id": "REQ-001",
            "title": 'Test with "quotes" and: colons # not a comment',
            "description": "line one\nline two\\",
            "count": 3,
            "flag": False,
            "empty": [],
            "ids": ["A", "B: C"],
            "links": [{"targetId": "REQ-002", "type": "parent"}],
        }
        text = dump_frontmatter(data)
        loaded = yaml.safe_load(text.removeprefix("---\n").removesuffix("---\n"))
        assert loaded == data

    def test_round_trips_through_parser(self) -> None:
        data = {
            "title": "emoji 🎉 \t tab",
            "n": -12,
            "ratio": 0.25,
            "ids": ["X", "Y"],
            "empty": [],
            "on": True,
        }
        parsed, body = parse_frontmatter(dump_frontmatter(data) + "body")
        assert parsed == data
        assert body == "body"
