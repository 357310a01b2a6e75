"""Line-oriented frontmatter parser and emitter.

Artifact files start with a block of ``key: value`` lines between ``---``
delimiters. The block is a small subset of YAML described by this grammar::

    document     := [ "---" NL frontmatter [ "---" NL ] ] body
    frontmatter  := { entry | blank | comment }
    entry        := key ":" ( inline | NL block )
    inline       := flow | quoted | plain
    block        := list | scalar
    list         := { indent "- " inline NL }
    scalar       := ( "|" | "|-" ) NL { indent text NL }

The parser never raises: lines it cannot classify are skipped and values it
cannot decode are kept as strings. The emitter only produces the subset above,
and its output is also valid YAML.
"""

import re
from typing import TYPE_CHECKING, Final

import orjson
import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

type FrontmatterScalar = str | int | float | bool | None
type FrontmatterValue = (
    FrontmatterScalar | list[FrontmatterValue] | dict[str, FrontmatterValue]
)

DELIMITER: Final = "---"

_KEY_PATTERN: Final = re.compile(r"^([A-Za-z_][A-Za-z0-9_.-]*)\s*:(.*)$")
_INT_PATTERN: Final = re.compile(r"^[-+]?\d+$")
_FLOAT_PATTERN: Final = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$")

_ESCAPE_TABLE: Final = {
    ord("\\"): "\\\\",
    ord('"'): '\\"',
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    **{
        code: f"\\u{code:04x}"
        for code in (*range(0x20), 0x7F, 0x85, 0x2028, 0x2029, 0xFEFF)
        if code not in (0x09, 0x0A, 0x0D)
    },
}

_UNESCAPES: Final = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "/": "/",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}


# =============================================================================
# Escaping
# =============================================================================


def escape_string(value: str) -> str:
    r"""Escape a string for use inside double quotes.

    Backslashes are escaped before quotes, newlines become ``\n`` and other
    control characters become ``\uXXXX``.

    Example:
        >>> escape_string('say "hi"')
        'say \\"hi\\"'
    """
    return value.translate(_ESCAPE_TABLE)


def unescape_string(value: str) -> str:
    """Reverse escape_string in a single left-to-right pass.

    Unknown escape sequences are kept verbatim.
    """
    if "\\" not in value:
        return value

    result: list[str] = []
    index = 0
    length = len(value)
    while index < length:
        char = value[index]
        if char == "\\" and index + 1 < length:
            following = value[index + 1]
            if following in _UNESCAPES:
                result.append(_UNESCAPES[following])
                index += 2
                continue
            if following == "u":
                digits = value[index + 2 : index + 6]
                if len(digits) == 4 and all(c in "0123456789abcdefABCDEF" for c in digits):
                    result.append(chr(int(digits, 16)))
                    index += 6
                    continue
        result.append(char)
        index += 1
    return "".join(result)


# =============================================================================
# Emitting
# =============================================================================


def _dump_scalar(value: FrontmatterValue) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    return orjson.dumps(value).decode()


def dump_frontmatter(data: Mapping[str, FrontmatterValue]) -> str:
    """Serialize a mapping to a delimited frontmatter block.

    Keys are written in mapping order. None values are omitted, empty lists
    become ``key: []`` and non-empty lists become block lists.

    Args:
        data: Frontmatter values keyed by their serialized names.

    Returns:
        The block including both ``---`` lines and a trailing newline.
    """
    lines = [DELIMITER]
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, list | tuple):
            if not value:
                lines.append(f"{key}: []")
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {_dump_scalar(item)}" for item in value)
        else:
            lines.append(f"{key}: {_dump_scalar(value)}")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n"


# =============================================================================
# Parsing
# =============================================================================


def _normalize(value: object) -> FrontmatterValue:
    """Coerce values produced by PyYAML into frontmatter value types."""
    if value is None or isinstance(value, str | bool | int | float):
        return value
    if isinstance(value, list | tuple):
        return [_normalize(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    return str(value)


def _parse_flow(raw: str) -> FrontmatterValue:
    try:
        return _normalize(orjson.loads(raw))
    except orjson.JSONDecodeError:
        pass
    try:
        loaded = yaml.safe_load(raw)
    except (yaml.YAMLError, ValueError, RecursionError):
        # ValueError comes from implicit timestamps such as [2001-13-45] and
        # RecursionError from deeply nested collections.
        return raw
    if isinstance(loaded, list | dict):
        return _normalize(loaded)
    return raw


def parse_scalar(raw: str) -> FrontmatterValue:
    """Decode one inline value.

    Quoted strings are unquoted and unescaped, ``[...]`` and ``{...}`` are
    parsed as JSON or YAML flow collections, ``true``/``false`` become bools,
    ``null``/``~`` become None and numeric literals become numbers. Anything
    else is returned as the stripped string.
    """
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return unescape_string(value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        return _parse_flow(value)

    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "~"):
        return None
    try:
        if _INT_PATTERN.match(value):
            return int(value)
        if _FLOAT_PATTERN.match(value):
            return float(value)
    except ValueError:
        # int() refuses literals longer than sys.get_int_max_str_digits().
        return value
    return value


class _FrontmatterParser:
    """Recursive-descent reader over the lines of a frontmatter block."""

    __slots__: Final = ("_index", "_lines")

    def __init__(self, lines: Sequence[str]) -> None:
        self._lines: list[str] = [line.rstrip("\r") for line in lines]
        self._index: int = 0

    def parse(self) -> dict[str, FrontmatterValue]:
        result: dict[str, FrontmatterValue] = {}
        while self._index < len(self._lines):
            line = self._lines[self._index]
            self._index += 1
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            match = _KEY_PATTERN.match(line)
            if match is None:
                continue
            key, raw_value = match.group(1), match.group(2).strip()
            result[key] = self._parse_entry(raw_value)
        return result

    def _parse_entry(self, raw_value: str) -> FrontmatterValue:
        if raw_value in ("|", "|-", "|+"):
            return self._parse_block_scalar(keep_newline=raw_value != "|-")
        if raw_value:
            return parse_scalar(raw_value)
        return self._parse_block_list()

    def _is_list_item(self, line: str) -> bool:
        stripped = line.lstrip()
        return stripped == "-" or stripped.startswith("- ")

    def _parse_block_list(self) -> FrontmatterValue:
        items: list[FrontmatterValue] = []
        found = False
        while self._index < len(self._lines):
            line = self._lines[self._index]
            if not line.strip():
                self._index += 1
                continue
            if not self._is_list_item(line):
                break
            found = True
            self._index += 1
            item = line.lstrip()[1:].strip()
            if item:
                items.append(parse_scalar(item))
        return items if found else None

    def _parse_block_scalar(self, *, keep_newline: bool) -> str:
        collected: list[str] = []
        while self._index < len(self._lines):
            line = self._lines[self._index]
            if line.strip() and not line[0].isspace():
                break
            collected.append(line)
            self._index += 1

        while collected and not collected[-1].strip():
            _ = collected.pop()
        indents = [len(line) - len(line.lstrip()) for line in collected if line.strip()]
        indent = min(indents) if indents else 0
        text = "\n".join(line[indent:] for line in collected)
        return text + "\n" if keep_newline and text else text


def split_frontmatter(text: str) -> tuple[list[str] | None, str]:
    """Separate the frontmatter lines from the body.

    Returns:
        Tuple of (frontmatter lines or None when the text does not open with
        a delimiter, body text after the closing delimiter). When the closing
        delimiter is missing every remaining line is frontmatter and the body
        is empty.
    """
    lines = text.removeprefix("\ufeff").split("\n")
    if lines[0].strip() != DELIMITER:
        return None, text
    for index in range(1, len(lines)):
        if lines[index].strip() == DELIMITER:
            return lines[1:index], "\n".join(lines[index + 1 :])
    return lines[1:], ""


def parse_frontmatter(text: str) -> tuple[dict[str, FrontmatterValue], str]:
    """Parse frontmatter from markdown content.

    Args:
        text: Complete file content.

    Returns:
        Tuple of (frontmatter mapping, body). Content without an opening
        delimiter yields an empty mapping and the unchanged text.

    Example:
        >>> data, body = parse_frontmatter('---\\nid: "REQ-001"\\n---\\n# Title\\n')
        >>> data["id"], body
        ('REQ-001', '# Title\\n')
    """
    lines, body = split_frontmatter(text)
    if lines is None:
        return {}, body
    return _FrontmatterParser(lines).parse(), body
