"""Read and write spot .mdx files (frontmatter header + markdown body).

The header is a small YAML subset: scalars, nested mappings by two-space
indent, block lists (indented or compact) and flow lists of scalars, and
`#` comment lines. It is parsed into an ordered mapping and re-serialized
deterministically, so patching one field never drops another.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import FormatError
from .models.venue import VenueRecord

_KEY_RE = re.compile(r"^(?P<indent>\s*)(?P<key>[A-Za-z0-9_\-]+):(?:\s+(?P<value>.*))?$")
_ITEM_RE = re.compile(r"^(?P<indent>\s*)-\s*(?P<value>.*)$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?$")


@dataclass
class MdxDocument:
    frontmatter: dict[str, Any] = field(default_factory=dict)
    body: str = ""


def split_mdx(text: str) -> tuple[str, str]:
    """Split raw file text into (header text, body text).

    Raises:
        FormatError: If the file does not open with a ----delimited block
    """
    text = text.replace("\r\n", "\n")
    lines = text.split("\n")
    if not lines or lines[0].strip() != "---":
        raise FormatError("Invalid MDX format - no frontmatter found")

    for idx in range(1, len(lines)):
        if lines[idx].strip() == "---":
            header = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1 :])
            return header, body

    raise FormatError("Invalid MDX format - frontmatter is not closed")


def read_mdx_text(file_path: Path) -> str:
    """Read a spot file as UTF-8.

    Raises:
        FormatError: If the file is not valid UTF-8
        OSError: If the file cannot be read
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"{file_path.name} is not valid UTF-8: {e}") from e


def parse_mdx(text: str) -> MdxDocument:
    """Parse a spot file into its header mapping and trimmed body."""
    header, body = split_mdx(text)
    return MdxDocument(frontmatter=parse_frontmatter(header), body=body.strip())


@dataclass(frozen=True, eq=False)
class HeaderComment:
    """A `#` comment line, kept as a mapping key so it survives a rewrite."""

    text: str


def parse_frontmatter(header: str) -> dict[str, Any]:
    """Parse header text into an ordered (nested) mapping.

    Comment lines become HeaderComment keys (value None) in place.
    """
    lines = [line for line in header.split("\n") if line.strip()]
    data, _ = _parse_block(lines, 0, 0)
    return data


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def _parse_block(lines: list[str], start: int, indent: int) -> tuple[dict[str, Any], int]:
    data: dict[Any, Any] = {}
    i = start
    while i < len(lines):
        line = lines[i]
        line_indent = _indent_of(line)
        if line_indent < indent:
            break

        if _is_comment(line):
            data[HeaderComment(line.strip())] = None
            i += 1
            continue

        match = _KEY_RE.match(line)
        if not match:
            raise FormatError(f"Unparseable frontmatter line: {line.strip()!r}")

        key = match.group("key")
        value = match.group("value")
        i += 1

        if value is not None and value.strip() != "":
            data[key] = _parse_scalar(value)
            continue

        # Empty value: a block list (at the key's indent or deeper), a nested mapping, or null
        if i < len(lines) and _ITEM_RE.match(lines[i]) and _indent_of(lines[i]) >= line_indent:
            item_indent = _indent_of(lines[i])
            items: list[Any] = []
            while i < len(lines) and _indent_of(lines[i]) == item_indent:
                item_match = _ITEM_RE.match(lines[i])
                if not item_match:
                    break
                items.append(_parse_scalar(item_match.group("value")))
                i += 1
            data[key] = items
        elif i < len(lines) and _indent_of(lines[i]) > line_indent and not _is_comment(lines[i]):
            data[key], i = _parse_block(lines, i, _indent_of(lines[i]))
        else:
            data[key] = None
    return data, i


def _parse_scalar(value: str) -> Any:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        inner = value[1:-1]
        return re.sub(r"\\(.)", lambda m: {"n": "\n", "t": "\t"}.get(m.group(1), m.group(1)), inner)
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        if not inner:
            return []
        return [_parse_scalar(item) for item in inner.split(",") if item.strip()]

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in {"null", "~"}:
        return None
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{text}"'


def serialize_frontmatter(data: dict[str, Any], indent: int = 0) -> str:
    """Serialize a header mapping, keys in insertion order."""
    pad = " " * indent
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(key, HeaderComment):
            lines.append(f"{pad}{key.text}")
        elif isinstance(value, dict):
            lines.append(f"{pad}{key}:")
            nested = serialize_frontmatter(value, indent + 2)
            if nested:
                lines.append(nested)
        elif isinstance(value, list):
            if not value:
                lines.append(f"{pad}{key}: []")
                continue
            lines.append(f"{pad}{key}:")
            for item in value:
                lines.append(f"{pad}  - {format_scalar(item)}")
        else:
            lines.append(f"{pad}{key}: {format_scalar(value)}")
    return "\n".join(lines)


def without_comments(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of a header mapping with HeaderComment keys removed at every level."""
    return {
        key: without_comments(value) if isinstance(value, dict) else value
        for key, value in data.items()
        if not isinstance(key, HeaderComment)
    }


def set_author(frontmatter: dict[str, Any], author: str) -> dict[str, Any]:
    """Return a copy with `author` set, inserted after `title` when absent."""
    if "author" in frontmatter:
        updated = dict(frontmatter)
        updated["author"] = author
        return updated

    updated: dict[str, Any] = {}
    for key, value in frontmatter.items():
        updated[key] = value
        if key == "title":
            updated["author"] = author
    if "author" not in updated:
        updated = {"author": author, **updated}
    return updated


def build_mdx(frontmatter: dict[str, Any], body: str, author: str | None = None) -> str:
    """Assemble file text from a header mapping and a markdown body."""
    if author:
        frontmatter = set_author(frontmatter, author)
    return f"---\n{serialize_frontmatter(frontmatter)}\n---\n\n{body.strip()}\n"


def render_venue_record(record: VenueRecord) -> str:
    return build_mdx(record.frontmatter(), record.body)


def venue_record_from_mdx(text: str, slug: str) -> VenueRecord:
    """Parse and validate a spot file against the content schema.

    Raises:
        FormatError: If the layout or any field fails validation
    """
    doc = parse_mdx(text)
    fields = {k: v for k, v in without_comments(doc.frontmatter).items() if k in {"title", "author", "address", "neighborhood", "metrics"}}
    try:
        return VenueRecord(slug=slug, body=doc.body, **fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise FormatError(problems) from e
