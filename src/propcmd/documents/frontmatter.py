"""YAML frontmatter parsing and rendering for Markdown documents.

Frontmatter is the block fenced by ``---`` lines at the very top of a note.
Values are loaded with a narrowed YAML 1.2 style core schema so that what a
note author typed survives a round trip: dates stay ``YYYY-MM-DD`` strings,
``yes``/``no`` stay strings, numbers are only recognised in the form they are
written back in (so ``01234`` or ``1e3`` stay strings), and an empty value
stays empty rather than turning into the word ``null``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import yaml

from .errors import FrontmatterError

FENCE = "---"
BOM = "\ufeff"

_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
_NULL_TAG = "tag:yaml.org,2002:null"

_CORE_BOOL = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")
# Canonical decimal integers only; leading zeros and signs like "+5" stay text.
_CORE_INT = re.compile(r"^(?:0|-?[1-9][0-9]*)$")
# Decimal floats as PyYAML writes them back: no trailing zeros beyond ".0",
# exponents only in the "1.0e+20" form.
_CORE_FLOAT = re.compile(
    r"^(?:-?(?:0|[1-9][0-9]*)\.(?:0|[0-9]*[1-9])"
    r"|-?[1-9]\.[0-9]+e[-+][0-9]+"
    r"|-?\.inf|\.nan)$"
)


def _core_resolvers(base: type[yaml.resolver.BaseResolver]) -> dict[str, list[Any]]:
    replaced = {_BOOL_TAG, _INT_TAG, _FLOAT_TAG, _TIMESTAMP_TAG}
    table: dict[str, list[Any]] = {}
    for first, entries in base.yaml_implicit_resolvers.items():
        kept = [(tag, regexp) for tag, regexp in entries if tag not in replaced]
        if kept:
            table[first] = kept
    return table


def _install_core_schema(cls: type[yaml.resolver.BaseResolver]) -> None:
    cls.yaml_implicit_resolvers = _core_resolvers(cls)
    cls.add_implicit_resolver(_BOOL_TAG, _CORE_BOOL, list("tTfF"))
    cls.add_implicit_resolver(_INT_TAG, _CORE_INT, list("-0123456789"))
    cls.add_implicit_resolver(_FLOAT_TAG, _CORE_FLOAT, list("-.0123456789"))


class FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader using core-schema scalars and no timestamp conversion."""


_install_core_schema(FrontmatterLoader)


class FrontmatterDumper(yaml.SafeDumper):
    """SafeDumper matching :class:`FrontmatterLoader` and indenting block lists."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def _represent_none(dumper: yaml.SafeDumper, _: None) -> yaml.ScalarNode:
    return dumper.represent_scalar(_NULL_TAG, "")


_install_core_schema(FrontmatterDumper)
FrontmatterDumper.add_representer(type(None), _represent_none)


@dataclass
class ParsedDocument:
    """A Markdown document split into its metadata block and body.

    Attributes:
        block: Parsed frontmatter mapping, or None when the document has none.
        body: Everything after the closing fence (or the whole text without a block).
        newline: Line terminator used by the fence, reused when rendering.
        bom: Byte-order mark that preceded the document, if any.
    """

    block: dict[str, Any] | None
    body: str
    newline: str = "\n"
    bom: str = ""

    def render(self, block: dict[str, Any] | None) -> str:
        """Return the document text with ``block`` as its frontmatter."""
        return render_document(block, self.body, newline=self.newline, bom=self.bom)


def parse_document(text: str) -> ParsedDocument:
    """Split ``text`` into frontmatter and body.

    A missing or unterminated opening fence means the document has no
    frontmatter. An empty block parses as an empty mapping.

    Raises:
        FrontmatterError: If the block is not valid YAML or not a mapping.
    """
    bom = BOM if text.startswith(BOM) else ""
    content = text[len(bom) :]
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FENCE:
        newline = "\r\n" if "\r\n" in content else "\n"
        return ParsedDocument(block=None, body=content, newline=newline, bom=bom)

    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    closing = next(
        (index for index in range(1, len(lines)) if lines[index].rstrip("\r\n") == FENCE),
        None,
    )
    if closing is None:
        return ParsedDocument(block=None, body=content, newline=newline, bom=bom)

    yaml_text = "".join(lines[1:closing])
    body = "".join(lines[closing + 1 :])
    try:
        data = yaml.load(yaml_text, Loader=FrontmatterLoader)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid frontmatter YAML: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError("Frontmatter must contain a mapping at the top level.")
    return ParsedDocument(block=data, body=body, newline=newline, bom=bom)


def split_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Return ``(block, body)`` for ``text``; see :func:`parse_document`."""
    parsed = parse_document(text)
    return parsed.block, parsed.body


def dump_block(block: dict[str, Any]) -> str:
    """Serialize a metadata block to YAML without fences."""
    return yaml.dump(
        block,
        Dumper=FrontmatterDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=4096,
    )


def render_document(
    block: dict[str, Any] | None,
    body: str,
    *,
    newline: str = "\n",
    bom: str = "",
) -> str:
    """Return document text for ``block`` followed by ``body``.

    An empty or missing block produces the body alone, without fences.
    """
    if not block:
        return bom + body
    yaml_text = dump_block(block)
    if newline != "\n":
        yaml_text = yaml_text.replace("\n", newline)
    return f"{bom}{FENCE}{newline}{yaml_text}{FENCE}{newline}{body}"


__all__ = [
    "FrontmatterDumper",
    "FrontmatterLoader",
    "ParsedDocument",
    "dump_block",
    "parse_document",
    "render_document",
    "split_frontmatter",
]
