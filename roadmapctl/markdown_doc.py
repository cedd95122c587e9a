"""Structural view of a Markdown document: top-level headings and tables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token

__all__ = [
    "Heading",
    "Link",
    "TableCell",
    "TableRow",
    "Table",
    "MarkdownDocument",
    "parse_markdown",
]


@dataclass
class Heading:
    level: int
    text: str
    start_line: int


@dataclass
class Link:
    text: str
    destination: str


@dataclass
class TableCell:
    text: str
    links: list[Link] = field(default_factory=list)


@dataclass
class TableRow:
    cells: list[TableCell] = field(default_factory=list)


@dataclass
class Table:
    section: str
    start_line: int
    headers: list[str] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)


@dataclass
class MarkdownDocument:
    headings: list[Heading] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)

    def has_heading(self, text: str) -> bool:
        """Report whether any top-level heading has exactly this text."""
        return any(heading.text == text for heading in self.headings)

    def table_by_section(self, section: str) -> Table | None:
        """Return the first table found under the heading ``section``."""
        return next((table for table in self.tables if table.section == section), None)


def _build_parser() -> MarkdownIt:
    parser = MarkdownIt("commonmark").enable("table")
    # Keep link destinations as written instead of percent-encoding them.
    parser.normalizeLink = lambda url: url
    parser.validateLink = lambda url: True
    return parser


_PARSER = _build_parser()


def parse_markdown(source: bytes | str) -> MarkdownDocument:
    """Collect top-level headings and tables; each table records its section."""
    text = source.decode("utf-8", errors="replace") if isinstance(source, bytes) else source
    tokens = _PARSER.parse(text)
    doc = MarkdownDocument()
    section = ""
    for index, token in enumerate(tokens):
        if token.level != 0:
            continue
        if token.type == "heading_open":
            inline = tokens[index + 1]
            heading = Heading(
                level=int(token.tag[1:]),
                text=_inline_text(inline.children or []),
                start_line=_start_line(token),
            )
            doc.headings.append(heading)
            section = heading.text
        elif token.type == "table_open":
            end = next(
                j
                for j in range(index, len(tokens))
                if tokens[j].type == "table_close" and tokens[j].level == 0
            )
            doc.tables.append(_parse_table(tokens[index : end + 1], section))
    return doc


def _start_line(token: Token) -> int:
    return token.map[0] + 1 if token.map else 0


def _parse_table(tokens: list[Token], section: str) -> Table:
    table = Table(section=section, start_line=_start_line(tokens[0]))
    in_head = False
    current: list[TableCell] = []
    for token in tokens:
        match token.type:
            case "thead_open":
                in_head = True
            case "thead_close":
                in_head = False
            case "tr_open":
                current = []
            case "tr_close":
                if in_head:
                    table.headers = [cell.text for cell in current]
                else:
                    table.rows.append(TableRow(cells=current))
            case "inline":
                children = token.children or []
                current.append(TableCell(text=_inline_text(children), links=_links(children)))
    return table


def _without_autolinks(tokens: Iterable[Token]) -> Iterator[Token]:
    skipping = False
    for token in tokens:
        if token.markup == "autolink" and token.type in ("link_open", "link_close"):
            skipping = token.type == "link_open"
            continue
        if not skipping:
            yield token


def _text_parts(tokens: Iterable[Token]) -> Iterator[str]:
    for token in _without_autolinks(tokens):
        if token.type in ("text", "code_inline"):
            yield token.content
        elif token.type == "image" and token.children:
            yield from _text_parts(token.children)


def _inline_text(tokens: Iterable[Token]) -> str:
    return " ".join(" ".join(_text_parts(tokens)).split())


def _links(tokens: list[Token]) -> list[Link]:
    links = []
    for index, token in enumerate(tokens):
        if token.type != "link_open" or token.markup == "autolink":
            continue
        end = next(
            (j for j in range(index + 1, len(tokens)) if tokens[j].type == "link_close"),
            len(tokens),
        )
        destination = str(token.attrGet("href") or "")
        links.append(
            Link(
                text=_inline_text(tokens[index + 1 : end]),
                destination=_normalize_link(destination),
            )
        )
    return links


def _normalize_link(destination: str) -> str:
    destination = destination.strip()
    if os.sep != "/":
        destination = destination.replace(os.sep, "/")
    return destination.removeprefix("./")