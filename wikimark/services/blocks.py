#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Block assembly
==============
Both dialect scanners turn lines into a flat stream of ``Token`` values; the
``BlockAssembler`` consumes that stream and owns every piece of open-block
state (paragraph buffer, list stack, table buffer, blockquote buffer,
definition list).  Opening any block first closes whatever else was open,
and ``finish()`` closes everything, so no table, list or quote can be left
unterminated.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterable

from .markup import escape, heading_anchor


# -----------------------------------------------------------------------------
# Tokens
# -----------------------------------------------------------------------------

class Kind(Enum):
    PLACEHOLDER        = auto()
    TABLE_START        = auto()
    TABLE_CAPTION      = auto()
    TABLE_ROW_SEP      = auto()
    TABLE_CELLS        = auto()   # cells appended to the current row
    TABLE_ROW          = auto()   # a complete row
    TABLE_CONTINUATION = auto()   # text appended to the last cell
    TABLE_END          = auto()
    RULE               = auto()
    HEADING            = auto()
    LIST_ITEM          = auto()
    DEFINITION         = auto()
    INDENT             = auto()
    QUOTE              = auto()
    BLANK              = auto()
    TEXT               = auto()


@dataclass(frozen=True)
class Cell:
    text: str
    header: bool = False
    colspan: int = 1
    rowspan: int = 1
    align: str = ""       # css class, e.g. "text-center"
    bgcolor: str = ""     # already validated by the scanner


@dataclass(frozen=True)
class Token:
    kind: Kind
    text: str = ""
    level: int = 0
    tags: tuple[str, ...] = ()          # list tag per nesting level
    cells: tuple[Cell, ...] = ()
    detail: str | None = None           # definition body


_TABLE_KINDS = frozenset({
    Kind.TABLE_START, Kind.TABLE_CAPTION, Kind.TABLE_ROW_SEP, Kind.TABLE_CELLS,
    Kind.TABLE_ROW, Kind.TABLE_CONTINUATION, Kind.TABLE_END,
})


# -----------------------------------------------------------------------------
# Table buffer
# -----------------------------------------------------------------------------

@dataclass
class _Table:
    caption: str | None = None
    rows: list[str] = field(default_factory=list)
    row: list[list[str]] = field(default_factory=list)    # [open_tag, inner, close_tag]

    def end_row(self) -> None:
        if self.row:
            self.rows.append("<tr>" + "".join("".join(c) for c in self.row) + "</tr>")
            self.row = []

    def render(self) -> str:
        self.end_row()
        if not self.rows and self.caption is None:
            return ""
        caption = f"<caption>{self.caption}</caption>" if self.caption is not None else ""
        return f'<table class="wiki-table">{caption}{"".join(self.rows)}</table>'


def _cell_open_tag(cell: Cell) -> str:
    tag = "th" if cell.header else "td"
    attrs = ""
    if cell.align:
        attrs += f' class="{escape(cell.align)}"'
    if cell.colspan > 1:
        attrs += f' colspan="{cell.colspan}"'
    if cell.rowspan > 1:
        attrs += f' rowspan="{cell.rowspan}"'
    if cell.bgcolor:
        attrs += f' style="background-color:{escape(cell.bgcolor)}"'
    return f"<{tag}{attrs}>"


# -----------------------------------------------------------------------------
# Assembler
# -----------------------------------------------------------------------------

class BlockAssembler:
    """Consume tokens, emit HTML lines.  *inline* renders one text fragment."""

    def __init__(self, inline: Callable[[str], str]) -> None:
        self._inline = inline
        self._out: list[str] = []
        self._para: list[str] = []
        self._lists: list[list] = []        # [tag, li_open]
        self._table: _Table | None = None
        self._quote: list[str] = []
        self._defs: list[str] = []

    # ── public ──────────────────────────────────────────────────────────────

    def feed_all(self, tokens: Iterable[Token]) -> str:
        for token in tokens:
            self.feed(token)
        return self.finish()

    def finish(self) -> str:
        self._flush()
        return "\n".join(self._out)

    def feed(self, token: Token) -> None:
        kind = token.kind

        if kind in _TABLE_KINDS:
            self._feed_table(token)
            return

        if kind is Kind.PLACEHOLDER:
            self._flush()
            self._out.append(token.text)
        elif kind is Kind.RULE:
            self._flush()
            self._out.append('<hr class="wiki-hr"/>')
        elif kind is Kind.HEADING:
            self._flush()
            level = min(max(token.level, 1), 6)
            anchor = escape(heading_anchor(token.text))
            self._out.append(
                f'<h{level} id="{anchor}" class="wiki-heading wiki-h{level}">'
                f'{self._inline(token.text)}</h{level}>'
            )
        elif kind is Kind.LIST_ITEM:
            self._flush(keep="list")
            self._list_item(token.tags, self._inline(token.text))
        elif kind is Kind.DEFINITION:
            self._flush(keep="defs")
            self._defs.append(f"<dt>{self._inline(token.text)}</dt>")
            if token.detail is not None:
                self._defs.append(f"<dd>{self._inline(token.detail)}</dd>")
        elif kind is Kind.INDENT:
            self._flush()
            depth = max(token.level, 1)
            self._out.append(
                f'<div class="wiki-indent" style="margin-left:{depth * 2}em">'
                f'{self._inline(token.text)}</div>'
            )
        elif kind is Kind.QUOTE:
            self._flush(keep="quote")
            self._quote.append(self._inline(token.text))
        elif kind is Kind.BLANK:
            self._flush()
        else:
            self._flush(keep="para")
            self._para.append(self._inline(token.text))

    # ── tables ──────────────────────────────────────────────────────────────

    def _feed_table(self, token: Token) -> None:
        kind = token.kind
        if kind is Kind.TABLE_START:
            self._flush()
            self._table = _Table()
            return
        if kind is Kind.TABLE_END:
            self._flush_table()
            return

        self._flush(keep="table")
        if self._table is None:
            self._table = _Table()
        table = self._table

        if kind is Kind.TABLE_CAPTION:
            caption = self._inline(token.text)
            table.caption = caption if table.caption is None else f"{table.caption} {caption}"
        elif kind is Kind.TABLE_ROW_SEP:
            table.end_row()
        elif kind is Kind.TABLE_CELLS:
            table.row.extend(self._cells(token.cells))
        elif kind is Kind.TABLE_ROW:
            table.end_row()
            table.row.extend(self._cells(token.cells))
            table.end_row()
        elif kind is Kind.TABLE_CONTINUATION:
            if table.row:
                table.row[-1][1] += " " + self._inline(token.text)
            else:
                table.row.extend(self._cells((Cell(token.text),)))

    def _cells(self, cells: Iterable[Cell]) -> list[list[str]]:
        return [
            [_cell_open_tag(c), self._inline(c.text), "</th>" if c.header else "</td>"]
            for c in cells
        ]

    # ── lists ───────────────────────────────────────────────────────────────

    def _list_item(self, tags: tuple[str, ...], content: str) -> None:
        depth = len(tags)

        # Close levels that are too deep or whose tag no longer matches.
        keep = 0
        while keep < min(depth, len(self._lists)) and self._lists[keep][0] == tags[keep]:
            keep += 1
        while len(self._lists) > keep:
            self._close_list_level()

        if len(self._lists) == depth:
            # Sibling item at the current depth.
            if self._lists[-1][1]:
                self._out.append("</li>")
            self._out.append(f"<li>{content}")
            self._lists[-1][1] = True
            return

        # Open deeper levels; every intermediate level needs an <li> host.
        while len(self._lists) < depth:
            if self._lists and not self._lists[-1][1]:
                self._out.append("<li>")
                self._lists[-1][1] = True
            tag = tags[len(self._lists)]
            self._out.append(f'<{tag} class="wiki-list">')
            self._lists.append([tag, False])
        self._out.append(f"<li>{content}")
        self._lists[-1][1] = True

    def _close_list_level(self) -> None:
        tag, li_open = self._lists.pop()
        if li_open:
            self._out.append("</li>")
        self._out.append(f"</{tag}>")

    # ── flushing ────────────────────────────────────────────────────────────

    def _flush(self, keep: str = "") -> None:
        if keep != "para" and self._para:
            self._out.append(f"<p>{'<br/>'.join(self._para)}</p>")
            self._para = []
        if keep != "list":
            while self._lists:
                self._close_list_level()
        if keep != "table":
            self._flush_table()
        if keep != "quote" and self._quote:
            self._out.append(f'<blockquote class="wiki-quote">{"<br/>".join(self._quote)}</blockquote>')
            self._quote = []
        if keep != "defs" and self._defs:
            self._out.append(f'<dl class="wiki-deflist">{"".join(self._defs)}</dl>')
            self._defs = []

    def _flush_table(self) -> None:
        if self._table is not None:
            rendered = self._table.render()
            self._table = None
            if rendered:
                self._out.append(rendered)


# -----------------------------------------------------------------------------
