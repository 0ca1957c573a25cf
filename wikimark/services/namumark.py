#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
NamuMark compiler
=================
Convert a subset of NamuMark to HTML.

Supported syntax
----------------
= h1 =  ...  ====== h6 ======  (folding marks ==# h2 #== accepted)
'''bold''' / ''italic'' / ~~strike~~ / --strike-- / __underline__
^^superscript^^ / ,,subscript,,
[[page]] / [[page|display]] / [[https://...]] / [https://... text]
[[분류:name]]                                 — removed, collected
[[파일:name.png|width=200&align=center]]      — <figure>
{{{+1 text}}} / {{{-1 text}}}                 — relative size
{{{#f00 text}}} / {{{#red text}}}             — colour
{{{code}}}  /  {{{\\n...\\n}}}                 — inline code / code block
{{{#!syntax python ...}}}                     — highlighted code block
||cell||cell||  with <-2> <|2> <(> <:> <)> <#hex> cell options
* item / 1. item  (depth = leading spaces)
> quote
----
[* footnote] / [*A footnote]
[br] [date] [include(...)] [age(...)] [youtube(...)]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from datetime import date
from functools import partial
from typing import Callable, Iterator

from .blocks import BlockAssembler, Cell, Kind, Token
from .markup import (
    PLACEHOLDER_LINE_RE,
    CompiledMarkup,
    RenderContext,
    assemble,
    code_block,
    escape,
    external_link,
    highlight_code,
    inline_code,
    is_external_url,
    normalize_color,
    normalize_newlines,
    render_figure,
    render_footnote_marker,
    wiki_link,
)

log = logging.getLogger(__name__)


SIZE_STEP = 0.2
SIZE_MIN  = 0.6
SIZE_MAX  = 3.0


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------

_MAGIC_WORD_RE = re.compile(r"\[(?:목차|tableofcontents|각주|footnote)\]", re.IGNORECASE)

_SYNTAX_BLOCK_RE = re.compile(r"\{\{\{#!syntax\s+([\w+#.-]+)[^\n]*\n(.*?)\}\}\}", re.DOTALL)
# Innermost {{{...}}}: no "{{{" or "}}}" inside.
_BRACE_RE        = re.compile(r"\{\{\{((?:(?!\{\{\{|\}\}\}).)*)\}\}\}", re.DOTALL)
_COLOR_PREFIX_RE = re.compile(r"^#([0-9a-fA-F]{6}|[0-9a-fA-F]{3}|[a-zA-Z]{3,20})\s")
_SIZE_PREFIX_RE  = re.compile(r"^([+-])(\d)\s")
_WIKI_BLOCK_RE   = re.compile(r"^#!wiki\b[^\n]*\n?")

_CATEGORY_RE = re.compile(
    r"\[\[\s*(?:분류|Category)\s*:([^\]|]+)(?:\|[^\]]*)?\]\]", re.IGNORECASE
)
_FILE_RE = re.compile(
    r"\[\[\s*(?:파일|file|이미지|image)\s*:([^\]|]+)(?:\|([^\]]*))?\]\]", re.IGNORECASE
)
_WIDTH_RE = re.compile(r"^(\d+)(px|%)?$")
_ALIGNS = {"left", "right", "center"}

_FOOTNOTE_RE = re.compile(r"\[\*([A-Za-z]?)\s+([^\]]+)\]")

# Line classification
_RULE_RE    = re.compile(r"^-{4,}\s*$")
_HEADING_RE = re.compile(r"^(=+)#?\s*(.+?)\s*#?(=+)\s*$")
_LIST_RE    = re.compile(r"^( *)(\*|\d+\.|#)\s+(.*)$")
_QUOTE_RE   = re.compile(r"^>\s?(.*)$")
_INDENT_RE  = re.compile(r"^( +)(\S.*)$")
_CELL_OPTION_RE = re.compile(r"^<([^<>\x00]*)>")

# Inline (matched against escaped text: ' is &#x27;)
# Link targets and URLs never span a placeholder token.
_Q = "&#x27;"
_LINK_LABELLED_RE = re.compile(r"\[\[([^\]|\x00]+)\|([^\]]+)\]\]")
_LINK_BARE_RE     = re.compile(r"\[\[([^\]\x00]+)\]\]")
_EXT_LABELLED_RE  = re.compile(r"\[(https?://[^\s\]\x00]+)\s+([^\]]+)\]", re.IGNORECASE)
_EXT_BARE_RE      = re.compile(r"\[(https?://[^\s\]\x00]+)\]", re.IGNORECASE)
_BR_MACRO_RE      = re.compile(r"\[br\]", re.IGNORECASE)
_DATE_MACRO_RE    = re.compile(r"\[date\]", re.IGNORECASE)
_DROPPED_MACRO_RE = re.compile(r"\[(?:include|age)\([^)\x00]*\)\]", re.IGNORECASE)
_YOUTUBE_MACRO_RE = re.compile(r"\[youtube\([^)\x00]*\)\]", re.IGNORECASE)

_FORMATTING: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(rf"(?:{_Q}){{5}}(.+?)(?:{_Q}){{5}}"), r"<strong><em>\1</em></strong>"),
    (re.compile(rf"(?:{_Q}){{3}}(.+?)(?:{_Q}){{3}}"), r"<strong>\1</strong>"),
    (re.compile(rf"(?:{_Q}){{2}}(.+?)(?:{_Q}){{2}}"), r"<em>\1</em>"),
    (re.compile(r"~~(.+?)~~"),                      r"<del>\1</del>"),
    (re.compile(r"--(.+?)--"),                      r"<del>\1</del>"),
    (re.compile(r"__(.+?)__"),                      r"<u>\1</u>"),
    (re.compile(r"\^\^(.+?)\^\^"),                  r"<sup>\1</sup>"),
    (re.compile(r",,(.+?),,"),                      r"<sub>\1</sub>"),
)


# -----------------------------------------------------------------------------
# Pipeline stages:  stage(text, ctx) -> text
# -----------------------------------------------------------------------------

def _normalize(text: str, ctx: RenderContext) -> str:
    return normalize_newlines(text)


def _strip_magic_words(text: str, ctx: RenderContext) -> str:
    return _MAGIC_WORD_RE.sub("", text)


def _protect_literals(text: str, ctx: RenderContext) -> str:
    def _syntax(m: re.Match) -> str:
        code = m.group(2).strip("\n").rstrip()
        return ctx.protect(highlight_code(code, m.group(1)), code)

    return _SYNTAX_BLOCK_RE.sub(_syntax, text)


def font_size(delta: int) -> str:
    """Relative size for ``{{{+N``/``{{{-N``, clamped to [SIZE_MIN, SIZE_MAX] em."""
    size = min(SIZE_MAX, max(SIZE_MIN, 1 + delta * SIZE_STEP))
    return f"{round(size, 2):g}em"


def _resolve_brace(content: str, ctx: RenderContext) -> str:
    m = _COLOR_PREFIX_RE.match(content)
    color = normalize_color("#" + m.group(1)) if m else None
    if m and color:
        inner = content[m.end():]
        return ctx.protect(f'<span style="color:{escape(color)}">{escape(inner)}</span>', inner)

    m = _SIZE_PREFIX_RE.match(content)
    if m:
        delta = int(m.group(2)) * (-1 if m.group(1) == "-" else 1)
        inner = content[m.end():]
        return ctx.protect(f'<span style="font-size:{font_size(delta)}">{escape(inner)}</span>', inner)

    m = _WIKI_BLOCK_RE.match(content)
    if m:
        # {{{#!wiki style=...}}} is only a styled wrapper; its body is ordinary markup.
        return content[m.end():]

    if "\n" not in content:
        return ctx.protect(inline_code(content), content)
    return ctx.protect(code_block(content), content)


def _resolve_braces(text: str, ctx: RenderContext) -> str:
    """Interpret ``{{{...}}}`` innermost-first until nothing changes."""
    passes = 0
    while True:
        resolved = _BRACE_RE.sub(lambda m: _resolve_brace(m.group(1), ctx), text)
        if resolved == text:
            break
        text = resolved
        passes += 1
    log.debug("triple-brace resolution finished after %d passes", passes)
    return text


def _extract_categories(text: str, ctx: RenderContext) -> str:
    def _category(m: re.Match) -> str:
        name = ctx.unprotect(m.group(1)).strip()
        if name:
            ctx.categories.append(name)
        return ""

    return _CATEGORY_RE.sub(_category, text)


def _extract_images(text: str, ctx: RenderContext) -> str:
    def _file(m: re.Match) -> str:
        src = ctx.unprotect(m.group(1)).strip()
        classes: tuple[str, ...] = ()
        width = ""
        for option in (m.group(2) or "").split("&"):
            key, _, value = option.partition("=")
            key, value = key.strip().lower(), value.strip().lower()
            if key == "align" and value in _ALIGNS:
                classes = (f"wiki-image-{value}",)
            elif key == "width":
                size = _WIDTH_RE.match(value)
                if size:
                    width = size.group(1) + (size.group(2) or "px")
        return ctx.protect(render_figure(src, src, None, classes, width))

    return _FILE_RE.sub(_file, text)


def _extract_footnotes(text: str, ctx: RenderContext) -> str:
    # The label letter is accepted but not used: every occurrence gets its own index.
    return _FOOTNOTE_RE.sub(
        lambda m: ctx.protect(render_footnote_marker(ctx.add_footnote(m.group(2)))), text
    )


PIPELINE: tuple[Callable[[str, RenderContext], str], ...] = (
    _normalize,
    _strip_magic_words,
    _protect_literals,
    _resolve_braces,
    _extract_categories,
    _extract_images,
    _extract_footnotes,
)


# -----------------------------------------------------------------------------
# Line scanner
# -----------------------------------------------------------------------------

def _parse_cell(part: str, colspan: int) -> Cell:
    align = ""
    if part.strip():
        if part.startswith(" ") and part.endswith(" "):
            align = "text-center"
        elif part.endswith(" "):
            align = "text-left"
        elif part.startswith(" "):
            align = "text-right"

    text = part.strip()
    rowspan = 1
    bgcolor = ""
    while True:
        m = _CELL_OPTION_RE.match(text)
        if not m:
            break
        option = m.group(1).strip()
        text = text[m.end():].lstrip()
        if re.fullmatch(r"-\d+", option):
            colspan = max(colspan, int(option[1:]))
        elif re.fullmatch(r"\|\d+", option):
            rowspan = max(1, int(option[1:]))
        elif option in ("(", ":", ")"):
            align = {"(": "text-left", ":": "text-center", ")": "text-right"}[option]
        elif option.lower().startswith("bgcolor="):
            bgcolor = normalize_color(option[8:]) or bgcolor
        elif option.startswith("#"):
            bgcolor = normalize_color(option) or bgcolor
    return Cell(text, colspan=colspan, rowspan=rowspan, align=align, bgcolor=bgcolor)


def _parse_row(stripped: str) -> tuple[Cell, ...]:
    cells: list[Cell] = []
    span = 1
    for part in stripped[2:-2].split("||"):
        if part == "":
            # ||||  widens the next cell
            span += 1
            continue
        cells.append(_parse_cell(part, span))
        span = 1
    return tuple(cells)


def scan(text: str) -> Iterator[Token]:
    """Split *text* into block tokens."""
    list_tags: list[str] = []
    for line in text.split("\n"):
        stripped = line.strip()

        if PLACEHOLDER_LINE_RE.match(stripped):
            yield Token(Kind.PLACEHOLDER, stripped)
            continue

        if len(stripped) >= 4 and stripped.startswith("||") and stripped.endswith("||"):
            yield Token(Kind.TABLE_ROW, cells=_parse_row(stripped))
            continue

        if _RULE_RE.match(line):
            yield Token(Kind.RULE)
            continue

        m = _HEADING_RE.match(line.rstrip())
        if m:
            yield Token(Kind.HEADING, m.group(2), level=min(len(m.group(1)), 6))
            continue

        m = _QUOTE_RE.match(line)
        if m:
            yield Token(Kind.QUOTE, m.group(1))
            continue

        m = _LIST_RE.match(line)
        if m:
            depth = max(1, len(m.group(1)))
            tag = "ul" if m.group(2) == "*" else "ol"
            list_tags = list_tags[:depth - 1]
            while len(list_tags) < depth - 1:
                list_tags.append(tag)
            list_tags.append(tag)
            yield Token(Kind.LIST_ITEM, m.group(3).strip(), tags=tuple(list_tags))
            continue
        list_tags = []

        m = _INDENT_RE.match(line)
        if m:
            yield Token(Kind.INDENT, m.group(2).strip(), level=len(m.group(1)))
            continue

        if not stripped:
            yield Token(Kind.BLANK)
            continue

        yield Token(Kind.TEXT, stripped)


# -----------------------------------------------------------------------------
# Inline pass
# -----------------------------------------------------------------------------

def render_inline(text: str, ctx: RenderContext) -> str:
    """Escape *text*, then apply links, macros and formatting in that order.

    Links are protected as soon as they are built so the formatting rules
    (``--``, ``__``, ``,,``...) can never match inside an href.
    """
    def _link(m: re.Match) -> str:
        target = m.group(1).strip()
        label = (m.group(2) if m.lastindex and m.lastindex >= 2 else target).strip()
        if is_external_url(target):
            return ctx.protect(external_link(target, label), label)
        return ctx.protect(wiki_link(target, label), label)

    text = escape(text)
    text = _LINK_LABELLED_RE.sub(_link, text)
    text = _LINK_BARE_RE.sub(_link, text)
    text = _EXT_LABELLED_RE.sub(
        lambda m: ctx.protect(external_link(m.group(1), m.group(2).strip()), m.group(2)), text
    )
    text = _EXT_BARE_RE.sub(lambda m: ctx.protect(external_link(m.group(1), m.group(1))), text)

    text = _BR_MACRO_RE.sub("<br/>", text)
    text = _DATE_MACRO_RE.sub(f"{ctx.today.year}. {ctx.today.month}. {ctx.today.day}.", text)
    text = _DROPPED_MACRO_RE.sub("", text)
    text = _YOUTUBE_MACRO_RE.sub('<span class="wiki-placeholder">[YouTube]</span>', text)

    for pattern, replacement in _FORMATTING:
        text = pattern.sub(replacement, text)
    return text


# -----------------------------------------------------------------------------
# Public entry point
# -----------------------------------------------------------------------------

def parse_namumark(raw: str, today: date | None = None) -> CompiledMarkup:
    """Compile NamuMark *raw* text; never raises for any string input.

    *today* fixes the value substituted for ``[date]``.
    """
    ctx = RenderContext(today=today) if today else RenderContext()
    text = raw or ""
    for stage in PIPELINE:
        text = stage(text, ctx)

    inline = partial(render_inline, ctx=ctx)
    body = BlockAssembler(inline).feed_all(scan(text))
    return assemble(body, ctx, inline)


# -----------------------------------------------------------------------------
