#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
MediaWiki compiler
==================
Convert a subset of MediaWiki wikitext to HTML.

Supported syntax
----------------
= H1 =  /  == H2 ==  / ... / ====== H6 ======
'''bold'''  /  ''italic''  /  '''''bold-italic'''''
[[Page Title]]  /  [[Page Title|Display Text]]   — internal links
[[Category:Name]]  /  [[분류:Name]]              — removed, collected
[[File:name.png|thumb|right|Caption]]            — <figure>
[https://example.com Display]  /  [https://...]  — external links
----                                             — <hr>
* item  /  ** nested  /  # item  /  *# mixed     — lists
; term : definition                              — definition lists
: text  /  :: text                               — indented blocks
{| ... |}                                        — tables
{{template}}                                     — removed ({{lang}} / {{quote}} kept)
<ref>...</ref>                                   — footnotes
<nowiki>, <pre>, <source>, <syntaxhighlight>, <code>  — literal spans
<s> <u> <sub> <sup> <small> <big> <del> <ins> <mark> <br> — allowed inline tags
Lines not matching any block rule become <p> paragraphs.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from functools import partial
from typing import Callable, Iterator

from .blocks import BlockAssembler, Cell, Kind, Token
from .markup import (
    PLACEHOLDER_LINE_RE,
    PLACEHOLDER_RE,
    CompiledMarkup,
    RenderContext,
    assemble,
    code_block,
    escape,
    external_link,
    highlight_code,
    inline_code,
    is_external_url,
    normalize_newlines,
    render_figure,
    render_footnote_marker,
    wiki_link,
)

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------

_MAGIC_WORD_RE = re.compile(
    r"__(?:TOC|NOTOC|FORCETOC|NOEDITSECTION|NEWSECTIONLINK|NONEWSECTIONLINK)__"
)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|\Z)", re.DOTALL)

_NOWIKI_RE        = re.compile(r"<nowiki>(.*?)</nowiki>", re.IGNORECASE | re.DOTALL)
_NOWIKI_EMPTY_RE  = re.compile(r"<nowiki\s*/>", re.IGNORECASE)
_SOURCE_RE        = re.compile(
    r"<(source|syntaxhighlight)(\s[^>]*)?>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL
)
_LANG_ATTR_RE     = re.compile(r"""\blang\s*=\s*["']?([\w+#.-]+)""", re.IGNORECASE)
_PRE_RE           = re.compile(r"<pre(?:\s[^>]*)?>(.*?)</pre\s*>", re.IGNORECASE | re.DOTALL)
_CODE_RE          = re.compile(r"<code>(.*?)</code>", re.IGNORECASE | re.DOTALL)

# Innermost {{...}}: no "{{" or "}}" inside.
_TEMPLATE_RE = re.compile(r"\{\{(?:[^{}]|\{(?!\{)|\}(?!\}))*\}\}")

_CATEGORY_RE = re.compile(
    r"\[\[\s*(?:Category|분류)\s*:([^\]|]+)(?:\|[^\]]*)?\]\]", re.IGNORECASE
)
_FILE_RE = re.compile(
    r"\[\[\s*(?:File|Image|파일|이미지)\s*:([^\]|]+)(?:\|([^\]]*))?\]\]", re.IGNORECASE
)
_SIZE_RE = re.compile(r"^(\d+)(?:x\d+)?px$", re.IGNORECASE)
_THUMB_OPTIONS = {"thumb", "thumbnail", "frame", "섬네일"}
_ALIGN_OPTIONS = {
    "left": "left", "왼쪽": "left",
    "right": "right", "오른쪽": "right",
    "center": "center", "가운데": "center",
}
_IGNORED_OPTIONS = {"frameless", "border", "none", "upright", "baseline", "middle",
                    "top", "bottom", "text-top", "text-bottom"}

_REF_RE            = re.compile(r"<ref(?:\s[^>]*?)?(?<!/)>(.*?)</ref\s*>", re.IGNORECASE | re.DOTALL)
_REF_SELF_CLOSE_RE = re.compile(r"<ref(?:\s[^>]*)?/>", re.IGNORECASE)
_REFERENCES_RE     = re.compile(r"<references(?:\s[^>]*)?/?>(?:\s*</references>)?", re.IGNORECASE)

# Line classification
_RULE_RE       = re.compile(r"^-{4,}\s*$")
_HEADING_RE    = re.compile(r"^(=+)\s*(.+?)\s*(=+)\s*$")
_LIST_RE       = re.compile(r"^([*#]+)\s*(.*)$")
_DEFINITION_RE = re.compile(r"^;\s*([^:]*?)\s*(?::\s*(.*))?$")
_INDENT_RE     = re.compile(r"^(:+)\s*(.*)$")
_BLOCK_START_RE = re.compile(r"^(?:=|\*|#|;|:|-{4,})")
_CELL_ATTRS_RE = re.compile(
    r"""^\s*(?:[\w-]+\s*=\s*(?:"[^"\x00]*"|'[^'\x00]*'|[^\s|"'\x00=]+(?=[\s|]))\s*)+\|(?!\|)"""
)

# Inline (matched against escaped text: ' is &#x27;)
# Link targets and URLs never span a placeholder token or markup built by an earlier rule.
_Q = "&#x27;"
_BOLD_ITALIC_RE   = re.compile(rf"(?:{_Q}){{5}}(.+?)(?:{_Q}){{5}}")
_BOLD_RE          = re.compile(rf"(?:{_Q}){{3}}(.+?)(?:{_Q}){{3}}")
_ITALIC_RE        = re.compile(rf"(?:{_Q}){{2}}(.+?)(?:{_Q}){{2}}")
_LINK_LABELLED_RE = re.compile(r"\[\[([^\]|\x00<>]+)\|([^\]]+)\]\]")
_LINK_BARE_RE     = re.compile(r"\[\[([^\]\x00<>]+)\]\]")
_EXT_LABELLED_RE  = re.compile(r"\[(https?://[^\s\]\x00<>]+)\s+([^\]]+)\]", re.IGNORECASE)
_EXT_BARE_RE      = re.compile(r"\[(https?://[^\s\]\x00<>]+)\]", re.IGNORECASE)
_ALLOWED_PAIR_RE  = re.compile(
    r"&lt;(s|u|sub|sup|small|big|del|ins|mark|blockquote)&gt;(.*?)&lt;/\1&gt;",
    re.IGNORECASE,
)
_BR_RE            = re.compile(r"&lt;br\s*/?&gt;", re.IGNORECASE)


# -----------------------------------------------------------------------------
# Pipeline stages:  stage(text, ctx) -> text
# -----------------------------------------------------------------------------

def _normalize(text: str, ctx: RenderContext) -> str:
    return normalize_newlines(text)


def _strip_magic_words(text: str, ctx: RenderContext) -> str:
    text = _MAGIC_WORD_RE.sub("", text)
    return _COMMENT_RE.sub("", text)


def _protect_literals(text: str, ctx: RenderContext) -> str:
    text = _NOWIKI_RE.sub(lambda m: ctx.protect(escape(m.group(1)), m.group(1)), text)
    text = _NOWIKI_EMPTY_RE.sub("", text)

    def _source(m: re.Match) -> str:
        lang_match = _LANG_ATTR_RE.search(m.group(2) or "")
        code = m.group(3).strip("\n").rstrip()
        return ctx.protect(highlight_code(code, lang_match.group(1) if lang_match else ""), code)

    text = _SOURCE_RE.sub(_source, text)
    text = _PRE_RE.sub(lambda m: ctx.protect(code_block(m.group(1)), m.group(1)), text)
    return _CODE_RE.sub(lambda m: ctx.protect(inline_code(m.group(1)), m.group(1)), text)


def _expand_template(match: str, ctx: RenderContext) -> str:
    """Innermost template → "" except the language-span and quote forms."""
    name, _, rest = match[2:-2].partition("|")
    key = name.strip().lower()

    if rest and (key == "lang" or key.startswith("lang-")):
        if key == "lang":
            code, _, body = rest.partition("|")
            if not body:
                code, body = "", code
        else:
            code, body = key[5:], rest
        body = body.strip()
        lang_attr = f' lang="{escape(code.strip())}"' if code.strip() else ""
        return ctx.protect(f'<span class="wiki-lang"{lang_attr}>{escape(body)}</span>', body)

    if rest and key in ("quote", "인용문"):
        body = rest.split("|")[0].strip()
        return ctx.protect(f'<blockquote class="wiki-quote">{escape(body)}</blockquote>', body)

    return ""


def strip_templates(text: str, ctx: RenderContext) -> tuple[str, int]:
    """Remove ``{{...}}`` innermost-first until nothing changes.

    Returns the stripped text and the number of passes that changed it; each
    such pass removes at least one brace pair, so the count is bounded by the
    nesting depth.
    """
    passes = 0
    while True:
        stripped = _TEMPLATE_RE.sub(lambda m: _expand_template(m.group(0), ctx), text)
        if stripped == text:
            return text, passes
        text = stripped
        passes += 1


def _strip_templates(text: str, ctx: RenderContext) -> str:
    text, passes = strip_templates(text, ctx)
    log.debug("template stripping finished after %d passes", passes)
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
        options = [o.strip() for o in (m.group(2) or "").split("|")] if m.group(2) else []
        classes: list[str] = []
        width = ""
        caption: str | None = None
        align = ""
        for opt in options:
            low = opt.lower()
            size = _SIZE_RE.match(opt)
            if low in _THUMB_OPTIONS:
                if "wiki-image-thumb" not in classes:
                    classes.append("wiki-image-thumb")
            elif low in _ALIGN_OPTIONS:
                align = _ALIGN_OPTIONS[low]
            elif size:
                width = f"{size.group(1)}px"
            elif opt and low not in _IGNORED_OPTIONS and "=" not in opt:
                caption = opt
        if align:
            classes.append(f"wiki-image-{align}")
        alt = ctx.unprotect(caption) if caption else src
        html = render_figure(src, alt, caption, tuple(classes), width)
        return ctx.protect(html, caption or "")

    return _FILE_RE.sub(_file, text)


def _extract_footnotes(text: str, ctx: RenderContext) -> str:
    text = _REF_RE.sub(
        lambda m: ctx.protect(render_footnote_marker(ctx.add_footnote(m.group(1)))), text
    )
    text = _REF_SELF_CLOSE_RE.sub("", text)
    return _REFERENCES_RE.sub("", text)


PIPELINE: tuple[Callable[[str, RenderContext], str], ...] = (
    _normalize,
    _strip_magic_words,
    _protect_literals,
    _strip_templates,
    _extract_categories,
    _extract_images,
    _extract_footnotes,
)


# -----------------------------------------------------------------------------
# Line scanner
# -----------------------------------------------------------------------------

def _split_cells(raw: str, sep: str, header: bool) -> tuple[Cell, ...]:
    # Per-cell attributes (style="..." | text) are accepted and discarded.
    return tuple(
        Cell(_CELL_ATTRS_RE.sub("", part, count=1).strip(), header=header)
        for part in raw.split(sep)
    )


def _classify_line(line: str) -> Token:
    stripped = line.strip()
    if not stripped:
        return Token(Kind.BLANK)
    if _RULE_RE.match(stripped):
        return Token(Kind.RULE)

    m = _HEADING_RE.match(stripped)
    if m:
        return Token(Kind.HEADING, m.group(2), level=min(len(m.group(1)), 6))

    m = _LIST_RE.match(stripped)
    if m:
        tags = tuple("ol" if c == "#" else "ul" for c in m.group(1))
        return Token(Kind.LIST_ITEM, m.group(2).strip(), tags=tags)

    m = _DEFINITION_RE.match(stripped)
    if m:
        return Token(Kind.DEFINITION, m.group(1), detail=m.group(2))

    m = _INDENT_RE.match(stripped)
    if m:
        return Token(Kind.INDENT, m.group(2), level=len(m.group(1)))

    return Token(Kind.TEXT, stripped)


def _carried_spans(attrs: str) -> Iterator[Token]:
    # Table and row attributes are dropped, but not the spans cut out of them.
    tokens = [m.group(0) for m in PLACEHOLDER_RE.finditer(attrs)]
    if tokens:
        yield Token(Kind.TABLE_CONTINUATION, " ".join(tokens))


def scan(text: str) -> Iterator[Token]:
    """Split *text* into block tokens.  Table lines only mean cells inside ``{| |}``."""
    in_table = False
    for line in text.split("\n"):
        stripped = line.strip()

        if PLACEHOLDER_LINE_RE.match(stripped):
            # An image or code block on its own line stays in the open cell.
            yield Token(Kind.TABLE_CONTINUATION if in_table else Kind.PLACEHOLDER, stripped)
            continue

        if stripped.startswith("{|"):
            in_table = True
            yield Token(Kind.TABLE_START)
            yield from _carried_spans(stripped[2:])
            continue

        if in_table:
            if stripped.startswith("|}"):
                in_table = False
                yield Token(Kind.TABLE_END)
                if stripped[2:].strip():
                    yield Token(Kind.TEXT, stripped[2:].strip())
                continue
            if stripped.startswith("|+"):
                yield Token(Kind.TABLE_CAPTION, stripped[2:].strip())
                continue
            if stripped.startswith("|-"):
                yield Token(Kind.TABLE_ROW_SEP)
                yield from _carried_spans(stripped[2:])
                continue
            if stripped.startswith("!"):
                yield Token(Kind.TABLE_CELLS, cells=_split_cells(stripped[1:], "!!", True))
                continue
            if stripped.startswith("|"):
                yield Token(Kind.TABLE_CELLS, cells=_split_cells(stripped[1:], "||", False))
                continue
            if not stripped:
                continue
            if not _BLOCK_START_RE.match(stripped):
                yield Token(Kind.TABLE_CONTINUATION, stripped)
                continue
            in_table = False

        yield _classify_line(line)


# -----------------------------------------------------------------------------
# Inline pass
# -----------------------------------------------------------------------------

def _allowed_tags(text: str) -> str:
    while True:
        text, count = _ALLOWED_PAIR_RE.subn(
            lambda m: f"<{m.group(1).lower()}>{m.group(2)}</{m.group(1).lower()}>", text
        )
        if not count:
            break
    return _BR_RE.sub("<br/>", text)


def render_inline(text: str, ctx: RenderContext | None = None) -> str:
    """Escape *text*, then apply the inline rules in their fixed order.

    Every link is protected as soon as it is built, so the rules after it
    never see its href or its markup.  Without a *ctx* the links are
    restored before returning.
    """
    standalone = ctx is None
    if standalone:
        ctx = RenderContext()

    def _link(m: re.Match) -> str:
        target = m.group(1).strip()
        label = (m.group(2) if m.lastindex and m.lastindex >= 2 else target).strip()
        if is_external_url(target):
            return ctx.protect(external_link(target, _allowed_tags(label)), label)
        return ctx.protect(wiki_link(target, _allowed_tags(label)), label)

    def _external(m: re.Match) -> str:
        url = m.group(1)
        label = m.group(2).strip() if m.lastindex and m.lastindex >= 2 else url
        return ctx.protect(external_link(url, _allowed_tags(label)), label)

    text = escape(text)
    text = _BOLD_ITALIC_RE.sub(r"<strong><em>\1</em></strong>", text)
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    text = _ITALIC_RE.sub(r"<em>\1</em>", text)
    text = _LINK_LABELLED_RE.sub(_link, text)
    text = _LINK_BARE_RE.sub(_link, text)
    text = _EXT_LABELLED_RE.sub(_external, text)
    text = _EXT_BARE_RE.sub(_external, text)
    text = _allowed_tags(text)
    return ctx.restore(text) if standalone else text


# -----------------------------------------------------------------------------
# Public entry point
# -----------------------------------------------------------------------------

def parse_mediawiki(raw: str) -> CompiledMarkup:
    """Compile MediaWiki *raw* text; never raises for any string input."""
    ctx = RenderContext()
    text = raw or ""
    for stage in PIPELINE:
        text = stage(text, ctx)

    inline = partial(render_inline, ctx=ctx)
    body = BlockAssembler(inline).feed_all(scan(text))
    return assemble(body, ctx, inline)


# -----------------------------------------------------------------------------
