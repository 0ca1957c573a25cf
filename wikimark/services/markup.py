#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Shared markup primitives
========================
Everything both wiki dialects need and neither owns:

  - ``escape()``         : the one escaping primitive; every user fragment
                           passes through it before it lands in a tag or
                           attribute.
  - ``RenderContext``    : per-call state (protected spans, categories,
                           footnotes).  Created by a compiler, discarded when
                           it returns, never shared between calls.
  - placeholder tokens   : ``\\x00<index>\\x00``.  NUL is removed from input by
                           ``normalize_newlines()`` so user text cannot forge one.
  - HTML builders        : links, figures, code blocks, footnote markers and
                           the footnote section.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, NamedTuple
from urllib.parse import quote

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound


SENTINEL = "\x00"
PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")
PLACEHOLDER_LINE_RE = re.compile(r"^\x00\d+\x00$")
_WRAPPED_PLACEHOLDER_RE = re.compile(r"<p>(\x00(\d+)\x00)</p>")
_BLOCK_HTML_RE = re.compile(r"^<(?:pre|div|figure|blockquote|table|[uod]l|h[1-6])\b")
_EMPTY_PARAGRAPH_RE = re.compile(r"<p>\s*</p>")

WIKI_LINK_PREFIX = "/wiki/"
FILE_PREFIX = "/files/"

_EXTERNAL_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")
_NAMED_COLOR_RE = re.compile(r"^#?([a-zA-Z]{3,20})$")
_ANCHOR_DROP_RE = re.compile(r"[^\w가-힣ㄱ-ㆎ-]")

_FORMATTER = HtmlFormatter(nowrap=False, cssclass="highlight")


# -----------------------------------------------------------------------------
# Escaping
# -----------------------------------------------------------------------------

def escape(text: str) -> str:
    """Replace ``& < > " '`` with entities (``&`` first, single pass)."""
    return _html.escape(text, quote=True)


def normalize_newlines(text: str) -> str:
    """CRLF / CR to LF, and drop the placeholder sentinel from user input."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace(SENTINEL, "")


# -----------------------------------------------------------------------------
# Per-call context / block protector
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ProtectedSpan:
    token: str
    html: str
    source: str = ""


class CompiledMarkup(NamedTuple):
    html: str
    categories: list[str]
    footnotes: list[str]


@dataclass
class RenderContext:
    """State for exactly one compilation."""

    today: date = field(default_factory=date.today)
    spans: list[ProtectedSpan] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    footnotes: list[str] = field(default_factory=list)

    def protect(self, html: str, source: str = "") -> str:
        """Record *html* as final output and return the token standing in for it."""
        token = f"{SENTINEL}{len(self.spans)}{SENTINEL}"
        self.spans.append(ProtectedSpan(token, html, source))
        return token

    def add_footnote(self, body: str) -> int:
        """Append a footnote body; return its 1-based index."""
        self.footnotes.append(body.strip())
        return len(self.footnotes)

    def restore(self, html: str) -> str:
        """Swap every token back for its HTML.

        A span may contain tokens of earlier spans, so substitution repeats
        until nothing is left; at most ``len(spans)`` rounds are ever needed.
        A paragraph holding nothing but a block-level span is unwrapped.
        """
        html = _WRAPPED_PLACEHOLDER_RE.sub(self._unwrap_block, html)
        html = self._substitute(html, lambda span: span.html)
        return html.replace(SENTINEL, "")

    def unprotect(self, text: str) -> str:
        """Like ``restore()`` but substitutes the plain source text."""
        return self._substitute(text, lambda span: span.source).replace(SENTINEL, "")

    def _unwrap_block(self, m: re.Match) -> str:
        idx = int(m.group(2))
        if idx < len(self.spans) and _BLOCK_HTML_RE.match(self.spans[idx].html):
            return m.group(1)
        return m.group(0)

    def _substitute(self, text: str, pick: Callable[[ProtectedSpan], str]) -> str:
        def _replace(m: re.Match) -> str:
            idx = int(m.group(1))
            return pick(self.spans[idx]) if idx < len(self.spans) else ""

        for _ in range(len(self.spans) + 1):
            text, count = PLACEHOLDER_RE.subn(_replace, text)
            if not count:
                break
        return text


def strip_placeholders(text: str) -> str:
    return PLACEHOLDER_RE.sub("", text).replace(SENTINEL, "")


def strip_empty_paragraphs(html: str) -> str:
    return _EMPTY_PARAGRAPH_RE.sub("", html)


# -----------------------------------------------------------------------------
# Code blocks
# -----------------------------------------------------------------------------

def highlight_code(code: str, lang: str = "") -> str:
    """Highlight *code* using Pygments.  Falls back to plain <pre><code> on unknown language."""
    lang = lang.strip()
    lexer = None
    if lang:
        try:
            lexer = get_lexer_by_name(lang, stripall=True)
        except ClassNotFound:
            lexer = None
    if lexer is None:
        lang_attr = f' data-lang="{escape(lang)}"' if lang else ""
        return f'<pre class="wiki-codeblock"{lang_attr}><code>{escape(code)}</code></pre>'
    body = highlight(code, lexer, _FORMATTER).rstrip("\n")
    return f'<div class="wiki-codeblock" data-lang="{escape(lang)}">{body}</div>'


def code_block(code: str) -> str:
    code = code.strip("\n").rstrip()
    return f'<pre class="wiki-codeblock"><code>{escape(code)}</code></pre>'


def inline_code(code: str) -> str:
    return f'<code class="wiki-inline-code">{escape(code)}</code>'


# -----------------------------------------------------------------------------
# Links, figures, colours
# -----------------------------------------------------------------------------

def is_external_url(target: str) -> bool:
    return bool(_EXTERNAL_URL_RE.match(target.strip()))


def wiki_link(target: str, label_html: str) -> str:
    """Internal link.  *target* is the already-escaped fragment from the inline pass."""
    href = WIKI_LINK_PREFIX + quote(_html.unescape(target).strip(), safe="")
    return f'<a class="wiki-link" href="{href}">{label_html}</a>'


def external_link(url: str, label_html: str) -> str:
    """External link.  *url* must already be escaped and start with http(s)://."""
    return f'<a class="wiki-ext-link" href="{url.strip()}" rel="noopener noreferrer">{label_html}</a>'


def render_figure(
    src: str,
    alt: str,
    caption: str | None = None,
    classes: tuple[str, ...] = (),
    width: str = "",
) -> str:
    """``<figure>`` for a File/Image marker.  All arguments are raw user text."""
    cls = " ".join(("wiki-image",) + classes)
    href = FILE_PREFIX + quote(src.strip(), safe="")
    style = f' style="width:{escape(width)}"' if width else ""
    cap = f"<figcaption>{escape(caption)}</figcaption>" if caption else ""
    return (
        f'<figure class="{cls}"><img src="{href}" alt="{escape(alt.strip())}"'
        f'{style} loading="lazy"/>{cap}</figure>'
    )


def normalize_color(value: str) -> str | None:
    """``#abc`` / ``abcdef`` / ``red`` → a CSS colour, anything else → None."""
    value = value.strip()
    m = _HEX_COLOR_RE.match(value)
    if m and (value.startswith("#") or not value.isalpha()):
        return f"#{m.group(1).lower()}"
    m = _NAMED_COLOR_RE.match(value)
    if m:
        return m.group(1).lower()
    return None


# -----------------------------------------------------------------------------
# Headings
# -----------------------------------------------------------------------------

def heading_anchor(text: str) -> str:
    """Heading text → id.  Same-named headings share an id (not de-duplicated)."""
    text = strip_placeholders(text).strip()
    text = re.sub(r"\s+", "-", text)
    return _ANCHOR_DROP_RE.sub("", text)


# -----------------------------------------------------------------------------
# Footnotes
# -----------------------------------------------------------------------------

def render_footnote_marker(idx: int) -> str:
    return (
        f'<sup class="wiki-footnote-ref">'
        f'<a href="#fn-{idx}" id="fnref-{idx}">[{idx}]</a></sup>'
    )


def render_footnote_section(notes_html: list[str]) -> str:
    items = "".join(
        f'<li id="fn-{i}"><a href="#fnref-{i}">↑</a> {note}</li>'
        for i, note in enumerate(notes_html, 1)
    )
    return f'\n<section class="wiki-footnotes"><hr class="wiki-hr"/><ol>{items}</ol></section>'


def assemble(body: str, ctx: RenderContext, inline: Callable[[str], str]) -> CompiledMarkup:
    """Final stages shared by both compilers: restore, footnotes, tidy."""
    html = ctx.restore(body)
    if ctx.footnotes:
        notes = [ctx.restore(inline(note)) for note in ctx.footnotes]
        html += render_footnote_section(notes)
    html = strip_empty_paragraphs(html)
    footnotes = [ctx.unprotect(note) for note in ctx.footnotes]
    return CompiledMarkup(html, list(ctx.categories), footnotes)


# -----------------------------------------------------------------------------
