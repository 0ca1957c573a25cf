#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders an article body of unknown dialect to HTML.

  1. ``classify()`` guesses the dialect (MediaWiki, NamuMark or plain text).
  2. The matching compiler runs; plain text gets paragraph splitting only.
  3. The result comes back as a ``ParseResult`` tagged with the format.

Every call is self-contained: no module-level state is read or written, so
``render()`` may be called from any number of threads at once.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import Callable

from wikimark.schemas import ParseResult, WikiFormat

from .detector import classify
from .markup import CompiledMarkup, escape, normalize_newlines
from .mediawiki import parse_mediawiki
from .namumark import parse_namumark

log = logging.getLogger(__name__)


_COMPILERS: dict[WikiFormat, Callable[[str], CompiledMarkup]] = {
    WikiFormat.MEDIAWIKI: parse_mediawiki,
    WikiFormat.NAMUMARK:  parse_namumark,
}

_PARAGRAPH_BREAK_RE = re.compile(r"\n(?:[ \t]*\n)+")


# -----------------------------------------------------------------------------
# Plain-text fallback
# -----------------------------------------------------------------------------

def render_plain(content: str) -> str:
    """Escape, split on blank lines, and turn single newlines into <br/>."""
    text = normalize_newlines(content or "")
    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK_RE.split(text) if p.strip()]
    return "\n".join("<p>" + escape(p).replace("\n", "<br/>") + "</p>" for p in paragraphs)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render(content: str) -> ParseResult:
    """
    Render *content* to HTML.

    The dialect is detected from the text itself; a body with no dialect
    signal (or shorter than the detector threshold) is rendered as plain
    paragraphs and never yields categories or footnotes.
    """
    content = content or ""
    fmt = classify(content)
    log.debug("rendering %d chars as %s", len(content), fmt.value)

    compiler = _COMPILERS.get(fmt)
    if compiler is None:
        return ParseResult(html=render_plain(content), format=WikiFormat.PLAIN)

    compiled = compiler(content)
    return ParseResult(
        html=compiled.html,
        categories=compiled.categories,
        footnotes=compiled.footnotes,
        format=fmt,
    )


# -----------------------------------------------------------------------------
