#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Format detector
===============
Article bodies carry no dialect metadata, so the dialect is guessed by
counting signals.  Each signal is an independent pattern check worth 1-3
points (3 = a construct only that dialect has).  Scores are summed per
dialect; the higher score wins, both zero means plain text, and an exact
tie goes to MediaWiki.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re

from wikimark.schemas import FormatVerdict, WikiFormat

log = logging.getLogger(__name__)


MIN_LENGTH = 10

Signal = tuple[re.Pattern[str], int]


# -----------------------------------------------------------------------------
# Signal catalogue
# -----------------------------------------------------------------------------

NAMUMARK_SIGNALS: tuple[Signal, ...] = (
    (re.compile(r"\[목차\]"), 3),
    (re.compile(r"\[각주\]"), 3),
    (re.compile(r"\[include\("), 3),
    (re.compile(r"\{\{\{[+\-]\d"), 3),                  # {{{+1 size
    (re.compile(r"\{\{\{#[0-9a-fA-F]"), 3),             # {{{#f00 colour
    (re.compile(r"\|\|.+\|\|"), 2),                      # ||cell||cell||
    (re.compile(r"\[\*\s"), 2),                          # [* footnote]
    (re.compile(r"\[br\]", re.IGNORECASE), 2),
    (re.compile(r"^=\s+.+\s+=\s*$", re.MULTILINE), 2),   # = H1 =
    (re.compile(r"~~.+?~~"), 1),
    (re.compile(r"__[^_]+__"), 1),
)

MEDIAWIKI_SIGNALS: tuple[Signal, ...] = (
    (re.compile(r"\{\|"), 3),
    (re.compile(r"\|\}"), 3),
    (re.compile(r"<ref[\s>]", re.IGNORECASE), 3),
    (re.compile(r"<references", re.IGNORECASE), 3),
    (re.compile(r"<nowiki>", re.IGNORECASE), 3),
    (re.compile(r"<source[\s>]", re.IGNORECASE), 2),
    (re.compile(r"<syntaxhighlight", re.IGNORECASE), 2),
    (re.compile(r"\{\{[^{]"), 2),
    (re.compile(r"\[\[Category:", re.IGNORECASE), 2),
    (re.compile(r"#(?:REDIRECT|넘겨주기)", re.IGNORECASE), 2),
    (re.compile(r"<!--"), 1),
    (re.compile(r"^#+\s", re.MULTILINE), 1),
)


def _sum(signals: tuple[Signal, ...], text: str) -> int:
    return sum(weight for pattern, weight in signals if pattern.search(text))


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def score(text: str) -> FormatVerdict:
    """Raw per-dialect scores for *text* (no length threshold applied)."""
    return FormatVerdict(
        mediawiki=_sum(MEDIAWIKI_SIGNALS, text),
        namumark=_sum(NAMUMARK_SIGNALS, text),
    )


def decide(verdict: FormatVerdict) -> WikiFormat:
    if verdict.mediawiki == 0 and verdict.namumark == 0:
        return WikiFormat.PLAIN
    if verdict.namumark > verdict.mediawiki:
        return WikiFormat.NAMUMARK
    # Strictly higher MediaWiki score, or a tie.
    return WikiFormat.MEDIAWIKI


def classify(text: str) -> WikiFormat:
    """Return the dialect *text* is most likely written in."""
    if not text or len(text) < MIN_LENGTH:
        return WikiFormat.PLAIN
    verdict = score(text)
    fmt = decide(verdict)
    log.debug(
        "format scores mediawiki=%d namumark=%d -> %s",
        verdict.mediawiki, verdict.namumark, fmt.value,
    )
    return fmt


# -----------------------------------------------------------------------------
