#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for MediaWiki inline formatting, links and the tag allowlist."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikimark.services.mediawiki import parse_mediawiki, render_inline


# ── Emphasis ──────────────────────────────────────────────────────────────────

def test_bold_and_italic():
    assert render_inline("'''b''' and ''i''") == "<strong>b</strong> and <em>i</em>"


def test_bold_italic():
    assert render_inline("'''''bi'''''") == "<strong><em>bi</em></strong>"


def test_lone_apostrophes_are_escaped_text():
    assert render_inline("it's") == "it&#x27;s"


# ── Links ─────────────────────────────────────────────────────────────────────

def test_internal_link():
    assert render_inline("[[Main Page]]") == (
        '<a class="wiki-link" href="/wiki/Main%20Page">Main Page</a>'
    )


def test_internal_link_with_label():
    assert render_inline("[[Main Page|home]]") == (
        '<a class="wiki-link" href="/wiki/Main%20Page">home</a>'
    )


def test_internal_link_target_is_percent_encoded():
    html = render_inline("[[A&B?c=1]]")
    assert 'href="/wiki/A%26B%3Fc%3D1"' in html
    assert ">A&amp;B?c=1</a>" in html


def test_external_link_with_label():
    assert render_inline("[https://example.com Example]") == (
        '<a class="wiki-ext-link" href="https://example.com" '
        'rel="noopener noreferrer">Example</a>'
    )


def test_bare_external_link():
    html = render_inline("[https://example.com/x]")
    assert 'href="https://example.com/x"' in html
    assert ">https://example.com/x</a>" in html


def test_double_bracket_external_link():
    html = render_inline("[[https://example.com|site]]")
    assert '<a class="wiki-ext-link" href="https://example.com"' in html


@pytest.mark.parametrize("text", [
    "[javascript:alert(1) x]",
    "[[javascript:alert(1)|x]]",
    "[data:text/html,x y]",
])
def test_non_http_schemes_never_become_hrefs(text):
    html = render_inline(text)
    assert 'href="javascript' not in html
    assert 'href="data' not in html


def test_quote_in_url_cannot_break_attribute():
    html = render_inline('[https://example.com/"onmouseover="x label]')
    assert '"onmouseover="' not in html
    assert "&quot;onmouseover=&quot;" in html


def test_formatting_inside_url_never_becomes_link():
    html = render_inline("[https://x.org/'''a'''b]")
    assert "href" not in html
    assert "<strong>a</strong>" in html


def test_external_link_inside_label_is_not_nested():
    html = render_inline("[[Foo|[https://x.org]]]")
    assert html == '<a class="wiki-link" href="/wiki/Foo">[https://x.org</a>]'


def test_formatting_inside_link_target_never_reaches_href():
    html = render_inline("[[https://x.org/'''a'''b]]")
    assert "href" not in html


def test_formatting_in_link_label_is_kept():
    assert render_inline("[[Foo|'''bold''']]") == (
        '<a class="wiki-link" href="/wiki/Foo"><strong>bold</strong></a>'
    )


def test_link_label_keeps_allowlisted_tags():
    assert render_inline("[[A|<s>x</s>]]") == '<a class="wiki-link" href="/wiki/A"><s>x</s></a>'


def test_link_inside_paragraph_is_restored():
    html = parse_mediawiki("see [https://x.org/a site] and [[B]] now").html
    assert "\x00" not in html
    assert html.count("<a ") == 2


# ── Raw HTML ──────────────────────────────────────────────────────────────────

def test_script_is_escaped():
    assert render_inline("<script>alert(1)</script>") == (
        "&lt;script&gt;alert(1)&lt;/script&gt;"
    )


@pytest.mark.parametrize("tag", ["s", "u", "sub", "sup", "small", "big", "del", "ins", "mark"])
def test_allowlisted_tags_are_kept(tag):
    assert render_inline(f"<{tag}>x</{tag}>") == f"<{tag}>x</{tag}>"


def test_allowlisted_tag_with_attributes_stays_escaped():
    html = render_inline("<u onclick=x>y</u>")
    assert "<u" not in html
    assert "&lt;u onclick=x&gt;" in html


def test_unbalanced_allowlisted_tag_stays_escaped():
    assert render_inline("<sup>x") == "&lt;sup&gt;x"


def test_nested_allowlisted_tags():
    assert render_inline("<small><sup>1</sup></small>") == "<small><sup>1</sup></small>"


@pytest.mark.parametrize("br", ["<br>", "<br/>", "<br />"])
def test_line_break_tag(br):
    assert render_inline(f"a{br}b") == "a<br/>b"


def test_inline_markup_inside_paragraph():
    html = parse_mediawiki("See [[Help]] for '''more'''.").html
    assert html == (
        '<p>See <a class="wiki-link" href="/wiki/Help">Help</a> for <strong>more</strong>.</p>'
    )


# -----------------------------------------------------------------------------
