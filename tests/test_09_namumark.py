#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the NamuMark compiler."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import date
from urllib.parse import quote

import pytest

from tests.conftest import flat
from wikimark.services.namumark import parse_namumark


def html_of(text: str) -> str:
    return flat(parse_namumark(text, today=date(2024, 3, 5)).html)


# =============================================================================
# Headings, rules, paragraphs
# =============================================================================

def test_heading():
    assert html_of("== 개요 ==") == '<h2 id="개요" class="wiki-heading wiki-h2">개요</h2>'


def test_folding_heading_marks_are_accepted():
    assert html_of("==# 숨김 #==") == '<h2 id="숨김" class="wiki-heading wiki-h2">숨김</h2>'


def test_rule():
    assert html_of("----") == '<hr class="wiki-hr"/>'


def test_paragraph_lines_join_with_break():
    assert html_of("첫 줄\n둘째 줄") == "<p>첫 줄<br/>둘째 줄</p>"


# =============================================================================
# Inline formatting
# =============================================================================

def test_bold_and_italic():
    assert html_of("'''굵게''' ''기울임''") == "<p><strong>굵게</strong> <em>기울임</em></p>"


def test_strike_underline_sup_sub():
    assert html_of("~~취소~~ --삭제-- __밑줄__ ^^위^^ ,,아래,,") == (
        "<p><del>취소</del> <del>삭제</del> <u>밑줄</u> <sup>위</sup> <sub>아래</sub></p>"
    )


def test_raw_html_is_escaped():
    assert html_of("<b onclick=x>hi</b>") == "<p>&lt;b onclick=x&gt;hi&lt;/b&gt;</p>"


# =============================================================================
# Links
# =============================================================================

def test_internal_link_is_percent_encoded():
    assert html_of("[[문서]]") == (
        f'<p><a class="wiki-link" href="/wiki/{quote("문서", safe="")}">문서</a></p>'
    )


def test_link_with_label():
    assert 'href="/wiki/A">표시</a>' in html_of("[[A|표시]]")


def test_formatting_never_reaches_inside_links():
    html = html_of("[[a--b--c]]")
    assert "<del>" not in html
    assert 'href="/wiki/a--b--c"' in html


def test_external_link_forms():
    assert 'href="https://example.com" rel="noopener noreferrer">사이트</a>' in html_of(
        "[[https://example.com|사이트]]"
    )
    assert 'href="https://example.com"' in html_of("[https://example.com 사이트]")


# =============================================================================
# Triple braces
# =============================================================================

@pytest.mark.parametrize("text, color", [
    ("{{{#ff0000 빨강}}}", "#ff0000"),
    ("{{{#F00 빨강}}}", "#f00"),
    ("{{{#red 빨강}}}", "red"),
])
def test_colour_span(text, color):
    assert html_of(text) == f'<span style="color:{color}">빨강</span>'


def test_colour_span_inside_paragraph():
    assert html_of("글 {{{#red 빨강}}} 끝") == '<p>글 <span style="color:red">빨강</span> 끝</p>'


@pytest.mark.parametrize("text, size", [
    ("{{{+1 크게}}}", "1.2em"),
    ("{{{+5 크게}}}", "2em"),
    ("{{{-2 작게}}}", "0.6em"),
    ("{{{-5 작게}}}", "0.6em"),
])
def test_size_span(text, size):
    assert f'<span style="font-size:{size}">' in html_of(text)


def test_inline_code_is_literal():
    html = html_of("a {{{'''raw'''}}} b")
    assert '<code class="wiki-inline-code">&#x27;&#x27;&#x27;raw&#x27;&#x27;&#x27;</code>' in html
    assert "<strong>" not in html


def test_multiline_braces_are_code_block():
    html = parse_namumark("{{{\nline1\nline2\n}}}").html
    assert html == '<pre class="wiki-codeblock"><code>line1\nline2</code></pre>'


def test_nested_braces_resolve_innermost_first():
    html = html_of("{{{#red {{{+1 big}}} }}}")
    assert '<span style="color:red"><span style="font-size:1.2em">big</span> </span>' in html


def test_wiki_block_body_is_markup():
    html = html_of('{{{#!wiki style="border:1px"\n\'\'\'내용\'\'\'\n}}}')
    assert "<strong>내용</strong>" in html
    assert "border" not in html


def test_unclosed_braces_stay_text():
    assert "{{{열림" in html_of("{{{열림 그대로")


# =============================================================================
# Lists, quotes, indents
# =============================================================================

def test_bullet_list():
    assert html_of("* 하나\n* 둘") == '<ul class="wiki-list"><li>하나</li><li>둘</li></ul>'


def test_numbered_list():
    assert html_of("1. 하나\n1. 둘") == '<ol class="wiki-list"><li>하나</li><li>둘</li></ol>'


def test_nested_list_by_leading_spaces():
    assert html_of("* a\n  * b\n* c") == (
        '<ul class="wiki-list"><li>a<ul class="wiki-list"><li>b</li></ul></li>'
        "<li>c</li></ul>"
    )


def test_quote_lines_share_blockquote():
    assert html_of("> 인용\n> 둘째") == '<blockquote class="wiki-quote">인용<br/>둘째</blockquote>'


def test_indent():
    assert html_of("  들여쓰기") == '<div class="wiki-indent" style="margin-left:4em">들여쓰기</div>'


# =============================================================================
# Tables
# =============================================================================

def test_table_rows():
    assert html_of("||a||b||\n||c||d||") == (
        '<table class="wiki-table"><tr><td>a</td><td>b</td></tr>'
        "<tr><td>c</td><td>d</td></tr></table>"
    )


def test_empty_cells_widen_next_cell():
    assert '<td colspan="2">wide</td>' in html_of("||||wide||\n||a||b||")


@pytest.mark.parametrize("cell, expected", [
    ("<-3> x", '<td colspan="3">x</td>'),
    ("<|2> y", '<td rowspan="2">y</td>'),
    ("<(> z", '<td class="text-left">z</td>'),
    ("<:> z", '<td class="text-center">z</td>'),
    ("<)> z", '<td class="text-right">z</td>'),
    ("<#ff0> w", '<td style="background-color:#ff0">w</td>'),
    ("<bgcolor=red> v", '<td style="background-color:red">v</td>'),
])
def test_cell_options(cell, expected):
    assert expected in html_of(f"||{cell}||")


@pytest.mark.parametrize("cell, align", [
    (" c ", "text-center"),
    ("l ", "text-left"),
    (" r", "text-right"),
])
def test_whitespace_alignment(cell, align):
    assert f'<td class="{align}">' in html_of(f"||{cell}||")


def test_invalid_bgcolor_is_dropped():
    html = html_of("||<bgcolor=red;x:y> v||")
    assert "style=" not in html
    assert "<td>v</td>" in html


def test_table_ends_at_non_row_line():
    html = html_of("||a||\n본문\n||b||")
    assert html.count("<table") == 2


# =============================================================================
# Macros
# =============================================================================

def test_date_macro_uses_given_day():
    assert html_of("오늘은 [date]") == "<p>오늘은 2024. 3. 5.</p>"


def test_br_macro():
    assert html_of("a[br]b") == "<p>a<br/>b</p>"


def test_include_and_age_are_dropped():
    assert html_of("a[include(틀:상자)]b[age(2000-01-01)]c") == "<p>abc</p>"


def test_youtube_becomes_placeholder():
    assert '<span class="wiki-placeholder">[YouTube]</span>' in html_of("[youtube(abc)]")


def test_toc_macro_is_removed():
    assert html_of("[목차]\n본문") == "<p>본문</p>"


# -----------------------------------------------------------------------------
