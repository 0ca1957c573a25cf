from __future__ import annotations

import re

from hypothesis import given, settings
from hypothesis import strategies as st

from tests.conftest import marker_ids, note_ids
from wikimark.services.mediawiki import parse_mediawiki
from wikimark.services.namumark import parse_namumark
from wikimark.services.renderer import render


MEDIAWIKI_FRAGMENTS = [
    "== H ==", "'''", "''", "[[Page]]", "[[A|b]]", "[https://x.org y]",
    "{{", "}}", "{{tpl|", "{|", "|}", "|-", "| c || d", "! h", "|+ cap",
    "* ", "# ", "** ", "; t : d", ": ", "----", "<ref>", "</ref>", "<ref name=a/>",
    "<nowiki>", "</nowiki>", "<pre>", "</pre>", "<code>", "</code>",
    '<source lang="python">', "</source>", "<!--", "-->", "[[Category:C]]",
    "[[File:f.png|thumb|cap]]", "<script>", "<u>", "</u>", "<br>", "\n", "\n\n", "text ",
]

NAMUMARK_FRAGMENTS = [
    "= H =", "== H ==", "'''", "~~", "--", "__", "^^", ",,", "[[문서]]", "[[a|b]]",
    "{{{", "}}}", "{{{#red ", "{{{+2 ", "{{{#!syntax python\n", "{{{#!wiki\n",
    "||", "<-2>", "<:>", "<#f00>", "* ", "  * ", "1. ", "> ", "----",
    "[* ", "[*A ", "]", "[br]", "[date]", "[include(x)]", "[[분류:C]]",
    "[[파일:f.png|width=10]]", "<script>", "\n", "\n\n", "글 ",
]


def _documents(fragments):
    return st.lists(
        st.one_of(st.sampled_from(fragments), st.text(max_size=8)), max_size=40
    ).map("".join)


mediawiki_docs = _documents(MEDIAWIKI_FRAGMENTS)
namumark_docs = _documents(NAMUMARK_FRAGMENTS)


def _assert_well_formed(html: str, footnotes: list[str]) -> None:
    assert "\x00" not in html
    assert "<script" not in html.lower()
    # Exactly one marker per note, and the section lists each note once in order.
    assert sorted(marker_ids(html)) == list(range(1, len(footnotes) + 1))
    assert note_ids(html) == list(range(1, len(footnotes) + 1))
    for tag in ("table", "ul", "ol", "blockquote", "dl"):
        assert len(re.findall(rf"<{tag}[\s>]", html)) == html.count(f"</{tag}>")


@settings(deadline=None)
@given(st.text())
def test_render_never_raises_and_never_leaks_tokens(text: str):
    result = render(text)
    assert "\x00" not in result.html
    assert "<script" not in result.html.lower()


@settings(max_examples=200, deadline=None)
@given(mediawiki_docs)
def test_mediawiki_output_is_well_formed(text: str):
    result = parse_mediawiki(text)
    _assert_well_formed(result.html, result.footnotes)
    assert all("\x00" not in note for note in result.footnotes)


@settings(max_examples=200, deadline=None)
@given(namumark_docs)
def test_namumark_output_is_well_formed(text: str):
    result = parse_namumark(text)
    _assert_well_formed(result.html, result.footnotes)
    assert all("\x00" not in note for note in result.footnotes)


@settings(deadline=None)
@given(mediawiki_docs)
def test_mediawiki_is_deterministic(text: str):
    assert parse_mediawiki(text) == parse_mediawiki(text)


@given(st.integers(min_value=1, max_value=12))
def test_template_passes_equal_nesting_depth(depth: int):
    from wikimark.services.markup import RenderContext
    from wikimark.services.mediawiki import strip_templates

    text = "{{a|" * depth + "x" + "}}" * depth
    assert strip_templates(text, RenderContext()) == ("", depth)


@given(st.text(alphabet="{}|abc\n", max_size=60))
def test_template_stripping_terminates(text: str):
    from wikimark.services.markup import RenderContext
    from wikimark.services.mediawiki import strip_templates

    stripped, passes = strip_templates(text, RenderContext())
    assert passes <= text.count("{") // 2
    assert len(stripped) <= len(text)
