"""
End-to-end tests for regclean/dirty.py: one-shot cleanup of raw HTML
exports, with structure guessing.

Run: python3 test_dirty_clean.py
"""

import sys

sys.path.insert(0, '.')

from regclean.cleanup.stages import stage_names
from regclean.config import Settings
from regclean.dirty import AlreadyCleanError, dirty_clean, looks_clean, make_dirty_clean_stages
from regclean.text import prettify


def _clean(html, **kwargs):
    return dirty_clean(html, skip_prettier=True, **kwargs)


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------

def test_whitespace_collapse():
    out = _clean('<p>A\t&nbsp;</p> <br/> \t<p>B</p>\n\n <p>C</p>')
    assert out == '<p>A</p><p>B</p><p>C</p>', repr(out)
    print("PASS: whitespace and stray line-breaks between blocks removed")


def test_unknown_attributes_dropped():
    assert _clean('<p data-some-attribute="foo" id="hi" right="right">A</p>') == '<p id="hi">A</p>'
    print("PASS: attributes are allow-listed")


def test_output_is_prettified_by_default():
    html = '<p>Hello world</p>'
    assert dirty_clean(html) == prettify(_clean(html))
    assert dirty_clean(html) == "<p>\n\nHello\nworld\n\n</p>"
    print("PASS: output is prettified unless skipped")


def test_empty_input():
    assert dirty_clean("") == ""
    assert _clean("<p> </p>") == ""
    print("PASS: empty input gives empty output")


def test_stage_order():
    names = stage_names(make_dirty_clean_stages())
    assert names[0] == "escape_pre_elements"
    assert names[-1] == "sort_attributes"
    assert names.count("guess_article_titles") == 2
    assert names.index("guess_chapter_titles") < names.index("guess_chapter_names")
    print("PASS: stages run in a fixed order")


# ---------------------------------------------------------------------------
# Already cleaned input
# ---------------------------------------------------------------------------

def test_looks_clean():
    assert looks_clean('<h3 class="article__title">1. gr.</h3>')
    assert looks_clean('<ol data-autogenerated=""><li>a</li></ol>')
    assert not looks_clean('<p class="Grein">1. gr.</p>')
    print("PASS: cleanup output is recognised")


def test_assert_dirty_raises():
    try:
        dirty_clean('<h3 class="article__title">1. gr.</h3>', assert_dirty=True)
        assert False, "expected AlreadyCleanError"
    except AlreadyCleanError:
        pass
    # Without the assertion it only warns
    assert "article__title" in _clean('<h3 class="article__title">1. gr.</h3>')
    print("PASS: cleaned input is refused on request")


# ---------------------------------------------------------------------------
# Structure guessing
# ---------------------------------------------------------------------------

FULL_DOCUMENT = (
    '<p class="MsoTitle">REGLUGERÐ UM HUNDAHALD</p>'
    '<p align="center">I. kafli<br>Almenn ákvæði</p>'
    '<p align="center">1. gr.<br>Gildissvið</p>'
    '<p>Reglugerð þessi gildir um hundahald.</p>'
    '<p align="center">2. gr. - Gildistaka</p>'
    '<p>Reglugerðin tekur þegar gildi.</p>'
    '<p align="center">Umhverfisráðuneytinu, 12. maí 2020.</p>'
    '<p align="right">f.h.r.</p>'
)


def test_full_document():
    out = _clean(FULL_DOCUMENT)
    expected = (
        '<p class="doc__title" align="center">REGLUGERÐ UM HUNDAHALD</p>'
        '<h2 class="chapter__title">I. kafli <em class="chapter__name">Almenn ákvæði</em></h2>'
        '<h3 class="article__title">1. gr. <em class="article__name">Gildissvið</em></h3>'
        '<p>Reglugerð þessi gildir um hundahald.</p>'
        '<h3 class="article__title">2. gr. <em class="article__name">Gildistaka</em></h3>'
        '<p>Reglugerðin tekur þegar gildi.</p>'
        '<p class="Dags" align="center">Umhverfisráðuneytinu, 12. maí 2020.</p>'
        '<p class="FHUndirskr" align="right">f.h.r.</p>'
    )
    assert out == expected, out
    print("PASS: titles, names, document title and signature block recognised")


def test_rerun_settles():
    first = _clean(FULL_DOCUMENT)
    second = _clean(first)
    assert second != first
    assert 'class="chapter__name"' not in second
    assert _clean(second) == second
    print("PASS: re-running mangles names once, then settles")


def test_tab_stop_rerun_settles():
    first = _clean('<p>a <span style="mso-tab-count:1">     </span> b</p>')
    assert first == '<p>a\n<span data-legacy-indenter="">       </span>\nb</p>', repr(first)
    second = _clean(first)
    assert second == '<p>a b</p>', repr(second)
    assert _clean(second) == second
    print("PASS: re-running on rendered indenters settles after one more run")


def test_class_titles_take_precedence():
    out = _clean('<p class="Grein" align="center">I. Kafli</p>')
    assert out == '<h3 class="article__title">I. Kafli</h3>', out
    print("PASS: legacy classes win over centered-text guessing")


def test_blockquote_lists():
    out = dirty_clean('<blockquote><p>1) F1<br>2) F2</p></blockquote>')
    assert out == prettify('<ol data-autogenerated=""><li>F1</li><li>F2</li></ol>'), out

    out = _clean('<blockquote><p>1) F1<br>2) F2</p></blockquote>')
    assert out == '<ol data-autogenerated=""><li>F1</li><li>F2</li></ol>', out

    out = dirty_clean('<blockquote><p>a) J1<br/>b) J2</p></blockquote>')
    assert out == prettify('<ol type="a" data-autogenerated=""><li>J1</li><li>J2</li></ol>'), out

    out = dirty_clean('<blockquote><p>- T1<br>1. T2</p></blockquote>')
    assert out == prettify('<p>- T1</p><p>1. T2</p>'), out
    print("PASS: blockquoted faux lists rebuilt, mixed markers left as paragraphs")


def test_layout_tables():
    html = '<table border="0"><tr><td>a)</td><td>Texti</td></tr><tr><td>b)</td><td>Meira</td></tr></table>'
    out = _clean(html)
    assert '<table class="layout layout--list">' in out, out
    assert 'border' not in out
    assert 'class=' not in _clean(html.replace('border="0"', 'border="1"'))
    print("PASS: borderless list tables flagged")


def test_footnotes():
    html = (
        '<p>Texti<a href="#_ftn1" id="_ftnref1"><span class="MsoFootnoteReference">1</span></a></p>'
        '<p class="MsoFootnoteText"><a href="#_ftnref1" id="_ftn1"><span class="MsoFootnoteReference">1</span></a> Neðanmál.</p>'
    )
    out = _clean(html)
    assert '<sup class="footnote-reference"><a id="_ftnref1" href="#_ftn1">1</a></sup>' in out, out
    assert '<p class="footnote"><sup class="footnote__marker"><a id="_ftn1" href="#_ftnref1">1</a></sup>' in out, out
    print("PASS: footnote references and texts")


def test_settings_override():
    html = '<p><img src="/media/a.png" width="10" height="10" alt="x"></p>'
    out = _clean(html, settings=Settings(file_server="https://files.example.is"))
    assert out == '<p><img src="https://files.example.is/media/a.png" width="10" height="10" alt="x"/></p>', out
    print("PASS: settings override the file server")


# ---------------------------------------------------------------------------

if __name__ == '__main__':
    tests = [
        test_whitespace_collapse,
        test_unknown_attributes_dropped,
        test_output_is_prettified_by_default,
        test_empty_input,
        test_stage_order,
        test_looks_clean,
        test_assert_dirty_raises,
        test_full_document,
        test_rerun_settles,
        test_tab_stop_rerun_settles,
        test_class_titles_take_precedence,
        test_blockquote_lists,
        test_layout_tables,
        test_footnotes,
        test_settings_override,
    ]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            passed += 1
        except Exception as e:
            print(f"FAIL: {t.__name__} - {e}")
            failed += 1

    print(f"\n{'=' * 50}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed > 0:
        sys.exit(1)
    else:
        print("All tests passed!")
