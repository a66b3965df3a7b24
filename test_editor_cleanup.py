"""
End-to-end tests for regclean/editor.py: idempotent cleanup of editor
output and of stored regulation texts with appendixes and comments.

Run: python3 test_editor_cleanup.py
"""

import sys

sys.path.insert(0, '.')

from regclean.cleanup.stages import stage_names
from regclean.config import Settings
from regclean.editor import (
    cleanup_all_editor_outputs,
    cleanup_and_combine_editor_outputs,
    cleanup_editor_output,
    cleanup_regulation_text,
    make_editor_stages,
)
from regclean.models import Appendix, RegulationTextParts
from regclean.text import prettify
from regclean.text_helpers import extract_appendixes_and_comments

FILE_SERVER = "https://files.example.is"


def _clean(html, **kwargs):
    return cleanup_editor_output(html, skip_prettier=True, **kwargs)


# ---------------------------------------------------------------------------
# cleanup_editor_output
# ---------------------------------------------------------------------------

def test_whitespace_collapse():
    out = _clean('<p>A\t&nbsp;</p> <br/> \t<p>B</p>\n\n <p>C</p>')
    assert out == '<p>A</p><p>B</p><p>C</p>', repr(out)
    print("PASS: whitespace and stray line-breaks between blocks removed")


def test_idempotent():
    html = (
        '<h3 class="article__title">1. gr. <em class="article__name">Gildissvið</em></h3>'
        '<p>A <strong>B</strong><br>C</p>'
        '<ul><li>X</li></ul>'
    )
    once = cleanup_editor_output(html)
    assert cleanup_editor_output(once) == once
    once = _clean(html)
    assert _clean(once) == once
    print("PASS: cleanup is idempotent")


# Editor output that moves or drops whitespace during cleanup
IDEMPOTENCE_CORPUS = [
    '<p>Hello <strong> </strong> world</p>',
    '<p>A <b>bold</b>  <i> it </i> </p>',
    '<p>x <em>y </em> z</p>',
    '<p><span data-legacy-indenter="">   </span></p><p>x</p>',
    '<p>a <span data-legacy-indenter="">      </span> b</p>',
    '<p>A<br><br><br>B</p>',
    '<p>A <br> B<br></p>',
]


def test_idempotent_corpus():
    for html in IDEMPOTENCE_CORPUS:
        once = _clean(html)
        assert _clean(once) == once, (html, once, _clean(once))
        once = cleanup_editor_output(html)
        assert cleanup_editor_output(once) == once, (html, once, cleanup_editor_output(once))
    print("PASS: cleanup is idempotent, raw and prettified")


def test_relocated_spaces_collapse():
    assert _clean('<p>Hello <strong> </strong> world</p>') == '<p>Hello world</p>'
    assert _clean('<p>A <b>bold</b>  <i> it </i> </p>') == '<p>A <strong>bold</strong> <em>it</em></p>'
    assert _clean('<p>x <em>y </em> z</p>') == '<p>x <em>y</em> z</p>'
    print("PASS: spaces moved out of inline elements never pile up")


def test_indenters():
    assert _clean('<p><span data-legacy-indenter="">   </span></p><p>x</p>') == '<p>x</p>'
    out = _clean('<p>a <span data-legacy-indenter="">      </span> b</p>')
    assert out == '<p>a\n<span data-legacy-indenter="">      </span>\nb</p>', repr(out)
    print("PASS: lone indenters vanish, padded ones are kept")


def test_br_runs():
    assert _clean('<p>A<br><br><br>B</p>') == '<p>A</p><p>B</p>'
    assert _clean('<p>A <br> B<br></p>') == '<p>A<br/> B</p>'
    print("PASS: double line-breaks split paragraphs, stray ones trimmed")


def test_autogenerated_markers_removed():
    assert _clean('<ol data-autogenerated=""><li>A</li></ol>') == '<ol><li>A</li></ol>'
    print("PASS: reviewed lists lose their autogenerated marker")


def test_stale_indenting_removed():
    assert _clean('<p data-indenting="36pt|">A</p>') == '<p>A</p>'
    assert _clean('<p style="margin-left: 36pt">A</p>') == '<p style="margin-left: 36pt;">A</p>'
    print("PASS: leaked data-indenting dropped, real margins kept")


def test_doc_title_centered():
    assert _clean('<p class="doc__title">Titill</p>') == '<p class="doc__title" align="center">Titill</p>'
    print("PASS: document titles are centered")


def test_title_name_ems():
    out = _clean('<h3 class="article__title" align="center">1. gr.<em>Heiti</em></h3>')
    assert out == '<h3 class="article__title">1. gr. <em class="article__name">Heiti</em></h3>', out
    print("PASS: title names get their class back")


def test_uploaded_media_urls():
    html = f'<p><img src="{FILE_SERVER}/files/a.png?v=2" alt="x"></p>'
    out = _clean(html, settings=Settings(file_server=FILE_SERVER))
    assert out == f'<p><img src="{FILE_SERVER}/files/a.png" alt="x"/></p>', out
    print("PASS: cache-busting query strings stripped")


def test_stage_order():
    names = stage_names(make_editor_stages())
    assert names[0] == "flag_editor_indents"
    assert names[-1] == "sort_attributes"
    assert "guess_article_titles" not in names
    print("PASS: the editor pipeline never guesses structure")


# ---------------------------------------------------------------------------
# Regulation text parts
# ---------------------------------------------------------------------------

def test_cleanup_all_editor_outputs():
    parts = RegulationTextParts(
        text='<p>A  B</p>',
        appendixes=[Appendix(title='  Viðauki \n I ', text='<p>X</p>')],
        comments='',
    )
    clean = cleanup_all_editor_outputs(parts)
    assert clean.text == '<p>A B</p>'
    assert clean.appendixes == [Appendix(title='Viðauki I', text='<p>X</p>')], clean.appendixes
    assert clean.comments == ''
    print("PASS: every part is cleaned")


def test_cleanup_and_combine():
    parts = RegulationTextParts(text='<p>A</p>', comments='<p>C</p>')
    out = cleanup_and_combine_editor_outputs(parts)
    assert out == prettify('<p>A</p><section class="comments"><p>C</p></section>'), repr(out)
    print("PASS: cleaned parts are combined and prettified")


def test_cleanup_regulation_text():
    html = '<p>A</p><section class="appendix"><h2 class="appendix__title">Viðauki</h2><p>X</p></section>'
    once = cleanup_regulation_text(html)
    assert cleanup_regulation_text(once) == once

    parts = extract_appendixes_and_comments(once)
    assert [a.title for a in parts.appendixes] == ["Viðauki"]
    print("PASS: stored regulation texts clean up idempotently")


# ---------------------------------------------------------------------------

if __name__ == '__main__':
    tests = [
        test_whitespace_collapse,
        test_idempotent,
        test_idempotent_corpus,
        test_relocated_spaces_collapse,
        test_indenters,
        test_br_runs,
        test_autogenerated_markers_removed,
        test_stale_indenting_removed,
        test_doc_title_centered,
        test_title_name_ems,
        test_uploaded_media_urls,
        test_stage_order,
        test_cleanup_all_editor_outputs,
        test_cleanup_and_combine,
        test_cleanup_regulation_text,
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
