"""
Tests for regclean/cleanup/mutators.py: structural rewrites shared by both
cleanup pipelines.

Run: python3 test_mutators.py
"""

import sys

sys.path.insert(0, '.')

from regclean.cleanup.mutators import (
    IdCollisionError,
    clean_up_lists,
    clean_uploaded_media_urls,
    cleanup_blockquotes,
    convert_hacks_to_text,
    css_size_to_px,
    fix_html_mistakes,
    fix_images,
    insert_br_after_cite,
    merge_adjacent_inline_elements,
    normalize_class_names,
    normalize_editor_class_names,
    normalize_editor_tag_names,
    normalize_image_srcs,
    normalize_link_urls,
    normalize_tag_names,
    paragraphize_bare_children,
    pass_id_down,
    remove_disallowed_elements,
    reverse_linked_footnote_markers,
    save_cf_email_markers,
    zap_noisy_elements,
    zap_redundant_descendants,
    zap_redundant_paragraphs,
)
from regclean.utils.dom import Element, inner_html, parse_html

FILE_SERVER = "https://files.example.is"


def _run(fn, html, *args):
    root = parse_html(html)
    fn(root, *args)
    return inner_html(root)


# ---------------------------------------------------------------------------
# Paragraphs
# ---------------------------------------------------------------------------

def test_paragraphize_bare_children():
    root = Element("div", children=[
        "A ", Element("em", children=["b"]), Element("h3", children=["T"]), " ", Element("p", children=["C"]),
    ])
    paragraphize_bare_children(root)
    assert inner_html(root) == '<p>A <em>b</em></p><h3>T</h3><p>C</p>', inner_html(root)
    print("PASS: bare text and inlines wrapped, blank runs dropped")


def test_zap_redundant_paragraphs():
    out = _run(zap_redundant_paragraphs, '<ul><li><p align="center">A</p></li></ul><p>B</p>')
    assert out == '<ul><li align="center">A</li></ul><p>B</p>', out
    print("PASS: lone paragraph in a list item is unwrapped, keeping align")


# ---------------------------------------------------------------------------
# Inline elements
# ---------------------------------------------------------------------------

def test_merge_adjacent_inline_elements():
    out = _run(merge_adjacent_inline_elements, '<p><strong>A</strong> <strong>B</strong></p>')
    assert out == '<p><strong>A B</strong></p>', out
    print("PASS: adjacent identical inlines merge")


def test_different_links_not_merged():
    html = '<p><a href="x">A</a> <a href="y">B</a></p>'
    assert _run(merge_adjacent_inline_elements, html) == html
    print("PASS: links with different targets stay apart")


def test_reverse_linked_footnote_markers():
    out = _run(reverse_linked_footnote_markers, '<p>X<a href="#_ftn1"><sup class="footnote__marker">1</sup></a></p>')
    assert out == '<p>X<sup class="footnote__marker"><a href="#_ftn1">1</a></sup></p>', out
    print("PASS: footnote links are turned inside out")


def test_zap_redundant_descendants():
    out = _run(zap_redundant_descendants, '<p><strong>A <strong>B</strong></strong></p>')
    assert out == '<p><strong>A B</strong></p>', out
    print("PASS: nested same-kind emphasis is unwrapped")


def test_insert_br_after_cite():
    assert _run(insert_br_after_cite, '<p><cite>A</cite>B</p>') == '<p>A<br/>B</p>'
    print("PASS: <cite> becomes a line-break")


def test_convert_hacks_to_text():
    out = _run(convert_hacks_to_text, '<p>x <u>&gt;</u> 5 og y <u>&lt;</u> 2</p>')
    assert out == '<p>x ≥ 5 og y ≤ 2</p>', out
    print("PASS: underlined comparison hacks become real symbols")


# ---------------------------------------------------------------------------
# Element filtering
# ---------------------------------------------------------------------------

def test_remove_disallowed_elements():
    root = Element("div", children=[Element("p", children=[
        "A",
        Element("script", children=["x()"]),
        Element("o:p", children=[" "]),
        "B",
        Element("noscript", children=["C"]),
    ])])
    remove_disallowed_elements(root)
    assert inner_html(root) == '<p>A BC</p>', inner_html(root)
    print("PASS: unsafe elements removed, meaningless and namespaced ones unwrapped")


def test_zap_noisy_elements():
    out = _run(zap_noisy_elements, '<p><font face="x">A</font> <a name="top">B</a> <a href="/x">C</a></p>')
    assert out == '<p>A B <a href="/x">C</a></p>', out
    print("PASS: noisy elements and anchors without href unwrapped")


def test_save_cf_email_markers():
    out = _run(save_cf_email_markers, '<p><a class="__cf_email__" data-cfemail="abc" href="/cdn-cgi">[email]</a></p>')
    assert out == '<p><span class="__cf_email__" data-cfemail="abc" href="/cdn-cgi">[email]</span></p>', out
    print("PASS: obfuscated email links become flagged spans")


def test_cleanup_blockquotes():
    root = Element("div", children=[
        Element("blockquote", children=[Element("blockquote", children=["A", Element("p", children=["B"])])])
    ])
    cleanup_blockquotes(root)
    assert inner_html(root) == '<blockquote><p>A</p><p>B</p></blockquote>', inner_html(root)
    print("PASS: nested blockquotes flattened, stray text paragraphized")


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

def test_indenting_list_unwrapped():
    out = _run(clean_up_lists, '<ul><li style="list-style-type: none">A</li></ul>')
    assert out == 'A', out
    print("PASS: single unstyled item used for indentation is unwrapped")


def test_continued_list_item_folded():
    out = _run(clean_up_lists, '<ul><li>A</li><li style="list-style-type:none">B</li></ul>')
    assert out == '<ul><li><p>A</p>B</li></ul>', out
    print("PASS: unstyled item folds into the previous one")


def test_ol_values_reconciled():
    html = '<ol start="3"><li value="3">a</li><li value="7">b</li><li>c</li></ol>'
    out = _run(clean_up_lists, html)
    assert out == '<ol start="3"><li>a</li><li value="7">b</li><li>c</li></ol>', out
    print("PASS: redundant list item values dropped")


# ---------------------------------------------------------------------------
# Tag & class names
# ---------------------------------------------------------------------------

def test_pass_id_down():
    div = Element("div", {"id": "x"}, [Element("p")])
    pass_id_down(div)
    assert div.element_children[0].get("id") == "x"

    div = Element("div", {"id": "x"}, [Element("p", {"id": "y"})])
    try:
        pass_id_down(div)
        assert False, "expected IdCollisionError"
    except IdCollisionError as e:
        assert 'id="x"' in str(e)
    print("PASS: ids travel to the first child unless it has its own")


def test_normalize_tag_names():
    out = _run(normalize_tag_names, '<h1>T</h1><div align="center"><p>A</p>x</div><div><b>C</b></div>')
    assert out == '<h2>T</h2><p align="center">A</p><p align="center">x</p><p><strong>C</strong></p>', out
    html = '<section class="appendix"><p>A</p></section>'
    assert _run(normalize_tag_names, html) == html
    print("PASS: wrappers flattened, headings and presentational tags renamed")


def test_normalize_editor_tag_names():
    out = _run(normalize_editor_tag_names, '<section><p>A</p></section><section class="appendix"><p>B</p></section><i>x</i>')
    assert out == '<p>A</p><section class="appendix"><p>B</p></section><em>x</em>', out
    print("PASS: editor markup keeps appendix sections")


def test_normalize_class_names():
    out = _run(normalize_class_names, '<p class="grein">1. gr.</p><p class="Undirritun1">X</p><p class="Grein">2</p>')
    assert out == '<p class="Grein">1. gr.</p><p class="Undirritun">X</p><p class="Grein">2</p>', out
    print("PASS: legacy class spellings canonicalized")


def test_normalize_editor_class_names():
    assert _run(normalize_editor_class_names, '<p class="doc__title">T</p>') == '<p class="doc__title" align="center">T</p>'
    assert _run(normalize_editor_class_names, '<p class="Undirritun2">X</p>') == '<p class="Undirritun">X</p>'
    print("PASS: editor class names")


# ---------------------------------------------------------------------------
# Images & URLs
# ---------------------------------------------------------------------------

def test_css_size_to_px():
    assert css_size_to_px("12pt") == 12
    assert css_size_to_px("1.5em") == 24
    assert css_size_to_px("0px") is None
    assert css_size_to_px("-3px") is None
    assert css_size_to_px("auto") is None
    assert css_size_to_px(None) is None
    print("PASS: css sizes convert to pixels")


def test_fix_images():
    html = (
        '<img src="/icons/ecblank.gif">'
        '<img src="a.png" width="2" height="50">'
        '<img src="b.png" style="width: 12pt; height: 1.5em" title="Mynd">'
        '<img src="c.png">'
    )
    out = _run(fix_images, html)
    expected = '<img src="b.png" style="width: 12pt; height: 1.5em" width="12" height="24" alt="Mynd"/><img src="c.png"/>'
    assert out == expected, out
    print("PASS: spacers dropped, sizes normalized, title moved to alt")


def test_fix_images_min_size():
    root = parse_html('<img src="a.png" width="5" height="50">')
    fix_images(root, min_size=5)
    assert root.query("img") is None
    print("PASS: spacer threshold is configurable")


def test_normalize_image_srcs():
    root = parse_html(
        '<img src="/media/a//b.png">'
        '<img src="http://www.stjornartidindi.is/x.png?v=1">'
        '<img src="https://lh3.googleusercontent.com/abc">'
        '<img src="/img/a.png">'
    )
    normalize_image_srcs(root, FILE_SERVER)
    srcs = [img.get("src") for img in root.query_all("img")]
    assert srcs == [
        FILE_SERVER + "/media/a/b.png",
        FILE_SERVER + "/stjornartidindi/x.png__q__v=1",
        FILE_SERVER + "/ext/lh3.googleusercontent.com/abc",
        FILE_SERVER + "/img/a.png",
    ], srcs
    print("PASS: image sources point at the file server")


def test_normalize_link_urls():
    root = parse_html('<a href="/x/y">A</a><a href="https://z.is">B</a>')
    normalize_link_urls(root, FILE_SERVER)
    assert [a.get("href") for a in root.query_all("a")] == [FILE_SERVER + "/x/y", "https://z.is"]
    print("PASS: root-relative links point at the file server")


def test_clean_uploaded_media_urls():
    root = parse_html(
        f'<img src="{FILE_SERVER}/files/a.png?t=123">'
        f'<a href="{FILE_SERVER}/files/b.pdf?x=1">B</a>'
        '<a href="https://other.is/files/c?x=1">C</a>'
    )
    clean_uploaded_media_urls(root, FILE_SERVER)
    assert root.query("img").get("src") == FILE_SERVER + "/files/a.png"
    assert [a.get("href") for a in root.query_all("a")] == [FILE_SERVER + "/files/b.pdf", "https://other.is/files/c?x=1"]
    print("PASS: cache-busting query strings stripped from uploads only")


# ---------------------------------------------------------------------------
# String-level fix-ups
# ---------------------------------------------------------------------------

def test_fix_html_mistakes():
    assert fix_html_mistakes("&#64257;ingvellir") == "Þingvellir"
    assert fix_html_mistakes("<u>x&lt;/u&gt;") == "<u>x</u>"
    assert fix_html_mistakes('<p align="center;color:red">') == '<p align="center" style="color:red">'
    print("PASS: recurring export glitches repaired")


# ---------------------------------------------------------------------------

if __name__ == '__main__':
    tests = [
        test_paragraphize_bare_children,
        test_zap_redundant_paragraphs,
        test_merge_adjacent_inline_elements,
        test_different_links_not_merged,
        test_reverse_linked_footnote_markers,
        test_zap_redundant_descendants,
        test_insert_br_after_cite,
        test_convert_hacks_to_text,
        test_remove_disallowed_elements,
        test_zap_noisy_elements,
        test_save_cf_email_markers,
        test_cleanup_blockquotes,
        test_indenting_list_unwrapped,
        test_continued_list_item_folded,
        test_ol_values_reconciled,
        test_pass_id_down,
        test_normalize_tag_names,
        test_normalize_editor_tag_names,
        test_normalize_class_names,
        test_normalize_editor_class_names,
        test_css_size_to_px,
        test_fix_images,
        test_fix_images_min_size,
        test_normalize_image_srcs,
        test_normalize_link_urls,
        test_clean_uploaded_media_urls,
        test_fix_html_mistakes,
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
