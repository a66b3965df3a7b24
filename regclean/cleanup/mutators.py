"""
Structural mutators shared by the raw-import and editor cleanup pipelines.

Every mutator takes the detached <div> root returned by `parse_html` and
rewrites it in place.
"""

import math
import re
from typing import Optional

import structlog

from regclean.cleanup.attributes import parse_style
from regclean.consts import (
    BLOCK_ELMS,
    INLINE_ELMS,
    INLINE_TEXT_ELMS,
    MEANINGLESS_ELMS,
    NOISY_ELMS,
    UNSAFE_ELMS,
)
from regclean.utils.dom import (
    Element,
    Node,
    Text,
    is_element,
    is_empty,
    is_indenter,
    transmogrify,
    zap,
)

logger = structlog.get_logger(__name__)


class IdCollisionError(ValueError):
    """Raised when an element's id would overwrite a different id on its first child."""


# --- Paragraphs ---


def paragraphize_bare_children(elm: Element) -> None:
    """Wraps each run of bare text and inline children of `elm` in a <p>."""
    paragraph: Optional[Element] = None
    for node in list(elm.children):
        if isinstance(node, Text) or (isinstance(node, Element) and node.tag in INLINE_ELMS):
            if paragraph is None:
                paragraph = Element("p")
                node.replace_with(paragraph)
            paragraph.append(node)
            continue
        if paragraph is not None and is_empty(paragraph):
            paragraph.remove()
        paragraph = None

    if paragraph is not None and is_empty(paragraph):
        paragraph.remove()


def paragraphize_stray_content(root: Element) -> None:
    """Paragraphizes the root, and cells or list items that mix blocks with loose text."""
    targets = [root] + root.query_all("li,th,td,caption")
    targets = [elm for elm in targets if elm is root or elm.query(lambda e: e.tag in BLOCK_ELMS)]
    for elm in targets:
        paragraphize_bare_children(elm)


def zap_redundant_paragraphs(root: Element) -> None:
    """Unwraps a <p> that is the only child of an <li>, <td> or <th>."""
    paragraphs = [
        p
        for p in root.query_all("p")
        if p.parent is not root
        and p.previous_sibling is None
        and p.next_sibling is None
        and is_element(p.parent, "li", "td", "th")
    ]
    for p in paragraphs:
        align = p.get("align")
        if align and p.parent is not None:
            p.parent.set("align", align)
        zap(p)


# --- Inline elements ---


def _same_inline_kind(a: Element, b: Element) -> bool:
    if a.tag != b.tag:
        return False
    return all(a.get(name, "") == b.get(name, "") for name in ("href", "id", "class", "data-cfemail"))


def _seek_mergeable_sibling(elm: Element, start: Optional[Node]) -> Optional[Element]:
    prev = start
    while prev is not None and (
        (isinstance(prev, Text) and not prev.data.strip())
        or is_element(prev, "br", "img")
        or is_indenter(prev)
    ):
        prev = prev.previous_sibling
    if not isinstance(prev, Element):
        return None

    if _same_inline_kind(prev, elm):
        return prev

    # `<em><strong>x</strong></em> <strong>y</strong>` is swapped into
    # `<strong><em>x</em></strong> <strong>y</strong>` so the strongs can merge
    if len(prev.element_children) == 1:
        child = _seek_mergeable_sibling(elm, prev.last_child)
        if child is not None and child.text_content == prev.text_content.strip():
            for node in list(child.children):
                child.before(node)
            prev.after(child)
            child.append(prev)
            return child
    return None


def merge_adjacent_inline_elements(root: Element) -> None:
    """
    Merges runs of identical inline elements (same tag, href, id, class)
    separated only by whitespace, line-breaks or images.
    """
    for elm in root.query_all(lambda e: e.tag in INLINE_TEXT_ELMS):
        if is_indenter(elm):
            continue
        mergeable = _seek_mergeable_sibling(elm, elm.previous_sibling)
        while mergeable is not None:
            node = elm.previous_sibling
            while node is not None:
                if node is mergeable:
                    node = mergeable.last_child
                else:
                    prev = node.previous_sibling
                    elm.prepend(node)
                    node = prev
            mergeable.remove()
            mergeable = _seek_mergeable_sibling(elm, elm.previous_sibling)


def reverse_linked_footnote_markers(root: Element) -> None:
    """Turns `<a><sup class="footnote__marker">1</sup></a>` inside out."""
    markers = [
        elm
        for elm in root.query_all(lambda e: e.has_class("footnote-reference") or e.has_class("footnote__marker"))
        if is_element(elm.parent, "a") and elm.previous_sibling is None and elm.next_sibling is None
    ]
    for marker in markers:
        link = marker.parent
        link.append(*list(marker.children))
        link.replace_with(marker)
        marker.append(link)


def zap_leftover_spans(root: Element) -> None:
    for span in root.query_all(lambda e: e.tag == "span" and not e.has("data-legacy-indenter") and not e.has("data-cfemail")):
        zap(span)


def zap_redundant_descendants(root: Element) -> None:
    """Unwraps <em>, <strong>, <u> and <s> nested inside another of the same kind."""
    for elm in root.query_all(
        lambda e: e.tag in ("em", "strong", "u", "s") and e.parent is not None and e.parent.closest(e.tag) is not None
    ):
        zap(elm)


def insert_br_after_cite(root: Element) -> None:
    for cite in root.query_all("cite"):
        cite.after(Element("br"))
        zap(cite)


_UNDERLINE_HACKS = {">": "≥", "<": "≤"}


def convert_hacks_to_text(root: Element) -> None:
    """Underlined `>` and `<` were how old documents typed ≥ and ≤."""
    for u in root.query_all("u"):
        intended = _UNDERLINE_HACKS.get(u.text_content.strip())
        if intended:
            u.replace_with(intended)


# --- Element filtering ---


def remove_disallowed_elements(root: Element) -> None:
    """
    Removes unsafe elements (scripts, styles, meta) with their content, and
    unwraps meaningless ones, including namespaced Office tags like <o:p>.
    """
    for elm in root.query_all(lambda e: e.tag in UNSAFE_ELMS):
        elm.remove()
    for elm in root.query_all(lambda e: e.tag in MEANINGLESS_ELMS or ":" in e.tag):
        zap(elm)


def zap_noisy_elements(root: Element) -> None:
    for elm in root.query_all(lambda e: e.tag in NOISY_ELMS or (e.tag == "a" and not e.has("href"))):
        zap(elm)


def save_cf_email_markers(root: Element) -> None:
    """Keeps Cloudflare-obfuscated email links as flagged spans for later review."""
    for link in root.query_all(lambda e: e.tag == "a" and e.has_class("__cf_email__") and e.has("data-cfemail")):
        transmogrify(link, "span")


def cleanup_blockquotes(root: Element) -> None:
    for blockquote in root.query_all(lambda e: e.tag == "blockquote" and is_element(e.parent, "blockquote")):
        zap(blockquote)
    for blockquote in root.query_all("blockquote"):
        paragraphize_stray_content(blockquote)


# --- Lists ---


def clean_up_lists(root: Element) -> None:
    """
    Unwraps single-item lists used purely for indentation, folds unstyled
    items into the previous one and drops `value` attributes that match the
    running count.
    """
    indenting_items = [
        li
        for li in root.query_all(lambda e: e.tag == "li" and e.has("style"))
        if li.parent is not None
        and len(li.parent.element_children) == 1
        and parse_style(li.get("style", "")).get("list-style-type", "").lower() == "none"
    ]
    for li in indenting_items:
        if li.parent is not None and li.parent is not root:
            zap(li.parent)
        zap(li)

    continued_items = [
        li
        for li in root.query_all("li")
        if is_element(li.previous_element_sibling, "li")
        and parse_style(li.get("style", "")).get("list-style-type", "").lower() == "none"
    ]
    for li in continued_items:
        prev_li = li.previous_element_sibling
        if prev_li is None:
            continue
        paragraphize_stray_content(prev_li)
        prev_li.append(*list(li.children))
        li.remove()

    for ol in root.query_all("ol"):
        count = _int_attr(ol.get("start"), 1)
        for li in ol.element_children:
            if li.tag != "li":
                continue
            if li.has("value"):
                value = _int_attr(li.get("value"), 0)
                if value == count:
                    li.remove_attr("value")
                else:
                    count = value
            count += 1


def _int_attr(value: Optional[str], default: int) -> int:
    match = re.match(r"^\s*(-?\d+)", value or "")
    return int(match.group(1)) if match else default


# --- Tag & class names ---


def pass_id_down(elm: Element) -> None:
    """Moves the `id` of a wrapper that is about to be unwrapped onto its first child."""
    elm_id = elm.get("id")
    children = elm.element_children
    if not elm_id or not children:
        return
    child = children[0]
    child_id = child.get("id")
    if child_id and child_id != elm_id:
        raise IdCollisionError(f'Cannot pass id="{elm_id}" down to <{child.tag}> which already has id="{child_id}"')
    child.set("id", elm_id)


def normalize_tag_names(root: Element) -> None:
    """
    Import flavour: flattens wrapper elements (address, align, code, div,
    non-appendix sections), upgrades <h1> to <h2> and swaps presentational
    tags for their semantic counterparts.
    """
    for elm in root.query_all(
        lambda e: e.tag in ("address", "align", "code") or (e.tag == "section" and not e.has_class("appendix"))
    ):
        transmogrify(elm, "div")
    for elm in root.query_all("strike"):
        transmogrify(elm, "s")
    for elm in root.query_all("h1"):
        transmogrify(elm, "h2")

    for div in root.query_all("div"):
        if div.query(lambda e: e.tag in BLOCK_ELMS) is None:
            transmogrify(div, "p")
            continue
        paragraphize_bare_children(div)
        pass_id_down(div)
        for name in ("align", "data-indenting"):
            value = div.get(name)
            if value:
                for block in div.element_children:
                    block.set(name, value)
        zap(div)

    _semantic_tag_names(root)


def normalize_editor_tag_names(root: Element) -> None:
    for section in root.query_all(lambda e: e.tag == "section" and not e.has_class("appendix")):
        zap(section)
    _semantic_tag_names(root)


def _semantic_tag_names(root: Element) -> None:
    for elm in root.query_all("b"):
        transmogrify(elm, "strong")
    for elm in root.query_all("i"):
        transmogrify(elm, "em")


# Lower-cased legacy names mapped onto their canonical spelling
_LEGACY_CLASS_SPELLINGS = {
    "grein": "Grein",
    "greinaheiti": "Greinaheiti",
    "fhundirskr": "FHUndirskr",
    "undirritun1": "Undirritun",
    "undirritun2": "Undirritun",
}


def normalize_class_names(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has("class")):
        for name in elm.classes:
            canonical = _LEGACY_CLASS_SPELLINGS.get(name.lower())
            if canonical and (name.islower() or name in ("Undirritun1", "Undirritun2")):
                elm.class_name = canonical
                break


def normalize_editor_class_names(root: Element) -> None:
    # Early editor saves stored numbered signature classes
    for elm in root.query_all(lambda e: e.has_class("Undirritun1") or e.has_class("Undirritun2")):
        elm.class_name = "Undirritun"
    for elm in root.query_all(lambda e: e.has_class("doc__title")):
        elm.set("align", "center")


# --- Images & URLs ---

_CSS_SIZE_RE = re.compile(r"^(-?\d*(?:\.\d+)?)(.+)$")
_PX_PER_UNIT = {"px": 1, "pt": 1, "em": 16, "rem": 16}
_INVALID_SIZE = 9991999


def css_size_to_px(size: Optional[str]) -> Optional[int]:
    """Converts "12pt" or "1.5em" to whole pixels, or None for unknown or non-positive sizes."""
    match = _CSS_SIZE_RE.match((size or "").strip().lower())
    if not match or not match.group(1) or match.group(1) == "-":
        return None
    pixels = math.floor(float(match.group(1)) * _PX_PER_UNIT.get(match.group(2), 0) + 0.5)
    return pixels if pixels > 0 else None


def fix_images(root: Element, min_size: int = 3) -> None:
    """
    Drops spacer images and normalizes `width`/`height` to whole pixels.
    An image whose smaller side is at most `min_size` pixels is a spacer.
    """
    for img in root.query_all(lambda e: e.tag == "img" and e.get("src") == "/icons/ecblank.gif"):
        img.remove()

    for img in root.query_all("img"):
        style = parse_style(img.get("style", ""))
        width = css_size_to_px(style.get("width")) or _int_attr(img.get("width"), 0) or _INVALID_SIZE
        height = css_size_to_px(style.get("height")) or _int_attr(img.get("height"), 0) or _INVALID_SIZE
        if min(width, height) <= min_size:
            img.remove()
            continue
        for name, value in (("width", width), ("height", height)):
            if value != _INVALID_SIZE:
                img.set(name, str(value))
            else:
                img.remove_attr(name)

        title = img.get("title")
        if title:
            img.set("alt", img.get("alt") or title)
            img.remove_attr("title")


_LEGACY_GAZETTE_HOST_RE = re.compile(r"^https?://(?:hleri/dkmadmin/Stj|(?:www\.)?stjornartidindi\.is)/")
_MIRRORED_HOST_RE = re.compile(r"^https?://(www\.lovdata\.no|[a-z0-9]+\.googleusercontent\.com)/")


def normalize_image_srcs(root: Element, file_server: str) -> None:
    """Points legacy media paths and mirrored external hosts at the file server."""
    for img in root.query_all("img"):
        src = img.get("src", "")
        if src.startswith("/media/"):
            src = file_server + re.sub(r"//+", "/", src)
        else:
            src = _LEGACY_GAZETTE_HOST_RE.sub(f"{file_server}/stjornartidindi/", src)
            # Mirrored files are stored with their query string in the file name
            src = src.replace("?", "__q__")
            src = _MIRRORED_HOST_RE.sub(lambda m: f"{file_server}/ext/{m.group(1)}/", src)
            if src.startswith("/"):
                src = f"{file_server}/{src[1:]}"
        img.set("src", src)


def normalize_link_urls(root: Element, file_server: str) -> None:
    for link in root.query_all(lambda e: e.tag == "a" and e.get("href", "").startswith("/")):
        link.set("href", f"{file_server}/{link.get('href')[1:]}")


def clean_uploaded_media_urls(root: Element, file_server: str) -> None:
    """Strips cache-busting query strings off uploaded file URLs."""
    prefix = f"{file_server}/files/"
    for elm, name in [(img, "src") for img in root.query_all("img")] + [(a, "href") for a in root.query_all("a")]:
        url = elm.get(name, "")
        if url.startswith(prefix):
            elm.set(name, re.sub(r"\?.+$", "", url))


# --- String-level fix-ups ---


def fix_html_mistakes(html: str) -> str:
    """Repairs recurring export glitches before the markup is parsed."""
    html = re.sub(r"&#64257;|ﬁ", "Þ", html)
    html = html.replace("&lt;/u&gt;", "</u>")
    return re.sub(r'(<[a-z0-6]+ align="[a-z]+);', r'\1" style="', html, flags=re.IGNORECASE)
