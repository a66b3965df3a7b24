"""
Structural heuristics that recognise the parts of a regulation.

Chapter and article titles are found either through the class names legacy
authoring tools left behind (`Kafli`, `Grein`, ...) or by inspecting short
centered paragraphs. A centered paragraph often holds a title and its name
on two lines (or split by a dash), so candidates are split at their first
<br> (or dash) before the title grammar is applied.
"""

import re
from typing import List, NamedTuple, Optional

import structlog

from regclean.cleanup.grammar import (
    DASH_SPLITTER_RE,
    TRAILING_GR_RE,
    SignatureKind,
    classify_article_title,
    classify_chapter_title,
    classify_signature_line,
    has_year,
)
from regclean.cleanup.whitespace import split_on_cursor
from regclean.consts import HEADING_ELMS, TITLE_CLASSES
from regclean.utils.dom import Element, Node, Text, is_element, transmogrify, zap

logger = structlog.get_logger(__name__)

SPLITTER_CLASS = "__dash-splitter__"


class SplitCandidate(NamedTuple):
    elm: Element
    title_text: str
    rest: Optional[Element]
    title_elm: Element


def is_centered(elm: Element) -> bool:
    return elm.tag in HEADING_ELMS and elm.get("align") == "center"


def is_title_candidate(elm: Element) -> bool:
    """Centered paragraphs and headings, plus headings the legacy `Section1` class marks."""
    return is_centered(elm) or (elm.tag in ("h3", "h4") and elm.has_class("Section1"))


def _follows(elm: Element, tag: str, class_name: str) -> Optional[Element]:
    prev = elm.previous_element_sibling
    if is_element(prev, tag) and prev.has_class(class_name):
        return prev
    return None


def _optional(elm: Optional[Element]) -> List[Node]:
    return [elm] if elm is not None else []


# --- Candidate splitting ---


def find_dash_splitter(elm: Element) -> Optional[Element]:
    """
    Marks the first " - " (or en/em dash) in elm's text with a splitter span
    and returns it.
    """
    for node in list(elm.children):
        if isinstance(node, Element):
            splitter = find_dash_splitter(node)
            if splitter is not None:
                return splitter
            continue
        if not isinstance(node, Text):
            continue
        text = node.data.strip()
        match = DASH_SPLITTER_RE.search(text + " ")
        if match:
            splitter = Element("span", {"class": SPLITTER_CLASS}, [f"|{match.group(0)}|"])
            node.replace_with(Text(text[: match.start()]), splitter, Text(text[match.end() :]))
            return splitter
    return None


def get_split_centered_paragraphs(root: Element, on_dash: bool = False) -> List[SplitCandidate]:
    """
    Splits every title candidate at its first <br> (or, with `on_dash`, its
    first dash). The candidates themselves are left in place, and all splits
    are computed before any caller starts replacing elements.
    """
    candidates = []
    for elm in root.query_all(is_title_candidate):
        splitter = elm.query("br")
        is_dash = False
        if splitter is None and on_dash:
            splitter = find_dash_splitter(elm)
            is_dash = splitter is not None

        title_elm, rest_elm = split_on_cursor(elm, splitter)
        if is_dash:
            splitter.replace_with(splitter.text_content[1:-1])
            leftover = title_elm.query(lambda e: e.has_class(SPLITTER_CLASS))
            if leftover is not None:
                leftover.remove()

        title_text = re.sub(r"\s*\.$", ".", title_elm.text_content)
        rest = rest_elm if rest_elm.text_content else None
        candidates.append(SplitCandidate(elm, title_text, rest, title_elm))
    return candidates


# --- Titles & names ---


def find_chapter_title_by_classes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("Kafli")):
        elm.replace_with(Element("h2", {"class": "chapter__title"}, [elm.text_content.strip()]))


def find_article_title_by_classes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("Grein")):
        text = TRAILING_GR_RE.sub(" gr.", elm.text_content.strip())
        elm.replace_with(Element("h3", {"class": "article__title"}, [text]))


def guess_chapter_titles(root: Element) -> None:
    for candidate in get_split_centered_paragraphs(root):
        match = classify_chapter_title(candidate.title_text)
        if match is not None:
            title = Element(match.tag, {"class": match.class_name}, [match.text])
            candidate.elm.replace_with(title, *_optional(candidate.rest))


def guess_article_titles(root: Element) -> None:
    for candidate in get_split_centered_paragraphs(root, on_dash=True):
        match = classify_article_title(candidate.title_text)
        if match is not None:
            title = Element(match.tag, {"class": match.class_name}, [match.text])
            candidate.elm.replace_with(title, *_optional(candidate.rest))


def _append_name(title: Element, class_name: str, text: str) -> None:
    title.append(" ", Element("em", {"class": class_name}, [text]))


def find_chapter_name_by_classes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("Kaflaheiti")):
        title = _follows(elm, "h2", "chapter__title")
        if title is not None:
            _append_name(title, "chapter__name", elm.text_content)
            elm.remove()


def find_article_name_by_classes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("Greinaheiti")):
        title = _follows(elm, "h3", "article__title")
        if title is not None:
            _append_name(title, "article__name", elm.text_content)
            elm.remove()


def guess_chapter_names(root: Element, max_length: int = 60) -> None:
    """A short centered line right after a chapter title is the chapter's name."""
    candidates = [c for c in get_split_centered_paragraphs(root) if _follows(c.elm, "h2", "chapter__title")]
    for candidate in candidates:
        title = _follows(candidate.elm, "h2", "chapter__title")
        if title is None or not candidate.title_text or len(candidate.title_text) >= max_length:
            continue
        _append_name(title, "chapter__name", candidate.title_text)
        candidate.elm.replace_with(*_optional(candidate.rest))


def guess_article_names(root: Element, max_length: int = 90) -> None:
    """A short centered line right after an article title is the article's name."""
    candidates = [elm for elm in root.query_all(is_title_candidate) if _follows(elm, "h3", "article__title")]
    for elm in candidates:
        title = _follows(elm, "h3", "article__title")
        text = elm.text_content.strip()
        if title is None or not text or len(text) >= max_length:
            continue
        _append_name(title, "article__name", elm.text_content)
        elm.remove()


def guess_doc_title(root: Element) -> None:
    """An all-caps `MsoTitle` paragraph is the document title. Other ones lose the class."""
    for elm in root.query_all(lambda e: e.has_class("MsoTitle")):
        text = elm.text_content
        if text == text.upper():
            elm.replace_with(Element("p", {"class": "doc__title", "align": "center"}, list(elm.children)))
        else:
            elm.remove_attr("class")


def set_title_name_ems(root: Element) -> None:
    """
    Editor flavour: a title may hold plain text followed by a single <em>
    name. Anything else inside titles is unwrapped, the <em> swallows the rest
    of the title and gets the matching `*__name` class.
    """

    def title_of(elm: Element) -> Optional[Element]:
        return elm.closest(lambda e: any(e.has_class(name) for name in TITLE_CLASSES))

    def is_stray(elm: Element) -> bool:
        parent = elm.parent
        if parent is None or title_of(parent) is None:
            return False
        if elm.tag != "em":
            return True
        if title_of(parent) is not parent:
            return False
        prev = elm.previous_element_sibling
        while prev is not None:
            if prev.tag == "em":
                return True
            prev = prev.previous_element_sibling
        return False

    for elm in root.query_all(is_stray):
        zap(elm)

    for class_name in TITLE_CLASSES:
        for title in root.query_all(lambda e: e.has_class(class_name)):
            title.remove_attr("align")

    for class_name in TITLE_CLASSES:
        name_class = class_name.replace("__title", "__name")
        for title in root.query_all(lambda e: e.has_class(class_name)):
            for em in title.query_all("em"):
                em.class_name = name_class
                while em.next_sibling is not None:
                    em.append(em.next_sibling)
                prev = em.previous_sibling
                if prev is None or not prev.text_content.endswith(" "):
                    em.before(" ")


# --- Footnotes ---


def detect_footnote_markers(root: Element) -> None:
    for span in root.query_all(lambda e: e.tag == "span" and e.has_class("MsoFootnoteReference")):
        sup = transmogrify(span, "sup")
        sup.class_name = "footnote-reference"


def detect_footnotes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("MsoFootnoteText")):
        elm.class_name = "footnote"
        # only the first reference marks the footnote itself
        marker = elm.query(lambda e: e.tag == "sup" and e.has_class("footnote-reference"))
        if marker is not None:
            marker.class_name = "footnote__marker"


# --- Signature block ---


def remove_incorrect_dags_class(root: Element) -> None:
    """A `Dags` (date line) without a year is not a date line."""
    for elm in root.query_all(lambda e: e.has_class("Dags")):
        if not has_year(elm.text_content):
            elm.remove_attr("class")


def guess_fh_undirskr(root: Element) -> None:
    """Aligned "f.h.r." or "F. h. ...ráðherra" lines sign on behalf of a minister."""
    for elm in root.query_all(lambda e: e.tag in HEADING_ELMS and e.has("align")):
        if classify_signature_line(elm.text_content) is SignatureKind.ON_BEHALF:
            elm.class_name = SignatureKind.ON_BEHALF.value


def guess_dags(root: Element) -> None:
    """
    Finds the "...ráðuneytinu, 12. maí 2020." date line, either centered or
    as the paragraph right before an on-behalf signature.
    """
    candidates = root.query_all(is_centered)
    for signature in root.query_all(lambda e: e.has_class("FHUndirskr")):
        prev = signature.previous_element_sibling
        if is_element(prev, "p") and prev.get("align") != "center" and not prev.has_class("Dags"):
            candidates.append(prev)
    for elm in candidates:
        if classify_signature_line(elm.text_content) is SignatureKind.DATE_LINE:
            elm.class_name = SignatureKind.DATE_LINE.value


def normalize_signature_tags(root: Element) -> None:
    for elm in root.query_all(
        lambda e: e.tag != "p" and any(e.has_class(name) for name in ("Dags", "FHUndirskr", "Undirritun"))
    ):
        transmogrify(elm, "p")


# --- Leftovers ---


def clean_up_empty_paragraphs(root: Element) -> None:
    """Title and name guessing can leave emptied candidates behind at the top level."""
    for elm in root.element_children:
        if is_title_candidate(elm) and not elm.text_content.strip() and elm.query("img") is None:
            elm.remove()


def remove_section1_classes(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has_class("Section1")):
        elm.remove_attr("class")
