"""
Whitespace and indentation reconciliation.

These passes only ever remove or relocate whitespace text, <br> elements and
indenter markers. They never raise on odd input.
"""

import re
from typing import List, Optional, Tuple

import structlog

from regclean.consts import BLOCK_ELMS, BLOCK_TEXT_ELMS, INLINE_TEXT_ELMS, TABLE_CELLS
from regclean.utils.dom import (
    Comment,
    Element,
    Indenter,
    Node,
    Text,
    is_element,
    is_empty,
    is_indenter,
    start_tag,
    transmogrify,
    trim_dom,
)

logger = structlog.get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Private-use stand-ins that keep <pre> whitespace away from the collapsing passes
PRE_SPACE = "\ue000"
PRE_NEWLINE = "\ue001"
PRE_TAB = "\ue002"


def trim_adjacent_spaces(elm: Node, position: str = "both", skip_brs: bool = False) -> None:
    """
    Trims whitespace text (and, unless `skip_brs`, <br>s) off the siblings
    directly before and/or after `elm`, stopping at the first real content.
    """
    if position in ("before", "both"):
        _trim_siblings(elm, before=True, skip_brs=skip_brs)
    if position in ("after", "both"):
        _trim_siblings(elm, before=False, skip_brs=skip_brs)


def _trim_siblings(elm: Node, before: bool, skip_brs: bool) -> None:
    node = elm.previous_sibling if before else elm.next_sibling
    while isinstance(node, Text) or (not skip_brs and is_element(node, "br")):
        if isinstance(node, Text):
            trimmed = node.data.rstrip() if before else node.data.lstrip()
            if trimmed:
                node.data = trimmed
                return
        node.remove()
        node = elm.previous_sibling if before else elm.next_sibling


def remove_comments_and_collapse_whitespace(root: Element) -> None:
    """Drops comments, strips soft hyphens and collapses whitespace runs outside <pre>."""
    has_pre = root.query("pre") is not None
    for node in list(root.walk()):
        if isinstance(node, Comment):
            node.remove()
        elif isinstance(node, Text):
            data = node.data.replace("\u00ad", "")
            if not has_pre or node.parent is None or node.parent.closest("pre") is None:
                data = _WHITESPACE_RE.sub(" ", data)
            node.data = data


def remove_empty_elements(root: Element) -> None:
    """
    Removes text-level elements with nothing visible inside. Table cells are
    emptied instead, and elements holding only whitespace leave a space behind.
    """
    candidates = [
        elm
        for elm in reversed(root.query_all(lambda e: e.tag in BLOCK_TEXT_ELMS or e.tag in INLINE_TEXT_ELMS))
        if is_empty(elm)
    ]
    for elm in candidates:
        if elm.tag in TABLE_CELLS:
            elm.text_content = ""
        elif elm.text_content:
            elm.replace_with(" ")
        else:
            elm.remove()


def push_space_outside_elements(root: Element) -> None:
    """
    Moves leading/trailing whitespace and <br>s out of every element until they
    hit `root`, where they are dropped. Trailing indenters travel the same way.
    """
    elms = [root] + root.query_all(lambda e: e.tag not in ("br", "hr", "img", "pre"))
    for elm in reversed(elms):
        for at_start in (False, True):
            _push_out(elm, root, at_start)
    remove_empty_elements(root)


def _push_out(elm: Element, root: Element, at_start: bool) -> None:
    movable = elm is not root and elm.parent is not None

    def edge() -> Optional[Node]:
        return elm.first_child if at_start else elm.last_child

    def space_outside() -> bool:
        sibling = elm.previous_sibling if at_start else elm.next_sibling
        if not isinstance(sibling, Text) or not sibling.data:
            return False
        return (sibling.data[-1] if at_start else sibling.data[0]).isspace()

    def place_outside(node) -> None:
        if at_start:
            elm.before(node)
        else:
            elm.after(node)

    node = edge()
    while isinstance(node, Text) or is_element(node, "br") or (not at_start and is_indenter(node)):
        if isinstance(node, Text):
            trimmed = node.data.lstrip() if at_start else node.data.rstrip()
            if trimmed != node.data and movable and not space_outside():
                place_outside(" ")
            if trimmed:
                node.data = trimmed
                return
            node.remove()
        elif movable:
            place_outside(node)
        else:
            node.remove()
        node = edge()


def trim_brs(root: Element) -> None:
    """Removes <br>s that end or start their parent."""
    for br in reversed(root.query_all("br")):
        if br.next_sibling is None:
            br.remove()
    for br in root.query_all("br"):
        if br.previous_sibling is None:
            br.remove()


def trim_spaces_around_blocks(root: Element) -> None:
    for elm in root.query_all(lambda e: e.tag == "br" or e.tag in BLOCK_ELMS):
        trim_adjacent_spaces(elm, "both", skip_brs=elm.tag == "br")


def max_two_adjacent_brs(root: Element) -> None:
    for br in root.query_all("br"):
        prev = br.previous_sibling
        if is_element(prev, "br") and is_element(prev.previous_sibling, "br"):
            br.remove()


def inject_space_after_br(root: Element) -> None:
    for br in root.query_all("br"):
        br.after(" ")


def merge_text_nodes(root: Element) -> None:
    """
    Joins adjacent text siblings and collapses the whitespace runs that
    relocated spaces leave behind. <pre> content is left alone.
    """
    for elm in [root] + root.query_all(lambda e: e.tag != "pre"):
        if elm.closest("pre") is not None:
            continue
        merged: List[Node] = []
        for child in elm.children:
            if isinstance(child, Text):
                if merged and isinstance(merged[-1], Text):
                    merged[-1].data += child.data
                    child.parent = None
                    continue
            merged.append(child)
        for child in merged:
            if isinstance(child, Text):
                child.data = _WHITESPACE_RE.sub(" ", child.data)
                if not child.data:
                    child.parent = None
        elm.children = [child for child in merged if child.parent is elm]


def split_on_cursor(
    root: Element, cursor: Optional[Element], trim_root: Optional[str] = None
) -> Tuple[Element, Element]:
    """
    Splits `root` in two at `cursor`: everything before it, and everything
    after it (the cursor itself is dropped from the second half).

    `trim_root` ("first" or "last") makes that half reuse `root` itself instead
    of a clone. Without a usable cursor, returns a deep and a shallow clone.
    """
    if cursor is None or cursor is root or not root.contains(cursor):
        return root.clone(), root.clone(deep=False)

    descendants = list(root.iter())
    pos = descendants.index(cursor)
    elm_a = root if trim_root == "first" else root.clone()
    elm_b = root if trim_root == "last" else root.clone()
    cursor_a = cursor if elm_a is root else list(elm_a.iter())[pos]
    cursor_b = cursor if elm_b is root else list(elm_b.iter())[pos]

    trim_dom(elm_a, cursor_a, "right")
    trim_dom(elm_b, cursor_b, "left")
    for half in (elm_a, elm_b):
        push_space_outside_elements(half)
        trim_brs(half)
    return elm_a, elm_b


def split_paragraphs_on_double_brs(root: Element) -> None:
    """A double line-break inside a paragraph is a paragraph break."""
    brs = [
        br
        for br in root.query_all("br")
        if is_element(br.previous_sibling, "br") and br.parent is not None and br.parent.closest("p")
    ]
    for br in brs:
        prev = br.previous_sibling
        if not is_element(prev, "br"):
            continue
        prev.remove()
        paragraph = br.closest("p")
        if paragraph is None or paragraph is root:
            continue
        before_part, _ = split_on_cursor(paragraph, br, trim_root="last")
        paragraph.before(before_part)


# --- Indenters ---


def flag_indents(root: Element) -> None:
    """
    Replaces word-processor tab-stop spans (`mso-tab-count` styles) with
    indenter markers sized by the span's text length.
    """
    for span in root.query_all(lambda e: e.tag == "span" and e.has("style")):
        if "mso-tab-count:" not in start_tag(span).lower():
            continue
        span.replace_with(" ", Indenter(len(span.text_content)), " ")


def flag_editor_indents(root: Element) -> None:
    """
    Re-reads rehydrated indenter spans from the editor, whose text is the
    width in spaces padded by one boundary space on each side.
    """
    for span in root.query_all(is_indenter):
        text = re.sub(r"^ | \Z", "", span.text_content)
        span.replace_with(" ", Indenter(len(text)), " ")


def _drop_trailing(node: Node, root: Element) -> None:
    """Removes a trailing node with the whitespace before it, then any ancestors left empty."""
    while True:
        parent = node.parent
        if node.next_sibling is None:
            trim_adjacent_spaces(node, "before")
        node.remove()
        if parent is None or parent is root or parent.tag in TABLE_CELLS or not is_empty(parent):
            return
        node = parent


def rehydrate_indents(root: Element) -> None:
    """
    Renders indenter markers as literal padding. Indenters without following
    content are meaningless and dropped, along with any parents they leave
    empty.
    """
    for indenter in root.query_all(lambda e: isinstance(e, Indenter)):
        parent = indenter.parent
        if parent is None:
            continue
        if indenter.next_sibling is None:
            _drop_trailing(indenter, root)
            continue

        prev, nxt = indenter.previous_sibling, indenter.next_sibling
        indenter.replace_with(Element("span", {"data-legacy-indenter": ""}, [" " * (indenter.width + 2)]))
        if isinstance(prev, Text) and prev.data.endswith(" "):
            prev.data = prev.data[:-1] + "\n"
        if isinstance(nxt, Text) and nxt.data.startswith(" "):
            nxt.data = "\n" + nxt.data[1:]


# --- <pre> protection ---


def _is_significant_pre(pre: Element) -> bool:
    if re.search(r"(?:^\s*\xa0|\s\s)", pre.text_content):
        return True
    return _has_adjacent_pre(pre, before=True) or _has_adjacent_pre(pre, before=False)


def _has_adjacent_pre(pre: Element, before: bool) -> bool:
    node = pre.previous_sibling if before else pre.next_sibling
    while isinstance(node, Text) and not node.data.strip():
        node = node.previous_sibling if before else node.next_sibling
    return is_element(node, "pre")


def escape_pre_elements(root: Element) -> None:
    """
    Keeps <pre>s whose whitespace carries layout, shielding their spacing from
    the collapsing passes. The rest are ordinary blocks and become <div>s.
    """
    for pre in root.query_all("pre"):
        if not _is_significant_pre(pre):
            transmogrify(pre, "div")
            continue
        for node in pre.walk():
            if isinstance(node, Text):
                node.data = (
                    node.data.replace(" ", PRE_SPACE)
                    .replace("\xa0", PRE_SPACE)
                    .replace("\n", PRE_NEWLINE)
                    .replace("\t", PRE_TAB)
                )


def process_pre_elements(root: Element) -> None:
    """Restores <pre> whitespace, merges adjacent <pre>s and drops blank ones."""
    for pre in root.query_all("pre"):
        for node in pre.walk():
            if isinstance(node, Text):
                node.data = node.data.replace(PRE_SPACE, " ").replace(PRE_NEWLINE, "\n").replace(PRE_TAB, "\t")

        prev = pre.previous_element_sibling
        if is_element(prev, "pre"):
            if not prev.text_content.endswith("\n"):
                prev.append("\n")
            if re.match(r"[ \xa0]*\n?\Z", pre.text_content):
                pre.text_content = "\n"
            prev.append(*list(pre.children))
            pre.remove()
        elif not pre.text_content.strip():
            pre.remove()
