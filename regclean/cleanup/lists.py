"""
List and table reconstruction.

Legacy documents fake lists with <br>-separated lines inside a <blockquote>
and lay out numbered items with borderless tables. These passes turn the
former into real <ul>/<ol> elements (flagged `data-autogenerated` so an
editor reviews them) and classify the latter.
"""

from typing import List

import structlog

from regclean.cleanup.attributes import border_width, parse_style
from regclean.cleanup.grammar import get_item_marker, infer_marker_type, is_faux_list_marker
from regclean.models import MarkerType, TableKind
from regclean.utils.dom import Element, Node, Text, is_element, transmogrify, zap

logger = structlog.get_logger(__name__)


def wrap_lis(root: Element) -> None:
    """Wraps runs of orphaned <li>s in a <ul>."""
    for li in root.query_all("li"):
        if li.parent is None or is_element(li.parent, "ul", "ol"):
            continue
        items = [li]
        sibling = li.next_element_sibling
        while is_element(sibling, "li"):
            items.append(sibling)
            sibling = sibling.next_element_sibling
        wrapper = Element("ul")
        li.before(wrapper)
        wrapper.append(*items)


# --- Faux lists ---


def _item_type(item: Element, prefer_roman: bool = False) -> MarkerType:
    return infer_marker_type(get_item_marker(item.text_content), prefer_roman)


def _strip_marker(elm: Element, marker: str) -> str:
    """Deletes `marker` from the start of elm's text, returning whatever is left unmatched."""
    for node in list(elm.children):
        if isinstance(node, Text):
            data = node.data
            offset = len(data) - len(data.lstrip())
            i = offset
            while i < len(data) and i - offset < len(marker) and data[i] == marker[i - offset]:
                i += 1
            node.data = data[i:]
            marker = marker[i - offset :]
        elif isinstance(node, Element):
            marker = _strip_marker(node, marker)
        if not marker:
            break
    return marker


def _trim_leading_space(elm: Element) -> None:
    """Strips whitespace off elm's leading text, dropping text nodes left empty."""
    while isinstance(elm.first_child, Text):
        node = elm.first_child
        node.data = node.data.lstrip()
        if node.data:
            return
        node.remove()


def make_list(elm: Element) -> List[Node]:
    """
    Splits a <br>-delimited paragraph into list items. Returns the nodes that
    should replace `elm`: a single <ul>/<ol> when every line starts with the
    same kind of marker, otherwise one <p> per line. A paragraph without
    line-breaks is returned as is.
    """
    if elm.tag != "p" or elm.query(lambda e: e.tag == "br" and is_element(e.parent, "p")) is None:
        return [elm]

    items = [Element("li")]
    children = elm.children
    for i, node in enumerate(children):
        if not is_element(node, "br"):
            items[-1].append(node.clone())
        elif i != len(children) - 1:
            items.append(Element("li"))
    for item in items:
        _trim_leading_space(item)

    list_type = _item_type(items[0], prefer_roman=True)
    is_roman = list_type in (MarkerType.LOWER_ROMAN, MarkerType.UPPER_ROMAN)
    if list_type is MarkerType.COMPLEX or any(_item_type(item, is_roman) is not list_type for item in items[1:]):
        return [Element("p", children=list(item.children)) for item in items]

    if list_type in (MarkerType.NONE, MarkerType.BULLET):
        list_elm = Element("ul")
    else:
        list_elm = Element("ol", {"type": list_type.type_attr} if list_type.type_attr else None)
    list_elm.set("data-autogenerated", "")
    list_elm.append(*items)

    if list_type is not MarkerType.NONE:
        for item in items:
            _strip_marker(item, get_item_marker(item.text_content))
            _trim_leading_space(item)

    elm.remove()
    return [list_elm]


def detect_blockquote_lists(root: Element) -> None:
    """
    Replaces each <blockquote> with its content, rebuilding faux lists on the
    way. A blockquote of plain paragraphs is first joined into a single
    <br>-delimited paragraph.
    """
    for blockquote in root.query_all("blockquote"):
        blocks = blockquote.element_children
        plain_paragraphs = all(block.tag == "p" for block in blocks) and (
            blockquote.query(lambda e: e.tag == "br" and is_element(e.parent, "p")) is None
        )
        if plain_paragraphs:
            if len(blocks) <= 1:
                zap(blockquote)
                continue
            paragraph = Element("p", children=blocks)
            for block in blocks:
                block.after(Element("br"))
                zap(block)
            blockquote.append(paragraph)
            blocks = [paragraph]

        replacement: List[Node] = []
        for block in blocks:
            replacement.extend(make_list(block))
        blockquote.before(*replacement)
        blockquote.remove()


# --- Tables ---


def cleanup_tables(root: Element) -> None:
    """
    Flags borderless tables as layout tables, and hoists single-cell rows off
    the top and bottom of tables without a header or footer.
    """
    for table in root.query_all("table"):
        if table.get("border") == "0" or border_width(parse_style(table.get("style", ""))) == 0:
            table.class_name = "layout"

    for table in root.query_all(lambda e: e.tag == "table" and e.query("thead,tfoot") is None):
        for row in table.query_all("tr"):
            cells = row.element_children
            if len(cells) > 1 or row.previous_element_sibling is not None:
                break
            if cells:
                table.before(transmogrify(cells[0], "div"))
            row.remove()

        for row in reversed(table.query_all("tr")):
            cells = row.element_children
            if len(cells) > 1 or row.next_element_sibling is not None:
                break
            if cells:
                table.after(transmogrify(cells[0], "div"))
            row.remove()


def _col_count(row: Element) -> int:
    count = 0
    for cell in row.element_children:
        try:
            count += max(int(cell.get("colspan", "1")), 1)
        except ValueError:
            count += 1
    return count


def classify_table(table: Element) -> TableKind:
    """
    A layout table with a single body of two or three columns, where every
    cell but the last in each row is a list marker, is really a list.
    """
    if not table.has_class("layout"):
        return TableKind.DATA
    if len(table.query_all("thead,tbody")) > 1:
        return TableKind.LAYOUT
    rows = table.query_all("tr")
    if not rows:
        return TableKind.LAYOUT
    col_count = _col_count(rows[0])
    if col_count < 2 or col_count > 3:
        return TableKind.LAYOUT
    if any(_col_count(row) != col_count for row in rows[1:]):
        return TableKind.LAYOUT

    for cell in table.query_all("th,td"):
        text = cell.text_content.strip()
        if cell.next_element_sibling is not None and text and not is_faux_list_marker(text):
            return TableKind.LAYOUT
    return TableKind.LAYOUT_LIST


def guess_table_purpose(root: Element) -> None:
    for table in root.query_all(lambda e: e.tag == "table" and e.has_class("layout")):
        if classify_table(table) is TableKind.LAYOUT_LIST:
            table.add_class("layout--list")
