"""
Low-level utilities for building, walking and rewriting HTML fragments.

lxml's text/tail model makes sibling-level whitespace surgery awkward, so the
cleanup passes work on a small node graph where every text run is a real
sibling node. lxml.html does the lenient parsing. Serialization happens here
so the output dialect stays stable across lxml versions.
"""

import re
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

import structlog
from lxml import etree
from lxml import html as lxml_html

logger = structlog.get_logger(__name__)

VOID_ELMS = frozenset(
    ["area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"]
)
RAW_TEXT_ELMS = frozenset(["script", "style"])


class Node:
    """Base class for everything that can live in an Element's children."""

    parent: Optional["Element"] = None

    @property
    def text_content(self) -> str:
        return ""

    def clone(self, deep: bool = True) -> "Node":
        raise NotImplementedError

    @property
    def next_sibling(self) -> Optional["Node"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        idx = siblings.index(self) + 1
        return siblings[idx] if idx < len(siblings) else None

    @property
    def previous_sibling(self) -> Optional["Node"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        idx = siblings.index(self) - 1
        return siblings[idx] if idx >= 0 else None

    @property
    def next_element_sibling(self) -> Optional["Element"]:
        node = self.next_sibling
        while node is not None and not isinstance(node, Element):
            node = node.next_sibling
        return node

    @property
    def previous_element_sibling(self) -> Optional["Element"]:
        node = self.previous_sibling
        while node is not None and not isinstance(node, Element):
            node = node.previous_sibling
        return node

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def before(self, *nodes: Union["Node", str]) -> None:
        parent = self.parent
        if parent is None:
            return
        new_nodes = _adopt(n for n in nodes if n is not self)
        parent._insert(parent.children.index(self), new_nodes)

    def after(self, *nodes: Union["Node", str]) -> None:
        parent = self.parent
        if parent is None:
            return
        new_nodes = _adopt(n for n in nodes if n is not self)
        parent._insert(parent.children.index(self) + 1, new_nodes)

    def replace_with(self, *nodes: Union["Node", str]) -> None:
        parent = self.parent
        if parent is None:
            return
        new_nodes = _adopt(n for n in nodes if n is not self)
        idx = parent.children.index(self)
        del parent.children[idx]
        self.parent = None
        parent._insert(idx, new_nodes)


class Text(Node):
    def __init__(self, data: str):
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    @text_content.setter
    def text_content(self, value: str) -> None:
        self.data = value

    def clone(self, deep: bool = True) -> "Text":
        return Text(self.data)

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Comment(Node):
    def __init__(self, data: str):
        self.data = data

    def clone(self, deep: bool = True) -> "Comment":
        return Comment(self.data)


Matcher = Union[str, Callable[["Element"], bool]]


def matcher(match: Matcher) -> Callable[["Element"], bool]:
    """Turns a comma separated tag list ("p,h2") or a predicate into a predicate."""
    if callable(match):
        return match
    names = frozenset(name.strip() for name in match.split(","))
    return lambda elm: elm.tag in names


class Element(Node):
    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, str]] = None,
        children: Iterable[Union[Node, str]] = (),
    ):
        self.tag = tag.lower()
        self.attrs: Dict[str, str] = dict(attrs) if attrs else {}
        self.children: List[Node] = []
        if children:
            self.append(*children)

    def __repr__(self) -> str:
        return f"<Element {start_tag(self)}>"

    # --- Attributes ---

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def set(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def has(self, name: str) -> bool:
        return name in self.attrs

    def remove_attr(self, name: str) -> None:
        self.attrs.pop(name, None)

    @property
    def class_name(self) -> str:
        return self.attrs.get("class", "")

    @class_name.setter
    def class_name(self, value: str) -> None:
        self.attrs["class"] = value

    @property
    def classes(self) -> List[str]:
        return self.class_name.split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if not self.has_class(name):
            self.class_name = " ".join(self.classes + [name])

    # --- Content ---

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    @text_content.setter
    def text_content(self, value: str) -> None:
        for child in self.children:
            child.parent = None
        self.children = []
        if value:
            self._insert(0, [Text(value)])

    @property
    def first_child(self) -> Optional[Node]:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Optional[Node]:
        return self.children[-1] if self.children else None

    @property
    def element_children(self) -> List["Element"]:
        return [child for child in self.children if isinstance(child, Element)]

    def _insert(self, idx: int, nodes: List[Node]) -> None:
        for node in nodes:
            node.parent = self
        self.children[idx:idx] = nodes

    def append(self, *nodes: Union[Node, str]) -> None:
        new_nodes = _adopt(nodes)
        self._insert(len(self.children), new_nodes)

    def prepend(self, *nodes: Union[Node, str]) -> None:
        self._insert(0, _adopt(nodes))

    def clone(self, deep: bool = True) -> "Element":
        copy = Element(self.tag, self.attrs)
        if deep:
            copy._insert(0, [child.clone() for child in self.children])
        return copy

    # --- Traversal ---

    def iter(self) -> Iterator["Element"]:
        """Descendant elements in document order, excluding self."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter()

    def walk(self) -> Iterator[Node]:
        """Descendant nodes of every kind in document order, excluding self."""
        for child in self.children:
            yield child
            if isinstance(child, Element):
                yield from child.walk()

    def query_all(self, match: Matcher) -> List["Element"]:
        """Snapshot of matching descendants, safe to mutate the tree while iterating."""
        test = matcher(match)
        return [elm for elm in self.iter() if test(elm)]

    def query(self, match: Matcher) -> Optional["Element"]:
        test = matcher(match)
        for elm in self.iter():
            if test(elm):
                return elm
        return None

    def matches(self, match: Matcher) -> bool:
        return matcher(match)(self)

    def closest(self, match: Matcher) -> Optional["Element"]:
        test = matcher(match)
        node: Optional[Element] = self
        while node is not None:
            if test(node):
                return node
            node = node.parent
        return None

    def contains(self, node: Optional[Node]) -> bool:
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False


class Indenter(Element):
    """
    Placeholder for a legacy tab-stop span while the cleanup passes run.
    Renders as `width` spaces once rehydrated.
    """

    def __init__(self, width: int):
        super().__init__("span", {"data-legacy-indenter": str(width)})
        self.width = width

    def clone(self, deep: bool = True) -> "Indenter":
        copy = Indenter(self.width)
        copy.attrs = dict(self.attrs)
        return copy


def _adopt(nodes: Iterable[Union[Node, str]]) -> List[Node]:
    """Detaches nodes from their current parents, wrapping plain strings as Text."""
    adopted: List[Node] = []
    for node in nodes:
        if isinstance(node, str):
            if not node:
                continue
            node = Text(node)
        node.remove()
        adopted.append(node)
    return adopted


# --- Predicates & small mutators ---


def is_element(node: Optional[Node], *tags: str) -> bool:
    return isinstance(node, Element) and (not tags or node.tag in tags)


def is_indenter(node: Optional[Node]) -> bool:
    return isinstance(node, Element) and node.tag == "span" and node.has("data-legacy-indenter")


def is_empty(elm: Element) -> bool:
    """True if elm has no visible text, images, rules or indenters."""
    if isinstance(elm, Indenter) or elm.text_content.strip():
        return False
    for descendant in elm.iter():
        if descendant.tag == "hr" or (descendant.tag == "img" and descendant.has("src")):
            return False
        if isinstance(descendant, Indenter):
            return False
    return True


def zap(elm: Element) -> None:
    """Replaces an element with its own children."""
    elm.replace_with(*list(elm.children))


def transmogrify(elm: Element, tag: str) -> Element:
    """Replaces elm with a `tag` element carrying the same attributes and children."""
    new_elm = Element(tag, elm.attrs)
    new_elm.append(*list(elm.children))
    elm.replace_with(new_elm)
    return new_elm


def inner_wrap(elm: Element, tag: str) -> Element:
    wrapper = Element(tag)
    wrapper.append(*list(elm.children))
    elm.append(wrapper)
    return wrapper


def trim_dom(root: Element, cursor: Optional[Element], direction: str) -> None:
    """
    Removes every node right (or left) of `cursor` at each level up to `root`.
    A left trim also removes the cursor. Without a cursor a left trim empties root.
    """
    left = direction == "left"
    if cursor is None:
        if left:
            root.text_content = ""
        return
    node: Optional[Node] = cursor
    while node is not None and node is not root:
        sibling = node.previous_sibling if left else node.next_sibling
        while sibling is not None:
            sibling.remove()
            sibling = node.previous_sibling if left else node.next_sibling
        node = node.parent
    if left:
        cursor.remove()


# --- Parsing ---

_CONDITIONAL_MARKER_RE = re.compile(r"<!\[(?:if [^\]]*|endif)\]>", re.IGNORECASE)

_HTML_PARSER = lxml_html.HTMLParser(encoding="utf-8", remove_comments=False, remove_pis=True)


def parse_html(html: str, parser: Optional[etree.HTMLParser] = None) -> Element:
    """
    Parses an HTML fragment into a detached <div> root.

    `parser` lets callers swap the lxml parser configuration. Tables are
    normalized the way browsers do it, since the cleanup passes rely on every
    cell sitting inside a row and every row inside a table section.
    """
    root = Element("div")
    html = _CONDITIONAL_MARKER_RE.sub("", html)
    if not html.strip():
        return root

    source = f"<html><body>{html}</body></html>".encode("utf-8")
    try:
        doc = lxml_html.document_fromstring(source, parser=parser or _HTML_PARSER)
    except etree.ParserError as e:
        logger.warning(f"Could not parse markup, treating it as empty: {e}")
        return root

    body = doc.find("body")
    if body is None:
        return root
    _copy_children(body, root)
    _normalize_tables(root)
    return root


def _copy_children(source, target: Element) -> None:
    if source.text:
        target._insert(len(target.children), [Text(source.text)])
    for child in source:
        if child.tag is etree.Comment:
            target._insert(len(target.children), [Comment(child.text or "")])
        elif isinstance(child.tag, str):
            elm = Element(child.tag, dict(child.attrib))
            _copy_children(child, elm)
            target._insert(len(target.children), [elm])
        # Processing instructions and entity references carry nothing we keep
        if child.tail:
            target._insert(len(target.children), [Text(child.tail)])


def _normalize_tables(root: Element) -> None:
    for table in root.query_all("table"):
        _wrap_runs(table, {"td", "th"}, "tr")
        _wrap_runs(table, {"tr"}, "tbody")
        for section in table.element_children:
            if section.tag in ("thead", "tbody", "tfoot"):
                _wrap_runs(section, {"td", "th"}, "tr")


def _wrap_runs(parent: Element, tags, wrapper_tag: str) -> None:
    run: Optional[Element] = None
    for node in list(parent.children):
        if isinstance(node, Element) and node.tag in tags:
            if run is None:
                run = Element(wrapper_tag)
                node.before(run)
            run.append(node)
        elif run is not None and isinstance(node, Text) and not node.data.strip():
            run.append(node)
        else:
            run = None


# --- Serialization ---


def _escape_text(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("\xa0", "&nbsp;")


def _escape_attr(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("\xa0", "&nbsp;")


def start_tag(elm: Element) -> str:
    attrs = "".join(f' {name}="{_escape_attr(value)}"' for name, value in elm.attrs.items())
    return f"<{elm.tag}{attrs}{'/>' if elm.tag in VOID_ELMS else '>'}"


def serialize(node: Node) -> str:
    out: List[str] = []
    _serialize_into(node, out)
    return "".join(out)


def inner_html(elm: Element) -> str:
    out: List[str] = []
    for child in elm.children:
        _serialize_into(child, out)
    return "".join(out)


def _serialize_into(node: Node, out: List[str]) -> None:
    if isinstance(node, Text):
        raw = node.parent is not None and node.parent.tag in RAW_TEXT_ELMS
        out.append(node.data if raw else _escape_text(node.data))
    elif isinstance(node, Comment):
        out.append(f"<!--{node.data}-->")
    elif isinstance(node, Element):
        out.append(start_tag(node))
        if node.tag in VOID_ELMS:
            return
        for child in node.children:
            _serialize_into(child, out)
        out.append(f"</{node.tag}>")
