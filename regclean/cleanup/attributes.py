"""
Attribute allow-listing, CSS style to HTML conversion and deterministic
attribute ordering.
"""

import re
from typing import Callable, Dict, Iterable, Optional, Union

from regclean.consts import ATTR_SORT_PRIORITY, BLOCK_ELMS, STYLE_VALUE_TO_TYPE_ATTR
from regclean.utils.dom import VOID_ELMS, Element, inner_wrap

# True keeps any non-empty value as-is, a callable may transform or reject (None)
AttrRule = Union[bool, Callable[[str], Optional[str]]]
AttrRules = Dict[str, AttrRule]


def allowed_values(values: Iterable[str], lower_case: bool = False) -> Callable[[str], Optional[str]]:
    allowed = frozenset(values)

    def check(value: str) -> Optional[str]:
        value = value.strip()
        if lower_case:
            value = value.lower()
        return value if value and value in allowed else None

    return check


def _first_char_of(chars: str) -> Callable[[str], Optional[str]]:
    def check(value: str) -> Optional[str]:
        first = value.strip()[:1]
        return first if first and first in chars else None

    return check


ALIGN = allowed_values(["right", "center"], lower_case=True)
ALIGN_CENTER = allowed_values(["center"], lower_case=True)


def build_attribute_rules(extra_classes: Iterable[str] = ()) -> Dict[str, AttrRules]:
    """
    Per-tag allow-lists. `extra_classes` are accepted on every element, which
    lets the import pipeline keep legacy class markers until they are
    reclassified.
    """
    extra = tuple(extra_classes)

    def classes(*names: str) -> Callable[[str], Optional[str]]:
        return allowed_values(names + extra)

    no_attrs: AttrRules = {}
    cell: AttrRules = {"align": ALIGN, "colspan": True, "rowspan": True}
    return {
        "span": {
            "data-legacy-indenter": True,
            "data-cfemail": True,
            "class": classes("footnote__marker", "footnote-reference", "__cf_email__"),
        },
        "a": {"href": True},
        "img": {"src": True, "alt": True, "width": True, "height": True},
        "br": no_attrs,
        "hr": no_attrs,
        "tr": no_attrs,
        "tbody": no_attrs,
        "tfoot": no_attrs,
        "thead": no_attrs,
        "caption": no_attrs,
        "blockquote": no_attrs,
        "ol": {"start": True, "type": _first_char_of("aAiI")},
        "ul": {"start": True, "type": allowed_values(["circle", "square"], lower_case=True)},
        "li": {"value": True},
        "td": cell,
        "th": dict(cell, scope=True),
        "sup": {"class": classes("footnote-reference", "footnote__marker")},
        "table": {"class": classes("layout", "layout layout--list")},
        "p": {
            "data-indenting": True,
            "align": ALIGN,
            "class": classes("doc__title", "footnote", "Dags", "FHUndirskr", "Undirritun", "indented"),
        },
        "h2": {
            "align": ALIGN_CENTER,
            "class": classes(
                "chapter__title",
                "chapter__title chapter__title--appendix",
                "subchapter__title",
                "appendix__title",
                "section__title",
            ),
        },
        "h3": {
            "align": ALIGN_CENTER,
            "class": classes("article__title", "article__title article__title--provisional"),
        },
        "h4": {"align": ALIGN_CENTER},
        "h5": {"align": ALIGN_CENTER},
        "section": {"class": classes("appendix")},
    }


def sanitize_attributes(root: Element, extra_classes: Iterable[str] = ()) -> None:
    """Drops every attribute that isn't explicitly allowed for its element."""
    rules = build_attribute_rules(extra_classes)
    always: AttrRules = {"data-autogenerated": True, "id": True, "class": allowed_values(extra_classes)}
    for elm in root.query_all(lambda e: bool(e.attrs)):
        allowed = rules.get(elm.tag)
        if allowed is None:
            # Unlisted block elements may still be aligned. Anything else gets nothing.
            allowed = {"align": ALIGN} if elm.tag in BLOCK_ELMS else {}
        for name, value in list(elm.attrs.items()):
            rule = allowed.get(name) or always.get(name)
            if rule is True:
                new_value = value or None
            elif rule:
                new_value = rule(value)
            else:
                new_value = None

            if new_value is None:
                elm.remove_attr(name)
            else:
                elm.set(name, new_value)


# --- Styles ---

_IMPORTANT_RE = re.compile(r"\s*!important\s*$", re.IGNORECASE)
_NUMBER_PREFIX_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")


def parse_style(style: str) -> Dict[str, str]:
    """Parses an inline `style` attribute into lower-cased property names."""
    declarations: Dict[str, str] = {}
    for part in style.split(";"):
        name, sep, value = part.partition(":")
        if not sep:
            continue
        name = name.strip().lower()
        value = _IMPORTANT_RE.sub("", value.strip())
        if name and value:
            declarations[name] = value
    return declarations


def css_number(value: Optional[str]) -> Optional[float]:
    """Leading number of a CSS value ("-19.85pt" -> -19.85), or None."""
    match = _NUMBER_PREFIX_RE.match(value or "")
    return float(match.group(1)) if match else None


def list_style_type(style: Dict[str, str]) -> str:
    value = style.get("list-style-type")
    if value:
        return value.lower()
    for token in style.get("list-style", "").lower().split():
        if token == "none" or token in STYLE_VALUE_TO_TYPE_ATTR:
            return token
    return ""


def border_width(style: Dict[str, str]) -> Optional[float]:
    value = style.get("border-width") or style.get("border") or ""
    for token in value.split():
        number = css_number(token)
        if number is not None:
            return number
    return None


def convert_styles_to_html(root: Element) -> None:
    """
    Turns meaningful inline styles into markup: underline, italic and bold
    become <u>/<em>/<strong>, text-align becomes `align`, list styles become
    `type` and left margins are stashed in `data-indenting` for re-application
    after sanitizing.
    """
    for elm in root.query_all(lambda e: e.has("style")):
        style = parse_style(elm.get("style", ""))

        if elm.tag not in VOID_ELMS:
            if style.get("text-decoration", "").lower() == "underline":
                inner_wrap(elm, "u")
            if style.get("font-style", "").lower() in ("italic", "oblique"):
                inner_wrap(elm, "em")
            font_weight = style.get("font-weight", "").lower()
            if font_weight in ("bold", "bolder") or (css_number(font_weight) or 0) > 500:
                inner_wrap(elm, "strong")

        text_align = style.get("text-align", "").lower()
        if text_align in ("right", "center"):
            elm.set("align", text_align)

        type_attr = STYLE_VALUE_TO_TYPE_ATTR.get(list_style_type(style))
        if type_attr:
            elm.set("type", type_attr)

        margin_left = style.get("margin-left")
        if margin_left and css_number(margin_left):
            text_indent = style.get("text-indent", "")
            negative_indent = text_indent if (css_number(text_indent) or 0) < 0 else ""
            elm.set("data-indenting", f"{margin_left}|{negative_indent}")


def reapply_style_attrs(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has("data-indenting")):
        margin_left, _, text_indent = elm.get("data-indenting", "").partition("|")
        elm.remove_attr("data-indenting")
        if not margin_left:
            continue
        declarations = [f"margin-left: {margin_left};"]
        if text_indent:
            declarations.append(f"text-indent: {text_indent};")
        elm.set("style", " ".join(declarations))


def remove_stale_indenting(root: Element) -> None:
    """Older editor saves leaked `data-indenting` into stored documents."""
    for elm in root.query_all(lambda e: e.has("data-indenting")):
        elm.remove_attr("data-indenting")


def remove_autogenerated_markers(root: Element) -> None:
    for elm in root.query_all(lambda e: e.has("data-autogenerated")):
        elm.remove_attr("data-autogenerated")


def sort_attributes(root: Element) -> None:
    """Orders attributes by a fixed priority list, then by name."""
    for elm in root.iter():
        if len(elm.attrs) > 1:
            elm.attrs = dict(sorted(elm.attrs.items(), key=lambda item: ATTR_SORT_PRIORITY.get(item[0], item[0])))
