"""Static element classification tables shared by the cleanup passes."""

INLINE_TEXT_ELMS = frozenset(["a", "b", "i", "strong", "em", "sub", "sup", "u", "s", "span"])
INLINE_SELF_CLOSING_ELMS = frozenset(["br", "img"])
INLINE_ELMS = INLINE_TEXT_ELMS | INLINE_SELF_CLOSING_ELMS

BLOCK_TEXT_ELMS = frozenset(
    [
        "h2", "h3", "h4", "h5", "h6", "p", "ol", "ul", "li", "blockquote", "table",
        "caption", "thead", "tbody", "tfoot", "tr", "th", "td", "div", "section",
    ]
)
BLOCK_ELMS = BLOCK_TEXT_ELMS | {"hr"}

TABLE_CELLS = frozenset(["td", "th"])

# Removed outright, content and all
UNSAFE_ELMS = frozenset(["link", "meta", "style", "script"])
# Unwrapped, content kept
MEANINGLESS_ELMS = frozenset(["noscript"])
NOISY_ELMS = frozenset(["acronym", "big", "center", "form", "tt", "dir", "dl", "dt", "font"])

HEADING_ELMS = ("p", "h2", "h3", "h4", "h5")

# CSS list-style-type -> <ol>/<ul> type attribute
STYLE_VALUE_TO_TYPE_ATTR = {
    "circle": "circle",
    "square": "square",
    "lower-latin": "a",
    "lower-alpha": "a",
    "upper-latin": "A",
    "upper-alpha": "A",
    "lower-roman": "i",
    "upper-roman": "I",
}

# Attributes listed here serialize first, in this order. The rest follow by name.
ATTR_SORT_PRIORITY = {
    name: f"{i:02d}"
    for i, name in enumerate(
        [
            "class", "id", "src", "href", "width", "height", "alt", "title",
            "colspan", "rowspan", "scope", "align", "type", "start", "style",
        ],
        start=1,
    )
}

# Class names written by legacy authoring tools that the import pipeline
# reclassifies after sanitizing.
LEGACY_CLASS_NAMES = frozenset(
    [
        "Grein", "Greinaheiti", "Kafli", "Kaflaheiti", "MsoTitle", "MsoFootnoteText",
        "MsoFootnoteReference", "FHUndirskr", "Section1", "Dags", "Undirritun",
    ]
)

TITLE_CLASSES = ("article__title", "subchapter__title", "chapter__title", "section__title")
