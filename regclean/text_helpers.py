"""Splitting regulation text from its appendixes and comments, and joining them back."""

import re

from regclean.models import Appendix, RegulationTextParts
from regclean.text import de_prettify
from regclean.utils.dom import inner_html, parse_html

_COMMENTS_SECTION_RE = re.compile(r'<section class="comments">.+?</section>', re.DOTALL)


def combine_text_appendixes_comments(parts: RegulationTextParts) -> str:
    appendixes = "".join(
        '<section class="appendix">'
        f'  <h2 class="appendix__title">{appendix.title.replace("<", "&lt;")}</h2>'
        f"  {appendix.text}"
        "</section>"
        for appendix in parts.appendixes
    )
    comments = f'<section class="comments">{parts.comments}</section>' if parts.comments else ""
    return parts.text + appendixes + comments


def extract_appendixes_and_comments(html: str) -> RegulationTextParts:
    """Inverse of `combine_text_appendixes_comments`. Accepts prettified input."""
    root = parse_html(de_prettify(html))

    appendix_elms = root.query_all(lambda e: e.has_class("appendix"))
    for elm in appendix_elms:
        elm.remove()
    comment_elms = root.query_all(lambda e: e.has_class("comments"))
    for elm in comment_elms:
        elm.remove()

    appendixes = []
    for elm in appendix_elms:
        title_elm = elm.query(lambda e: e.has_class("appendix__title"))
        title = ""
        if title_elm is not None:
            title = title_elm.text_content.replace("\n", " ").strip()
            title_elm.remove()
        appendixes.append(Appendix(title=title, text=inner_html(elm).strip()))

    return RegulationTextParts(
        text=inner_html(root).strip(),
        appendixes=appendixes,
        comments=inner_html(comment_elms[0]).strip() if comment_elms else "",
    )


def eliminate_comments(html: str) -> str:
    return _COMMENTS_SECTION_RE.sub("", html)
