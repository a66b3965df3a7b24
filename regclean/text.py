"""
Canonical pretty-printing of cleaned HTML.

`prettify` puts one word, opening tag or closing tag per line, with blank
lines around block-level tags, so that a word-level diff of two versions
stays small and readable. <pre> blocks and rendered indenters pass through
untouched.
"""

import re
from typing import List

from regclean.utils.dom import inner_html, parse_html

_PRE_RE = re.compile(r"<pre[\s>].*?</pre\s*>", re.DOTALL)
_INDENTER_RE = re.compile(r'<span data-legacy-indenter="[^"]*">[^<]*</span>')
_TOKEN_RE = re.compile(r"(<[^>]*>)|([^<]+)")
# Whitespace other than no-break spaces
_BREAKABLE_SPACE_RE = re.compile(r"[^\S\xa0]+")
_BLOCK_TAG_RE = re.compile(
    r"(</?(?:p|h[2-6]|t(?:able|body|head|r|d|h)|caption|li|ul|ol|blockquote|section)(?:>| [^>]*>))"
)
_PLACEHOLDER = "\ue003"
_PLACEHOLDER_RE = re.compile(f"{_PLACEHOLDER}(\\d+){_PLACEHOLDER}")


def _stash(html: str, pattern: re.Pattern, stash: List[str]) -> str:
    def replace(match: re.Match) -> str:
        stash.append(match.group(0))
        return f"{_PLACEHOLDER}{len(stash) - 1}{_PLACEHOLDER}"

    return pattern.sub(replace, html)


def _unstash(html: str, stash: List[str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: stash[int(m.group(1))], html)


def prettify(html: str) -> str:
    """Reformats HTML into the one-token-per-line canonical form."""
    if not html.strip():
        return ""
    html = inner_html(parse_html(html)).replace("&nbsp;", "\xa0")

    stash: List[str] = []
    html = _stash(html, _PRE_RE, stash)
    html = _stash(html, _INDENTER_RE, stash)

    tokens = []
    for tag, text in _TOKEN_RE.findall(html):
        if tag:
            tokens.append(_BREAKABLE_SPACE_RE.sub(" ", tag))
        else:
            tokens.append(_BREAKABLE_SPACE_RE.sub("\n", text))
    html = _BLOCK_TAG_RE.sub(r"\n\n\1\n\n", "".join(tokens))
    html = re.sub(r"\n{3,}", "\n\n", html).strip()

    return _unstash(html, stash)


def de_prettify(html: str) -> str:
    """Joins prettified HTML back onto a single line, leaving <pre> content alone."""
    stash: List[str] = []
    html = _stash(html, _PRE_RE, stash)
    return _unstash(html.replace("\n", " "), stash)


def clean_title(title: str) -> str:
    """Trims a regulation title, collapses whitespace runs and drops soft hyphens."""
    return re.sub(r"\s\s+", " ", title.strip()).replace("\u00ad", "")
