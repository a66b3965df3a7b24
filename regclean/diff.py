"""
Word-level HTML diffing of two canonical (prettified) regulation texts.

The markup is tokenized into tags, whitespace runs and words, each distinct
token is encoded as a single character and diff_match_patch diffs the
encoded strings. Changed text is wrapped in <del>/<ins> markers. Removed
tags are dropped and inserted tags kept, so the result is the newer
document's structure with the changes marked up inside it.
"""

import re
import time
from typing import Dict, List, Optional, Tuple

import structlog
from diff_match_patch import diff_match_patch

from regclean.config import Settings
from regclean.config import settings as default_settings
from regclean.models import DiffResult

logger = structlog.get_logger(__name__)

_TOKEN_RE = re.compile(r"<[^>]+>|\s+|[^<\s]+")
_EMPTY_MARKER_RE = re.compile(r"<(del|ins) [^>]*>(\s*)</\1>")

DIFF_DELETE = -1
DIFF_EQUAL = 0
DIFF_INSERT = 1


def _tokens_to_chars(older: str, newer: str) -> Tuple[str, str, List[str]]:
    """Encodes every distinct HTML token as a unique character."""
    token_array: List[str] = []
    token_hash: Dict[str, int] = {}

    def encode(html: str) -> str:
        chars = []
        for token in _TOKEN_RE.findall(html):
            if token not in token_hash:
                token_hash[token] = len(token_array)
                token_array.append(token)
            chars.append(chr(token_hash[token]))
        return "".join(chars)

    return encode(older), encode(newer), token_array


def _is_tag(token: str) -> bool:
    return token.startswith("<")


def _wrap_text(tokens: List[str], tag: str, class_name: str) -> str:
    """Wraps each run of text tokens in `tag`, leaving tags between them as they are."""
    out: List[str] = []
    run: List[str] = []

    def flush() -> None:
        if run:
            out.append(f'<{tag} class="{class_name}">{"".join(run)}</{tag}>')
            run.clear()

    for token in tokens:
        if _is_tag(token):
            flush()
            out.append(token)
        else:
            run.append(token)
    flush()
    return "".join(out)


def _render(diffs: List[Tuple[int, List[str]]]) -> str:
    out: List[str] = []
    for i, (op, tokens) in enumerate(diffs):
        if op == DIFF_EQUAL:
            out.append("".join(tokens))
        elif op == DIFF_DELETE:
            replaced = i + 1 < len(diffs) and diffs[i + 1][0] == DIFF_INSERT
            text = [t for t in tokens if not _is_tag(t)]
            out.append(_wrap_text(text, "del", "diffmod" if replaced else "diffdel"))
        else:
            replacing = i > 0 and diffs[i - 1][0] == DIFF_DELETE
            out.append(_wrap_text(tokens, "ins", "diffmod" if replacing else "diffins"))
    return "".join(out)


def _strip_empty_markers(html: str) -> str:
    # Whitespace inside an <ins> is part of the newer text
    return _EMPTY_MARKER_RE.sub(lambda m: m.group(2) if m.group(1) == "ins" else "", html)


def html_diff(older: str, newer: str) -> str:
    """Marks up the changes from `older` to `newer`, without artifact cleanup."""
    dmp = diff_match_patch()

    chars1, chars2, token_array = _tokens_to_chars(older, newer)
    diffs = dmp.diff_main(chars1, chars2, False)
    dmp.diff_cleanupSemantic(diffs)

    decoded = [(op, [token_array[ord(c)] for c in chars]) for op, chars in diffs]
    return _render(decoded)


def get_diff(older: str, newer: str, raw: bool = False, settings: Optional[Settings] = None) -> DiffResult:
    """
    Diffs two canonical HTML strings.

    Args:
        older: The base version.
        newer: The changed version.
        raw: Keep empty <del>/<ins> wrappers that the diff leaves around
             whitespace-only changes.
        settings: Overrides the environment-driven defaults.

    Returns:
        DiffResult with the marked-up newer text, the elapsed time and a
        `slow` flag. Slowness is advisory only.
    """
    settings = settings or default_settings
    start = time.perf_counter()

    diffed = newer if older == newer else html_diff(older, newer)
    if not raw:
        diffed = _strip_empty_markers(diffed)

    elapsed_ms = (time.perf_counter() - start) * 1000
    slow = elapsed_ms > settings.slow_diff_ms
    if slow:
        logger.info(f"Slow diff: {elapsed_ms:.0f}ms for {len(older)} -> {len(newer)} chars")
    return DiffResult(diff=diffed, elapsed_ms=elapsed_ms, slow=slow)


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def diff_text_content(older: str, newer: str) -> str:
    """Diffs two plain-text strings (titles, names) into marked-up HTML."""
    if older == newer:
        return _escape(newer)
    return get_diff(_escape(older), _escape(newer)).diff
