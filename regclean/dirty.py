"""
Aggressive one-shot cleanup of raw word-processor and PDF HTML exports.

NOTE: `dirty_clean` is NOT idempotent. It guesses structure from layout
(centered lines become titles, <br>-separated lines become lists), so it
must only ever run on a raw import. Cleaned documents go through
`regclean.editor.cleanup_editor_output` instead.
"""

import re
from functools import partial
from typing import List, Optional

import structlog

from regclean.cleanup import heuristics as H
from regclean.cleanup import lists as L
from regclean.cleanup import mutators as M
from regclean.cleanup import whitespace as W
from regclean.cleanup.attributes import convert_styles_to_html, reapply_style_attrs, sanitize_attributes, sort_attributes
from regclean.cleanup.stages import Stage, run_stages, stage
from regclean.config import Settings
from regclean.config import settings as default_settings
from regclean.consts import LEGACY_CLASS_NAMES
from regclean.text import prettify
from regclean.utils.dom import inner_html, parse_html

logger = structlog.get_logger(__name__)

# Markers only the cleanup pipelines produce
_CANONICAL_MARKER_RE = re.compile(
    r'class="[^"]*\b(?:article__title|chapter__title|footnote__marker)\b|data-autogenerated|data-legacy-indenter'
)


class AlreadyCleanError(ValueError):
    """Raised when markup handed to `dirty_clean` has been cleaned before."""


def looks_clean(html: str) -> bool:
    return bool(_CANONICAL_MARKER_RE.search(html))


def make_dirty_clean_stages(settings: Optional[Settings] = None) -> List[Stage]:
    settings = settings or default_settings
    return [
        stage(W.escape_pre_elements),
        stage(W.flag_indents),
        stage(W.remove_comments_and_collapse_whitespace),
        stage(M.remove_disallowed_elements),
        stage(M.save_cf_email_markers),
        stage(M.zap_noisy_elements),
        stage(M.insert_br_after_cite),
        stage(L.cleanup_tables),
        stage(M.clean_up_lists),
        stage(M.cleanup_blockquotes),
        stage(convert_styles_to_html),
        stage(M.normalize_tag_names),
        stage(M.normalize_class_names),
        stage(partial(M.fix_images, min_size=settings.min_image_size), "fix_images"),
        stage(partial(M.normalize_image_srcs, file_server=settings.file_server), "normalize_image_srcs"),
        stage(partial(M.normalize_link_urls, file_server=settings.file_server), "normalize_link_urls"),
        stage(partial(sanitize_attributes, extra_classes=LEGACY_CLASS_NAMES), "sanitize_attributes"),
        stage(reapply_style_attrs),
        stage(M.convert_hacks_to_text),
        stage(W.remove_empty_elements),
        stage(M.zap_redundant_descendants),
        stage(W.push_space_outside_elements),
        stage(W.trim_spaces_around_blocks),
        stage(M.paragraphize_stray_content),
        stage(L.wrap_lis),
        stage(W.trim_brs),
        stage(W.max_two_adjacent_brs),
        stage(W.split_paragraphs_on_double_brs),
        stage(M.zap_redundant_paragraphs),
        stage(M.merge_adjacent_inline_elements),
        stage(H.detect_footnote_markers),
        stage(H.detect_footnotes),
        stage(M.zap_leftover_spans),
        stage(M.reverse_linked_footnote_markers),
        stage(W.merge_text_nodes),
        stage(W.inject_space_after_br),
        # Structure guessing
        stage(L.detect_blockquote_lists),
        stage(H.guess_doc_title),
        stage(L.guess_table_purpose),
        stage(H.find_chapter_title_by_classes),
        stage(H.find_article_title_by_classes),
        stage(H.guess_chapter_titles),
        # Straight away, so article titles aren't mistaken for chapter names
        stage(H.guess_article_titles),
        stage(H.find_chapter_name_by_classes),
        stage(partial(H.guess_chapter_names, max_length=settings.chapter_name_max_length), "guess_chapter_names"),
        # Again, for titles that were split off a chapter name
        stage(H.guess_article_titles),
        stage(H.find_article_name_by_classes),
        stage(partial(H.guess_article_names, max_length=settings.article_name_max_length), "guess_article_names"),
        stage(H.remove_incorrect_dags_class),
        stage(H.guess_fh_undirskr),
        stage(H.guess_dags),
        stage(H.normalize_signature_tags),
        stage(H.clean_up_empty_paragraphs),
        stage(H.remove_section1_classes),
        # Structure guessing ends
        stage(W.merge_text_nodes),
        stage(W.rehydrate_indents),
        stage(W.process_pre_elements),
        stage(sort_attributes),
    ]


def dirty_clean(
    html: str,
    skip_prettier: bool = False,
    settings: Optional[Settings] = None,
    assert_dirty: bool = False,
) -> str:
    """
    Normalizes a raw HTML export into canonical regulation markup.

    Args:
        html: Raw markup from a word processor, PDF converter or legacy site.
        skip_prettier: Return the single-line serialization instead of the
                       prettified canonical form.
        settings: Overrides the environment-driven defaults.
        assert_dirty: Raise AlreadyCleanError instead of only logging a
                      warning when the markup looks like cleanup output.
    """
    if looks_clean(html):
        if assert_dirty:
            raise AlreadyCleanError("Markup already contains cleanup output markers")
        logger.warning("dirty_clean called on markup that looks already cleaned, output may be mangled")

    root = parse_html(M.fix_html_mistakes(html))
    run_stages(root, make_dirty_clean_stages(settings), "dirty_clean")
    cleaned = inner_html(root)
    return cleaned if skip_prettier else prettify(cleaned)
