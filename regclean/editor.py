"""
Idempotent cleanup of rich-text editor output, plus helpers that clean a
regulation's text, appendixes and comments together.

Running `cleanup_editor_output` on its own output returns the same markup.
"""

from functools import partial
from typing import List, Optional

import structlog

from regclean.cleanup import heuristics as H
from regclean.cleanup import mutators as M
from regclean.cleanup import whitespace as W
from regclean.cleanup.attributes import (
    convert_styles_to_html,
    reapply_style_attrs,
    remove_autogenerated_markers,
    remove_stale_indenting,
    sanitize_attributes,
    sort_attributes,
)
from regclean.cleanup.stages import Stage, run_stages, stage
from regclean.config import Settings
from regclean.config import settings as default_settings
from regclean.models import Appendix, RegulationTextParts
from regclean.text import clean_title, prettify
from regclean.text_helpers import combine_text_appendixes_comments, extract_appendixes_and_comments
from regclean.utils.dom import inner_html, parse_html

logger = structlog.get_logger(__name__)


def make_editor_stages(settings: Optional[Settings] = None) -> List[Stage]:
    settings = settings or default_settings
    return [
        stage(W.flag_editor_indents),
        stage(W.remove_comments_and_collapse_whitespace),
        stage(M.remove_disallowed_elements),
        # Early editor versions leaked `data-indenting` into saved documents
        stage(remove_stale_indenting),
        stage(M.save_cf_email_markers),
        stage(M.clean_up_lists),
        stage(M.cleanup_blockquotes),
        stage(convert_styles_to_html),
        stage(M.normalize_editor_tag_names),
        stage(M.normalize_editor_class_names),
        stage(partial(M.fix_images, min_size=settings.min_image_size), "fix_images"),
        stage(partial(M.clean_uploaded_media_urls, file_server=settings.file_server), "clean_uploaded_media_urls"),
        stage(sanitize_attributes),
        stage(reapply_style_attrs),
        stage(W.remove_empty_elements),
        stage(M.zap_redundant_descendants),
        stage(W.push_space_outside_elements),
        stage(W.trim_spaces_around_blocks),
        stage(M.paragraphize_stray_content),
        stage(W.trim_brs),
        stage(W.max_two_adjacent_brs),
        stage(W.split_paragraphs_on_double_brs),
        stage(M.zap_redundant_paragraphs),
        stage(M.merge_adjacent_inline_elements),
        stage(M.zap_leftover_spans),
        stage(M.reverse_linked_footnote_markers),
        stage(W.inject_space_after_br),
        stage(H.set_title_name_ems),
        stage(remove_autogenerated_markers),
        stage(W.merge_text_nodes),
        stage(W.rehydrate_indents),
        stage(sort_attributes),
    ]


def cleanup_editor_output(html: str, skip_prettier: bool = False, settings: Optional[Settings] = None) -> str:
    """
    Normalizes markup saved from the editor. Safe to run any number of times.

    Args:
        html: Editor output, or the output of an earlier cleanup.
        skip_prettier: Return the single-line serialization instead of the
                       prettified canonical form.
        settings: Overrides the environment-driven defaults.
    """
    root = parse_html(html)
    run_stages(root, make_editor_stages(settings), "cleanup_editor_output")
    cleaned = inner_html(root)
    return cleaned if skip_prettier else prettify(cleaned)


def cleanup_all_editor_outputs(parts: RegulationTextParts, settings: Optional[Settings] = None) -> RegulationTextParts:
    """Cleans the body text, every appendix (title and text) and the comments."""

    def clean(html: str) -> str:
        return cleanup_editor_output(html, skip_prettier=True, settings=settings)

    return RegulationTextParts(
        text=clean(parts.text),
        appendixes=[Appendix(title=clean_title(a.title), text=clean(a.text)) for a in parts.appendixes],
        comments=clean(parts.comments),
    )


def cleanup_and_combine_editor_outputs(parts: RegulationTextParts, settings: Optional[Settings] = None) -> str:
    clean = cleanup_all_editor_outputs(parts, settings=settings)
    return prettify(combine_text_appendixes_comments(clean))


def cleanup_regulation_text(html: str, settings: Optional[Settings] = None) -> str:
    """
    Splits stored regulation text (with inlined appendixes and comments),
    cleans each part, recombines and prettifies the whole thing. Useful for
    bringing older stored texts up to date before diffing against them.
    """
    parts = extract_appendixes_and_comments(html)
    logger.debug(f"cleanup_regulation_text: {len(parts.appendixes)} appendixes, comments={bool(parts.comments)}")
    return cleanup_and_combine_editor_outputs(parts, settings=settings)
