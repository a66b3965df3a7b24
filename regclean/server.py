import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from mcp.server.fastmcp import FastMCP

from regclean.diff import get_diff
from regclean.dirty import dirty_clean
from regclean.editor import cleanup_editor_output, cleanup_regulation_text
from regclean.models import ValidationMode
from regclean.text_warnings import make_warnings

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio.
# All logs must go to stderr. Any print to stdout breaks the JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

mcp = FastMCP("Regulation Cleanup Service")


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(p, "r", encoding="utf-8") as f:
        return f.read()


def _save_text(text: str, path: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


@mcp.tool()
def clean_html_file(file_path: str, output_path: Optional[str] = None) -> str:
    """
    Cleans a raw HTML export (Word, PDF converter, legacy website) into
    canonical regulation markup, guessing chapter/article titles, lists and
    signature lines along the way.

    Only use this ONCE per imported document. The cleanup is not idempotent.

    Args:
        file_path: Absolute path to the raw HTML file.
        output_path: Optional. Defaults to `<name>_clean.html` beside the input.
    """
    try:
        cleaned = dirty_clean(_read_text(file_path), assert_dirty=True)

        if not output_path:
            p = Path(file_path)
            output_path = str(p.parent / f"{p.stem}_clean{p.suffix}")
        _save_text(cleaned, output_path)

        return f"Cleaned {Path(file_path).name}. Saved to: {output_path}"
    except Exception as e:
        return f"Error cleaning file: {str(e)}"


@mcp.tool()
def cleanup_editor_html(html: str, regulation_text: bool = False) -> str:
    """
    Normalizes HTML saved from the regulation editor. Safe to run repeatedly.

    Args:
        html: The editor output.
        regulation_text: If True, the input is a stored regulation text with
                         inlined appendix and comment sections, which are
                         cleaned separately and recombined.
    """
    try:
        if regulation_text:
            return cleanup_regulation_text(html)
        return cleanup_editor_output(html)
    except Exception as e:
        return f"Error cleaning up HTML: {str(e)}"


@mcp.tool()
def diff_html_files(older_path: str, newer_path: str, raw: bool = False) -> str:
    """
    Marks up the changes between two cleaned (prettified) HTML files with
    <del>/<ins> elements.

    Args:
        older_path: Path to the base version.
        newer_path: Path to the changed version.
        raw: If True, keeps the empty markers left around whitespace-only changes.
    """
    try:
        result = get_diff(_read_text(older_path), _read_text(newer_path), raw=raw)
        if result.slow:
            return f"(slow diff: {result.elapsed_ms:.0f}ms)\n{result.diff}"
        return result.diff
    except Exception as e:
        return f"Error computing diff: {str(e)}"


@mcp.tool()
def list_text_warnings(file_path: str, is_impact: bool = False, relaxed: bool = False) -> str:
    """
    Lists quality problems in a cleaned regulation text as JSON.

    Args:
        file_path: Absolute path to the cleaned HTML file.
        is_impact: True for amending regulations, where article numbers may jump.
        relaxed: If True, grades legacy texts leniently. Otherwise the
                 configured validation mode applies.
    """
    try:
        mode = ValidationMode.RELAXED if relaxed else None
        warnings = make_warnings(_read_text(file_path), is_impact=is_impact, mode=mode)
        if not warnings:
            return "No warnings found."
        return json.dumps([w.model_dump(mode="json") for w in warnings], indent=2, ensure_ascii=False)
    except Exception as e:
        return f"Error listing warnings: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
