import argparse
import json
import logging
import sys
from pathlib import Path

import structlog

from regclean import __version__
from regclean.diff import get_diff
from regclean.dirty import AlreadyCleanError, dirty_clean
from regclean.editor import cleanup_editor_output, cleanup_regulation_text
from regclean.models import Angst, ValidationMode
from regclean.text import de_prettify, prettify
from regclean.text_warnings import make_warnings


def _configure_logging(debug: bool) -> None:
    # stdout carries the output, so logs go to stderr
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _read_html(path: Path) -> str:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_output(text: str, output) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"✅ Saved to {output}", file=sys.stderr)
    else:
        print(text)


def handle_clean(args):
    html = _read_html(args.input)
    try:
        cleaned = dirty_clean(html, skip_prettier=args.skip_prettier, assert_dirty=not args.force)
    except AlreadyCleanError as e:
        print(f"Error: {e}. Use 'regclean cleanup' for cleaned documents, or --force.", file=sys.stderr)
        sys.exit(1)
    _write_output(cleaned, args.output)


def handle_cleanup(args):
    html = _read_html(args.input)
    if args.regulation:
        cleaned = cleanup_regulation_text(html)
    else:
        cleaned = cleanup_editor_output(html, skip_prettier=args.skip_prettier)
    _write_output(cleaned, args.output)


def handle_prettify(args):
    _write_output(prettify(_read_html(args.input)), args.output)


def handle_deprettify(args):
    _write_output(de_prettify(_read_html(args.input)), args.output)


def handle_diff(args):
    older = _read_html(args.older)
    newer = _read_html(args.newer)

    result = get_diff(older, newer, raw=args.raw)
    if result.slow:
        print(f"Warning: diff took {result.elapsed_ms:.0f}ms", file=sys.stderr)

    if args.json:
        _write_output(json.dumps(result.model_dump(), indent=2), args.output)
    else:
        _write_output(result.diff, args.output)


def handle_warnings(args):
    html = _read_html(args.input)
    # Without --relaxed the configured VALIDATION_MODE applies
    mode = ValidationMode.RELAXED if args.relaxed else None
    warnings = make_warnings(html, is_impact=args.impact, mode=mode)

    if args.json:
        print(json.dumps([w.model_dump(mode="json") for w in warnings], indent=2, ensure_ascii=False))
    else:
        print(f"Found {len(warnings)} warnings:", file=sys.stderr)
        for w in warnings:
            flag = "!" if w.angst is Angst.HIGH else "~"
            print(f"[{flag}] {w.code}: {w.message}")
            for sample in w.samples:
                print(f"      {sample}")

    if any(w.angst is Angst.HIGH for w in warnings):
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(prog="regclean", description="Regclean: regulation HTML cleanup engine")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Log every cleanup stage to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_clean = subparsers.add_parser("clean", help="Clean a raw word-processor/PDF HTML export (one-shot)")
    p_clean.add_argument("input", type=Path, help="Input HTML file")
    p_clean.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_clean.add_argument("--skip-prettier", action="store_true", help="Output single-line HTML")
    p_clean.add_argument("--force", action="store_true", help="Run even if the input looks already cleaned")
    p_clean.set_defaults(func=handle_clean)

    p_cleanup = subparsers.add_parser("cleanup", help="Normalize editor output (idempotent)")
    p_cleanup.add_argument("input", type=Path, help="Input HTML file")
    p_cleanup.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_cleanup.add_argument("--skip-prettier", action="store_true", help="Output single-line HTML")
    p_cleanup.add_argument(
        "--regulation",
        action="store_true",
        help="Input is a stored regulation text with inlined appendixes and comments",
    )
    p_cleanup.set_defaults(func=handle_cleanup)

    p_pretty = subparsers.add_parser("prettify", help="Re-indent HTML into the canonical diffable layout")
    p_pretty.add_argument("input", type=Path, help="Input HTML file")
    p_pretty.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_pretty.set_defaults(func=handle_prettify)

    p_depretty = subparsers.add_parser("deprettify", help="Collapse prettified HTML back to a single line")
    p_depretty.add_argument("input", type=Path, help="Input HTML file")
    p_depretty.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_depretty.set_defaults(func=handle_deprettify)

    p_diff = subparsers.add_parser("diff", help="Mark up the changes between two cleaned HTML files")
    p_diff.add_argument("older", type=Path, help="Base version")
    p_diff.add_argument("newer", type=Path, help="Changed version")
    p_diff.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_diff.add_argument("--raw", action="store_true", help="Keep empty <del>/<ins> markers")
    p_diff.add_argument("--json", action="store_true", help="Output the diff result as JSON")
    p_diff.set_defaults(func=handle_diff)

    p_warn = subparsers.add_parser("warnings", help="List quality warnings (exits 1 on high-angst findings)")
    p_warn.add_argument("input", type=Path, help="Cleaned HTML file")
    p_warn.add_argument("--relaxed", action="store_true", help="Downgrade findings for legacy texts")
    p_warn.add_argument("--impact", action="store_true", help="Text is an amending (impact) regulation")
    p_warn.add_argument("--json", action="store_true", help="Output warnings as JSON")
    p_warn.set_defaults(func=handle_warnings)

    args = parser.parse_args()
    _configure_logging(args.debug)
    args.func(args)


if __name__ == "__main__":
    main()
