from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .adapters import ADAPTERS, is_stdin
from .models import DetectResult, DistillReport

NO_SESSIONS_HINT = (
    "no agent sessions found. try: cat AGENTS.md SOUL.md | session-distill --from-files"
)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the session-distill CLI."""
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "serve":
        from .server import main as server_main
        server_main()
        return 0

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        _dispatch(args)
    except (OSError, ValueError) as e:
        # always exit 0
        print(str(e), file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-distill",
        description="distill recurring context from AI agent sessions into CLAUDE.md",
        epilog="run 'session-distill serve' to start the MCP server",
    )
    parser.add_argument("--adapter", choices=ADAPTERS, help="Force a transcript adapter")
    parser.add_argument("--project", help="Path to the sessions directory or file")
    parser.add_argument("--top", type=int, help="Show the top N patterns without generating CLAUDE.md")
    parser.add_argument("--merge", action="store_true", help="Append to the existing --out file instead of replacing it")
    parser.add_argument("--diff", action="store_true", help="Show what would change without writing")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")
    parser.add_argument("--all", action="store_true", help="Scan all sessions (default: most recent 20)")
    parser.add_argument("--out", help="Write to this file instead of stdout")
    parser.add_argument(
        "--from-files", dest="from_files", action="store_true",
        help="Read instruction files (AGENTS.md etc.) from stdin, one session per ## section",
    )
    parser.add_argument("--verbose", action="store_true", help="Log pipeline details to stderr")
    parser.add_argument("--version", "-v", action="version", version=__version__)
    return parser


def resolve_source(args, app) -> DetectResult | None:
    if args.from_files or (is_stdin() and not args.adapter):
        return DetectResult(adapter="stdin", path="stdin")
    return app.resolve_source(args.adapter or "", args.project or "")


def _dispatch(args, app=None):
    if app is None:
        from .server import create_app
        app = create_app()

    source = resolve_source(args, app)
    if source is None:
        _cmd_empty(args, NO_SESSIONS_HINT)
        return

    messages = app.load(source, all_sessions=args.all, structured=args.from_files)
    if not messages:
        _cmd_empty(args, "no messages found in sessions.")
        return

    report = app.run(messages, top=args.top)

    if args.json:
        print(json.dumps(report.to_json_dict(), indent=2))
    elif args.top:
        _cmd_top(report)
    elif args.diff:
        _cmd_diff(report, args.out or "CLAUDE.md")
    elif args.out:
        _cmd_write(report, args.out, merge=args.merge)
    else:
        sys.stdout.write(report.claude_md)


def _cmd_empty(args, hint: str):
    if args.json:
        print(json.dumps(DistillReport().to_json_dict(), indent=2))
    else:
        print(hint, file=sys.stderr)


def _cmd_top(report: DistillReport):
    total = report.sessions_analyzed
    print(f"top {len(report.patterns)} recurring patterns ({total} sessions analyzed):\n")
    for i, r in enumerate(report.patterns, 1):
        print(f"  {i}. {r.text} ({r.session_count}/{total} sessions, {r.pattern.value})")


def _read_existing(path: Path) -> str:
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def _cmd_diff(report: DistillReport, out: str):
    existing = _read_existing(Path(out))
    if existing == report.claude_md:
        print("no changes.")
        return
    print("--- would generate:\n")
    sys.stdout.write(report.claude_md)


def _cmd_write(report: DistillReport, out: str, merge: bool = False):
    path = Path(out)
    if merge:
        existing = _read_existing(path)
        path.write_text(existing + "\n" + report.claude_md, encoding="utf-8")
        print(f"merged into {out}")
    else:
        path.write_text(report.claude_md, encoding="utf-8")
        print(f"written to {out}")


if __name__ == "__main__":
    sys.exit(main())
