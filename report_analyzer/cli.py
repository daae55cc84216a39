"""Command line entry point: ``claude-analyzer analyze`` and ``claude-analyzer serve``."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from report_analyzer import config
from report_analyzer.reports.writer import FORMATS, write_reports
from report_analyzer.services.analysis_runner import FileOutcome, find_jsonl_files, run_analysis

logger = logging.getLogger("claude_report.cli")


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-analyzer",
        description="Analyze Claude Code conversation logs and produce reports.",
    )
    parser.add_argument("--version", action="version", version=config.VERSION)
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a JSONL file or a directory of JSONL files")
    analyze.add_argument("path", help="File or directory to analyze")
    analyze.add_argument("-o", "--output", default="./claude-reports", help="Output directory")
    analyze.add_argument("-v", "--verbose", action="store_true", help="Print per-file statistics")
    analyze.add_argument(
        "-f",
        "--format",
        default="json",
        choices=[*FORMATS, "all"],
        help="Report format (default: json)",
    )

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=config.HOST)
    serve.add_argument("--port", type=int, default=config.PORT)
    return parser


def _analyze(args: argparse.Namespace) -> int:
    target = Path(args.path).expanduser().resolve()
    if not target.exists():
        _err(f"✗ Path not found: {target}")
        return 1

    files = find_jsonl_files(target)
    if not files:
        _err("⚠ No JSONL files found.")
        return 0
    _err(f"✓ Found {len(files)} JSONL file(s).")

    def on_start(path: Path) -> None:
        _err(f"  Analyzing: {path.name}")

    def on_done(outcome: FileOutcome) -> None:
        if not outcome.ok:
            _err(f"✗ {outcome.path.name}: {outcome.error}")
            return
        if args.verbose:
            result = outcome.analysis.result
            _err(f"{outcome.path}:")
            _err(f"  - sessions: {result.sessionCount}")
            _err(f"  - messages: {result.totalMessages}")
            _err(f"  - code blocks: {result.codeBlocks}")
        _err(f"✓ {outcome.path.name}")

    try:
        run = run_analysis(target, on_file_start=on_start, on_file_done=on_done, files=files)
        written = write_reports(run.report, Path(args.output).expanduser(), args.format)
    except (OSError, ValueError) as e:
        _err(f"✗ Analysis failed: {e}")
        return 1

    for fmt, error in written.errors.items():
        _err(f"⚠ {fmt} report was not written: {error}")

    print("\n✓ Analysis complete!")
    for fmt, path in written.paths.items():
        print(f"  {fmt}: {path}")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("report_analyzer.main:app", host=args.host, port=args.port)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(level=level)

    if args.command == "analyze":
        return _analyze(args)
    return _serve(args)


if __name__ == "__main__":
    raise SystemExit(main())
