"""Command-line entrypoint: scan one preview URL and print the JSON result.

Usage (examples)
----------------
# Scan one preview page
python scripts/scan_creatives.py "https://preview.example.com/tag/123"

# Also check SL elements, keep the page HTML, write the result to a file
python scripts/scan_creatives.py "https://preview.example.com/tag/123" \
  --check-sl --debug-html --output result.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass, replace
from typing import Any, Sequence

from .config import ScanSettings
from .logging import configure_logging, jlog, logging_context, set_global_context
from .scan import run_scan
from .versioning import get_scanner_version

SCRIPT_NAME = "scan"


@dataclass(frozen=True)
class CliArgs:
    url: str
    settle_ms: int | None
    nav_timeout_ms: int | None
    max_attempts: int | None
    check_sl: bool
    headed: bool
    user_agent: str | None
    debug_html: bool
    debug_frames: bool
    output: str | None
    indent: int


def validate_args(args: argparse.Namespace) -> None:
    """Reject values that can never produce a scan."""
    if not args.url.startswith(("http://", "https://")):
        raise ValueError(f"url must be absolute (http/https): {args.url}")
    if args.max_attempts is not None and args.max_attempts < 1:
        raise ValueError("--max-attempts must be at least 1")
    if args.settle_ms is not None and args.settle_ms < 0:
        raise ValueError("--settle-ms cannot be negative")


def parse_args(argv: Sequence[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Find creative variants and wrapped model names on a preview page")
    p.add_argument("url", help="Absolute URL of the preview page")
    p.add_argument("--settle-ms", type=int, help="Wait after navigation before scanning (default: 6000)")
    p.add_argument("--nav-timeout-ms", type=int, help="Navigation timeout per attempt (default: 90000)")
    p.add_argument("--max-attempts", type=int, help="Launch/navigation attempts (default: 3)")
    p.add_argument("--check-sl", action="store_true", help="Also run line checks on SL elements")
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.add_argument("--user-agent")
    p.add_argument("--debug-html", action="store_true", help="Dump page HTML to media/debug/page_<request>.html")
    p.add_argument("--debug-frames", action="store_true", help="Log the iframe inventory of the page")
    p.add_argument("--output", help="Write the JSON result here instead of stdout")
    p.add_argument("--indent", type=int, default=2)

    ns = p.parse_args(argv)
    validate_args(ns)

    return CliArgs(
        url=ns.url,
        settle_ms=ns.settle_ms,
        nav_timeout_ms=ns.nav_timeout_ms,
        max_attempts=ns.max_attempts,
        check_sl=ns.check_sl,
        headed=ns.headed,
        user_agent=ns.user_agent,
        debug_html=ns.debug_html,
        debug_frames=ns.debug_frames,
        output=ns.output,
        indent=ns.indent,
    )


def settings_from_args(args: CliArgs, base: ScanSettings | None = None) -> ScanSettings:
    """Apply CLI flags on top of environment-derived settings."""
    settings = base or ScanSettings.from_env()
    overrides: dict[str, Any] = {}
    if args.settle_ms is not None:
        overrides["settle_delay_ms"] = args.settle_ms
    if args.nav_timeout_ms is not None:
        overrides["navigation_timeout_ms"] = args.nav_timeout_ms
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.check_sl:
        overrides["check_secondary_phrases"] = True
    if args.headed:
        overrides["headless"] = False
    if args.user_agent:
        overrides["user_agent"] = args.user_agent
    if args.debug_html:
        overrides["debug_html"] = True
    if args.debug_frames:
        overrides["debug_frames"] = True
    return replace(settings, **overrides)


async def run(args: CliArgs) -> dict[str, Any]:
    """Execute one scan for the supplied CLI arguments and emit the result."""

    result = await run_scan(args.url, settings_from_args(args))
    text = json.dumps(result, ensure_ascii=False, indent=args.indent or None)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        jlog("info", event="result_written", path=args.output, ok=result.get("ok"))
    else:
        sys.stdout.write(text + "\n")
    return result


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    set_global_context(app="creative_scanner", pipeline=SCRIPT_NAME)
    with logging_context(script=SCRIPT_NAME, scanner_version=get_scanner_version()):
        args = parse_args(argv)
        result = asyncio.run(run(args))
    return 0 if result.get("ok") else 1


__all__ = ["CliArgs", "main", "parse_args", "run", "settings_from_args", "validate_args"]
