# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""dpichecker CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..catalogue import load_catalogue
from ..config import ProbeSettings, load_probe_settings
from ..errors import CatalogueError, error_category_to_reason
from ..log import setup_logging
from ..models import RunOutcome
from ..runtime import DPIChecker
from ..sink import LoggingSink

EXIT_OK = 0
EXIT_UNREACHABLE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TCP 16-20 interference checker (concurrent HTTP probes)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly summary",
    )
    parser.add_argument("--timeout-ms", type=int, help="Per-probe deadline in milliseconds")
    parser.add_argument("--threshold", type=int, help="Bytes that must arrive before the deadline for an OK verdict")
    parser.add_argument("--reachability-url", help="Endpoint for the preliminary network check")
    parser.add_argument("--catalogue", help="JSON file with {id, provider, times, url} entries")
    parser.add_argument("--max-concurrency", type=int, help="Cap on simultaneously running probes")
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification",
    )
    parser.add_argument("--log-level", help="Python logging level (default: DPICHECKER_LOG_LEVEL or WARNING)")
    parser.add_argument("--quiet", action="store_true", help="Print only the result table")
    return parser


def apply_overrides(settings: ProbeSettings, args: argparse.Namespace) -> ProbeSettings:
    if args.timeout_ms is not None and args.timeout_ms > 0:
        settings.timeout_ms = args.timeout_ms
    if args.threshold is not None and args.threshold > 0:
        settings.ok_threshold_bytes = args.threshold
    if args.reachability_url:
        settings.reachability_url = args.reachability_url
    if args.max_concurrency is not None:
        settings.max_concurrency = args.max_concurrency if args.max_concurrency > 0 else None
    if args.ignore_ssl_errors:
        settings.verify_ssl = False
    return settings


def _print_json(data: dict[str, Any] | Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _pretty_print(outcome: RunOutcome, *, show_logs: bool = True) -> None:
    print(f"[dpichecker] Status: {outcome.status_text}")
    if outcome.results:
        id_width = max(len("ID"), *(len(state.id) for state in outcome.results))
        provider_width = max(len("Provider"), *(len(state.provider) for state in outcome.results))
        print(f"{'ID':<{id_width}}  {'Provider':<{provider_width}}  HTTP  DPI Status")
        for state in outcome.results:
            http_status = str(state.http_status) if state.http_status is not None else "-"
            reason = error_category_to_reason(state.category)
            verdict = f"{state.status_text} ({reason})" if reason else state.status_text
            print(f"{state.id:<{id_width}}  {state.provider:<{provider_width}}  {http_status:<4}  {verdict}")
        counts = ", ".join(f"{name}={count}" for name, count in outcome.counts().items() if count)
        print(f"Summary: {counts}")
    if show_logs and outcome.logs:
        print("Logs:")
        for event in outcome.logs:
            print(f"  {event.format()}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings = apply_overrides(load_probe_settings(), args)
    catalogue = None
    if args.catalogue:
        try:
            catalogue = load_catalogue(args.catalogue)
        except (OSError, CatalogueError) as exc:
            parser.error(str(exc))

    checker = DPIChecker(settings=settings, catalogue=catalogue, sink=LoggingSink())
    try:
        outcome = checker.run()
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

    if args.json:
        _print_json(outcome)
    else:
        _pretty_print(outcome, show_logs=not args.quiet)

    return EXIT_OK if outcome.reachable else EXIT_UNREACHABLE


if __name__ == "__main__":
    raise SystemExit(main())
