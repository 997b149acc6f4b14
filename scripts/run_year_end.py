#!/usr/bin/env python3
"""
Run year-end reconciliation jobs from the command line.

Reads runtime settings from the active config (get_active_config), creates
tables if missing, runs the requested job, commits, and prints a JSON summary.

Usage:
    python3 scripts/run_year_end.py reconcile --tenant <id> --fiscal-year <yyyy> [--user <id> ...]
    python3 scripts/run_year_end.py issue-slips --tenant <id> --fiscal-year <yyyy> [--issue-date YYYY-MM-DD]
    python3 scripts/run_year_end.py results --tenant <id> [--fiscal-year <yyyy>] [--page N] [--limit N]
    python3 scripts/run_year_end.py advance --result-id <uuid> --action confirm|pay --actor <user>

Examples:
    # Reconcile every active employee of tenant t-001 for 2024
    python3 scripts/run_year_end.py reconcile --tenant t-001 --fiscal-year 2024

    # Reconcile two employees only, using a custom config file
    python3 scripts/run_year_end.py --config prod.yaml reconcile --tenant t-001 \\
        --fiscal-year 2024 --user u-1 --user u-2
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from datetime import date
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Year-end income-tax reconciliation jobs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config YAML (default: $YEAREND_CONFIG or packaged default).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override logging.level from config (DEBUG, INFO, ...).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("reconcile", "Compute and store year-end results."),
        ("issue-slips", "Issue withholding statements from finalized results."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--tenant", required=True)
        cmd.add_argument("--fiscal-year", type=int, required=True)
        cmd.add_argument(
            "--user",
            dest="user_ids",
            action="append",
            default=None,
            help="Target user id (repeatable).  Default: all active employees.",
        )
        if name == "issue-slips":
            cmd.add_argument(
                "--issue-date",
                type=lambda s: date.fromisoformat(s),
                default=None,
                help="Issue date (YYYY-MM-DD).  Default: today.",
            )

    results = sub.add_parser("results", help="List stored results.")
    results.add_argument("--tenant", required=True)
    results.add_argument("--fiscal-year", type=int, default=None)
    results.add_argument("--user", default=None)
    results.add_argument("--page", type=int, default=1)
    results.add_argument("--limit", type=int, default=None)

    advance = sub.add_parser("advance", help="Confirm or pay a result.")
    advance.add_argument("--result-id", type=UUID, required=True)
    advance.add_argument("--action", choices=("confirm", "pay"), required=True)
    advance.add_argument("--actor", required=True)

    return parser.parse_args(argv)


def _json_default(obj: object) -> object:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return str(obj)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=_json_default))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from yearend_batch.orchestrator import YearEndOrchestrator
    from yearend_config import get_active_config
    from yearend_kernel.db.engine import (
        create_tables,
        get_session_factory,
        init_engine_from_url,
        session_scope,
    )
    from yearend_kernel.domain.dtos import Pagination, ResultFilters
    from yearend_kernel.exceptions import YearEndError
    from yearend_kernel.logging_config import configure_logging

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    configure_logging(level=(args.log_level or config.log_level).upper())

    try:
        init_engine_from_url(config.database_url, echo=config.echo_sql)
        create_tables()
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    try:
        with session_scope() as session:
            orchestrator = YearEndOrchestrator.from_session(
                session,
                session_factory=get_session_factory(),
                config=config,
            )

            if args.command == "reconcile":
                summary = orchestrator.run_reconciliation(
                    args.tenant, args.fiscal_year, user_ids=args.user_ids,
                )
                _print_json(summary.as_dict())
            elif args.command == "issue-slips":
                summary = orchestrator.issue_withholding_slips(
                    args.tenant,
                    args.fiscal_year,
                    user_ids=args.user_ids,
                    issue_date=args.issue_date,
                )
                _print_json(summary.as_dict())
            elif args.command == "results":
                page = orchestrator.get_results(
                    args.tenant,
                    ResultFilters(user_id=args.user, fiscal_year=args.fiscal_year),
                    Pagination(
                        page=args.page,
                        limit=args.limit or config.default_page_size,
                    ),
                )
                _print_json({
                    "total": page.total,
                    "page": page.page,
                    "limit": page.limit,
                    "total_pages": page.total_pages,
                    "results": [asdict(r) for r in page.results],
                })
            else:
                result = orchestrator.advance_result_status(
                    args.result_id, args.action, args.actor,
                )
                _print_json(asdict(result))
    except YearEndError as e:
        logging.getLogger("yearend.scripts").error("command_failed", exc_info=True)
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
