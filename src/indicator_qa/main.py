#!/usr/bin/env python3
"""
indicator-qa - Quality assurance for statistical indicator datasets.

Usage:
    indicator-qa scan data.xlsx                              # Scan and print the report
    indicator-qa scan data.xlsx --project budget-2024        # Scan and store results
    indicator-qa scan data.csv --json report.json            # Also export JSON
    indicator-qa scan data.csv --check timeline              # Single check
    indicator-qa revalidate edited.xlsx --project budget-2024
    indicator-qa resolve QA-1a2b3c4d5e6f7a8b --project budget-2024 --comment "fixed at source"
    indicator-qa dismiss QA-1a2b3c4d5e6f7a8b --project budget-2024
    indicator-qa active --project budget-2024

Options:
    --data-dir DIR     Project storage directory (default: INDICATOR_QA_DATA_DIR)
    --log-dir DIR      Log directory (default: INDICATOR_QA_LOG_DIR)
    --verbose          Enable verbose logging
"""

import argparse
import logging
import os
import sys

from . import config
from .db.dal import JsonFileQARepository
from .loader import load_records
from .processors.qa import ALL_CHECKS, export_report_json, format_report, process_qa
from .processors.qa_core import CheckSeverity, QAConfig
from .processors.qa_processor import QAProcessor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ISSUES = 2

SEVERITY_RANK = {CheckSeverity.INFO: 0, CheckSeverity.WARNING: 1, CheckSeverity.CRITICAL: 2}


def setup_logging(verbose: bool = False, log_dir: str = config.LOG_DIR):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(
                os.path.join(log_dir, config.LOG_FILE),
                encoding='utf-8'
            )
        ]
    )


def sheet_arg(value: str):
    """Excel sheet argument: all-digit values select a sheet by index."""
    return int(value) if value.isdigit() else value


def _processor(args) -> QAProcessor:
    return QAProcessor(QAConfig.from_env(), JsonFileQARepository(args.data_dir))


def _exceeds(issues, fail_on) -> bool:
    if not fail_on:
        return False
    threshold = SEVERITY_RANK[fail_on]
    return any(SEVERITY_RANK.get(i.severity, 0) >= threshold for i in issues)


def cmd_scan(args) -> int:
    """Run QA scan on a data file."""
    checks = None
    if args.check:
        if args.check not in ALL_CHECKS:
            print(f"Unknown check: {args.check}")
            print(f"Available checks: {', '.join(ALL_CHECKS.keys())}")
            return EXIT_ERROR
        checks = [args.check]

    records = load_records(args.file, sheet_name=args.sheet)

    if checks is None and args.project:
        results = _processor(args).scan(args.project, records)
    else:
        results = process_qa(records, QAConfig.from_env(), checks=checks)

    print(format_report(results))

    if args.json:
        export_report_json(results, args.json)
        print(f"\nReport exported to: {args.json}")

    return EXIT_ISSUES if _exceeds(results.issues, args.fail_on) else EXIT_OK


def cmd_revalidate(args) -> int:
    """Re-run QA on edited data and auto-resolve vanished issues."""
    records = load_records(args.file, sheet_name=args.sheet)
    outcome = _processor(args).revalidate(args.project, records, updated_by=args.user)

    if outcome.qa_results is not None:
        print(format_report(outcome.qa_results))
    print(f"\nAuto-resolved issues: {outcome.auto_resolved_count}")
    return EXIT_OK


def cmd_set_status(args) -> int:
    """Resolve or dismiss an issue."""
    status = "resolved" if args.command == "resolve" else "dismissed"
    _processor(args).set_status(
        args.project, args.issue_id, status, args.user, comment=args.comment,
    )
    print(f"Issue {args.issue_id} marked {status}")
    return EXIT_OK


def cmd_active(args) -> int:
    """List the project's active issues."""
    issues = _processor(args).active_issues(args.project)
    print(f"Active issues: {len(issues)}")
    for issue in issues:
        scope = issue.indicator_name if not issue.filter_name else f"{issue.indicator_name} / {issue.filter_name}"
        print(f"  {issue.id} [{issue.severity}] {issue.check_type} — {scope}: {issue.message}")
    return EXIT_OK


COMMANDS = {
    "scan": cmd_scan,
    "revalidate": cmd_revalidate,
    "resolve": cmd_set_status,
    "dismiss": cmd_set_status,
    "active": cmd_active,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="indicator-qa",
        description="QA - Quality Assurance for statistical indicator datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  indicator-qa scan data.xlsx                          # Full scan
  indicator-qa scan data.xlsx --project budget-2024    # Scan and store
  indicator-qa revalidate edited.xlsx --project budget-2024
  indicator-qa resolve QA-1a2b3c4d5e6f7a8b --project budget-2024
  indicator-qa active --project budget-2024
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Common arguments
    def add_common_args(p):
        p.add_argument("--data-dir", type=str, default=config.DATA_DIR, help="Project storage directory")
        p.add_argument("--log-dir", type=str, default=config.LOG_DIR, help="Log directory")
        p.add_argument("--verbose", action="store_true", help="Verbose logging")

    def add_file_args(p):
        p.add_argument("file", type=str, help="CSV or Excel data file")
        p.add_argument("--sheet", type=sheet_arg, default=0, help="Excel sheet name or index (default: first sheet)")

    # Scan subcommand
    scan_parser = subparsers.add_parser("scan", help="Run QA scan")
    add_file_args(scan_parser)
    add_common_args(scan_parser)
    scan_parser.add_argument("--project", type=str, default=None, help="Store results under this project")
    scan_parser.add_argument("--json", type=str, default=None, help="Export the report as JSON to this path")
    scan_parser.add_argument(
        "--check", type=str, default=None,
        help=f"Specific check to run. Options: {', '.join(ALL_CHECKS.keys())}"
    )
    scan_parser.add_argument(
        "--fail-on", type=str, default=None, choices=list(SEVERITY_RANK.keys()),
        help="Exit with status 2 when an issue of this severity or higher is found"
    )

    # Revalidate subcommand
    revalidate_parser = subparsers.add_parser("revalidate", help="Re-run QA after edits")
    add_file_args(revalidate_parser)
    add_common_args(revalidate_parser)
    revalidate_parser.add_argument("--project", type=str, required=True, help="Project id")
    revalidate_parser.add_argument("--user", type=str, default="system", help="Name recorded on auto-resolved issues")

    # Status subcommands
    for name, help_text in (("resolve", "Mark an issue resolved"), ("dismiss", "Dismiss an issue")):
        status_parser = subparsers.add_parser(name, help=help_text)
        status_parser.add_argument("issue_id", type=str, help="Issue id (QA-...)")
        add_common_args(status_parser)
        status_parser.add_argument("--project", type=str, required=True, help="Project id")
        status_parser.add_argument("--comment", type=str, default=None, help="Comment stored with the status")
        status_parser.add_argument("--user", type=str, default=os.getenv("USER", "unknown"), help="User name")

    # Active subcommand
    active_parser = subparsers.add_parser("active", help="List active issues")
    add_common_args(active_parser)
    active_parser.add_argument("--project", type=str, required=True, help="Project id")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    setup_logging(args.verbose, args.log_dir)

    try:
        return COMMANDS[args.command](args)
    except (FileNotFoundError, ValueError, KeyError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
