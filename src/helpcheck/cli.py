"""Command line entry point.

Checks one or more targets and prints every failed check:

    python -m helpcheck mypackage.api
    python -m helpcheck --sql authz/src/functions
    python -m helpcheck --help-json MyModule.help.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import check_help_export, check_python_module, check_sql_functions
from .errors import HelpCheckError
from .models import ModuleReport
from .store import ParameterTextStore


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="helpcheck",
        description="Check function help for completeness and consistency.",
    )
    parser.add_argument(
        "modules", nargs="*", help="Python module names or .py files to check"
    )
    parser.add_argument(
        "--sql",
        type=Path,
        action="append",
        default=[],
        metavar="DIR",
        help="directory of SQL function files",
    )
    parser.add_argument(
        "--help-json",
        type=Path,
        action="append",
        default=[],
        metavar="FILE",
        help="JSON export of PowerShell comment-based help",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings file (default: helpcheck.json beside each target)",
    )
    parser.add_argument(
        "--show-passed", action="store_true", help="also list passing checks"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    if not (args.modules or args.sql or args.help_json):
        parser.error("nothing to check")
    return args


def _print_report(report: ModuleReport, show_passed: bool) -> None:
    print(f"{report.module}:")
    for result in report.results:
        if result.passed:
            if show_passed:
                print(f"  ✓ {result.label}")
        else:
            print(f"  ✗ {result.describe()}")
    failed = len(report.failures)
    print(f"  {len(report.results) - failed}/{len(report.results)} checks passed")


def main(argv: list[str] | None = None) -> int:
    """Check all targets; return 1 if any check failed."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = ParameterTextStore()
    reports: list[ModuleReport] = []
    try:
        for module in args.modules:
            reports.append(check_python_module(module, args.config, store))
        for sql_dir in args.sql:
            reports.append(check_sql_functions(sql_dir, args.config, store))
        for help_json in args.help_json:
            reports.append(check_help_export(help_json, args.config, store))
    except HelpCheckError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    for report in reports:
        _print_report(report, args.show_passed)

    failed = sum(len(r.failures) for r in reports)
    if failed:
        print(f"\n{failed} check(s) failed")
        return 1
    print("\nAll checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
