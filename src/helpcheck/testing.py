"""pytest integration for help checks.

Typical use in a project's test suite::

    report = helpcheck.check_python_module("mypackage.api")

    @pytest.mark.parametrize("result", module_checks(report))
    def test_help(result):
        assert result.passed, result.describe()
"""

from __future__ import annotations

import pytest

from .models import ModuleReport


def module_checks(report: ModuleReport) -> list:
    """One pytest.param per check, identified by its label."""
    return [pytest.param(result, id=result.label) for result in report.results]


def assert_report_passed(report: ModuleReport) -> None:
    """Fail with every failed check listed, not just the first."""
    failures = report.failures
    if failures:
        lines = "\n".join(f"  - {f.describe()}" for f in failures)
        raise AssertionError(
            f"{report.module}: {len(failures)} help check(s) failed:\n{lines}"
        )
