"""helpcheck - Help completeness and consistency checks for module functions."""

from __future__ import annotations

from pathlib import Path
from types import ModuleType

from helpcheck.checks import (
    check_consistency,
    check_function_help,
    check_module,
    check_parameter_help,
    collect_consistency_records,
    normalize_description,
)
from helpcheck.config import Settings, find_settings, load_settings
from helpcheck.errors import ConfigError, ExtractionError, HelpCheckError
from helpcheck.extractors import (
    extract_help_export,
    extract_python_module,
    extract_sql_functions,
)
from helpcheck.models import (
    COMMON_PARAMETER_POSITION,
    CheckKind,
    CheckResult,
    ConsistencyRecord,
    ExtractionResult,
    FunctionDescriptor,
    HelpDocument,
    ModuleReport,
    ParameterDescriptor,
    ParameterHelp,
    RewriteRule,
)
from helpcheck.store import ParameterTextStore
from helpcheck.syntax import ParameterSyntax, syntax_for


def check_extraction(
    extraction: ExtractionResult,
    settings: Settings | None = None,
    store: ParameterTextStore | None = None,
) -> ModuleReport:
    """Run all checks over an extraction result.

    Without explicit settings, helpcheck.json beside the extracted source is
    used when present.
    """
    if settings is None and extraction.source is not None:
        settings = load_settings(find_settings(extraction.source))
    return check_module(
        extraction.module,
        extraction.functions,
        extraction.help_documents,
        syntax_for(extraction.language),
        settings=settings,
        store=store,
    )


def _settings(settings_path: Path | None) -> Settings | None:
    return load_settings(settings_path) if settings_path is not None else None


def check_python_module(
    target: ModuleType | Path | str,
    settings_path: Path | None = None,
    store: ParameterTextStore | None = None,
) -> ModuleReport:
    """Extract and check a Python module.

    Settings come from settings_path, or from helpcheck.json beside the
    module file when not given.
    """
    extraction = extract_python_module(target)
    return check_extraction(extraction, _settings(settings_path), store)


def check_sql_functions(
    sql_dir: Path,
    settings_path: Path | None = None,
    store: ParameterTextStore | None = None,
) -> ModuleReport:
    """Extract and check a directory of SQL function files."""
    extraction = extract_sql_functions(sql_dir)
    return check_extraction(extraction, _settings(settings_path), store)


def check_help_export(
    path: Path,
    settings_path: Path | None = None,
    store: ParameterTextStore | None = None,
) -> ModuleReport:
    """Extract and check a JSON help export."""
    extraction = extract_help_export(path)
    return check_extraction(extraction, _settings(settings_path), store)


__all__ = [
    "COMMON_PARAMETER_POSITION",
    "CheckKind",
    "CheckResult",
    "ConfigError",
    "ConsistencyRecord",
    "ExtractionError",
    "ExtractionResult",
    "FunctionDescriptor",
    "HelpCheckError",
    "HelpDocument",
    "ModuleReport",
    "ParameterDescriptor",
    "ParameterHelp",
    "ParameterSyntax",
    "ParameterTextStore",
    "RewriteRule",
    "Settings",
    "check_consistency",
    "check_extraction",
    "check_function_help",
    "check_help_export",
    "check_module",
    "check_parameter_help",
    "check_python_module",
    "check_sql_functions",
    "collect_consistency_records",
    "extract_help_export",
    "extract_python_module",
    "extract_sql_functions",
    "find_settings",
    "load_settings",
    "normalize_description",
    "syntax_for",
]
