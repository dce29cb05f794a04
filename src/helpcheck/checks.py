"""Help completeness and consistency checks.

Every check is an independent predicate over already extracted help data.
Checks never raise and never stop other checks from running: each outcome,
passed or failed, is returned as a CheckResult.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Callable, Collection, Iterable, Mapping

from .config import Settings
from .models import (
    CheckKind,
    CheckResult,
    ConsistencyRecord,
    FunctionDescriptor,
    HelpDocument,
    ModuleReport,
    ParameterDescriptor,
    RewriteRule,
)
from .store import ParameterTextStore, ParameterTexts
from .syntax import ParameterSyntax

log = logging.getLogger(__name__)


def check_function_help(function_name: str, doc: HelpDocument) -> list[CheckResult]:
    """Check the function-level sections of a help document.

    A synopsis equal to the bare function name is what help systems fall
    back to when nothing was written, so it counts as missing.
    """
    synopsis = (doc.synopsis or "").strip()
    return [
        CheckResult(
            function_name,
            None,
            CheckKind.SYNOPSIS,
            passed=bool(synopsis) and synopsis != function_name,
            observed=doc.synopsis,
        ),
        CheckResult(
            function_name,
            None,
            CheckKind.DESCRIPTION,
            passed=bool((doc.description or "").strip()),
            observed=doc.description,
        ),
        CheckResult(
            function_name,
            None,
            CheckKind.INPUT_TYPES,
            passed=bool(doc.input_types),
            observed=doc.input_types,
        ),
        CheckResult(
            function_name,
            None,
            CheckKind.EXAMPLES,
            passed=bool(doc.examples),
            observed=doc.examples,
        ),
    ]


def check_parameter_help(
    function_name: str,
    param: ParameterDescriptor,
    doc: HelpDocument,
    example_code: list[str],
    syntax: ParameterSyntax,
) -> list[CheckResult]:
    """Check that one parameter is documented, settled and demonstrated."""
    param_help = doc.parameters.get(param.name)
    description = (param_help.description if param_help else "").strip()
    required = param_help.required if param_help else param.required
    default_value = param_help.default_value if param_help else param.default_value

    if param.positional_only:
        # Passed by position only, so any call of the function demonstrates it
        call = syntax.call_pattern(function_name)
        used = any(call.search(example) for example in example_code)
        usage_pattern = call.pattern
    else:
        used = syntax.used_in(param.name, example_code)
        usage_pattern = syntax.pattern(param.name).pattern

    return [
        CheckResult(
            function_name,
            param.name,
            CheckKind.PARAMETER_DOCUMENTED,
            passed=bool(description),
            observed=description,
        ),
        CheckResult(
            function_name,
            param.name,
            CheckKind.PARAMETER_REQUIRED_OR_DEFAULT,
            passed=required or bool(default_value),
            observed={"required": required, "default": default_value},
        ),
        CheckResult(
            function_name,
            param.name,
            CheckKind.PARAMETER_IN_EXAMPLE,
            passed=used,
            observed=usage_pattern,
        ),
    ]


def collect_consistency_records(
    functions: Iterable[FunctionDescriptor],
    help_documents: Mapping[str, HelpDocument],
) -> list[ConsistencyRecord]:
    """One record per (function, checked parameter) pair."""
    records = []
    for function in functions:
        doc = help_documents.get(function.name, HelpDocument())
        for param in function.checked_parameters():
            param_help = doc.parameters.get(param.name)
            records.append(
                ConsistencyRecord(
                    function_name=function.name,
                    parameter_name=param.name,
                    description=param_help.description if param_help else "",
                )
            )
    return records


def normalize_description(text: str, rules: Iterable[RewriteRule] = ()) -> str:
    """Normalize a description before comparing.

    Line breaks collapse to single spaces, then each rule is applied in the
    order given, then surrounding whitespace is stripped. Whitespace is also
    stripped before the rules run, so anchored rules see the same text on a
    second pass.
    """
    text = re.sub(r"\s*(?:\r\n|\r|\n)\s*", " ", text or "").strip()
    for rule in rules:
        rewritten = rule.apply(text)
        if rewritten != text:
            log.debug("Rewrote %r -> %r with %r", text, rewritten, rule.search)
        text = rewritten
    return text.strip()


def _same_name(name: str) -> str:
    return name


def group_descriptions(
    records: Iterable[ConsistencyRecord],
    excluded: Collection[tuple[str, str]] = (),
    rules_by_param: Mapping[str, list[RewriteRule]] | None = None,
    name_key: Callable[[str], str] | None = None,
) -> ParameterTexts:
    """Group normalized descriptions by parameter name.

    Returns parameter name -> normalized text -> function names, with
    parameter names sorted. Excluded (function, parameter) pairs are left
    out entirely.

    Names with the same name_key are one parameter, reported under the first
    spelling seen; exclusions and rules match by key as well.
    """
    key = name_key or _same_name
    rules = {key(name): r for name, r in (rules_by_param or {}).items()}
    excluded_keys = {(function, key(name)) for function, name in excluded}
    spellings: dict[str, str] = {}
    grouped: dict[str, dict[str, list[str]]] = defaultdict(dict)
    for record in records:
        parameter_key = key(record.parameter_name)
        if (record.function_name, parameter_key) in excluded_keys:
            log.debug(
                "Skipping consistency check for %s in %s",
                record.parameter_name,
                record.function_name,
            )
            continue
        name = spellings.setdefault(parameter_key, record.parameter_name)
        text = normalize_description(record.description, rules.get(parameter_key, []))
        grouped[name].setdefault(text, []).append(record.function_name)
    return {name: grouped[name] for name in sorted(grouped)}


def check_consistency(
    records: Iterable[ConsistencyRecord],
    excluded: Collection[tuple[str, str]] = (),
    rules_by_param: Mapping[str, list[RewriteRule]] | None = None,
    store: ParameterTextStore | None = None,
    module_name: str | None = None,
    name_key: Callable[[str], str] | None = None,
) -> dict[str, list[CheckResult]]:
    """Check every parameter name is described the same way everywhere.

    When a store is given, the grouped descriptions are merged into it under
    module_name so later checks in the same session can read them back.
    """
    grouped = group_descriptions(records, excluded, rules_by_param, name_key)

    if store is not None:
        store.merge(module_name or "", grouped)

    results: dict[str, list[CheckResult]] = {}
    for parameter, texts in grouped.items():
        results[parameter] = [
            CheckResult(
                None,
                parameter,
                CheckKind.PARAMETER_CONSISTENT,
                passed=len(texts) == 1,
                observed=texts,
            )
        ]
    return results


def check_module(
    module_name: str,
    functions: list[FunctionDescriptor],
    help_documents: Mapping[str, HelpDocument],
    syntax: ParameterSyntax,
    settings: Settings | None = None,
    store: ParameterTextStore | None = None,
) -> ModuleReport:
    """Run every check over one module's functions."""
    settings = settings or Settings()
    report = ModuleReport(module=module_name)

    for function in functions:
        doc = help_documents.get(function.name, HelpDocument())
        report.results.extend(check_function_help(function.name, doc))

        example_code = list(doc.examples)
        for param in function.checked_parameters():
            report.results.extend(
                check_parameter_help(function.name, param, doc, example_code, syntax)
            )

    report.records = collect_consistency_records(functions, help_documents)
    consistency = check_consistency(
        report.records,
        excluded=settings.excluded_pairs(),
        rules_by_param=settings.rules_by_parameter(),
        store=store,
        module_name=module_name,
        name_key=syntax.key,
    )
    for parameter, parameter_results in consistency.items():
        report.results.extend(parameter_results)
        report.parameter_texts[parameter] = parameter_results[0].observed

    log.info(
        "%s: %d checks, %d failed",
        module_name,
        len(report.results),
        len(report.failures),
    )
    return report
