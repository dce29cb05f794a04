"""Data models for help completeness checks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Position reported for parameters injected by the host rather than declared
# by the function author (PowerShell uses Int32.MinValue for these).
COMMON_PARAMETER_POSITION = -2147483648


@dataclass(frozen=True)
class ParameterDescriptor:
    """A parameter as declared in a function signature."""

    name: str
    position: int  # COMMON_PARAMETER_POSITION for common parameters
    required: bool = False
    default_value: str = ""  # "" when there is no default
    positional_only: bool = False  # Cannot be passed by name

    @property
    def is_common(self) -> bool:
        return self.position == COMMON_PARAMETER_POSITION


@dataclass(frozen=True)
class FunctionDescriptor:
    """An exported function and its declared parameters."""

    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()

    def checked_parameters(self) -> list[ParameterDescriptor]:
        """Parameters subject to per-parameter checks (common ones excluded)."""
        return [p for p in self.parameters if not p.is_common]


@dataclass
class ParameterHelp:
    """Help text documented for a single parameter."""

    description: str = ""
    required: bool = False
    default_value: str = ""


@dataclass
class HelpDocument:
    """Parsed help for one function."""

    synopsis: str = ""
    description: str | None = None
    input_types: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    parameters: dict[str, ParameterHelp] = field(default_factory=dict)


@dataclass(frozen=True)
class ConsistencyRecord:
    """One (function, parameter, description) observation."""

    function_name: str
    parameter_name: str
    description: str


@dataclass(frozen=True)
class RewriteRule:
    """Regex search/replace applied to a description before comparing."""

    search: str
    replace: str = ""

    def apply(self, text: str) -> str:
        return re.sub(self.search, self.replace, text)


class CheckKind(str, Enum):
    """What a single check verifies."""

    SYNOPSIS = "has a synopsis"
    DESCRIPTION = "has a description"
    INPUT_TYPES = "declares input types"
    EXAMPLES = "has examples"
    PARAMETER_DOCUMENTED = "is documented"
    PARAMETER_REQUIRED_OR_DEFAULT = "is mandatory or has a default"
    PARAMETER_IN_EXAMPLE = "is used in an example"
    PARAMETER_CONSISTENT = "has a consistent description"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check."""

    function_name: str | None  # None for module-wide consistency checks
    parameter_name: str | None
    kind: CheckKind
    passed: bool
    observed: object = None  # Shown when the check fails

    @property
    def label(self) -> str:
        if self.parameter_name is None:
            subject = self.function_name
        elif self.function_name is None:
            subject = f"parameter {self.parameter_name}"
        else:
            subject = f"{self.function_name}: parameter {self.parameter_name}"
        return f"{subject} {self.kind.value}"

    def describe(self) -> str:
        """Label plus the observed value for failed checks."""
        if self.passed:
            return self.label
        return f"{self.label} (observed: {self.observed!r})"


@dataclass
class ModuleReport:
    """All check results for one module."""

    module: str
    results: list[CheckResult] = field(default_factory=list)
    records: list[ConsistencyRecord] = field(default_factory=list)
    # parameter name -> normalized description -> function names
    parameter_texts: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.passed]

    @property
    def passed(self) -> bool:
        return not self.failures


@dataclass
class ExtractionResult:
    """Functions and help extracted from one module."""

    module: str
    language: str  # "python" | "sql" | "powershell"
    functions: list[FunctionDescriptor]
    help_documents: dict[str, HelpDocument]
    source: Path | None = None  # File or directory the help was read from
