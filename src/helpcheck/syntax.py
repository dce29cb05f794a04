"""How parameters are written in example code for each language."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class ParameterSyntax:
    """Builds the token that marks a parameter inside example code.

    A parameter counts as used in an example when ``marker + name`` appears
    as a whole token followed by ``terminator``. The token must not be glued
    to a preceding word character or hyphen, so ``-Path`` does not match
    inside ``-LiteralPath``.
    """

    marker: str
    terminator: str
    ignore_case: bool = False

    def pattern(self, name: str) -> re.Pattern[str]:
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(
            rf"(?<![\w-]){re.escape(self.marker)}{re.escape(name)}{self.terminator}",
            flags,
        )

    def call_pattern(self, function_name: str) -> re.Pattern[str]:
        """Matches a call of the function; Class.method matches method(."""
        short_name = function_name.rsplit(".", 1)[-1]
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(rf"(?<![\w-]){re.escape(short_name)}\s*\(", flags)

    def key(self, name: str) -> str:
        """Identity of a parameter name; equal keys name the same parameter."""
        return name.casefold() if self.ignore_case else name

    def used_in(self, name: str, examples: list[str]) -> bool:
        """True if any example passes the parameter by name."""
        pattern = self.pattern(name)
        return any(pattern.search(example) for example in examples)


POWERSHELL = ParameterSyntax(marker="-", terminator=r"\s", ignore_case=True)
PYTHON = ParameterSyntax(marker="", terminator=r"\s*=(?!=)")
SQL = ParameterSyntax(marker="", terminator=r"\s*(?:=>|:=)")

SYNTAXES: dict[str, ParameterSyntax] = {
    "powershell": POWERSHELL,
    "python": PYTHON,
    "sql": SQL,
}


def syntax_for(language: str) -> ParameterSyntax:
    """Look up the parameter syntax for a language name."""
    try:
        return SYNTAXES[language]
    except KeyError:
        raise ValueError(
            f"Unknown language {language!r}; expected one of {sorted(SYNTAXES)}"
        ) from None
