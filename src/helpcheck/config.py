"""Settings for description rewrite rules and consistency exclusions."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .models import RewriteRule

log = logging.getLogger(__name__)

SETTINGS_FILENAME = "helpcheck.json"


class RewriteRuleSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    search: str = Field(alias="Search")
    replace: str = Field(default="", alias="Replace")

    @field_validator("search")
    @classmethod
    def search_must_compile(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex {value!r}: {e}") from e
        return value


class Settings(BaseModel):
    """Per-module checker settings.

    Keys keep the PascalCase names used by existing settings files; the
    snake_case field names are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rewrite_rules: dict[str, list[RewriteRuleSettings]] = Field(
        default_factory=dict, alias="ParameterDescriptionRewriteRules"
    )
    # parameter name -> functions whose description is left out of the check
    consistency_exclusions: dict[str, list[str]] = Field(
        default_factory=dict, alias="ExcludeParameterDescriptionConsistencyCheck"
    )

    def rules_for(self, parameter: str) -> list[RewriteRule]:
        return [
            RewriteRule(search=r.search, replace=r.replace)
            for r in self.rewrite_rules.get(parameter, [])
        ]

    def rules_by_parameter(self) -> dict[str, list[RewriteRule]]:
        return {name: self.rules_for(name) for name in self.rewrite_rules}

    def excluded_pairs(self) -> set[tuple[str, str]]:
        """(function, parameter) pairs skipped by the consistency check."""
        return {
            (function, parameter)
            for parameter, functions in self.consistency_exclusions.items()
            for function in functions
        }


def load_settings(path: Path | None) -> Settings:
    """Load settings from a JSON file.

    A missing file is not an error: the checker runs with no rewrite rules
    and no exclusions.

    Raises:
        ConfigError: If the file exists but is not valid settings JSON.
    """
    if path is None or not path.exists():
        log.debug("No settings file at %s, using defaults", path)
        return Settings()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e}", path) from e

    try:
        settings = Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}", path) from e

    log.debug(
        "Loaded %d rewrite rule set(s) and %d exclusion set(s) from %s",
        len(settings.rewrite_rules),
        len(settings.consistency_exclusions),
        path,
    )
    return settings


def find_settings(target: Path) -> Path | None:
    """Locate the settings file that belongs to a checked module.

    For a directory (SQL functions) the file lives inside it; for a file
    (Python module or help export) it sits beside it.
    """
    directory = target if target.is_dir() else target.parent
    candidate = directory / SETTINGS_FILENAME
    return candidate if candidate.exists() else None
