"""Accumulated parameter descriptions across checked modules."""

from __future__ import annotations

import logging
from collections.abc import Mapping

log = logging.getLogger(__name__)

# parameter name -> normalized description -> function names
ParameterTexts = dict[str, dict[str, list[str]]]


class ParameterTextStore:
    """Parameter descriptions grouped per module.

    Each module check merges its grouped descriptions here so that a later
    check in the same session can compare against modules already seen.
    Merging is last-write-wins per (module, parameter).
    """

    def __init__(self) -> None:
        self._modules: dict[str, ParameterTexts] = {}

    def merge(self, module_name: str, grouped: Mapping[str, Mapping[str, list[str]]]):
        """Merge grouped descriptions for a module, replacing per parameter."""
        entry = self._modules.setdefault(module_name, {})
        for parameter, texts in grouped.items():
            entry[parameter] = {text: list(funcs) for text, funcs in texts.items()}

    def get(self, module_name: str) -> ParameterTexts:
        return self._modules.get(module_name, {})

    def modules(self) -> list[str]:
        return sorted(self._modules)

    def as_dict(self) -> dict[str, ParameterTexts]:
        return {
            module: {
                param: {text: list(funcs) for text, funcs in texts.items()}
                for param, texts in params.items()
            }
            for module, params in self._modules.items()
        }

    def __contains__(self, module_name: object) -> bool:
        return module_name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    @classmethod
    def coerce(cls, obj: object) -> ParameterTextStore:
        """Return obj as a store, discarding anything of the wrong shape.

        Accepts an existing store (returned as is) or a mapping of
        module -> parameter -> text -> function names. Anything else yields
        a fresh empty store.
        """
        if isinstance(obj, cls):
            return obj
        store = cls()
        if obj is None:
            return store
        if not _is_parameter_texts_by_module(obj):
            log.warning(
                "Discarding parameter text store of unexpected shape: %s",
                type(obj).__name__,
            )
            return store
        for module_name, grouped in obj.items():
            store.merge(module_name, grouped)
        return store


def _is_parameter_texts_by_module(obj: object) -> bool:
    if not isinstance(obj, Mapping):
        return False
    for module_name, params in obj.items():
        if not isinstance(module_name, str) or not isinstance(params, Mapping):
            return False
        for param, texts in params.items():
            if not isinstance(param, str) or not isinstance(texts, Mapping):
                return False
            for text, funcs in texts.items():
                if not isinstance(text, str) or not isinstance(funcs, (list, tuple)):
                    return False
    return True
