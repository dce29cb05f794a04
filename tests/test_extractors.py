"""Tests for docstring parser and Python module extraction."""

import pytest

from helpcheck import (
    COMMON_PARAMETER_POSITION,
    CheckKind,
    ExtractionError,
    ParameterTextStore,
    check_python_module,
    extract_python_module,
)
from helpcheck.extractors import _parse_docstring

_PACKAGE_SOURCE = '''
"""A package."""


def fetch(url: str, timeout: float = 5.0):
    """Fetch a URL.

    Args:
        url: The URL to fetch.
        timeout: Seconds to wait.
    """
'''

_POSITIONAL_SOURCE = '''
def scale(value: float, /, factor: float = 2.0):
    """Scale a value.

    Multiplies the value by the factor.

    Args:
        value: The value to scale.
        factor: The multiplier.

    Example:
        scale(3.0, factor=4.0)
    """
    return value * factor
'''


def test_brief():
    doc = """Short description."""
    result = _parse_docstring(doc)
    assert result.brief == "Short description."
    assert result.description is None


def test_multiline_brief():
    doc = """
    First line of description
    continues here.

    Args:
        x: A parameter
    """
    result = _parse_docstring(doc)
    assert result.brief == "First line of description continues here."
    assert result.description is None


def test_description_paragraphs():
    doc = """Short summary.

    First paragraph of the
    description.

    Second paragraph.

    Args:
        x: A parameter
    """
    result = _parse_docstring(doc)
    assert result.brief == "Short summary."
    assert result.description == (
        "First paragraph of the description.\n\nSecond paragraph."
    )


def test_params():
    doc = """
    Do something.

    Args:
        name: The name
        value (int): The value to set
        **options: Extra options
    """
    result = _parse_docstring(doc)
    assert result.params == {
        "name": "The name",
        "value": "The value to set",
        "options": "Extra options",
    }


def test_param_continuation_lines_keep_breaks():
    doc = """
    Do something.

    Args:
        name: The name of the
            thing to do.
        value: The value
    """
    result = _parse_docstring(doc)
    assert result.params["name"] == "The name of the\nthing to do."
    assert result.params["value"] == "The value"


def test_returns_multiline():
    doc = """
    Get statistics.

    Returns:
        Dictionary with:
        - count: Number of items
        - total: Total value

    Example:
        stats = get_stats()
    """
    result = _parse_docstring(doc)
    assert "Dictionary with:" in result.returns
    assert "- count: Number of items" in result.returns
    assert result.examples == ["stats = get_stats()"]


def test_example_multiline_code():
    doc = """
    Grant permission.

    Example:
        authz.grant("admin", resource=("repo", "api"),
                   subject=("team", "eng"))
    """
    result = _parse_docstring(doc)
    assert len(result.examples) == 1
    assert 'authz.grant("admin"' in result.examples[0]
    assert 'subject=("team", "eng"))' in result.examples[0]


def test_examples_split_on_blank_lines():
    doc = """
    Grant permission.

    Examples:
        grant("read")

        grant("write", expires=60)
    """
    result = _parse_docstring(doc)
    assert result.examples == ['grant("read")', 'grant("write", expires=60)']


def test_empty_docstring():
    result = _parse_docstring(None)
    assert result.brief == ""
    assert result.description is None
    assert result.params == {}
    assert result.returns is None
    assert result.examples == []

    result = _parse_docstring("")
    assert result.brief == ""


class TestExtractPythonModule:
    """extract_python_module behavior."""

    def test_public_functions_and_methods(self, sample_module):
        """Public functions and public methods of public classes are exported."""
        result = extract_python_module(sample_module)
        assert result.module == "sample_api"
        assert result.language == "python"
        assert result.source == sample_module
        assert [f.name for f in result.functions] == ["Client.ping", "grant", "revoke"]

    def test_parameters(self, sample_module):
        result = extract_python_module(sample_module)
        grant = next(f for f in result.functions if f.name == "grant")
        by_name = {p.name: p for p in grant.parameters}

        assert by_name["permission"].required
        assert by_name["permission"].position == 0
        assert not by_name["expires"].required
        assert by_name["expires"].default_value == "None"

    def test_self_and_var_args_are_common(self, sample_module):
        result = extract_python_module(sample_module)
        funcs = {f.name: f for f in result.functions}

        ping = {p.name: p for p in funcs["Client.ping"].parameters}
        assert ping["self"].position == COMMON_PARAMETER_POSITION
        assert [p.name for p in funcs["Client.ping"].checked_parameters()] == ["timeout"]

        revoke = funcs["revoke"].checked_parameters()
        assert [p.name for p in revoke] == ["permission", "resource"]

    def test_help_document(self, sample_module):
        result = extract_python_module(sample_module)
        doc = result.help_documents["grant"]

        assert doc.synopsis == "Grant a permission on a resource."
        assert doc.description == (
            "The grant is recorded immediately and is visible to later checks."
        )
        assert doc.input_types[:2] == ["str", "tuple"]
        assert len(doc.examples) == 2
        assert doc.parameters["expires"].description == "Seconds until the grant\nexpires."
        assert doc.parameters["expires"].default_value == "None"

    def test_unannotated_function_has_no_input_types(self, sample_module):
        result = extract_python_module(sample_module)
        assert result.help_documents["revoke"].input_types == []

    def test_all_limits_exports(self, tmp_path):
        path = tmp_path / "limited.py"
        path.write_text(
            "__all__ = ['shown']\n\n"
            "def shown():\n    '''Shown.'''\n\n"
            "def hidden():\n    '''Hidden.'''\n"
        )
        result = extract_python_module(path)
        assert [f.name for f in result.functions] == ["shown"]
        # No parameters to take input from
        assert result.help_documents["shown"].input_types == ["None"]

    def test_import_by_name(self):
        result = extract_python_module("helpcheck.syntax")
        assert "syntax_for" in [f.name for f in result.functions]

    def test_package_directory_uses_package_name(self, tmp_path):
        """A package is reported under its directory name, not __init__."""
        package = tmp_path / "helpcheck_pkg_dir"
        package.mkdir()
        (package / "__init__.py").write_text(_PACKAGE_SOURCE)

        result = extract_python_module(package)

        assert result.module == "helpcheck_pkg_dir"
        assert result.source == package / "__init__.py"
        assert [f.name for f in result.functions] == ["fetch"]
        assert extract_python_module(package / "__init__.py").module == (
            "helpcheck_pkg_dir"
        )

    def test_package_name_in_working_directory(self, tmp_path, monkeypatch):
        """A package folder named on the command line loads by its name."""
        package = tmp_path / "helpcheck_pkg_cwd"
        package.mkdir()
        (package / "__init__.py").write_text(_PACKAGE_SOURCE)
        monkeypatch.chdir(tmp_path)

        result = extract_python_module("helpcheck_pkg_cwd")

        assert result.module == "helpcheck_pkg_cwd"
        assert [f.name for f in result.functions] == ["fetch"]

    def test_packages_accumulate_under_distinct_names(self, tmp_path):
        """Two packages do not overwrite each other in a shared store."""
        store = ParameterTextStore()
        for name in ("helpcheck_pkg_one", "helpcheck_pkg_two"):
            package = tmp_path / name
            package.mkdir()
            (package / "__init__.py").write_text(_PACKAGE_SOURCE)
            check_python_module(package, store=store)

        assert sorted(store.modules()) == ["helpcheck_pkg_one", "helpcheck_pkg_two"]

    def test_positional_only_parameter(self, tmp_path):
        """Positional-only parameters are flagged and shown by any call."""
        path = tmp_path / "scaling.py"
        path.write_text(_POSITIONAL_SOURCE)

        result = extract_python_module(path)
        [scale] = result.functions
        by_name = {p.name: p for p in scale.parameters}
        assert by_name["value"].positional_only
        assert not by_name["factor"].positional_only

        report = check_python_module(path)
        assert report.passed, [r.describe() for r in report.failures]

    def test_missing_module_raises(self):
        with pytest.raises(ExtractionError, match="cannot import"):
            extract_python_module("helpcheck_no_such_module")

    def test_module_that_fails_to_load_raises(self, tmp_path):
        path = tmp_path / "broken.py"
        path.write_text("raise RuntimeError('boom')\n")
        with pytest.raises(ExtractionError, match="RuntimeError: boom"):
            extract_python_module(path)


class TestCheckPythonModule:
    """End-to-end checks over a Python module."""

    def test_failures(self, sample_module):
        report = check_python_module(sample_module)
        failed = {(r.function_name, r.parameter_name, r.kind) for r in report.failures}

        assert failed == {
            ("revoke", None, CheckKind.DESCRIPTION),
            ("revoke", None, CheckKind.INPUT_TYPES),
            ("revoke", None, CheckKind.EXAMPLES),
            ("revoke", "permission", CheckKind.PARAMETER_IN_EXAMPLE),
            ("revoke", "resource", CheckKind.PARAMETER_DOCUMENTED),
            ("revoke", "resource", CheckKind.PARAMETER_IN_EXAMPLE),
            (None, "permission", CheckKind.PARAMETER_CONSISTENT),
            (None, "resource", CheckKind.PARAMETER_CONSISTENT),
        }

    def test_settings_beside_module_are_used(self, sample_module, write_settings):
        write_settings(
            {
                "ExcludeParameterDescriptionConsistencyCheck": {
                    "permission": ["revoke"],
                    "resource": ["revoke"],
                }
            }
        )
        report = check_python_module(sample_module)
        assert CheckKind.PARAMETER_CONSISTENT not in {r.kind for r in report.failures}
