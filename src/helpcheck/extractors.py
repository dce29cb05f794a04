"""Help extractors for Python modules, SQL functions and help exports.

These are the only places that deal with loosely-typed source data. Each
extractor turns its input into FunctionDescriptors and HelpDocuments that
the checks consume.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import json
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType

import pglast
from pglast.enums import FunctionParameterMode
from pglast.stream import RawStream
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ExtractionError
from .models import (
    COMMON_PARAMETER_POSITION,
    ExtractionResult,
    FunctionDescriptor,
    HelpDocument,
    ParameterDescriptor,
    ParameterHelp,
)

log = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^\s*(Args|Arguments|Returns|Yields|Raises|Examples?):\s*$")


@dataclass
class ParsedDocstring:
    """Simple parsed docstring."""

    brief: str = ""
    description: str | None = None
    params: dict[str, str] = field(default_factory=dict)
    returns: str | None = None
    examples: list[str] = field(default_factory=list)


def _dedent_block(text: str) -> str:
    """Dedent a block of text, preserving relative indentation."""
    lines = text.split("\n")
    # Find minimum indentation of non-empty lines
    min_indent = float("inf")
    for line in lines:
        if line.strip():
            indent = len(line) - len(line.lstrip())
            min_indent = min(min_indent, indent)
    if min_indent == float("inf"):
        min_indent = 0
    dedented = "\n".join(
        line[int(min_indent) :] if len(line) >= min_indent else line for line in lines
    )
    return dedented.strip()


def _split_sections(lines: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    """Split docstring lines into the leading text and named sections."""
    leading: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] = leading
    for line in lines:
        match = _SECTION_RE.match(line)
        if match:
            name = match.group(1)
            if name == "Arguments":
                name = "Args"
            elif name == "Examples":
                name = "Example"
            current = sections.setdefault(name, [])
            continue
        current.append(line)
    return leading, sections


def _parse_docstring(docstring: str | None) -> ParsedDocstring:
    """Parse a Google-style docstring.

    The first paragraph is the brief; any further paragraphs before the
    first section header form the description.
    """
    if not docstring:
        return ParsedDocstring()

    result = ParsedDocstring()
    leading, sections = _split_sections(inspect.cleandoc(docstring).split("\n"))

    paragraphs: list[list[str]] = [[]]
    for line in leading:
        if line.strip():
            paragraphs[-1].append(line.strip())
        elif paragraphs[-1]:
            paragraphs.append([])
    paragraphs = [p for p in paragraphs if p]

    if paragraphs:
        result.brief = " ".join(paragraphs[0])
    if len(paragraphs) > 1:
        result.description = "\n\n".join(" ".join(p) for p in paragraphs[1:])

    args_text = "\n".join(sections.get("Args", []))
    for param_match in re.finditer(
        r"^\s+\*{0,2}(\w+)(?:\s*\([^)]*\))?:\s*(.*?)(?=\n\s+\*{0,2}\w+(?:\s*\([^)]*\))?:|\Z)",
        args_text,
        re.MULTILINE | re.DOTALL,
    ):
        # Continuation lines keep their line breaks; normalization joins them
        desc = "\n".join(
            line.strip() for line in param_match.group(2).strip().split("\n")
        )
        result.params[param_match.group(1)] = desc

    if "Returns" in sections:
        result.returns = _dedent_block("\n".join(sections["Returns"])) or None

    if "Example" in sections:
        dedented = _dedent_block("\n".join(sections["Example"]))
        # Blank lines separate independent examples
        for example in re.split(r"\n\s*\n", dedented):
            if example.strip():
                result.examples.append(example.strip())

    return result


def _load_module(path: Path) -> ModuleType:
    """Dynamically load a Python module or package from path.

    A package directory loads from its __init__.py under the directory name.
    """
    if path.name == "__init__.py":
        path = path.parent
    name = path.stem
    search_locations = None
    if path.is_dir():
        name = path.name
        search_locations = [str(path)]
        path = path / "__init__.py"
    module_name = f"_helpcheck_{name}"
    spec = importlib.util.spec_from_file_location(
        module_name, path, submodule_search_locations=search_locations
    )
    if spec is None or spec.loader is None:
        raise ExtractionError("cannot load module", path)
    module = importlib.util.module_from_spec(spec)

    old_module = sys.modules.get(module_name)
    try:
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        return module
    except Exception as e:
        raise ExtractionError(
            f"failed to load: {e.__class__.__name__}: {e}", path
        ) from e
    finally:
        if old_module is None:
            sys.modules.pop(module_name, None)
        else:
            sys.modules[module_name] = old_module


def _resolve_module(target: ModuleType | Path | str) -> ModuleType:
    """Module object, .py file, package directory or import name."""
    if isinstance(target, ModuleType):
        return target
    path = Path(target)
    if path.suffix == ".py":
        return _load_module(path)
    if isinstance(target, Path) and path.is_dir():
        return _load_module(path)
    try:
        return importlib.import_module(str(target))
    except ImportError as e:
        # A package folder in the working directory need not be on sys.path
        if (path / "__init__.py").exists():
            return _load_module(path)
        raise ExtractionError(f"cannot import: {e}", str(target)) from e


def _format_annotation(ann) -> str:
    """Format an annotation, stripping quotes from string annotations."""
    if ann is inspect.Parameter.empty or ann is inspect.Signature.empty:
        return ""
    if isinstance(ann, str):
        return ann
    if hasattr(ann, "__name__"):
        return ann.__name__
    return str(ann).replace("typing.", "")


def _python_parameters(
    sig: inspect.Signature, is_method: bool
) -> list[ParameterDescriptor]:
    params = []
    for index, p in enumerate(sig.parameters.values()):
        common = p.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ) or (is_method and index == 0 and p.name in ("self", "cls"))
        has_default = p.default is not inspect.Parameter.empty
        params.append(
            ParameterDescriptor(
                name=p.name,
                position=COMMON_PARAMETER_POSITION if common else index,
                required=not has_default and not common,
                default_value=repr(p.default) if has_default else "",
                positional_only=p.kind == inspect.Parameter.POSITIONAL_ONLY,
            )
        )
    return params


def _python_function(
    name: str, func, is_method: bool = False
) -> tuple[FunctionDescriptor, HelpDocument]:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        sig = inspect.Signature()

    descriptor = FunctionDescriptor(
        name=name, parameters=tuple(_python_parameters(sig, is_method))
    )
    parsed = _parse_docstring(inspect.getdoc(func))

    checked = descriptor.checked_parameters()
    if checked:
        input_types = [
            _format_annotation(sig.parameters[p.name].annotation)
            for p in checked
            if sig.parameters[p.name].annotation is not inspect.Parameter.empty
        ]
    else:
        input_types = ["None"]

    doc = HelpDocument(
        synopsis=parsed.brief,
        description=parsed.description,
        input_types=input_types,
        examples=parsed.examples,
        parameters={
            p.name: ParameterHelp(
                description=parsed.params.get(p.name, ""),
                required=p.required,
                default_value=p.default_value,
            )
            for p in descriptor.parameters
            if p.name in parsed.params or not p.is_common
        },
    )
    return descriptor, doc


def _public_names(module: ModuleType) -> list[str]:
    exported = getattr(module, "__all__", None)
    if exported is not None:
        return list(exported)
    return [
        name
        for name, obj in vars(module).items()
        if not name.startswith("_")
        and (inspect.isfunction(obj) or inspect.isclass(obj))
        and getattr(obj, "__module__", None) == module.__name__
    ]


def extract_python_module(target: ModuleType | Path | str) -> ExtractionResult:
    """Extract help for a Python module's exported functions.

    The target may be a module object, a path to a .py file, a package
    directory or an importable module name. Packages are reported under the
    package name. Exported names come from __all__ when the module defines
    it; otherwise every public function and class defined in the module is
    used. Public methods of exported classes are reported as Class.method.

    Raises:
        ExtractionError: If the module cannot be loaded.
    """
    module = _resolve_module(target)
    functions: list[FunctionDescriptor] = []
    docs: dict[str, HelpDocument] = {}

    for name in _public_names(module):
        obj = getattr(module, name, None)
        if inspect.isfunction(obj):
            descriptor, doc = _python_function(name, obj)
            functions.append(descriptor)
            docs[name] = doc
        elif inspect.isclass(obj):
            for method_name, method in inspect.getmembers(obj, inspect.isfunction):
                if method_name.startswith("_"):
                    continue
                qualified = f"{name}.{method_name}"
                is_static = isinstance(
                    inspect.getattr_static(obj, method_name), staticmethod
                )
                descriptor, doc = _python_function(
                    qualified, method, is_method=not is_static
                )
                functions.append(descriptor)
                docs[qualified] = doc
        else:
            log.debug("Skipping non-function export %s", name)

    functions.sort(key=lambda f: f.name)
    for function in functions:
        log.debug("Extracted %s(%d parameters)", function.name, len(function.parameters))

    module_name = module.__name__.removeprefix("_helpcheck_")
    return ExtractionResult(
        module=module_name,
        language="python",
        functions=functions,
        help_documents=docs,
        source=Path(module.__file__) if getattr(module, "__file__", None) else None,
    )


def _type_name_to_str(tn) -> str:
    """Convert pglast TypeName to string."""
    if tn is None:
        return "void"
    names = [n.sval for n in tn.names]
    # Skip common schema prefixes for cleaner output
    if names and names[0] in ("pg_catalog", "public"):
        names = names[1:]
    base = ".".join(names)
    if tn.arrayBounds:
        base += "[]"
    if tn.setof:
        return f"setof {base}"
    return base


_OUTPUT_MODES = (
    FunctionParameterMode.FUNC_PARAM_OUT,
    FunctionParameterMode.FUNC_PARAM_TABLE,
)


def extract_sql_functions(sql_dir: Path) -> ExtractionResult:
    """Extract help from @function doc blocks in a directory of SQL files.

    Recognized tags are @brief, @description, @param and @example. Functions
    whose name part starts with an underscore are internal and skipped.
    Files that fail to parse are logged and skipped.
    """
    functions: list[FunctionDescriptor] = []
    docs: dict[str, HelpDocument] = {}

    for sql_file in sorted(sql_dir.glob("*.sql")):
        content = sql_file.read_text()
        doc_blocks = _extract_doc_blocks(content)
        used_doc_blocks: set[str] = set()

        try:
            stmts = pglast.parse_sql(content)
        except pglast.Error as e:
            log.warning("Failed to parse %s: %s", sql_file.name, e)
            continue

        for stmt in stmts:
            if not isinstance(stmt.stmt, pglast.ast.CreateFunctionStmt):
                continue

            func = stmt.stmt
            func_name = ".".join(n.sval for n in func.funcname)
            if "._" in func_name or func_name.startswith("_"):
                continue

            params = []
            input_types = []
            for p in func.parameters or []:
                if p.mode in _OUTPUT_MODES:
                    continue
                name = p.name or f"${len(params) + 1}"
                default_value = RawStream()(p.defexpr) if p.defexpr else ""
                params.append(
                    ParameterDescriptor(
                        name=name,
                        position=len(params),
                        required=not default_value,
                        default_value=default_value,
                    )
                )
                input_types.append(_type_name_to_str(p.argType))

            doc_block = doc_blocks.get(func_name)
            if doc_block is not None:
                used_doc_blocks.add(func_name)
            block = doc_block or ""
            param_docs = _extract_params(block)
            description = _extract_tag(block, "description")

            functions.append(FunctionDescriptor(name=func_name, parameters=tuple(params)))
            docs[func_name] = HelpDocument(
                synopsis=_extract_tag(block, "brief"),
                description=description or None,
                input_types=input_types or ["void"],
                examples=_extract_examples(block),
                parameters={
                    p.name: ParameterHelp(
                        description=param_docs.get(p.name, ""),
                        required=p.required,
                        default_value=p.default_value,
                    )
                    for p in params
                },
            )
            log.debug("Extracted %s from %s", func_name, sql_file.name)

        for name in set(doc_blocks) - used_doc_blocks:
            if "._" not in name:
                log.warning(
                    "@function %s has no matching CREATE FUNCTION in %s",
                    name,
                    sql_file.name,
                )

    functions.sort(key=lambda f: f.name)
    return ExtractionResult(
        module=sql_dir.name,
        language="sql",
        functions=functions,
        help_documents=docs,
        source=sql_dir,
    )


def _extract_doc_blocks(content: str) -> dict[str, str]:
    """Extract @function doc blocks from SQL content."""
    pattern = re.compile(r"--\s*@function\s+(\S+)\s*\n((?:--[^\n]*\n)*)", re.MULTILINE)
    return {m.group(1).strip(): m.group(2) for m in pattern.finditer(content)}


def _extract_tag(block: str, tag: str) -> str:
    """Extract content of an @-tag from a doc block."""
    pattern = rf"--\s*@{re.escape(tag)}\s+(.+?)(?=--\s*@|\Z)"
    match = re.search(pattern, block, re.DOTALL)
    if not match:
        return ""

    lines = match.group(1).strip().split("\n")
    cleaned = [lines[0].strip()]
    for line in lines[1:]:
        line = re.sub(r"^--\s*", "", line)
        if line.strip():
            cleaned.append(line.strip())

    return " ".join(cleaned)


def _extract_params(block: str) -> dict[str, str]:
    """Extract @param tags from a doc block."""
    params: dict[str, str] = {}
    for match in re.finditer(
        r"--\s*@param\s+(\w+)\s+(.+?)(?=--\s*@|\Z)", block, re.DOTALL
    ):
        desc = re.sub(r"\n--\s*", "\n", match.group(2).strip())
        params[match.group(1)] = desc.strip()
    return params


def _extract_examples(block: str) -> list[str]:
    """Extract @example tags from a doc block."""
    examples = []
    for match in re.finditer(r"--\s*@example\s+(.+?)(?=--\s*@|\Z)", block, re.DOTALL):
        example = re.sub(r"\n--\s*", "\n", match.group(1).strip())
        examples.append(example.strip())
    return examples


def _flatten_text(value):
    # Help exports wrap text as [{"Text": ...}, ...] paragraphs
    if isinstance(value, list):
        return "\n".join(
            item.get("Text", "") if isinstance(item, dict) else str(item)
            for item in value
        )
    if isinstance(value, dict):
        return value.get("Text", "")
    return value


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExportedParameter(_ExportModel):
    name: str = Field(alias="Name")
    position: int = Field(default=0, alias="Position")
    required: bool = Field(default=False, alias="Required")
    default_value: str | None = Field(default="", alias="DefaultValue")
    description: str | None = Field(default="", alias="Description")

    @field_validator("description", mode="before")
    @classmethod
    def flatten_description(cls, value):
        return _flatten_text(value)

    @field_validator("default_value", mode="before")
    @classmethod
    def stringify_default(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class ExportedExample(_ExportModel):
    code: str = Field(alias="Code")
    remarks: str | None = Field(default=None, alias="Remarks")

    @field_validator("remarks", mode="before")
    @classmethod
    def flatten_remarks(cls, value):
        return _flatten_text(value)


class ExportedCommand(_ExportModel):
    name: str = Field(alias="Name")
    synopsis: str | None = Field(default="", alias="Synopsis")
    description: str | None = Field(default=None, alias="Description")
    input_types: list[str] = Field(default_factory=list, alias="InputTypes")
    examples: list[ExportedExample] = Field(default_factory=list, alias="Examples")
    parameters: list[ExportedParameter] = Field(
        default_factory=list, alias="Parameters"
    )

    @field_validator("description", mode="before")
    @classmethod
    def flatten_description(cls, value):
        return _flatten_text(value)

    @field_validator("examples", mode="before")
    @classmethod
    def wrap_plain_examples(cls, value):
        if isinstance(value, list):
            return [{"Code": v} if isinstance(v, str) else v for v in value]
        return value


class ExportedModule(_ExportModel):
    name: str = Field(alias="Name")
    commands: list[ExportedCommand] = Field(default_factory=list, alias="Commands")


def extract_help_export(path: Path) -> ExtractionResult:
    """Extract help from a JSON export of PowerShell comment-based help.

    The file holds {"Name": module, "Commands": [...]} where each command
    carries Name, Synopsis, Description, InputTypes, Examples and
    Parameters. Parameters with Position -2147483648 are common parameters.

    Raises:
        ExtractionError: If the file is missing, not JSON or the wrong shape.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except OSError as e:
        raise ExtractionError(f"cannot read help export: {e}", path) from e
    except json.JSONDecodeError as e:
        raise ExtractionError(f"invalid JSON: {e}", path) from e

    try:
        exported = ExportedModule.model_validate(raw)
    except ValidationError as e:
        raise ExtractionError(f"invalid help export: {e}", path) from e

    functions: list[FunctionDescriptor] = []
    docs: dict[str, HelpDocument] = {}
    for command in exported.commands:
        functions.append(
            FunctionDescriptor(
                name=command.name,
                parameters=tuple(
                    ParameterDescriptor(
                        name=p.name,
                        position=p.position,
                        required=p.required,
                        default_value=p.default_value or "",
                    )
                    for p in command.parameters
                ),
            )
        )
        docs[command.name] = HelpDocument(
            synopsis=command.synopsis or "",
            description=command.description,
            input_types=list(command.input_types),
            examples=[e.code for e in command.examples],
            parameters={
                p.name: ParameterHelp(
                    description=p.description or "",
                    required=p.required,
                    default_value=p.default_value or "",
                )
                for p in command.parameters
            },
        )
        log.debug("Extracted %s from %s", command.name, path.name)

    functions.sort(key=lambda f: f.name)
    return ExtractionResult(
        module=exported.name,
        language="powershell",
        functions=functions,
        help_documents=docs,
        source=path,
    )
