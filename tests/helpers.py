"""Builders for help data used across the tests."""

from helpcheck import (
    COMMON_PARAMETER_POSITION,
    FunctionDescriptor,
    HelpDocument,
    ParameterDescriptor,
    ParameterHelp,
)


def param(name, position=0, required=True, default="", positional_only=False):
    return ParameterDescriptor(
        name=name,
        position=position,
        required=required,
        default_value=default,
        positional_only=positional_only,
    )


def common(name):
    return ParameterDescriptor(name=name, position=COMMON_PARAMETER_POSITION)


def function(name, *params):
    return FunctionDescriptor(name=name, parameters=tuple(params))


def complete_doc(function_name, params=(), examples=None, descriptions=None):
    """A help document that passes every check for the given parameters."""
    descriptions = descriptions or {}
    if examples is None:
        args = " ".join(f"-{p.name} value" for p in params)
        examples = [f"{function_name} {args}".strip()]
    return HelpDocument(
        synopsis=f"Does the {function_name} thing.",
        description="Longer description.",
        input_types=["System.String"],
        examples=examples,
        parameters={
            p.name: ParameterHelp(
                description=descriptions.get(p.name, f"The {p.name.lower()}."),
                required=p.required,
                default_value=p.default_value,
            )
            for p in params
        },
    )
