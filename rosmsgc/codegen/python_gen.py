"""
Python code generator.

Emits one ``@dataclass`` per message. Each class also records the IDL type of
every field in ``_field_types`` (including advisory array bounds), in the
style of genpy's ``_slot_types``.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import keyword
import math
from typing import Any, Dict, List

from .base import MessageGenerator, unit_name
from .model import ArityKind, Field, MessageModel, TypeRef
from .types import python_type

ZERO_VALUES = {
    "bool": "False",
    "int": "0",
    "float": "0.0",
    "str": '""',
}


# module names the generated class body refers to
RESERVED_NAMES = frozenset({"dataclasses", "typing"})


def py_identifier(name: str) -> str:
    """Escape names that collide with Python keywords."""
    if keyword.iskeyword(name) or name in RESERVED_NAMES:
        return f"{name}_"
    return name


def py_literal(value: Any) -> str:
    """Render a parsed literal value as Python source."""
    if isinstance(value, float) and not math.isfinite(value):
        return f"float('{value}')"
    if isinstance(value, tuple):
        return "[" + ", ".join(py_literal(v) for v in value) + "]"
    return repr(value)


class PythonGenerator(MessageGenerator):
    """Generates Python dataclasses from message models."""

    target = "python"
    extension = ".py"

    def _alias(self, model: MessageModel, ref: TypeRef) -> str:
        if ref.package == model.package:
            return ref.name
        return f"{ref.package}_{ref.name}"

    def _element_type(self, model: MessageModel, ref: TypeRef) -> str:
        if ref.is_primitive:
            return python_type(ref.primitive)
        return self._alias(model, ref)

    def _annotation(self, model: MessageModel, f: Field) -> str:
        element = self._element_type(model, f.type)
        if f.arity.is_array:
            return f"typing.List[{element}]"
        return element

    def _default(self, model: MessageModel, f: Field) -> str:
        element = self._element_type(model, f.type)
        kind = f.arity.kind

        if kind is ArityKind.SCALAR:
            if not f.type.is_primitive:
                return f"dataclasses.field(default_factory={element})"
            if f.has_default:
                return py_literal(f.default)
            return ZERO_VALUES[element]

        if f.has_default:
            return f"dataclasses.field(default_factory=lambda: {py_literal(f.default)})"
        if kind is ArityKind.FIXED:
            if f.type.is_primitive:
                zero = ZERO_VALUES[element]
                return f"dataclasses.field(default_factory=lambda: [{zero}] * {f.arity.bound})"
            return (
                f"dataclasses.field(default_factory=lambda: "
                f"[{element}() for _ in range({f.arity.bound})])"
            )
        return "dataclasses.field(default_factory=list)"

    def _imports(self, model: MessageModel, resolved: Dict[TypeRef, MessageModel]) -> List[str]:
        lines = []
        for ref, dep in resolved.items():
            module = unit_name(dep)
            if ref.package == model.package:
                lines.append(f"from .{module} import {ref.name}")
            else:
                lines.append(
                    f"from {ref.package}.{module} import {ref.name} as {self._alias(model, ref)}"
                )
        return sorted(lines)

    def emit(self, model: MessageModel, resolved: Dict[TypeRef, MessageModel]) -> List[str]:
        lines = [
            self.header_comment(model, "#"),
            f'"""Message definition {model.full_name}."""',
            "",
            "import dataclasses",
            "import typing",
        ]
        imports = self._imports(model, resolved)
        if imports:
            lines.append("")
            lines.extend(imports)

        lines.extend([
            "",
            "",
            "@dataclasses.dataclass",
            f"class {model.name}:",
            f'    """{model.full_name} ({model.role.value})."""',
            "",
        ])

        for c in model.constants:
            ctype = python_type(c.type.primitive)
            lines.append(f"    {py_identifier(c.name)}: typing.ClassVar[{ctype}] = {py_literal(c.value)}")
        if model.constants:
            lines.append("")

        for f in model.fields:
            note = self.bound_note(f)
            if note:
                lines.append(f"    # {note}")
            lines.append(
                f"    {py_identifier(f.name)}: {self._annotation(model, f)} = {self._default(model, f)}"
            )
        if model.fields:
            lines.append("")

        lines.append(f'    _full_name: typing.ClassVar[str] = "{model.full_name}"')
        lines.append(f'    _role: typing.ClassVar[str] = "{model.role.value}"')
        if model.fields:
            lines.append("    _field_types: typing.ClassVar[typing.Dict[str, str]] = {")
            for f in model.fields:
                lines.append(f'        "{py_identifier(f.name)}": "{f.idl_type}",')
            lines.append("    }")
        else:
            lines.append("    _field_types: typing.ClassVar[typing.Dict[str, str]] = {}")

        return lines


__all__ = ["PythonGenerator", "py_identifier", "py_literal"]
