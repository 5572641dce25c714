"""
C# code generator.

Emits one public class per message inside a namespace named after the
package. Generated units are compiled into an assembly by ``rosmsgc.build``.

Array mapping:
    T[N]    -> T[] allocated with N elements
    T[<=N]  -> List<T>, the bound is documented but not enforced
    T[]     -> List<T>

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import math
from typing import Any, Dict, List

from .base import MessageGenerator
from .model import ArityKind, Field, MessageModel, TypeRef
from .types import PrimitiveType, csharp_type

CSHARP_KEYWORDS = frozenset("""
abstract as base bool break byte case catch char checked class const continue
decimal default delegate do double else enum event explicit extern false
finally fixed float for foreach goto if implicit in int interface internal is
lock long namespace new null object operator out override params private
protected public readonly ref return sbyte sealed short sizeof stackalloc
static string struct switch this throw true try typeof uint ulong unchecked
unsafe ushort using virtual void volatile while
""".split())

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\0": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def cs_identifier(name: str) -> str:
    """Escape names that collide with C# keywords."""
    return f"@{name}" if name in CSHARP_KEYWORDS else name


def cs_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def cs_literal(value: Any, ptype: PrimitiveType) -> str:
    """Render a parsed literal value as a C# expression of the mapped type."""
    if ptype is PrimitiveType.BOOL:
        return "true" if value else "false"
    if ptype is PrimitiveType.STRING:
        return cs_string(value)
    if ptype in (PrimitiveType.FLOAT32, PrimitiveType.FLOAT64):
        cs_type = csharp_type(ptype)
        if math.isnan(value):
            return f"{cs_type}.NaN"
        if math.isinf(value):
            return f"{cs_type}.{'PositiveInfinity' if value > 0 else 'NegativeInfinity'}"
        text = repr(float(value))
        return f"{text}f" if ptype is PrimitiveType.FLOAT32 else text
    return str(value)


class CSharpGenerator(MessageGenerator):
    """Generates C# classes from message models."""

    target = "csharp"
    extension = ".cs"

    def _element_type(self, model: MessageModel, ref: TypeRef) -> str:
        if ref.is_primitive:
            return csharp_type(ref.primitive)
        if ref.package == model.package:
            return ref.name
        return f"global::{ref.package}.{ref.name}"

    def _declaration(self, model: MessageModel, f: Field) -> str:
        element = self._element_type(model, f.type)
        name = cs_identifier(f.name)
        kind = f.arity.kind
        ptype = f.type.primitive

        if kind is ArityKind.SCALAR:
            if ptype is None:
                return f"public {element} {name} = new {element}();"
            if f.has_default:
                return f"public {element} {name} = {cs_literal(f.default, ptype)};"
            if ptype is PrimitiveType.STRING:
                return f'public {element} {name} = "";'
            return f"public {element} {name};"

        values = None
        if f.has_default:
            values = ", ".join(cs_literal(v, ptype) for v in f.default)

        if kind is ArityKind.FIXED:
            size = f.arity.bound
            if values is not None:
                return f"public {element}[] {name} = new {element}[] {{ {values} }};"
            # reference-type elements start filled, like scalar fields
            if ptype is None:
                return (
                    f"public {element}[] {name} = "
                    f"Enumerable.Range(0, {size}).Select(_ => new {element}()).ToArray();"
                )
            if ptype is PrimitiveType.STRING:
                return f'public {element}[] {name} = Enumerable.Repeat("", {size}).ToArray();'
            return f"public {element}[] {name} = new {element}[{size}];"

        if values:
            return f"public List<{element}> {name} = new List<{element}> {{ {values} }};"
        return f"public List<{element}> {name} = new List<{element}>();"

    def emit(self, model: MessageModel, resolved: Dict[TypeRef, MessageModel]) -> List[str]:
        lines = [
            self.header_comment(model, "//"),
            "using System;",
            "using System.Collections.Generic;",
            "using System.Linq;",
            "",
            f"namespace {model.package}",
            "{",
            f"    /// <summary>{model.full_name} ({model.role.value}).</summary>",
            f"    public class {model.name}",
            "    {",
        ]

        for c in model.constants:
            ptype = c.type.primitive
            lines.append(
                f"        public const {csharp_type(ptype)} {cs_identifier(c.name)} = "
                f"{cs_literal(c.value, ptype)};"
            )
        if model.constants and model.fields:
            lines.append("")

        for f in model.fields:
            note = self.bound_note(f)
            if note:
                lines.append(f"        /// <remarks>{note}</remarks>")
            lines.append(f"        {self._declaration(model, f)}")

        lines.extend([
            "    }",
            "}",
        ])
        return lines


__all__ = ["CSharpGenerator", "cs_identifier", "cs_literal"]
