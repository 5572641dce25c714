"""
Parser for ROS interface definition (.msg) files.

The grammar is line oriented; every non-blank, non-comment line declares
exactly one constant or one field:

    # Comment line
    int32 MAX_SPEED=10          # constant
    string NAME="robot # 1"     # string constants keep everything after '='
    float64 x                   # scalar field
    float64 y 0.5               # scalar field with default
    uint8[3] rgb [1, 2, 3]      # fixed array with default
    int32[<=5] samples          # bounded array (bound is advisory)
    geometry_msgs/Point[] path  # unbounded array of another message
    string<=16 label            # bounded string
    time stamp                  # builtin_interfaces/Time

Parsing is a left fold of ``parse_line`` over the lines of a file. Each
step takes an immutable ParseState and returns a new one, so the grammar
can be exercised one line at a time without any I/O.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import ast
import math
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Tuple, Union

from ..errors import (
    DuplicateField,
    InvalidConstantValue,
    InvalidDefaultValue,
    MalformedDefinition,
)
from .model import Arity, ArityKind, Constant, Field, MessageModel, Role, TypeRef
from .types import (
    FLOAT_TYPES,
    INTEGER_TYPES,
    PrimitiveType,
    lookup,
    split_type_name,
    value_range,
)

MESSAGE_EXTENSION = ".msg"
SERVICE_EXTENSION = ".srv"

# Regex patterns
TYPE_NAME = r"[A-Za-z]\w*(?:/[A-Za-z]\w*){0,2}"
CONSTANT_PATTERN = re.compile(
    rf"^(?P<type>{TYPE_NAME})"
    r"(?:<=(?P<strbound>\d+))?"
    r"(?P<array>\s*\[[^\]]*\])?"
    r"\s+(?P<name>[A-Za-z]\w*)"
    r"\s*=(?P<value>.*)$"
)
FIELD_PATTERN = re.compile(
    rf"^(?P<type>{TYPE_NAME})"
    r"(?:<=(?P<strbound>\d+))?"                          # optional string bound
    r"(?P<array>\s*\[\s*(?P<bounded><=)?\s*(?P<size>\d*)\s*\])?"  # optional [], [N], [<=N]
    r"\s+(?P<name>[A-Za-z]\w*)"                           # field name
    r"(?:\s+(?P<default>.+))?$"                           # optional default
)


@dataclass(frozen=True)
class ParseState:
    """Accumulator threaded through the lines of one definition."""

    package: str
    source: Optional[str] = None
    fields: Tuple[Field, ...] = ()
    constants: Tuple[Constant, ...] = ()
    names: FrozenSet[str] = frozenset()


# =============================================================================
# Literal parsing
# =============================================================================

def strip_comment(text: str) -> str:
    """Remove a trailing ``# comment`` that is not inside a quoted string."""
    quote = None
    escaped = False
    for i, ch in enumerate(text):
        if escaped:
            escaped = False
        elif ch == "\\" and quote:
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "#":
            return text[:i].rstrip()
    return text.rstrip()


def _split_sequence(inner: str) -> List[str]:
    """Split the inside of a sequence literal on commas outside quotes."""
    items = []
    quote = None
    escaped = False
    start = 0
    for i, ch in enumerate(inner):
        if escaped:
            escaped = False
        elif ch == "\\" and quote:
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ",":
            items.append(inner[start:i].strip())
            start = i + 1
    if quote:
        raise ValueError("unterminated string in sequence")
    items.append(inner[start:].strip())
    if items == [""]:
        return []
    if any(item == "" for item in items):
        raise ValueError("empty element in sequence")
    return items


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        value = ast.literal_eval(text)
        if not isinstance(value, str):
            raise ValueError(f"invalid string literal {text}")
        return value
    return text


def parse_literal(text: str, type_ref: TypeRef) -> Any:
    """Parse a scalar literal as a value of a primitive type.

    Raises:
        ValueError: If the text is not a valid value of the type
    """
    ptype = type_ref.primitive
    if ptype is None:
        raise ValueError(f"type '{type_ref}' does not take literal values")
    text = text.strip()

    if ptype is PrimitiveType.STRING:
        try:
            value = _unquote(text)
        except (SyntaxError, ValueError):
            raise ValueError(f"invalid string literal {text}") from None
        if type_ref.string_bound is not None and len(value) > type_ref.string_bound:
            raise ValueError(
                f"string of length {len(value)} exceeds bound {type_ref.string_bound}"
            )
        return value

    if not text:
        raise ValueError("missing value")

    if ptype is PrimitiveType.BOOL:
        lowered = text.lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValueError(f"'{text}' is not a bool (expected true or false)")

    # digit separators are Python syntax, not IDL
    if "_" in text:
        raise ValueError(f"'{text}' is not a {ptype.value} literal")

    if ptype in INTEGER_TYPES:
        try:
            value = int(text, 0)
        except ValueError:
            try:
                value = int(text, 10)
            except ValueError:
                raise ValueError(f"'{text}' is not an integer") from None
        low, high = value_range(ptype)
        if not low <= value <= high:
            raise ValueError(f"{value} is out of range for {ptype.value} [{low}, {high}]")
        return value

    if ptype in FLOAT_TYPES:
        try:
            value = float(text)
        except ValueError:
            raise ValueError(f"'{text}' is not a floating point number") from None
        if math.isfinite(value):
            low, high = value_range(ptype)
            if not low <= value <= high:
                raise ValueError(f"{value} is out of range for {ptype.value}")
        return value

    raise ValueError(f"unsupported type {ptype.value}")


def parse_sequence(text: str, type_ref: TypeRef, arity: Arity) -> Tuple[Any, ...]:
    """Parse a ``[a, b, ...]`` literal for an array field.

    Raises:
        ValueError: If the text is not a sequence or does not fit the arity
    """
    text = text.strip()
    if not (text.startswith("[") and text.endswith("]")):
        raise ValueError("array default must be a sequence literal [a, b, ...]")
    values = tuple(parse_literal(item, type_ref) for item in _split_sequence(text[1:-1]))
    if arity.kind is ArityKind.FIXED and len(values) != arity.bound:
        raise ValueError(f"expected {arity.bound} elements, got {len(values)}")
    if arity.kind is ArityKind.BOUNDED and len(values) > arity.bound:
        raise ValueError(f"expected at most {arity.bound} elements, got {len(values)}")
    return values


# =============================================================================
# Line grammar
# =============================================================================

def _make_type_ref(
    type_name: str,
    string_bound: Optional[str],
    state: ParseState,
    line_number: int,
    line: str,
) -> TypeRef:
    bound = int(string_bound) if string_bound is not None else None
    if bound is not None and type_name != PrimitiveType.STRING.value:
        raise MalformedDefinition(
            f"Only string types can be bounded, got '{type_name}<={bound}'",
            state.source, line_number, line,
        )
    if lookup(type_name) is not None:
        return TypeRef(type_name, string_bound=bound)
    try:
        package, name = split_type_name(type_name, state.package)
    except ValueError as e:
        raise MalformedDefinition(str(e), state.source, line_number, line) from None
    return TypeRef(name, package)


def _check_name(state: ParseState, name: str, line_number: int, line: str) -> None:
    if name in state.names:
        raise DuplicateField(
            f"Duplicate name '{name}'", state.source, line_number, line
        )


def _parse_constant(
    state: ParseState, match: "re.Match", line_number: int, line: str
) -> ParseState:
    type_name = match.group("type")
    name = match.group("name")
    if match.group("array") is not None or lookup(type_name) is None:
        raise MalformedDefinition(
            f"Constant '{name}' must have a primitive scalar type",
            state.source, line_number, line,
        )
    type_ref = _make_type_ref(type_name, match.group("strbound"), state, line_number, line)

    raw = match.group("value")
    if type_ref.primitive is PrimitiveType.STRING:
        # everything after '=' belongs to a string constant, including '#'
        raw = raw.strip()
    else:
        raw = strip_comment(raw)
    try:
        value = parse_literal(raw, type_ref)
    except ValueError as e:
        raise InvalidConstantValue(
            f"Invalid value for constant '{name}': {e}", state.source, line_number, line
        ) from None

    _check_name(state, name, line_number, line)
    return replace(
        state,
        constants=state.constants + (Constant(name, type_ref, value),),
        names=state.names | {name},
    )


def _parse_field(
    state: ParseState, match: "re.Match", line_number: int, line: str
) -> ParseState:
    name = match.group("name")
    type_ref = _make_type_ref(
        match.group("type"), match.group("strbound"), state, line_number, line
    )

    if match.group("bounded"):
        if not match.group("size"):
            raise MalformedDefinition(
                "Bounded array requires a size, e.g. [<=5]", state.source, line_number, line
            )
        arity = Arity.bounded(int(match.group("size")))
    elif match.group("size"):
        arity = Arity.fixed(int(match.group("size")))
    elif match.group("array") is not None:
        arity = Arity.unbounded()
    else:
        arity = Arity.scalar()

    default = None
    default_text = match.group("default")
    if default_text is not None:
        try:
            if not type_ref.is_primitive:
                raise ValueError(f"fields of type '{type_ref}' cannot have a default")
            if arity.is_array:
                default = parse_sequence(default_text, type_ref, arity)
            else:
                default = parse_literal(default_text, type_ref)
        except ValueError as e:
            raise InvalidDefaultValue(
                f"Invalid default for field '{name}': {e}", state.source, line_number, line
            ) from None

    _check_name(state, name, line_number, line)
    return replace(
        state,
        fields=state.fields + (Field(name, type_ref, arity, default),),
        names=state.names | {name},
    )


def parse_line(state: ParseState, line: str, line_number: int) -> ParseState:
    """Consume one line of a definition and return the updated state.

    Raises:
        MalformedDefinition: The line is neither blank, comment, constant nor field
        InvalidConstantValue: A constant literal does not fit its type
        InvalidDefaultValue: A field default does not fit its type or arity
        DuplicateField: The declared name is already in use
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return state

    match = CONSTANT_PATTERN.match(stripped)
    if match:
        return _parse_constant(state, match, line_number, line)

    declaration = strip_comment(stripped)
    match = FIELD_PATTERN.match(declaration)
    if match:
        return _parse_field(state, match, line_number, line)

    raise MalformedDefinition("Unrecognized declaration", state.source, line_number, line)


# =============================================================================
# Entry points
# =============================================================================

def parse_message(
    content: str,
    package: str,
    name: str,
    role: Role = Role.MESSAGE,
    source: Optional[str] = None,
) -> MessageModel:
    """Parse definition text into a MessageModel.

    Args:
        content: Definition text; a trailing newline is optional
        package: Package the message belongs to
        name: Message name (the file stem)
        role: Plain message or service request/response
        source: File path used in error messages

    Returns:
        The parsed, immutable model
    """
    state = ParseState(package=package, source=source)
    for line_number, line in enumerate(content.splitlines(), 1):
        state = parse_line(state, line, line_number)
    return MessageModel(
        package=package,
        name=name,
        fields=state.fields,
        constants=state.constants,
        role=role,
        source=source,
    )


def role_from_filename(path: Union[str, Path]) -> Role:
    """Derive the service role from the file name (not the directory)."""
    filename = Path(path).name
    if "Request" in filename:
        return Role.REQUEST
    if "Response" in filename:
        return Role.RESPONSE
    return Role.MESSAGE


def is_service_file(path: Union[str, Path]) -> bool:
    """Service container files are split into request/response upstream."""
    return Path(path).suffix == SERVICE_EXTENSION


def parse_file(path: Union[str, Path], package: str) -> MessageModel:
    """Parse a definition file; the message name is the file stem."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Message file not found: {path}")
    content = path.read_text(encoding="utf-8")
    return parse_message(
        content, package, path.stem, role=role_from_filename(path), source=str(path)
    )


class MessageParser:
    """Parser bound to one package."""

    def __init__(self, package: str):
        self.package = package

    def parse_file(self, filepath: Union[str, Path]) -> MessageModel:
        """Parse a .msg file."""
        return parse_file(filepath, self.package)

    def parse_string(
        self, content: str, name: str, role: Role = Role.MESSAGE, source: Optional[str] = None
    ) -> MessageModel:
        """Parse definition content from a string."""
        return parse_message(content, self.package, name, role=role, source=source)


__all__ = [
    "MESSAGE_EXTENSION",
    "SERVICE_EXTENSION",
    "MessageParser",
    "ParseState",
    "is_service_file",
    "parse_file",
    "parse_line",
    "parse_literal",
    "parse_message",
    "parse_sequence",
    "role_from_filename",
    "strip_comment",
]
