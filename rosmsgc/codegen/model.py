"""
Message model for parsed interface definitions.

A MessageModel is the language-neutral description of one message or one
service role (request/response). Models are immutable: the parser builds
them in one pass and hands them to the generators as-is.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from .types import PrimitiveType, lookup


class ArityKind(Enum):
    """Shape of a field."""
    SCALAR = "scalar"
    FIXED = "fixed"          # T[N]
    BOUNDED = "bounded"      # T[<=N]
    UNBOUNDED = "unbounded"  # T[]


@dataclass(frozen=True)
class Arity:
    """Scalar or array shape of a field.

    The bound of a bounded array is advisory: it is kept as metadata and
    is not enforced by the generated code.
    """

    kind: ArityKind = ArityKind.SCALAR
    bound: Optional[int] = None

    def __post_init__(self):
        needs_bound = self.kind in (ArityKind.FIXED, ArityKind.BOUNDED)
        if needs_bound and self.bound is None:
            raise ValueError(f"{self.kind.value} arity requires a bound")
        if not needs_bound and self.bound is not None:
            raise ValueError(f"{self.kind.value} arity takes no bound")
        if self.bound is not None and self.bound < 0:
            raise ValueError(f"Array bound must be non-negative, got {self.bound}")

    @classmethod
    def scalar(cls) -> "Arity":
        return cls(ArityKind.SCALAR)

    @classmethod
    def fixed(cls, size: int) -> "Arity":
        return cls(ArityKind.FIXED, size)

    @classmethod
    def bounded(cls, bound: int) -> "Arity":
        return cls(ArityKind.BOUNDED, bound)

    @classmethod
    def unbounded(cls) -> "Arity":
        return cls(ArityKind.UNBOUNDED)

    @property
    def is_array(self) -> bool:
        return self.kind is not ArityKind.SCALAR

    def __str__(self) -> str:
        if self.kind is ArityKind.FIXED:
            return f"[{self.bound}]"
        if self.kind is ArityKind.BOUNDED:
            return f"[<={self.bound}]"
        if self.kind is ArityKind.UNBOUNDED:
            return "[]"
        return ""


@dataclass(frozen=True)
class TypeRef:
    """Reference to a primitive type or to another message.

    Primitives have ``package=None``; composite references always carry
    the resolved package, even when the source omitted it.
    """

    name: str
    package: Optional[str] = None
    string_bound: Optional[int] = None

    @property
    def is_primitive(self) -> bool:
        return self.package is None

    @property
    def primitive(self) -> Optional[PrimitiveType]:
        return lookup(self.name) if self.is_primitive else None

    @property
    def full_name(self) -> str:
        if self.is_primitive:
            return self.name
        return f"{self.package}/{self.name}"

    def __str__(self) -> str:
        if self.string_bound is not None:
            return f"{self.full_name}<={self.string_bound}"
        return self.full_name


@dataclass(frozen=True)
class Field:
    """A data member of a message."""

    name: str
    type: TypeRef
    arity: Arity = field(default_factory=Arity.scalar)
    default: Any = None  # scalar value, or tuple of values for arrays

    @property
    def idl_type(self) -> str:
        """Type as written in IDL, e.g. ``float64[<=5]``."""
        return f"{self.type}{self.arity}"

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class Constant:
    """A named constant of primitive type."""

    name: str
    type: TypeRef
    value: Any


class Role(Enum):
    """Whether a model is a plain message or one half of a service."""
    MESSAGE = "message"
    REQUEST = "request"
    RESPONSE = "response"

    @property
    def is_service(self) -> bool:
        return self is not Role.MESSAGE


@dataclass(frozen=True)
class MessageModel:
    """Parsed and validated definition of one message."""

    package: str
    name: str
    fields: Tuple[Field, ...] = ()
    constants: Tuple[Constant, ...] = ()
    role: Role = Role.MESSAGE
    source: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.package}/{self.name}"

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def composite_types(self) -> Tuple[TypeRef, ...]:
        """Distinct composite types referenced by fields, in first-use order."""
        seen = []
        for f in self.fields:
            if not f.type.is_primitive and f.type not in seen:
                seen.append(f.type)
        return tuple(seen)
