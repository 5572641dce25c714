"""
Type catalog for ROS interface definitions.

Maps the fixed set of primitive IDL type names to their target-language
types and numeric ranges. Any name outside the catalog is a reference to
another message, qualified by package or implicitly in the referencing
message's package.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from enum import Enum
from typing import Dict, Optional, Tuple, Union

import numpy as np


class PrimitiveType(Enum):
    """Primitive field types of the IDL."""

    BOOL = "bool"
    BYTE = "byte"
    CHAR = "char"

    # Signed integers
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"

    # Unsigned integers
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"

    # Floating point
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    STRING = "string"


# Type mappings for code generation
TYPE_INFO = {
    # type: (python_type, csharp_type, numpy_dtype)
    PrimitiveType.BOOL:    ("bool", "bool", np.bool_),
    PrimitiveType.BYTE:    ("int", "byte", np.uint8),
    PrimitiveType.CHAR:    ("int", "byte", np.uint8),
    PrimitiveType.INT8:    ("int", "sbyte", np.int8),
    PrimitiveType.INT16:   ("int", "short", np.int16),
    PrimitiveType.INT32:   ("int", "int", np.int32),
    PrimitiveType.INT64:   ("int", "long", np.int64),
    PrimitiveType.UINT8:   ("int", "byte", np.uint8),
    PrimitiveType.UINT16:  ("int", "ushort", np.uint16),
    PrimitiveType.UINT32:  ("int", "uint", np.uint32),
    PrimitiveType.UINT64:  ("int", "ulong", np.uint64),
    PrimitiveType.FLOAT32: ("float", "float", np.float32),
    PrimitiveType.FLOAT64: ("float", "double", np.float64),
    PrimitiveType.STRING:  ("str", "string", np.str_),
}

# Mapping from string to PrimitiveType (case-sensitive)
TYPE_MAP = {t.value: t for t in PrimitiveType}

# Well-known composite built-ins: IDL name -> (package, type)
BUILTIN_ALIASES: Dict[str, Tuple[str, str]] = {
    "time": ("builtin_interfaces", "Time"),
    "duration": ("builtin_interfaces", "Duration"),
}

PACKAGE_SEPARATOR = "/"

INTEGER_TYPES = frozenset(
    t for t, info in TYPE_INFO.items() if np.issubdtype(info[2], np.integer)
)
FLOAT_TYPES = frozenset({PrimitiveType.FLOAT32, PrimitiveType.FLOAT64})


def lookup(type_name: str) -> Optional[PrimitiveType]:
    """Resolve a primitive type name, or None if it is not a primitive."""
    return TYPE_MAP.get(type_name)


def is_primitive(type_name: str) -> bool:
    return type_name in TYPE_MAP


def python_type(ptype: PrimitiveType) -> str:
    return TYPE_INFO[ptype][0]


def csharp_type(ptype: PrimitiveType) -> str:
    return TYPE_INFO[ptype][1]


def value_range(ptype: PrimitiveType) -> Tuple[Union[int, float], Union[int, float]]:
    """Get the inclusive (min, max) range of a numeric primitive.

    Raises:
        ValueError: If the type is not numeric
    """
    dtype = TYPE_INFO[ptype][2]
    if ptype in INTEGER_TYPES:
        info = np.iinfo(dtype)
        return int(info.min), int(info.max)
    if ptype in FLOAT_TYPES:
        finfo = np.finfo(dtype)
        return float(finfo.min), float(finfo.max)
    raise ValueError(f"Type '{ptype.value}' has no numeric range")


def split_type_name(type_name: str, package: str) -> Tuple[str, str]:
    """Split a composite type name into (package, type).

    ``pkg/Type`` and the ROS 2 form ``pkg/msg/Type`` name the package
    explicitly; a bare ``Type`` lives in the referencing ``package``.
    Built-in aliases (``time``, ``duration``) map to builtin_interfaces.
    """
    if type_name in BUILTIN_ALIASES:
        return BUILTIN_ALIASES[type_name]
    parts = type_name.split(PACKAGE_SEPARATOR)
    if len(parts) == 1:
        return package, parts[0]
    if len(parts) == 2:
        return parts[0], parts[1]
    if len(parts) == 3 and parts[1] == "msg":
        return parts[0], parts[2]
    raise ValueError(f"Invalid type name: {type_name}")
