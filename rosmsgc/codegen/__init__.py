"""
rosmsgc Code Generation Module.

Parses ROS .msg interface definitions into immutable message models and
generates C# or Python source from them.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from .model import Arity, ArityKind, Constant, Field, MessageModel, Role, TypeRef
from .parser import MessageParser, parse_file, parse_line, parse_message, role_from_filename
from .registry import ModelRegistry
from .base import MessageGenerator, unit_name
from .python_gen import PythonGenerator
from .csharp_gen import CSharpGenerator
from .generator import CodeGenerator, generate_from_file, get_generator

__all__ = [
    "Arity",
    "ArityKind",
    "Constant",
    "Field",
    "MessageModel",
    "Role",
    "TypeRef",
    "MessageParser",
    "parse_file",
    "parse_line",
    "parse_message",
    "role_from_filename",
    "ModelRegistry",
    "MessageGenerator",
    "unit_name",
    "PythonGenerator",
    "CSharpGenerator",
    "CodeGenerator",
    "generate_from_file",
    "get_generator",
]
