"""
rosmsgc: ROS interface definition compiler.

rosmsgc reads ROS ``.msg`` interface definitions, builds an immutable,
language-neutral model of each message and emits equivalent C# or Python
source. A separate build step compiles a directory of generated C# units
into one library assembly, referencing the message assemblies already
installed under the ament search path.

Key features:
- Line-oriented .msg parser with constants, defaults and array bounds
- C# and Python code generators
- Structural .NET assembly probing for dependency discovery

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

__version__ = "0.1.0"
__author__ = "Chen Yu"
__email__ = "chenyu@u.northwestern.edu"
__license__ = "Apache-2.0"

from .utils import load_cfg

# Code generation module
from . import codegen
from .codegen import (
    CodeGenerator,
    MessageModel,
    ModelRegistry,
    generate_from_file,
    get_generator,
    parse_message,
)

# Build driver
from .build import BuildResult, CompileDiagnostic, build, compile_package

# Errors
from .errors import (
    BuildError,
    DefinitionError,
    DirectoryNotFound,
    DuplicateField,
    EmptySourceSet,
    InvalidConstantValue,
    InvalidDefaultValue,
    MalformedDefinition,
    ToolchainNotFound,
    UnresolvedType,
)

__all__ = [
    "load_cfg",
    "codegen",
    "CodeGenerator",
    "MessageModel",
    "ModelRegistry",
    "generate_from_file",
    "get_generator",
    "parse_message",
    "BuildResult",
    "CompileDiagnostic",
    "build",
    "compile_package",
    "BuildError",
    "DefinitionError",
    "DirectoryNotFound",
    "DuplicateField",
    "EmptySourceSet",
    "InvalidConstantValue",
    "InvalidDefaultValue",
    "MalformedDefinition",
    "ToolchainNotFound",
    "UnresolvedType",
    "__version__",
]
