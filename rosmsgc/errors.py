"""
Exception taxonomy for rosmsgc.

Definition errors are raised while parsing or generating a single message
file and always carry enough context (file, line number, offending text)
to be reported as-is. Build errors are preconditions of a build invocation;
compiler diagnostics are never raised, see ``rosmsgc.build``.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from typing import Optional


class RosmsgcError(Exception):
    """Base class for all rosmsgc errors."""


# =============================================================================
# Definition (parse/generate) errors
# =============================================================================

class DefinitionError(RosmsgcError, ValueError):
    """An error located in a message definition."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.message = message
        self.source = source
        self.line_number = line_number
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        location = self.source or "<string>"
        if self.line_number is not None:
            location = f"{location}:{self.line_number}"
        text = f"{location}: {self.message}"
        if self.line is not None:
            text += f"\n    {self.line.strip()}"
        return text


class MalformedDefinition(DefinitionError):
    """A line matches neither the constant nor the field grammar."""


class InvalidConstantValue(DefinitionError):
    """A constant literal does not fit its declared type."""


class InvalidDefaultValue(DefinitionError):
    """A field default does not fit its declared type or arity."""


class DuplicateField(DefinitionError):
    """A field or constant name is declared twice in one message."""


class UnresolvedType(DefinitionError):
    """A composite field type is not among the known models."""

    def __init__(self, package: str, type_name: str, source: Optional[str] = None):
        self.package = package
        self.type_name = type_name
        super().__init__(f"Unknown type '{package}/{type_name}'", source=source)


# =============================================================================
# Build errors
# =============================================================================

class BuildError(RosmsgcError):
    """A precondition of a build invocation failed."""


class DirectoryNotFound(BuildError):
    """The source directory of a build does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Directory does not exist: {path}")


class EmptySourceSet(BuildError):
    """The source directory holds no compilable units."""

    def __init__(self, path: str, extension: str):
        self.path = path
        super().__init__(f"No '{extension}' files found in {path}")


class ToolchainNotFound(BuildError):
    """The compiler executable could not be launched."""

    def __init__(self, compiler: str):
        self.compiler = compiler
        super().__init__(f"Compiler not found: {compiler}")
