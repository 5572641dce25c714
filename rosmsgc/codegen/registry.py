"""
Package-scoped lookup of known message models.

Composite field types are resolved against a ModelRegistry that the caller
fills before generation: the sibling definitions of the message's own
package and, optionally, every definition installed under the dependency
search roots (``<root>/share/<package>/msg/*.msg``).

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from ..errors import DefinitionError, UnresolvedType
from ..log import get_logger
from .model import MessageModel, TypeRef
from .parser import MESSAGE_EXTENSION, parse_file, parse_message

logger = get_logger("registry")

BUILTIN_PACKAGE = "builtin_interfaces"

# Built-in definitions available without any search root
BUILTIN_DEFINITIONS = {
    "Time": "int32 sec\nuint32 nanosec\n",
    "Duration": "int32 sec\nuint32 nanosec\n",
}


def builtin_models() -> Tuple[MessageModel, ...]:
    return tuple(
        parse_message(text, BUILTIN_PACKAGE, name, source=f"<{BUILTIN_PACKAGE}/{name}>")
        for name, text in BUILTIN_DEFINITIONS.items()
    )


class ModelRegistry:
    """Mapping of (package, name) to MessageModel.

    Example:
        >>> registry = ModelRegistry()
        >>> registry.add_directory("geometry_msgs/msg", "geometry_msgs")
        >>> registry.resolve(TypeRef("Point", "geometry_msgs"))
    """

    def __init__(self, models: Iterable[MessageModel] = (), builtins: bool = True):
        self._models: Dict[Tuple[str, str], MessageModel] = {}
        if builtins:
            for model in builtin_models():
                self.add(model)
        for model in models:
            self.add(model)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._models

    def __iter__(self) -> Iterator[MessageModel]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def add(self, model: MessageModel) -> None:
        """Register a model, replacing any previous model of the same name."""
        self._models[(model.package, model.name)] = model

    def get(self, package: str, name: str) -> Optional[MessageModel]:
        return self._models.get((package, name))

    def resolve(self, type_ref: TypeRef, source: Optional[str] = None) -> MessageModel:
        """Get the model a composite type refers to.

        Raises:
            UnresolvedType: If no such model is registered
        """
        model = self._models.get((type_ref.package, type_ref.name))
        if model is None:
            raise UnresolvedType(type_ref.package, type_ref.name, source=source)
        return model

    def add_directory(self, directory: Union[str, Path], package: str) -> int:
        """Parse every definition file in a package directory.

        Files that fail to parse are skipped with a warning; they are
        reported when they are generated themselves.

        Returns:
            Number of models added
        """
        directory = Path(directory)
        if not directory.is_dir():
            return 0
        count = 0
        for path in sorted(directory.glob(f"*{MESSAGE_EXTENSION}")):
            try:
                self.add(parse_file(path, package))
            except DefinitionError as e:
                logger.warn(f"Skipping unparsable definition {path}: {e.message}")
                continue
            count += 1
        return count

    def discover(self, search_roots: Iterable[Union[str, Path]]) -> int:
        """Parse every installed definition under the search roots.

        Looks for the ament layout ``<root>/share/<package>/msg/*.msg``.
        Earlier roots win when a package is installed more than once.

        Returns:
            Number of models added
        """
        count = 0
        seen_packages = set()
        for root in search_roots:
            share = Path(root) / "share"
            if not share.is_dir():
                continue
            for package_dir in sorted(p for p in share.iterdir() if p.is_dir()):
                package = package_dir.name
                if package in seen_packages:
                    continue
                added = self.add_directory(package_dir / "msg", package)
                if added:
                    seen_packages.add(package)
                    count += added
        logger.debug(f"Discovered {count} installed definitions")
        return count

    @classmethod
    def from_directory(cls, directory: Union[str, Path], package: str) -> "ModelRegistry":
        registry = cls()
        registry.add_directory(directory, package)
        return registry
