"""
Main Code Generator interface for rosmsgc.

Ties the parser, the model registry and the per-language generators
together. ``generate_from_file`` is the single-file operation used by the
``rosmsgc msg`` command: parse one definition, resolve its composite types
and write exactly one unit.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional, Type, Union

from ..log import get_logger
from .base import KnownModels, MessageGenerator
from .csharp_gen import CSharpGenerator
from .model import MessageModel
from .parser import MessageParser, is_service_file
from .python_gen import PythonGenerator
from .registry import ModelRegistry

logger = get_logger("codegen")

GENERATORS: Dict[str, Type[MessageGenerator]] = {
    CSharpGenerator.target: CSharpGenerator,
    PythonGenerator.target: PythonGenerator,
}


def get_generator(target: str) -> MessageGenerator:
    """Get a generator instance for a target language.

    Raises:
        ValueError: If the target is unknown
    """
    try:
        return GENERATORS[target]()
    except KeyError:
        choices = ", ".join(sorted(GENERATORS))
        raise ValueError(f"Unknown target '{target}' (choose from {choices})") from None


def write_atomic(path: Path, text: str) -> None:
    """Write text so that ``path`` is either absent or complete."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


class CodeGenerator:
    """
    Main code generation interface.

    Example:
        >>> gen = CodeGenerator("geometry_msgs", target="python")
        >>> gen.generate("msg/Point.msg", output_dir="generated/")
    """

    def __init__(
        self,
        package: str,
        target: str = "csharp",
        registry: Optional[ModelRegistry] = None,
    ):
        self.parser = MessageParser(package)
        self.generator = get_generator(target)
        self.registry = registry

    @property
    def package(self) -> str:
        return self.parser.package

    def parse(self, message_file: Union[str, Path]) -> MessageModel:
        """Parse a message file."""
        return self.parser.parse_file(message_file)

    def generate_source(self, model: MessageModel, known_models: KnownModels = None) -> str:
        """Generate source text for an already parsed model."""
        if known_models is None:
            known_models = self.registry
        return self.generator.generate(model, known_models)

    def generate(
        self,
        message_file: Union[str, Path],
        output_dir: Union[str, Path] = ".",
        search_roots: Iterable[Union[str, Path]] = (),
    ) -> Optional[Path]:
        """
        Generate one unit from a message file.

        Args:
            message_file: Path to a .msg file
            output_dir: Output directory, created if missing
            search_roots: Install prefixes whose ``share/<pkg>/msg`` folders
                provide dependency definitions when no registry was given

        Returns:
            Path of the written unit, or None for service container files
        """
        message_file = Path(message_file)
        if is_service_file(message_file):
            logger.debug(f"Skipping service container file {message_file}")
            return None

        model = self.parse(message_file)

        registry = self.registry
        if registry is None:
            registry = ModelRegistry()
            registry.discover(search_roots)
            registry.add_directory(message_file.parent, self.package)
        source = self.generate_source(model, registry)

        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        target = output_path / self.generator.output_filename(model)
        write_atomic(target, source)
        logger.info(f"Generated: {target}")
        return target


def generate_from_file(
    path: Union[str, Path],
    package: str,
    output_dir: Union[str, Path],
    target: str = "csharp",
    registry: Optional[ModelRegistry] = None,
    search_roots: Iterable[Union[str, Path]] = (),
) -> Optional[Path]:
    """
    Parse one message file and write its generated unit.

    Args:
        path: Path to the definition file
        package: Package the message belongs to
        output_dir: Directory receiving ``<Name>_msg.<ext>`` or ``<Name>_srv.<ext>``
        target: Target language ("csharp" or "python")
        registry: Known models; built from siblings and search roots if None
        search_roots: Install prefixes scanned for dependency definitions

    Returns:
        Path of the written unit, or None if the file is a .srv container
    """
    gen = CodeGenerator(package, target=target, registry=registry)
    return gen.generate(path, output_dir, search_roots=search_roots)
