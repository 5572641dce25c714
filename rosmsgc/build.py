"""
Build driver: compile generated C# units into one library assembly.

Dependency assemblies are discovered under the search roots listed in an
environment variable (``AMENT_PREFIX_PATH`` by default). Each root's
library folder is scanned for ``.dll`` files; only files that are real
.NET assemblies, and that are not a previous build of the requested
output, become references. Discovery is best effort: an empty or missing
search path leaves only the standard references.

Compiler diagnostics are returned as data in a BuildResult and are never
raised; deciding whether errors are fatal is up to the caller.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from omegaconf import DictConfig

from .assembly import probe_assembly
from .errors import DirectoryNotFound, EmptySourceSet, ToolchainNotFound
from .log import get_logger
from .utils import load_cfg

logger = get_logger("build")

SOURCE_EXTENSION = ".cs"

PathLike = Union[str, Path]

DIAGNOSTIC_PATTERN = re.compile(
    r"^(?:(?P<unit>.+?)(?:\((?P<line>\d+),(?P<column>\d+)(?:,\d+,\d+)?\))?\s*:\s*)?"
    r"(?P<severity>error|warning)\s+(?P<code>[A-Za-z]+\d+)\s*:\s*(?P<message>.*)$"
)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class CompileDiagnostic:
    """One error or warning reported by the compiler."""

    severity: Severity
    message: str
    unit: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    code: Optional[str] = None

    def __str__(self) -> str:
        location = self.unit or ""
        if self.line is not None:
            location += f"({self.line},{self.column})"
        code = f" {self.code}" if self.code else ""
        prefix = f"{location}: " if location else ""
        return f"{prefix}{self.severity.value}{code}: {self.message}"


@dataclass(frozen=True)
class DependencyReference:
    """A discovered assembly and the name it declares."""

    path: str
    module_name: str


@dataclass
class BuildResult:
    """Outcome of one compiler invocation."""

    output_path: str
    references: List[str] = field(default_factory=list)
    errors: List[CompileDiagnostic] = field(default_factory=list)
    warnings: List[CompileDiagnostic] = field(default_factory=list)
    returncode: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def diagnostics(self) -> List[CompileDiagnostic]:
        return self.errors + self.warnings


# =============================================================================
# Search roots and dependency discovery
# =============================================================================

def search_roots_from_env(value: Optional[str], os_name: Optional[str] = None) -> List[str]:
    """Split a path-list variable; ``:`` on POSIX, ``;`` elsewhere."""
    if not value:
        return []
    separator = ":" if (os_name or os.name) == "posix" else ";"
    return [entry for entry in value.split(separator) if entry]


def library_dirs_for_platform(
    config: DictConfig, platform: Optional[str] = None
) -> Tuple[str, ...]:
    """Library subdirectories of a search root; Windows also scans ``bin``."""
    dirs = list(config.build.library_dirs)
    if (platform or sys.platform) == "win32":
        dirs.extend(config.build.windows_library_dirs)
    return tuple(dirs)


def scan_search_roots(
    search_roots: Iterable[PathLike],
    output_name: str,
    library_dirs: Sequence[str] = ("lib",),
    extension: str = ".dll",
) -> List[DependencyReference]:
    """Discover referencable assemblies under the search roots.

    Args:
        search_roots: Install prefixes, scanned in order
        output_name: Assembly name of the build output; assemblies declaring
            this name are excluded so a module never references itself
        library_dirs: Subdirectories of each root to scan
        extension: Extension of loadable modules

    Returns:
        References in discovery order, without duplicates
    """
    references: List[DependencyReference] = []
    seen = set()
    for root in search_roots:
        for subdir in library_dirs:
            directory = Path(root) / subdir
            if not directory.is_dir():
                logger.debug(f"No library folder at {directory}")
                continue
            logger.debug(f"Scanning {directory}")
            for item in sorted(directory.iterdir()):
                if item.suffix.lower() != extension.lower() or not item.is_file():
                    continue
                probe = probe_assembly(item)
                if not probe.ok:
                    logger.debug(f"Skipping {item}: {probe.error}")
                    continue
                if probe.name == output_name:
                    logger.debug(f"Skipping {item}: it is the build output '{output_name}'")
                    continue
                if probe.path in seen:
                    continue
                seen.add(probe.path)
                references.append(DependencyReference(probe.path, probe.name))
    return references


# =============================================================================
# Toolchain
# =============================================================================

def parse_diagnostics(output: str) -> List[CompileDiagnostic]:
    """Extract error and warning lines from compiler output."""
    diagnostics = []
    for raw in output.splitlines():
        match = DIAGNOSTIC_PATTERN.match(raw.strip())
        if not match:
            continue
        line = match.group("line")
        column = match.group("column")
        diagnostics.append(CompileDiagnostic(
            severity=Severity(match.group("severity")),
            message=match.group("message").strip(),
            unit=match.group("unit"),
            line=int(line) if line else None,
            column=int(column) if column else None,
            code=match.group("code"),
        ))
    return diagnostics


class Toolchain:
    """Command line C# compiler (mono ``mcs`` or ``csc``)."""

    def __init__(self, compiler: str = "mcs", extra_options: Sequence[str] = ()):
        self.compiler = compiler
        self.extra_options = list(extra_options)

    def command(
        self, sources: Sequence[str], references: Sequence[str], output_path: str
    ) -> List[str]:
        # generated bindings use raw-memory interop types, hence -unsafe
        cmd = [self.compiler, "-target:library", "-unsafe", f"-out:{output_path}"]
        cmd.extend(f"-reference:{ref}" for ref in references)
        cmd.extend(self.extra_options)
        cmd.extend(sources)
        return cmd

    def compile(
        self, sources: Sequence[str], references: Sequence[str], output_path: str
    ) -> Tuple[int, str]:
        """Run the compiler once.

        Returns:
            (exit status, combined stdout and stderr)

        Raises:
            ToolchainNotFound: If the compiler cannot be launched
        """
        cmd = self.command(sources, references, output_path)
        logger.debug("Running: " + " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            raise ToolchainNotFound(self.compiler) from None
        return proc.returncode, (proc.stdout or "") + (proc.stderr or "")


# =============================================================================
# Build operations
# =============================================================================

def collect_sources(source_dir: PathLike) -> List[str]:
    """List the compilable units directly under a directory.

    Raises:
        DirectoryNotFound: If the directory does not exist
        EmptySourceSet: If it holds no units
    """
    source_dir = Path(source_dir).absolute()
    if not source_dir.is_dir():
        raise DirectoryNotFound(str(source_dir))
    sources = sorted(
        str(p) for p in source_dir.iterdir()
        if p.is_file() and p.suffix == SOURCE_EXTENSION
    )
    if not sources:
        raise EmptySourceSet(str(source_dir), SOURCE_EXTENSION)
    return sources


def build(
    source_dir: PathLike,
    search_roots: Iterable[PathLike],
    output_path: PathLike,
    toolchain: Optional[Toolchain] = None,
    config: Optional[DictConfig] = None,
) -> BuildResult:
    """Compile all units in ``source_dir`` into one library assembly.

    Args:
        source_dir: Directory of generated ``.cs`` units
        search_roots: Install prefixes scanned for dependency assemblies
        output_path: Path of the assembly to produce
        toolchain: Compiler wrapper; built from config if None
        config: rosmsgc configuration; defaults are loaded if None

    Returns:
        Diagnostics partitioned into errors and warnings

    Raises:
        DirectoryNotFound: If ``source_dir`` does not exist
        EmptySourceSet: If ``source_dir`` holds no units
        ToolchainNotFound: If the compiler cannot be launched
    """
    cfg = config if config is not None else load_cfg()
    sources = collect_sources(source_dir)

    output_path = Path(output_path).absolute()
    output_name = output_path.stem

    dependencies = scan_search_roots(
        search_roots,
        output_name,
        library_dirs=library_dirs_for_platform(cfg),
        extension=cfg.build.module_extension,
    )
    for dep in dependencies:
        logger.debug(f"Reference: {dep.module_name} ({dep.path})")
    references = list(cfg.build.standard_references) + [d.path for d in dependencies]

    if toolchain is None:
        toolchain = Toolchain(cfg.build.compiler, list(cfg.build.compiler_options))

    logger.info(f"Compiling: {output_name}")
    returncode, output = toolchain.compile(sources, references, str(output_path))

    result = BuildResult(output_path=str(output_path), references=references, returncode=returncode)
    for diagnostic in parse_diagnostics(output):
        if diagnostic.severity is Severity.ERROR:
            result.errors.append(diagnostic)
        else:
            result.warnings.append(diagnostic)

    if returncode != 0 and not result.errors:
        lines = [line for line in output.splitlines() if line.strip()]
        message = lines[-1].strip() if lines else f"compiler exited with status {returncode}"
        result.errors.append(CompileDiagnostic(Severity.ERROR, message))

    return result


def report_result(result: BuildResult, search_path: Optional[str] = None) -> None:
    """Log the diagnostics of a build."""
    if not result.diagnostics:
        logger.info(f"{result.output_path} build successful")
        return
    headline = f"Errors/Warnings building: {result.output_path}"
    if result.errors:
        logger.error(headline)
    else:
        logger.warn(headline)
    if search_path is not None:
        logger.info(f"Search path was: {search_path}")
    for diagnostic in result.errors:
        logger.error(str(diagnostic))
    for diagnostic in result.warnings:
        logger.warn(str(diagnostic))


def compile_package(
    source_dir: PathLike,
    output_path: PathLike,
    environ: Optional[Mapping[str, str]] = None,
    config: Optional[DictConfig] = None,
    toolchain: Optional[Toolchain] = None,
) -> BuildResult:
    """Compile a generated package against the environment's search roots.

    Args:
        source_dir: Directory of generated ``.cs`` units
        output_path: Path of the assembly to produce
        environ: Environment mapping; ``os.environ`` if None
        config: rosmsgc configuration; defaults are loaded if None
        toolchain: Compiler wrapper; built from config if None

    Returns:
        The build result, already reported to the log
    """
    cfg = config if config is not None else load_cfg()
    env = os.environ if environ is None else environ
    variable = cfg.build.search_path_variable
    search_path = env.get(variable)

    logger.info(f"Input directory: {Path(source_dir).absolute()}")
    logger.info(f"Assembly path: {Path(output_path).absolute()}")
    logger.info(f"{variable}: {search_path}")

    roots = search_roots_from_env(search_path)
    result = build(source_dir, roots, output_path, toolchain=toolchain, config=cfg)
    report_result(result, search_path)
    return result
