"""
Command Line Interface for rosmsgc.

Provides CLI commands for:
- Code generation from one .msg file (``rosmsgc msg``)
- Compiling a directory of generated C# units (``rosmsgc compile``)
- Validating a .msg file without generating code (``rosmsgc validate``)

Exit status is 1 when a definition cannot be parsed or generated. Compiler
errors are reported but leave the exit status at 0, as build failures are
judged by the calling build system from the missing assembly.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

import argparse
import os
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from rich.table import Table

from . import __version__
from .build import compile_package, search_roots_from_env
from .codegen import generate_from_file, parse_file
from .codegen.generator import GENERATORS
from .errors import BuildError
from .log import LogLevel, NodeLogger, console
from .utils import load_cfg


def _load_config(args: argparse.Namespace):
    """Load configuration and apply the log level; None on failure."""
    try:
        cfg = load_cfg(args.config, args.set)
    except FileNotFoundError as e:
        console.print(f"Error: {e}", style="red")
        return None
    NodeLogger.set_level(LogLevel.DEBUG if args.verbose else cfg.logging.level)
    return cfg


def cmd_msg(args: argparse.Namespace) -> int:
    """Parse a message file and generate code for it."""
    cfg = _load_config(args)
    if cfg is None:
        return 1

    target = args.target or cfg.generator.target
    search_roots = search_roots_from_env(os.environ.get(cfg.build.search_path_variable))

    console.print(f"Parsing message file: {args.file}", style="blue")
    try:
        path = generate_from_file(
            args.file,
            args.package,
            args.output,
            target=target,
            search_roots=search_roots,
        )
    except Exception as e:
        console.print(f"Exception parsing: {args.file}", style="red")
        console.print(str(e), markup=False)
        if args.verbose:
            traceback.print_exc()
        return 1

    if path is None:
        console.print(f"Skipped service file: {args.file}")
    return 0


def cmd_compile(args: argparse.Namespace) -> int:
    """Compile generated units to an assembly."""
    cfg = _load_config(args)
    if cfg is None:
        return 1

    try:
        compile_package(args.directory, args.assembly, config=cfg)
    except BuildError as e:
        console.print(str(e), style="red", markup=False)
    # Compile errors are reported above but do not change the exit status.
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a message file."""
    cfg = _load_config(args)
    if cfg is None:
        return 1

    message_file = Path(args.file)
    try:
        model = parse_file(message_file, args.package)
    except Exception as e:
        console.print(f"Validation error: {e}", style="red", markup=False)
        if args.verbose:
            traceback.print_exc()
        return 1

    table = Table(title=f"{model.full_name} ({model.role.value})")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Value / Default")
    for c in model.constants:
        table.add_row("const", c.name, str(c.type), repr(c.value))
    for f in model.fields:
        default = "" if f.default is None else repr(f.default)
        table.add_row("field", f.name, f.idl_type, default)
    console.print(table)
    console.print("Message is valid!", style="green")
    return 0


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        help="YAML configuration merged over the defaults",
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration value (repeatable)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rosmsgc",
        description="rosmsgc - ROS message compiler for C# and Python",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # msg command
    msg_parser = subparsers.add_parser(
        "msg",
        aliases=["gen", "generate"],
        help="Parse a message file and generate code",
        description="Generate <Name>_msg / <Name>_srv source from a .msg file",
    )
    msg_parser.add_argument("file", help="Path to .msg file")
    msg_parser.add_argument("package", help="Package the message belongs to")
    msg_parser.add_argument("output", help="Output directory")
    msg_parser.add_argument(
        "--target", "-t",
        choices=sorted(GENERATORS),
        help="Target language (default: generator.target from config)",
    )
    _add_common_options(msg_parser)

    # compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile generated C# files to an assembly",
        description="Compile a directory of generated .cs files into a library assembly",
    )
    compile_parser.add_argument("directory", help="Directory with generated .cs files")
    compile_parser.add_argument("assembly", help="Path of the resulting assembly")
    _add_common_options(compile_parser)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a message file",
        description="Parse and validate a .msg file without generating code",
    )
    validate_parser.add_argument("file", help="Path to .msg file")
    validate_parser.add_argument("package", help="Package the message belongs to")
    _add_common_options(validate_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command in ("msg", "gen", "generate"):
        return cmd_msg(args)
    elif args.command == "compile":
        return cmd_compile(args)
    elif args.command == "validate":
        return cmd_validate(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
