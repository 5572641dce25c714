"""Shared fixtures for rosmsgc tests."""

import os
import struct
import sys

import pytest

# Add the project root to sys.path so 'rosmsgc' is importable without install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from rosmsgc.log import NodeLogger
from rosmsgc.utils import load_cfg


POINT_MSG = """\
# A point in free space
float64 x
float64 y
float64 z
"""

POSE_MSG = """\
Point position
float64[4] orientation [0.0, 0.0, 0.0, 1.0]
"""

SAMPLE_MSG = """\
# Constants
int32 MAX_SPEED=10
string GREETING=hello # not a comment
bool ENABLED=true

# Fields
int32 a
string b
float64[] c
uint8[3] rgb [1, 2, 3]
int32[<=5] samples
string<=8 label "robot"
time stamp
"""

MOVE_REQUEST_MSG = """\
geometry_msgs/Point target
float32 speed 0.5
"""


# -- Synthetic .NET assemblies -----------------------------------------------

SECTION_RVA = 0x2000
SECTION_OFFSET = 0x200
CLI_HEADER_SIZE = 72


def make_pe(body_builder, cli_directory=True) -> bytes:
    """Wrap a section body in a minimal PE32 image.

    ``body_builder`` receives the RVA of the section and returns its bytes;
    the CLI header must be at the start of the section.
    """
    body = body_builder(SECTION_RVA)

    pe_offset = 0x80
    dos = bytearray(pe_offset)
    dos[0:2] = b"MZ"
    struct.pack_into("<I", dos, 0x3C, pe_offset)

    coff = struct.pack("<HHIIIHH", 0x14C, 1, 0, 0, 0, 224, 0x2102)

    optional = bytearray(224)
    struct.pack_into("<H", optional, 0, 0x10B)
    struct.pack_into("<I", optional, 92, 16)
    if cli_directory:
        struct.pack_into("<II", optional, 96 + 14 * 8, SECTION_RVA, CLI_HEADER_SIZE)

    section = struct.pack(
        "<8sIIIIIIHHI", b".text", len(body), SECTION_RVA, len(body), SECTION_OFFSET,
        0, 0, 0, 0, 0x60000020,
    )

    headers = bytes(dos) + b"PE\0\0" + coff + bytes(optional) + section
    headers += b"\0" * (SECTION_OFFSET - len(headers))
    return headers + body


def make_assembly(name: str, manifest: bool = True) -> bytes:
    """Build the bytes of a tiny managed image declaring ``name``.

    The metadata holds a Module row and, if ``manifest``, an Assembly row;
    without a manifest the image is a netmodule, not an assembly.
    """
    strings = b"\0" + name.encode("utf-8") + b"\0"
    strings += b"\0" * (-len(strings) % 4)

    valid = 1 << 0x00
    if manifest:
        valid |= 1 << 0x20
    tables = struct.pack("<IBBBBQQ", 0, 2, 0, 0, 1, valid, 0)
    tables += struct.pack("<I", 1)
    if manifest:
        tables += struct.pack("<I", 1)
    tables += struct.pack("<HHHHH", 0, 1, 0, 0, 0)  # Module
    if manifest:
        tables += struct.pack("<IHHHHIHHH", 0x8004, 1, 0, 0, 0, 0, 0, 1, 0)  # Assembly
    tables += b"\0" * (-len(tables) % 4)

    version = b"v4.0.30319\0\0"
    header_size = 16 + len(version) + 4 + (8 + 4) + (8 + 12)
    metadata = struct.pack("<IHHII", 0x424A5342, 1, 1, 0, len(version)) + version
    metadata += struct.pack("<HH", 0, 2)
    metadata += struct.pack("<II", header_size, len(tables)) + b"#~\0\0"
    metadata += struct.pack("<II", header_size + len(tables), len(strings)) + b"#Strings\0\0\0\0"
    metadata += tables + strings

    def body(rva):
        cli = struct.pack("<IHHII", CLI_HEADER_SIZE, 2, 5, rva + CLI_HEADER_SIZE, len(metadata))
        cli += b"\0" * (CLI_HEADER_SIZE - len(cli))
        return cli + metadata

    return make_pe(body)


def make_native_dll() -> bytes:
    """A PE image without a CLI header, like a native shared library."""
    return make_pe(lambda rva: b"\0" * 64, cli_directory=False)


@pytest.fixture
def search_roots(tmp_path):
    """Two install prefixes, each with one assembly and one native dll."""
    roots = []
    for index, name in enumerate(("std_msgs", "geometry_msgs"), 1):
        lib = tmp_path / f"root{index}" / "lib"
        lib.mkdir(parents=True)
        (lib / f"{name}.dll").write_bytes(make_assembly(name))
        (lib / f"lib{name}__rosidl_typesupport_c.dll").write_bytes(make_native_dll())
        roots.append(tmp_path / f"root{index}")
    return roots


# -- Message files -----------------------------------------------------------

@pytest.fixture
def msg_dir(tmp_path):
    """A geometry_msgs-like package directory."""
    d = tmp_path / "geometry_msgs" / "msg"
    d.mkdir(parents=True)
    (d / "Point.msg").write_text(POINT_MSG)
    (d / "Pose.msg").write_text(POSE_MSG)
    return d


@pytest.fixture
def config():
    return load_cfg()


@pytest.fixture(autouse=True)
def reset_log_level():
    level = NodeLogger.get_level()
    yield
    NodeLogger.set_level(level)
