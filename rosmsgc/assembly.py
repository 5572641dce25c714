"""
Structural probe for .NET assemblies.

Not every ``.dll`` under a library folder is a managed assembly; native
libraries share the extension. Instead of trying to load each candidate,
``probe_assembly`` reads the file's headers and returns an AssemblyProbe
that either carries the declared assembly name or the reason the file is
not an assembly.

The walk follows ECMA-335 Partition II:

    DOS header -> PE header -> CLI header (data directory 14)
    -> metadata root ("BSJB") -> #~ and #Strings streams
    -> table rows up to the Assembly table (0x20) -> Name column

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>
Licensed under the Apache License, Version 2.0
"""

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


class BadImageFormat(Exception):
    """The file is not a readable .NET assembly."""


@dataclass(frozen=True)
class AssemblyProbe:
    """Result of probing a candidate module file."""

    path: str
    name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.name is not None


# =============================================================================
# Metadata table schemas (ECMA-335 II.22)
# =============================================================================

ASSEMBLY_TABLE = 0x20
METADATA_SIGNATURE = 0x424A5342  # "BSJB"
CLI_HEADER_DIRECTORY = 14

# Column kinds: int = fixed width, "s"/"g"/"b" = string/guid/blob heap index,
# ("t", table) = simple table index, ("c", name) = coded index
STRING, GUID, BLOB = "s", "g", "b"


def _t(table: int) -> Tuple[str, int]:
    return ("t", table)


def _c(name: str) -> Tuple[str, str]:
    return ("c", name)


# coded index name -> (tag bits, referenced tables)
CODED_INDEXES: Dict[str, Tuple[int, Tuple[int, ...]]] = {
    "TypeDefOrRef": (2, (0x02, 0x01, 0x1B)),
    "HasConstant": (2, (0x04, 0x08, 0x17)),
    "HasCustomAttribute": (5, (
        0x06, 0x04, 0x01, 0x02, 0x08, 0x09, 0x0A, 0x00, 0x0E, 0x17, 0x14,
        0x11, 0x1A, 0x1B, 0x20, 0x23, 0x26, 0x27, 0x28, 0x2A, 0x2C, 0x2B,
    )),
    "HasFieldMarshal": (1, (0x04, 0x08)),
    "HasDeclSecurity": (2, (0x02, 0x06, 0x20)),
    "MemberRefParent": (3, (0x02, 0x01, 0x1A, 0x06, 0x1B)),
    "HasSemantics": (1, (0x14, 0x17)),
    "MethodDefOrRef": (1, (0x06, 0x0A)),
    "MemberForwarded": (1, (0x04, 0x06)),
    "ResolutionScope": (2, (0x00, 0x1A, 0x23, 0x01)),
    "CustomAttributeType": (3, (0x06, 0x0A)),
}

TABLE_SCHEMAS: Dict[int, tuple] = {
    0x00: (2, STRING, GUID, GUID, GUID),                                  # Module
    0x01: (_c("ResolutionScope"), STRING, STRING),                        # TypeRef
    0x02: (4, STRING, STRING, _c("TypeDefOrRef"), _t(0x04), _t(0x06)),    # TypeDef
    0x03: (_t(0x04),),                                                    # FieldPtr
    0x04: (2, STRING, BLOB),                                              # Field
    0x05: (_t(0x06),),                                                    # MethodPtr
    0x06: (4, 2, 2, STRING, BLOB, _t(0x08)),                              # MethodDef
    0x07: (_t(0x08),),                                                    # ParamPtr
    0x08: (2, 2, STRING),                                                 # Param
    0x09: (_t(0x02), _c("TypeDefOrRef")),                                 # InterfaceImpl
    0x0A: (_c("MemberRefParent"), STRING, BLOB),                          # MemberRef
    0x0B: (2, _c("HasConstant"), BLOB),                                   # Constant
    0x0C: (_c("HasCustomAttribute"), _c("CustomAttributeType"), BLOB),    # CustomAttribute
    0x0D: (_c("HasFieldMarshal"), BLOB),                                  # FieldMarshal
    0x0E: (2, _c("HasDeclSecurity"), BLOB),                               # DeclSecurity
    0x0F: (2, 4, _t(0x02)),                                               # ClassLayout
    0x10: (4, _t(0x04)),                                                  # FieldLayout
    0x11: (BLOB,),                                                        # StandAloneSig
    0x12: (_t(0x02), _t(0x14)),                                           # EventMap
    0x13: (_t(0x14),),                                                    # EventPtr
    0x14: (2, STRING, _c("TypeDefOrRef")),                                # Event
    0x15: (_t(0x02), _t(0x17)),                                           # PropertyMap
    0x16: (_t(0x17),),                                                    # PropertyPtr
    0x17: (2, STRING, BLOB),                                              # Property
    0x18: (2, _t(0x06), _c("HasSemantics")),                              # MethodSemantics
    0x19: (_t(0x02), _c("MethodDefOrRef"), _c("MethodDefOrRef")),         # MethodImpl
    0x1A: (STRING,),                                                      # ModuleRef
    0x1B: (BLOB,),                                                        # TypeSpec
    0x1C: (2, _c("MemberForwarded"), STRING, _t(0x1A)),                   # ImplMap
    0x1D: (4, _t(0x04)),                                                  # FieldRVA
    0x1E: (4, 4),                                                         # EncLog
    0x1F: (4,),                                                           # EncMap
    0x20: (4, 2, 2, 2, 2, 4, BLOB, STRING, STRING),                       # Assembly
}
ASSEMBLY_NAME_COLUMN = 7

_HEAP_FLAGS = {STRING: 0x01, GUID: 0x02, BLOB: 0x04}
_EXTRA_DATA_FLAG = 0x40


class _Image:
    """Bounds-checked little-endian reader over the raw file bytes."""

    def __init__(self, data: bytes):
        self.data = data

    def unpack(self, fmt: str, offset: int):
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(self.data):
            raise BadImageFormat(f"truncated image at offset {offset:#x}")
        return struct.unpack_from(fmt, self.data, offset)

    def u8(self, offset: int) -> int:
        return self.unpack("<B", offset)[0]

    def u16(self, offset: int) -> int:
        return self.unpack("<H", offset)[0]

    def u32(self, offset: int) -> int:
        return self.unpack("<I", offset)[0]

    def u64(self, offset: int) -> int:
        return self.unpack("<Q", offset)[0]

    def raw(self, offset: int, size: int) -> bytes:
        if offset < 0 or offset + size > len(self.data):
            raise BadImageFormat(f"truncated image at offset {offset:#x}")
        return self.data[offset:offset + size]

    def cstring(self, offset: int, limit: Optional[int] = None) -> bytes:
        end = self.data.find(b"\0", offset, limit)
        if offset < 0 or end < 0:
            raise BadImageFormat(f"unterminated string at offset {offset:#x}")
        return self.data[offset:end]


def _column_size(column, heap_sizes: int, rows: Dict[int, int]) -> int:
    if isinstance(column, int):
        return column
    if column in _HEAP_FLAGS:
        return 4 if heap_sizes & _HEAP_FLAGS[column] else 2
    kind, ref = column
    if kind == "t":
        return 4 if rows.get(ref, 0) > 0xFFFF else 2
    bits, tables = CODED_INDEXES[ref]
    largest = max(rows.get(t, 0) for t in tables)
    return 2 if largest < (1 << (16 - bits)) else 4


def _row_size(table: int, heap_sizes: int, rows: Dict[int, int]) -> int:
    return sum(_column_size(c, heap_sizes, rows) for c in TABLE_SCHEMAS[table])


def _sections(image: _Image, offset: int, count: int) -> List[Tuple[int, int, int]]:
    """Return (virtual address, span, raw pointer) for each section header."""
    sections = []
    for i in range(count):
        base = offset + i * 40
        virtual_size, virtual_address, raw_size, raw_pointer = image.unpack("<IIII", base + 8)
        sections.append((virtual_address, max(virtual_size, raw_size), raw_pointer))
    return sections


def _rva_to_offset(sections: List[Tuple[int, int, int]], rva: int) -> int:
    for virtual_address, span, raw_pointer in sections:
        if virtual_address <= rva < virtual_address + span:
            return rva - virtual_address + raw_pointer
    raise BadImageFormat(f"RVA {rva:#x} is outside every section")


def read_assembly_name(data: bytes) -> str:
    """Extract the declared assembly name from the bytes of a PE file.

    Raises:
        BadImageFormat: If the bytes are not a .NET assembly
    """
    image = _Image(data)
    if image.raw(0, 2) != b"MZ":
        raise BadImageFormat("missing MZ signature")
    pe = image.u32(0x3C)
    if image.raw(pe, 4) != b"PE\0\0":
        raise BadImageFormat("missing PE signature")

    coff = pe + 4
    section_count = image.u16(coff + 2)
    optional_size = image.u16(coff + 16)
    optional = coff + 20
    magic = image.u16(optional)
    if magic == 0x10B:      # PE32
        count_offset, directories = 92, 96
    elif magic == 0x20B:    # PE32+
        count_offset, directories = 108, 112
    else:
        raise BadImageFormat(f"unknown optional header magic {magic:#x}")

    if image.u32(optional + count_offset) <= CLI_HEADER_DIRECTORY:
        raise BadImageFormat("no CLI header (native image)")
    cli_rva = image.u32(optional + directories + CLI_HEADER_DIRECTORY * 8)
    if cli_rva == 0:
        raise BadImageFormat("no CLI header (native image)")

    sections = _sections(image, optional + optional_size, section_count)
    cli = _rva_to_offset(sections, cli_rva)
    metadata = _rva_to_offset(sections, image.u32(cli + 8))
    if image.u32(metadata) != METADATA_SIGNATURE:
        raise BadImageFormat("missing metadata signature")

    # Stream headers follow the padded runtime version string
    pos = metadata + 16 + image.u32(metadata + 12)
    stream_count = image.u16(pos + 2)
    pos += 4
    streams: Dict[str, Tuple[int, int]] = {}
    for _ in range(stream_count):
        offset, size = image.unpack("<II", pos)
        name = image.cstring(pos + 8)
        streams[name.decode("ascii", "replace")] = (metadata + offset, size)
        pos += 8 + ((len(name) + 1 + 3) & ~3)

    tables = streams.get("#~") or streams.get("#-")
    strings = streams.get("#Strings")
    if tables is None or strings is None:
        raise BadImageFormat("metadata has no table or string stream")

    tables_offset = tables[0]
    heap_sizes = image.u8(tables_offset + 6)
    valid = image.u64(tables_offset + 8)
    pos = tables_offset + 24
    rows: Dict[int, int] = {}
    for table in range(64):
        if valid >> table & 1:
            rows[table] = image.u32(pos)
            pos += 4
    if heap_sizes & _EXTRA_DATA_FLAG:
        pos += 4

    if not rows.get(ASSEMBLY_TABLE):
        raise BadImageFormat("no assembly manifest (module only)")
    for table in range(ASSEMBLY_TABLE):
        if table in rows:
            pos += rows[table] * _row_size(table, heap_sizes, rows)

    schema = TABLE_SCHEMAS[ASSEMBLY_TABLE]
    pos += sum(_column_size(c, heap_sizes, rows) for c in schema[:ASSEMBLY_NAME_COLUMN])
    if _column_size(STRING, heap_sizes, rows) == 4:
        name_index = image.u32(pos)
    else:
        name_index = image.u16(pos)

    strings_offset, strings_size = strings
    if name_index >= strings_size:
        raise BadImageFormat("assembly name outside string heap")
    raw_name = image.cstring(strings_offset + name_index, strings_offset + strings_size)
    try:
        name = raw_name.decode("utf-8")
    except UnicodeDecodeError:
        raise BadImageFormat("assembly name is not valid UTF-8") from None
    if not name:
        raise BadImageFormat("assembly has an empty name")
    return name


def probe_assembly(path: Union[str, Path]) -> AssemblyProbe:
    """Probe a candidate file; never raises for unreadable or foreign files."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        return AssemblyProbe(str(path), error=f"cannot read file: {e.strerror or e}")
    try:
        return AssemblyProbe(str(path), name=read_assembly_name(data))
    except BadImageFormat as e:
        return AssemblyProbe(str(path), error=str(e))
