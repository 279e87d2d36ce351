"""
Object Files
============

In-memory object model and the container formats it is stored in.

Modules:
    object: Blobs, blob cursor, symbol references and ObjectFile
    flat: Raw binary (no header)
    aout: a.out-style dump of the first blob
    ines: NES cartridge image (header + PRG-ROM + CHR-ROM)
    symfile: Text sidecar carrying symbols and unresolved references
    loader: Format detection, load_object and save_object
"""

from mos6502_sdk.objfile.object import Blob, BlobCursor, ObjectFile, SymbolReference
from mos6502_sdk.objfile.flat import read_flat, write_flat
from mos6502_sdk.objfile.aout import write_aout
from mos6502_sdk.objfile.ines import (
    INES_MAGIC,
    INESProperties,
    VideoStandard,
    read_ines,
    write_ines,
    write_object_ines,
)
from mos6502_sdk.objfile.symfile import (
    Segment,
    SymbolFile,
    load_symbol_file,
    read_symbol_file,
    sidecar_path,
    write_symbol_file,
)
from mos6502_sdk.objfile.loader import (
    ObjectFormat,
    attach_symbols,
    detect_format,
    load_object,
    read_object,
    save_object,
)

__all__ = [
    "Blob",
    "BlobCursor",
    "ObjectFile",
    "SymbolReference",
    "read_flat",
    "write_flat",
    "write_aout",
    "INES_MAGIC",
    "INESProperties",
    "VideoStandard",
    "read_ines",
    "write_ines",
    "write_object_ines",
    "Segment",
    "SymbolFile",
    "load_symbol_file",
    "read_symbol_file",
    "sidecar_path",
    "write_symbol_file",
    "ObjectFormat",
    "attach_symbols",
    "detect_format",
    "load_object",
    "read_object",
    "save_object",
]
