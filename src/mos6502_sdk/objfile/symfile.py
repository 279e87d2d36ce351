"""
Symbol Sidecar Files
====================

Object containers carry no symbol information, so the assembler writes a
text sidecar (``prog.o`` -> ``prog.sym``) that the linker reads back.

Format
------
    # Symbol table
    # Generated by as6502
    [SEGMENTS]
    <index> $<start> <length>
    [SYMBOLS]
    <name> $<hhhh> <label|variable> <line>
    [REFERENCES]
    <name> <blob> <offset> <mode> <line>

Blank lines and lines starting with ``#`` are ignored. Modes use the
human-readable names of AddressingMode (``absolute``, ``relative``, ...).

The segment table lists every blob of the assembled object. A flat or
a.out container keeps only one of them, so a reader uses it to recover
that blob's load address and to renumber the references that point
into it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO, Union

from mos6502_sdk.cpu.mos6502 import AddressingMode
from mos6502_sdk.errors import FormatError
from mos6502_sdk.objfile.object import ObjectFile, SymbolReference
from mos6502_sdk.symbols import Symbol, SymbolKind, SymbolTable


SEGMENTS_SECTION = "[SEGMENTS]"
SYMBOLS_SECTION = "[SYMBOLS]"
REFERENCES_SECTION = "[REFERENCES]"

_MODES_BY_NAME = {str(mode): mode for mode in AddressingMode}


@dataclass(frozen=True)
class Segment:
    """One blob of the assembled object, as listed in the sidecar."""
    index: int
    start: int
    length: int


@dataclass
class SymbolFile:
    """
    Parsed contents of a sidecar.

    Attributes:
        symbols: Labels and variables defined by the object
        references: Operands left for the linker, by original blob index
        segments: Blob table of the assembled object (empty for sidecars
            written without one)
    """
    symbols: SymbolTable
    references: list[SymbolReference] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)


def sidecar_path(object_path: Union[str, Path]) -> Path:
    """Path of the symbol file that accompanies an object file."""
    return Path(object_path).with_suffix(".sym")


def write_symbol_file(obj: ObjectFile, stream: TextIO) -> None:
    """Write an object's segments, symbols and unresolved references."""
    stream.write("# Symbol table\n")
    stream.write("# Generated by as6502\n")
    stream.write(f"{SEGMENTS_SECTION}\n")
    for index, blob in enumerate(obj.blobs):
        stream.write(f"{index} ${blob.start:04X} {len(blob)}\n")
    stream.write(f"{SYMBOLS_SECTION}\n")
    if obj.symbols is not None:
        for symbol in obj.symbols.by_address():
            stream.write(
                f"{symbol.name} ${symbol.address:04X} {symbol.kind} {symbol.line}\n"
            )
    stream.write(f"{REFERENCES_SECTION}\n")
    for ref in obj.references:
        stream.write(f"{ref.name} {ref.blob} {ref.offset} {ref.mode} {ref.line}\n")


def read_symbol_file(stream: TextIO, filename: str = "<symbols>") -> SymbolFile:
    """
    Parse a symbol sidecar.

    Raises:
        FormatError: On a malformed line or an entry outside a section
    """
    result = SymbolFile(SymbolTable(filename))
    section: Optional[str] = None

    for number, raw in enumerate(stream, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line in (SEGMENTS_SECTION, SYMBOLS_SECTION, REFERENCES_SECTION):
            section = line
            continue

        fields = line.split()
        try:
            if section == SEGMENTS_SECTION and len(fields) == 3:
                index, start, length = fields
                result.segments.append(
                    Segment(int(index), int(start.lstrip("$"), 16), int(length))
                )
            elif section == SYMBOLS_SECTION and len(fields) == 4:
                name, address, kind, def_line = fields
                result.symbols.add(Symbol(
                    name,
                    SymbolKind(kind),
                    int(address.lstrip("$"), 16),
                    int(def_line),
                ))
            elif section == REFERENCES_SECTION and len(fields) == 5:
                name, blob, offset, mode, ref_line = fields
                result.references.append(SymbolReference(
                    name, int(blob), int(offset), _MODES_BY_NAME[mode], int(ref_line),
                ))
            else:
                raise ValueError("unexpected entry")
        except (ValueError, KeyError) as e:
            raise FormatError(f"{filename}:{number}: malformed symbol file entry: {line}") from e

    return result


def load_symbol_file(path: Union[str, Path]) -> SymbolFile:
    with open(path, "r", encoding="utf-8") as f:
        return read_symbol_file(f, str(path))
