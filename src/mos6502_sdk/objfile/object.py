"""
Object Model
============

In-memory form of an assembled or linked program: an ordered list of
segments ("blobs"), each a load address plus a byte buffer, with an
optional symbol table and the list of symbol references still waiting for
the linker.

A fresh object always has one (possibly empty) blob at index 0. Which blob
receives emitted bytes is tracked by an explicit BlobCursor value that the
directive handler returns to its caller, rather than by state stored on the
object.
"""

from dataclasses import dataclass, field
from typing import Optional

from mos6502_sdk.cpu.mos6502 import AddressingMode
from mos6502_sdk.symbols import SymbolTable


@dataclass
class Blob:
    """
    One contiguous segment of an object.

    Attributes:
        start: Load address of the first byte
        data: Segment contents
    """
    start: int
    data: bytearray = field(default_factory=bytearray)

    @property
    def end(self) -> int:
        """Address one past the last byte."""
        return self.start + len(self.data)

    @property
    def address(self) -> int:
        """Address the next appended byte will occupy."""
        return self.end

    def append(self, value: int) -> None:
        self.data.append(value & 0xFF)

    def extend(self, values) -> None:
        for value in values:
            self.append(value)

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class BlobCursor:
    """Index of the blob that receives emitted bytes."""
    index: int = 0

    def moved_to(self, index: int) -> "BlobCursor":
        return BlobCursor(index)


@dataclass(frozen=True)
class SymbolReference:
    """
    An operand left for the linker to fill in.

    Attributes:
        name: Referenced symbol
        blob: Index of the blob holding the operand
        offset: Offset of the operand's first byte within that blob
        mode: Addressing mode the operand was encoded with; decides whether
            the linker writes a relative delta, one byte, or two bytes
        line: Source line of the reference
    """
    name: str
    blob: int
    offset: int
    mode: AddressingMode
    line: int = 0

    @property
    def width(self) -> int:
        """Number of operand bytes to patch."""
        if self.mode in (AddressingMode.ABSOLUTE, AddressingMode.ABSOLUTE_X,
                         AddressingMode.ABSOLUTE_Y, AddressingMode.INDIRECT):
            return 2
        return 1


class ObjectFile:
    """
    An assembled or linked program.

    Attributes:
        blobs: Segments in creation order (never empty)
        symbols: Symbol table, when one is associated with the object
        references: Unresolved operands recorded for the linker
    """

    def __init__(self, start: int = 0, symbols: Optional[SymbolTable] = None):
        self.blobs: list[Blob] = [Blob(start)]
        self.symbols = symbols
        self.references: list[SymbolReference] = []

    def add_blob(self, start: int) -> int:
        """Append a new, empty blob and return its index."""
        self.blobs.append(Blob(start & 0xFFFF))
        return len(self.blobs) - 1

    def append_byte(self, blob: int, value: int) -> None:
        self.blobs[blob].append(value)

    def blob(self, index: int) -> Blob:
        return self.blobs[index]

    def non_empty_blobs(self) -> list[Blob]:
        return [b for b in self.blobs if b.data]

    @property
    def size(self) -> int:
        """Total number of bytes across all blobs."""
        return sum(len(b) for b in self.blobs)

    def is_empty(self) -> bool:
        return self.size == 0

    def __repr__(self) -> str:
        segments = ", ".join(f"${b.start:04X}+{len(b)}" for b in self.blobs)
        return f"ObjectFile([{segments}])"
