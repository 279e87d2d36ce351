"""
6502 Object Linker
==================

Merges several assembled objects into one flat program image and writes
it as an iNES cartridge.

Linking Process
---------------
1. **Concatenate**: every blob of every input is appended, in input order,
   to the single blob of the result, which starts at the load address of
   the first blob holding data. Inputs are expected to have been
   assembled for the address they end up at (``as6502 --base`` or
   ``.org``); a mismatch is logged as a warning. Flat inputs get their
   load address back from the segment table of their ``.sym`` sidecar.
2. **Merge symbols**: each input's symbol table is folded into one table.
   A name defined twice at the same address is accepted once; at two
   different addresses it is a LinkDuplicateSymbolError naming both
   definition lines. Every input allocates variables from the same area,
   so differently named variables sharing a cell are logged as a warning.
3. **Resolve references**: operands that an input left for the linker
   (``as6502 -c``) are looked up in the merged table and patched in place.
   Branch deltas are measured from the address the branch was assembled
   at. A name that no input defines is an UnresolvedSymbolError.

Any error aborts the link before an output file is opened, so a failed
link never leaves a partial image behind.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional
import logging

from mos6502_sdk.config import ToolchainConfig
from mos6502_sdk.cpu.mos6502 import AddressingMode
from mos6502_sdk.errors import (
    LinkDuplicateSymbolError,
    LinkError,
    SourceLocation,
    UnresolvedSymbolError,
)
from mos6502_sdk.objfile.ines import INESProperties, write_ines
from mos6502_sdk.objfile.loader import ObjectFormat, attach_symbols, detect_format, read_object
from mos6502_sdk.objfile.object import Blob, ObjectFile, SymbolReference
from mos6502_sdk.objfile.symfile import load_symbol_file, sidecar_path
from mos6502_sdk.symbols import Symbol, SymbolTable

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    """
    Output of a successful link.

    Attributes:
        object: Linked program; blob 0 holds the whole image
        chr_object: Character ROM to place after PRG-ROM, if any
        inputs: Names of the linked inputs, in link order
    """
    object: ObjectFile
    chr_object: Optional[ObjectFile] = None
    inputs: list[str] = field(default_factory=list)

    @property
    def prg_rom(self) -> Blob:
        return self.object.blobs[0]

    @property
    def chr_rom(self) -> Optional[Blob]:
        return self.chr_object.blobs[0] if self.chr_object is not None else None


class Linker:
    """
    Links 6502 objects into a single image.

    Usage:
        linker = Linker()
        result = linker.link_files(["main.o", "lib.o"], chr_path="tiles.chr")
        linker.write_ines_file(result, "game.nes")
    """

    def __init__(self, config: Optional[ToolchainConfig] = None):
        self.config = config or ToolchainConfig()

    # =========================================================================
    # Linking
    # =========================================================================

    def link(self, objects: list[ObjectFile], chr_object: Optional[ObjectFile] = None,
             names: Optional[list[str]] = None) -> LinkResult:
        """
        Link objects into one.

        The image starts at the load address of the first blob that holds
        data, so an input that opens with ``.org`` (leaving blob 0 empty)
        places the image at its origin.

        Args:
            objects: Inputs in link order
            chr_object: Optional CHR-ROM object passed through to the result
            names: Display names of the inputs, for diagnostics

        Returns:
            LinkResult holding the merged object

        Raises:
            LinkDuplicateSymbolError: If two inputs define a name at
                different addresses
            UnresolvedSymbolError: If a reference names an undefined symbol
            LinkError: If a patched branch is out of range, or a reference
                points outside its object
        """
        names = names or [f"<object {i}>" for i in range(len(objects))]
        populated = [blob for obj in objects for blob in obj.non_empty_blobs()]
        start = populated[0].start if populated else self.config.program_start

        merged = ObjectFile(start, SymbolTable("<linked>"))
        image = merged.blobs[0]
        definitions: dict[str, str] = {}
        # (input index, blob index) -> offset of that blob inside the image
        placements: dict[tuple[int, int], int] = {}

        for i, obj in enumerate(objects):
            for j, blob in enumerate(obj.blobs):
                placements[(i, j)] = len(image)
                if blob.data and blob.start != image.address:
                    logger.warning(
                        f"{names[i]}: blob {j} was assembled for ${blob.start:04X} "
                        f"but is placed at ${image.address:04X}"
                    )
                image.data.extend(blob.data)
            logger.debug(f"Placed {names[i]}: {obj.size} bytes")

            if obj.symbols is not None:
                self._merge_symbols(merged.symbols, obj.symbols, names[i], definitions)

        for i, obj in enumerate(objects):
            for ref in obj.references:
                if (i, ref.blob) not in placements:
                    raise LinkError(
                        f"{names[i]}:{ref.line}: reference to '{ref.name}' lies in "
                        f"segment {ref.blob}, which the object does not have"
                    )
                offset = placements[(i, ref.blob)] + ref.offset
                site = obj.blobs[ref.blob].start + ref.offset
                self._patch(image, offset, site, ref, merged.symbols, names[i])

        logger.debug(
            f"Linked {len(objects)} object(s): {len(image)} bytes, "
            f"{len(merged.symbols)} symbols"
        )
        return LinkResult(merged, chr_object, list(names))

    def _merge_symbols(self, merged: SymbolTable, table: SymbolTable, name: str,
                       definitions: dict[str, str]) -> None:
        """Fold one input's symbols into the merged table."""
        for symbol in table:
            existing = merged.lookup(symbol.name)
            if existing is None:
                if symbol.is_variable:
                    self._check_variable_storage(merged, symbol, name, definitions)
                merged.add(symbol)
                definitions[symbol.name] = name
                continue
            if existing.address == symbol.address:
                continue
            raise LinkDuplicateSymbolError(
                symbol.name,
                existing.line,
                symbol.line,
                first_file=definitions[symbol.name],
                second_file=name,
            )

    def _check_variable_storage(self, merged: SymbolTable, symbol: Symbol, name: str,
                                definitions: dict[str, str]) -> None:
        # Each input allocates variables from the same area
        for other in merged.variables():
            if other.address == symbol.address:
                logger.warning(
                    f"{name}: variable '{symbol.name}' shares storage "
                    f"${symbol.address:04X} with '{other.name}' from "
                    f"{definitions[other.name]}"
                )

    def _patch(self, image: Blob, offset: int, site: int, ref: SymbolReference,
               symbols: SymbolTable, name: str) -> None:
        """
        Write a resolved reference into the image.

        Args:
            image: Linked image
            offset: Offset of the operand inside the image
            site: Address the operand was assembled at; branch deltas are
                measured from the byte after it
            ref: Reference to resolve
            symbols: Merged symbol table
            name: Display name of the referencing input
        """
        symbol = symbols.lookup(ref.name)
        if symbol is None:
            raise UnresolvedSymbolError(ref.name, SourceLocation(name, ref.line))

        if offset + ref.width > len(image):
            raise LinkError(f"{name}: reference to '{ref.name}' lies outside its object")

        if ref.mode is AddressingMode.RELATIVE:
            delta = symbol.address - (site + 1)
            if not -128 <= delta <= 127:
                raise LinkError(
                    f"{name}:{ref.line}: branch to '{ref.name}' is out of range "
                    f"(offset: {delta})"
                )
            image.data[offset] = delta & 0xFF
        elif ref.width == 2:
            image.data[offset] = symbol.address & 0xFF
            image.data[offset + 1] = (symbol.address >> 8) & 0xFF
        else:
            image.data[offset] = symbol.address & 0xFF

        logger.debug(f"Patched '{ref.name}' = ${symbol.address:04X} at offset {offset}")

    # =========================================================================
    # File Handling
    # =========================================================================

    def load_input(self, path: str | Path, fmt: Optional[ObjectFormat] = None) -> ObjectFile:
        """
        Load one linker input with its symbol sidecar, if present.

        Only the PRG-ROM of an iNES input takes part in the link.
        """
        with open(path, "rb") as f:
            detected = fmt or detect_format(f)
            obj = read_object(f, detected)

        if detected is ObjectFormat.INES:
            obj.blobs = obj.blobs[:1]

        sym_path = sidecar_path(path)
        if sym_path.exists():
            attach_symbols(obj, load_symbol_file(sym_path), detected)
            logger.debug(f"Loaded symbols for {path} from {sym_path}")
        return obj

    def load_chr(self, path: str | Path) -> ObjectFile:
        """Load CHR-ROM data: the CHR blob of an iNES file, or a whole flat file."""
        with open(path, "rb") as f:
            if detect_format(f) is ObjectFormat.INES:
                ines = read_object(f, ObjectFormat.INES)
                chr_object = ObjectFile(0)
                chr_object.blobs[0].data.extend(ines.blobs[1].data)
                return chr_object
            return read_object(f, ObjectFormat.FLAT)

    def link_files(self, paths: list[str | Path], chr_path: Optional[str | Path] = None,
                   fmt: Optional[ObjectFormat] = None) -> LinkResult:
        """Load and link object files."""
        objects = [self.load_input(p, fmt) for p in paths]
        chr_object = self.load_chr(chr_path) if chr_path is not None else None
        return self.link(objects, chr_object, [str(p) for p in paths])

    def write_ines(self, result: LinkResult, stream: BinaryIO,
                   properties: Optional[INESProperties] = None) -> int:
        """Write a link result as an iNES image. Returns bytes written."""
        return write_ines(stream, result.prg_rom, result.chr_rom, properties)

    def write_ines_file(self, result: LinkResult, path: str | Path,
                        properties: Optional[INESProperties] = None) -> int:
        """
        Write a link result to disk as an iNES image.

        The image is built in memory first so a failure leaves no file.
        """
        buffer = BytesIO()
        size = self.write_ines(result, buffer, properties)
        Path(path).write_bytes(buffer.getvalue())
        logger.debug(f"Wrote {size} bytes to {path}")
        return size
