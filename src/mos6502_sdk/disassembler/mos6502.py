"""
MOS 6502 Disassembler
=====================

Disassembles 6502 machine code into assembly source that as6502 accepts.
This is the inverse operation of the assembler's code generation.

Disassembly of an object runs in two passes over each blob:

1. **Label derivation**: every branch, ``jmp`` and ``jsr`` whose target is
   the start of an instruction in the object and has no symbol yet gets a
   synthesized label ``Label1``, ``Label2``, ... (numbering continues
   across blobs).
2. **Printing**: each instruction is printed as ``mnemonic operand``,
   preceded by a ``Name:`` line when a label sits at its address. Branch
   and jump targets that carry a symbol are printed by name.

Operand Formats:
    - accumulator: ``A``
    - immediate: ``#$xx``
    - zero page: ``*$xx``, ``*$xx,X``, ``*$xx,Y``
    - absolute: ``$xxxx``, ``$xxxx,X``, ``$xxxx,Y``
    - relative: the target's label, else the raw delta ``$xx``
    - indirect: ``($xxxx)``, ``($xx,X)``, ``($xx),Y``

Usage:
    disasm = Disassembler()

    # Disassemble a whole object
    for line in disasm.disassemble_object(obj):
        print(line)

    # Disassemble single instruction
    instr = disasm.disassemble_one(code, address=0x0600)
    print(f"{instr.address:04X}: {instr}")
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from ..cpu.mos6502 import (
    AddressingMode,
    BRANCH_OPCODES,
    CONTROL_FLOW_OPCODES,
    UNKNOWN_MNEMONIC,
    decode,
    instruction_length,
    opcode_length,
)
from ..objfile.object import Blob, ObjectFile
from ..symbols import Symbol, SymbolTable

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled 6502 instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The opcode byte
        mnemonic: The instruction mnemonic (e.g., "lda", "jsr"), or "???"
        mode: The addressing mode used
        operand_bytes: Raw operand bytes (may be empty)
        operand_str: Formatted operand string for display
        size: Number of bytes consumed
        raw_bytes: All bytes comprising this instruction
        label: Name of the label at this address, if any
    """
    address: int
    opcode: int
    mnemonic: str
    mode: AddressingMode
    operand_bytes: bytes
    operand_str: str
    size: int
    raw_bytes: bytes
    label: Optional[str] = None

    @property
    def text(self) -> str:
        """Assembly text: MNEMONIC OPERAND"""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        return self.text

    def annotated(self) -> str:
        """Format as ``0x0000: a9 ff    -    lda #$ff``."""
        hex_bytes = " ".join(f"{b:02x}" for b in self.raw_bytes)
        return f"{self.address:#06x}: {hex_bytes:8s} -    {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "mode": str(self.mode),
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "label": self.label,
        }


# =============================================================================
# 6502 Disassembler
# =============================================================================

class Disassembler:
    """
    Disassembler for 6502 machine code.

    Decoding goes through the shared opcode table in mos6502_sdk.cpu, so
    every byte the assembler can produce decodes back to the same
    (mnemonic, mode) pair.

    Attributes:
        symbols: Symbol table used to name labels; synthesized labels are
            added to it
    """

    LABEL_PREFIX = "Label"

    def __init__(self, symbol_table: Optional[SymbolTable] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional symbols (e.g. from an as6502 sidecar) used
                to name labels and jump targets
        """
        self.symbols = symbol_table if symbol_table is not None else SymbolTable("<disassembly>")
        self._next_label = 1

    # =========================================================================
    # Single Instructions
    # =========================================================================

    def disassemble_one(self, data: bytes, address: int = 0,
                        offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        mnemonic, mode = decode(opcode)
        label = self._label_name(address)

        if mnemonic == UNKNOWN_MNEMONIC:
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=UNKNOWN_MNEMONIC,
                mode=mode,
                operand_bytes=b"",
                operand_str="",
                size=1,
                raw_bytes=bytes([opcode]),
                label=label,
            )

        size = instruction_length(mode)
        if offset + size > len(data):
            partial = bytes(data[offset:])
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=mnemonic,
                mode=mode,
                operand_bytes=partial[1:],
                operand_str=UNKNOWN_MNEMONIC,
                size=len(partial),
                raw_bytes=partial,
                label=label,
            )

        raw_bytes = bytes(data[offset:offset + size])
        operand_bytes = raw_bytes[1:]

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=mnemonic,
            mode=mode,
            operand_bytes=operand_bytes,
            operand_str=self._format_operand(opcode, mode, operand_bytes, address),
            size=size,
            raw_bytes=raw_bytes,
            label=label,
        )

    def _format_operand(self, opcode: int, mode: AddressingMode,
                        operand_bytes: bytes, address: int) -> str:
        """Format the operand string based on addressing mode."""
        if mode is AddressingMode.IMPLIED:
            return ""
        if mode is AddressingMode.ACCUMULATOR:
            return "A"

        if opcode in CONTROL_FLOW_OPCODES:
            target = branch_target(opcode, operand_bytes, address)
            name = self._label_name(target)
            if mode is AddressingMode.INDIRECT:
                return f"({name})" if name else f"(${target:04x})"
            if name:
                return name
            if mode is AddressingMode.RELATIVE:
                return f"${operand_bytes[0]:02x}"
            return f"${target:04x}"

        if len(operand_bytes) == 2:
            value = operand_bytes[0] | (operand_bytes[1] << 8)
        else:
            value = operand_bytes[0]

        formats = {
            AddressingMode.IMMEDIATE: "#${:02x}",
            AddressingMode.ZEROPAGE: "*${:02x}",
            AddressingMode.ZEROPAGE_X: "*${:02x},X",
            AddressingMode.ZEROPAGE_Y: "*${:02x},Y",
            AddressingMode.ABSOLUTE: "${:04x}",
            AddressingMode.ABSOLUTE_X: "${:04x},X",
            AddressingMode.ABSOLUTE_Y: "${:04x},Y",
            AddressingMode.INDIRECT_X: "(${:02x},X)",
            AddressingMode.INDIRECT_Y: "(${:02x}),Y",
        }
        return formats[mode].format(value)

    def _label_name(self, address: int) -> Optional[str]:
        symbol = self.symbols.symbol_for_address(address)
        if symbol is not None and symbol.is_label:
            return symbol.name
        return None

    # =========================================================================
    # Blobs and Objects
    # =========================================================================

    def derive_symbols(self, obj: ObjectFile) -> List[Symbol]:
        """
        Pass 1: synthesize labels for branch and jump targets.

        Only targets that start an instruction inside the object are
        labeled, so every synthesized name is printed somewhere.

        Returns:
            The symbols that were added
        """
        starts = set()
        for blob in obj.blobs:
            starts.update(address for address, _ in _walk(blob))

        added = []
        for blob in obj.blobs:
            for address, offset in _walk(blob):
                opcode = blob.data[offset]
                size = opcode_length(opcode)
                if opcode not in CONTROL_FLOW_OPCODES or offset + size > len(blob):
                    continue

                target = branch_target(opcode, bytes(blob.data[offset + 1:offset + size]), address)
                if target not in starts or self._label_name(target) is not None:
                    continue

                name = f"{self.LABEL_PREFIX}{self._next_label}"
                self._next_label += 1
                added.append(self.symbols.add_label(name, target, 0))
                logger.debug(f"Synthesized {name} at ${target:04X}")

        return added

    def disassemble_blob(self, blob: Blob) -> List[DisassembledInstruction]:
        """Disassemble every instruction of one blob."""
        return self.disassemble(bytes(blob.data), blob.start)

    def disassemble(self, data: bytes, start_address: int = 0,
                    count: Optional[int] = None) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of first byte
            count: Maximum number of instructions to disassemble (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break

            instr = self.disassemble_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def disassemble_object(self, obj: ObjectFile, annotate: bool = False) -> List[str]:
        """
        Disassemble every blob of an object into source lines.

        Args:
            obj: Object to disassemble
            annotate: Prefix lines with address and bytes

        Returns:
            Lines: ``Name:`` label lines and tab-indented instructions
        """
        self.derive_symbols(obj)

        lines = []
        for blob in obj.blobs:
            for instr in self.disassemble_blob(blob):
                if instr.label:
                    if annotate:
                        lines.append(f"{instr.address:#06x}: {'':8s} -    {instr.label}:")
                    else:
                        lines.append(f"{instr.label}:")
                lines.append(instr.annotated() if annotate else f"\t{instr.text}")
        return lines

    def disassemble_to_text(self, obj: ObjectFile, annotate: bool = False) -> str:
        """
        Disassemble and return formatted text output.

        Returns:
            Multi-line string with disassembly listing
        """
        return "\n".join(self.disassemble_object(obj, annotate)) + "\n"

    def add_symbol(self, address: int, name: str) -> None:
        """Add a label to the symbol table."""
        self.symbols.add_label(name, address)

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        """
        Add multiple labels to the symbol table.

        Args:
            symbols: Dictionary mapping addresses to names
        """
        for address, name in symbols.items():
            self.add_symbol(address, name)


# =============================================================================
# Helpers
# =============================================================================

def branch_target(opcode: int, operand_bytes: bytes, address: int) -> int:
    """
    Target address of a branch, jump or call.

    Relative branches land at ``address + 2 + signed(displacement)``; jumps
    and calls carry the absolute target (or vector address for ``jmp ()``)
    little-endian in their operand.
    """
    if opcode in BRANCH_OPCODES:
        displacement = operand_bytes[0]
        if displacement >= 0x80:
            displacement -= 256
        return (address + 2 + displacement) & 0xFFFF
    return operand_bytes[0] | (operand_bytes[1] << 8)


def _walk(blob: Blob):
    """Yield (address, offset) of each instruction start in a blob."""
    offset = 0
    while offset < len(blob):
        yield blob.start + offset, offset
        offset += opcode_length(blob.data[offset])
