"""
MOS 6502 Instruction Set Definition
===================================

This module defines the documented NMOS 6502 instruction set: opcodes,
addressing modes, and instruction sizes. It is the single source of CPU
knowledge for the assembler (which encodes instructions), the disassembler
(which decodes them) and any runtime that needs to know how many bytes an
opcode occupies.

The 6502 is little-endian: 16-bit operands are stored low byte first.

Addressing Modes
----------------
Thirteen encodable modes, plus two sentinels used while parsing:

==============  ==============  =====  ===========================
Mode            Syntax          Bytes  Example
==============  ==============  =====  ===========================
implied         OPC             1      ``nop`` -> $EA
accumulator     OPC A           1      ``asl a`` -> $0A
immediate       OPC #BB         2      ``lda #$ff`` -> $A9 $FF
zeropage        OPC *LL         2      ``lda *$10`` -> $A5 $10
zeropage+x      OPC *LL,X       2      ``lda *$10,x`` -> $B5 $10
zeropage+y      OPC *LL,Y       2      ``ldx *$10,y`` -> $B6 $10
absolute        OPC HHLL        3      ``jmp $0600`` -> $4C $00 $06
absolute+x      OPC HHLL,X      3      ``lda $0200,x`` -> $BD $00 $02
absolute+y      OPC HHLL,Y      3      ``lda $0200,y`` -> $B9 $00 $02
indirect        OPC (HHLL)      3      ``jmp ($fffc)`` -> $6C $FC $FF
indirect+x      OPC (BB,X)      2      ``lda ($20,x)`` -> $A1 $20
indirect+y      OPC (LL),Y      2      ``lda ($20),y`` -> $B1 $20
relative        OPC BB          2      ``bne $fc`` -> $D0 $FC
symbol          OPC name        0      operand is a not-yet-resolved name
unknown         (parse failure) 0
==============  ==============  =====  ===========================

Reference
---------
- MOS MCS6500 Microcomputer Family Programming Manual (1976)
- http://www.6502.org/tutorials/6502opcodes.html
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from mos6502_sdk.errors import AddressingModeError, ParseError, UnknownMnemonicError


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """
    6502 addressing modes.

    Each addressing mode determines how the operand is interpreted
    and fixes the encoded instruction length.
    """
    IMPLIED = auto()      # No operand (nop, rts)
    ACCUMULATOR = auto()  # Operates on A (asl a)
    IMMEDIATE = auto()    # #value (literal byte)
    ZEROPAGE = auto()     # *$LL (first 256 bytes)
    ZEROPAGE_X = auto()   # *$LL,X
    ZEROPAGE_Y = auto()   # *$LL,Y
    ABSOLUTE = auto()     # $HHLL
    ABSOLUTE_X = auto()   # $HHLL,X
    ABSOLUTE_Y = auto()   # $HHLL,Y
    INDIRECT = auto()     # ($HHLL) - jmp only
    INDIRECT_X = auto()   # ($LL,X)
    INDIRECT_Y = auto()   # ($LL),Y
    RELATIVE = auto()     # Branch displacement (signed 8-bit)
    SYMBOL = auto()       # Operand is a name, width unknown until resolved
    UNKNOWN = auto()      # Could not be classified

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return _MODE_NAMES[self]

    @property
    def length(self) -> int:
        """Encoded instruction length in bytes for this mode."""
        return instruction_length(self)


_MODE_NAMES = {
    AddressingMode.IMPLIED: "implied",
    AddressingMode.ACCUMULATOR: "accumulator",
    AddressingMode.IMMEDIATE: "immediate",
    AddressingMode.ZEROPAGE: "zeropage",
    AddressingMode.ZEROPAGE_X: "zeropage+x",
    AddressingMode.ZEROPAGE_Y: "zeropage+y",
    AddressingMode.ABSOLUTE: "absolute",
    AddressingMode.ABSOLUTE_X: "absolute+x",
    AddressingMode.ABSOLUTE_Y: "absolute+y",
    AddressingMode.INDIRECT: "indirect",
    AddressingMode.INDIRECT_X: "indirect+x",
    AddressingMode.INDIRECT_Y: "indirect+y",
    AddressingMode.RELATIVE: "relative",
    AddressingMode.SYMBOL: "symbol",
    AddressingMode.UNKNOWN: "unknown",
}

# Instruction length is a pure function of the addressing mode.
_MODE_LENGTHS = {
    AddressingMode.IMPLIED: 1,
    AddressingMode.ACCUMULATOR: 1,
    AddressingMode.IMMEDIATE: 2,
    AddressingMode.ZEROPAGE: 2,
    AddressingMode.ZEROPAGE_X: 2,
    AddressingMode.ZEROPAGE_Y: 2,
    AddressingMode.RELATIVE: 2,
    AddressingMode.INDIRECT_X: 2,
    AddressingMode.INDIRECT_Y: 2,
    AddressingMode.ABSOLUTE: 3,
    AddressingMode.ABSOLUTE_X: 3,
    AddressingMode.ABSOLUTE_Y: 3,
    AddressingMode.INDIRECT: 3,
    AddressingMode.SYMBOL: 0,
    AddressingMode.UNKNOWN: 0,
}

# Register-indexed variants of each base mode, used when an operand ends
# in ",x" or ",y".
INDEXED_VARIANTS = {
    AddressingMode.ZEROPAGE: (AddressingMode.ZEROPAGE_X, AddressingMode.ZEROPAGE_Y),
    AddressingMode.ABSOLUTE: (AddressingMode.ABSOLUTE_X, AddressingMode.ABSOLUTE_Y),
    AddressingMode.INDIRECT: (AddressingMode.INDIRECT_X, AddressingMode.INDIRECT_Y),
}


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about a specific instruction encoding.

    Attributes:
        opcode: The opcode byte
        size: Total instruction size in bytes (including operand)
        operand_size: Size of operand in bytes (0, 1, or 2)
    """
    opcode: int
    size: int
    operand_size: int

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=${self.opcode:02X}, size={self.size})"


def _info(opcode: int, mode: AddressingMode) -> InstructionInfo:
    size = _MODE_LENGTHS[mode]
    return InstructionInfo(opcode, size, size - 1)


IMP = AddressingMode.IMPLIED
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
ZPG = AddressingMode.ZEROPAGE
ZPX = AddressingMode.ZEROPAGE_X
ZPY = AddressingMode.ZEROPAGE_Y
ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
ABY = AddressingMode.ABSOLUTE_Y
IND = AddressingMode.INDIRECT
INX = AddressingMode.INDIRECT_X
INY = AddressingMode.INDIRECT_Y
REL = AddressingMode.RELATIVE


# =============================================================================
# Opcode Table
# =============================================================================
# Nested table: mnemonic -> {addressing mode -> opcode byte}.
# OPCODE_TABLE below flattens it into the (mnemonic, mode) keyed lookup
# used by the encoder, and DECODE_TABLE inverts it for the disassembler.
# =============================================================================

INSTRUCTION_SET: dict[str, dict[AddressingMode, int]] = {
    # =========================================================================
    # LOAD / STORE
    # =========================================================================
    "lda": {IMM: 0xA9, ZPG: 0xA5, ZPX: 0xB5, ABS: 0xAD, ABX: 0xBD, ABY: 0xB9, INX: 0xA1, INY: 0xB1},
    "ldx": {IMM: 0xA2, ZPG: 0xA6, ZPY: 0xB6, ABS: 0xAE, ABY: 0xBE},
    "ldy": {IMM: 0xA0, ZPG: 0xA4, ZPX: 0xB4, ABS: 0xAC, ABX: 0xBC},
    "sta": {ZPG: 0x85, ZPX: 0x95, ABS: 0x8D, ABX: 0x9D, ABY: 0x99, INX: 0x81, INY: 0x91},
    "stx": {ZPG: 0x86, ZPY: 0x96, ABS: 0x8E},
    "sty": {ZPG: 0x84, ZPX: 0x94, ABS: 0x8C},

    # =========================================================================
    # ARITHMETIC / LOGIC
    # =========================================================================
    "adc": {IMM: 0x69, ZPG: 0x65, ZPX: 0x75, ABS: 0x6D, ABX: 0x7D, ABY: 0x79, INX: 0x61, INY: 0x71},
    "sbc": {IMM: 0xE9, ZPG: 0xE5, ZPX: 0xF5, ABS: 0xED, ABX: 0xFD, ABY: 0xF9, INX: 0xE1, INY: 0xF1},
    "and": {IMM: 0x29, ZPG: 0x25, ZPX: 0x35, ABS: 0x2D, ABX: 0x3D, ABY: 0x39, INX: 0x21, INY: 0x31},
    "ora": {IMM: 0x09, ZPG: 0x05, ZPX: 0x15, ABS: 0x0D, ABX: 0x1D, ABY: 0x19, INX: 0x01, INY: 0x11},
    "eor": {IMM: 0x49, ZPG: 0x45, ZPX: 0x55, ABS: 0x4D, ABX: 0x5D, ABY: 0x59, INX: 0x41, INY: 0x51},
    "cmp": {IMM: 0xC9, ZPG: 0xC5, ZPX: 0xD5, ABS: 0xCD, ABX: 0xDD, ABY: 0xD9, INX: 0xC1, INY: 0xD1},
    "cpx": {IMM: 0xE0, ZPG: 0xE4, ABS: 0xEC},
    "cpy": {IMM: 0xC0, ZPG: 0xC4, ABS: 0xCC},
    "bit": {ZPG: 0x24, ABS: 0x2C},

    # =========================================================================
    # READ-MODIFY-WRITE
    # =========================================================================
    "asl": {ACC: 0x0A, ZPG: 0x06, ZPX: 0x16, ABS: 0x0E, ABX: 0x1E},
    "lsr": {ACC: 0x4A, ZPG: 0x46, ZPX: 0x56, ABS: 0x4E, ABX: 0x5E},
    "rol": {ACC: 0x2A, ZPG: 0x26, ZPX: 0x36, ABS: 0x2E, ABX: 0x3E},
    "ror": {ACC: 0x6A, ZPG: 0x66, ZPX: 0x76, ABS: 0x6E, ABX: 0x7E},
    "inc": {ZPG: 0xE6, ZPX: 0xF6, ABS: 0xEE, ABX: 0xFE},
    "dec": {ZPG: 0xC6, ZPX: 0xD6, ABS: 0xCE, ABX: 0xDE},

    # =========================================================================
    # REGISTER / FLAG (implied)
    # =========================================================================
    "inx": {IMP: 0xE8},
    "iny": {IMP: 0xC8},
    "dex": {IMP: 0xCA},
    "dey": {IMP: 0x88},
    "tax": {IMP: 0xAA},
    "tay": {IMP: 0xA8},
    "txa": {IMP: 0x8A},
    "tya": {IMP: 0x98},
    "tsx": {IMP: 0xBA},
    "txs": {IMP: 0x9A},
    "clc": {IMP: 0x18},
    "cld": {IMP: 0xD8},
    "cli": {IMP: 0x58},
    "clv": {IMP: 0xB8},
    "sec": {IMP: 0x38},
    "sed": {IMP: 0xF8},
    "sei": {IMP: 0x78},
    "nop": {IMP: 0xEA},
    "brk": {IMP: 0x00},

    # =========================================================================
    # STACK / SUBROUTINE
    # =========================================================================
    "pha": {IMP: 0x48},
    "php": {IMP: 0x08},
    "pla": {IMP: 0x68},
    "plp": {IMP: 0x28},
    "rti": {IMP: 0x40},
    "rts": {IMP: 0x60},
    "jsr": {ABS: 0x20},
    "jmp": {ABS: 0x4C, IND: 0x6C},

    # =========================================================================
    # BRANCH INSTRUCTIONS (relative addressing only)
    # Offset is relative to the address of the byte AFTER the branch.
    # Range: -128 to +127 bytes
    # =========================================================================
    "bcc": {REL: 0x90},
    "bcs": {REL: 0xB0},
    "beq": {REL: 0xF0},
    "bne": {REL: 0xD0},
    "bmi": {REL: 0x30},
    "bpl": {REL: 0x10},
    "bvc": {REL: 0x50},
    "bvs": {REL: 0x70},
}

OPCODE_TABLE: dict[tuple[str, AddressingMode], InstructionInfo] = {
    (mnemonic, mode): _info(opcode, mode)
    for mnemonic, modes in INSTRUCTION_SET.items()
    for mode, opcode in modes.items()
}

# Placeholder mnemonic for bytes that are not documented opcodes
UNKNOWN_MNEMONIC = "???"

DECODE_TABLE: tuple[tuple[str, AddressingMode], ...] = tuple(
    next(
        ((mnemonic, mode) for (mnemonic, mode), info in OPCODE_TABLE.items()
         if info.opcode == byte),
        (UNKNOWN_MNEMONIC, AddressingMode.UNKNOWN),
    )
    for byte in range(256)
)


# =============================================================================
# Instruction Set Reference Lists
# =============================================================================

MNEMONICS: frozenset[str] = frozenset(INSTRUCTION_SET)

# Conditional branches, legal only in relative mode
BRANCH_MNEMONICS: frozenset[str] = frozenset({
    "bcc", "bcs", "beq", "bne", "bmi", "bpl", "bvc", "bvs",
})

# Opcodes that transfer control to another address. The disassembler
# synthesizes labels for their targets.
JUMP_OPCODES: frozenset[int] = frozenset({0x4C, 0x6C, 0x20})
BRANCH_OPCODES: frozenset[int] = frozenset(
    INSTRUCTION_SET[m][REL] for m in BRANCH_MNEMONICS
)
CONTROL_FLOW_OPCODES: frozenset[int] = JUMP_OPCODES | BRANCH_OPCODES


# =============================================================================
# Lookup Functions
# =============================================================================

def instruction_length(mode: AddressingMode) -> int:
    """
    Encoded length in bytes of an instruction using the given mode.

    Returns 0 for SYMBOL and UNKNOWN, which cannot be encoded yet.
    """
    return _MODE_LENGTHS[mode]


def get_instruction_info(mnemonic: str, mode: AddressingMode) -> Optional[InstructionInfo]:
    """
    Look up instruction information by mnemonic and addressing mode.

    Returns:
        InstructionInfo if found, None if the combination is invalid
    """
    return OPCODE_TABLE.get((mnemonic.lower(), mode))


def get_valid_modes(mnemonic: str) -> list[AddressingMode]:
    """Get all valid addressing modes for an instruction."""
    return list(INSTRUCTION_SET.get(mnemonic.lower(), {}))


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a documented 6502 instruction."""
    return mnemonic.lower() in MNEMONICS


def is_branch_instruction(mnemonic: str) -> bool:
    """Check if an instruction is a conditional branch (relative addressing)."""
    return mnemonic.lower() in BRANCH_MNEMONICS


def encode(mnemonic: str, mode: AddressingMode) -> int:
    """
    Encode a (mnemonic, addressing mode) pair to its opcode byte.

    Args:
        mnemonic: Three-letter mnemonic, any case
        mode: The addressing mode the operand was classified as

    Returns:
        The opcode byte

    Raises:
        UnknownMnemonicError: If the mnemonic is not in the instruction set
        ParseError: If the operand is still an unresolved symbol
        AddressingModeError: If the mnemonic does not support the mode
    """
    name = mnemonic.lower()
    modes = INSTRUCTION_SET.get(name)
    if modes is None:
        raise UnknownMnemonicError(mnemonic)

    if mode is AddressingMode.SYMBOL:
        raise ParseError(f"Unknown symbol for operation '{name}'")

    opcode = modes.get(mode)
    if opcode is None:
        raise AddressingModeError(
            name,
            str(mode),
            valid_modes=[str(m) for m in modes],
        )
    return opcode


def decode(opcode: int) -> tuple[str, AddressingMode]:
    """
    Decode an opcode byte to (mnemonic, addressing mode).

    This is a total function: undocumented bytes decode to
    ("???", AddressingMode.UNKNOWN) rather than failing.
    """
    return DECODE_TABLE[opcode & 0xFF]


def opcode_length(opcode: int) -> int:
    """
    Number of bytes occupied by the instruction starting with this opcode.

    Undocumented opcodes count as a single byte so that a linear walk over
    a byte stream always makes progress.
    """
    _, mode = decode(opcode)
    return max(1, instruction_length(mode))
