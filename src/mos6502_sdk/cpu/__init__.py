"""
MOS 6502 SDK CPU Package
========================

This package contains CPU architecture definitions used by every tool in
the SDK: the assembler, the linker and the disassembler.

Modules:
    mos6502: Complete 6502 instruction set definitions, addressing modes,
             and helper functions for instruction encoding/decoding.

Both the assembler (which encodes instructions) and the disassembler
(which decodes them) use the same table, so the two directions can never
disagree about an opcode.

Usage:
    from mos6502_sdk.cpu import (
        AddressingMode,
        encode,
        decode,
        instruction_length,
    )
"""

from mos6502_sdk.cpu.mos6502 import (
    # Core types
    AddressingMode,
    InstructionInfo,
    INDEXED_VARIANTS,
    # Master instruction database
    INSTRUCTION_SET,
    OPCODE_TABLE,
    DECODE_TABLE,
    UNKNOWN_MNEMONIC,
    # Instruction set reference lists
    MNEMONICS,
    BRANCH_MNEMONICS,
    BRANCH_OPCODES,
    JUMP_OPCODES,
    CONTROL_FLOW_OPCODES,
    # Lookup functions
    encode,
    decode,
    instruction_length,
    opcode_length,
    get_instruction_info,
    get_valid_modes,
    is_valid_instruction,
    is_branch_instruction,
)

__all__ = [
    "AddressingMode",
    "InstructionInfo",
    "INDEXED_VARIANTS",
    "INSTRUCTION_SET",
    "OPCODE_TABLE",
    "DECODE_TABLE",
    "UNKNOWN_MNEMONIC",
    "MNEMONICS",
    "BRANCH_MNEMONICS",
    "BRANCH_OPCODES",
    "JUMP_OPCODES",
    "CONTROL_FLOW_OPCODES",
    "encode",
    "decode",
    "instruction_length",
    "opcode_length",
    "get_instruction_info",
    "get_valid_modes",
    "is_valid_instruction",
    "is_branch_instruction",
]
