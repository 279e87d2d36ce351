"""
6502 Disassembler Module
========================

This module provides disassembly of 6502 machine code back into source
that the assembler accepts, with labels synthesized for branch and jump
targets.

Usage:
    from mos6502_sdk.disassembler import Disassembler

    disasm = Disassembler()
    print(disasm.disassemble_to_text(obj))
"""

from .mos6502 import Disassembler, DisassembledInstruction, branch_target

__all__ = [
    "Disassembler",
    "DisassembledInstruction",
    "branch_target",
]
