"""
6502 Assembler
==============

This package provides a two-pass, line-oriented assembler for the MOS 6502.

Main Components
---------------
- **Assembler**: Main assembler class that orchestrates the assembly process
- **lexer**: Line normalization, literal parsing and addressing-mode
  classification
- **desymbolicate**: Bounded line buffer and symbol-to-literal rewriting
- **directives**: ``.org``, ``.end`` and ``.byte`` handling
- **CodeGenerator**: The two passes and listing generation

Assembly Process
----------------
1. **Pass 1 (symbol collection)**: every label gets the address of the next
   instruction, every ``name = value`` gets a variable cell.
2. **Pass 2 (code generation)**: symbols are rewritten to literals inside a
   bounded line buffer, each line is classified and encoded, and bytes are
   appended to the current blob.

Example Usage
-------------
>>> from mos6502_sdk.assembler import Assembler
>>> asm = Assembler()
>>> obj = asm.assemble_string("lda #$ff")
>>> bytes(obj.blobs[0].data)
b'\\xa9\\xff'
"""

from mos6502_sdk.assembler.assembler import Assembler, assemble, assemble_file
from mos6502_sdk.assembler.codegen import CodeGenerator, EncodedInstruction, encode_line
from mos6502_sdk.assembler.desymbolicate import (
    LineBuffer,
    desymbolicate_line,
    find_symbol,
    resolve_arithmetic,
)
from mos6502_sdk.assembler.directives import process_directive
from mos6502_sdk.assembler.lexer import (
    NumericLiteral,
    address_mode_for_line,
    byte_values,
    effective_address_mode,
    is_valid_literal,
    normalize_line,
    parse_value,
    split_label,
)
from mos6502_sdk.symbols import Symbol, SymbolKind, SymbolTable

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Code generator
    "CodeGenerator",
    "EncodedInstruction",
    "encode_line",
    # Desymbolication
    "LineBuffer",
    "desymbolicate_line",
    "find_symbol",
    "resolve_arithmetic",
    # Directives
    "process_directive",
    # Lexer
    "NumericLiteral",
    "address_mode_for_line",
    "byte_values",
    "effective_address_mode",
    "is_valid_literal",
    "normalize_line",
    "parse_value",
    "split_label",
    # Symbols
    "Symbol",
    "SymbolKind",
    "SymbolTable",
]
