"""
6502 SDK - Cross-Development Toolchain for the MOS 6502
=======================================================

This package provides an assembler, linker and disassembler for programs
targeting the NMOS 6502, with iNES cartridge output for the NES.

Main Components
---------------
- **assembler**: Two-pass 6502 assembler (as6502)
    Converts assembly source files (.s) to flat or a.out object files

- **linker**: Object linker (ld6502)
    Merges objects, resolves cross-object symbols and writes iNES images

- **disassembler**: Disassembler (dis6502)
    Turns flat binaries and iNES images back into assembler source

- **objfile**: Object model and container codecs (flat, a.out, iNES, .sym)

- **cpu**: The 6502 opcode table shared by all of the above

Quick Start
-----------
Assemble a program:
    >>> from mos6502_sdk import Assembler
    >>> asm = Assembler()
    >>> obj = asm.assemble_string("lda #$ff")
    >>> asm.get_code()
    b'\\xa9\\xff'

Link objects into a cartridge:
    >>> from mos6502_sdk import Linker
    >>> linker = Linker()
    >>> result = linker.link_files(["main.o", "lib.o"])
    >>> linker.write_ines_file(result, "game.nes")

Or use the command-line tools:
    $ as6502 -c main.s lib.s
    $ ld6502 main.o lib.o -o game.nes
    $ dis6502 game.nes

Reference Documentation
-----------------------
- 6502 Instruction Set: http://www.6502.org/tutorials/6502opcodes.html
- iNES format: https://www.nesdev.org/wiki/INES
"""

__version__ = "1.0.0"
__author__ = "6502 SDK Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from mos6502_sdk.assembler import Assembler, assemble, assemble_file
from mos6502_sdk.config import DEFAULT_CONFIG, ToolchainConfig
from mos6502_sdk.cpu import AddressingMode, decode, encode
from mos6502_sdk.disassembler import Disassembler
from mos6502_sdk.errors import (
    MOS6502Error,
    AssemblerError,
    ParseError,
    EncodeError,
    UnknownMnemonicError,
    AddressingModeError,
    BranchRangeError,
    DuplicateSymbolError,
    BufferOverflowError,
    ObjectFileError,
    FormatError,
    LinkError,
    UnresolvedSymbolError,
    LinkDuplicateSymbolError,
)
from mos6502_sdk.linker import Linker, LinkResult
from mos6502_sdk.objfile import (
    Blob,
    ObjectFile,
    ObjectFormat,
    INESProperties,
    load_object,
    save_object,
)
from mos6502_sdk.symbols import Symbol, SymbolKind, SymbolTable

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Tools
    "Assembler",
    "assemble",
    "assemble_file",
    "Linker",
    "LinkResult",
    "Disassembler",
    # Configuration
    "ToolchainConfig",
    "DEFAULT_CONFIG",
    # CPU
    "AddressingMode",
    "encode",
    "decode",
    # Objects
    "Blob",
    "ObjectFile",
    "ObjectFormat",
    "INESProperties",
    "load_object",
    "save_object",
    # Symbols
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    # Exception hierarchy
    "MOS6502Error",
    "AssemblerError",
    "ParseError",
    "EncodeError",
    "UnknownMnemonicError",
    "AddressingModeError",
    "BranchRangeError",
    "DuplicateSymbolError",
    "BufferOverflowError",
    "ObjectFileError",
    "FormatError",
    "LinkError",
    "UnresolvedSymbolError",
    "LinkDuplicateSymbolError",
]
