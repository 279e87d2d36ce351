"""
6502 SDK Command-Line Interface
===============================

This package provides command-line tools for the 6502 SDK:

- **as6502**: 6502 assembler
- **ld6502**: Object linker producing iNES images
- **dis6502**: Disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["as6502", "ld6502", "dis6502"]
