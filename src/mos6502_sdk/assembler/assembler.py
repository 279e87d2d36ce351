"""
6502 Assembler - Main Interface
===============================

This module provides the main Assembler class, which is the primary interface
for assembling 6502 source code. It drives the two-pass code generator and
writes the resulting object, listing and symbol files.

Example Usage
-------------
>>> from mos6502_sdk.assembler import Assembler
>>>
>>> asm = Assembler()
>>> obj = asm.assemble_string('''
... loop: nop
...       jmp loop
... ''')
>>> bytes(obj.blobs[0].data).hex()
'ea4c0000'

Command-Line Usage
------------------
    $ as6502 prog.s -o prog.o -l prog.lst -s prog.sym

Options:
    -o, --output FILE      Output object file (default: <input>.o)
    -F, --format FORMAT    flat or aout
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate symbol sidecar
    -c, --compile-only     Leave undefined symbols for the linker
    -S, --print-process    Print the annotated assembly process
    -T, --print-table      Print the symbol table
    -v, --verbose          Verbose output
"""

from pathlib import Path
from typing import Optional
import logging

from mos6502_sdk.config import ToolchainConfig
from mos6502_sdk.assembler.codegen import CodeGenerator
from mos6502_sdk.objfile.loader import ObjectFormat, save_object
from mos6502_sdk.objfile.object import ObjectFile
from mos6502_sdk.symbols import SymbolTable

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main 6502 assembler class.

    Attributes:
        config: Toolchain settings in effect
        allow_unresolved: If True, undefined symbols become link-time
            references instead of errors
    """

    def __init__(self, config: Optional[ToolchainConfig] = None,
                 allow_unresolved: bool = False):
        """
        Initialize the assembler.

        Args:
            config: Toolchain settings; defaults to ToolchainConfig()
            allow_unresolved: Record references to undefined symbols for the
                linker (as6502 -c) instead of reporting them
        """
        self.config = config or ToolchainConfig()
        self.allow_unresolved = allow_unresolved
        self._codegen = CodeGenerator(self.config, allow_unresolved)
        self._object: Optional[ObjectFile] = None
        self._source_file: Optional[Path] = None

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> ObjectFile:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The assembled object

        Raises:
            AssemblerError: If assembly fails
        """
        logger.debug(f"Assembling {filename}...")
        self._object = self._codegen.generate(source, filename)
        logger.debug(f"Generated {self._object.size} bytes in {len(self._object.blobs)} blob(s)")
        return self._object

    def assemble_file(self, filepath: str | Path) -> ObjectFile:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath
        source = filepath.read_text()
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_object(self) -> Optional[ObjectFile]:
        """The object from the last successful assembly, if any."""
        return self._object

    def get_code(self) -> bytes:
        """Bytes of blob 0 of the last assembled object."""
        return bytes(self._codegen.get_object().blobs[0].data)

    def get_symbols(self) -> dict[str, int]:
        """
        Get the symbol table.

        Returns:
            Dictionary mapping symbol names to addresses
        """
        return self._codegen.get_symbols()

    def get_symbol_table(self) -> SymbolTable:
        return self._codegen.get_symbol_table()

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            Assembly listing with addresses, code bytes, and source
        """
        return self._codegen.get_listing()

    def get_process_trace(self) -> str:
        return self._codegen.get_process_trace()

    def write_object(self, filepath: str | Path,
                     fmt: ObjectFormat = ObjectFormat.FLAT) -> int:
        """
        Write the assembled object in flat or a.out format.

        Returns:
            Number of bytes written
        """
        written = save_object(self._codegen.get_object(), filepath, fmt)
        logger.debug(f"Wrote {written} bytes to {filepath}")
        return written

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        The listing file shows addresses, generated bytes, source lines and
        the symbol table.
        """
        self._codegen.write_listing(filepath)
        logger.debug(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol sidecar consumed by the linker."""
        self._codegen.write_symbols(filepath)
        logger.debug(f"Wrote symbols to {filepath}")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        """
        Check if assembly produced errors.

        Returns:
            True if errors occurred
        """
        return self._codegen.has_errors()

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            Error report string
        """
        return self._codegen.get_error_report()


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>",
             config: Optional[ToolchainConfig] = None) -> ObjectFile:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(config)
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path,
                  config: Optional[ToolchainConfig] = None) -> ObjectFile:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(config)
    return asm.assemble_file(filepath)
