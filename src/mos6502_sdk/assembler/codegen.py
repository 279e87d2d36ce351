"""
6502 Code Generator
===================

This module implements the two-pass code generation for 6502 assembly.

Pass 1: Symbol Collection
-------------------------
Walks every line, assigning each label the address of the next
instruction in the current blob and each ``name = value`` variable a
storage cell from the variable area. Addresses are computed from the
encoded length of every instruction's addressing mode, with directives
applied to a scratch object so blob origins match pass 2 exactly.

Pass 2: Code Generation
-----------------------
Rewrites each line in a bounded line buffer (symbols become literals,
``a+b`` expressions are folded), classifies the rewritten operand, looks
up the opcode and appends the bytes to the current blob.

Recoverable errors (syntax, encoding, duplicates, branch range) are
collected in a Diagnostics context so every problem is reported in one
run. Buffer overflow is fatal and propagates immediately.

Listing Format
--------------
    Addr   Code          Line  Source
    $0000                   1  loop:
    $0000  EA               1  nop
    $0001  4C 00 00         2  jmp loop
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from mos6502_sdk.config import ToolchainConfig
from mos6502_sdk.cpu.mos6502 import (
    AddressingMode,
    encode,
    instruction_length,
)
from mos6502_sdk.errors import (
    AssemblerError,
    BufferOverflowError,
    DuplicateSymbolError,
    Diagnostics,
    ParseError,
    TooManyErrors,
    UnknownMnemonicError,
)
from mos6502_sdk.assembler.lexer import (
    address_mode_for_line,
    clean_line,
    effective_address_mode,
    is_valid_literal,
    is_variable_declaration,
    mnemonic_of,
    operand_of,
    parse_value,
    split_label,
)
from mos6502_sdk.assembler.desymbolicate import (
    LineBuffer,
    desymbolicate_line,
    replace_unresolved,
    resolve_arithmetic,
    unresolved_names,
)
from mos6502_sdk.assembler.directives import process_directive
from mos6502_sdk.objfile.object import BlobCursor, ObjectFile, SymbolReference
from mos6502_sdk.objfile.symfile import write_symbol_file
from mos6502_sdk.symbols import SymbolTable

logger = logging.getLogger(__name__)


# =============================================================================
# Instruction Encoding
# =============================================================================

@dataclass(frozen=True)
class EncodedInstruction:
    """
    One encoded instruction.

    Attributes:
        mnemonic: Lowercase mnemonic
        mode: Addressing mode the operand was classified as
        opcode: Opcode byte
        operand: Operand bytes, little-endian (0, 1 or 2 bytes)
    """
    mnemonic: str
    mode: AddressingMode
    opcode: int
    operand: bytes

    @property
    def size(self) -> int:
        return 1 + len(self.operand)

    def to_bytes(self) -> bytes:
        return bytes([self.opcode]) + self.operand


def encode_line(line: str) -> EncodedInstruction:
    """
    Encode a normalized, fully desymbolicated instruction line.

    Raises:
        UnknownMnemonicError: If the line does not start with a mnemonic
        AddressingModeError: If the mnemonic does not support the mode
        ParseError: If the operand cannot be classified
    """
    line = line.strip()
    if len(line) < 3 or (len(line) > 3 and not line[3].isspace()):
        raise UnknownMnemonicError(line.split()[0] if line else line)

    mnemonic = mnemonic_of(line)
    mode = address_mode_for_line(line)
    if mode is AddressingMode.UNKNOWN:
        raise ParseError(f"Unable to determine address mode for '{line}'")

    opcode = encode(mnemonic, mode)

    length = instruction_length(mode)
    literal = parse_value(operand_of(line))
    if length == 3:
        operand = bytes([literal.low, literal.high])
    elif length == 2:
        operand = bytes([literal.low])
    else:
        operand = b""

    return EncodedInstruction(mnemonic, mode, opcode, operand)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates 6502 object code from assembly source.

    The code generator maintains:
    - Symbol table built in pass 1
    - The object being emitted and its blob cursor
    - Diagnostics for batch error reporting
    - Listing and process-trace lines

    Usage:
        codegen = CodeGenerator()
        obj = codegen.generate(source, "prog.s")
        codegen.write_listing("prog.lst")
    """

    def __init__(self, config: Optional[ToolchainConfig] = None,
                 allow_unresolved: bool = False):
        """
        Initialize the code generator.

        Args:
            config: Toolchain settings (line buffer size, origins, limits)
            allow_unresolved: Record operands naming undefined symbols as
                references for the linker instead of reporting them
        """
        self._config = config or ToolchainConfig()
        self._allow_unresolved = allow_unresolved
        self._diag = Diagnostics(max_errors=self._config.max_errors)
        self._symbols = SymbolTable()
        self._object = ObjectFile(self._config.program_start)
        self._listing_lines: list[str] = []
        self._trace_lines: list[str] = []

    # =========================================================================
    # Entry Point
    # =========================================================================

    def generate(self, source: str, filename: str = "<input>") -> ObjectFile:
        """
        Assemble source text into an object.

        Args:
            source: Assembly source
            filename: Name used in diagnostics

        Returns:
            The assembled ObjectFile, with its symbol table attached

        Raises:
            AssemblerError: If any errors were collected (also check
                has_errors()), or fatally on buffer overflow
        """
        self._diag = Diagnostics(filename, self._config.max_errors)
        self._symbols = SymbolTable(filename)
        self._object = ObjectFile(self._config.program_start, self._symbols)
        self._listing_lines.clear()
        self._trace_lines.clear()

        lines = source.splitlines()

        try:
            self._pass1(lines)
            logger.debug(f"Pass 1 complete: {len(self._symbols)} symbols")
            self._pass2(lines)
            logger.debug(f"Pass 2 complete: {self._object.size} bytes")
        except TooManyErrors as e:
            raise AssemblerError(
                f"Assembly failed with {self._diag.error_count()} errors:\n\n"
                f"{self._diag.report()}\n{e.message}"
            ) from e

        if self._diag.has_errors():
            raise AssemblerError(
                f"Assembly failed with {self._diag.error_count()} errors:\n\n"
                f"{self._diag.report()}"
            )

        for warning in self._diag.warnings:
            logger.warning(warning)

        return self._object

    # =========================================================================
    # Pass 1: Symbol Collection
    # =========================================================================

    def _pass1(self, lines: list[str]) -> None:
        """First pass: assign addresses to labels and variables."""
        layout = ObjectFile(self._config.program_start)
        cursor = BlobCursor()
        variable_address = self._config.variable_start

        for number, raw in enumerate(lines, start=1):
            self._diag.line = number
            text = clean_line(raw)
            if not text.strip():
                continue

            label, rest = split_label(text)

            if label is not None and is_variable_declaration(rest):
                if variable_address > self._config.variable_limit:
                    self._diag.error(
                        ParseError("Maximum number of addressable variables exceeded."),
                        raw.rstrip(),
                    )
                    continue
                value = rest.lstrip("=").strip() or None
                if self._define(label, variable_address, number, raw, value=value):
                    variable_address += 1
                continue

            if label is not None:
                self._define(label, layout.blobs[cursor.index].address, number, raw)

            if not rest:
                continue

            if rest.startswith("."):
                _, cursor = process_directive(layout, cursor, rest)
                continue

            size = instruction_length(effective_address_mode(rest))
            layout.blobs[cursor.index].extend(bytes(size))

    def _define(self, name: str, address: int, line: int, raw: str,
                value: Optional[str] = None) -> bool:
        """Add a label or variable, reporting duplicates. Returns True if added."""
        try:
            if value is None:
                self._symbols.add_label(name, address, line)
            else:
                self._symbols.add_variable(name, address, line, value)
            return True
        except DuplicateSymbolError as e:
            self._diag.error(e, raw.rstrip())
            if e.original_line is not None:
                self._diag.note(f"previous definition of '{name}' is here", e.original_line)
            return False

    # =========================================================================
    # Pass 2: Code Generation
    # =========================================================================

    def _pass2(self, lines: list[str]) -> None:
        """Second pass: desymbolicate, encode and emit."""
        obj = self._object
        cursor = BlobCursor()
        limit = self._config.max_line_length - 1

        for number, raw in enumerate(lines, start=1):
            self._diag.line = number
            text = clean_line(raw)
            if not text.strip():
                continue

            if len(text) > limit:
                self._diag.error(
                    ParseError(f"Line exceeds the maximum length of {limit} characters"),
                    raw.rstrip(),
                )
                continue

            label, rest = split_label(text)
            if label is not None and is_variable_declaration(rest):
                continue

            blob = obj.blobs[cursor.index]
            if label is not None:
                self._record_label(label, blob.address, number)

            if not rest:
                continue

            if rest.startswith("."):
                previous = cursor
                handled, cursor = process_directive(obj, cursor, rest)
                if not handled:
                    self._diag.error(
                        ParseError(f"Unknown directive '{rest.split()[0]}'"),
                        raw.rstrip(),
                    )
                elif cursor == previous and len(blob) > 0 and rest.startswith(".byte"):
                    self._check_byte_width(rest, number)
                    self._record_instruction(blob.end - 1, blob.data[-1:], number, rest)
                else:
                    self._listing_lines.append(f"{'':21s}{number:4d}  {rest}")
                continue

            try:
                instruction, pending = self._assemble_line(rest, blob.address, number)
            except BufferOverflowError:
                raise
            except AssemblerError as e:
                self._diag.error(e, raw.rstrip())
                continue

            operand_offset = len(blob) + 1
            for name in pending:
                obj.references.append(
                    SymbolReference(name, cursor.index, operand_offset, instruction.mode, number)
                )

            address = blob.address
            blob.extend(instruction.to_bytes())
            self._record_instruction(address, instruction.to_bytes(), number, rest)

    def _check_byte_width(self, directive: str, number: int) -> None:
        argument = directive[len(".byte"):].strip()
        value = parse_value(argument).value
        if value > 0xFF:
            self._diag.warn(
                f"'.byte {argument}' does not fit in a byte, emitting ${value & 0xFF:02x}",
                number,
            )

    def _assemble_line(self, text: str, address: int,
                       number: int) -> tuple[EncodedInstruction, list[str]]:
        """
        Rewrite and encode one instruction.

        Returns:
            (encoded instruction, names left for the linker)
        """
        buffer = LineBuffer(text, self._config.max_line_length, self._diag.location(number))

        desymbolicate_line(buffer, self._symbols, address)
        resolve_arithmetic(buffer)

        pending: list[str] = []
        if not is_valid_literal(operand_of(buffer.text)):
            names = [n for n in unresolved_names(buffer.text) if n not in self._symbols]
            if not (self._allow_unresolved and names):
                raise ParseError(
                    f"Invalid literal value or unresolved/undefined symbol "
                    f"'{operand_of(buffer.text)}'"
                )
            for name in names:
                if replace_unresolved(buffer, name) is not None:
                    pending.append(name)
                    logger.debug(f"Line {number}: '{name}' left for the linker")
            resolve_arithmetic(buffer)

        logger.debug(f"Line {number}: {text!r} -> {buffer.text!r}")
        return encode_line(buffer.text), pending

    # =========================================================================
    # Listing
    # =========================================================================

    def _record_label(self, name: str, address: int, number: int) -> None:
        self._listing_lines.append(f"${address:04X}{'':16s}{number:4d}  {name}:")
        self._trace_lines.append(f"{address:#06x}:          - {number:4d}: {name}:")

    def _record_instruction(self, address: int, code: bytes, number: int,
                            source: str) -> None:
        hex_str = " ".join(f"{b:02X}" for b in code)
        self._listing_lines.append(f"${address:04X}  {hex_str:12s}  {number:4d}  {source}")
        trace_bytes = " ".join(f"{b:02x}" for b in code)
        self._trace_lines.append(f"{address:#06x}: {trace_bytes:8s} - {number:4d}:  \t{source}")

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes, and source lines.
        """
        lines = []
        lines.append("6502 Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr   Code          Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for symbol in self._symbols.by_address():
            lines.append(f"{symbol.name:20s} = ${symbol.address:04X}  {symbol.kind}")
        return "\n".join(lines)

    def get_process_trace(self) -> str:
        """Annotated assembly process, one line per label and instruction."""
        return "\n".join(self._trace_lines)

    # =========================================================================
    # Results
    # =========================================================================

    def get_object(self) -> ObjectFile:
        return self._object

    def get_symbol_table(self) -> SymbolTable:
        return self._symbols

    def get_symbols(self) -> dict[str, int]:
        """Return a dictionary of symbol names to addresses."""
        return {symbol.name: symbol.address for symbol in self._symbols}

    def get_diagnostics(self) -> Diagnostics:
        return self._diag

    def has_errors(self) -> bool:
        """Check if any errors occurred during assembly."""
        return self._diag.has_errors()

    def get_error_report(self) -> str:
        """Get formatted error report."""
        return self._diag.report()

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        The listing shows addresses, generated bytes, and source lines.
        """
        with open(filepath, "w") as f:
            f.write(self.get_listing())
            f.write("\n")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: see mos6502_sdk.objfile.symfile
        """
        with open(filepath, "w") as f:
            write_symbol_file(self._object, f)
