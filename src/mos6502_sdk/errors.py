"""
MOS 6502 SDK Error Hierarchy
============================

This module defines the exception hierarchy for the entire toolchain.
All exceptions inherit from MOS6502Error, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
MOS6502Error (base)
├── AssemblerError (assembler-related)
│   ├── ParseError - unrecognized syntax or malformed literal
│   │   └── EncodeError - line cannot be turned into an opcode
│   │       ├── UnknownMnemonicError - mnemonic is not in the opcode table
│   │       └── AddressingModeError - mnemonic does not support the mode
│   ├── BranchRangeError - branch target too far
│   ├── DuplicateSymbolError - symbol defined multiple times
│   ├── BufferOverflowError - substitution does not fit the line buffer
│   └── TooManyErrors - error limit reached
├── ObjectFileError (object container handling)
│   └── FormatError - container magic or layout is wrong
└── LinkError (linker)
    ├── UnresolvedSymbolError - referenced symbol never defined
    └── LinkDuplicateSymbolError - symbol defined differently by two inputs

Recoverable errors (ParseError and its subclasses, BranchRangeError,
DuplicateSymbolError) are collected by a Diagnostics instance so the user
sees every problem of a pass in one run. BufferOverflowError, LinkError
and FormatError are fatal and propagate.

Error messages follow this format:
    filename:line: error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class MOS6502Error(Exception):
    """
    Base exception for all toolchain errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            assembler.assemble_file("program.s")
        except MOS6502Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line' or 'filename:line:column'."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(MOS6502Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            hello.s:15: error: Address mode 'immediate' invalid for operation 'sta'
                sta #$10
            hint: sta supports: zeropage, zeropage+x, absolute, ...
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def with_location(self, location: SourceLocation, source_line: Optional[str] = None) -> "AssemblerError":
        """Attach a location after the fact and refresh the formatted message."""
        self.location = location
        if source_line is not None:
            self.source_line = source_line
        self.args = (self._format_message(),)
        return self


class ParseError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised when a line cannot be understood: malformed numeric literal,
    unresolved symbol left in an operand, unknown directive, or a line
    too long for the line buffer. Assembly continues with the next line.
    """
    pass


class EncodeError(ParseError):
    """A (mnemonic, addressing mode) pair cannot be encoded to an opcode."""
    pass


class UnknownMnemonicError(EncodeError):
    """The mnemonic does not exist in the 6502 instruction set."""

    def __init__(self, mnemonic: str, location: Optional[SourceLocation] = None,
                 source_line: Optional[str] = None):
        self.mnemonic = mnemonic
        super().__init__(
            f"Invalid opcode '{mnemonic}'",
            location=location,
            source_line=source_line,
        )


class AddressingModeError(EncodeError):
    """
    Invalid addressing mode for instruction.

    Raised when an instruction is used with an addressing mode it
    doesn't support. For example, STA with immediate mode (#) is
    invalid because you cannot store to a literal value, and the
    branches accept nothing but relative operands.

    Example:
        sta #$41  ; Error: sta doesn't support immediate mode
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.valid_modes = valid_modes or []

        hint = None
        if self.valid_modes:
            modes_str = ", ".join(self.valid_modes)
            hint = f"{mnemonic} supports: {modes_str}"

        super().__init__(
            f"Address mode '{mode}' invalid for operation '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class BranchRangeError(AssemblerError):
    """
    Branch target is out of range.

    6502 branch instructions use PC-relative addressing with a signed
    8-bit offset, limiting the range to -128 to +127 bytes from the
    instruction following the branch.
    """

    def __init__(
        self,
        target: str,
        offset: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.offset = offset

        direction = "forward" if offset > 0 else "backward"
        hint = (
            f"branch offset is {offset}, but range is -128 to +127; "
            f"consider using jmp for {direction} references"
        )

        super().__init__(
            f"branch target '{target}' is out of range (offset: {offset})",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Symbol defined multiple times.

    Raised when a label or variable is defined more than once. The first
    definition stays in the table; the error carries its line so the
    report can point back at it.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"Encountered duplicate symbol declaration '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )

    @property
    def original_line(self) -> Optional[int]:
        """Line number of the first definition, if known."""
        return self.original_location.line if self.original_location else None


class BufferOverflowError(AssemblerError):
    """
    Desymbolication could not fit a substitution into the line buffer.

    This is fatal for the file being assembled: a truncated line would
    silently assemble to the wrong bytes.
    """

    def __init__(self, needed: int, capacity: int,
                 location: Optional[SourceLocation] = None):
        self.needed = needed
        self.capacity = capacity
        super().__init__(
            "Could not shift string far enough while desymbolicating",
            location=location,
            hint=f"line needs {needed} characters but the buffer holds {capacity - 1}",
        )


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    This prevents the assembler from flooding the terminal when there
    are fundamental problems with the source code.
    """

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


# =============================================================================
# Object File Exceptions
# =============================================================================

class ObjectFileError(MOS6502Error):
    """Base exception for object container handling errors."""
    pass


class FormatError(ObjectFileError):
    """
    Invalid container format.

    Raised when reading a file that was explicitly requested as iNES but:
    - Is missing the "NES\\x1A" magic
    - Is shorter than its header declares
    """
    pass


# =============================================================================
# Linker Exceptions
# =============================================================================

class LinkError(MOS6502Error):
    """Base exception for linker errors. Linking aborts with no output."""
    pass


class UnresolvedSymbolError(LinkError):
    """A symbol is referenced by an input object but defined by none."""

    def __init__(self, name: str, referenced_at: Optional[SourceLocation] = None):
        self.name = name
        self.referenced_at = referenced_at
        message = f"Unresolved symbol '{name}'"
        if referenced_at:
            message += f" (referenced at {referenced_at})"
        super().__init__(message)


class LinkDuplicateSymbolError(LinkError, DuplicateSymbolError):
    """
    Two linked objects define the same symbol at different addresses.

    Carries both definition lines so the report can cite both sites.
    """

    def __init__(self, name: str, first_line: int, second_line: int,
                 first_file: str = "<object>", second_file: str = "<object>"):
        self.name = name
        self.first_line = first_line
        self.second_line = second_line
        DuplicateSymbolError.__init__(
            self,
            name,
            location=SourceLocation(second_file, second_line),
            original_location=SourceLocation(first_file, first_line),
        )


# =============================================================================
# Diagnostics Context
# =============================================================================

class Diagnostics:
    """
    Collects errors, warnings and notes for one assembly run.

    The assembler threads an instance of this class through both passes
    instead of relying on global "current file" / "current line" state.
    Every record is stamped with the filename and line number current at
    the time it was reported.

    Example:
        diag = Diagnostics("prog.s", max_errors=100)
        diag.line = 12
        diag.error(ParseError("Invalid literal value '$zz'"))
        if diag.has_errors():
            print(diag.report())
    """

    def __init__(self, filename: str = "<input>", max_errors: int = 100):
        """
        Initialize the diagnostics context.

        Args:
            filename: Name used in every location this context produces
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.filename = filename
        self.line = 0
        self.max_errors = max_errors
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []
        self.notes: list[str] = []
        self._entries: list[str] = []

    def location(self, line: Optional[int] = None) -> SourceLocation:
        """Location for the given line (defaults to the current line)."""
        return SourceLocation(self.filename, self.line if line is None else line)

    def error(self, error: AssemblerError, source_line: Optional[str] = None) -> None:
        """
        Record a recoverable error at the current line.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        if error.location is None:
            error.with_location(self.location(), source_line)
        self.errors.append(error)
        self._entries.append(str(error))
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def warn(self, message: str, line: Optional[int] = None) -> None:
        """Record a warning at the given (or current) line."""
        text = f"{self.location(line)}: warning: {message}"
        self.warnings.append(text)
        self._entries.append(text)

    def note(self, message: str, line: int) -> None:
        """Record a note pointing at another line, e.g. a first definition."""
        text = f"{self.location(line)}: note: {message}"
        self.notes.append(text)
        self._entries.append(text)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def report(self) -> str:
        """
        Format all records in the order they were reported.

        Returns:
            Formatted string ending with an "N errors, M warnings" summary
        """
        lines = list(self._entries)

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected records."""
        self.errors.clear()
        self.warnings.clear()
        self.notes.clear()
        self._entries.clear()
