"""
Toolchain Configuration
=======================

Settings shared by the assembler, linker and disassembler. Configuration
can come from:
- Default values (defined here)
- Environment variables (ToolchainConfig.from_env)
- Command-line options (the CLI tools override individual fields)

Addresses are plain integers in the 16-bit 6502 address space.
"""

from dataclasses import dataclass, replace
import os


def parse_address(text: str) -> int:
    """
    Parse an address written as $hex, 0xhex or decimal.

    Raises:
        ValueError: If the text is not a number in 0..0xFFFF
    """
    text = text.strip()
    if text.startswith("$"):
        value = int(text[1:], 16)
    elif text.lower().startswith("0x"):
        value = int(text[2:], 16)
    else:
        value = int(text)
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"address {text} is outside $0000-$FFFF")
    return value


@dataclass
class ToolchainConfig:
    """
    Configuration for the 6502 toolchain.

    Attributes:
        max_line_length: Capacity of the source line buffer, terminator
            included (default: 80). Desymbolication that would grow a line
            past this is a fatal error.
        program_start: Load address of the first segment (default: $0000).
            Labels in segment 0 are relative to it.
        variable_start: First address handed out to `name = value`
            variables (default: $0200, growing upwards away from the stack).
        variable_limit: Highest address a variable may occupy (default: $07FF)
        max_errors: Recoverable errors collected before giving up (default: 100)
    """

    max_line_length: int = 80
    program_start: int = 0x0000
    variable_start: int = 0x0200
    variable_limit: int = 0x07FF
    max_errors: int = 100

    @classmethod
    def from_env(cls) -> "ToolchainConfig":
        """
        Create a ToolchainConfig from environment variables.

        Environment variables (all optional):
            MOS6502_MAX_LINE: Line buffer capacity (integer)
            MOS6502_PROGRAM_START: Segment 0 load address ($hex, 0xhex or decimal)
            MOS6502_VARIABLE_START: First variable address
            MOS6502_MAX_ERRORS: Error limit (integer)

        Returns:
            ToolchainConfig with values from environment variables

        Raises:
            ValueError: If a variable is set to something unparsable
        """
        config = cls()

        if max_line := os.environ.get("MOS6502_MAX_LINE"):
            config.max_line_length = int(max_line)

        if start := os.environ.get("MOS6502_PROGRAM_START"):
            config.program_start = parse_address(start)

        if var_start := os.environ.get("MOS6502_VARIABLE_START"):
            config.variable_start = parse_address(var_start)

        if max_errors := os.environ.get("MOS6502_MAX_ERRORS"):
            config.max_errors = int(max_errors)

        return config

    def with_overrides(self, **changes) -> "ToolchainConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


DEFAULT_CONFIG = ToolchainConfig()
