"""
6502 Assembly Line Lexer
========================

This module classifies single lines of 6502 assembly source. The assembler
is line oriented: every line holds at most one label, one instruction or
directive, and one comment, so the lexer works on whole lines rather than a
token stream.

Line Grammar
------------
    [label[:]] [;comment]
    [whitespace] mnemonic [operand] [;comment]
    .directive [argument]
    name = value

Operand Syntax
--------------
The operand prefix selects the addressing mode before any symbol is
resolved. See mos6502_sdk.cpu.mos6502 for the full table.

| Prefix | Mode        | Example        |
|--------|-------------|----------------|
| (none) | implied     | ``nop``        |
| a      | accumulator | ``asl a``      |
| #      | immediate   | ``lda #$ff``   |
| *      | zero page   | ``lda *$10,x`` |
| (      | indirect    | ``lda ($20),y``|
| $HHLL  | absolute    | ``jmp $0600``  |
| $BB    | relative    | ``bne $fc``    |

Number Formats
--------------
| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Hexadecimal | $      | $7f     | 127   |
| Binary      | %      | %1010   | 10    |
| Octal       | 0      | 0177    | 127   |
| Decimal     | (none) | 123     | 123   |

Example
-------
>>> from mos6502_sdk.assembler.lexer import address_mode_for_line
>>> str(address_mode_for_line("lda ($20),y"))
'indirect+y'
"""

from dataclasses import dataclass
from typing import Optional
import string

from mos6502_sdk.cpu.mos6502 import (
    AddressingMode,
    INDEXED_VARIANTS,
    is_branch_instruction,
    is_valid_instruction,
)


# Characters removed from an operand before its value is parsed
_IGNORED_IN_VALUE = frozenset(" \t#*();")

_HEX_DIGITS = frozenset(string.hexdigits)

# Digit alphabet per base, used for strtol-style prefix parsing
_BASE_DIGITS = {
    16: frozenset("0123456789abcdefABCDEF"),
    10: frozenset("0123456789"),
    8: frozenset("01234567"),
    2: frozenset("01"),
}


# =============================================================================
# Numeric Literals
# =============================================================================

@dataclass(frozen=True)
class NumericLiteral:
    """
    A parsed numeric operand.

    Attributes:
        value: The value, truncated to 16 bits
        wide: True if the literal needs two bytes, either because of its
            magnitude or because it was written with more digits than a
            byte-sized literal of its base has
    """
    value: int
    wide: bool

    @property
    def high(self) -> int:
        return (self.value >> 8) & 0xFF

    @property
    def low(self) -> int:
        return self.value & 0xFF


def _digit_run(text: str) -> int:
    """Length of the leading run of decimal digits and lowercase a-f."""
    count = 0
    for ch in text:
        if ch.isdigit() or "a" <= ch <= "f":
            count += 1
        else:
            break
    return count


def _prefix_value(text: str, base: int) -> int:
    """
    Parse the longest valid prefix of text in the given base.

    Mirrors C strtol: an optional sign, then digits; anything after the
    first invalid character is ignored and an empty digit run is 0.
    """
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    digits = _BASE_DIGITS[base]
    end = 0
    while end < len(text) and text[end] in digits:
        end += 1

    if end == 0:
        return 0
    return sign * int(text[:end], base)


def clean_value_text(text: str) -> str:
    """
    Strip an operand down to its literal text.

    Removes whitespace, ``#``, ``*``, parentheses, ``;`` and non-ASCII
    characters, and truncates after the first comma.
    """
    out = []
    for ch in text:
        if ch not in _IGNORED_IN_VALUE and ord(ch) < 0x7F:
            out.append(ch)
        if ch == ",":
            break
    return "".join(out)


def parse_value(text: Optional[str]) -> NumericLiteral:
    """
    Parse a numeric literal.

    The first significant character selects the base: ``$`` hex, ``%``
    binary, a leading ``0`` octal, anything else decimal.

    Args:
        text: Operand text, possibly with addressing-mode decoration

    Returns:
        NumericLiteral with the 16-bit value and width flag
    """
    if not text:
        return NumericLiteral(0, False)

    work = clean_value_text(text)
    if not work:
        return NumericLiteral(0, False)

    first = work[0]
    if first == "$":
        wide = _digit_run(work[1:]) > 2
        value = _prefix_value(work[1:], 16)
    elif first == "%":
        wide = _digit_run(work[1:]) > 8
        value = _prefix_value(work[1:], 2)
    elif first == "0":
        wide = _digit_run(work[1:]) > 3
        value = _prefix_value(work, 8)
    else:
        wide = _digit_run(work[1:]) > 3
        value = _prefix_value(work, 10)

    value &= 0xFFFF
    if value > 0xFF:
        wide = True

    return NumericLiteral(value, wide)


def byte_values(text: Optional[str]) -> tuple[int, int]:
    """Return the (high, low) bytes of a literal."""
    literal = parse_value(text)
    return literal.high, literal.low


def is_number(text: str) -> bool:
    """Check whether an operand starts like a numeric literal."""
    if not text:
        return False
    if text[0] == "$":
        return len(text) > 1 and text[1] in _HEX_DIGITS
    if text[0] == "%":
        return len(text) > 1 and text[1] in "01"
    return text[0].isdigit()


def is_valid_literal(operand: str) -> bool:
    """
    Check that an operand holds only a numeric literal.

    Used after desymbolication: anything that is still not hex/octal/decimal
    digits (after the ``(``, ``#``, ``*``, ``$`` and ``%`` prefixes, and up to
    a comma or closing parenthesis) is a stray symbol.
    """
    text = operand.strip()
    if not text:
        return True

    while text and text[0] in "(#*":
        text = text[1:]
    if text[:1] in ("$", "%"):
        text = text[1:]

    for ch in text:
        if ch in ",)":
            break
        if ch not in _HEX_DIGITS:
            return False
    return True


# =============================================================================
# Line Normalization
# =============================================================================

def strip_comment(text: str) -> str:
    """Remove everything from the first ``;``."""
    index = text.find(";")
    return text if index < 0 else text[:index]


def clean_line(text: str) -> str:
    """Strip comment and trailing whitespace and lowercase, keeping indentation."""
    return strip_comment(text).rstrip().lower()


def normalize_line(text: str) -> str:
    """Strip comment, surrounding whitespace and case from a source line."""
    return clean_line(text).lstrip()


def mnemonic_of(line: str) -> str:
    """The mnemonic of a normalized instruction line."""
    return line[:3]


def operand_of(line: str) -> str:
    """The operand text of a normalized instruction line."""
    return line[3:].strip()


def is_variable_declaration(line: str) -> bool:
    """``name = value`` lines declare variables."""
    return "=" in line


def split_label(line: str) -> tuple[Optional[str], str]:
    """
    Separate a leading label from the rest of a cleaned line.

    A label starts in column 0 with an alphanumeric character and ends at
    the first whitespace or ``:``. A bare mnemonic in column 0 (``nop``,
    ``lda #$ff``) is an instruction, not a label.

    Args:
        line: Line with comment removed and indentation preserved

    Returns:
        (label name or None, remaining normalized text)
    """
    if not line or not line[0].isalnum():
        return None, line.strip()

    end = 0
    while end < len(line) and not line[end].isspace() and line[end] not in ":=":
        end += 1
    name = line[:end]
    rest = line[end:]

    if rest.startswith(":"):
        return name, rest[1:].strip()

    if is_valid_instruction(name) and len(name) == 3 and not rest.lstrip().startswith("="):
        return None, line.strip()

    return name, rest.strip()


# =============================================================================
# Addressing Mode Classification
# =============================================================================

def _upgrade_for_register(mode: AddressingMode, operand: str) -> AddressingMode:
    """Upgrade a base mode to its X/Y variant from the letter after the first comma."""
    comma = operand.find(",")
    if comma < 0 or mode not in INDEXED_VARIANTS:
        return mode

    register = operand[comma + 1:comma + 2].lower()
    x_mode, y_mode = INDEXED_VARIANTS[mode]
    if register == "x":
        return x_mode
    if register == "y":
        return y_mode
    return mode


def address_mode_for_line(line: str) -> AddressingMode:
    """
    Classify the operand of a normalized instruction line.

    Works on text alone, without the symbol table, looking at the first
    non-blank character after the three-letter mnemonic:

    - end of line: implied
    - ``a`` not followed by a name character: accumulator
    - ``#``: immediate
    - ``*``: zero page (+X/+Y)
    - ``(``: indirect (+X/+Y)
    - a two-byte literal: absolute (+X/+Y)
    - a one-byte literal: relative
    - any other text: symbol

    Returns:
        The addressing mode, or UNKNOWN for an empty line
    """
    line = line.strip()
    if not line:
        return AddressingMode.UNKNOWN

    operand = line[3:].lstrip()
    if not operand or operand[0] == ";":
        return AddressingMode.IMPLIED

    first = operand[0]
    if first == "a":
        if len(operand) > 1 and (operand[1].isalnum() or operand[1] == "_"):
            return AddressingMode.SYMBOL
        return AddressingMode.ACCUMULATOR
    if first == "#":
        return AddressingMode.IMMEDIATE
    if first == "*":
        return _upgrade_for_register(AddressingMode.ZEROPAGE, operand)
    if first == "(":
        return _upgrade_for_register(AddressingMode.INDIRECT, operand)

    literal = parse_value(operand)
    if literal.wide:
        return _upgrade_for_register(AddressingMode.ABSOLUTE, operand)
    if is_number(operand):
        return AddressingMode.RELATIVE
    return AddressingMode.SYMBOL


def effective_address_mode(line: str) -> AddressingMode:
    """
    Classify a line, resolving the symbol sentinel to its encoded mode.

    A bare symbol operand becomes a relative displacement for branches and
    an absolute address (+X/+Y) otherwise, which is what desymbolication
    will write in its place. Both assembler passes size lines with this
    function so label addresses agree with emitted code.
    """
    mode = address_mode_for_line(line)
    if mode is not AddressingMode.SYMBOL:
        return mode

    line = line.strip()
    if is_branch_instruction(mnemonic_of(line)):
        return AddressingMode.RELATIVE
    return _upgrade_for_register(AddressingMode.ABSOLUTE, operand_of(line))
