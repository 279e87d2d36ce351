"""
Desymbolication
===============

Pass 2 of the assembler rewrites every symbol name in a source line into a
numeric literal before the line is encoded. The rewrite happens inside a
bounded line buffer: a literal longer than the name it replaces grows the
line, and growing past the buffer capacity is a fatal BufferOverflowError
rather than a silent truncation.

Substitution Rules
------------------
A symbol matches only as a whole token: it must be preceded by whitespace,
``(``, ``#`` or ``*`` and followed by the end of the line, whitespace,
``,``, ``)``, ``+`` or ``-``. The literal written depends on context:

| Context                  | Written  | Example                       |
|--------------------------|----------|-------------------------------|
| branch mnemonic          | ``$dd``  | ``bne loop`` -> ``bne $fc``   |
| ``*sym``                 | ``$ll``  | ``lda *ptr`` -> ``lda *$10``  |
| ``#sym``                 | ``$ll``  | ``lda #ptr`` -> ``lda #$10``  |
| ``(sym,x)``/``(sym),y``  | ``$ll``  | ``lda (ptr),y``               |
| anything else            | ``$hhll``| ``jmp loop`` -> ``jmp $0000`` |

Branch deltas are signed and measured from the instruction that follows
the two-byte branch.
"""

from typing import Optional
import re

from mos6502_sdk.cpu.mos6502 import is_branch_instruction
from mos6502_sdk.errors import BranchRangeError, BufferOverflowError, SourceLocation
from mos6502_sdk.assembler.lexer import mnemonic_of, parse_value
from mos6502_sdk.symbols import SymbolTable


TOKEN_PREFIXES = frozenset(" \t(#*")
TOKEN_SUFFIXES = frozenset(" \t,)+-")

# Operand text starts after the three-letter mnemonic
OPERAND_START = 3

_NAME_PATTERN = re.compile(r"(?<![^\s(#*])([a-z_][a-z0-9_]*)(?![^\s,)+\-])")

_LITERAL = r"(\$[0-9a-f]+|%[01]+|\d+)"
_ARITHMETIC_PATTERN = re.compile(_LITERAL + r"\s*([+-])\s*" + _LITERAL)


# =============================================================================
# Bounded Line Buffer
# =============================================================================

class LineBuffer:
    """
    A source line with a fixed maximum length.

    The capacity counts a terminator, so a buffer of capacity 80 holds at
    most 79 characters of text.
    """

    def __init__(self, text: str, capacity: int = 80,
                 location: Optional[SourceLocation] = None):
        self._text = text
        self.capacity = capacity
        self.location = location

    @property
    def text(self) -> str:
        return self._text

    @property
    def limit(self) -> int:
        """Maximum number of text characters."""
        return self.capacity - 1

    def splice(self, start: int, length: int, replacement: str) -> None:
        """
        Replace text[start:start + length] with replacement.

        Shrinking always succeeds.

        Raises:
            BufferOverflowError: If growing the line would exceed the limit
        """
        new_length = len(self._text) - length + len(replacement)
        if len(replacement) > length and new_length > self.limit:
            raise BufferOverflowError(new_length, self.capacity, self.location)
        self._text = self._text[:start] + replacement + self._text[start + length:]

    def __str__(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"LineBuffer({self._text!r}, capacity={self.capacity})"


# =============================================================================
# Symbol Matching
# =============================================================================

def find_symbol(text: str, name: str, start: int = OPERAND_START) -> int:
    """
    Find the next whole-token occurrence of name at or after start.

    Returns:
        Index of the match, or -1
    """
    index = text.find(name, start)
    while index >= 0:
        before_ok = index == 0 or text[index - 1] in TOKEN_PREFIXES
        end = index + len(name)
        after_ok = end == len(text) or text[end] in TOKEN_SUFFIXES
        if before_ok and after_ok:
            return index
        index = text.find(name, index + 1)
    return -1


def unresolved_names(line: str) -> list[str]:
    """Names still present in the operand of a desymbolicated line."""
    operand = line[OPERAND_START:]
    if operand.strip() == "a":
        return []
    return _NAME_PATTERN.findall(operand)


def _is_zero_page_context(mnemonic: str, prefix: str) -> bool:
    # jmp (vector) is the only indirect form that takes a full address
    if prefix in ("*", "#"):
        return True
    return prefix == "(" and mnemonic != "jmp"


def substitution_text(mnemonic: str, prefix: str, value: int, address: int,
                      name: str = "") -> str:
    """
    Literal text that replaces a symbol occurrence.

    Args:
        mnemonic: Mnemonic of the line being rewritten
        prefix: Character immediately before the symbol
        value: Address of the symbol
        address: Address of the instruction being assembled
        name: Symbol name, for error messages

    Raises:
        BranchRangeError: If a branch target is more than a signed byte away
    """
    if is_branch_instruction(mnemonic):
        delta = value - (address + 2)
        if not -128 <= delta <= 127:
            raise BranchRangeError(name, delta)
        return f"${delta & 0xFF:02x}"

    if _is_zero_page_context(mnemonic, prefix):
        return f"${value & 0xFF:02x}"

    return f"${value & 0xFFFF:04x}"


def placeholder_text(mnemonic: str, prefix: str) -> str:
    """Zero literal of the width a symbol in this context will occupy."""
    if is_branch_instruction(mnemonic) or _is_zero_page_context(mnemonic, prefix):
        return "$00"
    return "$0000"


# =============================================================================
# Line Rewriting
# =============================================================================

def desymbolicate_line(buffer: LineBuffer, table: SymbolTable, address: int) -> list[str]:
    """
    Replace every symbol occurrence in a normalized instruction line.

    Symbols are tried longest name first. Labels resolve to their absolute
    address and variables to their storage address; neither is offset by
    the segment base.

    Args:
        buffer: Line buffer holding the instruction (label already removed)
        table: Symbol table from pass 1
        address: Address the instruction will be assembled at

    Returns:
        Names that were substituted, in substitution order

    Raises:
        BufferOverflowError: If a substitution does not fit the buffer
        BranchRangeError: If a branch target is out of range
    """
    mnemonic = mnemonic_of(buffer.text)
    substituted: list[str] = []

    for symbol in table:
        position = OPERAND_START
        while True:
            index = find_symbol(buffer.text, symbol.name, position)
            if index < 0:
                break
            prefix = buffer.text[index - 1]
            replacement = substitution_text(mnemonic, prefix, symbol.address, address, symbol.name)
            buffer.splice(index, len(symbol.name), replacement)
            substituted.append(symbol.name)
            position = index + len(replacement)

    return substituted


def replace_unresolved(buffer: LineBuffer, name: str) -> Optional[int]:
    """
    Replace the first occurrence of an undefined name with a zero placeholder.

    Returns:
        Index of the placeholder, or None if the name does not occur
    """
    index = find_symbol(buffer.text, name)
    if index < 0:
        return None
    replacement = placeholder_text(mnemonic_of(buffer.text), buffer.text[index - 1])
    buffer.splice(index, len(name), replacement)
    return index


def resolve_arithmetic(buffer: LineBuffer) -> bool:
    """
    Fold one ``left+right`` or ``left-right`` literal expression.

    The result keeps a one-byte rendering when both operands are one byte
    wide and the result fits, otherwise it is written as ``$hhhh``.

    Returns:
        True if an expression was folded
    """
    match = _ARITHMETIC_PATTERN.search(buffer.text, OPERAND_START)
    if match is None:
        return False

    left = parse_value(match.group(1))
    right = parse_value(match.group(3))
    if match.group(2) == "+":
        result = (left.value + right.value) & 0xFFFF
    else:
        result = (left.value - right.value) & 0xFFFF

    if left.wide or right.wide or result > 0xFF:
        text = f"${result:04x}"
    else:
        text = f"${result:02x}"

    buffer.splice(match.start(), match.end() - match.start(), text)
    return True
