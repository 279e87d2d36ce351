"""
Assembler Directives
====================

Dot directives steer which blob of the object receives emitted bytes:

    .org <addr>    start a new blob loaded at addr and make it current
    .end           make blob 0 current again
    .byte <value>  append one literal byte to the current blob

Directive names are case-insensitive. Arguments use the same literal
syntax as instruction operands.
"""

from mos6502_sdk.assembler.lexer import parse_value
from mos6502_sdk.objfile.object import BlobCursor, ObjectFile

# Shortest line that can hold a directive (".end")
MIN_DIRECTIVE_LENGTH = 4


def process_directive(obj: ObjectFile, cursor: BlobCursor,
                      line: str) -> tuple[bool, BlobCursor]:
    """
    Apply a directive line to an object.

    Args:
        obj: Object receiving the effect
        cursor: Current blob
        line: Source line with comment stripped

    Returns:
        (handled, cursor). handled is False when the line is not one of
        the known directives, in which case cursor is returned unchanged.
    """
    text = line.strip()
    if len(text) < MIN_DIRECTIVE_LENGTH or not text.startswith("."):
        return False, cursor

    parts = text.split(None, 1)
    name = parts[0].lower()
    argument = parts[1] if len(parts) > 1 else ""

    if name == ".org":
        index = obj.add_blob(parse_value(argument).value)
        return True, cursor.moved_to(index)

    if name == ".end":
        return True, cursor.moved_to(0)

    if name == ".byte":
        obj.append_byte(cursor.index, parse_value(argument).low)
        return True, cursor

    return False, cursor
