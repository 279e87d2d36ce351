"""
Unit Tests for Desymbolication
==============================

Tests for the bounded line buffer, whole-token symbol matching, literal
substitution and constant folding.
"""

import pytest

from mos6502_sdk.assembler.desymbolicate import (
    LineBuffer,
    desymbolicate_line,
    find_symbol,
    placeholder_text,
    replace_unresolved,
    resolve_arithmetic,
    substitution_text,
    unresolved_names,
)
from mos6502_sdk.errors import BranchRangeError, BufferOverflowError
from mos6502_sdk.symbols import SymbolTable


def make_table(**labels):
    table = SymbolTable()
    for name, address in labels.items():
        table.add_label(name, address)
    return table


# =============================================================================
# Line Buffer
# =============================================================================

class TestLineBuffer:
    """Tests for LineBuffer."""

    def test_splice(self):
        buffer = LineBuffer("jmp loop")
        buffer.splice(4, 4, "$0600")
        assert buffer.text == "jmp $0600"
        assert len(buffer) == 9

    def test_limit_excludes_terminator(self):
        assert LineBuffer("", capacity=80).limit == 79

    def test_growth_past_limit_overflows(self):
        buffer = LineBuffer("jmp x", capacity=8)
        with pytest.raises(BufferOverflowError, match="Could not shift string far enough"):
            buffer.splice(4, 1, "$0000")
        assert buffer.text == "jmp x"

    def test_shrinking_always_fits(self):
        """Replacing a long name with a shorter literal never overflows."""
        buffer = LineBuffer("jmp a_rather_long_name", capacity=10)
        buffer.splice(4, 18, "$0000")
        assert buffer.text == "jmp $0000"


# =============================================================================
# Symbol Matching
# =============================================================================

class TestFindSymbol:
    """Tests for whole-token matching."""

    def test_plain_operand(self):
        assert find_symbol("lda loop", "loop") == 4

    def test_prefixes(self):
        assert find_symbol("lda #ptr", "ptr") == 5
        assert find_symbol("lda *ptr", "ptr") == 5
        assert find_symbol("lda (ptr),y", "ptr") == 5

    def test_partial_names_do_not_match(self):
        assert find_symbol("lda loopy", "loop") == -1
        assert find_symbol("lda xloop", "loop") == -1

    def test_mnemonic_is_not_searched(self):
        """Matching starts after the three-letter mnemonic."""
        assert find_symbol("and and", "and") == 4

    def test_unresolved_names(self):
        assert unresolved_names("jmp far_away") == ["far_away"]
        assert unresolved_names("lda $1000,x") == []
        assert unresolved_names("asl a") == []


# =============================================================================
# Substitution
# =============================================================================

class TestSubstitution:
    """Tests for substitution_text() and desymbolicate_line()."""

    def test_absolute(self):
        assert substitution_text("jmp", " ", 0x0600, 0) == "$0600"

    def test_zero_page_contexts(self):
        assert substitution_text("lda", "*", 0x1234, 0) == "$34"
        assert substitution_text("lda", "#", 0x1234, 0) == "$34"
        assert substitution_text("lda", "(", 0x0010, 0) == "$10"

    def test_jmp_indirect_is_wide(self):
        assert substitution_text("jmp", "(", 0x0300, 0) == "$0300"

    def test_branch_backward(self):
        """Deltas are measured from the byte after the branch."""
        assert substitution_text("bne", " ", 0x0000, 0x0002) == "$fc"

    def test_branch_forward(self):
        assert substitution_text("beq", " ", 0x0010, 0x0000) == "$0e"

    def test_branch_out_of_range(self):
        with pytest.raises(BranchRangeError) as exc_info:
            substitution_text("bne", " ", 0x0200, 0x0000, "far")
        assert exc_info.value.offset == 0x1FE

    def test_placeholders(self):
        assert placeholder_text("jmp", " ") == "$0000"
        assert placeholder_text("lda", "#") == "$00"
        assert placeholder_text("bcc", " ") == "$00"

    def test_line_without_symbols_is_unchanged(self):
        buffer = LineBuffer("lda #$10")
        assert desymbolicate_line(buffer, make_table(foo=0x1234), 0) == []
        assert buffer.text == "lda #$10"

    def test_desymbolicate_absolute(self):
        buffer = LineBuffer("jmp loop")
        assert desymbolicate_line(buffer, make_table(loop=0x0600), 0) == ["loop"]
        assert buffer.text == "jmp $0600"

    def test_desymbolicate_indirect_y(self):
        buffer = LineBuffer("lda (ptr),y")
        desymbolicate_line(buffer, make_table(ptr=0x0010), 0)
        assert buffer.text == "lda ($10),y"

    def test_desymbolicate_jmp_indirect(self):
        buffer = LineBuffer("jmp (vector)")
        desymbolicate_line(buffer, make_table(vector=0x0300), 0)
        assert buffer.text == "jmp ($0300)"

    def test_desymbolicate_branch(self):
        buffer = LineBuffer("bne loop")
        desymbolicate_line(buffer, make_table(loop=0x0000), 0x0010)
        assert buffer.text == "bne $ee"

    def test_longest_name_wins(self):
        """'ptr_hi' is not rewritten as 'ptr' followed by junk."""
        buffer = LineBuffer("lda ptr_hi")
        desymbolicate_line(buffer, make_table(ptr=0x0010, ptr_hi=0x0011), 0)
        assert buffer.text == "lda $0011"

    def test_symbol_before_offset(self):
        buffer = LineBuffer("lda table+1,x")
        desymbolicate_line(buffer, make_table(table=0x0300), 0)
        assert buffer.text == "lda $0300+1,x"

    def test_overflow_propagates(self):
        buffer = LineBuffer("jmp x", capacity=8)
        with pytest.raises(BufferOverflowError):
            desymbolicate_line(buffer, make_table(x=0x0600), 0)

    def test_replace_unresolved(self):
        buffer = LineBuffer("jsr helper")
        assert replace_unresolved(buffer, "helper") == 4
        assert buffer.text == "jsr $0000"
        assert replace_unresolved(buffer, "helper") is None


# =============================================================================
# Constant Folding
# =============================================================================

class TestResolveArithmetic:
    """Tests for resolve_arithmetic()."""

    def test_narrow_sum_stays_narrow(self):
        buffer = LineBuffer("lda #$10+$01")
        assert resolve_arithmetic(buffer)
        assert buffer.text == "lda #$11"

    def test_wide_operand_gives_wide_result(self):
        buffer = LineBuffer("lda $1000+2")
        assert resolve_arithmetic(buffer)
        assert buffer.text == "lda $1002"

    def test_subtraction(self):
        buffer = LineBuffer("lda $0010-1")
        assert resolve_arithmetic(buffer)
        assert buffer.text == "lda $000f"

    def test_overflowing_byte_widens(self):
        buffer = LineBuffer("lda #$ff+$01")
        resolve_arithmetic(buffer)
        assert buffer.text == "lda #$0100"

    def test_no_expression(self):
        buffer = LineBuffer("lda #$10")
        assert not resolve_arithmetic(buffer)
        assert buffer.text == "lda #$10"
