"""
Unit Tests for the 6502 Opcode Table
====================================

Tests for mos6502_sdk.cpu: table completeness, encoding, decoding and
instruction lengths.
"""

import pytest

from mos6502_sdk.cpu import (
    AddressingMode,
    BRANCH_MNEMONICS,
    CONTROL_FLOW_OPCODES,
    MNEMONICS,
    OPCODE_TABLE,
    UNKNOWN_MNEMONIC,
    decode,
    encode,
    get_valid_modes,
    instruction_length,
    is_branch_instruction,
    is_valid_instruction,
    opcode_length,
)
from mos6502_sdk.errors import AddressingModeError, ParseError, UnknownMnemonicError


# =============================================================================
# Table Contents
# =============================================================================

class TestOpcodeTable:
    """Tests for the shape of the opcode table."""

    def test_documented_instruction_count(self):
        """The NMOS 6502 has 56 mnemonics and 151 documented opcodes."""
        assert len(MNEMONICS) == 56
        assert len(OPCODE_TABLE) == 151

    def test_opcodes_are_unique(self):
        """No two (mnemonic, mode) pairs share an opcode byte."""
        opcodes = [info.opcode for info in OPCODE_TABLE.values()]
        assert len(opcodes) == len(set(opcodes))

    def test_info_size_matches_mode(self):
        """Every entry's size is the length of its addressing mode."""
        for (_, mode), info in OPCODE_TABLE.items():
            assert info.size == instruction_length(mode)
            assert info.operand_size == info.size - 1

    def test_branch_mnemonics(self):
        """Branches only support relative addressing."""
        assert len(BRANCH_MNEMONICS) == 8
        for mnemonic in BRANCH_MNEMONICS:
            assert get_valid_modes(mnemonic) == [AddressingMode.RELATIVE]

    def test_control_flow_opcodes(self):
        """jmp, jmp (), jsr and the branches transfer control."""
        assert {0x4C, 0x6C, 0x20, 0xD0, 0xF0} <= CONTROL_FLOW_OPCODES
        assert 0xA9 not in CONTROL_FLOW_OPCODES


# =============================================================================
# Encoding
# =============================================================================

class TestEncode:
    """Tests for encode()."""

    @pytest.mark.parametrize("mnemonic,mode,opcode", [
        ("lda", AddressingMode.IMMEDIATE, 0xA9),
        ("lda", AddressingMode.INDIRECT_Y, 0xB1),
        ("sta", AddressingMode.ABSOLUTE, 0x8D),
        ("ldx", AddressingMode.ZEROPAGE_Y, 0xB6),
        ("asl", AddressingMode.ACCUMULATOR, 0x0A),
        ("jmp", AddressingMode.ABSOLUTE, 0x4C),
        ("jmp", AddressingMode.INDIRECT, 0x6C),
        ("jsr", AddressingMode.ABSOLUTE, 0x20),
        ("bne", AddressingMode.RELATIVE, 0xD0),
        ("tya", AddressingMode.IMPLIED, 0x98),
        ("pha", AddressingMode.IMPLIED, 0x48),
        ("nop", AddressingMode.IMPLIED, 0xEA),
        ("brk", AddressingMode.IMPLIED, 0x00),
    ])
    def test_known_opcodes(self, mnemonic, mode, opcode):
        """Encode well-known instructions."""
        assert encode(mnemonic, mode) == opcode

    def test_case_insensitive(self):
        """Mnemonics may be given in any case."""
        assert encode("LDA", AddressingMode.IMMEDIATE) == 0xA9

    def test_unknown_mnemonic(self):
        """An unknown mnemonic is reported as an invalid opcode."""
        with pytest.raises(UnknownMnemonicError, match="Invalid opcode 'xyz'"):
            encode("xyz", AddressingMode.IMPLIED)

    def test_invalid_mode(self):
        """sta has no immediate form."""
        with pytest.raises(AddressingModeError) as exc_info:
            encode("sta", AddressingMode.IMMEDIATE)
        assert "Address mode 'immediate' invalid for operation 'sta'" in str(exc_info.value)
        assert "zeropage" in exc_info.value.valid_modes

    def test_unresolved_symbol_mode(self):
        """A symbol operand cannot be encoded."""
        with pytest.raises(ParseError, match="Unknown symbol for operation 'jmp'"):
            encode("jmp", AddressingMode.SYMBOL)


# =============================================================================
# Decoding
# =============================================================================

class TestDecode:
    """Tests for decode() and opcode_length()."""

    def test_round_trip(self):
        """Every table entry decodes back to its own (mnemonic, mode)."""
        for (mnemonic, mode), info in OPCODE_TABLE.items():
            assert decode(info.opcode) == (mnemonic, mode)

    def test_undocumented_opcode(self):
        """Undocumented bytes decode to the unknown placeholder."""
        assert decode(0x02) == (UNKNOWN_MNEMONIC, AddressingMode.UNKNOWN)
        assert opcode_length(0x02) == 1

    def test_opcode_lengths(self):
        """Lengths follow from the addressing mode."""
        assert opcode_length(0xEA) == 1
        assert opcode_length(0xA9) == 2
        assert opcode_length(0xD0) == 2
        assert opcode_length(0x4C) == 3
        assert opcode_length(0x6C) == 3

    def test_instruction_lengths(self):
        """Sentinel modes have no encoded length."""
        assert instruction_length(AddressingMode.IMPLIED) == 1
        assert instruction_length(AddressingMode.INDIRECT_X) == 2
        assert instruction_length(AddressingMode.ABSOLUTE_Y) == 3
        assert instruction_length(AddressingMode.SYMBOL) == 0
        assert instruction_length(AddressingMode.UNKNOWN) == 0


class TestHelpers:
    """Tests for the predicate helpers."""

    def test_is_valid_instruction(self):
        assert is_valid_instruction("lda")
        assert is_valid_instruction("RTS")
        assert not is_valid_instruction("foo")

    def test_is_branch_instruction(self):
        assert is_branch_instruction("bne")
        assert not is_branch_instruction("jmp")
        assert not is_branch_instruction("bit")

    def test_mode_names(self):
        """Modes print with their short names."""
        assert str(AddressingMode.ZEROPAGE_X) == "zeropage+x"
        assert str(AddressingMode.INDIRECT_Y) == "indirect+y"
        assert AddressingMode.ABSOLUTE.length == 3
