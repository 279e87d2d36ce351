# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the two-pass 6502 assembler, from source text to
# object bytes, symbols, listings and error reports.
#
# Test coverage includes:
#   - Every operand syntax
#   - Labels, variables, forward references and branches
#   - Directives and multiple blobs
#   - Link-time references (compile-only mode)
#   - Error collection and fatal buffer overflow
# =============================================================================

import logging

import pytest

from mos6502_sdk.assembler import Assembler, assemble, assemble_file
from mos6502_sdk.assembler.codegen import encode_line
from mos6502_sdk.config import ToolchainConfig
from mos6502_sdk.cpu import AddressingMode
from mos6502_sdk.errors import (
    AssemblerError,
    BufferOverflowError,
    UnknownMnemonicError,
)
from mos6502_sdk.objfile import SymbolReference, load_symbol_file


def code_of(source: str, **config) -> bytes:
    obj = assemble(source, config=ToolchainConfig(**config) if config else None)
    return bytes(obj.blobs[0].data)


# =============================================================================
# Instruction Encoding
# =============================================================================

class TestEncodeLine:
    """Tests for encode_line() on already desymbolicated lines."""

    def test_immediate(self):
        instr = encode_line("lda #$ff")
        assert instr.to_bytes() == b"\xa9\xff"
        assert instr.mode is AddressingMode.IMMEDIATE
        assert instr.size == 2

    def test_absolute_is_little_endian(self):
        assert encode_line("jmp $1234").to_bytes() == b"\x4c\x34\x12"

    def test_long_mnemonic(self):
        with pytest.raises(UnknownMnemonicError, match="ldaa"):
            encode_line("ldaa #$01")


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to bytes."""

    def test_minimal_program(self):
        assert code_of("lda #$ff") == b"\xa9\xff"

    def test_backward_jump(self):
        source = """loop: nop
      jmp loop"""
        assert code_of(source) == b"\xea\x4c\x00\x00"

    def test_forward_reference(self):
        source = """  jmp done
  nop
done: rts"""
        assert code_of(source) == b"\x4c\x04\x00\xea\x60"

    def test_backward_branch(self):
        source = """loop: dex
  dex
  bne loop"""
        assert code_of(source) == b"\xca\xca\xd0\xfc"

    def test_forward_branch(self):
        source = """  beq skip
  nop
skip: rts"""
        assert code_of(source) == b"\xf0\x01\xea\x60"

    def test_case_and_comments(self):
        source = """; header comment

LOOP: NOP      ; spin
      JMP LOOP"""
        assert code_of(source) == b"\xea\x4c\x00\x00"

    @pytest.mark.parametrize("line,expected", [
        ("  asl a", b"\x0a"),
        ("  lda *$10", b"\xa5\x10"),
        ("  lda *$10,x", b"\xb5\x10"),
        ("  ldx *$10,y", b"\xb6\x10"),
        ("  lda $1234,x", b"\xbd\x34\x12"),
        ("  lda $1234,y", b"\xb9\x34\x12"),
        ("  lda ($20,x)", b"\xa1\x20"),
        ("  lda ($20),y", b"\xb1\x20"),
        ("  jmp ($0300)", b"\x6c\x00\x03"),
        ("  lda #%00001111", b"\xa9\x0f"),
        ("  lda #10", b"\xa9\x0a"),
        ("  lda #010", b"\xa9\x08"),
    ])
    def test_operand_syntax(self, line, expected):
        assert code_of(line) == expected

    def test_program_start(self):
        assert code_of("loop: jmp loop", program_start=0x0600) == b"\x4c\x00\x06"


# =============================================================================
# Symbols
# =============================================================================

class TestSymbols:
    """Test labels and variables."""

    def test_label_addresses(self):
        asm = Assembler()
        asm.assemble_string("start: nop\nnext: lda #$01\nend: rts")
        assert asm.get_symbols() == {"start": 0, "next": 1, "end": 3}

    def test_variables_are_allocated(self):
        source = """count = 5
other = 0
  lda count
  sta *other"""
        asm = Assembler()
        asm.assemble_string(source)

        assert asm.get_code() == b"\xad\x00\x02\x85\x01"
        table = asm.get_symbol_table()
        assert table.lookup("count").is_variable
        assert table.lookup("count").value == "5"
        assert table.lookup("other").address == 0x0201

    def test_variable_limit(self):
        config = ToolchainConfig(variable_start=0x07FF, variable_limit=0x07FF)
        with pytest.raises(AssemblerError, match="Maximum number of addressable variables"):
            assemble("a1 = 0\na2 = 0", config=config)

    def test_symbol_arithmetic(self):
        source = """table = 0
  lda table+1"""
        assert code_of(source) == b"\xad\x01\x02"

    def test_indirect_through_variable(self):
        source = """ptr = 0
  lda (ptr),y
  jmp (ptr)"""
        assert code_of(source) == b"\xb1\x00\x6c\x00\x02"

    def test_name_starting_with_a_is_not_accumulator(self):
        """Labels such as a_1 are sized as absolute operands in pass 1."""
        asm = Assembler()
        asm.assemble_string("  jmp a_1\na_1: nop\nafter: jmp after")

        assert asm.get_symbols() == {"a_1": 3, "after": 4}
        assert asm.get_code() == b"\x4c\x03\x00\xea\x4c\x04\x00"

    def test_immediate_symbol_takes_low_byte(self):
        source = """  lda #data
data: .byte $41"""
        assert code_of(source) == b"\xa9\x02\x41"


# =============================================================================
# Directives
# =============================================================================

class TestDirectives:
    """Test .org, .end and .byte in context."""

    def test_org_creates_blob(self):
        source = """.org $0600
start: nop
  jmp start"""
        obj = assemble(source)

        assert obj.blobs[0].data == bytearray()
        assert obj.blobs[1].start == 0x0600
        assert obj.blobs[1].data == bytearray(b"\xea\x4c\x00\x06")

    def test_end_returns_to_first_blob(self):
        source = """  nop
.org $0600
  rts
.end
  inx"""
        obj = assemble(source)

        assert obj.blobs[0].data == bytearray(b"\xea\xe8")
        assert obj.blobs[1].data == bytearray(b"\x60")

    def test_byte(self):
        assert code_of("  .byte $41\n  nop") == b"\x41\xea"

    def test_wide_byte_warns(self, caplog):
        asm = Assembler()
        with caplog.at_level(logging.WARNING):
            asm.assemble_string("  .byte $1234", "prog.s")

        assert asm.get_code() == b"\x34"
        assert "prog.s:1: warning: '.byte $1234' does not fit in a byte, emitting $34" in caplog.text
        assert "0 errors, 1 warning" in asm.get_error_report()

    def test_unknown_directive(self):
        with pytest.raises(AssemblerError, match="Unknown directive '.word'"):
            assemble(".word $1234")


# =============================================================================
# Compile-Only Mode
# =============================================================================

class TestUnresolvedSymbols:
    """Test references left for the linker."""

    def test_undefined_symbol_is_error(self):
        with pytest.raises(AssemblerError, match="unresolved/undefined symbol 'nowhere'"):
            assemble("  jmp nowhere")

    def test_reference_recorded(self):
        asm = Assembler(allow_unresolved=True)
        obj = asm.assemble_string("  nop\n  jsr helper")

        assert bytes(obj.blobs[0].data) == b"\xea\x20\x00\x00"
        assert obj.references == [
            SymbolReference("helper", 0, 2, AddressingMode.ABSOLUTE, 2)
        ]

    def test_branch_reference(self):
        asm = Assembler(allow_unresolved=True)
        obj = asm.assemble_string("  bne elsewhere")

        assert bytes(obj.blobs[0].data) == b"\xd0\x00"
        assert obj.references[0].mode is AddressingMode.RELATIVE

    def test_symbols_written_with_references(self, tmp_path):
        asm = Assembler(allow_unresolved=True)
        asm.assemble_string("main: jsr helper")
        path = tmp_path / "main.sym"
        asm.write_symbols(path)

        result = load_symbol_file(path)
        assert result.symbols.lookup("main").address == 0
        assert result.references[0].name == "helper"
        assert result.segments[0].length == 3


# =============================================================================
# Error Handling
# =============================================================================

class TestErrors:
    """Test error collection and reporting."""

    def test_invalid_addressing_mode(self):
        asm = Assembler()
        with pytest.raises(AssemblerError) as exc_info:
            asm.assemble_string("  sta #$10", "prog.s")

        message = str(exc_info.value)
        assert "prog.s:1: error: Address mode 'immediate' invalid for operation 'sta'" in message
        assert asm.has_errors()
        assert "1 error, 0 warnings" in asm.get_error_report()

    def test_unknown_mnemonic(self):
        with pytest.raises(AssemblerError, match="Invalid opcode 'foo'"):
            assemble("  foo")

    def test_all_errors_reported(self):
        """Errors from every line are collected before failing."""
        with pytest.raises(AssemblerError) as exc_info:
            assemble("  sta #1\n  foo\n  nop")
        assert "Assembly failed with 2 errors" in str(exc_info.value)

    def test_duplicate_label(self):
        with pytest.raises(AssemblerError) as exc_info:
            assemble("main: nop\nmain: nop", "dup.s")

        message = str(exc_info.value)
        assert "dup.s:2: error: Encountered duplicate symbol declaration 'main'" in message
        assert "dup.s:1: note: previous definition of 'main' is here" in message

    def test_branch_out_of_range(self):
        source = "start: nop\n" + "  nop\n" * 200 + "  bne start"
        with pytest.raises(AssemblerError, match="out of range"):
            assemble(source)

    def test_line_too_long(self):
        source = "x" * 90 + ": nop"
        with pytest.raises(AssemblerError, match="maximum length of 79"):
            assemble(source)

    def test_buffer_overflow_is_fatal(self):
        """Desymbolication past the buffer aborts instead of truncating."""
        config = ToolchainConfig(max_line_length=8)
        with pytest.raises(BufferOverflowError):
            assemble("  jmp x\nx: nop", config=config)

    def test_too_many_errors(self):
        config = ToolchainConfig(max_errors=2)
        with pytest.raises(AssemblerError, match="Too many errors"):
            assemble("  foo\n  bar\n  baz", config=config)


# =============================================================================
# Output Files
# =============================================================================

class TestOutput:
    """Test listing, trace and file output."""

    def test_listing(self):
        asm = Assembler()
        asm.assemble_string("start: lda #$ff")
        listing = asm.get_listing()

        assert "6502 Assembler Listing" in listing
        assert "$0000  A9 FF" in listing
        assert "start:" in listing

    def test_process_trace(self):
        asm = Assembler()
        asm.assemble_string("loop: nop")
        trace = asm.get_process_trace()

        assert "0x0000:          -    1: loop:" in trace
        assert "0x0000: ea       -    1:" in trace

    def test_assemble_file(self, tmp_path):
        source = tmp_path / "prog.s"
        source.write_text("  lda #$01\n  rts\n")

        obj = assemble_file(source)
        assert bytes(obj.blobs[0].data) == b"\xa9\x01\x60"

    def test_write_outputs(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("main: nop")

        assert asm.write_object(tmp_path / "prog.o") == 1
        asm.write_listing(tmp_path / "prog.lst")

        assert (tmp_path / "prog.o").read_bytes() == b"\xea"
        assert "main:" in (tmp_path / "prog.lst").read_text()
