"""
Command-Line Tool Tests
=======================

End-to-end tests for as6502, ld6502 and dis6502 through click's test
runner:
- Default and explicit output files
- Process trace and symbol table printing
- Exit codes and no output on failure
- Compile-only objects linked into an iNES image
- Disassembly back to source
"""

from pathlib import Path

from click.testing import CliRunner

from mos6502_sdk.cli.as6502 import main as as6502_main
from mos6502_sdk.cli.dis6502 import main as dis6502_main
from mos6502_sdk.cli.ld6502 import main as ld6502_main
from mos6502_sdk.cli.errors import ExitCode


LOOP_SOURCE = """loop: nop
  jmp loop
"""


# =============================================================================
# as6502
# =============================================================================

class TestAssemblerCLI:
    """Tests for the as6502 command."""

    def test_version(self):
        result = CliRunner().invoke(as6502_main, ["--version"])
        assert result.exit_code == 0
        assert "as6502" in result.output

    def test_default_output(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)

            result = runner.invoke(as6502_main, ["prog.s"])

            assert result.exit_code == 0, result.output
            assert Path("prog.o").read_bytes() == b"\xea\x4c\x00\x00"

    def test_explicit_output_and_listing(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)

            result = runner.invoke(
                as6502_main,
                ["prog.s", "-o", "prog.bin", "-l", "prog.lst", "-s", "prog.sym"]
            )

            assert result.exit_code == 0, result.output
            assert Path("prog.bin").exists()
            assert "loop:" in Path("prog.lst").read_text()
            assert "loop $0000 label 1" in Path("prog.sym").read_text()

    def test_base_address(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)

            result = runner.invoke(as6502_main, ["--base", "$0600", "prog.s"])

            assert result.exit_code == 0, result.output
            assert Path("prog.o").read_bytes() == b"\xea\x4c\x00\x06"

    def test_bad_base_address(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)
            result = runner.invoke(as6502_main, ["--base", "nowhere", "prog.s"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_print_process_and_table(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)

            result = runner.invoke(as6502_main, ["-S", "-T", "prog.s"])

            assert result.exit_code == 0, result.output
            assert "0x0000: ea       -    1:" in result.output
            assert "loop" in result.output

    def test_error_exit_code_and_no_output(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("bad.s").write_text("  sta #$10\n")

            result = runner.invoke(as6502_main, ["bad.s"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "bad.s:1: error:" in result.output
            assert not Path("bad.o").exists()

    def test_output_needs_single_input(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("a.s").write_text("  nop\n")
            Path("b.s").write_text("  rts\n")

            result = runner.invoke(as6502_main, ["a.s", "b.s", "-o", "out.o"])

            assert result.exit_code == ExitCode.INVALID_ARGS
            assert not Path("out.o").exists()

    def test_compile_only_writes_sidecars(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.s").write_text("main: jsr helper\n  rts\n")
            Path("lib.s").write_text("helper: rts\n")

            result = runner.invoke(as6502_main, ["-c", "main.s", "lib.s"])

            assert result.exit_code == 0, result.output
            for name in ("main.o", "main.sym", "lib.o", "lib.sym"):
                assert Path(name).exists()
            assert "helper 0 1 absolute 1" in Path("main.sym").read_text()

    def test_undefined_symbol_without_compile_only(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.s").write_text("  jsr helper\n")

            result = runner.invoke(as6502_main, ["main.s"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "helper" in result.output


# =============================================================================
# ld6502
# =============================================================================

class TestLinkerCLI:
    """Tests for the ld6502 command."""

    def test_link_to_ines(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.s").write_text("main: jsr helper\n  rts\n")
            Path("lib.s").write_text("helper: rts\n")
            runner.invoke(as6502_main, ["-c", "main.s"])
            runner.invoke(as6502_main, ["-c", "--base", "4", "lib.s"])

            result = runner.invoke(ld6502_main, ["main.o", "lib.o", "-o", "game.nes", "--pal"])

            assert result.exit_code == 0, result.output
            data = Path("game.nes").read_bytes()
            assert data[:4] == b"NES\x1a"
            assert data[9] & 0x01 == 1
            assert data[16:21] == b"\x20\x04\x00\x60\x60"

    def test_duplicate_symbol_writes_nothing(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("a.s").write_text("main: nop\n")
            Path("b.s").write_text("  nop\nmain: rts\n")
            runner.invoke(as6502_main, ["-c", "a.s"])
            runner.invoke(as6502_main, ["-c", "--base", "1", "b.s"])

            result = runner.invoke(ld6502_main, ["a.o", "b.o", "-o", "game.nes"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "duplicate symbol declaration 'main'" in result.output
            assert not Path("game.nes").exists()

    def test_unresolved_symbol(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.s").write_text("  jsr helper\n")
            runner.invoke(as6502_main, ["-c", "main.s"])

            result = runner.invoke(ld6502_main, ["main.o", "-o", "game.nes"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "Unresolved symbol 'helper'" in result.output
            assert not Path("game.nes").exists()

    def test_output_is_required(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.o").write_bytes(b"\xea")
            result = runner.invoke(ld6502_main, ["main.o"])
            assert result.exit_code == 2


# =============================================================================
# dis6502
# =============================================================================

class TestDisassemblerCLI:
    """Tests for the dis6502 command."""

    def test_synthesized_labels(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.o").write_bytes(b"\xea\x4c\x00\x00")

            result = runner.invoke(dis6502_main, ["prog.o"])

            assert result.exit_code == 0, result.output
            assert result.output == "Label1:\n\tnop\n\tjmp Label1\n"

    def test_sidecar_names(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text(LOOP_SOURCE)
            runner.invoke(as6502_main, ["-c", "prog.s"])

            result = runner.invoke(dis6502_main, ["prog.o"])

            assert result.exit_code == 0, result.output
            assert result.output == "loop:\n\tnop\n\tjmp loop\n"

    def test_output_file_reassembles(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.s").write_text("loop: dex\n  bne loop\n  lda ($20),y\n  rts\n")
            runner.invoke(as6502_main, ["prog.s"])

            result = runner.invoke(dis6502_main, ["prog.o", "-o", "again.s"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(as6502_main, ["again.s"])
            assert result.exit_code == 0, result.output
            assert Path("again.o").read_bytes() == Path("prog.o").read_bytes()

    def test_annotate(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("prog.o").write_bytes(b"\xa9\xff")

            result = runner.invoke(dis6502_main, ["prog.o", "--annotate"])

            assert result.output == "0x0000: a9 ff    -    lda #$ff\n"

    def test_ines_input(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.s").write_text("  nop\n  rts\n")
            runner.invoke(as6502_main, ["-c", "main.s"])
            runner.invoke(ld6502_main, ["main.o", "-o", "game.nes"])

            result = runner.invoke(dis6502_main, ["game.nes"])

            assert result.exit_code == 0, result.output
            assert result.output.startswith("\tnop\n\trts\n")

    def test_empty_input(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("empty.o").write_bytes(b"")

            result = runner.invoke(dis6502_main, ["empty.o"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "empty" in result.output
