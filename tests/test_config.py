"""
Unit Tests for Configuration and Diagnostics
============================================

Tests for ToolchainConfig, address parsing and the per-run Diagnostics
context.
"""

import pytest

from mos6502_sdk.config import ToolchainConfig, parse_address
from mos6502_sdk.errors import Diagnostics, ParseError, TooManyErrors


# =============================================================================
# Configuration
# =============================================================================

class TestParseAddress:
    """Tests for parse_address()."""

    @pytest.mark.parametrize("text,expected", [
        ("$0600", 0x0600),
        ("0x8000", 0x8000),
        ("0XFFFF", 0xFFFF),
        ("512", 512),
        (" $10 ", 0x10),
    ])
    def test_valid(self, text, expected):
        assert parse_address(text) == expected

    @pytest.mark.parametrize("text", ["$10000", "-1", "nowhere", "$"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_address(text)


class TestToolchainConfig:
    """Tests for ToolchainConfig."""

    def test_defaults(self):
        config = ToolchainConfig()
        assert config.max_line_length == 80
        assert config.program_start == 0x0000
        assert config.variable_start == 0x0200
        assert config.variable_limit == 0x07FF
        assert config.max_errors == 100

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MOS6502_MAX_LINE", "120")
        monkeypatch.setenv("MOS6502_PROGRAM_START", "$8000")
        monkeypatch.setenv("MOS6502_VARIABLE_START", "0x0300")
        monkeypatch.setenv("MOS6502_MAX_ERRORS", "5")

        config = ToolchainConfig.from_env()

        assert config.max_line_length == 120
        assert config.program_start == 0x8000
        assert config.variable_start == 0x0300
        assert config.max_errors == 5

    def test_from_env_unset(self, monkeypatch):
        for name in ("MOS6502_MAX_LINE", "MOS6502_PROGRAM_START",
                     "MOS6502_VARIABLE_START", "MOS6502_MAX_ERRORS"):
            monkeypatch.delenv(name, raising=False)
        assert ToolchainConfig.from_env() == ToolchainConfig()

    def test_from_env_invalid(self, monkeypatch):
        monkeypatch.setenv("MOS6502_PROGRAM_START", "somewhere")
        with pytest.raises(ValueError):
            ToolchainConfig.from_env()

    def test_with_overrides_ignores_none(self):
        config = ToolchainConfig(max_errors=7)
        changed = config.with_overrides(program_start=0x0600, max_line_length=None)

        assert changed.program_start == 0x0600
        assert changed.max_line_length == 80
        assert changed.max_errors == 7
        assert config.program_start == 0


# =============================================================================
# Diagnostics
# =============================================================================

class TestDiagnostics:
    """Tests for the Diagnostics context."""

    def test_error_is_stamped_with_line(self):
        diag = Diagnostics("prog.s")
        diag.line = 3
        diag.error(ParseError("Invalid literal value '$zz'"))

        assert diag.has_errors()
        assert diag.errors[0].location.line == 3
        assert "prog.s:3: error: Invalid literal value '$zz'" in diag.report()

    def test_report_keeps_order_and_counts(self):
        diag = Diagnostics("prog.s")
        diag.warn("first", line=1)
        diag.line = 2
        diag.error(ParseError("second"))
        diag.note("third", line=1)

        lines = diag.report().splitlines()
        assert lines[0] == "prog.s:1: warning: first"
        assert lines[1] == "prog.s:2: error: second"
        assert lines[2] == "prog.s:1: note: third"
        assert lines[-1] == "1 error, 1 warning"

    def test_too_many_errors(self):
        diag = Diagnostics("prog.s", max_errors=2)
        diag.error(ParseError("one"))
        with pytest.raises(TooManyErrors):
            diag.error(ParseError("two"))

    def test_clear(self):
        diag = Diagnostics()
        diag.error(ParseError("oops"))
        diag.clear()
        assert not diag.has_errors()
        assert diag.report() == "0 errors, 0 warnings"
