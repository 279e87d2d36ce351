"""
Symbol Table
============

Named addresses collected by assembler pass 1 (or synthesized by the
disassembler) and consumed by desymbolication in pass 2.

Symbols are kept sorted by descending name length. Desymbolication scans
the table in this order, so the longest name that matches at a position is
always tried first and a short symbol never claims part of a longer one.

Symbol kinds:
- LABEL: an address in the program (``loop:``)
- VARIABLE: a one-byte storage cell allocated from the variable area
  (``counter = 0``)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional
import logging

from mos6502_sdk.errors import DuplicateSymbolError, SourceLocation

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    """Kind of named address."""
    LABEL = "label"
    VARIABLE = "variable"

    def __str__(self) -> str:
        return self.value


@dataclass
class Symbol:
    """
    A named address.

    Attributes:
        name: Symbol name (normalized to lowercase by the assembler)
        kind: LABEL or VARIABLE
        address: 16-bit address
        line: Line number of the definition (0 when synthesized)
        value: Initializer text for variables, None for labels
    """
    name: str
    kind: SymbolKind
    address: int
    line: int = 0
    value: Optional[str] = None

    @property
    def is_label(self) -> bool:
        return self.kind is SymbolKind.LABEL

    @property
    def is_variable(self) -> bool:
        return self.kind is SymbolKind.VARIABLE

    def __str__(self) -> str:
        kind = "Label" if self.is_label else "Variable"
        return f'{kind} {{ name = "{self.name}", addr = {self.address:#06x}, line = {self.line} }}'


class SymbolTable:
    """
    Ordered collection of symbols with duplicate detection.

    Iteration yields symbols longest name first; among names of equal
    length, insertion order is preserved.

    Example:
        table = SymbolTable()
        table.add(Symbol("loop", SymbolKind.LABEL, 0x0000, line=1))
        table.lookup("loop").address  # 0
    """

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._symbols: list[Symbol] = []
        self._by_name: dict[str, Symbol] = {}

    def add(self, symbol: Symbol) -> Symbol:
        """
        Add a symbol.

        Raises:
            DuplicateSymbolError: If the name is already defined. The table
                is left unchanged and keeps the first definition.
        """
        existing = self._by_name.get(symbol.name)
        if existing is not None:
            raise DuplicateSymbolError(
                symbol.name,
                original_location=SourceLocation(self.filename, existing.line),
            )

        index = len(self._symbols)
        for i, other in enumerate(self._symbols):
            if len(other.name) < len(symbol.name):
                index = i
                break

        self._symbols.insert(index, symbol)
        self._by_name[symbol.name] = symbol
        logger.debug(f"Added {symbol}")
        return symbol

    def add_label(self, name: str, address: int, line: int = 0) -> Symbol:
        return self.add(Symbol(name, SymbolKind.LABEL, address & 0xFFFF, line))

    def add_variable(self, name: str, address: int, line: int = 0,
                     value: Optional[str] = None) -> Symbol:
        return self.add(Symbol(name, SymbolKind.VARIABLE, address & 0xFFFF, line, value))

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find a symbol by name."""
        return self._by_name.get(name)

    def symbol_for_address(self, address: int) -> Optional[Symbol]:
        """
        Find the label at an address.

        Labels win over variables sharing the address; returns None if no
        symbol has it.
        """
        fallback = None
        for symbol in self._symbols:
            if symbol.address == address:
                if symbol.is_label:
                    return symbol
                fallback = fallback or symbol
        return fallback

    def labels(self) -> list[Symbol]:
        return [s for s in self._symbols if s.is_label]

    def variables(self) -> list[Symbol]:
        return [s for s in self._symbols if s.is_variable]

    def by_address(self) -> list[Symbol]:
        """Symbols sorted by address, then definition line."""
        return sorted(self._symbols, key=lambda s: (s.address, s.line))

    def merge(self, symbols: Iterable[Symbol]) -> None:
        """Add every symbol from another table or iterable."""
        for symbol in symbols:
            self.add(symbol)

    def dump(self) -> str:
        """Render the table one symbol per line, in match order."""
        return "\n".join(str(symbol) for symbol in self._symbols)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"SymbolTable({len(self._symbols)} symbols)"
