"""
Main Memory
===========

4096 words of 16 bits.  Besides its value, every cell carries two pieces
of display metadata set by program loading:

- ``label``: the assembler label defined at that address (or "")
- ``disassembly``: the source text of the word placed there (or "")

A plain store from a running program (``write``) replaces the value and
clears both strings, since the cell no longer holds what was assembled.

Dump Format
-----------
``Ram.dump()`` renders all cells in address order as 4-digit upper-case
hex words separated by single spaces.  This is the only persistence
format: it can be pasted back into a loader or diffed between runs.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterator

from mano_sim.emulator.register import validate_value


ADDRESS_WIDTH = 12
WORD_WIDTH = 16
SIZE = 1 << ADDRESS_WIDTH

NOT_FOUND = -1


@dataclass
class MemoryCell:
    """
    One addressable word plus its display metadata.

    Attributes:
        address: Cell address (0-0xFFF)
        value: The stored word
        label: Label defined at this address, or ""
        disassembly: Source text of the assembled word, or ""
    """
    address: int
    value: int = 0
    label: str = ""
    disassembly: str = ""

    @property
    def address_text(self) -> str:
        """Address as 3-digit upper-case hex."""
        return f"{self.address:03X}"

    @property
    def hex(self) -> str:
        return f"{self.value:04X}"

    def clear(self) -> None:
        self.value = 0
        self.label = ""
        self.disassembly = ""


class _WordView(Sequence):
    """Read-only sequence of the current word values."""

    def __init__(self, cells: list[MemoryCell]):
        self._cells = cells

    def __getitem__(self, address):
        if isinstance(address, slice):
            return [cell.value for cell in self._cells[address]]
        return self._cells[address].value

    def __len__(self) -> int:
        return len(self._cells)


class Ram:
    """
    The machine's main memory.

    Attributes:
        symbol_cache: Address lookups made by indirect symbol breakpoints,
            keyed by label name (NOT_FOUND when the label does not exist).
            Cleared whenever the machine is reset.

    Example:
        >>> ram = Ram()
        >>> ram.write(0x10, 0xBEEF)
        >>> ram.read(0x10)
        48879
        >>> ram.dump()[:14]
        '0000 0000 0000'
    """

    def __init__(self, size: int = SIZE):
        self.size = size
        self.cells = [MemoryCell(address) for address in range(size)]
        self.symbol_cache: dict[str, int] = {}
        self._words = _WordView(self.cells)

    @property
    def max_address(self) -> int:
        return self.size - 1

    @property
    def words(self) -> Sequence:
        """Live read-only view of every word, indexed by address."""
        return self._words

    def _validate_address(self, address: int) -> None:
        validate_value(address, ADDRESS_WIDTH)
        if address >= self.size:
            raise IndexError(f"address {address:03X} outside memory")

    def read(self, address: int) -> int:
        self._validate_address(address)
        return self.cells[address].value

    def write(self, address: int, value: int) -> None:
        """Store a word, clearing the cell's label and disassembly."""
        self._validate_address(address)
        validate_value(value, WORD_WIDTH)
        cell = self.cells[address]
        cell.value = value
        cell.label = ""
        cell.disassembly = ""

    def load_word(self, address: int, value: int, disassembly: str = "") -> None:
        """Store an assembled word together with its source text."""
        self._validate_address(address)
        validate_value(value, WORD_WIDTH)
        cell = self.cells[address]
        cell.value = value
        cell.disassembly = disassembly

    def set_label(self, address: int, label: str) -> None:
        self._validate_address(address)
        self.cells[address].label = label

    def label_at(self, address: int) -> str:
        self._validate_address(address)
        return self.cells[address].label

    def disassembly_at(self, address: int) -> str:
        self._validate_address(address)
        return self.cells[address].disassembly

    def find_label(self, label: str) -> int:
        """
        Address of the first cell carrying ``label``.

        Returns:
            The address, or NOT_FOUND (-1)
        """
        if not label:
            return NOT_FOUND
        for cell in self.cells:
            if cell.label == label:
                return cell.address
        return NOT_FOUND

    def clear(self) -> None:
        """Zero every cell and drop all metadata and cached lookups."""
        for cell in self.cells:
            cell.clear()
        self.symbol_cache.clear()

    def dump(self) -> str:
        """All words as space-separated 4-digit hex, in address order."""
        return " ".join(cell.hex for cell in self.cells)

    def __iter__(self) -> Iterator[MemoryCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return self.size
