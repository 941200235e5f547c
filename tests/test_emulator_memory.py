"""
Memory Unit Tests
=================

Tests for RAM cells, label metadata and the dump format.
"""

import pytest
from mano_sim.emulator.memory import NOT_FOUND, MemoryCell, Ram
from mano_sim.errors import RegisterValueError


@pytest.fixture
def ram():
    return Ram()


class TestMemoryCell:
    """Test the per-cell view."""

    def test_address_text(self):
        assert MemoryCell(0x1F).address_text == "01F"

    def test_hex(self):
        assert MemoryCell(0, 0xBEEF).hex == "BEEF"

    def test_clear(self):
        cell = MemoryCell(5, 7, "X", "DEC 7")
        cell.clear()
        assert (cell.value, cell.label, cell.disassembly) == (0, "", "")


class TestRam:
    """Test reads, writes and metadata."""

    def test_size(self, ram):
        assert len(ram) == 4096
        assert ram.max_address == 0xFFF

    def test_starts_zeroed(self, ram):
        assert all(cell.value == 0 for cell in ram)

    def test_read_write(self, ram):
        ram.write(0x100, 0x1234)
        assert ram.read(0x100) == 0x1234
        assert ram.words[0x100] == 0x1234

    def test_write_rejects_wide_value(self, ram):
        with pytest.raises(RegisterValueError):
            ram.write(0, 0x10000)

    def test_address_out_of_range(self, ram):
        with pytest.raises(RegisterValueError):
            ram.read(0x1000)

    def test_load_word_keeps_label(self, ram):
        ram.set_label(0x10, "X")
        ram.load_word(0x10, 5, "DEC 5")
        assert ram.label_at(0x10) == "X"
        assert ram.disassembly_at(0x10) == "DEC 5"

    def test_write_clears_metadata(self, ram):
        ram.load_word(0x10, 5, "DEC 5")
        ram.set_label(0x10, "X")
        ram.write(0x10, 6)
        assert ram.label_at(0x10) == ""
        assert ram.disassembly_at(0x10) == ""

    def test_find_label(self, ram):
        ram.set_label(0x42, "LOOP")
        assert ram.find_label("LOOP") == 0x42
        assert ram.find_label("NOPE") == NOT_FOUND
        assert ram.find_label("") == NOT_FOUND

    def test_clear_drops_symbol_cache(self, ram):
        ram.write(1, 1)
        ram.symbol_cache["X"] = 3
        ram.clear()
        assert ram.read(1) == 0
        assert ram.symbol_cache == {}

    def test_dump(self, ram):
        ram.write(0, 0xABCD)
        ram.write(0xFFF, 0x1)
        words = ram.dump().split(" ")
        assert len(words) == 4096
        assert words[0] == "ABCD"
        assert words[-1] == "0001"
        assert words[1] == "0000"

    def test_words_view_is_read_only(self, ram):
        with pytest.raises(TypeError):
            ram.words[0] = 1

    def test_words_view_slicing(self, ram):
        ram.write(2, 9)
        assert ram.words[0:3] == [0, 0, 9]
