"""
Breakpoint Expression Unit Tests
================================

Tests for parsing, encoding and evaluating breakpoint expressions, and for
the BreakEvent descriptions returned by the simulator.
"""

import pytest
from mano_sim.assembler import assemble
from mano_sim.emulator import (
    And,
    BreakEvent,
    BreakReason,
    Breakpoint,
    Computer,
    Group,
    InstructionBreakpoint,
    Not,
    Or,
    PCBreakpoint,
    PCBreakpointKind,
    SymbolBreakpoint,
    SymbolRefBreakpoint,
    break_if_both,
    break_if_either,
    break_if_not,
    break_in_range,
    break_not_in_range,
    break_on_mnemonic,
    break_on_pc,
    break_on_symbol,
    break_on_symbol_ref,
    parse,
)
from mano_sim.emulator.breakpoints import read_balanced
from mano_sim.errors import InvalidBreakpointError


# =============================================================================
# Helpers
# =============================================================================

class Recorder(Breakpoint):
    """Breakpoint with a fixed answer that records how often it was asked."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.calls = 0

    def should_break(self, computer) -> bool:
        self.calls += 1
        return self.answer

    def encode(self) -> str:
        return "@0"


@pytest.fixture
def computer():
    """Machine with labels, instructions and a saved return address."""
    program = assemble(
        "ORG 10\n"
        "LOOP, CLA\n"
        "HLT\n"
        "SUB, HEX 11\n"
    )
    assert program.errors == []
    machine = Computer()
    machine.load(program)
    return machine


def at(computer: Computer, pc: int) -> Computer:
    computer.pc.load(pc)
    return computer


# =============================================================================
# Parsing
# =============================================================================

class TestParse:
    """Test the text to tree parser."""

    @pytest.mark.parametrize("text,expected", [
        ("@10", break_on_pc(0x10)),
        ("@a:1F", break_in_range(0xA, 0x1F)),
        ("@100-200", break_not_in_range(0x100, 0x200)),
        ("%lda", break_on_mnemonic("lda")),
        ("^LOOP", break_on_symbol("LOOP")),
        ("^*SUB", break_on_symbol_ref("SUB")),
        ("!@10", break_if_not(break_on_pc(0x10))),
        ("&(@10)(%hlt)", break_if_both(break_on_pc(0x10), break_on_mnemonic("hlt"))),
        ("|(^A)(^B)", break_if_either(break_on_symbol("A"), break_on_symbol("B"))),
        ("(@5)", Group(break_on_pc(5))),
    ])
    def test_productions(self, text, expected):
        assert parse(text) == expected

    def test_surrounding_whitespace(self):
        assert parse("  @10  ") == break_on_pc(0x10)

    def test_nested(self):
        tree = parse("&(|(@1)(@2))(!(%hlt))")
        assert tree == And(
            Or(break_on_pc(1), break_on_pc(2)),
            Not(Group(break_on_mnemonic("hlt"))),
        )

    def test_unterminated_paren_runs_to_end(self):
        assert parse("&(@10)(%hlt") == break_if_both(break_on_pc(0x10), break_on_mnemonic("hlt"))
        assert parse("(@10") == Group(break_on_pc(0x10))

    def test_text_after_group_ignored(self):
        assert parse("(@10) trailing") == Group(break_on_pc(0x10))

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "x",
        "@",
        "@zz",
        "@10:",
        "@:10",
        "%",
        "^",
        "^*",
        "(",
        "()",
        "!",
        "&(@10)",
        "&@10(@20)",
        "|(@10)(x)",
        "!^A)",
        "^A(B",
        "%hl t",
    ])
    def test_invalid(self, text):
        with pytest.raises(InvalidBreakpointError):
            parse(text)

    def test_error_names_lookahead(self):
        with pytest.raises(InvalidBreakpointError) as exc_info:
            parse("x")
        assert exc_info.value.lookahead == "x"
        assert str(exc_info.value) == "invalid breakpoint syntax: invalid lookahead 'x' in 'x'"

    def test_empty_error_message(self):
        with pytest.raises(InvalidBreakpointError) as exc_info:
            parse("")
        assert exc_info.value.lookahead == ""
        assert "unexpected end of expression" in str(exc_info.value)

    def test_read_balanced(self):
        assert read_balanced("@1)rest") == 2
        assert read_balanced("(@1))x") == 4
        assert read_balanced("@1") == 2


# =============================================================================
# Encoding
# =============================================================================

class TestEncode:
    """Test tree to text encoding."""

    @pytest.mark.parametrize("text,encoded", [
        ("@10", "@10"),
        ("@A:1f", "@a:1f"),
        ("@100-200", "@100-200"),
        ("%lda", "%lda"),
        ("^LOOP", "^LOOP"),
        ("^*SUB", "^*SUB"),
        ("!@10", "!(@10)"),
        ("!(@10)", "!(@10)"),
        ("((@10))", "((@10))"),
        ("&(@10)(%hlt", "&(@10)(%hlt)"),
        ("&((@1))(@2)", "&(@1)(@2)"),
    ])
    def test_encode(self, text, encoded):
        assert parse(text).encode() == encoded

    @pytest.mark.parametrize("text", [
        "@10",
        "!(@3)",
        "&(|(@1)(@2))(!(%hlt))",
        "|(^*SUB)(@0-100)",
        "((^LOOP))",
    ])
    def test_round_trip(self, text):
        encoded = parse(text).encode()
        assert parse(encoded).encode() == encoded
        assert parse(encoded) == parse(text)

    @pytest.mark.parametrize("build", [
        lambda: break_on_symbol("*X"),
        lambda: break_on_symbol("A)"),
        lambda: break_on_symbol_ref("(A"),
        lambda: break_on_mnemonic("lda x"),
    ])
    def test_unencodable_names_rejected(self, build):
        with pytest.raises(InvalidBreakpointError):
            build()

    def test_starred_symbol_ref_round_trips(self):
        bp = break_on_symbol_ref("*X")
        assert bp.encode() == "^**X"
        assert parse(bp.encode()) == bp

    def test_str_is_encoding(self):
        assert str(break_on_pc(0xABC)) == "@abc"


# =============================================================================
# Evaluation
# =============================================================================

class TestEvaluation:
    """Test should_break against a loaded machine."""

    def test_on_pc(self, computer):
        bp = break_on_pc(0x10)
        assert bp.should_break(at(computer, 0x10))
        assert not bp.should_break(at(computer, 0x11))

    def test_in_range_is_half_open(self, computer):
        bp = break_in_range(0x10, 0x20)
        assert bp.should_break(at(computer, 0x10))
        assert bp.should_break(at(computer, 0x1F))
        assert not bp.should_break(at(computer, 0x20))
        assert not bp.should_break(at(computer, 0x0F))

    def test_not_in_range(self, computer):
        bp = break_not_in_range(0x10, 0x20)
        assert bp.should_break(at(computer, 0x0F))
        assert not bp.should_break(at(computer, 0x10))
        assert bp.should_break(at(computer, 0x20))

    def test_symbol(self, computer):
        bp = break_on_symbol("LOOP")
        assert bp.should_break(at(computer, 0x10))
        assert not bp.should_break(at(computer, 0x11))

    def test_mnemonic_case_insensitive(self, computer):
        assert break_on_mnemonic("cla").should_break(at(computer, 0x10))
        assert break_on_mnemonic("CLA").should_break(at(computer, 0x10))
        assert not break_on_mnemonic("hlt").should_break(at(computer, 0x10))

    def test_mnemonic_matches_whole_word(self, computer):
        assert not break_on_mnemonic("hl").should_break(at(computer, 0x11))

    def test_mnemonic_on_data_directive(self, computer):
        assert break_on_mnemonic("hex").should_break(at(computer, 0x12))

    def test_mnemonic_on_empty_cell(self, computer):
        assert not break_on_mnemonic("cla").should_break(at(computer, 0x100))

    def test_symbol_ref(self, computer):
        bp = break_on_symbol_ref("SUB")
        assert bp.should_break(at(computer, 0x11))
        assert not bp.should_break(at(computer, 0x12))

    def test_symbol_ref_caches_address(self, computer):
        bp = break_on_symbol_ref("SUB")
        bp.should_break(at(computer, 0x11))
        assert computer.ram.symbol_cache == {"SUB": 0x12}

        # A plain store clears the label but the cached address stays
        computer.ram.write(0x12, 0x11)
        assert computer.ram.find_label("SUB") == -1
        assert bp.should_break(at(computer, 0x11))

    def test_symbol_ref_added_after_store_misses(self, computer):
        computer.ram.write(0x12, 0x11)
        bp = break_on_symbol_ref("SUB")
        assert not bp.should_break(at(computer, 0x11))
        assert computer.ram.symbol_cache == {"SUB": -1}

    def test_symbol_ref_cache_cleared_on_reset(self, computer):
        break_on_symbol_ref("SUB").should_break(computer)
        computer.reset()
        assert computer.ram.symbol_cache == {}

    def test_symbol_ref_missing_label(self, computer):
        bp = break_on_symbol_ref("NOPE")
        assert not bp.should_break(at(computer, 0))
        assert computer.ram.symbol_cache == {"NOPE": -1}

    def test_not(self, computer):
        assert Not(break_on_pc(1)).should_break(at(computer, 0))
        assert not Not(break_on_pc(0)).should_break(at(computer, 0))

    def test_group_is_transparent(self, computer):
        assert Group(break_on_pc(0x10)).should_break(at(computer, 0x10))

    def test_and_short_circuits(self, computer):
        left, right = Recorder(False), Recorder(True)
        assert not And(left, right).should_break(computer)
        assert (left.calls, right.calls) == (1, 0)

    def test_or_evaluates_both_sides(self, computer):
        left, right = Recorder(True), Recorder(False)
        assert Or(left, right).should_break(computer)
        assert (left.calls, right.calls) == (1, 1)

    def test_composed_expression(self, computer):
        bp = parse("&(@10:20)(!(%hlt))")
        assert bp.should_break(at(computer, 0x10))
        assert not bp.should_break(at(computer, 0x11))
        assert not bp.should_break(at(computer, 0x30))


# =============================================================================
# Types
# =============================================================================

class TestTypes:
    """Test the expression node types."""

    def test_nodes_are_frozen(self):
        bp = break_on_pc(1)
        with pytest.raises(AttributeError):
            bp.start = 2

    def test_builders_return_expected_types(self):
        assert isinstance(break_on_pc(1), PCBreakpoint)
        assert break_in_range(1, 2).kind is PCBreakpointKind.IN_RANGE
        assert isinstance(break_on_symbol("X"), SymbolBreakpoint)
        assert isinstance(break_on_symbol_ref("X"), SymbolRefBreakpoint)
        assert isinstance(break_on_mnemonic("cla"), InstructionBreakpoint)


class TestBreakEvent:
    """Test BreakEvent descriptions."""

    def test_breakpoint(self):
        event = BreakEvent(BreakReason.BREAKPOINT, pc=0x10, expression="@10")
        assert str(event) == "Breakpoint @10 at PC=010"

    def test_halted(self):
        assert str(BreakEvent(BreakReason.HALTED, pc=0x102)) == "Halted at PC=102"

    def test_max_ticks(self):
        assert str(BreakEvent(BreakReason.MAX_TICKS, ticks=50)) == "Tick limit reached after 50 ticks"

    def test_message_overrides(self):
        assert str(BreakEvent(BreakReason.STEP, message="custom")) == "custom"
