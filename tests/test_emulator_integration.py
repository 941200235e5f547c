"""
Simulator Integration Tests
===========================

End-to-end tests of the Simulator: loading programs, running to halt or
breakpoint, stepping, the input and output devices, and tracing.
"""

import logging

import pytest
from mano_sim import SimulatorConfig
from mano_sim.assembler import assemble
from mano_sim.emulator import BreakReason, Simulator, break_on_pc
from mano_sim.errors import (
    InputFormatError,
    InvalidBreakpointError,
    MachineHaltedError,
    ProgramLoadError,
)


SUM = """
    LDA A
    ADD B
    STA C
    HLT
A,  DEC 2
B,  DEC 3
C,  DEC 0
"""

ECHO_TWO = """
LOOP, SKI
      BUN LOOP
      INP
      OUT
      ISZ CNT
      BUN LOOP
      HLT
CNT,  DEC -2
"""


@pytest.fixture
def sim():
    return Simulator()


# =============================================================================
# Loading
# =============================================================================

class TestLoading:
    """Test program loading and reset."""

    def test_load_source(self, sim):
        program = sim.load_source(SUM)
        assert sim.program is program
        assert sim.computer.running
        assert sim.ticks == 0

    def test_load_refuses_program_with_errors(self, sim):
        with pytest.raises(ProgramLoadError) as exc_info:
            sim.load(assemble("LDA NOWHERE"))
        assert len(exc_info.value.errors) == 1
        assert str(exc_info.value) == "cannot load program with 1 error"
        assert sim.program is None

    def test_reset_reloads_program(self, sim):
        sim.load_source("ORG 10\nINC\nHLT")
        sim.run()
        sim.reset()
        assert sim.computer.pc.value == 0x10
        assert sim.computer.ac.value == 0
        assert sim.computer.running
        assert sim.ticks == 0

    def test_reset_without_program(self, sim):
        sim.computer.ac.load(5)
        sim.reset()
        assert sim.computer.ac.value == 0
        assert not sim.computer.running


# =============================================================================
# Running
# =============================================================================

class TestRun:
    """Test run to halt, tick limits and strict mode."""

    def test_run_to_halt(self, sim):
        sim.load_source(SUM)
        event = sim.run()
        assert event.reason is BreakReason.HALTED
        assert event.pc == 4
        assert sim.computer.ram.read(6) == 5
        assert event.ticks == sim.ticks > 0

    def test_run_when_already_halted(self, sim):
        sim.load_source("HLT")
        sim.run()
        event = sim.run()
        assert event.reason is BreakReason.HALTED
        assert event.ticks == 0

    def test_max_ticks_argument(self, sim):
        sim.load_source("LOOP, BUN LOOP")
        event = sim.run(max_ticks=50)
        assert event.reason is BreakReason.MAX_TICKS
        assert event.ticks == 50
        assert str(event) == "Tick limit reached after 50 ticks"

    def test_max_ticks_from_config(self):
        sim = Simulator(SimulatorConfig(max_ticks=100))
        sim.load_source("LOOP, BUN LOOP")
        assert sim.run().ticks == 100

    def test_strict_mode_rejects_halted_step(self):
        sim = Simulator(SimulatorConfig(strict=True))
        sim.load_source("HLT")
        sim.run()
        with pytest.raises(MachineHaltedError):
            sim.step()

    def test_step_returns_none_when_halted(self, sim):
        sim.load_source("HLT")
        sim.run()
        assert sim.step() is None

    def test_repr(self, sim):
        sim.load_source("HLT")
        assert repr(sim).startswith("Simulator(PC=000")


# =============================================================================
# Breakpoints
# =============================================================================

class TestBreakpoints:
    """Test breakpoint management and stops."""

    def test_add_list_remove(self, sim):
        first = sim.add_breakpoint("@2")
        second = sim.add_breakpoint(break_on_pc(0x10))
        assert sim.list_breakpoints() == {first: "@2", second: "@10"}
        assert sim.remove_breakpoint(first) is True
        assert sim.remove_breakpoint(first) is False
        assert list(sim.list_breakpoints()) == [second]
        sim.clear_breakpoints()
        assert sim.list_breakpoints() == {}

    def test_invalid_breakpoint_not_added(self, sim):
        with pytest.raises(InvalidBreakpointError):
            sim.add_breakpoint("&(@1)")
        assert sim.list_breakpoints() == {}

    def test_stop_leaves_batch_pending(self, sim):
        sim.load_source("CLA\nINC\nINC\nHLT")
        sim.add_breakpoint("@2")
        event = sim.run()
        assert event.reason is BreakReason.BREAKPOINT
        assert event.expression == "@2"
        assert str(event) == "Breakpoint @2 at PC=002"
        assert sim.computer.pending
        assert sim.check_breakpoints() is not None

    def test_resume_does_not_retrigger(self, sim):
        sim.load_source("CLA\nINC\nINC\nHLT")
        sim.add_breakpoint("@2")
        sim.run()
        event = sim.run()
        assert event.reason is BreakReason.HALTED
        assert sim.computer.ac.value == 2

    def test_breakpoint_hit_again_in_loop(self, sim):
        sim.load_source("LOOP, INC\nISZ CNT\nBUN LOOP\nHLT\nCNT, DEC -3")
        sim.add_breakpoint("^LOOP")
        hits = 0
        while sim.run().reason is BreakReason.BREAKPOINT:
            hits += 1
        assert hits == 3
        assert sim.computer.ac.value == 3

    def test_mnemonic_breakpoint(self, sim):
        sim.load_source(SUM)
        sim.add_breakpoint("%sta")
        event = sim.run()
        assert event.reason is BreakReason.BREAKPOINT
        assert event.pc == 2


# =============================================================================
# Stepping
# =============================================================================

class TestStepping:
    """Test single microoperation and single instruction stepping."""

    def test_step_microoperation(self, sim):
        sim.load_source("ORG 10\nHLT")
        assert str(sim.step()) == "AR <- PC"
        assert sim.computer.ar.value == 0x10
        assert sim.ticks == 1

    def test_step_instruction(self, sim):
        sim.load_source("CLA\nINC\nHLT")
        event = sim.step_instruction()
        assert event.reason is BreakReason.STEP
        assert event.pc == 1
        assert sim.computer.sc == 0

        sim.step_instruction()
        assert sim.computer.ac.value == 1

        assert sim.step_instruction().reason is BreakReason.HALTED

    def test_step_over_subroutine(self, sim):
        sim.load_source("BSA SUB\nHLT\nSUB, HEX 0\nINC\nBUN SUB I")
        event = sim.step_instruction(skips=["@2:5"])
        assert event.reason is BreakReason.STEP
        assert event.pc == 1
        assert sim.computer.ac.value == 1

    def test_step_instruction_tick_limit(self, sim):
        sim.load_source("LOOP, BUN LOOP")
        event = sim.step_instruction(max_ticks=20)
        assert event.reason is BreakReason.MAX_TICKS


# =============================================================================
# Devices
# =============================================================================

class TestDevices:
    """Test the input and output devices."""

    @pytest.mark.parametrize("text,value", [
        ("A", 0x41),
        ("0x41", 0x41),
        ("0xff", 0xFF),
        ("0x7", 0x07),
        ("é", 0xE9),
        ("€", 0xFF),
    ])
    def test_provide_input(self, sim, text, value):
        assert sim.provide_input(text) == value
        assert sim.computer.inpr.value == value
        assert sim.computer.fgi.value == 1

    @pytest.mark.parametrize("text", ["", "AB", "0x100", "0xZZ"])
    def test_provide_input_rejects(self, sim, text):
        with pytest.raises(InputFormatError):
            sim.provide_input(text)
        assert sim.computer.fgi.value == 0

    def test_output_collected(self, sim):
        sim.load_source("LDA C\nOUT\nHLT\nC, HEX 48")
        sim.run()
        assert sim.output == "H"
        assert sim.computer.outr.char() == "H"

    def test_load_clears_output(self, sim):
        sim.load_source("LDA C\nOUT\nHLT\nC, HEX 48")
        sim.run()
        sim.load_source("HLT")
        assert sim.output == ""

    def test_queued_input_echo(self, sim):
        sim.load_source(ECHO_TWO)
        sim.queue_input("hi")
        assert sim.run().reason is BreakReason.HALTED
        assert sim.output == "hi"

    def test_input_waits_without_data(self, sim):
        sim.load_source(ECHO_TWO)
        assert sim.run(max_ticks=200).reason is BreakReason.MAX_TICKS
        assert sim.output == ""

    def test_enable_output(self, sim):
        sim.load_source("SKO\nHLT\nINC\nHLT")
        sim.enable_output()
        sim.run()
        assert sim.computer.ac.value == 1

    def test_auto_output(self, sim):
        sim.load_source("SKO\nHLT\nINC\nHLT")
        sim.auto_output = True
        sim.run()
        assert sim.computer.ac.value == 1

    def test_output_not_ready(self, sim):
        sim.load_source("SKO\nHLT\nINC\nHLT")
        sim.run()
        assert sim.computer.ac.value == 0


# =============================================================================
# Tracing
# =============================================================================

class TestTracing:
    """Test the trace hook and trace logging."""

    def test_trace_callback(self, sim):
        sim.load_source("HLT")
        seen = []
        sim.trace = lambda microoperation, delta: seen.append(str(microoperation))
        sim.run()
        assert seen[0] == "AR <- PC"
        assert "S <- 0" in seen
        assert seen[-1] == "SC <- 0"

    def test_trace_logging(self, caplog):
        sim = Simulator(SimulatorConfig(trace=True))
        sim.load_source("HLT")
        with caplog.at_level(logging.INFO, logger="mano_sim.emulator.simulator"):
            sim.run()
        assert "AR <- PC" in caplog.text
        assert "S <- 0" in caplog.text
