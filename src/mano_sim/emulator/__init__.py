"""
Mano Basic Computer Emulator
============================

Register-transfer-level simulation of the Mano Basic Computer.

This package provides:

- **Registers and memory**: bounded registers and 4096 words of RAM
- **Control unit**: the signal catalog of condition and microoperation pairs
- **Computer**: tick/drain execution with a pending microoperation queue
- **Breakpoints**: a small expression language over the machine state
- **Simulator**: run, step, devices and breakpoints in one API

Quick Start
-----------

    >>> from mano_sim.emulator import Simulator
    >>> sim = Simulator()
    >>> _ = sim.load_source("CLA\\nINC\\nHLT")
    >>> event = sim.run()
    >>> sim.computer.ac.value
    1

With debugging::

    >>> _ = sim.load_source("CLA\\nINC\\nHLT")
    >>> _ = sim.add_breakpoint("%hlt")
    >>> str(sim.run())
    'Breakpoint %hlt at PC=002'

Copyright (c) 2025 mano-sim contributors
"""

from .breakpoints import (
    And,
    Breakpoint,
    BreakEvent,
    BreakReason,
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
from .computer import Computer
from .control import (
    SIGNALS,
    Control,
    Delta,
    MachineState,
    Microoperation,
    Signal,
    SignalCategory,
    fired,
)
from .memory import MemoryCell, Ram
from .register import Register
from .simulator import Simulator

__all__ = [
    # Simulator
    "Simulator",
    "Computer",
    # Storage
    "Register",
    "Ram",
    "MemoryCell",
    # Control unit
    "SIGNALS",
    "Control",
    "Delta",
    "MachineState",
    "Microoperation",
    "Signal",
    "SignalCategory",
    "fired",
    # Breakpoints
    "parse",
    "Breakpoint",
    "BreakEvent",
    "BreakReason",
    "PCBreakpoint",
    "PCBreakpointKind",
    "SymbolBreakpoint",
    "SymbolRefBreakpoint",
    "InstructionBreakpoint",
    "Not",
    "And",
    "Or",
    "Group",
    "break_on_pc",
    "break_in_range",
    "break_not_in_range",
    "break_on_symbol",
    "break_on_symbol_ref",
    "break_on_mnemonic",
    "break_if_not",
    "break_if_both",
    "break_if_either",
]
