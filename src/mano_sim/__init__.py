"""
Mano Sim - Assembler and Simulator for the Mano Basic Computer
==============================================================

This package provides a toolchain for the 16-bit Basic Computer described
in M. Morris Mano's *Computer System Architecture*: a two-pass assembler,
a cycle-accurate control-unit simulator, and a breakpoint expression
language for debugging.

Main Components
---------------
- **assembler**: Two-pass assembler (manoasm)
    Converts assembly source into a Program: words, labels, diagnostics

- **emulator**: Register-transfer-level simulator (manosim)
    Executes Programs one T-state at a time from the control signal catalog

- **config**: Run-time settings with environment overrides

Quick Start
-----------
Assemble a program:
    >>> from mano_sim import assemble
    >>> program = assemble("ORG 100\\nLDA X\\nHLT\\nX, DEC -1\\nEND")
    >>> program.errors
    []

Run it:
    >>> from mano_sim import Simulator
    >>> sim = Simulator()
    >>> sim.load(program)
    >>> str(sim.run())
    'Halted at PC=102'
    >>> sim.computer.ac.hex()
    'FFFF'

Or use the command-line tools:
    $ manoasm program.asm -o program.mem -l program.lst
    $ manosim program.asm -b "@104" --trace

Copyright (c) 2025 mano-sim contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mano_sim.assembler import (
    Assembler,
    Instruction,
    Label,
    Program,
    Token,
    assemble,
    assemble_all,
    assemble_file,
)
from mano_sim.config import SimulatorConfig
from mano_sim.emulator import (
    BreakEvent,
    BreakReason,
    Computer,
    Register,
    Ram,
    Simulator,
    parse as parse_breakpoint,
)
from mano_sim.errors import (
    ManoError,
    AssemblerError,
    MissingArgumentError,
    InvalidAddressError,
    DuplicateLabelError,
    UndefinedLabelError,
    AddressOverflowError,
    DuplicateDirectiveError,
    TrailingContentError,
    InvalidInstructionError,
    AddressConflictError,
    MachineError,
    RegisterValueError,
    MachineHaltedError,
    ProgramLoadError,
    InputFormatError,
    InvalidBreakpointError,
    ErrorCollector,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "Instruction",
    "Label",
    "Program",
    "Token",
    "assemble",
    "assemble_all",
    "assemble_file",
    # Simulator
    "SimulatorConfig",
    "Simulator",
    "Computer",
    "Register",
    "Ram",
    "BreakEvent",
    "BreakReason",
    "parse_breakpoint",
    # Errors
    "ManoError",
    "AssemblerError",
    "MissingArgumentError",
    "InvalidAddressError",
    "DuplicateLabelError",
    "UndefinedLabelError",
    "AddressOverflowError",
    "DuplicateDirectiveError",
    "TrailingContentError",
    "InvalidInstructionError",
    "AddressConflictError",
    "MachineError",
    "RegisterValueError",
    "MachineHaltedError",
    "ProgramLoadError",
    "InputFormatError",
    "InvalidBreakpointError",
    "ErrorCollector",
]
