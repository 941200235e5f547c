"""
Control Unit Rule Catalog
=========================

The machine is driven by a fixed catalog of signals.  A signal pairs a
*control function* (a boolean condition over the machine state, written in
Mano's notation such as ``D0T5`` or ``R'T2``) with a *microoperation*
(a register transfer such as ``AC <- AC & DR``).

On every clock tick the computer takes one snapshot, evaluates every
control function against it, and queues the microoperations whose
conditions hold.  The microoperations are then applied one at a time.

Pure Transfers
--------------
A microoperation never mutates anything.  Its transfer function reads a
MachineState and returns a Delta listing the fields it writes, which the
computer then applies.  This keeps the catalog testable in isolation and
lets the tests prove that no two microoperations that fire together write
the same field.

Notation
--------
- ``Tn``: sequence counter equals n
- ``Dn``: decoder output n (one-hot decode of IR bits 12-14)
- ``Bn``: IR bit n
- ``I``, ``R``, ``E``, ...: one-bit flip-flops; a trailing ``'`` negates
- ``r = D7 I' T3`` (register-reference execute)
- ``p = D7 I T3`` (input/output execute)

Copyright (c) 2025 mano-sim contributors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from mano_sim.emulator.register import (
    add_with_carry,
    bit,
    bits,
    complement,
    rotate_left,
    rotate_right,
)


ADDRESS_WIDTH = 12
WORD_WIDTH = 16
IO_WIDTH = 8
DECODER_WIDTH = 8

# Names of every one-bit flip-flop
FLAGS: tuple[str, ...] = ("i", "r", "ien", "e", "fgi", "fgo", "s")

# Bit width of every register field
REGISTER_WIDTHS: dict[str, int] = {
    "pc": ADDRESS_WIDTH,
    "ar": ADDRESS_WIDTH,
    "ir": WORD_WIDTH,
    "dr": WORD_WIDTH,
    "ac": WORD_WIDTH,
    "tr": WORD_WIDTH,
    "inpr": IO_WIDTH,
    "outr": IO_WIDTH,
    **{flag: 1 for flag in FLAGS},
}


# =============================================================================
# Machine State and Deltas
# =============================================================================

@dataclass(frozen=True)
class MachineState:
    """
    Read-only view of the machine at one instant.

    Register values are copied.  ``memory`` is any sequence of words
    indexed by address (the live RAM view, or a tuple in tests).
    """
    sc: int = 0
    decoder: int = 0
    pc: int = 0
    ar: int = 0
    ir: int = 0
    dr: int = 0
    ac: int = 0
    tr: int = 0
    inpr: int = 0
    outr: int = 0
    i: int = 0
    r: int = 0
    ien: int = 0
    e: int = 0
    fgi: int = 0
    fgo: int = 0
    s: int = 0
    memory: Sequence[int] = ()

    def t(self, n: int) -> bool:
        """Timing signal Tn."""
        return self.sc == n

    def d(self, n: int) -> bool:
        """Decoder output Dn."""
        return bool(bit(self.decoder, n, DECODER_WIDTH))

    def b(self, n: int) -> bool:
        """Instruction register bit Bn."""
        return bool(bit(self.ir, n, WORD_WIDTH))

    def read(self, address: int) -> int:
        return self.memory[address]

    @property
    def register_execute(self) -> bool:
        """r = D7 I' T3"""
        return self.d(7) and not self.i and self.t(3)

    @property
    def io_execute(self) -> bool:
        """p = D7 I T3"""
        return self.d(7) and bool(self.i) and self.t(3)


@dataclass(frozen=True)
class Delta:
    """
    Field-level changes produced by one microoperation.

    Attributes:
        registers: New value per register name (including ``sc`` and
            ``decoder``)
        memory: New word per address
    """
    registers: dict[str, int] = field(default_factory=dict)
    memory: dict[int, int] = field(default_factory=dict)

    @property
    def targets(self) -> set[str]:
        """Names of every field written, memory cells as ``M[addr]``."""
        return set(self.registers) | {f"M[{address:03X}]" for address in self.memory}


# =============================================================================
# Catalog Building Blocks
# =============================================================================

class SignalCategory(Enum):
    """Which phase of the instruction cycle a signal belongs to."""
    FETCH = "fetch"
    DECODE = "decode"
    INDIRECT = "indirect"
    INTERRUPT = "interrupt"
    MEMORY_REFERENCE = "memory-reference"
    REGISTER_REFERENCE = "register-reference"
    INPUT_OUTPUT = "input-output"
    SHARED = "shared"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Control:
    """A named condition over the machine state."""
    description: str
    predicate: Callable[[MachineState], bool]

    def test(self, state: MachineState) -> bool:
        return bool(self.predicate(state))

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class Microoperation:
    """A named register transfer."""
    description: str
    transfer: Callable[[MachineState], Delta]

    def __call__(self, state: MachineState) -> Delta:
        return self.transfer(state)

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class Signal:
    """A control function and the microoperation it enables."""
    category: SignalCategory
    control: Control
    microoperation: Microoperation

    def __str__(self) -> str:
        return f"{self.control}: {self.microoperation}"


def _set(**registers: int) -> Delta:
    return Delta(registers=registers)


def _store(address: int, value: int) -> Delta:
    return Delta(memory={address: value})


def _decode(state: MachineState) -> Delta:
    return _set(decoder=1 << bits(state.ir, 12, 14, WORD_WIDTH))


def _add(state: MachineState) -> Delta:
    ac, carry = add_with_carry(state.ac, state.dr, WORD_WIDTH)
    return _set(ac=ac, e=carry)


def _shift_right(state: MachineState) -> Delta:
    ac, carry = rotate_right(state.ac, state.e, WORD_WIDTH)
    return _set(ac=ac, e=carry)


def _shift_left(state: MachineState) -> Delta:
    ac, carry = rotate_left(state.ac, state.e, WORD_WIDTH)
    return _set(ac=ac, e=carry)


def _increment(value: int, width: int) -> int:
    return add_with_carry(value, 1, width)[0]


def _skip(s: MachineState) -> bool:
    """Every condition that advances PC by one."""
    return (
        (not s.r and s.t(1))
        or (bool(s.r) and s.t(2))
        or (s.d(6) and s.t(6) and s.dr == 0)
        or (s.register_execute and (
            (s.b(4) and not bit(s.ac, 15))
            or (s.b(3) and bool(bit(s.ac, 15)))
            or (s.b(2) and s.ac == 0)
            or (s.b(1) and not s.e)
        ))
        or (s.io_execute and (
            (s.b(9) and bool(s.fgi))
            or (s.b(8) and bool(s.fgo))
        ))
    )


def _finished(s: MachineState) -> bool:
    """Every condition that ends an instruction (SC <- 0)."""
    return (
        (bool(s.r) and s.t(2))
        or (s.d(0) and s.t(5))
        or (s.d(1) and s.t(5))
        or (s.d(2) and s.t(5))
        or (s.d(3) and s.t(4))
        or (s.d(4) and s.t(4))
        or (s.d(5) and s.t(6))
        or (s.d(6) and s.t(6))
        or s.register_execute
        or s.io_execute
    )


def _signal(category, condition, predicate, description, transfer) -> Signal:
    return Signal(
        category,
        Control(condition, predicate),
        Microoperation(description, transfer),
    )


def _register_reference(digit: int, description: str, transfer) -> Signal:
    return _signal(
        SignalCategory.REGISTER_REFERENCE, f"rB{digit}",
        lambda s: s.register_execute and s.b(digit),
        description, transfer,
    )


def _input_output(digit: int, description: str, transfer) -> Signal:
    return _signal(
        SignalCategory.INPUT_OUTPUT, f"pB{digit}",
        lambda s: s.io_execute and s.b(digit),
        description, transfer,
    )


# =============================================================================
# The Catalog
# =============================================================================

F = SignalCategory

SIGNALS: tuple[Signal, ...] = (
    # Fetch
    _signal(F.FETCH, "R'T0", lambda s: not s.r and s.t(0),
            "AR <- PC", lambda s: _set(ar=s.pc)),
    _signal(F.FETCH, "R'T1", lambda s: not s.r and s.t(1),
            "IR <- M[AR]", lambda s: _set(ir=s.read(s.ar))),

    # Decode
    _signal(F.DECODE, "R'T2", lambda s: not s.r and s.t(2),
            "D0, ..., D7 <- Decode IR(12-14)", _decode),
    _signal(F.DECODE, "R'T2", lambda s: not s.r and s.t(2),
            "AR <- IR(0-11)", lambda s: _set(ar=bits(s.ir, 0, 11, WORD_WIDTH))),
    _signal(F.DECODE, "R'T2", lambda s: not s.r and s.t(2),
            "I <- IR(15)", lambda s: _set(i=bit(s.ir, 15, WORD_WIDTH))),

    # Indirect address
    _signal(F.INDIRECT, "D7'IT3", lambda s: not s.d(7) and bool(s.i) and s.t(3),
            "AR <- M[AR]", lambda s: _set(ar=bits(s.read(s.ar), 0, 11, WORD_WIDTH))),

    # Interrupt entry
    _signal(F.INTERRUPT, "T0'T1'T2'(IEN)(FGI + FGO)",
            lambda s: s.sc not in (0, 1, 2) and bool(s.ien) and bool(s.fgi or s.fgo),
            "R <- 1", lambda s: _set(r=1)),
    _signal(F.INTERRUPT, "RT0", lambda s: bool(s.r) and s.t(0),
            "AR <- 0", lambda s: _set(ar=0)),
    _signal(F.INTERRUPT, "RT0", lambda s: bool(s.r) and s.t(0),
            "TR <- PC", lambda s: _set(tr=s.pc)),
    _signal(F.INTERRUPT, "RT1", lambda s: bool(s.r) and s.t(1),
            "M[AR] <- TR", lambda s: _store(s.ar, s.tr)),
    _signal(F.INTERRUPT, "RT1", lambda s: bool(s.r) and s.t(1),
            "PC <- 0", lambda s: _set(pc=0)),
    _signal(F.INTERRUPT, "RT2 + D7IT3B6",
            lambda s: (bool(s.r) and s.t(2)) or (s.io_execute and s.b(6)),
            "IEN <- 0", lambda s: _set(ien=0)),
    _signal(F.INTERRUPT, "RT2", lambda s: bool(s.r) and s.t(2),
            "R <- 0", lambda s: _set(r=0)),

    # Memory-reference execute
    _signal(F.MEMORY_REFERENCE, "D0T4 + D1T4 + D2T4 + D6T4",
            lambda s: s.t(4) and (s.d(0) or s.d(1) or s.d(2) or s.d(6)),
            "DR <- M[AR]", lambda s: _set(dr=s.read(s.ar))),
    _signal(F.MEMORY_REFERENCE, "D0T5", lambda s: s.d(0) and s.t(5),
            "AC <- AC & DR", lambda s: _set(ac=s.ac & s.dr)),
    _signal(F.MEMORY_REFERENCE, "D1T5", lambda s: s.d(1) and s.t(5),
            "AC <- AC + DR, E <- Cout", _add),
    _signal(F.MEMORY_REFERENCE, "D2T5", lambda s: s.d(2) and s.t(5),
            "AC <- DR", lambda s: _set(ac=s.dr)),
    _signal(F.MEMORY_REFERENCE, "D3T4", lambda s: s.d(3) and s.t(4),
            "M[AR] <- AC", lambda s: _store(s.ar, s.ac)),
    _signal(F.MEMORY_REFERENCE, "D4T4 + D5T6",
            lambda s: (s.d(4) and s.t(4)) or (s.d(5) and s.t(6)),
            "PC <- AR", lambda s: _set(pc=s.ar)),
    _signal(F.MEMORY_REFERENCE, "D5T4", lambda s: s.d(5) and s.t(4),
            "M[AR] <- PC", lambda s: _store(s.ar, s.pc)),
    _signal(F.MEMORY_REFERENCE, "D5T5", lambda s: s.d(5) and s.t(5),
            "AR <- AR + 1", lambda s: _set(ar=_increment(s.ar, ADDRESS_WIDTH))),
    _signal(F.MEMORY_REFERENCE, "D6T5", lambda s: s.d(6) and s.t(5),
            "DR <- DR + 1", lambda s: _set(dr=_increment(s.dr, WORD_WIDTH))),
    _signal(F.MEMORY_REFERENCE, "D6T6", lambda s: s.d(6) and s.t(6),
            "M[AR] <- DR", lambda s: _store(s.ar, s.dr)),

    # Register-reference execute
    _register_reference(11, "AC <- 0", lambda s: _set(ac=0)),
    _register_reference(10, "E <- 0", lambda s: _set(e=0)),
    _register_reference(9, "AC <- AC'", lambda s: _set(ac=complement(s.ac, WORD_WIDTH))),
    _register_reference(8, "E <- E'", lambda s: _set(e=complement(s.e, 1))),
    _register_reference(7, "AC <- shr AC, AC(15) <- E, E <- AC(0)", _shift_right),
    _register_reference(6, "AC <- shl AC, AC(0) <- E, E <- AC(15)", _shift_left),
    _register_reference(5, "AC <- AC + 1", lambda s: _set(ac=_increment(s.ac, WORD_WIDTH))),
    _register_reference(0, "S <- 0", lambda s: _set(s=0)),

    # Input/output execute
    _input_output(11, "AC(0-7) <- INPR", lambda s: _set(ac=(s.ac & 0xFF00) | s.inpr)),
    _input_output(11, "FGI <- 0", lambda s: _set(fgi=0)),
    _input_output(10, "OUTR <- AC(0-7)", lambda s: _set(outr=bits(s.ac, 0, 7, WORD_WIDTH))),
    _input_output(10, "FGO <- 0", lambda s: _set(fgo=0)),
    _input_output(7, "IEN <- 1", lambda s: _set(ien=1)),

    # Shared bookkeeping
    _signal(F.SHARED,
            "R'T1 + RT2 + D6T6(DR)' + D7I'T3(B4(AC(15))' + B3(AC(15)) + B2(AC)' + B1E') "
            "+ D7IT3(B9(FGI) + B8(FGO))",
            _skip, "PC <- PC + 1", lambda s: _set(pc=_increment(s.pc, ADDRESS_WIDTH))),
    _signal(F.SHARED,
            "RT2 + D0T5 + D1T5 + D2T5 + D3T4 + D4T4 + D5T6 + D6T6 + D7I'T3 + D7IT3",
            _finished, "SC <- 0", lambda s: _set(sc=0)),
)

del F


def fired(state: MachineState) -> list[Signal]:
    """
    Signals whose control functions hold in ``state``, in catalog order.
    """
    return [signal for signal in SIGNALS if signal.control.test(state)]
