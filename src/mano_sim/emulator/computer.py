"""
Mano Basic Computer
===================

Register-transfer-level model of the machine.  Time advances in two steps
that callers may interleave freely:

1. ``tick()`` evaluates every control function in the signal catalog
   against a single snapshot, queues the microoperations that fire, and
   advances the sequence counter.

2. ``drain()`` (or ``step()``) applies queued microoperations in FIFO
   order.  Each one reads the machine state at the moment it is applied.

Because ``SC <- 0`` is itself a queued microoperation, SC reads one past
the final T-state of an instruction between its tick and the drain that
resets it.

Registers
---------
| Name  | Bits | Purpose                          |
|-------|------|----------------------------------|
| PC    | 12   | program counter                  |
| AR    | 12   | address register                 |
| IR    | 16   | instruction register             |
| DR    | 16   | data register                    |
| AC    | 16   | accumulator                      |
| TR    | 16   | temporary register               |
| INPR  | 8    | input register                   |
| OUTR  | 8    | output register                  |
| I     | 1    | indirect flag                    |
| R     | 1    | interrupt cycle flag             |
| IEN   | 1    | interrupt enable                 |
| E     | 1    | carry / extended AC bit          |
| FGI   | 1    | input ready flag                 |
| FGO   | 1    | output ready flag                |
| S     | 1    | run flag; HLT clears it          |

Example usage:
    >>> from mano_sim.assembler import assemble
    >>> computer = Computer()
    >>> computer.load(assemble("HLT"))
    >>> while computer.cycle():
    ...     pass
    >>> computer.pc.value
    1

Copyright (c) 2025 mano-sim contributors
"""

import logging
from collections import deque
from typing import Callable, Optional

from mano_sim.assembler.program import Program
from mano_sim.errors import MachineHaltedError
from .control import (
    DECODER_WIDTH,
    REGISTER_WIDTHS,
    Delta,
    MachineState,
    Microoperation,
    Signal,
    fired,
)
from .memory import Ram
from .register import Register


logger = logging.getLogger(__name__)

# Callback invoked after each applied microoperation
ApplyListener = Callable[[Microoperation, Delta], None]


class Computer:
    """
    The Mano Basic Computer.

    Attributes:
        ram: Main memory
        sc: Sequence counter (current T-state)
        decoder: One-hot decode of IR(12-14)
        registers: Every register keyed by lower-case name
        pending: Microoperations fired but not yet applied
        last_fired: Signals fired by the most recent tick
        listeners: Callbacks run after every applied microoperation
    """

    def __init__(self) -> None:
        self.ram = Ram()
        self.sc = 0
        self.decoder = Register(DECODER_WIDTH, "D")
        self.registers: dict[str, Register] = {
            name: Register(width, name.upper())
            for name, width in REGISTER_WIDTHS.items()
        }
        self.pending: deque[Microoperation] = deque()
        self.last_fired: list[Signal] = []
        self.listeners: list[ApplyListener] = []

        r = self.registers
        self.pc, self.ar, self.ir, self.dr = r["pc"], r["ar"], r["ir"], r["dr"]
        self.ac, self.tr, self.inpr, self.outr = r["ac"], r["tr"], r["inpr"], r["outr"]
        self.i, self.r, self.ien, self.e = r["i"], r["r"], r["ien"], r["e"]
        self.fgi, self.fgo, self.s = r["fgi"], r["fgo"], r["s"]

    @property
    def running(self) -> bool:
        """True while the run flag S is set."""
        return bool(self.registers["s"].value)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Clear every register, memory, the decoder and the pending queue."""
        self.sc = 0
        self.decoder.clear()
        for register in self.registers.values():
            register.clear()
        self.ram.clear()
        self.pending.clear()
        self.last_fired = []

    def load(self, program: Program) -> None:
        """
        Reset the machine and load a program.

        Words are placed with their source text, labels are attached to
        their cells, PC is set to the program's start and S is set.
        """
        self.reset()
        self.pc.load(program.start)
        for instruction in program.instructions:
            self.ram.load_word(instruction.address, instruction.code, instruction.disassembly)
        for label in program.labels:
            self.ram.set_label(label.address, label.name)
        self.s.load(1)
        logger.debug(
            "loaded %d words, start %03X",
            len(program.instructions), program.start,
        )

    # =========================================================================
    # State
    # =========================================================================

    def snapshot(self) -> MachineState:
        """Capture the current state for the control catalog."""
        return MachineState(
            sc=self.sc,
            decoder=self.decoder.value,
            memory=self.ram.words,
            **{name: register.value for name, register in self.registers.items()},
        )

    def apply(self, delta: Delta) -> None:
        """Write every field of a delta into the machine."""
        for name, value in delta.registers.items():
            if name == "sc":
                self.sc = value
            elif name == "decoder":
                self.decoder.load(value)
            else:
                self.registers[name].load(value)
        for address, value in delta.memory.items():
            self.ram.write(address, value)

    # =========================================================================
    # Execution
    # =========================================================================

    def tick(self, strict: bool = False) -> bool:
        """
        Advance the clock by one T-state.

        Args:
            strict: Raise MachineHaltedError instead of ignoring a tick
                while S is clear

        Returns:
            True if the machine was running and signals were evaluated
        """
        if not self.running:
            if strict:
                raise MachineHaltedError(
                    f"machine is halted (PC={self.pc.hex()}); load a program to run again"
                )
            return False

        self.last_fired = fired(self.snapshot())
        self.pending.extend(signal.microoperation for signal in self.last_fired)
        self.sc += 1
        return True

    def drain(self, count: Optional[int] = None) -> list[Microoperation]:
        """
        Apply pending microoperations in the order they fired.

        Args:
            count: How many to apply; all of them when None

        Returns:
            The microoperations applied
        """
        applied = []
        while self.pending and (count is None or len(applied) < count):
            microoperation = self.pending.popleft()
            delta = microoperation(self.snapshot())
            self.apply(delta)
            applied.append(microoperation)
            for listener in self.listeners:
                listener(microoperation, delta)
            if "s" in delta.registers and not delta.registers["s"]:
                logger.debug("halted at PC=%s", self.pc.hex())
        return applied

    def step(self, strict: bool = False) -> Optional[Microoperation]:
        """
        Apply exactly one microoperation, ticking first if none is queued.

        Returns:
            The applied microoperation, or None if the machine is halted
        """
        if not self.pending and not self.tick(strict):
            return None
        applied = self.drain(1)
        return applied[0] if applied else None

    def cycle(self, strict: bool = False) -> bool:
        """Tick once and apply everything that fired."""
        if not self.tick(strict):
            return False
        self.drain()
        return True
