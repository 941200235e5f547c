"""
Mano Simulator - Main Orchestrator
==================================

This module provides the `Simulator` class, a high-level API over the
Computer for running and debugging programs:

- Program loading from assembled Programs or straight from source
- Execution control (run, step one microoperation, step one instruction)
- Breakpoint expressions checked after every clock tick
- Input and output devices (INPR/FGI and OUTR/FGO)
- Optional tracing of every applied microoperation

Example usage:
    >>> sim = Simulator()
    >>> _ = sim.load_source('''
    ...     LDA A
    ...     ADD B
    ...     STA C
    ...     HLT
    ... A,  DEC 2
    ... B,  DEC 3
    ... C,  DEC 0
    ... ''')
    >>> sim.run().reason
    <BreakReason.HALTED: 3>
    >>> sim.computer.ram.read(6)
    5

Breakpoint Timing
-----------------
Breakpoints are evaluated after each tick and before the batch of
microoperations it fired is applied.  When a run stops on a breakpoint the
batch stays pending, so the caller sees exactly what is about to happen;
the next run applies it first.  A resumed run ignores breakpoints until PC
moves away from where it stopped, so continuing never re-triggers the same
stop.

Copyright (c) 2025 mano-sim contributors
"""

import logging
import re
from collections import deque
from typing import Callable, Iterable, Optional, Union

from mano_sim.assembler import Assembler
from mano_sim.assembler.program import Program
from mano_sim.config import SimulatorConfig
from mano_sim.errors import InputFormatError, ProgramLoadError
from .breakpoints import Breakpoint, BreakEvent, BreakReason, parse
from .computer import Computer
from .control import Delta, Microoperation


logger = logging.getLogger(__name__)

_INPUT_LITERAL = re.compile(r"0x[0-9a-fA-F]{1,2}")

TraceCallback = Callable[[Microoperation, Delta], None]


class Simulator:
    """
    Main simulator class: a Computer plus debugging and device support.

    Attributes:
        config: Run-time settings
        computer: The machine being driven
        program: The currently loaded program (None before the first load)
        ticks: Clock ticks executed since the last load
        trace: Optional callback receiving every applied microoperation
        auto_output: Keep the output device ready (FGO set) during runs
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or SimulatorConfig()
        self.computer = Computer()
        self.program: Optional[Program] = None
        self.ticks = 0
        self.trace: Optional[TraceCallback] = None
        self.auto_output = False

        self._breakpoints: dict[int, Breakpoint] = {}
        self._next_id = 1
        self._stopped_at: Optional[int] = None
        self._output: list[str] = []
        self._input: deque[str] = deque()

        self.computer.listeners.append(self._on_apply)

    def _on_apply(self, microoperation: Microoperation, delta: Delta) -> None:
        if "outr" in delta.registers:
            self._output.append(chr(delta.registers["outr"]))
        if self.config.trace:
            logger.info("%s", microoperation)
        if self.trace is not None:
            self.trace(microoperation, delta)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load(self, program: Program) -> None:
        """
        Load an assembled program and reset all run state.

        Raises:
            ProgramLoadError: If the program carries assembler diagnostics
        """
        if program.has_errors:
            raise ProgramLoadError(program.errors)
        self.computer.load(program)
        self.program = program
        self.ticks = 0
        self._stopped_at = None
        self._output.clear()
        self._input.clear()
        logger.debug("program loaded, PC=%s", self.computer.pc.hex())

    def load_source(self, source: str, filename: str = "<input>") -> Program:
        """
        Assemble source text and load the result.

        Returns:
            The assembled Program

        Raises:
            ProgramLoadError: If assembly produced diagnostics
        """
        program = Assembler().assemble(source, filename)
        self.load(program)
        return program

    def reset(self) -> None:
        """Reload the current program, or clear the machine if none."""
        if self.program is not None:
            self.load(self.program)
        else:
            self.computer.reset()
            self.ticks = 0
            self._stopped_at = None
            self._output.clear()
            self._input.clear()

    # =========================================================================
    # Breakpoints
    # =========================================================================

    def add_breakpoint(self, expression: Union[str, Breakpoint]) -> int:
        """
        Add a breakpoint.

        Args:
            expression: Breakpoint text (e.g. ``"@10"``, ``"&(%lda)(!^X)"``)
                or an already built expression

        Returns:
            Identifier for remove_breakpoint

        Raises:
            InvalidBreakpointError: If the text does not parse
        """
        if isinstance(expression, str):
            expression = parse(expression)
        breakpoint_id = self._next_id
        self._next_id += 1
        self._breakpoints[breakpoint_id] = expression
        logger.debug("breakpoint %d: %s", breakpoint_id, expression.encode())
        return breakpoint_id

    def remove_breakpoint(self, breakpoint_id: int) -> bool:
        """Remove a breakpoint; returns False if the id is unknown."""
        return self._breakpoints.pop(breakpoint_id, None) is not None

    def clear_breakpoints(self) -> None:
        self._breakpoints.clear()

    def list_breakpoints(self) -> dict[int, str]:
        """Encoded form of every breakpoint, keyed by id."""
        return {bid: bp.encode() for bid, bp in self._breakpoints.items()}

    def check_breakpoints(self) -> Optional[Breakpoint]:
        """Return the first breakpoint that holds right now, if any."""
        for expression in self._breakpoints.values():
            if expression.should_break(self.computer):
                return expression
        return None

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self, max_ticks: Optional[int] = None) -> BreakEvent:
        """
        Run until the program halts, a breakpoint holds, or the tick
        budget is spent.

        Args:
            max_ticks: Tick budget for this call; defaults to
                ``config.max_ticks`` (None there means unlimited)

        Returns:
            BreakEvent describing why execution stopped
        """
        budget = max_ticks if max_ticks is not None else self.config.max_ticks
        computer = self.computer
        resume_pc, self._stopped_at = self._stopped_at, None
        ticks = 0

        while True:
            computer.drain()
            if not computer.running:
                return BreakEvent(BreakReason.HALTED, pc=computer.pc.value, ticks=ticks)
            if budget is not None and ticks >= budget:
                return BreakEvent(BreakReason.MAX_TICKS, pc=computer.pc.value, ticks=ticks)
            self._feed_devices()

            computer.tick(self.config.strict)
            ticks += 1
            self.ticks += 1

            if resume_pc is not None and computer.pc.value != resume_pc:
                resume_pc = None
            if resume_pc is None and (hit := self.check_breakpoints()) is not None:
                self._stopped_at = computer.pc.value
                logger.debug("breakpoint %s hit at PC=%s", hit.encode(), computer.pc.hex())
                return BreakEvent(
                    BreakReason.BREAKPOINT,
                    pc=computer.pc.value,
                    expression=hit.encode(),
                    ticks=ticks,
                )

    def step(self) -> Optional[Microoperation]:
        """
        Apply a single microoperation, ticking first if none is pending.

        Returns:
            The applied microoperation, or None if the machine is halted
        """
        if not self.computer.pending and self.computer.running:
            self.ticks += 1
        self._stopped_at = None
        return self.computer.step(self.config.strict)

    def step_instruction(
        self,
        skips: Iterable[Union[str, Breakpoint]] = (),
        max_ticks: Optional[int] = None,
    ) -> BreakEvent:
        """
        Run to the start of the next instruction.

        Execution continues until PC differs from where it started, the
        sequence counter is back at T0, and none of the skip expressions
        hold.  Skips use breakpoint syntax, so ``["%bun"]`` steps over
        every BUN and ``["@e00:fff"]`` steps over a whole region.

        Returns:
            BreakEvent with reason STEP, HALTED or MAX_TICKS
        """
        expressions = [parse(s) if isinstance(s, str) else s for s in skips]
        budget = max_ticks if max_ticks is not None else self.config.max_ticks
        computer = self.computer
        start = computer.pc.value
        self._stopped_at = None
        computer.drain()
        ticks = 0

        while computer.running:
            if budget is not None and ticks >= budget:
                return BreakEvent(BreakReason.MAX_TICKS, pc=computer.pc.value, ticks=ticks)
            self._feed_devices()
            computer.cycle(self.config.strict)
            ticks += 1
            self.ticks += 1
            if not computer.running:
                break
            if (
                computer.sc == 0
                and computer.pc.value != start
                and not any(skip.should_break(computer) for skip in expressions)
            ):
                return BreakEvent(BreakReason.STEP, pc=computer.pc.value, ticks=ticks)

        return BreakEvent(BreakReason.HALTED, pc=computer.pc.value, ticks=ticks)

    # =========================================================================
    # Devices
    # =========================================================================

    def provide_input(self, text: str) -> int:
        """
        Place a character in INPR and raise FGI.

        Args:
            text: A single character (its code, capped at 0xFF) or a
                ``0xN``/``0xNN`` hex literal

        Returns:
            The value loaded into INPR

        Raises:
            InputFormatError: For anything else
        """
        if _INPUT_LITERAL.fullmatch(text):
            value = int(text, 16)
        elif len(text) == 1:
            value = min(ord(text), self.computer.inpr.max)
        else:
            raise InputFormatError(
                f"input must be a single character or 0x00-0xFF, got {text!r}"
            )
        self.computer.inpr.load(value)
        self.computer.fgi.load(1)
        return value

    def enable_output(self) -> None:
        """Signal that the output device is ready (FGO <- 1)."""
        self.computer.fgo.load(1)

    def queue_input(self, text: str) -> None:
        """
        Queue characters for the input device.

        During run and step_instruction the next queued character is
        provided whenever FGI is clear, one character per clear.
        """
        self._input.extend(text)

    def _feed_devices(self) -> None:
        computer = self.computer
        if self._input and not computer.fgi.value:
            self.provide_input(self._input.popleft())
        if self.auto_output and not computer.fgo.value:
            computer.fgo.load(1)

    @property
    def output(self) -> str:
        """Every character written to OUTR since the last load."""
        return "".join(self._output)

    def __repr__(self) -> str:
        c = self.computer
        return (
            f"Simulator(PC={c.pc.hex()}, AC={c.ac.hex()}, SC={c.sc}, "
            f"S={c.s.value}, ticks={self.ticks})"
        )
