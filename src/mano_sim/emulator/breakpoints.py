"""
Breakpoint Expression Language
==============================

Breakpoints are small boolean expressions over the machine state.  They
are written as text, parsed once into an immutable tree, and re-evaluated
after every clock tick.

Grammar
-------
::

    expr     := '(' expr ')'                  grouping
              | '!' expr                      logical NOT
              | '&' '(' expr ')' '(' expr ')' logical AND
              | '|' '(' expr ')' '(' expr ')' logical OR
              | '@' position                  program counter test
              | '%' mnemonic                  instruction at PC
              | '^' symbol                    label at PC
              | '^*' symbol                   PC equals word stored at label
    position := hex                           PC == hex
              | hex ':' hex                   start <= PC < end
              | hex '-' hex                   PC < start or PC >= end

The leading character selects the production.  Parenthesized operands are
found by balanced-paren scanning; a missing closing paren is taken to be
at the end of the text.  Any other syntax problem raises
InvalidBreakpointError and no part of the expression is kept.

Evaluation
----------
AND stops at a false left operand.  OR always evaluates both operands.

``^*sym`` looks the label's address up once and caches the result on the
machine's RAM (``-1`` when the label does not exist).  The cache is only
cleared when the machine is reset.

Example usage:

    >>> bp = parse("|(@10:20)(%hlt)")
    >>> bp.encode()
    '|(@10:20)(%hlt)'
    >>> bp == break_if_either(break_in_range(0x10, 0x20), break_on_mnemonic("hlt"))
    True

Copyright (c) 2025 mano-sim contributors
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, TYPE_CHECKING

from mano_sim.errors import InvalidBreakpointError
from .memory import NOT_FOUND

if TYPE_CHECKING:
    from .computer import Computer


logger = logging.getLogger(__name__)


# =============================================================================
# Break Events
# =============================================================================

class BreakReason(Enum):
    """
    Why a run stopped.

    Used in BreakEvent to indicate what triggered the stop.
    """
    NONE = auto()           # No specific reason
    BREAKPOINT = auto()     # A breakpoint expression held
    HALTED = auto()         # The program executed HLT
    STEP = auto()           # Single-step completed
    MAX_TICKS = auto()      # Tick budget exhausted


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        pc: Program counter at the stop
        expression: Encoded breakpoint that fired (if applicable)
        ticks: Clock ticks executed by the run
        message: Human-readable description (overrides the default)
    """
    reason: BreakReason
    pc: Optional[int] = None
    expression: Optional[str] = None
    ticks: int = 0
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.BREAKPOINT:
                where = f" at PC={self.pc:03X}" if self.pc is not None else ""
                return f"Breakpoint {self.expression}{where}"
            case BreakReason.HALTED:
                return f"Halted at PC={self.pc:03X}" if self.pc is not None else "Halted"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.MAX_TICKS:
                return f"Tick limit reached after {self.ticks} ticks"
            case _:
                return "Stopped"


# =============================================================================
# Expression Tree
# =============================================================================

class Breakpoint:
    """Base class of every breakpoint expression node."""

    def should_break(self, computer: "Computer") -> bool:
        raise NotImplementedError

    def encode(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.encode()


# Characters that would not survive an encode/parse round trip
_UNENCODABLE = re.compile(r"[()\s]")


def _check_name(name: str, lead: str) -> None:
    match = _UNENCODABLE.search(name)
    if match:
        raise InvalidBreakpointError(
            match.group(), lead + name, f"{match.group()!r} cannot appear in a name",
        )


class PCBreakpointKind(Enum):
    ON_PC = auto()
    IN_RANGE = auto()
    NOT_IN_RANGE = auto()


@dataclass(frozen=True)
class PCBreakpoint(Breakpoint):
    """
    Program counter test.

    ``end`` is unused for ON_PC.  Ranges are half open: ``start`` is
    inside, ``end`` is not.
    """
    kind: PCBreakpointKind
    start: int
    end: int = 0

    def should_break(self, computer: "Computer") -> bool:
        pc = computer.pc.value
        match self.kind:
            case PCBreakpointKind.ON_PC:
                return pc == self.start
            case PCBreakpointKind.IN_RANGE:
                return self.start <= pc < self.end
            case PCBreakpointKind.NOT_IN_RANGE:
                return pc < self.start or pc >= self.end
        return False

    def encode(self) -> str:
        match self.kind:
            case PCBreakpointKind.IN_RANGE:
                return f"@{self.start:x}:{self.end:x}"
            case PCBreakpointKind.NOT_IN_RANGE:
                return f"@{self.start:x}-{self.end:x}"
        return f"@{self.start:x}"


@dataclass(frozen=True)
class SymbolBreakpoint(Breakpoint):
    """Breaks when the cell at PC carries the label ``symbol``."""
    symbol: str

    def __post_init__(self) -> None:
        _check_name(self.symbol, "^")
        if self.symbol.startswith("*"):
            raise InvalidBreakpointError("*", "^" + self.symbol, "use ^* to test a stored address")

    def should_break(self, computer: "Computer") -> bool:
        return computer.ram.label_at(computer.pc.value) == self.symbol

    def encode(self) -> str:
        return f"^{self.symbol}"


@dataclass(frozen=True)
class SymbolRefBreakpoint(Breakpoint):
    """
    Breaks when PC equals the word stored at label ``symbol``.

    Useful for stopping at the return address a subroutine saved at its
    entry label.  Add it before the subroutine is first called: a plain
    store clears the label of the cell it writes, so once BSA has run the
    label is gone, the lookup yields -1 and that result stays cached
    until the machine is reset.
    """
    symbol: str

    def __post_init__(self) -> None:
        _check_name(self.symbol, "^*")

    def should_break(self, computer: "Computer") -> bool:
        ram = computer.ram
        address = ram.symbol_cache.get(self.symbol)
        if address is None:
            address = ram.find_label(self.symbol)
            ram.symbol_cache[self.symbol] = address
            logger.debug("cached address of label %r: %d", self.symbol, address)
        if address == NOT_FOUND:
            return False
        return computer.pc.value == ram.read(address)

    def encode(self) -> str:
        return f"^*{self.symbol}"


@dataclass(frozen=True)
class InstructionBreakpoint(Breakpoint):
    """Breaks when the instruction text at PC starts with ``mnemonic``."""
    mnemonic: str

    def __post_init__(self) -> None:
        _check_name(self.mnemonic, "%")

    def should_break(self, computer: "Computer") -> bool:
        words = computer.ram.disassembly_at(computer.pc.value).split()
        return bool(words) and words[0].lower() == self.mnemonic.lower()

    def encode(self) -> str:
        return f"%{self.mnemonic}"


def _wrap(node: Breakpoint) -> str:
    """Encode an operand inside parentheses, once."""
    if isinstance(node, Group):
        return node.encode()
    return f"({node.encode()})"


@dataclass(frozen=True)
class Not(Breakpoint):
    operand: Breakpoint

    def should_break(self, computer: "Computer") -> bool:
        return not self.operand.should_break(computer)

    def encode(self) -> str:
        return f"!{_wrap(self.operand)}"


@dataclass(frozen=True)
class And(Breakpoint):
    left: Breakpoint
    right: Breakpoint

    def should_break(self, computer: "Computer") -> bool:
        return self.left.should_break(computer) and self.right.should_break(computer)

    def encode(self) -> str:
        return f"&{_wrap(self.left)}{_wrap(self.right)}"


@dataclass(frozen=True)
class Or(Breakpoint):
    left: Breakpoint
    right: Breakpoint

    def should_break(self, computer: "Computer") -> bool:
        left = self.left.should_break(computer)
        right = self.right.should_break(computer)
        return left or right

    def encode(self) -> str:
        return f"|{_wrap(self.left)}{_wrap(self.right)}"


@dataclass(frozen=True)
class Group(Breakpoint):
    inner: Breakpoint

    def should_break(self, computer: "Computer") -> bool:
        return self.inner.should_break(computer)

    def encode(self) -> str:
        return f"({self.inner.encode()})"


# =============================================================================
# Builders
# =============================================================================

def break_on_pc(address: int) -> PCBreakpoint:
    return PCBreakpoint(PCBreakpointKind.ON_PC, address)


def break_in_range(start: int, end: int) -> PCBreakpoint:
    return PCBreakpoint(PCBreakpointKind.IN_RANGE, start, end)


def break_not_in_range(start: int, end: int) -> PCBreakpoint:
    return PCBreakpoint(PCBreakpointKind.NOT_IN_RANGE, start, end)


def break_on_symbol(symbol: str) -> SymbolBreakpoint:
    return SymbolBreakpoint(symbol)


def break_on_symbol_ref(symbol: str) -> SymbolRefBreakpoint:
    return SymbolRefBreakpoint(symbol)


def break_on_mnemonic(mnemonic: str) -> InstructionBreakpoint:
    return InstructionBreakpoint(mnemonic)


def break_if_not(operand: Breakpoint) -> Not:
    return Not(operand)


def break_if_both(left: Breakpoint, right: Breakpoint) -> And:
    return And(left, right)


def break_if_either(left: Breakpoint, right: Breakpoint) -> Or:
    return Or(left, right)


# =============================================================================
# Parser
# =============================================================================

_HEX = re.compile(r"[0-9A-Fa-f]+")

_PRODUCTIONS: dict[str, Callable[[str], Breakpoint]] = {}


def _production(*leads: str):
    """Register a parse function for the given leading characters."""
    def register(func: Callable[[str], Breakpoint]) -> Callable[[str], Breakpoint]:
        for lead in leads:
            _PRODUCTIONS[lead] = func
        return func
    return register


def read_balanced(text: str) -> int:
    """
    Find the close paren matching an already consumed open paren.

    Returns:
        Index of the matching close paren, or len(text) if the
        parentheses never balance
    """
    depth = 1
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return len(text)


def _operand(text: str, whole: str) -> tuple[Breakpoint, str]:
    """Parse ``(expr)`` at the start of text; return it and the remainder."""
    text = text.lstrip()
    if not text.startswith("("):
        raise InvalidBreakpointError(text[:1], whole, "expected '('")
    body = text[1:]
    close = read_balanced(body)
    return parse(body[:close]), body[close + 1:]


def parse(text: str) -> Breakpoint:
    """
    Parse a breakpoint expression.

    Raises:
        InvalidBreakpointError: On any syntax error
    """
    text = text.strip()
    if not text:
        raise InvalidBreakpointError("", text)
    production = _PRODUCTIONS.get(text[0])
    if production is None:
        raise InvalidBreakpointError(text[0], text)
    return production(text)


@_production("(")
def _parse_group(text: str) -> Group:
    inner, _ = _operand(text, text)
    return Group(inner)


@_production("!")
def _parse_not(text: str) -> Not:
    return Not(parse(text[1:]))


@_production("&", "|")
def _parse_binary(text: str) -> Breakpoint:
    left, rest = _operand(text[1:], text)
    right, _ = _operand(rest, text)
    if text[0] == "&":
        return And(left, right)
    return Or(left, right)


def _hex(value: str, whole: str) -> int:
    value = value.strip()
    if not _HEX.fullmatch(value):
        raise InvalidBreakpointError(value[:1], whole, f"invalid address {value!r}")
    return int(value, 16)


@_production("@")
def _parse_pc(text: str) -> PCBreakpoint:
    position = text[1:]
    if ":" in position:
        start, _, end = position.partition(":")
        return break_in_range(_hex(start, text), _hex(end, text))
    if "-" in position:
        start, _, end = position.partition("-")
        return break_not_in_range(_hex(start, text), _hex(end, text))
    return break_on_pc(_hex(position, text))


@_production("%")
def _parse_mnemonic(text: str) -> InstructionBreakpoint:
    mnemonic = text[1:].strip()
    if not mnemonic:
        raise InvalidBreakpointError("", text, "missing mnemonic")
    return break_on_mnemonic(mnemonic)


@_production("^")
def _parse_symbol(text: str) -> Breakpoint:
    if text[1:2] == "*":
        symbol = text[2:].strip()
        builder = break_on_symbol_ref
    else:
        symbol = text[1:].strip()
        builder = break_on_symbol
    if not symbol:
        raise InvalidBreakpointError("", text, "missing symbol")
    return builder(symbol)
