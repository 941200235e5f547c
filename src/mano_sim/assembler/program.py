"""
Assembled Program Model
=======================

The assembler produces a Program: a start address, the machine words it
places in memory, the labels it defined, and any diagnostics.  A Program
with diagnostics is still a complete object (the caller decides whether
to load it), so every field is always populated.

Instructions and labels are immutable.  Resolving a label reference or
marking an instruction indirect returns a new Instruction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from mano_sim.assembler.lexer import Token
from mano_sim.assembler.opcodes import INDIRECT_BIT, MEMORY_SIZE, WORD_MASK


# =============================================================================
# Label
# =============================================================================

@dataclass(frozen=True)
class Label:
    """
    A symbol bound to an address.

    Attributes:
        token: The token that defined the label
        address: The address the label names
    """
    token: Token
    address: int

    @property
    def name(self) -> str:
        return self.token.lexeme

    def __str__(self) -> str:
        return f"{self.name} = {self.address:03X}"


# =============================================================================
# Instruction
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A machine word at a fixed address, with the tokens it came from.

    Attributes:
        address: Memory address of the word (0-0xFFF)
        code: The 16-bit word
        tokens: Source tokens (mnemonic first, then arguments)
    """
    address: int
    code: int
    tokens: tuple[Token, ...] = ()

    @property
    def mnemonic(self) -> Token:
        """The first token: the mnemonic or data directive."""
        return self.tokens[0]

    @property
    def disassembly(self) -> str:
        """The source text of the instruction, lexemes joined by spaces."""
        return " ".join(token.lexeme for token in self.tokens)

    def indirect(self) -> Instruction:
        """Return a copy with the indirect-addressing bit added."""
        return Instruction(self.address, self.code + INDIRECT_BIT, self.tokens)

    def resolve(self, label: Label) -> Instruction:
        """Return a copy with the label's address added to the code."""
        return Instruction(self.address, self.code + label.address, self.tokens)

    def __str__(self) -> str:
        return f"{self.code:04X}"


# =============================================================================
# Program
# =============================================================================

@dataclass
class Program:
    """
    Output of one assembly (or a merge of several).

    Attributes:
        start: Entry address, loaded into PC
        instructions: Words in generation order
        labels: Defined labels, in definition order
        diagnostics: Assembler errors, in the order they were found
    """
    start: int = 0
    instructions: list[Instruction] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    diagnostics: list = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Diagnostic messages as plain strings."""
        return [getattr(error, "message", str(error)) for error in self.diagnostics]

    @property
    def has_errors(self) -> bool:
        return len(self.diagnostics) > 0

    @property
    def conflicts(self) -> bool:
        """True if two instructions occupy the same address."""
        addresses = [instruction.address for instruction in self.instructions]
        return len(set(addresses)) != len(addresses)

    def conflicting_addresses(self) -> list[int]:
        """Addresses claimed by more than one instruction, ascending."""
        seen: set[int] = set()
        shared: set[int] = set()
        for instruction in self.instructions:
            if instruction.address in seen:
                shared.add(instruction.address)
            seen.add(instruction.address)
        return sorted(shared)

    def symbol_table(self) -> dict[str, int]:
        """Map of label name to address."""
        return {label.name: label.address for label in self.labels}

    def memory_image(self) -> list[int]:
        """
        All 4096 words as they would sit in memory after loading.

        Later instructions overwrite earlier ones at the same address.
        """
        image = [0] * MEMORY_SIZE
        for instruction in self.instructions:
            image[instruction.address] = instruction.code & WORD_MASK
        return image

    def memory_dump(self) -> str:
        """Memory image as space-separated 4-digit hex words."""
        return " ".join(f"{word:04X}" for word in self.memory_image())

    def listing(self) -> str:
        """
        Address, word and source text for every instruction.

        Example line:
            100  2102  LDA X
        """
        return "\n".join(
            f"{instruction.address:03X}  {instruction.code:04X}  {instruction.disassembly}"
            for instruction in sorted(self.instructions, key=lambda i: i.address)
        )

    @classmethod
    def union(cls, start: int, *programs: Program) -> Program:
        """
        Merge programs into one, keeping every instruction, label and
        diagnostic in argument order.

        The merge does not check for overlapping addresses; inspect
        ``conflicts`` on the result.
        """
        return cls(
            start=start,
            instructions=[i for p in programs for i in p.instructions],
            labels=[label for p in programs for label in p.labels],
            diagnostics=[d for p in programs for d in p.diagnostics],
        )

    @classmethod
    def merge(cls, programs: Iterable[Program]) -> Program:
        """Union using the first program's start address."""
        programs = list(programs)
        start = programs[0].start if programs else 0
        return cls.union(start, *programs)
