"""
Mano Assembler - Main Interface
===============================

This module provides the Assembler class, which turns Mano assembly source
into a Program.  Assembly runs in two passes:

1. **Generation** walks the tokens left to right with an address counter
   that starts at 0.  Labels are recorded as they are defined, words are
   emitted for data directives and instructions, and every label reference
   is remembered for later.

2. **Resolution** adds each referenced label's address to the word that
   named it.  Because every label is known by then, forward references
   work.

The assembler never raises on bad source.  Each problem becomes a
diagnostic on the returned Program and both passes always run to the end,
so a single compile reports everything it can find.

Example Usage
-------------
>>> from mano_sim.assembler import Assembler
>>> program = Assembler().assemble('''
...     ORG 100
...     LDA X
... X,  HEX 5
...     END
... ''')
>>> program.start, [str(i) for i in program.instructions]
(256, ['2101', '0005'])

Command-Line Usage
------------------
    $ manoasm program.asm -o program.mem -l program.lst -s program.sym

Copyright (c) 2025 mano-sim contributors
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from mano_sim.assembler.lexer import COMMA, Token, tokenize
from mano_sim.assembler.opcodes import (
    ADDRESS_MASK,
    INDIRECT_SUFFIX,
    MEMORY_SIZE,
    WORD_MASK,
    implicit_code,
    memory_reference_code,
)
from mano_sim.assembler.program import Instruction, Label, Program
from mano_sim.errors import (
    AddressConflictError,
    AddressOverflowError,
    DuplicateDirectiveError,
    DuplicateLabelError,
    ErrorCollector,
    InvalidAddressError,
    InvalidInstructionError,
    MissingArgumentError,
    TrailingContentError,
    UndefinedLabelError,
)


logger = logging.getLogger(__name__)

_HEX_LITERAL = re.compile(r"[+-]?[0-9A-Fa-f]+")
_DEC_LITERAL = re.compile(r"[+-]?[0-9]+")
_ADDRESS_LITERAL = re.compile(r"[0-9A-Fa-f]+")


def parse_literal(text: str, base: int, limit: int) -> Optional[int]:
    """
    Parse a numeric literal bounded by ``limit``.

    Negative values are accepted when the text carries a sign and wrap to
    their two's complement form (``limit + 1 + value``).

    Args:
        text: Literal text, without any radix prefix
        base: 16 or 10
        limit: Largest representable value (0xFFF or 0xFFFF)

    Returns:
        The value, or None if the text is not a literal or is out of range
    """
    if base == 16:
        pattern = _HEX_LITERAL if limit == WORD_MASK else _ADDRESS_LITERAL
    else:
        pattern = _DEC_LITERAL
    if not pattern.fullmatch(text):
        return None

    value = int(text, base)
    if abs(value) > limit:
        return None
    return limit + 1 + value if value < 0 else value


def _edit_distance(s1: str, s2: str) -> int:
    """Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current = [i + 1]
        for j, c2 in enumerate(s2):
            current.append(min(
                previous[j + 1] + 1,
                current[j] + 1,
                previous[j] + (c1 != c2),
            ))
        previous = current
    return previous[-1]


class Assembler:
    """
    Two-pass assembler for the Mano Basic Computer.

    An Assembler instance can be reused; each call to ``assemble`` starts
    from a clean state.

    Attributes:
        verbose: If True, log progress at INFO level instead of DEBUG
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._reset()

    def _reset(self) -> None:
        self._tokens: list[Token] = []
        self._position = 0
        self._address = 0
        self._wrapped = False
        self._start: Optional[int] = None
        self._instructions: list[Instruction] = []
        self._labels: dict[str, Label] = {}
        self._references: list[tuple[int, Token]] = []
        self._errors = ErrorCollector()

    def _log(self, message: str, *args) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, message, *args)

    # =========================================================================
    # Public Interface
    # =========================================================================

    def assemble(self, source: str, filename: str = "<input>") -> Program:
        """
        Assemble source text.

        Args:
            source: Assembly source code
            filename: Name used in log messages

        Returns:
            The Program; check ``program.errors`` before loading it
        """
        self._reset()
        self._tokens = tokenize(source)
        self._log("assembling %s (%d tokens)", filename, len(self._tokens))

        self._generate()
        self._resolve()

        start = self._start
        if start is None:
            start = self._instructions[0].address if self._instructions else 0

        program = Program(
            start=start,
            instructions=list(self._instructions),
            labels=list(self._labels.values()),
            diagnostics=list(self._errors.errors),
        )
        self._log(
            "%s: %d words, %d labels, %d errors",
            filename, len(program.instructions), len(program.labels),
            self._errors.error_count(),
        )
        return program

    def assemble_file(self, path: str | Path) -> Program:
        """Assemble a source file (UTF-8)."""
        path = Path(path)
        return self.assemble(path.read_text(encoding="utf-8"), str(path))

    def assemble_all(self, paths: Iterable[str | Path]) -> Program:
        """
        Assemble several files and merge them into one Program.

        The first file's start address becomes the merged start.  Files
        that place words at the same address produce an
        AddressConflictError diagnostic on the merged program.
        """
        programs = [self.assemble_file(path) for path in paths]
        merged = Program.merge(programs)
        if merged.conflicts:
            merged.diagnostics.append(
                AddressConflictError(merged.conflicting_addresses())
            )
        return merged

    # =========================================================================
    # Token Stream
    # =========================================================================

    def _peek(self) -> Optional[Token]:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self) -> Optional[Token]:
        token = self._peek()
        if token is not None:
            self._position += 1
        return token

    def _at_end(self) -> bool:
        return self._position >= len(self._tokens)

    # =========================================================================
    # Pass 1: Generation
    # =========================================================================

    def _generate(self) -> None:
        while not self._at_end():
            token = self._next()

            next_token = self._peek()
            if next_token is not None and next_token.lexeme == COMMA:
                self._define_label(token)
                self._next()
                token = self._next()
                if token is None:
                    break

            keyword = token.upper
            if keyword == "ORG":
                self._origin(token)
            elif keyword == "START":
                self._origin(token)
                if self._start is None:
                    self._start = self._address
                else:
                    self._errors.add(DuplicateDirectiveError(token))
            elif keyword == "END":
                if not self._at_end():
                    self._errors.add(TrailingContentError(token))
                break
            else:
                self._check_wrapped(token)
                self._emit(token, keyword)
                self._advance()

    def _define_label(self, token: Token) -> None:
        self._check_wrapped(token)
        existing = self._labels.get(token.lexeme)
        if existing is not None:
            self._errors.add(DuplicateLabelError(token, existing.token))
            return
        self._labels[token.lexeme] = Label(token, self._address)

    def _origin(self, directive: Token) -> None:
        """Handle the address argument of ORG/START."""
        argument = self._peek()
        if argument is None:
            self._errors.add(MissingArgumentError(
                f"Missing argument after directive, {directive}.", token=directive,
            ))
            return

        address = parse_literal(argument.lexeme, 16, ADDRESS_MASK)
        if address is None:
            self._errors.add(InvalidAddressError(
                f"Invalid address, {directive.upper} {argument}.", token=argument,
            ))
            return

        self._address = address
        self._wrapped = False
        self._next()

    def _emit(self, token: Token, keyword: str) -> None:
        """Generate the word for a data directive or an instruction."""
        if keyword in ("DEC", "HEX"):
            self._data(token, keyword)
            return

        base = memory_reference_code(keyword)
        if base is not None:
            self._memory_reference(token, base)
            return

        code = implicit_code(keyword)
        if code is not None:
            self._instructions.append(Instruction(self._address, code, (token,)))
            return

        previous = self._instructions[-1].mnemonic if self._instructions else None
        self._errors.add(InvalidInstructionError(token, previous))

    def _data(self, token: Token, keyword: str) -> None:
        argument = self._next()
        if argument is None:
            kind = "hexadecimal" if keyword == "HEX" else "decimal"
            self._errors.add(MissingArgumentError(
                f"Missing {kind} number literal after {token}.", token=token,
            ))
            return

        value = parse_literal(argument.lexeme, 16 if keyword == "HEX" else 10, WORD_MASK)
        if value is None:
            self._errors.add(InvalidAddressError(
                f"Invalid address, {argument}.", token=argument,
            ))
            return

        self._instructions.append(Instruction(self._address, value, (token, argument)))

    def _memory_reference(self, token: Token, base: int) -> None:
        argument = self._next()
        if argument is None:
            self._errors.add(MissingArgumentError(
                f"Missing argument after memory address instruction, {token}.",
                token=token,
            ))
            return

        suffix = self._peek()
        if suffix is not None and suffix.lexeme == INDIRECT_SUFFIX:
            self._next()
            instruction = Instruction(self._address, base, (token, argument, suffix)).indirect()
        else:
            instruction = Instruction(self._address, base, (token, argument))

        self._references.append((len(self._instructions), argument))
        self._instructions.append(instruction)

    def _advance(self) -> None:
        self._address += 1
        if self._address == MEMORY_SIZE:
            self._address = 0
            self._wrapped = True

    def _check_wrapped(self, token: Token) -> None:
        """Report a word or label placed past 0xFFF, once per wrap."""
        if self._wrapped:
            self._wrapped = False
            self._errors.add(AddressOverflowError(token))

    # =========================================================================
    # Pass 2: Label Resolution
    # =========================================================================

    def _resolve(self) -> None:
        for index, argument in self._references:
            instruction = self._instructions[index]
            label = self._labels.get(argument.lexeme)
            if label is None:
                self._errors.add(UndefinedLabelError(
                    argument, instruction.mnemonic, self._similar_labels(argument.lexeme),
                ))
                continue
            self._instructions[index] = instruction.resolve(label)
        logger.debug("resolved %d label references", len(self._references))

    def _similar_labels(self, name: str) -> list[str]:
        """Find labels with names close to ``name`` for error hints."""
        name_lower = name.lower()
        similar = []
        for label in self._labels:
            label_lower = label.lower()
            if label_lower == name_lower or (
                abs(len(label) - len(name)) <= 1
                and _edit_distance(name_lower, label_lower) <= 1
            ):
                similar.append(label)
        return similar[:3]


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> Program:
    """
    Assemble source text with a fresh Assembler.

    Example:
        >>> program = assemble("CLA\\nHLT")
        >>> [str(i) for i in program.instructions]
        ['7800', '7001']
    """
    return Assembler().assemble(source, filename)


def assemble_file(path: str | Path) -> Program:
    """Assemble a single source file with a fresh Assembler."""
    return Assembler().assemble_file(path)


def assemble_all(paths: Iterable[str | Path]) -> Program:
    """Assemble and merge several source files with a fresh Assembler."""
    return Assembler().assemble_all(paths)
