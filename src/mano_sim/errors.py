"""
Mano Simulator Error Hierarchy
==============================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from ManoError, allowing callers to catch every
simulator-related error with a single except clause if desired.

Exception Hierarchy
-------------------
ManoError (base)
├── AssemblerError (assembler diagnostics)
│   ├── MissingArgumentError - directive/instruction without its operand
│   ├── InvalidAddressError - literal outside its declared bit range
│   ├── DuplicateLabelError - label defined more than once
│   ├── UndefinedLabelError - reference to a label that was never defined
│   ├── AddressOverflowError - address counter wrapped past 0xFFF
│   ├── DuplicateDirectiveError - START seen twice
│   ├── TrailingContentError - tokens after END
│   ├── InvalidInstructionError - unrecognized token
│   └── AddressConflictError - merged programs claim the same address
├── MachineError (simulation contract violations)
│   ├── RegisterValueError - value or digit outside a register's width
│   ├── MachineHaltedError - tick requested while the run flag is clear
│   ├── ProgramLoadError - program with diagnostics handed to the machine
│   └── InputFormatError - malformed input device value
└── InvalidBreakpointError - breakpoint expression syntax error

Design Philosophy
-----------------
Assembler errors are *diagnostics*: the assembler never raises them, it
collects them in an ErrorCollector so the caller sees every problem of a
compile at once.  Each one carries the offending token, whose string form
names its line and token position.

Machine errors are raised immediately.  A register asked to hold a value
it cannot represent is a programming error, not user input, so it stops
execution instead of being clamped.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from mano_sim.assembler.lexer import Token


# =============================================================================
# Base Exception Class
# =============================================================================

class ManoError(Exception):
    """
    Base exception for all simulator errors.

        try:
            simulator.load_source(text)
        except ManoError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Assembler Diagnostics
# =============================================================================

class AssemblerError(ManoError):
    """
    Base class for assembler diagnostics.

    Attributes:
        message: The error description (already contains the token text)
        token: The offending token, when one exists
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        token: Optional["Token"] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.token = token
        self.hint = hint
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line of the offending token, if known."""
        return self.token.line if self.token is not None else None

    def _format_message(self) -> str:
        """
        Format the diagnostic.

        Example output:
            Duplicate label, 'X' at line 4 token position 1.
            hint: 'X' was first defined at line 2 token position 1
        """
        if self.hint:
            return f"{self.message}\nhint: {self.hint}"
        return self.message


class MissingArgumentError(AssemblerError):
    """
    Directive or instruction is missing its operand.

    Examples:
        ORG         ; no address
        LDA         ; no label
        HEX         ; no literal
    """
    pass


class InvalidAddressError(AssemblerError):
    """
    Numeric literal that cannot be parsed or is outside its bit range.

    ORG/START take a 12-bit hexadecimal address, DEC/HEX a 16-bit word.
    """
    pass


class DuplicateLabelError(AssemblerError):
    """
    Label defined more than once.

    The first definition wins; the later one is reported and ignored.
    """

    def __init__(self, token: "Token", original: Optional["Token"] = None):
        self.original = original
        hint = None
        if original is not None:
            hint = f"'{token.lexeme}' was first defined as {original}"
        super().__init__(f"Duplicate label, {token}.", token=token, hint=hint)


class UndefinedLabelError(AssemblerError):
    """
    Reference to a label that is never defined.

    Raised during the resolution pass, after every label is known, so
    forward references never trigger it.
    """

    def __init__(
        self,
        label: "Token",
        mnemonic: Optional["Token"] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label.lexeme
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        if mnemonic is None:
            message = f"Unrecognized label name, {label}."
        else:
            message = (
                f"Unrecognized label name, {label} or potentially missing "
                f"argument after {mnemonic}."
            )
        super().__init__(message, token=label, hint=hint)


class AddressOverflowError(AssemblerError):
    """Address counter wrapped from 4095 back to 0."""

    def __init__(self, token: "Token"):
        super().__init__(
            f"Instruction address overflow from 4096 to 0 at token, {token}.",
            token=token,
        )


class DuplicateDirectiveError(AssemblerError):
    """A directive that may appear only once (START) appeared again."""

    def __init__(self, token: "Token"):
        super().__init__(f"Encountered directive, {token}, twice.", token=token)


class TrailingContentError(AssemblerError):
    """Tokens follow the END directive."""

    def __init__(self, token: "Token"):
        super().__init__(
            f"Encountered directive, {token}, before end of code.", token=token
        )


class InvalidInstructionError(AssemblerError):
    """
    Token is neither a label, a directive, nor a known mnemonic.

    When an instruction precedes the token, the message points at it:
    a stray token right after an instruction is usually an extra argument.
    """

    def __init__(self, token: "Token", previous: Optional["Token"] = None):
        self.previous = previous
        if previous is None:
            message = f"Invalid instruction token, {token}."
        else:
            message = (
                f"Invalid instruction token, {token} or potentially unneeded "
                f"argument after {previous}."
            )
        super().__init__(message, token=token)


class AddressConflictError(AssemblerError):
    """
    Merged programs place more than one word at the same address.

    Only produced when several compiled programs are combined.
    """

    def __init__(self, addresses: list[int]):
        self.addresses = addresses
        listed = ", ".join(f"{address:03X}" for address in addresses[:8])
        if len(addresses) > 8:
            listed += ", ..."
        super().__init__(
            "Conflicting memory addresses between files.",
            hint=f"shared addresses: {listed}",
        )


# =============================================================================
# Machine Errors
# =============================================================================

class MachineError(ManoError):
    """Base exception for simulation errors."""
    pass


class RegisterValueError(MachineError, ValueError):
    """
    Value or digit index outside a register's bit width.

    Also a ValueError so generic argument validation catches it.
    """

    def __init__(self, message: str, value: int, size: int):
        self.value = value
        self.size = size
        super().__init__(message)


class MachineHaltedError(MachineError):
    """
    Tick requested while the run flag (S) is clear.

    Only raised in strict mode; otherwise ticking a halted machine is a
    no-op.
    """
    pass


class ProgramLoadError(MachineError):
    """
    A program carrying diagnostics was handed to the machine.

    Attributes:
        errors: The program's diagnostic strings
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        count = len(errors)
        word = "error" if count == 1 else "errors"
        super().__init__(f"cannot load program with {count} {word}")


class InputFormatError(MachineError, ValueError):
    """
    Input device value is neither a single character nor a 0xNN literal.
    """
    pass


# =============================================================================
# Breakpoint Errors
# =============================================================================

class InvalidBreakpointError(ManoError):
    """
    Breakpoint expression syntax error.

    Attributes:
        lookahead: The character that could not start a production
            (empty string when the expression ended early)
        text: The (sub)expression being parsed
    """

    def __init__(self, lookahead: str, text: str = "", reason: str = ""):
        self.lookahead = lookahead
        self.text = text
        if not reason:
            reason = (
                f"invalid lookahead {lookahead!r}" if lookahead
                else "unexpected end of expression"
            )
        message = f"invalid breakpoint syntax: {reason}"
        if text:
            message += f" in {text!r}"
        super().__init__(message)


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects assembler diagnostics for batch reporting.

    The assembler uses this to keep going after a bad token, so users can
    fix every issue from a single run.

    Example:
        collector = ErrorCollector()
        collector.add(DuplicateLabelError(token))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self) -> None:
        self.errors: list[AssemblerError] = []

    def add(self, error: AssemblerError) -> None:
        """Add a diagnostic to the collection."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self) -> str:
        """
        Format all errors for display.

        Returns:
            One line per error followed by the error count
        """
        lines = [str(error) for error in self.errors]

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")

        return "\n".join(lines)
