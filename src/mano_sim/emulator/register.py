"""
Fixed-Width Registers
=====================

A Register holds an unsigned integer of a fixed bit width.  Every
operation keeps the value inside [0, 2^width - 1]: arithmetic wraps,
while explicit loads of an out-of-range value raise RegisterValueError.

The arithmetic itself lives in pure functions (``add_with_carry``,
``rotate_left`` and friends) so that the control-unit catalog can compute
register transfers from a snapshot without touching live registers.  The
Register methods are thin wrappers over the same functions.

Widths used by the machine:

| Register        | Width |
|-----------------|-------|
| PC, AR          | 12    |
| IR, DR, AC, TR  | 16    |
| INPR, OUTR      | 8     |
| I, R, IEN, E,   | 1     |
| FGI, FGO, S     |       |
"""

from typing import Optional

from mano_sim.errors import RegisterValueError


MIN_WIDTH = 1
MAX_WIDTH = 30


# =============================================================================
# Pure Arithmetic Helpers
# =============================================================================

def max_value(width: int) -> int:
    """Largest value representable in ``width`` bits."""
    validate_width(width)
    return (1 << width) - 1


def validate_width(width: int) -> None:
    if not MIN_WIDTH <= width <= MAX_WIDTH:
        raise RegisterValueError(
            f"register width {width} outside [{MIN_WIDTH}, {MAX_WIDTH}]",
            width, width,
        )


def validate_value(value: int, width: int) -> None:
    """Raise RegisterValueError unless 0 <= value <= 2^width - 1."""
    if not 0 <= value <= max_value(width):
        raise RegisterValueError(
            f"value {value} does not fit in {width} bits", value, width,
        )


def validate_digit(digit: int, width: int) -> None:
    """Raise RegisterValueError unless 0 <= digit < width."""
    if not 0 <= digit < width:
        raise RegisterValueError(
            f"bit {digit} outside a {width}-bit register", digit, width,
        )


def bit(value: int, digit: int, width: int = 16) -> int:
    """Return bit ``digit`` of ``value`` as 0 or 1."""
    validate_digit(digit, width)
    return (value >> digit) & 1


def bits(value: int, low: int, high: int, width: int = 16) -> int:
    """Return bits ``low`` through ``high`` (inclusive) as an integer."""
    validate_digit(low, width)
    validate_digit(high, width)
    if high < low:
        return 0
    return (value >> low) & ((1 << (high - low + 1)) - 1)


def complement(value: int, width: int) -> int:
    """Bitwise NOT within ``width`` bits."""
    return ~value & max_value(width)


def add_with_carry(value: int, addend: int, width: int) -> tuple[int, int]:
    """
    Add two values in ``width`` bits.

    Returns:
        (sum modulo 2^width, carry-out bit)
    """
    total = value + addend
    return total & max_value(width), int(total > max_value(width))


def rotate_left(value: int, carry: int, width: int) -> tuple[int, int]:
    """
    Shift left through a carry bit.

    The carry enters at bit 0 and the old top bit becomes the new carry.

    Returns:
        (new value, new carry)
    """
    top = (value >> (width - 1)) & 1
    return ((value << 1) | carry) & max_value(width), top


def rotate_right(value: int, carry: int, width: int) -> tuple[int, int]:
    """
    Shift right through a carry bit.

    The carry enters at the top bit and the old bit 0 becomes the new carry.

    Returns:
        (new value, new carry)
    """
    return (value >> 1) | (carry << (width - 1)), value & 1


# =============================================================================
# Register
# =============================================================================

class Register:
    """
    A bounded unsigned register.

    Attributes:
        width: Number of bits (default 1, a flag)
        name: Display name (optional)

    Example:
        >>> ac = Register(16, "AC")
        >>> ac.load(0xFFFF)
        >>> e = Register()
        >>> ac.add(1, carry=e)
        >>> (ac.value, e.value)
        (0, 1)
    """

    def __init__(self, width: int = 1, name: str = ""):
        validate_width(width)
        self.width = width
        self.name = name
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    @value.setter
    def value(self, value: int) -> None:
        self.load(value)

    @property
    def max(self) -> int:
        """Largest value this register can hold."""
        return max_value(self.width)

    def load(self, value: int) -> None:
        """Replace the value; raises RegisterValueError when out of range."""
        validate_value(value, self.width)
        self._value = value

    def clear(self) -> None:
        self._value = 0

    def increment(self) -> None:
        """Add one, wrapping to zero past the maximum."""
        self.add(1)

    def add(self, value: int, carry: Optional["Register"] = None) -> None:
        """
        Add ``value`` modulo 2^width.

        Args:
            value: Addend (must itself fit in this register)
            carry: If given, receives the carry-out bit
        """
        validate_value(value, self.width)
        self._value, out = add_with_carry(self._value, value, self.width)
        if carry is not None:
            carry.load(out)

    def and_(self, value: int) -> None:
        validate_value(value, self.width)
        self._value &= value

    def complement(self) -> None:
        self._value = complement(self._value, self.width)

    def shift_left(self, carry: "Register") -> None:
        """Shift left through ``carry`` (carry in at bit 0)."""
        self._value, out = rotate_left(self._value, carry.value, self.width)
        carry.load(out)

    def shift_right(self, carry: "Register") -> None:
        """Shift right through ``carry`` (carry in at the top bit)."""
        self._value, out = rotate_right(self._value, carry.value, self.width)
        carry.load(out)

    def bit(self, digit: int) -> int:
        return bit(self._value, digit, self.width)

    def bits(self, low: int, high: int) -> int:
        """Bits ``low`` through ``high`` inclusive."""
        return bits(self._value, low, high, self.width)

    def hex(self) -> str:
        """Value as upper-case hex, one digit per started nibble."""
        digits = max(1, (self.width + 3) // 4)
        return f"{self._value:0{digits}X}"

    def char(self) -> str:
        """Value as a character, or empty string for zero."""
        return chr(self._value) if self._value else ""

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        label = f"{self.name}=" if self.name else ""
        return f"Register({label}{self.hex()}, width={self.width})"

    def __str__(self) -> str:
        return self.hex()
