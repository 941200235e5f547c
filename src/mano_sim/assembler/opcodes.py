"""
Mano Basic Computer Instruction Set
===================================

Every instruction is a single 16-bit word.  Bits 12-14 select the
operation and bit 15 is the addressing-mode flag:

    15  14 13 12  11 ............ 0
    I   opcode    address / operation bits

Instruction Classes
-------------------
1. **Memory-reference** (opcode 0-6): bits 0-11 hold an address.  Bit 15
   set means the address is indirect (the operand is the address stored
   at that location).

2. **Register-reference** (opcode 7, I = 0): each of bits 0-11 selects one
   operation on AC, E or the run flag.  Word 0x7xxx.

3. **Input/output** (opcode 7, I = 1): each of bits 6-11 selects one
   device or interrupt operation.  Word 0xFxxx.

Directives
----------
ORG, START, END, DEC and HEX are assembler directives; they emit no
opcode of their own (DEC/HEX emit a raw data word).
"""

from typing import Optional


# =============================================================================
# Encoding Constants
# =============================================================================

WORD_MASK = 0xFFFF          # 16-bit data word
ADDRESS_MASK = 0x0FFF       # 12-bit address field
MEMORY_SIZE = 0x1000        # 4096 addressable words
INDIRECT_BIT = 0x8000       # bit 15, the I flag
OPCODE_SHIFT = 12

INDIRECT_SUFFIX = "I"


# =============================================================================
# Opcode Tables
# =============================================================================

# Memory-reference instructions: one address operand, optional I suffix
MEMORY_REFERENCE: dict[str, int] = {
    "AND": 0x0000,
    "ADD": 0x1000,
    "LDA": 0x2000,
    "STA": 0x3000,
    "BUN": 0x4000,
    "BSA": 0x5000,
    "ISZ": 0x6000,
}

# Register-reference instructions: fixed word, no operand
REGISTER_REFERENCE: dict[str, int] = {
    "CLA": 0x7800,
    "CLE": 0x7400,
    "CMA": 0x7200,
    "CME": 0x7100,
    "CIR": 0x7080,
    "CIL": 0x7040,
    "INC": 0x7020,
    "SPA": 0x7010,
    "SNA": 0x7008,
    "SZA": 0x7004,
    "SZE": 0x7002,
    "HLT": 0x7001,
}

# Input/output instructions: fixed word, no operand
INPUT_OUTPUT: dict[str, int] = {
    "INP": 0xF800,
    "OUT": 0xF400,
    "SKI": 0xF200,
    "SKO": 0xF100,
    "ION": 0xF080,
    "IOF": 0xF040,
}

# Instructions without operands, keyed by mnemonic
IMPLICIT: dict[str, int] = {**REGISTER_REFERENCE, **INPUT_OUTPUT}

MNEMONICS: frozenset[str] = frozenset(MEMORY_REFERENCE) | frozenset(IMPLICIT)

_MEMORY_BY_OPCODE: dict[int, str] = {
    code >> OPCODE_SHIFT: name for name, code in MEMORY_REFERENCE.items()
}
_IMPLICIT_BY_CODE: dict[int, str] = {code: name for name, code in IMPLICIT.items()}


# =============================================================================
# Lookup Functions
# =============================================================================

def memory_reference_code(mnemonic: str) -> Optional[int]:
    """
    Base code of a memory-reference mnemonic (case-insensitive).

    Returns:
        The code with a zero address field, or None if not memory-reference
    """
    return MEMORY_REFERENCE.get(mnemonic.upper())


def implicit_code(mnemonic: str) -> Optional[int]:
    """
    Code of a register-reference or I/O mnemonic (case-insensitive).

    Returns:
        The complete instruction word, or None if not an implicit instruction
    """
    return IMPLICIT.get(mnemonic.upper())


def is_mnemonic(text: str) -> bool:
    """Check if text names an instruction of any class."""
    return text.upper() in MNEMONICS


def opcode_of(code: int) -> int:
    """Return bits 12-14 of an instruction word."""
    return (code >> OPCODE_SHIFT) & 0x7


def disassemble(code: int) -> str:
    """
    Render a machine word as assembly text.

    Words that do not decode to a single instruction (for example a
    register-reference word with several operation bits set) come back as
    a HEX data directive.

    Example:
        >>> disassemble(0xA10F)
        'LDA 10F I'
        >>> disassemble(0x7001)
        'HLT'
    """
    code &= WORD_MASK
    opcode = opcode_of(code)
    if opcode != 7:
        text = f"{_MEMORY_BY_OPCODE[opcode]} {code & ADDRESS_MASK:03X}"
        if code & INDIRECT_BIT:
            text += f" {INDIRECT_SUFFIX}"
        return text

    name = _IMPLICIT_BY_CODE.get(code)
    if name is not None:
        return name
    return f"HEX {code:04X}"
