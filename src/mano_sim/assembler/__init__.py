"""
Mano Assembler
==============

Two-pass assembler for the Mano Basic Computer.

Example:
    >>> from mano_sim.assembler import assemble
    >>> program = assemble("ORG 10\\nLDA X I\\nHLT\\nX, HEX 20\\nEND")
    >>> program.errors
    []

Copyright (c) 2025 mano-sim contributors
"""

from mano_sim.assembler.assembler import (
    Assembler,
    assemble,
    assemble_all,
    assemble_file,
)
from mano_sim.assembler.lexer import Token, tokenize
from mano_sim.assembler.opcodes import disassemble
from mano_sim.assembler.program import Instruction, Label, Program

__all__ = [
    "Assembler",
    "assemble",
    "assemble_all",
    "assemble_file",
    "Token",
    "tokenize",
    "disassemble",
    "Instruction",
    "Label",
    "Program",
]
