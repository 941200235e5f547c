"""
Mano Assembly Language Lexer
============================

This module splits assembly source text into tokens for the assembler.

The language is deliberately tiny, so tokenizing is line based:

- Everything from the first ``/`` on a line is a comment.
- A comma is always a token of its own (``X, HEX 5`` and ``X,HEX 5``
  tokenize the same way).
- Everything else is split on whitespace.

Tokens carry no type; the assembler decides what a token means from its
position and its neighbours.

Example
-------
>>> from mano_sim.assembler.lexer import tokenize
>>> for token in tokenize("LOOP, ISZ CNT  / count up"):
...     print(token)
'LOOP' at line 1 token position 1
',' at line 1 token position 2
'ISZ' at line 1 token position 3
'CNT' at line 1 token position 4
"""

import logging
from dataclasses import dataclass


logger = logging.getLogger(__name__)

COMMENT = "/"
COMMA = ","


# =============================================================================
# Token
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexeme and where it came from.

    Attributes:
        line: Line number (1-indexed)
        column: Position of the token within its line (1-indexed)
        lexeme: The token text exactly as written
    """
    line: int
    column: int
    lexeme: str

    @property
    def upper(self) -> str:
        """Lexeme in upper case, for case-insensitive keyword matching."""
        return self.lexeme.upper()

    def __str__(self) -> str:
        return f"'{self.lexeme}' at line {self.line} token position {self.column}"


# =============================================================================
# Tokenizer
# =============================================================================

def tokenize_line(text: str, line: int) -> list[Token]:
    """
    Tokenize a single source line.

    Args:
        text: Line text, without its newline
        line: Line number to stamp on the tokens

    Returns:
        Tokens in source order; empty for blank or comment-only lines
    """
    code, _, _ = text.partition(COMMENT)
    words = code.replace(COMMA, f" {COMMA} ").split()
    return [Token(line, column, word) for column, word in enumerate(words, start=1)]


def tokenize(source: str) -> list[Token]:
    """
    Tokenize a complete source text.

    Args:
        source: Assembly source (any newline convention)

    Returns:
        Flat list of tokens, in source order
    """
    tokens: list[Token] = []
    for number, text in enumerate(source.splitlines(), start=1):
        tokens.extend(tokenize_line(text, number))
    logger.debug("tokenized %d tokens", len(tokens))
    return tokens
