"""
Mano Sim Command-Line Interface
===============================

This package provides command-line tools for the Mano toolchain:

- **manoasm**: two-pass assembler
- **manosim**: simulator with breakpoints and tracing

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["manoasm", "manosim"]
