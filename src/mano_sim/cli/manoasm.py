"""
manoasm - Mano Assembler Command-Line Interface
===============================================

This module implements the command-line interface for the Mano assembler.

Usage Examples
--------------
Basic assembly (writes program.mem, a memory dump):
    $ manoasm program.asm

With output file:
    $ manoasm program.asm -o out.mem

Generate all output files:
    $ manoasm program.asm -o program.mem -l program.lst -s program.sym

Several sources merged into one image (the first file's start wins):
    $ manoasm main.asm lib.asm -o program.mem

Verbose mode:
    $ manoasm -v program.asm
"""

import sys
from pathlib import Path
from typing import Optional

import click

from mano_sim import __version__
from mano_sim.assembler import Assembler, Program
from mano_sim.cli.errors import ExitCode, handle_cli_exception, setup_logging
from mano_sim.errors import ErrorCollector


def format_symbols(program: Program) -> str:
    """One ``NAME ADDRESS`` line per label, in address order."""
    labels = sorted(program.labels, key=lambda label: (label.address, label.name))
    return "\n".join(f"{label.name:<16} {label.address:03X}" for label in labels)


def report_diagnostics(program: Program) -> str:
    collector = ErrorCollector()
    for diagnostic in program.diagnostics:
        collector.add(diagnostic)
    return collector.report()


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output memory dump (default: first source with .mem suffix)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="manoasm")
def main(
    sources: tuple[Path, ...],
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble Mano Basic Computer source code.

    SOURCES are one or more assembly files.  Several files are merged into
    a single memory image; they must not place words at the same address.

    The output is a memory dump: all 4096 words as 4-digit hex, separated
    by spaces.

    \b
    Examples:
        manoasm prog.asm              # Outputs prog.mem
        manoasm prog.asm -o out.mem   # Specify output file
        manoasm prog.asm -l prog.lst  # Also write a listing
    """
    setup_logging(verbose)
    output_file = output if output is not None else sources[0].with_suffix(".mem")

    try:
        asm = Assembler(verbose=verbose)
        if len(sources) == 1:
            program = asm.assemble_file(sources[0])
        else:
            program = asm.assemble_all(sources)

        if program.has_errors:
            click.echo(report_diagnostics(program), err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        output_file.write_text(program.memory_dump() + "\n", encoding="utf-8")
        if verbose:
            click.echo(f"Wrote memory dump to {output_file}")

        if listing:
            listing.write_text(program.listing() + "\n", encoding="utf-8")
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            symbols.write_text(format_symbols(program) + "\n", encoding="utf-8")
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if verbose:
            click.echo(
                f"Assembly complete: {len(program.instructions)} words, "
                f"start {program.start:03X}"
            )
            click.echo(f"Defined {len(program.labels)} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
