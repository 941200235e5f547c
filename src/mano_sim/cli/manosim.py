"""
manosim - Mano Simulator Command-Line Interface
===============================================

Assembles one or more sources, loads the result and runs it until it
halts, a breakpoint holds, or the tick budget runs out.  The final
register state and any characters written to the output device are
printed.

Usage Examples
--------------
Run a program:
    $ manosim program.asm

Stop at an address or on a mnemonic:
    $ manosim program.asm -b @104
    $ manosim program.asm -b "&(%sta)(!@100:110)"

Feed the input device and keep the output device ready:
    $ manosim echo.asm --input "hello" --output-ready

Trace every microoperation and save the final memory:
    $ manosim program.asm --trace --dump final.mem

Settings can also come from the environment (MANO_MAX_TICKS, MANO_STRICT,
MANO_TRACE); command-line options take precedence.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from mano_sim import __version__
from mano_sim.assembler import Assembler
from mano_sim.cli.errors import ExitCode, handle_cli_exception, setup_logging
from mano_sim.config import SimulatorConfig
from mano_sim.emulator import BreakReason, Computer, Simulator


def format_registers(computer: Computer) -> str:
    """Two-line register summary."""
    wide = "  ".join(
        f"{name.upper()}={register.hex()}"
        for name, register in computer.registers.items()
        if register.width > 1
    )
    flags = "  ".join(
        f"{name.upper()}={register.value}"
        for name, register in computer.registers.items()
        if register.width == 1
    )
    return f"{wide}  SC={computer.sc}\n{flags}"


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
    "-b", "--break", "breakpoints",
    multiple=True,
    metavar="EXPR",
    help="Breakpoint expression (can be repeated), e.g. @10, %hlt, ^LOOP",
)
@click.option(
    "--max-ticks",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many clock ticks (default: 1,000,000)",
)
@click.option(
    "--input", "input_text",
    default=None,
    help="Characters fed to the input device, one per FGI clear",
)
@click.option(
    "--output-ready",
    is_flag=True,
    help="Keep the output device ready (FGO set) while running",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat ticking a halted machine as an error",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Print every applied microoperation",
)
@click.option(
    "--dump",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the final memory dump to this file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="manosim")
def main(
    sources: tuple[Path, ...],
    breakpoints: tuple[str, ...],
    max_ticks: Optional[int],
    input_text: Optional[str],
    output_ready: bool,
    strict: bool,
    trace: bool,
    dump: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble and run Mano Basic Computer programs.

    SOURCES are one or more assembly files, merged as by manoasm.

    \b
    Exit status:
        0  halted or stopped at a breakpoint
        1  assembly errors, or the tick limit was reached
        2  invalid arguments or breakpoint syntax
    """
    setup_logging(verbose)

    config = SimulatorConfig.from_env()
    if max_ticks is not None:
        config.max_ticks = max_ticks
    if strict:
        config.strict = True
    if trace:
        config.trace = True

    try:
        asm = Assembler(verbose=verbose)
        if len(sources) == 1:
            program = asm.assemble_file(sources[0])
        else:
            program = asm.assemble_all(sources)

        sim = Simulator(config)
        sim.load(program)
        for expression in breakpoints:
            sim.add_breakpoint(expression)
        if input_text:
            sim.queue_input(input_text)
        sim.auto_output = output_ready

        event = sim.run()

        click.echo(str(event))
        if sim.output:
            click.echo(f"Output: {sim.output}")
        click.echo(format_registers(sim.computer))
        if verbose:
            click.echo(f"Ticks: {sim.ticks}")

        if dump:
            dump.write_text(sim.computer.ram.dump() + "\n", encoding="utf-8")
            if verbose:
                click.echo(f"Wrote memory dump to {dump}")

        if event.reason is BreakReason.MAX_TICKS:
            sys.exit(ExitCode.BUILD_ERROR)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Simulation")


if __name__ == "__main__":
    main()
