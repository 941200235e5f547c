#!/usr/bin/env python3
"""
Mano Simulator Demo
===================

This script demonstrates how to use the simulator API to:
1. Assemble a program and inspect its listing
2. Run it to completion
3. Stop on a breakpoint and resume
4. Step one instruction at a time
5. Drive the input and output devices

Usage:
    pip install -e .
    python examples/simulator_demo.py
"""

from pathlib import Path

from mano_sim import Simulator, assemble_file


HERE = Path(__file__).parent


def main():
    # ==========================================================================
    # 1. Assemble
    # ==========================================================================
    program = assemble_file(HERE / "multiply.asm")
    if program.has_errors:
        for error in program.errors:
            print(error)
        return

    print("Listing:")
    print(program.listing())

    # ==========================================================================
    # 2. Run to HLT
    # ==========================================================================
    sim = Simulator()
    sim.load(program)
    event = sim.run()
    product = sim.computer.ram.read(program.symbol_table()["P"])
    print(f"\n{event} after {sim.ticks} ticks, P = {product} (0x{product:04X})")

    # ==========================================================================
    # 3. Breakpoints
    # ==========================================================================
    # Stop each time the add branch is taken, i.e. PC reaches label ONE
    sim.reset()
    sim.add_breakpoint("^ONE")
    hits = 0
    while (event := sim.run()).expression is not None:
        hits += 1
        print(f"  {event}: AC={sim.computer.ac.hex()}")
    print(f"Add branch taken {hits} times; {event}")
    sim.clear_breakpoints()

    # ==========================================================================
    # 4. Single instruction steps
    # ==========================================================================
    sim.reset()
    print("\nFirst five instructions:")
    for _ in range(5):
        pc = sim.computer.pc.value
        text = sim.computer.ram.disassembly_at(pc)
        sim.step_instruction()
        print(f"  {pc:03X}  {text:<8} AC={sim.computer.ac.hex()} E={sim.computer.e.value}")

    # ==========================================================================
    # 5. Devices
    # ==========================================================================
    echo = Simulator()
    echo.load(assemble_file(HERE / "echo.asm"))
    echo.queue_input("mano.")
    echo.auto_output = True
    print(f"\nEcho: {echo.run()}, output {echo.output!r}")


if __name__ == "__main__":
    main()
