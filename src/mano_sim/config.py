"""
Simulator Configuration
=======================

Run-time settings for the simulator and the ``manosim`` command.
Configuration can come from:

- Default values (defined here)
- Environment variables
- Command-line options (which override both)

Ticks are clock T-states.  A memory-reference instruction takes five to
seven ticks, so the default budget of 1,000,000 ticks is roughly 150,000
instructions, which is plenty for any program that is meant to halt.
"""

import logging
import os
from dataclasses import dataclass


logger = logging.getLogger(__name__)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass
class SimulatorConfig:
    """
    Configuration for a simulation run.

    Attributes:
        max_ticks: Tick budget for ``Simulator.run`` (default: 1,000,000);
            None means unlimited
        strict: Raise MachineHaltedError when ticking a halted machine
            instead of ignoring the tick (default: False)
        trace: Log every applied microoperation (default: False)
    """
    max_ticks: int | None = 1_000_000
    strict: bool = False
    trace: bool = False

    @classmethod
    def from_env(cls) -> "SimulatorConfig":
        """
        Create SimulatorConfig from environment variables.

        Environment variables (all optional):
            MANO_MAX_TICKS: Tick budget (integer, 0 for unlimited)
            MANO_STRICT: Strict halting (1/0, true/false, yes/no, on/off)
            MANO_TRACE: Trace microoperations (same values)

        Invalid values are logged and ignored.

        Returns:
            SimulatorConfig with values from environment variables
        """
        config = cls()

        if max_ticks := os.environ.get("MANO_MAX_TICKS"):
            try:
                ticks = int(max_ticks)
            except ValueError:
                logger.warning("ignoring MANO_MAX_TICKS=%r: not an integer", max_ticks)
            else:
                config.max_ticks = ticks if ticks > 0 else None

        if (strict := _flag("MANO_STRICT")) is not None:
            config.strict = strict

        if (trace := _flag("MANO_TRACE")) is not None:
            config.trace = trace

        return config


def _flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if not value:
        return None
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning("ignoring %s=%r: expected a boolean", name, value)
    return None
