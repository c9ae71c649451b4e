"""Interactive REPL (Read-Eval-Print Loop) for the memory simulator.

The REPL builds a simulator from the environment, wraps it in a shell,
and loops:

    1. **Read**: display a prompt and read user input.
    2. **Eval**: pass the command to ``shell.execute()``.
    3. **Print**: display the result.
    4. **Loop**: repeat until the shell returns the exit sentinel.

The helpers (``format_banner``, ``build_prompt``) are pure and
testable.  ``run()`` is the I/O entrypoint.
"""

import os
import readline
from collections.abc import Callable

from py_memsim.config import SimulatorConfig
from py_memsim.shell import Shell
from py_memsim.simulator import MemorySimulator

_BANNER_WIDTH = 38


def format_banner(sim: MemorySimulator) -> str:
    """Format the start-up banner, followed by the simulator's log.

    Args:
        sim: The freshly built simulator.

    Returns:
        A string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = (
        f"\n  {border}\n            PyMemSim v0.1.0\n     A memory allocation simulator\n  {border}\n\n"
    )
    body = "\n".join(f"  {msg}" for msg in sim.dmesg())
    footer = "\nType 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def build_prompt(sim: MemorySimulator) -> str:
    """Build a prompt showing free memory, e.g. ``memsim [1024 free] $ ``."""
    return f"memsim [{sim.stats.free} free] $ "


def _complete(shell: Shell) -> Callable[[str, int], str | None]:
    """Return a readline completer over the shell's command names."""

    def complete(text: str, state: int) -> str | None:
        matches = [name for name in shell.command_names if name.startswith(text)]
        return matches[state] if state < len(matches) else None

    return complete


def run() -> None:
    """Build a simulator and run the interactive REPL.

    This is the ``py-memsim`` console entry point.  Ctrl+D and Ctrl+C
    both leave the loop gracefully.
    """
    sim = MemorySimulator(SimulatorConfig.from_env(os.environ))
    shell = Shell(simulator=sim)

    readline.set_completer(_complete(shell))
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(sim))  # noqa: T201

    try:
        while True:
            try:
                command = input(build_prompt(shell.simulator))
            except EOFError:
                # Ctrl+D
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201

    finally:
        print("Bye.")  # noqa: T201
