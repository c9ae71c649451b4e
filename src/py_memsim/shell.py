"""The shell: command interpreter for the memory simulator.

The shell reads a command string, splits it into a command name and
arguments, dispatches to the matching handler, and returns a string.

Design choices:
    - **Returns strings, not prints.**  The shell stays fully testable;
      the REPL decides how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing
      a method and adding one dict entry.
    - **Errors become messages.**  Bad arguments produce ``Usage:`` or
      ``Error:`` text; nothing a user types raises out of ``execute``.
"""

import random
from collections.abc import Callable

from py_memsim.logging import LogLevel
from py_memsim.memory.strategies import Strategy
from py_memsim.simulator import AllocationOutcome, MemorySimulator
from py_memsim.workload import RandomWorkload

_Handler = Callable[[list[str]], str]

# Upper bound for a single ``step`` command.
_MAX_STEPS = 1000


def render_memory_map(sim: MemorySimulator) -> str:
    """Render the block list as one line, e.g. ``|P1:100|free:924|``."""
    cells = []
    for block in sim.partition.blocks:
        label = f"P{block.owner}" if block.owner is not None else str(block.status)
        cells.append(f"{label}:{block.size}")
    return "|" + "|".join(cells) + "|"


def _parse_owner(text: str) -> int | None:
    """Parse ``P3``, ``p3`` or ``3`` as an owner id."""
    try:
        return int(text.removeprefix("P").removeprefix("p"))
    except ValueError:
        return None


class Shell:
    """Command interpreter bound to one simulator at a time."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(
        self,
        *,
        simulator: MemorySimulator,
        rng: random.Random | None = None,
    ) -> None:
        """Create a shell driving *simulator*.

        Args:
            simulator: The simulator to operate on.
            rng: Randomness for the ``step`` command (seed it for
                reproducible runs).

        """
        self._sim = simulator
        self._rng = rng or random.Random()
        self._workload = RandomWorkload(self._sim, rng=self._rng)

        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "alloc": self._cmd_alloc,
            "free": self._cmd_free,
            "status": self._cmd_status,
            "blocks": self._cmd_blocks,
            "map": self._cmd_map,
            "queue": self._cmd_queue,
            "frames": self._cmd_frames,
            "strategies": self._cmd_strategies,
            "log": self._cmd_log,
            "history": self._cmd_history,
            "step": self._cmd_step,
            "reset": self._cmd_reset,
            "exit": self._cmd_exit,
        }

    @property
    def simulator(self) -> MemorySimulator:
        """Return the simulator currently driven by the shell."""
        return self._sim

    @property
    def command_names(self) -> list[str]:
        """Return the sorted names of all commands."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. "alloc 100 best-fit").

        Returns:
            The command output, or an error message.

        """
        parts = command.split()
        if not parts:
            return ""
        name, args = parts[0].lower(), parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        return handler(args)

    # -- Commands -----------------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.command_names)

    def _cmd_alloc(self, args: list[str]) -> str:
        """Allocate memory: ``alloc <size> [strategy]``."""
        if not args:
            return "Usage: alloc <size> [strategy]"
        try:
            size = int(args[0])
        except ValueError:
            return f"Error: size must be an integer, got {args[0]!r}"
        strategy = args[1] if len(args) > 1 else Strategy.FIRST_FIT
        owner = self._sim.next_owner
        outcome = self._sim.allocate(size, strategy)
        match outcome:
            case AllocationOutcome.ALLOCATED:
                return f"P{owner} allocated {size} ({Strategy.parse(strategy)})"
            case AllocationOutcome.QUEUED:
                return f"P{owner} queued: no room for {size}"
            case _:
                return f"Error: invalid size {size} (must be 1..{self._sim.capacity})"

    def _cmd_free(self, args: list[str]) -> str:
        """Deallocate an owner: ``free <owner>``."""
        if not args:
            return "Usage: free <owner>"
        owner = _parse_owner(args[0])
        if owner is None:
            return f"Error: owner must be an integer, got {args[0]!r}"
        if not self._sim.deallocate(owner):
            return f"Error: P{owner} not found"
        return f"P{owner} freed"

    def _cmd_status(self, _args: list[str]) -> str:
        """Show the memory statistics."""
        snap = self._sim.snapshot()
        lines = [
            "=== Memory Status ===",
            f"Capacity:      {snap.capacity}",
            f"Used:          {snap.used}",
            f"Free:          {snap.free}",
            f"Fragmentation: {snap.fragmentation_percent:.2f}%",
            f"Layout:        {snap.layout}",
            f"Blocks:        {len(snap.blocks)}",
            f"Queued:        {len(snap.pending)}",
            f"Next owner:    P{snap.next_owner}",
        ]
        return "\n".join(lines)

    def _cmd_blocks(self, _args: list[str]) -> str:
        """List blocks in address order."""
        lines = ["START  SIZE   STATUS      OWNER"]
        for block in self._sim.partition.blocks:
            owner = f"P{block.owner}" if block.owner is not None else "-"
            lines.append(f"{block.start:<6} {block.size:<6} {block.status!s:<11} {owner}")
        return "\n".join(lines)

    def _cmd_map(self, _args: list[str]) -> str:
        """Show the block list on a single line."""
        return render_memory_map(self._sim)

    def _cmd_queue(self, _args: list[str]) -> str:
        """List parked requests, oldest first."""
        pending = self._sim.queue.pending()
        if not pending:
            return "Queue is empty."
        return "\n".join(f"P{p.owner} ({p.size})" for p in pending)

    def _cmd_frames(self, args: list[str]) -> str:
        """Show frame usage and page tables: ``frames [owner]``."""
        frames = self._sim.frames
        if args:
            owner = _parse_owner(args[0])
            if owner is None:
                return f"Error: owner must be an integer, got {args[0]!r}"
            held = frames.pages_for(owner)
            if not held:
                return f"P{owner} holds no frames"
            return f"P{owner}: {len(held)} frames {held}"
        lines = [
            f"Frames: {frames.free_frames}/{frames.total_frames} free (size {frames.frame_size})",
        ]
        for owner, held in sorted(frames.page_tables().items()):
            lines.append(f"P{owner}: {held}")
        return "\n".join(lines)

    def _cmd_strategies(self, _args: list[str]) -> str:
        """List strategy identifiers."""
        return "\n".join(str(s) for s in Strategy)

    def _cmd_log(self, args: list[str]) -> str:
        """Show the event log: ``log [debug|info|warning|error]``."""
        min_level: LogLevel | None = None
        if args:
            try:
                min_level = LogLevel[args[0].upper()]
            except KeyError:
                return f"Error: unknown log level {args[0]!r}"
        entries = self._sim.logger.filter(min_level=min_level)
        return "\n".join(str(e) for e in entries)

    def _cmd_history(self, args: list[str]) -> str:
        """Show the events of one owner: ``history <owner>``."""
        if not args:
            return "Usage: history <owner>"
        owner = _parse_owner(args[0])
        if owner is None:
            return f"Error: owner must be an integer, got {args[0]!r}"
        entries = self._sim.logger.history(owner)
        if not entries:
            return f"No events for P{owner}"
        return "\n".join(str(e) for e in entries)

    def _cmd_step(self, args: list[str]) -> str:
        """Run random workload steps: ``step [n]``."""
        count = 1
        if args:
            try:
                count = int(args[0])
            except ValueError:
                return f"Error: step count must be an integer, got {args[0]!r}"
        if not 1 <= count <= _MAX_STEPS:
            return f"Error: step count must be in 1..{_MAX_STEPS}"
        return "\n".join(str(s) for s in self._workload.run(count))

    def _cmd_reset(self, _args: list[str]) -> str:
        """Start over with a fresh simulator of the same dimensions."""
        self._sim = MemorySimulator(self._sim.config)
        self._workload = RandomWorkload(self._sim, rng=self._rng)
        return "Simulator reset."

    def _cmd_exit(self, _args: list[str]) -> str:
        """Leave the shell."""
        return self.EXIT_SENTINEL
