"""One-shot command-line front end.

Actions are applied to one fresh simulator in the order they appear on
the command line, and the JSON snapshot is printed after each one::

    memsim --allocate 100 --algorithm best-fit --allocate 50 --deallocate 1

``--algorithm`` applies to the ``--allocate`` right before it; an
allocation without one uses first-fit.  Dimensions come from the
``MEMSIM_*`` environment variables unless overridden by flags.
"""

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import Any

from py_memsim.config import SimulatorConfig
from py_memsim.memory.strategies import Strategy
from py_memsim.simulator import MemorySimulator


class _OrderedAction(argparse.Action):
    """Append ``(flag, value)`` to a shared list, keeping command-line order."""

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: object,
        option_string: str | None = None,
    ) -> None:
        actions: list[list[Any]] = list(getattr(namespace, "actions", None) or [])
        if self.dest == "algorithm":
            if not actions or actions[-1][0] != "allocate":
                parser.error("--algorithm must follow --allocate")
            actions[-1][2] = values
        else:
            actions.append([self.dest, values, Strategy.FIRST_FIT])
        namespace.actions = actions


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="memsim",
        description="Simulate textbook memory allocation strategies.",
    )
    parser.set_defaults(actions=[])
    parser.add_argument("--capacity", type=int, help="total units in the address space")
    parser.add_argument("--frame-size", type=int, help="units per paging frame")
    parser.add_argument("--partition-size", type=int, help="units per fixed partition")
    parser.add_argument(
        "--status", action=_OrderedAction, nargs=0, help="print the current state"
    )
    parser.add_argument(
        "--allocate", action=_OrderedAction, type=int, metavar="SIZE", help="allocate SIZE units"
    )
    parser.add_argument(
        "--algorithm",
        action=_OrderedAction,
        metavar="NAME",
        help="strategy for the preceding --allocate: " + ", ".join(Strategy),
    )
    parser.add_argument(
        "--deallocate", action=_OrderedAction, type=int, metavar="OWNER", help="free an owner"
    )
    return parser


def _config(args: argparse.Namespace) -> SimulatorConfig:
    base = SimulatorConfig.from_env(os.environ)
    return SimulatorConfig(
        capacity=base.capacity if args.capacity is None else args.capacity,
        frame_size=base.frame_size if args.frame_size is None else args.frame_size,
        partition_size=(
            base.partition_size if args.partition_size is None else args.partition_size
        ),
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the actions given on the command line.

    This is the ``memsim`` console entry point.

    Returns:
        The process exit status.

    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        sim = MemorySimulator(_config(args))
    except ValueError as e:
        parser.error(str(e))

    for action, value, algorithm in args.actions:
        match action:
            case "allocate":
                sim.allocate(value, str(algorithm))
            case "deallocate":
                sim.deallocate(value)
        sys.stdout.write(json.dumps(sim.snapshot().to_dict(), indent=2) + "\n")
    return 0
