"""Flask application factory for the memory simulator web API.

Every request runs against a single simulator held by the app.  The
partition, frame table and queue must never be seen half-updated, so
each request handles the simulator inside one lock.
"""

from __future__ import annotations

import os
import random
import threading

from flask import Flask, Response, jsonify, request

from py_memsim.config import SimulatorConfig
from py_memsim.memory.strategies import Strategy
from py_memsim.simulator import AllocationOutcome, MemorySimulator
from py_memsim.workload import RandomWorkload

_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404
_MAX_STEPS = 100


def _int_field(data: dict[str, object], key: str) -> int | None:
    """Return ``data[key]`` as an int, or None if missing or not integral."""
    value = data.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return None


def create_app(config: SimulatorConfig | None = None, *, seed: int | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Simulator dimensions; read from ``MEMSIM_*`` environment
            variables when omitted.
        seed: Seed for the ``/api/step`` workload.

    Returns:
        A configured Flask application ready to serve.

    """
    sim_config = config or SimulatorConfig.from_env(os.environ)
    rng = random.Random(seed)
    lock = threading.Lock()
    state: dict[str, MemorySimulator] = {"sim": MemorySimulator(sim_config)}

    app = Flask(__name__)

    @app.route("/api/memory-status")
    def memory_status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the current snapshot."""
        with lock:
            return jsonify(state["sim"].snapshot().to_dict())

    @app.route("/api/allocate", methods=["POST"])
    def allocate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Allocate memory.

        Expects JSON body: ``{"size": 100, "algorithm": "best-fit"}``;
        ``algorithm`` defaults to first-fit.

        Returns:
            JSON with the ``status`` outcome and the ``memory`` snapshot.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), _HTTP_BAD_REQUEST
        size = _int_field(data, "size")
        if size is None:
            return jsonify({"error": "Missing or non-integer 'size' field"}), _HTTP_BAD_REQUEST
        algorithm = str(data.get("algorithm") or Strategy.FIRST_FIT)

        with lock:
            sim = state["sim"]
            owner = sim.next_owner
            outcome = sim.allocate(size, algorithm)
            snapshot = sim.snapshot().to_dict()

        body: dict[str, object] = {"status": str(outcome), "memory": snapshot}
        if outcome is AllocationOutcome.REJECTED:
            body["error"] = f"Size must be in 1..{sim_config.capacity}"
            return jsonify(body), _HTTP_BAD_REQUEST
        body["process_id"] = owner
        return jsonify(body)

    @app.route("/api/deallocate", methods=["POST"])
    def deallocate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Free every block or frame held by a process.

        Expects JSON body: ``{"process_id": 1}``.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), _HTTP_BAD_REQUEST
        owner = _int_field(data, "process_id")
        if owner is None:
            return (
                jsonify({"error": "Missing or non-integer 'process_id' field"}),
                _HTTP_BAD_REQUEST,
            )

        with lock:
            sim = state["sim"]
            found = sim.deallocate(owner)
            snapshot = sim.snapshot().to_dict()

        if not found:
            body = {"status": "not_found", "error": f"P{owner} not found", "memory": snapshot}
            return jsonify(body), _HTTP_NOT_FOUND
        return jsonify({"status": "freed", "memory": snapshot})

    @app.route("/api/reset", methods=["POST"])
    def reset() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Replace the simulator with a fresh one."""
        with lock:
            state["sim"] = MemorySimulator(sim_config)
            return jsonify({"status": "reset", "memory": state["sim"].snapshot().to_dict()})

    @app.route("/api/step", methods=["POST"])
    def step() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run random workload steps.

        Accepts an optional JSON body ``{"steps": n}`` (default 1).

        """
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), _HTTP_BAD_REQUEST
        count = _int_field(data, "steps") if "steps" in data else 1
        if count is None or not 1 <= count <= _MAX_STEPS:
            return jsonify({"error": f"'steps' must be in 1..{_MAX_STEPS}"}), _HTTP_BAD_REQUEST

        with lock:
            sim = state["sim"]
            steps = RandomWorkload(sim, rng=rng).run(count)
            snapshot = sim.snapshot().to_dict()

        return jsonify({"steps": [str(s) for s in steps], "memory": snapshot})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``py-memsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
