"""Browser-facing JSON API for the memory simulator.

This package provides a Flask application that exposes one simulator
over HTTP.  It is an **optional** extra: install with::

    pip install py-memsim[web]

The ``create_app`` factory in ``app.py`` builds the simulator and serves:

- ``GET /api/memory-status``: the current snapshot.
- ``POST /api/allocate``: allocate ``{"size", "algorithm"}``.
- ``POST /api/deallocate``: free ``{"process_id"}``.
- ``POST /api/reset``: start over with a fresh simulator.
- ``POST /api/step``: run random workload steps.
"""
