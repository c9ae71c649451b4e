"""Tests for the JSON web API.

Tests use ``pytest.importorskip`` so they are skipped gracefully when
Flask is not installed.
"""

from __future__ import annotations

from typing import Any

import pytest

flask = pytest.importorskip("flask")

from py_memsim.config import SimulatorConfig  # noqa: E402
from py_memsim.web.app import create_app  # noqa: E402

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404


def _create_client(capacity: int = 1024) -> Any:
    """Create a test client from a fresh, seeded app."""
    app = create_app(SimulatorConfig(capacity=capacity), seed=0)
    app.config["TESTING"] = True
    return app.test_client()


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        assert isinstance(create_app(SimulatorConfig()), flask.Flask)


class TestMemoryStatus:
    """Verify GET /api/memory-status."""

    def test_pristine_snapshot(self) -> None:
        """A fresh app reports one free block."""
        response = _create_client().get("/api/memory-status")
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert data["capacity"] == 1024
        assert data["free"] == 1024
        assert data["layout"] == "contiguous"
        assert len(data["blocks"]) == 1
        assert data["pending"] == []


class TestAllocate:
    """Verify POST /api/allocate."""

    def test_allocate(self) -> None:
        """A fitting request is allocated and assigned an id."""
        response = _create_client().post(
            "/api/allocate", json={"size": 100, "algorithm": "best-fit"}
        )
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert data["status"] == "allocated"
        assert data["process_id"] == 1
        assert data["memory"]["used"] == 100

    def test_allocate_string_size(self) -> None:
        """Numeric strings are accepted."""
        response = _create_client().post("/api/allocate", json={"size": "64"})
        assert response.get_json()["memory"]["used"] == 64

    def test_queued(self) -> None:
        """An unplaceable request is parked and still gets an id."""
        client = _create_client()
        client.post("/api/allocate", json={"size": 1024})
        data = client.post("/api/allocate", json={"size": 10}).get_json()
        assert data["status"] == "queued"
        assert data["process_id"] == 2
        assert data["memory"]["pending"] == [{"owner": 2, "size": 10}]

    def test_rejected_size(self) -> None:
        """Out-of-range sizes are a client error."""
        response = _create_client().post("/api/allocate", json={"size": 0})
        assert response.status_code == HTTP_BAD_REQUEST
        data = response.get_json()
        assert data["status"] == "rejected"
        assert "error" in data

    @pytest.mark.parametrize("body", [{}, {"size": "big"}, {"size": True}, [1, 2]])
    def test_malformed_body(self, body: object) -> None:
        """Missing or malformed sizes are a client error."""
        response = _create_client().post("/api/allocate", json=body)
        assert response.status_code == HTTP_BAD_REQUEST


class TestDeallocate:
    """Verify POST /api/deallocate."""

    def test_deallocate(self) -> None:
        """Freeing an owner returns the updated memory."""
        client = _create_client()
        client.post("/api/allocate", json={"size": 100})
        response = client.post("/api/deallocate", json={"process_id": 1})
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert data["status"] == "freed"
        assert data["memory"]["used"] == 0

    def test_not_found(self) -> None:
        """Unknown owners are reported with 404."""
        response = _create_client().post("/api/deallocate", json={"process_id": 9})
        assert response.status_code == HTTP_NOT_FOUND
        assert response.get_json()["status"] == "not_found"

    def test_missing_id(self) -> None:
        """A body without process_id is a client error."""
        response = _create_client().post("/api/deallocate", json={})
        assert response.status_code == HTTP_BAD_REQUEST


class TestResetAndStep:
    """Verify POST /api/reset and POST /api/step."""

    def test_reset(self) -> None:
        """Reset restores a pristine simulator and restarts ids."""
        client = _create_client()
        client.post("/api/allocate", json={"size": 100})
        data = client.post("/api/reset").get_json()
        assert data["status"] == "reset"
        assert data["memory"]["used"] == 0
        assert data["memory"]["next_owner"] == 1

    def test_step_default(self) -> None:
        """Without a body, one step runs."""
        data = _create_client().post("/api/step").get_json()
        assert len(data["steps"]) == 1

    def test_step_count(self) -> None:
        """The requested number of steps runs and the state stays consistent."""
        data = _create_client().post("/api/step", json={"steps": 20}).get_json()
        assert len(data["steps"]) == 20
        memory = data["memory"]
        assert memory["used"] + memory["free"] == memory["capacity"]

    @pytest.mark.parametrize("steps", [0, 101, "x"])
    def test_step_bounds(self, steps: object) -> None:
        """Counts outside 1..100 are a client error."""
        response = _create_client().post("/api/step", json={"steps": steps})
        assert response.status_code == HTTP_BAD_REQUEST
