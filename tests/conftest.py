"""
Shared test fixtures for the structure store, timer and router tests.
"""
import time

import pytest
from PySide6.QtCore import QCoreApplication

from voxelstructure import config
from voxelstructure.config import AdjacencyRule
from voxelstructure.app.state import Store
from voxelstructure.model.cube import Cube, CubeStatus
from voxelstructure.model.materials import DEFAULT_MATERIAL, MATERIALS


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One QCoreApplication for the whole run; timers need an event loop."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture(autouse=True)
def lenient_invariants(monkeypatch):
    """Run with logged (not raised) invariant violations unless a test opts in."""
    monkeypatch.setattr(config, "STRICT_INVARIANTS", False)


@pytest.fixture
def make_cube():
    """Factory for confirmed cubes with sequential ids."""
    counter = iter(range(1, 10_000))

    def _make(x, y, z, status=CubeStatus.CONFIRMED, material=DEFAULT_MATERIAL, cube_id=None):
        return Cube(
            id=cube_id if cube_id is not None else next(counter),
            x=float(x), y=float(y), z=float(z),
            material=material,
            status=status,
        )

    return _make


@pytest.fixture
def store():
    return Store(rule=AdjacencyRule.FACE)


@pytest.fixture
def wood():
    return MATERIALS["WOOD"]


@pytest.fixture
def wait_until(qapp):
    """Pump the Qt event loop until `predicate()` holds or the timeout passes."""

    def _wait(predicate, timeout=2.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            qapp.processEvents()
            if predicate():
                return True
            time.sleep(0.001)
        qapp.processEvents()
        return predicate()

    return _wait


@pytest.fixture
def pump_events(qapp):
    """Keep the event loop running for a fixed time."""

    def _pump(duration=0.1):
        deadline = time.monotonic() + duration
        while time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.001)

    return _pump
