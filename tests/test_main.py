from voxelstructure.config import AdjacencyRule
from voxelstructure.controller.gestures import GestureInterpreter
from voxelstructure.main import build_session


def test_session_wiring():
    session = build_session(rule=AdjacencyRule.FACE_EDGE, tick_interval_ms=10)
    assert session.store.rule == AdjacencyRule.FACE_EDGE
    assert session.timer.interval_ms == 10
    assert session.router.store is session.store
    assert session.gestures is None


def test_session_with_gestures_dispatches_through_router():
    session = build_session(with_gestures=True)
    assert isinstance(session.gestures, GestureInterpreter)
    assert session.gestures.dispatch == session.router.route


def test_scripted_build_collapses_floating_cube(wait_until):
    session = build_session(rule=AdjacencyRule.FACE, tick_interval_ms=10)
    route = session.router.route

    route("place", {"position": (0, 0.5, 0)})
    route("place", {"position": (0, 0.5, 0), "face_normal": (0, 1, 0)})
    route("confirm_draft")
    route("place", {"position": (5, 1.5, 5), "material": "concrete"})
    route("confirm_draft")
    assert session.timer.is_running()

    assert wait_until(lambda: not session.store.collapse_state.warning_active)
    assert [c.position for c in session.store.confirmed_cubes] == [(0.0, 0.5, 0.0), (0.0, 1.5, 0.0)]
