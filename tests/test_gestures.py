import numpy as np
import pytest

from voxelstructure.controller.actions import ActionRouter
from voxelstructure.controller.gestures import (
    CursorSmoother, GestureInterpreter, Pose, classify_pose, hand_to_world,
)

FINGERS = {
    # name: (mcp, pip, dip, tip, x)
    "index": (5, 6, 7, 8, 0.44),
    "middle": (9, 10, 11, 12, 0.48),
    "ring": (13, 14, 15, 16, 0.52),
    "pinky": (17, 18, 19, 20, 0.56),
}

THUMB_TIPS = {
    "out": (0.30, 0.60),
    "tucked": (0.47, 0.64),
    "up": (0.36, 0.45),
    "down": (0.36, 0.88),
}


def make_hand(extended=(), thumb="tucked", offset=(0.0, 0.0)):
    """
    Synthetic right hand seen palm-on, image y pointing down, wrist at the
    bottom. Extended fingers point up; curled fingers fold back to the palm.
    """
    pts = np.zeros((21, 3))
    pts[0, :2] = (0.50, 0.80)
    pts[1, :2] = (0.42, 0.76)
    pts[2, :2] = (0.38, 0.70)
    pts[3, :2] = (0.35, 0.65)

    for name, (mcp, pip, dip, tip, x) in FINGERS.items():
        pts[mcp, :2] = (x, 0.60)
        if name in extended:
            pts[pip, :2] = (x, 0.52)
            pts[dip, :2] = (x, 0.47)
            pts[tip, :2] = (x, 0.42)
        else:
            pts[pip, :2] = (x, 0.53)
            pts[dip, :2] = (x, 0.58)
            pts[tip, :2] = (x, 0.63)

    if thumb == "pinch":
        pts[4, :2] = pts[8, :2] + (0.01, 0.0)
    else:
        pts[4, :2] = THUMB_TIPS[thumb]

    pts[:, :2] += offset
    return pts


ALL = ("index", "middle", "ring", "pinky")


@pytest.mark.parametrize("hand, expected", [
    (make_hand(ALL, thumb="out"), Pose.OPEN_PALM),
    (make_hand(), Pose.FIST),
    (make_hand(("index",)), Pose.POINT),
    (make_hand(("index", "middle")), Pose.ROTATE_POSE),
    (make_hand(("index",), thumb="pinch"), Pose.PINCH),
    (make_hand(ALL, thumb="pinch"), Pose.PINCH),
    (make_hand(thumb="up"), Pose.THUMBS_UP),
    (make_hand(thumb="down"), Pose.THUMBS_DOWN),
    (make_hand(("ring",)), Pose.IDLE),
    (np.zeros((21, 2)), Pose.IDLE),
])
def test_classify_pose(hand, expected):
    assert classify_pose(hand) == expected


def test_classification_ignores_hand_position():
    assert classify_pose(make_hand(ALL, thumb="out", offset=(0.2, -0.1))) == Pose.OPEN_PALM
    assert classify_pose(make_hand(offset=(-0.3, 0.1))) == Pose.FIST


def test_classify_rejects_wrong_shape():
    with pytest.raises(ValueError):
        classify_pose(np.zeros((20, 3)))
    with pytest.raises(ValueError):
        classify_pose(np.zeros((21, 1)))


@pytest.mark.parametrize("point, cell", [
    ((0.5, 0.5), (0.0, 0.5, 0.0)),
    ((1.0, 0.0), (5.0, 0.5, -5.0)),
    ((0.0, 1.0), (-5.0, 0.5, 5.0)),
    ((0.62, 0.5, 0.3), (1.0, 0.5, 0.0)),
    ((0.44, 0.42), (-1.0, 0.5, -1.0)),
])
def test_hand_to_world(point, cell):
    assert hand_to_world(point) == cell


def test_smoother_accumulates_small_moves():
    smoother = CursorSmoother(factor=0.3)
    first = smoother.update((1.0, 0.5, 0.0))
    assert first == (0.0, 0.5, 0.0)
    positions = [smoother.update((1.0, 0.5, 0.0)) for _ in range(3)]
    assert positions[-1] == (1.0, 0.5, 0.0)


def test_smoother_converges_on_target():
    smoother = CursorSmoother(factor=0.3)
    for _ in range(15):
        smoother.update((4.0, 0.5, -3.0))
    assert smoother.position == (4.0, 0.5, -3.0)


def test_smoother_rejects_bad_factor():
    with pytest.raises(ValueError):
        CursorSmoother(factor=0.0)


class Sink:
    def __init__(self):
        self.calls = []

    def __call__(self, kind, payload):
        self.calls.append((kind, dict(payload)))


def test_actions_fire_on_pose_entry_only():
    sink = Sink()
    gestures = GestureInterpreter(sink, CursorSmoother(factor=1.0))
    pinch = make_hand(("index",), thumb="pinch")

    gestures.update(pinch)
    gestures.update(pinch)
    gestures.update(make_hand(("index",)))
    gestures.update(pinch)

    assert sink.calls == [
        ("place", {"position": (-1.0, 0.5, -1.0)}),
        ("place", {"position": (-1.0, 0.5, -1.0)}),
    ]


def test_pose_action_table():
    sink = Sink()
    gestures = GestureInterpreter(sink, CursorSmoother(factor=1.0))
    for hand in (make_hand(ALL, thumb="out"), make_hand(thumb="down"), make_hand(thumb="up"), make_hand()):
        gestures.update(hand)
    kinds = [kind for kind, _ in sink.calls]
    assert kinds == ["confirm_draft", "undo", "cancel_collapse", "delete"]


def test_rotate_pose_brackets_camera_rotation():
    sink = Sink()
    gestures = GestureInterpreter(sink)
    gestures.update(make_hand(("index", "middle")))
    gestures.update(make_hand(("index", "middle")))
    gestures.update(None)
    assert [kind for kind, _ in sink.calls] == ["rotate_start", "rotate_end"]
    assert gestures.pose == Pose.IDLE


def test_gestures_drive_the_store_through_the_router(store):
    router = ActionRouter(store)
    gestures = GestureInterpreter(router.route, CursorSmoother(factor=1.0))
    camera = []
    router.camera_requested.connect(camera.append)

    pinch = make_hand(("index",), thumb="pinch", offset=(0.06, 0.08))
    gestures.update(pinch)
    assert [c.position for c in store.draft_cubes] == [(0.0, 0.5, 0.0)]

    gestures.update(make_hand(ALL, thumb="out", offset=(0.06, 0.08)))
    assert store.confirmed_count == 1

    # curled index tip sits lower, shift so it stays over the same cell
    gestures.update(make_hand(offset=(0.06, -0.13)))
    assert store.confirmed_count == 0

    gestures.update(make_hand(("index", "middle")))
    gestures.update(make_hand(("index",)))
    assert camera == ["rotate_start", "rotate_end"]
