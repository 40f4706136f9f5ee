"""
Run with: python -m voxelstructure

Plays a short scripted build headless: a supported tower, then a floating
cube that gets flagged and collapses once the countdown runs out.
"""
from __future__ import annotations

import logging
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from voxelstructure.logging_config import setup_logging
from voxelstructure.main import build_session


def main() -> int:
    log = setup_logging(level=logging.INFO)
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    session = build_session()
    route = session.router.route

    # A two-high tower standing on the ground
    route("place", {"position": (0, 0.5, 0)})
    route("place", {"position": (0, 0.5, 0), "face_normal": (0, 1, 0)})
    route("set_material", {"material": "wood"})
    route("place", {"x": 1, "y": 0.5, "z": 0})
    route("confirm_draft")

    # Nothing below this one
    route("place", {"position": (5, 1.5, 5), "material": "concrete"})
    route("confirm_draft")

    def finish() -> None:
        store = session.store
        log.info(
            f"Done: {store.confirmed_count} confirmed cube(s) "
            f"{[c.position for c in store.confirmed_cubes]}"
        )
        app.quit()

    session.timer.collapsed.connect(finish)
    if not session.store.collapse_state.warning_active:
        QTimer.singleShot(0, finish)

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
