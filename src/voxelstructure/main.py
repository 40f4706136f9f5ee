"""
Session Initialization
======================
This module wires the structure store, the collapse countdown and the action
router into one session.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the Store (the only owner of structure state).
2. Instantiates the CollapseTimer and the ActionRouter around that store.
3. Optionally attaches a GestureInterpreter that dispatches through the router,
   so mouse and gesture input share one entry point.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from voxelstructure.app.state import Store
from voxelstructure.config import ADJACENCY_RULE, COLLAPSE_TICK_INTERVAL_MS, AdjacencyRule
from voxelstructure.controller.actions import ActionRouter
from voxelstructure.controller.collapse_timer import CollapseTimer
from voxelstructure.controller.gestures import GestureInterpreter

logger = logging.getLogger(__name__)


@dataclass
class Session:
    store: Store
    timer: CollapseTimer
    router: ActionRouter
    gestures: Optional[GestureInterpreter] = None


def build_session(rule: AdjacencyRule = ADJACENCY_RULE,
                  tick_interval_ms: int = COLLAPSE_TICK_INTERVAL_MS,
                  with_gestures: bool = False) -> Session:
    store = Store(rule=rule)
    timer = CollapseTimer(store, interval_ms=tick_interval_ms)
    router = ActionRouter(store)
    gestures = GestureInterpreter(router.route) if with_gestures else None

    logger.info(f"Session ready (adjacency={rule}, tick={tick_interval_ms} ms)")
    return Session(store=store, timer=timer, router=router, gestures=gestures)
