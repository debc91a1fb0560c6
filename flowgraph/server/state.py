"""
EditorState: the single process-wide editor the HTTP routes operate on.

Bundles the event bus, graph store, module manager and view session built
from the loaded settings. ``reset()`` rebuilds all of them and re-attaches
any event forwarders registered through ``forward``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from flowgraph.config import EditorSettings, get_settings
from flowgraph.core.EventBus import EventBus
from flowgraph.core.GraphStore import GraphStore
from flowgraph.core.ModuleManager import ModuleManager
from flowgraph.core.ViewSession import ViewSession
from flowgraph.core.Viewport import Viewport

logger = logging.getLogger(__name__)


class EditorState:
    def __init__(self, settings: Optional[EditorSettings] = None) -> None:
        self.settings = settings if settings is not None else get_settings()
        self._forwarders: List[Tuple[str, Callable[[Any], None]]] = []
        self.reset()

    def reset(self) -> None:
        s = self.settings
        self.bus = EventBus()
        self.store = GraphStore(self.bus, s.id_policy)
        self.modules = ModuleManager(self.store)
        self.session = ViewSession(
            self.store,
            editor_mode=s.editor_mode,
            force_first_input=s.force_first_input,
            curvature=s.curvature,
            reroute_curvature_start_end=s.reroute_curvature_start_end,
            reroute_curvature=s.reroute_curvature,
            reroute_fix_curvature=s.reroute_fix_curvature,
            reroute_width=s.reroute_width,
            viewport=Viewport(self.bus, s.zoom_min, s.zoom_max, s.zoom_step),
        )
        for event, callback in self._forwarders:
            self.bus.on(event, callback)
        logger.debug("Editor state reset")

    def forward(self, event: str, callback: Callable[[Any], None]) -> None:
        """Subscribe ``callback`` to ``event`` now and after every reset."""
        self._forwarders.append((event, callback))
        self.bus.on(event, callback)


editor_state = EditorState()
