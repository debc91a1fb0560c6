"""
ViewSession: transient editor state kept out of the graph model.

Holds selection, the active drag and the viewport, and turns raw pointer
positions reported by a host into store mutations and selection events.
Nothing here is exported with the graph; switching modules resets it.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

from flowgraph.core import EventTypes as ev
from flowgraph.core.EventTypes import ConnectionStartEvent, PortRemovedEvent, TranslateEvent
from flowgraph.core import PathSynthesizer
from flowgraph.core.Errors import FlowGraphError
from flowgraph.core.GraphPrimitives import Edge, NodeId, normalize_id
from flowgraph.core.GraphStore import GraphStore
from flowgraph.core.Types import EditorMode, PortSide
from flowgraph.core.Viewport import Viewport

logger = logging.getLogger(__name__)

_DRAG_NODE = "node"
_DRAG_POINT = "point"
_DRAG_CANVAS = "canvas"


def _follow_rename(edge: Edge, renamed: PortRemovedEvent) -> Edge:
    """The same connection after a port on one of its ends was renamed."""
    names = renamed["renamed"]
    if renamed["side"] == PortSide.OUTPUT.value and edge.source_node == renamed["node"]:
        return edge._replace(output_port=names.get(edge.output_port, edge.output_port))
    if renamed["side"] == PortSide.INPUT.value and edge.target_node == renamed["node"]:
        return edge._replace(input_port=names.get(edge.input_port, edge.input_port))
    return edge


class ViewSession:
    def __init__(self,
                 store: GraphStore,
                 editor_mode: EditorMode = EditorMode.EDIT,
                 force_first_input: bool = False,
                 curvature: float = 0.5,
                 reroute_curvature_start_end: float = 0.5,
                 reroute_curvature: float = 0.5,
                 reroute_fix_curvature: bool = False,
                 reroute_width: float = 6,
                 viewport: Optional[Viewport] = None):
        self.store = store
        self.bus = store.bus
        self.editor_mode = EditorMode(editor_mode)
        self.force_first_input = force_first_input
        self.curvature = curvature
        self.reroute_curvature_start_end = reroute_curvature_start_end
        self.reroute_curvature = reroute_curvature
        self.reroute_fix_curvature = reroute_fix_curvature
        self.reroute_width = reroute_width
        self.viewport = viewport if viewport is not None else Viewport(self.bus)

        self.selected_node: Optional[NodeId] = None
        self.selected_connection: Optional[Edge] = None
        self._clear_pointer_state()

        self.bus.on(ev.MODULE_CHANGED, self._on_module_changed)
        self.bus.on(ev.NODE_REMOVED, self._on_node_removed)
        self.bus.on(ev.CONNECTION_REMOVED, self._on_connection_removed)
        self.bus.on(ev.PORT_REMOVED, self._on_port_removed)
        self.bus.on(ev.MODULE_CLEARED, self._on_nodes_dropped)
        self.bus.on(ev.MODULE_REMOVED, self._on_nodes_dropped)
        self.bus.on(ev.IMPORT, self._on_graph_replaced)
        self.bus.on(ev.CLEAR, self._on_graph_replaced)

    def _clear_pointer_state(self) -> None:
        self._drag: Optional[str] = None
        self._drag_node: Optional[NodeId] = None
        self._drag_point: Optional[Tuple[Edge, int]] = None
        self._pending_connection: Optional[Tuple[NodeId, str]] = None
        self.pos_start: Optional[Tuple[float, float]] = None
        self.pos_last: Optional[Tuple[float, float]] = None
        self._pan: Optional[Tuple[float, float]] = None

    @property
    def can_edit(self) -> bool:
        return self.editor_mode == EditorMode.EDIT

    def set_mode(self, mode: Union[EditorMode, str]) -> None:
        self.editor_mode = EditorMode(mode)
        if not self.can_edit:
            self.unselect_node()
            self.unselect_connection()
            self._clear_pointer_state()

    # ── Listeners ─────────────────────────────────────────────────────────────

    def _forget_selection(self) -> None:
        self.selected_node = None
        self.selected_connection = None
        self._clear_pointer_state()

    def _on_module_changed(self, name: str) -> None:
        self._forget_selection()
        self.viewport.reset()
        logger.debug(f"View reset for module '{name}'")

    def _on_graph_replaced(self, _payload) -> None:
        # Imported ids may be reused by unrelated nodes, so nothing held survives.
        self._forget_selection()

    def _on_nodes_dropped(self, module: str) -> None:
        if self.selected_node is not None and not self.store.has_node(self.selected_node):
            self.selected_node = None
        if self.selected_connection is not None and not self.store.has_connection(self.selected_connection):
            self.selected_connection = None
        if ((self._drag_node is not None and not self.store.has_node(self._drag_node))
                or (self._drag_point is not None and not self.store.has_connection(self._drag_point[0]))
                or (self._pending_connection is not None and not self.store.has_node(self._pending_connection[0]))):
            self._clear_pointer_state()
        logger.debug(f"Dropped stale view state after nodes left module '{module}'")

    def _on_node_removed(self, node_id: NodeId) -> None:
        if self.selected_node == node_id:
            self.selected_node = None
        if self._drag_node == node_id:
            self._clear_pointer_state()

    def _on_connection_removed(self, payload: dict) -> None:
        removed = Edge(payload["sourceNode"], payload["outputPort"], payload["targetNode"], payload["inputPort"])
        if self.selected_connection == removed:
            self.selected_connection = None
        if self._drag_point is not None and self._drag_point[0] == removed:
            self._clear_pointer_state()

    def _on_port_removed(self, payload: PortRemovedEvent) -> None:
        if self.selected_connection is not None:
            self.selected_connection = _follow_rename(self.selected_connection, payload)
        if self._drag_point is not None:
            edge, index = self._drag_point
            self._drag_point = (_follow_rename(edge, payload), index)
        if self._pending_connection is not None and payload["side"] == PortSide.OUTPUT.value:
            source, output_port = self._pending_connection
            if source == payload["node"]:
                if output_port == payload["port"]:
                    self._pending_connection = None
                else:
                    self._pending_connection = (source, payload["renamed"].get(output_port, output_port))

    # ── Selection ─────────────────────────────────────────────────────────────

    def select_node(self, node_id: NodeId) -> bool:
        if not self.can_edit:
            return False
        node_id = self.store.get_node(node_id).id
        self.unselect_connection()
        if self.selected_node == node_id:
            return True
        self.unselect_node()
        self.selected_node = node_id
        self.bus.emit(ev.NODE_SELECTED, node_id)
        return True

    def unselect_node(self) -> None:
        if self.selected_node is not None:
            self.selected_node = None
            self.bus.emit(ev.NODE_UNSELECTED, True)

    def select_connection(self, edge: Edge) -> bool:
        if not self.can_edit:
            return False
        edge = Edge.of(*edge)
        if not self.store.has_connection(edge):
            return False
        self.unselect_node()
        if self.selected_connection == edge:
            return True
        self.unselect_connection()
        self.selected_connection = edge
        self.bus.emit(ev.CONNECTION_SELECTED, edge.as_payload())
        return True

    def unselect_connection(self) -> None:
        if self.selected_connection is not None:
            self.selected_connection = None
            self.bus.emit(ev.CONNECTION_UNSELECTED, True)

    def delete_selected(self) -> bool:
        if not self.can_edit:
            return False
        if self.selected_node is not None:
            if not self.store.has_node(self.selected_node):
                self.selected_node = None
                return False
            self.store.remove_node(self.selected_node)
            return True
        if self.selected_connection is not None:
            edge = self.selected_connection
            return self.store.remove_connection(edge.source_node, edge.target_node,
                                                edge.output_port, edge.input_port)
        return False

    # ── Dragging ──────────────────────────────────────────────────────────────

    def begin_node_drag(self, node_id: NodeId, x: float, y: float) -> bool:
        if not self.select_node(node_id):
            return False
        self._drag = _DRAG_NODE
        self._drag_node = self.selected_node
        self.pos_start = self.pos_last = (x, y)
        return True

    def begin_point_drag(self, edge: Edge, index: int, x: float, y: float) -> bool:
        if not self.can_edit:
            return False
        edge = Edge.of(*edge)
        if not 0 <= index < len(self.store.get_reroute_points(edge)):
            return False
        self._drag = _DRAG_POINT
        self._drag_point = (edge, index)
        self.pos_start = self.pos_last = (x, y)
        return True

    def begin_pan(self, x: float, y: float) -> None:
        """Start panning the canvas; allowed in every editor mode."""
        self.unselect_node()
        self.unselect_connection()
        self._drag = _DRAG_CANVAS
        self.pos_start = self.pos_last = (x, y)
        self._pan = (self.viewport.canvas_x, self.viewport.canvas_y)

    def drag_to(self, x: float, y: float) -> None:
        if self._drag is None:
            return
        if self._drag == _DRAG_NODE:
            last_x, last_y = self.pos_last
            dx = (last_x - x) * self.viewport.scale_factor()
            dy = (last_y - y) * self.viewport.scale_factor()
            node = self.store.get_node(self._drag_node)
            self.store.move_node(node.id, node.x - dx, node.y - dy, notify=False)
        elif self._drag == _DRAG_POINT:
            edge, index = self._drag_point
            p = self.viewport.to_canvas(x, y)
            self.store.move_reroute_point(edge, index, p.x, p.y, notify=False)
        elif self._drag == _DRAG_CANVAS:
            start_x, start_y = self.pos_start
            pan_x = self._pan[0] + (x - start_x)
            pan_y = self._pan[1] + (y - start_y)
            moved: TranslateEvent = {"x": pan_x, "y": pan_y}
            self.bus.emit(ev.TRANSLATE, moved)
        self.pos_last = (x, y)

    def end_drag(self, x: float, y: float) -> None:
        drag = self._drag
        moved = self.pos_start is not None and self.pos_start != (x, y)
        if drag == _DRAG_NODE and moved:
            self.bus.emit(ev.NODE_MOVED, self._drag_node)
        elif drag == _DRAG_POINT and moved:
            edge, _ = self._drag_point
            self.bus.emit(ev.REROUTE_MOVED, edge.source_node)
        elif drag == _DRAG_CANVAS:
            start_x, start_y = self.pos_start
            self.viewport.translate(x - start_x, y - start_y)
        self._clear_pointer_state()

    # ── Drawing a connection ──────────────────────────────────────────────────

    def begin_connection(self, node_id: NodeId, output_port: str, x: float, y: float) -> bool:
        if not self.can_edit:
            return False
        node = self.store.get_node(node_id)
        node.get_port(PortSide.OUTPUT, output_port)
        self.unselect_node()
        self.unselect_connection()
        self._pending_connection = (node.id, output_port)
        self.pos_start = self.pos_last = (x, y)
        start: ConnectionStartEvent = {"sourceNode": node.id, "outputPort": output_port}
        self.bus.emit(ev.CONNECTION_START, start)
        return True

    def end_connection(self, target: Optional[NodeId] = None, input_port: Optional[str] = None) -> Optional[Edge]:
        """Finish the pending connection on ``target``; None (and connectionCancel) if it was not made."""
        pending = self._pending_connection
        self._clear_pointer_state()
        if pending is None:
            return None
        source, output_port = pending

        edge = None
        if target is not None:
            target = normalize_id(target)
            if input_port is None and self.force_first_input and self.store.has_node(target):
                inputs = list(self.store.get_node(target).inputs)
                input_port = inputs[0] if inputs else None
            if input_port is not None and target != source:
                try:
                    if self.store.add_connection(source, target, output_port, input_port):
                        edge = Edge(source, output_port, target, input_port)
                except FlowGraphError as exc:
                    logger.warning(f"Connection from {source}.{output_port} rejected: {exc}")
        if edge is None:
            self.bus.emit(ev.CONNECTION_CANCEL, True)
        return edge

    # ── Reroute points ────────────────────────────────────────────────────────

    def add_reroute_at(self, x: float, y: float, segment_index: Optional[int] = None) -> Optional[int]:
        """Insert a reroute point on the selected connection at a screen position.

        ``segment_index`` is the segment that was hit: segment ``i`` runs from
        point ``i - 1`` to point ``i``, so the new point lands at index ``i``.
        Without it the point is appended.
        """
        if not self.can_edit or self.selected_connection is None:
            return None
        p = self.viewport.to_canvas(x, y)
        return self.store.add_reroute_point(self.selected_connection, p.x, p.y, segment_index)

    def remove_reroute(self, edge: Edge, index: int) -> bool:
        if not self.can_edit:
            return False
        self.store.remove_reroute_point(edge, index)
        return True

    # ── Geometry ──────────────────────────────────────────────────────────────

    def connection_segments(self, edge: Edge, start: Tuple[float, float],
                            end: Tuple[float, float]) -> Sequence[PathSynthesizer.BezierSegment]:
        points = self.store.get_reroute_points(edge)
        return PathSynthesizer.path(start, end, points, self.reroute_curvature_start_end,
                                    self.reroute_curvature, self.curvature)

    def connection_path(self, edge: Edge, start: Tuple[float, float],
                        end: Tuple[float, float]) -> Union[str, list]:
        """SVG path data for a stored connection between two canvas-space anchors."""
        points = self.store.get_reroute_points(edge)
        return PathSynthesizer.path_description(start, end, points,
                                                self.reroute_curvature_start_end,
                                                self.reroute_curvature,
                                                self.curvature,
                                                self.reroute_fix_curvature)

    def point_anchor(self, rect) -> Tuple[float, float]:
        """Canvas-space anchor of a rendered reroute point."""
        return self.viewport.reroute_anchor(rect, self.reroute_width)
