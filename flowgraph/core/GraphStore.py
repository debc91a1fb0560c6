"""
GraphStore: the canonical model of modules, nodes, ports and connections.

Every connection lives twice: on the source node's output port (together
with its reroute points) and on the target node's input port. All mutations
below keep the two copies in step and publish an event on the bus once the
model is consistent again.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from flowgraph.core import EventTypes as ev
from flowgraph.core.Errors import (
    ConnectionNotFound,
    CrossModuleEdge,
    InvalidArity,
    ModuleNotFound,
    NodeNotFound,
    ReroutePointNotFound,
)
from flowgraph.core.EventBus import EventBus
from flowgraph.core.GraphPrimitives import Edge, NodeContent, NodeId, Point, normalize_id
from flowgraph.core.IdAllocator import IdAllocator
from flowgraph.core.Node import Node
from flowgraph.core.NodePort import Endpoint
from flowgraph.core.PortRenumberer import PortRenumberer
from flowgraph.core.TemplateRegistry import TemplateRegistry
from flowgraph.core.Types import ContentKind, IdPolicy, PortSide

logger = logging.getLogger(__name__)

DEFAULT_MODULE = "Home"


class GraphStore:
    def __init__(self, bus: Optional[EventBus] = None, id_policy: IdPolicy = IdPolicy.SEQUENTIAL):
        self.bus = bus if bus is not None else EventBus()
        self.ids = IdAllocator(id_policy)
        self.templates = TemplateRegistry()
        self.modules: Dict[str, Dict[NodeId, Node]] = {DEFAULT_MODULE: {}}
        self.current_module: str = DEFAULT_MODULE
        # node id -> owning module
        self._module_of: Dict[NodeId, str] = {}
        self._renumberer = PortRenumberer(self)

    # ── Lookup ────────────────────────────────────────────────────────────────

    def _locate(self, node_id: NodeId) -> Tuple[str, Node]:
        node_id = normalize_id(node_id)
        module = self._module_of.get(node_id)
        if module is None:
            raise NodeNotFound(node_id)
        return module, self.modules[module][node_id]

    def _resolve_module(self, module: Optional[str]) -> str:
        name = self.current_module if module is None else module
        if name not in self.modules:
            raise ModuleNotFound(name)
        return name

    def has_node(self, node_id: NodeId) -> bool:
        try:
            return normalize_id(node_id) in self._module_of
        except ValueError:
            return False

    def get_node(self, node_id: NodeId) -> Node:
        """Return an isolated deep copy of the node record."""
        return self._locate(node_id)[1].copy()

    def get_module_of(self, node_id: NodeId) -> str:
        return self._locate(node_id)[0]

    def find_nodes_by_name(self, name: str) -> List[NodeId]:
        return [node.id
                for nodes in self.modules.values()
                for node in nodes.values()
                if node.name == name]

    def node_ids(self, module: Optional[str] = None) -> List[NodeId]:
        return list(self.modules[self._resolve_module(module)])

    def module_names(self) -> List[str]:
        return list(self.modules)

    # ── Nodes ─────────────────────────────────────────────────────────────────

    def add_node(self,
                 name: str,
                 num_inputs: int,
                 num_outputs: int,
                 x: float = 0.0,
                 y: float = 0.0,
                 style_class: str = "",
                 data: Optional[Dict[str, Any]] = None,
                 content: Union[NodeContent, Any] = "",
                 content_kind: ContentKind = ContentKind.PLAIN,
                 module: Optional[str] = None) -> NodeId:
        if num_inputs < 0 or num_outputs < 0:
            raise InvalidArity(f"Port counts must be >= 0, got {num_inputs} inputs / {num_outputs} outputs")
        module = self._resolve_module(module)
        if not isinstance(content, NodeContent):
            content = NodeContent(ContentKind(content_kind), content)
        if content.kind == ContentKind.TEMPLATE:
            self.templates.get(content.payload)

        node_id = self.ids.allocate()
        node = Node(node_id, name, copy.deepcopy(data) if data else {}, style_class,
                    content, x, y)
        for _ in range(num_inputs):
            node.add_port(PortSide.INPUT)
        for _ in range(num_outputs):
            node.add_port(PortSide.OUTPUT)

        self.modules[module][node_id] = node
        self._module_of[node_id] = module
        logger.debug(f"Adding node {node_id} '{name}' to module '{module}'")
        self.bus.emit(ev.NODE_CREATED, node_id)
        return node_id

    def remove_node(self, node_id: NodeId) -> None:
        module, node = self._locate(node_id)
        self.remove_node_connections(node.id)
        del self.modules[module][node.id]
        del self._module_of[node.id]
        logger.debug(f"Removed node {node.id} from module '{module}'")
        self.bus.emit(ev.NODE_REMOVED, node.id)

    def remove_node_connections(self, node_id: NodeId) -> int:
        """Remove every connection touching the node; returns how many went."""
        _, node = self._locate(node_id)
        edges: List[Edge] = []
        for port in node.outputs.values():
            edges.extend(Edge(node.id, port.port_name, e.node, e.port) for e in port.connections)
        for port in node.inputs.values():
            for e in port.connections:
                edge = Edge(e.node, e.port, node.id, port.port_name)
                if edge not in edges:
                    edges.append(edge)
        removed = 0
        for edge in edges:
            if self.remove_connection(edge.source_node, edge.target_node, edge.output_port, edge.input_port):
                removed += 1
        return removed

    def move_node(self, node_id: NodeId, x: float, y: float, notify: bool = True) -> None:
        _, node = self._locate(node_id)
        node.x, node.y = x, y
        if notify:
            self.bus.emit(ev.NODE_MOVED, node.id)

    def update_node_payload(self, node_id: NodeId, data: Dict[str, Any]) -> None:
        _, node = self._locate(node_id)
        node.data = copy.deepcopy(data) if data else {}
        self.bus.emit(ev.NODE_DATA_CHANGED, node.id)

    def update_node_field(self, node_id: NodeId, key_path: Union[str, List[str]], value: Any) -> None:
        """Set one nested payload value.

        ``key_path`` is either a list of keys or a dash separated string such as
        ``"df-settings-name"``; the ``df-`` binding prefix is optional.
        """
        _, node = self._locate(node_id)
        if isinstance(key_path, str):
            if key_path.startswith("df-"):
                key_path = key_path[3:]
            keys = key_path.split("-")
        else:
            keys = list(key_path)
        if not keys or any(k == "" for k in keys):
            raise ValueError(f"Invalid payload key path {key_path!r}")

        target = node.data
        for key in keys[:-1]:
            child = target.setdefault(key, {})
            if not isinstance(child, dict):
                raise ValueError(f"Payload key '{key}' on node {node.id} is not a mapping")
            target = child
        target[keys[-1]] = copy.deepcopy(value)
        self.bus.emit(ev.NODE_DATA_CHANGED, node.id)

    # ── Ports ─────────────────────────────────────────────────────────────────

    def add_port(self, node_id: NodeId, side: Union[PortSide, str]) -> str:
        _, node = self._locate(node_id)
        return node.add_port(PortSide.parse(side))

    def add_input(self, node_id: NodeId) -> str:
        return self.add_port(node_id, PortSide.INPUT)

    def add_output(self, node_id: NodeId) -> str:
        return self.add_port(node_id, PortSide.OUTPUT)

    def remove_port(self, node_id: NodeId, side: Union[PortSide, str], port_name: str) -> Dict[str, str]:
        return self._renumberer.remove_port(node_id, PortSide.parse(side), port_name)

    # ── Connections ───────────────────────────────────────────────────────────

    def add_connection(self, source: NodeId, target: NodeId, output_port: str, input_port: str) -> bool:
        source_module, source_node = self._locate(source)
        target_module, target_node = self._locate(target)
        out_port = source_node.get_port(PortSide.OUTPUT, output_port)
        in_port = target_node.get_port(PortSide.INPUT, input_port)
        if source_module != target_module:
            logger.warning(f"Rejected connection {source_node.id}.{output_port} -> {target_node.id}.{input_port}: "
                           f"modules '{source_module}' and '{target_module}' differ")
            raise CrossModuleEdge(
                f"Cannot connect node {source_node.id} in '{source_module}' "
                f"to node {target_node.id} in '{target_module}'")

        if out_port.find(target_node.id, input_port) is not None:
            logger.warning(f"Connection {source_node.id}.{output_port} -> {target_node.id}.{input_port} already exists")
            return False

        out_port.connections.append(Endpoint(target_node.id, input_port))
        in_port.connections.append(Endpoint(source_node.id, output_port))
        edge = Edge(source_node.id, output_port, target_node.id, input_port)
        logger.debug(f"Connected {edge!r}")
        self.bus.emit(ev.CONNECTION_CREATED, edge.as_payload())
        return True

    def remove_connection(self, source: NodeId, target: NodeId, output_port: str, input_port: str) -> bool:
        try:
            source_module, source_node = self._locate(source)
            target_module, target_node = self._locate(target)
        except (NodeNotFound, ValueError):
            return False
        if source_module != target_module:
            return False
        out_port = source_node.outputs.get(output_port)
        in_port = target_node.inputs.get(input_port)
        if out_port is None or in_port is None:
            return False
        if not out_port.discard(target_node.id, input_port):
            return False
        in_port.discard(source_node.id, output_port)

        edge = Edge(source_node.id, output_port, target_node.id, input_port)
        logger.debug(f"Disconnected {edge!r}")
        self.bus.emit(ev.CONNECTION_REMOVED, edge.as_payload())
        return True

    def has_connection(self, edge: Edge) -> bool:
        try:
            self._output_endpoint(edge)
        except (ConnectionNotFound, NodeNotFound, ValueError):
            return False
        return True

    def connections(self, module: Optional[str] = None) -> List[Edge]:
        """All edges of a module, read from the output side."""
        nodes = self.modules[self._resolve_module(module)]
        return [Edge(node.id, port.port_name, e.node, e.port)
                for node in nodes.values()
                for port in node.outputs.values()
                for e in port.connections]

    # ── Reroute points ────────────────────────────────────────────────────────

    def _output_endpoint(self, edge: Edge) -> Endpoint:
        edge = Edge.of(*edge)
        _, source_node = self._locate(edge.source_node)
        out_port = source_node.outputs.get(edge.output_port)
        endpoint = out_port.find(edge.target_node, edge.input_port) if out_port else None
        if endpoint is None:
            raise ConnectionNotFound(edge)
        return endpoint

    def get_reroute_points(self, edge: Edge) -> List[Point]:
        return list(self._output_endpoint(edge).points)

    def add_reroute_point(self, edge: Edge, x: float, y: float, index: Optional[int] = None) -> int:
        """Insert a point at ``index`` (clamped to the list bounds) or append it."""
        endpoint = self._output_endpoint(edge)
        if index is None:
            index = len(endpoint.points)
        index = max(0, min(index, len(endpoint.points)))
        endpoint.points.insert(index, Point(x, y))
        self.bus.emit(ev.ADD_REROUTE, normalize_id(edge[0]))
        return index

    def remove_reroute_point(self, edge: Edge, index: int) -> Point:
        endpoint = self._output_endpoint(edge)
        if not 0 <= index < len(endpoint.points):
            raise ReroutePointNotFound(Edge.of(*edge), index)
        point = endpoint.points.pop(index)
        self.bus.emit(ev.REMOVE_REROUTE, normalize_id(edge[0]))
        return point

    def move_reroute_point(self, edge: Edge, index: int, x: float, y: float, notify: bool = True) -> None:
        endpoint = self._output_endpoint(edge)
        if not 0 <= index < len(endpoint.points):
            raise ReroutePointNotFound(Edge.of(*edge), index)
        endpoint.points[index] = Point(x, y)
        if notify:
            self.bus.emit(ev.REROUTE_MOVED, normalize_id(edge[0]))

    # ── Modules (storage only; policy lives in ModuleManager) ─────────────────

    def _create_module(self, name: str) -> None:
        self.modules[name] = {}

    def _drop_module(self, name: str) -> None:
        for node_id in self.modules.pop(name):
            del self._module_of[node_id]

    def _clear_module(self, name: str) -> int:
        nodes = self.modules[name]
        for node_id in nodes:
            del self._module_of[node_id]
        count = len(nodes)
        nodes.clear()
        return count

    # ── Integrity ─────────────────────────────────────────────────────────────

    def check_symmetry(self) -> List[str]:
        """Describe every connection entry whose mirror is missing or duplicated."""
        problems: List[str] = []
        for module, nodes in self.modules.items():
            for node in nodes.values():
                for side in (PortSide.OUTPUT, PortSide.INPUT):
                    for port in node.ports(side).values():
                        seen = set()
                        for e in port.connections:
                            key = (e.node, e.port)
                            if key in seen:
                                problems.append(f"{module}: duplicate entry {node.id}.{port.port_name} -> {e.node}.{e.port}")
                            seen.add(key)
                            remote_node = nodes.get(e.node)
                            remote_port = remote_node.ports(side.opposite).get(e.port) if remote_node else None
                            if remote_port is None or remote_port.find(node.id, port.port_name) is None:
                                problems.append(f"{module}: {node.id}.{port.port_name} -> {e.node}.{e.port} has no mirror")
        return problems

    # ── Whole graph ───────────────────────────────────────────────────────────

    def export_all(self) -> Dict[str, Any]:
        graph = {
            "modules": {
                name: {"nodes": {str(node_id): node.to_dict() for node_id, node in nodes.items()}}
                for name, nodes in self.modules.items()
            }
        }
        self.bus.emit(ev.EXPORT, graph)
        return graph

    def import_all(self, graph: Dict[str, Any], notify: bool = True) -> None:
        """Replace the whole state with ``graph`` (the ``export_all`` format).

        With ``notify=False`` no ``import`` event fires, so listeners holding node
        ids (a view session's selection) are not told the ids changed meaning.
        """
        if not isinstance(graph, dict) or not isinstance(graph.get("modules"), dict):
            raise ValueError("Graph data must be a mapping with a 'modules' mapping")

        modules: Dict[str, Dict[NodeId, Node]] = {}
        module_of: Dict[NodeId, str] = {}
        for name, raw_module in graph["modules"].items():
            if not isinstance(raw_module, dict):
                raise ValueError(f"Module '{name}' must be a mapping")
            nodes: Dict[NodeId, Node] = {}
            for key, raw_node in (raw_module.get("nodes") or {}).items():
                try:
                    node = Node.from_dict({"id": key, **raw_node})
                except (AttributeError, KeyError, TypeError) as exc:
                    raise ValueError(f"Malformed node {key!r} in module '{name}': {exc}") from exc
                if node.id in module_of:
                    raise ValueError(f"Node id {node.id} appears more than once in imported graph")
                nodes[node.id] = node
                module_of[node.id] = name
            modules[name] = nodes
        modules.setdefault(DEFAULT_MODULE, {})

        self.modules = modules
        self._module_of = module_of
        self.ids.reset_from(module_of.keys())
        if self.current_module not in self.modules:
            self.current_module = DEFAULT_MODULE
        logger.info(f"Imported {len(module_of)} nodes in {len(modules)} modules")
        if notify:
            self.bus.emit(ev.IMPORT, "import")

    def clear(self) -> None:
        """Drop everything and start over with an empty Home module."""
        self.modules = {DEFAULT_MODULE: {}}
        self._module_of = {}
        self.current_module = DEFAULT_MODULE
        logger.info("Cleared graph")
        self.bus.emit(ev.CLEAR, True)
