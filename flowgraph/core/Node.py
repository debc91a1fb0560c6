import copy
import logging
from typing import Any, Dict, Iterator, Optional

from flowgraph.core.Errors import PortNotFound
from flowgraph.core.GraphPrimitives import NodeContent, NodeId, normalize_id
from flowgraph.core.NodePort import Endpoint, Port, port_name
from flowgraph.core.Types import ContentKind, PortSide

logger = logging.getLogger(__name__)


class Node:
    """A placed node: payload, rendered content and two ordered port maps.

    Port maps are plain dicts; insertion order is the port order and the
    names are always ``input_1..input_n`` / ``output_1..output_n``.
    """

    def __init__(self,
                 node_id: NodeId,
                 name: str,
                 data: Optional[Dict[str, Any]] = None,
                 style_class: str = "",
                 content: Optional[NodeContent] = None,
                 x: float = 0.0,
                 y: float = 0.0):
        self.id = node_id
        self.name = name
        self.data: Dict[str, Any] = data if data is not None else {}
        self.style_class = style_class
        self.content: NodeContent = content if content is not None else NodeContent.plain("")
        self.inputs: Dict[str, Port] = {}
        self.outputs: Dict[str, Port] = {}
        self.x = x
        self.y = y

    def __repr__(self):
        return f"Node({self.id}, '{self.name}', in={len(self.inputs)}, out={len(self.outputs)})"

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------

    def ports(self, side: PortSide) -> Dict[str, Port]:
        return self.inputs if side == PortSide.INPUT else self.outputs

    def get_port(self, side: PortSide, name: str) -> Port:
        port = self.ports(side).get(name)
        if port is None:
            raise PortNotFound(self.id, name, side)
        return port

    def has_port(self, side: PortSide, name: str) -> bool:
        return name in self.ports(side)

    def add_port(self, side: PortSide) -> str:
        ports = self.ports(side)
        name = port_name(side, len(ports) + 1)
        ports[name] = Port(self.id, name, side)
        logger.debug(f"Node {self.id}: added {side.value} port {name}")
        return name

    def iter_ports(self) -> Iterator[Port]:
        yield from self.inputs.values()
        yield from self.outputs.values()

    def connection_count(self) -> int:
        return sum(len(p.connections) for p in self.iter_ports())

    # ------------------------------------------------------------------
    # Copy / wire format
    # ------------------------------------------------------------------

    def copy(self) -> "Node":
        clone = Node(self.id, self.name, copy.deepcopy(self.data), self.style_class,
                     NodeContent(self.content.kind, copy.deepcopy(self.content.payload)),
                     self.x, self.y)
        clone.inputs = {name: port.copy() for name, port in self.inputs.items()}
        clone.outputs = {name: port.copy() for name, port in self.outputs.items()}
        return clone

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "data": copy.deepcopy(self.data),
            "styleClass": self.style_class,
            "content": copy.deepcopy(self.content.payload),
            "contentKind": self.content.kind.value,
            "inputs": {name: port.to_dict() for name, port in self.inputs.items()},
            "outputs": {name: port.to_dict() for name, port in self.outputs.items()},
            "x": self.x,
            "y": self.y,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Node":
        node_id = normalize_id(raw["id"])
        content = NodeContent(ContentKind(raw.get("contentKind", ContentKind.PLAIN.value)),
                              copy.deepcopy(raw.get("content", "")))
        node = cls(node_id, raw.get("name", ""), copy.deepcopy(raw.get("data") or {}),
                   raw.get("styleClass", ""), content,
                   raw.get("x", 0.0), raw.get("y", 0.0))
        for side, key in ((PortSide.INPUT, "inputs"), (PortSide.OUTPUT, "outputs")):
            ports = node.ports(side)
            for name, raw_port in (raw.get(key) or {}).items():
                endpoints = [Endpoint.from_dict(e) for e in raw_port.get("connections", [])]
                if side == PortSide.INPUT:
                    for endpoint in endpoints:
                        endpoint.points = []
                ports[name] = Port(node_id, name, side, endpoints)
        return node
