import re
from typing import Any, Dict, List, Optional

from flowgraph.core.GraphPrimitives import NodeId, Point, normalize_id
from flowgraph.core.Types import PortSide

_PORT_NAME = re.compile(r"^(input|output)_(\d+)$")


def port_name(side: PortSide, index: int) -> str:
    return f"{side.value}_{index}"


def port_index(name: str) -> int:
    """Return the 1-based position encoded in a port name such as ``output_3``."""
    match = _PORT_NAME.match(name)
    if match is None:
        raise ValueError(f"Malformed port name '{name}'")
    return int(match.group(2))


class Endpoint:
    """One end of a connection as seen from the port that stores it.

    Output-side endpoints carry the reroute points of the connection, input-side
    endpoints always have an empty ``points`` list.
    """

    def __init__(self, node: NodeId, port: str, points: Optional[List[Point]] = None):
        self.node = node
        self.port = port
        self.points: List[Point] = list(points) if points else []

    def matches(self, node: NodeId, port: str) -> bool:
        return self.node == node and self.port == port

    def copy(self) -> "Endpoint":
        return Endpoint(self.node, self.port, self.points)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"node": self.node, "port": self.port}
        if self.points:
            out["points"] = [p.to_dict() for p in self.points]
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Endpoint":
        points = [Point(float(p["x"]), float(p["y"])) for p in raw.get("points") or []]
        return cls(normalize_id(raw["node"]), raw["port"], points)

    def __eq__(self, other):
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self.node == other.node and self.port == other.port and self.points == other.points

    def __repr__(self):
        return f"Endpoint({self.node}.{self.port}, points={len(self.points)})"


class Port:
    def __init__(self, node_id: NodeId, port_name: str, side: PortSide,
                 connections: Optional[List[Endpoint]] = None):
        self.node_id = node_id
        self.port_name = port_name
        self.side = side
        self.connections: List[Endpoint] = connections if connections is not None else []

    def isInputPort(self) -> bool:
        return self.side == PortSide.INPUT

    def isOutputPort(self) -> bool:
        return self.side == PortSide.OUTPUT

    def isConnected(self) -> bool:
        return len(self.connections) > 0

    def find(self, node: NodeId, port: str) -> Optional[Endpoint]:
        for endpoint in self.connections:
            if endpoint.matches(node, port):
                return endpoint
        return None

    def discard(self, node: NodeId, port: str) -> bool:
        """Drop the first endpoint pointing at ``node.port``; False if there was none."""
        for i, endpoint in enumerate(self.connections):
            if endpoint.matches(node, port):
                del self.connections[i]
                return True
        return False

    def copy(self) -> "Port":
        return Port(self.node_id, self.port_name, self.side, [e.copy() for e in self.connections])

    def to_dict(self) -> Dict[str, Any]:
        return {"connections": [e.to_dict() for e in self.connections]}

    def __repr__(self):
        return f"Port({self.node_id}.{self.port_name}, connections={len(self.connections)})"
