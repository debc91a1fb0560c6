from typing import Any, NamedTuple, Union

from flowgraph.core.EventTypes import ConnectionEvent
from flowgraph.core.Types import ContentKind

NodeId = Union[int, str]


def normalize_id(value: Any) -> NodeId:
    """Resolve an incoming node id to its canonical form.

    Integers and strings made only of digits map to ``int`` (sequential ids
    arrive as strings from JSON object keys and URLs); anything else is kept
    as a string.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid node id {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.isdigit():
            return int(value)
        if value:
            return value
    raise ValueError(f"Invalid node id {value!r}")


# A directed connection from an output port to an input port.
# Hashable, so it doubles as the key for selection and reroute lookups.
class Edge(NamedTuple):
    source_node: NodeId
    output_port: str
    target_node: NodeId
    input_port: str

    def __repr__(self):
        return f"Edge({self.source_node}.{self.output_port} -> {self.target_node}.{self.input_port})"

    def as_payload(self) -> ConnectionEvent:
        return {
            "sourceNode": self.source_node,
            "targetNode": self.target_node,
            "outputPort": self.output_port,
            "inputPort": self.input_port,
        }

    @classmethod
    def of(cls, source_node, output_port, target_node, input_port) -> "Edge":
        return cls(normalize_id(source_node), output_port, normalize_id(target_node), input_port)


class Point(NamedTuple):
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


class NodeContent(NamedTuple):
    """What a node renders. The engine stores it and never looks inside."""
    kind: ContentKind
    payload: Any

    @classmethod
    def plain(cls, markup: str = "") -> "NodeContent":
        return cls(ContentKind.PLAIN, markup)

    @classmethod
    def template(cls, name: str) -> "NodeContent":
        return cls(ContentKind.TEMPLATE, name)

    @classmethod
    def component(cls, descriptor: Any) -> "NodeContent":
        return cls(ContentKind.COMPONENT, descriptor)
