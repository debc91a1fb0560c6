"""
Graph serializer: JSON-safe views of the store for the HTTP API.

The full wire format (``GraphStore.export_all``) is node-centric; these
helpers add the flat, client-friendly shapes: node summaries, an edge list
with stable string ids, and path geometry.
"""
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from flowgraph.core.GraphPrimitives import Edge, Point
from flowgraph.core.GraphStore import GraphStore
from flowgraph.core.Node import Node
from flowgraph.core.PathSynthesizer import BezierSegment

# SerializedNode keys: id, name, styleClass, contentKind, data, inputs, outputs, position
# SerializedEdge keys: id, sourceNode, outputPort, targetNode, inputPort, points
# SerializedModule keys: name, current, nodes, edges


# ── Helpers ───────────────────────────────────────────────────────────────────

def edge_id(edge: Edge) -> str:
    return f"{edge.source_node}.{edge.output_port}->{edge.target_node}.{edge.input_port}"


def _point(p: Point) -> Dict[str, float]:
    return {"x": p.x, "y": p.y}


# ── Public API ────────────────────────────────────────────────────────────────

def serialize_node(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "styleClass": node.style_class,
        "contentKind": node.content.kind.value,
        "data": node.data,
        "inputs": list(node.inputs),
        "outputs": list(node.outputs),
        "position": {"x": node.x, "y": node.y},
    }


def serialize_edge(edge: Edge, points: Sequence[Point] = ()) -> Dict[str, Any]:
    out = {"id": edge_id(edge), **edge.as_payload()}
    out["points"] = [_point(p) for p in points]
    return out


def serialize_module(store: GraphStore, name: str) -> Dict[str, Any]:
    nodes = [serialize_node(store.get_node(node_id)) for node_id in store.node_ids(name)]
    edges = [serialize_edge(edge, store.get_reroute_points(edge)) for edge in store.connections(name)]
    return {
        "name": name,
        "current": name == store.current_module,
        "nodes": nodes,
        "edges": edges,
    }


def serialize_segments(segments: Sequence[BezierSegment]) -> List[Dict[str, Any]]:
    return [
        {
            "mode": s.mode.name.lower(),
            "start": _point(s.start),
            "control1": _point(s.control1),
            "control2": _point(s.control2),
            "end": _point(s.end),
            "d": s.to_svg(),
        }
        for s in segments
    ]
