"""
Graph REST routes.

All routes are mounted under /api by main.py and operate on the
process-wide ``editor_state``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, NoReturn, Optional, Union

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel, Field

from flowgraph.core.Errors import (
    CannotRemoveDefaultModule,
    CrossModuleEdge,
    FlowGraphError,
    ModuleAlreadyExists,
)
from flowgraph.core.GraphPrimitives import Edge
from flowgraph.core import PathSynthesizer
from flowgraph.core.Types import ContentKind
from flowgraph.server.serializers.graph_serializer import (
    serialize_edge,
    serialize_module,
    serialize_node,
    serialize_segments,
)
from flowgraph.server.state import editor_state

logger = logging.getLogger(__name__)

router = APIRouter()

_CONFLICTS = (ModuleAlreadyExists, CrossModuleEdge, CannotRemoveDefaultModule)


def _fail(exc: Exception) -> NoReturn:
    """Translate a domain error into the matching HTTP status."""
    if isinstance(exc, LookupError):
        status = 404
    elif isinstance(exc, _CONFLICTS):
        status = 409
    else:
        status = 400
    logger.warning(f"Request rejected ({status}): {exc}")
    raise HTTPException(status_code=status, detail=str(exc))


# ── Bodies ────────────────────────────────────────────────────────────────────

class ModuleBody(BaseModel):
    name: str


class CreateNodeBody(BaseModel):
    name: str
    inputs: int = 0
    outputs: int = 0
    x: float = 0.0
    y: float = 0.0
    style_class: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    content: Any = ""
    content_kind: ContentKind = ContentKind.PLAIN
    module: Optional[str] = None


class PositionBody(BaseModel):
    x: float
    y: float


class PayloadBody(BaseModel):
    data: Dict[str, Any]


class FieldBody(BaseModel):
    key: str
    value: Any = None


class ConnectionBody(BaseModel):
    source: Union[int, str]
    target: Union[int, str]
    output_port: str
    input_port: str

    def edge(self) -> Edge:
        return Edge.of(self.source, self.output_port, self.target, self.input_port)


class ReroutePointBody(ConnectionBody):
    x: float
    y: float
    index: Optional[int] = None


class PointBody(BaseModel):
    x: float
    y: float


class PathBody(BaseModel):
    start: PointBody
    end: PointBody
    points: List[PointBody] = Field(default_factory=list)
    curvature: Optional[float] = None
    curvature_end: Optional[float] = None
    curvature_mid: Optional[float] = None
    fix_curvature: Optional[bool] = None


class TemplateBody(BaseModel):
    name: str
    content: Any
    props: Dict[str, Any] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)
    replace: bool = False


def _edge_query(source: str, target: str, output_port: str, input_port: str) -> Edge:
    return Edge.of(source, output_port, target, input_port)


# ── GET /modules ──────────────────────────────────────────────────────────────

@router.get("/modules")
async def list_modules() -> Dict[str, Any]:
    return {"modules": editor_state.modules.names(), "current": editor_state.modules.current}


# ── POST /modules ─────────────────────────────────────────────────────────────

@router.post("/modules", status_code=201)
async def create_module(body: ModuleBody) -> Dict[str, Any]:
    try:
        editor_state.modules.create(body.name)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"name": body.name}


# ── PUT /modules/current ──────────────────────────────────────────────────────

@router.put("/modules/current")
async def switch_module(body: ModuleBody) -> Dict[str, Any]:
    try:
        editor_state.modules.switch_to(body.name)
    except FlowGraphError as exc:
        _fail(exc)
    return {"current": editor_state.modules.current}


# ── GET /modules/:name ────────────────────────────────────────────────────────

@router.get("/modules/{name}")
async def get_module(name: str) -> Dict[str, Any]:
    try:
        return serialize_module(editor_state.store, name)
    except FlowGraphError as exc:
        _fail(exc)


# ── DELETE /modules/:name ─────────────────────────────────────────────────────

@router.delete("/modules/{name}")
async def remove_module(name: str) -> Dict[str, Any]:
    try:
        editor_state.modules.remove(name)
    except FlowGraphError as exc:
        _fail(exc)
    return {"ok": True, "current": editor_state.modules.current}


# ── DELETE /modules/:name/nodes ───────────────────────────────────────────────

@router.delete("/modules/{name}/nodes")
async def clear_module(name: str) -> Dict[str, Any]:
    try:
        removed = editor_state.modules.clear(name)
    except FlowGraphError as exc:
        _fail(exc)
    return {"removed": removed}


# ── GET /nodes?name= ──────────────────────────────────────────────────────────

@router.get("/nodes")
async def find_nodes(name: str = Query(...)) -> Dict[str, Any]:
    return {"ids": editor_state.store.find_nodes_by_name(name)}


# ── POST /nodes ───────────────────────────────────────────────────────────────

@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    store = editor_state.store
    try:
        node_id = store.add_node(body.name, body.inputs, body.outputs, body.x, body.y,
                                 body.style_class, body.data, body.content, body.content_kind,
                                 module=body.module)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return serialize_node(store.get_node(node_id))


# ── GET /nodes/:id ────────────────────────────────────────────────────────────

@router.get("/nodes/{node_id}")
async def get_node(node_id: str) -> Dict[str, Any]:
    store = editor_state.store
    try:
        node = store.get_node(node_id)
        return {"module": store.get_module_of(node.id), **node.to_dict()}
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)


# ── DELETE /nodes/:id ─────────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}")
async def delete_node(node_id: str) -> Dict[str, Any]:
    try:
        editor_state.store.remove_node(node_id)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"ok": True}


# ── PUT /nodes/:id/position ───────────────────────────────────────────────────

@router.put("/nodes/{node_id}/position")
async def move_node(node_id: str, body: PositionBody) -> Dict[str, Any]:
    try:
        editor_state.store.move_node(node_id, body.x, body.y)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"ok": True}


# ── PUT /nodes/:id/data ───────────────────────────────────────────────────────

@router.put("/nodes/{node_id}/data")
async def replace_payload(node_id: str, body: PayloadBody) -> Dict[str, Any]:
    try:
        editor_state.store.update_node_payload(node_id, body.data)
        return {"data": editor_state.store.get_node(node_id).data}
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)


# ── PATCH /nodes/:id/data ─────────────────────────────────────────────────────

@router.patch("/nodes/{node_id}/data")
async def update_payload_field(node_id: str, body: FieldBody) -> Dict[str, Any]:
    try:
        editor_state.store.update_node_field(node_id, body.key, body.value)
        return {"data": editor_state.store.get_node(node_id).data}
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)


# ── POST /nodes/:id/ports/:side ───────────────────────────────────────────────

@router.post("/nodes/{node_id}/ports/{side}", status_code=201)
async def add_port(node_id: str, side: str) -> Dict[str, Any]:
    try:
        return {"port": editor_state.store.add_port(node_id, side)}
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)


# ── DELETE /nodes/:id/ports/:side/:port ───────────────────────────────────────

@router.delete("/nodes/{node_id}/ports/{side}/{port}")
async def remove_port(node_id: str, side: str, port: str) -> Dict[str, Any]:
    try:
        return {"renamed": editor_state.store.remove_port(node_id, side, port)}
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)


# ── GET /connections ──────────────────────────────────────────────────────────

@router.get("/connections")
async def list_connections(module: Optional[str] = None) -> List[Dict[str, Any]]:
    store = editor_state.store
    try:
        return [serialize_edge(e, store.get_reroute_points(e)) for e in store.connections(module)]
    except FlowGraphError as exc:
        _fail(exc)


# ── POST /connections ─────────────────────────────────────────────────────────

@router.post("/connections")
async def create_connection(body: ConnectionBody) -> Dict[str, Any]:
    try:
        created = editor_state.store.add_connection(body.source, body.target,
                                                    body.output_port, body.input_port)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"created": created}


# ── DELETE /connections ───────────────────────────────────────────────────────

@router.delete("/connections")
async def delete_connection(source: str, target: str, output_port: str, input_port: str) -> Dict[str, Any]:
    removed = editor_state.store.remove_connection(source, target, output_port, input_port)
    return {"removed": removed}


# ── POST /connections/points ──────────────────────────────────────────────────

@router.post("/connections/points", status_code=201)
async def add_reroute_point(body: ReroutePointBody) -> Dict[str, Any]:
    try:
        index = editor_state.store.add_reroute_point(body.edge(), body.x, body.y, body.index)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"index": index}


# ── PUT /connections/points/:index ────────────────────────────────────────────

@router.put("/connections/points/{index}")
async def move_reroute_point(index: int, body: ReroutePointBody) -> Dict[str, Any]:
    try:
        editor_state.store.move_reroute_point(body.edge(), index, body.x, body.y)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"ok": True}


# ── DELETE /connections/points/:index ─────────────────────────────────────────

@router.delete("/connections/points/{index}")
async def remove_reroute_point(index: int, source: str, target: str,
                               output_port: str, input_port: str) -> Dict[str, Any]:
    try:
        point = editor_state.store.remove_reroute_point(
            _edge_query(source, target, output_port, input_port), index)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"removed": point.to_dict()}


# ── POST /paths ───────────────────────────────────────────────────────────────

@router.post("/paths")
async def synthesize_path(body: PathBody) -> Dict[str, Any]:
    session = editor_state.session
    curvature_end = session.reroute_curvature_start_end if body.curvature_end is None else body.curvature_end
    curvature_mid = session.reroute_curvature if body.curvature_mid is None else body.curvature_mid
    curvature = session.curvature if body.curvature is None else body.curvature
    fix = session.reroute_fix_curvature if body.fix_curvature is None else body.fix_curvature

    start = (body.start.x, body.start.y)
    end = (body.end.x, body.end.y)
    points = [(p.x, p.y) for p in body.points]
    segments = PathSynthesizer.path(start, end, points, curvature_end, curvature_mid, curvature)
    return {
        "segments": serialize_segments(segments),
        "d": PathSynthesizer.path_description(start, end, points, curvature_end, curvature_mid,
                                              curvature, fix),
    }


# ── Templates ─────────────────────────────────────────────────────────────────

@router.get("/templates")
async def list_templates() -> Dict[str, Any]:
    return {"templates": editor_state.store.templates.names()}


@router.post("/templates", status_code=201)
async def register_template(body: TemplateBody) -> Dict[str, Any]:
    try:
        editor_state.store.templates.register(body.name, body.content, body.props,
                                              body.options, replace=body.replace)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"name": body.name}


# ── GET /export ───────────────────────────────────────────────────────────────

@router.get("/export")
async def export_graph() -> Dict[str, Any]:
    return editor_state.store.export_all()


# ── POST /import ──────────────────────────────────────────────────────────────

@router.post("/import")
async def import_graph(graph: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        editor_state.store.import_all(graph)
    except (FlowGraphError, ValueError) as exc:
        _fail(exc)
    return {"ok": True, "modules": editor_state.modules.names()}
