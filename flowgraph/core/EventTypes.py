"""
Event names and payload shapes published on the EventBus.
All payloads are plain values or dicts so they can be forwarded to clients as JSON.
"""
from typing import Dict, TypedDict, Union


class ConnectionEvent(TypedDict):
    sourceNode: Union[int, str]
    targetNode: Union[int, str]
    outputPort: str
    inputPort: str


class ConnectionStartEvent(TypedDict):
    sourceNode: Union[int, str]
    outputPort: str


class TranslateEvent(TypedDict):
    x: float
    y: float


class PortRemovedEvent(TypedDict):
    node: Union[int, str]
    side: str
    port: str
    renamed: Dict[str, str]


NODE_CREATED = "nodeCreated"
NODE_REMOVED = "nodeRemoved"
NODE_SELECTED = "nodeSelected"
NODE_UNSELECTED = "nodeUnselected"
NODE_MOVED = "nodeMoved"
NODE_DATA_CHANGED = "nodeDataChanged"

PORT_REMOVED = "portRemoved"

CONNECTION_START = "connectionStart"
CONNECTION_CREATED = "connectionCreated"
CONNECTION_REMOVED = "connectionRemoved"
CONNECTION_CANCEL = "connectionCancel"
CONNECTION_SELECTED = "connectionSelected"
CONNECTION_UNSELECTED = "connectionUnselected"

ADD_REROUTE = "addReroute"
REMOVE_REROUTE = "removeReroute"
REROUTE_MOVED = "rerouteMoved"

MODULE_CREATED = "moduleCreated"
MODULE_CHANGED = "moduleChanged"
MODULE_REMOVED = "moduleRemoved"
MODULE_CLEARED = "moduleCleared"

ZOOM = "zoom"
TRANSLATE = "translate"
EXPORT = "export"
IMPORT = "import"
CLEAR = "clear"

ALL_EVENTS = (
    NODE_CREATED, NODE_REMOVED, NODE_SELECTED, NODE_UNSELECTED, NODE_MOVED,
    NODE_DATA_CHANGED, PORT_REMOVED, CONNECTION_START, CONNECTION_CREATED, CONNECTION_REMOVED,
    CONNECTION_CANCEL, CONNECTION_SELECTED, CONNECTION_UNSELECTED, ADD_REROUTE,
    REMOVE_REROUTE, REROUTE_MOVED, MODULE_CREATED, MODULE_CHANGED, MODULE_REMOVED,
    MODULE_CLEARED, ZOOM, TRANSLATE, EXPORT, IMPORT, CLEAR,
)
