"""
Exceptions raised by the flow graph engine.

Lookup failures derive from ``LookupError`` and caller mistakes from
``ValueError``/``TypeError`` so plain ``except ValueError`` handlers keep
working alongside ``except FlowGraphError``.
"""


class FlowGraphError(Exception):
    """Base exception for all flowgraph errors."""
    pass


# ── Lookups ───────────────────────────────────────────────────────────────────

class NodeNotFound(FlowGraphError, LookupError):
    """Raised when a node id does not resolve in any module."""

    def __init__(self, node_id):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found")


class PortNotFound(FlowGraphError, LookupError):
    """Raised when a node has no port of the given name on the given side."""

    def __init__(self, node_id, port_name, side=None):
        self.node_id = node_id
        self.port_name = port_name
        self.side = side
        where = f" {side.value}" if side is not None else ""
        super().__init__(f"Node '{node_id}' has no{where} port '{port_name}'")


class ModuleNotFound(FlowGraphError, LookupError):
    """Raised when a module name is unknown."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Module '{name}' not found")


class ConnectionNotFound(FlowGraphError, LookupError):
    """Raised when an operation needs an existing connection and there is none."""

    def __init__(self, edge):
        self.edge = edge
        super().__init__(f"Connection {edge!r} not found")


class ReroutePointNotFound(FlowGraphError, LookupError):
    """Raised when a reroute point index is out of range."""

    def __init__(self, edge, index):
        self.edge = edge
        self.index = index
        super().__init__(f"Connection {edge!r} has no reroute point at index {index}")


class TemplateNotFound(FlowGraphError, LookupError):
    """Raised when a node template name was never registered."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Template '{name}' is not registered")


# ── Conflicts ─────────────────────────────────────────────────────────────────

class CrossModuleEdge(FlowGraphError, ValueError):
    """Raised when a connection would join nodes living in different modules."""
    pass


class CannotRemoveDefaultModule(FlowGraphError, ValueError):
    """Raised on any attempt to remove the Home module."""
    pass


class ModuleAlreadyExists(FlowGraphError, ValueError):
    """Raised when creating a module whose name is taken."""
    pass


# ── Caller errors ─────────────────────────────────────────────────────────────

class InvalidArity(FlowGraphError, ValueError):
    """Raised when a node is requested with a negative number of ports."""
    pass


class InvalidListener(FlowGraphError, TypeError):
    """Raised when an event listener is not callable."""
    pass


class InvalidEventName(FlowGraphError, TypeError):
    """Raised when an event name is not a string."""
    pass
