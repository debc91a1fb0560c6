"""
Port removal with contiguous renaming.

Removing ``output_2`` from a node with three outputs must leave ``output_1``
and ``output_2`` (the former ``output_3``) with every remote reference still
resolving. The work happens in three ordered steps:

1. detach every connection on the doomed port through the store's regular
   symmetric removal (so ``connectionRemoved`` fires for each),
2. drop the port and rename the survivors ``<side>_1..<side>_n`` keeping
   their connection lists,
3. rewrite the endpoints on neighbouring nodes that still name a port by its
   old name.

Step 3 must run after step 2 and only for ports whose name changed.

Once all three are done ``portRemoved`` carries the old -> new names so
anything holding an edge by port name can follow the rename.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Tuple

from flowgraph.core import EventTypes as ev
from flowgraph.core.Errors import PortNotFound
from flowgraph.core.EventTypes import PortRemovedEvent
from flowgraph.core.GraphPrimitives import NodeId, normalize_id
from flowgraph.core.NodePort import Endpoint, Port, port_name
from flowgraph.core.Types import PortSide

if TYPE_CHECKING:
    from flowgraph.core.GraphStore import GraphStore

logger = logging.getLogger(__name__)


class PortRenumberer:
    def __init__(self, store: "GraphStore"):
        self.store = store

    def remove_port(self, node_id: NodeId, side: PortSide, name: str) -> Dict[str, str]:
        """Remove ``name`` from the node's ``side`` ports.

        Returns the old-name → new-name mapping of the ports that were renamed.
        """
        node_id = normalize_id(node_id)
        side = PortSide.parse(side)
        module, node = self.store._locate(node_id)
        if not node.has_port(side, name):
            raise PortNotFound(node_id, name, side)

        self._detach(node_id, side, node.get_port(side, name))
        renamed = self._rebuild(node, side, name)
        self._remap_remote(module, node_id, side, renamed)

        mapping = {old: new for old, (new, _) in renamed.items()}
        logger.debug(f"Removed {side.value} port {name} from node {node_id}, renamed {mapping}")
        removed: PortRemovedEvent = {"node": node_id, "side": side.value, "port": name, "renamed": mapping}
        self.store.bus.emit(ev.PORT_REMOVED, removed)
        return mapping

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _detach(self, node_id: NodeId, side: PortSide, port: Port) -> None:
        for endpoint in list(port.connections):
            if side == PortSide.OUTPUT:
                self.store.remove_connection(node_id, endpoint.node, port.port_name, endpoint.port)
            else:
                self.store.remove_connection(endpoint.node, node_id, endpoint.port, port.port_name)

    def _rebuild(self, node, side: PortSide, removed: str) -> Dict[str, Tuple[str, Port]]:
        survivors = [p for n, p in node.ports(side).items() if n != removed]
        rebuilt: Dict[str, Port] = {}
        renamed: Dict[str, Tuple[str, Port]] = {}
        for index, port in enumerate(survivors, start=1):
            new_name = port_name(side, index)
            if port.port_name != new_name:
                renamed[port.port_name] = (new_name, port)
                port.port_name = new_name
            rebuilt[new_name] = port
        if side == PortSide.INPUT:
            node.inputs = rebuilt
        else:
            node.outputs = rebuilt
        return renamed

    def _remap_remote(self, module: str, node_id: NodeId, side: PortSide,
                      renamed: Dict[str, Tuple[str, Port]]) -> None:
        nodes = self.store.modules[module]
        # Resolve every remote endpoint first, then rename, so no endpoint is rewritten twice.
        rewrites: List[Tuple[Endpoint, str]] = []
        for old_name, (new_name, port) in renamed.items():
            for endpoint in port.connections:
                remote_port = nodes[endpoint.node].get_port(side.opposite, endpoint.port)
                remote = remote_port.find(node_id, old_name)
                if remote is not None:
                    rewrites.append((remote, new_name))
        for remote, new_name in rewrites:
            remote.port = new_name
