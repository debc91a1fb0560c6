import logging
import uuid
from typing import Iterable

from flowgraph.core.GraphPrimitives import NodeId
from flowgraph.core.Types import IdPolicy

logger = logging.getLogger(__name__)


class IdAllocator:
    """Hands out node ids under one fixed policy.

    SEQUENTIAL yields 1, 2, 3, ... and can be reseeded from an imported id set.
    RANDOM yields version-4 UUID strings and keeps no state.
    """

    def __init__(self, policy: IdPolicy = IdPolicy.SEQUENTIAL):
        self.policy = policy
        self._next = 1

    @property
    def next_value(self) -> int:
        return self._next

    def allocate(self) -> NodeId:
        if self.policy == IdPolicy.RANDOM:
            return str(uuid.uuid4())
        node_id = self._next
        self._next += 1
        return node_id

    def reset_from(self, ids: Iterable[NodeId]) -> None:
        """Reseed the counter to one past the largest numeric id in ``ids``.

        String ids are ignored; an id set without numeric ids restarts at 1.
        """
        if self.policy == IdPolicy.RANDOM:
            return
        numeric = [i for i in ids if isinstance(i, int) and not isinstance(i, bool)]
        self._next = max(numeric) + 1 if numeric else 1
        logger.debug(f"Sequential id counter reseeded to {self._next}")
