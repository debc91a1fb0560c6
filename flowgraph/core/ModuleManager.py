import logging
from typing import List, Optional

from flowgraph.core import EventTypes as ev
from flowgraph.core.Errors import CannotRemoveDefaultModule, ModuleAlreadyExists, ModuleNotFound
from flowgraph.core.GraphStore import DEFAULT_MODULE, GraphStore

logger = logging.getLogger(__name__)


class ModuleManager:
    """Named partitions of the graph and the pointer to the active one.

    ``Home`` is created with the store and can never be removed.
    """

    def __init__(self, store: GraphStore):
        self.store = store

    @property
    def current(self) -> str:
        return self.store.current_module

    def names(self) -> List[str]:
        return self.store.module_names()

    def exists(self, name: str) -> bool:
        return name in self.store.modules

    def create(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Module name must be a non-empty string, got {name!r}")
        if self.exists(name):
            raise ModuleAlreadyExists(f"Module '{name}' already exists")
        self.store._create_module(name)
        logger.debug(f"Created module '{name}'")
        self.store.bus.emit(ev.MODULE_CREATED, name)

    def switch_to(self, name: str) -> None:
        if not self.exists(name):
            raise ModuleNotFound(name)
        self.store.current_module = name
        logger.debug(f"Switched to module '{name}'")
        self.store.bus.emit(ev.MODULE_CHANGED, name)

    def remove(self, name: str) -> None:
        if name == DEFAULT_MODULE:
            raise CannotRemoveDefaultModule(f"Module '{DEFAULT_MODULE}' cannot be removed")
        if not self.exists(name):
            raise ModuleNotFound(name)
        if self.current == name:
            self.switch_to(DEFAULT_MODULE)
        self.store._drop_module(name)
        logger.debug(f"Removed module '{name}'")
        self.store.bus.emit(ev.MODULE_REMOVED, name)

    def clear(self, name: Optional[str] = None) -> int:
        """Drop every node of a module (the active one by default); returns the count."""
        name = self.current if name is None else name
        if not self.exists(name):
            raise ModuleNotFound(name)
        count = self.store._clear_module(name)
        logger.debug(f"Cleared {count} nodes from module '{name}'")
        self.store.bus.emit(ev.MODULE_CLEARED, name)
        return count
