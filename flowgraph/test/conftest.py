import pytest

from flowgraph.core import EventTypes as ev
from flowgraph.core.EventBus import EventBus
from flowgraph.core.GraphStore import GraphStore
from flowgraph.core.ModuleManager import ModuleManager


class EventLog:
    """Records every bus event as (name, payload) in emission order."""

    def __init__(self, bus: EventBus):
        self.entries = []
        for name in ev.ALL_EVENTS:
            bus.on(name, lambda payload, name=name: self.entries.append((name, payload)))

    def names(self):
        return [name for name, _ in self.entries]

    def of(self, name):
        return [payload for n, payload in self.entries if n == name]

    def clear(self):
        self.entries.clear()


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def modules(store):
    return ModuleManager(store)


@pytest.fixture
def events(store):
    return EventLog(store.bus)
