import pytest

from flowgraph.core.Errors import FlowGraphError, InvalidEventName, InvalidListener
from flowgraph.core.EventBus import EventBus


class TestEventBus:

    def setup_method(self):
        self.bus = EventBus()
        self.calls = []

    def test_listeners_run_in_registration_order(self):
        """Listeners are called synchronously in the order they subscribed."""
        self.bus.on("nodeCreated", lambda p: self.calls.append(("first", p)))
        self.bus.on("nodeCreated", lambda p: self.calls.append(("second", p)))

        self.bus.emit("nodeCreated", 7)

        assert self.calls == [("first", 7), ("second", 7)]

    def test_emit_without_listeners_is_noop(self):
        self.bus.emit("nothingListens", {"a": 1})

    def test_off_removes_first_registration_only(self):
        listener = lambda p: self.calls.append(p)
        self.bus.on("zoom", listener)
        self.bus.on("zoom", listener)

        assert self.bus.off("zoom", listener) is True
        self.bus.emit("zoom", 1.1)

        assert self.calls == [1.1]
        assert self.bus.listener_count("zoom") == 1

    def test_off_unknown_listener_returns_false(self):
        assert self.bus.off("zoom", lambda p: None) is False

    def test_non_callable_listener_is_rejected(self):
        with pytest.raises(InvalidListener):
            self.bus.on("zoom", "not callable")

    def test_listener_check_runs_before_event_name_check(self):
        with pytest.raises(InvalidListener):
            self.bus.on(42, None)

    def test_non_string_event_name_is_rejected(self):
        with pytest.raises(InvalidEventName):
            self.bus.on(42, lambda p: None)

    def test_errors_are_typed(self):
        with pytest.raises(TypeError):
            self.bus.on("zoom", 3)
        with pytest.raises(FlowGraphError):
            self.bus.on("zoom", 3)

    def test_raising_listener_stops_delivery_and_propagates(self):
        """There is no error isolation: later listeners never see the event."""
        def boom(payload):
            raise RuntimeError("listener failed")

        self.bus.on("nodeMoved", boom)
        self.bus.on("nodeMoved", lambda p: self.calls.append(p))

        with pytest.raises(RuntimeError, match="listener failed"):
            self.bus.emit("nodeMoved", 1)
        assert self.calls == []

    def test_listener_may_unsubscribe_during_emit(self):
        def once(payload):
            self.calls.append(payload)
            self.bus.off("import", once)

        self.bus.on("import", once)
        self.bus.emit("import", "import")
        self.bus.emit("import", "import")

        assert self.calls == ["import"]
