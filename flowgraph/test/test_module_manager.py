import pytest

from flowgraph.core.Errors import CannotRemoveDefaultModule, ModuleAlreadyExists, ModuleNotFound


class TestModuleManager:

    def test_home_exists_and_is_current(self, modules):
        assert modules.names() == ["Home"]
        assert modules.current == "Home"

    def test_create_and_switch(self, store, modules, events):
        modules.create("Sub")
        modules.switch_to("Sub")
        node_id = store.add_node("inside", 0, 0)

        assert modules.current == "Sub"
        assert store.get_module_of(node_id) == "Sub"
        assert events.of("moduleCreated") == ["Sub"]
        assert events.of("moduleChanged") == ["Sub"]

    def test_create_existing_module_fails(self, modules):
        modules.create("Sub")
        with pytest.raises(ModuleAlreadyExists):
            modules.create("Sub")
        with pytest.raises(ModuleAlreadyExists):
            modules.create("Home")

    def test_switch_to_unknown_module(self, modules):
        with pytest.raises(ModuleNotFound):
            modules.switch_to("Ghost")
        assert modules.current == "Home"

    def test_removing_home_is_rejected(self, modules):
        with pytest.raises(CannotRemoveDefaultModule):
            modules.remove("Home")
        assert "Home" in modules.names()

    def test_removing_active_module_switches_home_first(self, store, modules, events):
        modules.create("Sub")
        modules.switch_to("Sub")
        node_id = store.add_node("doomed", 0, 0)
        events.clear()

        modules.remove("Sub")

        assert events.names() == ["moduleChanged", "moduleRemoved"]
        assert events.of("moduleChanged") == ["Home"]
        assert modules.current == "Home"
        assert modules.names() == ["Home"]
        assert not store.has_node(node_id)

    def test_remove_unknown_module(self, modules):
        with pytest.raises(ModuleNotFound):
            modules.remove("Ghost")

    def test_clear_module(self, store, modules, events):
        modules.create("Sub")
        keep = store.add_node("keep", 0, 0)
        store.add_node("gone", 0, 0, module="Sub")
        store.add_node("gone", 0, 0, module="Sub")

        assert modules.clear("Sub") == 2
        assert store.node_ids("Sub") == []
        assert store.node_ids() == [keep]
        assert store.find_nodes_by_name("gone") == []
        assert events.of("moduleCleared") == ["Sub"]
