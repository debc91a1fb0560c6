import pytest
from fastapi.testclient import TestClient

from flowgraph.server.main import app
from flowgraph.server.state import editor_state


@pytest.fixture
def client():
    editor_state.reset()
    with TestClient(app) as client:
        yield client


def _node(client, name, inputs=0, outputs=0, **extra):
    res = client.post("/api/nodes", json={"name": name, "inputs": inputs, "outputs": outputs, **extra})
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _edge_params(source, target, output_port="output_1", input_port="input_1"):
    return {"source": source, "target": target, "output_port": output_port, "input_port": input_port}


class TestGraphRoutes:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_modules_lifecycle(self, client):
        assert client.post("/api/modules", json={"name": "Sub"}).status_code == 201
        assert client.post("/api/modules", json={"name": "Sub"}).status_code == 409
        assert client.put("/api/modules/current", json={"name": "Sub"}).json() == {"current": "Sub"}
        assert client.put("/api/modules/current", json={"name": "Ghost"}).status_code == 404
        assert client.delete("/api/modules/Home").status_code == 409

        res = client.delete("/api/modules/Sub")
        assert res.json() == {"ok": True, "current": "Home"}
        assert client.get("/api/modules").json() == {"modules": ["Home"], "current": "Home"}

    def test_create_and_fetch_node(self, client):
        node_id = _node(client, "adder", 2, 1, x=5, y=6, data={"k": "v"})

        res = client.get(f"/api/nodes/{node_id}")
        assert res.status_code == 200
        body = res.json()
        assert body["module"] == "Home"
        assert list(body["inputs"]) == ["input_1", "input_2"]
        assert body["data"] == {"k": "v"}
        assert client.get("/api/nodes", params={"name": "adder"}).json() == {"ids": [node_id]}
        assert client.get("/api/nodes/999").status_code == 404

    def test_negative_arity_is_bad_request(self, client):
        res = client.post("/api/nodes", json={"name": "bad", "inputs": -1})
        assert res.status_code == 400

    def test_connections(self, client):
        a = _node(client, "a", 0, 1)
        b = _node(client, "b", 1, 0)

        assert client.post("/api/connections", json=_edge_params(a, b)).json() == {"created": True}
        assert client.post("/api/connections", json=_edge_params(a, b)).json() == {"created": False}
        assert client.post("/api/connections", json=_edge_params(a, b, "output_4")).status_code == 404

        edges = client.get("/api/connections").json()
        assert [e["id"] for e in edges] == [f"{a}.output_1->{b}.input_1"]

        res = client.delete("/api/connections", params=_edge_params(a, b))
        assert res.json() == {"removed": True}
        res = client.delete("/api/connections", params=_edge_params(a, b))
        assert res.json() == {"removed": False}

    def test_cross_module_connection_conflicts(self, client):
        a = _node(client, "a", 0, 1)
        client.post("/api/modules", json={"name": "Sub"})
        b = _node(client, "b", 1, 0, module="Sub")
        assert client.post("/api/connections", json=_edge_params(a, b)).status_code == 409

    def test_remove_port_reports_renames(self, client):
        a = _node(client, "a", 0, 3)
        b = _node(client, "b", 1, 0)
        client.post("/api/connections", json=_edge_params(a, b, "output_3"))

        res = client.delete(f"/api/nodes/{a}/ports/output/output_1")
        assert res.json() == {"renamed": {"output_2": "output_1", "output_3": "output_2"}}
        edges = client.get("/api/connections").json()
        assert edges[0]["outputPort"] == "output_2"

        assert client.delete(f"/api/nodes/{a}/ports/output/output_9").status_code == 404
        assert client.delete(f"/api/nodes/{a}/ports/sideways/output_1").status_code == 400
        assert client.post(f"/api/nodes/{a}/ports/output").json() == {"port": "output_3"}

    def test_payload_updates(self, client):
        node_id = _node(client, "n", data={"a": 1})
        res = client.put(f"/api/nodes/{node_id}/data", json={"data": {"b": 2}})
        assert res.json() == {"data": {"b": 2}}
        res = client.patch(f"/api/nodes/{node_id}/data", json={"key": "df-opts-mode", "value": "fast"})
        assert res.json() == {"data": {"b": 2, "opts": {"mode": "fast"}}}

    def test_reroute_points(self, client):
        a = _node(client, "a", 0, 1)
        b = _node(client, "b", 1, 0)
        client.post("/api/connections", json=_edge_params(a, b))

        res = client.post("/api/connections/points", json={**_edge_params(a, b), "x": 10, "y": 20})
        assert res.json() == {"index": 0}
        client.put("/api/connections/points/0", json={**_edge_params(a, b), "x": 11, "y": 21})

        edges = client.get("/api/modules/Home").json()["edges"]
        assert edges[0]["points"] == [{"x": 11, "y": 21}]

        res = client.delete("/api/connections/points/0", params=_edge_params(a, b))
        assert res.json() == {"removed": {"x": 11, "y": 21}}
        res = client.delete("/api/connections/points/0", params=_edge_params(a, b))
        assert res.status_code == 404

    def test_paths(self, client):
        res = client.post("/api/paths", json={"start": {"x": 0, "y": 0}, "end": {"x": 100, "y": 0}})
        body = res.json()
        assert body["d"] == "M 0 0 C 50 0 50 0 100 0"
        assert body["segments"][0]["control1"] == {"x": 50, "y": 0}
        assert body["segments"][0]["mode"] == "symmetric"

        res = client.post("/api/paths", json={
            "start": {"x": 0, "y": 0}, "end": {"x": 100, "y": 0},
            "points": [{"x": 50, "y": 50}], "fix_curvature": True,
        })
        assert len(res.json()["d"]) == 2
        assert [s["mode"] for s in res.json()["segments"]] == ["open", "close"]

    def test_templates(self, client):
        assert client.post("/api/templates", json={"name": "card", "content": "<div></div>"}).status_code == 201
        assert client.post("/api/templates", json={"name": "card", "content": "x"}).status_code == 409
        assert client.get("/api/templates").json() == {"templates": ["card"]}

        _node(client, "uses-card", content="card", content_kind="template")
        res = client.post("/api/nodes", json={"name": "bad", "content": "nope", "content_kind": "template"})
        assert res.status_code == 404

    def test_export_import_round_trip(self, client):
        a = _node(client, "a", 0, 1)
        b = _node(client, "b", 1, 0)
        client.post("/api/connections", json=_edge_params(a, b))
        exported = client.get("/api/export").json()

        editor_state.reset()
        res = client.post("/api/import", json=exported)
        assert res.json() == {"ok": True, "modules": ["Home"]}
        assert client.get("/api/export").json() == exported
        assert _node(client, "c") == 3

    def test_bad_import(self, client):
        assert client.post("/api/import", json={"nope": 1}).status_code == 400
        malformed = {"modules": {"Home": {"nodes": {"1": {"inputs": {"input_1": []}}}}}}
        res = client.post("/api/import", json=malformed)
        assert res.status_code == 400
        assert "Malformed node" in res.json()["detail"]

    def test_delete_node_and_clear_module(self, client):
        a = _node(client, "a")
        _node(client, "b")
        assert client.delete(f"/api/nodes/{a}").json() == {"ok": True}
        assert client.delete(f"/api/nodes/{a}").status_code == 404
        assert client.delete("/api/modules/Home/nodes").json() == {"removed": 1}
        assert client.delete("/api/modules/Ghost/nodes").status_code == 404

    def test_bus_events_stay_forwarded_after_reset(self, client):
        """Socket.IO forwarders are re-attached whenever the editor state is rebuilt."""
        editor_state.reset()
        assert editor_state.bus.listener_count("nodeCreated") == 1
        assert editor_state.bus.listener_count("moduleChanged") == 2
