import importlib

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from extraction.feature_processor import FeatureProcessor
from storage.task_store import InMemoryTaskStore


def _import_app():
    # Import lazily so environment variables (if any) can be set before import.
    mod = importlib.import_module("api.main")
    return mod


def _fresh_state(monkeypatch):
    state = importlib.import_module("api.state")
    monkeypatch.setattr(state, "task_store", InMemoryTaskStore())
    monkeypatch.setattr(state, "processor", FeatureProcessor())
    return state


def test_metrics_endpoint_exposes_prometheus_text(monkeypatch) -> None:
    _fresh_state(monkeypatch)
    mod = _import_app()
    client = TestClient(mod.app)

    r = client.get("/metrics")
    assert r.status_code == 200
    # Prometheus text exposition format content-type
    assert "text/plain" in r.headers.get("content-type", "")
    body = r.text
    assert "smart_todo_requests_total" in body
    assert "smart_todo_request_latency_seconds" in body
    assert "smart_todo_tasks_stored" in body


def test_processor_call_is_counted_by_feature_and_source(monkeypatch) -> None:
    _fresh_state(monkeypatch)
    mod = _import_app()
    client = TestClient(mod.app)

    r = client.post("/api/ai-task-processor", json={"userInput": "urgent: finish report"})
    assert r.status_code == 200

    lines = client.get("/metrics").text.splitlines()
    assert any(
        line.startswith('smart_todo_ai_feature_total{feature="smart-parse",source="local"}') for line in lines
    )
    assert any(
        line.startswith('smart_todo_requests_total{endpoint="/api/ai-task-processor",status="ok"}') for line in lines
    )


def test_tasks_stored_gauge_matches_task_list(monkeypatch) -> None:
    _fresh_state(monkeypatch)
    mod = _import_app()
    client = TestClient(mod.app)

    client.post("/tasks", json={"task": "Write report"})
    client.post("/tasks", json={"task": "Pay rent"})
    total = client.get("/tasks").json()["total"]

    depth = None
    for line in client.get("/metrics").text.splitlines():
        if line.startswith("smart_todo_tasks_stored "):
            depth = line.split(" ", 1)[1].strip()
            break

    assert depth is not None, "smart_todo_tasks_stored metric not found"
    assert int(float(depth)) == total == 2


def test_tasks_stored_gauge_counts_every_user(monkeypatch) -> None:
    _fresh_state(monkeypatch)
    mod = _import_app()
    client = TestClient(mod.app)

    client.post("/tasks", json={"task": "Write report"})
    client.post("/tasks", json={"task": "Pay rent", "userId": "alice"})
    assert REGISTRY.get_sample_value("smart_todo_tasks_stored") == 2

    created = client.post("/tasks", json={"task": "Book flights", "userId": "alice"}).json()["task"]
    assert REGISTRY.get_sample_value("smart_todo_tasks_stored") == 3

    client.get("/metrics")
    assert REGISTRY.get_sample_value("smart_todo_tasks_stored") == 3

    client.delete(f"/tasks/{created['id']}")
    assert REGISTRY.get_sample_value("smart_todo_tasks_stored") == 2
