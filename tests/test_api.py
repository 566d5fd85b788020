import pytest
from fastapi.testclient import TestClient

from jobqueue.config import settings
from jobqueue.main import app

HEADERS = {"X-Api-Secret": settings.api_secret}


@pytest.fixture
def client(fake_publisher):
    # No context manager: the lifespan would connect to a real broker.
    app.state.publisher = fake_publisher
    return TestClient(app)


def test_enqueue_publishes_job(client, fake_publisher):
    response = client.post(
        "/jobs/emails", json={"data": {"to": "ada@example.com"}, "retries": 2}, headers=HEADERS
    )

    assert response.status_code == 202
    job = fake_publisher.published[0]
    assert response.json() == {"job_id": str(job.id), "queue_name": "emails", "state": "PENDING"}
    assert job.data == {"to": "ada@example.com"}
    assert job.retries == 2


def test_enqueue_requires_secret(client, fake_publisher):
    response = client.post("/jobs/emails", json={"data": {}}, headers={"X-Api-Secret": "wrong"})
    assert response.status_code == 401
    assert fake_publisher.published == []


def test_enqueue_rejects_negative_retries(client):
    response = client.post("/jobs/emails", json={"data": {}, "retries": -1}, headers=HEADERS)
    assert response.status_code == 422


def test_enqueue_unknown_queue(client, fake_publisher, monkeypatch):
    monkeypatch.setattr(settings, "allowed_queues", ["emails"])

    response = client.post("/jobs/reports", json={"data": {}}, headers=HEADERS)

    assert response.status_code == 404
    assert fake_publisher.published == []
    assert client.post("/jobs/emails", json={"data": {}}, headers=HEADERS).status_code == 202


def test_enqueue_with_disconnected_broker(client, fake_publisher):
    fake_publisher.is_connected = False
    response = client.post("/jobs/emails", json={"data": {}}, headers=HEADERS)
    assert response.status_code == 503
    assert fake_publisher.published == []


def test_publish_failure_returns_503(client, failing_publisher):
    app.state.publisher = failing_publisher
    response = client.post("/jobs/emails", json={"data": {}}, headers=HEADERS)
    assert response.status_code == 503


@pytest.mark.parametrize(("connected", "status"), [(True, "ok"), (False, "degraded")])
def test_health(client, fake_publisher, monkeypatch, connected, status):
    monkeypatch.setattr(settings, "allowed_queues", ["emails"])
    fake_publisher.is_connected = connected
    assert client.get("/health").json() == {
        "status": "ok",
        "rabbitmq": status,
        "exchange": "jobs",
        "queues": ["emails"],
    }
