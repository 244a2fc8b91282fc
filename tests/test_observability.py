from fastapi.testclient import TestClient

from clinic_api.main import app


client = TestClient(app)


def test_health_endpoint():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_endpoint():
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "clinic_api_requests_total" in response.text
    assert "clinic_bookings_total" in response.text
    assert response.headers["content-type"].startswith("text/plain")


def test_request_id_is_echoed():
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated_when_missing():
    response = client.get("/health")
    assert response.headers["X-Request-ID"]
