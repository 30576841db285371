from fastapi import status


def test_health_check(client):
    """Test the /health endpoint returns 200 and up status."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "up"
    assert "version" in data
    assert "timestamp" in data


def test_readiness_check(client):
    """Test the /readiness endpoint returns 200 and database status."""
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["database"] == "connected"


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Leave Filing and Approval Platform" in response.json()["message"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Process-Time" in response.headers


def test_unknown_route_uses_common_error_shape(client):
    response = client.get("/api/no-such-route")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "errors": [{"code": "HTTP_404", "msg": "Not Found"}]}


def test_wrong_method_uses_common_error_shape(client):
    response = client.delete("/health")
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert response.json()["errors"][0]["code"] == "HTTP_405"
    assert "GET" in response.headers["allow"]
