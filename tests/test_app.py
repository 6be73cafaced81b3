def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to MAXWIL Bakery API"


def test_health_with_memory_backend(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["database"] == "not configured"
    assert body["storage"] == "memory"


def test_security_headers(client):
    response = client.get("/api/products")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["referrer-policy"] == "strict-origin-when-cross-origin"


def test_api_requests_are_logged(client, capsys):
    client.get("/api/products")
    out = capsys.readouterr().out
    assert "[api] GET /api/products 200 in" in out


def test_validation_log_redacts_secrets(client, capsys):
    client.post("/api/login", json={"username": "", "password": "hunter2", "securityCode": "BAKERY123"})
    out = capsys.readouterr().out
    assert "[validation]" in out
    assert "hunter2" not in out
    assert "BAKERY123" not in out
    assert "[REDACTED]" in out


def test_unparsed_body_not_echoed_to_log(client, capsys):
    body = '{"username": "admin", "password": "hunter2", "securityCode": "BAKERY123",}'
    response = client.post("/api/login", content=body, headers={"Content-Type": "application/json"})
    assert response.status_code == 400

    out = capsys.readouterr().out
    assert "[validation] POST /api/login rejected: <unparsed body," in out
    assert "hunter2" not in out
    assert "BAKERY123" not in out
