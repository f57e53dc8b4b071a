def test_health(client, db_session, product):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["timestamp"].endswith("Z")
    database = body["checks"]["database"]
    assert database["status"] == "healthy"
    assert database["details"]["products"] == 1


def test_cors_headers_for_allowed_origin(app, client, db_session):
    origin = app.config["CORS_ALLOWED_ORIGINS"][0]
    resp = client.get("/api/health", headers={"Origin": origin})
    assert resp.headers["Access-Control-Allow-Origin"] == origin

    resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers
