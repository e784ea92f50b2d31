def test_root_endpoint(client):
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data
    assert data["dna_router_loaded"] is True
    assert "configured" in data["supabase"]


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_root_reports_admin_client_state(client):
    status = client.get("/").json()["supabase"]
    assert status["admin_client_created"] is False
    assert "client_created" not in status
    assert status["key_in_use"] in ("service_role", "anon", "none")
