"""
HTTP tests for the FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient

from app import clients
from app.config import Settings
from app.main import create_app


# ── fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", static_root=tmp_path, max_body_bytes=2048)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def new_txn(client, **overrides):
    body = {"clientId": "1", "bottles": 5, "delivered": 0, "currency": "USD"}
    body.update(overrides)
    resp = client.post("/api/transactions", json=body)
    assert resp.status_code == 200
    return resp.json()


# ── tests ─────────────────────────────────────────────────────────────────────

class TestStartup:
    def test_seed_data_available(self, client, settings):
        assert settings.db_path.exists()
        ids = [c["id"] for c in client.get("/api/clients").json()]
        assert ids == ["12345678", "87654321"]


class TestAuth:
    def test_admin_wrong_password(self, client):
        resp = client.post("/api/auth/admin", json={"username": "admin", "password": "bad"})
        assert resp.status_code == 401
        assert "error" in resp.json()

    def test_admin_login_hides_password(self, client):
        resp = client.post("/api/auth/admin", json={"username": "admin", "password": "admin123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "admin"
        assert body["user"] == {"username": "admin", "name": "Administrador Principal"}
        assert "password" not in body["user"]

    def test_admin_login_empty_body(self, client):
        assert client.post("/api/auth/admin").status_code == 401

    def test_client_login(self, client):
        resp = client.post("/api/auth/client", json={"id": "12345678"})
        assert resp.status_code == 200
        assert resp.json()["role"] == "client"
        assert resp.json()["user"]["name"] == "Juan Pérez"

    def test_client_login_unknown(self, client):
        assert client.post("/api/auth/client", json={"id": "000"}).status_code == 404


class TestClientsApi:
    def test_upsert_twice_keeps_latest_name(self, client):
        for name in ("A", "B"):
            resp = client.post("/api/clients", json={"id": "1", "name": name, "phone": "", "address": ""})
            assert resp.json() == {"ok": True}
        matches = [c for c in client.get("/api/clients").json() if c["id"] == "1"]
        assert matches == [{"id": "1", "name": "B", "phone": "", "address": ""}]

    def test_missing_name_is_400(self, client):
        resp = client.post("/api/clients", json={"id": "1"})
        assert resp.status_code == 400
        assert resp.json()["error"]

    def test_delete_unknown_client_is_ok(self, client):
        resp = client.delete("/api/clients/nobody")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


class TestTransactionsApi:
    def test_delivery_scenario(self, client):
        client.post("/api/clients", json={"id": "1", "name": "A"})

        created = new_txn(client)
        assert created["locked"] is False
        assert created["clientId"] == "1"

        resp = client.put(f"/api/transactions/{created['id']}", json={"delivered": 5})
        assert resp.status_code == 200
        assert resp.json()["locked"] is True

        resp = client.put(f"/api/transactions/{created['id']}", json={"delivered": 0})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_filtered_listing_is_decorated(self, client):
        client.post("/api/clients", json={"id": "1", "name": "A"})
        mine = new_txn(client)
        new_txn(client, clientId="12345678")

        rows = client.get("/api/transactions", params={"clientId": "1"}).json()
        assert [r["id"] for r in rows] == [mine["id"]]
        assert rows[0]["clientName"] == "A"

    def test_unknown_client_is_labelled(self, client):
        new_txn(client, clientId="ghost")
        rows = client.get("/api/transactions").json()
        assert rows[0]["clientName"] == "Cliente desconocido"

    def test_incomplete_data(self, client):
        resp = client.post("/api/transactions", json={"clientId": "1", "currency": "USD"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Datos incompletos"}

    def test_update_unknown_is_404(self, client):
        assert client.put("/api/transactions/123", json={"delivered": 1}).status_code == 404

    def test_delete_asymmetry(self, client):
        assert client.delete("/api/transactions/123").status_code == 404
        assert client.delete("/api/clients/123").status_code == 200

    def test_delete_closed_is_400(self, client):
        txn = new_txn(client, bottles=1, delivered=1)
        assert txn["locked"] is True
        assert client.delete(f"/api/transactions/{txn['id']}").status_code == 400

    def test_delete_open(self, client):
        txn = new_txn(client)
        assert client.delete(f"/api/transactions/{txn['id']}").json() == {"ok": True}
        assert client.get("/api/transactions").json() == []


class TestErrors:
    def test_malformed_json_is_400(self, client):
        resp = client.post(
            "/api/clients",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}

    def test_unknown_api_route_is_404(self, client):
        assert client.get("/api/nothing").status_code == 404
        assert client.post("/api/nothing", json={}).status_code == 404
        assert client.patch("/api/clients").status_code == 404

    def test_store_failure_is_500(self, client, settings):
        settings.db_path.write_text("{corrupt", encoding="utf-8")
        resp = client.get("/api/clients")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Server error"
        assert resp.json()["detail"]

    def test_oversized_body_is_413(self, client):
        resp = client.post("/api/clients", json={"id": "1", "name": "x" * 4096})
        assert resp.status_code == 413
        assert len(client.get("/api/clients").json()) == 2

    def test_streamed_oversized_body_is_413(self, client):
        def chunks():
            for _ in range(5):
                yield b"x" * 1024

        resp = client.post(
            "/api/clients",
            content=chunks(),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 413
        assert resp.json() == {"error": "Body too large"}
        assert len(client.get("/api/clients").json()) == 2

    def test_unexpected_error_keeps_headers(self, client, monkeypatch):
        def boom(store):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(clients, "list_clients", boom)
        resp = client.get("/api/clients", headers={"Origin": "http://example.com"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error", "detail": "disk on fire"}
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_security_headers_on_api(self, client):
        resp = client.get("/api/clients")
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.headers["x-frame-options"] == "DENY"
        assert resp.headers["cache-control"] == "no-store"

    def test_options_preflight(self, client):
        resp = client.options(
            "/api/clients",
            headers={"Origin": "http://example.com", "Access-Control-Request-Method": "POST"},
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


class TestStatic:
    def test_index_falls_back_to_root_html(self, client, settings):
        (settings.static_root / "botellones.html").write_text("<h1>root</h1>", encoding="utf-8")
        resp = client.get("/")
        assert resp.status_code == 200
        assert "root" in resp.text

    def test_public_index_preferred(self, client, settings):
        public = settings.static_root / "public"
        public.mkdir()
        (public / "index.html").write_text("<h1>public</h1>", encoding="utf-8")
        (settings.static_root / "botellones.html").write_text("<h1>root</h1>", encoding="utf-8")
        assert "public" in client.get("/").text

    def test_public_asset_content_type(self, client, settings):
        public = settings.static_root / "public"
        public.mkdir()
        (public / "app.css").write_text("body {}", encoding="utf-8")
        resp = client.get("/app.css")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/css")

    def test_missing_asset_is_plain_404(self, client):
        resp = client.get("/missing.js")
        assert resp.status_code == 404
        assert resp.text == "Not Found"

    def test_no_index_is_404(self, client):
        assert client.get("/").status_code == 404
