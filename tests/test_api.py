"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from easymig.api.main import app
from easymig.api import dependencies
from easymig.api.routes import migrations
from easymig.orchestrator import MigrationOrchestrator


@pytest.fixture
def credentials(tmp_path, monkeypatch):
    path = tmp_path / "credentials"
    path.write_text("admin\nsecret")
    monkeypatch.setenv("EASYMIG_CREDENTIALS_FILE", str(path))
    return path


@pytest.fixture
def client(credentials, settings, connection_factory, no_external_tools):
    settings.credentials_file = str(credentials)
    app.dependency_overrides[dependencies.get_settings] = lambda: settings
    app.dependency_overrides[migrations.get_orchestrator] = lambda: MigrationOrchestrator(
        settings, connection_factory=connection_factory
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "secret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.headers['X-Session-Token']}"}


class TestAuth:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "healthy"}

    def test_bad_password(self, client):
        response = client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})

        assert response.status_code == 401

    def test_status(self, client):
        assert client.get("/api/auth/status").json()["authenticated"] is False

        headers = login(client)

        body = client.get("/api/auth/status", headers=headers).json()
        assert body == {"authenticated": True, "username": "admin"}

    def test_credentials_generated_on_first_use(self, tmp_path, monkeypatch):
        path = tmp_path / "nested" / "credentials"
        monkeypatch.setenv("EASYMIG_CREDENTIALS_FILE", str(path))

        response = TestClient(app).post("/api/auth/login", json={"username": "admin", "password": "guess"})

        assert response.status_code == 401
        assert path.read_text().startswith("admin\n")
        assert path.stat().st_mode & 0o777 == 0o600

    def test_logout_revokes_token(self, client):
        headers = login(client)

        client.post("/api/auth/logout", headers=headers)
        client.cookies.clear()

        assert client.get("/api/auth/status", headers=headers).json()["authenticated"] is False
        assert client.post("/api/migrations/run", headers=headers).status_code == 401

    def test_run_requires_auth(self, client):
        assert client.post("/api/migrations/run").status_code == 401


class TestMigrations:
    def test_run_and_download(self, client, fake_db):
        fake_db.add_options("My Site!")
        headers = login(client)

        response = client.post("/api/migrations/run", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["errors"] == []
        assert body["archive"]["name"] == "My_Site_.zip"
        assert body["download"].endswith("/api/migrations/download/My_Site_.zip")
        assert "Archive created successfully: My_Site_.zip" in body["logs"]

        download = client.get(body["download"], headers=headers)
        assert download.status_code == 200
        assert download.content[:2] == b"PK"

    def test_failed_run_reported_in_body(self, client, site_root):
        (site_root / "wp-config.php").unlink()
        headers = login(client)

        response = client.post("/api/migrations/run", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["download"] is None
        assert len(body["errors"]) == 1

    def test_concurrent_run_rejected(self, client):
        headers = login(client)

        migrations._run_lock.acquire()
        try:
            response = client.post("/api/migrations/run", headers=headers)
        finally:
            migrations._run_lock.release()

        assert response.status_code == 409

    @pytest.mark.parametrize("name", ["missing.zip", "wp-config.php", "..%2Fsecret.zip"])
    def test_download_not_found(self, client, name):
        headers = login(client)

        response = client.get(f"/api/migrations/download/{name}", headers=headers)

        assert response.status_code == 404

    def test_download_requires_auth(self, client, site_root):
        (site_root / "Blog.zip").write_bytes(b"PK\x05\x06" + b"\x00" * 18)

        assert client.get("/api/migrations/download/Blog.zip").status_code == 401
