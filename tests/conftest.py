import pytest
import requests
from fastapi.testclient import TestClient

from linksaver.config import Settings
from linksaver.main import create_app
from linksaver.storage import JsonFileRepository


def make_response(status_code=200, text="", url="http://example.com/", reason="OK"):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    resp.url = url
    resp.reason = reason
    return resp


@pytest.fixture
def offline(monkeypatch):
    """Every outbound HTTP call fails as if the network were down."""
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        raise requests.ConnectionError("network unavailable")

    monkeypatch.setattr(requests, "get", fake_get)
    return calls


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_file=str(tmp_path / "db.json"),
        jwt_secret="test-secret",
        frontend_dir=str(tmp_path / "no-frontend"),
    )


@pytest.fixture
def repo(settings):
    return JsonFileRepository(settings.db_file)


@pytest.fixture
def client(settings, repo, offline):
    app = create_app(settings, repo=repo)
    return TestClient(app)


def register_and_login(client, email="alice@example.com", password="s3cret"):
    assert client.post("/api/register", json={"email": email, "password": password}).status_code == 201
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


@pytest.fixture
def alice(client):
    return register_and_login(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return register_and_login(client, "bob@example.com")
