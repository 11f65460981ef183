import os

os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["USE_TRANSACTIONS"] = "false"
os.environ["ENVIRONMENT"] = "development"

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app


@pytest.fixture
def db():
    database = mongomock.MongoClient()["videoshare_test"]
    ensure_indexes(database)
    app.dependency_overrides[get_db] = lambda: database
    yield database
    app.dependency_overrides.clear()


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def auth():
    def _auth(token):
        return {"Authorization": f"Bearer {token}"}
    return _auth


@pytest.fixture
def signup(client):
    def _signup(username="alice", email=None, password="secret1"):
        email = email or f"{username}@x.com"
        r = client.post("/auth/signup", json={"username": username, "email": email, "password": password})
        assert r.status_code == 201, r.text
        return r.json()
    return _signup


@pytest.fixture
def upload(client, auth):
    def _upload(account, title="Clip", url="https://videos.example.com/clip.mp4", **fields):
        body = {"title": title, "url": url, "channel_id": account["user"]["channel_id"], **fields}
        r = client.post("/videos", json=body, headers=auth(account["token"]))
        assert r.status_code == 201, r.text
        return r.json()
    return _upload
