import mongomock
from fastapi.testclient import TestClient

import main
import video_routes
from main import app
from settings import settings


def test_root(client):
    assert client.get("/").json() == {"message": "Video Sharing Backend is running"}


def test_database_check(client, signup):
    signup()

    info = client.get("/test").json()

    assert info["database_connected"] is True
    assert "user" in info["collections"]


def test_unmatched_route_names_method_and_path(client):
    r = client.delete("/nowhere/at/all")

    assert r.status_code == 404
    assert r.json() == {"message": "Route DELETE /nowhere/at/all not found"}


def test_malformed_json_is_a_validation_error(client, signup, auth):
    token = signup()["token"]

    r = client.post(
        "/videos",
        content=b"{not json",
        headers={**auth(token), "Content-Type": "application/json"},
    )

    assert r.status_code == 400
    assert r.json()["errors"]


def test_unexpected_errors_are_500_with_debug_detail(db, monkeypatch):
    def explode(videos):
        raise RuntimeError("boom")

    monkeypatch.setattr(video_routes, "dedupe_by_url", explode)
    client = TestClient(app, raise_server_exceptions=False)

    r = client.get("/videos")

    assert r.status_code == 500
    body = r.json()
    assert body["message"] == "Internal server error"
    assert body["error"] == "boom"
    assert "RuntimeError" in body["stack"]


def test_production_hides_error_detail(db, monkeypatch):
    def explode(videos):
        raise RuntimeError("boom")

    monkeypatch.setattr(video_routes, "dedupe_by_url", explode)
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    client = TestClient(app, raise_server_exceptions=False)

    r = client.get("/videos")

    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}


def test_startup_builds_indexes_on_application_database(monkeypatch):
    database = mongomock.MongoClient()["videoshare_startup"]
    monkeypatch.setattr(main, "get_db", lambda: database)

    with TestClient(app):
        pass

    unique_keys = {
        tuple(k for k, _ in spec["key"])
        for spec in database["channel"].index_information().values()
        if spec.get("unique")
    }
    assert ("user_id",) in unique_keys
