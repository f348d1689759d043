"""Integration tests for API endpoints using FastAPI TestClient.

Each test gets its own seeded SQLite file; no message bus is configured, so
published events are only logged unless the notifier is patched.
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.models import MovieUpdateEvent
from app.services.database import DatabaseService
from app.services.events import MOVIE_UPDATED_TOPIC

from conftest import seed


@pytest.fixture()
def client(tmp_path, monkeypatch):
    db_path = tmp_path / "api.db"
    monkeypatch.setattr(settings, "db_path", db_path)
    monkeypatch.setattr(settings, "event_bus_url", None)
    with TestClient(app) as c:
        seed(DatabaseService(db_path))
        yield c


@pytest.fixture()
def empty_client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "db_path", tmp_path / "empty.db")
    monkeypatch.setattr(settings, "event_bus_url", None)
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["database"] is True
        assert body["status"] == "healthy"
        assert body["eventBus"]["configured"] is False


class TestSearchEndpoint:
    def test_default_page(self, client):
        resp = client.get("/movie")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] is True
        assert "messages" not in body
        header = body["data"]["pagingHeader"]
        assert header["totalCount"] == 3
        assert header["pageSize"] == 5
        assert [m["name"] for m in body["data"]["pagingData"]] == ["Inception", "Batman", "Superman"]

    def test_x_pagination_header_matches_body(self, client):
        resp = client.get("/movie?pageNumber=1&pageSize=2")
        header = json.loads(resp.headers["X-Pagination"])
        assert header == resp.json()["data"]["pagingHeader"]
        assert header["totalPage"] == 2
        assert header["hasNextPage"] is True
        assert header["nextPageNumber"] == 2

    def test_filter_by_name(self, client):
        resp = client.get("/movie?name=bat")
        names = [m["name"] for m in resp.json()["data"]["pagingData"]]
        assert names == ["Batman"]

    def test_sort_by(self, client):
        resp = client.get("/movie", params={"sortBy": "name desc"})
        names = [m["name"] for m in resp.json()["data"]["pagingData"]]
        assert names == ["Superman", "Inception", "Batman"]

    def test_unknown_sort_field_is_not_an_error(self, client):
        resp = client.get("/movie", params={"sortBy": "bogusField"})
        assert resp.status_code == 200
        names = [m["name"] for m in resp.json()["data"]["pagingData"]]
        assert names == ["Inception", "Batman", "Superman"]

    def test_result_shape(self, client):
        movie = client.get("/movie?name=inception").json()["data"]["pagingData"][0]
        assert movie == {
            "id": 1,
            "name": "Inception",
            "director": "Christopher Nolan",
            "actors": ["Leonardo DiCaprio", "Elliot Page"],
        }

    def test_invalid_page_number_rejected(self, client):
        resp = client.get("/movie?pageNumber=0")
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] is False
        assert body["messages"][0].startswith("pageNumber:")

    def test_page_size_above_limit_rejected(self, client):
        resp = client.get(f"/movie?pageSize={settings.max_page_size + 1}")
        assert resp.status_code == 400
        assert resp.json()["messages"][0].startswith("pageSize:")

    def test_huge_page_number_gives_empty_page(self, client):
        resp = client.get(f"/movie?pageNumber=10000000000&pageSize={settings.max_page_size}")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["pagingData"] == []
        assert data["pagingHeader"]["totalCount"] == 3

    def test_query_keys_ignore_case(self, client):
        resp = client.get("/movie", params={"SORTBY": "name desc", "pagesize": 2, "PageNumber": 1})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["pagingHeader"]["pageSize"] == 2
        assert [m["name"] for m in data["pagingData"]] == ["Superman", "Inception"]


class TestGetEndpoint:
    def test_get_movie(self, client):
        resp = client.get("/movie/2")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["director"] == {"id": 2, "name": "Tim Burton"}
        assert [a["name"] for a in data["actors"]] == ["Michael Keaton", "Jack Nicholson"]

    def test_get_movie_not_found(self, client):
        resp = client.get("/movie/999")
        assert resp.status_code == 404
        assert resp.json() == {"status": False, "messages": ["Get NotFound"]}


class TestCreateEndpoint:
    def test_create_then_duplicate_then_search(self, empty_client):
        resp = empty_client.post("/movie", json={"name": "Inception", "directorId": 1})
        assert resp.status_code == 200
        assert resp.json() == {"status": True}

        resp = empty_client.post("/movie", json={"name": "Inception", "directorId": 2})
        assert resp.status_code == 400
        assert resp.json() == {"status": False, "messages": ["Create Duplicate"]}

        resp = empty_client.get("/movie?name=Inception&pageNumber=1&pageSize=5")
        assert resp.status_code == 200
        assert resp.json()["data"]["pagingHeader"]["totalCount"] == 1

    def test_case_variant_allowed(self, client):
        resp = client.post("/movie", json={"name": "batman", "directorId": 2})
        assert resp.status_code == 200

    def test_missing_fields_rejected(self, client):
        resp = client.post("/movie", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] is False
        assert len(body["messages"]) == 2
        assert any(m.startswith("name:") for m in body["messages"])
        assert any(m.startswith("directorId:") for m in body["messages"])

    def test_blank_name_rejected(self, client):
        resp = client.post("/movie", json={"name": "   ", "directorId": 1})
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] is False
        assert body["messages"][0].startswith("name:")
        assert client.get("/movie").json()["data"]["pagingHeader"]["totalCount"] == 3

    def test_name_is_trimmed(self, client):
        resp = client.post("/movie", json={"name": "  Batman  ", "directorId": 2})
        assert resp.status_code == 400
        assert resp.json()["messages"] == ["Create Duplicate"]

    def test_name_too_long_rejected(self, client):
        resp = client.post("/movie", json={"name": "x" * 51, "directorId": 1})
        assert resp.status_code == 400


class TestUpdateEndpoint:
    def test_update_publishes_event(self, client):
        with patch.object(app.state.notifier, "publish") as publish:
            resp = client.put("/movie/1", json={"id": 1, "name": "Inception 2", "directorId": 1})
        assert resp.status_code == 200
        publish.assert_called_once_with(
            MOVIE_UPDATED_TOPIC,
            MovieUpdateEvent(id=1, name="Inception 2", director_id=1),
        )

    def test_id_mismatch(self, client):
        resp = client.put("/movie/1", json={"id": 2, "name": "Inception", "directorId": 1})
        assert resp.status_code == 400
        assert resp.json()["messages"] == ["Update BadRequest"]

    def test_duplicate(self, client):
        with patch.object(app.state.notifier, "publish") as publish:
            resp = client.put("/movie/1", json={"id": 1, "name": "Batman", "directorId": 1})
        assert resp.status_code == 400
        assert resp.json()["messages"] == ["Update Duplicate"]
        publish.assert_not_called()

    def test_blank_name_rejected(self, client):
        with patch.object(app.state.notifier, "publish") as publish:
            resp = client.put("/movie/1", json={"id": 1, "name": " \t ", "directorId": 1})
        assert resp.status_code == 400
        assert resp.json()["messages"][0].startswith("name:")
        publish.assert_not_called()

    def test_own_name_succeeds(self, client):
        resp = client.put("/movie/1", json={"id": 1, "name": "Inception", "directorId": 2})
        assert resp.status_code == 200

    def test_unknown_movie(self, client):
        resp = client.put("/movie/99", json={"id": 99, "name": "Nope", "directorId": 1})
        assert resp.status_code == 404
        assert resp.json()["messages"] == ["Update NotFound"]

    def test_not_found_documented(self, client):
        responses = client.get("/openapi.json").json()["paths"]["/movie/{movie_id}"]["put"]["responses"]
        assert {"200", "400", "404"} <= set(responses)
        assert "404" in app.description


class TestDeleteEndpoint:
    def test_delete(self, client):
        resp = client.delete("/movie/2")
        assert resp.status_code == 200
        assert client.get("/movie/2").status_code == 404

    def test_delete_not_found(self, client):
        resp = client.delete("/movie/99")
        assert resp.status_code == 404
        assert resp.json() == {"status": False, "messages": ["Delete NotFound"]}


class TestImportExport:
    def test_import_echoes_filename(self, client):
        resp = client.post("/movie/Import", files={"file": ("movies.csv", b"id,name\n", "text/csv")})
        assert resp.status_code == 200
        assert resp.json() == "movies.csv"

    def test_export(self, client):
        resp = client.post("/movie/Export")
        assert resp.status_code == 200


class TestEventsEndpoint:
    def test_subscriber_hook_accepts_event(self, client):
        resp = client.post(
            "/events/movie.updated",
            json={"id": 1, "name": "Inception", "directorId": 1},
        )
        assert resp.status_code == 200
        assert resp.json() == {"status": True}


class TestErrors:
    def test_unhandled_error_maps_to_500(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "db_path", tmp_path / "broken.db")
        monkeypatch.setattr(settings, "event_bus_url", None)
        with TestClient(app, raise_server_exceptions=False) as c:
            with patch.object(app.state.db, "transaction", side_effect=RuntimeError("storage offline")):
                resp = c.post("/movie", json={"name": "Dune", "directorId": 1})
        assert resp.status_code == 500
        assert resp.json() == {"status": False, "messages": ["storage offline"]}
