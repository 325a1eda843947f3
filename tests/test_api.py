"""End-to-end tests for the HTTP surface."""

from __future__ import annotations

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from grepfix.main import create_app

AUTH_HEADERS = {"Authorization": "Bearer test-token-123"}


@pytest.fixture
def client(make_settings):
    app = create_app(make_settings(), configure_logging=False)
    with TestClient(app) as test_client:
        yield test_client


def test_health_needs_no_auth(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_detailed_health(client: TestClient) -> None:
    response = client.get("/health/detailed", headers=AUTH_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["async_enabled"] is False
    assert body["background_tasks"]["failed_jobs"] == 0


def test_requires_auth(client: TestClient) -> None:
    missing = client.post("/api/v1/search", json={"query": "foo"})
    wrong = client.post(
        "/api/v1/search", json={"query": "foo"}, headers={"Authorization": "Bearer nope"}
    )

    assert missing.status_code in (401, 403)
    assert wrong.status_code == 401


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_search_delete_substitute_flow(client: TestClient, workspace: Path) -> None:
    searched = client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)
    assert searched.status_code == 200
    assert searched.json()["entries"] == 3
    assert searched.json()["pattern"] == "foo"

    # Drop the beta.txt match so only alpha.txt is edited.
    deleted = client.post(
        "/api/v1/results/quickfix/delete", json={"first": 3, "last": 3}, headers=AUTH_HEADERS
    )
    assert deleted.status_code == 200
    body = deleted.json()
    assert body["length"] == 3
    assert body["live"] == 2
    assert body["selected"] == 3
    assert body["slots"][2] == {"kind": "tombstone"}

    substituted = client.post(
        "/api/v1/substitute", json={"expression": "/foo/FOO/"}, headers=AUTH_HEADERS
    )
    assert substituted.status_code == 200
    assert substituted.json()["files_changed"] == 1
    assert (workspace / "alpha.txt").read_text() == "FOO one\nbar two\nFOO FOO three\n"
    assert (workspace / "beta.txt").read_text() == "nothing here\nfoo at the end\n"


def test_get_results(client: TestClient) -> None:
    client.post(
        "/api/v1/search", json={"query": "foo", "mode": "location"}, headers=AUTH_HEADERS
    )

    location = client.get("/api/v1/results/location", headers=AUTH_HEADERS).json()
    quickfix = client.get("/api/v1/results/quickfix", headers=AUTH_HEADERS).json()

    assert location["length"] == 3
    assert location["slots"][0] == {
        "kind": "match",
        "file": "alpha.txt",
        "line": 1,
        "column": 1,
        "text": "foo one",
    }
    assert quickfix["length"] == 0


def test_unknown_mode_is_rejected(client: TestClient) -> None:
    response = client.get("/api/v1/results/buffers", headers=AUTH_HEADERS)

    assert response.status_code == 422


def test_delete_out_of_range(client: TestClient) -> None:
    client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)

    response = client.post(
        "/api/v1/results/quickfix/delete", json={"first": 2, "last": 9}, headers=AUTH_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidRangeError"


def test_delete_motion(client: TestClient) -> None:
    client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)

    response = client.post(
        "/api/v1/results/quickfix/delete-motion",
        json={"start": {"line": 1, "col": 0}, "end": {"line": 2, "col": 0}},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    assert [slot["kind"] for slot in response.json()["slots"]] == ["tombstone", "tombstone", "match"]


def test_args_populates_working_set(client: TestClient) -> None:
    client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)

    response = client.post("/api/v1/results/quickfix/args", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json()["files"] == ["alpha.txt", "beta.txt"]


def test_args_without_files(client: TestClient) -> None:
    response = client.post("/api/v1/results/quickfix/args", headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "NoFilesError"


def test_invalid_expression(client: TestClient, workspace: Path) -> None:
    client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)
    before = (workspace / "alpha.txt").read_text()

    response = client.post(
        "/api/v1/substitute", json={"expression": "/foo/bar"}, headers=AUTH_HEADERS
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["error"] == "InvalidExpressionError"
    assert detail["context"]["reason"] == "missing_delimiter"
    assert (workspace / "alpha.txt").read_text() == before


def test_highlight_roundtrip(client: TestClient) -> None:
    client.post("/api/v1/search", json={"query": r"foo\ at"}, headers=AUTH_HEADERS)

    state = client.get("/api/v1/highlight", headers=AUTH_HEADERS).json()
    applied = client.post("/api/v1/highlight/apply", headers=AUTH_HEADERS).json()
    after = client.get("/api/v1/highlight", headers=AUTH_HEADERS).json()

    assert state == {"pattern": "foo at", "enabled": True, "dirty": True}
    assert applied["pattern"] == "foo at"
    assert after["dirty"] is False


def test_search_disabled_without_program(make_settings) -> None:
    app = create_app(make_settings(grep_program=None), configure_logging=False)
    with TestClient(app) as client:
        response = client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)
        health = client.get("/health/detailed", headers=AUTH_HEADERS).json()

    assert response.status_code == 200
    assert response.json()["enabled"] is False
    assert health["status"] == "search_disabled"


def test_missing_program_is_server_error(make_settings, workspace: Path) -> None:
    settings = make_settings(grep_program=str(workspace / "no-such-grep"))
    app = create_app(settings, configure_logging=False)
    with TestClient(app) as client:
        response = client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)

    assert response.status_code == 500
    assert response.json()["detail"]["context"]["reason"] == "program_missing"


def test_async_search_completes(make_settings) -> None:
    app = create_app(make_settings(search_async=True), configure_logging=False)
    with TestClient(app) as client:
        response = client.post("/api/v1/search", json={"query": "foo"}, headers=AUTH_HEADERS)
        assert response.status_code == 200
        assert response.json()["pending"] is True

        for _ in range(200):
            health = client.get("/health/detailed", headers=AUTH_HEADERS).json()
            if health["background_tasks"]["completed_jobs"]:
                break
            time.sleep(0.05)

        results = client.get("/api/v1/results/quickfix", headers=AUTH_HEADERS).json()

    assert results["live"] == 3
