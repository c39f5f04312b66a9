"""Tests for the revalidation endpoint."""

from typing import Any

from fastapi.testclient import TestClient

from app.main import app

SECRET = {"x-revalidation-secret": "test-revalidation-secret"}


async def one_area(b: Any) -> None:
    await b.area("F-7")


async def another_area(b: Any) -> None:
    await b.area("G-9")


def test_unconfigured_secret(client: TestClient) -> None:
    """Without a configured secret the endpoint is a server error."""
    app.state.revalidation.secret = None

    response = client.post("/api/revalidate", json={"tag": "products"}, headers=SECRET)

    assert response.status_code == 500
    assert response.json()["error_code"] == "MISCONFIGURED"


def test_wrong_secret(client: TestClient) -> None:
    response = client.post(
        "/api/revalidate",
        json={"tag": "products"},
        headers={"x-revalidation-secret": "guess"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid secret"


def test_secret_checked_before_body(client: TestClient) -> None:
    """A bad body without a secret is still a 401."""
    response = client.post("/api/revalidate", content=b"not json")
    assert response.status_code == 401


def test_invalid_json(client: TestClient) -> None:
    response = client.post(
        "/api/revalidate",
        content=b"not json",
        headers={**SECRET, "Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_missing_target(client: TestClient) -> None:
    response = client.post("/api/revalidate", json={"type": "tag"}, headers=SECRET)
    assert response.status_code == 400
    assert response.json()["error"] == "Missing tag or path"


def test_tag_revalidation_refreshes_reads(client: TestClient, seed: Any) -> None:
    """Writes made behind the cache show up after revalidation."""
    seed(one_area)
    assert client.get("/api/areas").json()["total"] == 1
    seed(another_area)
    assert client.get("/api/areas").json()["total"] == 1

    response = client.post(
        "/api/revalidate", json={"type": "tag", "tag": "areas"}, headers=SECRET
    )

    assert response.status_code == 200
    body = response.json()
    assert body["revalidated"] is True
    assert body["tag"] == "areas"
    assert "path" not in body
    assert client.get("/api/areas").json()["total"] == 2


def test_path_revalidation(client: TestClient, seed: Any) -> None:
    seed(one_area)
    client.get("/api/areas")
    seed(another_area)

    response = client.post(
        "/api/revalidate", json={"type": "path", "path": "/api/areas"}, headers=SECRET
    )

    assert response.json()["discarded"] == 1
    assert client.get("/api/areas").json()["total"] == 2
