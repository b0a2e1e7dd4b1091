"""HTTP API tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from protograph.api.deps import get_settings
from protograph.config import Config
from protograph.main import app

FILES = {
    "a.proto": 'package a; import "b.proto"; message Foo { b.Bar x = 1; Ghost g = 2; }',
    "b.proto": "package b; message Bar { int32 n = 1; } message Other {}",
}


@pytest.fixture
async def client():
    """Create async test client with default settings."""
    app.dependency_overrides[get_settings] = lambda: Config()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


async def test_health_check_returns_healthy(client: AsyncClient):
    """Health endpoint returns healthy status."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_render_whole_graph(client: AsyncClient):
    """Rendering without a selection returns every entity and edge."""
    response = await client.post("/api/render", json={"root": "a.proto", "files": FILES})

    assert response.status_code == 200
    data = response.json()
    assert data["root"] == "a.proto"
    assert data["dot"].startswith("/* generated by protograph */")
    names = {e["qualified_name"]: e for e in data["entities"]}
    assert {"a.Foo", "b.Bar", "b.Other"} <= set(names)
    assert any(e["kind"] == "missing" for e in data["entities"])
    edge = next(e for e in data["edges"] if e["field"] == "x")
    assert edge["owner"] == names["a.Foo"]["alias"]
    assert edge["target"] == names["b.Bar"]["alias"]
    assert data["dependencies"] == {"a.proto": ["b.proto"], "b.proto": []}


async def test_render_selection(client: AsyncClient):
    """A selection narrows entities to the reachable subgraph."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": FILES, "selection": "Foo"},
    )

    assert response.status_code == 200
    names = {e["qualified_name"] for e in response.json()["entities"]}
    assert "b.Other" not in names
    assert {"a.Foo", "b.Bar"} <= names


async def test_render_imports_tree(client: AsyncClient):
    """`imports` returns the dependency tree without entities."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": FILES, "selection": "imports"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["entities"] == []
    assert "digraph" in data["dot"]


async def test_ambiguous_selection_is_bad_request(client: AsyncClient):
    """Selection errors are 400 with the candidate list."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": FILES, "selection": "r"},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert len(detail["candidates"]) > 1


async def test_missing_root_is_not_found(client: AsyncClient):
    """An unknown root file is 404."""
    response = await client.post("/api/render", json={"root": "zzz.proto", "files": FILES})

    assert response.status_code == 404


async def test_strict_types_are_unprocessable(client: AsyncClient):
    """Unresolved types with placeholders disabled are 422."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": FILES, "show_missing_types": False},
    )

    assert response.status_code == 422
    assert "Ghost" in response.json()["detail"]


async def test_parse_error_is_unprocessable(client: AsyncClient):
    """Invalid schema text is 422."""
    response = await client.post(
        "/api/render",
        json={"root": "bad.proto", "files": {"bad.proto": "message {"}},
    )

    assert response.status_code == 422


async def test_missing_import_reported(client: AsyncClient):
    """Tolerated missing imports are listed in the response."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": {"a.proto": FILES["a.proto"]}},
    )

    assert response.status_code == 200
    assert response.json()["missing_imports"] == ["b.proto"]


async def test_strict_imports_fail(client: AsyncClient):
    """Missing imports with tolerance disabled are 404."""
    response = await client.post(
        "/api/render",
        json={"root": "a.proto", "files": {"a.proto": FILES["a.proto"]}, "allow_missing_imports": False},
    )

    assert response.status_code == 404
