"""Tests for the HTTP remote store against the reference server."""

import httpx
import pytest

from liftlog.errors import RemoteReadFailed, RemoteWriteFailed
from liftlog.remote.http import HttpRemoteStore
from liftlog.remote.sqlite import SqliteRemoteStore
from liftlog.web.app import create_app


@pytest.fixture
async def server_store(tmp_path):
    store = SqliteRemoteStore(tmp_path / "remote.db")
    await store.init_db()
    return store


@pytest.fixture
def app(server_store):
    return create_app(store=server_store)


@pytest.fixture
def client(app):
    return HttpRemoteStore("http://test", transport=httpx.ASGITransport(app=app))


class TestHttpRemoteStore:
    """Round trips through the FastAPI document routes."""

    @pytest.mark.asyncio
    async def test_upsert_and_read_all(self, client, server_store):
        await client.upsert("users/u1/workouts", "w1", {"date": "2024-01-01"})
        await client.upsert("users/u1/workouts", "w1", {"date": "2024-01-02"})

        docs = await client.read_all("users/u1/workouts")

        assert docs == [{"date": "2024-01-02", "id": "w1"}]
        assert await server_store.read_all("users/u1/workouts") == docs

    @pytest.mark.asyncio
    async def test_read_recent(self, client):
        for i, day in enumerate(["2024-01-03", "2024-01-01", "2024-01-02"]):
            await client.upsert("users/u1/weightEntries", f"b{i}", {"date": day, "weight": 80})

        docs = await client.read_recent("users/u1/weightEntries", "date", 2)

        assert [d["date"] for d in docs] == ["2024-01-03", "2024-01-02"]
        assert await client.read_recent("users/u1/weightEntries", "date", 0) == []

    @pytest.mark.asyncio
    async def test_add_generates_id(self, client):
        doc_id = await client.add("global-exercises", {"name": "Squat"})

        docs = await client.read_all("global-exercises")

        assert docs == [{"name": "Squat", "id": doc_id}]

    @pytest.mark.asyncio
    async def test_delete_missing_document_succeeds(self, client):
        await client.upsert("global-exercises", "e1", {"name": "Squat"})

        await client.delete("global-exercises", "e1")
        await client.delete("global-exercises", "e1")

        assert await client.read_all("global-exercises") == []

    @pytest.mark.asyncio
    async def test_collections_are_separate(self, client):
        await client.upsert("users/u1/workouts", "w1", {"date": "2024-01-01"})

        assert await client.read_all("users/u2/workouts") == []

    @pytest.mark.asyncio
    async def test_bad_order_field_is_read_failure(self, client):
        with pytest.raises(RemoteReadFailed) as exc_info:
            await client.read_recent("users/u1/workouts", "date) --", 5)

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = HttpRemoteStore("http://test", transport=httpx.MockTransport(refuse))

        with pytest.raises(RemoteWriteFailed):
            await client.upsert("global-exercises", "e1", {"name": "Squat"})
        with pytest.raises(RemoteReadFailed):
            await client.read_all("global-exercises")

    @pytest.mark.asyncio
    async def test_server_error_status(self):
        client = HttpRemoteStore(
            "http://test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
        )

        with pytest.raises(RemoteWriteFailed) as exc_info:
            await client.upsert("global-exercises", "e1", {"name": "Squat"})

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>proxy login</html>"),
            httpx.Response(200, json={"items": []}),
            httpx.Response(200, json={"docs": "none"}),
        ],
    )
    async def test_unexpected_read_body(self, response):
        client = HttpRemoteStore("http://test", transport=httpx.MockTransport(lambda request: response))

        with pytest.raises(RemoteReadFailed) as exc_info:
            await client.read_all("global-exercises")

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_unexpected_add_body(self):
        client = HttpRemoteStore(
            "http://test",
            transport=httpx.MockTransport(lambda request: httpx.Response(201, json={})),
        )

        with pytest.raises(RemoteWriteFailed):
            await client.add("global-exercises", {"name": "Squat"})


class TestServer:
    @pytest.mark.asyncio
    async def test_health(self, app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            response = await http.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, app, server_store):
        await server_store.upsert("global-exercises", "e1", {"name": "Squat"})
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            first = await http.delete("/collections/global-exercises/docs/e1")
            second = await http.delete("/collections/global-exercises/docs/e1")

        assert first.json() == {"deleted": True}
        assert second.json() == {"deleted": False}
