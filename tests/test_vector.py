"""Tests for vector indexes."""

import json

import httpx
import pytest

from reelmatch.errors import VectorIndexError
from reelmatch.records import ContentRecord, MediaType
from reelmatch.vector import LocalVectorIndex, PineconeIndex, content_metadata, content_to_vector_text


@pytest.fixture
def matrix():
    return ContentRecord(
        id="tt0133093",
        title="The Matrix",
        year="1999",
        genres=["Action", "Sci-Fi"],
        director="Lana Wachowski, Lilly Wachowski",
        actors="Keanu Reeves, Laurence Fishburne",
        plot="A computer hacker learns about the true nature of reality.",
    )


def test_content_to_vector_text(matrix):
    text = content_to_vector_text(matrix)
    assert text.splitlines() == [
        "Title: The Matrix",
        "Year: 1999",
        "Genres: Action, Sci-Fi",
        "Director: Lana Wachowski, Lilly Wachowski",
        "Actors: Keanu Reeves, Laurence Fishburne",
        "Plot: A computer hacker learns about the true nature of reality.",
    ]


def test_content_to_vector_text_sparse():
    assert content_to_vector_text(ContentRecord(id="x", title="Heat")) == "Title: Heat"


def test_content_metadata_drops_missing():
    metadata = content_metadata(ContentRecord(id="x", title="Lost", media_type=MediaType.SERIES))
    assert metadata == {"title": "Lost", "type": "series"}


class TestLocalVectorIndex:
    """Tests for the in-process TF-IDF index."""

    @pytest.mark.asyncio
    async def test_query_ranks_closest_first(self):
        index = LocalVectorIndex()
        await index.upsert("a", "hacker discovers simulated reality", {"title": "A"})
        await index.upsert("b", "chef cooks french dinner", {"title": "B"})
        await index.upsert("c", "hacker joins rebels against machines", {"title": "C"})

        matches = await index.query("a hacker and simulated reality", top_k=5)

        assert [m.id for m in matches] == ["a", "c"]
        assert matches[0].metadata == {"title": "A"}
        assert 0.0 < matches[1].score < matches[0].score <= 1.0

    @pytest.mark.asyncio
    async def test_upsert_replaces_and_delete_removes(self):
        index = LocalVectorIndex()
        await index.upsert("a", "space opera")
        await index.upsert("a", "courtroom drama")
        assert len(index) == 1
        assert [m.id for m in await index.query("courtroom")] == ["a"]

        await index.delete("a")
        await index.delete("missing")
        assert "a" not in index
        assert await index.query("courtroom") == []

    @pytest.mark.asyncio
    async def test_query_edge_cases(self):
        index = LocalVectorIndex()
        assert await index.query("anything") == []

        await index.upsert("a", "space opera")
        assert await index.query("") == []
        assert await index.query("???") == []

    @pytest.mark.asyncio
    async def test_upsert_record(self, matrix):
        index = LocalVectorIndex()
        await index.upsert_record(matrix)
        matches = await index.query("computer hacker reality")
        assert matches[0].id == "tt0133093"
        assert matches[0].metadata["director"] == "Lana Wachowski, Lilly Wachowski"


class TestPineconeIndex:
    """Tests for the Pinecone records API client using a mock transport."""

    @pytest.mark.asyncio
    async def test_resolves_host_then_searches(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, str(request.url)))
            assert request.headers["Api-Key"] == "pk"
            if request.url.host == "api.pinecone.io":
                return httpx.Response(200, json={"host": "omdb-database-abc.svc.pinecone.io"})
            body = json.loads(request.content)
            assert body["query"] == {"inputs": {"text": "hacker"}, "top_k": 3}
            return httpx.Response(200, json={"result": {"hits": [
                {"_id": "tt0133093", "_score": 0.87, "fields": {"title": "The Matrix", "chunk_text": "..."}},
            ]}})

        index = PineconeIndex(api_key="pk", transport=httpx.MockTransport(handler))
        async with index:
            matches = await index.query("hacker", top_k=3)

        assert calls[0] == ("GET", "https://api.pinecone.io/indexes/omdb-database")
        assert calls[1] == (
            "POST",
            "https://omdb-database-abc.svc.pinecone.io/records/namespaces/__default__/search",
        )
        assert len(matches) == 1
        assert matches[0].id == "tt0133093"
        assert matches[0].score == pytest.approx(0.87)
        assert matches[0].metadata == {"title": "The Matrix"}

    @pytest.mark.asyncio
    async def test_upsert_sends_ndjson_record(self, matrix):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["content_type"] = request.headers["Content-Type"]
            seen["record"] = json.loads(request.content.decode().strip())
            return httpx.Response(201)

        index = PineconeIndex(api_key="pk", host="idx.pinecone.io", transport=httpx.MockTransport(handler))
        async with index:
            await index.upsert_record(matrix)

        assert seen["path"] == "/records/namespaces/__default__/upsert"
        assert seen["content_type"] == "application/x-ndjson"
        assert seen["record"]["_id"] == "tt0133093"
        assert seen["record"]["chunk_text"].startswith("Title: The Matrix")
        assert seen["record"]["genres"] == ["Action", "Sci-Fi"]

    @pytest.mark.asyncio
    async def test_delete(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        index = PineconeIndex(api_key="pk", host="https://idx.pinecone.io", namespace="movies",
                              transport=httpx.MockTransport(handler))
        async with index:
            await index.delete("tt1")

        assert seen["path"] == "/vectors/delete"
        assert seen["body"] == {"ids": ["tt1"], "namespace": "movies"}

    @pytest.mark.asyncio
    async def test_http_failure_raises_vector_error(self):
        index = PineconeIndex(
            api_key="pk", host="idx.pinecone.io",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        async with index:
            with pytest.raises(VectorIndexError):
                await index.query("hacker")

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            PineconeIndex(api_key="")
