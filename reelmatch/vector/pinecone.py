"""
Pinecone vector index over the REST records API.

Targets indexes created with integrated embedding: records are upserted
as text and Pinecone embeds them server-side, so no local model is needed.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import VectorIndexError
from .base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)

CONTROL_PLANE_URL = "https://api.pinecone.io"
API_VERSION = "2025-01"
DEFAULT_INDEX_NAME = "omdb-database"
DEFAULT_NAMESPACE = "__default__"
DEFAULT_TEXT_FIELD = "chunk_text"


class PineconeIndex(VectorIndex):
    """
    Pinecone-hosted index.

    Example:
        >>> async with PineconeIndex(api_key=key, host="omdb-database-xyz.svc.pinecone.io") as index:
        ...     await index.upsert("tt0133093", "Title: The Matrix ...")
        ...     hits = await index.query("hacker discovers simulated reality", top_k=5)
    """

    def __init__(
        self,
        api_key: str,
        index_name: str = DEFAULT_INDEX_NAME,
        host: Optional[str] = None,
        namespace: str = DEFAULT_NAMESPACE,
        text_field: str = DEFAULT_TEXT_FIELD,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("Pinecone index requires an API key")
        self.api_key = api_key
        self.index_name = index_name
        self.host = host
        self.namespace = namespace
        self.text_field = text_field
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return f"pinecone:{self.index_name}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Api-Key": self.api_key,
            "X-Pinecone-API-Version": API_VERSION,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _index_url(self) -> str:
        """Data-plane base URL, resolving the host from the index name if needed."""
        if not self.host:
            client = await self._get_client()
            response = await client.get(f"{CONTROL_PLANE_URL}/indexes/{self.index_name}")
            response.raise_for_status()
            self.host = response.json()["host"]
            logger.debug(f"Resolved Pinecone index {self.index_name} to {self.host}")

        host = self.host.rstrip("/")
        if not host.startswith("http"):
            host = f"https://{host}"
        return host

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            client = await self._get_client()
            url = f"{await self._index_url()}{path}"
            response = await client.post(url, **kwargs)
            response.raise_for_status()
            return response
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise VectorIndexError(f"Pinecone request {path} failed: {e}") from e

    async def upsert(self, id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        record = {"_id": id, self.text_field: text}
        for key, value in (metadata or {}).items():
            if value is not None and key not in record:
                record[key] = value

        # Records upsert takes newline-delimited JSON
        await self._post(
            f"/records/namespaces/{self.namespace}/upsert",
            content=json.dumps(record) + "\n",
            headers={"Content-Type": "application/x-ndjson"},
        )

    async def query(self, text: str, top_k: int = 10) -> List[VectorMatch]:
        payload = {
            "query": {"inputs": {"text": text}, "top_k": top_k},
        }
        response = await self._post(
            f"/records/namespaces/{self.namespace}/search",
            json=payload,
        )

        try:
            hits = response.json()["result"]["hits"]
        except (KeyError, TypeError, ValueError) as e:
            raise VectorIndexError(f"Unexpected Pinecone search response: {e}") from e

        matches = []
        for hit in hits:
            fields = dict(hit.get("fields") or {})
            fields.pop(self.text_field, None)
            matches.append(VectorMatch(
                id=hit["_id"],
                score=float(hit.get("_score", 0.0)),
                metadata=fields,
            ))
        return matches

    async def delete(self, id: str) -> None:
        await self._post(
            "/vectors/delete",
            json={"ids": [id], "namespace": self.namespace},
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
