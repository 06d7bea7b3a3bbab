"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from fileflow.infrastructure.firebase._rest_encoding import (
    decode_fields,
    document_id,
    encode_fields,
    encode_value,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"
_LIST_PAGE_SIZE = 300


def get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentExistsError(Exception):
    """Raised when createDocument returns 409 (document ID already exists)."""


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    resp = await client.request(method, url, headers=headers, json=body)
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return document_id(self._path)

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        await self._client.request("PATCH", self._path, encode_fields(data))

    async def update(self, changes: dict[str, Any]) -> dict | None:
        """Patch only the given fields; returns the full decoded document.

        The ``exists`` precondition makes Firestore answer 404 (None here)
        instead of creating the document.
        """
        mask = "&".join(
            f"updateMask.fieldPaths={quote(field, safe='')}" for field in changes
        )
        out = await self._client.request(
            "PATCH",
            f"{self._path}?{mask}&currentDocument.exists=true",
            encode_fields(changes),
        )
        if not out:
            return None
        return decode_fields(out.get("fields"))

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await self._client.request("GET", self._path)
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_fields(out.get("fields")))

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await self._client.request("DELETE", self._path)


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "in": "IN",
    "array_contains": "ARRAY_CONTAINS",
}


class _Query:
    """Query builder for one collection; runs via runQuery (filters AND-ed on the server)."""

    def __init__(self, client: FirestoreRESTClient, parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[dict[str, Any]] = []

    def where(self, field: str, op: str, value: Any) -> _Query:
        self._filters.append(
            {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": _OP_MAP.get(op, op),
                    "value": encode_value(value),
                }
            }
        )
        return self

    def structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        if len(self._filters) == 1:
            structured["where"] = self._filters[0]
        elif self._filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": list(self._filters)}
            }
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        resp = await self._client.request(
            "POST",
            f"{self._parent}:runQuery",
            {"structuredQuery": self.structured_query()},
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            doc = item["document"]
            yield DocumentSnapshot(
                document_id(doc.get("name", "")), decode_fields(doc.get("fields"))
            )


class CollectionReference:
    """Reference to a collection."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    def document(self, document_id_: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id_}")

    async def create(self, document_id_: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        await self._client.request(
            "POST",
            f"{self._path}?documentId={quote(document_id_, safe='')}",
            encode_fields(data),
        )

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Chain more .where() calls, then .stream()."""
        return self.query().where(field, op, value)

    def query(self) -> _Query:
        parent, _, collection_id = self._path.rpartition("/")
        return _Query(self._client, parent, collection_id)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """List every document in the collection, following nextPageToken."""
        page_token: str | None = None
        while True:
            url = f"{self._path}?pageSize={_LIST_PAGE_SIZE}"
            if page_token:
                url += f"&pageToken={quote(page_token, safe='')}"
            out = await self._client.request("GET", url)
            if not out:
                return
            for doc in out.get("documents", []):
                yield DocumentSnapshot(
                    document_id(doc.get("name", "")), decode_fields(doc.get("fields"))
                )
            page_token = out.get("nextPageToken")
            if not page_token:
                return


class FirestoreRESTClient:
    """Firestore collections over REST, authenticated with a service account."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._credentials = credentials
        self._prefix = f"projects/{project_id}/databases/(default)/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        if self._credentials is None:
            return None
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def request(self, method: str, path: str, body: dict | None = None) -> Any:
        """Call ``{base}/{path}`` with a bearer token."""
        return await _request_async(
            self._http,
            f"{_BASE}/{path}",
            method=method,
            body=body,
            access_token=await self.get_token(),
        )

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")
