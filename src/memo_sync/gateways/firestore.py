"""Firestore REST v1 gateway.

Talks to ``firestore.googleapis.com`` (or an emulator via ``base_url``)
using ``requests``.  Plain JSON values are converted to and from the
Firestore typed-value encoding.  Transactions are committed through the
``documents:commit`` endpoint, which applies all writes atomically.

Access tokens are opaque configuration; this module never obtains one.
"""

from __future__ import annotations

import logging
import threading
from typing import Any
from urllib.parse import quote

import requests

from memo_sync.core.async_utils import run_sync_limited
from memo_sync.errors import SerializationError, TransportError

from .document_store import Transaction

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://firestore.googleapis.com"
_PAGE_SIZE = 300


# ---------------------------------------------------------------------------
# Value encoding
# ---------------------------------------------------------------------------


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a JSON-compatible value as a Firestore ``Value``."""
    match value:
        case None:
            return {"nullValue": None}
        case bool():
            return {"booleanValue": value}
        case int():
            return {"integerValue": str(value)}
        case float():
            return {"doubleValue": value}
        case str():
            return {"stringValue": value}
        case list() | tuple():
            if not value:
                return {"arrayValue": {}}
            return {"arrayValue": {"values": [encode_value(v) for v in value]}}
        case dict():
            return {"mapValue": {"fields": encode_fields(value)}}
        case _:
            raise TypeError(
                f"Cannot encode {type(value).__name__} as a Firestore value"
            )


def encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: dict[str, Any]) -> Any:
    """Decode a Firestore ``Value`` into a plain Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    for key in ("stringValue", "timestampValue", "referenceValue", "bytesValue"):
        if key in value:
            return value[key]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    raise ValueError(f"Unsupported Firestore value: {sorted(value)}")


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: decode_value(v) for k, v in fields.items()}


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class FirestoreRestGateway:
    """Remote document store backed by the Firestore REST API.

    Args:
        project_id: Google Cloud project id.
        token: Bearer access token, or ``None`` (emulator).
        database: Database id.
        base_url: API root; point it at an emulator for local runs.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        project_id: str,
        token: str | None = None,
        database: str = "(default)",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self.project_id = project_id
        self.database = database
        self.token = token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._thread_local = threading.local()

    @property
    def database_name(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}"

    @property
    def documents_url(self) -> str:
        return f"{self.base_url}/v1/{self.database_name}/documents"

    def document_name(self, path: str, id: str) -> str:
        return f"{self.database_name}/documents/{path.strip('/')}/{id}"

    def document_url(self, path: str, id: str | None = None) -> str:
        """URL of a document (or of a collection when *id* is omitted).

        Every path segment is percent-encoded; ids may contain
        characters such as ``#``, ``?`` or ``%``.
        """
        segments = path.strip("/").split("/")
        if id is not None:
            segments.append(id)
        encoded = "/".join(quote(segment, safe="") for segment in segments)
        return f"{self.documents_url}/{encoded}"

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def get_doc(self, path: str, id: str) -> dict[str, Any] | None:
        return await run_sync_limited(self._get_doc, path, id)

    async def get_collection(self, path: str) -> list[dict[str, Any]]:
        return await run_sync_limited(self._list_documents, path)

    async def set_doc(
        self, id: str, path: str, data: dict[str, Any]
    ) -> None:
        transaction = self.begin_transaction()
        transaction.stage_write(id, path, data)
        await self.commit(transaction)

    async def delete_doc(self, id: str, path: str) -> None:
        transaction = self.begin_transaction()
        transaction.stage_delete(id, path)
        await self.commit(transaction)

    def begin_transaction(self) -> Transaction:
        return Transaction()

    async def commit(self, transaction: Transaction) -> None:
        if transaction.committed:
            raise TransportError("Transaction already committed")
        await run_sync_limited(self._commit, transaction)
        transaction.committed = True

    # ------------------------------------------------------------------
    # Blocking implementation
    # ------------------------------------------------------------------

    def _get_doc(self, path: str, id: str) -> dict[str, Any] | None:
        url = self.document_url(path, id)
        response = self._request("GET", url, allow_not_found=True)
        if response is None:
            return None
        return _decode_document(_json_body(response, url), id)

    def _list_documents(self, path: str) -> list[dict[str, Any]]:
        url = self.document_url(path)
        documents: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": _PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            response = self._request(
                "GET", url, params=params, allow_not_found=True
            )
            if response is None:
                return documents
            body = _json_body(response, url)
            for doc in body.get("documents", []):
                doc_id = doc.get("name", "").rpartition("/")[2]
                documents.append(_decode_document(doc, doc_id))
            page_token = body.get("nextPageToken")
            if not page_token:
                return documents

    def _commit(self, transaction: Transaction) -> None:
        writes: list[dict[str, Any]] = []
        for op in transaction.operations:
            name = self.document_name(op.path, op.id)
            if op.kind == "set":
                writes.append(
                    {
                        "update": {
                            "name": name,
                            "fields": encode_fields(op.data or {}),
                        }
                    }
                )
            else:
                writes.append({"delete": name})

        if not writes:
            return

        logger.debug("Committing %d write(s) to Firestore", len(writes))
        self._request(
            "POST", f"{self.documents_url}:commit", json={"writes": writes}
        )

    def _request(
        self,
        method: str,
        url: str,
        *,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> requests.Response | None:
        session = self._get_session()
        try:
            response = session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise TransportError(
                f"{method} {url} failed: {exc}", origin=exc
            ) from exc

        if response.status_code == 404 and allow_not_found:
            return None
        if not response.ok:
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            session = requests.Session()
            if self.token:
                session.headers["Authorization"] = f"Bearer {self.token}"
            self._thread_local.session = session
        return self._thread_local.session


def _error_message(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]


def _json_body(response: requests.Response, url: str) -> dict[str, Any]:
    try:
        return response.json()
    except ValueError as exc:
        raise TransportError(
            f"GET {url} returned a non-JSON body: {response.text[:200]}",
            status_code=response.status_code,
            origin=exc,
        ) from exc


def _decode_document(document: dict[str, Any], id: str) -> dict[str, Any]:
    try:
        return decode_fields(document.get("fields", {}))
    except ValueError as exc:
        raise SerializationError(
            f"Cannot decode document '{id}': {exc}",
            record_id=id or None,
            origin=exc,
        ) from exc
