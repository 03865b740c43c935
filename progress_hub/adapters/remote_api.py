# progress_hub/adapters/remote_api.py
from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional

import httpx

from progress_hub.adapters.base import BackendSnapshot, Document, PersistenceAdapter
from progress_hub.core.errors import NotFoundError, PersistenceError, QuotaExceededError
from progress_hub.schemas.common import CollectionKind

logger = logging.getLogger(__name__)

QUOTA_STATUS_CODES = {
    HTTPStatus.PAYMENT_REQUIRED,
    HTTPStatus.TOO_MANY_REQUESTS,
    HTTPStatus.INSUFFICIENT_STORAGE,
}
QUOTA_MARKERS = ("quota", "limit exceeded", "rate limit", "too many requests")


def looks_like_quota(message: str | None) -> bool:
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in QUOTA_MARKERS)


class RemoteApiAdapter(PersistenceAdapter):
    """
    Request/response adapter for a spreadsheet-backed web app.

    Protocol
    --------
    - ``GET  <base>?action=getCollection&kind=<kind>`` returns the collection.
    - ``POST <base>?action=saveCollection`` with body ``{"kind", "items"}``
      replaces it.
    - Every response uses the envelope ``{"success", "data", "message"}``.

    Error classification
    --------------------
    - 402 / 429 / 507, or an envelope message mentioning a quota or limit
      -> QuotaExceededError
    - 404 -> NotFoundError
    - transport failures, timeouts, other non-2xx, ``success: false``
      -> PersistenceError

    There is no push channel; a fresh snapshot requires another `load_all()`.
    """

    name = "remote_api"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")

        self._base_url = base_url
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    async def _request(
        self,
        method: str,
        action: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        """
        Issue one HTTP call against the web app and return the raw response.

        Transport-level failures are translated into PersistenceError here;
        status codes are interpreted by `_unwrap`.
        """
        query = {"action": action, **(params or {})}
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.request(
                    method=method.upper(),
                    url=self._base_url,
                    headers=headers,
                    params=query,
                    json=json,
                )
        except httpx.TimeoutException as exc:
            raise PersistenceError(f"Remote {action} timed out after {self._timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Remote {action} failed: {exc}") from exc

        return resp

    @staticmethod
    def _unwrap(resp: httpx.Response, action: str) -> Any:
        """
        Validate status code and envelope; return the envelope's `data`.
        """
        status = resp.status_code
        if status in QUOTA_STATUS_CODES:
            raise QuotaExceededError(f"Remote {action} rejected by plan limit (status={status}): {resp.text}")
        if status == HTTPStatus.NOT_FOUND:
            raise NotFoundError(f"Remote {action} target not found (status={status})")
        if status // 100 != 2:
            raise PersistenceError(f"Remote {action} failed (status={status}): {resp.text}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise PersistenceError(f"Remote {action} returned a non-JSON body") from exc

        if not isinstance(payload, dict):
            raise PersistenceError(f"Remote {action} returned an unexpected payload")

        if not payload.get("success"):
            message = payload.get("message") or "unknown error"
            if looks_like_quota(message):
                raise QuotaExceededError(f"Remote {action} rejected: {message}")
            raise PersistenceError(f"Remote {action} rejected: {message}")

        return payload.get("data")

    async def fetch_collection(self, kind: CollectionKind) -> List[Document]:
        resp = await self._request("GET", "getCollection", params={"kind": kind.value})
        data = self._unwrap(resp, "getCollection")
        if data is None:
            return []
        if not isinstance(data, list):
            raise PersistenceError(f"Remote getCollection returned a non-list for {kind.value}")
        return data

    async def load_all(self) -> BackendSnapshot:
        kinds = list(CollectionKind)
        results = await asyncio.gather(*(self.fetch_collection(kind) for kind in kinds))
        logger.info("Loaded snapshot from %s", self._base_url)
        return BackendSnapshot(collections=dict(zip(kinds, results)))

    async def save_collection(self, kind: CollectionKind, items: List[Document]) -> Optional[int]:
        resp = await self._request(
            "POST",
            "saveCollection",
            json={"kind": kind.value, "items": items},
        )
        data = self._unwrap(resp, "saveCollection")

        revision = data.get("revision") if isinstance(data, dict) else None
        return revision if isinstance(revision, int) else None
