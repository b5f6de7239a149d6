"""
Remote annotation service backend.

Talks to the JSON API described in :mod:`vidnote.server` through an
``httpx.AsyncClient``. Every response is wrapped in the envelope
``{success, data?, error?, message?}``.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from .backends import AnnotationBackend

logger = logging.getLogger(__name__)


class RemoteBackend(AnnotationBackend):
    """
    Backend persisting annotations to the remote service.

    Args:
        base_url: API root, e.g. ``http://localhost:3001/api``
        client: Preconfigured client; when given, ``base_url`` and
            ``timeout`` are ignored and the caller owns the client
        timeout: Request timeout in seconds
    """

    name = "remote"

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        if client is None and base_url is None:
            raise ValueError("RemoteBackend needs a base_url or a client")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = await self.client.request(method, path, **kwargs)
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected response body from {path}")
        if not body.get("success"):
            logger.warning(
                f"{method} {path} failed ({response.status_code}): "
                f"{body.get('error', 'unknown error')}"
            )
        return body

    async def load_all(self, video_id: str) -> List[Dict[str, Any]]:
        try:
            body = await self._request("GET", f"/annotations/{quote(video_id, safe='')}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to load annotations from API: {e}")
            return []
        data = body.get("data") if body.get("success") else None
        if not isinstance(data, list):
            return []
        return data

    async def save_all(self, records: Iterable[Dict[str, Any]], video_id: str) -> bool:
        records = list(records)
        try:
            body = await self._request(
                "POST",
                "/annotations/bulk",
                json={"annotations": records, "videoId": video_id},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to save annotations to API: {e}")
            return False
        if body.get("success"):
            logger.info(f"Annotations saved to API: {len(records)}")
            return True
        return False

    async def health(self) -> bool:
        """Liveness probe of the service."""
        try:
            body = await self._request("GET", "/health")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Health check failed: {e}")
            return False
        return bool(body.get("success"))

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
