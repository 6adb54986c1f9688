from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

from app.services.fits.errors import MalformedRemoteResponse, TierUnavailable

logger = logging.getLogger("uvicorn.error")


class FunctionsClient:
    """Calls hosted functions by name: ``POST {base_url}/{name}`` with a JSON body."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    async def invoke(self, name: str, payload: Dict[str, Any]) -> Any:
        if not self.enabled:
            raise TierUnavailable("functions not configured")
        start = time.perf_counter()
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            resp = await client.post(f"/{name}", json=payload)
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.info("functions:%s status=%s latency_ms=%s", name, resp.status_code, latency_ms)
        if resp.status_code >= 400:
            raise TierUnavailable(f"{name} status={resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedRemoteResponse(f"{name} returned non-json body") from e
