from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.settings import GeminiSettings
from providers.genai import GenAIClient

log = logging.getLogger(__name__)


def _preview(text: str, max_chars: int = 240) -> str:
    t = (text or "").strip().replace("\n", " ")
    return t if len(t) <= max_chars else t[: max_chars - 1] + "…"


class GeminiHTTPClient(GenAIClient):
    """
    Gemini REST client over httpx.

    Reliability:
      - explicit timeouts (video downloads and research reads can be slow)
      - retries + backoff for GETs only; POSTs that start remote work are sent once
      - HTTP errors carry a clipped body preview
    """

    def __init__(
        self,
        settings: GeminiSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not settings.api_key:
            raise RuntimeError("GEMINI_API_KEY environment variable is required")
        self.settings = settings
        self._transport = transport
        self._timeout = httpx.Timeout(
            settings.timeout_seconds,
            connect=settings.connect_timeout_seconds,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.api_url + "/",
            headers={"x-goog-api-key": self.settings.api_key},
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {resp.status_code} from Gemini: {_preview(resp.text)}",
                request=resp.request,
                response=resp,
            )

    async def _post_json(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            resp = await client.post(path, json=body)
        self._raise_for_status(resp)
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Gemini response for {path}: {type(data).__name__}")
        return data

    async def _get(self, path: str) -> httpx.Response:
        max_attempts = self.settings.max_attempts
        backoff: List[float] = self.settings.backoff_seconds
        last_exc: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                async with self._client() as client:
                    resp = await client.get(path)
                self._raise_for_status(resp)
                return resp
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                # 4xx other than 429 will not get better by retrying
                if 400 <= status < 500 and status != 429:
                    raise
                last_exc = exc
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                last_exc = exc

            if attempt < max_attempts:
                delay = backoff[min(attempt - 1, len(backoff) - 1)]
                log.debug("GET %s failed (attempt %d/%d): %s", path, attempt, max_attempts, last_exc)
                await asyncio.sleep(delay)

        assert last_exc is not None
        raise last_exc

    async def _get_json(self, path: str) -> Dict[str, Any]:
        resp = await self._get(path)
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Gemini response for {path}: {type(data).__name__}")
        return data

    # -----------------------------------------------------------------
    # GenAIClient
    # -----------------------------------------------------------------

    async def generate_videos(
        self,
        prompt: str,
        model: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        chosen = (model or "").strip() or self.settings.video_model
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": dict(config or {}),
        }
        return await self._post_json(f"models/{chosen}:predictLongRunning", body)

    async def get_operation(self, name: str) -> Dict[str, Any]:
        return await self._get_json(name.lstrip("/"))

    async def create_interaction(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post_json("interactions", body)

    async def get_interaction(self, interaction_id: str) -> Dict[str, Any]:
        return await self._get_json(f"interactions/{interaction_id}")

    async def download(self, uri: str) -> bytes:
        # absolute URIs bypass base_url; the key header still applies
        resp = await self._get(uri)
        return resp.content

    async def list_models(self) -> List[str]:
        data = await self._get_json("models")
        return [m.get("name") for m in data.get("models", []) if isinstance(m, dict) and m.get("name")]
