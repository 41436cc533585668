"""Market-data API client: one GET per call, authenticated with a rotated key."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cryptokind.errors import UpstreamError
from cryptokind.keys.rotator import KeyRotator

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-CMC_PRO_API_KEY"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class UpstreamClient:
    """Thin wrapper over a shared httpx.AsyncClient.

    No retries and no fallback to another key: a failed call raises
    UpstreamError with whatever status and body the API returned.
    """

    def __init__(
        self,
        rotator: KeyRotator,
        http: httpx.AsyncClient,
        base_url: str,
        timeout: float = 10.0,
    ) -> None:
        self.rotator = rotator
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def request(self, endpoint: str, params: dict[str, Any] | None = None) -> dict:
        """GET ``endpoint`` and return the decoded JSON body."""
        api_key = self.rotator.select_key()
        url = f"{self.base_url}{endpoint}"
        headers = {
            API_KEY_HEADER: api_key,
            "Accept": "application/json",
            "Accept-Encoding": "deflate, gzip",
        }

        try:
            response = await self.http.get(
                url, params=params or {}, headers=headers, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            logger.error("API request failed: %s %s", endpoint, e)
            raise UpstreamError(f"Request to {endpoint} failed: {e}") from e

        if not response.is_success:
            body = _response_body(response)
            logger.error(
                "API request failed: %s status=%d body=%s",
                endpoint,
                response.status_code,
                body,
            )
            raise UpstreamError(
                f"Upstream returned {response.status_code} for {endpoint}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error("API request returned invalid JSON: %s", endpoint)
            raise UpstreamError(
                f"Invalid JSON from {endpoint}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        logger.info("API request successful: %s", endpoint)
        return data
