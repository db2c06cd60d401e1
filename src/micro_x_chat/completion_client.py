from __future__ import annotations

from dataclasses import dataclass

import httpx
from loguru import logger

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_METHOD = "POST"


class TransportError(Exception):
    """The completion call failed before a response body could be read."""


@dataclass(frozen=True)
class EndpointConfig:
    bearer_token: str
    content_type: str = DEFAULT_CONTENT_TYPE
    endpoint_url: str = DEFAULT_ENDPOINT
    http_method: str = DEFAULT_METHOD

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.bearer_token}",
            "Content-Type": self.content_type,
        }


class CompletionClient:
    def __init__(self, endpoint: EndpointConfig, timeout_seconds: float | None = 60.0):
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds

    @property
    def endpoint(self) -> EndpointConfig:
        return self._endpoint

    async def complete(self, payload: bytes, headers: dict[str, str] | None = None) -> bytes:
        """Send one request and return the raw response body.

        The body is returned whatever the status code; deciding whether it
        means anything is left to the response extractor.
        """
        request_headers = headers if headers is not None else self._endpoint.headers()
        method = self._endpoint.http_method
        url = self._endpoint.endpoint_url

        logger.debug(f"API request: {method} {url}, payload_bytes={len(payload)}")
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.request(method, url, content=payload, headers=request_headers)
                body = response.content
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as ex:
            # header values must be ASCII
            logger.error(f"Completion request to {url} failed: {type(ex).__name__}: {ex}")
            raise TransportError(f"{method} {url} failed: {ex}") from ex

        if not response.is_success:
            logger.warning(f"API response: HTTP {response.status_code} from {url} ({len(body)} bytes)")
        else:
            logger.debug(f"API response: HTTP {response.status_code}, body_bytes={len(body)}")
        return body
