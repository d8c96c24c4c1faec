"""
Client for the hosted AI gateway (OpenAI-compatible chat completions).

Both AI endpoints go through here: the labour-law chat streams server-sent
events straight back to the browser, the market analysis waits for a single
completion. Upstream status codes the client can act on (429, 402) get their
own exception types so routes can pass them through.
"""

import logging
from typing import Iterator, List, Optional

import httpx

from salarybench.core.config import settings

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Upstream failure the caller cannot do anything about."""


class GatewayNotConfigured(GatewayError):
    pass


class GatewayRateLimited(GatewayError):
    pass


class GatewayPaymentRequired(GatewayError):
    pass


class AIGatewayClient:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url or settings.AI_GATEWAY_URL
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.model = model or settings.AI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.Client:
        if not self.api_key:
            raise GatewayNotConfigured("AI gateway is not configured")
        return httpx.Client(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code == 429:
            raise GatewayRateLimited("Rate limit exceeded. Please try again later.")
        if response.status_code == 402:
            raise GatewayPaymentRequired(
                "Payment required. Please add credits to your workspace."
            )
        if response.status_code >= 400:
            logger.error("AI gateway error: %s %s", response.status_code, response.text)
            raise GatewayError("AI gateway error")

    def complete(self, messages: List[dict]) -> str:
        """Send a chat completion and return the assistant message text."""
        with self._client() as client:
            try:
                response = client.post(
                    self.url, json={"model": self.model, "messages": messages}
                )
            except httpx.HTTPError as exc:
                logger.error("AI gateway request failed: %s", exc)
                raise GatewayError("AI gateway error") from exc

            self._raise_for_status(response)
            try:
                return response.json()["choices"][0]["message"]["content"]
            except (ValueError, KeyError, IndexError) as exc:
                raise GatewayError("AI gateway returned an unexpected payload") from exc

    def stream(self, messages: List[dict]) -> Iterator[bytes]:
        """
        Open a streaming completion.

        Status errors are raised here, before any byte is sent to the caller.
        The returned iterator yields raw SSE bytes and closes the upstream
        connection when exhausted.
        """
        client = self._client()
        request = client.build_request(
            "POST",
            self.url,
            json={"model": self.model, "messages": messages, "stream": True},
        )
        try:
            response = client.send(request, stream=True)
        except httpx.HTTPError as exc:
            client.close()
            logger.error("AI gateway request failed: %s", exc)
            raise GatewayError("AI gateway error") from exc

        if response.status_code >= 400:
            try:
                response.read()
                self._raise_for_status(response)
            finally:
                response.close()
                client.close()

        def _iter_events() -> Iterator[bytes]:
            try:
                for chunk in response.iter_bytes():
                    yield chunk
            finally:
                response.close()
                client.close()

        return _iter_events()


def get_gateway() -> AIGatewayClient:
    return AIGatewayClient()
