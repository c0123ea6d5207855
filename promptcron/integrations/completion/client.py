"""Completion service client for promptcron.

Posts a job's prompt to the external completion endpoint and returns its JSON
payload untouched. The whole call is bounded by a hard timeout; when it
expires the request is cancelled.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from promptcron.core.errors import CompletionTimeoutError, ExternalCallFailure
from promptcron.core.logging import logger

DEFAULT_TIMEOUT_SECONDS = 300.0


class CompletionClient:
    """HTTP client for the completion-generating service."""

    def __init__(
        self,
        api_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize CompletionClient.

        Args:
            api_url: Completion endpoint (POST, JSON)
            timeout_seconds: Hard deadline for one call
            http_client: Shared AsyncClient (tests pass one with MockTransport).
                Without one, each call opens its own client, since every
                Lambda invocation runs in a fresh event loop.
        """
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._http = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        # httpx's own timeout is disabled; the hard deadline in complete() covers the whole call.
        async with httpx.AsyncClient(timeout=None) as client:
            yield client

    @staticmethod
    def build_payload(prompt: str, system_prompt: Optional[str], max_turns: int) -> Dict[str, Any]:
        """Request body in the completion service's wire format."""
        return {
            "prompt": prompt,
            "systemPrompt": system_prompt,
            "options": {"maxTurns": max_turns},
        }

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, max_turns: int = 10) -> Any:
        """Run one completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            max_turns: Bound on the service's internal tool loops

        Returns:
            Decoded JSON response (opaque to promptcron)

        Raises:
            CompletionTimeoutError: If the call exceeds timeout_seconds
            ExternalCallFailure: On non-2xx status, transport error or invalid JSON
        """
        payload = self.build_payload(prompt, system_prompt, max_turns)

        try:
            return await asyncio.wait_for(self._post(payload), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning("completion_call_timed_out", timeout_seconds=self.timeout_seconds)
            raise CompletionTimeoutError(self.timeout_seconds) from e

    async def _post(self, payload: Dict[str, Any]) -> Any:
        try:
            async with self._client() as client:
                response = await client.post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            raise ExternalCallFailure(f"Completion API request failed: {e}", error_type=type(e).__name__) from e

        if not response.is_success:
            raise ExternalCallFailure(
                f"API returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                error_type="HTTPStatusError",
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalCallFailure(
                "Completion API returned invalid JSON",
                status_code=response.status_code,
                error_type="InvalidResponse",
            ) from e

    async def ping(self) -> Dict[str, Any]:
        """Check the endpoint is reachable (any HTTP answer counts)."""
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(client.get(self.api_url), timeout=2.0)
            return {"status": "healthy", "http_status": response.status_code}
        except asyncio.TimeoutError:
            return {"status": "timeout", "error": "Request timed out after 2s"}
        except httpx.HTTPError as e:
            return {"status": "unavailable", "error": str(e)[:100]}

    async def aclose(self) -> None:
        """Close the shared HTTP client, if one was given."""
        if self._http is not None:
            await self._http.aclose()
