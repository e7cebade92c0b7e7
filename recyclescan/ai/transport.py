from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from recyclescan.errors import RetriesExhaustedError, TerminalRequestError

logger = logging.getLogger(__name__)

# a malformed payload stays malformed, no point retrying it
NON_RETRIABLE_STATUSES = frozenset({400})


def backoff_delay(attempt: int, min_delay: float, jitter: Callable[[float, float], float]) -> float:
    """min_delay * 2**attempt plus up to one min_delay of jitter."""
    return min_delay * (2 ** attempt) + jitter(0.0, min_delay)


class RetryingTransport:
    """
    Sends one JSON POST with bounded exponential-backoff retry.

    2xx is returned as is, 400 fails at once with TerminalRequestError,
    anything else (other statuses, connection errors, timeouts) is retried
    until max_attempts calls have been made, then RetriesExhaustedError.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_attempts: int = 5,
        min_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.max_attempts = max_attempts
        self.min_delay = min_delay
        self._sleep = sleep
        self._jitter = jitter

    async def send(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        last_error: object = None

        for attempt in range(self.max_attempts):
            try:
                resp = await self.client.post(endpoint, json=payload, params=params)
            except httpx.TransportError as e:
                last_error = e
                reason = f"{e.__class__.__name__}: {e}"
            else:
                if resp.is_success:
                    if attempt:
                        logger.info("Request succeeded on attempt %d", attempt + 1)
                    return resp
                if resp.status_code in NON_RETRIABLE_STATUSES:
                    raise TerminalRequestError(
                        f"Service rejected the request ({resp.status_code}): {_error_detail(resp)}",
                        status_code=resp.status_code,
                    )
                last_error = f"HTTP {resp.status_code}: {_error_detail(resp)}"
                reason = last_error

            if attempt + 1 >= self.max_attempts:
                break

            delay = backoff_delay(attempt, self.min_delay, self._jitter)
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.2fs",
                attempt + 1, self.max_attempts, reason, delay,
            )
            await self._sleep(delay)

        raise RetriesExhaustedError(
            f"Gave up after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
            last_error=last_error,
        )


def _error_detail(resp: httpx.Response) -> str:
    # the service wraps errors as {"error": {"message": ...}}; fall back to a text snippet
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        msg = str(body["error"].get("message", "")).strip()
        if msg:
            return msg
    snippet = (resp.text or "").strip().replace("\n", " ")
    return snippet[:200] or resp.reason_phrase
