import asyncio
import logging
import time
from typing import Any

import httpx

from leetrack.domain.constants import (
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
    POLL_MAX_ELAPSED,
    REQUEST_TIMEOUT,
    TERMINAL_STATE,
)
from leetrack.domain.errors import PollError, PollTimeoutError
from leetrack.domain.models import VerdictResult
from leetrack.domain.ports import VerdictPoller


class HttpVerdictPoller(VerdictPoller):
    """
    Polls the judge's submission-check endpoint until it reports a verdict.

    The judge answers with a job envelope whose `state` stays PENDING or
    STARTED while the submission runs, then flips to SUCCESS with the
    verdict in `status_msg`. A cap of `max_attempts` calls or `max_elapsed`
    seconds (0 disables either) bounds the loop.
    """

    def __init__(
        self,
        interval: float = POLL_INTERVAL,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        max_elapsed: float = POLL_MAX_ELAPSED,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.interval = interval
        self.max_attempts = max_attempts
        self.max_elapsed = max_elapsed
        self.timeout = timeout
        self._client = client

    async def await_verdict(self, check_url: str) -> VerdictResult:
        started = time.monotonic()
        attempts = 0

        while True:
            attempts += 1
            envelope = await self._check(check_url)
            state = envelope.get("state")
            if state == TERMINAL_STATE:
                message = envelope.get("status_msg") or ""
                self.logger.debug(
                    f"Verdict for {check_url} after {attempts} attempt(s): {message}"
                )
                return VerdictResult(status_message=message)

            elapsed = time.monotonic() - started
            if self.max_attempts and attempts >= self.max_attempts:
                raise PollTimeoutError(check_url, attempts, elapsed)
            if self.max_elapsed and elapsed + self.interval > self.max_elapsed:
                raise PollTimeoutError(check_url, attempts, elapsed)

            self.logger.debug(f"Verdict for {check_url} pending (state={state})")
            await asyncio.sleep(self.interval)

    async def _check(self, check_url: str) -> dict[str, Any]:
        try:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=self.timeout)
            resp = await self._client.get(check_url)
            resp.raise_for_status()
            if not resp.content:
                raise PollError(f"empty response from {check_url}")
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Verdict check {check_url} failed: {e}")
            raise PollError(f"verdict check {check_url} failed: {e}") from e

        if not isinstance(data, dict):
            raise PollError(f"unexpected verdict envelope from {check_url}: {data!r}")
        return data

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
