"""
Resilient GET requests against the MET Collection API.

Wraps a single aiohttp GET with rate-limit awareness, exponential backoff on
429 responses and on connectivity failures, and typed errors for everything
that should not be retried.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

import aiohttp

from met_explorer.api.errors import HttpError, NotFound, RateLimitExceeded, TransportError
from met_explorer.api.rate_limit import RATE_LIMIT_STATUS, RateLimitTracker
from met_explorer.config import MAX_RETRIES, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

# Failures worth retrying. HTTP statuses other than 429 are not in here.
CONNECTIVITY_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


@dataclass
class ApiResponse:
    """Status, headers and decoded JSON body of one completed request."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: Any = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status < 400


class RequestExecutor:
    """
    Performs one logical GET with retry and backoff.

    Every request made through the same executor shares its
    RateLimitTracker, so a 429 seen by one request pauses the others too.

    Attributes:
        session (aiohttp.ClientSession): HTTP session for making requests
        tracker (RateLimitTracker): Shared throttling state
        max_retries (int): Retries allowed after the first attempt
    """
    def __init__(
        self,
        session: aiohttp.ClientSession,
        tracker: Optional[RateLimitTracker] = None,
        max_retries: int = MAX_RETRIES,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Callable[[float], Any] = asyncio.sleep,
        on_advisory: Optional[Callable[[str], None]] = None,
    ):
        self.session = session
        self.tracker = tracker or RateLimitTracker()
        self.max_retries = max_retries
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.sleep = sleep
        self.on_advisory = on_advisory

    async def execute(self, url: str, params: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        """
        GET ``url`` and return the decoded response.

        At most ``max_retries + 1`` attempts are made. 429 responses and
        connectivity errors are retried; any other status >= 400 fails at once.

        Args:
            url (str): Absolute URL to fetch
            params (dict, optional): Query string parameters

        Returns:
            ApiResponse: The successful response

        Raises:
            RateLimitExceeded: 429 persisted past the retry budget
            NotFound: The API answered 404
            HttpError: Any other non-success status
            TransportError: Connectivity failures past the retry budget
        """
        attempt = 0
        while True:
            wait_time = self.tracker.should_wait()
            if wait_time > 0:
                logger.info(f"Rate limited. Waiting {wait_time:.2f}s before request...")
                await self.sleep(wait_time)
            if self.tracker.is_limited:
                self.tracker.clear()

            call_number = self.tracker.record_call()
            logger.info(f"API Call #{call_number}: {url}")

            try:
                response = await self._get(url, params)
            except CONNECTIVITY_ERRORS as e:
                if attempt >= self.max_retries:
                    raise TransportError(url, attempt + 1) from e
                wait_time = self.tracker.backoff_delay(attempt)
                logger.warning(
                    f"Network error ({type(e).__name__}: {e}), retrying in {wait_time:.2f}s... "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await self.sleep(wait_time)
                attempt += 1
                continue

            if response.status == RATE_LIMIT_STATUS:
                self.tracker.observe(response.status, response.headers, attempt)
                if attempt >= self.max_retries:
                    raise RateLimitExceeded(url, attempt + 1)
                wait_time = self.tracker.should_wait()
                logger.warning(
                    f"Retrying in {wait_time:.2f}s... (attempt {attempt + 1}/{self.max_retries})"
                )
                await self.sleep(wait_time)
                attempt += 1
                continue

            if not response.ok:
                if response.status == 404:
                    raise NotFound(url, response.reason)
                raise HttpError(response.status, url, response.reason)

            logger.info(f"API Call successful: {response.status}")
            advisory = self.tracker.observe(response.status, response.headers)
            if advisory:
                logger.warning(advisory)
                if self.on_advisory is not None:
                    self.on_advisory(advisory)
            return response

    async def get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self.execute(url, params)
        return response.payload

    async def _get(self, url, params):
        async with self.session.get(url, params=params, timeout=self.timeout) as response:
            payload = None
            if response.status < 400:
                payload = await response.json(content_type=None)
            return ApiResponse(
                status=response.status,
                headers=response.headers,
                payload=payload,
                reason=response.reason,
            )
