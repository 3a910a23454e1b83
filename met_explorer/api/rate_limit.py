"""
Shared rate-limit bookkeeping for MET API requests.

One tracker is owned by a request executor and consulted by every request it
performs, so concurrent requests back off together instead of each one
retrying on its own.
"""
import logging
import time

from met_explorer.config import BASE_DELAY, LOW_QUOTA_THRESHOLD

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def _parse_int(value):
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class RateLimitTracker:
    """
    Tracks whether the API is currently throttling us and when that ends.

    Attributes:
        is_limited (bool): True while a 429 window is in effect
        reset_at (float): Clock time after which requests may resume, or None
        call_count (int): Number of request attempts made, retries included
        remaining (int): Last X-RateLimit-Remaining value seen, or None
        limit (int): Last X-RateLimit-Limit value seen, or None
        reset (str): Last X-RateLimit-Reset value seen, or None
    """
    def __init__(self, base_delay=BASE_DELAY, low_quota_threshold=LOW_QUOTA_THRESHOLD,
                 clock=time.monotonic):
        """
        Initialize the tracker.

        Args:
            base_delay (float): Backoff base in seconds, doubled per attempt
            low_quota_threshold (int): Remaining-quota value below which an
                advisory is produced
            clock (callable): Returns the current time in seconds
        """
        self.base_delay = base_delay
        self.low_quota_threshold = low_quota_threshold
        self.clock = clock

        self.is_limited = False
        self.reset_at = None
        self.call_count = 0

        self.remaining = None
        self.limit = None
        self.reset = None

    def backoff_delay(self, attempt):
        """Exponential backoff in seconds for a zero-indexed attempt."""
        return self.base_delay * (2 ** attempt)

    def record_call(self):
        self.call_count += 1
        return self.call_count

    def observe(self, status, headers, attempt=0):
        """
        Record what a completed response says about throttling.

        A 429 starts a limited window ending after Retry-After seconds when the
        header is a positive integer, otherwise after the exponential backoff
        for ``attempt``. Any other status only updates the quota readings.

        Args:
            status (int): HTTP status of the response
            headers (Mapping): Response headers
            attempt (int): Zero-indexed retry count of the request

        Returns:
            str: Low-quota advisory message, or None
        """
        headers = headers or {}
        now = self.clock()

        if status == RATE_LIMIT_STATUS:
            self.is_limited = True
            retry_after = _parse_int(headers.get('Retry-After'))
            if retry_after is not None and retry_after > 0:
                self.reset_at = now + retry_after
                logger.warning(f"Rate limited (429), Retry-After: {retry_after}s")
            else:
                wait_time = self.backoff_delay(attempt)
                self.reset_at = now + wait_time
                logger.warning(f"Rate limited (429), using exponential backoff: {wait_time:.2f}s")
            return None

        remaining_header = headers.get('X-RateLimit-Remaining')
        if remaining_header is None:
            return None

        self.remaining = _parse_int(remaining_header)
        self.limit = _parse_int(headers.get('X-RateLimit-Limit'))
        self.reset = headers.get('X-RateLimit-Reset')
        logger.info(
            f"Rate limit info - Remaining: {remaining_header}, "
            f"Limit: {self.limit}, Reset: {self.reset}"
        )

        if self.remaining is not None and self.remaining < self.low_quota_threshold:
            return (
                f"Approaching the API rate limit: {self.remaining} requests remaining. "
                "Results may load more slowly."
            )
        return None

    def should_wait(self):
        """Seconds left in the current limited window, 0.0 when not limited."""
        if not self.is_limited or self.reset_at is None:
            return 0.0
        return max(0.0, self.reset_at - self.clock())

    def clear(self):
        self.is_limited = False

    def status(self):
        """
        Snapshot of the tracker for diagnostics.

        Returns:
            dict: call count, limited flag, reset time, seconds until reset and
                  the last quota headers seen
        """
        time_until_reset = 0.0
        if self.reset_at is not None:
            time_until_reset = max(0.0, self.reset_at - self.clock())
        return {
            'call_count': self.call_count,
            'is_limited': self.is_limited,
            'reset_at': self.reset_at,
            'time_until_reset': time_until_reset,
            'remaining': self.remaining,
            'limit': self.limit,
            'reset': self.reset,
        }
