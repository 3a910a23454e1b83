"""
Exception types raised by the MET API access layer.

Callers branch on these types rather than on message text.
"""


class MetApiError(Exception):
    """Base class for every failure surfaced by the request executor."""

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class RateLimitExceeded(MetApiError):
    """The API kept answering 429 after the retry budget was spent."""

    def __init__(self, url, attempts):
        super().__init__(
            f"Rate limited: maximum retries exceeded after {attempts} attempts for {url}",
            url=url,
        )
        self.attempts = attempts


class HttpError(MetApiError):
    """A non-success, non-429 status. Never retried."""

    def __init__(self, status, url, reason=None):
        message = f"HTTP {status}"
        if reason:
            message += f": {reason}"
        super().__init__(f"{message} ({url})", url=url)
        self.status = status
        self.reason = reason


class NotFound(HttpError):
    """HTTP 404, e.g. a detail lookup for an object ID that does not exist."""

    def __init__(self, url, reason=None):
        super().__init__(404, url, reason)


class TransportError(MetApiError):
    """Connectivity failure that outlived the retry budget.

    The underlying aiohttp/asyncio exception is chained as ``__cause__``.
    """

    def __init__(self, url, attempts):
        super().__init__(
            f"Network error after {attempts} attempts for {url}",
            url=url,
        )
        self.attempts = attempts
