"""Shared fixtures: a fake clock, a fake aiohttp session and raw MET objects."""

import pytest

from met_explorer.api.executor import RequestExecutor
from met_explorer.api.rate_limit import RateLimitTracker
from met_explorer.config import MET_API_BASE_URL

BASE = MET_API_BASE_URL


def object_url(object_id):
    return f"{BASE}/objects/{object_id}"


class FakeClock:
    """Clock whose sleep() advances time instantly and records each wait."""

    def __init__(self, start=1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeResponse:
    def __init__(self, status=200, payload=None, headers=None, reason=None):
        self.status = status
        self.payload = payload
        self.headers = headers or {}
        self.reason = reason or ("OK" if status < 400 else "Error")

    async def json(self, content_type=None):
        return self.payload


class _RequestContext:
    def __init__(self, session, url, outcome):
        self.session = session
        self.url = url
        self.outcome = outcome

    async def __aenter__(self):
        if isinstance(self.outcome, BaseException):
            self.session.events.append(("done", self.url))
            raise self.outcome
        return self.outcome

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.session.events.append(("done", self.url))
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession.

    Each URL maps to a list of outcomes (FakeResponse or exception) consumed
    in order; the last outcome repeats. Unknown URLs answer 404.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.events = []

    def add(self, url, *outcomes):
        self.routes[url] = list(outcomes)
        return self

    def add_object(self, raw):
        return self.add(object_url(raw["objectID"]), FakeResponse(200, raw))

    def calls_to(self, url):
        return [call for call in self.calls if call[0] == url]

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        self.events.append(("get", url))
        outcomes = self.routes.get(url)
        if not outcomes:
            outcome = FakeResponse(404, reason="Not Found")
        elif len(outcomes) > 1:
            outcome = outcomes.pop(0)
        else:
            outcome = outcomes[0]
        return _RequestContext(self, url, outcome)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


def make_raw_object(object_id, **overrides):
    """Raw object shaped like GET /objects/{id}."""
    raw = {
        "objectID": object_id,
        "title": f"Mountain Peak {object_id}",
        "artistDisplayName": "Katsushika Hokusai",
        "artistDisplayBio": "Japanese, Tokyo (Edo) 1760-1849 Tokyo (Edo)",
        "artistNationality": "Japanese",
        "artistBeginDate": "1760",
        "artistEndDate": "1849",
        "department": "Asian Art",
        "primaryImage": f"https://images.metmuseum.org/original/{object_id}.jpg",
        "primaryImageSmall": f"https://images.metmuseum.org/web-large/{object_id}.jpg",
        "additionalImages": [],
        "culture": "Japan",
        "objectDate": "ca. 1830-32",
        "medium": "Polychrome woodblock print; ink and color on paper",
        "objectName": "Print",
        "dimensions": "10 1/8 x 14 15/16 in.",
        "classification": "Prints",
        "isPublicDomain": True,
        "objectURL": f"https://www.metmuseum.org/art/collection/search/{object_id}",
        "tags": [{"term": "Waves"}, {"term": "Boats"}],
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def tracker(clock):
    return RateLimitTracker(base_delay=1.0, low_quota_threshold=10, clock=clock)


@pytest.fixture
def advisories():
    return []


@pytest.fixture
def executor(session, tracker, clock, advisories):
    return RequestExecutor(
        session,
        tracker=tracker,
        max_retries=3,
        sleep=clock.sleep,
        on_advisory=advisories.append,
    )
