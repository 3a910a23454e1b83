"""Tests for the gallery service state machine and end-to-end flows."""

import asyncio
import random

import pytest

from met_explorer.data.fallback_catalog import FALLBACK_OBJECT_IDS
from met_explorer.data.normalizer import normalize_detail
from met_explorer.services.gallery import (
    DETAIL_FAILED_MESSAGE,
    NOT_FOUND_MESSAGE,
    NO_RESULTS_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    GalleryService,
    GalleryState,
)

from conftest import BASE, FakeResponse, make_raw_object, object_url

OBJECTS_URL = f"{BASE}/objects"
SEARCH_URL = f"{BASE}/search"


@pytest.fixture
def published():
    return []


@pytest.fixture
def service(executor, clock, published):
    return GalleryService(
        executor,
        sample_size=12,
        search_limit=12,
        related_limit=6,
        batch_size=3,
        inter_batch_delay=0.2,
        sleep=clock.sleep,
        rng=random.Random(7),
        on_state=published.append,
    )


def states(published):
    return [result.state for result in published]


class TestBrowse:

    @pytest.mark.asyncio
    async def test_listing_with_one_missing_detail(self, service, session, published):
        session.add(OBJECTS_URL, FakeResponse(200, {"total": 3, "objectIDs": [1, 2, 3]}))
        session.add_object(make_raw_object(1))
        session.add(object_url(2), FakeResponse(404))
        session.add_object(make_raw_object(3))
        service.batch_size = 4

        result = await service.browse()

        assert result.state == GalleryState.SUCCESS
        assert [record.id for record in result.records] == [1, 3]
        assert result.used_fallback is False
        assert states(published) == [GalleryState.LOADING, GalleryState.SUCCESS]

    @pytest.mark.asyncio
    async def test_listing_failure_loads_fallback_catalog(self, service, session, published):
        session.add(OBJECTS_URL, FakeResponse(500))
        for object_id in FALLBACK_OBJECT_IDS:
            session.add_object(make_raw_object(object_id))

        result = await service.browse()

        assert result.state == GalleryState.SUCCESS
        assert result.used_fallback is True
        requested = [url for url, _ in session.calls if url != OBJECTS_URL]
        assert sorted(requested) == sorted(object_url(object_id) for object_id in FALLBACK_OBJECT_IDS)
        assert {record.id for record in result.records} == set(FALLBACK_OBJECT_IDS)
        # Listing errors are not retried
        assert len(session.calls_to(OBJECTS_URL)) == 1

    @pytest.mark.asyncio
    async def test_fallback_yielding_nothing_is_an_error(self, service, session):
        session.add(OBJECTS_URL, FakeResponse(503))

        result = await service.browse()

        assert result.state == GalleryState.ERROR
        assert result.records == []

    @pytest.mark.asyncio
    async def test_listing_rate_limited_does_not_fall_back(self, service, session):
        session.add(OBJECTS_URL, FakeResponse(429))

        result = await service.browse()

        assert result.state == GalleryState.RATE_LIMITED
        assert result.message == RATE_LIMITED_MESSAGE
        assert all(url == OBJECTS_URL for url, _ in session.calls)

    @pytest.mark.asyncio
    async def test_empty_listing_is_no_results(self, service, session):
        session.add(OBJECTS_URL, FakeResponse(200, {"total": 0, "objectIDs": []}))

        result = await service.browse()

        assert result.state == GalleryState.NO_RESULTS
        assert result.message == NO_RESULTS_MESSAGE
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_record_is_skipped(self, service, session, published):
        session.add(OBJECTS_URL, FakeResponse(200, {"total": 3, "objectIDs": [1, 2, 3]}))
        session.add_object(make_raw_object(1))
        session.add_object(make_raw_object(2, title=1999))
        session.add_object(make_raw_object(3))
        service.batch_size = 4

        result = await service.browse()

        assert result.state == GalleryState.SUCCESS
        assert [record.id for record in result.records] == [1, 3]
        assert states(published) == [GalleryState.LOADING, GalleryState.SUCCESS]

    @pytest.mark.asyncio
    async def test_browse_samples_from_listing(self, service, session):
        object_ids = list(range(100, 200))
        session.add(OBJECTS_URL, FakeResponse(200, {"objectIDs": object_ids}))
        for object_id in object_ids:
            session.add_object(make_raw_object(object_id))

        result = await service.browse()

        assert len(result.records) == 12
        assert {record.id for record in result.records} <= set(object_ids)
        assert len(session.calls) == 13


class TestSearch:

    @pytest.mark.asyncio
    async def test_no_hits_is_no_results_without_fallback(self, service, session, published):
        session.add(SEARCH_URL, FakeResponse(200, {"total": 0, "objectIDs": None}))

        result = await service.search("nonexistent-term-xyz")

        assert result.state == GalleryState.NO_RESULTS
        assert result.used_fallback is False
        assert session.calls == [(SEARCH_URL, {"hasImages": "true", "q": "nonexistent-term-xyz"})]
        assert states(published) == [GalleryState.LOADING, GalleryState.NO_RESULTS]

    @pytest.mark.asyncio
    async def test_search_loads_first_hits_in_order(self, service, session):
        hits = list(range(1, 21))
        session.add(SEARCH_URL, FakeResponse(200, {"total": 20, "objectIDs": hits}))
        for object_id in hits:
            session.add_object(make_raw_object(object_id))
        service.search_limit = 6

        result = await service.search("wave", department_id=6)

        assert result.state == GalleryState.SUCCESS
        assert {r.id for r in result.records[:3]} == {1, 2, 3}
        assert {r.id for r in result.records[3:]} == {4, 5, 6}
        assert session.calls[0] == (SEARCH_URL, {"hasImages": "true", "q": "wave", "departmentId": "6"})

    @pytest.mark.asyncio
    async def test_search_failure_is_terminal(self, service, session):
        session.add(SEARCH_URL, FakeResponse(500))

        result = await service.search("wave")

        assert result.state == GalleryState.ERROR
        assert result.message == SEARCH_FAILED_MESSAGE
        assert result.used_fallback is False
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_search_rate_limited(self, service, session):
        session.add(SEARCH_URL, FakeResponse(429, headers={"Retry-After": "1"}))

        result = await service.search("wave")

        assert result.state == GalleryState.RATE_LIMITED
        assert len(session.calls) == 4

    @pytest.mark.asyncio
    async def test_hits_without_usable_records_is_no_results(self, service, session):
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": [1]}))
        session.add_object(make_raw_object(1, primaryImage=""))

        result = await service.search("wave")

        assert result.state == GalleryState.NO_RESULTS

    @pytest.mark.asyncio
    async def test_malformed_hit_is_skipped(self, service, session):
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": [1, 2]}))
        session.add_object(make_raw_object(1, medium={"name": "Oil"}))
        session.add_object(make_raw_object(2))

        result = await service.search("wave")

        assert result.state == GalleryState.SUCCESS
        assert [record.id for record in result.records] == [2]

    @pytest.mark.asyncio
    async def test_blank_query_browses(self, service, session):
        session.add(OBJECTS_URL, FakeResponse(200, {"objectIDs": []}))

        result = await service.search("   ")

        assert result.state == GalleryState.NO_RESULTS
        assert session.calls[0][0] == OBJECTS_URL


class TestRateLimitRecovery:

    @pytest.mark.asyncio
    async def test_retry_after_then_success(self, service, session, clock, tracker):
        session.add(
            SEARCH_URL,
            FakeResponse(429, headers={"Retry-After": "2"}),
            FakeResponse(200, {"objectIDs": [1]}),
        )
        session.add_object(make_raw_object(1))

        result = await service.search("wave")

        assert result.state == GalleryState.SUCCESS
        assert clock.sleeps == [2]
        assert tracker.is_limited is False


class TestGenerations:

    @pytest.mark.asyncio
    async def test_stale_result_is_not_published(self, executor, session, published):
        gate = asyncio.Event()

        async def gated_sleep(seconds):
            await gate.wait()

        service = GalleryService(
            executor, batch_size=1, inter_batch_delay=0.5, sleep=gated_sleep, on_state=published.append
        )
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": [1, 2]}))
        session.add(OBJECTS_URL, FakeResponse(200, {"objectIDs": []}))
        session.add_object(make_raw_object(1))
        session.add_object(make_raw_object(2))

        first = asyncio.create_task(service.search("first"))
        # Let the search run until it pauses between its two batches
        while not session.calls_to(object_url(1)):
            await asyncio.sleep(0)

        second = await service.browse()
        gate.set()
        first_result = await first

        assert first_result.state == GalleryState.SUCCESS
        assert first_result.stale is True
        assert all(result is not first_result for result in published)
        assert second.stale is False
        assert published[-1] is second
        assert service.state == GalleryState.NO_RESULTS

    @pytest.mark.asyncio
    async def test_newest_request_wins(self, service, session, published):
        session.add(OBJECTS_URL, FakeResponse(200, {"objectIDs": []}))

        first = await service.browse()
        second = await service.browse()

        assert first.generation == 1
        assert second.generation == 2
        assert first.stale is False
        assert second.stale is False
        assert service.state == GalleryState.NO_RESULTS


class TestLoadArtwork:

    @pytest.mark.asyncio
    async def test_success(self, service, session):
        session.add_object(make_raw_object(436535, title="Wheat Field with Cypresses"))

        result = await service.load_artwork(436535)

        assert result.state == GalleryState.SUCCESS
        assert result.artwork.title == "Wheat Field with Cypresses"

    @pytest.mark.asyncio
    async def test_not_found(self, service, session, clock):
        result = await service.load_artwork(999999)

        assert result.state == GalleryState.NOT_FOUND
        assert result.message == NOT_FOUND_MESSAGE
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_payload_without_id_is_not_found(self, service, session):
        session.add(object_url(5), FakeResponse(200, {"message": "ObjectID not found"}))

        result = await service.load_artwork(5)

        assert result.state == GalleryState.NOT_FOUND

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, service, session):
        session.add(object_url(5), FakeResponse(502))

        result = await service.load_artwork(5)

        assert result.state == GalleryState.ERROR
        assert result.message == UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_rate_limited(self, service, session):
        session.add(object_url(5), FakeResponse(429))

        result = await service.load_artwork(5)

        assert result.state == GalleryState.RATE_LIMITED
        assert result.message == RATE_LIMITED_MESSAGE

    @pytest.mark.asyncio
    async def test_malformed_payload_is_an_error(self, service, session, published):
        session.add_object(make_raw_object(5, objectName=42))

        result = await service.load_artwork(5)

        assert result.state == GalleryState.ERROR
        assert result.message == DETAIL_FAILED_MESSAGE
        assert states(published) == [GalleryState.LOADING, GalleryState.ERROR]


class TestLoadRelated:

    @pytest.mark.asyncio
    async def test_related_excludes_current_artwork(self, service, session):
        artwork = normalize_detail(make_raw_object(1, department="European Paintings"))
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": [1, 2, 3]}))
        session.add_object(make_raw_object(2, title="A very long title that needs to be cut down"))
        session.add_object(make_raw_object(3))

        related = await service.load_related(artwork)

        assert {item.id for item in related} == {2, 3}
        assert all(len(item.title) <= 30 for item in related)
        assert session.calls[0] == (
            SEARCH_URL,
            {"hasImages": "true", "q": "European Paintings", "departmentId": "11"},
        )

    @pytest.mark.asyncio
    async def test_related_without_department_searches_paintings(self, service, session):
        artwork = normalize_detail(make_raw_object(1, department=""))
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": []}))

        assert await service.load_related(artwork) == []
        assert session.calls[0] == (SEARCH_URL, {"hasImages": "true", "q": "painting"})

    @pytest.mark.asyncio
    async def test_related_capped_at_limit(self, service, session):
        artwork = normalize_detail(make_raw_object(1))
        hits = list(range(2, 40))
        session.add(SEARCH_URL, FakeResponse(200, {"objectIDs": hits}))
        for object_id in hits:
            session.add_object(make_raw_object(object_id))

        related = await service.load_related(artwork)

        assert len(related) == 6

    @pytest.mark.asyncio
    async def test_related_failure_returns_empty(self, service, session):
        artwork = normalize_detail(make_raw_object(1))
        session.add(SEARCH_URL, FakeResponse(500))

        assert await service.load_related(artwork) == []
