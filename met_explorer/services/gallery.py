"""
Browse, search and detail requests for the MET explorer views.

The GalleryService drives each request through its states
(IDLE -> LOADING -> SUCCESS / NO_RESULTS / RATE_LIMITED / ERROR, plus
NOT_FOUND on the detail path) and hands results to the rendering layer via
an ``on_state`` callback. Every request gets a generation number; a result
that finishes after a newer request started is marked stale and never
reaches the renderer.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from pydantic import ValidationError

from met_explorer.api.errors import HttpError, NotFound, RateLimitExceeded
from met_explorer.api.met_client import (
    fetch_object_batch,
    get_object_details,
    get_object_ids,
    search_object_ids,
)
from met_explorer.config import (
    BATCH_SIZE,
    BROWSE_SAMPLE_SIZE,
    INTER_BATCH_DELAY,
    MET_API_BASE_URL,
    RELATED_LIMIT,
    SEARCH_RESULT_LIMIT,
)
from met_explorer.data.departments import get_department_id
from met_explorer.data.fallback_catalog import FALLBACK_OBJECT_IDS
from met_explorer.data.normalizer import ArtworkDetail, ArtworkRecord, RelatedArtwork, normalize_detail, to_related

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "API rate limit exceeded. Please wait a moment and try again."
BROWSE_FAILED_MESSAGE = "Failed to load artworks. Please try again."
SEARCH_FAILED_MESSAGE = "Search failed. Please try again."
FALLBACK_MESSAGE = "The collection could not be loaded, showing featured artworks instead."
NOT_FOUND_MESSAGE = "This artwork was not found in the museum's collection."
UNAVAILABLE_MESSAGE = "The museum's API is temporarily unavailable. Please try again later."
DETAIL_FAILED_MESSAGE = "Failed to load artwork details."
NO_RESULTS_MESSAGE = "No artworks found."
RELATED_FALLBACK_QUERY = "painting"


class GalleryState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    NO_RESULTS = "no_results"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"
    NOT_FOUND = "not_found"


@dataclass
class GalleryResult:
    """Outcome of a browse or search request."""

    state: GalleryState
    records: List[ArtworkRecord] = field(default_factory=list)
    message: Optional[str] = None
    generation: int = 0
    used_fallback: bool = False
    stale: bool = False


@dataclass
class DetailResult:
    """Outcome of a single-artwork detail request."""

    state: GalleryState
    artwork: Optional[ArtworkDetail] = None
    message: Optional[str] = None
    generation: int = 0
    stale: bool = False


class GalleryService:
    """
    Coordinates the requests behind the gallery and detail views.

    Attributes:
        executor (RequestExecutor): Executor shared by every request
        fallback_ids (tuple): Object IDs loaded when the listing fails
        state (GalleryState): Last state handed to the renderer
    """
    def __init__(
        self,
        executor,
        fallback_ids=FALLBACK_OBJECT_IDS,
        sample_size: int = BROWSE_SAMPLE_SIZE,
        search_limit: int = SEARCH_RESULT_LIMIT,
        related_limit: int = RELATED_LIMIT,
        batch_size: int = BATCH_SIZE,
        inter_batch_delay: float = INTER_BATCH_DELAY,
        sleep: Callable = asyncio.sleep,
        rng: Optional[random.Random] = None,
        on_state: Optional[Callable] = None,
        base_url: str = MET_API_BASE_URL,
    ):
        self.executor = executor
        self.fallback_ids = tuple(fallback_ids)
        self.sample_size = sample_size
        self.search_limit = search_limit
        self.related_limit = related_limit
        self.batch_size = batch_size
        self.inter_batch_delay = inter_batch_delay
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.on_state = on_state
        self.base_url = base_url

        self.state = GalleryState.IDLE
        self._gallery_generation = 0
        self._detail_generation = 0

    # Generation bookkeeping

    def _publish(self, result):
        self.state = result.state
        if self.on_state is not None:
            self.on_state(result)

    def _begin_gallery(self):
        self._gallery_generation += 1
        self._publish(GalleryResult(GalleryState.LOADING, generation=self._gallery_generation))
        return self._gallery_generation

    def _begin_detail(self):
        self._detail_generation += 1
        self._publish(DetailResult(GalleryState.LOADING, generation=self._detail_generation))
        return self._detail_generation

    def _finish(self, result, current_generation):
        if result.generation != current_generation:
            logger.debug(
                f"Dropping stale {result.state.value} result "
                f"(generation {result.generation}, current {current_generation})"
            )
            result.stale = True
            return result
        self._publish(result)
        return result

    def _finish_gallery(self, result):
        return self._finish(result, self._gallery_generation)

    def _finish_detail(self, result):
        return self._finish(result, self._detail_generation)

    # Loading helpers

    def _sample(self, object_ids, size):
        if len(object_ids) <= size:
            return list(object_ids)
        return self.rng.sample(list(object_ids), size)

    async def _load(self, object_ids):
        return await fetch_object_batch(
            self.executor,
            object_ids,
            batch_size=self.batch_size,
            inter_batch_delay=self.inter_batch_delay,
            sleep=self.sleep,
            base_url=self.base_url,
        )

    async def _load_fallback(self, generation):
        records = await self._load(self.fallback_ids)
        if not records:
            logger.error("Fallback catalog produced no artworks")
            return self._finish_gallery(
                GalleryResult(GalleryState.ERROR, message=BROWSE_FAILED_MESSAGE, generation=generation)
            )
        return self._finish_gallery(
            GalleryResult(
                GalleryState.SUCCESS,
                records=records,
                message=FALLBACK_MESSAGE,
                generation=generation,
                used_fallback=True,
            )
        )

    # Requests

    async def browse(self) -> GalleryResult:
        """
        Load a random sample of artworks from the full collection.

        If the listing call fails for any reason other than rate limiting,
        the fallback catalog is loaded through the same pipeline instead.

        Returns:
            GalleryResult: SUCCESS, NO_RESULTS, RATE_LIMITED or ERROR
        """
        generation = self._begin_gallery()
        logger.info("Loading random artworks...")

        try:
            object_ids = await get_object_ids(self.executor, base_url=self.base_url)
        except RateLimitExceeded as e:
            logger.warning(f"Object listing rate limited: {e}")
            return self._finish_gallery(
                GalleryResult(GalleryState.RATE_LIMITED, message=RATE_LIMITED_MESSAGE, generation=generation)
            )
        except Exception as e:
            logger.warning(f"Object listing failed ({e}), loading fallback catalog")
            return await self._load_fallback(generation)

        if not object_ids:
            return self._finish_gallery(
                GalleryResult(GalleryState.NO_RESULTS, message=NO_RESULTS_MESSAGE, generation=generation)
            )

        records = await self._load(self._sample(object_ids, self.sample_size))
        if not records:
            return self._finish_gallery(
                GalleryResult(GalleryState.NO_RESULTS, message=NO_RESULTS_MESSAGE, generation=generation)
            )
        return self._finish_gallery(GalleryResult(GalleryState.SUCCESS, records=records, generation=generation))

    async def search(self, query, department_id=None) -> GalleryResult:
        """
        Search the collection and load the first matching artworks.

        A blank query browses instead. Search never falls back to the
        fallback catalog: failures end in RATE_LIMITED or ERROR.

        Args:
            query (str): Search term
            department_id (int, optional): Restrict results to one department

        Returns:
            GalleryResult: SUCCESS, NO_RESULTS, RATE_LIMITED or ERROR
        """
        query = (query or "").strip()
        if not query:
            return await self.browse()

        generation = self._begin_gallery()
        logger.info(f"Searching for: {query}")

        try:
            object_ids = await search_object_ids(
                self.executor, query, department_id=department_id, base_url=self.base_url
            )
        except RateLimitExceeded as e:
            logger.warning(f"Search rate limited: {e}")
            return self._finish_gallery(
                GalleryResult(GalleryState.RATE_LIMITED, message=RATE_LIMITED_MESSAGE, generation=generation)
            )
        except Exception as e:
            logger.error(f"Error searching artworks: {e}")
            return self._finish_gallery(
                GalleryResult(GalleryState.ERROR, message=SEARCH_FAILED_MESSAGE, generation=generation)
            )

        no_results = GalleryResult(
            GalleryState.NO_RESULTS, message=f'No artworks found for "{query}".', generation=generation
        )
        if not object_ids:
            return self._finish_gallery(no_results)

        records = await self._load(object_ids[:self.search_limit])
        if not records:
            return self._finish_gallery(no_results)
        return self._finish_gallery(GalleryResult(GalleryState.SUCCESS, records=records, generation=generation))

    async def load_artwork(self, object_id) -> DetailResult:
        """
        Load everything the detail view shows for one artwork.

        Args:
            object_id (int): MET object ID

        Returns:
            DetailResult: SUCCESS, NOT_FOUND, RATE_LIMITED or ERROR
        """
        generation = self._begin_detail()

        try:
            raw = await get_object_details(self.executor, object_id, base_url=self.base_url)
        except NotFound:
            return self._finish_detail(
                DetailResult(GalleryState.NOT_FOUND, message=NOT_FOUND_MESSAGE, generation=generation)
            )
        except RateLimitExceeded as e:
            logger.warning(f"Artwork {object_id} rate limited: {e}")
            return self._finish_detail(
                DetailResult(GalleryState.RATE_LIMITED, message=RATE_LIMITED_MESSAGE, generation=generation)
            )
        except HttpError as e:
            logger.error(f"Error loading artwork details: {e}")
            return self._finish_detail(
                DetailResult(GalleryState.ERROR, message=UNAVAILABLE_MESSAGE, generation=generation)
            )
        except Exception as e:
            logger.error(f"Error loading artwork details: {e}")
            return self._finish_detail(
                DetailResult(GalleryState.ERROR, message=DETAIL_FAILED_MESSAGE, generation=generation)
            )

        try:
            artwork = normalize_detail(raw)
        except ValidationError as e:
            logger.error(f"Malformed data for artwork {object_id}: {e}")
            return self._finish_detail(
                DetailResult(GalleryState.ERROR, message=DETAIL_FAILED_MESSAGE, generation=generation)
            )

        if artwork is None:
            return self._finish_detail(
                DetailResult(GalleryState.NOT_FOUND, message=NOT_FOUND_MESSAGE, generation=generation)
            )
        return self._finish_detail(DetailResult(GalleryState.SUCCESS, artwork=artwork, generation=generation))

    async def load_related(self, artwork: ArtworkDetail) -> List[RelatedArtwork]:
        """
        Find a few artworks from the same department as ``artwork``.

        Failures only hide the related strip, so they return an empty list.

        Args:
            artwork (ArtworkDetail): The artwork on display

        Returns:
            list: Up to ``related_limit`` RelatedArtwork entries
        """
        query = artwork.department or RELATED_FALLBACK_QUERY
        department_id = get_department_id(artwork.department)

        try:
            object_ids = await search_object_ids(
                self.executor, query, department_id=department_id, base_url=self.base_url
            )
        except Exception as e:
            logger.warning(f"Error loading related artworks: {e}")
            return []

        candidates = [object_id for object_id in object_ids if object_id != artwork.id]
        if not candidates:
            return []

        records = await self._load(self._sample(candidates, self.related_limit * 2))
        return [to_related(record) for record in records[:self.related_limit]]
