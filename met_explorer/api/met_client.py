"""
MET Museum API client for fetching artwork data.

This module wraps the collection endpoints (object listing, search and object
details) on top of the RequestExecutor and provides the batched detail loader
that turns a list of object IDs into normalized artwork records.
"""
import asyncio
import logging

from pydantic import ValidationError

from met_explorer.config import BATCH_SIZE, INTER_BATCH_DELAY, MET_API_BASE_URL
from met_explorer.data.normalizer import normalize

logger = logging.getLogger(__name__)


def _object_ids(data):
    # The API answers a zero-hit search with {"total": 0, "objectIDs": null}
    if not isinstance(data, dict):
        return []
    return list(data.get("objectIDs") or [])


async def get_object_ids(executor, base_url=MET_API_BASE_URL):
    """
    Fetch the full catalog listing of object IDs.

    Args:
        executor (RequestExecutor): Executor used for the request
        base_url (str): API root

    Returns:
        list: Object IDs (integers)

    Raises:
        MetApiError: When the listing request fails
    """
    data = await executor.get_json(f"{base_url}/objects")
    object_ids = _object_ids(data)
    logger.info(f"Object listing: found {len(object_ids)} objects")
    return object_ids


async def search_object_ids(executor, query, department_id=None, base_url=MET_API_BASE_URL):
    """
    Search the collection for objects with images matching ``query``.

    Ranking is left entirely to the API; IDs come back in its order.

    Args:
        executor (RequestExecutor): Executor used for the request
        query (str): Search term
        department_id (int, optional): Restrict the search to one department
        base_url (str): API root

    Returns:
        list: Matching object IDs (integers), empty when nothing matched

    Raises:
        MetApiError: When the search request fails
    """
    params = {
        "hasImages": "true",
        "q": query,
    }
    if department_id is not None:
        params["departmentId"] = str(department_id)

    data = await executor.get_json(f"{base_url}/search", params=params)
    object_ids = _object_ids(data)
    logger.info(f"Search '{query}': found {len(object_ids)} objects")
    return object_ids


async def get_object_details(executor, object_id, base_url=MET_API_BASE_URL):
    """
    Fetch full details for a single artwork object.

    Args:
        executor (RequestExecutor): Executor used for the request
        object_id (int): MET object ID to fetch details for
        base_url (str): API root

    Returns:
        dict: Complete object data dictionary from the API

    Raises:
        NotFound: The object ID does not exist
        MetApiError: Any other request failure
    """
    return await executor.get_json(f"{base_url}/objects/{object_id}")


async def _fetch_record(executor, object_id, normalizer, base_url):
    try:
        raw = await get_object_details(executor, object_id, base_url=base_url)
    except Exception as e:
        logger.warning(f"Error fetching object {object_id}: {e}")
        return None

    try:
        record = normalizer(raw)
    except ValidationError as e:
        logger.warning(f"Skipping object {object_id}: malformed data ({e.error_count()} invalid fields)")
        return None

    if record is None:
        logger.info(f"Skipping object {object_id}: missing title or image")
    return record


async def fetch_object_batch(
    executor,
    object_ids,
    batch_size=BATCH_SIZE,
    inter_batch_delay=INTER_BATCH_DELAY,
    sleep=asyncio.sleep,
    normalizer=normalize,
    base_url=MET_API_BASE_URL,
):
    """
    Fetch and normalize details for many objects without flooding the API.

    IDs are split into consecutive chunks of ``batch_size``. Each chunk is
    fetched concurrently with asyncio.gather(); the next chunk starts only
    after every request in the current one has settled and
    ``inter_batch_delay`` seconds have passed. A failed or unusable object is
    logged and left out instead of failing the whole load.

    Args:
        executor (RequestExecutor): Executor shared by all requests
        object_ids (list): Object IDs to load
        batch_size (int): Number of concurrent requests per chunk
        inter_batch_delay (float): Seconds to pause between chunks
        sleep (callable): Awaitable sleep, injectable for tests
        normalizer (callable): Maps a raw object to a record or None
        base_url (str): API root

    Returns:
        list: Normalized records, chunk order preserved
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    object_ids = list(object_ids)
    chunks = [object_ids[i:i + batch_size] for i in range(0, len(object_ids), batch_size)]

    records = []
    for index, chunk in enumerate(chunks):
        logger.info(f"Loading batch {index + 1}/{len(chunks)}: {len(chunk)} objects")

        tasks = []
        for object_id in chunk:
            task = _fetch_record(executor, object_id, normalizer, base_url)
            tasks.append(task)

        results = await asyncio.gather(*tasks)
        records.extend(record for record in results if record is not None)

        if index < len(chunks) - 1:
            await sleep(inter_batch_delay)

    logger.info(f"Successfully loaded {len(records)} of {len(object_ids)} objects")
    return records
