import logging
from typing import Dict

from careerwatch.adapters.base import JobRepository
from careerwatch.core.locks import KeyedLock
from careerwatch.core.models import JobCollection

logger = logging.getLogger(__name__)


class MemoryRepository(JobRepository):
    """
    In-process snapshot store. Lost on restart.
    Each URL has its own lock so passes over different sources never wait on each other.
    """

    def __init__(self):
        self._collections: Dict[str, JobCollection] = {}
        self._locks = KeyedLock()

    async def save_job_collection(self, collection: JobCollection) -> None:
        async with self._locks(collection.source_url):
            self._collections[collection.source_url] = collection.copy()
        logger.debug(
            f"Stored {len(collection.jobs)} jobs for {collection.source_url}"
        )

    async def get_latest_job_collection(self, url: str) -> JobCollection:
        async with self._locks(url):
            collection = self._collections.get(url)
            if collection is None:
                return JobCollection()
            return collection.copy()
