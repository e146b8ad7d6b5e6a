from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable
import logging

from careerwatch.core.models import DiffResult, JobCollection, Notification

logger = logging.getLogger(__name__)

ScheduledJob = Callable[[], Awaitable[Any]]


class JobScraper(ABC):
    """
    Abstract base class for anything that turns a career page URL into a snapshot.
    """

    @abstractmethod
    async def scrape(self, url: str) -> JobCollection:
        """
        Fetch a career page and extract its job listings.
        Args:
            url (str): The career page URL.
        Returns:
            JobCollection: Snapshot whose jobs carry stable, non-empty ids.
        """
        pass


class JobRepository(ABC):
    """
    Abstract base class for snapshot storage. Keeps only the latest snapshot per URL.
    """

    @abstractmethod
    async def save_job_collection(self, collection: JobCollection) -> None:
        """
        Replace the stored snapshot for `collection.source_url`.
        """
        pass

    @abstractmethod
    async def get_latest_job_collection(self, url: str) -> JobCollection:
        """
        Return the stored snapshot for `url`, or the zero JobCollection when
        nothing has been stored for it yet.
        """
        pass


class Notifier(ABC):
    """
    Abstract base class for change alert delivery.
    """

    @abstractmethod
    async def notify(self, diff: DiffResult) -> None:
        """
        Deliver a change alert. Must return without sending anything when the
        diff has no changes.
        """
        pass

    async def notify_error(self, notification: Notification) -> None:
        """
        Deliver a scraping error alert. Adapters without an error channel just log it.
        """
        logger.warning(
            f"{notification.title} for {notification.source_url}: {notification.message}"
        )


class Scheduler(ABC):
    """
    Abstract base class for recurring job execution.
    """

    @abstractmethod
    def schedule(self, expression: str, job: ScheduledJob) -> None:
        """
        Register `job` to run on every tick of the recurring cron expression.
        Raises ValueError for an invalid expression.
        """
        pass

    @abstractmethod
    async def start(self) -> None:
        """
        Begin firing and block until stopped or cancelled.
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Stop firing. No tick is dispatched after this returns.
        """
        pass
