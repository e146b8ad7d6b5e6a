import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from careerwatch.adapters.base import JobRepository, JobScraper, Notifier
from careerwatch.core.diff import compare
from careerwatch.core.errors import (
    CareerWatchError,
    DeliveryFailure,
    FetchFailure,
    LookupFailure,
    PersistFailure,
)
from careerwatch.core.locks import KeyedLock
from careerwatch.core.models import (
    DiffResult,
    JobCollection,
    create_error_notification,
    extract_company_name,
)

logger = logging.getLogger(__name__)

FIRST_OBSERVATION = "first_observation"
UNCHANGED = "unchanged"
CHANGED = "changed"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class SourceResult:
    """
    Outcome of one source in one pass.
    """

    url: str
    status: str
    diff: Optional[DiffResult] = None
    errors: List[CareerWatchError] = field(default_factory=list)


@dataclass
class RunReport:
    results: List[SourceResult] = field(default_factory=list)

    @property
    def failed(self) -> List[SourceResult]:
        return [r for r in self.results if r.status == FAILED]

    @property
    def changed(self) -> List[SourceResult]:
        return [r for r in self.results if r.status == CHANGED]


class Runner:
    """
    Orchestrates one pass over every configured career page:
    scrape -> load previous -> diff -> notify -> save, one source at a time.

    A failure in any step only affects the source it happened on.
    """

    def __init__(
        self,
        scraper: JobScraper,
        repository: JobRepository,
        notifier: Notifier,
        urls: List[str],
        source_timeout: Optional[float] = None,
        notify_errors: bool = False,
    ):
        self.scraper = scraper
        self.repository = repository
        self.notifier = notifier
        self.urls = list(urls)
        self.source_timeout = source_timeout or None
        self.notify_errors = notify_errors
        self._in_flight = KeyedLock()

    async def run_once(self) -> RunReport:
        """
        Run the pipeline for every URL. Per-source failures are logged and
        reported, never raised.
        """
        logger.info(f"Starting scrape job for {len(self.urls)} URLs")
        report = RunReport()

        for url in self.urls:
            try:
                result = await self.process_one(url)
            except asyncio.CancelledError:
                logger.warning(f"Scrape job cancelled while processing {url}")
                raise
            report.results.append(result)

        logger.info(
            f"Completed scrape job: {len(report.changed)} changed, "
            f"{len(report.failed)} failed, {len(report.results)} total"
        )
        return report

    async def process_one(self, url: str) -> SourceResult:
        """
        Run the pipeline for a single URL.
        Skips the source if a previous pass over it is still in flight.
        """
        lock = self._in_flight(url)
        if lock.locked():
            logger.warning(f"Previous pass over {url} still running, skipping")
            return SourceResult(url=url, status=SKIPPED)

        async with lock:
            result = await self._process(url)

        for error in result.errors:
            logger.error(f"Error processing URL {url}: {error}")
        return result

    async def _process(self, url: str) -> SourceResult:
        logger.info(f"Processing URL: {url}")

        try:
            current = await self._scrape(url)
        except FetchFailure as e:
            await self._report_fetch_failure(url, e)
            return SourceResult(url=url, status=FAILED, errors=[e])

        logger.info(f"Found {len(current.jobs)} jobs at {url}")
        result = SourceResult(url=url, status=FIRST_OBSERVATION)

        try:
            previous = await self.repository.get_latest_job_collection(url)
        except Exception as e:
            previous = None
            result.errors.append(_wrap(LookupFailure, e, url, "lookup previous snapshot"))

        if previous is None:
            # Nothing trustworthy to diff against: save without notifying.
            logger.warning(f"Previous snapshot for {url} unavailable, saving without diff")
        elif previous.is_zero:
            logger.info(f"First observation of {url}, saving without notification")
        else:
            logger.info(
                f"Retrieved previous job collection with {len(previous.jobs)} jobs"
            )
            diff = compare(previous, current)
            result.diff = diff
            logger.info(
                f"Diff results for {url}: {len(diff.new_jobs)} new, "
                f"{len(diff.updated_jobs)} updated, {len(diff.removed_jobs)} removed"
            )
            if diff.has_changes:
                result.status = CHANGED
                await self._notify(url, diff, result)
            else:
                result.status = UNCHANGED
                logger.info(f"No changes detected for {url}")

        try:
            await self.repository.save_job_collection(current)
        except Exception as e:
            result.errors.append(_wrap(PersistFailure, e, url, "save job collection"))
        else:
            logger.info(f"Saved job collection for {url}")

        if result.errors:
            result.status = FAILED
        return result

    async def _scrape(self, url: str) -> JobCollection:
        try:
            if self.source_timeout:
                collection = await asyncio.wait_for(
                    self.scraper.scrape(url), timeout=self.source_timeout
                )
            else:
                collection = await self.scraper.scrape(url)
        except FetchFailure:
            raise
        except asyncio.TimeoutError as e:
            raise FetchFailure(
                f"Scrape of {url} timed out after {self.source_timeout}s", url=url
            ) from e
        except Exception as e:
            raise _wrap(FetchFailure, e, url, "scrape") from e

        return self._normalize(url, collection)

    def _normalize(self, url: str, collection: JobCollection) -> JobCollection:
        jobs = [job for job in collection.jobs if job.id]
        dropped = len(collection.jobs) - len(jobs)
        if dropped:
            logger.warning(f"Dropped {dropped} jobs without an id from {url}")
        return JobCollection(
            source_url=url,
            company_name=collection.company_name,
            observed_at=collection.observed_at,
            jobs=jobs,
        )

    async def _notify(self, url: str, diff: DiffResult, result: SourceResult) -> None:
        logger.info(f"Sending notification for changes at {url}")
        try:
            await self.notifier.notify(diff)
        except Exception as e:
            # The snapshot is still saved so the same change is not re-sent next pass.
            result.errors.append(_wrap(DeliveryFailure, e, url, "send notification"))
        else:
            logger.info("Successfully sent notification")

    async def _report_fetch_failure(self, url: str, error: FetchFailure) -> None:
        if not self.notify_errors:
            return
        notification = create_error_notification(
            extract_company_name(url), url, str(error)
        )
        try:
            await self.notifier.notify_error(notification)
        except Exception as e:
            logger.error(f"Failed to send error notification for {url}: {e}")


def _wrap(kind, error: Exception, url: str, action: str) -> CareerWatchError:
    if isinstance(error, kind):
        return error
    return kind(f"Failed to {action} for {url}: {error}", url=url)
