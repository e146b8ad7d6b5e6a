"""Shared fakes for the scraper, repository and notifier ports."""

import asyncio
import os
from datetime import datetime, timezone

# Retry backoff is read when careerwatch is first imported.
os.environ.setdefault("CAREERWATCH_RETRY_BASE_DELAY", "0")
os.environ.setdefault("CAREERWATCH_RETRY_MAX_DELAY", "0")

from typing import Dict, List, Optional

import pytest

from careerwatch.adapters.base import JobRepository, JobScraper, Notifier
from careerwatch.core.models import DiffResult, Job, JobCollection, Notification

OBSERVED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_job(job_id: str, title: str = "Engineer", **fields) -> Job:
    return Job(id=job_id, title=title, **fields)


def make_collection(url: str, *jobs: Job, company: str = "Acme") -> JobCollection:
    return JobCollection(
        source_url=url,
        company_name=company,
        observed_at=OBSERVED_AT,
        jobs=list(jobs),
    )


class FakeScraper(JobScraper):
    """Returns canned snapshots; raises for URLs mapped to an exception."""

    def __init__(self, results: Optional[Dict[str, object]] = None, delay: float = 0.0):
        self.results = results or {}
        self.delay = delay
        self.calls: List[str] = []

    async def scrape(self, url: str) -> JobCollection:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results[url]
        if isinstance(result, BaseException):
            raise result
        return result


class FakeRepository(JobRepository):
    def __init__(self, fail_get: Optional[Exception] = None, fail_save: Optional[Exception] = None):
        self.collections: Dict[str, JobCollection] = {}
        self.saved: List[JobCollection] = []
        self.fail_get = fail_get
        self.fail_save = fail_save

    async def save_job_collection(self, collection: JobCollection) -> None:
        if self.fail_save:
            raise self.fail_save
        self.saved.append(collection)
        self.collections[collection.source_url] = collection

    async def get_latest_job_collection(self, url: str) -> JobCollection:
        if self.fail_get:
            raise self.fail_get
        return self.collections.get(url, JobCollection())


class FakeNotifier(Notifier):
    def __init__(self, fail: Optional[Exception] = None):
        self.diffs: List[DiffResult] = []
        self.errors: List[Notification] = []
        self.fail = fail

    async def notify(self, diff: DiffResult) -> None:
        self.diffs.append(diff)
        if self.fail:
            raise self.fail

    async def notify_error(self, notification: Notification) -> None:
        self.errors.append(notification)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
