"""
PlaywrightScraper - renders career pages in headless Chromium.

Loads the page through the shared BrowserManager context, waits for it to
settle, then hands the HTML to parsing.parse_jobs.
"""

import asyncio
import logging
from datetime import datetime, timezone

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from careerwatch.adapters.base import JobScraper
from careerwatch.adapters.scraper.parsing import parse_jobs
from careerwatch.config.settings import settings
from careerwatch.core.browser import BrowserManager
from careerwatch.core.errors import FetchFailure
from careerwatch.core.models import JobCollection, extract_company_name
from careerwatch.core.rate_limit import page_limiter, with_retry

logger = logging.getLogger(__name__)


async def wait_until_stable(page: Page, timeout_ms: int) -> None:
    """
    Give client-side rendering a chance to finish.
    Pages that keep polling never reach network idle, so this is best effort.
    """
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        logger.debug(f"Page did not reach network idle within {timeout_ms}ms")


class PlaywrightScraper(JobScraper):
    """
    Scraper for arbitrary career pages using a real browser.
    """

    def __init__(
        self,
        timeout_ms: int = settings.NAVIGATION_TIMEOUT,
        wait_stable_ms: int = settings.WAIT_STABLE_MS,
    ):
        self.timeout_ms = timeout_ms
        self.wait_stable_ms = wait_stable_ms

    async def scrape(self, url: str) -> JobCollection:
        logger.info(f"Starting to scrape URL: {url}")
        observed_at = datetime.now(timezone.utc)

        try:
            html = await self._fetch_html(url)
        except (PlaywrightError, asyncio.TimeoutError) as e:
            raise FetchFailure(f"Failed to load career page {url}: {e}", url=url) from e

        logger.info(f"Retrieved HTML content ({len(html)} bytes)")
        jobs = parse_jobs(html, url, observed_at)
        logger.info(f"Found {len(jobs)} jobs on page")

        return JobCollection(
            source_url=url,
            company_name=extract_company_name(url),
            observed_at=observed_at,
            jobs=jobs,
        )

    @with_retry(retry_on=(PlaywrightError, asyncio.TimeoutError))
    async def _fetch_html(self, url: str) -> str:
        async with page_limiter:
            page = await BrowserManager.new_page()
            try:
                logger.info(f"Navigating to {url}...")
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self.timeout_ms,
                )
                await wait_until_stable(page, self.wait_stable_ms)
                return await page.content()
            finally:
                await page.close()
