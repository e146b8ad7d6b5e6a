"""
Process wiring: builds the adapters selected in Settings, runs the Runner on
the configured schedule and shuts everything down on SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
from typing import Dict, Type

from careerwatch.adapters.base import JobRepository, Notifier
from careerwatch.adapters.notifier.discord import DiscordNotifier
from careerwatch.adapters.notifier.log import LogNotifier
from careerwatch.adapters.repository.json_file import JsonFileRepository
from careerwatch.adapters.repository.memory import MemoryRepository
from careerwatch.adapters.scheduler.cron import CronScheduler
from careerwatch.adapters.scraper.playwright_scraper import PlaywrightScraper
from careerwatch.config.logging import configure_logging
from careerwatch.config.settings import Settings
from careerwatch.core.browser import BrowserManager
from careerwatch.core.runner import Runner

logger = logging.getLogger(__name__)

NOTIFIERS: Dict[str, Type[Notifier]] = {
    "log": LogNotifier,
    "discord": DiscordNotifier,
}

REPOSITORIES: Dict[str, Type[JobRepository]] = {
    "memory": MemoryRepository,
    "json": JsonFileRepository,
}


def build_notifier(settings: Settings) -> Notifier:
    notifier_type = settings.NOTIFIER_TYPE.lower()
    if notifier_type not in NOTIFIERS:
        raise ValueError(
            f"Unknown notifier type: '{settings.NOTIFIER_TYPE}'. "
            f"Available notifiers: {list(NOTIFIERS.keys())}"
        )
    if notifier_type == "discord":
        if not settings.DISCORD_WEBHOOK_URL:
            raise ValueError("Discord webhook URL is required for Discord notifier")
        return DiscordNotifier(settings.DISCORD_WEBHOOK_URL, timeout=settings.HTTP_TIMEOUT)
    return NOTIFIERS[notifier_type]()


def build_repository(settings: Settings) -> JobRepository:
    repository_type = settings.REPOSITORY_TYPE.lower()
    if repository_type not in REPOSITORIES:
        raise ValueError(
            f"Unknown repository type: '{settings.REPOSITORY_TYPE}'. "
            f"Available repositories: {list(REPOSITORIES.keys())}"
        )
    if repository_type == "json":
        return JsonFileRepository(settings.REPOSITORY_PATH)
    return REPOSITORIES[repository_type]()


def build_runner(settings: Settings) -> Runner:
    urls = settings.url_list()
    if not urls:
        raise ValueError("No career page URLs configured (set CAREERWATCH_URLS)")

    return Runner(
        scraper=PlaywrightScraper(
            timeout_ms=settings.NAVIGATION_TIMEOUT,
            wait_stable_ms=settings.WAIT_STABLE_MS,
        ),
        repository=build_repository(settings),
        notifier=build_notifier(settings),
        urls=urls,
        source_timeout=settings.SOURCE_TIMEOUT,
        notify_errors=settings.NOTIFY_ERRORS,
    )


async def run_startup_pass(runner: Runner, shutdown: asyncio.Event) -> None:
    """
    Run one pass right away. A shutdown request cancels it.
    """
    logger.info("Running initial scrape job...")
    task = asyncio.create_task(runner.run_once())
    shutdown_requested = asyncio.create_task(shutdown.wait())
    try:
        await asyncio.wait(
            {task, shutdown_requested}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        shutdown_requested.cancel()
        if not task.done():
            logger.info("Cancelling initial scrape job...")
            task.cancel()
        await asyncio.wait({task})

    if not task.cancelled():
        task.result()


async def serve(settings: Settings) -> None:
    """
    Run until SIGINT or SIGTERM.
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    runner = build_runner(settings)
    scheduler = CronScheduler(max_instances=settings.MAX_OVERLAPPING_RUNS)
    scheduler.schedule(settings.SCRAPE_INTERVAL, runner.run_once)

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    handled = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still ends asyncio.run
            continue
        handled.append(sig)

    try:
        if settings.RUN_ON_STARTUP:
            await run_startup_pass(runner, shutdown)

        scheduler_task = asyncio.create_task(scheduler.start())
        if not shutdown.is_set():
            logger.info(
                f"Career watcher started, monitoring {len(runner.urls)} URLs "
                f"on schedule '{settings.SCRAPE_INTERVAL}'"
            )
            await shutdown.wait()
        logger.info("Shutting down...")

        await scheduler.stop()
        await scheduler_task
    finally:
        for sig in handled:
            loop.remove_signal_handler(sig)
        await BrowserManager.close()
        logger.info("Shutdown complete")
