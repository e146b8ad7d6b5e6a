import asyncio
import logging
from typing import Optional
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from careerwatch.config.settings import settings

from fake_useragent import UserAgent

logger = logging.getLogger(__name__)

FALLBACK_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--hide-scrollbars",
    "--mute-audio",
]

HIDE_WEBDRIVER_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });
"""


class BrowserManager:
    """
    Manages the lifecycle of the Playwright browser and context.
    One browser is shared by every scrape in the process.
    """

    _playwright: Optional[Playwright] = None
    _browser: Optional[Browser] = None
    _context: Optional[BrowserContext] = None
    _ua: Optional[UserAgent] = None
    _lock: Optional[asyncio.Lock] = None

    @classmethod
    def _user_agent(cls) -> str:
        if cls._ua is None:
            try:
                cls._ua = UserAgent(
                    browsers=["chrome", "firefox"],
                    os=["windows", "macos"],
                    fallback=FALLBACK_USER_AGENT,
                )
            except Exception as e:
                logger.warning(
                    f"Failed to initialize fake_useragent, using fallback: {e}"
                )
                return FALLBACK_USER_AGENT
        return cls._ua.random

    @classmethod
    async def initialize(cls):
        """
        Initializes the browser and context if not already running.
        """
        if cls._lock is None:
            cls._lock = asyncio.Lock()

        async with cls._lock:
            if cls._playwright is None:
                cls._playwright = await async_playwright().start()
                logger.info("Playwright started.")

            if cls._browser is None:
                cls._browser = await cls._playwright.chromium.launch(
                    headless=settings.HEADLESS,
                    args=LAUNCH_ARGS,
                )
                logger.info(f"Browser launched (Headless: {settings.HEADLESS}).")

            if cls._context is None:
                user_agent = cls._user_agent()
                logger.info(f"Using User Agent: {user_agent}")

                cls._context = await cls._browser.new_context(
                    user_agent=user_agent,
                    viewport={"width": 1366, "height": 768},
                    locale="en-US",
                    extra_http_headers={
                        "Accept-Language": "en-US,en;q=0.9",
                    },
                )
                await cls._context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
                logger.info("Browser context created.")

    @classmethod
    async def get_context(cls) -> BrowserContext:
        """
        Returns the shared browser context. Initializes if necessary.
        """
        if cls._context is None:
            await cls.initialize()
        return cls._context

    @classmethod
    async def new_page(cls) -> Page:
        """
        Creates a new page in the shared context.
        """
        context = await cls.get_context()
        page = await context.new_page()
        return page

    @classmethod
    async def close(cls):
        """
        Closes the browser and stops Playwright.
        """
        if cls._context:
            await cls._context.close()
            cls._context = None
            logger.info("Browser context closed.")

        if cls._browser:
            await cls._browser.close()
            cls._browser = None
            logger.info("Browser closed.")

        if cls._playwright:
            await cls._playwright.stop()
            cls._playwright = None
            logger.info("Playwright stopped.")
