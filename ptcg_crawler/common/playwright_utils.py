from __future__ import annotations

# Async Playwright session shared by the events and roster scrapers

import asyncio
import contextlib
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright

from ptcg_crawler.common.logging_utils import get_logger
from ptcg_crawler.core.config import Settings

logger = get_logger(__name__)


class PageRenderer(Protocol):
    """Render a URL and return its HTML once the dynamic content is present."""

    async def render(
        self, url: str, *, wait_selector: str, show_all_selector: Optional[str] = None
    ) -> str: ...


class BrowserSession:
    """
    Single owner of the Chromium process used for a crawl run.

    The browser is launched lazily on first use and reused by every page;
    ``close()`` may be called any number of times.

    Usage:
        session = BrowserSession.from_settings(settings)
        html = await session.render(url, wait_selector="table tbody tr")
        await session.close()
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        viewport: dict[str, int] | None = None,
        navigation_timeout_ms: int = 30000,
        selector_timeout_ms: int = 15000,
        wait_until: str = "networkidle",
        show_all_settle_ms: int = 2000,
        user_agent: str | None = None,
    ) -> None:
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self.headless = headless
        self.viewport = viewport or {"width": 1920, "height": 1080}
        self.navigation_timeout_ms = navigation_timeout_ms
        self.selector_timeout_ms = selector_timeout_ms
        self.wait_until = wait_until
        self.show_all_settle_ms = show_all_settle_ms
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, cfg: Settings) -> "BrowserSession":
        return cls(
            headless=cfg.browser_headless,
            viewport=cfg.viewport,
            navigation_timeout_ms=cfg.navigation_timeout_ms,
            selector_timeout_ms=cfg.selector_timeout_ms,
            wait_until=cfg.navigation_wait_until,
            show_all_settle_ms=cfg.show_all_settle_ms,
            user_agent=cfg.user_agent,
        )

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> Browser:
        """Launch Chromium, or return the already connected instance."""
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            try:
                self._browser = await self._playwright.chromium.launch(headless=self.headless)
            except Exception as e:
                logger.error(f"Playwright browser launch failed: {e}")
                await self._stop_driver()
                raise
            logger.debug("Browser launched")
            return self._browser

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                with contextlib.suppress(Exception):
                    await self._browser.close()
                self._browser = None
                logger.debug("Browser closed")
            await self._stop_driver()

    async def _stop_driver(self) -> None:
        if self._playwright is not None:
            with contextlib.suppress(Exception):
                await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Yield a fresh page with the configured viewport and timeouts."""
        browser = await self.start()
        context_args: dict[str, Any] = {"viewport": self.viewport}
        if self.user_agent:
            context_args["user_agent"] = self.user_agent
        context = await browser.new_context(**context_args)
        try:
            page = await context.new_page()
            page.set_default_timeout(self.navigation_timeout_ms)
            page.set_default_navigation_timeout(self.navigation_timeout_ms)
            yield page
        finally:
            with contextlib.suppress(Exception):
                await context.close()

    async def navigate(self, page: Page, url: str) -> None:
        await page.goto(url, wait_until=self.wait_until, timeout=self.navigation_timeout_ms)

    async def wait_for(self, page: Page, selector: str, timeout_ms: int | None = None) -> None:
        # Network may be idle before the client-side table has rendered
        await page.wait_for_selector(selector, timeout=timeout_ms or self.selector_timeout_ms)

    async def show_all_rows(self, page: Page, selector: str, value: str = "-1") -> bool:
        """Switch a paginated table to its 'All' length option.

        Returns False when the length control is absent (small rosters).
        """
        try:
            await page.select_option(selector, value, timeout=self.selector_timeout_ms)
        except Exception as e:
            logger.debug(f"Length selector {selector!r} not available, skipping: {e}")
            return False
        await page.wait_for_timeout(self.show_all_settle_ms)
        return True

    async def render(
        self, url: str, *, wait_selector: str, show_all_selector: Optional[str] = None
    ) -> str:
        async with self.page() as page:
            logger.info(f"Accessing {url}")
            await self.navigate(page, url)
            await self.wait_for(page, wait_selector)
            if show_all_selector:
                await self.show_all_rows(page, show_all_selector)
            return await page.content()


def random_delay_seconds(min_s: float, max_s: float) -> float:
    return random.uniform(min_s, max_s)


async def polite_delay(min_s: float, max_s: float) -> float:
    """Sleep a random duration in [min_s, max_s] between sequential requests."""
    delay = random_delay_seconds(min_s, max_s)
    if delay > 0:
        await asyncio.sleep(delay)
    return delay
