import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from src.config.logger_config import logger
from src.profile_archive.application.ports import SnapshotSourcePort
from src.profile_archive.domain.errors import ScrapeFailure
from src.profile_archive.infrastructure.html_snapshot import HtmlSnapshot

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0 Safari/537.36"
)


@dataclass(frozen=True)
class BrowserConfig:
    headless: bool = True
    nav_timeout_seconds: float = 60.0
    wait_until: str = "networkidle"
    ready_selector: str | None = "h1[aria-label='Public Name']"
    ready_timeout_seconds: float = 15.0
    settle_seconds: float = 0.0
    user_agent: str = DEFAULT_USER_AGENT


class PlaywrightSnapshotSource(SnapshotSourcePort):
    """One Chromium instance per acquisition, closed on every exit path."""

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig()

    @asynccontextmanager
    async def acquire(self, url: str) -> AsyncIterator[HtmlSnapshot]:
        nav_timeout_ms = self.config.nav_timeout_seconds * 1000
        async with async_playwright() as p:
            try:
                browser = await p.chromium.launch(
                    headless=self.config.headless,
                    args=["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"],
                )
            except PlaywrightError as exc:
                raise ScrapeFailure(url, f"browser launch failed: {exc}") from exc
            logger.debug("Browser launched for {}", url)
            try:
                context = await browser.new_context(user_agent=self.config.user_agent)
                page = await context.new_page()
                page.set_default_navigation_timeout(nav_timeout_ms)

                logger.info("Navigating to: {}", url)
                try:
                    response = await page.goto(url, wait_until=self.config.wait_until, timeout=nav_timeout_ms)
                except PlaywrightError as exc:
                    raise ScrapeFailure(url, f"navigation failed: {exc}") from exc
                if response is not None and response.status >= 400:
                    raise ScrapeFailure(url, f"HTTP {response.status}")

                await self._wait_until_ready(page, url)
                html = await page.content()
                yield HtmlSnapshot.from_html(
                    html,
                    url=page.url,
                    screenshot_fn=lambda: page.screenshot(full_page=True),
                )
            finally:
                await browser.close()
                logger.debug("Browser closed for {}", url)

    async def _wait_until_ready(self, page: Page, url: str) -> None:
        if self.config.ready_selector:
            try:
                await page.wait_for_selector(
                    self.config.ready_selector,
                    timeout=self.config.ready_timeout_seconds * 1000,
                )
            except PlaywrightTimeoutError:
                # Proceed anyway; missing fields resolve to sentinels during extraction.
                logger.warning(
                    "Ready selector '{}' not found on {} within {}s",
                    self.config.ready_selector,
                    url,
                    self.config.ready_timeout_seconds,
                )
        if self.config.settle_seconds > 0:
            await asyncio.sleep(self.config.settle_seconds)
