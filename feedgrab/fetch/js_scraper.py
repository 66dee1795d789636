from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeout

from feedgrab.core.config import FetchConfig
from feedgrab.fetch.base import BrowserEngine, BrowserPage, BrowserSession


class PlaywrightPage(BrowserPage):
    def __init__(self, page: Page):
        self._page = page

    async def navigate(self, url: str, timeout_ms: int) -> None:
        # Playwright's networkidle: no network connections for at least 500 ms
        try:
            await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeout as e:
            raise TimeoutError(f"Timeout while loading {url} after {timeout_ms}ms") from e

    async def read_text(self, selector: str) -> Optional[str]:
        element = self._page.locator(selector).first
        if await element.count() == 0:
            return None
        return await element.text_content()

    async def read_document(self) -> str:
        return await self._page.content()

    async def current_url(self) -> str:
        return self._page.url

    async def title(self) -> str:
        return await self._page.title()

    async def close(self) -> None:
        await self._page.close()


class PlaywrightSession(BrowserSession):
    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext):
        self._playwright = playwright
        self._browser = browser
        self._context = context

    async def new_page(self) -> PlaywrightPage:
        return PlaywrightPage(await self._context.new_page())

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightEngine(BrowserEngine):
    """Headless Chromium driven through Playwright."""

    name = "Playwright"

    def __init__(self, config: FetchConfig):
        self.config = config

    async def launch(self) -> PlaywrightSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=self.config.headless,
                args=list(self.config.browser_args),
            )
            context = await browser.new_context(user_agent=self.config.user_agent)
        except Exception:
            await playwright.stop()
            raise
        return PlaywrightSession(playwright, browser, context)
