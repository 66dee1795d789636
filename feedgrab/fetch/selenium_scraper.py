"""
Selenium-driven Chrome, used when Playwright cannot deliver the feed.

Selenium has no network-idle wait of its own, so navigation waits for
document.readyState == "complete" and then for the number of resource
timing entries to stop growing for IDLE_WINDOW_MS. Selenium calls block,
so every call runs in a worker thread to keep the event loop free.
"""

import asyncio
import time
from typing import Callable, Optional, TypeVar

from selenium import webdriver
from selenium.common.exceptions import TimeoutException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait

from feedgrab.core.config import FetchConfig
from feedgrab.fetch.base import BrowserEngine, BrowserPage, BrowserSession

T = TypeVar("T")

IDLE_WINDOW_MS = 500
IDLE_POLL_MS = 100

_RESOURCE_COUNT_JS = "return performance.getEntriesByType('resource').length"


def wait_for_network_quiet(driver, timeout_ms: int, clock: Callable[[], float] = time.monotonic,
                           pause: Callable[[float], None] = time.sleep) -> None:
    """Block until the page is loaded and no new resources finished for IDLE_WINDOW_MS."""
    deadline = clock() + timeout_ms / 1000

    WebDriverWait(driver, max(deadline - clock(), 0), poll_frequency=IDLE_POLL_MS / 1000).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )

    last_count = -1
    quiet_since = clock()
    while True:
        count = driver.execute_script(_RESOURCE_COUNT_JS)
        now = clock()
        if count != last_count:
            last_count = count
            quiet_since = now
        elif (now - quiet_since) * 1000 >= IDLE_WINDOW_MS:
            return
        if now >= deadline:
            raise TimeoutException(f"Network did not go quiet within {timeout_ms}ms")
        pause(IDLE_POLL_MS / 1000)


class SeleniumPage(BrowserPage):
    def __init__(self, driver: webdriver.Chrome, handle: str, home_handle: str):
        self._driver = driver
        self._handle = handle
        self._home_handle = home_handle

    async def _call(self, fn: Callable[[], T]) -> T:
        def run() -> T:
            self._driver.switch_to.window(self._handle)
            return fn()

        return await asyncio.to_thread(run)

    async def navigate(self, url: str, timeout_ms: int) -> None:
        def load() -> None:
            self._driver.set_page_load_timeout(timeout_ms / 1000)
            started = time.monotonic()
            try:
                self._driver.get(url)
            except TimeoutException as e:
                raise TimeoutError(f"Timeout while loading {url} after {timeout_ms}ms") from e
            remaining = timeout_ms - (time.monotonic() - started) * 1000
            try:
                wait_for_network_quiet(self._driver, max(int(remaining), 0))
            except TimeoutException as e:
                raise TimeoutError(f"Timeout while waiting for {url} to settle") from e

        await self._call(load)

    async def read_text(self, selector: str) -> Optional[str]:
        def read() -> Optional[str]:
            elements = self._driver.find_elements(By.CSS_SELECTOR, selector)
            if not elements:
                return None
            return elements[0].get_attribute("textContent")

        return await self._call(read)

    async def read_document(self) -> str:
        return await self._call(lambda: self._driver.page_source)

    async def current_url(self) -> str:
        return await self._call(lambda: self._driver.current_url)

    async def title(self) -> str:
        return await self._call(lambda: self._driver.title)

    async def close(self) -> None:
        def close_tab() -> None:
            self._driver.close()
            self._driver.switch_to.window(self._home_handle)

        await self._call(close_tab)


class SeleniumSession(BrowserSession):
    def __init__(self, driver: webdriver.Chrome, home_handle: str):
        self._driver = driver
        # The first tab stays open so the browser survives closing page tabs
        self._home_handle = home_handle

    async def new_page(self) -> SeleniumPage:
        def open_tab() -> str:
            self._driver.switch_to.window(self._home_handle)
            self._driver.switch_to.new_window("tab")
            return self._driver.current_window_handle

        handle = await asyncio.to_thread(open_tab)
        return SeleniumPage(self._driver, handle, self._home_handle)

    async def close(self) -> None:
        await asyncio.to_thread(self._driver.quit)


class SeleniumEngine(BrowserEngine):
    """Headless Chrome driven through Selenium WebDriver."""

    name = "Selenium"

    def __init__(self, config: FetchConfig):
        self.config = config

    def _options(self) -> ChromeOptions:
        options = ChromeOptions()
        if self.config.headless:
            options.add_argument("--headless=new")
        for arg in self.config.browser_args:
            options.add_argument(arg)
        options.add_argument(f"--user-agent={self.config.user_agent}")
        return options

    async def launch(self) -> SeleniumSession:
        def start() -> SeleniumSession:
            driver = webdriver.Chrome(options=self._options())
            try:
                return SeleniumSession(driver, driver.current_window_handle)
            except Exception:
                driver.quit()
                raise

        return await asyncio.to_thread(start)
