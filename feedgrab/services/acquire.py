import asyncio
import random
import sys
from typing import Awaitable, Callable, List, Optional, Sequence

from feedgrab.core.config import FetchConfig
from feedgrab.fetch.base import BrowserEngine
from feedgrab.fetch.driver import RenderingDriver
from feedgrab.fetch.errors import AcquisitionError, EngineExhaustedError
from feedgrab.fetch.retry import with_retry
from feedgrab.fetch.utils import sanitize_xml


def default_engines(config: FetchConfig) -> List[BrowserEngine]:
    """Playwright first, Selenium as the fallback."""
    from feedgrab.fetch.js_scraper import PlaywrightEngine
    from feedgrab.fetch.selenium_scraper import SeleniumEngine

    return [PlaywrightEngine(config), SeleniumEngine(config)]


class FeedAcquirer:
    """
    Acquire the feed through each rendering engine in turn.

    Every engine gets its own launch and its own retry budget. The browser
    is closed when its path ends, whatever the outcome. The next engine is
    only tried once the previous one has used up all its attempts.
    """

    def __init__(
        self,
        config: FetchConfig,
        engines: Optional[Sequence[BrowserEngine]] = None,
        driver: Optional[RenderingDriver] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        random_source: Callable[[], float] = random.random,
    ):
        self.config = config
        self.engines = list(engines) if engines is not None else default_engines(config)
        self.sleep = sleep
        self.random_source = random_source
        self.driver = driver or RenderingDriver(config, sleep=sleep)

    async def try_engine(self, engine: BrowserEngine) -> str:
        print(f"FETCHING {self.config.feed_url} with {engine.name}...")
        session = await engine.launch()
        try:
            return await with_retry(
                engine.name,
                lambda: self.driver.fetch_feed(session),
                self.config.retry,
                sleep=self.sleep,
                random_source=self.random_source,
            )
        finally:
            try:
                await session.close()
            except Exception as e:
                print(f"Failed to close {engine.name} browser: {e}", file=sys.stderr)

    async def acquire(self) -> str:
        """Return the sanitized feed XML, or raise AcquisitionError."""
        failures: List[EngineExhaustedError] = []

        for index, engine in enumerate(self.engines):
            try:
                xml = await self.try_engine(engine)
            except Exception as e:
                failure = EngineExhaustedError(engine.name, e)
                failure.__cause__ = e
                failures.append(failure)
                print(f"{engine.name} error: {e}", file=sys.stderr)
                if index + 1 < len(self.engines):
                    print(
                        f"{engine.name} failed, falling back to {self.engines[index + 1].name}...",
                        file=sys.stderr,
                    )
                continue
            print(f"RSS RECEIVED via {engine.name}: {len(xml)} characters")
            return sanitize_xml(xml)

        error = AcquisitionError(failures)
        if failures:
            raise error from failures[-1].__cause__
        raise error
