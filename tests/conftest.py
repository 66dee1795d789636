from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from feedgrab.core.config import FetchConfig, PageConfig, RetryPolicy
from feedgrab.fetch.base import BrowserEngine, BrowserPage, BrowserSession

FEED_URL = "https://example.org/issue/latest/feed"
RSS = '<rss version="2.0"><channel><title>Test</title></channel></rss>'


@dataclass
class PageScript:
    """What one fake tab does when the driver uses it."""
    navigate_error: Optional[Exception] = None
    preformatted: Optional[str] = None
    document: str = "<html><body></body></html>"
    url: str = FEED_URL
    title: str = "Feed"


class FakePage(BrowserPage):
    def __init__(self, script: PageScript):
        self.script = script
        self.navigated_to: Optional[str] = None
        self.timeout_ms: Optional[int] = None
        self.closed = False

    async def navigate(self, url, timeout_ms):
        self.navigated_to = url
        self.timeout_ms = timeout_ms
        if self.script.navigate_error is not None:
            raise self.script.navigate_error

    async def read_text(self, selector):
        return self.script.preformatted

    async def read_document(self):
        return self.script.document

    async def current_url(self):
        return self.script.url

    async def title(self):
        return self.script.title

    async def close(self):
        self.closed = True


class FakeSession(BrowserSession):
    def __init__(self, scripts: List[PageScript]):
        self.scripts = list(scripts)
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self):
        script = self.scripts.pop(0) if self.scripts else PageScript()
        page = FakePage(script)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


@dataclass
class FakeEngine(BrowserEngine):
    name: str = "Fake"
    scripts: List[PageScript] = field(default_factory=list)
    launch_error: Optional[Exception] = None
    sessions: List[FakeSession] = field(default_factory=list)

    async def launch(self):
        if self.launch_error is not None:
            raise self.launch_error
        session = FakeSession(self.scripts)
        self.sessions.append(session)
        return session


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def config(tmp_path):
    """Fast configuration pointing at a temporary output file"""
    return FetchConfig(
        feed_url=FEED_URL,
        output_file=str(tmp_path / "feed.xml"),
        retry=RetryPolicy(max_retries=3, initial_delay_ms=100, multiplier=2, max_delay_ms=1000, jitter_factor=0.0),
        page=PageConfig(load_timeout_ms=1000, post_load_wait_ms=250),
    )


@pytest.fixture
def fake_sleep():
    return SleepRecorder()


@pytest.fixture
def page_script():
    return PageScript


@pytest.fixture
def fake_engine():
    return FakeEngine


@pytest.fixture
def rss():
    return RSS
