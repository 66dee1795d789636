import asyncio
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from feedgrab.core.config import FetchConfig
from feedgrab.fetch.base import BrowserPage, BrowserSession, DiagnosticSnapshot, RenderedCandidate
from feedgrab.fetch.errors import ExtractionError, NavigationError
from feedgrab.fetch.extractor import extract_rss_content

UNAVAILABLE = "<unavailable>"


async def capture_snapshot(page: BrowserPage, preview_chars: int = 500) -> DiagnosticSnapshot:
    """
    Collect what the page looks like right now.

    Best effort: the page may be half-loaded or already crashed, so each
    accessor that fails is reported as unavailable instead of raising.
    """
    try:
        final_url = await page.current_url()
    except Exception:
        final_url = UNAVAILABLE
    try:
        title = await page.title()
    except Exception:
        title = UNAVAILABLE
    try:
        content = await page.read_document()
    except Exception:
        content = ""

    return DiagnosticSnapshot(
        final_url=final_url,
        title=title,
        content_length=len(content),
        content_preview=content[:preview_chars],
    )


def log_snapshot(snapshot: DiagnosticSnapshot) -> None:
    print("DEBUG INFO:", file=sys.stderr)
    for line in snapshot.lines():
        print(line, file=sys.stderr)


class RenderingDriver:
    """Loads the feed URL in a fresh tab and reads back what the browser rendered."""

    def __init__(self, config: FetchConfig, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.config = config
        self.sleep = sleep

    @asynccontextmanager
    async def _open_page(self, session: BrowserSession) -> AsyncIterator[BrowserPage]:
        page = await session.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as e:
                print(f"Failed to close page: {e}", file=sys.stderr)

    async def _render(self, page: BrowserPage) -> RenderedCandidate:
        url = self.config.feed_url
        page_config = self.config.page
        try:
            await page.navigate(url, page_config.load_timeout_ms)
            # Client-side rendering may still be running after network idle
            await self.sleep(page_config.post_load_wait_ms / 1000)
            preformatted = await page.read_text(page_config.pre_selector)
            full_document = await page.read_document()
        except Exception as e:
            snapshot = await capture_snapshot(page, page_config.preview_chars)
            log_snapshot(snapshot)
            raise NavigationError(f"Failed to render {url}: {e}", url, snapshot) from e

        return RenderedCandidate(preformatted=preformatted, full_document=full_document)

    async def fetch_once(self, session: BrowserSession) -> RenderedCandidate:
        """Render the feed URL once and return both candidate blobs."""
        async with self._open_page(session) as page:
            return await self._render(page)

    async def fetch_feed(self, session: BrowserSession) -> str:
        """
        Render the feed URL once and extract the RSS payload from it.

        Raises ExtractionError when the page rendered but holds no feed, so the
        caller can count it against the same attempt budget as navigation errors.
        """
        async with self._open_page(session) as page:
            candidate = await self._render(page)
            payload = extract_rss_content(candidate.preformatted, candidate.full_document)
            if payload is not None:
                return payload

            snapshot = await capture_snapshot(page, self.config.page.preview_chars)
            log_snapshot(snapshot)
            page_url = self.config.feed_url if snapshot.final_url == UNAVAILABLE else snapshot.final_url
            raise ExtractionError(
                f"No RSS content found at {page_url}",
                self.config.feed_url,
                snapshot,
            )
