from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RenderedCandidate:
    preformatted: Optional[str]  # text of the first <pre>, None when absent
    full_document: str


@dataclass
class DiagnosticSnapshot:
    final_url: str
    title: str
    content_length: int
    content_preview: str

    def lines(self) -> List[str]:
        return [
            f"  Final URL: {self.final_url}",
            f"  Page title: {self.title}",
            f"  Content length: {self.content_length}",
            f"  Content preview: {self.content_preview}",
        ]


@dataclass
class AttemptOutcome:
    attempt: int
    error: Optional[BaseException] = None
    snapshot: Optional[DiagnosticSnapshot] = None


@dataclass
class RetryState:
    attempt: int = 0
    last_error: Optional[BaseException] = None
    outcomes: List[AttemptOutcome] = field(default_factory=list)


class BrowserPage:
    """A single tab inside a launched browser."""

    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Load ``url`` and return once the engine considers the network idle."""
        raise NotImplementedError

    async def read_text(self, selector: str) -> Optional[str]:
        """Text content of the first element matching ``selector``, or None."""
        raise NotImplementedError

    async def read_document(self) -> str:
        raise NotImplementedError

    async def current_url(self) -> str:
        raise NotImplementedError

    async def title(self) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class BrowserSession:
    """A launched browser process."""

    async def new_page(self) -> BrowserPage:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class BrowserEngine:
    name: str = "engine"

    async def launch(self) -> BrowserSession:
        raise NotImplementedError
