"""Error types raised along the acquisition pipeline.

Kept in their own module so the engines, the driver and the orchestrator can
share them without importing one another.
"""

from typing import List, Optional

from feedgrab.fetch.base import DiagnosticSnapshot


class FeedGrabError(Exception):
    """Base class for all acquisition failures."""


class NavigationError(FeedGrabError):
    """Navigation or page read failed (timeout, network error, engine crash).

    Attributes:
        url: The URL the page was navigating to.
        snapshot: Diagnostic state of the page at the time of failure, if any.
    """

    def __init__(self, message: str, url: str, snapshot: Optional[DiagnosticSnapshot] = None):
        super().__init__(message)
        self.url = url
        self.snapshot = snapshot


class ExtractionError(NavigationError):
    """The page rendered but no RSS payload could be located in it."""


class EngineExhaustedError(FeedGrabError):
    """Every attempt against one rendering engine failed."""

    def __init__(self, engine: str, cause: BaseException):
        super().__init__(f"{engine} failed: {cause}")
        self.engine = engine


class AcquisitionError(FeedGrabError):
    """Every engine path failed; nothing was acquired."""

    def __init__(self, errors: List[EngineExhaustedError]):
        engines = ", ".join(e.engine for e in errors) or "no engines"
        last = errors[-1].__cause__ if errors else None
        super().__init__(f"All rendering engines failed ({engines}): {last}")
        self.errors = errors
