import os
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_FEED_URL = "https://cacm.acm.org/issue/latest/feed"
DEFAULT_OUTPUT_FILE = "feed.xml"
DEFAULT_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
)
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class ConfigError(ValueError):
    """Raised when configuration values cannot be parsed or validated."""


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(5, ge=1, description="Total attempts per engine path")
    initial_delay_ms: int = Field(5000, ge=0, description="Delay after the first failure")
    multiplier: float = Field(2.0, ge=1.0, description="Exponential growth factor")
    max_delay_ms: int = Field(60000, ge=0, description="Ceiling for the computed delay")
    jitter_factor: float = Field(0.2, ge=0.0, le=1.0, description="Fraction of the delay randomized")


class PageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    load_timeout_ms: int = Field(60000, gt=0, description="Navigation timeout")
    post_load_wait_ms: int = Field(5000, ge=0, description="Settle delay after network idle")
    preview_chars: int = Field(500, ge=0, description="Characters kept in diagnostic previews")
    pre_selector: str = Field("pre", description="Element holding the literal feed text")


class FetchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    feed_url: str = DEFAULT_FEED_URL
    output_file: str = DEFAULT_OUTPUT_FILE
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    page: PageConfig = Field(default_factory=PageConfig)
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True

    @field_validator("feed_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return value

    @field_validator("output_file")
    @classmethod
    def _check_output(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Output path is required")
        return value


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_args(name: str) -> Optional[Tuple[str, ...]]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return tuple(arg.strip() for arg in raw.split(",") if arg.strip())


def load_config(**overrides: Any) -> FetchConfig:
    """
    Build the configuration from environment variables.

    Keyword overrides (e.g. from the command line) win over the environment.
    ``max_retries`` is accepted as a shortcut for ``retry.max_retries``.
    """
    try:
        retry: Dict[str, Any] = {
            "max_retries": int(os.getenv("MAX_RETRIES", "5")),
            "initial_delay_ms": int(os.getenv("RETRY_INITIAL_DELAY_MS", "5000")),
            "multiplier": float(os.getenv("RETRY_MULTIPLIER", "2")),
            "max_delay_ms": int(os.getenv("RETRY_MAX_DELAY_MS", "60000")),
            "jitter_factor": float(os.getenv("RETRY_JITTER_FACTOR", "0.2")),
        }
        page: Dict[str, Any] = {
            "load_timeout_ms": int(os.getenv("PAGE_LOAD_TIMEOUT_MS", "60000")),
            "post_load_wait_ms": int(os.getenv("POST_LOAD_WAIT_MS", "5000")),
        }
    except ValueError as e:
        raise ConfigError(f"Invalid numeric configuration: {e}") from e

    max_retries = overrides.pop("max_retries", None)
    if max_retries is not None:
        retry["max_retries"] = max_retries

    values: Dict[str, Any] = {
        "feed_url": os.getenv("FEED_URL", DEFAULT_FEED_URL),
        "output_file": os.getenv("OUTPUT_FILE", DEFAULT_OUTPUT_FILE),
        "user_agent": os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        "headless": _env_bool("BROWSER_HEADLESS", "1"),
        "retry": retry,
        "page": page,
    }
    browser_args = _env_args("BROWSER_ARGS")
    if browser_args is not None:
        values["browser_args"] = browser_args

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return FetchConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
