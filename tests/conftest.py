"""Shared test fixtures for the video ingestion queue.

Provides in-process fakes for the queue's collaborators (scraper and
ingestion client) and a controllable clock, so queue tests never touch
the network or depend on wall-clock time.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from vidqueue.core.config import reset_config
from vidqueue.core.ingestion import IngestionResponse
from vidqueue.core.logger import reset_logging
from vidqueue.core.scraper import ScrapedVideo, Scraper
from vidqueue.core.video_queue import VideoQueue

TIKTOK_URL = "https://www.tiktok.com/@user/video/7234567890123456789"
REEL_URL = "https://www.instagram.com/reel/CxYz123AbC/"


def make_scraped(**overrides: Any) -> ScrapedVideo:
    """Build a ScrapedVideo with sensible TikTok defaults."""
    values: dict[str, Any] = {
        "platform": "tiktok",
        "short_code": "7234567890123456789",
        "video_url": "https://cdn.example.com/video.mp4",
        "thumbnail_url": "https://cdn.example.com/thumb.jpg",
        "title": "Cooking pasta",
        "author": "chef",
    }
    values.update(overrides)
    return ScrapedVideo(**values)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeScraper(Scraper):
    """Scraper returning a canned result.

    Attributes:
        result: ScrapedVideo (or None) returned by scrape().
        error: Exception raised by scrape() instead, when set.
        gate: When set, scrape() waits on this event before returning.
        on_call: Optional hook run at the start of each scrape() call.
        calls: URLs scrape() was called with.
    """

    def __init__(self, result: ScrapedVideo | None = None):
        self.result = result if result is not None else make_scraped()
        self.error: BaseException | None = None
        self.gate: asyncio.Event | None = None
        self.on_call: Callable[[str], None] | None = None
        self.calls: list[str] = []

    async def scrape(self, url: str) -> ScrapedVideo | None:
        self.calls.append(url)
        if self.on_call is not None:
            self.on_call(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeIngestion:
    """Stand-in for IngestionClient recording every add_video call."""

    def __init__(self, response: IngestionResponse | None = None):
        self.response = response or IngestionResponse(success=True, video_id="vid-123")
        self.error: BaseException | None = None
        self.on_call: Callable[[Any], None] | None = None
        self.calls: list[tuple[Any, ScrapedVideo]] = []

    async def add_video(self, job: Any, scraped: ScrapedVideo) -> IngestionResponse:
        self.calls.append((job, scraped))
        if self.on_call is not None:
            self.on_call(job)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def scraper() -> FakeScraper:
    return FakeScraper()


@pytest.fixture
def ingestion() -> FakeIngestion:
    return FakeIngestion()


@pytest.fixture
def queue(scraper: FakeScraper, ingestion: FakeIngestion, clock: FixedClock) -> VideoQueue:
    """VideoQueue wired to fakes and a fixed clock."""
    return VideoQueue(scraper, ingestion, clock=clock)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset cached config and logging handlers around each test."""
    reset_config()
    yield
    reset_config()
    reset_logging()
