"""Scraper collaborator for the video ingestion queue.

The queue only depends on the Scraper interface: resolve a platform URL
into a direct, time-limited media URL plus metadata. UnifiedVideoScraper
implements it against the web app's Apify-backed scraping endpoints and
normalizes the TikTok and Instagram payloads into one ScrapedVideo shape.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from vidqueue.core.exceptions import ScrapeError, UnsupportedContentError
from vidqueue.core.http_client import get_client
from vidqueue.core.url_classifier import Platform, classify, extract_instagram_id

logger = logging.getLogger(__name__)

TIKTOK_SCRAPER_PATH = "/api/apify/tiktok/scraper"
INSTAGRAM_REEL_PATH = "/api/apify/instagram/reel"
INSTAGRAM_POST_PATH = "/api/apify/instagram/post"


@dataclass
class VideoMetrics:
    """Engagement counters reported by the platform."""

    likes: int = 0
    views: int = 0
    comments: int = 0
    shares: int = 0
    saves: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "likes": self.likes,
            "views": self.views,
            "comments": self.comments,
            "shares": self.shares,
        }
        if self.saves is not None:
            data["saves"] = self.saves
        return data


@dataclass
class ScrapedVideo:
    """Normalized scrape result for a single video.

    Attributes:
        platform: "tiktok" or "instagram"
        short_code: Platform-native video ID / shortcode
        video_url: Direct media URL ("" when the platform returned none)
        raw_data: Original scraper payload, kept for debugging
    """

    platform: str
    short_code: str
    video_url: str
    thumbnail_url: str = ""
    title: str = ""
    author: str = "unknown"
    description: str = ""
    hashtags: list[str] = field(default_factory=list)
    metrics: VideoMetrics = field(default_factory=VideoMetrics)
    metadata: dict[str, Any] = field(default_factory=dict)
    raw_data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Render the full scrape as the camelCase payload the web app expects."""
        return {
            "platform": self.platform,
            "shortCode": self.short_code,
            "videoUrl": self.video_url,
            "thumbnailUrl": self.thumbnail_url,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "hashtags": list(self.hashtags),
            "metrics": self.metrics.to_dict(),
            "metadata": dict(self.metadata),
            "rawData": self.raw_data,
        }


class Scraper(ABC):
    """Resolves a platform URL into video metadata and a media URL."""

    @abstractmethod
    async def scrape(self, url: str) -> Optional[ScrapedVideo]:
        """Scrape a URL.

        Returns:
            The scraped video, or None when nothing usable was found.

        Raises:
            QueueError subclasses for classified failures.
        """


def _first(*values: Any, default: Any = None) -> Any:
    """Return the first truthy value."""
    for value in values:
        if value:
            return value
    return default


def _dig(data: Any, *keys: Any) -> Any:
    """Safely walk nested dicts/lists; None when any step is missing."""
    current = data
    for key in keys:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int):
            current = current[key] if -len(current) <= key < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def normalize_tiktok(data: dict[str, Any]) -> ScrapedVideo:
    """Map an Apify TikTok item onto ScrapedVideo."""
    author = _first(
        _dig(data, "authorMeta", "name"),
        _dig(data, "author", "uniqueId"),
        _dig(data, "author", "nickname"),
        default="unknown",
    )
    text = _first(data.get("text"), data.get("desc"), data.get("title"), default="")

    create_time = data.get("createTime")
    if create_time:
        timestamp = datetime.fromtimestamp(float(create_time), tz=timezone.utc).isoformat()
    else:
        timestamp = data.get("createTimeISO")

    return ScrapedVideo(
        platform="tiktok",
        short_code=str(data.get("id") or "unknown"),
        video_url=_first(
            _dig(data, "videoMeta", "subtitleLinks", 0, "downloadLink"),
            data.get("videoUrl"),
            data.get("playAddr"),
            default="",
        ),
        thumbnail_url=_first(
            _dig(data, "videoMeta", "coverUrl"),
            _dig(data, "covers", 0),
            data.get("dynamicCover"),
            data.get("originCover"),
            default="",
        ),
        title=text or f"TikTok by @{author}",
        author=author,
        description=text,
        hashtags=[
            item["hashtagName"]
            for item in data.get("textExtra") or []
            if isinstance(item, dict) and item.get("hashtagName")
        ],
        metrics=VideoMetrics(
            likes=_first(data.get("diggCount"), _dig(data, "stats", "diggCount"), default=0),
            views=_first(data.get("playCount"), _dig(data, "stats", "playCount"), default=0),
            comments=_first(
                data.get("commentCount"), _dig(data, "stats", "commentCount"), default=0
            ),
            shares=_first(data.get("shareCount"), _dig(data, "stats", "shareCount"), default=0),
            saves=_first(data.get("collectCount"), _dig(data, "stats", "collectCount"), default=0),
        ),
        metadata={
            "duration": _first(
                _dig(data, "videoMeta", "duration"), _dig(data, "video", "duration"), default=0
            ),
            "timestamp": timestamp,
            "isVerified": bool(
                _first(_dig(data, "authorMeta", "verified"), _dig(data, "author", "verified"))
            ),
            "followerCount": _first(
                _dig(data, "authorMeta", "fans"),
                _dig(data, "authorStats", "followerCount"),
                default=0,
            ),
        },
        raw_data=data,
    )


def normalize_instagram(
    data: dict[str, Any], url: str, short_code: str | None = None
) -> ScrapedVideo:
    """Map an Apify Instagram item onto ScrapedVideo."""
    author = data.get("ownerUsername") or "unknown"
    caption = data.get("caption") or ""
    code = _first(short_code, data.get("shortCode"), extract_instagram_id(url), default="unknown")
    return ScrapedVideo(
        platform="instagram",
        short_code=code,
        video_url=_first(data.get("videoUrl"), data.get("videoUrlBackup"), default=""),
        thumbnail_url=_first(
            data.get("thumbnailUrl"), data.get("imageUrl"), data.get("displayUrl"), default=""
        ),
        title=caption or f"Video by @{author}",
        author=author,
        description=caption,
        hashtags=list(data.get("hashtags") or []),
        metrics=VideoMetrics(
            likes=data.get("likesCount") or 0,
            views=data.get("videoViewCount") or 0,
            comments=data.get("commentsCount") or 0,
        ),
        metadata={
            "shortCode": code,
            "duration": data.get("videoDurationSeconds"),
            "timestamp": data.get("timestamp"),
            "location": _dig(data, "location", "name"),
        },
        raw_data=data,
    )


class UnifiedVideoScraper(Scraper):
    """Scraper for TikTok and Instagram via the web app's Apify endpoints.

    Routes by URL classification:
    - TikTok videos -> /api/apify/tiktok/scraper
    - Instagram posts (/p/) -> /api/apify/instagram/post
    - Instagram reels -> /api/apify/instagram/reel
    Anything else raises UnsupportedContentError before any request is made.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None):
        """Initialize the scraper.

        Args:
            base_url: Base URL of the web app hosting the scraping endpoints.
            client: Optional httpx client; the shared client is used otherwise.
        """
        self.base_url = base_url.rstrip("/")
        self._client = client

    async def scrape(self, url: str) -> Optional[ScrapedVideo]:
        classification = classify(url)
        platform = classification.platform

        if platform not in (Platform.TIKTOK, Platform.INSTAGRAM) or not classification.is_supported:
            raise UnsupportedContentError(
                platform.value,
                classification.content_type,
                detail=classification.error_message,
            )

        logger.info("Scraping %s URL: %s", platform.value, url)
        if platform is Platform.TIKTOK:
            return await self._scrape_tiktok(classification.source_url)
        if classification.content_type == "post":
            return await self._scrape_instagram_post(
                classification.source_url, classification.extracted_id or "unknown"
            )
        return await self._scrape_instagram_reel(classification.source_url)

    async def _post(self, platform: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to a scraping endpoint and return the decoded JSON body.

        Raises:
            ScrapeError: On transport errors, non-2xx responses or non-JSON bodies.
        """
        client = self._client or await get_client()
        try:
            response = await client.post(f"{self.base_url}{path}", json=payload)
        except httpx.HTTPError as e:
            raise ScrapeError(platform, f"{platform} scraper request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            detail = body.get("error") if isinstance(body, dict) else None
            raise ScrapeError(
                platform, detail or f"{platform} scraper error: {response.status_code}"
            )
        if not isinstance(body, dict):
            raise ScrapeError(platform, f"{platform} scraper returned a non-JSON body")
        return body

    async def _scrape_tiktok(self, url: str) -> Optional[ScrapedVideo]:
        body = await self._post(
            "tiktok",
            TIKTOK_SCRAPER_PATH,
            {"videoUrls": [url], "resultsPerPage": 1},
        )
        items = body.get("data")
        if not body.get("success") or not items:
            raise ScrapeError("tiktok", "No TikTok data returned from Apify")
        return normalize_tiktok(items[0])

    async def _scrape_instagram_reel(self, url: str) -> Optional[ScrapedVideo]:
        body = await self._post("instagram", INSTAGRAM_REEL_PATH, {"url": url})
        items = body.get("data")
        if not body.get("success") or not items:
            raise ScrapeError("instagram", "Error processing Instagram video")
        return normalize_instagram(items[0], url)

    async def _scrape_instagram_post(self, url: str, short_code: str) -> Optional[ScrapedVideo]:
        """Scrape an Instagram /p/ URL.

        Post scraping is best-effort; when the post endpoint yields nothing
        the post is reported as unsupported content.
        """
        try:
            body = await self._post(
                "instagram", INSTAGRAM_POST_PATH, {"url": url, "shortcode": short_code}
            )
        except ScrapeError as e:
            logger.warning("Instagram post scraper failed for %s: %s", short_code, e)
            body = {}

        data = body.get("data")
        if body.get("success") and isinstance(data, dict) and data:
            return normalize_instagram(data, url, short_code=short_code)

        raise UnsupportedContentError(
            "instagram",
            "post",
            detail=f"Instagram post {short_code} could not be scraped",
        )
