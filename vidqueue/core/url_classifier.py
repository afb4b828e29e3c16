"""URL classifier for the video ingestion queue.

This module classifies submitted URLs into platforms (TikTok, Instagram,
YouTube, generic web) and platform-specific content types, extracts the
platform-native ID where one can be derived, and decides whether the
ingestion pipeline can process the URL end-to-end.

Classification is pure: no network I/O, no hidden state, and it never
raises. Every failure is reported in the returned URLClassification.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    """Source platform of a classified URL."""

    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    WEB = "web"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class URLClassification:
    """Result of classifying a URL.

    Attributes:
        platform: Detected platform (UNKNOWN when nothing matched)
        content_type: Platform sub-type ("video", "reel", "post", ...)
        target_endpoint: Downstream route for processing, None for UNKNOWN
        source_url: The trimmed input string
        extracted_id: Platform-native ID, when derivable
        domain: Hostname, only for generic web URLs
        is_supported: True if the URL can be processed end-to-end
        error_message: Reason shown to the user when not supported
    """

    platform: Platform
    content_type: str
    target_endpoint: str | None
    source_url: str
    extracted_id: str | None = None
    domain: str | None = None
    is_supported: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict with camelCase keys."""
        return {
            "platform": self.platform.value,
            "contentType": self.content_type,
            "targetEndpoint": self.target_endpoint,
            "sourceUrl": self.source_url,
            "extractedId": self.extracted_id,
            "domain": self.domain,
            "isSupported": self.is_supported,
            "errorMessage": self.error_message,
        }


_FLAGS = re.IGNORECASE | re.ASCII

# Platform patterns, checked in this order. The first platform with a
# matching pattern wins.
TIKTOK_PATTERNS = [
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/@[\w.-]+/video/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/.*/video/(\d+)", _FLAGS),
    re.compile(r"^https?://vm\.tiktok\.com/\w+/?", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/.*\?.*shareId=(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/embed/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/share/user/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/v/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/h5/share/usr/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?tiktok\.com/t/\w+/?", _FLAGS),
]

INSTAGRAM_PATTERNS = [
    re.compile(r"^https?://(www\.)?instagram\.com/p/[\w-]+/?", _FLAGS),
    re.compile(r"^https?://(www\.)?instagram\.com/reel/[\w-]+/?", _FLAGS),
    re.compile(r"^https?://(www\.)?instagram\.com/reels/[\w-]+/?", _FLAGS),
    re.compile(r"^https?://(www\.)?instagram\.com/tv/[\w-]+/?", _FLAGS),
    # Profiles
    re.compile(r"^https?://(www\.)?instagram\.com/[\w.-]+/?$", _FLAGS),
    re.compile(r"^https?://(www\.)?instagram\.com/stories/[\w.-]+/(\d+)", _FLAGS),
    re.compile(r"^https?://(www\.)?instagr\.am/p/[\w-]+/?", _FLAGS),
]

YOUTUBE_PATTERNS = [
    re.compile(r"^https?://(www\.|m\.)?youtube\.com/watch\?v=[\w-]+", _FLAGS),
    re.compile(r"^https?://(www\.|m\.)?youtube\.com/shorts/[\w-]+", _FLAGS),
    re.compile(r"^https?://youtu\.be/[\w-]+", _FLAGS),
    re.compile(r"^https?://(www\.)?youtube\.com/embed/[\w-]+", _FLAGS),
    re.compile(r"^https?://(www\.)?youtube\.com/live/[\w-]+", _FLAGS),
    re.compile(r"^https?://(www\.)?youtube\.com/playlist\?list=[\w-]+", _FLAGS),
    re.compile(r"^https?://(www\.)?youtube\.com/(c/|channel/|user/|@)[\w-]+", _FLAGS),
]

# Checked last
WEB_PATTERNS = [
    re.compile(r"^https?://[\w.-]+\.\w{2,}(/.*)?$", _FLAGS),
]

TIKTOK_ID_PATTERNS = [
    re.compile(r"/video/(\d+)"),
    re.compile(r"shareId=(\d+)"),
    re.compile(r"/embed/(\d+)"),
    re.compile(r"/user/(\d+)"),
    re.compile(r"/v/(\d+)"),
    re.compile(r"/usr/(\d+)"),
    re.compile(r"vm\.tiktok\.com/(\w+)", re.ASCII),
    re.compile(r"tiktok\.com/t/(\w+)", re.ASCII),
]

INSTAGRAM_ID_PATTERN = re.compile(r"/(p|reel|reels|tv)/([A-Za-z0-9_-]+)")

YOUTUBE_ID_PATTERNS = [
    re.compile(r"youtube\.com/.*[?&]v=([\w-]{11})", re.ASCII),
    re.compile(r"youtu\.be/([\w-]{11})", re.ASCII),
    re.compile(r"youtube\.com/shorts/([\w-]{11})", re.ASCII),
    re.compile(r"youtube\.com/live/([\w-]{11})", re.ASCII),
    re.compile(r"youtube\.com/embed/([\w-]{11})", re.ASCII),
]

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")
# Schemes that always carry a host; others (mailto:, data:) may not
_HOST_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})

# Downstream processing routes
TRANSCRIBE_ENDPOINT = "/api/video/transcribe"
YOUTUBE_ENDPOINT = "/api/transcribe/youtube"
YOUTUBE_SHORTS_ENDPOINT = "/api/transcribe/youtube-shorts"
WEB_ENDPOINT = "/api/scrape/web-post"

SUPPORTED_INSTAGRAM_TYPES = frozenset({"reel", "post"})

YOUTUBE_COMING_SOON = (
    "YouTube video processing is coming soon. "
    "Currently only TikTok and Instagram are supported."
)
WEB_COMING_SOON = (
    "Web page processing is coming soon. "
    "Currently only TikTok and Instagram are supported."
)
NOT_RECOGNIZED = (
    "URL format not recognized. Currently supported: TikTok and Instagram videos."
)


def _unknown(source_url: str, error_message: str) -> URLClassification:
    return URLClassification(
        platform=Platform.UNKNOWN,
        content_type="unknown",
        target_endpoint=None,
        source_url=source_url,
        error_message=error_message,
    )


def _matches_any(patterns: list[re.Pattern[str]], url: str) -> bool:
    return any(pattern.match(url) for pattern in patterns)


def _first_group(patterns: list[re.Pattern[str]], url: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def _is_parseable(url: str) -> bool:
    """Check that the string parses as an absolute URL."""
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        parts.port
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_PATTERN.match(parts.scheme):
        return False
    if parts.scheme.lower() in _HOST_SCHEMES:
        return bool(parts.netloc)
    return True


def get_instagram_type(url: str) -> str:
    """Determine the Instagram content type from the URL path."""
    lowered = url.lower()
    if "/reel/" in lowered or "/reels/" in lowered:
        return "reel"
    if "/p/" in lowered:
        return "post"
    if "/stories/" in lowered:
        return "story"
    if "/tv/" in lowered:
        return "tv"
    return "profile"


def get_youtube_type(url: str) -> str:
    """Determine the YouTube content type from the URL path."""
    lowered = url.lower()
    if "/shorts/" in lowered:
        return "shorts"
    if "/live/" in lowered:
        return "live"
    if "/playlist?" in lowered:
        return "playlist"
    if re.search(r"/(c/|channel/|user/|@)", lowered):
        return "channel"
    return "video"


def extract_tiktok_id(url: str) -> str | None:
    """Extract the TikTok video ID or short-link token."""
    return _first_group(TIKTOK_ID_PATTERNS, url)


def extract_instagram_id(url: str) -> str | None:
    """Extract the Instagram shortcode from /p/, /reel/, /reels/ or /tv/ URLs."""
    match = INSTAGRAM_ID_PATTERN.search(url)
    return match.group(2) if match else None


def extract_youtube_id(url: str) -> str | None:
    """Extract the 11-character YouTube video ID."""
    return _first_group(YOUTUBE_ID_PATTERNS, url)


def _classify_tiktok(url: str) -> URLClassification:
    return URLClassification(
        platform=Platform.TIKTOK,
        content_type="video",
        target_endpoint=TRANSCRIBE_ENDPOINT,
        source_url=url,
        extracted_id=extract_tiktok_id(url),
        is_supported=True,
    )


def _classify_instagram(url: str) -> URLClassification:
    content_type = get_instagram_type(url)
    is_supported = content_type in SUPPORTED_INSTAGRAM_TYPES
    return URLClassification(
        platform=Platform.INSTAGRAM,
        content_type=content_type,
        target_endpoint=TRANSCRIBE_ENDPOINT,
        source_url=url,
        extracted_id=extract_instagram_id(url),
        is_supported=is_supported,
        error_message=None
        if is_supported
        else (
            f"Instagram {content_type}s are not currently supported. "
            "Please use Instagram reels or posts."
        ),
    )


def _classify_youtube(url: str) -> URLClassification:
    content_type = get_youtube_type(url)
    return URLClassification(
        platform=Platform.YOUTUBE,
        content_type=content_type,
        target_endpoint=YOUTUBE_SHORTS_ENDPOINT
        if content_type == "shorts"
        else YOUTUBE_ENDPOINT,
        source_url=url,
        extracted_id=extract_youtube_id(url),
        is_supported=False,
        error_message=YOUTUBE_COMING_SOON,
    )


def _classify_web(url: str) -> URLClassification:
    return URLClassification(
        platform=Platform.WEB,
        content_type="post",
        target_endpoint=WEB_ENDPOINT,
        source_url=url,
        domain=urlsplit(url).hostname,
        is_supported=False,
        error_message=WEB_COMING_SOON,
    )


# (patterns, classifier) in priority order
_PLATFORM_RULES = [
    (TIKTOK_PATTERNS, _classify_tiktok),
    (INSTAGRAM_PATTERNS, _classify_instagram),
    (YOUTUBE_PATTERNS, _classify_youtube),
    (WEB_PATTERNS, _classify_web),
]


def classify(raw: Any) -> URLClassification:
    """Classify a URL into platform, content type and support status.

    Validation short-circuits at the first failure:
    1. Non-string or blank input
    2. Input that does not parse as an absolute URL
    3. Platform patterns in priority order: TikTok, Instagram, YouTube, web

    Args:
        raw: The user-submitted value, usually a URL string

    Returns:
        URLClassification describing the URL. Never raises.
    """
    if not isinstance(raw, str):
        return _unknown("", "Invalid URL provided - must be a non-empty string")

    url = raw.strip()
    if not url:
        return _unknown(url, "Empty URL provided")

    if not _is_parseable(url):
        return _unknown(
            url, "Invalid URL format - please provide a valid HTTP/HTTPS URL"
        )

    try:
        for patterns, build in _PLATFORM_RULES:
            if _matches_any(patterns, url):
                return build(url)
        return _unknown(url, NOT_RECOGNIZED)
    except Exception as e:
        logger.warning("Error classifying URL %s: %s", url, e)
        return _unknown(url, f"Error analyzing URL: {e}")


def is_processable(raw: Any) -> bool:
    """Shortcut: True if classify(raw) reports the URL as supported."""
    return classify(raw).is_supported
