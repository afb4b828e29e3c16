"""Custom exceptions for the video ingestion queue.

This module defines the exception hierarchy used by the queue and its
collaborators. Every processing failure raised by the scraper or the
ingestion client inherits from QueueError and carries an ErrorKind tag;
the user-facing text shown on a failed job is derived from that tag
rather than from the exception message.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Tag identifying why a job failed."""

    UNSUPPORTED_CONTENT = "unsupported_content"
    SCRAPE_FAILED = "scrape_failed"
    MISSING_MEDIA_URL = "missing_media_url"
    INGESTION_FAILED = "ingestion_failed"
    UNEXPECTED = "unexpected"


GENERIC_FAILURE_MESSAGE = "Processing failed"


def platform_label(platform: str | None) -> str:
    """Human-readable platform name ("tiktok" -> "TikTok")."""
    labels = {
        "tiktok": "TikTok",
        "instagram": "Instagram",
        "youtube": "YouTube",
        "web": "Web",
    }
    if not platform:
        return "the source platform"
    return labels.get(platform, platform.capitalize())


class QueueError(Exception):
    """Base class for job processing errors.

    Attributes:
        kind: ErrorKind tag for this failure.
        platform: Source platform, when known.
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, *, platform: str | None = None):
        super().__init__(message)
        self.platform = platform

    @property
    def user_message(self) -> str:
        """Text shown to the end user on a failed job."""
        return GENERIC_FAILURE_MESSAGE


class UnsupportedContentError(QueueError):
    """The URL points at content the pipeline cannot ingest.

    Raised by the scraper for recognized platforms whose sub-type
    (Instagram posts, stories, YouTube, ...) is not processable.
    """

    kind = ErrorKind.UNSUPPORTED_CONTENT

    def __init__(self, platform: str, subtype: str, detail: str | None = None):
        self.subtype = subtype
        self.detail = detail
        super().__init__(
            detail or f"Unsupported {platform} {subtype} URL",
            platform=platform,
        )

    @property
    def user_message(self) -> str:
        if self.platform == "instagram" and self.subtype == "post":
            return (
                "Instagram post URLs are not supported yet. "
                "Please use Instagram reel URLs instead (look for /reel/ in the URL)."
            )
        # Classifier messages are already user-facing
        if self.detail:
            return self.detail
        return (
            f"{platform_label(self.platform)} {self.subtype} content is not supported"
        )


class ScrapeError(QueueError):
    """The scraper could not resolve the URL into video data."""

    kind = ErrorKind.SCRAPE_FAILED

    def __init__(self, platform: str | None, detail: str | None = None):
        super().__init__(
            detail or f"Scrape failed for {platform or 'unknown platform'}",
            platform=platform,
        )

    @property
    def user_message(self) -> str:
        return f"Failed to extract video data from {platform_label(self.platform)}"


class MissingMediaUrlError(QueueError):
    """The scrape succeeded but returned no direct media URL."""

    kind = ErrorKind.MISSING_MEDIA_URL

    def __init__(self, platform: str | None):
        super().__init__("No video download URL found", platform=platform)

    @property
    def user_message(self) -> str:
        return f"No video download URL found for {platform_label(self.platform)} video"


class IngestionError(QueueError):
    """The Ingestion API rejected or failed to store the video.

    The API's own error text is preserved for the user when present.
    """

    kind = ErrorKind.INGESTION_FAILED

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        super().__init__(message or "Video processing failed")
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return str(self)


class ConfigurationError(Exception):
    """Invalid configuration.

    This is NOT a QueueError - configuration issues should be fixed
    before the queue runs, not reported on individual jobs.
    """

    pass


def describe_error(error: BaseException) -> str:
    """Render the user-facing message for a processing failure.

    Args:
        error: The exception that ended the job.

    Returns:
        The tagged error's user_message, or a generic failure message for
        anything that is not a QueueError.
    """
    if isinstance(error, QueueError):
        return error.user_message
    return GENERIC_FAILURE_MESSAGE


def error_kind(error: BaseException) -> ErrorKind:
    """Return the ErrorKind tag for an exception."""
    if isinstance(error, QueueError):
        return error.kind
    return ErrorKind.UNEXPECTED
