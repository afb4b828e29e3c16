"""Ingestion API client for the video ingestion queue.

Persists a scraped video into the user's collection by calling the web
app's internal process-and-add endpoint. Jobs run outside the user's
original request, so the call authenticates with the shared internal
secret (x-internal-secret header) rather than the user's bearer token.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import httpx

from vidqueue.core.exceptions import IngestionError
from vidqueue.core.http_client import get_client

if TYPE_CHECKING:
    from vidqueue.core.job import VideoProcessingJob
    from vidqueue.core.scraper import ScrapedVideo

logger = logging.getLogger(__name__)

INGESTION_PATH = "/api/internal/video/process-and-add"
INTERNAL_SECRET_HEADER = "x-internal-secret"


@dataclass
class IngestionResponse:
    """Parsed response of the Ingestion API.

    Attributes:
        success: Whether the video was stored
        video_id: ID of the stored video, when returned
        error: Error text from the API, when returned
    """

    success: bool
    video_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_json(cls, body: Any) -> "IngestionResponse":
        if not isinstance(body, dict):
            return cls(success=False)
        video = body.get("video")
        video_id = video.get("id") if isinstance(video, dict) else None
        return cls(
            success=bool(body.get("success")),
            video_id=str(video_id) if video_id is not None else None,
            error=body.get("error"),
        )


def build_payload(job: "VideoProcessingJob", scraped: "ScrapedVideo") -> dict[str, Any]:
    """Build the request body for a job and its scrape result."""
    return {
        "videoUrl": job.url,
        "collectionId": job.collection_id,
        "userId": job.user_id,
        "thumbnailUrl": scraped.thumbnail_url or None,
        "scrapedData": scraped.to_payload(),
    }


class IngestionClient:
    """Calls the Ingestion API with the internal service credential."""

    def __init__(
        self,
        base_url: str,
        internal_secret: str,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the web app hosting the ingestion endpoint.
            internal_secret: Shared secret for the x-internal-secret header.
            client: Optional httpx client; the shared client is used otherwise.
        """
        self.base_url = base_url.rstrip("/")
        self._internal_secret = internal_secret
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{INGESTION_PATH}"

    async def add_video(
        self, job: "VideoProcessingJob", scraped: "ScrapedVideo"
    ) -> IngestionResponse:
        """Store a scraped video in the job's collection.

        Args:
            job: The job being processed (url, user and collection).
            scraped: The scrape result to persist.

        Returns:
            IngestionResponse with success=True.

        Raises:
            IngestionError: On transport failure, non-2xx, a 2xx body that is
                not a JSON object, or success=false. The API's error text is
                preserved when present; a non-2xx without one reports the
                status code.
        """
        client = self._client or await get_client()
        try:
            response = await client.post(
                self.endpoint,
                json=build_payload(job, scraped),
                headers={INTERNAL_SECRET_HEADER: self._internal_secret},
            )
        except httpx.HTTPError as e:
            logger.error("Ingestion API call failed: %s", e)
            raise IngestionError("Failed to process video through API") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        result = IngestionResponse.from_json(body)
        if not response.is_success:
            raise IngestionError(
                result.error or f"Ingestion API returned {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            raise IngestionError(
                "Invalid response from ingestion API",
                status_code=response.status_code,
            )
        if not result.success:
            raise IngestionError(result.error, status_code=response.status_code)
        return result
