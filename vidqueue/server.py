"""HTTP server for the video ingestion queue.

Thin JSON API in front of VideoQueue. Submitted URLs are classified first;
unsupported or unrecognized URLs are rejected with 400 and the classifier's
error message, so only processable URLs ever reach the queue.

Endpoints:
    GET  /health               - Health check, returns {"status": "ok"}
    POST /classify             - Classify {"url": ...} without queueing it
    POST /videos               - Queue {"url", "userId", "collectionId"?}, returns 202
    GET  /jobs/active          - Pending/processing/recently finished jobs
    GET  /jobs/{job_id}        - Poll a single job
    GET  /users/{user_id}/jobs - All jobs of a user, newest first
    GET  /stats                - Job counts by status
"""

import json
import logging
from typing import Any

from aiohttp import web

from vidqueue.core.config import get_config
from vidqueue.core.http_client import close_client
from vidqueue.core.url_classifier import classify
from vidqueue.core.video_queue import VideoQueue

logger = logging.getLogger(__name__)

# AppKey for storing the queue instance
QUEUE_KEY = web.AppKey("queue", VideoQueue)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8767
SHUTDOWN_TIMEOUT = 30.0


def _error(message: str | None, status: int = 400, **extra: Any) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


async def _read_json_object(request: web.Request) -> dict[str, Any] | web.Response:
    """Decode the request body as a JSON object, or build the 400 response."""
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return _error("Invalid JSON body")

    if not isinstance(body, dict):
        return _error("Request body must be a JSON object")
    return body


async def health_handler(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "ok"})


async def classify_handler(request: web.Request) -> web.Response:
    """Classify a URL without queueing it.

    Always 200 for a well-formed body; support status is in the payload.
    """
    body = await _read_json_object(request)
    if isinstance(body, web.Response):
        return body

    if "url" not in body:
        return _error("Missing required field: url")

    return web.json_response(classify(body["url"]).to_dict())


async def submit_video_handler(request: web.Request) -> web.Response:
    """Queue a video for processing.

    Expects JSON with "url" and "userId", optionally "collectionId".

    Returns:
        202 Accepted with the pending job.
        400 Bad Request for invalid bodies and for URLs the classifier
            reports as unsupported (its errorMessage is returned verbatim).
    """
    body = await _read_json_object(request)
    if isinstance(body, web.Response):
        return body

    url = body.get("url")
    if not url:
        return _error("Missing required field: url")

    user_id = body.get("userId")
    if not user_id:
        return _error("Missing required field: userId")

    classification = classify(url)
    if not classification.is_supported:
        logger.info(
            "Rejected %s URL (%s): %s",
            classification.platform.value,
            classification.content_type,
            classification.error_message,
        )
        return _error(
            classification.error_message,
            classification=classification.to_dict(),
        )

    collection_id = body.get("collectionId")
    job = request.app[QUEUE_KEY].add_job(
        classification.source_url,
        str(user_id),
        str(collection_id) if collection_id else None,
    )

    return web.json_response(
        {"success": True, "job": job.to_dict(), "classification": classification.to_dict()},
        status=202,
    )


async def get_job_handler(request: web.Request) -> web.Response:
    """Poll one job by ID."""
    job = request.app[QUEUE_KEY].get_job(request.match_info["job_id"])
    if job is None:
        return _error("Job not found", status=404)
    return web.json_response(job.to_dict())


async def active_jobs_handler(request: web.Request) -> web.Response:
    """Jobs that should still show a notification."""
    jobs = request.app[QUEUE_KEY].get_active_jobs()
    return web.json_response({"jobs": [job.to_dict() for job in jobs]})


async def user_jobs_handler(request: web.Request) -> web.Response:
    """All jobs of one user, newest first."""
    jobs = request.app[QUEUE_KEY].get_user_jobs(request.match_info["user_id"])
    return web.json_response({"jobs": [job.to_dict() for job in jobs]})


async def stats_handler(request: web.Request) -> web.Response:
    """Job counts by status."""
    return web.json_response(request.app[QUEUE_KEY].get_stats().to_dict())


async def _start_queue(app: web.Application) -> None:
    app[QUEUE_KEY].start()


async def _stop_queue(app: web.Application) -> None:
    await app[QUEUE_KEY].stop(timeout=SHUTDOWN_TIMEOUT)
    await close_client()


def create_app(queue: VideoQueue | None = None) -> web.Application:
    """Create and configure the aiohttp application.

    Args:
        queue: Optional VideoQueue. If not provided, one is built from the
            environment configuration (INTERNAL_API_SECRET is required).

    Returns:
        Configured aiohttp Application with all routes registered. The
        queue's cleanup sweeper runs for the lifetime of the app.
    """
    app = web.Application()
    app[QUEUE_KEY] = queue if queue is not None else VideoQueue.from_config(get_config())

    app.on_startup.append(_start_queue)
    app.on_cleanup.append(_stop_queue)

    app.router.add_get("/health", health_handler)
    app.router.add_post("/classify", classify_handler)
    app.router.add_post("/videos", submit_video_handler)
    app.router.add_get("/jobs/active", active_jobs_handler)
    app.router.add_get("/jobs/{job_id}", get_job_handler)
    app.router.add_get("/users/{user_id}/jobs", user_jobs_handler)
    app.router.add_get("/stats", stats_handler)
    return app


async def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    queue: VideoQueue | None = None,
) -> web.AppRunner:
    """Start the HTTP server.

    Returns:
        The AppRunner instance (call cleanup() on it to shut down).
    """
    app = create_app(queue)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Server listening on %s:%d", host, port)
    return runner
