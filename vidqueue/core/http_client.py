"""HTTP client for collaborator requests.

Configures the httpx client used by the scraper adapter and the ingestion
client: timeouts, JSON headers and a user agent identifying the queue.
"""

import httpx

# Default timeout configuration (in seconds). Scraping endpoints run Apify
# actors synchronously, so reads are allowed to take a while.
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 10.0

# User agent to identify our requests
USER_AGENT = "VidQueue/1.0 (+video-ingestion-queue)"


def get_timeout() -> httpx.Timeout:
    """Get default timeout configuration.

    Returns:
        httpx.Timeout with configured connect/read/write/pool timeouts.
    """
    return httpx.Timeout(
        connect=DEFAULT_CONNECT_TIMEOUT,
        read=DEFAULT_READ_TIMEOUT,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )


def get_headers() -> dict[str, str]:
    """Get default headers for collaborator requests."""
    return {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def create_client(
    *,
    timeout: httpx.Timeout | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an async HTTP client with configured defaults.

    Args:
        timeout: Custom timeout configuration. Uses defaults if not provided.
        transport: Optional transport override (used by tests).

    Returns:
        Configured httpx.AsyncClient ready for use.

    Example:
        async with create_client() as client:
            response = await client.post(url, json=payload)
    """
    return httpx.AsyncClient(
        timeout=timeout or get_timeout(),
        headers=get_headers(),
        follow_redirects=True,
        transport=transport,
    )


# Singleton client for reuse across requests
_client: httpx.AsyncClient | None = None


async def get_client() -> httpx.AsyncClient:
    """Get or create a shared HTTP client instance.

    The client is created on first call and reused for subsequent calls.

    Note:
        The caller should NOT close this client - it's managed globally.
        Use close_client() at application shutdown.
    """
    global _client
    if _client is None:
        _client = create_client()
    return _client


async def close_client() -> None:
    """Close the shared HTTP client.

    Should be called at application shutdown to cleanly close connections.
    """
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
