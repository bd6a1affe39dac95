"""
Conditional GET: one HTTP attempt that never raises, returning a FetchOutcome.
"""
import logging
from typing import Optional

import httpx

from config import Config
from fetch.backoff import parse_retry_after
from models import FetchOutcome

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})
TRUNCATION_MARKER = "\n...[truncated {dropped} bytes]"


def make_client(config: Config) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(config.connect_timeout, read=config.read_timeout),
        headers={"User-Agent": config.user_agent},
    )


def is_success_status(status: Optional[int]) -> bool:
    """2xx and 304 Not Modified count as success."""
    return status is not None and (200 <= status < 300 or status == 304)


def is_transient(status: Optional[int]) -> bool:
    """Worth retrying: rate limiting, gateway errors, or no response at all."""
    return status is None or status in TRANSIENT_STATUSES


def truncate_body(text: str, max_bytes: int) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    kept = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return kept + TRUNCATION_MARKER.format(dropped=len(encoded) - max_bytes)


async def fetch_conditional(
    client: httpx.AsyncClient,
    url: str,
    *,
    etag: Optional[str] = None,
    last_modified: Optional[str] = None,
    max_body_bytes: int = 50_000,
    attempt: int = 1,
) -> FetchOutcome:
    """
    GET url with If-None-Match / If-Modified-Since when validators are known.
    Every status is tolerated; network failures yield http_status=None.
    """
    headers = {}
    if etag:
        headers["If-None-Match"] = etag
    if last_modified:
        headers["If-Modified-Since"] = last_modified

    try:
        resp = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("Fetch %s failed: %s", url, e)
        return FetchOutcome(
            success=False,
            error=f"{type(e).__name__}: {e}",
            attempt=attempt,
        )

    status = resp.status_code
    content = resp.text if status != 304 else None
    outcome = FetchOutcome(
        success=is_success_status(status),
        http_status=status,
        status_text=resp.reason_phrase,
        body=truncate_body(content, max_body_bytes) if content is not None else None,
        etag=resp.headers.get("etag"),
        last_modified=resp.headers.get("last-modified"),
        retry_after=parse_retry_after(resp.headers.get("retry-after")),
        attempt=attempt,
        content=content,
    )
    if not outcome.success:
        outcome.error = f"HTTP {status} {resp.reason_phrase}".strip()
    logger.debug("Fetch %s -> %s (attempt %d)", url, status, attempt)
    return outcome
