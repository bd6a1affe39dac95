"""
Failure alerts: heuristic diagnosis, message formatting and delivery to a webhook.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import httpx

from models import FetchOutcome

logger = logging.getLogger(__name__)

ERROR_EXCERPT_CHARS = 200
ALERT_TIMEOUT = 10.0

DIAGNOSES: Dict[str, Tuple[str, str]] = {
    "rate_limited": (
        "Repeated HTTP 429 responses, indicating rate limiting by the server.",
        "Reduce request rate, increase backoff delays, respect Retry-After headers, "
        "or contact the site owner for higher rate limits.",
    ),
    "server_error": (
        "Repeated HTTP 5xx responses, likely server-side failure or automation blocking.",
        "Increase backoff intervals, reduce concurrency, or report the issue to the site owner.",
    ),
    "client_error": (
        "HTTP 4xx responses, possibly blocked, forbidden, or an invalid URL.",
        "Verify the URL, check for IP blocking, and confirm no authentication is required.",
    ),
    "network": (
        "Network timeouts or connection errors, indicating connectivity issues.",
        "Check network connectivity, increase timeouts, or verify the server is reachable.",
    ),
    "parsing": (
        "Parsing errors, likely due to structure changes on the target site.",
        "Update the extraction selectors and verify the page structure.",
    ),
    "unknown": (
        "Unknown failure pattern; check error details and the fetch log.",
        "Review scrape_events for error messages and check robots.txt compliance.",
    ),
}


@dataclass
class AlertContext:
    source_id: str
    url: str
    run_id: str
    consecutive_failures: int
    first_failure_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    http_statuses: Dict[int, int] = field(default_factory=dict)
    error_excerpt: Optional[str] = None

    @classmethod
    def from_attempts(
        cls,
        source_id: str,
        url: str,
        run_id: str,
        consecutive_failures: int,
        attempts: List[FetchOutcome],
    ) -> "AlertContext":
        failed = [a for a in attempts if not a.success]
        statuses = Counter(a.http_status for a in failed if a.http_status is not None)
        latest_error = next((a.error for a in reversed(failed) if a.error), None)
        times = [a.fetched_at for a in failed]
        return cls(
            source_id=source_id,
            url=url,
            run_id=run_id,
            consecutive_failures=consecutive_failures,
            first_failure_at=min(times) if times else None,
            last_failure_at=max(times) if times else None,
            http_statuses=dict(statuses),
            error_excerpt=latest_error[:ERROR_EXCERPT_CHARS] if latest_error else None,
        )


def diagnose(context: AlertContext) -> str:
    """Classify the failure pattern: rate_limited, server_error, client_error, network, parsing or unknown."""
    statuses = context.http_statuses.keys()
    if 429 in statuses:
        return "rate_limited"
    if any(500 <= s < 600 for s in statuses):
        return "server_error"
    if any(400 <= s < 500 for s in statuses):
        return "client_error"
    excerpt = (context.error_excerpt or "").lower()
    if any(word in excerpt for word in ("timeout", "network", "connect")):
        return "network"
    if "parse" in excerpt or "schema" in excerpt:
        return "parsing"
    return "unknown"


def format_alert(context: AlertContext) -> str:
    cause, suggestion = DIAGNOSES[diagnose(context)]
    status_summary = ", ".join(
        f"{status}: {count}" for status, count in sorted(context.http_statuses.items())
    )

    def ts(value: Optional[datetime]) -> str:
        return value.isoformat() if value else "N/A"

    return "\n".join([
        f"*[CRITICAL]* Scraper failure: {context.source_id} "
        f"({context.consecutive_failures} consecutive failures)",
        f"• source_id: {context.source_id}",
        f"• url: {context.url}",
        f"• run_id: {context.run_id}",
        f"• first_failure: {ts(context.first_failure_at)}",
        f"• last_failure: {ts(context.last_failure_at)}",
        f"• http_statuses: {{{status_summary or 'none'}}}",
        f"• error_excerpt: \"{context.error_excerpt or 'N/A'}\"",
        "",
        "*Why it likely happened:*",
        f"> {cause}",
        "",
        "*Suggested improvement:*",
        f"> {suggestion}",
    ])


async def send_alert(
    context: AlertContext,
    webhook_url: Optional[str],
    *,
    client: Optional[httpx.AsyncClient] = None,
    dry_run: bool = False,
) -> bool:
    """
    POST the alert text to the webhook. Returns True only when delivered.
    Never raises: a missing webhook, dry run or transport failure is logged and returns False.
    """
    text = format_alert(context)
    if dry_run:
        logger.info("[DRY RUN] Would send alert for %s:\n%s", context.source_id, text)
        return False
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured; alert for %s not sent", context.source_id)
        return False
    try:
        if client is not None:
            resp = await client.post(webhook_url, json={"text": text}, timeout=ALERT_TIMEOUT)
        else:
            async with httpx.AsyncClient(timeout=ALERT_TIMEOUT) as own_client:
                resp = await own_client.post(webhook_url, json={"text": text})
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Failed to send alert for %s: %s", context.source_id, e)
        return False
    logger.info("Alert sent for source %s", context.source_id)
    return True
