# typegen/http/client.py
from __future__ import annotations
import asyncio
import random
from typing import Any
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx
import logging

from typegen.app.settings import settings

logger = logging.getLogger(__name__)

__all__ = ["HTTPError", "request"]



class HTTPError(Exception):
    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP {status}: {body[:200]}")
        self.status = status
        self.body = body



def _parseRetryAfter(value: str | None) -> float | None:
    """Return seconds suggested by Retry-After header, if parsable."""
    if not value:
        return None
    # Retry-After: seconds
    try:
        secondsF = float(value)
        if secondsF >= 0:
            return secondsF
    except ValueError:
        pass
    # Retry-After: HTTP-date
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    # Normalize to aware UTC for safe subtraction
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    now = datetime.now(timezone.utc).timestamp()
    return max(0.0, dt.timestamp() - now)



def _shouldRetry(status: int) -> bool:
    # Typical transient HTTP errors upon which retry makes sense
    return status in (408, 429, 500, 502, 503, 504)



def _backoffMs(attempt: int, baseMs: int, maxMs: int) -> float:
    # Exponential backoff with jitter
    base = min(maxMs, baseMs * (2 ** attempt))
    jitter = base * 0.25
    return max(0.0, base + random.uniform(-jitter, jitter))



async def request(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeoutMs: int | None = None,
    retries: int | None = None,
    backoffBaseMs: int | None = None,
    backoffMaxMs: int | None = None,
    followRedirects: bool = True
) -> dict[str, Any]:
    """
    Simple outbound HTTP client with timeout and retries (408/429/5xx).
    Unset knobs come from settings ("http.timeoutMs", "http.retry", "http.backoff.*").

    Returns:
    {
        "status": int,
        "headers": dict[str,str],
        "text": str,
        "content": bytes,
        "json": Any? # Present when response looks like JSON and parses
    }

    - Raises HTTPError for 408/429/5xx after exhausting retries.
    - Re-raises httpx transport errors after exhausting retries.
    """
    timeoutMs = int(settings("http.timeoutMs", 30_000) if timeoutMs is None else timeoutMs)
    retries = int(settings("http.retry", 2) if retries is None else retries)
    backoffBaseMs = int(settings("http.backoff.baseMs", 250) if backoffBaseMs is None else backoffBaseMs)
    backoffMaxMs = int(settings("http.backoff.maxMs", 1_000) if backoffMaxMs is None else backoffMaxMs)

    if timeoutMs <= 0:
        timeoutMs = 1
    timeout = httpx.Timeout(timeoutMs / 1_000)
    attempt = 0
    method = str(method).upper()
    retries = max(0, retries)

    async with httpx.AsyncClient(timeout=timeout) as cli:
        while True:
            try:
                resp = await cli.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    follow_redirects=followRedirects
                )
            except httpx.HTTPError as err:
                # Transport-level error. Retry with backoff.
                if attempt >= retries:
                    logger.warning("%s %s failed after %d attempt(s): %s", method, url, attempt + 1, err)
                    raise
                delayMs = _backoffMs(attempt, backoffBaseMs, backoffMaxMs)
                attempt += 1
                logger.debug("%s %s transport error, retry %d in %.0fms: %s", method, url, attempt, delayMs, err)
                await asyncio.sleep(delayMs / 1000.0)
                continue

            status = resp.status_code

            # Retry policy based on status
            if _shouldRetry(status) and attempt < retries:
                retryAfter = _parseRetryAfter(resp.headers.get("Retry-After"))
                if retryAfter is not None:
                    delay = retryAfter
                else:
                    delay = _backoffMs(attempt, backoffBaseMs, backoffMaxMs) / 1000.0
                attempt += 1
                logger.debug("%s %s returned %d, retry %d in %.3fs", method, url, status, attempt, delay)
                await asyncio.sleep(delay)
                continue

            if _shouldRetry(status) or status >= 500:
                raise HTTPError(status, resp.text)

            # Success or non-retryable 4xx: return payload (no exception)
            out: dict[str, Any] = {
                "status": status,
                "headers": dict(resp.headers), # note: Duplicate header keys are collapsed
                "text": resp.text,
                "content": resp.content,
            }

            # Best-effort JSON parse
            ctype = resp.headers.get("Content-Type", "")
            if "json" in ctype.lower():
                try:
                    out["json"] = resp.json()
                except ValueError:
                    # Keep going; caller still has "text"
                    pass

            logger.debug("%s %s -> %d (%d bytes, attempt %d)", method, url, status, len(resp.content), attempt)
            return out
