"""
HTTP helpers.

Both upstreams (Artskart observations, Kartverket/NVE WFS) are plain JSON GETs. They
share a timeout and User-Agent, and every failure surfaces as `httpx.HTTPError` or
`ValueError` so callers can fall back to a stale cache entry.

OGC services answer some errors with HTTP 200 and an XML `ExceptionReport`; those are
turned into `ValueError` here instead of failing later inside the JSON decoder.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "agdermap/0.1.0 (+https://local)"


def _looks_like_xml(resp: httpx.Response) -> bool:
    content_type = resp.headers.get("content-type", "")
    return "xml" in content_type or resp.text.lstrip().startswith("<")


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and decode the JSON body.

    Raises:
        httpx.HTTPError: Transport error or non-2xx status.
        ValueError: Body is XML (OGC exception) or otherwise not JSON.
    """
    merged = {"User-Agent": USER_AGENT, "Accept": "application/json", **(headers or {})}
    with httpx.Client(timeout=timeout_seconds, follow_redirects=True) as client:
        resp = client.get(url, params=params, headers=merged)
    logger.debug("GET %s -> %s", resp.url, resp.status_code)
    resp.raise_for_status()
    if _looks_like_xml(resp):
        raise ValueError(f"Expected JSON from {url}, got XML: {resp.text[:200]!r}")
    return resp.json()
