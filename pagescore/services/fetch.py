from __future__ import annotations
from typing import Dict, Optional
import logging

import httpx

from pagescore.models import FetchResult
from pagescore.services.settings import Settings

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

class FetchError(RuntimeError):
    """The page itself could not be retrieved; nothing can be scored."""

class RenderError(RuntimeError):
    """The remote renderer gave no usable snapshot."""

def new_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    headers = dict(BROWSER_HEADERS)
    headers["User-Agent"] = settings.user_agent
    return httpx.AsyncClient(
        headers=headers,
        follow_redirects=True,
        timeout=settings.fetch_timeout,
        transport=transport,
    )

async def fetch_raw(client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> FetchResult:
    """
    GET the page without running scripts. Any HTTP status is a successful fetch;
    only transport failures raise FetchError.
    """
    try:
        r = await client.get(url, timeout=timeout)
    except httpx.TimeoutException as e:
        raise FetchError(f"Failed to fetch {url}: timed out after {timeout:g}s") from e
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch {url}: {e}") from e
    logger.info("Fetched %s -> %s (HTTP %s, %d bytes)", url, r.url, r.status_code, len(r.content))
    return FetchResult(html=r.text, final_url=str(r.url), status_code=r.status_code)

async def render_remote(
    client: httpx.AsyncClient,
    url: str,
    endpoint: Optional[str],
    token: Optional[str] = None,
    timeout: float = 15.0,
) -> FetchResult:
    """
    Ask the rendering service for a JavaScript-rendered snapshot of `url`.
    Expects JSON {"finalUrl": ..., "html": ...}; anything else raises RenderError.
    """
    if not endpoint:
        raise RenderError("render endpoint not configured")
    headers: Dict[str, str] = {}
    if token:
        headers["x-render-token"] = token
    try:
        r = await client.get(endpoint, params={"url": url}, headers=headers, timeout=timeout)
    except httpx.TimeoutException as e:
        raise RenderError(f"timed out after {timeout:g}s") from e
    except httpx.HTTPError as e:
        raise RenderError(str(e) or e.__class__.__name__) from e
    if not r.is_success:
        raise RenderError(f"render service returned HTTP {r.status_code}")
    try:
        data = r.json()
    except ValueError as e:
        raise RenderError("render service returned malformed JSON") from e
    if not isinstance(data, dict):
        raise RenderError("render service returned malformed JSON")
    final_url, html = data.get("finalUrl"), data.get("html")
    if not isinstance(final_url, str) or not final_url or not isinstance(html, str) or not html:
        raise RenderError("render service response is missing finalUrl or html")
    return FetchResult(html=html, final_url=final_url, status_code=r.status_code)
