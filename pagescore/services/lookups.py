
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse
import logging
import re

import httpx

logger = logging.getLogger(__name__)

LASTMOD_RE = re.compile(r"<lastmod>([^<]+)</lastmod>", re.IGNORECASE)

@dataclass(frozen=True)
class RobotsPolicy:
    found: bool
    path: str = "/"
    path_blocked: bool = False
    gptbot_blocked: bool = False
    blocking_line: Optional[str] = None
    error: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return not (self.path_blocked or self.gptbot_blocked)

@dataclass(frozen=True)
class SitemapInfo:
    found: bool
    url: str = ""
    lastmod: Optional[str] = None
    error: Optional[str] = None

def origin_url(final_url: str, path: str) -> str:
    p = urlparse(final_url)
    return urljoin(f"{p.scheme}://{p.netloc}", path)

def evaluate_robots(text: str, path: str) -> RobotsPolicy:
    """
    A page is blocked by a `Disallow:` equal to its path or a blanket `Disallow: /`.
    GPTBot counts as blocked when any `Disallow:` follows a `User-agent: GPTBot` line.
    """
    path_blocked = False
    gptbot_blocked = False
    blocking_line: Optional[str] = None
    seen_gptbot = False
    for raw in (text or "").splitlines():
        line = raw.split("#", 1)[0].strip()
        low = line.lower()
        if low.startswith("user-agent:") and line.split(":", 1)[1].strip().lower() == "gptbot":
            seen_gptbot = True
            continue
        if not low.startswith("disallow:"):
            continue
        value = line.split(":", 1)[1].strip()
        if value in ("/", path) and not path_blocked:
            path_blocked = True
            blocking_line = blocking_line or line
        if seen_gptbot and not gptbot_blocked:
            gptbot_blocked = True
            blocking_line = blocking_line or line
    return RobotsPolicy(
        found=True,
        path=path,
        path_blocked=path_blocked,
        gptbot_blocked=gptbot_blocked,
        blocking_line=blocking_line,
    )

async def fetch_robots(client: httpx.AsyncClient, final_url: str, timeout: float = 5.0) -> RobotsPolicy:
    """Best effort: unreachable or non-2xx robots.txt means default allow."""
    path = urlparse(final_url).path or "/"
    robots_url = origin_url(final_url, "/robots.txt")
    try:
        r = await client.get(robots_url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.info("robots.txt unavailable at %s (%s); default allow", robots_url, e.__class__.__name__)
        return RobotsPolicy(found=False, path=path, error=f"{e.__class__.__name__}: {e}")
    if not r.is_success:
        return RobotsPolicy(found=False, path=path, error=f"HTTP {r.status_code}")
    return evaluate_robots(r.text, path)

async def fetch_sitemap(client: httpx.AsyncClient, final_url: str, timeout: float = 5.0) -> SitemapInfo:
    """Best effort: report whether /sitemap.xml exists and its first <lastmod>."""
    sitemap_url = origin_url(final_url, "/sitemap.xml")
    try:
        r = await client.get(sitemap_url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.info("sitemap.xml unavailable at %s (%s)", sitemap_url, e.__class__.__name__)
        return SitemapInfo(found=False, url=sitemap_url, error=f"{e.__class__.__name__}: {e}")
    if not r.is_success:
        return SitemapInfo(found=False, url=sitemap_url, error=f"HTTP {r.status_code}")
    m = LASTMOD_RE.search(r.text or "")
    return SitemapInfo(found=True, url=sitemap_url, lastmod=m.group(1).strip() if m else None)
