"""
One analysis: fetch the page, extract facts, run the active checks and
build the scorecard. Stateless; the engine config is passed in.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import urlparse
import asyncio
import logging

import httpx

from pagescore.models import FetchResult, ParsedPage, Scorecard
from pagescore.services.checks.base import CheckContext
from pagescore.services.evaluate import evaluate_all
from pagescore.services.extract import parse_html
from pagescore.services.fetch import RenderError, fetch_raw, new_client, render_remote
from pagescore.services.lookups import fetch_robots, fetch_sitemap
from pagescore.services.rubric import EngineConfig
from pagescore.services.score import category_scores, total_score
from pagescore.services.settings import Settings
from pagescore.services.signals import derive_facts

logger = logging.getLogger(__name__)

class InvalidURLError(ValueError):
    """The requested URL is missing or not an absolute http(s) URL."""

def validate_url(url: Optional[str]) -> str:
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError("URL is required")
    url = url.strip()
    try:
        p = urlparse(url)
        p.port
    except ValueError:
        raise InvalidURLError("Invalid URL format")
    if p.scheme not in ("http", "https") or not p.netloc:
        raise InvalidURLError("Invalid URL format")
    return url

async def _render(
    client: httpx.AsyncClient, url: str, settings: Settings
) -> Tuple[Optional[FetchResult], Optional[ParsedPage], Optional[str]]:
    try:
        rendered = await render_remote(
            client, url, settings.render_endpoint, settings.render_token, settings.render_timeout
        )
    except RenderError as e:
        logger.warning("Rendering unavailable for %s: %s", url, e)
        return None, None, str(e)
    return rendered, parse_html(rendered.html), None

async def _analyze(
    client: httpx.AsyncClient, url: str, engine: EngineConfig, settings: Settings, now: datetime
) -> Scorecard:
    raw = await fetch_raw(client, url, settings.fetch_timeout)
    page = parse_html(raw.html)
    facts = derive_facts(page)

    (rendered, rendered_page, render_error), robots, sitemap = await asyncio.gather(
        _render(client, url, settings),
        fetch_robots(client, raw.final_url, settings.lookup_timeout),
        fetch_sitemap(client, raw.final_url, settings.lookup_timeout),
    )

    ctx = CheckContext(
        raw=raw,
        page=page,
        facts=facts,
        robots=robots,
        sitemap=sitemap,
        now=now,
        rendered=rendered,
        rendered_page=rendered_page,
        render_error=render_error,
    )
    results = evaluate_all(ctx, engine)
    categories = category_scores(results, engine)
    return Scorecard(
        url=url,
        final_url=raw.final_url,
        rubric_version=engine.rubric.version,
        total_score=total_score(categories),
        categories=categories,
        analyzed_at=now.isoformat(),
        phase=engine.phase,
    )

async def analyze_url(
    url: str,
    engine: EngineConfig,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None,
) -> Scorecard:
    """
    Score `url` against the active rubric checks.

    Raises InvalidURLError before any network call and FetchError when the
    page itself cannot be retrieved. Render and lookup failures only show
    up in the affected checks' evidence.
    """
    url = validate_url(url)
    now = now or datetime.now(timezone.utc)
    if client is not None:
        return await _analyze(client, url, engine, settings, now)
    async with new_client(settings) as own:
        return await _analyze(own, url, engine, settings, now)
