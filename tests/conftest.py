# tests/conftest.py
from datetime import datetime, timezone

import pytest

from pagescore.models import FetchResult
from pagescore.services.checks.base import CheckContext
from pagescore.services.extract import parse_html
from pagescore.services.lookups import RobotsPolicy, SitemapInfo
from pagescore.services.rubric import engine_config_for, load_rubric
from pagescore.services.settings import DEFAULT_RUBRIC_PATH
from pagescore.services.signals import derive_facts

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)

LOCAL_BUSINESS_HTML = """<!doctype html>
<html lang="en"><head>
<title>Joe's Plumbing in Springfield</title>
<meta name="description" content="Joe's Plumbing serves Springfield homes with 24/7 repairs.">
<link rel="canonical" href="https://joes.example/">
<meta property="og:title" content="Joe's Plumbing">
<meta property="og:description" content="Plumbers in Springfield">
<meta property="og:url" content="https://joes.example/">
<meta property="og:image" content="https://joes.example/og.png">
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "LocalBusiness", "name": "Joe's Plumbing",
 "url": "https://joes.example/", "telephone": "+1-217-555-0100",
 "address": {"@type": "PostalAddress", "streetAddress": "1 Main St",
             "addressLocality": "Springfield", "addressRegion": "IL", "postalCode": "62701"},
 "logo": "https://joes.example/logo.png",
 "sameAs": ["https://www.facebook.com/joes", "https://www.linkedin.com/company/joes"],
 "dateModified": "2026-09-01"}
</script>
</head><body>
<nav><a href="/">Home</a> <a href="/services">Our services</a></nav>
<main>
<h1>Joe's Plumbing in Springfield</h1>
<img src="/img/logo.png" alt="Joe's Plumbing logo">
<h2 id="services">Services</h2>
<ul><li>Drain cleaning</li><li>Water heaters</li></ul>
<h3 id="drains">Drains</h3>
<p>Last updated: 2026-09-15</p>
</main>
</body></html>
"""

def _make_ctx(
    html,
    status=200,
    url="https://joes.example/",
    rendered_html=None,
    render_error="render endpoint not configured",
    robots=None,
    sitemap=None,
    now=NOW,
):
    page = parse_html(html)
    rendered = FetchResult(rendered_html, url, 200) if rendered_html is not None else None
    return CheckContext(
        raw=FetchResult(html, url, status),
        page=page,
        facts=derive_facts(page),
        robots=robots or RobotsPolicy(found=False),
        sitemap=sitemap or SitemapInfo(found=False),
        now=now,
        rendered=rendered,
        rendered_page=parse_html(rendered_html) if rendered_html is not None else None,
        render_error=None if rendered_html is not None else render_error,
    )

@pytest.fixture
def make_ctx():
    return _make_ctx

@pytest.fixture
def local_html():
    return LOCAL_BUSINESS_HTML

@pytest.fixture
def now():
    return NOW

@pytest.fixture(scope="session")
def rubric():
    return load_rubric(DEFAULT_RUBRIC_PATH)

@pytest.fixture
def engine(rubric):
    return engine_config_for(rubric, 3)
