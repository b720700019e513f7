# tests/test_lookups.py
import asyncio

import httpx

from pagescore.services.fetch import new_client
from pagescore.services.lookups import evaluate_robots, fetch_robots, fetch_sitemap, origin_url
from pagescore.services.settings import Settings

def _run(handler, coro_fn):
    async def main():
        async with new_client(Settings(), transport=httpx.MockTransport(handler)) as client:
            return await coro_fn(client)
    return asyncio.run(main())

def test_origin_url():
    assert origin_url("https://a.example/deep/page?q=1", "/robots.txt") == "https://a.example/robots.txt"

def test_robots_allows_unrelated_disallow():
    policy = evaluate_robots("User-agent: *\nDisallow: /private\n", "/")
    assert policy.found and policy.allowed

def test_robots_blanket_disallow_blocks():
    policy = evaluate_robots("User-agent: *\nDisallow: /\n", "/menu")
    assert policy.path_blocked
    assert policy.blocking_line == "Disallow: /"
    assert not policy.allowed

def test_robots_gptbot_block():
    text = "User-agent: Googlebot\nAllow: /\n\nUser-agent: GPTBot\nDisallow: /secret  # keep out\n"
    policy = evaluate_robots(text, "/")
    assert policy.gptbot_blocked
    assert not policy.path_blocked
    assert policy.blocking_line == "Disallow: /secret"

def test_robots_timeout_defaults_to_allow():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)
    policy = _run(handler, lambda c: fetch_robots(c, "https://a.example/page"))
    assert not policy.found
    assert policy.allowed
    assert policy.path == "/page"
    assert "ReadTimeout" in policy.error

def test_robots_404_defaults_to_allow():
    policy = _run(lambda r: httpx.Response(404), lambda c: fetch_robots(c, "https://a.example/"))
    assert not policy.found
    assert policy.error == "HTTP 404"

def test_sitemap_lastmod():
    body = "<urlset><url><loc>https://a.example/</loc><lastmod> 2026-09-20 </lastmod></url></urlset>"
    def handler(request):
        assert request.url.path == "/sitemap.xml"
        return httpx.Response(200, text=body)
    info = _run(handler, lambda c: fetch_sitemap(c, "https://a.example/x"))
    assert info.found
    assert info.url == "https://a.example/sitemap.xml"
    assert info.lastmod == "2026-09-20"

def test_sitemap_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)
    info = _run(handler, lambda c: fetch_sitemap(c, "https://a.example/"))
    assert not info.found
    assert info.lastmod is None

def test_robots_exact_path_disallow():
    text = "User-agent: *\nDisallow: /menu\n"
    blocked = evaluate_robots(text, "/menu")
    assert blocked.path_blocked
    assert blocked.blocking_line == "Disallow: /menu"
    assert not blocked.gptbot_blocked
    assert evaluate_robots(text, "/about").allowed
