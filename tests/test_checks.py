# tests/test_checks.py
from pagescore.services.checks.base import REGISTRY, tiered
from pagescore.services.evaluate import evaluate_all, run_check
from pagescore.services.lookups import RobotsPolicy, SitemapInfo

def _verdict(check_id, ctx):
    return REGISTRY[check_id](ctx)

def _by_id(results):
    return {r.id: r for r in results}

def test_tiered_rule():
    assert tiered(0, 0) == "pass"
    assert tiered(3, 3) == "pass"
    assert tiered(2, 3) == "partial"
    assert tiered(1, 2) == "fail"
    assert tiered(0, 5) == "fail"

# --- whole-page scenarios ---

def test_local_business_scenario(make_ctx, local_html, engine):
    ctx = make_ctx(local_html, rendered_html=local_html)
    results = _by_id(evaluate_all(ctx, engine))
    for cid in ("F1", "F2", "F3", "F4", "F5", "C1", "S2", "M1", "M2", "N1", "N2", "N3", "S4", "R1"):
        assert results[cid].status == "pass", (cid, results[cid].evidence)
    assert list(results) == engine.active_checks()

def test_render_failure_degrades_only_rendered_checks(make_ctx, local_html, engine):
    ctx = make_ctx(local_html, render_error="timed out after 15s")
    results = _by_id(evaluate_all(ctx, engine))
    assert results["F5"].status == "fail"
    assert results["F5"].evidence == ["JS rendering failed: timed out after 15s"]
    for cid in ("A1", "A2", "A4", "A5"):
        assert results[cid].status == "na"
        assert results[cid].score == 0
    assert results["F1"].status == "pass"
    assert results["A3"].status in ("pass", "partial", "fail")

def test_evaluator_crash_becomes_fail(make_ctx, local_html, engine, monkeypatch):
    def boom(ctx):
        raise RuntimeError("boom")
    monkeypatch.setitem(REGISTRY, "M1", boom)
    res = run_check("M1", make_ctx(local_html), engine)
    assert res.status == "fail"
    assert res.score == 0
    assert "RuntimeError: boom" in res.evidence[0]

# --- fetchability ---

def test_http_404_fails_with_code(make_ctx, local_html):
    v = _verdict("F1", make_ctx(local_html, status=404))
    assert v.status == "fail"
    assert "404" in v.evidence[0]

def test_noindex_fails_with_snippet(make_ctx):
    v = _verdict("F2", make_ctx('<head><meta name="robots" content="noindex"></head>'))
    assert v.status == "fail"
    assert "&lt;meta" in v.evidence[1]

def test_robots_missing_is_default_allow(make_ctx, local_html):
    ctx = make_ctx(local_html, robots=RobotsPolicy(found=False, error="ReadTimeout: timed out"))
    v = _verdict("F3", ctx)
    assert v.status == "pass"
    assert "default allow" in v.evidence[0]

def test_robots_gptbot_blocked(make_ctx, local_html):
    policy = RobotsPolicy(found=True, gptbot_blocked=True, blocking_line="Disallow: /")
    v = _verdict("F3", make_ctx(local_html, robots=policy))
    assert v.status == "fail"
    assert "Rule: Disallow: /" in v.evidence

def test_relative_canonical_fails(make_ctx):
    v = _verdict("F4", make_ctx('<head><link rel="canonical" href="/about"></head>'))
    assert v.status == "fail"

def test_render_parity_mismatch(make_ctx):
    raw = "<body><main><p>Loading</p></main></body>"
    rendered = "<body><main><h1>Menu</h1><p>" + " ".join(f"dish{i}" for i in range(40)) + "</p></main></body>"
    v = _verdict("F5", make_ctx(raw, rendered_html=rendered))
    assert v.status == "fail"
    assert v.details["heading_match"] is False

def test_render_parity_partial_when_heading_matches(make_ctx):
    raw = "<body><main><h1>Menu</h1><p>Pasta</p></main></body>"
    rendered = "<body><main><h1>Menu</h1><p>Pasta " + " ".join(f"dish{i}" for i in range(40)) + "</p></main></body>"
    v = _verdict("F5", make_ctx(raw, rendered_html=rendered))
    assert v.status == "partial"
    assert v.details["heading_match"] is True
    assert v.details["similarity"] < 0.6

# --- metadata ---

def test_og_missing_image_is_partial(make_ctx):
    html = """<head>
    <meta property="og:title" content="T"><meta property="og:description" content="D">
    <meta property="og:url" content="https://a.example/"></head>"""
    v = _verdict("M5", make_ctx(html))
    assert v.status == "partial"
    assert any("3/4" in e for e in v.evidence)
    assert any("og:image" in e for e in v.evidence)

def test_title_with_brand_only_is_partial(make_ctx):
    v = _verdict("M2", make_ctx("<head><title>Acme Widgets</title></head>"))
    assert v.status == "partial"

def test_canonical_host_mismatch(make_ctx):
    ctx = make_ctx('<head><link rel="canonical" href="https://other.example/"></head>')
    assert _verdict("M6", ctx).status == "fail"

# --- schema ---

def test_no_jsonld(make_ctx):
    for cid in ("S1", "S2", "S3", "S4", "S5", "S6"):
        assert _verdict(cid, make_ctx("<body><p>plain</p></body>")).status == "fail"

def test_business_with_few_essentials_is_partial(make_ctx):
    html = '<script type="application/ld+json">{"@type": "Restaurant", "name": "Luigi"}</script>'
    v = _verdict("S2", make_ctx(html))
    assert v.status == "partial"
    assert v.details["essentials"] == ["name"]

def test_enhancement_and_rich_types_nested(make_ctx):
    html = """<script type="application/ld+json">
    {"@type": "Product", "name": "Boot",
     "aggregateRating": {"@type": "AggregateRating", "ratingValue": 4.5},
     "review": [{"@type": "Review", "author": "Sam"}]}</script>
    <script type="application/ld+json">{"@type": "FAQPage"}</script>"""
    ctx = make_ctx(html)
    assert _verdict("S3", ctx).status == "pass"
    s6 = _verdict("S6", ctx)
    assert s6.status == "pass"
    assert s6.details["types"] == ["AggregateRating", "Review"]

def test_stale_date_modified(make_ctx):
    html = '<script type="application/ld+json">{"@type": "Organization", "dateModified": "2024-01-01"}</script>'
    v = _verdict("S4", make_ctx(html))
    assert v.status == "fail"
    assert "older than 180 days" in v.evidence[0]

def test_contact_fields_count(make_ctx):
    html = """<script type="application/ld+json">{"@type": "Organization", "telephone": "1",
    "email": "a@b.c", "contactPoint": {"@type": "ContactPoint", "telephone": "2"}}</script>"""
    v = _verdict("S5", make_ctx(html))
    assert v.status == "pass"
    assert v.details["fields"] == ["telephone", "email", "contactPoint"]

# --- semantics ---

def test_two_h1s_fail_listing_both(make_ctx):
    v = _verdict("C1", make_ctx("<body><h1>First Title</h1><h1>Second Title</h1></body>"))
    assert v.status == "fail"
    assert "First Title" in v.evidence[0]
    assert "Second Title" in v.evidence[0]

def test_no_h1(make_ctx):
    v = _verdict("C1", make_ctx("<body><h2>Sub</h2></body>"))
    assert (v.status, v.evidence) == ("fail", ["No H1 found"])

def test_h1_without_locality_is_partial(make_ctx):
    assert _verdict("C1", make_ctx("<body><h1>Welcome</h1></body>")).status == "partial"

def test_heading_jump(make_ctx):
    v = _verdict("C2", make_ctx("<body><h1>A</h1><h3>C</h3></body>"))
    assert v.status == "fail"
    assert "H1 to H3" in v.evidence[1]
    assert _verdict("C2", make_ctx("<body><h1>A</h1><h2>B</h2><h3>C</h3></body>")).status == "pass"

def test_lists_and_anchors(make_ctx):
    ctx = make_ctx("<body><main><h2 id='a'>A</h2><ul><li>x</li></ul><table><tr><td>1</td></tr></table></main></body>")
    assert _verdict("C3", ctx).status == "partial"
    assert _verdict("C4", ctx).status == "pass"

def test_long_page_needs_three_anchors(make_ctx):
    words = " ".join(["lorem"] * 900)
    ctx = make_ctx(f"<body><main><h2 id='a'>A</h2><h2 id='b'>B</h2><p>{words}</p></main></body>")
    v = _verdict("C4", ctx)
    assert v.status == "partial"
    assert v.details["required"] == 3

# --- freshness ---

def test_visible_date_wins(make_ctx, local_html):
    v = _verdict("R1", make_ctx(local_html))
    assert v.status == "pass"
    assert v.details["source"] == "Visible update date"

def test_sitemap_date_fallback(make_ctx):
    sitemap = SitemapInfo(found=True, url="https://a.example/sitemap.xml", lastmod="2020-01-01")
    v = _verdict("R1", make_ctx("<body><p>hi</p></body>", sitemap=sitemap))
    assert v.status == "fail"
    assert v.details["source"] == "Sitemap lastmod"

def test_unparsable_visible_date_is_partial(make_ctx):
    v = _verdict("R1", make_ctx("<body><main><p>Updated: 99/99/9999</p></main></body>"))
    assert v.status == "partial"

def test_stale_visible_date_fails(make_ctx):
    v = _verdict("R1", make_ctx("<body><main><p>Last updated: January 5, 2024</p></main></body>"))
    assert v.status == "fail"
    assert v.details["source"] == "Visible update date"
    assert v.details["phrases"] == ["Last updated: January 5, 2024"]

def test_sitemap_check(make_ctx):
    url = "https://a.example/sitemap.xml"
    fresh = make_ctx("<body></body>", sitemap=SitemapInfo(found=True, url=url, lastmod="2026-09-20"))
    stale = make_ctx("<body></body>", sitemap=SitemapInfo(found=True, url=url, lastmod="2021-05-01"))
    undated = make_ctx("<body></body>", sitemap=SitemapInfo(found=True, url=url))
    missing = make_ctx("<body></body>", sitemap=SitemapInfo(found=False, url=url, error="HTTP 404"))
    assert _verdict("R2", fresh).status == "pass"
    assert _verdict("R2", stale).status == "fail"
    assert _verdict("R2", undated).status == "partial"
    v = _verdict("R2", missing)
    assert v.status == "fail"
    assert v.evidence[0].startswith("No sitemap.xml found")

def test_sitemap_with_unparsable_lastmod_is_partial(make_ctx):
    sitemap = SitemapInfo(found=True, url="https://a.example/sitemap.xml", lastmod="sometime soon")
    v = _verdict("R2", make_ctx("<body></body>", sitemap=sitemap))
    assert v.status == "partial"
    assert "could not be parsed" in v.evidence[0]

# --- brand ---

def test_brand_single_source_is_partial(make_ctx):
    assert _verdict("N1", make_ctx("<head><title>Acme Widgets</title></head>")).status == "partial"

def test_same_as_without_authoritative_domain(make_ctx):
    html = """<script type="application/ld+json">{"@type": "Organization",
    "sameAs": ["https://yelp.com/biz/acme", "https://acme.blog/"]}</script>"""
    v = _verdict("N2", make_ctx(html))
    assert v.status == "partial"

def test_logo_only_in_schema_is_partial(make_ctx):
    html = '<script type="application/ld+json">{"@type": "Organization", "logo": "/l.png"}</script>'
    assert _verdict("N3", make_ctx(html)).status == "partial"

def test_image_alt_keywords(make_ctx):
    html = """<head><title>Joe's Plumbing in Springfield</title></head><body>
    <img src="/1.png" alt="Joe's van"><img src="/2.png" alt="Springfield office"><img src="/3.png" alt="pipe"></body>"""
    v = _verdict("N4", make_ctx(html))
    assert v.status == "partial"
    assert v.details == {"images": 3, "with_keywords": 2}

# --- accessibility ---

def test_zero_images_pass_fraction_checks(make_ctx):
    html = "<body><main><p>No pictures here</p></main></body>"
    ctx = make_ctx(html, rendered_html=html)
    assert _verdict("A1", ctx).status == "pass"
    assert _verdict("N4", ctx).status == "pass"

def test_rendered_alt_coverage(make_ctx):
    rendered = '<body><img src="/a.png" alt="A"><img src="/b.png"></body>'
    v = _verdict("A1", make_ctx("<body></body>", rendered_html=rendered))
    assert v.status == "fail"
    assert "&lt;img src=&quot;/b.png&quot;&gt;" in v.evidence

def test_form_labels(make_ctx):
    rendered = '<body><form><input aria-label="Email"><input name="q"></form></body>'
    v = _verdict("A2", make_ctx("<body></body>", rendered_html=rendered))
    assert v.status == "fail"
    assert any(e.startswith("&lt;input") for e in v.evidence[1:])

def test_word_count_thresholds(make_ctx):
    assert _verdict("A3", make_ctx("<main><p>" + "w " * 120 + "</p></main>")).status == "pass"
    assert _verdict("A3", make_ctx("<main><p>" + "w " * 60 + "</p></main>")).status == "partial"
    assert _verdict("A3", make_ctx("<main><p>short</p></main>")).status == "fail"

def test_generic_link_text(make_ctx):
    rendered = """<body><nav><a href="/">Home</a></nav>
    <a href="/x">click here</a><a href="/y">Read more</a></body>"""
    v = _verdict("A4", make_ctx("<body></body>", rendered_html=rendered))
    assert v.status == "partial"
    assert v.details["descriptive_ratio"] == round(1 / 3, 4)

def test_video_captions(make_ctx):
    rendered = '<body><video src="a.mp4"><track kind="subtitles" src="a.vtt"></video><div><video src="b.mp4"></video></div></body>'
    v = _verdict("A5", make_ctx("<body></body>", rendered_html=rendered))
    assert v.status == "fail"
    assert v.details == {"videos": 2, "captioned": 1}
