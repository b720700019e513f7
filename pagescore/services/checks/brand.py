from __future__ import annotations
from typing import Any, List, Tuple
from urllib.parse import urlparse

from pagescore.models import FAIL, PARTIAL, PASS
from pagescore.services.checks.base import CheckContext, Verdict, check, contains_ci, pct, quote, tiered
from pagescore.services.checks.schema import business_nodes

AUTHORITATIVE_DOMAINS = (
    "linkedin.com",
    "wikipedia.org",
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "youtube.com",
)

def is_authoritative(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return any(host == d or host.endswith("." + d) for d in AUTHORITATIVE_DOMAINS)

def _has_logo(value: Any) -> bool:
    if isinstance(value, dict):
        if value.get("logo"):
            return True
        return any(_has_logo(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_logo(v) for v in value)
    return False

@check("N1")
def brand_consistency(ctx: CheckContext) -> Verdict:
    brand = ctx.facts.brand
    if not brand:
        return Verdict(FAIL, ["No brand name detected"])
    nodes = business_nodes(ctx.page)
    candidates: List[Tuple[str, Any]] = [
        ("title", ctx.page.title),
        ("H1", ctx.page.primary_heading),
        ("schema name", nodes[0].name if nodes else None),
    ]
    sources = [(label, text) for label, text in candidates if text]
    matching = [label for label, text in sources if contains_ci(text, brand)]
    details = {"brand": brand, "sources": [label for label, _ in sources], "matching": matching}
    evidence = [f"Brand {brand!r} found in {len(matching)}/{len(sources)} sources: {', '.join(matching) or 'none'}"]
    if len(sources) >= 2 and len(matching) == len(sources):
        return Verdict(PASS, evidence, details)
    if matching:
        return Verdict(PARTIAL, evidence, details)
    return Verdict(FAIL, evidence, details)

@check("N2")
def same_as_profiles(ctx: CheckContext) -> Verdict:
    links: List[str] = []
    for node in business_nodes(ctx.page):
        links.extend(u for u in node.same_as if u not in links)
    authoritative = [u for u in links if is_authoritative(u)]
    details = {"same_as": links, "authoritative": authoritative}
    if not links:
        return Verdict(FAIL, ["No sameAs links found in schema"], details)
    evidence = [f"Found {len(links)} sameAs link(s), {len(authoritative)} on authoritative domains"]
    evidence.extend(links[:5])
    if len(links) >= 2 and authoritative:
        return Verdict(PASS, evidence, details)
    return Verdict(PARTIAL, evidence, details)

@check("N3")
def logo_presence(ctx: CheckContext) -> Verdict:
    in_schema = any(_has_logo(item) for item in ctx.page.structured_data_items)
    visible = [
        img for img in ctx.page.images
        if contains_ci(img.alt_text, "logo") or contains_ci(img.src, "logo")
    ]
    details = {"schema": in_schema, "visible": len(visible)}
    evidence = [
        "Logo declared in schema" if in_schema else "No logo in schema",
        f"Visible logo image: {visible[0].src}" if visible else "No visible logo image",
    ]
    if in_schema and visible:
        return Verdict(PASS, evidence, details)
    if in_schema or visible:
        return Verdict(PARTIAL, evidence, details)
    return Verdict(FAIL, evidence, details)

@check("N4")
def image_alt_keywords(ctx: CheckContext) -> Verdict:
    images = ctx.page.images
    brand, locality = ctx.facts.brand, ctx.facts.locality
    hits = [
        img for img in images
        if contains_ci(img.alt_text, brand) or contains_ci(img.alt_text, locality)
    ]
    details = {"images": len(images), "with_keywords": len(hits)}
    if not images:
        return Verdict(PASS, ["No images to check"], details)
    evidence = [f"{len(hits)}/{len(images)} images ({pct(len(hits), len(images))}%) have brand or locality in alt text"]
    misses = [img for img in images if img not in hits][:3]
    evidence.extend(f"Missing keywords: {img.src} alt={quote(img.alt_text, 60)}" for img in misses)
    return Verdict(tiered(len(hits), len(images)), evidence, details)
