"""Can a crawler fetch and index the page at all."""
from __future__ import annotations
from typing import Set
from urllib.parse import urlparse

from pagescore.models import FAIL, PARTIAL, PASS
from pagescore.services.checks.base import CheckContext, Verdict, check, tag_snippet

PARITY_PASS_SIMILARITY = 0.8
PARITY_PARTIAL_SIMILARITY = 0.6
# Counts differing by more than this share of the larger one are a divergence
COUNT_DIVERGENCE = 0.5

def text_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lowercase word sets."""
    if not a or not b:
        return 0.0
    words_a: Set[str] = set(a.lower().split())
    words_b: Set[str] = set(b.lower().split())
    union = words_a | words_b
    return len(words_a & words_b) / len(union) if union else 0.0

def counts_diverge(a: int, b: int) -> bool:
    top = max(a, b)
    return top > 0 and abs(a - b) / top > COUNT_DIVERGENCE

def is_absolute_http(url: str) -> bool:
    p = urlparse(url or "")
    return p.scheme in ("http", "https") and bool(p.netloc)

@check("F1")
def http_status(ctx: CheckContext) -> Verdict:
    code = ctx.raw.status_code
    if code == 200:
        return Verdict(PASS, ["Page returns HTTP 200 OK"], {"status_code": code})
    return Verdict(FAIL, [f"Page returns HTTP {code}"], {"status_code": code})

@check("F2")
def no_noindex(ctx: CheckContext) -> Verdict:
    meta = ctx.page.robots_meta
    if not ctx.page.noindex:
        ev = ["No noindex meta tag found"]
        if meta:
            ev.append(tag_snippet("meta", {"name": "robots", "content": meta}))
        return Verdict(PASS, ev)
    return Verdict(FAIL, [
        "noindex meta tag found",
        tag_snippet("meta", {"name": "robots", "content": meta}),
    ])

@check("F3")
def robots_compliance(ctx: CheckContext) -> Verdict:
    policy = ctx.robots
    details = {"found": policy.found, "path": policy.path}
    if not policy.found:
        reason = f" ({policy.error})" if policy.error else ""
        return Verdict(PASS, [f"No robots.txt found{reason} (default allow)"], details)
    details.update(path_blocked=policy.path_blocked, gptbot_blocked=policy.gptbot_blocked)
    if policy.allowed:
        return Verdict(PASS, ["robots.txt allows crawling and GPTBot"], details)
    evidence = []
    if policy.path_blocked:
        evidence.append(f"Page path {policy.path} is blocked in robots.txt")
    if policy.gptbot_blocked:
        evidence.append("GPTBot is blocked in robots.txt")
    if policy.blocking_line:
        evidence.append(f"Rule: {policy.blocking_line}")
    return Verdict(FAIL, evidence, details)

@check("F4")
def canonical_url(ctx: CheckContext) -> Verdict:
    canonical = ctx.page.canonical_url
    if not canonical:
        return Verdict(FAIL, ["No canonical URL found"])
    snippet = tag_snippet("link", {"rel": "canonical", "href": canonical})
    if is_absolute_http(canonical):
        return Verdict(PASS, [f"Canonical URL found: {canonical}", snippet])
    return Verdict(FAIL, ["Canonical URL is not absolute", snippet])

@check("F5")
def render_parity(ctx: CheckContext) -> Verdict:
    if ctx.rendered_page is None:
        return Verdict(FAIL, [f"JS rendering failed: {ctx.render_error or 'unknown error'}"])

    raw, rendered = ctx.page, ctx.rendered_page
    heading_match = raw.primary_heading == rendered.primary_heading
    similarity = text_similarity(raw.body_text, rendered.body_text)
    image_gap = counts_diverge(len(raw.images), len(rendered.images))
    link_gap = counts_diverge(len(raw.links), len(rendered.links))
    details = {
        "heading_match": heading_match,
        "similarity": round(similarity, 4),
        "raw_images": len(raw.images),
        "rendered_images": len(rendered.images),
        "raw_links": len(raw.links),
        "rendered_links": len(rendered.links),
    }

    evidence = [
        "H1 matches between raw and rendered HTML" if heading_match
        else f"H1 differs: raw {raw.primary_heading!r} vs rendered {rendered.primary_heading!r}",
        f"Text similarity: {round(similarity * 100)}%",
    ]
    if image_gap:
        evidence.append(f"Image count differs: {len(raw.images)} raw vs {len(rendered.images)} rendered")
    if link_gap:
        evidence.append(f"Link count differs: {len(raw.links)} raw vs {len(rendered.links)} rendered")

    if heading_match and similarity > PARITY_PASS_SIMILARITY and not (image_gap or link_gap):
        return Verdict(PASS, evidence, details)
    if heading_match or similarity > PARITY_PARTIAL_SIMILARITY:
        return Verdict(PARTIAL, evidence, details)
    return Verdict(FAIL, evidence, details)
