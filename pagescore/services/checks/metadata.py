from __future__ import annotations
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from pagescore.models import FAIL, PARTIAL, PASS, DerivedFacts
from pagescore.services.checks.base import CheckContext, Verdict, check, contains_ci, quote, tag_snippet

OG_TAGS = ("og:title", "og:description", "og:url", "og:image")

def brand_locality_verdict(field: str, text: Optional[str], facts: DerivedFacts) -> Verdict:
    """pass with both brand and locality in `text`, partial with one, fail with neither."""
    has_brand = contains_ci(text, facts.brand)
    has_locality = contains_ci(text, facts.locality)
    details = {"has_brand": has_brand, "has_locality": has_locality}
    found = f"Brand: {facts.brand or 'not found'}, Locality: {facts.locality or 'not found'}"
    if has_brand and has_locality:
        return Verdict(PASS, [f"{field} contains both brand and locality", found], details)
    if has_brand or has_locality:
        which = "brand" if has_brand else "locality"
        return Verdict(PARTIAL, [f"{field} contains {which} but not both", found], details)
    return Verdict(FAIL, [f"{field} does not contain brand or locality", found, quote(text)], details)

@check("M1")
def title_present(ctx: CheckContext) -> Verdict:
    title = ctx.page.title
    if title:
        return Verdict(PASS, [f"Title found: {quote(title)}", tag_snippet("title", {}, title)])
    return Verdict(FAIL, ["No title tag found"])

@check("M2")
def title_brand_locality(ctx: CheckContext) -> Verdict:
    if not ctx.page.title:
        return Verdict(FAIL, ["No title found"])
    return brand_locality_verdict("Title", ctx.page.title, ctx.facts)

@check("M3")
def description_present(ctx: CheckContext) -> Verdict:
    desc = ctx.page.description
    if desc:
        return Verdict(PASS, [f"Meta description found: {quote(desc, 100)}"])
    return Verdict(FAIL, ["No meta description found"])

@check("M4")
def description_brand_locality(ctx: CheckContext) -> Verdict:
    if not ctx.page.description:
        return Verdict(FAIL, ["No meta description found"])
    return brand_locality_verdict("Description", ctx.page.description, ctx.facts)

@check("M5")
def open_graph(ctx: CheckContext) -> Verdict:
    page = ctx.page
    values: List[Tuple[str, Optional[str]]] = list(zip(
        OG_TAGS, (page.og_title, page.og_description, page.og_url, page.og_image)
    ))
    present = [prop for prop, v in values if v]
    missing = [prop for prop, v in values if not v]
    details = {"present": present, "missing": missing}
    if not missing:
        return Verdict(PASS, [f"All Open Graph tags found ({len(present)}/4)"], details)
    evidence = [f"Found {len(present)}/4 Open Graph tags", f"Missing: {', '.join(missing)}"]
    if len(present) >= 2:
        return Verdict(PARTIAL, evidence, details)
    return Verdict(FAIL, evidence, details)

@check("M6")
def canonical_host(ctx: CheckContext) -> Verdict:
    canonical = ctx.page.canonical_url
    if not canonical:
        return Verdict(FAIL, ["No canonical URL to compare"])
    canon_host = (urlparse(canonical).hostname or "").lower()
    page_host = (urlparse(ctx.raw.final_url).hostname or "").lower()
    if not canon_host:
        return Verdict(FAIL, [f"Canonical URL has no host: {canonical}"])
    if canon_host == page_host:
        return Verdict(PASS, [f"Canonical host matches current host ({page_host})"])
    return Verdict(FAIL, [f"Canonical host ({canon_host}) does not match current host ({page_host})"])
