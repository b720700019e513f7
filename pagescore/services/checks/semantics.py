from __future__ import annotations
from typing import List

from pagescore.models import FAIL, PARTIAL, PASS, HeadingFact
from pagescore.services.checks.base import CheckContext, Verdict, check, contains_ci, quote, tag_snippet

LONG_FORM_WORDS = 800

def heading_jumps(headings: List[HeadingFact]) -> List[str]:
    """Consecutive headings that skip more than one level downwards."""
    issues: List[str] = []
    for cur, nxt in zip(headings, headings[1:]):
        if nxt.level > cur.level + 1:
            issues.append(f"Heading jump from H{cur.level} to H{nxt.level} ({quote(nxt.text, 60)})")
    return issues

@check("C1")
def single_h1(ctx: CheckContext) -> Verdict:
    h1s = ctx.page.all_level1_headings
    locality = ctx.facts.locality
    details = {"h1_count": len(h1s), "locality": locality}
    if not h1s:
        return Verdict(FAIL, ["No H1 found"], details)
    if len(h1s) > 1:
        return Verdict(FAIL, [f"Multiple H1s found ({len(h1s)}): {', '.join(quote(h) for h in h1s)}"], details)
    h1 = h1s[0]
    snippet = tag_snippet("h1", {}, h1)
    if contains_ci(h1, locality):
        return Verdict(PASS, [f"Single H1 found with locality {locality!r}: {quote(h1)}", snippet], details)
    return Verdict(PARTIAL, [f"Single H1 found but no locality detected: {quote(h1)}", snippet], details)

@check("C2")
def heading_structure(ctx: CheckContext) -> Verdict:
    headings = list(ctx.page.headings)
    jumps = heading_jumps(headings)
    h2 = sum(1 for h in headings if h.level == 2)
    h3 = sum(1 for h in headings if h.level == 3)

    points = 0
    if h2:
        points += 2
    if h3:
        points += 1
    if not jumps:
        points += 2
    details = {"h2": h2, "h3": h3, "jumps": len(jumps), "points": points}

    summary = f"{h2} H2s, {h3} H3s"
    issues = f"Issues: {'; '.join(jumps)}" if jumps else "No heading jumps"
    if points >= 4:
        return Verdict(PASS, [f"Good heading structure: {summary}", issues], details)
    if points >= 2:
        return Verdict(PARTIAL, [f"Basic heading structure: {summary}", issues], details)
    return Verdict(FAIL, [f"Poor heading structure: {summary}", issues], details)

@check("C3")
def lists_and_tables(ctx: CheckContext) -> Verdict:
    n = ctx.page.list_count
    details = {"list_count": n}
    if n >= 3:
        return Verdict(PASS, [f"Found {n} list/table elements in main content"], details)
    if n >= 1:
        return Verdict(PARTIAL, [f"Found {n} list/table element(s) in main content (could use more structure)"], details)
    return Verdict(FAIL, ["No list or table elements found in main content"], details)

@check("C4")
def section_anchors(ctx: CheckContext) -> Verdict:
    anchored = [h for h in ctx.page.headings if h.anchor_id]
    words = ctx.page.word_count
    required = 3 if words > LONG_FORM_WORDS else 1
    details = {"anchored": len(anchored), "required": required, "words": words}
    ids = ", ".join(f"#{h.anchor_id}" for h in anchored[:5])
    if len(anchored) >= required:
        return Verdict(PASS, [f"Found {len(anchored)} headings with anchor IDs (required: {required})", ids], details)
    if anchored:
        return Verdict(PARTIAL, [f"Found {len(anchored)} headings with anchor IDs (required: {required})", ids], details)
    return Verdict(FAIL, [f"No headings with anchor IDs found (required: {required}, {words} words)"], details)
