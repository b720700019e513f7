"""
Accessibility checks. Most of them look at the rendered DOM, since that is
what assistive tech and JS-executing crawlers see; when rendering failed
they report `na` instead of guessing from the raw HTML.
"""
from __future__ import annotations
from typing import Optional

from pagescore.models import FAIL, NA, PARTIAL, PASS, ParsedPage
from pagescore.services.checks.base import CheckContext, Verdict, check, pct, quote, tiered, tag_snippet

MIN_WORDS = 100
MIN_WORDS_PARTIAL = 50
DESCRIPTIVE_RATIO = 0.8

GENERIC_LINK_TEXT = {"click here", "read more", "here", "more", "learn more", "link"}

def _rendered(ctx: CheckContext) -> Optional[ParsedPage]:
    return ctx.rendered_page

def _unavailable(ctx: CheckContext) -> Verdict:
    return Verdict(NA, [f"Rendered HTML unavailable: {ctx.render_error or 'unknown error'}"])

@check("A1")
def image_alt_coverage(ctx: CheckContext) -> Verdict:
    page = _rendered(ctx)
    if page is None:
        return _unavailable(ctx)
    images = page.images
    with_alt = [img for img in images if img.alt_text]
    details = {"images": len(images), "with_alt": len(with_alt)}
    if not images:
        return Verdict(PASS, ["No images found in rendered HTML"], details)
    evidence = [f"{len(with_alt)}/{len(images)} images ({pct(len(with_alt), len(images))}%) have alt text"]
    evidence.extend(tag_snippet("img", {"src": img.src}) for img in images if not img.alt_text)
    return Verdict(tiered(len(with_alt), len(images)), evidence[:6], details)

@check("A2")
def form_labels(ctx: CheckContext) -> Verdict:
    page = _rendered(ctx)
    if page is None:
        return _unavailable(ctx)
    controls = page.form_controls
    labelled = [c for c in controls if c.labelled]
    details = {"controls": len(controls), "labelled": len(labelled)}
    if not controls:
        return Verdict(PASS, ["No form controls found"], details)
    evidence = [f"{len(labelled)}/{len(controls)} form controls have labels"]
    evidence.extend(c.snippet for c in controls if not c.labelled)
    return Verdict(tiered(len(labelled), len(controls)), evidence[:6], details)

@check("A3")
def word_count(ctx: CheckContext) -> Verdict:
    words = ctx.page.word_count
    details = {"words": words}
    if words > MIN_WORDS:
        return Verdict(PASS, [f"Main content has {words} words"], details)
    if words > MIN_WORDS_PARTIAL:
        return Verdict(PARTIAL, [f"Main content has {words} words (thin, aim for more than {MIN_WORDS})"], details)
    return Verdict(FAIL, [f"Main content has only {words} words"], details)

def is_descriptive(anchor_text: str) -> bool:
    return anchor_text.strip().lower() not in GENERIC_LINK_TEXT

@check("A4")
def navigation_links(ctx: CheckContext) -> Verdict:
    page = _rendered(ctx)
    if page is None:
        return _unavailable(ctx)
    structured = page.nav_count > 0 or page.list_count > 0
    generic = [link for link in page.links if not is_descriptive(link.anchor_text)]
    total = len(page.links)
    ratio = (total - len(generic)) / total if total else 1.0
    descriptive = ratio >= DESCRIPTIVE_RATIO
    details = {
        "nav_count": page.nav_count,
        "list_count": page.list_count,
        "links": total,
        "descriptive_ratio": round(ratio, 4),
    }
    evidence = [
        f"{page.nav_count} navigation element(s), {page.list_count} list/table element(s)",
        f"{round(ratio * 100)}% of {total} links have descriptive text",
    ]
    evidence.extend(f"Generic link text: {quote(link.anchor_text, 40)} -> {link.href}" for link in generic[:3])
    if structured and descriptive:
        return Verdict(PASS, evidence, details)
    if structured or descriptive:
        return Verdict(PARTIAL, evidence, details)
    return Verdict(FAIL, evidence, details)

@check("A5")
def video_captions(ctx: CheckContext) -> Verdict:
    page = _rendered(ctx)
    if page is None:
        return _unavailable(ctx)
    videos = page.videos
    covered = [v for v in videos if v.has_captions or v.has_transcript]
    details = {"videos": len(videos), "captioned": len(covered)}
    if not videos:
        return Verdict(PASS, ["No videos found"], details)
    evidence = [f"{len(covered)}/{len(videos)} videos have captions or a transcript"]
    evidence.extend(v.snippet for v in videos if not (v.has_captions or v.has_transcript))
    return Verdict(tiered(len(covered), len(videos)), evidence[:6], details)
