"""Signals that the page is kept up to date."""
from __future__ import annotations
from typing import Optional

from pagescore.models import FAIL, PARTIAL, PASS
from pagescore.services import dates
from pagescore.services.checks.base import CheckContext, Verdict, check
from pagescore.services.checks.schema import schema_date_modified

def _dated_verdict(source: str, raw: str, ctx: CheckContext, unparsable: str = PARTIAL) -> Verdict:
    when = dates.parse_date(raw)
    if when is None:
        return Verdict(unparsable, [f"{source} found but could not be parsed: {raw}"], {"source": source, "date": raw})
    age = dates.days_since(when, ctx.now)
    details = {"source": source, "date": raw, "days": age}
    if dates.is_fresh(when, ctx.now):
        return Verdict(PASS, [f"{source}: {raw} ({age} days ago)"], details)
    return Verdict(FAIL, [f"{source}: {raw} ({age} days ago, older than {dates.FRESH_DAYS} days)"], details)

@check("R1")
def visible_update_date(ctx: CheckContext) -> Verdict:
    phrases = dates.find_visible_dates(ctx.page.body_text)
    if phrases:
        value: Optional[str] = dates.visible_date_value(phrases[0])
        verdict = _dated_verdict("Visible update date", value or phrases[0], ctx)
        verdict.evidence.append(f"Text: {phrases[0]}")
        verdict.details["phrases"] = phrases[:5]
        return verdict

    modified = schema_date_modified(ctx.page)
    if modified:
        return _dated_verdict("Schema dateModified", modified, ctx)

    if ctx.sitemap.found and ctx.sitemap.lastmod:
        return _dated_verdict("Sitemap lastmod", ctx.sitemap.lastmod, ctx)

    return Verdict(FAIL, ["No visible or machine-readable update date found"])

@check("R2")
def sitemap_lastmod(ctx: CheckContext) -> Verdict:
    sitemap = ctx.sitemap
    if not sitemap.found:
        reason = f" ({sitemap.error})" if sitemap.error else ""
        return Verdict(FAIL, [f"No sitemap.xml found{reason}"], {"url": sitemap.url})
    if not sitemap.lastmod:
        return Verdict(PARTIAL, [f"Sitemap found at {sitemap.url} but has no <lastmod>"], {"url": sitemap.url})
    verdict = _dated_verdict("Sitemap lastmod", sitemap.lastmod, ctx)
    verdict.details["url"] = sitemap.url
    return verdict
