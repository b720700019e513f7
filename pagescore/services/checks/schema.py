from __future__ import annotations
from typing import Any, Iterable, List, Optional, Tuple
import json

from pagescore.models import FAIL, PARTIAL, PASS, ParsedPage
from pagescore.services import dates
from pagescore.services.checks.base import CheckContext, Verdict, check
from pagescore.services.jsonld_extract import (
    CONTENT_ENHANCEMENT_TYPES,
    RICH_CONTENT_TYPES,
    BusinessNode,
    node_types,
)

BUSINESS_ESSENTIALS = ("name", "url", "telephone", "address")

CONTACT_FIELDS = (
    "telephone",
    "email",
    "address",
    "contactPoint",
    "openingHours",
    "openingHoursSpecification",
    "geo",
    "hasMap",
    "faxNumber",
)

def business_nodes(page: ParsedPage) -> List[BusinessNode]:
    return [n for n in page.schema_nodes if isinstance(n, BusinessNode)]

def _walk_types(value: Any) -> Iterable[str]:
    if isinstance(value, dict):
        yield from node_types(value)
        for v in value.values():
            yield from _walk_types(v)
    elif isinstance(value, list):
        for v in value:
            yield from _walk_types(v)

def types_present(page: ParsedPage, allowed: Tuple[str, ...]) -> List[str]:
    """Allowed type names found in any @type, nested entities included."""
    found: List[str] = []
    for item in page.structured_data_items:
        for token in _walk_types(item):
            for name in allowed:
                if name in token and name not in found:
                    found.append(name)
    return found

def _walk_keys(value: Any) -> Iterable[str]:
    if isinstance(value, dict):
        for k, v in value.items():
            if v not in (None, "", [], {}):
                yield k
            yield from _walk_keys(v)
    elif isinstance(value, list):
        for v in value:
            yield from _walk_keys(v)

def contact_fields_present(page: ParsedPage) -> List[str]:
    keys = set()
    for item in page.structured_data_items:
        keys.update(_walk_keys(item))
    return [f for f in CONTACT_FIELDS if f in keys]

def schema_date_modified(page: ParsedPage) -> Optional[str]:
    """First dateModified, preferring business entities, then any item."""
    for node in business_nodes(page):
        if node.date_modified:
            return node.date_modified
    for item in page.structured_data_items:
        val = item.get("dateModified")
        if isinstance(val, str) and val.strip():
            return val.strip()
    return None

def _short_json(obj: Any, limit: int = 160) -> str:
    s = json.dumps(obj, ensure_ascii=False, default=str)
    return s if len(s) <= limit else s[: limit - 3] + "..."

@check("S1")
def jsonld_present(ctx: CheckContext) -> Verdict:
    items = ctx.page.structured_data_items
    if not items:
        return Verdict(FAIL, ["No valid JSON-LD found"])
    types = sorted({t for n in ctx.page.schema_nodes for t in n.types})
    return Verdict(PASS, [
        f"Found {len(items)} valid JSON-LD item(s)",
        f"Types: {', '.join(types) or 'none declared'}",
    ], {"items": len(items), "types": types})

@check("S2")
def core_business(ctx: CheckContext) -> Verdict:
    nodes = business_nodes(ctx.page)
    if not nodes:
        return Verdict(FAIL, ["No LocalBusiness/Organization-style schema found"])
    node = nodes[0]
    found = [f for f in BUSINESS_ESSENTIALS if node.data.get(f)]
    details = {"types": list(node.types), "essentials": found}
    evidence = [
        f"{'/'.join(node.types)} schema found with {len(found)}/{len(BUSINESS_ESSENTIALS)} essentials",
        f"Found: {', '.join(found) or 'none'}",
        _short_json(node.data),
    ]
    if len(found) >= 3:
        return Verdict(PASS, evidence, details)
    return Verdict(PARTIAL, evidence, details)

def _type_count_verdict(kind: str, found: List[str]) -> Verdict:
    details = {"types": found}
    if len(found) >= 2:
        return Verdict(PASS, [f"Found {len(found)} {kind} types: {', '.join(found)}"], details)
    if found:
        return Verdict(PARTIAL, [f"Found 1 {kind} type: {found[0]}"], details)
    return Verdict(FAIL, [f"No {kind} types found"], details)

@check("S3")
def content_enhancement(ctx: CheckContext) -> Verdict:
    return _type_count_verdict("content enhancement", types_present(ctx.page, CONTENT_ENHANCEMENT_TYPES))

@check("S4")
def schema_freshness(ctx: CheckContext) -> Verdict:
    raw = schema_date_modified(ctx.page)
    if not raw:
        return Verdict(FAIL, ["No dateModified found in schema"])
    when = dates.parse_date(raw)
    if when is None:
        return Verdict(FAIL, [f"Invalid dateModified format: {raw}"])
    age = dates.days_since(when, ctx.now)
    details = {"date_modified": raw, "days": age}
    if dates.is_fresh(when, ctx.now):
        return Verdict(PASS, [f"Content modified {age} days ago", f"Date: {raw}"], details)
    return Verdict(FAIL, [
        f"Content modified {age} days ago (older than {dates.FRESH_DAYS} days)",
        f"Date: {raw}",
    ], details)

@check("S5")
def contact_fields(ctx: CheckContext) -> Verdict:
    found = contact_fields_present(ctx.page)
    details = {"fields": found}
    if len(found) >= 3:
        return Verdict(PASS, [f"Found {len(found)} contact fields: {', '.join(found)}"], details)
    if found:
        return Verdict(PARTIAL, [f"Found {len(found)} contact field(s): {', '.join(found)}"], details)
    return Verdict(FAIL, ["No contact fields found in structured data"], details)

@check("S6")
def rich_content(ctx: CheckContext) -> Verdict:
    return _type_count_verdict("rich content", types_present(ctx.page, RICH_CONTENT_TYPES))
