from __future__ import annotations
from typing import Any, List, Optional
import math
import re

from pagescore.models import Address, DerivedFacts, Geo, ParsedPage

# "in Chicago", "near Oak Park" (case-insensitive, so lowercase words match too)
LOCALITY_PREPOSITION_RE = re.compile(r"\b(in|at|near)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)", re.IGNORECASE)

# "Oak Park, IL"
LOCALITY_STATE_RE = re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*),\s*([A-Z]{2})")

# "123 Main St, Springfield, IL 62701"
ADDRESS_STR_RE = re.compile(
    r"(?P<street>.+?),\s*(?P<city>[A-Za-z .'-]+),\s*(?P<region>[A-Z]{2})\s*(?P<zip>\d{5}(?:-\d{4})?)?"
)

def _brand_candidates(page: ParsedPage) -> List[str]:
    out: List[str] = [page.title or "", page.primary_heading or ""]
    for item in page.structured_data_items:
        cand = item.get("name") or item.get("@type")
        if isinstance(cand, str):
            out.append(cand)
    return [c for c in out if c.strip()]

def _schema_localities(page: ParsedPage) -> List[str]:
    out: List[str] = []
    for item in page.structured_data_items:
        addr = item.get("address")
        if isinstance(addr, dict):
            loc = addr.get("addressLocality") or addr.get("locality")
            if isinstance(loc, str) and loc.strip():
                out.append(loc.strip())
        elif isinstance(addr, str):
            parsed = parse_address_str(addr)
            if parsed and parsed.locality:
                out.append(parsed.locality)
    return out

def extract_brand(page: ParsedPage) -> Optional[str]:
    for source in _brand_candidates(page):
        words = source.split()
        if words:
            return words[0]
    return None

def match_locality(text: str) -> Optional[str]:
    m = LOCALITY_PREPOSITION_RE.search(text or "")
    if m:
        return m.group(2)
    m = LOCALITY_STATE_RE.search(text or "")
    if m:
        return m.group(1)
    return None

def extract_locality(page: ParsedPage) -> Optional[str]:
    for source in _brand_candidates(page):
        found = match_locality(source)
        if found:
            return found
    schema = _schema_localities(page)
    return schema[0] if schema else None

def parse_address_str(addr: str) -> Optional[Address]:
    s = " ".join((addr or "").split())
    if not s:
        return None
    m = ADDRESS_STR_RE.search(s)
    if not m:
        return Address(street=s)
    return Address(
        street=m.group("street").strip(),
        locality=m.group("city").strip(),
        region=m.group("region").strip(),
        postal=m.group("zip"),
    )

def _s(v: Any) -> Optional[str]:
    if isinstance(v, dict):
        v = v.get("name")
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v.strip() if isinstance(v, str) and v.strip() else None

def _address_from(value: Any) -> Optional[Address]:
    if isinstance(value, list) and value:
        value = value[0]
    if isinstance(value, str):
        return parse_address_str(value)
    if isinstance(value, dict):
        return Address(
            street=_s(value.get("streetAddress")),
            locality=_s(value.get("addressLocality")),
            region=_s(value.get("addressRegion")),
            postal=_s(value.get("postalCode")),
            country=_s(value.get("addressCountry")),
        )
    return None

def _geo_from(value: Any) -> Optional[Geo]:
    if not isinstance(value, dict):
        return None
    try:
        lat = float(value.get("latitude"))
        lon = float(value.get("longitude"))
    except (TypeError, ValueError):
        return None
    if math.isnan(lat) or math.isnan(lon):
        return None
    return Geo(lat=lat, lon=lon)

def derive_facts(page: ParsedPage) -> DerivedFacts:
    """
    Heuristic business facts. Brand is the first token of the first non-empty
    title / H1 / schema name; locality comes from "in X" or "X, ST" patterns,
    then from a schema address. The first item carrying an address or geo wins.
    """
    address: Optional[Address] = None
    geo: Optional[Geo] = None
    for item in page.structured_data_items:
        if address is None and item.get("address"):
            address = _address_from(item.get("address"))
        if geo is None and item.get("geo"):
            geo = _geo_from(item.get("geo"))

    return DerivedFacts(
        brand=extract_brand(page),
        locality=extract_locality(page),
        address=address,
        geo=geo,
    )
