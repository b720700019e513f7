
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from bs4 import BeautifulSoup
import json

# Types a page can use to describe the business itself. Matching is substring-based
# on each @type token, so "ClothingStore" counts as "Store".
CORE_BUSINESS_TYPES = (
    "LocalBusiness",
    "Organization",
    "Store",
    "Restaurant",
    "ProfessionalService",
    "FoodEstablishment",
    "LodgingBusiness",
    "MedicalBusiness",
    "AutomotiveBusiness",
    "HealthAndBeautyBusiness",
    "HomeAndConstructionBusiness",
    "FinancialService",
    "LegalService",
)

CONTENT_ENHANCEMENT_TYPES = (
    "FAQPage",
    "Product",
    "Service",
    "Article",
    "HowTo",
    "Event",
    "Offer",
    "Menu",
    "Course",
    "Recipe",
)

RICH_CONTENT_TYPES = (
    "Review",
    "AggregateRating",
    "ImageObject",
    "VideoObject",
    "BreadcrumbList",
)

@dataclass(frozen=True)
class SchemaNode:
    types: Tuple[str, ...]
    data: Dict[str, Any]

    def matches_any(self, allowed: Tuple[str, ...]) -> List[str]:
        """Return the allowed type names found inside this node's @type tokens."""
        hits: List[str] = []
        for token in self.types:
            for name in allowed:
                if name in token and name not in hits:
                    hits.append(name)
        return hits

@dataclass(frozen=True)
class BusinessNode(SchemaNode):
    name: Optional[str] = None
    url: Optional[str] = None
    telephone: Optional[str] = None
    address: Any = None
    logo: Any = None
    same_as: Tuple[str, ...] = ()
    date_modified: Optional[str] = None

@dataclass(frozen=True)
class GenericNode(SchemaNode):
    pass

def node_types(obj: Dict[str, Any]) -> Tuple[str, ...]:
    t = obj.get("@type")
    if isinstance(t, str):
        return (t,)
    if isinstance(t, list):
        return tuple(x for x in t if isinstance(x, str))
    return ()

def _str_or_none(v: Any) -> Optional[str]:
    if isinstance(v, str) and v.strip():
        return v.strip()
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return None

def _same_as(v: Any) -> Tuple[str, ...]:
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list):
        return ()
    return tuple(s.strip() for s in v if isinstance(s, str) and s.strip())

def classify_node(obj: Dict[str, Any]) -> SchemaNode:
    types = node_types(obj)
    generic = GenericNode(types=types, data=obj)
    if not generic.matches_any(CORE_BUSINESS_TYPES):
        return generic
    return BusinessNode(
        types=types,
        data=obj,
        name=_str_or_none(obj.get("name")),
        url=_str_or_none(obj.get("url")),
        telephone=_str_or_none(obj.get("telephone")),
        address=obj.get("address"),
        logo=obj.get("logo"),
        same_as=_same_as(obj.get("sameAs")),
        date_modified=_str_or_none(obj.get("dateModified")),
    )

def _flatten(payload: Any) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    items = payload if isinstance(payload, list) else [payload]
    for item in items:
        if not isinstance(item, dict):
            continue
        graph = item.get("@graph")
        if isinstance(graph, list):
            rest = {k: v for k, v in item.items() if k not in ("@graph", "@context")}
            if rest:
                out.append(rest)
            out.extend(n for n in graph if isinstance(n, dict))
        else:
            out.append(item)
    return out

def extract_jsonld_from_soup(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            payload = json.loads(tag.string or tag.text or "")
        except ValueError:
            continue
        out.extend(_flatten(payload))
    return out
