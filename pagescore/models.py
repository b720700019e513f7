
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from pagescore.services.jsonld_extract import SchemaNode

# Check statuses
PASS = "pass"
PARTIAL = "partial"
FAIL = "fail"
NA = "na"
STATUSES = (PASS, PARTIAL, FAIL, NA)

@dataclass(frozen=True)
class FetchResult:
    html: str
    final_url: str
    status_code: int

@dataclass(frozen=True)
class HeadingFact:
    level: int
    text: str
    anchor_id: Optional[str] = None

@dataclass(frozen=True)
class ImageFact:
    src: str
    alt_text: Optional[str] = None

@dataclass(frozen=True)
class LinkFact:
    href: str
    anchor_text: str

@dataclass(frozen=True)
class FormControlFact:
    tag: str
    labelled: bool
    snippet: str

@dataclass(frozen=True)
class VideoFact:
    src: str
    has_captions: bool
    has_transcript: bool
    snippet: str

@dataclass(frozen=True)
class ParsedPage:
    title: Optional[str] = None
    description: Optional[str] = None
    canonical_url: Optional[str] = None
    noindex: bool = False
    robots_meta: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_url: Optional[str] = None
    og_image: Optional[str] = None
    headings: Tuple[HeadingFact, ...] = ()
    primary_heading: Optional[str] = None
    all_level1_headings: Tuple[str, ...] = ()
    images: Tuple[ImageFact, ...] = ()
    links: Tuple[LinkFact, ...] = ()
    structured_data_items: Tuple[Dict[str, Any], ...] = ()
    schema_nodes: Tuple[SchemaNode, ...] = ()
    body_text: str = ""
    list_count: int = 0
    nav_count: int = 0
    form_controls: Tuple[FormControlFact, ...] = ()
    videos: Tuple[VideoFact, ...] = ()

    @property
    def word_count(self) -> int:
        return len(self.body_text.split())

@dataclass(frozen=True)
class Address:
    street: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None

@dataclass(frozen=True)
class Geo:
    lat: float
    lon: float

@dataclass(frozen=True)
class DerivedFacts:
    brand: Optional[str] = None
    locality: Optional[str] = None
    address: Optional[Address] = None
    geo: Optional[Geo] = None

@dataclass
class CheckResult:
    id: str
    status: str
    score: float
    evidence: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

@dataclass
class CategoryResult:
    id: str
    label: str
    checks: List[CheckResult]
    score: float
    max_score: float
    percentage: float

@dataclass
class Scorecard:
    url: str
    final_url: str
    rubric_version: str
    total_score: int
    categories: List[CategoryResult]
    analyzed_at: str
    phase: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
