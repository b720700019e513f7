from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import html as htmlmod

from pagescore.models import FAIL, PARTIAL, PASS, DerivedFacts, FetchResult, ParsedPage
from pagescore.services.lookups import RobotsPolicy, SitemapInfo

@dataclass(frozen=True)
class CheckContext:
    """Everything an evaluator may look at for one analysis."""
    raw: FetchResult
    page: ParsedPage
    facts: DerivedFacts
    robots: RobotsPolicy
    sitemap: SitemapInfo
    now: datetime
    rendered: Optional[FetchResult] = None
    rendered_page: Optional[ParsedPage] = None
    render_error: Optional[str] = None

@dataclass
class Verdict:
    status: str
    evidence: List[str]
    details: Dict[str, Any] = field(default_factory=dict)

Evaluator = Callable[[CheckContext], Verdict]

REGISTRY: Dict[str, Evaluator] = {}

def check(check_id: str) -> Callable[[Evaluator], Evaluator]:
    def register(fn: Evaluator) -> Evaluator:
        if check_id in REGISTRY:
            raise ValueError(f"evaluator for {check_id} registered twice")
        REGISTRY[check_id] = fn
        return fn
    return register

def tiered(hits: int, total: int) -> str:
    """100% -> pass, more than half -> partial, else fail. Nothing to check is a pass."""
    if total == 0 or hits == total:
        return PASS
    if hits / total > 0.5:
        return PARTIAL
    return FAIL

def pct(hits: int, total: int) -> int:
    return round(100 * hits / total) if total else 100

def contains_ci(haystack: Optional[str], needle: Optional[str]) -> bool:
    return bool(haystack and needle and needle.lower() in haystack.lower())

def quote(text: Optional[str], limit: int = 120) -> str:
    s = text or ""
    if len(s) > limit:
        s = s[: limit - 3] + "..."
    return f'"{s}"'

def tag_snippet(tag: str, attrs: Dict[str, Optional[str]], text: Optional[str] = None) -> str:
    """Escaped HTML fragment for display, e.g. &lt;title&gt;Joe&#x27;s&lt;/title&gt;."""
    rendered = "".join(f' {k}="{v}"' for k, v in attrs.items() if v is not None)
    raw = f"<{tag}{rendered}>"
    if text is not None:
        raw += f"{text}</{tag}>"
    return htmlmod.escape(raw)
