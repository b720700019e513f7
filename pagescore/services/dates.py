from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
import email.utils as eut
import re

FRESH_DAYS = 180

_MONTHS = "january|february|march|april|may|june|july|august|september|october|november|december"

VISIBLE_DATE_RE = re.compile(
    r"\b(updated|modified|last\s+updated|revised)\s*:?\s*"
    r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2}|"
    r"(?:" + _MONTHS + r")\s+\d{1,2},?\s+\d{4})",
    re.IGNORECASE,
)

_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%m-%d-%y",
    "%B %d, %Y",
    "%B %d %Y",
)

def _aware(d: datetime) -> datetime:
    return d if d.tzinfo else d.replace(tzinfo=timezone.utc)

def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO-8601, RFC 2822 or common human date strings into an aware datetime."""
    if not isinstance(value, str) or not value.strip():
        return None
    s = " ".join(value.split())
    try:
        return _aware(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _FORMATS:
        try:
            return _aware(datetime.strptime(s, fmt))
        except ValueError:
            continue
    try:
        return _aware(eut.parsedate_to_datetime(s))
    except (TypeError, ValueError, IndexError):
        return None

def days_since(when: datetime, now: datetime) -> int:
    return (now - when).days

def is_fresh(when: datetime, now: datetime, max_days: int = FRESH_DAYS) -> bool:
    return days_since(when, now) <= max_days

def find_visible_dates(text: str) -> List[str]:
    """Whole "Updated: <date>" phrases found in visible text, in document order."""
    return [m.group(0) for m in VISIBLE_DATE_RE.finditer(text or "")]

def visible_date_value(phrase: str) -> Optional[str]:
    m = VISIBLE_DATE_RE.search(phrase or "")
    return m.group(2) if m else None
