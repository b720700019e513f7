from __future__ import annotations
from typing import List, Optional, Tuple
import html as htmlmod
import re

from bs4 import BeautifulSoup, Tag

from pagescore.models import (
    FormControlFact,
    HeadingFact,
    ImageFact,
    LinkFact,
    ParsedPage,
    VideoFact,
)
from pagescore.services.jsonld_extract import classify_node, extract_jsonld_from_soup

STRIP_TAGS = {"script", "style", "noscript", "template"}
BLOCK_TAGS = {"nav", "header", "footer", "aside"}

# Probed in order; the longest text wins
MAIN_SELECTORS = [
    "main",
    "article",
    "[role=main]",
    ".content",
    ".main-content",
    "#content",
    "#main",
]

NON_LABELLED_INPUTS = {"hidden", "submit", "button", "image", "reset"}

_WS_RE = re.compile(r"\s+")

def _soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html or "", "lxml")
    except Exception:
        return BeautifulSoup(html or "", "html.parser")

def collapse_ws(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()

def _attr(el: Optional[Tag], name: str) -> Optional[str]:
    if el is None:
        return None
    val = el.get(name)
    if isinstance(val, list):
        val = " ".join(val)
    if isinstance(val, str) and val.strip():
        return val.strip()
    return None

def _meta(soup: BeautifulSoup, **attrs) -> Optional[str]:
    return _attr(soup.find("meta", attrs=attrs), "content")

def _text(el: Tag) -> str:
    return collapse_ws(el.get_text(" "))

def outer_snippet(el: Tag, limit: int = 200) -> str:
    """Escaped opening tag of an element, safe to show in evidence."""
    attrs = " ".join(
        f'{k}="{" ".join(v) if isinstance(v, list) else v}"' for k, v in el.attrs.items()
    )
    raw = f"<{el.name}{' ' + attrs if attrs else ''}>"
    if len(raw) > limit:
        raw = raw[: limit - 3] + "..."
    return htmlmod.escape(raw)

def _headings(soup: BeautifulSoup) -> List[HeadingFact]:
    out: List[HeadingFact] = []
    for el in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        out.append(HeadingFact(level=int(el.name[1]), text=_text(el), anchor_id=_attr(el, "id")))
    return out

def _images(soup: BeautifulSoup) -> List[ImageFact]:
    out: List[ImageFact] = []
    for el in soup.find_all("img"):
        src = _attr(el, "src") or _attr(el, "data-src")
        if not src:
            continue
        alt = el.get("alt")
        out.append(ImageFact(src=src, alt_text=alt.strip() if isinstance(alt, str) else None))
    return out

def _links(soup: BeautifulSoup) -> List[LinkFact]:
    out: List[LinkFact] = []
    for el in soup.find_all("a", href=True):
        href = el["href"].strip()
        text = _text(el)
        if href and text:
            out.append(LinkFact(href=href, anchor_text=text))
    return out

def _form_controls(soup: BeautifulSoup) -> List[FormControlFact]:
    label_for = {lab["for"].strip() for lab in soup.find_all("label", attrs={"for": True})}
    out: List[FormControlFact] = []
    for el in soup.find_all(["input", "select", "textarea"]):
        if el.name == "input" and (_attr(el, "type") or "text").lower() in NON_LABELLED_INPUTS:
            continue
        el_id = _attr(el, "id")
        labelled = bool(
            (el_id and el_id in label_for)
            or el.find_parent("label") is not None
            or _attr(el, "aria-label")
            or _attr(el, "aria-labelledby")
        )
        out.append(FormControlFact(tag=el.name, labelled=labelled, snippet=outer_snippet(el)))
    return out

def _videos(soup: BeautifulSoup) -> List[VideoFact]:
    out: List[VideoFact] = []
    for el in soup.find_all("video"):
        src = _attr(el, "src")
        if not src:
            source = el.find("source")
            src = _attr(source, "src") or ""
        has_captions = any(
            (_attr(tr, "kind") or "").lower() in ("captions", "subtitles")
            for tr in el.find_all("track")
        )
        nearby = ""
        if el.parent is not None:
            nearby = el.parent.get_text(" ")
        sibling = el.find_next_sibling()
        if sibling is not None:
            nearby += " " + sibling.get_text(" ")
        out.append(VideoFact(
            src=src,
            has_captions=has_captions,
            has_transcript="transcript" in nearby.lower(),
            snippet=outer_snippet(el),
        ))
    return out

def extract_main_text(soup: BeautifulSoup) -> Tuple[str, int]:
    """
    Strip scripts/styles and page chrome, then return the text of the largest
    main-content container (or the body) and the number of ul/ol/table elements in it.
    Mutates the soup.
    """
    for tg in STRIP_TAGS | BLOCK_TAGS:
        for el in soup.find_all(tg):
            el.decompose()

    best_text = ""
    best_lists = 0
    for selector in MAIN_SELECTORS:
        matches = soup.select(selector)
        if not matches:
            continue
        text = collapse_ws(" ".join(m.get_text(" ") for m in matches))
        if len(text) > len(best_text):
            best_text = text
            best_lists = sum(len(m.find_all(["ul", "ol", "table"])) for m in matches)

    if not best_text:
        root = soup.body or soup
        best_text = collapse_ws(root.get_text(" "))
        best_lists = len(root.find_all(["ul", "ol", "table"]))
    return best_text, best_lists

def parse_html(html: str) -> ParsedPage:
    """
    Turn an HTML document into a ParsedPage. Never raises on malformed markup;
    anything missing simply stays unset.
    """
    soup = _soup(html)

    title_el = soup.find("title")
    title = _text(title_el) if title_el is not None else ""
    robots_meta = _meta(soup, name="robots")

    headings = _headings(soup)
    h1s = [h.text for h in headings if h.level == 1]
    items = extract_jsonld_from_soup(soup)
    nav_count = len({id(el) for el in soup.find_all("nav") + soup.select("[role=navigation]")})

    images = _images(soup)
    links = _links(soup)
    forms = _form_controls(soup)
    videos = _videos(soup)

    body_text, list_count = extract_main_text(soup)

    return ParsedPage(
        title=title or None,
        description=_meta(soup, name="description"),
        canonical_url=_attr(soup.find("link", rel="canonical"), "href"),
        noindex="noindex" in (robots_meta or "").lower(),
        robots_meta=robots_meta,
        og_title=_meta(soup, property="og:title"),
        og_description=_meta(soup, property="og:description"),
        og_url=_meta(soup, property="og:url"),
        og_image=_meta(soup, property="og:image"),
        headings=tuple(headings),
        primary_heading=(h1s[0] or None) if h1s else None,
        all_level1_headings=tuple(h1s),
        images=tuple(images),
        links=tuple(links),
        structured_data_items=tuple(items),
        schema_nodes=tuple(classify_node(i) for i in items),
        body_text=body_text,
        list_count=list_count,
        nav_count=nav_count,
        form_controls=tuple(forms),
        videos=tuple(videos),
    )
