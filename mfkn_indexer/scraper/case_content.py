"""Best-effort extraction of structured content from MFKN ruling pages.

Ruling markup differs between records, so every field is resolved through a
fixed, ordered list of strategies. Each strategy returns ``None`` (or an empty
value) when it finds nothing and the next one is tried; a field with no
successful strategy falls back to an empty default. Nothing in this module
raises on missing structure.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from . import config
from .utils import collapse_whitespace

T = TypeVar("T")
Strategy = Callable[[BeautifulSoup], Optional[T]]

MIN_PARAGRAPH_CHARS = 10
MIN_BLOCK_CHARS = 100
MIN_FRAGMENT_CHARS = 3
MIN_HEADING_CHARS = 5
MAX_HEADING_CHARS = 100

PARAGRAPH_SELECTOR = 'p, .content p, [class*="paragraph"], [class*="text-content"] p'

PARTY_SELECTORS: Sequence[str] = (
    '[class*="party"]',
    '[class*="plaintiff"]',
    '[class*="defendant"]',
    ".parties",
    ".case-parties",
    'dt:-soup-contains("Parter") + dd',
    'dt:-soup-contains("Sager") + dd',
)

KEYWORD_SELECTORS: Sequence[str] = (
    '[class*="keyword"]',
    '[class*="tag"]',
    ".keywords",
    ".tags",
    ".case-categories",
    'meta[name="keywords"]',
    'dt:-soup-contains("Nøgleord") + dd',
    'dt:-soup-contains("Emne") + dd',
)

NOISE_SELECTOR = "script, style, nav, header, footer, .navigation, .menu"
CONTENT_CONTAINERS: Sequence[str] = (
    "main",
    ".main-content",
    ".case-content",
    ".decision-content",
    ".content",
    "body",
)

_PARTY_SPLIT_RE = re.compile(r"\s+mod\s+|\s+vs?\s+|\s+contra\s+|;\s*|,\s*")
_KEYWORD_SPLIT_RE = re.compile(r"\s*[,;|]\s*")
_COURT_TEXT_RE = re.compile(
    r"([A-ZÆØÅ][a-zA-ZæøåÆØÅ\s]+" + re.escape(config.COURT_KEYWORD) + r"[a-zA-ZæøåÆØÅ\s]*)"
)


@dataclass(frozen=True)
class CaseLink:
    text: str
    url: str
    kind: str  # "internal" | "external"


@dataclass
class CaseContent:
    paragraphs: List[str] = field(default_factory=list)
    links: List[CaseLink] = field(default_factory=list)
    court: Optional[str] = None
    parties: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    full_text: str = ""

    def links_as_dicts(self) -> List[dict]:
        return [asdict(link) for link in self.links]


def _resolve(soup: BeautifulSoup, strategies: Iterable[Strategy[T]], default: T) -> T:
    for strategy in strategies:
        result = strategy(soup)
        if result:
            return result
    return default


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _split_fragments(text: str, pattern: re.Pattern[str]) -> List[str]:
    fragments = (part.strip() for part in pattern.split(text))
    return [part for part in fragments if len(part) >= MIN_FRAGMENT_CHARS]


# Paragraphs


def _paragraph_elements(soup: BeautifulSoup) -> Optional[List[str]]:
    texts = (el.get_text().strip() for el in soup.select(PARAGRAPH_SELECTOR))
    return [text for text in texts if len(text) > MIN_PARAGRAPH_CHARS] or None


def _leaf_blocks(soup: BeautifulSoup) -> Optional[List[str]]:
    blocks: List[str] = []
    for div in soup.find_all("div"):
        if div.find("div") is not None:
            continue
        text = div.get_text().strip()
        if len(text) > MIN_BLOCK_CHARS:
            blocks.append(text)
    return blocks or None


# Links


def _anchor_links(soup: BeautifulSoup) -> Optional[List[CaseLink]]:
    base = config.BASE_URL + "/"
    base_host = urlparse(base).netloc.lower()
    links: List[CaseLink] = []
    for anchor in soup.select("a[href]"):
        href = (anchor.get("href") or "").strip()
        text = collapse_whitespace(anchor.get_text())
        if not href or not text:
            continue
        url = urljoin(base, href)
        host_relative = href.startswith("/") and not href.startswith("//")
        internal = host_relative or urlparse(url).netloc.lower() == base_host
        links.append(CaseLink(text=text, url=url, kind="internal" if internal else "external"))
    return links or None


# Court


def _court_element(soup: BeautifulSoup) -> Optional[str]:
    for span in soup.select(f'span:-soup-contains("{config.COURT_KEYWORD}")'):
        text = collapse_whitespace(span.get_text())
        if len(text) > 3:
            return text
    return None


def _court_in_body_text(soup: BeautifulSoup) -> Optional[str]:
    body = soup.body or soup
    match = _COURT_TEXT_RE.search(body.get_text(" "))
    if not match:
        return None
    return collapse_whitespace(match.group(1)) or None


# Parties and keywords


def _party_selectors(soup: BeautifulSoup) -> Optional[List[str]]:
    parties: List[str] = []
    for selector in PARTY_SELECTORS:
        for el in soup.select(selector):
            text = collapse_whitespace(el.get_text())
            if text:
                parties.extend(_split_fragments(text, _PARTY_SPLIT_RE))
    return _unique(parties) or None


def _keyword_selectors_and_headings(soup: BeautifulSoup) -> Optional[List[str]]:
    keywords: List[str] = []
    for selector in KEYWORD_SELECTORS:
        for el in soup.select(selector):
            if el.name == "meta":
                text = collapse_whitespace(el.get("content") or "")
            else:
                text = collapse_whitespace(el.get_text())
            if text:
                keywords.extend(_split_fragments(text, _KEYWORD_SPLIT_RE))

    for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        text = collapse_whitespace(heading.get_text())
        if MIN_HEADING_CHARS < len(text) < MAX_HEADING_CHARS:
            keywords.append(text)
    return _unique(keywords) or None


# Full text. Strips noise nodes from the tree in place, so it must run last.


def _content_container_text(soup: BeautifulSoup) -> Optional[str]:
    for el in soup.select(NOISE_SELECTOR):
        el.decompose()
    for selector in CONTENT_CONTAINERS:
        container = soup.select_one(selector)
        if container is not None:
            return collapse_whitespace(container.get_text(" ")) or None
    return None


def parse_case_content(html: str) -> CaseContent:
    """Extract structured content from a rendered ruling page."""

    soup = BeautifulSoup(html or "", "html5lib")

    paragraphs = _resolve(soup, (_paragraph_elements, _leaf_blocks), [])
    links = _resolve(soup, (_anchor_links,), [])
    court = _resolve(soup, (_court_element, _court_in_body_text), None)
    parties = _resolve(soup, (_party_selectors,), [])
    keywords = _resolve(soup, (_keyword_selectors_and_headings,), [])
    full_text = _resolve(
        soup,
        (_content_container_text, lambda _soup: " ".join(paragraphs) or None),
        "",
    )

    return CaseContent(
        paragraphs=paragraphs,
        links=links,
        court=court,
        parties=parties,
        keywords=keywords,
        full_text=full_text,
    )


__all__ = ["CaseContent", "CaseLink", "parse_case_content"]
