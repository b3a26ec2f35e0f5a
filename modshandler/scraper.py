"""Canonical catalog scraper for character/costume listing pages.

The listing pages are client-side rendered and their markup drifts, so each
source is fetched with a headless browser first (falling back to a plain GET
that may only return the pre-render skeleton) and then parsed with an ordered
cascade of selector sets: the source's primary set, then each fallback in
turn until one yields at least one character.

Output is the same list of :class:`CharacterRecord` the catalog file loader
produces, so ``catalog.sync_catalog`` consumes either.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import soupsieve
from bs4 import BeautifulSoup
from playwright.sync_api import sync_playwright
from sqlalchemy.orm import Session
from unidecode import unidecode

from .catalog import sync_catalog
from .errors import ScrapeError
from .schemas import CharacterRecord, CostumeRecord, CrawlerReport

_log = logging.getLogger(__name__)

RENDER_TIMEOUT_MS = int(os.environ.get("MODSHANDLER_RENDER_TIMEOUT_MS", "15000"))
SETTLE_MS = int(os.environ.get("MODSHANDLER_SETTLE_MS", "500"))
HTTP_TIMEOUT = float(os.environ.get("MODSHANDLER_HTTP_TIMEOUT", "30"))
USER_AGENT = os.environ.get(
    "MODSHANDLER_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0 Safari/537.36",
)

_MAX_RETRIES = 2
_BACKOFF_BASE = 1.0  # seconds; doubles each retry
_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class SelectorSet:
    char: str
    char_name: str
    costume: str
    costume_name: str


PRIMARY_SELECTORS = SelectorSet(
    char="div.col-mobile-6",
    char_name="h4 > a",
    costume="ul.list-group > li",
    costume_name="a",
)

FALLBACK_SELECTORS: Tuple[SelectorSet, ...] = (
    # media-body cards
    SelectorSet(
        char=".media-body",
        char_name="h5.mb-1 > a, h4 > a, .name a",
        costume=".list-group .list-group-item",
        costume_name="a, .cname, span",
    ),
    # generic card columns
    SelectorSet(
        char="[class*='col-']",
        char_name="h4 a, h5 a, .name a",
        costume="ul.list-group li, .costume, .costumes li",
        costume_name="a, .cname, span",
    ),
)

# Present once the listing has rendered
DEFAULT_WAIT_SELECTOR = "div.col-mobile-6, .media-body, ul.list-group"


@dataclass(frozen=True)
class CatalogSource:
    url: str
    selectors: SelectorSet = PRIMARY_SELECTORS
    fallbacks: Tuple[SelectorSet, ...] = FALLBACK_SELECTORS
    wait_selector: str = DEFAULT_WAIT_SELECTOR


DEFAULT_SOURCES: Tuple[CatalogSource, ...] = (
    CatalogSource(url="https://browndust2-wiki.souseha.com/en/costumes"),
)


def slugify(text: str) -> str:
    return "-".join(t for t in _SPLIT.split(unidecode(text or "").lower()) if t)


def _compile(selectors: SelectorSet) -> None:
    for field in ("char", "char_name", "costume", "costume_name"):
        value = getattr(selectors, field)
        try:
            soupsieve.compile(value)
        except soupsieve.SelectorSyntaxError as e:
            raise ScrapeError(f"invalid {field} selector {value!r}: {e}") from e


def _first_text(node, selector: str) -> str:
    hit = node.select_one(selector)
    return hit.get_text().strip() if hit is not None else ""


def extract_characters(html: str, selectors: SelectorSet) -> List[CharacterRecord]:
    """Apply one selector set; characters or costumes without a name are skipped."""
    _compile(selectors)
    soup = BeautifulSoup(html or "", "lxml")
    out: List[CharacterRecord] = []
    for container in soup.select(selectors.char):
        name = _first_text(container, selectors.char_name)
        slug = slugify(name)
        # symbol-only names transliterate to nothing and would share one row
        if not slug:
            if name:
                _log.debug("skipping character %r: empty slug", name)
            continue
        costumes: List[CostumeRecord] = []
        for item in container.select(selectors.costume):
            cname = _first_text(item, selectors.costume_name)
            cslug = slugify(cname)
            if not cslug:
                continue
            costumes.append(CostumeRecord(slug=cslug, display_name=cname))
        out.append(CharacterRecord(slug=slug, display_name=name, costumes=costumes))
    return out


def extract_with_fallbacks(
    html: str,
    primary: SelectorSet = PRIMARY_SELECTORS,
    fallbacks: Sequence[SelectorSet] = FALLBACK_SELECTORS,
) -> Tuple[List[CharacterRecord], str]:
    """Return the first non-empty extraction and the label of the set that produced it."""
    strategies = [("primary", primary)] + [(f"fallback #{i}", s) for i, s in enumerate(fallbacks, start=1)]
    for label, selectors in strategies:
        items = extract_characters(html, selectors)
        if not items:
            _log.info("%s selectors: no match", label)
            continue
        _log.info(
            "%s matched: %d characters, %d costumes",
            label, len(items), sum(len(c.costumes) for c in items),
        )
        for ch in items[:3]:
            _log.debug("char=%r costumes=%d", ch.display_name, len(ch.costumes))
        return items, label
    raise ScrapeError("no matches with available selectors; the page may be JS-rendered or its structure changed")


def fetch_rendered_html(url: str, wait_selector: Optional[str] = DEFAULT_WAIT_SELECTOR) -> str:
    """Render `url` in headless Chromium and return the DOM once content is present."""
    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=True)
        try:
            page = browser.new_page(user_agent=USER_AGENT)
            page.goto(url, wait_until="domcontentloaded", timeout=RENDER_TIMEOUT_MS)
            page.wait_for_selector(wait_selector or "ul.list-group", timeout=RENDER_TIMEOUT_MS)
            # lazy-loaded rows keep arriving briefly after the first match
            page.wait_for_timeout(SETTLE_MS)
            return page.content()
        finally:
            browser.close()


def fetch_static_html(url: str) -> str:
    """Plain GET with browser-like headers; retries transport errors, 5xx and 429."""
    last_exc: Optional[Exception] = None
    for attempt in range(_MAX_RETRIES + 1):
        req = urllib.request.Request(url)
        req.add_header("User-Agent", USER_AGENT)
        req.add_header("Accept", "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8")
        req.add_header("Accept-Language", "en-US,en;q=0.9")
        try:
            with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
                html = resp.read().decode("utf-8", errors="replace")
                _log.info("GET %s status=%s bytes=%d", url, resp.status, len(html))
                if len(html) < 5000:
                    _log.warning("body small (%d bytes); page may be JS-rendered", len(html))
                return html
        except urllib.error.HTTPError as e:
            if 400 <= e.code < 500 and e.code != 429:
                raise ScrapeError(f"GET {url} failed: {e}") from e
            last_exc = e
        except (urllib.error.URLError, OSError) as e:
            last_exc = e
        if attempt < _MAX_RETRIES:
            delay = _BACKOFF_BASE * (2 ** attempt)
            _log.warning("GET %s failed (attempt %d/%d), retrying in %.1fs: %s",
                         url, attempt + 1, _MAX_RETRIES + 1, delay, last_exc)
            time.sleep(delay)
    raise ScrapeError(f"GET {url} failed after {_MAX_RETRIES + 1} attempts: {last_exc}")


Renderer = Callable[[str, Optional[str]], str]
Fetcher = Callable[[str], str]


def fetch_source_html(
    source: CatalogSource,
    render: Renderer = fetch_rendered_html,
    fetch: Fetcher = fetch_static_html,
) -> str:
    try:
        html = render(source.url, source.wait_selector)
        _log.info("headless render succeeded for %s, bytes=%d", source.url, len(html))
        return html
    except Exception as e:  # browser missing, launch/navigation error, wait timeout
        _log.warning("headless render failed for %s: %s; falling back to plain HTTP", source.url, e)
    return fetch(source.url)


def fetch_catalog(
    sources: Optional[Sequence[CatalogSource]] = None,
    render: Renderer = fetch_rendered_html,
    fetch: Fetcher = fetch_static_html,
) -> List[CharacterRecord]:
    """Scrape every source in order; the first failing source aborts the refresh."""
    sources = DEFAULT_SOURCES if sources is None else sources
    out: List[CharacterRecord] = []
    for src in sources:
        try:
            html = fetch_source_html(src, render, fetch)
            items, strategy = extract_with_fallbacks(html, src.selectors, src.fallbacks)
        except ScrapeError as e:
            raise ScrapeError(f"{src.url}: {e}") from e
        _log.info("source %s parsed with %s selectors: %d characters", src.url, strategy, len(items))
        out.extend(items)
    return out


def refresh_catalog(
    session: Session,
    sources: Optional[Sequence[CatalogSource]] = None,
    render: Renderer = fetch_rendered_html,
    fetch: Fetcher = fetch_static_html,
) -> CrawlerReport:
    """Scrape all sources, then sync the combined result in one transaction."""
    sources = DEFAULT_SOURCES if sources is None else sources
    items = fetch_catalog(sources, render, fetch)
    report = sync_catalog(session, items)
    return CrawlerReport(sources=len(sources), characters=report.characters, costumes=report.costumes)
