"""Selector cascade and fetch fallback, with injected fetchers (no network, no browser)."""
from __future__ import annotations

import logging
import unittest

import pytest

from db.models import Character, Costume
from modshandler.errors import ScrapeError
from modshandler.scraper import (
    FALLBACK_SELECTORS,
    PRIMARY_SELECTORS,
    CatalogSource,
    SelectorSet,
    extract_characters,
    extract_with_fallbacks,
    fetch_catalog,
    fetch_source_html,
    refresh_catalog,
    slugify,
)

PRIMARY_HTML = """
<html><body>
  <div class="col-mobile-6">
    <h4><a href="/en/c/erza">Erza</a></h4>
    <ul class="list-group">
      <li><a>Armored</a></li>
      <li><a> Casual Wear </a></li>
      <li><a></a></li>
    </ul>
  </div>
  <div class="col-mobile-6">
    <h4><a href="/en/c/hana">Hana</a></h4>
    <ul class="list-group"></ul>
  </div>
  <div class="col-mobile-6"><p>advert, no name</p></div>
</body></html>
"""

# Only the second fallback set (generic card columns) matches this markup
SECOND_FALLBACK_HTML = """
<html><body>
  <div class="col-md-4">
    <h5><a>Luna Noir</a></h5>
    <ul class="costumes"><li><span>Maid Uniform</span></li></ul>
  </div>
</body></html>
"""

EMPTY_HTML = "<html><body><p>Loading...</p></body></html>"


class TestSlugify(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Summer Outfit"), "summer-outfit")
        self.assertEqual(slugify("  Érza -- Scarlet!! "), "erza-scarlet")
        self.assertEqual(slugify(""), "")


class TestExtract(unittest.TestCase):
    def test_primary_selectors(self):
        items = extract_characters(PRIMARY_HTML, PRIMARY_SELECTORS)
        self.assertEqual([c.slug for c in items], ["erza", "hana"])
        self.assertEqual([(c.slug, c.display_name) for c in items[0].costumes],
                         [("armored", "Armored"), ("casual-wear", "Casual Wear")])
        self.assertEqual(items[1].costumes, [])

    def test_primary_wins_cascade(self):
        items, label = extract_with_fallbacks(PRIMARY_HTML)
        self.assertEqual(label, "primary")
        self.assertEqual(len(items), 2)

    def test_second_fallback_used_when_earlier_sets_are_empty(self):
        self.assertEqual(extract_characters(SECOND_FALLBACK_HTML, PRIMARY_SELECTORS), [])
        self.assertEqual(extract_characters(SECOND_FALLBACK_HTML, FALLBACK_SELECTORS[0]), [])
        items, label = extract_with_fallbacks(SECOND_FALLBACK_HTML)
        self.assertEqual(label, "fallback #2")
        self.assertEqual(items[0].slug, "luna-noir")
        self.assertEqual(items[0].costumes[0].slug, "maid-uniform")

    def test_all_sets_empty_is_an_error(self):
        with self.assertRaises(ScrapeError):
            extract_with_fallbacks(EMPTY_HTML)

    def test_invalid_selector_is_an_error(self):
        bad = SelectorSet(char="div[", char_name="a", costume="li", costume_name="a")
        with self.assertRaises(ScrapeError):
            extract_characters(PRIMARY_HTML, bad)


def _failing_render(url, wait_selector):
    raise RuntimeError("chromium not installed")


def test_render_failure_falls_back_to_static():
    calls = []

    def fetch(url):
        calls.append(url)
        return PRIMARY_HTML

    html = fetch_source_html(CatalogSource(url="https://example.invalid/costumes"), _failing_render, fetch)
    assert html == PRIMARY_HTML
    assert calls == ["https://example.invalid/costumes"]


def test_render_success_skips_static():
    def fetch(url):
        raise AssertionError("static fetch should not run")

    src = CatalogSource(url="https://example.invalid/costumes")
    assert fetch_source_html(src, lambda url, ws: PRIMARY_HTML, fetch) == PRIMARY_HTML


def test_fetch_catalog_concatenates_sources_in_order():
    pages = {"https://a.invalid": PRIMARY_HTML, "https://b.invalid": SECOND_FALLBACK_HTML}
    sources = [CatalogSource(url=u) for u in pages]
    items = fetch_catalog(sources, lambda url, ws: pages[url], lambda url: "")
    assert [c.slug for c in items] == ["erza", "hana", "luna-noir"]


def test_fetch_catalog_error_names_the_source():
    sources = [CatalogSource(url="https://a.invalid"), CatalogSource(url="https://broken.invalid")]
    pages = {"https://a.invalid": PRIMARY_HTML, "https://broken.invalid": EMPTY_HTML}
    with pytest.raises(ScrapeError, match="broken.invalid"):
        fetch_catalog(sources, lambda url, ws: pages[url], lambda url: "")


def test_static_fetch_error_propagates():
    def fetch(url):
        raise ScrapeError("GET failed: 404")

    with pytest.raises(ScrapeError, match="404"):
        fetch_catalog([CatalogSource(url="https://a.invalid")], _failing_render, fetch)


def test_refresh_catalog_syncs(session):
    src = [CatalogSource(url="https://a.invalid")]
    report = refresh_catalog(session, src, lambda url, ws: PRIMARY_HTML, lambda url: "")
    assert (report.sources, report.characters, report.costumes) == (1, 2, 2)
    assert sorted(c.slug for c in session.query(Character)) == ["erza", "hana"]
    assert session.query(Costume).count() == 2
    # a second refresh is idempotent
    refresh_catalog(session, src, lambda url, ws: PRIMARY_HTML, lambda url: "")
    assert session.query(Costume).count() == 2


def test_only_the_productive_selector_set_reports_a_match(caplog):
    caplog.set_level(logging.INFO, logger="modshandler.scraper")
    extract_with_fallbacks(SECOND_FALLBACK_HTML)
    messages = [r.getMessage() for r in caplog.records]
    assert "primary selectors: no match" in messages
    assert "fallback #1 selectors: no match" in messages
    assert not any(m.startswith(("primary matched", "fallback #1 matched")) for m in messages)
    assert any(m.startswith("fallback #2 matched: 1 characters") for m in messages)


def test_names_without_a_slug_are_skipped():
    html = """
    <div class="col-mobile-6">
      <h4><a>!!! ???</a></h4>
      <ul class="list-group"><li><a>Armored</a></li></ul>
    </div>
    <div class="col-mobile-6">
      <h4><a>Erza</a></h4>
      <ul class="list-group"><li><a>~~~</a></li><li><a>Casual</a></li></ul>
    </div>
    """
    items = extract_characters(html, PRIMARY_SELECTORS)
    assert [c.slug for c in items] == ["erza"]
    assert [c.slug for c in items[0].costumes] == ["casual"]
