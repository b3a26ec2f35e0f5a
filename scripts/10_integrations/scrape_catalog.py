#!/usr/bin/env python3
"""Scrape the canonical catalog from the configured web sources.

Renders each page in headless Chromium (falls back to a plain GET), then
tries the primary and fallback selector sets in order. Dry-run by default:
prints a summary and optionally writes the scraped records (--out) in the
same JSON shape sync_catalog.py accepts. Pass --apply to sync into the DB.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.session import get_session
from modshandler.catalog import sync_catalog
from modshandler.errors import ModsHandlerError
from modshandler.scraper import DEFAULT_SOURCES, CatalogSource, fetch_catalog


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Scrape characters/costumes from the catalog web source")
    ap.add_argument("--url", action="append", help="Override source URL(s); primary/fallback selectors still apply")
    ap.add_argument("--out", help="Write scraped records as {\"characters\": [...]} JSON")
    ap.add_argument("--apply", action="store_true", help="Sync the scraped catalog into the DB")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    sources = tuple(CatalogSource(url=u) for u in args.url) if args.url else DEFAULT_SOURCES
    try:
        records = fetch_catalog(sources)
    except ModsHandlerError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    print(f"Scraped sources={len(sources)} characters={len(records)} "
          f"costumes={sum(len(r.costumes) for r in records)}")
    if args.out:
        out_path = Path(args.out)
        payload = {"characters": [r.model_dump() for r in records]}
        out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Wrote {out_path}")
    if args.apply:
        try:
            with get_session() as session:
                report = sync_catalog(session, records)
        except ModsHandlerError as e:
            print(f"[error] {e}", file=sys.stderr)
            return 1
        print(f"Committed: characters={report.characters} costumes={report.costumes}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
