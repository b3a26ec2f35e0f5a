#!/usr/bin/env python3
"""Sync the canonical character/costume catalog from a JSON file into the DB.

Accepts a bare array of characters or a {"characters": [...]} wrapper.
Dry-run by default (parse + summary only); pass --apply to write.
Use --builtin to load the catalog shipped in vocab/catalog.json.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.session import get_session
from modshandler.catalog import load_builtin_catalog, load_catalog_file, sync_catalog
from modshandler.errors import ModsHandlerError


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Sync canonical catalog JSON into the DB (dry-run by default)")
    ap.add_argument("path", nargs="?", help="Catalog JSON file")
    ap.add_argument("--builtin", action="store_true", help="Use vocab/catalog.json")
    ap.add_argument("--apply", action="store_true", help="Apply changes to the DB (default: dry-run)")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    if not args.builtin and not args.path:
        print("Provide a catalog path or --builtin", file=sys.stderr)
        return 2
    try:
        records = load_builtin_catalog() if args.builtin else load_catalog_file(Path(args.path))
    except ModsHandlerError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2
    n_costumes = sum(len(r.costumes) for r in records)
    if not args.apply:
        print(f"Dry-run: would sync characters={len(records)} costumes={n_costumes}")
        return 0
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
