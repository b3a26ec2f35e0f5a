#!/usr/bin/env python3
"""Commit a reviewed drafts JSON file (as written by import_mods.py --out)."""
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

from pydantic import TypeAdapter, ValidationError

from db.session import get_session
from modshandler.errors import ModsHandlerError
from modshandler.scanner import commit, dedupe_drafts
from modshandler.schemas import DraftMod


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Commit reviewed mod drafts (dry-run by default)")
    ap.add_argument("drafts", help="Drafts JSON file")
    ap.add_argument("--apply", action="store_true", help="Apply changes to the DB (default: dry-run)")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    try:
        data = json.loads(Path(args.drafts).read_text(encoding="utf-8"))
        drafts = TypeAdapter(list[DraftMod]).validate_python(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"[error] cannot read drafts: {e}", file=sys.stderr)
        return 2
    if not args.apply:
        print(f"Dry-run: drafts={len(drafts)} unique_paths={len(dedupe_drafts(drafts))}. Use --apply to write.")
        return 0
    try:
        with get_session() as session:
            inserted, updated = commit(session, drafts)
    except ModsHandlerError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    print(f"Committed: inserted={inserted} updated={updated}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
