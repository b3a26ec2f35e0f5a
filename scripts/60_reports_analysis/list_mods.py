#!/usr/bin/env python3
"""List mods, newest first, with optional filters. Read-only."""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.session import get_session
from modshandler.mods import list_mods
from modshandler.schemas import ModFilter


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="List mods in the DB")
    ap.add_argument("--character-id", type=int)
    ap.add_argument("--costume-id", type=int)
    ap.add_argument("--author", help="Case-insensitive substring")
    ap.add_argument("-q", "--query", help="Case-insensitive substring of display name or folder path")
    ap.add_argument("--json", action="store_true", help="Print rows as JSON")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    flt = ModFilter(character_id=args.character_id, costume_id=args.costume_id, author=args.author, q=args.query)
    with get_session() as session:
        rows = list_mods(session, flt)
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in rows], indent=2, ensure_ascii=False))
        return 0
    for r in rows:
        print(f"{r.id}\t{r.mod_type.value}\t{r.author}\t{r.display_name}\t{r.folder_path}")
    print(f"Total: {len(rows)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
