#!/usr/bin/env python3
"""Print the canonical catalog currently in the DB. Read-only."""
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
from modshandler.catalog import list_catalog


def main(argv: list[str]) -> int:
    ap = argparse.ArgumentParser(description="Inspect characters and costumes in the DB")
    ap.add_argument("--json", action="store_true")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    args = ap.parse_args(argv)
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    with get_session() as session:
        data = list_catalog(session)
    if args.json:
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0
    by_char: dict[int, list[str]] = {}
    for co in data["costumes"]:
        by_char.setdefault(co["character_id"], []).append(co["display_name"])
    for ch in data["characters"]:
        costumes = ", ".join(by_char.get(ch["id"], [])) or "-"
        print(f"{ch['id']}\t{ch['slug']}\t{ch['display_name']}\t[{costumes}]")
    print(f"characters={len(data['characters'])} costumes={len(data['costumes'])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
