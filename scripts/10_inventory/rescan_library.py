#!/usr/bin/env python3
"""Rescan one or more mod library roots and upsert every discovered mod folder.

Expected layout: <library root>/<author folder>/<mod folder>

Existing rows keep their character/costume/type assignments; only display
name, author and updated_at are refreshed. New rows get type "other".

Dry-run by default: lists what would be discovered. Pass --apply to write.
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
from modshandler.classifier import AUTHOR_ALIASES, infer_author, load_alias_table
from modshandler.errors import ModsHandlerError
from modshandler.scanner import rescan


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Rescan mod library roots into the DB (dry-run by default)")
    ap.add_argument("roots", nargs="+", help="Library root folder(s)")
    ap.add_argument("--author-aliases", help="YAML alias table appended to the built-in author aliases")
    ap.add_argument("--apply", action="store_true", help="Apply changes to the DB (default: dry-run)")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    table = AUTHOR_ALIASES
    if args.author_aliases:
        table = table.extended(load_alias_table(Path(args.author_aliases), AUTHOR_ALIASES.default))

    if not args.apply:
        total = 0
        for root in args.roots:
            base = Path(root)
            if not base.is_dir():
                print(f"[warn] not a directory: {base}")
                continue
            for author_dir in sorted(p for p in base.iterdir() if p.is_dir()):
                mods = sorted(p.name for p in author_dir.iterdir() if p.is_dir())
                total += len(mods)
                print(f"{author_dir.name} -> {infer_author(author_dir.name, table)}: {len(mods)} mods")
        print(f"Dry-run: roots={len(args.roots)} mods={total}. Use --apply to write.")
        return 0

    try:
        with get_session() as session:
            summary = rescan(session, args.roots, table)
    except ModsHandlerError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    print(f"Committed: scanned_dirs={summary.scanned_dirs} discovered={summary.discovered_mods} "
          f"upserts={summary.upserts} errors={summary.errors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
