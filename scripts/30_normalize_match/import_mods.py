#!/usr/bin/env python3
"""Import the mods of one author folder.

Builds a draft per mod folder (inferred type, author, and character/costume
matched against the catalog) and prints them for review. Use --out to save
the drafts as JSON, edit them, then apply with commit_drafts.py. Pass
--apply to write the drafts as-is.
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
from modshandler.classifier import AUTHOR_ALIASES, TYPE_ALIASES, load_alias_table
from modshandler.errors import ModsHandlerError
from modshandler.scanner import commit, dry_run


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Draft (and optionally commit) mods found under an author folder")
    ap.add_argument("author_dir", help="Folder whose immediate subfolders are mods")
    ap.add_argument("--author", help="Author override for every draft")
    ap.add_argument("--download-url", help="Download URL applied to every draft")
    ap.add_argument("--type-aliases", help="YAML alias table appended to the built-in type aliases")
    ap.add_argument("--author-aliases", help="YAML alias table appended to the built-in author aliases")
    ap.add_argument("--out", help="Write drafts JSON to this path")
    ap.add_argument("--apply", action="store_true", help="Commit drafts to the DB (default: dry-run)")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    type_table = TYPE_ALIASES
    if args.type_aliases:
        type_table = type_table.extended(load_alias_table(Path(args.type_aliases), TYPE_ALIASES.default))
    author_table = AUTHOR_ALIASES
    if args.author_aliases:
        author_table = author_table.extended(load_alias_table(Path(args.author_aliases), AUTHOR_ALIASES.default))

    try:
        with get_session() as session:
            unreadable: list[str] = []
            drafts = dry_run(session, args.author_dir, args.author, args.download_url, type_table, author_table,
                             errors=unreadable)
            if unreadable:
                print(f"[error] could not read: {', '.join(unreadable)}", file=sys.stderr)
                return 1
            for d in drafts:
                print(f"{d.display_name}: type={d.mod_type.value} author={d.author} "
                      f"character={d.character_id} costume={d.costume_id} conf={d.infer_confidence:.2f}")
            if args.out:
                payload = [d.model_dump(mode="json") for d in drafts]
                Path(args.out).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
                print(f"Wrote {len(drafts)} drafts to {args.out}")
            if not args.apply:
                print(f"Dry-run: drafts={len(drafts)}. Use --apply to write.")
                return 0
            inserted, updated = commit(session, drafts)
    except ModsHandlerError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    print(f"Committed: inserted={inserted} updated={updated}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
