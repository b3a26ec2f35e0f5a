#!/usr/bin/env python3
"""Delete mod rows, all of them or only those under a folder.

Dry-run by default: reports how many rows would be deleted.
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

from db.models import Mod
from db.session import get_session
from modshandler.errors import ModsHandlerError
from modshandler.mods import purge_mods
from modshandler.paths import canonicalize_path, is_under


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Purge mod rows (dry-run by default)")
    ap.add_argument("--under", help="Only delete mods whose folder lies under this path")
    ap.add_argument("--apply", action="store_true", help="Apply changes to the DB (default: dry-run)")
    ap.add_argument("--db-url", help="Override MODSHANDLER_DB_URL")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.db_url:
        os.environ["MODSHANDLER_DB_URL"] = args.db_url
    with get_session() as session:
        if not args.apply:
            paths = [fp for (fp,) in session.query(Mod.folder_path)]
            if args.under:
                root = canonicalize_path(args.under)
                paths = [fp for fp in paths if is_under(fp, root)]
            print(f"Dry-run: would delete {len(paths)} mods. Use --apply to delete.")
            return 0
        try:
            n = purge_mods(session, args.under)
        except ModsHandlerError as e:
            print(f"[error] {e}", file=sys.stderr)
            return 1
    print(f"Deleted {n} mods")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
