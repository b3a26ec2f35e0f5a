#!/usr/bin/env python3
"""Project database bootstrapper

Creates or upgrades the database schema to the latest Alembic revision.

Defaults are safe:
- Uses Alembic migrations by default (no destructive operations)
- Accepts --db-url to override target DB (preferred over env var on Windows)
- Refuses a database stamped with a revision this checkout does not know
  (i.e. created by a newer version of the project)

Examples:
  python scripts/00_bootstrap/bootstrap_db.py --db-url sqlite:///./data/mods.db

Optional:
  --use-metadata      Use SQLAlchemy Base.metadata.create_all instead of Alembic
  --echo              Enable SQL echo for troubleshooting
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine

from db.models import Base
from db.session import _ensure_sqlite_dir, _normalize_sqlite_url


def _alembic_config(db_url: str) -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    # Ensure script location and URL are set correctly regardless of CWD
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def current_revision(db_url: str) -> str | None:
    eng = create_engine(db_url, future=True)
    try:
        with eng.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        eng.dispose()


def check_known_revision(cfg: Config, db_url: str) -> str | None:
    """Return the stamped revision, or raise if this code does not know it."""
    rev = current_revision(db_url)
    if rev is None:
        return None
    known = {s.revision for s in ScriptDirectory.from_config(cfg).walk_revisions()}
    if rev not in known:
        raise SystemExit(f"[error] database is at unknown revision {rev!r}; refusing to run ahead of it")
    return rev


def _run_alembic_upgrade_head(db_url: str) -> int:
    cfg = _alembic_config(db_url)
    rev = check_known_revision(cfg, db_url)
    print(f"Current revision: {rev or '(none)'}; running Alembic upgrade to head...")
    command.upgrade(cfg, "head")
    print("Alembic upgrade complete.")
    return 0


def _create_with_metadata(db_url: str, echo: bool = False) -> int:
    print("Creating tables via SQLAlchemy metadata (create_all)...")
    engine = create_engine(db_url, echo=echo, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    print("Metadata create_all complete.")
    return 0


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Bootstrap/upgrade the project database schema")
    ap.add_argument("--db-url", dest="db_url", default=os.environ.get("MODSHANDLER_DB_URL", "sqlite:///./data/mods.db"),
                    help="Target database URL (overrides env var MODSHANDLER_DB_URL)")
    ap.add_argument("--use-metadata", action="store_true",
                    help="Use SQLAlchemy Base.metadata.create_all instead of Alembic")
    ap.add_argument("--echo", action="store_true", help="Echo SQL statements (metadata mode)")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    db_url = _normalize_sqlite_url(args.db_url)
    print(f"Target DB URL: {db_url}")
    _ensure_sqlite_dir(db_url)
    if args.use_metadata:
        return _create_with_metadata(db_url, echo=args.echo)
    return _run_alembic_upgrade_head(db_url)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
