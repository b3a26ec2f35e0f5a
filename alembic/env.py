import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from db.models import Base
from db.session import DEFAULT_DB_URL, _normalize_sqlite_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """Resolve the migration target the same way the application does.

    Precedence: URL set on the Config (bootstrap_db.py), then
    MODSHANDLER_DB_URL, then the default SQLite file. Relative SQLite paths
    are anchored at the repo root so `alembic upgrade` from any CWD hits the
    same file as the scripts.
    """
    for candidate in (config.get_main_option("sqlalchemy.url"), os.environ.get("MODSHANDLER_DB_URL")):
        if candidate and candidate.strip():
            return _normalize_sqlite_url(candidate.strip())
    return _normalize_sqlite_url(DEFAULT_DB_URL)


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        # SQLite cannot ALTER constraints in place
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
