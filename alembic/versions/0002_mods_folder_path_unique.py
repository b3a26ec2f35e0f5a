"""ensure each mod folder path is unique

Revision ID: 0002_mods_folder_path_unique
Revises: 0001_catalog_and_mods
Create Date: 2025-08-30
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_mods_folder_path_unique'
down_revision = '0001_catalog_and_mods'
branch_labels = None
depends_on = None


def _has_index(table: str, name: str) -> bool:
    insp = sa.inspect(op.get_bind())
    return any(ix.get('name') == name for ix in insp.get_indexes(table))


def upgrade() -> None:
    if not _has_index('mods', 'mods_folder_path_unique'):
        op.create_index('mods_folder_path_unique', 'mods', ['folder_path'], unique=True)


def downgrade() -> None:
    op.drop_index('mods_folder_path_unique', table_name='mods')
