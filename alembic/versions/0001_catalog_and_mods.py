"""catalog and mods initial schema

Revision ID: 0001_catalog_and_mods
Revises:
Create Date: 2025-08-23T19:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = '0001_catalog_and_mods'
down_revision = None
branch_labels = None
depends_on = None

MOD_TYPES = ('idle', 'cutscene', 'date', 'battle', 'ui', 'history', 'minigame', 'swap', 'other')


def _has_table(name: str) -> bool:
    insp = sa.inspect(op.get_bind())
    return name in insp.get_table_names()


def upgrade() -> None:
    # canonical lists (catalog sync owns these)
    if not _has_table('characters'):
        op.create_table(
            'characters',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('slug', sa.String(length=256), nullable=False),
            sa.Column('display_name', sa.String(length=256), nullable=False),
        )
        op.create_index('ix_characters_slug', 'characters', ['slug'], unique=True)

    if not _has_table('costumes'):
        op.create_table(
            'costumes',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('character_id', sa.Integer(), sa.ForeignKey('characters.id', ondelete='CASCADE'), nullable=False),
            sa.Column('slug', sa.String(length=256), nullable=False),
            sa.Column('display_name', sa.String(length=256), nullable=False),
            sa.UniqueConstraint('character_id', 'slug', name='uq_costumes_character_slug'),
        )
        op.create_index('ix_costumes_character_id', 'costumes', ['character_id'])

    if not _has_table('aliases'):
        op.create_table(
            'aliases',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('entity_type', sa.String(length=16), nullable=False),
            sa.Column('entity_id', sa.Integer(), nullable=False),
            sa.Column('alias_text', sa.String(length=256), nullable=False),
            sa.UniqueConstraint('entity_type', 'entity_id', 'alias_text', name='uq_aliases_entity_text'),
            sa.CheckConstraint("entity_type IN ('character', 'costume')", name='ck_aliases_entity_type'),
        )
        op.create_index('ix_aliases_entity_id', 'aliases', ['entity_id'])

    if not _has_table('mods'):
        op.create_table(
            'mods',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('character_id', sa.Integer(), sa.ForeignKey('characters.id', ondelete='SET NULL'), nullable=True),
            sa.Column('costume_id', sa.Integer(), sa.ForeignKey('costumes.id', ondelete='SET NULL'), nullable=True),
            sa.Column('author', sa.String(length=256), nullable=True),
            sa.Column('download_url', sa.Text(), nullable=True),
            sa.Column('installed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('installed_at', sa.DateTime(), nullable=True),
            sa.Column('target_path', sa.Text(), nullable=True),
            sa.Column('mod_type', sa.String(length=16), nullable=False, server_default='other'),
            sa.Column('folder_path', sa.String(length=1024), nullable=False),
            sa.Column('display_name', sa.String(length=512), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint(f"mod_type IN {MOD_TYPES!r}", name='ck_mods_mod_type'),
        )
        op.create_index('mods_character_costume_idx', 'mods', ['character_id', 'costume_id'])
        op.create_index('ix_mods_author', 'mods', ['author'])


def downgrade() -> None:
    for name in ['mods', 'aliases', 'costumes', 'characters']:
        op.drop_table(name)
