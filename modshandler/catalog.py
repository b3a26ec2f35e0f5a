"""Canonical catalog: parse, sync into the store, and snapshot for resolution.

Sync is idempotent. Characters are keyed by slug and costumes by
(character, slug); existing rows only get their display name refreshed and
aliases are insert-if-absent. Nothing is ever deleted here.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Alias, Character, Costume
from .errors import CatalogParseError, StoreError
from .resolver import CatalogSnapshot, CharacterEntry, CostumeEntry
from .schemas import CatalogFile, CatalogReport, CharacterRecord

_log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]
BUILTIN_CATALOG = ROOT / "vocab" / "catalog.json"

_CHARACTER_LIST = TypeAdapter(List[CharacterRecord])


def parse_catalog(text: str) -> List[CharacterRecord]:
    """Parse a bare array of characters or a ``{"characters": [...]}`` wrapper."""
    trimmed = (text or "").strip()
    try:
        data = json.loads(trimmed)
    except json.JSONDecodeError as e:
        raise CatalogParseError(str(e)) from e
    try:
        if isinstance(data, list):
            return _CHARACTER_LIST.validate_python(data)
        return CatalogFile.model_validate(data).characters
    except ValidationError as e:
        raise CatalogParseError(str(e)) from e


def load_catalog_file(path: Path) -> List[CharacterRecord]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogParseError(f"cannot read {path}: {e}") from e
    return parse_catalog(raw)


def load_builtin_catalog() -> List[CharacterRecord]:
    return load_catalog_file(BUILTIN_CATALOG)


def _upsert_character(session: Session, slug: str, display_name: str) -> Character:
    ch = session.query(Character).filter_by(slug=slug).one_or_none()
    if ch is None:
        ch = Character(slug=slug, display_name=display_name)
        session.add(ch)
        session.flush()
    elif ch.display_name != display_name:
        ch.display_name = display_name
    return ch


def _upsert_costume(session: Session, character_id: int, slug: str, display_name: str) -> Costume:
    co = session.query(Costume).filter_by(character_id=character_id, slug=slug).one_or_none()
    if co is None:
        co = Costume(character_id=character_id, slug=slug, display_name=display_name)
        session.add(co)
        session.flush()
    elif co.display_name != display_name:
        co.display_name = display_name
    return co


def _add_alias(session: Session, entity_type: str, entity_id: int, alias_text: str) -> bool:
    exists = (
        session.query(Alias.id)
        .filter_by(entity_type=entity_type, entity_id=entity_id, alias_text=alias_text)
        .first()
    )
    if exists:
        return False
    session.add(Alias(entity_type=entity_type, entity_id=entity_id, alias_text=alias_text))
    session.flush()
    return True


def sync_catalog(session: Session, records: Iterable[CharacterRecord]) -> CatalogReport:
    """Merge `records` into the store in a single transaction."""
    chars_count = 0
    costs_count = 0
    aliases_added = 0
    try:
        for rec in records:
            ch = _upsert_character(session, rec.slug, rec.display_name)
            chars_count += 1
            for alias in rec.aliases:
                aliases_added += _add_alias(session, "character", ch.id, alias)
            for cost in rec.costumes:
                co = _upsert_costume(session, ch.id, cost.slug, cost.display_name)
                costs_count += 1
                for alias in cost.aliases:
                    aliases_added += _add_alias(session, "costume", co.id, alias)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        _log.error("catalog sync rolled back: %s", e)
        raise StoreError(f"catalog sync failed: {e}") from e
    _log.info("catalog sync characters=%d costumes=%d new_aliases=%d", chars_count, costs_count, aliases_added)
    return CatalogReport(characters=chars_count, costumes=costs_count)


def sync_from_path(session: Session, path: Path) -> CatalogReport:
    _log.info("importing catalog from %s", path)
    return sync_catalog(session, load_catalog_file(path))


def sync_builtin(session: Session) -> CatalogReport:
    return sync_catalog(session, load_builtin_catalog())


def _aliases_by_entity(session: Session) -> Dict[Tuple[str, int], Tuple[str, ...]]:
    out: Dict[Tuple[str, int], List[str]] = {}
    for a in session.query(Alias).order_by(Alias.id):
        out.setdefault((a.entity_type, a.entity_id), []).append(a.alias_text)
    return {k: tuple(v) for k, v in out.items()}


def load_catalog_snapshot(session: Session) -> CatalogSnapshot:
    """Read characters, costumes and aliases once, ordered by id."""
    aliases = _aliases_by_entity(session)
    characters = tuple(
        CharacterEntry(c.id, c.slug, c.display_name, aliases.get(("character", c.id), ()))
        for c in session.query(Character).order_by(Character.id)
    )
    costumes = tuple(
        CostumeEntry(c.id, c.character_id, c.slug, c.display_name, aliases.get(("costume", c.id), ()))
        for c in session.query(Costume).order_by(Costume.id)
    )
    return CatalogSnapshot(characters=characters, costumes=costumes)


def list_catalog(session: Session) -> Dict[str, List[dict]]:
    snap = load_catalog_snapshot(session)
    return {
        "characters": [
            {"id": c.id, "slug": c.slug, "display_name": c.display_name} for c in snap.characters
        ],
        "costumes": [
            {"id": c.id, "character_id": c.character_id, "slug": c.slug, "display_name": c.display_name}
            for c in snap.costumes
        ],
    }
