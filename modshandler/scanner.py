"""Library discovery and import.

Layout expected on disk::

    <library root>/<author folder>/<mod folder>

Three entry points:

- :func:`rescan` walks every library root and upserts each mod folder
  directly (author from the author folder, type ``other``, no identity
  resolution). Existing rows keep their character/costume/type.
- :func:`dry_run` walks one author folder and returns reviewable
  :class:`DraftMod` records without touching the store.
- :func:`commit` writes a (reviewed) batch of drafts in one transaction,
  deduplicating by canonical folder path.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Costume, Mod
from .catalog import load_catalog_snapshot
from .classifier import AUTHOR_ALIASES, TYPE_ALIASES, AliasTable, infer_author, infer_mod_type
from .errors import StoreError
from .paths import canonicalize_path
from .resolver import resolve_identity
from .schemas import DraftMod, ModType, ScanSummary

_log = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "unknown"


def _child_dirs(parent: Path, errors: List[str]) -> Iterator[Path]:
    """Yield immediate subdirectories; unreadable entries are recorded, not raised."""
    try:
        entries = sorted(parent.iterdir())
    except OSError as e:
        _log.warning("cannot list %s: %s", parent, e)
        errors.append(str(parent))
        return
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
        except OSError as e:
            _log.warning("cannot stat %s: %s", entry, e)
            errors.append(str(entry))
            continue
        yield entry


def _upsert_discovered(session: Session, folder_path: str, display_name: str, author: str, now: datetime) -> None:
    row = session.query(Mod).filter_by(folder_path=folder_path).one_or_none()
    if row is None:
        session.add(
            Mod(
                folder_path=folder_path,
                display_name=display_name,
                author=author,
                mod_type=ModType.OTHER.value,
                installed=False,
                created_at=now,
                updated_at=now,
            )
        )
        session.flush()
        return
    # character/costume/type assignments made by an import are preserved
    row.display_name = display_name
    row.author = author
    row.updated_at = now


def rescan(
    session: Session,
    library_roots: Iterable[str],
    author_table: AliasTable = AUTHOR_ALIASES,
) -> ScanSummary:
    summary = ScanSummary()
    errors: List[str] = []
    now = datetime.utcnow()
    try:
        for lib_root in library_roots:
            summary.scanned_dirs += 1
            _log.info("rescan library root=%s", lib_root)
            for author_dir in _child_dirs(Path(lib_root), errors):
                author = infer_author(author_dir.name, author_table)
                for mod_dir in _child_dirs(author_dir, errors):
                    folder_path = canonicalize_path(str(mod_dir))
                    summary.discovered_mods += 1
                    _log.debug(
                        "discovered author_folder=%s author=%s display=%s folder=%s",
                        author_dir.name, author, mod_dir.name, folder_path,
                    )
                    _upsert_discovered(session, folder_path, mod_dir.name, author, now)
                    summary.upserts += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        _log.error("rescan rolled back: %s", e)
        raise StoreError(f"rescan failed: {e}") from e
    summary.errors = len(errors)
    _log.info(
        "rescan done scanned_dirs=%d discovered=%d upserts=%d errors=%d",
        summary.scanned_dirs, summary.discovered_mods, summary.upserts, summary.errors,
    )
    return summary


def _resolve_author(author_dir: Path, default_author: Optional[str], author_table: AliasTable) -> str:
    if default_author is not None and default_author.strip():
        return default_author.strip()
    inferred = infer_author(author_dir.name, author_table) if author_dir.name else ""
    return inferred if inferred.strip() else UNKNOWN_AUTHOR


def dry_run(
    session: Session,
    author_dir: str,
    default_author: Optional[str] = None,
    default_download_url: Optional[str] = None,
    type_table: AliasTable = TYPE_ALIASES,
    author_table: AliasTable = AUTHOR_ALIASES,
    errors: Optional[List[str]] = None,
) -> List[DraftMod]:
    """Build drafts for every mod folder directly under `author_dir`.

    Unreadable entries are logged and appended to `errors` when given, so an
    empty result can be told apart from a folder that could not be listed.
    """
    base = Path(author_dir)
    snapshot = load_catalog_snapshot(session)
    author = _resolve_author(base, default_author, author_table)
    _log.info("dry run dir=%s author=%s catalog_characters=%d", base, author, len(snapshot.characters))

    drafts: List[DraftMod] = []
    for entry in _child_dirs(base, errors if errors is not None else []):
        display_name = entry.name
        res = resolve_identity(display_name, snapshot)
        drafts.append(
            DraftMod(
                display_name=display_name,
                folder_path=canonicalize_path(str(entry)),
                author=author,
                download_url=default_download_url,
                mod_type=infer_mod_type(display_name, type_table),
                character_id=res.character_id,
                costume_id=res.costume_id,
                infer_confidence=res.confidence,
            )
        )
    return drafts


def dedupe_drafts(drafts: Iterable[DraftMod]) -> List[Tuple[str, DraftMod]]:
    """Canonicalize paths and keep the first draft per canonical path."""
    seen: Set[str] = set()
    out: List[Tuple[str, DraftMod]] = []
    for d in drafts:
        fp = canonicalize_path(d.folder_path)
        if fp in seen:
            _log.warning("duplicate draft skipped for folder_path=%s", fp)
            continue
        seen.add(fp)
        out.append((fp, d))
    return out


def check_costume_owner(costume_owner: Dict[int, int], character_id: Optional[int], costume_id: Optional[int]) -> None:
    """Raise StoreError unless `costume_id` is unset or belongs to `character_id`."""
    if costume_id is None:
        return
    owner = costume_owner.get(costume_id)
    if owner is None:
        raise StoreError(f"costume {costume_id} does not exist")
    if owner != character_id:
        raise StoreError(f"costume {costume_id} belongs to character {owner}, not {character_id}")


def costume_owners(session: Session) -> Dict[int, int]:
    return dict(session.query(Costume.id, Costume.character_id).all())


def commit(session: Session, drafts: Iterable[DraftMod]) -> Tuple[int, int]:
    """Upsert drafts keyed by canonical folder_path; returns (inserted, updated)."""
    batch = dedupe_drafts(drafts)
    _log.info("committing %d drafts", len(batch))
    now = datetime.utcnow()
    inserted = 0
    updated = 0
    try:
        owners = costume_owners(session)
        for fp, d in batch:
            check_costume_owner(owners, d.character_id, d.costume_id)
            row = session.query(Mod).filter_by(folder_path=fp).one_or_none()
            values = dict(
                display_name=d.display_name,
                author=d.author,
                download_url=d.download_url,
                character_id=d.character_id,
                costume_id=d.costume_id,
                mod_type=ModType(d.mod_type).value,
                updated_at=now,
            )
            if row is None:
                session.add(Mod(folder_path=fp, installed=False, created_at=now, **values))
                session.flush()
                inserted += 1
                action = "inserted"
            else:
                for k, v in values.items():
                    setattr(row, k, v)
                updated += 1
                action = "updated"
            _log.debug("upsert path=%s display=%s action=%s", fp, d.display_name, action)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        _log.error("commit rolled back: %s", e)
        raise StoreError(f"import commit failed: {e}") from e
    except StoreError:
        session.rollback()
        raise
    _log.info("commit done inserted=%d updated=%d", inserted, updated)
    return inserted, updated
