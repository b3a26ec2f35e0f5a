from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Mod
from .errors import StoreError
from .paths import canonicalize_path, is_under
from .scanner import check_costume_owner, costume_owners
from .schemas import ModFilter, ModRow, ModType, NewMod

_log = logging.getLogger(__name__)


def add_mod(session: Session, new_mod: NewMod) -> int:
    """Insert one manually entered mod and return its id."""
    fp = canonicalize_path(new_mod.folder_path)
    now = datetime.utcnow()
    _log.info("adding manual mod display_name=%s folder_path=%s", new_mod.display_name, fp)
    try:
        check_costume_owner(costume_owners(session), new_mod.character_id, new_mod.costume_id)
        row = Mod(
            character_id=new_mod.character_id,
            costume_id=new_mod.costume_id,
            author=new_mod.author,
            download_url=new_mod.download_url,
            installed=False,
            mod_type=ModType(new_mod.mod_type).value,
            folder_path=fp,
            display_name=new_mod.display_name,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError(f"adding mod {fp} failed: {e}") from e
    except StoreError:
        session.rollback()
        raise
    return row.id


def _to_row(m: Mod) -> ModRow:
    return ModRow(
        id=m.id,
        display_name=m.display_name,
        folder_path=m.folder_path,
        author=m.author,
        download_url=m.download_url,
        character_id=m.character_id,
        costume_id=m.costume_id,
        mod_type=ModType(m.mod_type),
        installed=bool(m.installed),
        installed_at=m.installed_at,
        target_path=m.target_path,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def list_mods(session: Session, flt: Optional[ModFilter] = None) -> List[ModRow]:
    qry = session.query(Mod)
    if flt is not None:
        if flt.character_id is not None:
            qry = qry.filter(Mod.character_id == flt.character_id)
        if flt.costume_id is not None:
            qry = qry.filter(Mod.costume_id == flt.costume_id)
        if flt.author:
            qry = qry.filter(Mod.author.ilike(f"%{flt.author}%"))
        if flt.q:
            like = f"%{flt.q}%"
            qry = qry.filter(or_(Mod.display_name.ilike(like), Mod.folder_path.ilike(like)))
    return [_to_row(m) for m in qry.order_by(Mod.updated_at.desc(), Mod.id.desc()).all()]


def purge_mods(session: Session, under: Optional[str] = None) -> int:
    """Delete every mod, or only those whose folder lies under `under`."""
    try:
        if under is None:
            n = session.query(Mod).delete(synchronize_session=False)
        else:
            root = canonicalize_path(under)
            ids = [m.id for m in session.query(Mod.id, Mod.folder_path) if is_under(m.folder_path, root)]
            n = 0
            if ids:
                n = session.query(Mod).filter(Mod.id.in_(ids)).delete(synchronize_session=False)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError(f"purge failed: {e}") from e
    _log.info("purged %d mods%s", n, f" under {under}" if under else "")
    return n
