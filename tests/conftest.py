from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy.orm import sessionmaker

from db.models import Base
from db.session import make_engine


@pytest.fixture
def engine(tmp_path: Path):
    # File-backed so the foreign_keys pragma applies on every connection
    eng = make_engine(f"sqlite:///{(tmp_path / 'mods.db').as_posix()}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    s = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """<root>/<author>/<mod> tree used by scanner tests."""
    root = tmp_path / "library"
    for author, mods in {
        "SomeAuthor": ["Erza Armored Skill Cut", "Hana_Swimsuit_Idle", "xyz_0001"],
        "mrmiagi works": ["Luna Maid Date"],
    }.items():
        for m in mods:
            (root / author / m).mkdir(parents=True)
    (root / "readme.txt").write_text("not a mod", encoding="utf-8")
    (root / "SomeAuthor" / "notes.txt").write_text("not a mod either", encoding="utf-8")
    return root
