from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()

# Every value the folder classifier can produce is storable as is.
MOD_TYPES = ("idle", "cutscene", "date", "battle", "ui", "history", "minigame", "swap", "other")

ENTITY_TYPES = ("character", "costume")


class Character(Base):
    """A canonical character; created and renamed only by catalog sync."""

    __tablename__ = "characters"

    id = Column(Integer, primary_key=True)
    slug = Column(String(256), unique=True, nullable=False, index=True)
    display_name = Column(String(256), nullable=False)

    costumes = relationship(
        "Costume",
        back_populates="character",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Costume.id",
    )

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Character id={self.id} slug={self.slug}>"


class Costume(Base):
    """A costume owned by one character; slugs are unique per character only."""

    __tablename__ = "costumes"
    __table_args__ = (UniqueConstraint("character_id", "slug", name="uq_costumes_character_slug"),)

    id = Column(Integer, primary_key=True)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False, index=True)
    slug = Column(String(256), nullable=False)
    display_name = Column(String(256), nullable=False)

    character = relationship("Character", back_populates="costumes")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Costume id={self.id} character={self.character_id} slug={self.slug}>"


class Alias(Base):
    """Append-only alias tag attached to a character or a costume."""

    __tablename__ = "aliases"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "alias_text", name="uq_aliases_entity_text"),
        CheckConstraint(f"entity_type IN {ENTITY_TYPES!r}", name="ck_aliases_entity_type"),
    )

    id = Column(Integer, primary_key=True)
    entity_type = Column(String(16), nullable=False)
    entity_id = Column(Integer, nullable=False, index=True)
    alias_text = Column(String(256), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Alias {self.entity_type}:{self.entity_id} {self.alias_text}>"


class Mod(Base):
    __tablename__ = "mods"
    __table_args__ = (
        CheckConstraint(f"mod_type IN {MOD_TYPES!r}", name="ck_mods_mod_type"),
        Index("mods_character_costume_idx", "character_id", "costume_id"),
        Index("mods_folder_path_unique", "folder_path", unique=True),
    )

    id = Column(Integer, primary_key=True)
    # Weak references: deleting a character/costume nulls these out
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="SET NULL"), nullable=True)
    costume_id = Column(Integer, ForeignKey("costumes.id", ondelete="SET NULL"), nullable=True)
    author = Column(String(256), nullable=True, index=True)
    download_url = Column(Text, nullable=True)
    installed = Column(Boolean, nullable=False, default=False)
    installed_at = Column(DateTime, nullable=True)
    target_path = Column(Text, nullable=True)
    mod_type = Column(String(16), nullable=False, default="other")
    # Canonicalized path; natural key of the mod
    folder_path = Column(String(1024), nullable=False)
    display_name = Column(String(512), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Mod id={self.id} path={self.folder_path} type={self.mod_type}>"
