from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ModType(str, Enum):
    IDLE = "idle"
    CUTSCENE = "cutscene"
    DATE = "date"
    BATTLE = "battle"
    UI = "ui"
    HISTORY = "history"
    MINIGAME = "minigame"
    SWAP = "swap"
    OTHER = "other"


# ---- canonical catalog (file and scraper output share this shape) ----


class CostumeRecord(BaseModel):
    slug: str
    display_name: str
    aliases: List[str] = []


class CharacterRecord(BaseModel):
    slug: str
    display_name: str
    aliases: List[str] = []
    costumes: List[CostumeRecord] = []


class CatalogFile(BaseModel):
    characters: List[CharacterRecord]


class CatalogReport(BaseModel):
    characters: int
    costumes: int


class CrawlerReport(BaseModel):
    sources: int
    characters: int
    costumes: int


# ---- mods ----


class DraftMod(BaseModel):
    """Unpersisted import candidate produced by a dry run, edited before commit."""

    display_name: str
    folder_path: str
    author: Optional[str] = None
    download_url: Optional[str] = None
    mod_type: ModType = ModType.OTHER
    character_id: Optional[int] = None
    costume_id: Optional[int] = None
    infer_confidence: float = Field(0.0, ge=0.0, le=1.0)


class NewMod(BaseModel):
    display_name: str
    folder_path: str
    author: Optional[str] = None
    download_url: Optional[str] = None
    character_id: Optional[int] = None
    costume_id: Optional[int] = None
    mod_type: ModType = ModType.OTHER


class ModRow(BaseModel):
    id: int
    display_name: str
    folder_path: str
    author: Optional[str] = None
    download_url: Optional[str] = None
    character_id: Optional[int] = None
    costume_id: Optional[int] = None
    mod_type: ModType
    installed: bool = False
    installed_at: Optional[datetime] = None
    target_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ModFilter(BaseModel):
    character_id: Optional[int] = None
    costume_id: Optional[int] = None
    author: Optional[str] = None
    q: Optional[str] = None  # free text over display_name / folder_path


class ScanSummary(BaseModel):
    scanned_dirs: int = 0
    discovered_mods: int = 0
    upserts: int = 0
    errors: int = 0
