"""Folder name -> (character, costume, confidence) resolution.

Pure functions over a :class:`CatalogSnapshot`; the snapshot is loaded once
per scan (see ``catalog.load_catalog_snapshot``) and never re-queried per
folder.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from rapidfuzz import fuzz
from unidecode import unidecode

_SPLIT = re.compile(r"[^a-z0-9]+")

# Scores below this (0-100 scale) count as no match at all
MATCH_CUTOFF = float(os.environ.get("MODSHANDLER_MATCH_CUTOFF", "60"))


@dataclass(frozen=True)
class CharacterEntry:
    id: int
    slug: str
    display_name: str
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CostumeEntry:
    id: int
    character_id: int
    slug: str
    display_name: str
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogSnapshot:
    characters: Tuple[CharacterEntry, ...] = ()
    costumes: Tuple[CostumeEntry, ...] = ()

    def costumes_for(self, character_id: int) -> List[CostumeEntry]:
        return [c for c in self.costumes if c.character_id == character_id]


@dataclass(frozen=True)
class Resolution:
    character_id: Optional[int]
    costume_id: Optional[int]
    confidence: float


NO_MATCH = Resolution(None, None, 0.0)


def normalize_tokens(name: str) -> List[str]:
    clean = unidecode(name or "").lower()
    return [t for t in _SPLIT.split(clean) if t]


def build_query(name: str) -> str:
    return " ".join(normalize_tokens(name))


def _in_order(needle: str, haystack: str) -> bool:
    it = iter(haystack)
    return all(ch in it for ch in needle)


def score(query: str, candidate: str, cutoff: float = MATCH_CUTOFF) -> float:
    """Similarity of `candidate` within `query` on a 0-100 scale (0 below cutoff).

    One-directional: every character of the candidate must occur in order
    in the query (spaces ignored), so a folder named after a fragment of a
    catalog name, or a near-miss spelling of it, scores 0.
    """
    cand = build_query(candidate)
    if not query or not cand:
        return 0.0
    if not _in_order(cand.replace(" ", ""), query.replace(" ", "")):
        return 0.0
    return float(fuzz.partial_ratio(query, cand, score_cutoff=cutoff))


def _entry_score(query: str, slug: str, display_name: str, aliases: Iterable[str], cutoff: float) -> float:
    best = max(score(query, slug, cutoff), score(query, display_name.lower(), cutoff))
    for alias in aliases:
        best = max(best, score(query, alias.lower(), cutoff))
    return best


def _clamp(x: float) -> float:
    return min(1.0, max(0.0, x))


def resolve_identity(folder_name: str, snapshot: CatalogSnapshot, cutoff: float = MATCH_CUTOFF) -> Resolution:
    query = build_query(folder_name)

    best_char: Optional[Tuple[CharacterEntry, float]] = None
    for ch in snapshot.characters:
        s = _entry_score(query, ch.slug, ch.display_name, ch.aliases, cutoff)
        if best_char is None or s > best_char[1]:
            best_char = (ch, s)
    if best_char is None or best_char[1] <= 0:
        return NO_MATCH
    character, char_score = best_char

    best_cost: Optional[Tuple[CostumeEntry, float]] = None
    for co in snapshot.costumes_for(character.id):
        s = _entry_score(query, co.slug, co.display_name, co.aliases, cutoff)
        if best_cost is None or s > best_cost[1]:
            best_cost = (co, s)

    if best_cost is not None and best_cost[1] > 0:
        costume, cost_score = best_cost
        return Resolution(character.id, costume.id, _clamp((char_score + cost_score) / 200.0))
    return Resolution(character.id, None, _clamp(char_score / 100.0))
