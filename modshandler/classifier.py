"""Mod type and author inference from folder names.

Both classifiers sanitize the name (transliterate, lowercase, keep only
ascii letters and digits) and look for known aliases as substrings. The
longest matching alias wins so that short generic aliases such as ``cut``
never shadow specific ones such as ``cutscene``; between aliases of equal
length the earlier table entry wins.

Tables are ordered ``(alias, canonical)`` pairs. The module-level tables are
built once at import and treated as read-only; extra tables can be loaded
from YAML with :func:`load_alias_table`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ruamel.yaml import YAML
from unidecode import unidecode

from .schemas import ModType

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_TYPE_ALIASES: Tuple[Tuple[str, str], ...] = (
    # gameplay "idle" equivalents
    ("idle", "idle"),
    ("standing", "idle"),
    ("stand", "idle"),
    ("idleanim", "idle"),
    ("loop", "idle"),
    ("lobby", "idle"),
    ("illustration", "idle"),
    ("illust", "idle"),
    # cutscenes
    ("burst", "cutscene"),
    ("cutscene", "cutscene"),
    ("cut", "cutscene"),
    ("cs", "cutscene"),
    ("skillcut", "cutscene"),
    # common misspellings seen in the wild
    ("stkillcut", "cutscene"),
    ("skullcut", "cutscene"),
    ("skillcit", "cutscene"),
    ("specialillustration", "cutscene"),
    ("specialillust", "cutscene"),
    # story
    ("history", "history"),
    ("story", "history"),
    ("plot", "history"),
    # date
    ("date", "date"),
    ("dating", "date"),
    ("minigame", "minigame"),
    # replaces one character with another
    ("swap", "swap"),
)

DEFAULT_AUTHOR_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("mrmiagi", "MrMiagi"),
)


@dataclass(frozen=True)
class AliasTable:
    entries: Tuple[Tuple[str, str], ...]
    default: str

    def __len__(self) -> int:
        return len(self.entries)

    def extended(self, other: "AliasTable") -> "AliasTable":
        """Append `other`'s entries; existing entries keep tie-break priority."""
        return AliasTable(self.entries + other.entries, self.default)


TYPE_ALIASES = AliasTable(DEFAULT_TYPE_ALIASES, ModType.OTHER.value)
AUTHOR_ALIASES = AliasTable(DEFAULT_AUTHOR_ALIASES, "unknown")


def sanitize(name: str) -> str:
    """Transliterate to ascii, lowercase and drop everything but [a-z0-9]."""
    return _NON_ALNUM.sub("", unidecode(name or "").lower())


def best_alias_match(sanitized: str, table: AliasTable) -> Optional[Tuple[str, str]]:
    """Return the longest ``(alias, canonical)`` whose alias occurs in `sanitized`."""
    best: Optional[Tuple[str, str]] = None
    for alias, canonical in table.entries:
        if alias and alias in sanitized:
            # strict > keeps the earlier entry on equal length
            if best is None or len(alias) > len(best[0]):
                best = (alias, canonical)
    return best


def classify(name: str, table: AliasTable) -> str:
    sanitized = sanitize(name)
    if not sanitized:
        return table.default
    hit = best_alias_match(sanitized, table)
    return hit[1] if hit else table.default


def infer_mod_type(folder_name: str, table: AliasTable = TYPE_ALIASES) -> ModType:
    value = classify(folder_name, table)
    try:
        return ModType(value)
    except ValueError:
        # a loaded table may name a type the store does not know
        return ModType.OTHER


def infer_author(folder_name: str, table: AliasTable = AUTHOR_ALIASES) -> str:
    return classify(folder_name, table)


def load_alias_table(path: Path, default: str) -> AliasTable:
    """Load an ordered ``alias: canonical`` mapping from a YAML file.

    Accepts either a top-level mapping or one nested under ``aliases:``.
    Aliases are sanitized the same way folder names are so that table
    entries like ``Skill Cut`` still match.
    """
    yaml = YAML(typ="safe")
    data = yaml.load(Path(path).read_text(encoding="utf-8")) or {}
    if isinstance(data, dict) and isinstance(data.get("aliases"), dict):
        data = data["aliases"]
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of alias -> canonical value")
    entries = []
    for alias, canonical in data.items():
        key = sanitize(str(alias))
        if key:
            entries.append((key, str(canonical)))
    return AliasTable(tuple(entries), default)
