"""Folder classifier: alias tables, longest-match rule and YAML loading."""
from __future__ import annotations

import unittest
from pathlib import Path

import pytest

from modshandler.classifier import (
    AUTHOR_ALIASES,
    TYPE_ALIASES,
    AliasTable,
    best_alias_match,
    classify,
    infer_author,
    infer_mod_type,
    load_alias_table,
    sanitize,
)
from modshandler.schemas import ModType


class TestSanitize(unittest.TestCase):
    def test_keeps_only_ascii_alnum(self):
        self.assertEqual(sanitize("Erza_Skill-Cut (v2)!"), "erzaskillcutv2")

    def test_transliterates(self):
        self.assertEqual(sanitize("Idlé Café"), "idlecafe")

    def test_empty(self):
        self.assertEqual(sanitize(""), "")
        self.assertEqual(sanitize("___ --"), "")


class TestAliasMatching(unittest.TestCase):
    def test_longest_alias_wins(self):
        table = AliasTable((("cut", "short"), ("cutscene", "long")), "none")
        self.assertEqual(classify("My Cutscene", table), "long")

    def test_earlier_entry_wins_on_equal_length(self):
        table = AliasTable((("abc", "first"), ("bcd", "second")), "none")
        self.assertEqual(best_alias_match("xabcdx", table), ("abc", "first"))

    def test_no_match_returns_default(self):
        table = AliasTable((("abc", "x"),), "fallback")
        self.assertEqual(classify("zzz", table), "fallback")
        self.assertEqual(classify("", table), "fallback")

    def test_extended_appends_after_existing(self):
        base = AliasTable((("abc", "base"),), "d")
        more = AliasTable((("bcd", "more"), ("abcdef", "longer")), "ignored")
        ext = base.extended(more)
        self.assertEqual(len(ext), 3)
        self.assertEqual(ext.default, "d")
        self.assertEqual(classify("abcd", ext), "base")
        self.assertEqual(classify("abcdef", ext), "longer")


@pytest.mark.parametrize(
    "folder, expected",
    [
        ("Erza_Skill_Cut", ModType.CUTSCENE),
        ("Hana Cutscene", ModType.CUTSCENE),
        ("Aria_Default_Idle_v2", ModType.IDLE),
        ("Luna Lobby", ModType.IDLE),
        ("Luna Dating Event", ModType.DATE),
        ("Story Chapter 3", ModType.HISTORY),
        ("Anna -> Erza Swap", ModType.SWAP),
        ("Erza Stkill Cut", ModType.CUTSCENE),
        ("Something Else", ModType.OTHER),
        ("", ModType.OTHER),
        ("!!!", ModType.OTHER),
    ],
)
def test_infer_mod_type(folder: str, expected: ModType):
    assert infer_mod_type(folder) is expected


def test_unknown_canonical_type_maps_to_other():
    table = AliasTable((("weird", "not-a-type"),), TYPE_ALIASES.default)
    assert infer_mod_type("Weird pack", table) is ModType.OTHER


def test_infer_author():
    assert infer_author("MrMiagi collection") == "MrMiagi"
    assert infer_author("Someone") == AUTHOR_ALIASES.default == "unknown"
    assert infer_author("") == "unknown"


def test_load_alias_table_nested_and_sanitized(tmp_path: Path):
    p = tmp_path / "types.yaml"
    p.write_text("aliases:\n  Skill Cut: cutscene\n  lobby idle: idle\n", encoding="utf-8")
    table = load_alias_table(p, "other")
    assert table.entries == (("skillcut", "cutscene"), ("lobbyidle", "idle"))
    assert table.default == "other"
    assert infer_mod_type("Erza Lobby-Idle", table) is ModType.IDLE


def test_load_alias_table_top_level_mapping(tmp_path: Path):
    p = tmp_path / "authors.yaml"
    p.write_text("mr miagi mods: MrMiagi\n", encoding="utf-8")
    table = load_alias_table(p, "unknown")
    assert infer_author("Mr.Miagi Mods 2024", table) == "MrMiagi"


def test_load_alias_table_rejects_non_mapping(tmp_path: Path):
    p = tmp_path / "bad.yaml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_alias_table(p, "other")


def test_shipped_vocab_tables_load():
    root = Path(__file__).resolve().parents[1] / "vocab"
    types = load_alias_table(root / "type_aliases.yaml", TYPE_ALIASES.default)
    authors = load_alias_table(root / "author_aliases.yaml", AUTHOR_ALIASES.default)
    assert len(types) > 0 and len(authors) > 0
