from __future__ import annotations

import os
import unittest
from pathlib import Path

import pytest

from modshandler.paths import canonicalize_path, fallback_path, is_under


class TestFallbackPath(unittest.TestCase):
    def test_backslashes_and_trailing_separators(self):
        self.assertEqual(fallback_path("C:\\Mods\\Erza\\\\"), "C:/Mods/Erza")
        self.assertEqual(fallback_path("/missing/dir/"), "/missing/dir")

    def test_root_is_kept(self):
        self.assertEqual(fallback_path("/"), "/")
        self.assertEqual(fallback_path("\\"), "/")

    def test_idempotent(self):
        for raw in ["a\\b\\", "/x/y//", "", "plain", "C:\\"]:
            once = fallback_path(raw)
            self.assertEqual(fallback_path(once), once)


def test_existing_dir_resolves_absolute(tmp_path: Path):
    d = tmp_path / "mods" / "Erza"
    d.mkdir(parents=True)
    assert canonicalize_path(str(d)) == d.resolve().as_posix()
    assert canonicalize_path(str(d) + os.sep) == d.resolve().as_posix()


def test_missing_path_uses_fallback(tmp_path: Path):
    raw = str(tmp_path / "nope") + "\\"
    assert canonicalize_path(raw) == fallback_path(raw)


@pytest.mark.parametrize("kind", ["existing", "missing", "empty"])
def test_canonicalize_is_a_fixed_point(tmp_path: Path, kind: str):
    if kind == "existing":
        (tmp_path / "m").mkdir()
        raw = str(tmp_path / "m")
    elif kind == "missing":
        raw = "D:\\lib\\author\\mod\\"
    else:
        raw = "   "
    once = canonicalize_path(raw)
    assert canonicalize_path(once) == once


def test_symlink_is_resolved(tmp_path: Path):
    target = tmp_path / "real"
    target.mkdir()
    link = tmp_path / "link"
    try:
        link.symlink_to(target, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")
    assert canonicalize_path(str(link)) == target.resolve().as_posix()


def test_is_under():
    assert is_under("/lib/a/mod", "/lib/a")
    assert is_under("/lib/a", "/lib/a")
    assert not is_under("/lib/ab/mod", "/lib/a")
    assert is_under("/lib/a/mod", "/")
