"""Folder path canonicalization shared by rescan, commit and manual adds.

A mod's folder_path is its natural key, so every comparison, lookup and
insert goes through :func:`canonicalize_path` first.
"""
from __future__ import annotations

from pathlib import Path


def fallback_path(raw: str) -> str:
    """Textual normalization for paths that cannot be resolved.

    Backslashes become forward slashes and trailing separators are stripped
    (never below one character). Applying it twice yields the same string.
    """
    s = raw.replace("\\", "/")
    while s.endswith("/") and len(s) > 1:
        s = s[:-1]
    return s


def canonicalize_path(raw: str) -> str:
    """Resolve symlinks and make absolute; fall back to :func:`fallback_path`."""
    if not raw or not raw.strip():
        return fallback_path(raw or "")
    try:
        resolved = Path(raw).resolve(strict=True)
    except (OSError, RuntimeError):
        # missing path, permission problem, or symlink loop
        return fallback_path(raw)
    return resolved.as_posix()


def is_under(path: str, root: str) -> bool:
    """True when canonical `path` equals `root` or lies below it."""
    if path == root:
        return True
    prefix = root if root.endswith("/") else root + "/"
    return path.startswith(prefix)
