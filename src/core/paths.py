from __future__ import annotations

from typing import Tuple

from core.errors import ValidationError

"""
Path utilities used across the project.

Every path handed to a backend is a normalized absolute POSIX path:
'/' is the root, '..' never escapes it, and there are no empty or '.'
segments.
"""

ROOT = "/"
PARENT = ".."


def split_posix(p: str) -> Tuple[str, ...]:
    """Split a POSIX path into non-empty segments."""
    s = (p or "").strip().replace("\\", "/").strip("/")
    if not s:
        return tuple()
    return tuple(seg for seg in s.split("/") if seg)


def normalize_path(p: str) -> str:
    """Normalize a user path to a clean absolute POSIX path.

    Converts backslashes to '/', drops '.' segments and resolves '..'
    segments, clamping at the root.
    """
    parts: list[str] = []
    for seg in split_posix(p):
        if seg == ".":
            continue
        if seg == PARENT:
            if parts:
                parts.pop()
            continue
        parts.append(seg)
    return ROOT + "/".join(parts)


def is_root(p: str) -> bool:
    return normalize_path(p) == ROOT


def parent_path(p: str) -> str:
    """Return the parent of a path; the root is its own parent."""
    parts = split_posix(normalize_path(p))
    return ROOT + "/".join(parts[:-1])


def base_name(p: str) -> str:
    parts = split_posix(normalize_path(p))
    return parts[-1] if parts else ""


def join_path(base: str, name: str) -> str:
    """Join a single child name onto a base path."""
    n = (name or "").strip()
    if n in ("", ".", PARENT) or "/" in n or "\\" in n:
        raise ValidationError(f"Invalid item name: {name!r}")
    b = normalize_path(base)
    return b + n if b == ROOT else f"{b}/{n}"


def is_within(p: str, ancestor: str) -> bool:
    """True when `p` equals `ancestor` or lives somewhere below it."""
    child = split_posix(normalize_path(p))
    anc = split_posix(normalize_path(ancestor))
    return child[: len(anc)] == anc
