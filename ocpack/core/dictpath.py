# ocpack/core/dictpath.py
from __future__ import annotations
from typing import Any
from collections.abc import Mapping

__all__ = ["getByPath", "splitPath"]



def splitPath(path: str) -> list[str]:
    """
    Splits a dotted path into segments. A backslash escapes the next character,
    so keys containing dots stay addressable.

    Examples:
      - npm.binary                              -> ["npm", "binary"]
      - templates.compilers.oc-template-x\\.y   -> ["templates", "compilers", "oc-template-x.y"]

    Raises ValueError for empty paths, empty segments and dangling escapes.
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Path must be a non-empty string")

    parts: list[str] = []
    curr: list[str] = []
    esc = False
    for ch in path:
        if esc:
            curr.append(ch)
            esc = False
            continue
        if ch == "\\":
            esc = True
            continue
        if ch == ".":
            parts.append("".join(curr))
            curr = []
            continue
        curr.append(ch)
    if esc:
        raise ValueError("Path ends with a dangling escape (trailing backslash)")
    parts.append("".join(curr))

    if any(part == "" for part in parts):
        raise ValueError(f"Path '{path}' contains empty segment(s)")
    return parts



def getByPath(obj: Any, path: str, default: Any | None = None) -> Any:
    """
    Returns the value at `path` inside nested mappings, or `default` when any hop
    is missing or the path itself is invalid.
    """
    try:
        parts = splitPath(path)
    except ValueError:
        return default

    current: Any = obj
    for part in parts:
        if isinstance(current, Mapping) and part in current:
            current = current[part]
            continue
        return default
    return current
