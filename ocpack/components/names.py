# ocpack/components/names.py
from __future__ import annotations

import re

__all__ = ["RESERVED_NAMES", "MAX_NAME_LENGTH", "validateComponentName"]



_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")

# Directory names the pipeline itself owns inside a component or components root
RESERVED_NAMES: frozenset[str] = frozenset({"_package", "_components", "node_modules"})

# npm refuses package names longer than this
MAX_NAME_LENGTH = 214



def validateComponentName(name: object) -> bool:
    """
    Returns True when `name` is usable both as a directory name and as a URL
    segment: ASCII letters, digits, '-' and '_' only, not reserved.

    Pure: no I/O, no logging.
    """
    if not isinstance(name, str) or not name:
        return False
    if len(name) > MAX_NAME_LENGTH:
        return False
    if not _NAME_RE.fullmatch(name):
        return False
    return name not in RESERVED_NAMES
