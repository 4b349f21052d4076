# ocpack/core/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path



def sha1sum(path: str | Path) -> str:
    """Returns a SHA-1 hex digest of the file content."""
    sha = hashlib.sha1()
    with Path(path).open("rb") as file:
        for chunk in iter(lambda: file.read(8192), b""):
            sha.update(chunk)
    return sha.hexdigest()



def sha1text(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()
