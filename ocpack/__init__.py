# ocpack/__init__.py
from __future__ import annotations

__all__ = ["__version__", "PACKAGER_VERSION"]

__version__ = "0.1.0"

# Stamped into every packaged manifest as oc.version
PACKAGER_VERSION = __version__
