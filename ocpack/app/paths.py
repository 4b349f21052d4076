# ocpack/app/paths.py
from __future__ import annotations
from pathlib import Path



# Root directory structure constants
PACKAGE_DIR = Path(__file__).resolve().parent.parent   # ocpack/
ROOT_DIR = PACKAGE_DIR.parent                          # repository root
USER_SETTINGS_PATH = Path("~/.ocpack/ocpack.json5")    # expanded at load time
