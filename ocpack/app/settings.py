# ocpack/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from functools import lru_cache

from ocpack.app.paths import PACKAGE_DIR, USER_SETTINGS_PATH
from ocpack.core.dictpath import getByPath

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULT_PATH", "SETTINGS_ENV", "SETTINGS", "loadUserSettings",
    "loadSettings", "deepMerge", "settings", "settingsBool", "settingsList",
]


SETTINGS_DEFAULT_PATH = PACKAGE_DIR / "settings_default.json5"
SETTINGS_ENV = "OCPACK_SETTINGS"
SETTINGS: JsonValue = (
    json5.loads(SETTINGS_DEFAULT_PATH.read_text(encoding="utf-8"))
    if SETTINGS_DEFAULT_PATH.exists()
    else {
        "__source": "PACKAGER_DEFAULTS",
        "npm": {"binary": "npm", "terminateGraceSeconds": 5},
        "templates": {"legacyAliases": ["jade", "handlebars"], "compilers": {}},
        "init": {"installCompiler": True},
        "components": {"allowSymlinks": False},
        "packaging": {"maxWorkers": 4, "minify": True},
        "archive": {"rootPrefix": "_package", "exclude": [], "dereferenceSymlinks": False},
        "logging": {"devMode": True, "file": None},
    }
)



def userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV)
    if override:
        return Path(os.path.expanduser(override))
    return Path(os.path.expanduser(str(USER_SETTINGS_PATH)))



def loadUserSettings() -> JsonValue:
    filePath = userSettingsPath()
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings():
    return deepMerge(SETTINGS, loadUserSettings())



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types (lists, strings, numbers, booleans, null),
    the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = {}
        for key, value in first.items():
            out[key] = cast(JsonValue, value)
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)

    return cast(JsonValue, second)

# ---------- Ergonomic accessors over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Returns value at `path` from merged settings, or `default` if missing."""
    val = getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = getByPath(loadSettings(), path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    return bool(val)



def settingsList(path: str, default: list[str] | None = None) -> list[str]:
    """Returns a list of non-empty strings at `path`; anything else yields `default`."""
    val = getByPath(loadSettings(), path)
    if not isinstance(val, list):
        return list(default or [])
    return [str(item).strip() for item in val if isinstance(item, str) and item.strip()]
