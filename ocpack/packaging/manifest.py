# ocpack/packaging/manifest.py
from __future__ import annotations

from typing import Any, Callable

import fastjsonschema

__all__ = ["PACKAGED_MANIFEST_SCHEMA", "validatePackagedManifest"]



_FILE_ENTRY: dict[str, Any] = {
    "type": "object",
    "required": ["type", "hashKey", "src"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "hashKey": {"type": "string", "minLength": 1},
        "src": {"type": "string", "minLength": 1},
    },
}

# Shape a registry expects of _package/package.json. Compilers are third-party
# code, so their output is checked against this before it is written.
PACKAGED_MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "version", "oc"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "oc": {
            "type": "object",
            "required": ["files", "packaged", "date", "version"],
            "properties": {
                "packaged": {"const": True},
                "date": {"type": "integer", "minimum": 0},
                "version": {"type": "string"},
                "files": {
                    "type": "object",
                    "required": ["template"],
                    "properties": {
                        "template": _FILE_ENTRY,
                        "dataProvider": _FILE_ENTRY,
                        "static": {"type": "array", "items": {"type": "string"}},
                    },
                },
            },
        },
    },
}

_validate: Callable[[Any], Any] = fastjsonschema.compile(PACKAGED_MANIFEST_SCHEMA)



def validatePackagedManifest(manifest: Any) -> str | None:
    """Returns None when `manifest` is a valid packaged manifest, else the reason."""
    try:
        _validate(manifest)
    except fastjsonschema.JsonSchemaValueException as err:
        return err.message
    return None
