# ocpack/templates/compilers/base.py
from __future__ import annotations

import copy
import shutil
import time
from pathlib import Path
from typing import Any

from ocpack.core.hashing import sha1sum
from ocpack.templates.registry import CompileOptions

__all__ = [
    "DATA_PROVIDER_FILE",
    "copyDataProvider",
    "copyStatic",
    "buildPackagedManifest",
]



DATA_PROVIDER_FILE = "server.js"



def copyDataProvider(options: CompileOptions) -> dict[str, str] | None:
    """
    Copies the component's server-side data provider into the package as
    server.js. Returns the oc.files.dataProvider entry, or None when the
    component has no data provider.
    """
    dataSrc = options.descriptor.oc.files.data
    if not dataSrc:
        return None
    source = options.componentPath / dataSrc
    if not source.is_file():
        raise FileNotFoundError(f"Data provider '{dataSrc}' not found in component")
    target = options.publishPath / DATA_PROVIDER_FILE
    shutil.copyfile(source, target)
    return {"type": "node.js", "hashKey": sha1sum(target), "src": DATA_PROVIDER_FILE}



def copyStatic(options: CompileOptions) -> list[str]:
    """
    Copies every oc.files.static directory into the package, keeping relative
    paths, hidden files and symlinks as they are.
    """
    copied: list[str] = []
    for entry in options.descriptor.oc.files.static:
        source = options.componentPath / entry
        if not source.is_dir():
            raise FileNotFoundError(f"Static directory '{entry}' not found in component")
        shutil.copytree(source, options.publishPath / entry, symlinks=True, dirs_exist_ok=True)
        copied.append(entry)
    return copied



def buildPackagedManifest(
    options: CompileOptions,
    *,
    template: dict[str, str],
    dataProvider: dict[str, str] | None,
    static: list[str],
) -> dict[str, Any]:
    """
    Derives the packaged package.json from the source descriptor. The source
    descriptor object is deep-copied, never modified.
    """
    manifest = copy.deepcopy(options.descriptor.toJson())
    oc = manifest.setdefault("oc", {})
    files = dict(oc.get("files") or {})
    files.pop("data", None)
    files["template"] = dict(template)
    if dataProvider is not None:
        files["dataProvider"] = dict(dataProvider)
    files["static"] = list(static)
    oc["files"] = files
    oc["packaged"] = True
    oc["date"] = int(time.time() * 1000)
    oc["version"] = options.packagerVersion
    return manifest
