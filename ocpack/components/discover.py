# ocpack/components/discover.py
from __future__ import annotations
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import json5

from ocpack.app.settings import settingsBool
from ocpack.components.descriptor import DESCRIPTOR_FILE
from ocpack.core.errors import PackagerIOError

logger = logging.getLogger(__name__)

__all__ = ["SKIPPED_DIRS", "isComponentDir", "ComponentDiscoverer", "getComponentsByDir"]



# Never components: dependency trees and build output
SKIPPED_DIRS: frozenset[str] = frozenset({"node_modules", "_package"})



def isComponentDir(path: Path) -> bool:
    """
    A directory is a component when its package.json parses, carries an `oc`
    object and is not itself a packaged artifact.
    """
    descriptorPath = path / DESCRIPTOR_FILE
    if not descriptorPath.is_file():
        return False
    try:
        raw = json5.loads(descriptorPath.read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        logger.debug("Skipping '%s': unreadable descriptor (%s)", path, err)
        return False
    if not isinstance(raw, dict) or not isinstance(raw.get("oc"), dict):
        return False
    return not raw["oc"].get("packaged", False)



class ComponentDiscoverer:
    """
    Lazy, re-walkable sequence of component directories under a components root.

    The root itself is yielded when it is a component. Otherwise its immediate
    children are checked in case-insensitive name order. Each iteration walks
    the filesystem again, so the sequence reflects the current state of disk.
    """

    def __init__(
        self,
        componentsDir: str | Path,
        *,
        names: Iterable[str] | None = None,
        allowSymlinks: bool | None = None,
    ):
        self.componentsDir = Path(componentsDir)
        self.names = frozenset(names) if names is not None else None
        self.allowSymlinks = (
            settingsBool("components.allowSymlinks", False) if allowSymlinks is None else allowSymlinks
        )

    def __iter__(self) -> Iterator[Path]:
        return self._walk()

    def _walk(self) -> Iterator[Path]:
        root = self.componentsDir
        if not root.is_dir():
            raise PackagerIOError("Components directory not found", operation="discover", path=root)

        if isComponentDir(root):
            if self._wanted(root):
                yield root.resolve()
            return

        try:
            children = sorted(root.iterdir(), key=lambda p: p.name.lower())
        except OSError as err:
            raise PackagerIOError(f"Cannot list components directory: {err}", operation="discover", path=root) from err

        for child in children:
            if child.name in SKIPPED_DIRS or child.name.startswith("."):
                continue
            if child.is_symlink() and not self.allowSymlinks:
                logger.debug("Skipping symlinked directory '%s'", child)
                continue
            if not child.is_dir() or not self._wanted(child):
                continue
            if isComponentDir(child):
                yield child.resolve()

    def _wanted(self, path: Path) -> bool:
        return self.names is None or path.name in self.names



def getComponentsByDir(componentsDir: str | Path, names: Iterable[str] | None = None) -> list[Path]:
    return list(ComponentDiscoverer(componentsDir, names=names))
