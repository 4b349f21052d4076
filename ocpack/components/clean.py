# ocpack/components/clean.py
from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from ocpack.components.discover import ComponentDiscoverer
from ocpack.core.errors import PackagerIOError
from ocpack.npm.installer import MODULES_DIR

logger = logging.getLogger(__name__)

__all__ = ["MODULES_DIR", "ModulesCleaner"]



class ModulesCleaner:
    """
    Finds and deletes the node_modules folders of components.

    cleaner(dir) lists and removes in one go; fetchList()/remove() split the
    two steps so a caller can confirm before anything is deleted.
    """

    def __init__(self, *, allowSymlinks: bool | None = None):
        self.allowSymlinks = allowSymlinks

    def __call__(self, componentsDir: str | Path) -> list[Path]:
        return self.remove(self.fetchList(componentsDir))

    def fetchList(self, componentsDir: str | Path) -> list[Path]:
        found: list[Path] = []
        for componentPath in ComponentDiscoverer(componentsDir, allowSymlinks=self.allowSymlinks):
            modulesPath = componentPath / MODULES_DIR
            if modulesPath.is_dir() and not modulesPath.is_symlink():
                found.append(modulesPath)
        return found

    def remove(self, paths: Iterable[str | Path]) -> list[Path]:
        removed: list[Path] = []
        for path in paths:
            path = Path(path)
            if path.name != MODULES_DIR:
                raise ValueError(f"Refusing to remove '{path}': not a {MODULES_DIR} folder")
            try:
                shutil.rmtree(path)
            except FileNotFoundError:
                logger.debug("'%s' already removed", path)
                continue
            except OSError as err:
                raise PackagerIOError(f"Cannot remove {MODULES_DIR}: {err}", componentName=path.parent.name, operation="clean", path=path) from err
            logger.info("Removed '%s'", path)
            removed.append(path)
        return removed
