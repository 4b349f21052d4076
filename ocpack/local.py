# ocpack/local.py
from __future__ import annotations

import asyncio
import inspect
import logging
import shutil
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ocpack.components.clean import ModulesCleaner
from ocpack.components.descriptor import DescriptorValidator
from ocpack.components.discover import getComponentsByDir
from ocpack.core.errors import ArchiveMissingError, CleanupError
from ocpack.core.logging import logContext
from ocpack.npm.installer import DependencyInstaller
from ocpack.packaging import archive
from ocpack.packaging.packager import BatchResult, PackagedComponent, Packager
from ocpack.scaffold.initializer import InitRequest, InitResult, Scaffolder
from ocpack.templates.registry import CompilerRegistry
from ocpack.templates.resolver import DeprecationCallback, TemplateResolver

logger = logging.getLogger(__name__)

__all__ = ["Local", "PublishResult", "Uploader"]



Uploader = Callable[[Path, PackagedComponent], Any]



@dataclass(frozen=True, slots=True)
class PublishResult:
    component: PackagedComponent
    archiveName: str
    uploadResult: Any = None



class Local:
    """
    Entry point for working with components on the local filesystem:
    init, package, compress, cleanup, clean and publish.
    """

    def __init__(
        self,
        *,
        registry: CompilerRegistry | None = None,
        resolver: TemplateResolver | None = None,
        installer: DependencyInstaller | None = None,
        validator: DescriptorValidator | None = None,
        onDeprecation: DeprecationCallback | None = None,
        maxWorkers: int | None = None,
        installCompiler: bool | None = None,
    ):
        self.registry = registry or CompilerRegistry()
        self.resolver = resolver or TemplateResolver(onDeprecation=onDeprecation)
        self.installer = installer or DependencyInstaller()
        self.packager = Packager(self.registry, self.resolver, validator, maxWorkers=maxWorkers)
        self.scaffolder = Scaffolder(self.registry, self.resolver, self.installer, installCompiler=installCompiler)
        self.clean = ModulesCleaner()

    async def init(
        self,
        componentName: str,
        templateType: str,
        destination: str | Path = ".",
        *,
        silent: bool = True,
    ) -> InitResult:
        return await self.scaffolder.init(
            InitRequest(
                componentName=componentName,
                templateType=templateType,
                destination=Path(destination),
                silent=silent,
            )
        )

    def package(
        self,
        componentPath: str | Path,
        *,
        minify: bool | None = None,
        verbose: bool = False,
        production: bool = False,
    ) -> PackagedComponent:
        return self.packager.packageOne(componentPath, minify=minify, verbose=verbose, production=production)

    def packageMany(self, componentPaths: Iterable[str | Path], **kwargs: Any) -> BatchResult:
        return self.packager.packageMany(componentPaths, **kwargs)

    def getComponentsByDir(self, componentsDir: str | Path, names: Iterable[str] | None = None) -> list[Path]:
        return getComponentsByDir(componentsDir, names)

    def compress(self, sourceDir: str | Path, destination: str | Path, **kwargs: Any) -> Path:
        return archive.compress(sourceDir, destination, **kwargs)

    def cleanup(self, archivePath: str | Path) -> None:
        archive.cleanup(archivePath)

    async def publish(
        self,
        componentPath: str | Path,
        upload: Uploader,
        *,
        minify: bool | None = None,
        production: bool = True,
    ) -> PublishResult:
        """
        Packages a component, compresses its _package folder into a temporary
        "<name>-<version>.tar.gz" and hands it to `upload(archivePath, packaged)`.

        `upload` may be a plain callable or a coroutine function. The archive is
        always removed afterwards; a failed removal is logged and never replaces
        the outcome of packaging or upload.
        """
        packaged = await asyncio.to_thread(self.package, componentPath, minify=minify, production=production)
        archiveName = f"{packaged.name}-{packaged.version}.tar.gz"
        workDir = Path(tempfile.mkdtemp(prefix="ocpack-publish-"))
        archivePath = workDir / archiveName

        with logContext(componentName=packaged.name, operation="publish"):
            try:
                await asyncio.to_thread(archive.compress, packaged.publishPath, archivePath)
                result = upload(archivePath, packaged)
                if inspect.isawaitable(result):
                    result = await result
                logger.info("Published '%s@%s'", packaged.name, packaged.version)
            finally:
                self._discardArchive(archivePath)
                shutil.rmtree(workDir, ignore_errors=True)

        return PublishResult(component=packaged, archiveName=archiveName, uploadResult=result)

    def _discardArchive(self, archivePath: Path) -> None:
        try:
            archive.cleanup(archivePath)
        except ArchiveMissingError as err:
            logger.debug("%s", err)
        except CleanupError as err:
            logger.error("Archive cleanup failed: %s", err)
