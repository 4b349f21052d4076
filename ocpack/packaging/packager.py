# ocpack/packaging/packager.py
from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ocpack import PACKAGER_VERSION
from ocpack.app.settings import settings, settingsBool
from ocpack.components.descriptor import (
    DESCRIPTOR_FILE,
    DescriptorValidator,
    PydanticDescriptorValidator,
    readDescriptor,
    writeDescriptor,
)
from ocpack.components.names import validateComponentName
from ocpack.core.errors import (
    CompileError,
    DescriptorInvalidError,
    NameInvalidError,
    PackagerError,
    PackagerIOError,
)
from ocpack.core.logging import logContext
from ocpack.packaging.manifest import validatePackagedManifest
from ocpack.templates.registry import CompileOptions, CompilerRegistry
from ocpack.templates.resolver import ResolvedTemplate, TemplateResolver

logger = logging.getLogger(__name__)

__all__ = [
    "PUBLISH_DIR",
    "PackagedComponent",
    "PackageOutcome",
    "BatchResult",
    "Packager",
]



# Build output directory inside each component
PUBLISH_DIR = "_package"



@dataclass(frozen=True, slots=True)
class PackagedComponent:
    name: str
    version: str
    componentPath: Path
    publishPath: Path
    manifestPath: Path
    manifest: Mapping[str, Any]
    template: ResolvedTemplate



@dataclass(frozen=True, slots=True)
class PackageOutcome:
    componentPath: Path
    component: PackagedComponent | None = None
    error: PackagerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None



@dataclass(frozen=True, slots=True)
class BatchResult:
    """Per-component outcomes of packageMany(), in input order."""
    outcomes: tuple[PackageOutcome, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> list[PackagedComponent]:
        return [outcome.component for outcome in self.outcomes if outcome.component is not None]

    @property
    def failed(self) -> list[PackageOutcome]:
        return [outcome for outcome in self.outcomes if outcome.error is not None]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raiseForFailures(self) -> None:
        """Raises the first failure (input order), if any."""
        for outcome in self.outcomes:
            if outcome.error is not None:
                raise outcome.error



class Packager:
    """
    Compiles component source directories into their _package layout.

    Per component: read descriptor -> validate descriptor -> validate name ->
    resolve template and compiler -> recreate _package -> compile -> validate
    and write the packaged manifest. The source descriptor is never modified.
    """

    def __init__(
        self,
        registry: CompilerRegistry,
        resolver: TemplateResolver,
        validator: DescriptorValidator | None = None,
        *,
        maxWorkers: int | None = None,
        minify: bool | None = None,
        packagerVersion: str = PACKAGER_VERSION,
    ):
        self.registry = registry
        self.resolver = resolver
        self.validator = validator or PydanticDescriptorValidator()
        self.maxWorkers = max(1, int(settings("packaging.maxWorkers", 4) if maxWorkers is None else maxWorkers))
        self.minify = settingsBool("packaging.minify", True) if minify is None else minify
        self.packagerVersion = packagerVersion

    # ----- Single component -----

    def packageOne(
        self,
        componentPath: str | Path,
        *,
        minify: bool | None = None,
        verbose: bool = False,
        production: bool = False,
    ) -> PackagedComponent:
        componentPath = Path(componentPath).resolve()
        with logContext(componentName=componentPath.name, operation="package"):
            try:
                return self._package(componentPath, minify=minify, verbose=verbose, production=production)
            except PackagerError as err:
                if err.componentName is None:
                    err.componentName = componentPath.name
                if err.operation is None:
                    err.operation = "package"
                raise

    def _package(self, componentPath: Path, *, minify: bool | None, verbose: bool, production: bool) -> PackagedComponent:
        raw = readDescriptor(componentPath)
        validation = self.validator.validate(raw)
        if not validation.isValid or validation.descriptor is None:
            rawName = raw.get("name")
            raise DescriptorInvalidError(
                validation.reasons,
                componentName=rawName if isinstance(rawName, str) and rawName else None,
                path=componentPath / DESCRIPTOR_FILE,
            )
        descriptor = validation.descriptor

        if not validateComponentName(descriptor.name):
            raise NameInvalidError(descriptor.name, path=componentPath)

        template = self.resolver.resolve(descriptor.templateType)
        compiler = self.registry.resolve(template)

        publishPath = componentPath / PUBLISH_DIR
        _resetDir(publishPath, descriptor.name)

        options = CompileOptions(
            componentPath=componentPath,
            descriptor=descriptor,
            publishPath=publishPath,
            minify=self.minify if minify is None else minify,
            verbose=verbose,
            production=production,
            packagerVersion=self.packagerVersion,
        )
        try:
            manifest = compiler.compile(options)
            reason = validatePackagedManifest(manifest)
            if reason is not None:
                raise CompileError(f"Compiler '{template.compilerId}' produced an invalid manifest: {reason}")
            if manifest.get("name") != descriptor.name or manifest.get("version") != descriptor.version:
                raise CompileError(f"Compiler '{template.compilerId}' changed the component name or version")
            manifestPath = publishPath / DESCRIPTOR_FILE
            writeDescriptor(manifestPath, manifest)
        except Exception as err:
            shutil.rmtree(publishPath, ignore_errors=True)
            if isinstance(err, PackagerError):
                err.componentName = err.componentName or descriptor.name
                err.path = err.path or componentPath
                raise
            raise CompileError(
                f"Compilation failed: {err}",
                componentName=descriptor.name,
                operation="package",
                path=componentPath,
            ) from err

        logger.info("Packaged '%s@%s' -> '%s'", descriptor.name, descriptor.version, publishPath)
        return PackagedComponent(
            name=descriptor.name,
            version=descriptor.version,
            componentPath=componentPath,
            publishPath=publishPath,
            manifestPath=manifestPath,
            manifest=manifest,
            template=template,
        )

    # ----- Batch -----

    def packageMany(
        self,
        componentPaths: Iterable[str | Path],
        *,
        failFast: bool = False,
        minify: bool | None = None,
        verbose: bool = False,
        production: bool = False,
    ) -> BatchResult:
        """
        Packages every path, concurrently, collecting one outcome per path.

        A failing component never stops its siblings. With failFast=True the
        first failure (in input order) is raised once all work has settled.
        """
        paths = [Path(path) for path in componentPaths]
        if not paths:
            return BatchResult()

        workers = min(self.maxWorkers, len(paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocpack-package") as pool:
            futures = [
                pool.submit(self._outcome, path, minify=minify, verbose=verbose, production=production)
                for path in paths
            ]
            result = BatchResult(outcomes=tuple(future.result() for future in futures))

        for outcome in result.failed:
            logger.error("Packaging '%s' failed: %s", outcome.componentPath, outcome.error)
        logger.info("Packaged %d of %d component(s)", len(result.succeeded), len(paths))

        if failFast:
            result.raiseForFailures()
        return result

    def _outcome(self, path: Path, **kwargs: Any) -> PackageOutcome:
        try:
            return PackageOutcome(componentPath=path, component=self.packageOne(path, **kwargs))
        except PackagerError as err:
            return PackageOutcome(componentPath=path, error=err)
        except Exception as err:
            logger.exception("Unexpected failure packaging '%s'", path)
            wrapped = PackagerError(f"Unexpected failure: {err}", componentName=path.name, operation="package", path=path)
            wrapped.__cause__ = err
            return PackageOutcome(componentPath=path, error=wrapped)



def _resetDir(path: Path, componentName: str) -> None:
    try:
        if path.exists() or path.is_symlink():
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        path.mkdir(parents=True)
    except OSError as err:
        raise PackagerIOError(f"Cannot prepare {PUBLISH_DIR}: {err}", componentName=componentName, operation="package", path=path) from err
