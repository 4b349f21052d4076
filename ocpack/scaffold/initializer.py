# ocpack/scaffold/initializer.py
from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ocpack.app.settings import settingsBool
from ocpack.components.descriptor import (
    DESCRIPTOR_FILE,
    PydanticDescriptorValidator,
    readDescriptor,
    writeDescriptor,
)
from ocpack.components.names import validateComponentName
from ocpack.core.errors import DescriptorInvalidError, NameInvalidError, PackagerIOError, ScaffoldError
from ocpack.core.logging import logContext
from ocpack.npm.installer import DependencyInstaller
from ocpack.templates.registry import Compiler, CompilerRegistry
from ocpack.templates.resolver import ResolvedTemplate, TemplateResolver

logger = logging.getLogger(__name__)

__all__ = ["InitRequest", "InitResult", "Scaffolder"]



@dataclass(frozen=True, slots=True)
class InitRequest:
    componentName: str
    templateType: str
    # Parent directory; the component lands in destination/componentName
    destination: Path = Path(".")
    # Discard npm init output
    silent: bool = True



@dataclass(frozen=True, slots=True)
class InitResult:
    componentPath: Path
    template: ResolvedTemplate
    installedCompiler: str | None = None



class Scaffolder:
    """
    Creates a new component directory from a template.

    The skeleton is assembled as <hidden staging dir>/<componentName> and
    renamed into place only once complete. The staging directory is always
    removed, so a half-written component is never left behind.
    """

    def __init__(
        self,
        registry: CompilerRegistry,
        resolver: TemplateResolver,
        installer: DependencyInstaller | None = None,
        *,
        installCompiler: bool | None = None,
    ):
        self.registry = registry
        self.resolver = resolver
        self.installer = installer
        self.installCompiler = (
            settingsBool("init.installCompiler", True) if installCompiler is None else installCompiler
        )

    def prepare(self, request: InitRequest) -> tuple[ResolvedTemplate, Compiler]:
        """Validation and compiler lookup only. Performs no filesystem writes."""
        if not validateComponentName(request.componentName):
            raise NameInvalidError(request.componentName, operation="init")
        template = self.resolver.resolve(request.templateType)
        compiler = self.registry.resolve(template)
        return template, compiler

    async def init(self, request: InitRequest) -> InitResult:
        template, compiler = self.prepare(request)
        parent = Path(request.destination)
        componentPath = parent / request.componentName

        with logContext(componentName=request.componentName, operation="init"):
            if componentPath.exists():
                raise ScaffoldError("Destination already exists", componentName=request.componentName, operation="init", path=componentPath)

            try:
                parent.mkdir(parents=True, exist_ok=True)
                stagingDir = Path(tempfile.mkdtemp(prefix=".ocpack-tmp-", dir=parent))
            except OSError as err:
                raise PackagerIOError(f"Cannot create component directory: {err}", componentName=request.componentName, operation="init", path=parent) from err

            # npm init names the package after its working directory
            workDir = stagingDir / request.componentName
            try:
                workDir.mkdir()
                installed = await self._build(workDir, request, template, compiler)
                workDir.rename(componentPath)
            except OSError as err:
                raise PackagerIOError(f"Cannot write component: {err}", componentName=request.componentName, operation="init", path=componentPath) from err
            finally:
                shutil.rmtree(stagingDir, ignore_errors=True)

            logger.info("Component '%s' created at '%s' (%s)", request.componentName, componentPath, template.canonicalType)
            return InitResult(componentPath=componentPath, template=template, installedCompiler=installed)

    async def _build(
        self,
        workDir: Path,
        request: InitRequest,
        template: ResolvedTemplate,
        compiler: Compiler,
    ) -> str | None:
        installed: str | None = None
        npmDevDependencies: dict[str, str] = {}

        if self.installCompiler:
            installer = self.installer or DependencyInstaller()
            await installer.init(workDir, silent=request.silent)
            await installer.installOne(template.compilerId, workDir, isDev=True, save=True)
            installed = template.compilerId
            npmDevDependencies = _devDependencies(workDir)

        compiler.scaffold(workDir, request.componentName)

        try:
            descriptor = readDescriptor(workDir)
        except DescriptorInvalidError as err:
            raise ScaffoldError(f"Template '{template.canonicalType}' produced no usable {DESCRIPTOR_FILE}: {err}", componentName=request.componentName, operation="init") from err

        descriptor["name"] = request.componentName
        devDependencies = dict(npmDevDependencies)
        devDependencies.update(descriptor.get("devDependencies") or {})
        devDependencies.setdefault(template.compilerId, compiler.version)
        descriptor["devDependencies"] = devDependencies

        validation = PydanticDescriptorValidator().validate(descriptor)
        if not validation.isValid:
            raise ScaffoldError(
                f"Template '{template.canonicalType}' produced an invalid descriptor: {'; '.join(validation.reasons)}",
                componentName=request.componentName,
                operation="init",
            )
        writeDescriptor(workDir / DESCRIPTOR_FILE, descriptor)
        return installed



def _devDependencies(workDir: Path) -> dict[str, str]:
    # npm install --save-dev records the exact installed version here
    descriptorPath = workDir / DESCRIPTOR_FILE
    if not descriptorPath.is_file():
        return {}
    try:
        raw = readDescriptor(workDir)
    except DescriptorInvalidError:
        return {}
    value = raw.get("devDependencies")
    return {str(k): str(v) for k, v in value.items()} if isinstance(value, dict) else {}
