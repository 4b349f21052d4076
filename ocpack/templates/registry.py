# ocpack/templates/registry.py
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from importlib import import_module
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ocpack.app.settings import settings
from ocpack.components.descriptor import ComponentDescriptor
from ocpack.core.errors import TemplateInvalidError
from ocpack.templates.resolver import ResolvedTemplate

logger = logging.getLogger(__name__)

__all__ = [
    "CompileOptions",
    "Compiler",
    "CompilerRegistry",
    "compilerModuleName",
]



@dataclass(frozen=True, slots=True)
class CompileOptions:
    componentPath: Path
    descriptor: ComponentDescriptor
    publishPath: Path
    minify: bool = True
    verbose: bool = False
    production: bool = False
    packagerVersion: str = ""



@runtime_checkable
class Compiler(Protocol):
    """
    A template compiler.

    compile() writes the packaged view/data/static files into options.publishPath
    and returns the packaged manifest (package.json content) describing them.
    scaffold() writes starter files for a brand-new component into `destination`.
    """
    templateType: str
    version: str

    def compile(self, options: CompileOptions) -> dict[str, Any]:
        ...

    def scaffold(self, destination: Path, componentName: str) -> None:
        ...



def compilerModuleName(compilerId: str) -> str:
    """'oc-template-foo-compiler' -> 'oc_template_foo_compiler'"""
    return compilerId.replace("-", "_")



class CompilerRegistry:
    """
    Compiler id -> Compiler.

    Lookup order for an id not registered yet:
      1) `entrypoints` ("module:callable"), defaulting to `templates.compilers`
      2) an importable module named after the id (dashes -> underscores)
         exposing getCompiler()
    Loaded compilers are cached. Anything that fails along the way is a
    TemplateInvalidError for that id.
    """

    def __init__(self, entrypoints: Mapping[str, str] | None = None):
        if entrypoints is None:
            configured = settings("templates.compilers", {})
            entrypoints = configured if isinstance(configured, Mapping) else {}
        self._entrypoints: dict[str, str] = {str(key): str(value) for key, value in entrypoints.items()}
        self._compilers: dict[str, Compiler] = {}
        self._lock = threading.RLock()

    # ----- Registration -----

    def register(self, compilerId: str, compiler: Compiler) -> None:
        _checkCompiler(compilerId, compiler)
        with self._lock:
            self._compilers[compilerId] = compiler

    def registerEntrypoint(self, compilerId: str, entry: str) -> None:
        with self._lock:
            self._entrypoints[compilerId] = entry
            self._compilers.pop(compilerId, None)

    def known(self) -> list[str]:
        with self._lock:
            return sorted(set(self._compilers) | set(self._entrypoints))

    # ----- Lookup -----

    def get(self, compilerId: str) -> Compiler:
        with self._lock:
            cached = self._compilers.get(compilerId)
            if cached is not None:
                return cached
            compiler = self._load(compilerId)
            self._compilers[compilerId] = compiler
            logger.debug("Loaded compiler '%s' (%s %s)", compilerId, compiler.templateType, compiler.version)
            return compiler

    def resolve(self, template: ResolvedTemplate) -> Compiler:
        compiler = self.get(template.compilerId)
        if compiler.templateType != template.canonicalType:
            raise TemplateInvalidError(
                f"Compiler '{template.compilerId}' handles '{compiler.templateType}', not '{template.canonicalType}'",
                templateType=template.canonicalType,
                compilerId=template.compilerId,
            )
        return compiler

    def _load(self, compilerId: str) -> Compiler:
        entry = self._entrypoints.get(compilerId)
        try:
            if entry:
                factory = _resolveFactory(entry)
            else:
                module = import_module(compilerModuleName(compilerId))
                factory = getattr(module, "getCompiler", None)
                if factory is None or not callable(factory):
                    raise AttributeError(f"Module '{module.__name__}' has no getCompiler()")
            compiler = factory()
        except TemplateInvalidError:
            raise
        except Exception as err:
            raise TemplateInvalidError(
                f"Template type not valid: cannot load compiler '{compilerId}' ({err})",
                compilerId=compilerId,
            ) from err
        _checkCompiler(compilerId, compiler)
        return compiler



def _resolveFactory(entry: str) -> Callable[[], Any]:
    moduleName, _, callableName = entry.partition(":")
    if not moduleName or not callableName:
        raise ValueError(f"Invalid compiler entrypoint '{entry}'. Expected 'module:callable'.")
    module = import_module(moduleName)
    factory = getattr(module, callableName, None)
    if factory is None or not callable(factory):
        raise AttributeError(f"Entrypoint '{entry}' does not resolve to a callable")
    return factory



def _checkCompiler(compilerId: str, compiler: Any) -> None:
    if not isinstance(compiler, Compiler):
        raise TemplateInvalidError(
            f"Object registered as '{compilerId}' does not implement the Compiler interface",
            compilerId=compilerId,
        )
