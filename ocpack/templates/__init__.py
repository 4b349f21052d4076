# ocpack/templates/__init__.py
from .resolver import ResolvedTemplate, TemplateResolver
from .registry import CompileOptions, Compiler, CompilerRegistry

__all__ = [
    "ResolvedTemplate",
    "TemplateResolver",
    "CompileOptions",
    "Compiler",
    "CompilerRegistry",
]
