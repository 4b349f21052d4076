# ocpack/templates/compilers/__init__.py
from .html import HtmlCompiler, getCompiler as getHtmlCompiler

__all__ = ["HtmlCompiler", "getHtmlCompiler"]
