# ocpack/core/logging/__init__.py
from __future__ import annotations

from .context import setLogContext, clearLogContext, getLogContext, logContext
from .formatters import DevFormatter, JsonFormatter
from .setup import configureLogging

__all__ = [
    "configureLogging",
    "DevFormatter",
    "JsonFormatter",
    "setLogContext",
    "clearLogContext",
    "getLogContext",
    "logContext",
]
