# ocpack/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from ocpack.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Libraries whose records should not reach our handlers
NO_PROPAGATE = [
    "asyncio", "concurrent.futures",
]



def configureLogging(*, devMode: bool | None = None, logFile: str | Path | None = None) -> logging.Logger:
    """
    Install the process-wide logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG), when a file is configured

    Prod:
      - Console INFO
      - JSON file logs INFO with rotation, when a file is configured
    """
    if devMode is None:
        devMode = settingsBool("logging.devMode", True)
    if logFile is None:
        logFile = settings("logging.file", None)
    rootLevel = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    root.addHandler(consoleHandler)

    if logFile:
        logPath = Path(logFile).expanduser()
        logPath.parent.mkdir(parents=True, exist_ok=True)
        fileHandler = logging.handlers.RotatingFileHandler(
            logPath,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)

    return logging.getLogger("ocpack")
