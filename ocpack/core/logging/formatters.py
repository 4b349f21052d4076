# ocpack/core/logging/formatters.py
from __future__ import annotations

import json
import logging

from .context import getLogContext



class JsonFormatter(logging.Formatter):
    """One-line JSON records for log files."""
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "proc": {"pid": record.process, "name": record.processName},
            "thread": {"id": record.thread, "name": record.threadName},
        }

        if record.exc_info:
            excType = record.exc_info[0]
            excValue = record.exc_info[1]
            try:
                typ = getattr(excType, "__name__", type(excType).__name__)
                msg = str(excValue)
                stack = self.formatException(record.exc_info)
            except Exception:
                typ, msg, stack = "Error", "format failed", None
            base["exc"] = {"type": typ, "message": msg, "stack": stack}

        return json.dumps(base, ensure_ascii=False, default=str, separators=(",", ":"))



class DevFormatter(logging.Formatter):
    """Human-friendly console formatter (dev mode)."""
    def format(self, record: logging.LogRecord) -> str:
        ctx = getLogContext()
        ctxStr = ""
        if ctx:
            md = []
            componentName = ctx.get("componentName")
            operation = ctx.get("operation")
            if componentName:
                md.append(str(componentName))
            if operation:
                md.append(str(operation))
            if md:
                ctxStr = " [" + "/".join(md) + "]"
        msg = record.getMessage()
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            msg += "\n" + str(record.stack_info)
        return f"{record.levelname}: [{record.name}] {msg}{ctxStr}"
