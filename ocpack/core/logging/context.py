# ocpack/core/logging/context.py
from __future__ import annotations
import contextlib
import contextvars

# Per unit of work context (componentName, operation, ...). Threads and asyncio
# tasks each see their own copy.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("ocpack.logctx", default=None)

def setLogContext(**kvs):
    """Set or update per-log context values (componentName, operation, etc.)."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is not None:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext():
    """Clear context after a unit of work is fully handled."""
    _logContextVar.set(None)

def getLogContext():
    """Return current content dict or None."""
    return _logContextVar.get()

@contextlib.contextmanager
def logContext(**kvs):
    """Scoped setLogContext(); restores the previous context on exit."""
    token = _logContextVar.set(dict(_logContextVar.get() or {}))
    try:
        setLogContext(**kvs)
        yield
    finally:
        _logContextVar.reset(token)
