# ocpack/core/errors.py
from __future__ import annotations
from collections.abc import Sequence
from pathlib import Path

__all__ = [
    "PackagerError",
    "NameInvalidError",
    "TemplateInvalidError",
    "DescriptorInvalidError",
    "ProcessError",
    "ProcessSpawnError",
    "ProcessExitError",
    "ProcessCancelledError",
    "CompileError",
    "ScaffoldError",
    "PackagerIOError",
    "CleanupError",
    "ArchiveMissingError",
]



class PackagerError(Exception):
    """
    Base class for every failure raised by the packaging pipeline.

    Carries enough context to be actionable without reading internals:
      - componentName: component the failure belongs to (if known)
      - operation: pipeline step ("init", "package", "install", "compress", ...)
      - path: filesystem path involved (if any)
    """
    def __init__(
        self,
        message: str,
        *,
        componentName: str | None = None,
        operation: str | None = None,
        path: str | Path | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.componentName = componentName
        self.operation = operation
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        ctx: list[str] = []
        if self.operation:
            ctx.append(f"operation={self.operation}")
        if self.componentName:
            ctx.append(f"component={self.componentName}")
        if self.path is not None:
            ctx.append(f"path={self.path}")
        return f"{self.message} ({', '.join(ctx)})" if ctx else self.message



class NameInvalidError(PackagerError):
    """Component name failed validation. Raised before any I/O."""
    def __init__(self, name: object, **kwargs):
        kwargs.setdefault("componentName", name if isinstance(name, str) else None)
        super().__init__(f"Component name not valid: {name!r}", **kwargs)
        self.name = name



class TemplateInvalidError(PackagerError):
    """Template type cannot be mapped to a loadable compiler."""
    def __init__(self, message: str, *, templateType: str | None = None, compilerId: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.templateType = templateType
        self.compilerId = compilerId



class DescriptorInvalidError(PackagerError):
    """Component descriptor (package.json) is malformed."""
    def __init__(self, reasons: Sequence[str], **kwargs):
        self.reasons = tuple(reasons)
        joined = "; ".join(self.reasons) if self.reasons else "unknown reason"
        super().__init__(f"Component descriptor not valid: {joined}", **kwargs)



class ProcessError(PackagerError):
    """Base for package-manager process failures."""
    def __init__(self, message: str, *, command: Sequence[str], **kwargs):
        super().__init__(message, **kwargs)
        self.command = tuple(command)



class ProcessSpawnError(ProcessError):
    """The package-manager binary could not be started (missing, not executable, ...)."""
    def __init__(self, command: Sequence[str], cause: BaseException, **kwargs):
        super().__init__(f"Failed to start '{' '.join(command)}': {cause}", command=command, **kwargs)
        self.cause = cause



class ProcessExitError(ProcessError):
    """The package-manager process exited with a non-zero code."""
    def __init__(self, command: Sequence[str], exitCode: int, **kwargs):
        super().__init__(f"'{' '.join(command)}' exited with code {exitCode}", command=command, **kwargs)
        self.exitCode = exitCode



class ProcessCancelledError(ProcessError):
    """The package-manager process was terminated because its caller was cancelled."""
    def __init__(self, command: Sequence[str], exitCode: int | None = None, **kwargs):
        super().__init__(f"'{' '.join(command)}' was cancelled", command=command, **kwargs)
        self.exitCode = exitCode



class CompileError(PackagerError):
    """A compiler failed while packaging a component."""
    pass



class ScaffoldError(PackagerError):
    """A new component skeleton could not be created."""
    pass



class PackagerIOError(PackagerError):
    """Filesystem failure during scaffold/package/compress/cleanup."""
    pass



class CleanupError(PackagerError):
    """Archive removal failed."""
    fatal: bool = True



class ArchiveMissingError(CleanupError):
    """Archive was already gone. The caller's intent is satisfied, so this is non-fatal."""
    fatal = False
