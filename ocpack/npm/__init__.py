# ocpack/npm/__init__.py
from .installer import (
    DependencyInstaller,
    InstallResult,
    InstallSpec,
    ProcessOutcome,
    stripVersion,
)

__all__ = [
    "DependencyInstaller",
    "InstallResult",
    "InstallSpec",
    "ProcessOutcome",
    "stripVersion",
]
