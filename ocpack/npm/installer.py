# ocpack/npm/installer.py
from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from ocpack.app.settings import settings
from ocpack.core.errors import ProcessCancelledError, ProcessExitError, ProcessSpawnError
from ocpack.core.logging import logContext

logger = logging.getLogger(__name__)

__all__ = [
    "MODULES_DIR",
    "InstallSpec",
    "InstallResult",
    "ProcessOutcome",
    "DependencyInstaller",
    "stripVersion",
    "installPathFor",
    "buildInitArgs",
    "buildInstallArgs",
]



MODULES_DIR = "node_modules"



@dataclass(frozen=True, slots=True)
class InstallSpec:
    targetPath: str
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    isDev: bool = False
    save: bool = False
    silent: bool = False



@dataclass(frozen=True, slots=True)
class InstallResult:
    # One path for installOne(), one path per dependency (input order) for installMany()
    dest: str | tuple[str, ...]



@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """
    Terminal state of one package-manager run: either the process could not be
    spawned (spawnError) or it exited (exitCode).
    """
    command: tuple[str, ...]
    exitCode: int | None = None
    spawnError: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.spawnError is None and self.exitCode == 0



def stripVersion(dependency: str) -> str:
    """
    Drops the version qualifier of a dependency spec.

      "lodash"             -> "lodash"
      "oc-client@~1.2.3"   -> "oc-client"
      "@scope/pkg@^2"      -> "@scope/pkg"
    """
    if dependency.startswith("@"):
        return "@" + dependency[1:].split("@", 1)[0]
    return dependency.split("@", 1)[0]



def installPathFor(targetPath: str, dependency: str) -> str:
    return os.path.join(targetPath, MODULES_DIR, stripVersion(dependency))



def buildInitArgs() -> list[str]:
    return ["init", "--yes", "--no-package-lock"]



def buildInstallArgs(spec: InstallSpec) -> list[str]:
    args = ["install", "--prefix", spec.targetPath]
    if spec.save:
        args.extend(["--save-exact", "--save-dev" if spec.isDev else "--save"])
    args.extend(spec.dependencies)
    args.append("--no-package-lock")
    return args



class DependencyInstaller:
    """
    Runs the package manager (npm by default) as one child process per call.

    Every operation is a coroutine that completes when the child exits. The
    working directory is always passed explicitly; nothing depends on the
    caller's current directory. Cancelling the awaiting task terminates the
    child; the CancelledError still propagates, with a ProcessCancelledError
    naming the command attached as its __context__.
    """

    def __init__(self, manager: str | None = None, *, terminateGraceSeconds: float | None = None):
        self.manager = manager or str(settings("npm.binary", "npm"))
        self.terminateGraceSeconds = float(
            settings("npm.terminateGraceSeconds", 5) if terminateGraceSeconds is None else terminateGraceSeconds
        )

    # ----- Operations -----

    async def init(self, targetPath: str | os.PathLike[str], silent: bool = False) -> None:
        targetPath = os.fspath(targetPath)
        with logContext(operation="npm.init"):
            outcome = await self.run(buildInitArgs(), cwd=targetPath, silent=silent)
        self._raiseFor(outcome)

    async def installOne(
        self,
        dependency: str,
        targetPath: str | os.PathLike[str],
        isDev: bool = False,
        save: bool = False,
    ) -> InstallResult:
        spec = InstallSpec(
            targetPath=os.fspath(targetPath),
            dependencies=(dependency,),
            isDev=isDev,
            save=save,
        )
        await self._install(spec)
        return InstallResult(dest=installPathFor(spec.targetPath, dependency))

    async def installMany(
        self,
        dependencies: Sequence[str],
        targetPath: str | os.PathLike[str],
        isDev: bool = False,
        save: bool = False,
    ) -> InstallResult:
        if isinstance(dependencies, str):
            raise TypeError("installMany() expects a sequence of dependency names, not a string")
        spec = InstallSpec(
            targetPath=os.fspath(targetPath),
            dependencies=tuple(dependencies),
            isDev=isDev,
            save=save,
        )
        await self._install(spec)
        return InstallResult(dest=tuple(installPathFor(spec.targetPath, dep) for dep in spec.dependencies))

    async def _install(self, spec: InstallSpec) -> None:
        if not spec.dependencies:
            raise ValueError("At least one dependency is required")
        with logContext(operation="npm.install"):
            logger.info("Installing %s into '%s'", ", ".join(spec.dependencies), spec.targetPath)
            outcome = await self.run(buildInstallArgs(spec), cwd=spec.targetPath, silent=spec.silent)
        self._raiseFor(outcome)

    # ----- Process handling -----

    async def run(self, args: Sequence[str], *, cwd: str, silent: bool = False) -> ProcessOutcome:
        """
        Spawns `<manager> <args...>` in `cwd` and waits for it to finish.

        Standard streams are inherited, or discarded when `silent`. Spawn
        failures are returned in the outcome rather than raised.
        """
        command = (self.manager, *args)
        stream = asyncio.subprocess.DEVNULL if silent else None
        logger.debug("Running '%s' in '%s'", " ".join(command), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(*command, cwd=cwd, stdout=stream, stderr=stream)
        except OSError as err:
            logger.debug("Spawn of '%s' failed: %s", command[0], err)
            return ProcessOutcome(command=command, spawnError=err)

        try:
            exitCode = await proc.wait()
        except asyncio.CancelledError as cancelled:
            await self._terminate(proc)
            logger.warning("'%s' cancelled, child terminated", " ".join(command))
            # asyncio.timeout() and TaskGroup only recognise a CancelledError
            cancelled.__context__ = ProcessCancelledError(command, exitCode=proc.returncode)
            raise
        return ProcessOutcome(command=command, exitCode=exitCode)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.terminateGraceSeconds)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()

    def _raiseFor(self, outcome: ProcessOutcome) -> None:
        if outcome.spawnError is not None:
            raise ProcessSpawnError(outcome.command, outcome.spawnError, operation=outcome.command[1])
        if outcome.exitCode != 0:
            raise ProcessExitError(outcome.command, int(outcome.exitCode or -1), operation=outcome.command[1])
