import asyncio
import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from ocpack.app import settings as settingsModule



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    # Never read the developer's ~/.ocpack/ocpack.json5 during tests
    monkeypatch.setenv("OCPACK_SETTINGS", str(tmp_path / "ocpack-test-settings.json5"))
    settingsModule.loadSettings.cache_clear()
    yield tmp_path / "ocpack-test-settings.json5"
    settingsModule.loadSettings.cache_clear()



# ----------------------------------------
# Components on disk
# ----------------------------------------

def write_component(
    root: Path,
    name: str,
    *,
    templateType: str = "oc-template-html",
    version: str = "1.0.0",
    view: str = "<div>\n  <p>Hello</p>\n</div>\n",
    data: bool = True,
    static: tuple[str, ...] = ("img",),
    extra: dict[str, Any] | None = None,
) -> Path:
    componentDir = root / name
    componentDir.mkdir(parents=True, exist_ok=True)
    (componentDir / "template.html").write_text(view, encoding="utf-8")
    files: dict[str, Any] = {"template": {"type": templateType, "src": "template.html"}}
    if data:
        (componentDir / "server.js").write_text("module.exports.data = (ctx, cb) => cb(null, {});\n", encoding="utf-8")
        files["data"] = "server.js"
    for entry in static:
        (componentDir / entry).mkdir(parents=True, exist_ok=True)
        (componentDir / entry / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    files["static"] = list(static)
    descriptor: dict[str, Any] = {"name": name, "version": version, "oc": {"files": files}}
    if extra:
        descriptor.update(extra)
    (componentDir / "package.json").write_text(json.dumps(descriptor, indent=2), encoding="utf-8")
    return componentDir


@pytest.fixture()
def make_component(tmp_path) -> Callable[..., Path]:
    root = tmp_path / "components"

    def factory(name: str, **kwargs: Any) -> Path:
        return write_component(root, name, **kwargs)

    return factory



# ----------------------------------------
# Fake package-manager child process
# ----------------------------------------

class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""
    def __init__(self, exitCode: int = 0, hang: bool = False) -> None:
        self._exitCode = exitCode
        self._hang = hang
        self._released: asyncio.Event | None = None
        self.returncode: int | None = None
        self.terminated = False
        self.killed = False

    async def wait(self) -> int:
        if self._hang and not self.terminated and not self.killed:
            self._released = asyncio.Event()
            await self._released.wait()
        self.returncode = self._exitCode
        return self._exitCode

    def terminate(self) -> None:
        self.terminated = True
        self._exitCode = -15
        if self._released is not None:
            self._released.set()

    def kill(self) -> None:
        self.killed = True
        self._exitCode = -9
        if self._released is not None:
            self._released.set()


class FakeNpm:
    """Records every spawn; replaces asyncio.create_subprocess_exec."""
    def __init__(self) -> None:
        self.calls: list[SimpleNamespace] = []
        self.processes: list[FakeProcess] = []
        self.exitCodes: list[int] = []
        self.spawnError: OSError | None = None
        self.hang = False
        self.onSpawn: Callable[[list[str], str], None] | None = None

    async def __call__(self, *command: str, cwd: str | None = None, stdout: Any = None, stderr: Any = None) -> FakeProcess:
        self.calls.append(SimpleNamespace(args=list(command), cwd=cwd, stdout=stdout, stderr=stderr))
        if self.spawnError is not None:
            raise self.spawnError
        if self.onSpawn is not None:
            self.onSpawn(list(command), cwd or "")
        proc = FakeProcess(self.exitCodes.pop(0) if self.exitCodes else 0, hang=self.hang)
        self.processes.append(proc)
        return proc


@pytest.fixture()
def fake_npm(monkeypatch) -> FakeNpm:
    fake = FakeNpm()
    monkeypatch.setattr("ocpack.npm.installer.asyncio.create_subprocess_exec", fake)
    return fake
