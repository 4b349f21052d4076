# tests/ocpack/core/test_errors.py
from pathlib import Path

import pytest

from ocpack.core.errors import (
    ArchiveMissingError,
    CleanupError,
    DescriptorInvalidError,
    NameInvalidError,
    PackagerError,
    ProcessExitError,
    ProcessSpawnError,
)


def test_context_is_rendered():
    err = PackagerError("It broke", componentName="hello", operation="package", path="/tmp/x")
    assert str(err) == f"It broke (operation=package, component=hello, path={Path('/tmp/x')})"
    assert str(PackagerError("Bare")) == "Bare"


def test_descriptor_reasons_are_kept():
    err = DescriptorInvalidError(["version: bad", "oc: missing"])
    assert err.reasons == ("version: bad", "oc: missing")
    assert "version: bad; oc: missing" in str(err)


def test_name_error_names_the_component():
    assert NameInvalidError("bad name").componentName == "bad name"
    assert NameInvalidError(42).componentName is None


def test_process_errors_carry_command():
    spawn = ProcessSpawnError(("npm", "install"), FileNotFoundError("npm"))
    exited = ProcessExitError(["npm", "init"], 3)
    assert spawn.command == ("npm", "install")
    assert exited.command == ("npm", "init")
    assert exited.exitCode == 3
    assert "exited with code 3" in str(exited)


@pytest.mark.parametrize("cls, fatal", [(CleanupError, True), (ArchiveMissingError, False)])
def test_cleanup_fatality(cls, fatal):
    err = cls("x")
    assert err.fatal is fatal
    assert isinstance(err, PackagerError)
