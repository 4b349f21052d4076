# tests/ocpack/test_local.py
import asyncio
import tarfile

import pytest

from ocpack.core.errors import DescriptorInvalidError, TemplateInvalidError
from ocpack.local import Local
from ocpack.npm.installer import DependencyInstaller


@pytest.fixture()
def local():
    return Local(installer=DependencyInstaller(), installCompiler=False)


def test_init_then_package(local, tmp_path):
    created = asyncio.run(local.init("fresh", "oc-template-html", tmp_path / "components"))
    assert local.getComponentsByDir(tmp_path / "components") == [created.componentPath.resolve()]

    packaged = local.package(created.componentPath)
    assert packaged.name == "fresh"
    assert (packaged.publishPath / "package.json").is_file()


def test_package_many_through_facade(local, make_component, tmp_path):
    make_component("one")
    make_component("two", version="x")

    result = local.packageMany(local.getComponentsByDir(tmp_path / "components"))
    assert [c.name for c in result.succeeded] == ["one"]
    assert isinstance(result.failed[0].error, DescriptorInvalidError)


def test_compress_and_cleanup(local, make_component, tmp_path):
    packaged = local.package(make_component("zipped"))
    archivePath = local.compress(packaged.publishPath, tmp_path / "zipped.tar.gz")

    with tarfile.open(archivePath, "r:gz") as tar:
        assert "_package/package.json" in tar.getnames()
    local.cleanup(archivePath)
    assert not archivePath.exists()


def test_clean_removes_node_modules(local, make_component, tmp_path):
    component = make_component("deps")
    (component / "node_modules" / "x").mkdir(parents=True)

    assert local.clean.fetchList(tmp_path / "components") == [component.resolve() / "node_modules"]
    local.clean(tmp_path / "components")
    assert not (component / "node_modules").exists()


def test_publish_uploads_then_removes_archive(local, make_component):
    seen = {}

    def upload(archivePath, packaged):
        seen["path"] = archivePath
        seen["exists"] = archivePath.is_file()
        with tarfile.open(archivePath, "r:gz") as tar:
            seen["names"] = tar.getnames()
        return "uploaded"

    result = asyncio.run(local.publish(make_component("pub", version="3.1.4"), upload))

    assert result.uploadResult == "uploaded"
    assert result.archiveName == "pub-3.1.4.tar.gz"
    assert seen["path"].name == "pub-3.1.4.tar.gz"
    assert seen["exists"] is True
    assert "_package/template.js" in seen["names"]
    assert not seen["path"].exists()


def test_publish_accepts_async_upload_and_cleans_up_on_failure(local, make_component):
    seen = {}

    async def upload(archivePath, packaged):
        seen["path"] = archivePath
        raise RuntimeError("registry down")

    with pytest.raises(RuntimeError, match="registry down"):
        asyncio.run(local.publish(make_component("failing"), upload))
    assert not seen["path"].exists()


def test_publish_with_uploader_that_removed_archive_keeps_result(local, make_component):
    def upload(archivePath, packaged):
        archivePath.unlink()
        return 201

    result = asyncio.run(local.publish(make_component("selfclean"), upload))
    assert result.uploadResult == 201


def test_publish_stops_on_packaging_error(local, make_component):
    calls = []
    component = make_component("broken", templateType="oc-template-nowhere")
    with pytest.raises(TemplateInvalidError):
        asyncio.run(local.publish(component, lambda *args: calls.append(args)))
    assert calls == []
